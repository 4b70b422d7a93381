# Copyright 2022 TIER IV, INC. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Subprocess call wrapper shared between modules."""


from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Optional

logger = logging.getLogger(__name__)


def subprocess_call(
    cmd: str | list[str],
    *,
    raise_exception: bool = False,
    timeout: Optional[float] = None,
) -> None:
    """Run <cmd> and wait for it to finish.

    stderr of <cmd> is captured and logged when <cmd> exits with non-zero code.

    Raises:
        CalledProcessError if <cmd> failed and <raise_exception> is True,
            TimeoutExpired if <cmd> doesn't finish in <timeout> seconds.
    """
    if isinstance(cmd, str):
        cmd = shlex.split(cmd)

    try:
        subprocess.run(cmd, check=True, stderr=subprocess.PIPE, timeout=timeout)
    except subprocess.CalledProcessError as e:
        logger.debug(
            f"{cmd=} exited with {e.returncode}: "
            f"{e.stderr.decode(errors='replace').strip()}"
        )
        if raise_exception:
            raise

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
"""Power state control of the device."""


from __future__ import annotations

import logging
import threading
from subprocess import CalledProcessError

from bootbank.errors import PowerStateChangeFailed
from bootbank_common import cmdhelper

logger = logging.getLogger(__name__)


class PowerStateControl:
    """Reboot or shutdown the device.

    The bank operation lock is taken before changing the power state, so
        that an ongoing bank operation will not be interrupted.
    """

    def __init__(self, *, lock: threading.Lock) -> None:
        self._lock = lock

    def reboot(self) -> None:
        with self._lock:
            try:
                cmdhelper.reboot(message="user initiated reboot")
            except CalledProcessError as e:
                raise PowerStateChangeFailed(
                    f"failed to reboot: {e!r}, {e.stderr=}", module=__name__
                ) from e

    def shutdown(self) -> None:
        with self._lock:
            try:
                cmdhelper.poweroff(message="user initiated shutdown (halt)")
            except CalledProcessError as e:
                raise PowerStateChangeFailed(
                    f"failed to shutdown: {e!r}, {e.stderr=}", module=__name__
                ) from e

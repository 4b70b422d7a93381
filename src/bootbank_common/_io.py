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
"""File IO helpers."""


from __future__ import annotations

import os
from pathlib import Path

from bootbank_common._typing import StrOrPath

TMP_FILE_PREFIX = ".bootbank_io_tmp_"


def _gen_tmp_fname() -> str:
    return f"{TMP_FILE_PREFIX}{os.urandom(6).hex()}"


def fsync_dir(dpath: StrOrPath) -> None:
    dir_fd = os.open(dpath, os.O_RDONLY | os.O_DIRECTORY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


def write_str_to_file_atomic(
    fpath: StrOrPath,
    _input: str,
    *,
    mode: int | None = None,
    follow_symlink: bool = True,
) -> None:
    """Replace <fpath> with a new file containing <_input>.

    The new file is written and fsynced as a sibling tmp file, gets its
        permission bits set to <mode> (if specified), and then is renamed over
        <fpath>. Readers of <fpath> see either the old or the new contents.

    With <follow_symlink>, a symlink <fpath> is resolved and its target is
        replaced. Otherwise the symlink itself is replaced by the new file.
    """
    dst = Path(os.path.realpath(fpath)) if follow_symlink else Path(fpath)
    tmp_f = dst.parent / _gen_tmp_fname()
    try:
        with open(tmp_f, "w") as f:
            f.write(_input)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            tmp_f.chmod(mode)

        os.replace(tmp_f, dst)
        fsync_dir(dst.parent)
    finally:
        tmp_f.unlink(missing_ok=True)

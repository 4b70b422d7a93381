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
"""Thin wrappers of the system commands bootbank relies on.

All the wrappers raise the CalledProcessError of the underlying command
    to the caller when <raise_exception> is True.
"""


from __future__ import annotations

import logging
from subprocess import CalledProcessError

from bootbank_common._typing import StrOrPath
from bootbank_common.common import subprocess_call

logger = logging.getLogger(__name__)

# do not propagate mount events from/to the mount point
MOUNT_PROPAGATION_PARAMS = ["--make-private", "--make-unbindable"]


def mount(
    target: StrOrPath,
    mount_point: StrOrPath,
    *,
    fstype: str | None = None,
    options: list[str] | None = None,
    params: list[str] | None = None,
    raise_exception: bool = True,
) -> None:
    """mount [-t <fstype>] [-o <opt1>[,<opt2>...]] [<params>...] <target> <mount_point>"""
    cmd = ["mount"]
    if fstype:
        cmd += ["-t", fstype]
    if options:
        cmd += ["-o", ",".join(options)]
    cmd += [*(params or []), str(target), str(mount_point)]
    subprocess_call(cmd, raise_exception=raise_exception)


def mount_rw(
    target: StrOrPath,
    mount_point: StrOrPath,
    *,
    fstype: str | None = None,
    raise_exception: bool = True,
) -> None:
    mount(
        target,
        mount_point,
        fstype=fstype,
        options=["rw"],
        params=MOUNT_PROPAGATION_PARAMS,
        raise_exception=raise_exception,
    )


def mount_ro(
    target: StrOrPath,
    mount_point: StrOrPath,
    *,
    fstype: str | None = None,
    raise_exception: bool = True,
) -> None:
    mount(
        target,
        mount_point,
        fstype=fstype,
        options=["ro"],
        params=MOUNT_PROPAGATION_PARAMS,
        raise_exception=raise_exception,
    )


def is_target_mounted(target: StrOrPath, *, raise_exception: bool = False) -> bool:
    """Check whether <target>, a device or a mount point, is mounted by findmnt."""
    try:
        subprocess_call(["findmnt", str(target)], raise_exception=True)
    except CalledProcessError:
        if raise_exception:
            raise
        return False
    return True


def umount(target: StrOrPath, *, raise_exception: bool = True) -> None:
    """umount <target>, do nothing if <target> is not mounted."""
    if is_target_mounted(target):
        subprocess_call(["umount", str(target)], raise_exception=raise_exception)


def _shutdown(mode_flag: str, *, message: str, raise_exception: bool) -> None:
    cmd = ["shutdown", mode_flag, "now"]
    if message:
        cmd.append(message)
    subprocess_call(cmd, raise_exception=raise_exception)


def reboot(*, message: str = "", raise_exception: bool = True) -> None:
    """Reboot the system now.

    NOTE: shutdown command only schedules the power state change and returns,
        the caller will be terminated by the init system shortly after.
    """
    logger.warning("system will reboot now!")
    _shutdown("-r", message=message, raise_exception=raise_exception)


def poweroff(*, message: str = "", raise_exception: bool = True) -> None:
    """Halt the system now."""
    logger.warning("system will shutdown now!")
    _shutdown("-h", message=message, raise_exception=raise_exception)

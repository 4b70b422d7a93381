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
"""Scoped mount of a labeled partition.

A partition is mounted onto a freshly created temporary directory for the
    duration of one operation, and is always umounted with the directory
    removed when the operation ends, no matter the operation succeeds or not.
"""


from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from subprocess import CalledProcessError
from typing import Callable, Generator, Protocol, TypeVar

from bootbank._types import MountHandle
from bootbank.configs.cfg import cfg
from bootbank.errors import MountFailed
from bootbank_common import cmdhelper
from bootbank_common._typing import StrOrPath

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MountProvider(Protocol):
    """The capability of mounting/umounting a block device."""

    def mount(
        self, device: StrOrPath, mount_point: StrOrPath, *, readonly: bool
    ) -> None: ...

    def umount(self, mount_point: StrOrPath) -> None: ...


class CmdMountProvider:  # pragma: no cover
    """MountProvider implemented with mount/umount commands."""

    def __init__(self, *, fstype: str = cfg.MOUNT_FSTYPE) -> None:
        self.fstype = fstype

    def mount(
        self, device: StrOrPath, mount_point: StrOrPath, *, readonly: bool
    ) -> None:
        _mount_func = cmdhelper.mount_ro if readonly else cmdhelper.mount_rw
        _mount_func(device, mount_point, fstype=self.fstype, raise_exception=True)

    def umount(self, mount_point: StrOrPath) -> None:
        cmdhelper.umount(mount_point, raise_exception=True)


class MountScope:
    """Mount partitions by fslabel for the duration of an operation.

    NOTE: MountScope itself is NOT thread-safe, the caller should serialize
        the usage of MountScope.
    """

    def __init__(
        self,
        mount_provider: MountProvider,
        *,
        by_label_dpath: StrOrPath = cfg.BY_LABEL_DPATH,
        tmp_dpath: StrOrPath | None = cfg.MOUNT_TMP_DPATH,
    ) -> None:
        self._provider = mount_provider
        self.by_label_dpath = Path(by_label_dpath)
        self.tmp_dpath = tmp_dpath

    def get_dev_by_label(self, partition_label: str) -> Path:
        return self.by_label_dpath / partition_label

    def _release(self, handle: MountHandle) -> None:
        """Umount and remove the mount point, failures are logged only."""
        logger.debug(f"umount {handle.partition_label} from {handle.mount_point}")
        try:
            self._provider.umount(handle.mount_point)
        except Exception as e:
            logger.error(
                f"failed to umount {handle.partition_label} from {handle.mount_point}: {e!r}"
            )

        # NOTE: only remove the empty dir, if the umount failed, we MUST NOT
        #       touch anything under the still mounted partition.
        try:
            os.rmdir(handle.mount_point)
        except OSError as e:
            logger.error(f"failed to remove mount point {handle.mount_point}: {e!r}")

    @contextlib.contextmanager
    def mounted_partition(
        self, partition_label: str, *, readonly: bool
    ) -> Generator[Path, None, None]:
        """Mount the partition with <partition_label> and yield the mount point.

        Raises:
            MountFailed if the mount point cannot be prepared or mount failed,
                in such case the body will not be executed.
        """
        try:
            _mount_point = Path(
                tempfile.mkdtemp(prefix=cfg.MOUNT_POINT_PREFIX, dir=self.tmp_dpath)
            )
        except OSError as e:
            _err_msg = f"failed to create mount point for {partition_label}: {e!r}"
            logger.error(_err_msg)
            raise MountFailed(_err_msg, module=__name__) from e

        _dev = self.get_dev_by_label(partition_label)
        logger.debug(f"mount {_dev} on {_mount_point} ({readonly=})")
        try:
            self._provider.mount(_dev, _mount_point, readonly=readonly)
        except Exception as e:
            _err_msg = f"failed to mount {_dev} on {_mount_point}: {e!r}"
            if isinstance(e, CalledProcessError) and e.stderr:
                _stderr = e.stderr
                if isinstance(_stderr, bytes):
                    _stderr = _stderr.decode(errors="replace")
                _err_msg = f"{_err_msg}, stderr: {_stderr.strip()}"
            logger.error(_err_msg)
            with contextlib.suppress(OSError):
                os.rmdir(_mount_point)
            raise MountFailed(_err_msg, module=__name__) from e

        handle = MountHandle(
            partition_label=partition_label,
            mount_point=_mount_point,
            readonly=readonly,
        )
        try:
            yield handle.mount_point
        finally:
            self._release(handle)

    def with_mounted_partition(
        self,
        partition_label: str,
        *,
        readonly: bool,
        body: Callable[[Path], T],
    ) -> T:
        """Run <body> with the mount point of <partition_label>, return its result."""
        with self.mounted_partition(partition_label, readonly=readonly) as _mp:
            return body(_mp)

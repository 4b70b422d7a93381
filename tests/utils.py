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


from __future__ import annotations

import io
import shutil
import tarfile
from pathlib import Path
from subprocess import CalledProcessError
from typing import Dict, Iterable, List, Tuple

BANK1, BANK2, GRUB = "BOOTBANK1", "BOOTBANK2", "GRUB"
BY_LABEL_DPATH = "/dev/disk/by-label"
VERSION_RELPATH = "etc/rocketship_version"

CMDLINE_TEMPLATE = "BOOT_IMAGE=/vmlinuz root=LABEL={label} rw quiet splash\n"


def write_cmdline(cmdline_f: Path, label: str) -> None:
    cmdline_f.write_text(CMDLINE_TEMPLATE.format(label=label))


def write_version(root: Path, version: str) -> None:
    _version_f = root / VERSION_RELPATH
    _version_f.parent.mkdir(parents=True, exist_ok=True)
    _version_f.write_text(f"{version}\n")


def make_image_archive(src_dir: Path, *, gzip: bool = False) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz" if gzip else "w") as tar:
        tar.add(src_dir, arcname=".")
    return buf.getvalue()


def _clear_dir(dpath: Path) -> None:
    for _entry in dpath.iterdir():
        if _entry.is_dir() and not _entry.is_symlink():
            shutil.rmtree(_entry)
        else:
            _entry.unlink()


class FakeMountProvider:
    """Simulate block devices with one backing directory per fslabel.

    On mount the backing dir is copied onto the mount point, on umount the
        changes are synced back (for rw mount) and the mount point is emptied.
    """

    def __init__(self, backing_dpath: Path, *, fail_on: Iterable[str] = ()) -> None:
        self.backing_dpath = backing_dpath
        self.fail_on = set(fail_on)
        self.mounted: Dict[Path, Tuple[Path, bool]] = {}
        self.mount_history: List[Tuple[str, bool]] = []
        self.umount_history: List[Path] = []

    def mount(self, device, mount_point, *, readonly: bool) -> None:
        _label = Path(device).name
        self.mount_history.append((_label, readonly))

        _backing = self.backing_dpath / _label
        if _label in self.fail_on or not _backing.is_dir():
            raise CalledProcessError(
                32,
                ["mount", str(device), str(mount_point)],
                stderr=f"mount: special device {device} does not exist\n".encode(),
            )

        shutil.copytree(_backing, mount_point, symlinks=True, dirs_exist_ok=True)
        self.mounted[Path(mount_point)] = (_backing, readonly)

    def umount(self, mount_point) -> None:
        mount_point = Path(mount_point)
        self.umount_history.append(mount_point)
        _backing, _readonly = self.mounted.pop(mount_point)

        if not _readonly:
            shutil.rmtree(_backing)
            shutil.copytree(mount_point, _backing, symlinks=True)
        _clear_dir(mount_point)



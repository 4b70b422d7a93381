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

import threading
from pathlib import Path

import pytest

from bootbank.bank_control import BankService, MountScope
from bootbank.configs import DEFAULT_BANK_LAYOUT
from tests.utils import (
    BANK1,
    BANK2,
    BY_LABEL_DPATH,
    GRUB,
    FakeMountProvider,
    write_cmdline,
)


@pytest.fixture
def partitions_dir(tmp_path: Path) -> Path:
    _partitions = tmp_path / "partitions"
    for _label in (BANK1, BANK2, GRUB):
        (_partitions / _label).mkdir(parents=True)
    return _partitions


@pytest.fixture
def mount_tmp_dir(tmp_path: Path) -> Path:
    _mnt = tmp_path / "mnt"
    _mnt.mkdir()
    return _mnt


@pytest.fixture
def mount_provider(partitions_dir: Path) -> FakeMountProvider:
    return FakeMountProvider(partitions_dir)


@pytest.fixture
def mount_scope(mount_provider: FakeMountProvider, mount_tmp_dir: Path) -> MountScope:
    return MountScope(
        mount_provider, by_label_dpath=BY_LABEL_DPATH, tmp_dpath=mount_tmp_dir
    )


@pytest.fixture
def cmdline_file(tmp_path: Path) -> Path:
    """The kernel cmdline of a system booted from BOOTBANK1."""
    _cmdline_f = tmp_path / "cmdline"
    write_cmdline(_cmdline_f, BANK1)
    return _cmdline_f


@pytest.fixture
def bank_service(
    mount_provider: FakeMountProvider,
    partitions_dir: Path,
    mount_tmp_dir: Path,
    cmdline_file: Path,
) -> BankService:
    return BankService.setup(
        mount_provider,
        lock=threading.Lock(),
        layout=DEFAULT_BANK_LAYOUT,
        cmdline_fpath=cmdline_file,
        # the live rootfs of the active bank
        active_root=partitions_dir / BANK1,
        by_label_dpath=BY_LABEL_DPATH,
        mount_tmp_dpath=mount_tmp_dir,
        extract_timeout=30,
    )

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

import logging
from pathlib import Path

import pytest
import pytest_mock
from pytest import LogCaptureFixture

from bootbank.bank_control import MountScope
from bootbank.errors import MountFailed
from tests.utils import BANK2, BY_LABEL_DPATH, GRUB, FakeMountProvider


class TestMountScope:

    @pytest.fixture(autouse=True)
    def setup_test(
        self,
        partitions_dir: Path,
        mount_tmp_dir: Path,
        mount_provider: FakeMountProvider,
        mount_scope: MountScope,
    ):
        self.partitions_dir = partitions_dir
        self.mount_tmp_dir = mount_tmp_dir
        self.mount_provider = mount_provider
        self.mount_scope = mount_scope

        (partitions_dir / BANK2 / "some_file").write_text("bank2 content")

    def test_get_dev_by_label(self):
        assert self.mount_scope.get_dev_by_label(BANK2) == Path(
            f"{BY_LABEL_DPATH}/{BANK2}"
        )

    def test_mounted_partition(self):
        with self.mount_scope.mounted_partition(BANK2, readonly=True) as _mp:
            assert _mp.parent == self.mount_tmp_dir
            assert _mp.name.startswith("bootbank_mnt_")
            assert (_mp / "some_file").read_text() == "bank2 content"
            assert _mp in self.mount_provider.mounted

        assert self.mount_provider.mount_history == [(BANK2, True)]
        assert self.mount_provider.umount_history == [_mp]
        # mount point is removed after the scope
        assert not _mp.exists()
        assert not list(self.mount_tmp_dir.iterdir())

    def test_mount_rw(self):
        with self.mount_scope.mounted_partition(BANK2, readonly=False) as _mp:
            (_mp / "new_file").write_text("new")

        assert self.mount_provider.mount_history == [(BANK2, False)]
        assert (self.partitions_dir / BANK2 / "new_file").read_text() == "new"

    def test_release_on_body_failure(self):
        with pytest.raises(ZeroDivisionError):
            with self.mount_scope.mounted_partition(BANK2, readonly=True) as _mp:
                _ = 1 / 0

        assert self.mount_provider.umount_history == [_mp]
        assert not self.mount_provider.mounted
        assert not list(self.mount_tmp_dir.iterdir())

    def test_mount_failed(self):
        self.mount_provider.fail_on.add(GRUB)
        _body_executed = False

        with pytest.raises(MountFailed) as exc_info:
            with self.mount_scope.mounted_partition(GRUB, readonly=False):
                _body_executed = True

        assert not _body_executed
        assert "special device" in str(exc_info.value)
        assert self.mount_provider.mount_history == [(GRUB, False)]
        # no umount for a failed mount
        assert not self.mount_provider.umount_history
        assert not list(self.mount_tmp_dir.iterdir())

    def test_mount_point_creation_failed(self, tmp_path: Path):
        mount_scope = MountScope(
            self.mount_provider,
            by_label_dpath=BY_LABEL_DPATH,
            tmp_dpath=tmp_path / "not_existed",
        )
        with pytest.raises(MountFailed):
            with mount_scope.mounted_partition(BANK2, readonly=True):
                pass
        assert not self.mount_provider.mount_history

    def test_umount_failure_is_logged_only(
        self, mocker: pytest_mock.MockerFixture, caplog: LogCaptureFixture
    ):
        _umount_mock = mocker.patch.object(
            self.mount_provider, "umount", side_effect=OSError("target is busy")
        )

        with caplog.at_level(logging.ERROR):
            with self.mount_scope.mounted_partition(BANK2, readonly=True) as _mp:
                pass

        _umount_mock.assert_called_once_with(_mp)
        assert "failed to umount" in caplog.text
        # the still mounted partition is untouched
        assert (_mp / "some_file").read_text() == "bank2 content"
        assert "failed to remove mount point" in caplog.text

    def test_umount_failure_not_masking_body_error(
        self, mocker: pytest_mock.MockerFixture, caplog: LogCaptureFixture
    ):
        mocker.patch.object(
            self.mount_provider, "umount", side_effect=OSError("target is busy")
        )

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ZeroDivisionError):
                with self.mount_scope.mounted_partition(BANK2, readonly=True):
                    _ = 1 / 0
        assert "failed to umount" in caplog.text

    def test_with_mounted_partition(self):
        res = self.mount_scope.with_mounted_partition(
            BANK2,
            readonly=True,
            body=lambda _mp: (_mp / "some_file").read_text(),
        )
        assert res == "bank2 content"
        assert not list(self.mount_tmp_dir.iterdir())

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
"""The boundary of bank operations.

All operations that mount any bank related partition are serialized by the
    lock passed in, the lock is held for the whole mount scope.
"""


from __future__ import annotations

import logging
import threading
from typing import BinaryIO, List, Optional

from bootbank._types import Bank, BankStatus
from bootbank.configs import BankLayout
from bootbank.configs.cfg import bank_layout, cfg
from bootbank_common._typing import StrOrPath

from ._bank_locator import BankLocator
from ._boot_cfg_writer import BootConfigWriter
from ._deployer import ImageDeployer
from ._extractor import ArchiveExtractor, TarExtractor
from ._mount_scope import MountProvider, MountScope
from ._version_reader import VersionReader

logger = logging.getLogger(__name__)


class BankService:
    def __init__(
        self,
        *,
        locator: BankLocator,
        version_reader: VersionReader,
        deployer: ImageDeployer,
        boot_cfg_writer: BootConfigWriter,
        lock: threading.Lock,
    ) -> None:
        self._locator = locator
        self._version_reader = version_reader
        self._deployer = deployer
        self._boot_cfg_writer = boot_cfg_writer
        self._lock = lock

    @classmethod
    def setup(
        cls,
        mount_provider: MountProvider,
        *,
        lock: threading.Lock,
        layout: BankLayout = bank_layout,
        extractor: Optional[ArchiveExtractor] = None,
        cmdline_fpath: StrOrPath = cfg.PROC_CMDLINE_FPATH,
        active_root: StrOrPath = cfg.ACTIVE_ROOT,
        by_label_dpath: StrOrPath = cfg.BY_LABEL_DPATH,
        mount_tmp_dpath: Optional[StrOrPath] = cfg.MOUNT_TMP_DPATH,
        extract_timeout: float = cfg.IMAGE_EXTRACT_TIMEOUT,
    ) -> BankService:
        """Assemble a BankService from the capabilities it depends on."""
        locator = BankLocator(
            cmdline_fpath=cmdline_fpath, fallback_bank=layout.fallback_bank
        )
        mount_scope = MountScope(
            mount_provider, by_label_dpath=by_label_dpath, tmp_dpath=mount_tmp_dpath
        )
        return cls(
            locator=locator,
            version_reader=VersionReader(
                locator, mount_scope, active_root=active_root
            ),
            deployer=ImageDeployer(
                locator,
                mount_scope,
                extractor or TarExtractor(),
                timeout=extract_timeout,
            ),
            boot_cfg_writer=BootConfigWriter(mount_scope, layout=layout),
            lock=lock,
        )

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def list_banks(self) -> List[str]:
        return [_bank.value for _bank in Bank]

    def get_bank_status(self, bank_id: str) -> BankStatus:
        """
        Raises:
            InvalidBank on unknown <bank_id>, MountFailed if the inactive bank
                cannot be mounted.
        """
        bank = Bank.parse(bank_id)
        if bank == self._locator.current_bank():
            return BankStatus(
                version=self._version_reader.read_version(bank), active=True
            )

        with self._lock:
            return BankStatus(
                version=self._version_reader.read_version(bank), active=False
            )

    def check_deployable(self, bank_id: str) -> Bank:
        """Check whether an image can be deployed onto <bank_id>, without mounting.

        Raises:
            InvalidBank on unknown <bank_id>, BankIsActive if <bank_id> is the active bank.
        """
        bank = Bank.parse(bank_id)
        self._deployer.check_target(bank)
        return bank

    def upload_image(self, bank_id: str, stream: BinaryIO) -> None:
        """
        Raises:
            InvalidBank on unknown <bank_id>, BankIsActive if <bank_id> is the active bank,
                MountFailed or ImageExtractFailed on deploy failure.
        """
        bank = Bank.parse(bank_id)
        with self._lock:
            self._deployer.deploy(bank, stream)

    def mark_bootable(self, bank_id: str) -> None:
        """
        Raises:
            InvalidBank on unknown <bank_id>, MountFailed or BootConfigWriteFailed
                on failed to update the boot configuration.
        """
        bank = Bank.parse(bank_id)
        with self._lock:
            self._boot_cfg_writer.make_bootable(bank)

    def get_bootable_bank(self) -> Optional[Bank]:
        with self._lock:
            return self._boot_cfg_writer.get_default_bank()

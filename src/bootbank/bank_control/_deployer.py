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
"""Deploy uploaded image onto the inactive bank."""


from __future__ import annotations

import logging
from typing import BinaryIO

from bootbank._types import Bank
from bootbank.configs.cfg import cfg
from bootbank.errors import BankIsActive, ImageExtractFailed

from ._bank_locator import BankLocator
from ._extractor import ArchiveExtractor
from ._mount_scope import MountScope

logger = logging.getLogger(__name__)


class ImageDeployer:
    """Extract an image archive stream onto the mounted inactive bank.

    NOTE: there is no rollback, if the extraction failed, the bank is left
        partially written and should be re-deployed.
    """

    def __init__(
        self,
        locator: BankLocator,
        mount_scope: MountScope,
        extractor: ArchiveExtractor,
        *,
        timeout: float = cfg.IMAGE_EXTRACT_TIMEOUT,
    ) -> None:
        self._locator = locator
        self._mount_scope = mount_scope
        self._extractor = extractor
        self.timeout = timeout

    def check_target(self, bank: Bank) -> None:
        if bank == self._locator.current_bank():
            raise BankIsActive(
                f"Bootbank {bank} is currently active, refuse to deploy image onto it",
                module=__name__,
            )

    def deploy(self, bank: Bank, stream: BinaryIO) -> None:
        """Deploy the image from <stream> onto <bank>.

        Raises:
            BankIsActive if <bank> is the active bank, MountFailed if the bank
                cannot be mounted, ImageExtractFailed on extraction failure.
        """
        self.check_target(bank)

        logger.info(f"unpacking image into bootbank {bank} ...")
        with self._mount_scope.mounted_partition(bank.value, readonly=False) as _mp:
            try:
                output = self._extractor.extract(stream, _mp, timeout=self.timeout)
            except ImageExtractFailed as e:
                logger.error(f"failed to unpack image into {bank}: {e!r}")
                if e.output:
                    logger.error(f"combined stdout/stderr output follows:\n{e.output}")
                raise type(e)(
                    f"failed to deploy image onto {bank}: {e}",
                    module=__name__,
                    output=e.output,
                ) from e

        if output:
            logger.debug(f"tar output: {output}")
        logger.info(f"unpack into bootbank {bank} completed successfully")

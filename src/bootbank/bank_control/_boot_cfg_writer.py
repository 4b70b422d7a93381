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
"""Write the grub configuration onto the boot-config partition."""


from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from bootbank._types import Bank
from bootbank.configs import BankLayout
from bootbank.configs.cfg import bank_layout, cfg
from bootbank.errors import BootConfigWriteFailed
from bootbank_common._io import write_str_to_file_atomic

from ._grub_cfg import GrubCfgParser, GrubMenuConfig
from ._mount_scope import MountScope

logger = logging.getLogger(__name__)


class BootConfigWriter:
    def __init__(
        self,
        mount_scope: MountScope,
        *,
        layout: BankLayout = bank_layout,
        grub_dpath: str = cfg.GRUB_DPATH,
        grub_cfg_fname: str = cfg.GRUB_CFG_FNAME,
    ) -> None:
        self._mount_scope = mount_scope
        self.layout = layout
        self._grub_cfg_relpath = Path(grub_dpath).relative_to("/") / grub_cfg_fname

    def render(self, bank: Bank) -> str:
        """Render the grub.cfg that boots <bank> by default.

        Raises:
            BootConfigWriteFailed if the rendered grub.cfg doesn't pass the check.
        """
        rendered = GrubMenuConfig.from_layout(self.layout, default_bank=bank).render()
        try:
            GrubCfgParser.check(rendered, default_bank=bank)
        except ValueError as e:
            _err_msg = f"rendered grub.cfg is invalid: {e}"
            logger.error(f"{_err_msg}\n{rendered}")
            raise BootConfigWriteFailed(_err_msg, module=__name__) from e
        return rendered

    def make_bootable(self, bank: Bank) -> None:
        """Make <bank> the default boot entry for the next boot.

        Raises:
            MountFailed if the boot-config partition cannot be mounted,
                BootConfigWriteFailed on failed to write the grub.cfg.
        """
        rendered = self.render(bank)
        _partition = self.layout.boot_cfg_partition_label

        logger.info(f"marking bootbank {bank} as bootable (for next boot)")
        with self._mount_scope.mounted_partition(_partition, readonly=False) as _mp:
            _grub_cfg_f = _mp / self._grub_cfg_relpath
            try:
                _grub_cfg_f.parent.mkdir(
                    mode=cfg.GRUB_DPATH_MODE, parents=True, exist_ok=True
                )
            except OSError as e:
                raise BootConfigWriteFailed(
                    f"failed to ensure grub dir on {_partition}: {e!r}",
                    module=__name__,
                ) from e

            try:
                # NOTE: the grub.cfg MUST be resolved under the mount point
                write_str_to_file_atomic(
                    _grub_cfg_f,
                    rendered,
                    mode=cfg.GRUB_CFG_MODE,
                    follow_symlink=False,
                )
            except OSError as e:
                raise BootConfigWriteFailed(
                    f"failed to write grub config on {_partition}: {e!r}",
                    module=__name__,
                ) from e
        logger.info(f"bootbank {bank} will be booted on next boot")

    def get_default_bank(self) -> Optional[Bank]:
        """Get the bank that the current grub.cfg boots by default.

        Returns:
            The default bank, or None if grub.cfg is missing, unreadable
                or doesn't select a known bank.

        Raises:
            MountFailed if the boot-config partition cannot be mounted.
        """
        _partition = self.layout.boot_cfg_partition_label
        with self._mount_scope.mounted_partition(_partition, readonly=True) as _mp:
            try:
                _grub_cfg = (_mp / self._grub_cfg_relpath).read_text()
            except FileNotFoundError:
                logger.warning(f"no grub.cfg found on {_partition}")
                return None
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"failed to read grub.cfg on {_partition}: {e!r}")
                return None

        _label = GrubCfgParser.parse(_grub_cfg).default_partition_label
        try:
            return Bank(_label)
        except ValueError:
            logger.warning(f"grub.cfg default entry points to unknown {_label=}")
            return None

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
"""Detect which bank the running kernel was loaded from."""


from __future__ import annotations

import logging
from pathlib import Path

from bootbank._types import Bank
from bootbank.configs.cfg import bank_layout, cfg
from bootbank_common._typing import StrOrPath

logger = logging.getLogger(__name__)

ROOT_LABEL_TOKEN_PREFIX = "root=LABEL"


def parse_root_label(cmdline: str) -> str | None:
    """Get the fslabel from the `root=LABEL=<label>` token of <cmdline>.

    Returns:
        The label, or None if no such token is found.

    Raises:
        ValueError if the root=LABEL token is malformed.
    """
    for token in cmdline.split():
        if token.startswith(ROOT_LABEL_TOKEN_PREFIX):
            _splitted = token.split("=")
            if len(_splitted) != 3 or not _splitted[2]:
                raise ValueError(f"malformed root label token: {token}")
            return _splitted[2]


class BankLocator:
    """Determine the active bank by the kernel cmdline.

    This class never fails, if the active bank cannot be detected,
        the <fallback_bank> will be assumed.
    """

    def __init__(
        self,
        *,
        cmdline_fpath: StrOrPath = cfg.PROC_CMDLINE_FPATH,
        fallback_bank: Bank = bank_layout.fallback_bank,
    ) -> None:
        self.cmdline_fpath = Path(cmdline_fpath)
        self.fallback_bank = fallback_bank

    def current_bank(self) -> Bank:
        try:
            # NOTE: cmdline might contain arbitrary bytes
            _cmdline = self.cmdline_fpath.read_bytes().decode(errors="replace")
        except OSError as e:
            logger.warning(
                f"unable to determine bootbank (failed to read cmdline: {e!r}), "
                f"assuming {self.fallback_bank}"
            )
            return self.fallback_bank

        try:
            _label = parse_root_label(_cmdline)
        except ValueError as e:
            logger.warning(
                f"cannot infer root label ({e}), assuming {self.fallback_bank}"
            )
            return self.fallback_bank

        if _label is None:
            logger.warning(
                f"unable to determine bootbank (no root label found on cmdline: {_cmdline.strip()}), "
                f"assuming {self.fallback_bank}"
            )
            return self.fallback_bank

        try:
            return Bank(_label)
        except ValueError:
            logger.warning(
                f"booted from unknown partition {_label}, assuming {self.fallback_bank}"
            )
            return self.fallback_bank

    def other_bank(self) -> Bank:
        return self.current_bank().other

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
"""Bank layout definition and parsing logic.

The two bank identifiers are fixed, the layout file only describes how
    the banks are presented in the boot menu and where the boot configuration
    partition is.

Example layout.yaml:

    format_version: 1
    boot_cfg_partition_label: GRUB
    fallback_bank: BOOTBANK1
    menu_labels:
      BOOTBANK1: Rocketship1
      BOOTBANK2: Rocketship2
    kernel_args: rw quiet splash
    grub_timeout: 3
    hidden_timeout: 5
"""


from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

import yaml
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from typing_extensions import Annotated, Self

from bootbank._types import Bank
from bootbank_common._typing import StrOrPath, str_to_enum

logger = logging.getLogger(__name__)


class BaseFixedConfig(BaseModel):
    """Common base for configs that should be fixed and not changable."""

    model_config = ConfigDict(frozen=True, validate_default=True)


class BankLayout(BaseFixedConfig):
    """Bank layout configuration.

    Attributes:
        format_version: the layout.yaml scheme version, current is 1.
        boot_cfg_partition_label: fslabel of the partition holding the grub files.
        fallback_bank: the bank assumed active when it cannot be detected.
        menu_labels: the grub menuentry title for each bank.
        kernel_args: kernel cmdline options appended for every menuentry.
        grub_timeout: grub menu timeout in seconds.
        hidden_timeout: seconds to wait for a key press before showing the menu.
    """

    format_version: int = 1
    boot_cfg_partition_label: str = "GRUB"
    fallback_bank: Annotated[
        Bank, BeforeValidator(str_to_enum(Bank))
    ] = Bank.BANK1
    menu_labels: Dict[str, str] = Field(
        default_factory=lambda: {
            Bank.BANK1.value: "Rocketship1",
            Bank.BANK2.value: "Rocketship2",
        }
    )
    kernel_args: str = "rw quiet splash"
    grub_timeout: int = Field(default=3, ge=0)
    hidden_timeout: int = Field(default=5, ge=0)

    @model_validator(mode="after")
    def _check_layout(self) -> Self:
        if set(self.menu_labels) != {_bank.value for _bank in Bank}:
            raise ValueError(
                f"menu_labels must define exactly {list(Bank)}, get {list(self.menu_labels)}"
            )

        _labels = list(self.menu_labels.values())
        if not all(_labels) or len(set(_labels)) != len(_labels):
            raise ValueError(f"menu labels must be non-empty and unique: {_labels}")
        if any('"' in _label for _label in _labels):
            raise ValueError(f"menu labels must not contain double quote: {_labels}")

        if self.boot_cfg_partition_label in self.menu_labels:
            raise ValueError(
                f"{self.boot_cfg_partition_label=} conflicts with bank labels"
            )
        return self

    def menu_label_of(self, bank: Bank) -> str:
        return self.menu_labels[bank.value]


DEFAULT_BANK_LAYOUT = BankLayout()


def parse_bank_layout(layout_file: StrOrPath) -> BankLayout:
    try:
        _raw_yaml_str = Path(layout_file).read_text()
    except FileNotFoundError as e:
        logger.info(f"{layout_file=} not found: {e!r}, use default bank layout")
        return DEFAULT_BANK_LAYOUT

    try:
        loaded_layout = yaml.safe_load(_raw_yaml_str)
        assert isinstance(loaded_layout, dict), "not a valid yaml file"
        return BankLayout.model_validate(loaded_layout, strict=True)
    except Exception as e:
        logger.warning(f"{layout_file=} is invalid: {e!r}\n{_raw_yaml_str=}")
        logger.warning(f"use default bank layout: {DEFAULT_BANK_LAYOUT}")
        return DEFAULT_BANK_LAYOUT

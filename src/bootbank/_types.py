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
"""bootbank internal used types."""


from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from bootbank.errors import InvalidBank
from bootbank_common._typing import StrEnum


class Bank(StrEnum):
    """The two fixed banks, the value is the fslabel of the bank partition."""

    BANK1 = "BOOTBANK1"
    BANK2 = "BOOTBANK2"

    @classmethod
    def parse(cls, _in: str) -> Bank:
        """Get the bank by its label, reject anything outside the two banks."""
        try:
            return cls(_in)
        except ValueError:
            raise InvalidBank(
                f"Invalid bootbank ({_in}) specified", module=__name__
            ) from None

    @property
    def other(self) -> Bank:
        return Bank.BANK2 if self is Bank.BANK1 else Bank.BANK1


class BankStatus(BaseModel):
    """Status of a bank, computed on each request and never persisted."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = Field(serialization_alias="Version")
    active: bool = Field(serialization_alias="Active")

    def export(self) -> dict:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class MountHandle:
    partition_label: str
    mount_point: Path
    readonly: bool

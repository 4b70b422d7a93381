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

import pytest

from bootbank._types import Bank, BankStatus
from bootbank.errors import InvalidBank


class TestBank:
    @pytest.mark.parametrize(
        "_in, expected",
        (
            ("BOOTBANK1", Bank.BANK1),
            ("BOOTBANK2", Bank.BANK2),
        ),
    )
    def test_parse(self, _in: str, expected: Bank):
        assert Bank.parse(_in) is expected

    @pytest.mark.parametrize(
        "_in",
        ("BOOTBANK3", "bootbank1", "", "GRUB", "BOOTBANK1 "),
    )
    def test_parse_invalid(self, _in: str):
        with pytest.raises(InvalidBank, match="Invalid bootbank"):
            Bank.parse(_in)

    def test_other(self):
        assert Bank.BANK1.other is Bank.BANK2
        assert Bank.BANK2.other is Bank.BANK1

    def test_str(self):
        assert f"{Bank.BANK1}" == "BOOTBANK1"
        assert [_bank.value for _bank in Bank] == ["BOOTBANK1", "BOOTBANK2"]


def test_bank_status_export():
    _status = BankStatus(version="1.2.3", active=True)
    assert _status.export() == {"Version": "1.2.3", "Active": True}

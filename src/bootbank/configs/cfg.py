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
"""Load bootbank configs and the bank layout."""

from typing import TYPE_CHECKING, Any

from bootbank.configs._bank_layout import BankLayout, parse_bank_layout
from bootbank.configs._cfg_configurable import ConfigurableSettings, set_configs
from bootbank.configs._cfg_consts import Consts

__all__ = ["BankLayout", "bank_layout", "cfg"]

cfg_configurable = set_configs()
cfg_consts = Consts()

if TYPE_CHECKING:

    class _BootbankConfigs(ConfigurableSettings, Consts):
        """bootbank configs."""

else:

    class _BootbankConfigs:

        def __getattribute__(self, name: str) -> Any:
            for _cfg in [cfg_consts, cfg_configurable]:
                try:
                    return getattr(_cfg, name)
                except AttributeError:
                    continue
            raise AttributeError(f"no such config field: {name=}")


cfg = _BootbankConfigs()
bank_layout = parse_bank_layout(cfg.BANK_LAYOUT_FPATH)

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
"""Structured builder and parser of the bootbank grub configuration.

The rendered grub.cfg looks like the following:

    set default="Rocketship1"
    set timeout=3
    ...
    menuentry "Rocketship1" {
        insmod  ext2
        search  --label --set=root --no-floppy BOOTBANK1
        linux   /vmlinuz root=LABEL=BOOTBANK1 rw quiet splash
        initrd  /initrd.img
    }
    menuentry "Rocketship2" {
        ...
    }
"""


from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional

from bootbank._types import Bank
from bootbank.configs import BankLayout

GENERATED_HEADER = (
    "# This file is generated by bootbank, modification will be overwritten."
)


@dataclass(frozen=True)
class BootMenuEntry:
    label: str
    partition_label: Bank
    kernel_args: str

    def render(self) -> str:
        return (
            f'menuentry "{self.label}" {{\n'
            "\tinsmod  ext2\n"
            f"\tsearch  --label --set=root --no-floppy {self.partition_label}\n"
            f"\tlinux   /vmlinuz root=LABEL={self.partition_label} {self.kernel_args}\n"
            "\tinitrd  /initrd.img\n"
            "}\n"
        )


@dataclass
class GrubMenuConfig:
    """A boot menu with one entry per bank, and the default entry index."""

    entries: List[BootMenuEntry]
    default_idx: int = 0
    timeout: int = 3
    hidden_timeout: int = 5

    @classmethod
    def from_layout(cls, layout: BankLayout, *, default_bank: Bank) -> GrubMenuConfig:
        menu = cls(
            entries=[
                BootMenuEntry(
                    label=layout.menu_label_of(_bank),
                    partition_label=_bank,
                    kernel_args=layout.kernel_args,
                )
                for _bank in Bank
            ],
            timeout=layout.grub_timeout,
            hidden_timeout=layout.hidden_timeout,
        )
        menu.set_default(default_bank)
        return menu

    @property
    def default_entry(self) -> BootMenuEntry:
        return self.entries[self.default_idx]

    def set_default(self, bank: Bank) -> None:
        for _idx, _entry in enumerate(self.entries):
            if _entry.partition_label == bank:
                self.default_idx = _idx
                return
        raise ValueError(f"no menu entry for {bank}")

    def render(self) -> str:
        res = [
            GENERATED_HEADER,
            f'set default="{self.default_entry.label}"',
            f"set timeout={self.timeout}",
            "",
            "set menu_color_normal=white/black",
            "set menu_color_highlight=black/light-gray",
            "",
            f"if sleep --verbose --interruptible {self.hidden_timeout} ; then",
            '  echo "Loading ..."',
            "  set timeout=0",
            "fi",
            "",
        ]
        res.extend(_entry.render() for _entry in self.entries)
        return "\n".join(res)


@dataclass
class ParsedGrubCfg:
    default: Optional[str] = None
    # menuentry title -> root partition label
    entries: Dict[str, str] = field(default_factory=dict)

    @property
    def default_partition_label(self) -> Optional[str]:
        if self.default is None:
            return None
        return self.entries.get(self.default)


class GrubCfgParser:
    default_pa: ClassVar[re.Pattern] = re.compile(
        r'^\s*set\s+default="(?P<default>[^"]*)"\s*$', re.MULTILINE
    )
    menuentry_pa: ClassVar[re.Pattern] = re.compile(
        r'^\s*menuentry\s+"(?P<title>[^"]*)"[^\{]*\{(?P<entry>[^\}]*)\}',
        re.MULTILINE,
    )
    root_label_pa: ClassVar[re.Pattern] = re.compile(r"root=LABEL=(?P<label>\S+)")

    @classmethod
    def parse(cls, grub_cfg: str) -> ParsedGrubCfg:
        res = ParsedGrubCfg()
        if _default_ma := cls.default_pa.search(grub_cfg):
            res.default = _default_ma.group("default")

        for _entry_ma in cls.menuentry_pa.finditer(grub_cfg):
            if _root_ma := cls.root_label_pa.search(_entry_ma.group("entry")):
                res.entries[_entry_ma.group("title")] = _root_ma.group("label")
        return res

    @classmethod
    def check(cls, grub_cfg: str, *, default_bank: Bank) -> None:
        """Check <grub_cfg> lists both banks and selects <default_bank>.

        Raises:
            ValueError if the check fails.
        """
        parsed = cls.parse(grub_cfg)
        _labels = sorted(parsed.entries.values())
        if _labels != sorted(_bank.value for _bank in Bank):
            raise ValueError(f"boot menu should have one entry per bank, get {_labels}")
        if parsed.default_partition_label != default_bank.value:
            raise ValueError(
                f"default entry {parsed.default!r} doesn't point to {default_bank}"
            )

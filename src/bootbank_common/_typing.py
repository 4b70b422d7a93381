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
"""Typing helpers shared by bootbank modules."""


from __future__ import annotations

import enum
import sys
from pathlib import Path
from typing import Any, Callable, Type, TypeVar, Union

StrOrPath = Union[str, Path]

if sys.version_info >= (3, 11):
    StrEnum = enum.StrEnum

else:

    class StrEnum(str, enum.Enum):
        """Enum with str members, str() and format() give the plain value."""

        def __str__(self) -> str:
            return self.value

        def __format__(self, format_spec: str) -> str:
            return self.value.__format__(format_spec)


_StrEnumT = TypeVar("_StrEnumT", bound=enum.Enum)


def str_to_enum(enum_type: Type[_StrEnumT]) -> Callable[[Any], _StrEnumT]:
    """Build a pydantic before validator accepting the member or its str value."""

    def _validator(value: Any) -> _StrEnumT:
        if isinstance(value, enum_type):
            return value
        if not isinstance(value, str):
            raise ValueError(f"expect {enum_type.__name__} or str, get {value!r}")
        return enum_type(value)

    return _validator

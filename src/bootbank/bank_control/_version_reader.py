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
"""Read the installed image version of a bank."""


from __future__ import annotations

import logging
from pathlib import Path

from bootbank._types import Bank
from bootbank.configs.cfg import cfg
from bootbank_common._typing import StrOrPath

from ._bank_locator import BankLocator
from ._mount_scope import MountScope

logger = logging.getLogger(__name__)

UNAVAILABLE_PREFIX = "Unavailable"
NO_IMAGE_INSTALLED = f"{UNAVAILABLE_PREFIX} - no image installed"


def read_version_from_root(
    root: StrOrPath, *, version_fpath: str = cfg.VERSION_FPATH
) -> str:
    """Read the version marker file under <root>.

    The version marker missing is an expected state for a never-flashed bank,
        so failing to read the version will be reported as "Unavailable" status
        string instead of exception.
    """
    _version_f = Path(root) / Path(version_fpath).relative_to("/")
    try:
        return _version_f.read_text().rstrip("\n")
    except FileNotFoundError:
        return NO_IMAGE_INSTALLED
    except OSError as e:
        logger.warning(f"failed to read version file {_version_f}: {e!r}")
        return f"{UNAVAILABLE_PREFIX} - {e.strerror or e!r}"
    except UnicodeDecodeError as e:
        logger.warning(f"version file {_version_f} is not valid utf-8: {e!r}")
        return f"{UNAVAILABLE_PREFIX} - {e.reason}"


class VersionReader:
    def __init__(
        self,
        locator: BankLocator,
        mount_scope: MountScope,
        *,
        active_root: StrOrPath = cfg.ACTIVE_ROOT,
        version_fpath: str = cfg.VERSION_FPATH,
    ) -> None:
        self._locator = locator
        self._mount_scope = mount_scope
        self.active_root = Path(active_root)
        self.version_fpath = version_fpath

    def read_version(self, bank: Bank) -> str:
        """Read the version of <bank>.

        Active bank's version is read from the live rootfs, while inactive bank
            will be mounted read-only for reading.

        Raises:
            MountFailed if the inactive bank cannot be mounted.
        """
        if bank == self._locator.current_bank():
            return read_version_from_root(
                self.active_root, version_fpath=self.version_fpath
            )

        return self._mount_scope.with_mounted_partition(
            bank.value,
            readonly=True,
            body=lambda _mp: read_version_from_root(
                _mp, version_fpath=self.version_fpath
            ),
        )

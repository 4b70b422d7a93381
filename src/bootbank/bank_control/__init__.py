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
"""Bank management: detect, inspect, deploy onto and switch between the two banks."""

from ._bank_locator import BankLocator
from ._boot_cfg_writer import BootConfigWriter
from ._deployer import ImageDeployer
from ._extractor import ArchiveExtractor, TarExtractor
from ._grub_cfg import BootMenuEntry, GrubCfgParser, GrubMenuConfig
from ._mount_scope import CmdMountProvider, MountProvider, MountScope
from ._version_reader import NO_IMAGE_INSTALLED, VersionReader
from .service import BankService

__all__ = [
    "NO_IMAGE_INSTALLED",
    "ArchiveExtractor",
    "BankLocator",
    "BankService",
    "BootConfigWriter",
    "BootMenuEntry",
    "CmdMountProvider",
    "GrubCfgParser",
    "GrubMenuConfig",
    "ImageDeployer",
    "MountProvider",
    "MountScope",
    "TarExtractor",
    "VersionReader",
]

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
"""bootbank internal uses consts, should not be changed from external."""

from __future__ import annotations

CANONICAL_ROOT = "/"


class Consts:
    CANONICAL_ROOT = CANONICAL_ROOT

    @property
    def ACTIVE_ROOT(self) -> str:  # NOSONAR
        return self._ACTIVE_ROOT

    #
    # ------ paths ------ #
    #
    PROC_CMDLINE_FPATH = "/proc/cmdline"

    # NOTE: the version marker file path is relative to each bank's rootfs
    VERSION_FPATH = "/etc/rocketship_version"

    # partitions are identified by the fslabel through udev by-label symlinks
    BY_LABEL_DPATH = "/dev/disk/by-label"

    # NOTE: grub paths are relative to the boot-config partition's root
    GRUB_DPATH = "/boot/grub"
    GRUB_CFG_FNAME = "grub.cfg"

    BANK_LAYOUT_FPATH = "/etc/bootbank/layout.yaml"

    #
    # ------ consts ------ #
    #
    MOUNT_POINT_PREFIX = "bootbank_mnt_"
    GRUB_DPATH_MODE = 0o755
    GRUB_CFG_MODE = 0o444

    URL_PREFIX = "/system"
    POWERSTATE_URL_PREFIX = "/powerstate"

    def __init__(self) -> None:
        self._ACTIVE_ROOT = CANONICAL_ROOT

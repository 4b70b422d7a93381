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
"""Entrypoint of bootbank API server."""

from __future__ import annotations

import argparse
import logging
import threading

import uvloop

from bootbank.api import run_api_server
from bootbank.bank_control import BankService, CmdMountProvider
from bootbank.configs import parse_bank_layout
from bootbank.configs.cfg import cfg
from bootbank.log_setting import configure_logging
from bootbank.powerstate import PowerStateControl

logger = logging.getLogger(__name__)


def main() -> None:  # pragma: no cover
    parser = argparse.ArgumentParser(
        prog="bootbankd",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="dual-bank image management API server",
    )
    parser.add_argument(
        "--host", help="server listen ip", default=cfg.API_SERVER_ADDRESS
    )
    parser.add_argument(
        "--port", help="server listen port", default=cfg.API_SERVER_PORT, type=int
    )
    parser.add_argument(
        "--layout",
        help="the bank layout config file",
        default=cfg.BANK_LAYOUT_FPATH,
    )
    args = parser.parse_args()

    configure_logging()

    layout = parse_bank_layout(args.layout)
    logger.info(f"bank layout: {layout}")

    # bank operations and power state changes are serialized by the same lock
    bank_op_lock = threading.Lock()
    service = BankService.setup(
        CmdMountProvider(fstype=cfg.MOUNT_FSTYPE), lock=bank_op_lock, layout=layout
    )
    power_ctrl = PowerStateControl(lock=bank_op_lock)

    logger.info(f"launch bootbank API server at {args.host}:{args.port}")
    uvloop.run(
        run_api_server(service, power_ctrl, host=args.host, port=args.port)
    )

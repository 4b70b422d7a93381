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

import asyncio
import logging

from aiohttp import web

from bootbank.bank_control import BankService
from bootbank.powerstate import PowerStateControl

from .server_app import BankAPI, create_app

logger = logging.getLogger(__name__)

__all__ = ("BankAPI", "create_app", "run_api_server")


async def run_api_server(
    service: BankService,
    power_ctrl: PowerStateControl,
    *,
    host: str,
    port: int,
) -> None:
    app = create_app(service, power_ctrl)
    runner = web.AppRunner(app)
    await runner.setup()
    try:
        site = web.TCPSite(runner, host, port)
        await site.start()
        logger.info(f"bootbank API server started at {host}:{port}")
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()

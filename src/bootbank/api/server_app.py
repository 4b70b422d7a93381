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
"""The HTTP API of bank management."""


from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from http import HTTPStatus
from tempfile import SpooledTemporaryFile
from typing import Any, Callable, Optional, TypeVar

from aiohttp import BodyPartReader, web

from bootbank.bank_control import BankService
from bootbank.configs.cfg import cfg
from bootbank.errors import (
    BankError,
    BankErrorCode,
    InvalidRequest,
    InvalidUploadRequest,
    PreconditionViolation,
)
from bootbank.powerstate import PowerStateControl
from bootbank_common.logging import get_burst_suppressed_logger

logger = logging.getLogger(__name__)
# NOTE: for request_error, only allow max 6 lines of logging per 30 seconds
burst_suppressed_logger = get_burst_suppressed_logger(f"{__name__}.request_error")

T = TypeVar("T")

IMAGE_FIELD_NAME = "image"

EP_BOOTBANKS = f"{cfg.URL_PREFIX}/bootbanks"
EP_BOOTBANK_ID = f"{EP_BOOTBANKS}/{{id}}"
EP_BOOTBANK_IMAGE = f"{EP_BOOTBANK_ID}/image"
EP_BOOTBANK_BOOTABLE = f"{EP_BOOTBANK_ID}/bootable"
EP_REBOOT = f"{cfg.POWERSTATE_URL_PREFIX}/reboot"
EP_SHUTDOWN = f"{cfg.POWERSTATE_URL_PREFIX}/shutdown"

__all__ = ("BankAPI", "create_app")


def get_error_status(exc: BankError) -> HTTPStatus:
    if isinstance(exc, InvalidRequest):
        return HTTPStatus.BAD_REQUEST
    if isinstance(exc, PreconditionViolation):
        return HTTPStatus.CONFLICT
    return HTTPStatus.INTERNAL_SERVER_ERROR


def json_error(
    msg: str, *, code: str, status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
) -> web.Response:
    return web.json_response({"error": msg, "code": code}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Convert exceptions into JSON error response."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except BankError as e:
        _status = get_error_status(e)
        _title = f"{request.method} {request.path} failed: {e.get_failure_reason()}"
        if _status == HTTPStatus.INTERNAL_SERVER_ERROR:
            burst_suppressed_logger.error(e.get_error_report(title=_title))
        else:
            burst_suppressed_logger.warning(f"{_title}: {e}")
        return json_error(str(e), code=e.failure_errcode_str, status=_status)
    except Exception as e:
        burst_suppressed_logger.exception(
            f"{request.method} {request.path} failed with unexpected error: {e!r}"
        )
        return json_error(
            f"unexpected error: {e!r}",
            code=BankErrorCode.E_UNSPECIFIC.to_errcode_str(),
        )


class BankAPI:
    """HTTP handlers for bank operations.

    Bank operations are blocking, they are dispatched to the thread pool.
    """

    def __init__(
        self,
        service: BankService,
        power_ctrl: PowerStateControl,
        *,
        executor: ThreadPoolExecutor,
        spool_dpath: Optional[str] = cfg.UPLOAD_SPOOL_DPATH,
        spool_max_memory: int = cfg.UPLOAD_SPOOL_MAX_MEMORY,
        read_chunk_size: int = cfg.UPLOAD_READ_CHUNK_SIZE,
    ) -> None:
        self._service = service
        self._power_ctrl = power_ctrl
        self._executor = executor
        self.spool_dpath = spool_dpath
        self.spool_max_memory = spool_max_memory
        self.read_chunk_size = read_chunk_size

    async def _run_in_executor(self, func: Callable[..., T], *args: Any) -> T:
        return await asyncio.get_running_loop().run_in_executor(
            self._executor, partial(func, *args)
        )

    async def _spool_image(
        self, request: web.Request, spool: SpooledTemporaryFile
    ) -> None:
        """Spool the <image> field of the multipart upload request into <spool>."""
        if not request.content_type.startswith("multipart/"):
            raise InvalidUploadRequest(
                f"expect multipart request, get {request.content_type}",
                module=__name__,
            )

        reader = await request.multipart()
        while (part := await reader.next()) is not None:
            if isinstance(part, BodyPartReader) and part.name == IMAGE_FIELD_NAME:
                while chunk := await part.read_chunk(self.read_chunk_size):
                    spool.write(chunk)
                spool.seek(0)
                return
            await part.release()

        raise InvalidUploadRequest(
            f"no {IMAGE_FIELD_NAME!r} field found in the upload request",
            module=__name__,
        )

    #
    # ------ handlers ------ #
    #

    async def list_banks(self, request: web.Request) -> web.Response:
        return web.json_response(self._service.list_banks())

    async def get_bank_details(self, request: web.Request) -> web.Response:
        status = await self._run_in_executor(
            self._service.get_bank_status, request.match_info["id"]
        )
        return web.json_response(status.export())

    async def upload_image(self, request: web.Request) -> web.Response:
        bank_id = request.match_info["id"]
        # reject the request before receiving the whole image
        await self._run_in_executor(self._service.check_deployable, bank_id)

        with SpooledTemporaryFile(
            max_size=self.spool_max_memory, dir=self.spool_dpath
        ) as spool:
            await self._spool_image(request, spool)
            await self._run_in_executor(self._service.upload_image, bank_id, spool)
        return web.Response(status=HTTPStatus.OK)

    async def mark_bootable(self, request: web.Request) -> web.Response:
        await self._run_in_executor(
            self._service.mark_bootable, request.match_info["id"]
        )
        return web.Response(status=HTTPStatus.OK)

    async def reboot(self, request: web.Request) -> web.Response:
        await self._run_in_executor(self._power_ctrl.reboot)
        return web.Response(status=HTTPStatus.OK)

    async def shutdown(self, request: web.Request) -> web.Response:
        await self._run_in_executor(self._power_ctrl.shutdown)
        return web.Response(status=HTTPStatus.OK)


def create_app(
    service: BankService,
    power_ctrl: PowerStateControl,
    *,
    executor: Optional[ThreadPoolExecutor] = None,
) -> web.Application:
    if executor is None:
        executor = ThreadPoolExecutor(
            max_workers=cfg.API_WORKER_THREADS, thread_name_prefix="bootbank_api"
        )

    api = BankAPI(service, power_ctrl, executor=executor)
    app = web.Application(middlewares=[error_middleware])
    app.add_routes(
        [
            web.get(EP_BOOTBANKS, api.list_banks),
            web.get(EP_BOOTBANK_ID, api.get_bank_details),
            web.put(EP_BOOTBANK_IMAGE, api.upload_image),
            web.put(EP_BOOTBANK_BOOTABLE, api.mark_bootable),
            web.put(EP_REBOOT, api.reboot),
            web.put(EP_SHUTDOWN, api.shutdown),
        ]
    )

    async def _shutdown_executor(_app: web.Application) -> None:
        executor.shutdown(wait=True)

    app.on_cleanup.append(_shutdown_executor)
    return app

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
"""Logging setup of bootbank."""


from __future__ import annotations

import atexit
import contextlib
import logging
import threading
from queue import Full, Queue

import requests

from bootbank.configs.cfg import cfg

FIRST_PARTY_LOGGERS = ("bootbank", "bootbank_common")
UPLOAD_TIMEOUT = 3  # seconds
UPLOADER_EXIT_TIMEOUT = 6  # seconds


class _LogTeeHandler(logging.Handler):
    """Queue formatted records for uploading to a remote log server.

    Records are dropped when the backlog is full.
    """

    def __init__(self, max_backlog: int = 2048) -> None:
        super().__init__()
        self._queue: Queue[str | None] = Queue(maxsize=max_backlog)

    def emit(self, record: logging.LogRecord) -> None:
        with contextlib.suppress(Full):
            self._queue.put_nowait(self.format(record))

    def _upload_loop(self, endpoint_url: str) -> None:
        with requests.Session() as session:
            # None is the stop sentinel
            while (entry := self._queue.get()) is not None:
                if not entry:
                    continue
                try:
                    session.post(endpoint_url, data=entry, timeout=UPLOAD_TIMEOUT)
                except requests.RequestException:
                    continue  # log server unreachable, drop the entry

    def _stop_uploading(self, uploader: threading.Thread) -> None:
        with contextlib.suppress(Full):
            self._queue.put_nowait(None)
        uploader.join(UPLOADER_EXIT_TIMEOUT)

    def start_upload_thread(self, endpoint_url: str) -> threading.Thread:
        uploader = threading.Thread(
            target=self._upload_loop,
            args=(endpoint_url,),
            name="bootbank_log_uploader",
            daemon=True,
        )
        uploader.start()
        atexit.register(self._stop_uploading, uploader)
        return uploader


def configure_logging() -> None:
    # NOTE: root logger only lets through CRITICAL logs from third-party modules,
    #       first-party loggers have their own levels.
    logging.basicConfig(level=logging.CRITICAL, format=cfg.LOG_FORMAT, force=True)

    tee_handler = None
    if upload_endpoint := cfg.LOGGING_UPLOAD_ENDPOINT:
        tee_handler = _LogTeeHandler()
        tee_handler.setFormatter(logging.Formatter(fmt=cfg.LOG_FORMAT))
        tee_handler.start_upload_thread(upload_endpoint)

    level_table = dict.fromkeys(FIRST_PARTY_LOGGERS, cfg.DEFAULT_LOG_LEVEL)
    level_table.update(cfg.LOG_LEVEL_TABLE)
    for logger_name, loglevel in level_table.items():
        _logger = logging.getLogger(logger_name)
        _logger.setLevel(loglevel)
        if tee_handler:
            _logger.addHandler(tee_handler)

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
"""Logging helpers shared by bootbank modules."""


from __future__ import annotations

import logging
import time


class BurstSuppressFilter(logging.Filter):
    """Only let through <burst_max> records per <window> seconds.

    When a window closes with records dropped, a summary warning is emitted
        via the <report_logger_name> logger.
    """

    def __init__(
        self,
        name: str,
        *,
        burst_max: int,
        window: int,
        report_logger_name: str,
    ) -> None:
        super().__init__(name)
        self.burst_max = burst_max
        self.window = window
        self.report_logger_name = report_logger_name

        self._window_start = 0.0
        self._emitted = 0
        self._suppressed = 0

    def _report_suppressed(self) -> None:
        logging.getLogger(self.report_logger_name).warning(
            f"{self._suppressed} lines of logging suppressed for logger {self.name} "
            f"during {int(self._window_start)}~{int(self._window_start + self.window)}"
        )

    def filter(self, record: logging.LogRecord) -> bool:
        now = time.time()
        if now > self._window_start + self.window:
            if self._suppressed:
                self._report_suppressed()
            self._window_start = now
            self._emitted = self._suppressed = 0

        if self._emitted < self.burst_max:
            self._emitted += 1
            return True

        self._suppressed += 1
        return False


def get_burst_suppressed_logger(
    _logger: logging.Logger | str,
    *,
    report_logger_name: str | None = None,
    burst_max: int = 6,
    window: int = 30,
) -> logging.Logger:
    """Get the logger by <_logger> and attach a BurstSuppressFilter to it.

    Args:
        _logger (logging.Logger | str): the logger, or the name of it.
        report_logger_name (str | None, optional): logger for reporting suppressed logs.
            If not specified, will be the top-level logger of <_logger>. Defaults to None.
        burst_max (int, optional): how many logs can be emitted per window. Defaults to 6.
        window (int, optional): the length of suppressing window in seconds. Defaults to 30.
    """
    this_logger = (
        logging.getLogger(_logger) if isinstance(_logger, str) else _logger
    )
    if report_logger_name is None:
        report_logger_name = this_logger.name.split(".")[0]

    this_logger.addFilter(
        BurstSuppressFilter(
            this_logger.name,
            burst_max=burst_max,
            window=window,
            report_logger_name=report_logger_name,
        )
    )
    return this_logger

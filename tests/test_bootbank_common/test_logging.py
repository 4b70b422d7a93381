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


import logging
import time

from pytest import LogCaptureFixture

from bootbank_common import logging as _logging


def test_burst_logging(caplog: LogCaptureFixture):
    logger_name = "upper_logger.intermediate_logger.this_logger"
    upper_logger = "upper_logger"

    window = 1

    logger = _logging.get_burst_suppressed_logger(
        logger_name,
        # NOTE: test report_logger_name calculated from logger_name
        burst_max=1,
        window=window,
    )

    # NOTE: outer loop ensures that suppression only works
    #       within each window, and should be refreshed in new window.
    for _ in range(2):
        caplog.clear()
        for idx in range(2000):
            logger.error(idx)
        time.sleep(window * 2)
        logger.error("window end")

        # the three logging lines are:
        #   1. logger.error(idx) # idx==0
        #   2. a warning of how many loggings are suppressed
        #   3. logger.error("window end")
        records = caplog.records
        assert len(records) == 3
        assert records[0].getMessage() == "0"
        # warning msg comes from upper_logger
        assert records[1].name == upper_logger
        assert records[1].levelno == logging.WARNING
        assert "1999 lines of logging suppressed" in records[1].getMessage()
        assert records[2].getMessage() == "window end"

        # wait for the window to close before next round
        time.sleep(window * 2)


def test_burst_logging_with_report_logger(caplog: LogCaptureFixture):
    logger = _logging.get_burst_suppressed_logger(
        logging.getLogger("bootbank_test.burst"),
        report_logger_name="bootbank_test.report",
        burst_max=3,
        window=60,
    )

    for idx in range(10):
        logger.warning(idx)

    assert [r.getMessage() for r in caplog.records] == ["0", "1", "2"]

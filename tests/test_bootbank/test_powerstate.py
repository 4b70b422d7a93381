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

import threading
from subprocess import CalledProcessError

import pytest
import pytest_mock

from bootbank import powerstate
from bootbank.errors import PowerStateChangeFailed
from bootbank.powerstate import PowerStateControl

MODULE = powerstate.__name__


class TestPowerStateControl:

    @pytest.fixture(autouse=True)
    def setup_test(self, mocker: pytest_mock.MockerFixture):
        self.lock = threading.Lock()
        self.power_ctrl = PowerStateControl(lock=self.lock)

        self.lock_held = []
        self.cmdhelper_mock = mocker.patch(f"{MODULE}.cmdhelper")
        self.cmdhelper_mock.reboot.side_effect = self._record_lock
        self.cmdhelper_mock.poweroff.side_effect = self._record_lock

    def _record_lock(self, **_):
        self.lock_held.append(self.lock.locked())

    def test_reboot(self):
        self.power_ctrl.reboot()
        self.cmdhelper_mock.reboot.assert_called_once()
        assert self.lock_held == [True]
        assert not self.lock.locked()

    def test_shutdown(self):
        self.power_ctrl.shutdown()
        self.cmdhelper_mock.poweroff.assert_called_once()
        assert self.lock_held == [True]

    def test_reboot_failed(self):
        self.cmdhelper_mock.reboot.side_effect = CalledProcessError(1, "shutdown")
        with pytest.raises(PowerStateChangeFailed):
            self.power_ctrl.reboot()
        assert not self.lock.locked()

    def test_shutdown_failed(self):
        self.cmdhelper_mock.poweroff.side_effect = CalledProcessError(1, "shutdown")
        with pytest.raises(PowerStateChangeFailed):
            self.power_ctrl.shutdown()

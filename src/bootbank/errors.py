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
"""bootbank error code definition."""


from __future__ import annotations

import traceback
from enum import Enum, unique


@unique
class BankErrorCode(int, Enum):
    E_UNSPECIFIC = 0

    #
    # ------ invalid request ------
    #
    E_INVALID_REQUEST = 100
    E_INVALID_BANK = 101
    E_INVALID_UPLOAD_REQUEST = 102

    #
    # ------ precondition violation ------
    #
    E_PRECONDITION_VIOLATION = 200
    E_BANK_IS_ACTIVE = 201

    #
    # ------ OS/IO failure ------
    #
    E_OS_FAILURE = 300
    E_MOUNT_FAILED = 301
    E_IMAGE_EXTRACT_FAILED = 302
    E_IMAGE_EXTRACT_TIMEOUT = 303
    E_BOOT_CONFIG_WRITE_FAILED = 304
    E_POWERSTATE_CHANGE_FAILED = 305

    def to_errcode_str(self) -> str:
        return f"E{self.value:03d}"


class BankError(Exception):
    """Base of the errors raised by bank operations.

    <module> is where the error is raised. The API layer converts BankError
        into the error response with its errcode.
    """

    failure_errcode: BankErrorCode = BankErrorCode.E_UNSPECIFIC
    failure_description: str = "unspecific failure"

    def __init__(self, *args: object, module: str) -> None:
        super().__init__(*args)
        self.module = module

    @property
    def failure_errcode_str(self) -> str:
        return self.failure_errcode.to_errcode_str()

    def get_failure_reason(self) -> str:
        return f"{self.failure_errcode_str}: {self.failure_description}"

    def get_error_report(self, title: str = "") -> str:
        """Failure reason, exception and its traceback, for logging."""
        _tb = "".join(traceback.format_exception(type(self), self, self.__traceback__))
        return (
            f"{title}\n"
            f"[{self.module}] {self.get_failure_reason()}: {self!r}\n"
            f"{_tb}"
        )


#
# ------ invalid request ------
#


class InvalidRequest(BankError):
    failure_errcode: BankErrorCode = BankErrorCode.E_INVALID_REQUEST
    failure_description: str = "invalid request"


class InvalidBank(InvalidRequest):
    failure_errcode: BankErrorCode = BankErrorCode.E_INVALID_BANK
    failure_description: str = "invalid bank specified"


class InvalidUploadRequest(InvalidRequest):
    failure_errcode: BankErrorCode = BankErrorCode.E_INVALID_UPLOAD_REQUEST
    failure_description: str = "upload request doesn't carry an image"


#
# ------ precondition violation ------
#


class PreconditionViolation(BankError):
    failure_errcode: BankErrorCode = BankErrorCode.E_PRECONDITION_VIOLATION
    failure_description: str = "operation is not allowed in current state"


class BankIsActive(PreconditionViolation):
    failure_errcode: BankErrorCode = BankErrorCode.E_BANK_IS_ACTIVE
    failure_description: str = "bank is currently active"


#
# ------ OS/IO failure ------
#


class OSFailure(BankError):
    failure_errcode: BankErrorCode = BankErrorCode.E_OS_FAILURE
    failure_description: str = "OS level operation failed"


class MountFailed(OSFailure):
    failure_errcode: BankErrorCode = BankErrorCode.E_MOUNT_FAILED
    failure_description: str = "failed to mount the partition"


class ImageExtractFailed(OSFailure):
    failure_errcode: BankErrorCode = BankErrorCode.E_IMAGE_EXTRACT_FAILED
    failure_description: str = "failed to extract the image into the bank"

    def __init__(self, *args: object, module: str, output: str = "") -> None:
        self.output = output
        super().__init__(*args, module=module)


class ImageExtractTimeout(ImageExtractFailed):
    failure_errcode: BankErrorCode = BankErrorCode.E_IMAGE_EXTRACT_TIMEOUT
    failure_description: str = "image extraction exceeded the time limit"


class BootConfigWriteFailed(OSFailure):
    failure_errcode: BankErrorCode = BankErrorCode.E_BOOT_CONFIG_WRITE_FAILED
    failure_description: str = "failed to write the boot configuration"


class PowerStateChangeFailed(OSFailure):
    failure_errcode: BankErrorCode = BankErrorCode.E_POWERSTATE_CHANGE_FAILED
    failure_description: str = "failed to change the power state"

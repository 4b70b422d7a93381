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
"""Runtime configurable configs for bootbank."""

from __future__ import annotations

import json
import logging
from typing import Dict, Literal, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "BOOTBANK_"
LOG_LEVEL_LITERAL = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_JSON_LOG_FIELDS = {
    "ts": "%(asctime)s",
    "level": "%(levelname)s",
    "logger": "%(name)s",
    "thread": "%(threadName)s",
    "func": "%(funcName)s",
    "line": "%(lineno)d",
    "msg": "%(message)s",
}


class _LoggingSettings(BaseModel):
    DEFAULT_LOG_LEVEL: LOG_LEVEL_LITERAL = "INFO"
    LOG_LEVEL_TABLE: Dict[str, LOG_LEVEL_LITERAL] = {
        "bootbank": "INFO",
        "bootbank_common": "INFO",
    }

    # if set, logs will also be uploaded to this endpoint
    LOGGING_UPLOAD_ENDPOINT: str = ""

    @property
    def LOG_FORMAT(self) -> str:
        """Each log line is a compact JSON object."""
        return json.dumps(_JSON_LOG_FIELDS, separators=(",", ":"))


class _BankOperationSettings(BaseModel):
    #
    # ------ mount settings ------ #
    #
    MOUNT_FSTYPE: str = "ext4"
    # where to create the temporary mount points, None means system default tmp dir
    MOUNT_TMP_DPATH: Optional[str] = None

    #
    # ------ image deploy settings ------ #
    #
    IMAGE_EXTRACT_TIMEOUT: int = 60  # seconds
    IMAGE_EXTRACT_CHUNK_SIZE: int = 1024 * 1024  # 1MiB


class _APIServerSettings(BaseModel):
    API_SERVER_ADDRESS: str = "0.0.0.0"
    API_SERVER_PORT: int = 8000
    API_WORKER_THREADS: int = 2

    # uploaded image is spooled before feeding into the extractor,
    #   None means system default tmp dir
    UPLOAD_SPOOL_DPATH: Optional[str] = None
    UPLOAD_SPOOL_MAX_MEMORY: int = 16 * 1024 * 1024  # 16MiB
    UPLOAD_READ_CHUNK_SIZE: int = 256 * 1024  # 256KiB


class ConfigurableSettings(
    _LoggingSettings, _BankOperationSettings, _APIServerSettings
):
    """bootbank runtime configuration settings."""


def set_configs() -> ConfigurableSettings:
    """Load settings from the env vars with ENV_PREFIX.

    Any invalid env var makes the whole settings fallback to the defaults.
    """

    class _EnvSettings(ConfigurableSettings, BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix=ENV_PREFIX, validate_default=True
        )

    try:
        _loaded = _EnvSettings()
    except Exception as e:
        logger.error(f"invalid {ENV_PREFIX}* env settings, use defaults: {e!r}")
        return ConfigurableSettings()
    return ConfigurableSettings.model_validate(_loaded.model_dump())

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

import io
import os
from pathlib import Path

import pytest

from bootbank.bank_control import TarExtractor
from bootbank.errors import ImageExtractFailed, ImageExtractTimeout
from tests.utils import VERSION_RELPATH, make_image_archive, write_version


class _SlowExtractor(TarExtractor):
    @staticmethod
    def build_cmd(dest_dir, *, gunzip: bool) -> list[str]:
        return ["sleep", "5"]


class _NotReadingExtractor(TarExtractor):
    @staticmethod
    def build_cmd(dest_dir, *, gunzip: bool) -> list[str]:
        return ["true"]


@pytest.mark.parametrize("gunzip", (True, False))
def test_build_cmd(gunzip: bool):
    cmd = TarExtractor.build_cmd("/tmp/mnt", gunzip=gunzip)
    assert cmd[0] == "tar"
    assert ("--gunzip" in cmd) == gunzip
    assert "--file=-" in cmd
    assert cmd[-2:] == ["-C", "/tmp/mnt"]


class TestTarExtractor:

    @pytest.fixture(autouse=True)
    def setup_test(self, tmp_path: Path):
        self.image_dir = tmp_path / "image"
        write_version(self.image_dir, "rocketship-2.0")
        (self.image_dir / "usr/bin").mkdir(parents=True)
        self.blob = os.urandom(3 * 1024**2)
        (self.image_dir / "usr/bin/blob").write_bytes(self.blob)
        (self.image_dir / "vmlinuz").symlink_to("usr/bin/blob")

        self.dest = tmp_path / "dest"
        self.dest.mkdir()

    @pytest.mark.parametrize("gzip", (True, False))
    def test_extract(self, gzip: bool):
        archive = make_image_archive(self.image_dir, gzip=gzip)

        TarExtractor(chunk_size=64 * 1024).extract(
            io.BytesIO(archive), self.dest, timeout=30
        )

        assert (self.dest / VERSION_RELPATH).read_text() == "rocketship-2.0\n"
        assert (self.dest / "usr/bin/blob").read_bytes() == self.blob
        assert os.readlink(self.dest / "vmlinuz") == "usr/bin/blob"

    def test_empty_stream(self):
        with pytest.raises(ImageExtractFailed, match="empty"):
            TarExtractor().extract(io.BytesIO(b""), self.dest, timeout=30)

    def test_invalid_archive(self):
        with pytest.raises(ImageExtractFailed) as exc_info:
            TarExtractor().extract(
                io.BytesIO(b"this is not a tar archive" * 1024),
                self.dest,
                timeout=30,
            )
        assert not isinstance(exc_info.value, ImageExtractTimeout)
        # the output of tar is captured
        assert "tar" in exc_info.value.output

    def test_timeout(self):
        with pytest.raises(ImageExtractTimeout):
            _SlowExtractor().extract(io.BytesIO(b"abc"), self.dest, timeout=0.5)

    def test_extractor_exits_early(self):
        with pytest.raises(ImageExtractFailed, match="failed to pipe"):
            _NotReadingExtractor(chunk_size=64 * 1024).extract(
                io.BytesIO(os.urandom(8 * 1024**2)), self.dest, timeout=30
            )

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
"""Extract image archive stream with external tar process."""


from __future__ import annotations

import contextlib
import logging
import subprocess
import threading
from typing import IO, BinaryIO, Protocol

from bootbank.configs.cfg import cfg
from bootbank.errors import ImageExtractFailed, ImageExtractTimeout
from bootbank_common._typing import StrOrPath

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


class ArchiveExtractor(Protocol):
    """The capability of extracting an archive stream into a directory."""

    def extract(
        self, stream: BinaryIO, dest_dir: StrOrPath, *, timeout: float
    ) -> str:
        """Extract <stream> into <dest_dir> within <timeout> seconds.

        Returns:
            The captured output of the extraction.

        Raises:
            ImageExtractFailed on extraction failed, ImageExtractTimeout on timeout.
        """
        ...


class TarExtractor:
    """ArchiveExtractor implemented by piping the stream into tar.

    Both plain tar and gzip compressed tar are accepted, the compression
        is detected by the magic at the head of the stream.
    """

    def __init__(self, *, chunk_size: int = cfg.IMAGE_EXTRACT_CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    @staticmethod
    def build_cmd(dest_dir: StrOrPath, *, gunzip: bool) -> list[str]:
        # fmt: off
        cmd = [
            "tar",
            "--extract",
            "--file=-",  # read the archive from stdin
            "--preserve-permissions",
            "--numeric-owner",
            "-C", str(dest_dir),
        ]
        # fmt: on
        if gunzip:
            cmd.insert(1, "--gunzip")
        return cmd

    def _feed(self, stdin: IO[bytes], head: bytes, stream: BinaryIO) -> None:
        stdin.write(head)
        while chunk := stream.read(self.chunk_size):
            stdin.write(chunk)

    def extract(
        self, stream: BinaryIO, dest_dir: StrOrPath, *, timeout: float
    ) -> str:
        head = stream.read(self.chunk_size)
        if not head:
            raise ImageExtractFailed("image stream is empty", module=__name__)

        cmd = self.build_cmd(dest_dir, gunzip=head.startswith(GZIP_MAGIC))
        logger.debug(f"running: {' '.join(cmd)}")
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise ImageExtractFailed(
                f"failed to launch {cmd}: {e!r}", module=__name__
            ) from e
        assert proc.stdin and proc.stdout

        timed_out = threading.Event()

        def _kill_on_timeout():
            timed_out.set()
            proc.kill()

        watchdog = threading.Timer(timeout, _kill_on_timeout)
        watchdog.daemon = True

        _output: list[bytes] = []
        reader = threading.Thread(
            target=lambda: _output.append(proc.stdout.read()),  # type: ignore[union-attr]
            daemon=True,
        )

        watchdog.start()
        reader.start()
        pipe_err: OSError | None = None
        try:
            try:
                self._feed(proc.stdin, head, stream)
            except OSError as e:
                pipe_err = e
            finally:
                with contextlib.suppress(OSError):
                    proc.stdin.close()
            retcode = proc.wait()
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        finally:
            watchdog.cancel()
            reader.join()
            proc.stdout.close()

        output = b"".join(_output).decode(errors="replace")
        if timed_out.is_set():
            raise ImageExtractTimeout(
                f"tar is killed after exceeding {timeout}s timeout",
                module=__name__,
                output=output,
            )
        if retcode != 0:
            raise ImageExtractFailed(
                f"tar exited with {retcode=}", module=__name__, output=output
            )
        if pipe_err is not None:
            raise ImageExtractFailed(
                f"failed to pipe image stream into tar: {pipe_err!r}",
                module=__name__,
                output=output,
            ) from pipe_err
        return output

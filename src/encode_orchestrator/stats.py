"""Two-pass statistics channel.

Pass 1 appends the encoder's per-frame statistics to a log file next to the
output; pass 2 reads the whole log back and hands it to the encoder. The log
content is opaque to this module.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

# Upper bound for reading a pass-1 log back; larger files are treated as corrupt.
MAX_STATS_BYTES = 1_000_000_000


def stats_log_path(output_url: str, prefix: str) -> Path:
    """Return the pass-1 log path for an output and stream prefix."""
    return Path(f"{output_url}-{prefix}-pass1.log")


class StatsChannel:
    """File-backed byte stream for two-pass encoder statistics."""

    def __init__(self, path: Path, handle: BinaryIO, writable: bool) -> None:
        self.path = path
        self.writable = writable
        self._handle: BinaryIO | None = handle

    @classmethod
    def open_read(cls, path: Path) -> StatsChannel:
        """Open an existing log for reading.

        Raises:
            OSError: If the file cannot be opened.
        """
        return cls(path, open(path, "rb"), writable=False)  # noqa: SIM115

    @classmethod
    def open_write(cls, path: Path) -> StatsChannel:
        """Create (or truncate) a log for writing.

        Raises:
            OSError: If the file cannot be created.
        """
        return cls(path, open(path, "wb"), writable=True)  # noqa: SIM115

    @property
    def closed(self) -> bool:
        return self._handle is None

    def read_complete(self, max_bytes: int = MAX_STATS_BYTES) -> bytes | None:
        """Read the remaining content.

        Args:
            max_bytes: Maximum accepted size.

        Returns:
            File content, or None if it is larger than max_bytes or the
            read fails.
        """
        if self._handle is None:
            return None
        try:
            data = self._handle.read(max_bytes + 1)
        except OSError as e:
            logger.warning("Could not read %s: %s", self.path, e)
            return None
        if len(data) > max_bytes:
            logger.warning(
                "%s exceeds %d bytes, refusing to load it", self.path, max_bytes
            )
            return None
        return data

    def write(self, data: str | bytes) -> None:
        """Append data and flush it to disk."""
        if self._handle is None:
            raise ValueError(f"write to closed stats channel {self.path}")
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._handle.write(data)
        self._handle.flush()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> StatsChannel:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

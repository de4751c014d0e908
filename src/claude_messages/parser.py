"""Streaming parser for a single Claude Code JSONL conversation file.

Files can grow to hundreds of megabytes, so they are never read whole. The
file is pulled in fixed-size chunks from a worker thread and split into
lines as the chunks arrive; only messages that survive classification are
kept in memory.
"""

import asyncio
import codecs
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .classifier import ExtractionProfile, classify_record
from .core import NormalizedMessage
from .errors import ExtractionCancelled
from .timestamps import normalize_timestamp

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def check_cancelled(cancel: asyncio.Event | None) -> None:
    """Raise ExtractionCancelled if the caller asked us to stop."""
    if cancel is not None and cancel.is_set():
        raise ExtractionCancelled()


class LineReader:
    """Async line iterator over a file, read chunk by chunk.

    Use as ``async with LineReader(path) as reader: async for line in reader``.
    The file handle is released exactly once when the block exits, whatever
    the reason.
    """

    def __init__(self, path: Path, chunk_size: int = CHUNK_SIZE, cancel: asyncio.Event | None = None):
        self.path = Path(path)
        self.chunk_size = chunk_size
        self.cancel = cancel
        self._file = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    async def __aenter__(self) -> "LineReader":
        check_cancelled(self.cancel)
        self._file = await asyncio.to_thread(open, self.path, "rb")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        handle, self._file = self._file, None
        if handle is None:
            return
        try:
            handle.close()
        except Exception as e:
            logger.debug("Error closing %s: %s", self.path, e)

    async def __aiter__(self):
        if self._file is None:
            raise RuntimeError("LineReader used outside of 'async with'")

        pending = ""
        while True:
            check_cancelled(self.cancel)
            chunk = await asyncio.to_thread(self._file.read, self.chunk_size)
            if not chunk:
                break
            pending += self._decoder.decode(chunk)
            *lines, pending = pending.split("\n")
            for line in lines:
                yield line.rstrip("\r")

        pending += self._decoder.decode(b"", final=True)
        if pending:
            yield pending.rstrip("\r")


@dataclass
class FileParseResult:
    """Messages from one file, newest first, plus the read error if any."""

    messages: list[NormalizedMessage] = field(default_factory=list)
    error: Optional[str] = None


def _to_message(record, profile: ExtractionProfile, session_id: str, project_path: str) -> NormalizedMessage | None:
    classified = classify_record(record, profile)
    if classified is None:
        return None
    role, content = classified
    return NormalizedMessage(
        role=role,
        content=content,
        timestamp=normalize_timestamp(record.get("timestamp")),
        session_id=session_id,
        project_path=project_path,
    )


async def parse_log_file(
    path: Path,
    session_id: str,
    project_path: str,
    profile: ExtractionProfile,
    limit: int = 10,
    cancel: asyncio.Event | None = None,
) -> FileParseResult:
    """Extract up to ``limit`` of the newest matching messages from one file.

    Bad JSON lines are skipped. Any failure to open or read the file yields
    an empty result with ``error`` set; nothing is raised except
    ExtractionCancelled.
    """
    found: list[NormalizedMessage] = []

    try:
        async with LineReader(path, cancel=cancel) as reader:
            line_num = 0
            async for raw_line in reader:
                line_num += 1
                line = raw_line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except (json.JSONDecodeError, RecursionError) as e:
                    logger.debug("Bad JSON at %s:%d: %s", path, line_num, e)
                    continue

                try:
                    message = _to_message(record, profile, session_id, project_path)
                except Exception as e:
                    logger.debug("Skipping malformed record at %s:%d: %s", path, line_num, e)
                    continue
                if message is not None:
                    found.append(message)
    except ExtractionCancelled:
        raise
    except Exception as e:
        logger.warning("Failed to read JSONL %s: %s", path, e)
        return FileParseResult(error=f"{type(e).__name__}: {e}")

    found.sort(key=lambda m: m.timestamp, reverse=True)
    return FileParseResult(messages=found[:limit])

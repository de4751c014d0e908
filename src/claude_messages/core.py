"""Core data models for claude-messages."""

import enum
import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import EMPTY_PREVIEW, PREVIEW_LENGTH

# Stand-in for timestamps that could not be parsed; sorts as the oldest instant
INVALID_TIME = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class NormalizedMessage:
    """One classified message pulled out of a conversation log."""

    role: str  # "user" | "assistant" | "system"
    content: str  # always flat text, never multi-part
    timestamp: datetime
    session_id: str
    project_path: str


@dataclass(frozen=True)
class DisplayMessage:
    """A NormalizedMessage with an id and preview, ready for display."""

    id: str  # "sent-0", "received-3", ... by final sort position
    role: str
    content: str
    timestamp: datetime
    session_id: str
    project_path: str
    preview: str

    @classmethod
    def from_message(cls, message: NormalizedMessage, id: str) -> "DisplayMessage":
        return cls(
            id=id,
            role=message.role,
            content=message.content,
            timestamp=message.timestamp,
            session_id=message.session_id,
            project_path=message.project_path,
            preview=make_preview(message.content),
        )

    def fingerprint(self) -> str:
        """Identity that survives re-extraction (ids are positional)."""
        if self.timestamp is INVALID_TIME:
            millis = 0
        else:
            millis = int(self.timestamp.timestamp() * 1000)
        raw = f"{self.content}-{millis}-{self.session_id}"
        return hashlib.md5(raw.encode("utf-8")).hexdigest()


def make_preview(content: str) -> str:
    """First PREVIEW_LENGTH characters, with an ellipsis when truncated."""
    if not content:
        return EMPTY_PREVIEW
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + "..."
    return content


@dataclass
class ProjectActivity:
    """A project directory and the newest mtime among its log files."""

    name: str
    path: Path
    most_recent_file_time: float


@dataclass
class LogFile:
    """A single .jsonl conversation file inside a project."""

    name: str
    path: Path
    mtime: float

    @property
    def session_id(self) -> str:
        return self.name.removesuffix(".jsonl")


@dataclass
class MessageGroup:
    """Messages sharing a date section such as "Today" or "2023"."""

    category: str
    messages: list[DisplayMessage]
    sort_key: int


class ExtractionStatus(str, enum.Enum):
    OK = "ok"
    EMPTY = "empty"  # nothing found, nothing failed
    PARTIAL = "partial"  # some files or projects were skipped
    FAILED = "failed"  # the whole extraction failed; messages is empty
    CANCELLED = "cancelled"


@dataclass
class ExtractionResult:
    """Outcome of one extraction call.

    Iterating, len() and truthiness delegate to ``messages`` so callers that
    only want the list can treat the result as one.
    """

    status: ExtractionStatus
    messages: list[DisplayMessage] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # paths that failed to read
    error: Optional[str] = None

    def __iter__(self):
        return iter(self.messages)

    def __len__(self):
        return len(self.messages)

    def __bool__(self):
        return bool(self.messages)


class SearchStatus(str, enum.Enum):
    OK = "ok"
    FAILED = "failed"
    ACCESS_REQUIRED = "access_required"


@dataclass
class SearchOutcome:
    """Result of a semantic search: matches plus how the search went."""

    status: SearchStatus
    messages: list[DisplayMessage]
    error: Optional[str] = None

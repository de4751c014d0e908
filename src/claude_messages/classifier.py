"""Decide which log records are real messages and pull out their text.

A JSONL record looks like::

    {"message": {"role": "user", "content": "..." | [{"type": "text", "text": "..."}, ...]},
     "timestamp": "2025-01-20T10:00:00Z" | 1700000000 | 1700000000000}

Sent (user) and received (assistant) extraction share one pipeline and differ
only by the ExtractionProfile passed in.
"""

from dataclasses import dataclass

_MISSING = object()


@dataclass(frozen=True)
class ExtractionProfile:
    """Which role to keep and how to clean it."""

    role: str
    id_prefix: str
    exclusion_markers: tuple[str, ...] = ()
    # Records whose content is JSON null become empty-text messages
    keep_null_content: bool = False
    # Drop content that is empty or whitespace only (otherwise only "" is dropped)
    drop_blank: bool = True

    def is_excluded(self, content: str) -> bool:
        return any(marker in content for marker in self.exclusion_markers)


SENT = ExtractionProfile(
    role="user",
    id_prefix="sent",
    exclusion_markers=("<command-message>", "<command-name>", "[Request interrupted"),
    drop_blank=True,
)

RECEIVED = ExtractionProfile(
    role="assistant",
    id_prefix="received",
    keep_null_content=True,
    drop_blank=False,
)

PROFILES = {"sent": SENT, "received": RECEIVED}


def get_profile(direction: str) -> ExtractionProfile:
    """Look up a profile by direction name ("sent" or "received")."""
    try:
        return PROFILES[direction]
    except KeyError:
        raise ValueError(f"Unknown direction: {direction!r}") from None


def flatten_content(content) -> str:
    """Join the text parts of a message body with newlines.

    Strings pass through; non-text parts such as images or tool_use are dropped.
    """
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""

    parts = []
    for block in content:
        if isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            parts.append(text if isinstance(text, str) else "")
    return "\n".join(parts)


def classify_record(record, profile: ExtractionProfile) -> tuple[str, str] | None:
    """Return ``(role, content)`` if the record is a message worth keeping."""
    if not isinstance(record, dict):
        return None

    message = record.get("message")
    if not isinstance(message, dict) or message.get("role") != profile.role:
        return None

    raw = message.get("content", _MISSING)
    if raw is None:
        if profile.keep_null_content:
            return profile.role, ""
        return None
    if raw is _MISSING:
        return None

    content = flatten_content(raw)

    if profile.drop_blank:
        if not content.strip():
            return None
    elif content == "":
        return None

    if profile.is_excluded(content):
        return None

    return profile.role, content

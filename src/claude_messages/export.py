"""Export extracted messages to Markdown and JSON formats."""

import json
from datetime import datetime

from .core import INVALID_TIME, DisplayMessage
from .grouping import format_section_title, group_by_date


def format_local_time(ts: datetime) -> str:
    """Render a timestamp in the machine's local timezone."""
    return ts.astimezone().strftime("%Y-%m-%d %H:%M")


def _iso(ts: datetime) -> str | None:
    if ts is INVALID_TIME:
        return None
    return ts.isoformat()


def message_to_markdown(msg: DisplayMessage) -> str:
    """Render one message as a detail page: content, then metadata."""
    lines = [msg.content, "", "---", ""]

    if msg.timestamp is not INVALID_TIME:
        lines.append(f"**Sent:** {format_local_time(msg.timestamp)}")
    lines.append(f"**Role:** {msg.role}")
    if msg.project_path:
        lines.append(f"**Project:** {msg.project_path}")
    lines.append(f"**Session:** {msg.session_id}")

    return "\n".join(lines)


def messages_to_markdown(messages: list[DisplayMessage], title: str, now: datetime | None = None) -> str:
    """Export messages as Markdown, one section per date group."""
    lines = [f"# {title}", ""]

    for group in group_by_date(messages, now=now):
        lines.append(f"## {format_section_title(group.category, len(group.messages))}")
        lines.append("")
        for msg in group.messages:
            ts = ""
            if msg.timestamp is not INVALID_TIME:
                ts = f" ({format_local_time(msg.timestamp)})"
            lines.append(f"### {msg.id}{ts}")
            lines.append("")
            lines.append(msg.content)
            lines.extend(["", "---", ""])

    return "\n".join(lines)


def message_to_dict(msg: DisplayMessage) -> dict:
    """Convert a DisplayMessage to a JSON-serializable dict."""
    return {
        "id": msg.id,
        "role": msg.role,
        "content": msg.content,
        "preview": msg.preview,
        "timestamp": _iso(msg.timestamp),
        "session_id": msg.session_id,
        "project_path": msg.project_path,
        "fingerprint": msg.fingerprint(),
    }


def messages_to_json(messages: list[DisplayMessage]) -> str:
    """Export messages as structured JSON."""
    data = {"messages": [message_to_dict(m) for m in messages]}
    return json.dumps(data, indent=2, ensure_ascii=False)

"""Shared test fixtures for claude-messages."""

import json
import os
from datetime import datetime, timezone

import pytest

from claude_messages.core import DisplayMessage, make_preview


def ts(*args) -> datetime:
    """UTC datetime shorthand."""
    return datetime(*args, tzinfo=timezone.utc)


def write_jsonl(path, records, mtime=None):
    """Write records (dicts or raw strings) as JSONL and optionally set the mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def user(text, timestamp="2025-01-20T10:00:00Z"):
    return {"type": "user", "message": {"role": "user", "content": text}, "timestamp": timestamp}


def assistant(content, timestamp="2025-01-20T10:00:30Z"):
    return {"type": "assistant", "message": {"role": "assistant", "content": content}, "timestamp": timestamp}


def make_display(id, content, timestamp, role="user", session_id="session-001", project_path="/p"):
    return DisplayMessage(
        id=id,
        role=role,
        content=content,
        timestamp=timestamp,
        session_id=session_id,
        project_path=project_path,
        preview=make_preview(content),
    )


@pytest.fixture
def tmp_projects(tmp_path):
    """Create a synthetic ~/.claude/projects tree with two projects.

    -Users-testuser-dev-myapp (newer activity):
      session-001.jsonl: user text, assistant text + tool_use, tool_result,
        command message, interrupted request, corrupt line, image part
      session-002.jsonl: one user message, one assistant message
    -Users-testuser-dev-oldapp (older activity):
      session-old.jsonl: one user message, one assistant message
    """
    projects = tmp_path / "projects"

    myapp = projects / "-Users-testuser-dev-myapp"
    write_jsonl(myapp / "session-001.jsonl", [
        user([{"type": "text", "text": "Help me refactor the auth module"}], "2025-01-20T10:00:00Z"),
        assistant([
            {"type": "text", "text": "I'll help you refactor the auth module."},
            {"type": "tool_use", "id": "toolu_001", "name": "Read", "input": {"file_path": "/src/auth.ts"}},
        ], "2025-01-20T10:00:30Z"),
        {
            "type": "user",
            "message": {"role": "user", "content": [
                {"type": "tool_result", "tool_use_id": "toolu_001", "content": "export function authenticate() {}"},
            ]},
            "timestamp": "2025-01-20T10:00:31Z",
        },
        user("<command-name>/clear</command-name>", "2025-01-20T10:01:00Z"),
        user("[Request interrupted by user]", "2025-01-20T10:02:00Z"),
        "{this is not json",
        {"type": "file-history-snapshot", "files": [{"path": "/src/auth.ts"}]},
        user([
            {"type": "text", "text": "Look at this screenshot"},
            {"type": "image", "source": {"type": "base64", "data": "iVBORw0KGgo="}},
            {"type": "text", "text": "and fix the layout"},
        ], "2025-01-20T10:05:00Z"),
        assistant([{"type": "tool_use", "id": "toolu_002", "name": "Bash", "input": {"command": "ls"}}],
                  "2025-01-20T10:05:30Z"),
        assistant("Done, the layout is fixed.", "2025-01-20T10:06:00Z"),
    ], mtime=1_737_400_000)

    write_jsonl(myapp / "session-002.jsonl", [
        user("Write tests for the API", "2025-01-21T09:00:00Z"),
        assistant("Here are the API tests.", "2025-01-21T09:00:30Z"),
    ], mtime=1_737_500_000)

    (myapp / "notes.txt").write_text("not a log", encoding="utf-8")

    oldapp = projects / "-Users-testuser-dev-oldapp"
    write_jsonl(oldapp / "session-old.jsonl", [
        user("Set up the old project", 1_600_000_000),
        assistant("The old project is set up.", 1_600_000_030_000),
    ], mtime=1_600_000_100)

    return projects

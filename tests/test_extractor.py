"""Tests for the extraction orchestrator."""

import asyncio
from unittest.mock import patch

import pytest

from claude_messages.classifier import RECEIVED, SENT
from claude_messages.config import ScanLimits
from claude_messages.core import ExtractionStatus
from claude_messages.extractor import extract_messages, extract_received, extract_sent, latest_message
from claude_messages.parser import FileParseResult

from conftest import user, write_jsonl


class TestExtractSent:
    @pytest.mark.asyncio
    async def test_sent_messages_newest_first(self, tmp_projects):
        result = await extract_sent(root=tmp_projects)

        assert result.status is ExtractionStatus.OK
        assert [m.content for m in result] == [
            "Write tests for the API",
            "Look at this screenshot\nand fix the layout",
            "Help me refactor the auth module",
            "Set up the old project",
        ]
        assert [m.id for m in result] == ["sent-0", "sent-1", "sent-2", "sent-3"]
        assert all(m.role == "user" for m in result)

    @pytest.mark.asyncio
    async def test_session_and_project_attached(self, tmp_projects):
        result = await extract_sent(root=tmp_projects)
        newest = result.messages[0]
        assert newest.session_id == "session-002"
        assert newest.project_path == str(tmp_projects / "-Users-testuser-dev-myapp")
        oldest = result.messages[-1]
        assert oldest.session_id == "session-old"

    @pytest.mark.asyncio
    async def test_preview(self, tmp_path):
        root = tmp_path / "projects"
        write_jsonl(root / "p" / "s.jsonl", [user("x" * 150, 1_700_000_000), user("short", 1_700_000_001)])
        result = await extract_sent(root=root)
        assert result.messages[0].preview == "short"
        assert result.messages[1].preview == "x" * 100 + "..."

    @pytest.mark.asyncio
    async def test_global_sort_across_files(self, tmp_path):
        root = tmp_path / "projects"
        # File mtimes disagree with message times; only message times matter
        write_jsonl(root / "a" / "1.jsonl", [user("a-old", 1_000), user("a-new", 5_000)], mtime=10)
        write_jsonl(root / "b" / "1.jsonl", [user("b-mid", 3_000)], mtime=20)
        result = await extract_sent(root=root)
        assert [m.content for m in result] == ["a-new", "b-mid", "a-old"]


class TestExtractReceived:
    @pytest.mark.asyncio
    async def test_received_messages(self, tmp_projects):
        result = await extract_received(root=tmp_projects)
        assert [m.content for m in result] == [
            "Here are the API tests.",
            "Done, the layout is fixed.",
            "I'll help you refactor the auth module.",
            "The old project is set up.",
        ]
        assert result.messages[0].id == "received-0"

    @pytest.mark.asyncio
    async def test_null_content_gets_empty_preview(self, tmp_path):
        root = tmp_path / "projects"
        write_jsonl(root / "p" / "s.jsonl", [
            {"message": {"role": "assistant", "content": None}, "timestamp": 1_700_000_000},
        ])
        result = await extract_received(root=root)
        assert len(result) == 1
        assert result.messages[0].content == ""
        assert result.messages[0].preview == "[Empty message]"


class TestFailureHandling:
    @pytest.mark.asyncio
    async def test_missing_root_is_failed_empty(self, tmp_path):
        result = await extract_sent(root=tmp_path / "nope")
        assert result.status is ExtractionStatus.FAILED
        assert result.messages == []
        assert not result
        assert "FileNotFoundError" in result.error

    @pytest.mark.asyncio
    async def test_empty_root(self, tmp_path):
        (tmp_path / "projects").mkdir()
        result = await extract_sent(root=tmp_path / "projects")
        assert result.status is ExtractionStatus.EMPTY
        assert list(result) == []

    @pytest.mark.asyncio
    async def test_bad_file_is_partial(self, tmp_projects):
        from claude_messages import extractor

        real_parse = extractor.parse_log_file

        async def parse(path, **kwargs):
            if path.name == "session-002.jsonl":
                return FileParseResult(error="OSError: disk went away")
            return await real_parse(path, **kwargs)

        with patch("claude_messages.extractor.parse_log_file", parse):
            result = await extract_sent(root=tmp_projects)

        assert result.status is ExtractionStatus.PARTIAL
        assert result.skipped == [str(tmp_projects / "-Users-testuser-dev-myapp" / "session-002.jsonl")]
        assert "Write tests for the API" not in [m.content for m in result]
        assert len(result) == 3

    @pytest.mark.asyncio
    async def test_unexpected_error_never_raises(self, tmp_projects):
        with patch("claude_messages.extractor.select_sources", side_effect=RuntimeError("bug")):
            result = await extract_received(root=tmp_projects)
        assert result.status is ExtractionStatus.FAILED
        assert result.messages == []

    @pytest.mark.asyncio
    async def test_cancelled(self, tmp_projects):
        cancel = asyncio.Event()
        cancel.set()
        result = await extract_sent(root=tmp_projects, cancel=cancel)
        assert result.status is ExtractionStatus.CANCELLED
        assert result.messages == []

    @pytest.mark.asyncio
    async def test_invalid_profile_raises(self, tmp_projects):
        with pytest.raises(ValueError):
            await extract_messages("sent", root=tmp_projects)


class TestLimits:
    @pytest.mark.asyncio
    async def test_at_most_25_files_times_10_messages(self, tmp_path):
        root = tmp_path / "projects"
        for p in range(7):
            for f in range(7):
                records = [user(f"p{p} f{f} m{m}", 1_700_000_000 + p * 10_000 + f * 100 + m) for m in range(12)]
                write_jsonl(root / f"proj-{p}" / f"s{f}.jsonl", records, mtime=1_700_000_000 + p * 10 + f)

        result = await extract_sent(root=root)
        assert len(result) == 5 * 5 * 10
        projects = {m.project_path for m in result}
        assert projects == {str(root / f"proj-{p}") for p in (2, 3, 4, 5, 6)}

    @pytest.mark.asyncio
    async def test_limits_from_env(self, tmp_projects, monkeypatch):
        monkeypatch.setenv("CLAUDE_MESSAGES_MAX_PROJECTS", "1")
        monkeypatch.setenv("CLAUDE_MESSAGES_MAX_FILES", "1")
        result = await extract_sent(root=tmp_projects, limits=ScanLimits.from_env())
        assert [m.content for m in result] == ["Write tests for the API"]


@pytest.mark.asyncio
async def test_latest_message(tmp_projects):
    msg = await latest_message(SENT, root=tmp_projects)
    assert msg.content == "Write tests for the API"
    assert await latest_message(RECEIVED, root=tmp_projects / "missing") is None


@pytest.mark.asyncio
async def test_default_root_from_env(tmp_projects, monkeypatch):
    monkeypatch.setenv("CLAUDE_MESSAGES_PATH", str(tmp_projects))
    result = await extract_sent()
    assert len(result) == 4

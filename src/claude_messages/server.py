"""FastAPI web server for claude-messages."""

import logging

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response

from .backends import get_default_ranker
from .classifier import PROFILES
from .config import ScanLimits
from .core import DisplayMessage, MessageGroup, SearchStatus
from .export import message_to_dict, messages_to_json, messages_to_markdown
from .feed import EMPTY_STATE_TEXT, LOADING, NO_RESULTS, SEARCH_FAILED, UPGRADE_REQUIRED, MessageFeed
from .grouping import format_section_title, group_by_date
from .ranking import Ranker
from .search import exact_search, semantic_search

logger = logging.getLogger(__name__)

app = FastAPI(title="claude-messages", version="0.1.0")

# One feed per direction (populated on first request)
_feeds: dict[str, MessageFeed] = {}
_ranker: Ranker | None = None

_SEARCH_EMPTY_STATES = {
    SearchStatus.FAILED: SEARCH_FAILED,
    SearchStatus.ACCESS_REQUIRED: UPGRADE_REQUIRED,
}


def _get_ranker() -> Ranker:
    """Lazily initialize and cache the ranking backend."""
    global _ranker
    if _ranker is None:
        _ranker = get_default_ranker()
        logger.info("Using ranker: %s", _ranker.name)
    return _ranker


def _get_feed(direction: str) -> MessageFeed:
    """Lazily create and cache the feed for a direction."""
    profile = PROFILES.get(direction)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Unknown direction: {direction}")

    feed = _feeds.get(direction)
    if feed is None:
        feed = MessageFeed(profile, limits=ScanLimits.from_env())
        _feeds[direction] = feed
        logger.info("Created %s feed", direction)
    return feed


async def _load(feed: MessageFeed) -> list[DisplayMessage]:
    # A refresh already in flight is not repeated; serve what we have
    await feed.refresh()
    return feed.messages


def _group_to_dict(group: MessageGroup) -> dict:
    return {
        "category": group.category,
        "title": format_section_title(group.category, len(group.messages)),
        "sort_key": group.sort_key,
        "messages": [message_to_dict(m) for m in group.messages],
    }


# ── Routes ───────────────────────────────────────────────────────


@app.get("/api/messages/{direction}")
async def get_messages(
    direction: str,
    search: str | None = Query(None, description="Filter by text"),
    mode: str = Query("exact", description="Search mode: exact or semantic"),
    grouped: bool = Query(False, description="Group by date section"),
):
    """Return recent sent or received messages."""
    feed = _get_feed(direction)
    messages = await _load(feed)

    body = {
        "status": feed.result.status.value if feed.result is not None else LOADING,
    }

    state = None
    if search and mode == "semantic":
        outcome = await semantic_search(messages, search, _get_ranker())
        messages = outcome.messages
        body["search_status"] = outcome.status.value
        if outcome.error:
            body["search_error"] = outcome.error
        state = _SEARCH_EMPTY_STATES.get(outcome.status)
    elif search:
        messages = exact_search(messages, search)

    body["total"] = len(messages)
    if not messages:
        if not feed.messages:
            # Nothing extracted yet, or a load is still running
            state = feed.empty_state()
        else:
            state = state or NO_RESULTS
        body["empty_state"] = state
        body["empty_text"] = EMPTY_STATE_TEXT[state]

    if grouped:
        body["groups"] = [_group_to_dict(g) for g in group_by_date(messages)]
    else:
        body["messages"] = [message_to_dict(m) for m in messages]
    return body


@app.get("/api/messages/{direction}/latest")
async def get_latest(direction: str):
    """Return the newest message for a direction."""
    feed = _get_feed(direction)
    messages = await _load(feed)
    if not messages:
        raise HTTPException(status_code=404, detail=f"No {direction} messages found in your Claude history")
    return message_to_dict(messages[0])


@app.get("/api/export/{direction}")
async def export_messages(
    direction: str,
    format: str = Query("md", description="Export format: md or json"),
):
    """Export recent messages as Markdown or JSON."""
    feed = _get_feed(direction)
    messages = await _load(feed)

    if format == "json":
        return Response(
            content=messages_to_json(messages),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{direction}-messages.json"'},
        )
    else:
        title = f"{direction.capitalize()} messages"
        return Response(
            content=messages_to_markdown(messages, title),
            media_type="text/markdown",
            headers={"Content-Disposition": f'attachment; filename="{direction}-messages.md"'},
        )

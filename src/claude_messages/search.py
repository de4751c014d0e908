"""Exact and semantic search over extracted messages.

Exact search is a case-insensitive substring filter and runs on every
keystroke. Semantic search asks a Ranker which messages match; it is
debounced, and any failure falls back to exact search. A missing
entitlement is reported separately so the UI can ask the user to upgrade.
"""

import asyncio
import json
import logging
import re

from .config import RANKING_EXCERPT_LENGTH, SEMANTIC_DEBOUNCE_SECONDS
from .core import DisplayMessage, SearchOutcome, SearchStatus
from .errors import AccessRequiredError, RankingError
from .ranking import Ranker

logger = logging.getLogger(__name__)

_INDEX_ARRAY = re.compile(r"\[[\d,\s]*\]")


def exact_search(messages: list[DisplayMessage], query: str) -> list[DisplayMessage]:
    """Messages whose content or preview contains ``query``, ignoring case."""
    if not query or not query.strip():
        return messages

    needle = query.lower()
    return [
        msg for msg in messages
        if needle in msg.content.lower() or needle in msg.preview.lower()
    ]


def build_ranking_prompt(messages: list[DisplayMessage], query: str) -> str:
    listing = "\n\n".join(
        f"[{index}] {msg.content[:RANKING_EXCERPT_LENGTH]}..."
        for index, msg in enumerate(messages)
    )
    return f"""You are a search assistant. Given the following messages and a search query, return the indices of messages that semantically match the query.

Messages:
{listing}

Search query: "{query}"

You MUST return ONLY a valid JSON array of indices. No explanation, no text before or after, just the array.
Consider conceptual similarity, not just keyword matching.
Return empty array [] if no matches found.

Examples of valid responses:
[0, 2, 5]
[1]
[]"""


def parse_ranking_response(text: str) -> list[int]:
    """Pull the list of indices out of a ranker reply.

    The reply may be a bare JSON array or have prose around it; in the
    latter case the first bracketed list of integers is used.
    """
    try:
        indices = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        match = _INDEX_ARRAY.search(text or "")
        if not match:
            raise RankingError("No JSON array of indices in ranking response")
        try:
            indices = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise RankingError(f"Malformed index array in ranking response: {e}") from e

    if not isinstance(indices, list) or not all(
        isinstance(i, int) and not isinstance(i, bool) for i in indices
    ):
        raise RankingError(f"Ranking response is not a list of indices: {text!r}")
    return indices


async def semantic_search(
    messages: list[DisplayMessage],
    query: str,
    ranker: Ranker,
    model: str | None = None,
) -> SearchOutcome:
    """Rank ``messages`` against ``query`` with the ranker.

    Never raises. On failure the exact-search matches are returned together
    with a FAILED or ACCESS_REQUIRED status.
    """
    if not query or not query.strip() or not messages:
        return SearchOutcome(status=SearchStatus.OK, messages=messages)

    if not ranker.is_available():
        return SearchOutcome(
            status=SearchStatus.ACCESS_REQUIRED,
            messages=exact_search(messages, query),
            error=f"{ranker.name} ranking is not available for this account",
        )

    try:
        reply = await ranker.ask(build_ranking_prompt(messages, query), model=model)
        wanted = set(parse_ranking_response(reply))
    except AccessRequiredError as e:
        logger.warning("AI search needs access: %s", e)
        return SearchOutcome(
            status=SearchStatus.ACCESS_REQUIRED,
            messages=exact_search(messages, query),
            error=str(e),
        )
    except Exception as e:
        logger.warning("AI search failed, using exact search: %s", e)
        return SearchOutcome(
            status=SearchStatus.FAILED,
            messages=exact_search(messages, query),
            error=str(e),
        )

    return SearchOutcome(
        status=SearchStatus.OK,
        messages=[msg for index, msg in enumerate(messages) if index in wanted],
    )


class Debouncer:
    """Run the latest scheduled call after a quiet period.

    Each ``trigger`` cancels the call still waiting from the previous one.
    ``close`` must be called when the owner goes away so a stale call
    cannot land after newer results.
    """

    def __init__(self, delay: float = SEMANTIC_DEBOUNCE_SECONDS):
        self.delay = delay
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, func, *args, **kwargs) -> asyncio.Task:
        """Schedule ``await func(*args, **kwargs)`` after the delay."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._later(func, args, kwargs))
        return self._task

    async def _later(self, func, args, kwargs):
        await asyncio.sleep(self.delay)
        return await func(*args, **kwargs)

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self):
        """Wait for the pending call; returns its result, or None if none is pending."""
        task = self._task
        if task is None:
            return None
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise

    def close(self) -> None:
        self.cancel()

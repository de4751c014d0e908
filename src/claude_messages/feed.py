"""State behind one message list view: loading, searching, empty states.

A MessageFeed owns the extracted messages for one direction (sent or
received), the current query and search mode, and the debounce timer for
AI search. It holds no rendering logic.
"""

import asyncio
import logging
from pathlib import Path

from .backends import get_default_ranker
from .classifier import ExtractionProfile
from .config import SEMANTIC_DEBOUNCE_SECONDS, ScanLimits
from .core import DisplayMessage, ExtractionResult, SearchOutcome, SearchStatus
from .extractor import extract_messages
from .ranking import Ranker
from .search import Debouncer, exact_search, semantic_search

logger = logging.getLogger(__name__)

# Values returned by MessageFeed.empty_state()
LOADING = "loading"
NO_HISTORY = "no-history"
NO_RESULTS = "no-results"
SEARCH_FAILED = "search-failed"
UPGRADE_REQUIRED = "upgrade-required"

EMPTY_STATE_TEXT = {
    LOADING: "Loading messages...",
    NO_HISTORY: "No messages found in your Claude history",
    NO_RESULTS: "No matching messages",
    SEARCH_FAILED: "AI search failed. Try again or switch to normal search.",
    UPGRADE_REQUIRED: "AI search requires access to the ranking service.",
}


class MessageFeed:
    """Messages for one direction plus the search state applied to them."""

    def __init__(
        self,
        profile: ExtractionProfile,
        ranker: Ranker | None = None,
        root: Path | None = None,
        limits: ScanLimits | None = None,
        debounce: float = SEMANTIC_DEBOUNCE_SECONDS,
    ):
        self.profile = profile
        self.ranker = ranker
        self.root = root
        self.limits = limits
        self.messages: list[DisplayMessage] = []
        self.result: ExtractionResult | None = None
        self.query = ""
        self.use_semantic = False
        self.search_status = SearchStatus.OK
        self.is_loading = False
        self._semantic_results: list[DisplayMessage] | None = None
        self._debouncer = Debouncer(debounce)

    async def refresh(self) -> ExtractionResult | None:
        """Reload messages from disk.

        Returns None without doing anything when a load is already running.
        """
        if self.is_loading:
            logger.debug("Refresh of %s feed ignored, load in progress", self.profile.id_prefix)
            return None

        self.is_loading = True
        try:
            result = await extract_messages(self.profile, root=self.root, limits=self.limits)
            self.result = result
            self.messages = result.messages
            self._semantic_results = None
            return result
        finally:
            self.is_loading = False

    @property
    def visible(self) -> list[DisplayMessage]:
        """Messages to show for the current query and mode."""
        if not self.query.strip():
            return self.messages
        if self.use_semantic and self._semantic_results is not None:
            return self._semantic_results
        if self.use_semantic:
            # AI search has not answered yet
            return self.messages
        return exact_search(self.messages, self.query)

    def set_mode(self, semantic: bool) -> None:
        if semantic == self.use_semantic:
            return
        self.use_semantic = semantic
        self._semantic_results = None
        self.search_status = SearchStatus.OK
        self._debouncer.cancel()
        if semantic and self.query.strip():
            self._schedule_semantic()

    def set_query(self, text: str) -> asyncio.Task | None:
        """Record a keystroke.

        Exact search applies immediately. AI search is scheduled after the
        debounce delay; the returned task resolves to its SearchOutcome.
        """
        self.query = text
        self._semantic_results = None
        self.search_status = SearchStatus.OK
        self._debouncer.cancel()

        if self.use_semantic and text.strip():
            return self._schedule_semantic()
        return None

    def _schedule_semantic(self) -> asyncio.Task:
        return self._debouncer.trigger(self.run_semantic, self.query)

    async def run_semantic(self, query: str) -> SearchOutcome:
        """Run AI search now, bypassing the debounce timer."""
        if self.ranker is None:
            self.ranker = get_default_ranker()

        outcome = await semantic_search(self.messages, query, self.ranker)
        # A newer keystroke replaced the query while the ranker was thinking
        if query != self.query:
            return outcome

        self.search_status = outcome.status
        self._semantic_results = outcome.messages
        return outcome

    async def wait_for_search(self) -> SearchOutcome | None:
        return await self._debouncer.wait()

    def empty_state(self) -> str | None:
        """Which empty-state message to show, or None when there is something to list."""
        if not self.messages and (self.is_loading or self.result is None):
            return LOADING
        if not self.messages:
            return NO_HISTORY
        if self.visible:
            return None
        if self.use_semantic and self.search_status is SearchStatus.ACCESS_REQUIRED:
            return UPGRADE_REQUIRED
        if self.use_semantic and self.search_status is SearchStatus.FAILED:
            return SEARCH_FAILED
        return NO_RESULTS

    def close(self) -> None:
        """Tear down: drop any pending AI search."""
        self._debouncer.close()

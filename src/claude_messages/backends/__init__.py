"""Semantic ranking backends."""

from ..ranking import Ranker
from .anthropic import AnthropicRanker


def get_default_ranker() -> Ranker:
    """Return the ranker used when the caller does not supply one."""
    return AnthropicRanker()

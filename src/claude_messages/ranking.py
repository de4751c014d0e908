"""Abstract base class for semantic ranking backends."""

from abc import ABC, abstractmethod


class Ranker(ABC):
    """Base class for backends that answer a ranking prompt.

    A backend receives a prompt listing numbered messages and a query, and
    returns text that should contain a JSON array of matching indices.
    """

    name: str  # "anthropic", ...

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the user is entitled to use this backend."""
        ...

    @abstractmethod
    async def ask(self, prompt: str, model: str | None = None) -> str:
        """Send the prompt and return the raw text reply.

        Raises AccessRequiredError when the user lacks access and
        RankingError for any other failure.
        """
        ...

"""Exception types raised inside claude-messages."""


class ClaudeMessagesError(Exception):
    """Base class for errors raised by this package."""


class ExtractionCancelled(ClaudeMessagesError):
    """The caller's cancel token was set at a suspension point."""


class RankingError(ClaudeMessagesError):
    """The semantic ranking backend failed or returned garbage."""


class AccessRequiredError(RankingError):
    """The ranking backend needs an entitlement the user does not have."""

"""Browse messages sent to and received from Claude Code."""

__version__ = "0.1.0"

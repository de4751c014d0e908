"""Path resolution and scan limits for Claude Code conversation logs."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Timestamps below this are Unix seconds, at or above it Unix milliseconds
UNIX_SECONDS_THRESHOLD = 10_000_000_000

PREVIEW_LENGTH = 100
EMPTY_PREVIEW = "[Empty message]"
RANKING_EXCERPT_LENGTH = 500
SEMANTIC_DEBOUNCE_SECONDS = 0.5

DEFAULT_RANKING_MODEL = "claude-3-5-haiku-latest"


def get_claude_projects_path() -> Path:
    """Return the path to Claude Code's projects directory."""
    env = os.environ.get("CLAUDE_MESSAGES_PATH")
    if env:
        return Path(env)

    return Path.home() / ".claude" / "projects"


def get_ranking_model() -> str:
    """Return the model used for semantic re-ranking."""
    return os.environ.get("CLAUDE_MESSAGES_RANKING_MODEL") or DEFAULT_RANKING_MODEL


def get_api_key() -> str | None:
    """Return the API key for the ranking backend, if configured."""
    return os.environ.get("ANTHROPIC_API_KEY") or None


@dataclass(frozen=True)
class ScanLimits:
    """Hard caps on how much of the projects tree one extraction touches."""

    max_projects: int = 5
    max_files_per_project: int = 5
    max_messages_per_file: int = 10

    def __post_init__(self):
        for name in ("max_projects", "max_files_per_project", "max_messages_per_file"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @classmethod
    def from_env(cls) -> "ScanLimits":
        """Build limits from CLAUDE_MESSAGES_MAX_* variables, keeping defaults for bad values."""
        defaults = cls()
        return cls(
            max_projects=_env_int("CLAUDE_MESSAGES_MAX_PROJECTS", defaults.max_projects),
            max_files_per_project=_env_int("CLAUDE_MESSAGES_MAX_FILES", defaults.max_files_per_project),
            max_messages_per_file=_env_int("CLAUDE_MESSAGES_MAX_PER_FILE", defaults.max_messages_per_file),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default
    if value < 0:
        logger.warning("Ignoring negative %s=%r", name, raw)
        return default
    return value

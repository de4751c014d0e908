"""Extract recent sent and received messages across Claude Code projects.

The pipeline is: select projects and files, stream each file in turn,
merge everything, sort globally newest first, then assign display ids.
Files are read one after another, never concurrently, so at most one log
file is open at a time.

Nothing here raises for I/O or parse problems. Callers get an
ExtractionResult whose status says whether data was found, partially
found, or whether the scan failed.
"""

import asyncio
import logging
from pathlib import Path

from .classifier import RECEIVED, SENT, ExtractionProfile
from .config import ScanLimits, get_claude_projects_path
from .core import DisplayMessage, ExtractionResult, ExtractionStatus, NormalizedMessage
from .errors import ExtractionCancelled
from .parser import parse_log_file
from .selector import select_sources

logger = logging.getLogger(__name__)


async def extract_messages(
    profile: ExtractionProfile,
    root: Path | None = None,
    limits: ScanLimits | None = None,
    cancel: asyncio.Event | None = None,
) -> ExtractionResult:
    """Run the full extraction for one profile (SENT or RECEIVED)."""
    if not isinstance(profile, ExtractionProfile):
        raise ValueError(f"Expected an ExtractionProfile, got {profile!r}")

    root = Path(root) if root is not None else get_claude_projects_path()
    limits = limits or ScanLimits()

    try:
        return await _run(profile, root, limits, cancel)
    except ExtractionCancelled:
        logger.info("Extraction of %s messages cancelled", profile.id_prefix)
        return ExtractionResult(status=ExtractionStatus.CANCELLED)
    except Exception as e:
        logger.error("Failed to extract %s messages from %s: %s", profile.id_prefix, root, e)
        return ExtractionResult(status=ExtractionStatus.FAILED, error=f"{type(e).__name__}: {e}")


async def _run(
    profile: ExtractionProfile, root: Path, limits: ScanLimits, cancel: asyncio.Event | None
) -> ExtractionResult:
    selection = await select_sources(root, limits=limits, cancel=cancel)
    skipped = list(selection.skipped)

    collected: list[NormalizedMessage] = []
    for project, log_file in selection.files():
        logger.debug("Streaming %s", log_file.path)
        result = await parse_log_file(
            log_file.path,
            session_id=log_file.session_id,
            project_path=str(project.path),
            profile=profile,
            limit=limits.max_messages_per_file,
            cancel=cancel,
        )
        if result.error:
            skipped.append(str(log_file.path))
        collected.extend(result.messages)

    collected.sort(key=lambda m: m.timestamp, reverse=True)
    messages = [
        DisplayMessage.from_message(msg, id=f"{profile.id_prefix}-{index}")
        for index, msg in enumerate(collected)
    ]

    logger.info(
        "Found %d %s messages from %d projects",
        len(messages), profile.id_prefix, len(selection.projects),
    )

    if skipped:
        status = ExtractionStatus.PARTIAL
    elif messages:
        status = ExtractionStatus.OK
    else:
        status = ExtractionStatus.EMPTY
    return ExtractionResult(status=status, messages=messages, skipped=skipped)


async def extract_sent(
    root: Path | None = None,
    limits: ScanLimits | None = None,
    cancel: asyncio.Event | None = None,
) -> ExtractionResult:
    """Messages the user sent to Claude, newest first."""
    return await extract_messages(SENT, root=root, limits=limits, cancel=cancel)


async def extract_received(
    root: Path | None = None,
    limits: ScanLimits | None = None,
    cancel: asyncio.Event | None = None,
) -> ExtractionResult:
    """Messages Claude sent back, newest first."""
    return await extract_messages(RECEIVED, root=root, limits=limits, cancel=cancel)


async def latest_message(
    profile: ExtractionProfile,
    root: Path | None = None,
    limits: ScanLimits | None = None,
) -> DisplayMessage | None:
    """The single newest message for a profile, or None."""
    result = await extract_messages(profile, root=root, limits=limits)
    return result.messages[0] if result.messages else None

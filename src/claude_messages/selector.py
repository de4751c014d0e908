"""Pick which projects and session files one extraction will read.

~/.claude/projects/ can hold hundreds of project folders and thousands of
session files. Only the most recently active projects, and the most recent
files within each, are scanned.

A project's activity is the newest mtime among its .jsonl files. The folder's
own mtime is used only when its files cannot be listed, since appending to a
file does not touch the folder's mtime on every filesystem.
"""

import asyncio
import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path

from .config import ScanLimits
from .core import LogFile, ProjectActivity
from .parser import check_cancelled

logger = logging.getLogger(__name__)

LOG_SUFFIX = ".jsonl"


@dataclass
class SourceSelection:
    """Projects chosen for a scan, each with its chosen files."""

    projects: list[tuple[ProjectActivity, list[LogFile]]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def files(self) -> list[tuple[ProjectActivity, LogFile]]:
        return [(project, f) for project, files in self.projects for f in files]


async def list_log_files(project_dir: Path, cancel: asyncio.Event | None = None) -> list[LogFile]:
    """Return the project's .jsonl files, newest first.

    Raises OSError if the directory itself cannot be listed; files that
    vanish or cannot be stat'ed are left out.
    """
    check_cancelled(cancel)
    names = await asyncio.to_thread(os.listdir, project_dir)

    files = []
    for name in names:
        if not name.endswith(LOG_SUFFIX):
            continue
        path = Path(project_dir) / name
        check_cancelled(cancel)
        try:
            st = await asyncio.to_thread(os.stat, path)
        except OSError as e:
            logger.debug("Cannot stat %s: %s", path, e)
            continue
        if not stat.S_ISREG(st.st_mode):
            continue
        files.append(LogFile(name=name, path=path, mtime=st.st_mtime))

    files.sort(key=lambda f: f.mtime, reverse=True)
    return files


async def project_activity(path: Path, cancel: asyncio.Event | None = None) -> ProjectActivity | None:
    """Describe one project folder, or return None if it is not a readable directory."""
    check_cancelled(cancel)
    try:
        st = await asyncio.to_thread(os.stat, path)
    except OSError as e:
        logger.debug("Cannot stat project %s: %s", path, e)
        return None
    if not stat.S_ISDIR(st.st_mode):
        return None

    most_recent = st.st_mtime
    try:
        files = await list_log_files(path, cancel=cancel)
    except OSError as e:
        logger.debug("Cannot list %s, using folder mtime: %s", path, e)
    else:
        if files:
            most_recent = files[0].mtime

    return ProjectActivity(name=path.name, path=path, most_recent_file_time=most_recent)


async def select_projects(
    root: Path, limit: int = 5, cancel: asyncio.Event | None = None
) -> list[ProjectActivity]:
    """Return up to ``limit`` projects under ``root``, most active first.

    Raises OSError when ``root`` cannot be listed.
    """
    check_cancelled(cancel)
    names = await asyncio.to_thread(os.listdir, root)

    projects = []
    for name in names:
        activity = await project_activity(Path(root) / name, cancel=cancel)
        if activity is not None:
            projects.append(activity)

    projects.sort(key=lambda p: p.most_recent_file_time, reverse=True)
    return projects[:limit]


async def select_files(
    project: ProjectActivity, limit: int = 5, cancel: asyncio.Event | None = None
) -> list[LogFile]:
    """Return up to ``limit`` of the project's newest log files."""
    files = await list_log_files(project.path, cancel=cancel)
    return files[:limit]


async def select_sources(
    root: Path, limits: ScanLimits | None = None, cancel: asyncio.Event | None = None
) -> SourceSelection:
    """Choose every file one extraction will read.

    Errors listing the root propagate; errors in a single project only drop
    that project and are recorded in ``skipped``.
    """
    limits = limits or ScanLimits()
    selection = SourceSelection()

    projects = await select_projects(root, limit=limits.max_projects, cancel=cancel)
    logger.info("Selected projects: %s", ", ".join(p.name for p in projects))

    for project in projects:
        try:
            files = await select_files(project, limit=limits.max_files_per_project, cancel=cancel)
        except OSError as e:
            logger.warning("Failed to list project %s: %s", project.path, e)
            selection.skipped.append(str(project.path))
            continue
        selection.projects.append((project, files))

    return selection

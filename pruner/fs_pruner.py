"""Delete planned files and clean up the directories they leave empty.

Every operation is best-effort: a missing target is logged as a warning and
skipped, an OS failure (permissions, locks) is logged as an error and only
abandons that one target. Nothing here raises for a missing path, so a run
can always be repeated after fixing the underlying problem.

Directory listings are always taken after the deletions in their scope, so a
directory is only removed when it is actually empty.

Example:
    >>> from pruner.deletion_planner import plan
    >>> from pruner.fs_pruner import prune
    >>> stats = prune(plan(paths), prefix='/mnt/nas')
    >>> print(f"Deleted {stats['files_deleted']} files")
"""

import logging
import os
from typing import Dict, List, Optional

from pruner.models import DeletionPlan, PruneOutcome


logger = logging.getLogger(__name__)


def new_stats() -> Dict[str, int]:
    """Create an empty statistics dictionary."""
    return {
        'files_deleted': 0,
        'dirs_deleted': 0,
        'missing': 0,
        'failed': 0
    }


def _record(stats: Dict[str, int], outcome: PruneOutcome, deleted_key: str) -> None:
    if outcome is PruneOutcome.OK:
        stats[deleted_key] += 1
    elif outcome is PruneOutcome.MISSING:
        stats['missing'] += 1
    else:
        stats['failed'] += 1


def remove_file(path: str) -> PruneOutcome:
    """Delete a single file.

    Args:
        path: Full filesystem path (prefix already applied)

    Returns:
        OK if deleted, MISSING if absent, FAILED on any OS error
    """
    if not os.path.lexists(path):
        logger.warning(f"File {path} not found...")
        return PruneOutcome.MISSING

    logger.info(f"Deleting {path}...")
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.warning(f"File {path} disappeared before deletion")
        return PruneOutcome.MISSING
    except OSError as e:
        logger.error(f"Failed to delete {path}: {e}")
        return PruneOutcome.FAILED

    return PruneOutcome.OK


def remove_empty_dir(path: str) -> PruneOutcome:
    """Delete a directory that is expected to be empty.

    Args:
        path: Full filesystem path of the directory

    Returns:
        OK if deleted, MISSING if absent, FAILED on any OS error
        (including the directory not being empty)
    """
    try:
        os.rmdir(path)
    except FileNotFoundError:
        logger.warning(f"Directory {path} not found...")
        return PruneOutcome.MISSING
    except OSError as e:
        logger.error(f"Failed to delete directory {path}: {e}")
        return PruneOutcome.FAILED

    return PruneOutcome.OK


def list_dir(path: str) -> Optional[List[os.DirEntry]]:
    """List a directory's entries, or None if it cannot be read."""
    try:
        with os.scandir(path) as it:
            return list(it)
    except FileNotFoundError:
        logger.warning(f"Directory {path} not found...")
    except OSError as e:
        logger.error(f"Failed to list directory {path}: {e}")
    return None


def prune_season(
    season_dir: str,
    files: List[str],
    prefix: str,
    stats: Dict[str, int],
    dry_run: bool = False
) -> None:
    """Delete the planned files of one season directory.

    The season directory itself is removed afterwards if nothing is left in it.
    """
    logger.info(f"-- {season_dir} --")
    season_path = f"{prefix}{season_dir}"

    if not os.path.isdir(season_path):
        logger.warning(f"Directory {season_path} not found...")
        stats['missing'] += 1
        return

    before = list_dir(season_path)
    if before is None:
        stats['failed'] += 1
        return

    logger.info(f"Deleting {len(files)} files out of {len(before)}.")

    would_delete = 0
    for file in files:
        file_path = f"{prefix}{file}"

        if dry_run:
            if os.path.lexists(file_path):
                logger.info(f"[DRY-RUN] Would delete {file_path}")
                would_delete += 1
            else:
                logger.warning(f"File {file_path} not found...")
                stats['missing'] += 1
            continue

        _record(stats, remove_file(file_path), 'files_deleted')

    if dry_run:
        if len(before) - would_delete == 0:
            logger.info(f"[DRY-RUN] Would delete empty directory {season_path}")
        return

    after = list_dir(season_path)
    if after is not None and len(after) == 0:
        logger.info("Deleting empty directory...")
        _record(stats, remove_empty_dir(season_path), 'dirs_deleted')


def remove_empty_children(show_path: str, stats: Dict[str, int], dry_run: bool = False) -> None:
    """Delete every empty directory directly under a show directory.

    This catches directories the season loop never touched, such as season
    folders that were already empty or folders outside the season layout.
    """
    entries = list_dir(show_path)
    if entries is None:
        stats['failed'] += 1
        return

    for entry in entries:
        if not entry.is_dir(follow_symlinks=False):
            continue

        children = list_dir(entry.path)
        if children is None:
            stats['failed'] += 1
            continue
        if len(children) > 0:
            continue

        if dry_run:
            logger.info(f"[DRY-RUN] Would delete empty directory {entry.path}")
            continue

        logger.info(f"Found another empty directory {entry.path}. Deleting...")
        _record(stats, remove_empty_dir(entry.path), 'dirs_deleted')


def prune(plan: DeletionPlan, prefix: str = '', dry_run: bool = False) -> Dict[str, int]:
    """Delete all files in a deletion plan and prune empty directories.

    Args:
        plan: Files grouped by show and season directory
        prefix: String prepended to every path before touching the filesystem
        dry_run: If True, only log what would be deleted

    Returns:
        Dictionary with stats (files_deleted, dirs_deleted, missing, failed)
    """
    stats = new_stats()

    for show_dir, seasons in plan:
        logger.info(f"== {show_dir} ==")
        show_path = f"{prefix}{show_dir}"

        if not os.path.isdir(show_path):
            logger.warning(f"Directory {show_path} not found...")
            stats['missing'] += 1
            continue

        for season_dir, files in seasons.items():
            prune_season(season_dir, files, prefix, stats, dry_run=dry_run)

        remove_empty_children(show_path, stats, dry_run=dry_run)

    return stats

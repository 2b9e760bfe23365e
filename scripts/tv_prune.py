#!/usr/bin/env python3
"""TV prune script - delete stale episodes of configured shows.

This script asks Plex for the episodes of every show listed in the
configuration file, classifies each episode against the show's retention
policy, and deletes the files of stale episodes. Season and show folders left
empty afterwards are removed as well.

Episode states:
- K: keep (latest episode of the show, or a special in season 0)
- W: watched, still inside the stale_watched grace period
- S: stale, files will be deleted
- U: unwatched, kept

Features:
- Per-show policies (delete_unwatched, stale_unwatched, stale_watched)
- Failure to fetch one show never affects the others
- Missing files and folders are logged and skipped
- Empty season/show sub-folders are cleaned up after deletion
- PRUNER_PATH_PREFIX maps Plex paths onto a different mount point
- Lock file prevents concurrent execution

Usage:
    # Dry-run mode (shows what would be deleted)
    python3 scripts/tv_prune.py shows.yaml --dry-run

    # Execute mode (actually delete files)
    python3 scripts/tv_prune.py shows.yaml --execute

Environment:
    PLEX_HOSTNAME, PLEX_TOKEN    Plex server address and token (required)
    PLEX_PORT                    Plex port when not part of PLEX_HOSTNAME (32400)
    PRUNER_PATH_PREFIX           Prefix prepended to every file path
    PRUNER_LOG_DIR               Log directory (default: logs/)
    PRUNER_LOG_LEVEL             Log level (default: INFO)
"""

import sys
import argparse
from pathlib import Path
from typing import Dict, List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pruner.api_clients import PlexAPI, APIError
from pruner.config_loader import ConfigError, load_config, load_settings, mask_secrets
from pruner.deletion_planner import plan
from pruner.episode_classifier import classify, trashed_paths
from pruner.fs_pruner import new_stats, prune
from pruner.lock import LockError, acquire_lock
from pruner.logger import setup_logging
from pruner.models import Episode, EpisodeRecord, ShowPolicy
from pruner.reporter import report_policy, report_records


def fetch_show_episodes(source, policy: ShowPolicy, logger) -> List[Episode]:
    """Fetch a show's episodes, treating any failure as an empty show.

    Args:
        source: Media source with a get_show_episodes(show_key) method
        policy: Show policy (identifier and title)
        logger: Logger instance

    Returns:
        Episodes of the show, or an empty list if the fetch failed
    """
    try:
        episodes = source.get_show_episodes(policy.identifier)
    except APIError as e:
        logger.error(f"Could not fetch episodes for {policy.title}: {e}")
        return []
    except Exception as e:
        logger.exception(f"Unexpected error fetching episodes for {policy.title}: {e}")
        return []

    if not episodes:
        logger.info("No episodes found.")
    return episodes


def process_show(source, policy: ShowPolicy, logger) -> List[EpisodeRecord]:
    """Fetch, classify and report one show."""
    report_policy(policy, logger)
    episodes = fetch_show_episodes(source, policy, logger)
    records = classify(episodes, policy)
    report_records(records, logger)
    return records


def run(
    policies: List[ShowPolicy],
    source,
    logger,
    prefix: str = '',
    dry_run: bool = False
) -> Dict[str, int]:
    """Classify every configured show and prune the stale files.

    Args:
        policies: Show policies in configuration order
        source: Media source with a get_show_episodes(show_key) method
        logger: Logger instance
        prefix: Path prefix applied before filesystem operations
        dry_run: If True, don't actually delete files

    Returns:
        Dictionary with stats (shows, episodes, stale_files, files_deleted,
        dirs_deleted, missing, failed)
    """
    logger.info(f"{len(policies)} shows found in config file.")

    to_delete = []
    episode_count = 0

    for policy in policies:
        records = process_show(source, policy, logger)
        episode_count += len(records)
        to_delete.extend(trashed_paths(records))

    logger.info(f"Found {len(to_delete)} files to delete.")

    stats = {'shows': len(policies), 'episodes': episode_count, 'stale_files': len(to_delete)}

    if not to_delete:
        stats.update(new_stats())
        return stats

    deletion_plan = plan(to_delete)
    logger.info(f"{deletion_plan.file_count} unique files in {len(deletion_plan)} show directories.")
    stats.update(prune(deletion_plan, prefix=prefix, dry_run=dry_run))
    return stats


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Delete stale TV episodes according to per-show policies',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Dry-run (shows what would be deleted)
  %(prog)s shows.yaml --dry-run

  # Execute (actually delete files)
  %(prog)s shows.yaml --execute

Config file format:
  The Daily Show:
    identifier: 12345        # Plex ratingKey of the show
    delete_unwatched: true
    stale_unwatched: 10
    stale_watched: 2
        """
    )

    parser.add_argument('config', help='Path to the show policy YAML file')

    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument(
        '--dry-run',
        action='store_true',
        help='Dry-run mode: show what would be deleted (safe)'
    )
    mode_group.add_argument(
        '--execute',
        action='store_true',
        help='Execute mode: actually delete files'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        help='Logging level (default: PRUNER_LOG_LEVEL or INFO)'
    )

    args = parser.parse_args(argv)
    dry_run = args.dry_run

    try:
        settings = load_settings()
        policies = load_config(args.config)
    except ConfigError as e:
        print(f"ERROR: Failed to load configuration: {e}", file=sys.stderr)
        return 1

    logger = setup_logging(
        'tv_prune.log',
        level=args.log_level or settings['log_level'],
        log_dir=settings['log_dir']
    )

    logger.info("=" * 60)
    logger.info("TV PRUNE STARTED")
    logger.info("=" * 60)
    logger.debug(f"Settings: {mask_secrets(settings)}")

    if dry_run:
        logger.info("DRY-RUN MODE: Files will NOT be deleted")
    else:
        logger.info("EXECUTE MODE: Files WILL be deleted")

    try:
        with acquire_lock('tv_prune'):
            source = PlexAPI(settings['plex_url'], settings['plex_token'])
            stats = run(
                policies,
                source,
                logger,
                prefix=settings['path_prefix'],
                dry_run=dry_run
            )
    except LockError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error during prune: {e}")
        return 1

    logger.info("=" * 60)
    logger.info("PRUNE SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Shows processed: {stats['shows']}")
    logger.info(f"Episodes classified: {stats['episodes']}")
    logger.info(f"Stale files: {stats['stale_files']}")
    logger.info(f"Files deleted: {stats['files_deleted']}")
    logger.info(f"Directories deleted: {stats['dirs_deleted']}")
    logger.info(f"Missing paths skipped: {stats['missing']}")
    logger.info(f"Failures: {stats['failed']}")
    logger.info("TV PRUNE COMPLETED")

    return 0


if __name__ == '__main__':
    sys.exit(main())

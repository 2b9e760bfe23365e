"""Human-readable rendering of classification decisions.

Example:
    >>> from pruner.reporter import format_record
    >>> format_record(record)
    '![S]  1   2. 2021-03-04: "Pilot". 1 file(s).'
"""

import logging
from typing import List

from pruner.models import EpisodeRecord, ShowPolicy


def format_threshold(threshold) -> str:
    return 'unbounded' if threshold is None else str(threshold)


def format_policy(policy: ShowPolicy) -> List[str]:
    """Render a show's policy as header lines."""
    return [
        f"== {policy.title} ==",
        f" key:              {policy.identifier}",
        f" delete_unwatched: {policy.delete_unwatched}",
        f" stale_unwatched:  {format_threshold(policy.stale_unwatched)}",
        f" stale_watched:    {format_threshold(policy.stale_watched)}",
    ]


def format_record(record: EpisodeRecord) -> str:
    """Render one classified episode.

    A leading '!' marks episodes whose files will be deleted.
    """
    ep = record.episode
    marker = '!' if record.trash else ' '
    return (
        f'{marker}[{record.state.value}] {ep.season_number:>2} {ep.number:>3}. '
        f'{ep.air_date}: "{ep.title}". {len(ep.file_paths)} file(s).'
    )


def report_policy(policy: ShowPolicy, logger: logging.Logger) -> None:
    """Log a show's header, before its episodes are fetched."""
    for line in format_policy(policy):
        logger.info(line)


def report_records(records: List[EpisodeRecord], logger: logging.Logger) -> None:
    """Log the decisions for one show."""
    for record in records:
        logger.info(format_record(record))

    trashed = sum(1 for r in records if r.trash)
    logger.info(f"{len(records)} episodes, {trashed} stale.")

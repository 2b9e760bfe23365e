"""Group trashed files by directory hierarchy.

Grouping is driven purely by path strings: a file's parent directory is its
season directory, and the season directory's parent is the show directory.
No show or season metadata is consulted.

Example:
    >>> from pruner.deletion_planner import plan
    >>> deletion_plan = plan(['/tv/Show/Season 01/e01.mkv'])
    >>> deletion_plan.shows
    {'/tv/Show': {'/tv/Show/Season 01': ['/tv/Show/Season 01/e01.mkv']}}
"""

import os
from typing import Iterable

from pruner.models import DeletionPlan


def plan(trash_paths: Iterable[str]) -> DeletionPlan:
    """Build a deletion plan from a collection of file paths.

    Paths are deduplicated and sorted lexicographically so the plan is the
    same from run to run for the same input.

    Args:
        trash_paths: File paths to delete

    Returns:
        DeletionPlan keyed by show directory, then season directory
    """
    deletion_plan = DeletionPlan()

    for path in sorted(set(trash_paths)):
        season_dir = os.path.dirname(path)
        show_dir = os.path.dirname(season_dir)
        deletion_plan.add(show_dir, season_dir, path)

    return deletion_plan

"""Episode retention classification.

Assigns every episode of a show one of four states:

- K (keep): the latest episode, or any special (season 0). Deleting the
  latest episode breaks Plex's On Deck, and Plex removes a show entirely once
  its last episode is gone. Specials are never pruned automatically.
- W (watched): watched but still within the show's grace period.
- S (stale): old enough to delete, watched or unwatched.
- U (unwatched): kept.

Age is the number of episodes newer than the given one, so it depends only
on the (season, episode) ordering and not on air dates.

Example:
    >>> from pruner.episode_classifier import classify
    >>> records = classify(episodes, policy)
    >>> [r.state.value for r in records]
    ['S', 'U', 'K']
"""

from typing import Iterable, List, Optional

from pruner.models import Episode, EpisodeRecord, EpisodeState, ShowPolicy


def sort_episodes(episodes: Iterable[Episode]) -> List[Episode]:
    """Order episodes by season, then episode number."""
    return sorted(episodes, key=lambda ep: (ep.season_number, ep.number))


def is_stale(age: int, threshold: Optional[int]) -> bool:
    """Check an episode age against a staleness threshold.

    Args:
        age: Number of episodes newer than this one
        threshold: Configured threshold, None for unbounded

    Returns:
        True if the threshold is set and age reaches it
    """
    if threshold is None:
        return False
    return age >= threshold


def classify_episode(episode: Episode, idx: int, latest: int, policy: ShowPolicy) -> EpisodeState:
    """Classify a single episode at position idx of the sorted list."""
    if idx == latest or episode.season_number == 0:
        return EpisodeState.KEEP

    age = latest - idx

    if episode.watched:
        if is_stale(age, policy.stale_watched):
            return EpisodeState.STALE
        return EpisodeState.WATCHED

    if policy.delete_unwatched and is_stale(age, policy.stale_unwatched):
        return EpisodeState.STALE

    return EpisodeState.UNWATCHED


def classify(episodes: Iterable[Episode], policy: ShowPolicy) -> List[EpisodeRecord]:
    """Classify all episodes of a show.

    The input is re-sorted by (season, episode) before classification, so the
    caller's ordering does not matter.

    Args:
        episodes: Episodes of one show
        policy: Retention policy of that show

    Returns:
        Episode records in (season, episode) order
    """
    ordered = sort_episodes(episodes)
    latest = len(ordered) - 1

    return [
        EpisodeRecord(episode=ep, state=classify_episode(ep, idx, latest, policy))
        for idx, ep in enumerate(ordered)
    ]


def trashed_paths(records: Iterable[EpisodeRecord]) -> List[str]:
    """Collect the file paths of every stale episode, in record order."""
    paths = []
    for record in records:
        if record.trash:
            paths.extend(record.episode.file_paths)
    return paths

"""Data types shared by the classifier, planner and pruner.

Example:
    >>> from pruner.models import Episode, ShowPolicy
    >>> policy = ShowPolicy(identifier='1234', title='News', stale_watched=2)
    >>> ep = Episode(season_number=1, number=3, title='Pilot', watch_count=1)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


class EpisodeState(str, Enum):
    """Retention state assigned to an episode."""

    UNWATCHED = 'U'
    WATCHED = 'W'
    STALE = 'S'
    KEEP = 'K'


class PruneOutcome(str, Enum):
    """Result of a single filesystem operation."""

    OK = 'ok'
    MISSING = 'missing'
    FAILED = 'failed'


@dataclass(frozen=True)
class ShowPolicy:
    """Retention policy for one show.

    Thresholds are episode counts; None means unbounded (never stale).
    """

    identifier: str
    title: str
    delete_unwatched: bool = False
    stale_unwatched: Optional[int] = None
    stale_watched: Optional[int] = None


@dataclass(frozen=True)
class Episode:
    season_number: int
    number: int
    title: str = ''
    watch_count: int = 0
    air_date: Optional[str] = None
    file_paths: Tuple[str, ...] = ()

    @property
    def watched(self) -> bool:
        return self.watch_count > 0


@dataclass(frozen=True)
class EpisodeRecord:
    """An episode together with its derived retention state."""

    episode: Episode
    state: EpisodeState

    @property
    def trash(self) -> bool:
        return self.state is EpisodeState.STALE


@dataclass
class DeletionPlan:
    """Files to delete, grouped show directory -> season directory -> files.

    Both levels keep insertion order, which the planner makes lexicographic.
    """

    shows: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)

    def add(self, show_dir: str, season_dir: str, path: str) -> None:
        self.shows.setdefault(show_dir, {}).setdefault(season_dir, []).append(path)

    def __iter__(self) -> Iterator[Tuple[str, Dict[str, List[str]]]]:
        return iter(self.shows.items())

    def __len__(self) -> int:
        return len(self.shows)

    def __bool__(self) -> bool:
        return bool(self.shows)

    @property
    def file_count(self) -> int:
        return sum(len(files) for seasons in self.shows.values() for files in seasons.values())

    def files(self) -> List[str]:
        """All planned file paths, in plan order."""
        return [
            path
            for seasons in self.shows.values()
            for files in seasons.values()
            for path in files
        ]

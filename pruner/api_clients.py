"""Plex Media Server API client.

Only the read-only metadata queries needed to list a show's episodes are
implemented. Requests are not retried: a failure surfaces as APIError and
the caller decides what to skip.

Example:
    >>> from pruner.api_clients import PlexAPI
    >>> plex = PlexAPI('http://plex.home:32400', 'token_here')
    >>> episodes = plex.get_show_episodes('12345')
    >>> print(f"Found {len(episodes)} episodes")
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from pruner.episode_classifier import sort_episodes
from pruner.models import Episode


class APIError(Exception):
    """Raised when API request fails."""
    pass


def _metadata(response: Any) -> List[Dict[str, Any]]:
    """Extract the Metadata list of a MediaContainer response."""
    if not isinstance(response, dict):
        raise APIError("Unexpected Plex response: not a JSON object")
    container = response.get('MediaContainer') or {}
    if not isinstance(container, dict):
        raise APIError("Unexpected Plex response: MediaContainer is not an object")
    metadata = container.get('Metadata') or []
    if not isinstance(metadata, list) or not all(isinstance(item, dict) for item in metadata):
        raise APIError("Unexpected Plex response: Metadata is not a list of objects")
    return metadata


def parse_episode(item: Dict[str, Any]) -> Episode:
    """Convert a Plex episode metadata item into an Episode.

    Every Part of every Media entry contributes a file path, so multi-part
    and multi-version episodes yield several paths.
    """
    try:
        paths = [
            part['file']
            for media in item.get('Media') or []
            for part in media.get('Part') or []
            if part.get('file')
        ]

        return Episode(
            season_number=int(item['parentIndex']),
            number=int(item['index']),
            title=item.get('title', ''),
            watch_count=int(item.get('viewCount') or 0),
            air_date=item.get('originallyAvailableAt'),
            file_paths=tuple(paths),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise APIError(f"Malformed episode metadata ({item.get('ratingKey')}): {e}")


class PlexAPI:
    """Plex Media Server API client.

    Note: Plex authenticates with X-Plex-Token and answers XML unless JSON
    is requested explicitly.

    Example:
        >>> plex = PlexAPI('http://plex.home:32400', 'token')
        >>> seasons = plex.get_seasons('12345')
    """

    def __init__(self, url: str, token: str, timeout: int = 30):
        """Initialize Plex API client.

        Args:
            url: Base URL of Plex server
            token: X-Plex-Token for authentication
            timeout: Request timeout in seconds
        """
        self.url = url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers with API token."""
        return {
            'X-Plex-Token': self.token,
            'Accept': 'application/json'
        }

    def _request(self, method: str, endpoint: str, params: Optional[Dict] = None) -> Any:
        """Make API request.

        Args:
            method: HTTP method
            endpoint: API endpoint
            params: Query parameters

        Returns:
            Response JSON or empty dict

        Raises:
            APIError: If request fails
        """
        url = f"{self.url}{endpoint}"

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._get_headers(),
                params=params,
                timeout=self.timeout
            )

            response.raise_for_status()

            if not response.content:
                return {}

            return response.json()

        except requests.exceptions.HTTPError as e:
            if e.response is not None and e.response.status_code in [401, 403]:
                raise APIError(f"Authentication failed: {e}")
            raise APIError(f"Plex API request failed: {e}")
        except requests.exceptions.RequestException as e:
            raise APIError(f"Plex API request failed: {e}")
        except ValueError as e:
            raise APIError(f"Invalid JSON from Plex: {e}")

    def get_children(self, rating_key: str) -> List[Dict[str, Any]]:
        """Get the children metadata of an item (seasons of a show, episodes of a season).

        Args:
            rating_key: Plex ratingKey of the parent item

        Returns:
            List of metadata dictionaries
        """
        return _metadata(self._request('GET', f'/library/metadata/{rating_key}/children'))

    def get_seasons(self, show_key: str) -> List[Dict[str, Any]]:
        """Get the seasons of a show.

        Args:
            show_key: Plex ratingKey of the show

        Returns:
            List of {number, season_key, title} sorted by season number
        """
        seasons = []
        for item in self.get_children(show_key):
            # "All episodes" pseudo-seasons have no ratingKey of their own
            if item.get('ratingKey') is None:
                continue
            try:
                number = int(item.get('index') or 0)
            except (TypeError, ValueError) as e:
                raise APIError(f"Malformed season metadata ({item['ratingKey']}): {e}")
            seasons.append({
                'number': number,
                'season_key': str(item['ratingKey']),
                'title': item.get('title', '')
            })

        seasons.sort(key=lambda s: s['number'])
        return seasons

    def get_episodes(self, season_key: str) -> List[Episode]:
        """Get the episodes of a season.

        Args:
            season_key: Plex ratingKey of the season

        Returns:
            Episodes sorted by (season, episode)
        """
        return sort_episodes(parse_episode(item) for item in self.get_children(season_key))

    def get_show_episodes(self, show_key: str) -> List[Episode]:
        """Get every episode of every season of a show.

        Args:
            show_key: Plex ratingKey of the show

        Returns:
            Episodes sorted by (season, episode)

        Raises:
            APIError: If any season cannot be fetched
        """
        seasons = self.get_seasons(show_key)
        self.logger.info(f"{len(seasons)} seasons found.")

        episodes = []
        for season in seasons:
            episodes.extend(self.get_episodes(season['season_key']))

        self.logger.info(f"{len(episodes)} episodes found.")
        return sort_episodes(episodes)

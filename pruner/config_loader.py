"""Configuration loader for show retention policies and environment settings.

The YAML configuration maps each show name to its retention policy. Server
credentials and the path prefix come from the environment.

Example:
    >>> from pruner.config_loader import load_config, load_settings
    >>> policies = load_config('shows.yaml')
    >>> settings = load_settings()
    >>> print(policies[0].title, settings['plex_url'])
    'The Daily Show' 'http://plex.home:32400'
"""

import os
from typing import Any, Dict, List, Mapping, Optional

import yaml

from pruner.models import ShowPolicy


DEFAULT_PLEX_PORT = 32400


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


def _parse_threshold(name: str, field_name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Show '{name}': {field_name} must be an integer, got {value!r}")
    if value < 0:
        raise ConfigError(f"Show '{name}': {field_name} must not be negative")
    return value


def parse_show_policy(name: str, entry: Any) -> ShowPolicy:
    """Build a ShowPolicy from one configuration entry.

    Args:
        name: Show name (the mapping key)
        entry: Policy fields for the show

    Returns:
        ShowPolicy with defaults applied for missing optional fields

    Raises:
        ConfigError: If the entry is malformed
    """
    if not isinstance(entry, dict):
        raise ConfigError(f"Show '{name}': expected a mapping of policy fields")

    identifier = entry.get('identifier', entry.get('ratingKey'))
    if identifier is None or str(identifier).strip() == '':
        raise ConfigError(f"Show '{name}': identifier is required")

    delete_unwatched = entry.get('delete_unwatched', False)
    if not isinstance(delete_unwatched, bool):
        raise ConfigError(f"Show '{name}': delete_unwatched must be true or false")

    return ShowPolicy(
        identifier=str(identifier).strip(),
        title=str(entry.get('title') or name),
        delete_unwatched=delete_unwatched,
        stale_unwatched=_parse_threshold(name, 'stale_unwatched', entry.get('stale_unwatched')),
        stale_watched=_parse_threshold(name, 'stale_watched', entry.get('stale_watched')),
    )


def load_config(config_path: str) -> List[ShowPolicy]:
    """Load show policies from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Show policies in configuration order

    Raises:
        ConfigError: If configuration is invalid or missing
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to load configuration: {e}")

    if not config:
        raise ConfigError("Configuration file is empty")

    if not isinstance(config, dict):
        raise ConfigError("Configuration must map show names to policies")

    return [parse_show_policy(str(name), entry) for name, entry in config.items()]


def build_plex_url(hostname: str, port: Optional[str] = None) -> str:
    """Turn PLEX_HOSTNAME/PLEX_PORT into a base URL.

    Example:
        >>> build_plex_url('plex.home')
        'http://plex.home:32400'
        >>> build_plex_url('https://plex.example.com')
        'https://plex.example.com'
    """
    hostname = hostname.strip().rstrip('/')
    if '://' in hostname:
        return hostname
    if ':' in hostname:
        return f"http://{hostname}"
    return f"http://{hostname}:{port or DEFAULT_PLEX_PORT}"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Read server credentials and paths from the environment.

    Args:
        environ: Environment mapping (default: os.environ)

    Returns:
        Dictionary with plex_url, plex_token, path_prefix, log_dir, log_level

    Raises:
        ConfigError: If the Plex hostname or token is missing
    """
    if environ is None:
        environ = os.environ

    hostname = environ.get('PLEX_HOSTNAME', '')
    token = environ.get('PLEX_TOKEN', '')

    if not hostname.strip():
        raise ConfigError("PLEX_HOSTNAME is required")
    if not token.strip():
        raise ConfigError("PLEX_TOKEN is required")

    return {
        'plex_url': build_plex_url(hostname, environ.get('PLEX_PORT')),
        'plex_token': token.strip(),
        'path_prefix': environ.get('PRUNER_PATH_PREFIX', ''),
        'log_dir': environ.get('PRUNER_LOG_DIR') or None,
        'log_level': environ.get('PRUNER_LOG_LEVEL', 'INFO'),
    }


def mask_secrets(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Create a copy of settings with secrets masked for display."""
    masked = dict(settings)
    for key in ('plex_token',):
        if masked.get(key):
            masked[key] = '****'
    return masked

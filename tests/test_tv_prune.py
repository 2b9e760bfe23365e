"""Tests for the tv_prune orchestration."""

import logging
import os
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from scripts import tv_prune
from pruner.api_clients import APIError
from pruner.models import Episode, ShowPolicy


logger = logging.getLogger('test_tv_prune')


class FakeSource:
    """Media source serving canned episodes per show key."""

    def __init__(self, shows):
        self.shows = shows
        self.calls = []

    def get_show_episodes(self, show_key):
        self.calls.append(show_key)
        result = self.shows[show_key]
        if isinstance(result, Exception):
            raise result
        return result


def episode(season, number, watched=0, show='Show'):
    return Episode(
        season_number=season,
        number=number,
        title=f'E{number}',
        watch_count=watched,
        file_paths=(f'/tv/{show}/Season {season:02d}/e{number:02d}.mkv',),
    )


@pytest.fixture
def library(tmp_path):
    for show in ('Show', 'News'):
        for number in range(1, 4):
            path = tmp_path / f'tv/{show}/Season 01/e{number:02d}.mkv'
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text('video')
    return str(tmp_path)


def test_run_deletes_stale_files_across_shows(library):
    source = FakeSource({
        '1': [episode(1, 1, watched=1), episode(1, 2), episode(1, 3)],
        '2': [episode(1, n, show='News') for n in range(1, 4)],
    })
    policies = [
        ShowPolicy(identifier='1', title='Show', stale_watched=1),
        ShowPolicy(identifier='2', title='News', delete_unwatched=True, stale_unwatched=1),
    ]

    stats = tv_prune.run(policies, source, logger, prefix=library)

    assert source.calls == ['1', '2']
    assert stats['shows'] == 2
    assert stats['episodes'] == 6
    assert stats['stale_files'] == 3
    assert stats['files_deleted'] == 3
    assert not os.path.exists(f'{library}/tv/Show/Season 01/e01.mkv')
    assert os.path.exists(f'{library}/tv/Show/Season 01/e02.mkv')
    assert not os.path.exists(f'{library}/tv/News/Season 01/e01.mkv')
    assert not os.path.exists(f'{library}/tv/News/Season 01/e02.mkv')
    assert os.path.exists(f'{library}/tv/News/Season 01/e03.mkv')


def test_fetch_failure_is_isolated_to_one_show(library, caplog):
    source = FakeSource({
        'broken': APIError('connection refused'),
        '1': [episode(1, 1, watched=1), episode(1, 2)],
    })
    policies = [
        ShowPolicy(identifier='broken', title='Broken', stale_watched=0),
        ShowPolicy(identifier='1', title='Show', stale_watched=0),
    ]
    caplog.set_level(logging.ERROR, logger='test_tv_prune')

    stats = tv_prune.run(policies, source, logger, prefix=library)

    assert 'Could not fetch episodes for Broken' in caplog.text
    assert stats['files_deleted'] == 1
    assert not os.path.exists(f'{library}/tv/Show/Season 01/e01.mkv')


def test_no_stale_files_skips_planning_and_pruning(monkeypatch):
    def forbidden(*args, **kwargs):
        raise AssertionError('should not be called')

    monkeypatch.setattr(tv_prune, 'plan', forbidden)
    monkeypatch.setattr(tv_prune, 'prune', forbidden)
    source = FakeSource({'1': [episode(1, 1, watched=1), episode(1, 2)]})

    stats = tv_prune.run([ShowPolicy(identifier='1', title='Show')], source, logger)

    assert stats['stale_files'] == 0
    assert stats['files_deleted'] == 0


def test_dry_run_keeps_files(library):
    source = FakeSource({'1': [episode(1, 1, watched=1), episode(1, 2, watched=1), episode(1, 3)]})

    stats = tv_prune.run(
        [ShowPolicy(identifier='1', title='Show', stale_watched=0)],
        source,
        logger,
        prefix=library,
        dry_run=True
    )

    assert stats['stale_files'] == 2
    assert stats['files_deleted'] == 0
    assert os.path.exists(f'{library}/tv/Show/Season 01/e01.mkv')


def test_main_fails_on_missing_credentials(tmp_path, monkeypatch):
    config_path = tmp_path / 'shows.yaml'
    config_path.write_text('Show:\n  identifier: 1\n')
    monkeypatch.delenv('PLEX_HOSTNAME', raising=False)
    monkeypatch.setenv('PLEX_TOKEN', 'token')

    assert tv_prune.main([str(config_path), '--dry-run']) == 1


def test_main_fails_on_bad_config(tmp_path, monkeypatch):
    config_path = tmp_path / 'shows.yaml'
    config_path.write_text('Show:\n  title: missing identifier\n')
    monkeypatch.setenv('PLEX_HOSTNAME', 'plex.home')
    monkeypatch.setenv('PLEX_TOKEN', 'token')

    assert tv_prune.main([str(config_path), '--execute']) == 1


def test_main_requires_a_mode(tmp_path):
    with pytest.raises(SystemExit):
        tv_prune.main([str(tmp_path / 'shows.yaml')])


def test_malformed_payload_for_one_show_does_not_stop_the_others(library, caplog):
    source = FakeSource({
        'bad': AttributeError("'NoneType' object has no attribute 'get'"),
        '1': [episode(1, 1, watched=1), episode(1, 2)],
    })
    policies = [
        ShowPolicy(identifier='bad', title='Bad', stale_watched=0),
        ShowPolicy(identifier='1', title='Show', stale_watched=0),
    ]
    caplog.set_level(logging.ERROR, logger='test_tv_prune')

    stats = tv_prune.run(policies, source, logger, prefix=library)

    assert 'Unexpected error fetching episodes for Bad' in caplog.text
    assert source.calls == ['bad', '1']
    assert stats['files_deleted'] == 1
    assert not os.path.exists(f'{library}/tv/Show/Season 01/e01.mkv')


def test_malformed_plex_episode_is_isolated_to_its_show(library, monkeypatch):
    from pruner.api_clients import PlexAPI

    plex = PlexAPI('http://plex.home:32400', 'token')
    good = [episode(1, 1, watched=1), episode(1, 2)]

    def get_children(rating_key):
        return [{'ratingKey': 'x', 'index': 1, 'parentIndex': 1, 'Media': [None]}]

    def get_show_episodes(show_key):
        if show_key == 'bad':
            return plex.get_episodes('season')
        return good

    monkeypatch.setattr(plex, 'get_children', get_children)
    monkeypatch.setattr(plex, 'get_show_episodes', get_show_episodes)
    policies = [
        ShowPolicy(identifier='bad', title='Bad', stale_watched=0),
        ShowPolicy(identifier='1', title='Show', stale_watched=0),
    ]

    stats = tv_prune.run(policies, plex, logger, prefix=library)

    assert stats['files_deleted'] == 1
    assert not os.path.exists(f'{library}/tv/Show/Season 01/e01.mkv')


def test_show_header_is_logged_before_fetch_messages(caplog):
    source = FakeSource({'broken': APIError('connection refused')})
    caplog.set_level(logging.INFO, logger='test_tv_prune')

    tv_prune.run([ShowPolicy(identifier='broken', title='Broken')], source, logger)

    messages = [r.getMessage() for r in caplog.records]
    header = messages.index('== Broken ==')
    failure = next(i for i, m in enumerate(messages) if m.startswith('Could not fetch episodes for Broken'))
    assert header < failure

"""Unit tests for ResultsLoader."""
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
import requests

from pipeline.results_loader import RESULTS_CACHE_KEY, ResultsLoader
from storage.cache_store import InMemoryCacheStore
from storage.refresh_policy import to_millis

NOW = datetime(2026, 2, 12, 18, 0, tzinfo=timezone.utc)

REMOTE = {'results': {'ALP-M-DH': {'sport': 'Alpine Skiing', 'athletes': {'Bryce Bennett': 'Silver'}}}}
LOCAL = {'results': {'LUG-W-SGL': {'sport': 'Luge', 'athletes': {'Ashley Farquharson': 'Bronze'}}}}


@pytest.fixture
def fallback_path(tmp_path):
    path = tmp_path / 'results.json'
    path.write_text(json.dumps(LOCAL), encoding='utf-8')
    return str(path)


@pytest.fixture
def store():
    return InMemoryCacheStore()


def test_remote_results_are_loaded_and_cached(store, fallback_path):
    client = Mock()
    client.fetch_json.return_value = REMOTE
    loader = ResultsLoader(store, fallback_path, api_client=client, results_url='https://example.com/r.json')

    results = loader.load(NOW)

    assert list(results) == ['ALP-M-DH']
    client.fetch_json.assert_called_once_with('https://example.com/r.json')
    assert store.get(RESULTS_CACHE_KEY).timestamp == to_millis(NOW)


def test_remote_failure_uses_local_file(store, fallback_path):
    client = Mock()
    client.fetch_json.side_effect = requests.ConnectionError('sheet down')
    loader = ResultsLoader(store, fallback_path, api_client=client, results_url='https://example.com/r.json')

    assert list(loader.load(NOW)) == ['LUG-W-SGL']


def test_no_url_reads_local_file(store, fallback_path):
    assert list(ResultsLoader(store, fallback_path).load(NOW)) == ['LUG-W-SGL']


def test_total_failure_yields_empty_results(store, tmp_path):
    loader = ResultsLoader(store, str(tmp_path / 'missing.json'))

    assert loader.load(NOW) == {}
    assert store.get(RESULTS_CACHE_KEY) is None


@pytest.mark.parametrize('document', [
    {'results': {'E1': {'athletes': ['Racer']}}},
    {'results': []},
    {'results': 'none yet'},
    ['E1'],
])
def test_malformed_document_yields_no_results(store, tmp_path, document):
    """Test a misshapen results file does not raise."""
    path = tmp_path / 'results.json'
    path.write_text(json.dumps(document), encoding='utf-8')

    assert ResultsLoader(store, str(path)).load(NOW) == {}


def test_malformed_entries_are_skipped(store, tmp_path):
    path = tmp_path / 'results.json'
    path.write_text(json.dumps({'results': {
        'E1': {'athletes': ['Racer']},
        'LUG-W-SGL': {'sport': 'Luge', 'athletes': {'Ashley Farquharson': 'Bronze'}}
    }}), encoding='utf-8')

    assert list(ResultsLoader(store, str(path)).load(NOW)) == ['LUG-W-SGL']


def test_cache_is_used_within_ttl(store, tmp_path):
    store.set(RESULTS_CACHE_KEY, REMOTE, to_millis(NOW - timedelta(minutes=10)))
    loader = ResultsLoader(store, str(tmp_path / 'missing.json'))

    assert list(loader.load(NOW)) == ['ALP-M-DH']


def test_expired_or_bypassed_cache_is_reloaded(store, fallback_path):
    store.set(RESULTS_CACHE_KEY, REMOTE, to_millis(NOW - timedelta(minutes=31)))
    loader = ResultsLoader(store, fallback_path)

    assert list(loader.load(NOW)) == ['LUG-W-SGL']

    store.set(RESULTS_CACHE_KEY, REMOTE, to_millis(NOW))
    assert list(loader.load(NOW, force_refresh=True)) == ['LUG-W-SGL']

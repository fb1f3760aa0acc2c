"""Unit tests for static document readers."""
import json

import pytest

from source.static_files import (
    load_broadcast_rules,
    load_fallback_schedule,
    load_roster,
)


def write_json(path, document):
    path.write_text(json.dumps(document), encoding='utf-8')
    return str(path)


def test_load_fallback_schedule(tmp_path):
    path = write_json(tmp_path / 'schedule.json', {'schedule': [{'id': 'A'}]})

    assert load_fallback_schedule(path) == [{'id': 'A'}]


def test_load_fallback_schedule_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        load_fallback_schedule(str(tmp_path / 'missing.json'))


def test_load_broadcast_rules(tmp_path):
    path = write_json(tmp_path / 'broadcast.json', {
        'streaming': {'network': 'Peacock', 'type': 'streaming'},
        'sportNetworks': {'Luge': 'USA Network'}
    })

    rules = load_broadcast_rules(path)

    assert rules.sport_networks == {'Luge': 'USA Network'}
    assert rules.medal_primetime is None
    assert rules.event_overrides == {}


def test_load_broadcast_rules_failures_yield_none(tmp_path):
    """Test broadcast rules are optional."""
    bad = tmp_path / 'bad.json'
    bad.write_text('{nope', encoding='utf-8')
    not_object = write_json(tmp_path / 'list.json', [1, 2])

    assert load_broadcast_rules(str(tmp_path / 'missing.json')) is None
    assert load_broadcast_rules(str(bad)) is None
    assert load_broadcast_rules(not_object) is None


@pytest.mark.parametrize('document', [
    {'sportNetworks': ['NBC']},
    {'eventOverrides': {'E1': 'NBC'}},
    {'eventOverrides': {'E1': ['NBC']}},
    {'eventOverrides': ['E1']},
    {'streaming': 'Peacock'},
    {'medalPrimetime': ['NBC', '19:00']},
])
def test_load_broadcast_rules_wrong_shape_yields_none(tmp_path, document):
    """Test valid JSON with misshapen sections is treated as unavailable."""
    path = write_json(tmp_path / 'broadcast.json', document)

    assert load_broadcast_rules(path) is None


def test_load_broadcast_rules_empty_override_list_is_kept(tmp_path):
    path = write_json(tmp_path / 'broadcast.json', {'eventOverrides': {'E1': []}})

    assert load_broadcast_rules(path).event_overrides == {'E1': []}


def test_load_roster(tmp_path):
    """Test roster rows are normalized and nameless rows dropped."""
    path = write_json(tmp_path / 'roster.json', [
        {'name': 'Bryce Bennett', 'sport': 'Alpine Skiing', 'gender': 'm', 'events': ['Downhill']},
        {'name': 'Jaelin Kauf', 'sport': 'Freestyle Moguls', 'events': 'Moguls, Dual Moguls'},
        {'name': '', 'sport': 'Luge'},
        'junk'
    ])

    roster = load_roster(path)

    assert [m.name for m in roster] == ['Bryce Bennett', 'Jaelin Kauf']
    assert roster[0].gender == 'M'
    assert roster[0].country == 'USA'
    assert roster[1].events == ['Moguls', 'Dual Moguls']


def test_load_roster_wrapped_document(tmp_path):
    path = write_json(tmp_path / 'roster.json', {'athletes': [{'name': 'A', 'sport': 'Luge'}]})

    assert [m.name for m in load_roster(path)] == ['A']

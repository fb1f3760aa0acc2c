"""Unit tests for RosterMatcher."""
import pytest

from processor.models import BroadcastEntry, EnrichedEvent, RosterMember
from processor.roster_matcher import RosterMatcher


def make_event(**overrides):
    values = dict(
        id='EVT-1',
        date='2026-02-07',
        time='11:30',
        sport='Alpine Skiing',
        discipline="Men's Downhill",
        event="Men's Downhill",
        is_medal_event=True,
        gender='M'
    )
    values.update(overrides)
    return EnrichedEvent(**values)


@pytest.fixture
def matcher():
    return RosterMatcher()


class TestNormalizeSport:
    """Test cases for sport name normalization."""

    def test_spelling_variants_collapse(self, matcher):
        assert matcher.normalize_sport('Bobsled') == 'bobsleigh'
        assert matcher.normalize_sport('bobsleigh') == 'bobsleigh'
        assert matcher.normalize_sport('Cross Country Skiing') == 'cross-country skiing'

    def test_roster_labels_collapse_to_schedule_sport(self, matcher):
        assert matcher.normalize_sport('Freestyle Aerials') == 'freestyle skiing'
        assert matcher.normalize_sport('Freestyle Moguls') == 'freestyle skiing'
        assert matcher.normalize_sport('Snowboard Cross') == 'snowboard'

    def test_unknown_and_empty(self, matcher):
        assert matcher.normalize_sport('  Bandy ') == 'bandy'
        assert matcher.normalize_sport('') == ''


class TestRosterMatcher:
    """Test cases for RosterMatcher.match."""

    def test_declared_events_narrow_matches(self, matcher):
        """Test a member only matches events containing a declared label."""
        member = RosterMember(name='Racer', sport='Alpine Skiing', gender='M',
                              events=['Downhill', 'Super-G'])
        events = [
            make_event(id='DH'),
            make_event(id='SL', discipline="Men's Slalom", event="Men's Slalom")
        ]

        matched = matcher.match(events, [member])

        assert [e.id for e in matched] == ['DH']
        assert matched[0].athletes == [member]

    def test_member_without_events_follows_whole_sport(self, matcher):
        """Test members with no declared events match every event in the sport."""
        member = RosterMember(name='Fan Favorite', sport='Alpine Skiing', gender='M')
        events = [
            make_event(id='DH'),
            make_event(id='SL', discipline="Men's Slalom", event="Men's Slalom")
        ]

        matched = matcher.match(events, [member])

        assert [e.id for e in matched] == ['DH', 'SL']

    def test_gender_filter(self, matcher):
        """Test gendered events exclude members of the other gender only."""
        woman = RosterMember(name='W', sport='Alpine Skiing', gender='F')
        unknown = RosterMember(name='U', sport='Alpine Skiing')

        matched = matcher.match([make_event()], [woman, unknown])

        assert len(matched) == 1
        assert [a.name for a in matched[0].athletes] == ['U']

    def test_gender_filter_runs_before_fallback(self, matcher):
        """Test excluded members do not sneak back in via the no-events fallback."""
        woman = RosterMember(name='W', sport='Alpine Skiing', gender='F')

        assert matcher.match([make_event()], [woman]) == []

    def test_mixed_event_matches_all_genders(self, matcher):
        """Test events with empty gender keep everyone."""
        roster = [
            RosterMember(name='W', sport='Luge', gender='F'),
            RosterMember(name='M', sport='Luge', gender='M')
        ]
        event = make_event(sport='Luge', discipline='Team Relay', event='Team Relay', gender='')

        matched = matcher.match([event], roster)

        assert [a.name for a in matched[0].athletes] == ['W', 'M']

    def test_event_aliases(self, matcher):
        """Test declared labels match API abbreviations through aliases."""
        sledder = RosterMember(name='Pilot', sport='Bobsled', gender='M', events=['Four-Man'])
        boarder = RosterMember(name='Rider', sport='Snowboard Big Air', gender='F', events=['Big Air'])
        events = [
            make_event(id='BOB', sport='Bobsleigh', discipline='4-man Heat 4', event='4-man Heat 4'),
            make_event(id='SBD', sport='Snowboard', discipline="Women's SBD BA Final",
                       event="Women's SBD BA Final", gender='F')
        ]

        matched = matcher.match(events, [sledder, boarder])

        assert [e.id for e in matched] == ['BOB', 'SBD']

    def test_roster_sport_alias_reaches_schedule_sport(self, matcher):
        """Test a "Freestyle Aerials" member matches a Freestyle Skiing event."""
        member = RosterMember(name='Flyer', sport='Freestyle Aerials', gender='F', events=['Aerials'])
        event = make_event(sport='Freestyle Skiing', discipline="Women's Aerials Final",
                           event="Women's Aerials Final", gender='F')

        assert len(matcher.match([event], [member])) == 1

    def test_events_without_candidates_are_dropped(self, matcher):
        """Test events in sports nobody on the roster competes in are dropped."""
        member = RosterMember(name='Curler', sport='Curling')

        assert matcher.match([make_event()], [member]) == []

    def test_broadcast_is_carried_over(self, matcher):
        """Test matched events keep their broadcast entries."""
        entry = BroadcastEntry(network='Peacock', type='streaming')
        member = RosterMember(name='Racer', sport='Alpine Skiing', gender='M')

        matched = matcher.match([make_event(broadcast=[entry])], [member])

        assert matched[0].broadcast == [entry]
        assert matched[0].results == {}

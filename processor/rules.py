"""Lookup tables and classification rules used during normalization and matching."""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

UNKNOWN_SPORT = 'unknown'

MEDAL_EVENT_MARKER = 'Medal Event'

# API snake_case sport codes; 16 entries cover the full Milano Cortina program
SPORT_DISPLAY_NAMES: Dict[str, str] = {
    'alpine_skiing': 'Alpine Skiing',
    'biathlon': 'Biathlon',
    'bobsleigh': 'Bobsleigh',
    'cross_country_skiing': 'Cross-Country Skiing',
    'curling': 'Curling',
    'figure_skating': 'Figure Skating',
    'freestyle_skiing': 'Freestyle Skiing',
    'ice_hockey': 'Ice Hockey',
    'luge': 'Luge',
    'nordic_combined': 'Nordic Combined',
    'short_track': 'Short Track Speed Skating',
    'skeleton': 'Skeleton',
    'ski_jumping': 'Ski Jumping',
    'ski_mountaineering': 'Ski Mountaineering',
    'snowboarding': 'Snowboard',
    'speed_skating': 'Speed Skating',
}


@dataclass(frozen=True)
class ClassificationRule:
    """
    Maps venue/discipline fingerprints to a sport.

    A rule fires when every populated condition holds:
    the lowercase venue name contains one of ``venue_any``,
    the lowercase discipline contains one of ``discipline_any``,
    and the lowercase discipline contains all of ``discipline_all``.
    """
    sport: str
    venue_any: Tuple[str, ...] = ()
    discipline_any: Tuple[str, ...] = ()
    discipline_all: Tuple[str, ...] = ()

    def matches(self, venue_name: str, discipline: str) -> bool:
        """Check lowercase venue and discipline text against every set condition."""
        if self.venue_any and not any(k in venue_name for k in self.venue_any):
            return False
        if self.discipline_any and not any(k in discipline for k in self.discipline_any):
            return False
        if self.discipline_all and not all(k in discipline for k in self.discipline_all):
            return False
        return True


_SLIDING = ('sliding',)
_SKATING_ARENA = ('ice skating', 'palasharp')

# Evaluated top to bottom; first match wins
CLASSIFICATION_RULES: List[ClassificationRule] = [
    ClassificationRule(
        'Luge',
        venue_any=_SLIDING,
        discipline_any=('singles', 'doubles', 'mixed team', 'team relay'),
    ),
    ClassificationRule('Skeleton', venue_any=_SLIDING, discipline_any=('heat',)),
    ClassificationRule('Luge', venue_any=_SLIDING),
    ClassificationRule(
        'Figure Skating',
        venue_any=_SKATING_ARENA,
        discipline_any=('single skating', 'team event', 'free skating', 'ice danc', 'pairs'),
    ),
    ClassificationRule('Short Track Speed Skating', venue_any=_SKATING_ARENA),
    ClassificationRule('Freestyle Skiing', discipline_any=('aerials', 'moguls')),
    ClassificationRule('Freestyle Skiing', discipline_any=('freeski', 'ski cross')),
    ClassificationRule('Freestyle Skiing', discipline_all=('slopestyle', 'livigno')),
    ClassificationRule('Alpine Skiing', discipline_any=('stelvio', 'combined')),
    ClassificationRule('Ice Hockey', discipline_any=('medal game', 'semi-final')),
]

# (fragment found in raw discipline text, synthesized "name, city" venue)
VENUE_FRAGMENTS: List[Tuple[str, str]] = [
    ('Livigno Aerials', 'Livigno Aerials & Moguls Park, Livigno'),
    ('Livigno Snow', 'Livigno Snow Park, Livigno'),
    ('Stelvio', 'Stelvio Ski Centre, Bormio'),
    ('Tofane', 'Tofane Alpine Skiing Centre, Cortina'),
    ('Tesero', 'Tesero Cross-Country Skiing Stadium, Tesero'),
    ('Predazzo', 'Predazzo Ski Jumping Stadium, Predazzo'),
]

# Substrings the API concatenates into discipline text
DISCIPLINE_ARTIFACTS: List[str] = [
    MEDAL_EVENT_MARKER,
    'Livigno Aerials & Moguls Park',
    'Livigno Snow Park',
    'Stelvio Ski Centre',
    'Tofane Alpine Skiing Centre',
    'Tesero Cross-Country Skiing Stadium',
    'Predazzo Ski Jumping Stadium',
    'Cortina Sliding Centre',
    'Milano Ice Skating Arena',
    'PalaSharp',
]

SNOWBOARD_CONTAINS_MARKERS: Tuple[str, ...] = ('sbd ', 'pgs ', 'snowboard', 'sbx')
SNOWBOARD_PREFIX_MARKERS: Tuple[str, ...] = ('pgs',)

# Roster and schedule sport labels collapsed onto one matching key
SPORT_ALIASES: Dict[str, str] = {
    'alpine skiing': 'alpine skiing',
    'biathlon': 'biathlon',
    'bobsleigh': 'bobsleigh',
    'bobsled': 'bobsleigh',
    'cross-country skiing': 'cross-country skiing',
    'cross country skiing': 'cross-country skiing',
    'curling': 'curling',
    'figure skating': 'figure skating',
    'freestyle skiing': 'freestyle skiing',
    'freestyle aerials': 'freestyle skiing',
    'freestyle moguls': 'freestyle skiing',
    'freeski halfpipe': 'freestyle skiing',
    'freeski slopestyle & big air': 'freestyle skiing',
    'freeski slopestyle': 'freestyle skiing',
    'freeski big air': 'freestyle skiing',
    'ice hockey': 'ice hockey',
    'luge': 'luge',
    'nordic combined': 'nordic combined',
    'short track speed skating': 'short track speed skating',
    'short track': 'short track speed skating',
    'skeleton': 'skeleton',
    'ski jumping': 'ski jumping',
    'snowboard': 'snowboard',
    'snowboarding': 'snowboard',
    'snowboard cross': 'snowboard',
    'snowboard halfpipe': 'snowboard',
    'snowboard slopestyle': 'snowboard',
    'snowboard big air': 'snowboard',
    'snowboard parallel giant slalom': 'snowboard',
    'speed skating': 'speed skating',
}

# Declared roster event label -> abbreviations used in API discipline text.
# Padded entries (" ba ") rely on the padded haystack built by the matcher.
EVENT_ALIASES: Dict[str, List[str]] = {
    'four-man': ['4-man'],
    'two-man': ['2-man'],
    'pairs': ['pair skating', 'pairs'],
    'team event': ['team event'],
    'single skating': ['single skating'],
    'big air': ['big air', ' ba '],
    'halfpipe': ['halfpipe', ' hp '],
    'slopestyle': ['slopestyle'],
    'parallel giant slalom': ['pgs', 'parallel giant slalom'],
    'snowboard cross': ['snowboard cross', 'sbx', 'sbd cross'],
    'skeleton': ['skeleton', 'heat'],
    'individual': ['individual', 'ind.'],
}


def classify_sport(
    venue_name: str,
    discipline: str,
    rules: Optional[List[ClassificationRule]] = None
) -> str:
    """
    Infer a sport for records the API labels "unknown".

    Args:
        venue_name: Venue name (any case)
        discipline: Raw discipline text (any case)
        rules: Ordered rule list, defaults to CLASSIFICATION_RULES

    Returns:
        Sport display name, or '' if no rule fires
    """
    venue_name = (venue_name or '').lower()
    discipline = (discipline or '').lower()
    for rule in (CLASSIFICATION_RULES if rules is None else rules):
        if rule.matches(venue_name, discipline):
            return rule.sport
    return ''

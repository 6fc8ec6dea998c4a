"""
Sport -> Position -> Position Group Mapping - CENTRALIZED

Position groups are the grading units: standards are published per group,
not per individual position.

Hierarchy: Sport -> Position Group -> Positions

IMPORTANT: This is the SINGLE SOURCE OF TRUTH for position grouping.
Grading, cohorts and group standards all import from here.
"""

from typing import Dict, List, Optional


OTHER_GROUP = 'Other'

SPORT_POSITIONS = {
    'Football': {
        'positions': ['RB', 'WR', 'DB', 'QB', 'TE', 'LB', 'OL', 'DL'],
        'groups': {
            'Skill': ['RB', 'WR', 'DB'],
            'Big Skill': ['QB', 'TE', 'LB'],
            'Linemen': ['OL', 'DL'],
        },
    },
    'Soccer': {
        'positions': ['GK', 'MF', 'ATK', 'DEF'],
        'groups': {
            'Speed': ['ATK', 'MF'],
            'Physical': ['DEF', 'GK'],
        },
    },
    'Baseball': {
        'positions': ['IF', 'OF', 'P', 'C'],
        'groups': {
            'Position Player': ['IF', 'OF'],
            'Battery': ['P', 'C'],
        },
    },
    'Basketball': {
        'positions': ['Guard', 'Big'],
        'groups': {
            'Guard': ['Guard'],
            'Big': ['Big'],
        },
    },
}


def sports() -> List[str]:
    return list(SPORT_POSITIONS.keys())


def groups_for_sport(sport: str) -> List[str]:
    info = SPORT_POSITIONS.get(sport)
    if not info:
        return []
    return list(info['groups'].keys())


def position_group(position: Optional[str], sport: Optional[str] = 'Football') -> str:
    """
    Fold a position code into its sport's position group.

    Matching is case-insensitive. Missing positions, unknown sports and
    unmapped positions all fold to 'Other'.

    Examples:
        position_group('wr', 'Football') -> 'Skill'
        position_group('GK', 'Soccer') -> 'Physical'
        position_group('K', 'Football') -> 'Other'
    """
    if not position:
        return OTHER_GROUP

    info = SPORT_POSITIONS.get(sport or 'Football')
    if not info:
        return OTHER_GROUP

    code = position.strip().upper()
    for group, members in info['groups'].items():
        if code in (m.upper() for m in members):
            return group

    return OTHER_GROUP


def taxonomy() -> Dict[str, Dict[str, object]]:
    """Copy of the taxonomy for consumers that render reference tables"""
    return {
        sport: {
            'positions': list(info['positions']),
            'groups': {g: list(p) for g, p in info['groups'].items()},
        }
        for sport, info in SPORT_POSITIONS.items()
    }

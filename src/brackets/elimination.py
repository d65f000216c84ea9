"""
Single elimination bracket seeding and winner propagation.

A bracket is a plain dict mapping round name to a list of match dicts:

    {'Round 1': [{'matchNumber': 1,
                  'player1': {'name': 'A'},
                  'player2': {'name': 'B'},
                  'winner': 'A'}, ...],
     'Quarterfinals': [...], 'Semifinals': [...], 'Finals': [...]}

An empty player name is a TBD slot. Every function here returns new
structures and leaves its arguments untouched.
"""
import copy
from typing import List, Dict, Optional

from .models import Player


ROUND_ORDER = ['Round 1', 'Quarterfinals', 'Semifinals', 'Finals']


def get_round_name(round_ref) -> Optional[str]:
    """Resolve a round name or 1-based round number to its canonical name."""
    if isinstance(round_ref, bool):
        return None
    if isinstance(round_ref, int):
        if 1 <= round_ref <= len(ROUND_ORDER):
            return ROUND_ORDER[round_ref - 1]
        return None
    if not isinstance(round_ref, str):
        return None
    text = round_ref.strip()
    if text.isdigit():
        return get_round_name(int(text))
    for name in ROUND_ORDER:
        if name.lower() == text.lower():
            return name
    return None


def get_next_round_name(round_name: str) -> Optional[str]:
    """Get the round after round_name, or None at the Finals."""
    if round_name not in ROUND_ORDER:
        return None
    index = ROUND_ORDER.index(round_name)
    if index >= len(ROUND_ORDER) - 1:
        return None
    return ROUND_ORDER[index + 1]


def _player_dict(player) -> Dict:
    if isinstance(player, Player):
        return player.to_dict()
    if isinstance(player, dict):
        return Player.from_dict(player).to_dict()
    return {'name': str(player) if player is not None else ''}


def _winner_of(match: Optional[Dict]) -> str:
    if not match:
        return ''
    winner = match.get('winner')
    return winner if isinstance(winner, str) else ''


def _slot_name(match: Dict, slot: str) -> str:
    player = match.get(slot)
    if not isinstance(player, dict):
        return ''
    name = player.get('name')
    return name if isinstance(name, str) else ''


def _advancing(match: Dict) -> str:
    """Name that moves on from match: its winner, if that winner holds a slot."""
    winner = _winner_of(match)
    return winner if is_valid_winner(match, winner) else ''


def _has_match_number(match) -> bool:
    number = match.get('matchNumber') if isinstance(match, dict) else None
    return isinstance(number, int) and not isinstance(number, bool)


def _ordered(matches) -> List[Dict]:
    """Matches sorted by matchNumber; entries without an integer matchNumber are skipped."""
    if not isinstance(matches, list):
        return []
    return sorted((m for m in matches if _has_match_number(m)),
                  key=lambda m: m['matchNumber'])


def _make_match(match_number: int, player1: Dict, player2: Dict, winner: Optional[str] = None) -> Dict:
    match = {'matchNumber': match_number, 'player1': player1, 'player2': player2}
    if winner:
        match['winner'] = winner
    return match


def build_next_round(prev_matches: List[Dict], existing_next: Optional[List[Dict]] = None) -> List[Dict]:
    """
    Build the next round's matches from a previous round's winners.

    Matches are paired positionally by matchNumber: 1 with 2, 3 with 4, ...
    Only a winner that holds one of its match slots moves on; anything
    else leaves a TBD slot.
    A winner already recorded on the next round is kept only while it is
    still one of the two slot occupants.
    """
    prev = _ordered(prev_matches)
    prior_by_number = {m.get('matchNumber'): m for m in _ordered(existing_next)}

    out = []
    for i in range(len(prev) // 2):
        player1 = {'name': _advancing(prev[2 * i])}
        player2 = {'name': _advancing(prev[2 * i + 1])}
        match_number = i + 1

        prior_winner = _winner_of(prior_by_number.get(match_number))
        preserved = None
        if prior_winner and prior_winner in (player1['name'], player2['name']):
            preserved = prior_winner

        out.append(_make_match(match_number, player1, player2, preserved))
    return out


def propagate(bracket: Optional[Dict]) -> Dict:
    """
    Recompute every round after Round 1 from upstream winners.

    Runs over the whole bracket on every call, so applying it twice gives
    the same result as applying it once. A round with fewer than two
    matches empties every round after it.
    """
    source = bracket if isinstance(bracket, dict) else {}
    result = copy.deepcopy(source)
    result[ROUND_ORDER[0]] = _ordered(result.get(ROUND_ORDER[0]))
    for match in result[ROUND_ORDER[0]]:
        for slot in ('player1', 'player2'):
            if not isinstance(match.get(slot), dict):
                match[slot] = _player_dict(match.get(slot))

    for current_round, next_round in zip(ROUND_ORDER, ROUND_ORDER[1:]):
        current = result[current_round]
        if len(current) < 2:
            result[next_round] = []
            continue
        result[next_round] = build_next_round(current, result.get(next_round))

    return result


def seed_round1(participants) -> Dict:
    """
    Build a fresh bracket from an ordered participant list.

    Participants are paired in the order given (0 vs 1, 2 vs 3, ...).
    A trailing participant without an opponent is left out of Round 1.
    """
    players = [_player_dict(p) for p in participants or []]
    matches = []
    for i in range(len(players) // 2):
        matches.append(_make_match(i + 1, players[2 * i], players[2 * i + 1]))
    return propagate({ROUND_ORDER[0]: matches})


def order_by_seed(participants) -> List:
    """
    Reorder participants so positional pairing gives 1 vs N, 2 vs N-1, ...

    Seeded players come first in seed order, unseeded players after them,
    ties broken by name. With an odd count the last player is dropped.
    """
    def sort_key(p):
        data = _player_dict(p)
        seed = data.get('seed')
        return (seed is None, seed if seed is not None else 0, data['name'].lower())

    ordered = sorted(participants or [], key=sort_key)
    ordered = ordered[:len(ordered) - len(ordered) % 2]

    n = len(ordered)
    result = []
    for i in range(n // 2):
        result.append(ordered[i])
        result.append(ordered[n - 1 - i])
    return result


def find_match(bracket: Optional[Dict], round_ref, match_number) -> Optional[Dict]:
    """Find a match by round (name or number) and matchNumber."""
    round_name = get_round_name(round_ref)
    if not round_name or not isinstance(bracket, dict):
        return None
    for match in _ordered(bracket.get(round_name)):
        if match.get('matchNumber') == match_number:
            return match
    return None


def is_valid_winner(match: Optional[Dict], name: Optional[str]) -> bool:
    """True when name occupies one of the match's non-empty slots."""
    if not match or not name:
        return False
    if not isinstance(match, dict):
        return False
    occupants = {_slot_name(match, slot) for slot in ('player1', 'player2')}
    occupants.discard('')
    return name in occupants


def set_winner(bracket: Optional[Dict], round_ref, match_number, winner: Optional[str]) -> Dict:
    """
    Set or clear a match winner, then propagate downstream rounds.

    Passing None, an empty name, or the winner already recorded clears the
    winner. Any other name is stored as given. An unknown round or match
    leaves the bracket unchanged apart from propagation.
    """
    result = copy.deepcopy(bracket) if isinstance(bracket, dict) else {}
    round_name = get_round_name(round_ref)
    if round_name:
        matches = _ordered(result.get(round_name))
        for match in matches:
            if match.get('matchNumber') != match_number:
                continue
            if not winner or winner == match.get('winner'):
                match.pop('winner', None)
            else:
                match['winner'] = winner
            break
        result[round_name] = matches
    return propagate(result)


def get_champion(bracket: Optional[Dict]) -> Optional[str]:
    """Return the Finals winner, if one has been recorded."""
    final = find_match(bracket, ROUND_ORDER[-1], 1)
    return _winner_of(final) or None


def get_bracket_display(bracket: Optional[Dict]) -> Dict:
    """
    Get bracket data formatted for display.
    """
    data = propagate(bracket)

    matches_per_round = {}
    decided_per_round = {}
    for round_name in ROUND_ORDER:
        matches = data[round_name]
        matches_per_round[round_name] = len(matches)
        decided_per_round[round_name] = sum(1 for m in matches if _winner_of(m))

    return {
        'rounds': {name: data[name] for name in ROUND_ORDER},
        'matches_per_round': matches_per_round,
        'decided_per_round': decided_per_round,
        'total_matches': sum(matches_per_round.values()),
        'decided_matches': sum(decided_per_round.values()),
        'champion': get_champion(data),
    }

"""
Season, roster and moderator management around the bracket engine.

Each mutating call is a whole-value read-modify-write against the store,
done while holding the manager's lock. Invalid input is reported as a
(success, message) tuple rather than raised.
"""
import re
from contextlib import nullcontext
from typing import Optional

from .elimination import propagate, seed_round1, order_by_seed, find_match, is_valid_winner, set_winner
from .models import Player, Moderator, same_name
from .storage import BracketStore, _slugify

MAX_SEASON_MODERATORS = 8
MONTH_PATTERN = re.compile(r'^\d{4}-(0[1-9]|1[0-2])$')


def _clean(name) -> str:
    return name.strip() if isinstance(name, str) else ''


def _by_name(items: list) -> list:
    return sorted(items, key=lambda item: item['name'].lower())


class SeasonManager:
    def __init__(self, store: BracketStore, lock=None):
        self.store = store
        self._lock = lock if lock is not None else nullcontext()

    # ------------------------------------------------------------------
    # Seasons
    # ------------------------------------------------------------------

    def list_seasons(self) -> list:
        return list(self.store.list_seasons())

    def season_exists(self, season: str) -> bool:
        return season in self.store.list_seasons()

    def add_season(self, name: str) -> tuple:
        """Register a season and give it an empty bracket. Returns (success, message)."""
        name = _clean(name)
        if not name:
            return False, 'Season name is required.'
        with self._lock:
            seasons = self.store.list_seasons()
            if name in seasons:
                return True, f'Season {name} already exists.'
            clash = next((s for s in seasons if _slugify(s) == _slugify(name)), None)
            if clash is not None:
                return False, f'Season {name} clashes with existing season {clash}.'
            seasons.append(name)
            self.store.save_seasons(sorted(seasons, reverse=True))
            self.store.save_bracket(name, {})
        return True, f'Season {name} created.'

    def remove_season(self, name: str) -> tuple:
        name = _clean(name)
        if not name:
            return False, 'Season name is required.'
        with self._lock:
            seasons = [s for s in self.store.list_seasons() if s != name]
            self.store.save_seasons(sorted(seasons, reverse=True))
            self.store.delete_season(name)
        return True, f'Season {name} removed.'

    def get_season_meta(self, season: str) -> dict:
        return self.store.get_season_meta(season)

    def save_season_meta(self, season: str, month1: Optional[str] = None, month2: Optional[str] = None) -> tuple:
        """Store the two display months (YYYY-MM) of a season."""
        meta = {}
        for key, value in (('month1', month1), ('month2', month2)):
            if value in (None, ''):
                continue
            if not isinstance(value, str) or not MONTH_PATTERN.match(value):
                return False, 'month1/month2 must be YYYY-MM strings.'
            meta[key] = value
        with self._lock:
            self.store.save_season_meta(season, meta)
        return True, 'Season months saved.'

    # ------------------------------------------------------------------
    # Global roster and moderators
    # ------------------------------------------------------------------

    def list_global_participants(self) -> list:
        return _by_name(self.store.get_global_participants())

    def add_global_participant(self, name: str, seed: Optional[int] = None) -> tuple:
        name = _clean(name)
        if not name:
            return False, 'Participant name is required.'
        with self._lock:
            players = self.store.get_global_participants()
            if any(same_name(p['name'], name) for p in players):
                return True, f'{name} is already a participant.'
            players.append(Player(name, seed).to_dict())
            self.store.save_global_participants(_by_name(players))
        return True, f'Participant {name} added.'

    def remove_global_participant(self, name: str) -> tuple:
        name = _clean(name)
        if not name:
            return False, 'Participant name is required.'
        with self._lock:
            players = self.store.get_global_participants()
            self.store.save_global_participants([p for p in players if not same_name(p['name'], name)])
        return True, f'Participant {name} removed.'

    def list_global_moderators(self) -> list:
        return _by_name(self.store.get_global_moderators())

    def add_global_moderator(self, name: str) -> tuple:
        name = _clean(name)
        if not name:
            return False, 'Moderator name is required.'
        with self._lock:
            moderators = self.store.get_global_moderators()
            if any(same_name(m['name'], name) for m in moderators):
                return True, f'{name} is already a moderator.'
            moderators.append(Moderator(name).to_dict())
            self.store.save_global_moderators(_by_name(moderators))
        return True, f'Moderator {name} added.'

    def remove_global_moderator(self, name: str) -> tuple:
        name = _clean(name)
        if not name:
            return False, 'Moderator name is required.'
        with self._lock:
            moderators = self.store.get_global_moderators()
            self.store.save_global_moderators([m for m in moderators if not same_name(m['name'], name)])
        return True, f'Moderator {name} removed.'

    # ------------------------------------------------------------------
    # Season roster
    # ------------------------------------------------------------------

    def list_participants(self, season: str) -> list:
        return self.store.get_participants(season)

    def add_participant(self, season: str, name: str, seed: Optional[int] = None) -> tuple:
        """Add a player to a season roster and rebuild the bracket from roster order."""
        name = _clean(name)
        if not name:
            return False, 'Participant name is required.'
        with self._lock:
            participants = self.store.get_participants(season)
            if any(same_name(p['name'], name) for p in participants):
                return True, f'{name} is already in {season}.'
            participants.append(Player(name, seed).to_dict())
            self.store.save_participants(season, participants)
            self._regenerate(season, 'added')
        return True, f'{name} added to {season}.'

    def remove_participant(self, season: str, name: str) -> tuple:
        name = _clean(name)
        if not name:
            return False, 'Participant name is required.'
        with self._lock:
            participants = self.store.get_participants(season)
            self.store.save_participants(season, [p for p in participants if p['name'] != name])
            self._regenerate(season, 'added')
        return True, f'{name} removed from {season}.'

    def regenerate_bracket(self, season: str, order: str = 'added') -> tuple:
        """Rebuild the season's bracket from its roster, by order added or by seed."""
        if order not in ('added', 'seed'):
            return False, "order must be 'added' or 'seed'."
        with self._lock:
            self._regenerate(season, order)
        return True, f'Bracket for {season} regenerated.'

    def _regenerate(self, season: str, order: str) -> dict:
        participants = [Player.from_dict(p) for p in self.store.get_participants(season)]
        if order == 'seed':
            participants = order_by_seed(participants)
        bracket = seed_round1(participants)
        self.store.save_bracket(season, bracket)
        return bracket

    # ------------------------------------------------------------------
    # Season moderators
    # ------------------------------------------------------------------

    def list_season_moderators(self, season: str) -> list:
        return self.store.get_season_moderators(season)

    def add_season_moderator(self, season: str, name: str) -> tuple:
        name = _clean(name)
        if not name:
            return False, 'Moderator name is required.'
        with self._lock:
            moderators = self.store.get_season_moderators(season)
            if any(same_name(m['name'], name) for m in moderators):
                return True, f'{name} already moderates {season}.'
            if len(moderators) >= MAX_SEASON_MODERATORS:
                return False, f'A season can have at most {MAX_SEASON_MODERATORS} moderators.'
            moderators.append(Moderator(name).to_dict())
            self.store.save_season_moderators(season, _by_name(moderators))
        return True, f'{name} now moderates {season}.'

    def remove_season_moderator(self, season: str, name: str) -> tuple:
        name = _clean(name)
        if not name:
            return False, 'Moderator name is required.'
        with self._lock:
            moderators = self.store.get_season_moderators(season)
            self.store.save_season_moderators(season, [m for m in moderators if not same_name(m['name'], name)])
        return True, f'{name} removed from {season} moderators.'

    # ------------------------------------------------------------------
    # Bracket
    # ------------------------------------------------------------------

    def get_bracket(self, season: str) -> Optional[dict]:
        """Return the season's bracket with downstream rounds recomputed, or None."""
        if not self.season_exists(season):
            return None
        return propagate(self.store.get_bracket(season) or {})

    def set_winner(self, season: str, round_ref, match_number: int, winner: Optional[str]) -> tuple:
        """
        Set, toggle off, or clear the winner of one match.

        An unknown season, round or match changes nothing and still counts
        as success. A winner that is not playing in the match is rejected.
        Returns (success, message).
        """
        winner = _clean(winner) or None
        with self._lock:
            if not self.season_exists(season):
                return True, f'Season {season} not found; nothing changed.'
            bracket = propagate(self.store.get_bracket(season) or {})
            match = find_match(bracket, round_ref, match_number)
            if match is None:
                return True, 'Match not found; nothing changed.'
            clearing = winner is None or winner == match.get('winner')
            if not clearing and not is_valid_winner(match, winner):
                return False, f'{winner} is not playing in this match.'
            self.store.save_bracket(season, set_winner(bracket, round_ref, match_number, winner))
        if clearing:
            return True, 'Winner cleared.'
        return True, f'Winner set to {winner}.'

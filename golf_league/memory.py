"""In-memory repository, mainly for tests and throwaway sessions."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from .models import Course, CourseLocation, Game, HoleResult, Player, Season
from .repository import GolfRepository


class InMemoryGolfRepository(GolfRepository):
    """Keeps every entity in dictionaries keyed by id.

    A single store lock guards the dictionaries. Records are immutable, so the
    lists handed out are snapshots that later writes cannot disturb.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._lock = threading.RLock()
        self._players: Dict[str, Player] = {}
        self._seasons: Dict[str, Season] = {}
        self._locations: Dict[str, CourseLocation] = {}
        self._season_locations: Dict[str, List[str]] = {}
        self._games: Dict[str, Game] = {}

    # Players -----------------------------------------------------------
    def _insert_player(self, player: Player) -> None:
        with self._lock:
            self._players[player.id] = player

    def _delete_player(self, player_id: str) -> bool:
        with self._lock:
            return self._players.pop(player_id, None) is not None

    def list_players(self) -> List[Player]:
        with self._lock:
            players = list(self._players.values())
        return sorted(players, key=lambda player: (player.name, player.id))

    # Seasons -----------------------------------------------------------
    def _insert_season(self, season: Season) -> None:
        with self._lock:
            self._seasons[season.id] = season

    def get_season(self, season_id: str) -> Optional[Season]:
        with self._lock:
            return self._seasons.get(season_id)

    def list_seasons(self) -> List[Season]:
        with self._lock:
            seasons = list(self._seasons.values())
        # newest first, ids ascending within the same timestamp
        seasons.sort(key=lambda season: season.id)
        seasons.sort(key=lambda season: season.created_at, reverse=True)
        return seasons

    # Locations ---------------------------------------------------------
    def _insert_location(self, season_id: str, location: CourseLocation) -> None:
        with self._lock:
            self._locations[location.id] = location
            linked = self._season_locations.setdefault(season_id, [])
            if location.id not in linked:
                linked.append(location.id)

    def list_locations(self, season_id: str) -> List[CourseLocation]:
        with self._lock:
            locations = [self._locations[location_id] for location_id in self._season_locations.get(season_id, [])]
        return sorted(locations, key=lambda location: (location.name, location.id))

    def find_course(self, course_id: str) -> Optional[Course]:
        with self._lock:
            for location in self._locations.values():
                course = location.find_course(course_id)
                if course is not None:
                    return course
        return None

    def _course_location_id(self, course_id: str) -> Optional[str]:
        with self._lock:
            for location in self._locations.values():
                if location.find_course(course_id) is not None:
                    return location.id
        return None

    # Games -------------------------------------------------------------
    def _insert_game(self, game: Game) -> None:
        with self._lock:
            self._games[game.id] = game

    def _find_game(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    def _append_hole_result(self, game_id: str, result: HoleResult, recorded_at: datetime) -> None:
        with self._lock:
            game = self._games[game_id]
            self._games[game_id] = replace(game, hole_results=game.hole_results + (result,))

    def _set_completed(self, game_id: str, completed_at: datetime) -> None:
        with self._lock:
            self._games[game_id] = replace(self._games[game_id], completed_at=completed_at)

    def _select_games(self, predicate) -> List[Game]:
        with self._lock:
            games = [game for game in self._games.values() if predicate(game)]
        return sorted(games, key=lambda game: (game.started_at, game.id))

    def list_games(self, season_id: str) -> List[Game]:
        return self._select_games(lambda game: game.season_id == season_id)

    def games_for_player(self, player_id: str) -> List[Game]:
        return self._select_games(lambda game: game.has_player(player_id))

    def games_for_course(self, course_id: str) -> List[Game]:
        return self._select_games(lambda game: game.course_id == course_id)


__all__ = ["InMemoryGolfRepository"]

"""Repository contract shared by every golf_league storage backend.

``GolfRepository`` implements the public operations once: input clean-up,
validation, per-game serialization of writes and the derived views. Backends
only provide the storage primitives (the abstract methods below), which keeps
the observable behavior identical whichever backend is used.
"""

from __future__ import annotations

import abc
import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .aggregation import ScoreAggregator
from .errors import (
    CourseConflictError,
    InvalidHoleResultError,
    InvalidNameError,
    NotFoundError,
    PreconditionFailedError,
)
from .export import format_season_stats_csv
from .models import (
    Course,
    CourseLocation,
    Game,
    HoleResult,
    Player,
    PlayerScorecard,
    Season,
    SeasonStanding,
    new_id,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


class KeyedLocks:
    """One lock per key, alive only while someone holds or waits for it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, List] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


class GolfRepository(abc.ABC):
    """Players, seasons, locations and games, plus the views derived from them."""

    def __init__(self, *, clock: Optional[Clock] = None, id_factory: Optional[IdFactory] = None) -> None:
        self._clock: Clock = clock or datetime.now
        self._new_id: IdFactory = id_factory or new_id
        self._game_locks = KeyedLocks()
        self._catalog_lock = threading.Lock()
        self._aggregator = ScoreAggregator(self)

    # Storage primitives --------------------------------------------------
    @abc.abstractmethod
    def _insert_player(self, player: Player) -> None:
        ...

    @abc.abstractmethod
    def _delete_player(self, player_id: str) -> bool:
        ...

    @abc.abstractmethod
    def list_players(self) -> List[Player]:
        """All players, ordered by name then id."""

    @abc.abstractmethod
    def _insert_season(self, season: Season) -> None:
        ...

    @abc.abstractmethod
    def get_season(self, season_id: str) -> Optional[Season]:
        ...

    @abc.abstractmethod
    def list_seasons(self) -> List[Season]:
        """All seasons, newest first."""

    @abc.abstractmethod
    def _insert_location(self, season_id: str, location: CourseLocation) -> None:
        ...

    @abc.abstractmethod
    def list_locations(self, season_id: str) -> List[CourseLocation]:
        """Locations associated to ``season_id``, ordered by name."""

    @abc.abstractmethod
    def find_course(self, course_id: str) -> Optional[Course]:
        ...

    @abc.abstractmethod
    def _course_location_id(self, course_id: str) -> Optional[str]:
        """Id of the location that owns ``course_id``, if any."""

    @abc.abstractmethod
    def _insert_game(self, game: Game) -> None:
        ...

    @abc.abstractmethod
    def _find_game(self, game_id: str) -> Optional[Game]:
        ...

    @abc.abstractmethod
    def _append_hole_result(self, game_id: str, result: HoleResult, recorded_at: datetime) -> None:
        ...

    @abc.abstractmethod
    def _set_completed(self, game_id: str, completed_at: datetime) -> None:
        ...

    @abc.abstractmethod
    def list_games(self, season_id: str) -> List[Game]:
        """Games of ``season_id``, oldest first."""

    @abc.abstractmethod
    def games_for_player(self, player_id: str) -> List[Game]:
        ...

    @abc.abstractmethod
    def games_for_course(self, course_id: str) -> List[Game]:
        ...

    @staticmethod
    def _clean_name(kind: str, name: str) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise InvalidNameError(f"{kind} name must not be blank")
        return cleaned

    # Player operations -------------------------------------------------
    def add_player(self, name: str) -> Player:
        player = Player(id=self._new_id(), name=self._clean_name("Player", name))
        self._insert_player(player)
        logger.info("Added player %s (%s)", player.id, player.name)
        return player

    def remove_player(self, player_id: str) -> None:
        """Remove the player record.

        Games and hole results that mention the player are left untouched, so
        season history does not change. Views show such players as "Unknown".
        """

        if self._delete_player(player_id):
            logger.info("Removed player %s", player_id)
        else:
            logger.debug("Remove requested for unknown player %s", player_id)

    # Season operations -------------------------------------------------
    def create_season(self, name: str) -> Season:
        name = self._clean_name("Season", name)
        if not self.list_players():
            logger.warning("Refusing to create season %r without players", name)
            raise PreconditionFailedError("Create at least one player before starting a season.")
        season = Season(id=self._new_id(), name=name, created_at=self._clock())
        self._insert_season(season)
        logger.info("Created season %s (%s)", season.id, season.name)
        return season

    def _require_season(self, season_id: str) -> Season:
        season = self.get_season(season_id)
        if season is None:
            raise NotFoundError("Season", season_id)
        return season

    # Location operations -----------------------------------------------
    def add_location(self, season_id: str, location: CourseLocation) -> None:
        """Store ``location`` with its courses and link it to the season.

        Re-adding a location replaces its name and course list. A course id
        belongs to one location only.
        """

        self._require_season(season_id)
        course_ids = [course.id for course in location.courses]
        duplicates = sorted({course_id for course_id in course_ids if course_ids.count(course_id) > 1})
        if duplicates:
            raise CourseConflictError(f"Location {location.id} lists courses more than once: {duplicates}")
        with self._catalog_lock:
            for course_id in course_ids:
                owner = self._course_location_id(course_id)
                if owner is not None and owner != location.id:
                    logger.warning("Course %s already belongs to location %s", course_id, owner)
                    raise CourseConflictError(f"Course {course_id} already belongs to location {owner}")
            self._insert_location(season_id, location)
        logger.info(
            "Added location %s with %d course(s) to season %s",
            location.id,
            len(location.courses),
            season_id,
        )

    # Game operations ---------------------------------------------------
    def get_game(self, game_id: str) -> Game:
        game = self._find_game(game_id)
        if game is None:
            raise NotFoundError("Game", game_id)
        return game

    def start_game(
        self,
        season_id: str,
        location_id: str,
        course_id: str,
        starting_hole: int,
        player_ids: Iterable[str],
    ) -> Game:
        self._require_season(season_id)
        game = Game(
            id=self._new_id(),
            season_id=season_id,
            location_id=location_id,
            course_id=course_id,
            starting_hole=starting_hole,
            started_at=self._clock(),
            player_ids=tuple(player_ids),
        )
        self._insert_game(game)
        logger.info(
            "Started game %s on course %s with %d player(s)", game.id, course_id, len(game.player_ids)
        )
        return game

    def record_hole_result(self, game_id: str, result: HoleResult) -> Game:
        """Append ``result`` to the game and return the updated game."""

        with self._game_locks.hold(game_id):
            game = self.get_game(game_id)
            strangers = [player_id for player_id in result.player_ids() if not game.has_player(player_id)]
            if strangers:
                logger.warning("Rejected hole %d for game %s: %s", result.hole_number, game_id, strangers)
                raise InvalidHoleResultError(
                    f"Hole {result.hole_number} names players outside game {game_id}: {strangers}"
                )
            if game.is_finished:
                logger.warning("Recording hole %d on finished game %s", result.hole_number, game_id)
            self._append_hole_result(game_id, result, self._clock())
            logger.debug("Recorded hole %d for game %s", result.hole_number, game_id)
            return self.get_game(game_id)

    def finish_game(self, game_id: str) -> Game:
        """Mark the game finished; finishing it again keeps the first timestamp."""

        with self._game_locks.hold(game_id):
            game = self.get_game(game_id)
            if game.is_finished:
                logger.debug("Game %s already finished at %s", game_id, game.completed_at)
                return game
            self._set_completed(game_id, self._clock())
            logger.info("Finished game %s", game_id)
            return self.get_game(game_id)

    # Reporting ---------------------------------------------------------
    def player_scorecards(self, player_id: str) -> List[PlayerScorecard]:
        return self._aggregator.player_scorecards(player_id)

    def season_standings(self, season_id: str) -> List[SeasonStanding]:
        return self._aggregator.season_standings(season_id)

    def course_rankings(self, course_id: str) -> List[PlayerScorecard]:
        return self._aggregator.course_rankings(course_id)

    def export_season_stats_csv(self, season_id: str, exported_on: Optional[date] = None) -> str:
        standings = self.season_standings(season_id)
        names = {player.id: player.name for player in self.list_players()}
        return format_season_stats_csv(
            season_id,
            standings,
            names,
            exported_on if exported_on is not None else self._clock().date(),
        )


__all__ = ["Clock", "GolfRepository", "IdFactory", "KeyedLocks"]

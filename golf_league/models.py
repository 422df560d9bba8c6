"""Domain models for the golf_league project.

Players play games on the courses of a location during a season. Each game is
a match-play round recorded hole by hole: a hole has winners, losers and
(independently) players who scored a hole-in-one. The records are plain frozen
dataclasses so that both repository backends can hand them out freely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
import uuid
from typing import Iterable, Optional, Tuple

from .errors import InvalidHoleResultError


def new_id() -> str:
    """Return a fresh random identifier."""

    return str(uuid.uuid4())


def _unique(values: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(values))


class HoleOutcome(Enum):
    """Outcome of a single hole from one player's point of view."""

    WIN = "WIN"
    LOSS = "LOSS"
    NONE = "NONE"


@dataclass(frozen=True)
class Player:
    """Someone who takes part in games."""

    id: str
    name: str


@dataclass(frozen=True)
class Season:
    """A bounded collection of games and the locations played in it."""

    id: str
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Course:
    id: str
    name: str
    hole_count: int


@dataclass(frozen=True)
class CourseLocation:
    """A venue holding one or more courses, kept in the supplied order."""

    id: str
    name: str
    courses: Tuple[Course, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "courses", tuple(self.courses))

    def find_course(self, course_id: str) -> Optional[Course]:
        for course in self.courses:
            if course.id == course_id:
                return course
        return None


@dataclass(frozen=True)
class HoleResult:
    """Outcome of one hole of a game.

    A player may win or lose a hole but not both. Hole-in-one membership is
    independent of the outcome.
    """

    hole_number: int
    winners: Tuple[str, ...] = ()
    losers: Tuple[str, ...] = ()
    hole_in_one_players: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "winners", _unique(self.winners))
        object.__setattr__(self, "losers", _unique(self.losers))
        object.__setattr__(self, "hole_in_one_players", _unique(self.hole_in_one_players))
        both = set(self.winners) & set(self.losers)
        if both:
            raise InvalidHoleResultError(
                f"Hole {self.hole_number}: players both won and lost: {sorted(both)}"
            )

    def outcome_for(self, player_id: str) -> HoleOutcome:
        """Return the outcome of this hole for ``player_id``."""

        if player_id in self.winners:
            return HoleOutcome.WIN
        if player_id in self.losers:
            return HoleOutcome.LOSS
        return HoleOutcome.NONE

    def player_ids(self) -> Tuple[str, ...]:
        """Every player mentioned by this result, in first-seen order."""

        return _unique(self.winners + self.losers + self.hole_in_one_players)


@dataclass(frozen=True)
class Game:
    """One playthrough of a course by a fixed set of participants."""

    id: str
    season_id: str
    location_id: str
    course_id: str
    starting_hole: int
    started_at: datetime
    player_ids: Tuple[str, ...] = ()
    completed_at: Optional[datetime] = None
    hole_results: Tuple[HoleResult, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "player_ids", _unique(self.player_ids))
        object.__setattr__(self, "hole_results", tuple(self.hole_results))

    @property
    def is_finished(self) -> bool:
        return self.completed_at is not None

    @property
    def date_played(self) -> date:
        return self.started_at.date()

    def has_player(self, player_id: str) -> bool:
        return player_id in self.player_ids


@dataclass(frozen=True)
class PlayerScorecard:
    """A player's result in a single game."""

    player_id: str
    course_name: str
    score: int
    date_played: date
    hole_in_one_count: int


@dataclass(frozen=True)
class SeasonStanding:
    """A player's cumulative result across the games of a season."""

    player_id: str
    score: int = 0
    hole_in_one_count: int = 0


__all__ = [
    "Course",
    "CourseLocation",
    "Game",
    "HoleOutcome",
    "HoleResult",
    "Player",
    "PlayerScorecard",
    "Season",
    "SeasonStanding",
    "new_id",
]

"""golf_league package exposing domain models, scoring and repositories."""

from .aggregation import ScoreAggregator
from .errors import (
    CourseConflictError,
    GolfLeagueError,
    InvalidHoleResultError,
    InvalidNameError,
    NotFoundError,
    PreconditionFailedError,
)
from .export import format_season_stats_csv
from .memory import InMemoryGolfRepository
from .models import (
    Course,
    CourseLocation,
    Game,
    HoleOutcome,
    HoleResult,
    Player,
    PlayerScorecard,
    Season,
    SeasonStanding,
)
from .repository import GolfRepository
from .scoring import hole_in_ones_for_player, score_for_player
from .sqlite import SqliteGolfRepository

__all__ = [
    "Course",
    "CourseConflictError",
    "CourseLocation",
    "Game",
    "GolfLeagueError",
    "GolfRepository",
    "HoleOutcome",
    "HoleResult",
    "InMemoryGolfRepository",
    "InvalidHoleResultError",
    "InvalidNameError",
    "NotFoundError",
    "Player",
    "PlayerScorecard",
    "PreconditionFailedError",
    "ScoreAggregator",
    "Season",
    "SeasonStanding",
    "SqliteGolfRepository",
    "format_season_stats_csv",
    "hole_in_ones_for_player",
    "score_for_player",
]

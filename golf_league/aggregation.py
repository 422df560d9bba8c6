"""Scorecards, standings and rankings built from stored games."""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from .models import Course, Game, PlayerScorecard, SeasonStanding
from .scoring import hole_in_ones_for_player, score_for_player

UNKNOWN_COURSE = "Unknown Course"


class GameSource(Protocol):
    """Read access the aggregator needs from a repository."""

    def list_games(self, season_id: str) -> List[Game]:
        ...

    def games_for_player(self, player_id: str) -> List[Game]:
        ...

    def games_for_course(self, course_id: str) -> List[Game]:
        ...

    def find_course(self, course_id: str) -> Optional[Course]:
        ...


def _scorecard(game: Game, player_id: str, course_name: str) -> PlayerScorecard:
    return PlayerScorecard(
        player_id=player_id,
        course_name=course_name,
        score=score_for_player(game, player_id),
        date_played=game.date_played,
        hole_in_one_count=hole_in_ones_for_player(game, player_id),
    )


class ScoreAggregator:
    """Composes the per-game scoring over collections of games.

    Unknown seasons, players and courses produce empty results. Games played on
    a course that can no longer be resolved are kept and reported under
    ``UNKNOWN_COURSE``.
    """

    def __init__(self, source: GameSource) -> None:
        self._source = source

    def _course_name(self, course_id: str, cache: Dict[str, str]) -> str:
        if course_id not in cache:
            course = self._source.find_course(course_id)
            cache[course_id] = course.name if course is not None else UNKNOWN_COURSE
        return cache[course_id]

    def player_scorecards(self, player_id: str) -> List[PlayerScorecard]:
        """One scorecard per game ``player_id`` took part in, oldest first."""

        games = [game for game in self._source.games_for_player(player_id) if game.has_player(player_id)]
        games.sort(key=lambda game: (game.date_played, game.started_at, game.id))
        names: Dict[str, str] = {}
        return [_scorecard(game, player_id, self._course_name(game.course_id, names)) for game in games]

    def season_standings(self, season_id: str) -> List[SeasonStanding]:
        """Cumulative score per participant of the season, best first.

        Ties are broken by player id so the order does not depend on storage.
        """

        games = self._source.list_games(season_id)
        scores: Dict[str, int] = {}
        hole_in_ones: Dict[str, int] = {}
        for game in games:
            for player_id in game.player_ids:
                scores[player_id] = scores.get(player_id, 0) + score_for_player(game, player_id)
                hole_in_ones[player_id] = hole_in_ones.get(player_id, 0) + hole_in_ones_for_player(
                    game, player_id
                )

        standings = [
            SeasonStanding(player_id=player_id, score=score, hole_in_one_count=hole_in_ones[player_id])
            for player_id, score in scores.items()
        ]
        standings.sort(key=lambda standing: (-standing.score, standing.player_id))
        return standings

    def course_rankings(self, course_id: str) -> List[PlayerScorecard]:
        """Every participant's scorecard for every game on ``course_id``, best first."""

        names: Dict[str, str] = {}
        cards = [
            _scorecard(game, player_id, self._course_name(course_id, names))
            for game in self._source.games_for_course(course_id)
            for player_id in game.player_ids
        ]
        cards.sort(key=lambda card: (-card.score, card.date_played, card.player_id))
        return cards


__all__ = ["GameSource", "ScoreAggregator", "UNKNOWN_COURSE"]

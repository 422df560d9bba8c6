"""Per-game scoring for match play.

A player's net score in a game is the number of holes won minus the number of
holes lost. Players that a hole result does not mention score nothing for it.
"""

from __future__ import annotations

from .models import Game, HoleOutcome


def score_for_player(game: Game, player_id: str) -> int:
    """Return the net score of ``player_id`` in ``game``."""

    score = 0
    for result in game.hole_results:
        outcome = result.outcome_for(player_id)
        if outcome is HoleOutcome.WIN:
            score += 1
        elif outcome is HoleOutcome.LOSS:
            score -= 1
    return score


def hole_in_ones_for_player(game: Game, player_id: str) -> int:
    """Return how many holes of ``game`` ``player_id`` aced."""

    return sum(1 for result in game.hole_results if player_id in result.hole_in_one_players)


__all__ = ["hole_in_ones_for_player", "score_for_player"]

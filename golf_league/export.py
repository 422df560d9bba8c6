"""Delimited text export of season standings."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping

from .models import SeasonStanding

CSV_HEADER = "Season,Player,Score,HoleInOnes,ExportedOn"
UNKNOWN_PLAYER = "Unknown"


def format_season_stats_csv(
    season_id: str,
    standings: Iterable[SeasonStanding],
    player_names: Mapping[str, str],
    exported_on: date,
) -> str:
    """Render ``standings`` one row per player, in the order given.

    Field values are written as-is, without quoting. Players missing from
    ``player_names`` are written as ``UNKNOWN_PLAYER``. With no standings the
    output is the header line alone, and there is never a trailing newline.
    """

    lines = [CSV_HEADER]
    for standing in standings:
        name = player_names.get(standing.player_id, UNKNOWN_PLAYER)
        lines.append(
            ",".join(
                [
                    season_id,
                    name,
                    str(standing.score),
                    str(standing.hole_in_one_count),
                    exported_on.isoformat(),
                ]
            )
        )
    return "\n".join(lines)


__all__ = ["CSV_HEADER", "UNKNOWN_PLAYER", "format_season_stats_csv"]

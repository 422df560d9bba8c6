"""
Tests for export.py - season statistics CSV.
"""

from datetime import date

from golf_league import SeasonStanding, format_season_stats_csv
from golf_league.export import CSV_HEADER


def test_single_standing():
    csv = format_season_stats_csv(
        "s1",
        [SeasonStanding(player_id="p1", score=3, hole_in_one_count=1)],
        {"p1": "Alice"},
        date(2024, 5, 1),
    )
    assert csv == "Season,Player,Score,HoleInOnes,ExportedOn\ns1,Alice,3,1,2024-05-01"


def test_no_standings_is_header_only():
    assert format_season_stats_csv("s1", [], {}, date(2024, 5, 1)) == CSV_HEADER


def test_rows_keep_given_order_and_unknown_names():
    standings = [
        SeasonStanding(player_id="p2", score=4),
        SeasonStanding(player_id="gone", score=-2, hole_in_one_count=2),
    ]
    csv = format_season_stats_csv("s9", standings, {"p2": "Bob"}, date(2023, 12, 31))
    assert csv.splitlines() == [
        CSV_HEADER,
        "s9,Bob,4,0,2023-12-31",
        "s9,Unknown,-2,2,2023-12-31",
    ]
    assert not csv.endswith("\n")

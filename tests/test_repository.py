"""
Tests for the repository facade, run against every backend.
"""

import threading
from datetime import date, datetime

import pytest

from golf_league import (
    Course,
    CourseConflictError,
    CourseLocation,
    HoleResult,
    InvalidHoleResultError,
    InvalidNameError,
    NotFoundError,
    PreconditionFailedError,
    hole_in_ones_for_player,
    score_for_player,
)
from golf_league.repository import KeyedLocks


class TestPlayers:
    """Tests for player operations."""

    def test_add_player_trims_name(self, repository):
        player = repository.add_player("  Alice  ")
        assert player.name == "Alice"
        assert repository.list_players() == [player]

    def test_players_listed_by_name(self, repository):
        carol = repository.add_player("Carol")
        alice = repository.add_player("Alice")
        assert repository.list_players() == [alice, carol]

    def test_remove_player(self, repository):
        alice = repository.add_player("Alice")
        bob = repository.add_player("Bob")
        repository.remove_player(alice.id)
        assert repository.list_players() == [bob]

    def test_remove_unknown_player_is_ignored(self, repository):
        repository.add_player("Alice")
        repository.remove_player("nobody")
        assert len(repository.list_players()) == 1


class TestSeasons:
    """Tests for season operations."""

    def test_create_season_requires_a_player(self, repository):
        with pytest.raises(PreconditionFailedError):
            repository.create_season("Empty")
        assert repository.list_seasons() == []

    def test_create_season(self, repository, clock):
        repository.add_player("Alice")
        expected_created_at = clock.now
        season = repository.create_season(" Spring ")
        assert season.name == "Spring"
        assert season.created_at == expected_created_at
        assert repository.get_season(season.id) == season

    def test_seasons_listed_newest_first(self, repository):
        repository.add_player("Alice")
        spring = repository.create_season("Spring")
        summer = repository.create_season("Summer")
        assert repository.list_seasons() == [summer, spring]


class TestLocations:
    """Tests for location operations."""

    def test_add_and_list_locations(self, repository, pine_valley):
        repository.add_player("Alice")
        season = repository.create_season("Spring")
        links = CourseLocation(id="loc-links", name="Links", courses=(Course(id="c-old", name="Old", hole_count=18),))
        repository.add_location(season.id, pine_valley)
        repository.add_location(season.id, links)

        assert repository.list_locations(season.id) == [links, pine_valley]
        assert repository.find_course("course-south") == Course(id="course-south", name="South", hole_count=9)

    def test_locations_are_scoped_to_their_season(self, repository, pine_valley):
        repository.add_player("Alice")
        spring = repository.create_season("Spring")
        summer = repository.create_season("Summer")
        repository.add_location(spring.id, pine_valley)
        assert repository.list_locations(summer.id) == []
        assert repository.list_locations("unknown") == []

    def test_location_shared_between_seasons(self, repository, pine_valley):
        repository.add_player("Alice")
        spring = repository.create_season("Spring")
        summer = repository.create_season("Summer")
        repository.add_location(spring.id, pine_valley)
        repository.add_location(summer.id, pine_valley)
        assert repository.list_locations(spring.id) == repository.list_locations(summer.id) == [pine_valley]

    def test_unknown_season_rejected(self, repository, pine_valley):
        with pytest.raises(NotFoundError):
            repository.add_location("missing", pine_valley)


def test_listings_are_repeatable(league):
    repository, season, _, _ = league
    assert repository.list_players() == repository.list_players()
    assert repository.list_seasons() == repository.list_seasons()
    assert repository.list_locations(season.id) == repository.list_locations(season.id)


class TestGames:
    """Tests for starting, scoring and finishing games."""

    def test_start_game(self, league, clock):
        repository, season, alice, bob = league
        started_at = clock.now
        game = repository.start_game(season.id, "loc-pine", "course-north", 10, [alice.id, bob.id, alice.id])

        assert game.player_ids == (alice.id, bob.id)
        assert game.starting_hole == 10
        assert game.started_at == started_at
        assert game.hole_results == ()
        assert not game.is_finished
        assert repository.get_game(game.id) == game
        assert repository.list_games(season.id) == [game]

    def test_start_game_unknown_season(self, league):
        repository, _, alice, _ = league
        with pytest.raises(NotFoundError):
            repository.start_game("missing", "loc-pine", "course-north", 1, [alice.id])

    def test_two_player_scenario(self, league):
        repository, season, alice, bob = league
        game = repository.start_game(season.id, "loc-pine", "course-north", 1, [alice.id, bob.id])
        repository.record_hole_result(game.id, HoleResult(1, winners=[alice.id], losers=[bob.id]))
        game = repository.record_hole_result(
            game.id, HoleResult(2, winners=[bob.id], losers=[alice.id], hole_in_one_players=[alice.id])
        )

        assert score_for_player(game, alice.id) == 0
        assert score_for_player(game, bob.id) == 0
        assert hole_in_ones_for_player(game, alice.id) == 1
        assert hole_in_ones_for_player(game, bob.id) == 0

    def test_hole_results_keep_insertion_order(self, league):
        repository, season, alice, bob = league
        game = repository.start_game(season.id, "loc-pine", "course-north", 7, [alice.id, bob.id])
        for hole in (7, 8, 9, 1):
            game = repository.record_hole_result(game.id, HoleResult(hole, winners=[alice.id], losers=[bob.id]))

        assert [result.hole_number for result in game.hole_results] == [7, 8, 9, 1]
        assert repository.get_game(game.id).hole_results == game.hole_results

    def test_round_trip_of_results(self, league):
        repository, season, alice, bob = league
        carol = repository.add_player("Carol")
        game = repository.start_game(season.id, "loc-pine", "course-north", 1, [alice.id, bob.id, carol.id])
        result = HoleResult(4, winners=[carol.id], losers=[alice.id, bob.id], hole_in_one_players=[carol.id])
        halved = HoleResult(5, hole_in_one_players=[bob.id])

        repository.record_hole_result(game.id, result)
        stored = repository.record_hole_result(game.id, halved)

        assert stored.hole_results == (result, halved)

    def test_record_unknown_game(self, repository):
        with pytest.raises(NotFoundError) as exc_info:
            repository.record_hole_result("missing", HoleResult(1))
        assert exc_info.value.entity_id == "missing"

    def test_record_rejects_non_participants(self, league):
        repository, season, alice, bob = league
        game = repository.start_game(season.id, "loc-pine", "course-north", 1, [alice.id])
        with pytest.raises(InvalidHoleResultError):
            repository.record_hole_result(game.id, HoleResult(1, winners=[alice.id], losers=[bob.id]))
        assert repository.get_game(game.id).hole_results == ()

    def test_finish_game(self, league, clock):
        repository, season, alice, bob = league
        game = repository.start_game(season.id, "loc-pine", "course-north", 1, [alice.id, bob.id])
        repository.record_hole_result(game.id, HoleResult(1, winners=[alice.id], losers=[bob.id]))

        finished_at = clock.now
        finished = repository.finish_game(game.id)
        assert finished.completed_at == finished_at
        assert finished.is_finished
        assert len(finished.hole_results) == 1

    def test_finish_game_twice_keeps_first_timestamp(self, league):
        repository, season, alice, bob = league
        game = repository.start_game(season.id, "loc-pine", "course-north", 1, [alice.id, bob.id])
        first = repository.finish_game(game.id)
        second = repository.finish_game(game.id)
        assert second.completed_at == first.completed_at

    def test_finish_unknown_game(self, repository):
        with pytest.raises(NotFoundError):
            repository.finish_game("missing")

    def test_concurrent_results_are_not_lost(self, league):
        repository, season, alice, bob = league
        game = repository.start_game(season.id, "loc-pine", "course-north", 1, [alice.id, bob.id])
        errors = []

        def record(hole):
            try:
                repository.record_hole_result(game.id, HoleResult(hole, winners=[alice.id], losers=[bob.id]))
            except Exception as exc:  # surfaced below
                errors.append(exc)

        threads = [threading.Thread(target=record, args=(hole,)) for hole in range(1, 19)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        stored = repository.get_game(game.id)
        assert sorted(result.hole_number for result in stored.hole_results) == list(range(1, 19))
        assert score_for_player(stored, alice.id) == 18


class TestReports:
    """Tests for scorecards, standings, rankings and export."""

    def play(self, repository, season, course_id, players, outcomes, day=None, clock=None):
        if day is not None:
            clock.now = datetime(2024, 5, day, 9, 0)
        game = repository.start_game(season.id, "loc-pine", course_id, 1, players)
        for hole, (winners, losers) in enumerate(outcomes, start=1):
            repository.record_hole_result(game.id, HoleResult(hole, winners=winners, losers=losers))
        return repository.finish_game(game.id)

    def test_player_scorecards(self, league, clock):
        repository, season, alice, bob = league
        self.play(repository, season, "course-south", [alice.id, bob.id], [([bob.id], [alice.id])], day=20, clock=clock)
        self.play(repository, season, "course-north", [alice.id, bob.id], [([alice.id], [bob.id])] * 2, day=3, clock=clock)

        cards = repository.player_scorecards(alice.id)
        assert [(c.course_name, c.score, c.date_played) for c in cards] == [
            ("North", 2, date(2024, 5, 3)),
            ("South", -1, date(2024, 5, 20)),
        ]
        assert repository.player_scorecards("nobody") == []

    def test_season_standings(self, league):
        repository, season, alice, bob = league
        carol = repository.add_player("Carol")
        self.play(repository, season, "course-north", [alice.id, bob.id], [([alice.id], [bob.id])])
        self.play(repository, season, "course-south", [bob.id, carol.id], [([carol.id], [bob.id])] * 3)

        standings = repository.season_standings(season.id)
        assert [(s.player_id, s.score) for s in standings] == [(carol.id, 3), (alice.id, 1), (bob.id, -4)]
        assert repository.season_standings("missing") == []

    def test_course_rankings(self, league):
        repository, season, alice, bob = league
        self.play(repository, season, "course-north", [alice.id, bob.id], [([bob.id], [alice.id])])
        self.play(repository, season, "course-north", [alice.id, bob.id], [([alice.id], [bob.id])] * 3)
        self.play(repository, season, "course-south", [alice.id, bob.id], [([bob.id], [alice.id])] * 5)

        rankings = repository.course_rankings("course-north")
        assert [(c.player_id, c.score) for c in rankings] == [
            (alice.id, 3),
            (bob.id, 1),
            (alice.id, -1),
            (bob.id, -3),
        ]
        assert {c.course_name for c in rankings} == {"North"}

    def test_unknown_course_reported_with_placeholder(self, league):
        repository, season, alice, bob = league
        game = repository.start_game(season.id, "loc-gone", "course-gone", 1, [alice.id, bob.id])
        rankings = repository.course_rankings("course-gone")
        assert {c.course_name for c in rankings} == {"Unknown Course"}
        assert [c.course_name for c in repository.player_scorecards(alice.id)] == ["Unknown Course"]
        assert repository.get_game(game.id).course_id == "course-gone"

    def test_export(self, league):
        repository, season, alice, bob = league
        self.play(repository, season, "course-north", [alice.id, bob.id], [([alice.id], [bob.id])])

        csv = repository.export_season_stats_csv(season.id, date(2024, 6, 1))
        assert csv.splitlines() == [
            "Season,Player,Score,HoleInOnes,ExportedOn",
            f"{season.id},Alice,1,0,2024-06-01",
            f"{season.id},Bob,-1,0,2024-06-01",
        ]

    def test_export_defaults_to_today(self, league, clock):
        repository, season, alice, bob = league
        self.play(repository, season, "course-north", [alice.id, bob.id], [], day=4, clock=clock)
        clock.now = datetime(2024, 7, 4, 12, 0)
        lines = repository.export_season_stats_csv(season.id).splitlines()
        assert len(lines) == 3
        assert all(line.endswith(",2024-07-04") for line in lines[1:])

    def test_export_without_games_is_header_only(self, league):
        repository, season, _, _ = league
        assert repository.export_season_stats_csv(season.id) == "Season,Player,Score,HoleInOnes,ExportedOn"

    def test_removed_player_keeps_history(self, league):
        repository, season, alice, bob = league
        self.play(repository, season, "course-north", [alice.id, bob.id], [([alice.id], [bob.id])])
        repository.remove_player(alice.id)

        assert [c.score for c in repository.player_scorecards(alice.id)] == [1]
        assert [s.player_id for s in repository.season_standings(season.id)] == [alice.id, bob.id]
        csv = repository.export_season_stats_csv(season.id, date(2024, 6, 1))
        assert csv.splitlines()[1] == f"{season.id},Unknown,1,0,2024-06-01"


class TestNames:
    """Tests for name clean-up."""

    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    def test_blank_player_name_rejected(self, repository, name):
        with pytest.raises(InvalidNameError):
            repository.add_player(name)
        assert repository.list_players() == []

    def test_blank_season_name_rejected(self, repository):
        repository.add_player("Alice")
        with pytest.raises(InvalidNameError):
            repository.create_season("   ")
        assert repository.list_seasons() == []


class TestCourseOwnership:
    """A course id belongs to a single location on every backend."""

    def test_course_id_reused_by_other_location(self, league, pine_valley):
        repository, season, _, _ = league
        rival = CourseLocation(
            id="loc-rival",
            name="Rival Links",
            courses=(Course(id="course-north", name="Other", hole_count=9),),
        )
        with pytest.raises(CourseConflictError) as exc_info:
            repository.add_location(season.id, rival)

        assert "loc-pine" in str(exc_info.value)
        assert repository.list_locations(season.id) == [pine_valley]
        assert repository.find_course("course-north") == Course(id="course-north", name="North", hole_count=18)

    def test_course_listed_twice_in_one_location(self, league):
        repository, season, _, _ = league
        doubled = CourseLocation(
            id="loc-double",
            name="Double",
            courses=(Course(id="c-x", name="X", hole_count=9), Course(id="c-x", name="Y", hole_count=9)),
        )
        with pytest.raises(CourseConflictError):
            repository.add_location(season.id, doubled)
        assert repository.find_course("c-x") is None

    def test_course_can_move_once_released(self, league, pine_valley):
        repository, season, _, _ = league
        repository.add_location(season.id, CourseLocation(id=pine_valley.id, name=pine_valley.name, courses=pine_valley.courses[1:]))
        moved = CourseLocation(id="loc-new", name="New", courses=(Course(id="course-north", name="North", hole_count=18),))
        repository.add_location(season.id, moved)

        assert [(loc.id, [c.id for c in loc.courses]) for loc in repository.list_locations(season.id)] == [
            ("loc-new", ["course-north"]),
            ("loc-pine", ["course-south"]),
        ]


class TestGameLocks:
    """Per-game locks only live while a game is being written."""

    def test_unknown_games_leave_no_locks(self, repository):
        for index in range(200):
            with pytest.raises(NotFoundError):
                repository.finish_game(f"missing-{index}")
            with pytest.raises(NotFoundError):
                repository.record_hole_result(f"missing-{index}", HoleResult(1))
        assert len(repository._game_locks) == 0

    def test_locks_released_after_concurrent_writes(self, league):
        repository, season, alice, bob = league
        game = repository.start_game(season.id, "loc-pine", "course-north", 1, [alice.id, bob.id])
        threads = [
            threading.Thread(
                target=repository.record_hole_result,
                args=(game.id, HoleResult(hole, winners=[alice.id], losers=[bob.id])),
            )
            for hole in range(1, 10)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        repository.finish_game(game.id)

        assert len(repository._game_locks) == 0
        assert len(repository.get_game(game.id).hole_results) == 9


def test_keyed_locks_track_holders():
    locks = KeyedLocks()
    with locks.hold("g1"):
        with locks.hold("g2"):
            assert len(locks) == 2
        assert len(locks) == 1
    assert len(locks) == 0

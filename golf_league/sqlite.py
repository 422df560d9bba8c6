"""SQLite repository for the golf_league domain models."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Sequence

from .models import Course, CourseLocation, Game, HoleOutcome, HoleResult, Player, Season
from .repository import GolfRepository

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS players (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS seasons (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS locations (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS courses (
    id TEXT PRIMARY KEY,
    location_id TEXT NOT NULL,
    name TEXT NOT NULL,
    hole_count INTEGER NOT NULL,
    position INTEGER NOT NULL,
    FOREIGN KEY (location_id) REFERENCES locations (id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_courses_location ON courses (location_id);

CREATE TABLE IF NOT EXISTS season_locations (
    season_id TEXT NOT NULL,
    location_id TEXT NOT NULL,
    PRIMARY KEY (season_id, location_id),
    FOREIGN KEY (season_id) REFERENCES seasons (id) ON DELETE CASCADE,
    FOREIGN KEY (location_id) REFERENCES locations (id) ON DELETE CASCADE
);

-- Location and course ids are kept as plain references: games outlive the
-- catalog entries they were played on and report them as unknown courses.
CREATE TABLE IF NOT EXISTS games (
    id TEXT PRIMARY KEY,
    season_id TEXT NOT NULL,
    location_id TEXT NOT NULL,
    course_id TEXT NOT NULL,
    started_at TEXT NOT NULL,
    completed_at TEXT,
    starting_hole INTEGER NOT NULL,
    FOREIGN KEY (season_id) REFERENCES seasons (id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_games_season ON games (season_id);
CREATE INDEX IF NOT EXISTS idx_games_course ON games (course_id);

-- Player ids are not foreign keys so that removing a player keeps history.
CREATE TABLE IF NOT EXISTS game_players (
    game_id TEXT NOT NULL,
    player_id TEXT NOT NULL,
    position INTEGER NOT NULL,
    PRIMARY KEY (game_id, player_id),
    FOREIGN KEY (game_id) REFERENCES games (id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_game_players_player ON game_players (player_id);

CREATE TABLE IF NOT EXISTS hole_results (
    id TEXT PRIMARY KEY,
    game_id TEXT NOT NULL,
    sequence INTEGER NOT NULL,
    hole_number INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE (game_id, sequence),
    FOREIGN KEY (game_id) REFERENCES games (id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS hole_result_players (
    hole_result_id TEXT NOT NULL,
    player_id TEXT NOT NULL,
    outcome_type TEXT,
    hole_in_one INTEGER NOT NULL DEFAULT 0,
    position INTEGER NOT NULL,
    PRIMARY KEY (hole_result_id, player_id),
    FOREIGN KEY (hole_result_id) REFERENCES hole_results (id) ON DELETE CASCADE
);
"""


def _iso_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _placeholders(values: Sequence[object]) -> str:
    return ",".join("?" for _ in values)


class SqliteGolfRepository(GolfRepository):
    """Persistence layer backed by SQLite.

    Every call opens its own connection and commits, or rolls back, as a
    single transaction.
    """

    def __init__(self, path: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._path = path

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _snapshot(self) -> Iterator[sqlite3.Connection]:
        """Connection whose reads all see the same committed state."""

        with self._connection() as conn:
            conn.execute("BEGIN")
            yield conn

    def initialize_schema(self) -> None:
        """Create tables if they do not already exist."""

        with self._connection() as conn:
            conn.executescript(SCHEMA)
        logger.debug("Schema ready at %s", self._path)

    # Player operations -------------------------------------------------
    def _insert_player(self, player: Player) -> None:
        with self._connection() as conn:
            conn.execute("INSERT INTO players (id, name) VALUES (?, ?)", (player.id, player.name))

    def _delete_player(self, player_id: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
        return cursor.rowcount > 0

    def list_players(self) -> List[Player]:
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM players ORDER BY name, id").fetchall()
        return [Player(id=row["id"], name=row["name"]) for row in rows]

    # Season operations -------------------------------------------------
    def _insert_season(self, season: Season) -> None:
        with self._connection() as conn:
            conn.execute(
                "INSERT INTO seasons (id, name, created_at) VALUES (?, ?, ?)",
                (season.id, season.name, _iso_datetime(season.created_at)),
            )

    @staticmethod
    def _season_from_row(row: sqlite3.Row) -> Season:
        return Season(id=row["id"], name=row["name"], created_at=_parse_datetime(row["created_at"]))

    def get_season(self, season_id: str) -> Optional[Season]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM seasons WHERE id = ?", (season_id,)).fetchone()
        if row is None:
            return None
        return self._season_from_row(row)

    def list_seasons(self) -> List[Season]:
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM seasons ORDER BY created_at DESC, id").fetchall()
        return [self._season_from_row(row) for row in rows]

    # Location operations -----------------------------------------------
    def _insert_location(self, season_id: str, location: CourseLocation) -> None:
        course_ids = [course.id for course in location.courses]
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO locations (id, name) VALUES (?, ?)
                ON CONFLICT (id) DO UPDATE SET name = excluded.name
                """,
                (location.id, location.name),
            )
            conn.execute(
                f"DELETE FROM courses WHERE location_id = ? AND id NOT IN ({_placeholders(course_ids)})",
                [location.id, *course_ids],
            )
            conn.executemany(
                """
                INSERT INTO courses (id, location_id, name, hole_count, position)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    name = excluded.name,
                    hole_count = excluded.hole_count,
                    position = excluded.position
                """,
                [
                    (course.id, location.id, course.name, course.hole_count, position)
                    for position, course in enumerate(location.courses)
                ],
            )
            conn.execute(
                "INSERT OR IGNORE INTO season_locations (season_id, location_id) VALUES (?, ?)",
                (season_id, location.id),
            )

    def list_locations(self, season_id: str) -> List[CourseLocation]:
        with self._snapshot() as conn:
            locations = conn.execute(
                """
                SELECT locations.* FROM locations
                INNER JOIN season_locations ON season_locations.location_id = locations.id
                WHERE season_locations.season_id = ?
                ORDER BY locations.name, locations.id
                """,
                (season_id,),
            ).fetchall()
            courses: Dict[str, List[Course]] = {}
            for row in conn.execute(
                """
                SELECT courses.* FROM courses
                INNER JOIN season_locations ON season_locations.location_id = courses.location_id
                WHERE season_locations.season_id = ?
                ORDER BY courses.position
                """,
                (season_id,),
            ):
                courses.setdefault(row["location_id"], []).append(
                    Course(id=row["id"], name=row["name"], hole_count=row["hole_count"])
                )
        return [
            CourseLocation(id=row["id"], name=row["name"], courses=tuple(courses.get(row["id"], [])))
            for row in locations
        ]

    def find_course(self, course_id: str) -> Optional[Course]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM courses WHERE id = ?", (course_id,)).fetchone()
        if row is None:
            return None
        return Course(id=row["id"], name=row["name"], hole_count=row["hole_count"])

    def _course_location_id(self, course_id: str) -> Optional[str]:
        with self._connection() as conn:
            row = conn.execute("SELECT location_id FROM courses WHERE id = ?", (course_id,)).fetchone()
        return row["location_id"] if row is not None else None

    # Game operations ---------------------------------------------------
    def _insert_game(self, game: Game) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO games (
                    id,
                    season_id,
                    location_id,
                    course_id,
                    started_at,
                    completed_at,
                    starting_hole
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    game.id,
                    game.season_id,
                    game.location_id,
                    game.course_id,
                    _iso_datetime(game.started_at),
                    _iso_datetime(game.completed_at) if game.completed_at else None,
                    game.starting_hole,
                ),
            )
            conn.executemany(
                "INSERT INTO game_players (game_id, player_id, position) VALUES (?, ?, ?)",
                [(game.id, player_id, position) for position, player_id in enumerate(game.player_ids)],
            )

    def _append_hole_result(self, game_id: str, result: HoleResult, recorded_at: datetime) -> None:
        hole_result_id = self._new_id()
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO hole_results (id, game_id, sequence, hole_number, created_at)
                VALUES (
                    ?, ?,
                    (SELECT COALESCE(MAX(sequence), -1) + 1 FROM hole_results WHERE game_id = ?),
                    ?, ?
                )
                """,
                (hole_result_id, game_id, game_id, result.hole_number, _iso_datetime(recorded_at)),
            )
            rows = []
            for position, player_id in enumerate(result.player_ids()):
                outcome = result.outcome_for(player_id)
                rows.append(
                    (
                        hole_result_id,
                        player_id,
                        None if outcome is HoleOutcome.NONE else outcome.value,
                        int(player_id in result.hole_in_one_players),
                        position,
                    )
                )
            conn.executemany(
                """
                INSERT INTO hole_result_players (hole_result_id, player_id, outcome_type, hole_in_one, position)
                VALUES (?, ?, ?, ?, ?)
                """,
                rows,
            )

    def _set_completed(self, game_id: str, completed_at: datetime) -> None:
        with self._connection() as conn:
            conn.execute(
                "UPDATE games SET completed_at = ? WHERE id = ?",
                (_iso_datetime(completed_at), game_id),
            )

    def _load_games(self, conn: sqlite3.Connection, rows: List[sqlite3.Row]) -> List[Game]:
        game_ids = [row["id"] for row in rows]
        if not game_ids:
            return []
        marks = _placeholders(game_ids)

        players: Dict[str, List[str]] = {}
        for row in conn.execute(
            f"SELECT * FROM game_players WHERE game_id IN ({marks}) ORDER BY position", game_ids
        ):
            players.setdefault(row["game_id"], []).append(row["player_id"])

        members: Dict[str, List[sqlite3.Row]] = {}
        for row in conn.execute(
            f"""
            SELECT hole_result_players.* FROM hole_result_players
            INNER JOIN hole_results ON hole_results.id = hole_result_players.hole_result_id
            WHERE hole_results.game_id IN ({marks})
            ORDER BY hole_result_players.position
            """,
            game_ids,
        ):
            members.setdefault(row["hole_result_id"], []).append(row)

        results: Dict[str, List[HoleResult]] = {}
        for row in conn.execute(
            f"SELECT * FROM hole_results WHERE game_id IN ({marks}) ORDER BY sequence", game_ids
        ):
            entries = members.get(row["id"], [])
            results.setdefault(row["game_id"], []).append(
                HoleResult(
                    hole_number=row["hole_number"],
                    winners=tuple(e["player_id"] for e in entries if e["outcome_type"] == HoleOutcome.WIN.value),
                    losers=tuple(e["player_id"] for e in entries if e["outcome_type"] == HoleOutcome.LOSS.value),
                    hole_in_one_players=tuple(e["player_id"] for e in entries if e["hole_in_one"]),
                )
            )

        return [
            Game(
                id=row["id"],
                season_id=row["season_id"],
                location_id=row["location_id"],
                course_id=row["course_id"],
                starting_hole=row["starting_hole"],
                started_at=_parse_datetime(row["started_at"]),
                completed_at=_parse_datetime(row["completed_at"]),
                player_ids=tuple(players.get(row["id"], [])),
                hole_results=tuple(results.get(row["id"], [])),
            )
            for row in rows
        ]

    def _query_games(self, where: str, params: tuple) -> List[Game]:
        with self._snapshot() as conn:
            rows = conn.execute(
                f"SELECT games.* FROM games {where} ORDER BY games.started_at, games.id", params
            ).fetchall()
            return self._load_games(conn, rows)

    def _find_game(self, game_id: str) -> Optional[Game]:
        games = self._query_games("WHERE games.id = ?", (game_id,))
        return games[0] if games else None

    def list_games(self, season_id: str) -> List[Game]:
        return self._query_games("WHERE games.season_id = ?", (season_id,))

    def games_for_player(self, player_id: str) -> List[Game]:
        return self._query_games(
            "INNER JOIN game_players ON game_players.game_id = games.id WHERE game_players.player_id = ?",
            (player_id,),
        )

    def games_for_course(self, course_id: str) -> List[Game]:
        return self._query_games("WHERE games.course_id = ?", (course_id,))


__all__ = ["SCHEMA", "SqliteGolfRepository"]

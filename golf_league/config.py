"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import GolfLeagueError
from .memory import InMemoryGolfRepository
from .repository import GolfRepository
from .sqlite import SqliteGolfRepository

BACKENDS = ("sqlite", "memory")


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    backend: str = "sqlite"
    db_path: str = "golf_league.db"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        backend = env.get("GOLF_LEAGUE_BACKEND", cls.backend).strip().lower()
        if backend not in BACKENDS:
            raise GolfLeagueError(f"Unsupported GOLF_LEAGUE_BACKEND {backend!r}; expected one of {BACKENDS}")
        return cls(backend=backend, db_path=env.get("GOLF_LEAGUE_DB_PATH", cls.db_path))


def build_repository(settings: Settings) -> GolfRepository:
    """Instantiate the backend named by ``settings``."""

    if settings.backend == "memory":
        return InMemoryGolfRepository()
    return SqliteGolfRepository(settings.db_path)


__all__ = ["BACKENDS", "Settings", "build_repository"]

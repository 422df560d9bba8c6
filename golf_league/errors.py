"""Exceptions raised by the golf_league repositories."""

from __future__ import annotations


class GolfLeagueError(Exception):
    """Base class for every error raised by golf_league."""


class NotFoundError(GolfLeagueError, LookupError):
    """Raised when an operation references an unknown entity."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class PreconditionFailedError(GolfLeagueError):
    """Raised when the stored state does not allow the requested operation."""


class InvalidHoleResultError(GolfLeagueError, ValueError):
    """Raised for hole results that contradict themselves or their game."""


class CourseConflictError(PreconditionFailedError):
    """Raised when a course id is already used by another location."""


class InvalidNameError(GolfLeagueError, ValueError):
    """Raised for names that are empty once surrounding whitespace is removed."""


__all__ = [
    "CourseConflictError",
    "GolfLeagueError",
    "InvalidHoleResultError",
    "InvalidNameError",
    "NotFoundError",
    "PreconditionFailedError",
]

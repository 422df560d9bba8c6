"""
Shared pytest fixtures for golf_league tests.
"""

import itertools
from datetime import datetime, timedelta

import pytest

from golf_league import Course, CourseLocation, InMemoryGolfRepository, SqliteGolfRepository


class StepClock:
    """Clock that moves forward one step on every reading.

    Tests may assign ``now`` to jump to another day.
    """

    def __init__(self, start=datetime(2024, 5, 1, 9, 0), step=timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now = current + self.step
        return current


def sequential_ids(prefix="id"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter):04d}"


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def memory_repository(clock):
    return InMemoryGolfRepository(clock=clock, id_factory=sequential_ids())


@pytest.fixture
def sqlite_repository(tmp_path, clock):
    repository = SqliteGolfRepository(str(tmp_path / "golf.db"), clock=clock, id_factory=sequential_ids())
    repository.initialize_schema()
    return repository


@pytest.fixture(params=["memory", "sqlite"])
def repository(request):
    """Each facade test runs once per backend."""
    return request.getfixturevalue(f"{request.param}_repository")


@pytest.fixture
def pine_valley():
    return CourseLocation(
        id="loc-pine",
        name="Pine Valley",
        courses=(
            Course(id="course-north", name="North", hole_count=18),
            Course(id="course-south", name="South", hole_count=9),
        ),
    )


@pytest.fixture
def league(repository, pine_valley):
    """Two players and a season with one location."""
    alice = repository.add_player("Alice")
    bob = repository.add_player("Bob")
    season = repository.create_season("Spring 2024")
    repository.add_location(season.id, pine_valley)
    return repository, season, alice, bob

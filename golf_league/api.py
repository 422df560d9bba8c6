"""FastAPI application exposing the golf league repository."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, build_repository
from .errors import CourseConflictError, InvalidHoleResultError, NotFoundError, PreconditionFailedError
from .models import (
    Course,
    CourseLocation,
    Game,
    HoleResult,
    PlayerScorecard,
    Season,
    new_id,
)
from .repository import GolfRepository
from .sqlite import SqliteGolfRepository


app = FastAPI(title="Golf League API")

_repository = build_repository(Settings.from_env())


@app.on_event("startup")
def _initialize_schema() -> None:
    if isinstance(_repository, SqliteGolfRepository):
        _repository.initialize_schema()


def get_repository() -> GolfRepository:
    """Provide the repository instance for FastAPI dependencies."""

    return _repository


class PlayerCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)


class PlayerResponse(BaseModel):
    id: str
    name: str


class SeasonCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)


class SeasonResponse(BaseModel):
    id: str
    name: str
    created_at: datetime


class CoursePayload(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    hole_count: int = Field(18, ge=1)


class CourseResponse(BaseModel):
    id: str
    name: str
    hole_count: int


class LocationCreate(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    courses: List[CoursePayload] = Field(default_factory=list)


class LocationResponse(BaseModel):
    id: str
    name: str
    courses: List[CourseResponse]


class GameCreate(BaseModel):
    season_id: str
    location_id: str
    course_id: str
    starting_hole: int = Field(1, ge=1)
    player_ids: List[str] = Field(..., min_length=1)


class HoleResultPayload(BaseModel):
    hole_number: int = Field(..., ge=1)
    winners: List[str] = Field(default_factory=list)
    losers: List[str] = Field(default_factory=list)
    hole_in_one_players: List[str] = Field(default_factory=list)


class GameResponse(BaseModel):
    id: str
    season_id: str
    location_id: str
    course_id: str
    starting_hole: int
    started_at: datetime
    completed_at: Optional[datetime]
    player_ids: List[str]
    hole_results: List[HoleResultPayload]


class ScorecardResponse(BaseModel):
    player_id: str
    course_name: str
    score: int
    date_played: date
    hole_in_one_count: int


class StandingResponse(BaseModel):
    player_id: str
    score: int
    hole_in_one_count: int


def _season_to_response(season: Season) -> SeasonResponse:
    return SeasonResponse(id=season.id, name=season.name, created_at=season.created_at)


def _location_to_response(location: CourseLocation) -> LocationResponse:
    return LocationResponse(
        id=location.id,
        name=location.name,
        courses=[
            CourseResponse(id=course.id, name=course.name, hole_count=course.hole_count)
            for course in location.courses
        ],
    )


def _game_to_response(game: Game) -> GameResponse:
    return GameResponse(
        id=game.id,
        season_id=game.season_id,
        location_id=game.location_id,
        course_id=game.course_id,
        starting_hole=game.starting_hole,
        started_at=game.started_at,
        completed_at=game.completed_at,
        player_ids=list(game.player_ids),
        hole_results=[
            HoleResultPayload(
                hole_number=result.hole_number,
                winners=list(result.winners),
                losers=list(result.losers),
                hole_in_one_players=list(result.hole_in_one_players),
            )
            for result in game.hole_results
        ],
    )


def _scorecard_to_response(card: PlayerScorecard) -> ScorecardResponse:
    return ScorecardResponse(
        player_id=card.player_id,
        course_name=card.course_name,
        score=card.score,
        date_played=card.date_played,
        hole_in_one_count=card.hole_in_one_count,
    )


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{exc.kind} not found")


# Players -------------------------------------------------------------------
@app.get("/players", response_model=List[PlayerResponse])
def list_players(repository: GolfRepository = Depends(get_repository)) -> List[PlayerResponse]:
    return [PlayerResponse(id=player.id, name=player.name) for player in repository.list_players()]


@app.post("/players", response_model=PlayerResponse, status_code=status.HTTP_201_CREATED)
def add_player(
    payload: PlayerCreate,
    repository: GolfRepository = Depends(get_repository),
) -> PlayerResponse:
    player = repository.add_player(payload.name)
    return PlayerResponse(id=player.id, name=player.name)


@app.delete("/players/{player_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_player(
    player_id: str,
    repository: GolfRepository = Depends(get_repository),
) -> Response:
    repository.remove_player(player_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/players/{player_id}/scorecards", response_model=List[ScorecardResponse])
def player_scorecards(
    player_id: str,
    repository: GolfRepository = Depends(get_repository),
) -> List[ScorecardResponse]:
    return [_scorecard_to_response(card) for card in repository.player_scorecards(player_id)]


# Seasons -------------------------------------------------------------------
@app.get("/seasons", response_model=List[SeasonResponse])
def list_seasons(repository: GolfRepository = Depends(get_repository)) -> List[SeasonResponse]:
    return [_season_to_response(season) for season in repository.list_seasons()]


@app.post("/seasons", response_model=SeasonResponse, status_code=status.HTTP_201_CREATED)
def create_season(
    payload: SeasonCreate,
    repository: GolfRepository = Depends(get_repository),
) -> SeasonResponse:
    try:
        season = repository.create_season(payload.name)
    except PreconditionFailedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _season_to_response(season)


@app.get("/seasons/{season_id}/locations", response_model=List[LocationResponse])
def list_locations(
    season_id: str,
    repository: GolfRepository = Depends(get_repository),
) -> List[LocationResponse]:
    return [_location_to_response(location) for location in repository.list_locations(season_id)]


@app.post(
    "/seasons/{season_id}/locations",
    response_model=LocationResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_location(
    season_id: str,
    payload: LocationCreate,
    repository: GolfRepository = Depends(get_repository),
) -> LocationResponse:
    location = CourseLocation(
        id=payload.id or new_id(),
        name=payload.name,
        courses=tuple(
            Course(id=course.id or new_id(), name=course.name, hole_count=course.hole_count)
            for course in payload.courses
        ),
    )
    try:
        repository.add_location(season_id, location)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    except CourseConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _location_to_response(location)


@app.get("/seasons/{season_id}/games", response_model=List[GameResponse])
def list_games(
    season_id: str,
    repository: GolfRepository = Depends(get_repository),
) -> List[GameResponse]:
    return [_game_to_response(game) for game in repository.list_games(season_id)]


@app.get("/seasons/{season_id}/standings", response_model=List[StandingResponse])
def season_standings(
    season_id: str,
    repository: GolfRepository = Depends(get_repository),
) -> List[StandingResponse]:
    return [
        StandingResponse(
            player_id=standing.player_id,
            score=standing.score,
            hole_in_one_count=standing.hole_in_one_count,
        )
        for standing in repository.season_standings(season_id)
    ]


@app.get("/seasons/{season_id}/export")
def export_season_stats(
    season_id: str,
    exported_on: Optional[date] = Query(None, alias="date"),
    repository: GolfRepository = Depends(get_repository),
) -> Response:
    body = repository.export_season_stats_csv(season_id, exported_on)
    return Response(content=body, media_type="text/csv")


# Games ---------------------------------------------------------------------
@app.post("/games", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
def start_game(
    payload: GameCreate,
    repository: GolfRepository = Depends(get_repository),
) -> GameResponse:
    try:
        game = repository.start_game(
            payload.season_id,
            payload.location_id,
            payload.course_id,
            payload.starting_hole,
            payload.player_ids,
        )
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    return _game_to_response(game)


@app.get("/games/{game_id}", response_model=GameResponse)
def get_game(
    game_id: str,
    repository: GolfRepository = Depends(get_repository),
) -> GameResponse:
    try:
        return _game_to_response(repository.get_game(game_id))
    except NotFoundError as exc:
        raise _not_found(exc) from exc


@app.post("/games/{game_id}/holes", response_model=GameResponse)
def record_hole_result(
    game_id: str,
    payload: HoleResultPayload,
    repository: GolfRepository = Depends(get_repository),
) -> GameResponse:
    try:
        result = HoleResult(
            hole_number=payload.hole_number,
            winners=tuple(payload.winners),
            losers=tuple(payload.losers),
            hole_in_one_players=tuple(payload.hole_in_one_players),
        )
        game = repository.record_hole_result(game_id, result)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    except InvalidHoleResultError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return _game_to_response(game)


@app.post("/games/{game_id}/finish", response_model=GameResponse)
def finish_game(
    game_id: str,
    repository: GolfRepository = Depends(get_repository),
) -> GameResponse:
    try:
        return _game_to_response(repository.finish_game(game_id))
    except NotFoundError as exc:
        raise _not_found(exc) from exc


# Courses -------------------------------------------------------------------
@app.get("/courses/{course_id}/rankings", response_model=List[ScorecardResponse])
def course_rankings(
    course_id: str,
    repository: GolfRepository = Depends(get_repository),
) -> List[ScorecardResponse]:
    return [_scorecard_to_response(card) for card in repository.course_rankings(course_id)]

"""
FastAPI Application - REST API for a presentation layer.

Endpoints:
    GET    /api/v1/health                 Service health
    GET    /api/v1/game                   Current game state
    POST   /api/v1/game/start             Start a new game
    POST   /api/v1/game/reset             Reset to the main menu
    POST   /api/v1/sprint/tickets/{id}    Add a backlog ticket to the sprint
    DELETE /api/v1/sprint/tickets/{id}    Return a sprint ticket to the backlog
    POST   /api/v1/sprint/start           Start the sprint
    POST   /api/v1/sprint/end             End the sprint early
    POST   /api/v1/sprint/plan            Close the review and plan the next sprint
    POST   /api/v1/tickets/{id}/work      Open a sprint ticket's puzzle
    GET    /api/v1/puzzle                 The open puzzle
    POST   /api/v1/puzzle/rotate          Rotate a tile
    POST   /api/v1/puzzle/reset           Restart the open puzzle from its definition
    POST   /api/v1/puzzle/save            Leave the puzzle, keeping progress
    POST   /api/v1/puzzle/complete        Hand in a solved puzzle
    POST   /api/v1/app/background         Host went to the background
    POST   /api/v1/app/foreground         Host came back

Game commands that are not allowed right now still answer 200 with
accepted=false; the game treats them as no-ops, not errors.
"""

from contextlib import asynccontextmanager
from typing import Union

from .. import __version__
from ..config import ALLOWED_ORIGINS, GameConfig
from ..errors import NoActivePuzzleError, PuzzleNotSolvedError


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates a file-backed one if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        CommandResponse,
        ErrorCode,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        PuzzleResponse,
        RotateRequest,
    )

    if service is None:
        from ..persistence.store import FileStore
        from ..session import AsyncioScheduler, GameSession, SessionMachine

        config = GameConfig.from_env()
        service = APIService(
            session=GameSession(
                machine=SessionMachine(config=config),
                store=FileStore(),
                scheduler=AsyncioScheduler(),
            )
        )
    api_service = service

    @asynccontextmanager
    async def lifespan(app):
        await api_service.startup()
        yield
        await api_service.shutdown()

    app = FastAPI(
        title="Code Flow API",
        description="""
Pipe-rotation puzzles planned into timed sprints.

## Flow

1. `POST /game/start` fills the backlog
2. Add tickets to the sprint, then `POST /sprint/start`
3. `POST /tickets/{id}/work` opens a puzzle; rotate tiles until `solved`
4. `POST /puzzle/complete` (or `/puzzle/save` to come back later)
5. When the sprint ends the game plans the next one; an overflowing backlog ends the game

## Error Codes

| Code | Description |
|------|-------------|
| `NO_ACTIVE_PUZZLE` | No puzzle is open |
| `PUZZLE_NOT_SOLVED` | Completion requested before the puzzle is solved |
| `VALIDATION_ERROR` | Invalid request (e.g. tile out of bounds) |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(NoActivePuzzleError)
    async def no_puzzle_handler(request, exc: NoActivePuzzleError):
        return make_error_response(ErrorCode.NO_ACTIVE_PUZZLE, str(exc), status_code=404)

    @app.exception_handler(PuzzleNotSolvedError)
    async def not_solved_handler(request, exc: PuzzleNotSolvedError):
        return make_error_response(ErrorCode.PUZZLE_NOT_SOLVED, str(exc), status_code=409)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return api_service.health()

    @app.get(
        "/api/v1/game",
        response_model=GameStateResponse,
        tags=["Game"],
        summary="Get the current game state",
    )
    async def get_game() -> GameStateResponse:
        return api_service.game_state()

    @app.post("/api/v1/game/start", response_model=CommandResponse, tags=["Game"])
    async def start_game() -> CommandResponse:
        """Start a new game, discarding any saved one."""
        return await api_service.start_game()

    @app.post("/api/v1/game/reset", response_model=CommandResponse, tags=["Game"])
    async def reset_game() -> CommandResponse:
        """Reset to the main menu, discarding any saved game."""
        return await api_service.reset_game()

    # =========================================================================
    # Sprint Endpoints
    # =========================================================================

    @app.post("/api/v1/sprint/tickets/{ticket_id}", response_model=CommandResponse, tags=["Sprint"])
    async def add_ticket(ticket_id: str) -> CommandResponse:
        return await api_service.add_ticket(ticket_id)

    @app.delete("/api/v1/sprint/tickets/{ticket_id}", response_model=CommandResponse, tags=["Sprint"])
    async def remove_ticket(ticket_id: str) -> CommandResponse:
        return await api_service.remove_ticket(ticket_id)

    @app.post("/api/v1/sprint/start", response_model=CommandResponse, tags=["Sprint"])
    async def start_sprint() -> CommandResponse:
        """Start the sprint; rejected while the sprint is empty."""
        return await api_service.start_sprint()

    @app.post("/api/v1/sprint/end", response_model=CommandResponse, tags=["Sprint"])
    async def end_sprint() -> CommandResponse:
        return await api_service.end_sprint()

    @app.post("/api/v1/sprint/plan", response_model=CommandResponse, tags=["Sprint"])
    async def plan_sprint() -> CommandResponse:
        return await api_service.plan_sprint()

    # =========================================================================
    # Puzzle Endpoints
    # =========================================================================

    @app.post("/api/v1/tickets/{ticket_id}/work", response_model=CommandResponse, tags=["Puzzle"])
    async def work_on_ticket(ticket_id: str) -> CommandResponse:
        """Open a sprint ticket's puzzle; completed tickets are rejected."""
        return await api_service.work_on(ticket_id)

    @app.get(
        "/api/v1/puzzle",
        response_model=PuzzleResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Puzzle"],
    )
    async def get_puzzle() -> PuzzleResponse:
        return api_service.puzzle_view()

    @app.post(
        "/api/v1/puzzle/rotate",
        response_model=PuzzleResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Tile out of bounds"},
            404: {"model": ErrorResponse, "description": "No puzzle open"},
        },
        tags=["Puzzle"],
    )
    async def rotate_tile(body: RotateRequest) -> Union[PuzzleResponse, JSONResponse]:
        """Rotate a tile a quarter turn. Locked tiles come back with changed=false."""
        try:
            return api_service.rotate(body.row, body.col)
        except IndexError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e))

    @app.post(
        "/api/v1/puzzle/reset",
        response_model=PuzzleResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Puzzle"],
    )
    async def reset_puzzle() -> PuzzleResponse:
        return api_service.reset_puzzle()

    @app.post(
        "/api/v1/puzzle/save",
        response_model=CommandResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Puzzle"],
    )
    async def save_puzzle() -> CommandResponse:
        return await api_service.save_puzzle()

    @app.post(
        "/api/v1/puzzle/complete",
        response_model=CommandResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Puzzle not solved"},
        },
        tags=["Puzzle"],
    )
    async def complete_puzzle() -> CommandResponse:
        return await api_service.complete_puzzle()

    # =========================================================================
    # Host Lifecycle Endpoints
    # =========================================================================

    @app.post("/api/v1/app/background", response_model=GameStateResponse, tags=["Host"])
    async def background() -> GameStateResponse:
        """Pause clocks and save."""
        return await api_service.enter_background()

    @app.post("/api/v1/app/foreground", response_model=GameStateResponse, tags=["Host"])
    async def foreground() -> GameStateResponse:
        return await api_service.enter_foreground()

    return app


# For running directly: uvicorn codeflow.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass

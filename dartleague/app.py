import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette import status

from dartleague.config import config
from dartleague.database import database
from dartleague.exceptions import (
    AlreadyLinked,
    DartLeagueError,
    ManualOverrideDisabled,
    NotFoundError,
    PartialMergeFailure,
    StoreError,
)
from dartleague.routes import league, players, tournaments
from dartleague.utils.alembic import alembic_run_migrations
from dartleague.utils.logging import logger


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    await database.connect()
    if config.auto_run_migrations:
        await asyncio.to_thread(alembic_run_migrations)
    logger.info("Dart league engine started")
    try:
        yield
    finally:
        await database.disconnect()


app = FastAPI(title="Dart League", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in config.cors_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DartLeagueError)
async def dart_league_exception_handler(_: Request, exc: DartLeagueError) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, AlreadyLinked):
        return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_409_CONFLICT)
    if isinstance(exc, PartialMergeFailure):
        return JSONResponse(
            {
                "detail": str(exc),
                "reports": [report.model_dump(mode="json") for report in exc.reports],
            },
            status_code=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, ManualOverrideDisabled):
        return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, StoreError):
        logger.error("Store failure: %s", exc)
        return JSONResponse(
            {"detail": "Database unavailable"}, status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    logger.exception("Unhandled league error")
    return JSONResponse(
        {"detail": str(exc)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(_: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        {"detail": exc.errors(include_url=False, include_context=False)},
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


@app.exception_handler(ValueError)
async def value_error_handler(_: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_400_BAD_REQUEST)


for router in (league.router, tournaments.router, players.router):
    app.include_router(router)

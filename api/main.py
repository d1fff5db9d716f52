import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from comments import router as comments_router
from core import config, db, errors
from dashboard import router as dashboard_router
from likes import router as likes_router
from playlists import router as playlists_router
from subscriptions import router as subscriptions_router
from tweets import router as tweets_router
from videos import router as videos_router

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

# Checked in order; NotFoundOrNotOwned stays a plain 404 like NotFound.
ERROR_STATUS: list[tuple[type[errors.CoreError], int]] = [
    (errors.InvalidArgument, 400),
    (errors.NotFoundOrNotOwned, 404),
    (errors.NotFound, 404),
    (errors.AlreadyExists, 409),
    (errors.UpstreamFailure, 502),
]


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="vidshare api", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(errors.CoreError)
async def core_error_handler(_: Request, exc: errors.CoreError) -> JSONResponse:
    status_code = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


app.include_router(videos_router.router, tags=["videos"])
app.include_router(comments_router.router, tags=["comments"])
app.include_router(tweets_router.router, tags=["tweets"])
app.include_router(likes_router.router, tags=["likes"])
app.include_router(subscriptions_router.router, tags=["subscriptions"])
app.include_router(playlists_router.router, tags=["playlists"])
app.include_router(dashboard_router.router, tags=["dashboard"])


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "database": "up" if await db.ping() else "down"}

# -*- coding: utf-8 -*-
"""FastAPI application for the epl-predictions backend."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import ALLOWED_ORIGINS, HOST, LOG_LEVEL, PORT
from .database import init_db
from .errors import BettingError
from .routers import bets, matches, predictions, teams, users
from .services import scheduler

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    scheduler.start_scheduler()
    yield
    scheduler.stop_scheduler()


app = FastAPI(title="EPL Predictions API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(teams.router, prefix="/api")
app.include_router(matches.router, prefix="/api")
app.include_router(predictions.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(bets.router, prefix="/api")
app.include_router(scheduler.router, prefix="/api")


@app.exception_handler(BettingError)
async def betting_error_handler(request: Request, exc: BettingError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


@app.get("/api/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


def run():
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("epl_predictions.main:app", host=HOST, port=PORT)

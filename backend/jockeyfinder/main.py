"""
Point d'entrée FastAPI — JockeyFinder : présences en réunion et demandes de monte.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jockeyfinder.database import init_db
from jockeyfinder.errors import CoreError
from jockeyfinder.api.meetings import router as meetings_router
from jockeyfinder.api.profiles import router as profiles_router
from jockeyfinder.api.requests import router as requests_router
from jockeyfinder.api.sync import router as sync_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("Base de données initialisée")
    yield


app = FastAPI(
    title="JockeyFinder",
    description="Coordination entraîneurs / jockeys / propriétaires autour des réunions de courses",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(profiles_router)
app.include_router(meetings_router)
app.include_router(requests_router)
app.include_router(sync_router)


@app.exception_handler(CoreError)
async def core_error_handler(request: Request, exc: CoreError):
    if exc.status_code >= 500:
        logger.error("%s %s : %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": str(exc.detail), "code": exc.error_code},
        headers=exc.headers,
    )


@app.get("/api/health")
async def health():
    return {"status": "ok"}

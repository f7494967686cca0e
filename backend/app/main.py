"""
FastAPI app entrypoint.

REST API (buildings, study spaces, availability reports, users), live building feed on /ws,
and the scheduler for per-building refresh timers and the WebSocket heartbeat.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from app.api.routes import auth, buildings, live, radar, study_spaces
from app.config import settings
from app.core.constants import HEARTBEAT_INTERVAL_SECONDS, HEARTBEAT_JOB_ID
from app.core.errors import StoreError, StudyRoomError, format_validation_errors, service_error_to_http
from app.db.session import SessionLocal, init_db
from app.services.live import BroadcastHub, BuildingRefresher, LiveUpdates, UpdateScheduler, make_snapshot
from app.services.radar import RadarClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop(), timezone="UTC")
    radar_client = RadarClient()
    hub = BroadcastHub(make_snapshot(SessionLocal))
    refresher = BuildingRefresher(hub, radar_client, SessionLocal)
    update_scheduler = UpdateScheduler(scheduler, refresher.refresh)

    scheduler.add_job(
        hub.heartbeat,
        "interval",
        seconds=HEARTBEAT_INTERVAL_SECONDS,
        id=HEARTBEAT_JOB_ID,
    )
    scheduler.start()

    app.state.scheduler = scheduler
    app.state.radar = radar_client
    app.state.live = LiveUpdates(hub=hub, refresher=refresher, update_scheduler=update_scheduler)
    if not radar_client.is_configured():
        logger.info("RADAR_SECRET_KEY not set; geofence sync disabled")
    logger.info("Backend ready (environment=%s)", settings.environment)
    yield
    update_scheduler.cancel_all()
    scheduler.shutdown(wait=False)
    await refresher.wait_for_syncs()


app = FastAPI(title="Study Room Finder", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the deployed frontend
_cors_origins = [
    "http://localhost:5000",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.debug("HTTP request %s %s", request.method, request.url.path)
    return await call_next(request)


@app.exception_handler(StudyRoomError)
async def handle_service_error(request: Request, exc: StudyRoomError):
    http_exc = service_error_to_http(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail}, headers=http_exc.headers)


@app.exception_handler(SQLAlchemyError)
async def handle_store_failure(request: Request, exc: SQLAlchemyError):
    """Store failures outside commit_or_raise (reads) surface as StoreError (500)."""
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return await handle_service_error(request, StoreError("database operation failed"))


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": format_validation_errors(exc.errors())})


app.include_router(auth.router, tags=["auth"])
app.include_router(buildings.router, prefix="/api", tags=["buildings"])
app.include_router(study_spaces.router, prefix="/api", tags=["study spaces"])
app.include_router(radar.router, prefix="/api", tags=["radar"])
app.include_router(live.router, tags=["live"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# Built Vue app (frontend/dist) when present; mounted last so API routes take precedence
_FRONTEND_DIST = Path(__file__).resolve().parent.parent.parent / "frontend" / "dist"
if _FRONTEND_DIST.is_dir():
    app.mount("/", StaticFiles(directory=_FRONTEND_DIST, html=True), name="frontend")

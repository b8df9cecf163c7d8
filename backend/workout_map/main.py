"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from workout_map.config import settings
from workout_map.database import Base, engine
from workout_map.exceptions import AppError

# Import routers
from workout_map.routers import orgs, requests

# Import all models so Base.metadata knows about them
from workout_map.models.org import Org                      # noqa: F401
from workout_map.models.location import Location            # noqa: F401
from workout_map.models.event import Event, EventType       # noqa: F401
from workout_map.models.user import User, RoleAssignment    # noqa: F401
from workout_map.models.update_request import UpdateRequest  # noqa: F401

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Workout Map",
    description="Update-request moderation for the region/AO/location/event map",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Register routers
app.include_router(requests.router, prefix="/api/requests", tags=["UpdateRequests"])
app.include_router(orgs.router, prefix="/api/orgs", tags=["Orgs"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}

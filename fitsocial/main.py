"""Application entry point for the local social sync service."""
from __future__ import annotations

import logging
import os
from typing import Iterable

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import init_db
from .errors import (
    AlreadyFollowing,
    AlreadyRegistered,
    ApprovalRequired,
    ConcurrentModification,
    FollowingNotAllowed,
    InvalidRequest,
    NetworkError,
    NotAuthenticated,
    ProfileNotFound,
    SchemaMisconfigured,
    ServerError,
    SocialError,
    UserNotFound,
    UsernameTaken,
)
from .routers import feed_router, follows_router, profiles_router, settings_router, system_router
from .schemas import FollowActionResponse
from .services import create_core

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version

app = FastAPI(title=APP_NAME, version=API_VERSION)

cors_origins = os.getenv("CORS_ORIGINS")
if cors_origins:
    origins: Iterable[str] = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
else:
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(profiles_router)
app.include_router(follows_router)
app.include_router(feed_router)
app.include_router(settings_router)
app.include_router(system_router)

_STATUS_CODES: dict[type[SocialError], int] = {
    NotAuthenticated: status.HTTP_401_UNAUTHORIZED,
    UsernameTaken: status.HTTP_409_CONFLICT,
    AlreadyRegistered: status.HTTP_409_CONFLICT,
    AlreadyFollowing: status.HTTP_409_CONFLICT,
    ConcurrentModification: status.HTTP_409_CONFLICT,
    FollowingNotAllowed: status.HTTP_403_FORBIDDEN,
    UserNotFound: status.HTTP_404_NOT_FOUND,
    ProfileNotFound: status.HTTP_404_NOT_FOUND,
    InvalidRequest: status.HTTP_400_BAD_REQUEST,
    NetworkError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ServerError: status.HTTP_502_BAD_GATEWAY,
    SchemaMisconfigured: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@app.exception_handler(SocialError)
async def _social_error_handler(request: Request, exc: SocialError) -> JSONResponse:
    if isinstance(exc, ApprovalRequired):
        payload = FollowActionResponse(
            target_id=exc.relationship.following_id,
            status="pending",
            relationship=exc.relationship,
        )
        return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content=payload.model_dump(mode="json"))

    status_code = _STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


@app.on_event("startup")
async def _startup() -> None:
    """Ensure the store schema exists and build the core before serving."""

    try:
        init_db()
    except Exception:  # pragma: no cover - best effort logging
        logger.exception("Database initialisation failed")
        raise

    app.state.core = create_core(settings)
    logger.info("Social core ready (%s %s)", APP_NAME, API_VERSION)


@app.on_event("shutdown")
async def _shutdown() -> None:
    core = getattr(app.state, "core", None)
    if core is not None:
        core.close()


@app.get("/api", tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": APP_NAME, "version": API_VERSION}

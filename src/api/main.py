"""FastAPI application entry point."""

import os
import sys
import logging
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Must run before importing modules that read env vars at import time
load_dotenv()

# main.py is at src/api/main.py
_src_path = Path(__file__).parent.parent
sys.path.insert(0, str(_src_path))

from api.routes import auth, health
from utils.logging import setup_structured_logging
from adapter.external.smtp_notifier import SmtpNotifier
from adapter.mongodb.connection import close_client, get_mongodb_client, DATABASE_NAME
from adapter.mongodb.indexes import ensure_all_indexes
from adapter.mongodb.user_repository import MongoUserRepository
from adapter.system.clock import SystemClock
from adapter.system.scheduler import TimerScheduler
from domain.model.errors import InternalError
from services.auth_service import AuthService

setup_structured_logging()

logger = logging.getLogger(__name__)

# Read version from pyproject.toml (single source of truth)
_project_root = _src_path.parent
with open(_project_root / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]

SERVICE_NAME = "Keygate Credential Service"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    app.state.clock = SystemClock()
    app.state.scheduler = TimerScheduler()
    app.state.notifier = SmtpNotifier()

    client = get_mongodb_client()
    if client:
        db = client[DATABASE_NAME]
        if ensure_all_indexes(db):
            logger.info("MongoDB indexes verified/created successfully")
        else:
            logger.warning("Failed to create some MongoDB indexes")

        # Expiry timers do not survive a restart
        service = AuthService(
            repo=MongoUserRepository(db),
            notifier=app.state.notifier,
            clock=app.state.clock,
            scheduler=app.state.scheduler,
        )
        try:
            service.expire_stale_passkeys()
        except InternalError as e:
            logger.warning("Failed to expire stale passkeys: %s", e)
    else:
        logger.warning("MongoDB unavailable, skipping index creation")

    yield

    app.state.scheduler.shutdown()
    close_client()


app = FastAPI(
    title=SERVICE_NAME,
    description="Registration, login and passkey-based password reset",
    version=VERSION,
    lifespan=lifespan,
)

# Wildcard origins cannot be combined with credentials in browsers
cors_origins_env = os.getenv("CORS_ORIGINS", "*")

if cors_origins_env == "*":
    cors_origins = ["*"]
    allow_credentials = False
    logger.warning(
        "CORS configured with wildcard origin ('*'). "
        "For production, set CORS_ORIGINS to specific domains (e.g., 'https://app.example.com')"
    )
else:
    cors_origins = [origin.strip() for origin in cors_origins_env.split(",")]
    allow_credentials = True
    logger.info(f"CORS configured with specific origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(auth.router)
app.include_router(health.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        access_log=False  # structured application logs only
    )

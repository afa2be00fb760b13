from fastapi import Depends, HTTPException, Request

from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.user_repository import MongoUserRepository
from port.user_repository import UserRepository
from services.auth_service import AuthService


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def get_user_repo() -> UserRepository:
    return MongoUserRepository(_get_db())


def get_auth_service(
    request: Request,
    repo: UserRepository = Depends(get_user_repo),
) -> AuthService:
    """Build the auth service around the app-wide notifier, clock and scheduler."""
    state = request.app.state
    return AuthService(
        repo=repo,
        notifier=state.notifier,
        clock=state.clock,
        scheduler=state.scheduler,
    )

"""FastAPI application that exposes the user management endpoints."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import ServiceConfig, load_settings
from .database import SQLiteUserRepository
from .errors import DuplicateEmailError, InvalidArgumentError, UserNotFoundError
from .models import User
from .repository import UserRepository
from .security import TokenAuth, load_tokens_from_env
from .service import UserService

logger = logging.getLogger("usermanager.api")


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime


class CreateUserRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=320)


class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=320)


class UserExistsResponse(BaseModel):
    id: int
    exists: bool


def user_to_response(user: User) -> UserResponse:
    if user.id is None:
        raise RuntimeError("Cannot serialise a user that has not been persisted")
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        created_at=user.created_at,
    )


def _build_default_service(config: ServiceConfig) -> UserService:
    repository = SQLiteUserRepository(config.database_path)
    repository.initialize()
    logger.info("Using SQLite user store at %s", config.database_path)
    return UserService(repository)


def create_app(
    *,
    service: UserService | None = None,
    repository: UserRepository | None = None,
    auth: TokenAuth | None = None,
    config: ServiceConfig | None = None,
) -> FastAPI:
    """Build the API application.

    ``service`` wins over ``repository``; with neither, a SQLite repository is
    created from ``config`` (or the environment when ``config`` is omitted).
    """
    if service is None:
        if repository is not None:
            service = UserService(repository)
        else:
            if config is None:
                config = load_settings()
            service = _build_default_service(config)

    if auth is None:
        tokens = list(config.api_tokens) if config is not None else load_tokens_from_env()
        if tokens:
            auth = TokenAuth(tokens)

    app = FastAPI(
        title="User Manager",
        description="Create, read, update and delete user accounts",
        version="1.0.0",
    )
    app.state.service = service
    app.state.repository = service.repository

    def get_service() -> UserService:
        return service

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    dependencies = [Depends(auth)] if auth is not None else []
    protected_router = APIRouter(prefix="/v1", dependencies=dependencies)

    @protected_router.get("/users", response_model=List[UserResponse])
    def list_users(svc: UserService = Depends(get_service)) -> List[UserResponse]:
        return [user_to_response(user) for user in svc.find_all_users()]

    @protected_router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
    def create_user(payload: CreateUserRequest, svc: UserService = Depends(get_service)) -> UserResponse:
        user = svc.create_user(payload.name, payload.email)
        return user_to_response(user)

    @protected_router.get("/users/{user_id}", response_model=UserResponse)
    def read_user(user_id: int, svc: UserService = Depends(get_service)) -> UserResponse:
        user = svc.find_user_by_id(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user_to_response(user)

    @protected_router.patch("/users/{user_id}", response_model=UserResponse)
    def update_user(
        user_id: int,
        payload: UpdateUserRequest,
        svc: UserService = Depends(get_service),
    ) -> UserResponse:
        user = svc.update_user(user_id, payload.name, payload.email)
        return user_to_response(user)

    @protected_router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_user(user_id: int, svc: UserService = Depends(get_service)) -> Response:
        svc.delete_user(user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @protected_router.get("/users/{user_id}/exists", response_model=UserExistsResponse)
    def user_exists(user_id: int, svc: UserService = Depends(get_service)) -> UserExistsResponse:
        return UserExistsResponse(id=user_id, exists=svc.user_exists(user_id))

    app.include_router(protected_router)

    @app.exception_handler(UserNotFoundError)
    async def handle_user_not_found(_: object, exc: UserNotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(DuplicateEmailError)
    async def handle_duplicate_email(_: object, exc: DuplicateEmailError):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(InvalidArgumentError)
    async def handle_invalid_argument(_: object, exc: InvalidArgumentError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    return app


__all__ = ["create_app", "user_to_response", "UserResponse"]

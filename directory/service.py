"""HTTP API exposing the user directory record store."""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_seed_users, load_settings
from .schemas import ErrorResponse, UserCreate, UserResponse, UserUpdate, format_validation_errors
from .store import UserStore, default_seed_users

logger = logging.getLogger("userdirectory.service")

USER_NOT_FOUND = "User not found"

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _message_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as a ``{"message": ...}`` body."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = format_validation_errors(exc.errors())
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, message)
        return _message_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _message_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error for %s %s", request.method, request.url.path, exc_info=exc)
        return _message_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_api_routes(app: FastAPI, store: UserStore) -> None:
    """Expose the JSON user endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/users", response_model=List[UserResponse], responses=_ERROR_RESPONSES)
    async def list_users() -> List[UserResponse]:
        try:
            users = store.list_all()
        except Exception as exc:
            logger.exception("Failed to list users")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch users"
            ) from exc
        return [UserResponse.from_user(user) for user in users]

    @app.get("/api/users/{user_id}", response_model=UserResponse, responses=_ERROR_RESPONSES)
    async def get_user(user_id: str) -> UserResponse:
        try:
            user = store.get(user_id)
        except Exception as exc:
            logger.exception("Failed to fetch user %s", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch user"
            ) from exc
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
        return UserResponse.from_user(user)

    @app.post(
        "/api/users",
        status_code=status.HTTP_201_CREATED,
        response_model=UserResponse,
        responses=_ERROR_RESPONSES,
    )
    async def create_user(payload: UserCreate) -> UserResponse:
        try:
            user = store.create(payload.to_store_fields())
        except ValueError as exc:
            logger.warning("Rejected new user %s: %s", payload.email, exc)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Failed to create user")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create user"
            ) from exc
        return UserResponse.from_user(user)

    @app.patch("/api/users/{user_id}", response_model=UserResponse, responses=_ERROR_RESPONSES)
    async def update_user(user_id: str, payload: UserUpdate) -> UserResponse:
        try:
            user = store.update(user_id, payload.to_store_fields())
        except ValueError as exc:
            logger.warning("Rejected update for user %s: %s", user_id, exc)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Failed to update user %s", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update user"
            ) from exc
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
        return UserResponse.from_user(user)

    @app.delete(
        "/api/users/{user_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        responses=_ERROR_RESPONSES,
    )
    async def delete_user(user_id: str) -> Response:
        try:
            deleted = store.delete(user_id)
        except Exception as exc:
            logger.exception("Failed to delete user %s", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete user"
            ) from exc
        if not deleted:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
        return Response(status_code=status.HTTP_204_NO_CONTENT)


def build_store(settings: Settings) -> UserStore:
    """Create the process-wide store and load its startup records."""

    store = UserStore()
    if not settings.seed_sample_users:
        return store

    if settings.seed_file is not None:
        records = load_seed_users(settings.seed_file)
        logger.info("Seeding %d user(s) from %s", len(records), settings.seed_file)
    else:
        records = default_seed_users()
    store.seed(records)
    return store


def create_app(
    *,
    store: UserStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the user directory."""

    app_settings = settings or load_settings()
    user_store = store if store is not None else build_store(app_settings)

    app = FastAPI(
        title="User Directory API",
        version="0.1.0",
        description="Create, browse, update and remove user profiles.",
    )
    app.state.store = user_store
    app.state.settings = app_settings

    register_exception_handlers(app)
    register_api_routes(app, user_store)

    return app


__all__ = ["build_store", "create_app", "register_api_routes", "register_exception_handlers"]

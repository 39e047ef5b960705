"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthRequiredError, InvalidTokenError
from app.core.security import PasswordHasher, TokenError, TokenService
from app.db.session import get_session
from app.services.images import ImageStore

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with get_session(request.app.state.session_factory) as session:
        yield session


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store


async def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> int:
    """Authenticate the bearer token and expose the caller's id.

    The id is also stored on ``request.state.user_id``; handlers must not
    take the caller's identity from anywhere else.
    """
    if credentials is None or not credentials.credentials:
        raise AuthRequiredError()

    try:
        user_id = tokens.verify(credentials.credentials)
    except TokenError as exc:
        raise InvalidTokenError() from exc

    request.state.user_id = user_id
    return user_id

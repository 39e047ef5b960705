"""Registration and login endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_password_hasher, get_token_service
from app.core.errors import ValidationError
from app.core.security import PasswordHasher, TokenService
from app.schemas.auth import LoginRequest, RegisterRequest, RegisterResponse, TokenResponse
from app.services.users import authenticate_user, create_user, update_password_hash

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

INVALID_CREDENTIALS = "Invalid username or password"


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> RegisterResponse:
    user = await create_user(
        session,
        username=payload.username,
        email=payload.email,
        password_hash=hasher.hash(payload.password),
    )
    await session.commit()
    return RegisterResponse(userId=user.id, username=user.username)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    user = await authenticate_user(session, hasher, payload.username, payload.password)
    if not user:
        logger.info("Failed login for username %r", payload.username)
        raise ValidationError(INVALID_CREDENTIALS)

    if hasher.needs_rehash(user.password_hash):
        await update_password_hash(session, user, hasher.hash(payload.password))
        await session.commit()
        logger.info("Rehashed password for user %s with current cost", user.id)

    logger.info("User %s logged in", user.id)
    return TokenResponse(token=tokens.issue(user.id))

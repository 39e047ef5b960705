"""User service functions for CRUD and authentication."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    EmailTakenError,
    NoFieldsProvidedError,
    UsernameTakenError,
    UserNotFoundError,
)
from app.core.security import PasswordHasher
from app.models.user import User
from app.schemas.user import ProfileUpdate, normalize_email

logger = logging.getLogger(__name__)


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username == username.strip()))
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


def _locked(user_id: int):
    return (
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


async def _ensure_available(
    session: AsyncSession,
    username: str | None = None,
    email: str | None = None,
    exclude_id: int | None = None,
) -> None:
    if username is not None:
        existing = await get_user_by_username(session, username)
        if existing and existing.id != exclude_id:
            raise UsernameTakenError()
    if email is not None:
        existing = await get_user_by_email(session, email)
        if existing and existing.id != exclude_id:
            raise EmailTakenError()


def _conflict_from_integrity_error(exc: IntegrityError) -> Exception | None:
    """Map a unique-constraint violation back onto the matching conflict error."""

    detail = str(exc.orig)
    if "uq_users_username" in detail or "users.username" in detail:
        return UsernameTakenError()
    if "uq_users_email" in detail or "users.email" in detail:
        return EmailTakenError()
    return None


async def _flush_or_conflict(session: AsyncSession) -> None:
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        conflict = _conflict_from_integrity_error(exc)
        if conflict is None:
            raise
        raise conflict from exc


async def create_user(session: AsyncSession, username: str, email: str, password_hash: str) -> User:
    username = username.strip()
    email = normalize_email(email)
    await _ensure_available(session, username=username, email=email)

    user = User(username=username, email=email, password_hash=password_hash)
    session.add(user)
    await _flush_or_conflict(session)
    logger.info("Created user %s (%s)", user.id, user.username)
    return user


async def authenticate_user(
    session: AsyncSession, hasher: PasswordHasher, username: str, password: str
) -> User | None:
    user = await get_user_by_username(session, username)
    if not user:
        hasher.dummy_verify()
        return None
    if not hasher.verify(password, user.password_hash):
        return None
    return user


async def update_password_hash(session: AsyncSession, user: User, password_hash: str) -> User:
    user.password_hash = password_hash
    await session.flush()
    return user


async def update_user(session: AsyncSession, user_id: int, data: ProfileUpdate) -> User:
    changes = data.changes()
    if not changes:
        raise NoFieldsProvidedError()

    await _ensure_available(
        session,
        username=changes.get("username"),
        email=changes.get("email"),
        exclude_id=user_id,
    )

    result = await session.execute(_locked(user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise UserNotFoundError()

    for field, value in changes.items():
        setattr(user, field, value)
    await _flush_or_conflict(session)
    logger.info("Updated user %s fields: %s", user.id, ", ".join(sorted(changes)))
    return user


async def delete_user(session: AsyncSession, user_id: int) -> str | None:
    """Hard-delete a user and return the image filename they referenced.

    The row is locked before ``profile_image`` is read so a concurrent image
    replacement either finishes first or sees the user gone.
    """

    result = await session.execute(_locked(user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise UserNotFoundError()
    profile_image = user.profile_image
    await session.delete(user)
    await session.flush()
    logger.info("Deleted user %s", user_id)
    return profile_image


async def set_profile_image(session: AsyncSession, user_id: int, filename: str) -> str | None:
    """Point the user at ``filename`` and return the filename it replaced.

    The row stays locked until the surrounding transaction ends so that two
    replacements for the same user cannot interleave their read and write.
    """

    result = await session.execute(_locked(user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise UserNotFoundError()
    previous = user.profile_image
    user.profile_image = filename
    await session.flush()
    return previous

"""Profile endpoints for the authenticated user."""
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user_id, get_db, get_image_store
from app.core.errors import MissingImageError, UserNotFoundError
from app.schemas.user import (
    MessageResponse,
    ProfileImageResponse,
    ProfileRead,
    ProfileUpdate,
    ProfileUpdateResponse,
    image_url,
)
from app.services import users as user_service
from app.services.images import ImageStore
from app.services.profile_images import (
    ImageUpload,
    reclaim_image,
    reclaim_previous_image,
    replace_profile_image,
)

router = APIRouter(tags=["profile"])


async def read_image_upload(store: ImageStore, image: UploadFile | None) -> ImageUpload:
    """Read at most one byte past the store's limit so oversize uploads are caught cheaply."""

    if image is None or not image.filename:
        raise MissingImageError()
    content = await image.read(store.max_bytes + 1)
    return ImageUpload(
        content=content,
        content_type=image.content_type,
        filename=image.filename,
        size=image.size,
    )


@router.get("/profile", response_model=ProfileRead)
async def get_profile(
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> ProfileRead:
    user = await user_service.get_user(session, user_id)
    if not user:
        raise UserNotFoundError()
    return ProfileRead(
        id=user.id,
        username=user.username,
        email=user.email,
        profile_image=user.profile_image,
        profile_image_url=image_url(user.profile_image),
    )


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    payload: ProfileUpdate | None = None,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> ProfileUpdateResponse:
    user = await user_service.update_user(session, user_id, payload or ProfileUpdate())
    await session.commit()
    return ProfileUpdateResponse(userId=user.id, username=user.username, userEmail=user.email)


@router.delete("/profile", response_model=MessageResponse)
async def delete_profile(
    background_tasks: BackgroundTasks,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store),
) -> MessageResponse:
    profile_image = await user_service.delete_user(session, user_id)
    await session.commit()
    background_tasks.add_task(reclaim_image, store, profile_image)
    return MessageResponse(message="User deleted successfully")


@router.put("/profile/image", response_model=ProfileImageResponse)
async def update_profile_image(
    background_tasks: BackgroundTasks,
    image: UploadFile | None = File(default=None),
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store),
) -> ProfileImageResponse:
    upload = await read_image_upload(store, image)
    replacement = await replace_profile_image(session, store, user_id, upload)
    background_tasks.add_task(reclaim_previous_image, store, replacement)
    return ProfileImageResponse(
        message="Profile image updated successfully",
        profile_image_url=replacement.url,
    )

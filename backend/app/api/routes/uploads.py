"""Image upload endpoint."""
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.routes.profile import read_image_upload
from app.core.dependencies import get_current_user_id, get_db, get_image_store
from app.schemas.user import MessageResponse
from app.services.images import ImageStore
from app.services.profile_images import reclaim_previous_image, replace_profile_image

router = APIRouter(tags=["uploads"])


@router.post("/upload", response_model=MessageResponse)
async def upload_image(
    background_tasks: BackgroundTasks,
    image: UploadFile | None = File(default=None),
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store),
) -> MessageResponse:
    upload = await read_image_upload(store, image)
    replacement = await replace_profile_image(session, store, user_id, upload)
    background_tasks.add_task(reclaim_previous_image, store, replacement)
    return MessageResponse(message="Profile image updated successfully")

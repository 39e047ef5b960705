"""Replace a user's profile image and reclaim the file it supersedes.

Ordering is what keeps the database and the upload directory consistent:

1. admit and write the new file (a rejection touches nothing else);
2. lock the user row, read the old filename and write the new one;
3. commit;
4. only then delete the old file, best-effort and outside the request's
   failure path.

A failure in steps 2-3 rolls back the transaction and removes the file
written in step 1, so the user's reference is never left pointing at a
missing file and failed attempts do not accumulate files on disk.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.user import image_url
from app.services.images import ImageStore
from app.services.users import set_profile_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    content: bytes
    content_type: str | None
    filename: str | None = None
    size: int | None = None


@dataclass(frozen=True)
class ImageReplacement:
    filename: str
    previous: str | None = None

    @property
    def url(self) -> str:
        return image_url(self.filename)


async def replace_profile_image(
    session: AsyncSession,
    store: ImageStore,
    user_id: int,
    upload: ImageUpload,
) -> ImageReplacement:
    filename = await store.accept(
        upload.content,
        upload.content_type,
        original_filename=upload.filename,
        declared_size=upload.size,
    )

    try:
        previous = await set_profile_image(session, user_id, filename)
        await session.commit()
    except Exception:
        await session.rollback()
        await store.remove(filename)
        raise

    logger.info("User %s profile image set to %s (was %s)", user_id, filename, previous)
    return ImageReplacement(filename=filename, previous=previous)


async def reclaim_previous_image(store: ImageStore, replacement: ImageReplacement) -> None:
    """Delete the superseded file of a committed replacement.

    Only the filesystem is touched, so running it again (or never) cannot
    change which image the user references.
    """

    if not replacement.previous or replacement.previous == replacement.filename:
        return
    await store.remove(replacement.previous)


async def reclaim_image(store: ImageStore, filename: str | None) -> None:
    if filename:
        await store.remove(filename)

"""
Tests for image admission control and best-effort removal.
"""

import pytest
from conftest import GIF_BYTES, JPEG_BYTES, PDF_BYTES, PNG_BYTES

from app.core.errors import ImageTooLargeError, InvalidImageTypeError, MissingImageError
from app.services.images import ImageStore, sniff_image_type


def _stored_files(store: ImageStore) -> list[str]:
    return sorted(path.name for path in store.directory.iterdir())


@pytest.mark.parametrize(
    "content, expected",
    [(PNG_BYTES, "image/png"), (JPEG_BYTES, "image/jpeg"), (GIF_BYTES, "image/gif"), (PDF_BYTES, None), (b"", None)],
)
def test_sniff_image_type(content, expected):
    assert sniff_image_type(content) == expected


class TestAccept:
    @pytest.mark.asyncio
    async def test_accepts_png(self, store):
        filename = await store.accept(PNG_BYTES, "image/png", original_filename="me.png")
        assert filename.endswith(".png")
        assert store.exists(filename)
        assert store.path_for(filename).read_bytes() == PNG_BYTES

    @pytest.mark.asyncio
    async def test_keeps_matching_original_extension(self, store):
        filename = await store.accept(JPEG_BYTES, "image/jpeg", original_filename="holiday.JPEG")
        assert filename.endswith(".jpeg")

    @pytest.mark.asyncio
    async def test_replaces_mismatched_extension(self, store):
        filename = await store.accept(GIF_BYTES, "image/gif", original_filename="run.exe")
        assert filename.endswith(".gif")

    @pytest.mark.asyncio
    async def test_filenames_are_unique(self, store):
        names = {await store.accept(PNG_BYTES, "image/png") for _ in range(20)}
        assert len(names) == 20

    @pytest.mark.asyncio
    async def test_rejects_disallowed_type(self, store):
        with pytest.raises(InvalidImageTypeError):
            await store.accept(PDF_BYTES, "application/pdf", original_filename="doc.pdf")
        assert _stored_files(store) == []

    @pytest.mark.asyncio
    async def test_rejects_content_that_does_not_match_declared_type(self, store):
        with pytest.raises(InvalidImageTypeError):
            await store.accept(PDF_BYTES, "image/png", original_filename="doc.png")
        with pytest.raises(InvalidImageTypeError):
            await store.accept(JPEG_BYTES, "image/png")
        assert _stored_files(store) == []

    @pytest.mark.asyncio
    async def test_rejects_six_mebibytes(self, store):
        content = PNG_BYTES + b"\x00" * (6 * 1024 * 1024)
        with pytest.raises(ImageTooLargeError):
            await store.accept(content, "image/png")
        assert _stored_files(store) == []

    @pytest.mark.asyncio
    async def test_rejects_oversized_declared_size(self, store):
        with pytest.raises(ImageTooLargeError):
            await store.accept(PNG_BYTES, "image/png", declared_size=store.max_bytes + 1)

    @pytest.mark.asyncio
    async def test_accepts_exactly_the_limit(self, tmp_path):
        store = ImageStore(tmp_path / "small", max_bytes=len(PNG_BYTES))
        assert await store.accept(PNG_BYTES, "image/png")

    @pytest.mark.asyncio
    async def test_rejects_empty_upload(self, store):
        with pytest.raises(MissingImageError):
            await store.accept(b"", "image/png")

    @pytest.mark.asyncio
    async def test_checks_type_then_size_then_content(self, store):
        oversized_pdf = PDF_BYTES + b"\x00" * (6 * 1024 * 1024)
        with pytest.raises(InvalidImageTypeError):
            await store.accept(oversized_pdf, "application/pdf")
        with pytest.raises(ImageTooLargeError):
            await store.accept(oversized_pdf, "image/png")
        with pytest.raises(MissingImageError):
            await store.accept(b"", "image/png", original_filename="empty.png")


class TestRemove:
    @pytest.mark.asyncio
    async def test_removes_file(self, store):
        filename = await store.accept(PNG_BYTES, "image/png")
        assert await store.remove(filename) is True
        assert not store.exists(filename)

    @pytest.mark.asyncio
    async def test_missing_file_is_not_an_error(self, store):
        assert await store.remove("1700000000000-deadbeef.png") is False

    @pytest.mark.asyncio
    async def test_refuses_paths_outside_the_directory(self, store, tmp_path):
        outside = tmp_path / "keep.txt"
        outside.write_text("keep")
        assert await store.remove("../keep.txt") is False
        assert outside.exists()

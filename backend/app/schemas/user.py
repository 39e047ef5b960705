"""Pydantic schemas for user operations."""
from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, EmailStr, StringConstraints, field_validator

Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]


def normalize_email(value: str) -> str:
    return value.strip().lower()


class EmailNormalizingModel(BaseModel):
    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def _strip_email(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", check_fields=False)
    @classmethod
    def _lower_email(cls, value: str | None) -> str | None:
        return normalize_email(value) if value is not None else None


class ProfileRead(BaseModel):
    id: int
    username: str
    email: str
    profile_image: str | None = None
    profile_image_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(EmailNormalizingModel):
    """Partial profile update; only the fields present are written."""

    username: Username | None = None
    email: EmailStr | None = None

    def changes(self) -> dict[str, str]:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class ProfileUpdateResponse(BaseModel):
    message: str = "User updated successfully"
    userId: int
    username: str
    userEmail: str


class MessageResponse(BaseModel):
    message: str


class ProfileImageResponse(MessageResponse):
    profile_image_url: str


def image_url(filename: str | None) -> str | None:
    return f"/uploads/{filename}" if filename else None

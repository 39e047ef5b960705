"""Authentication-related schemas."""
from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, EmailStr, StringConstraints

from app.schemas.user import EmailNormalizingModel, Username

# bcrypt ignores everything past this many bytes of the password.
MAX_PASSWORD_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


Password = Annotated[str, StringConstraints(min_length=1), AfterValidator(_check_password_bytes)]


class RegisterRequest(EmailNormalizingModel):
    username: Username
    password: Password
    email: EmailStr


class RegisterResponse(BaseModel):
    message: str = "User created successfully"
    userId: int
    username: str


class LoginRequest(BaseModel):
    username: Username
    password: Password


class TokenResponse(BaseModel):
    token: str

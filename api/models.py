"""
API request and response models for FileVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
storage/models.py, which own the internal domain representation. Route
handlers map between the two.

Response models list their fields explicitly. StoredFile.storage_location and
User.password_hash / salt have no counterpart here, so they cannot leak into a
response by accident.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES
from core.errors import FieldError, ValidationFailed
from storage.models import StoredFile

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def field_errors(errors: list[dict]) -> list[FieldError]:
    """Flatten pydantic error dicts into one FieldError per violation.

    The leading "body" / "query" segment FastAPI adds to loc is dropped so
    clients see plain field names ("email", not "body.email").
    """
    result: list[FieldError] = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if len(loc) > 1 and loc[0] in ("body", "query", "path", "cookie", "header"):
            loc = loc[1:]
        result.append(FieldError(field=".".join(loc) or "body", message=err.get("msg", "Invalid value")))
    return result


_email_adapter = TypeAdapter(EmailStr)


def parse_email(value: str) -> str:
    """Validate and normalise an email the same way the request models do.

    Raises core.errors.ValidationFailed with an "email" field error.
    """
    try:
        return _email_adapter.validate_python(value)
    except PydanticValidationError as exc:
        raise ValidationFailed(errors=[FieldError(field="email", message=e["msg"]) for e in exc.errors()]) from None


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/v1/signup.

    Every constraint is checked in one pass, so a request with a short
    username and a bad email gets both errors back together.
    """

    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """bcrypt reads at most 72 bytes; longer UTF-8 passwords are refused, not truncated."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return value

    @classmethod
    def build(cls, **data) -> "SignupRequest":
        """Validating factory for callers outside FastAPI (e.g. the CLI).

        Raises core.errors.ValidationFailed listing every violated field.
        """
        try:
            return cls(**data)
        except PydanticValidationError as exc:
            raise ValidationFailed(errors=field_errors(exc.errors())) from None


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/login."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of an account: returned by signup, login and /me."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username, email=user.email)


class FileResponse(BaseModel):
    """Public view of one stored file. storage_location is intentionally absent."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    size: int
    type: str
    uploaded_at: str = Field(alias="uploadedAt")

    @classmethod
    def from_stored(cls, stored: StoredFile) -> "FileResponse":
        """Factory Method -- the domain-to-transport mapping lives with the output model."""
        return cls(
            id=stored.id,
            name=stored.name,
            size=stored.size,
            type=stored.mime_type,
            uploaded_at=stored.uploaded_at,
        )


class FileListResponse(BaseModel):
    """Response for GET /api/v1/files."""

    model_config = ConfigDict(frozen=True)

    files: list[FileResponse]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class FieldErrorModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    errors: Optional[list[FieldErrorModel]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]

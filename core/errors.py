"""
core/errors.py -- Domain error taxonomy for FileVault.

Stores and services raise these; api/main.py maps every AppError subclass to
the shared ErrorResponse envelope using the class's status_code and code.
Nothing here knows about HTTP frameworks -- status_code is plain data.

  ValidationFailed  400  malformed input, carries every violated field
  Unauthenticated   401  missing, invalid or expired session
  NotFound          404  lookup target absent (or owned by someone else)
  Conflict          409  duplicate unique key
  PayloadTooLarge   413  upload exceeds the configured ceiling
  InternalFailure   500  unexpected persistence or storage error

Messages are written for the client. Anything sensitive belongs in the log,
not in the exception message.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class AppError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = 400
    code = "validation_error"
    message = "Request validation failed."

    def __init__(self, message: str | None = None, errors: list[FieldError] | None = None) -> None:
        super().__init__(message)
        self.errors: list[FieldError] = list(errors or [])


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    message = "Not found."


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    message = "Resource already exists."


class PayloadTooLarge(AppError):
    status_code = 413
    code = "payload_too_large"
    message = "Uploaded file is too large."


class InternalFailure(AppError):
    pass

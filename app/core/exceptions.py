# app/core/exceptions.py
"""
Domain errors raised by the inquiry service.

Every error carries the HTTP status the API answers with, so routes never
translate them by hand (see the handler registered in app.main).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class FieldError:
    field: str
    reason: str


class InquiryError(Exception):
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InquiryError):
    """One or more submitted fields are invalid. Lists every failing field."""

    status_code = 422

    def __init__(self, errors: List[FieldError], message: str = "The given data was invalid."):
        super().__init__(message)
        self.errors = list(errors)

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]


class NotFound(InquiryError):
    status_code = 404

    def __init__(self, inquiry_id: int, message: Optional[str] = None):
        super().__init__(message or f"Inquiry {inquiry_id} not found")
        self.inquiry_id = inquiry_id


class Forbidden(InquiryError):
    status_code = 403

    def __init__(self, role: Optional[str], action: str):
        super().__init__(f"Role '{role or 'anonymous'}' may not {action} inquiries")
        self.role = role
        self.action = action


class NotDeleted(InquiryError):
    status_code = 409

    def __init__(self, inquiry_id: int):
        super().__init__(f"Inquiry {inquiry_id} is not deleted or already restored.")
        self.inquiry_id = inquiry_id


class StorageFailure(InquiryError):
    status_code = 502


class NotificationFailure(InquiryError):
    """Raised by notification sinks. The service downgrades it to a warning."""

    status_code = 502

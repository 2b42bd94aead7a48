# app/services/lifecycle.py
"""
Rules for inquiries: field validation, workflow and soft-delete transitions,
and which roles may perform which action. Nothing in here touches the
database, the blob store or the network.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import FieldError, Forbidden, NotDeleted, ValidationError
from app.db.models.inquiry import ACTIVE, DELETED, Inquiry, InquiryStatus
from app.schemas.inquiry import InquiryEditIn, InquirySubmitIn
from app.services.documents import IncomingFile, check_document


class Action(str, Enum):
    DELETE = "delete"
    RESTORE = "restore"
    APPROVE = "approve"
    PURGE = "purge"
    EDIT = "edit"
    VIEW_DOCUMENT = "view_document"


def default_policy() -> dict[Action, frozenset[str]]:
    return {
        Action.DELETE: frozenset(settings.DELETE_ROLES),
        Action.RESTORE: frozenset(settings.RESTORE_ROLES),
        Action.APPROVE: frozenset(settings.APPROVE_ROLES),
        Action.PURGE: frozenset(settings.PURGE_ROLES),
        Action.EDIT: frozenset(settings.EDIT_ROLES),
        Action.VIEW_DOCUMENT: frozenset(settings.VIEW_DOCUMENT_ROLES),
    }


def _field_errors(exc: PydanticValidationError) -> List[FieldError]:
    errors: List[FieldError] = []
    seen = set()
    for err in exc.errors():
        field = str(err["loc"][0]) if err.get("loc") else "__all__"
        if field in seen:
            continue
        seen.add(field)
        # pydantic prefixes messages raised from validators with "Value error, "
        reason = err.get("msg", "invalid").removeprefix("Value error, ")
        errors.append(FieldError(field, reason))
    return errors


class InquiryLifecycle:
    def __init__(self, policy: Optional[Mapping[Action, Iterable[str]]] = None, max_upload_bytes: Optional[int] = None):
        base = default_policy()
        if policy:
            base.update({Action(k): frozenset(v) for k, v in policy.items()})
        self.policy = base
        self.max_upload_bytes = max_upload_bytes

    # ---------------------------
    # Authorization
    # ---------------------------
    def authorize(self, actor_role: Optional[str], action: Action | str) -> bool:
        return bool(actor_role) and actor_role in self.policy.get(Action(action), frozenset())

    def require(self, actor_role: Optional[str], action: Action | str) -> None:
        if not self.authorize(actor_role, action):
            raise Forbidden(actor_role, Action(action).value)

    # ---------------------------
    # Validation
    # ---------------------------
    def _validate(
        self,
        schema: Type[BaseModel],
        fields: Mapping[str, Any],
        upload: Optional[IncomingFile],
    ) -> BaseModel:
        errors: List[FieldError] = []
        parsed = None
        try:
            parsed = schema.model_validate(dict(fields))
        except PydanticValidationError as e:
            errors.extend(_field_errors(e))

        if upload is not None:
            errors.extend(FieldError("valid_id", r) for r in check_document(upload, self.max_upload_bytes))

        if errors:
            raise ValidationError(errors)
        return parsed

    def validate_submission(self, fields: Mapping[str, Any], upload: Optional[IncomingFile] = None) -> InquirySubmitIn:
        return self._validate(InquirySubmitIn, fields, upload)

    def validate_edit(self, fields: Mapping[str, Any], upload: Optional[IncomingFile] = None) -> InquiryEditIn:
        return self._validate(InquiryEditIn, fields, upload)

    # ---------------------------
    # Transitions
    # ---------------------------
    def approve(self, inquiry: Inquiry) -> bool:
        """
        pending -> approved. Returns True when the status actually changes;
        approving an approved inquiry is a no-op.
        """
        return InquiryStatus(inquiry.inquiry_status) is not InquiryStatus.APPROVED

    def soft_delete(self, inquiry: Inquiry) -> bool:
        """active -> deleted. Returns False if the inquiry was already deleted."""
        return inquiry.status != DELETED

    def restore(self, inquiry: Inquiry) -> None:
        """deleted -> active. Raises NotDeleted for an active inquiry."""
        if inquiry.status == ACTIVE:
            raise NotDeleted(inquiry.id)

    def purge(self, inquiry: Inquiry) -> None:
        """Only soft-deleted inquiries may be removed for good."""
        if inquiry.status == ACTIVE:
            raise NotDeleted(inquiry.id)

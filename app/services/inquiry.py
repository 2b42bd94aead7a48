# app/services/inquiry.py
"""
Inquiry use cases: submit, approve, edit, soft delete, restore, purge and listing.

Side-effect ordering when documents are involved:
- validation and role checks run before any blob or database write
- a new blob is stored before the row that references it is written
- a replaced blob is deleted only after the row points at its successor
- if the row write fails, the blob stored for it is deleted again
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import FieldError, NotFound, NotificationFailure, StorageFailure, ValidationError
from app.db.models.inquiry import ACTIVE, DELETED, Inquiry, InquiryStatus
from app.repositories.inquiry import InquiryRepository
from app.services.blob_store import BlobStore
from app.services.documents import IncomingFile
from app.services.email_brevo import NotificationSink, approval_email
from app.services.lifecycle import Action, InquiryLifecycle

logger = logging.getLogger(__name__)

VALID_ID_PREFIX = "valid_ids"


@dataclass
class ApprovalOutcome:
    inquiry: Inquiry
    notified: bool
    warning: Optional[str] = None


@dataclass
class InquiryPage:
    items: List[Inquiry]
    total: int
    page: int
    page_size: int


class InquiryService:
    def __init__(
        self,
        db: Session,
        blobs: BlobStore,
        notifier: NotificationSink,
        lifecycle: Optional[InquiryLifecycle] = None,
        delete_blob_on_soft_delete: Optional[bool] = None,
    ):
        self.repo = InquiryRepository(db)
        self.blobs = blobs
        self.notifier = notifier
        self.lifecycle = lifecycle or InquiryLifecycle()
        if delete_blob_on_soft_delete is None:
            delete_blob_on_soft_delete = settings.DELETE_BLOB_ON_SOFT_DELETE
        self.delete_blob_on_soft_delete = delete_blob_on_soft_delete

    def _discard(self, key: str) -> None:
        """Best-effort blob removal for cleanup paths; failures leave an orphan and a log line."""
        try:
            self.blobs.delete(key)
        except StorageFailure as e:
            logger.warning("Could not delete blob %s, left orphaned: %s", key, e.message)

    # ---------------------------
    # Read side
    # ---------------------------
    def list(
        self,
        search: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
        include_deleted: bool = False,
        actor_role: Optional[str] = None,
    ) -> InquiryPage:
        page_size = settings.DEFAULT_PAGE_SIZE if page_size is None else page_size
        errors = []
        if page < 1:
            errors.append(FieldError("page", "The page must be at least 1."))
        if page_size < 1:
            errors.append(FieldError("entries_per_page", "The entries per page must be at least 1."))
        if errors:
            raise ValidationError(errors)

        # deleted rows are only listed for roles that can bring them back
        if include_deleted:
            self.lifecycle.require(actor_role, Action.RESTORE)

        search = (search or "").strip() or None
        items, total = self.repo.list(search, page, page_size, active_only=not include_deleted)
        return InquiryPage(items=items, total=total, page=page, page_size=page_size)

    def show(self, inquiry_id: int) -> Inquiry:
        return self.repo.get(inquiry_id)

    def open_document(self, inquiry_id: int, actor_role: Optional[str] = None) -> Tuple[str, bytes]:
        self.lifecycle.require(actor_role, Action.VIEW_DOCUMENT)
        inquiry = self.repo.get(inquiry_id)
        if not inquiry.valid_id:
            raise NotFound(inquiry_id, f"Inquiry {inquiry_id} has no valid id document")
        return inquiry.valid_id, self.blobs.open(inquiry.valid_id)

    # ---------------------------
    # Write side
    # ---------------------------
    def submit(self, fields: Mapping[str, Any], upload: Optional[IncomingFile] = None) -> Inquiry:
        data = self.lifecycle.validate_submission(fields, upload)

        key = None
        if upload is not None:
            key = self.blobs.put(VALID_ID_PREFIX, upload)
        else:
            logger.info("Inquiry submitted without a valid id document")

        try:
            inquiry = self.repo.create({**data.model_dump(), "valid_id": key})
        except Exception:
            if key:
                self._discard(key)
            raise

        logger.info("Inquiry %s submitted for room %s", inquiry.id, inquiry.room_number)
        return inquiry

    def approve(self, inquiry_id: int, approver: str, actor_role: Optional[str]) -> ApprovalOutcome:
        self.lifecycle.require(actor_role, Action.APPROVE)
        inquiry = self.repo.get(inquiry_id)

        if not self.lifecycle.approve(inquiry):
            logger.info("Inquiry %s already approved; no email sent", inquiry_id)
            return ApprovalOutcome(inquiry=inquiry, notified=False)

        inquiry = self.repo.set_inquiry_status(
            inquiry_id,
            InquiryStatus.APPROVED,
            approved_by=approver,
            approved_at=datetime.now(timezone.utc),
        )
        logger.info("Inquiry %s approved by %s", inquiry_id, approver)

        subject, html = approval_email(inquiry)
        try:
            self.notifier.send(inquiry.email, subject, html)
        except NotificationFailure as e:
            logger.warning("Approval email for inquiry %s failed: %s", inquiry_id, e.message)
            return ApprovalOutcome(
                inquiry=inquiry,
                notified=False,
                warning=f"Inquiry approved but the email to {inquiry.email} could not be sent.",
            )
        return ApprovalOutcome(inquiry=inquiry, notified=True)

    def edit(
        self,
        inquiry_id: int,
        fields: Mapping[str, Any],
        upload: Optional[IncomingFile] = None,
        actor_role: Optional[str] = None,
    ) -> Inquiry:
        self.lifecycle.require(actor_role, Action.EDIT)
        data = self.lifecycle.validate_edit(fields, upload)
        old_key = self.repo.get(inquiry_id).valid_id

        new_key = None
        if upload is not None:
            new_key = self.blobs.put(VALID_ID_PREFIX, upload)

        try:
            inquiry = self.repo.update(inquiry_id, {**data.model_dump(), "valid_id": new_key or old_key})
        except Exception:
            if new_key:
                self._discard(new_key)
            raise

        if new_key and old_key and old_key != new_key:
            self._discard(old_key)
        logger.info("Inquiry %s updated", inquiry_id)
        return inquiry

    def soft_delete(self, inquiry_id: int, actor_role: Optional[str]) -> Inquiry:
        self.lifecycle.require(actor_role, Action.DELETE)
        inquiry = self.repo.get(inquiry_id)

        if self.lifecycle.soft_delete(inquiry):
            inquiry = self.repo.set_status(inquiry_id, DELETED)
            logger.info("Inquiry %s soft-deleted", inquiry_id)

        if self.delete_blob_on_soft_delete and inquiry.valid_id:
            self._discard(inquiry.valid_id)
            inquiry = self.repo.clear_valid_id(inquiry_id)
        return inquiry

    def restore(self, inquiry_id: int, actor_role: Optional[str]) -> Inquiry:
        self.lifecycle.require(actor_role, Action.RESTORE)
        inquiry = self.repo.get(inquiry_id)
        self.lifecycle.restore(inquiry)
        inquiry = self.repo.set_status(inquiry_id, ACTIVE)
        logger.info("Inquiry %s restored", inquiry_id)
        return inquiry

    def purge(self, inquiry_id: int, actor_role: Optional[str]) -> None:
        self.lifecycle.require(actor_role, Action.PURGE)
        inquiry = self.repo.get(inquiry_id)
        self.lifecycle.purge(inquiry)

        # blob first: a failed delete leaves the row (and its key) for a retry
        if inquiry.valid_id:
            self.blobs.delete(inquiry.valid_id)
        self.repo.remove(inquiry_id)
        logger.info("Inquiry %s purged", inquiry_id)

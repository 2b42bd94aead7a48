# app/repositories/inquiry.py
"""
Persistence for Inquiry rows.

Every write commits immediately and refreshes the row, the same way the API
routes did before this layer existed. On a failed commit the session is
rolled back and the database error propagates unchanged.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.exceptions import NotFound
from app.db.models.inquiry import ACTIVE, DELETED, Inquiry, InquiryStatus

# columns a full edit overwrites; id, status flags and timestamps are never in here
EDITABLE_FIELDS = ("price", "room_number", "full_name", "contact_number", "email", "valid_id", "agreement")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class InquiryRepository:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self, inquiry: Inquiry) -> Inquiry:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(inquiry)
        return inquiry

    # ---------------------------
    # Queries
    # ---------------------------
    def list(
        self,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
        active_only: bool = True,
    ) -> Tuple[List[Inquiry], int]:
        """
        Return one page of inquiries and the total number of matches.
        search is a case-insensitive substring match on name, contact number or email.
        """
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be >= 1")

        qs = self.db.query(Inquiry)
        if active_only:
            qs = qs.filter(Inquiry.status == ACTIVE)
        if search:
            ilike = f"%{_escape_like(search)}%"
            qs = qs.filter(
                or_(
                    Inquiry.full_name.ilike(ilike, escape="\\"),
                    Inquiry.contact_number.ilike(ilike, escape="\\"),
                    Inquiry.email.ilike(ilike, escape="\\"),
                )
            )

        total = qs.count()
        items = (
            qs.order_by(Inquiry.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return items, total

    def get(self, inquiry_id: int) -> Inquiry:
        """Load by id whatever its soft-delete status is."""
        inquiry = self.db.get(Inquiry, inquiry_id)
        if inquiry is None:
            raise NotFound(inquiry_id)
        return inquiry

    # ---------------------------
    # Writes
    # ---------------------------
    def create(self, fields: Mapping[str, Any]) -> Inquiry:
        inquiry = Inquiry(
            **{k: fields[k] for k in EDITABLE_FIELDS if k in fields},
            inquiry_status=InquiryStatus.PENDING.value,
            status=ACTIVE,
        )
        self.db.add(inquiry)
        return self._commit(inquiry)

    def update(self, inquiry_id: int, fields: Mapping[str, Any]) -> Inquiry:
        inquiry = self.get(inquiry_id)
        missing = [k for k in EDITABLE_FIELDS if k not in fields]
        if missing:
            raise ValueError(f"update needs the full field set, missing: {', '.join(missing)}")
        for k in EDITABLE_FIELDS:
            setattr(inquiry, k, fields[k])
        return self._commit(inquiry)

    def set_status(self, inquiry_id: int, status: int) -> Inquiry:
        if status not in (ACTIVE, DELETED):
            raise ValueError(f"status must be {ACTIVE} or {DELETED}, got {status!r}")
        inquiry = self.get(inquiry_id)
        inquiry.status = status
        return self._commit(inquiry)

    def set_inquiry_status(
        self,
        inquiry_id: int,
        new_status: InquiryStatus,
        approved_by: Optional[str] = None,
        approved_at: Optional[datetime] = None,
    ) -> Inquiry:
        inquiry = self.get(inquiry_id)
        inquiry.inquiry_status = InquiryStatus(new_status).value
        if approved_by is not None:
            inquiry.approved_by = approved_by
        if approved_at is not None:
            inquiry.approved_at = approved_at
        return self._commit(inquiry)

    def clear_valid_id(self, inquiry_id: int) -> Inquiry:
        inquiry = self.get(inquiry_id)
        inquiry.valid_id = None
        return self._commit(inquiry)

    def remove(self, inquiry_id: int) -> None:
        """Physically delete the row. Only the purge flow calls this."""
        inquiry = self.get(inquiry_id)
        self.db.delete(inquiry)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

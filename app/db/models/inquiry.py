# app/db/models/inquiry.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.mixins import Base, CreatedUpdatedMixin


class InquiryStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"


# soft-delete flag values for Inquiry.status
ACTIVE = 1
DELETED = 0


class Inquiry(CreatedUpdatedMixin, Base):
    __tablename__ = "inquiries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contact_number: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    price: Mapped[str] = mapped_column(String(50), nullable=False)
    room_number: Mapped[str] = mapped_column(String(255), nullable=False)

    # blob-store key of the uploaded identity document
    valid_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    agreement: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    inquiry_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InquiryStatus.PENDING.value,
        server_default=InquiryStatus.PENDING.value, index=True,
    )
    status: Mapped[int] = mapped_column(
        Integer, nullable=False, default=ACTIVE, server_default=text("1"), index=True
    )

    approved_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Inquiry id={self.id} status={self.status} inquiry_status={self.inquiry_status}>"

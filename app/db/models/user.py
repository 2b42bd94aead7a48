from __future__ import annotations
from typing import Optional
from datetime import datetime
from sqlalchemy import String, Boolean, DateTime, Integer, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.mixins import Base, CreatedUpdatedMixin

# Roles known to the inquiry policy (see app.services.lifecycle)
ROLES = ("admin", "seller", "users")
DEFAULT_ROLE = "users"


class User(CreatedUpdatedMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255))

    password_hash: Mapped[Optional[str]] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_ROLE, server_default=DEFAULT_ROLE)
    is_active: Mapped[bool] = mapped_column(Boolean, server_default=text("1"), nullable=False, default=True)

    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

# app/core/deps.py
from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import SessionLocal
from app.services.blob_store import BlobStore, LocalBlobStore
from app.services.email_brevo import BrevoNotificationSink, NotificationSink
from app.services.inquiry import InquiryService


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_blob_store() -> BlobStore:
    return LocalBlobStore(settings.MEDIA_ROOT)


def get_notifier() -> NotificationSink:
    return BrevoNotificationSink()


def get_inquiry_service(
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    notifier: NotificationSink = Depends(get_notifier),
) -> InquiryService:
    return InquiryService(db, blobs, notifier)


Page = Annotated[int, Query(ge=1)]
Limit = Annotated[int, Query(ge=1, le=settings.MAX_PAGE_SIZE)]

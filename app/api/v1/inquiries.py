import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from app.api.v1.auth import get_current_user
from app.core.config import settings
from app.core.deps import Limit, Page, get_inquiry_service
from app.db.models.user import User
from app.schemas.inquiry import ApiResult, InquiryOut, InquiryPageOut
from app.services.documents import read_upload
from app.services.inquiry import InquiryService

router = APIRouter(prefix="/inquiries", tags=["inquiries"])


def _form_fields(**values) -> dict:
    # leave out fields the form did not send so validation reports them as required
    return {k: v for k, v in values.items() if v is not None}


def _out(inquiry) -> InquiryOut:
    return InquiryOut.model_validate(inquiry)


@router.post("", response_model=ApiResult[InquiryOut], status_code=status.HTTP_201_CREATED)
def submit_inquiry(
    price: Optional[str] = Form(None),
    room_number: Optional[str] = Form(None),
    full_name: Optional[str] = Form(None),
    contact_number: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    agreement: Optional[str] = Form(None),
    valid_id: Optional[UploadFile] = File(None),
    service: InquiryService = Depends(get_inquiry_service),
):
    """
    Public submission form. Multipart fields plus an optional valid_id file
    (jpg, jpeg, png or pdf). Every invalid field is reported at once.
    """
    fields = _form_fields(
        price=price,
        room_number=room_number,
        full_name=full_name,
        contact_number=contact_number,
        email=email,
        agreement=agreement,
    )
    inquiry = service.submit(fields, read_upload(valid_id))
    return ApiResult(message="Inquiry submitted successfully.", data=_out(inquiry))


@router.get("", response_model=ApiResult[InquiryPageOut])
def list_inquiries(
    search: Optional[str] = Query(None, description="Match name, contact number or email"),
    page: Page = 1,
    entries_per_page: Limit = settings.DEFAULT_PAGE_SIZE,
    include_deleted: bool = Query(False, description="Also list soft-deleted inquiries"),
    current: User = Depends(get_current_user),
    service: InquiryService = Depends(get_inquiry_service),
):
    result = service.list(search, page, entries_per_page, include_deleted, actor_role=current.role)
    return ApiResult(
        data=InquiryPageOut(
            items=[_out(i) for i in result.items],
            total=result.total,
            page=result.page,
            page_size=result.page_size,
        )
    )


@router.get("/{inquiry_id}", response_model=ApiResult[InquiryOut])
def show_inquiry(
    inquiry_id: int,
    current: User = Depends(get_current_user),
    service: InquiryService = Depends(get_inquiry_service),
):
    """Detail view; soft-deleted inquiries are still returned."""
    return ApiResult(data=_out(service.show(inquiry_id)))


@router.get("/{inquiry_id}/edit", response_model=ApiResult[InquiryOut])
def edit_inquiry_form(
    inquiry_id: int,
    current: User = Depends(get_current_user),
    service: InquiryService = Depends(get_inquiry_service),
):
    return ApiResult(data=_out(service.show(inquiry_id)))


@router.put("/{inquiry_id}", response_model=ApiResult[InquiryOut])
def update_inquiry(
    inquiry_id: int,
    price: Optional[str] = Form(None),
    room_number: Optional[str] = Form(None),
    full_name: Optional[str] = Form(None),
    contact_number: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    agreement: Optional[str] = Form(None),
    valid_id: Optional[UploadFile] = File(None),
    current: User = Depends(get_current_user),
    service: InquiryService = Depends(get_inquiry_service),
):
    """
    Full update: every field must be sent again. Sending valid_id replaces
    the stored document; leaving it out keeps the current one.
    """
    fields = _form_fields(
        price=price,
        room_number=room_number,
        full_name=full_name,
        contact_number=contact_number,
        email=email,
        agreement=agreement,
    )
    inquiry = service.edit(inquiry_id, fields, read_upload(valid_id), actor_role=current.role)
    return ApiResult(message="Inquiry updated successfully.", data=_out(inquiry))


@router.post("/{inquiry_id}/approve", response_model=ApiResult[InquiryOut])
def approve_inquiry(
    inquiry_id: int,
    current: User = Depends(get_current_user),
    service: InquiryService = Depends(get_inquiry_service),
):
    outcome = service.approve(inquiry_id, approver=current.email, actor_role=current.role)
    if outcome.notified:
        message = "Inquiry approved and email sent."
    else:
        message = "Inquiry approved."
    return ApiResult(
        message=message,
        data=_out(outcome.inquiry),
        warnings=[outcome.warning] if outcome.warning else [],
    )


@router.delete("/{inquiry_id}", response_model=ApiResult[InquiryOut])
def delete_inquiry(
    inquiry_id: int,
    current: User = Depends(get_current_user),
    service: InquiryService = Depends(get_inquiry_service),
):
    """Soft delete: the inquiry is hidden from listings but kept."""
    inquiry = service.soft_delete(inquiry_id, current.role)
    return ApiResult(message="Inquiry deleted successfully.", data=_out(inquiry))


@router.post("/{inquiry_id}/restore", response_model=ApiResult[InquiryOut])
def restore_inquiry(
    inquiry_id: int,
    current: User = Depends(get_current_user),
    service: InquiryService = Depends(get_inquiry_service),
):
    inquiry = service.restore(inquiry_id, current.role)
    return ApiResult(message="Inquiry restored successfully.", data=_out(inquiry))


@router.delete("/{inquiry_id}/purge", response_model=ApiResult)
def purge_inquiry(
    inquiry_id: int,
    current: User = Depends(get_current_user),
    service: InquiryService = Depends(get_inquiry_service),
):
    """Remove a soft-deleted inquiry and its document for good."""
    service.purge(inquiry_id, current.role)
    return ApiResult(message="Inquiry purged.")


@router.get("/{inquiry_id}/valid-id")
def download_valid_id(
    inquiry_id: int,
    current: User = Depends(get_current_user),
    service: InquiryService = Depends(get_inquiry_service),
):
    key, content = service.open_document(inquiry_id, actor_role=current.role)
    media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return Response(content=content, media_type=media_type)

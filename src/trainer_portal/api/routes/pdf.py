"""PDF training plan API routes.

Admins upload one plan per client with a validity period; clients read
its metadata and download it.
"""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from ..dependencies import get_pdf_repository, get_user_repository
from ..middleware.auth import CurrentUser, get_current_user, require_admin
from ..responses import success
from ..schemas import CamelModel
from ...config import get_settings
from ...db.repositories import PdfRepository, UserRepository
from ...exceptions import (
    AuthorizationError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pdf", tags=["pdf"])

PDF_MIME_TYPE = "application/pdf"


class ExtendRequest(CamelModel):
    additional_months: int = 0
    additional_days: int = 0


@router.post("/admin/upload/{user_id}")
async def upload_pdf(
    user_id: int,
    response: Response,
    pdf: UploadFile = File(...),
    duration_months: int = Form(default=2, alias="durationMonths", ge=0),
    duration_days: int = Form(default=0, alias="durationDays", ge=0),
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
    pdfs: PdfRepository = Depends(get_pdf_repository),
):
    """Upload or replace a client's plan.

    The expiration restarts from now: ``now + durationMonths + durationDays``.
    Answers 201 for a first upload and 200 when a plan is replaced.
    """
    if pdf.content_type != PDF_MIME_TYPE:
        raise ValidationError("Only PDF files are allowed", field="pdf")

    max_bytes = get_settings().pdf_max_size_bytes
    content = await pdf.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise PayloadTooLargeError(
            f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB", max_bytes=max_bytes
        )
    if not content:
        raise ValidationError("Uploaded file is empty", field="pdf")

    if users.get_active_by_id(user_id) is None:
        raise NotFoundError("User", user_id)

    stored, created = pdfs.upsert(
        user_id,
        original_name=pdf.filename or "plan.pdf",
        content=content,
        uploaded_by=current_user.user_id,
        duration_months=duration_months,
        duration_days=duration_days,
        mime_type=PDF_MIME_TYPE,
    )
    logger.info(
        f"Admin {current_user.username} {'uploaded' if created else 'replaced'} PDF for user {user_id}"
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return success(
        stored.to_dict(),
        message="PDF uploaded successfully" if created else "PDF updated successfully",
    )


@router.put("/admin/extend/{user_id}")
async def extend_pdf(
    user_id: int,
    extend_request: ExtendRequest,
    current_user: CurrentUser = Depends(require_admin),
    pdfs: PdfRepository = Depends(get_pdf_repository),
):
    """Push a plan's expiration further out from its current value."""
    months = extend_request.additional_months
    days = extend_request.additional_days
    if months < 0 or days < 0 or (months == 0 and days == 0):
        raise ValidationError("Extension must add a positive number of months or days")

    extended = pdfs.extend(user_id, months, days)
    if extended is None:
        raise NotFoundError("PDF", user_id, message="PDF not found")
    return success(extended.to_dict(), message="PDF expiration extended successfully")


@router.delete("/admin/delete/{user_id}")
async def delete_pdf(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    pdfs: PdfRepository = Depends(get_pdf_repository),
):
    if not pdfs.delete(user_id):
        raise NotFoundError("PDF", user_id, message="PDF not found")
    return success(None, message="PDF deleted successfully")


@router.get("/admin/user/{user_id}")
async def get_user_pdf(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    pdfs: PdfRepository = Depends(get_pdf_repository),
):
    stored = pdfs.get(user_id)
    return success(stored.to_dict() if stored else None)


@router.get("/my-pdf")
async def get_my_pdf(
    current_user: CurrentUser = Depends(get_current_user),
    pdfs: PdfRepository = Depends(get_pdf_repository),
):
    stored = pdfs.get(current_user.user_id)
    return success(stored.to_dict() if stored else None)


@router.get("/download")
async def download_pdf(
    user_id: Optional[int] = Query(default=None, alias="userId"),
    current_user: CurrentUser = Depends(get_current_user),
    pdfs: PdfRepository = Depends(get_pdf_repository),
):
    """Download a plan; only admins may fetch someone else's."""
    target_id = user_id if user_id is not None else current_user.user_id
    if target_id != current_user.user_id and not current_user.is_admin:
        raise AuthorizationError("Access denied")

    stored = pdfs.get(target_id, with_data=True)
    if stored is None:
        raise NotFoundError("PDF", target_id, message="PDF not found")

    ascii_name = stored.original_name.encode("ascii", "replace").decode("ascii").replace('"', "")
    return Response(
        content=stored.content(),
        media_type=PDF_MIME_TYPE,
        headers={
            "Content-Disposition": (
                f'attachment; filename="{ascii_name}"; '
                f"filename*=UTF-8''{quote(stored.original_name)}"
            ),
        },
    )

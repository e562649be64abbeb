"""Customer inquiry endpoints: public submission and admin lifecycle."""

import csv
import io
import logging
from typing import Optional

from litestar import Controller, Request, Response, delete, get, patch, post
from litestar.exceptions import ValidationException
from litestar.status_codes import HTTP_200_OK
from sqlalchemy import desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.helpers import fetch_page, get_or_404
from app.api.schemas import (
    InquiryCreate,
    InquiryCreated,
    InquiryReply,
    InquiryResponse,
    InquiryStatusUpdate,
    MessageResponse,
    ReplyResult,
)
from app.auth.guards import require_admin_guard
from app.models import CustomerInquiry, InquiryStatus
from app.models.base import utcnow
from app.services import Mailer
from app.utils.pagination import Page, clamp_page

logger = logging.getLogger("AISolutions.inquiries")

CSV_COLUMNS = [
    "id", "name", "email", "phone", "company", "country",
    "job_title", "job_details", "status", "submitted_at",
]


def parse_status(value: Optional[str]) -> InquiryStatus:
    try:
        return InquiryStatus(value)
    except ValueError:
        raise ValidationException(
            detail="Invalid status",
            extra=[{"key": "status", "message": f"must be one of {[s.value for s in InquiryStatus]}"}],
        )


def inquiry_query(status: Optional[str] = None, q: Optional[str] = None):
    stmt = select(CustomerInquiry).order_by(desc(CustomerInquiry.submitted_at), desc(CustomerInquiry.id))
    if status:
        stmt = stmt.where(CustomerInquiry.status == parse_status(status))
    if q:
        stmt = stmt.where(
            or_(
                CustomerInquiry.name.icontains(q, autoescape=True),
                CustomerInquiry.email.icontains(q, autoescape=True),
                CustomerInquiry.company.icontains(q, autoescape=True),
                CustomerInquiry.job_title.icontains(q, autoescape=True),
                CustomerInquiry.country.icontains(q, autoescape=True),
            )
        )
    return stmt


@post("/")
async def submit_inquiry(data: InquiryCreate, session: AsyncSession) -> InquiryCreated:
    """Store a contact-form inquiry with status ``new``."""
    inquiry = CustomerInquiry(
        name=data.name.strip(),
        email=str(data.email),
        phone=data.phone,
        company=data.company,
        country=data.country,
        job_title=data.job_title,
        job_details=data.job_details,
        status=InquiryStatus.NEW,
    )
    session.add(inquiry)
    await session.commit()
    await session.refresh(inquiry)
    logger.info(f"Inquiry {inquiry.id} submitted by {inquiry.email}")
    return InquiryCreated(id=inquiry.id, submitted_at=inquiry.submitted_at)


class AdminInquiriesController(Controller):
    """Admin view of customer inquiries."""

    path = "/admin/inquiries"
    tags = ["admin", "inquiries"]
    guards = [require_admin_guard]

    @get("/")
    async def list_inquiries(
        self,
        session: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        q: Optional[str] = None,
    ) -> Page[InquiryResponse]:
        """List inquiries, newest first, optionally by status or search term."""
        params = clamp_page(page, limit)
        rows, total = await fetch_page(session, inquiry_query(status, q), params)
        return Page[InquiryResponse](
            items=[InquiryResponse.model_validate(r) for r in rows],
            page=params.page,
            limit=params.limit,
            total=total,
        )

    @get("/export.csv")
    async def export_csv(self, session: AsyncSession, status: Optional[str] = None) -> Response:
        """All matching inquiries as a CSV attachment."""
        rows = (await session.execute(inquiry_query(status))).scalars().all()
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_COLUMNS)
        for row in rows:
            writer.writerow([
                row.id, row.name, row.email, row.phone or "", row.company or "",
                row.country or "", row.job_title or "", row.job_details,
                row.status.value, row.submitted_at.isoformat() if row.submitted_at else "",
            ])
        logger.info(f"Exported {len(rows)} inquiries to CSV")
        return Response(
            content=buffer.getvalue(),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="inquiries.csv"'},
        )

    @get("/{inquiry_id:int}")
    async def get_inquiry(self, inquiry_id: int, session: AsyncSession) -> InquiryResponse:
        inquiry = await get_or_404(session, CustomerInquiry, inquiry_id, "Inquiry")
        return InquiryResponse.model_validate(inquiry)

    @patch("/{inquiry_id:int}")
    async def set_status(
        self,
        inquiry_id: int,
        data: InquiryStatusUpdate,
        session: AsyncSession,
    ) -> InquiryResponse:
        """Move an inquiry to any of the four statuses."""
        new_status = parse_status(data.status)
        inquiry = await get_or_404(session, CustomerInquiry, inquiry_id, "Inquiry")
        old_status = inquiry.status
        inquiry.status = new_status
        await session.commit()
        await session.refresh(inquiry)
        logger.info(f"Inquiry {inquiry_id} status {old_status.value} -> {new_status.value}")
        return InquiryResponse.model_validate(inquiry)

    @post("/{inquiry_id:int}/reply", status_code=HTTP_200_OK)
    async def reply(
        self,
        inquiry_id: int,
        data: InquiryReply,
        request: Request,
        session: AsyncSession,
        mailer: Mailer,
    ) -> ReplyResult:
        """Record a reply on the inquiry and try to email it. Status is left alone."""
        inquiry = await get_or_404(session, CustomerInquiry, inquiry_id, "Inquiry")
        inquiry.reply_message = data.message
        inquiry.replied_at = utcnow()
        email, name = inquiry.email, inquiry.name
        await session.commit()

        admin = request.state.get("admin")
        logger.info(f"Reply recorded for inquiry {inquiry_id} by {getattr(admin, 'email', 'unknown')}")

        result = await mailer.send_reply(email, name, data.message)
        if not result.ok:
            logger.warning(f"Reply email for inquiry {inquiry_id} not sent: {result.error}")
        return ReplyResult(ok=True, email_sent=result.ok, error=result.error)

    @delete("/{inquiry_id:int}", status_code=HTTP_200_OK)
    async def delete_inquiry(self, inquiry_id: int, session: AsyncSession) -> MessageResponse:
        inquiry = await get_or_404(session, CustomerInquiry, inquiry_id, "Inquiry")
        await session.delete(inquiry)
        await session.commit()
        logger.info(f"Inquiry {inquiry_id} deleted")
        return MessageResponse(message="Inquiry deleted")

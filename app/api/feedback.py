"""Feedback (testimonial) API endpoints."""

import logging
from typing import List, Optional

from litestar import Controller, delete, get, patch, post
from litestar.exceptions import ValidationException
from litestar.status_codes import HTTP_200_OK
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.helpers import fetch_page, get_or_404
from app.api.schemas import (
    FeedbackCreate,
    FeedbackCreated,
    FeedbackResponse,
    FeedbackStatusUpdate,
    MessageResponse,
)
from app.auth.guards import require_admin_guard
from app.models import Feedback, FeedbackStatus
from app.utils.pagination import Page, clamp_page

logger = logging.getLogger("AISolutions.feedback")

PUBLIC_LIMIT = 10


def parse_feedback_status(value: str) -> FeedbackStatus:
    try:
        return FeedbackStatus(value)
    except ValueError:
        raise ValidationException(detail="Invalid status")


class FeedbackController(Controller):
    """Public testimonials: read approved, submit new."""

    path = "/feedback"
    tags = ["feedback"]

    @get("/")
    async def list_approved(
        self,
        session: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[FeedbackResponse]:
        """Only approved feedback is ever shown publicly. Returns one page as a plain array."""
        params = clamp_page(page, limit, default_limit=PUBLIC_LIMIT)
        stmt = (
            select(Feedback)
            .where(Feedback.status == FeedbackStatus.APPROVED)
            .order_by(desc(Feedback.submitted_at), desc(Feedback.id))
            .limit(params.limit)
            .offset(params.offset)
        )
        rows = (await session.execute(stmt)).scalars().all()
        return [FeedbackResponse.model_validate(r) for r in rows]

    @post("/")
    async def submit_feedback(self, data: FeedbackCreate, session: AsyncSession) -> FeedbackCreated:
        logger.info(f"Feedback submitted by {data.name} (rating {data.rating})")

        feedback = Feedback(
            name=data.name.strip(),
            company=data.company,
            project=data.project,
            rating=data.rating,
            comment=data.comment,
            status=FeedbackStatus.PENDING,
        )
        session.add(feedback)
        await session.commit()
        await session.refresh(feedback)

        return FeedbackCreated(
            id=feedback.id,
            status=feedback.status,
            message="Thank you for your feedback! It will appear once reviewed.",
        )


class AdminFeedbackController(Controller):
    """Feedback moderation."""

    path = "/admin/feedback"
    tags = ["admin", "feedback"]
    guards = [require_admin_guard]

    @get("/")
    async def list_feedback(
        self,
        session: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        approved: Optional[bool] = None,
    ) -> Page[FeedbackResponse]:
        """``approved=true|false`` is the older filter and maps onto ``status``."""
        params = clamp_page(page, limit)
        stmt = select(Feedback).order_by(desc(Feedback.submitted_at), desc(Feedback.id))
        if status:
            stmt = stmt.where(Feedback.status == parse_feedback_status(status))
        elif approved is True:
            stmt = stmt.where(Feedback.status == FeedbackStatus.APPROVED)
        elif approved is False:
            stmt = stmt.where(Feedback.status != FeedbackStatus.APPROVED)

        rows, total = await fetch_page(session, stmt, params)
        return Page[FeedbackResponse](
            items=[FeedbackResponse.model_validate(r) for r in rows],
            page=params.page,
            limit=params.limit,
            total=total,
        )

    @patch("/{feedback_id:int}")
    async def set_status(
        self,
        feedback_id: int,
        data: FeedbackStatusUpdate,
        session: AsyncSession,
    ) -> FeedbackResponse:
        new_status = parse_feedback_status(data.status)
        feedback = await get_or_404(session, Feedback, feedback_id, "Feedback")
        feedback.status = new_status
        await session.commit()
        await session.refresh(feedback)
        logger.info(f"Feedback {feedback_id} marked {new_status.value}")
        return FeedbackResponse.model_validate(feedback)

    @delete("/{feedback_id:int}", status_code=HTTP_200_OK)
    async def delete_feedback(self, feedback_id: int, session: AsyncSession) -> MessageResponse:
        feedback = await get_or_404(session, Feedback, feedback_id, "Feedback")
        await session.delete(feedback)
        await session.commit()
        logger.info(f"Feedback {feedback_id} deleted")
        return MessageResponse(message="Feedback deleted")

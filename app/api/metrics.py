"""Admin dashboard metrics."""

import datetime as dt
import logging
from collections import Counter

from litestar import Controller, get
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import DayCount, MetricsResponse
from app.auth.guards import require_admin_guard
from app.models import Article, CustomerInquiry, Event, Feedback, FeedbackStatus, GalleryImage, InquiryStatus
from app.models.base import as_utc, utcnow

logger = logging.getLogger("AISolutions.metrics")

SERIES_DAYS = 7


def day_series(timestamps, today: dt.date, days: int = SERIES_DAYS) -> list:
    """Per-day counts for the last ``days`` days, oldest first, zero-filled."""
    per_day = Counter(as_utc(ts).date() for ts in timestamps if ts is not None)
    start = today - dt.timedelta(days=days - 1)
    return [
        DayCount(date=(start + dt.timedelta(days=i)).isoformat(), count=per_day.get(start + dt.timedelta(days=i), 0))
        for i in range(days)
    ]


async def count(session: AsyncSession, stmt) -> int:
    return int((await session.execute(stmt)).scalar() or 0)


class MetricsController(Controller):
    path = "/admin/metrics"
    tags = ["admin", "metrics"]
    guards = [require_admin_guard]

    @get("/")
    async def get_metrics(self, session: AsyncSession) -> MetricsResponse:
        """Inquiry totals and trend plus simple content counts."""
        now = utcnow()
        today = now.date()
        since = dt.datetime.combine(
            today - dt.timedelta(days=SERIES_DAYS - 1), dt.time.min, tzinfo=dt.timezone.utc
        )

        recent = (
            await session.execute(
                select(CustomerInquiry.submitted_at).where(CustomerInquiry.submitted_at >= since)
            )
        ).scalars().all()

        by_status = {status.value: 0 for status in InquiryStatus}
        rows = await session.execute(
            select(CustomerInquiry.status, func.count(CustomerInquiry.id)).group_by(CustomerInquiry.status)
        )
        for status, n in rows.all():
            by_status[InquiryStatus(status).value] = int(n)

        metrics = MetricsResponse(
            total_inquiries=sum(by_status.values()),
            last7_days=day_series(recent, today),
            by_status=by_status,
            total_articles=await count(session, select(func.count(Article.id))),
            total_events=await count(session, select(func.count(Event.id))),
            upcoming_events=await count(
                session, select(func.count(Event.id)).where(Event.date >= dt.date.today())
            ),
            pending_feedback=await count(
                session, select(func.count(Feedback.id)).where(Feedback.status == FeedbackStatus.PENDING)
            ),
            gallery_images=await count(session, select(func.count(GalleryImage.id))),
        )
        logger.debug(f"Metrics computed: {metrics.total_inquiries} inquiries")
        return metrics

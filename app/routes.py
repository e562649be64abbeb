from typing import List

from litestar import Router
from litestar.middleware.rate_limit import RateLimitConfig
from litestar.static_files import create_static_files_router

from app.api import (
    AdminArticlesController,
    AdminEventsController,
    AdminFeedbackController,
    AdminGalleriesController,
    AdminInquiriesController,
    ArticlesController,
    AuthController,
    EventsController,
    FeedbackController,
    GalleriesController,
    MetricsController,
    health,
    health_db,
    submit_inquiry,
)
from app.config import Settings


def build_routes(settings: Settings) -> List:
    """Everything under ``/api`` plus the uploads file server."""
    inquiry_limit = RateLimitConfig(rate_limit=settings.inquiry_rate_limit)
    inquiries = Router(
        path="/inquiries",
        route_handlers=[submit_inquiry],
        middleware=[inquiry_limit.middleware],
        tags=["inquiries"],
    )

    api = Router(
        path="/api",
        route_handlers=[
            health,
            health_db,
            AuthController,
            ArticlesController,
            EventsController,
            FeedbackController,
            GalleriesController,
            inquiries,
            AdminArticlesController,
            AdminEventsController,
            AdminFeedbackController,
            AdminGalleriesController,
            AdminInquiriesController,
            MetricsController,
        ],
    )

    return [
        api,
        create_static_files_router(
            path="/uploads",
            directories=[settings.upload_dir],
            name="uploads",
        ),
    ]

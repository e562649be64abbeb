"""AI-Solutions API controllers."""

from app.api.articles import AdminArticlesController, ArticlesController
from app.api.auth import AuthController
from app.api.events import AdminEventsController, EventsController
from app.api.feedback import AdminFeedbackController, FeedbackController
from app.api.galleries import AdminGalleriesController, GalleriesController
from app.api.health import health, health_db
from app.api.inquiries import AdminInquiriesController, submit_inquiry
from app.api.metrics import MetricsController

__all__ = [
    "AdminArticlesController",
    "AdminEventsController",
    "AdminFeedbackController",
    "AdminGalleriesController",
    "AdminInquiriesController",
    "ArticlesController",
    "AuthController",
    "EventsController",
    "FeedbackController",
    "GalleriesController",
    "MetricsController",
    "health",
    "health_db",
    "submit_inquiry",
]

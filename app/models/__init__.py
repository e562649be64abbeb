"""AI-Solutions database models."""

from app.models.base import Base
from app.models.admin import Admin
from app.models.inquiry import CustomerInquiry, InquiryStatus
from app.models.article import Article
from app.models.event import Event, EventType, EventStatus
from app.models.feedback import Feedback, FeedbackStatus
from app.models.gallery import GalleryImage

__all__ = [
    "Base",
    "Admin",
    "CustomerInquiry",
    "InquiryStatus",
    "Article",
    "Event",
    "EventType",
    "EventStatus",
    "Feedback",
    "FeedbackStatus",
    "GalleryImage",
]

"""Request/response schemas shared by the public and admin controllers."""

import datetime as dt
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from litestar.exceptions import ValidationException
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from app.models import EventStatus, EventType, FeedbackStatus, InquiryStatus
from app.utils.text import normalize_tags

M = TypeVar("M", bound=BaseModel)

PHONE_PATTERN = r"^\+?[0-9\s-]{7,20}$"


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; either accepted on input."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def validate_payload(model: Type[M], payload: Mapping[str, Any]) -> M:
    """Validate a hand-parsed payload (e.g. multipart form) like a request body."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        extra = [
            {"key": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationException(detail="Validation failed", extra=extra)


# --- Auth ---

class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=200)


class VerifyOtpRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    otp: str = Field(min_length=4, max_length=12)

    @field_validator("otp", mode="before")
    @classmethod
    def otp_as_string(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class AdminInfo(BaseModel):
    id: int
    email: str


class TokenResponse(BaseModel):
    ok: bool = True
    token: str
    admin: AdminInfo


class OtpSentResponse(BaseModel):
    ok: bool = True
    message: str = "OTP_SENT"


# --- Inquiries ---

class InquiryCreate(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    company: Optional[str] = Field(default=None, max_length=120)
    country: Optional[str] = Field(default=None, max_length=120)
    job_title: Optional[str] = Field(default=None, max_length=120)
    job_details: str = Field(min_length=10, max_length=5000)


class InquiryCreated(CamelModel):
    id: int
    submitted_at: dt.datetime


class InquiryResponse(CamelModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    country: Optional[str] = None
    job_title: Optional[str] = None
    job_details: str
    status: InquiryStatus
    reply_message: Optional[str] = None
    replied_at: Optional[dt.datetime] = None
    submitted_at: dt.datetime


class InquiryStatusUpdate(BaseModel):
    # Plain str so an unknown value reaches the handler and gets a 400
    status: str


class InquiryReply(BaseModel):
    message: str = Field(min_length=1, max_length=10000)

    @field_validator("message")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Reply message is required")
        return value.strip()


class ReplyResult(CamelModel):
    ok: bool
    email_sent: bool
    error: Optional[str] = None


# --- Articles ---

class ArticleCreate(CamelModel):
    title: str = Field(min_length=2, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=220)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = Field(default=None, max_length=120)
    category: Optional[str] = Field(default=None, max_length=80)
    tags: Optional[Union[List[str], str]] = None
    read_time: Optional[int] = Field(default=None, ge=0)
    featured: Optional[bool] = None
    published_at: Optional[dt.datetime] = None
    image_url: Optional[str] = None

    @field_validator("tags", mode="after")
    @classmethod
    def split_tags(cls, value: Any) -> Optional[List[str]]:
        return normalize_tags(value)


class ArticleUpdate(ArticleCreate):
    title: Optional[str] = Field(default=None, min_length=2, max_length=200)
    clear_image: Optional[bool] = None


class ArticleResponse(CamelModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = []
    read_time: Optional[int] = None
    views: int = 0
    featured: bool = False
    image_url: Optional[str] = None
    published_at: Optional[dt.datetime] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    @field_validator("tags", mode="before")
    @classmethod
    def tags_default(cls, value: Any) -> Any:
        return value or []


# --- Events ---

class EventCreate(CamelModel):
    title: str = Field(min_length=2, max_length=200)
    description: Optional[str] = None
    date: dt.date
    time: Optional[str] = Field(default=None, max_length=20)
    time_range: Optional[str] = Field(default=None, max_length=60)
    location: Optional[str] = Field(default=None, max_length=255)
    type: EventType
    attendees: Optional[int] = Field(default=None, ge=0)
    max_attendees: Optional[int] = Field(default=None, ge=0)
    featured: Optional[bool] = None
    image_url: Optional[str] = None


class EventUpdate(EventCreate):
    title: Optional[str] = Field(default=None, min_length=2, max_length=200)
    date: Optional[dt.date] = None
    type: Optional[EventType] = None
    clear_image: Optional[bool] = None


class EventResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    date: dt.date
    time: Optional[str] = None
    time_range: Optional[str] = None
    location: Optional[str] = None
    type: EventType
    status: EventStatus
    attendees: Optional[int] = None
    max_attendees: Optional[int] = None
    featured: bool = False
    image_url: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


# --- Feedback ---

class FeedbackCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    company: Optional[str] = Field(default=None, max_length=120)
    project: Optional[str] = Field(default=None, max_length=120)
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=5000)


class FeedbackCreated(CamelModel):
    id: int
    status: FeedbackStatus
    message: str


class FeedbackResponse(CamelModel):
    id: int
    name: str
    company: Optional[str] = None
    project: Optional[str] = None
    rating: int
    comment: str
    status: FeedbackStatus
    submitted_at: dt.datetime


class FeedbackStatusUpdate(BaseModel):
    status: str


# --- Gallery ---

class GalleryImageCreate(CamelModel):
    url: str = Field(min_length=1, pattern=r"^(https?://|/)")
    caption: Optional[str] = Field(default=None, max_length=300)


class GalleryImageResponse(CamelModel):
    id: int
    filename: Optional[str] = None
    url: str
    caption: Optional[str] = None
    uploaded_at: dt.datetime


# --- Metrics / health ---

class DayCount(BaseModel):
    date: str
    count: int


class MetricsResponse(CamelModel):
    total_inquiries: int
    last7_days: List[DayCount]
    by_status: Dict[str, int]
    total_articles: int
    total_events: int
    upcoming_events: int
    pending_feedback: int
    gallery_images: int


class MessageResponse(BaseModel):
    ok: bool = True
    message: str

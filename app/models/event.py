"""Company event model."""

import enum
import datetime as dt
from typing import Optional

from sqlalchemy import Boolean, Date, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class EventType(str, enum.Enum):
    """Kinds of events listed on the site."""
    CONFERENCE = "conference"
    WORKSHOP = "workshop"
    WEBINAR = "webinar"
    DEMO = "demo"


class EventStatus(str, enum.Enum):
    """Derived from the event date, never stored."""
    UPCOMING = "upcoming"
    PAST = "past"


class Event(TimestampMixin, Base):
    """A conference, workshop, webinar or demo."""

    __tablename__ = "events"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    time: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    time_range: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    type: Mapped[EventType] = mapped_column(
        Enum(
            EventType,
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
            validate_strings=True,
        ),
        default=EventType.CONFERENCE,
        server_default=EventType.CONFERENCE.value,
    )
    attendees: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_attendees: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")

    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def status_on(self, today: dt.date) -> EventStatus:
        return EventStatus.UPCOMING if self.date >= today else EventStatus.PAST

    @property
    def status(self) -> EventStatus:
        return self.status_on(dt.date.today())

    def __repr__(self) -> str:
        return f"<Event {self.title} ({self.date})>"

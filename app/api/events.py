"""Event endpoints: public listing and admin CRUD."""

import datetime as dt
import logging
from typing import Optional

from litestar import Controller, Request, delete, get, post, put
from litestar.exceptions import ValidationException
from litestar.params import Parameter
from litestar.status_codes import HTTP_200_OK
from sqlalchemy import asc, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.helpers import apply_image, fetch_page, get_or_404, read_payload
from app.api.schemas import EventCreate, EventResponse, EventUpdate, MessageResponse, validate_payload
from app.auth.guards import require_admin_guard
from app.models import Event, EventStatus, EventType
from app.services import Storage
from app.utils.pagination import Page, clamp_page

logger = logging.getLogger("AISolutions.events")

IMAGE_FOLDER = "events"

EDITABLE_FIELDS = (
    "title", "description", "date", "time", "time_range", "location",
    "type", "attendees", "max_attendees", "featured",
)


def event_query(
    status: Optional[str] = None,
    event_type: Optional[str] = None,
    date_from: Optional[dt.date] = None,
    date_to: Optional[dt.date] = None,
    today: Optional[dt.date] = None,
):
    """
    Build the event listing query.

    Upcoming events (``date >= today``) are listed soonest first; everything
    else is listed most recent first. Ties are broken by id descending.
    """
    today = today or dt.date.today()
    stmt = select(Event)

    if status:
        try:
            wanted = EventStatus(status)
        except ValueError:
            raise ValidationException(detail="Invalid status")
        stmt = stmt.where(Event.date >= today if wanted is EventStatus.UPCOMING else Event.date < today)
    if event_type:
        try:
            stmt = stmt.where(Event.type == EventType(event_type))
        except ValueError:
            raise ValidationException(detail="Invalid event type")
    if date_from:
        stmt = stmt.where(Event.date >= date_from)
    if date_to:
        stmt = stmt.where(Event.date <= date_to)

    if status == EventStatus.UPCOMING.value:
        return stmt.order_by(asc(Event.date), desc(Event.id))
    return stmt.order_by(desc(Event.date), desc(Event.id))


def to_page(rows, params, total) -> Page[EventResponse]:
    return Page[EventResponse](
        items=[EventResponse.model_validate(r) for r in rows],
        page=params.page,
        limit=params.limit,
        total=total,
    )


class EventsController(Controller):
    path = "/events"
    tags = ["events"]

    @get("/")
    async def list_events(
        self,
        session: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        event_type: Optional[str] = Parameter(query="type", default=None),
        date_from: Optional[dt.date] = Parameter(query="from", default=None),
        date_to: Optional[dt.date] = Parameter(query="to", default=None),
    ) -> Page[EventResponse]:
        params = clamp_page(page, limit)
        stmt = event_query(status, event_type, date_from, date_to)
        rows, total = await fetch_page(session, stmt, params)
        return to_page(rows, params, total)

    @get("/{event_id:int}")
    async def get_event(self, event_id: int, session: AsyncSession) -> EventResponse:
        event = await get_or_404(session, Event, event_id, "Event")
        return EventResponse.model_validate(event)


class AdminEventsController(Controller):
    """Event management. Accepts JSON or multipart with an ``image`` file."""

    path = "/admin/events"
    tags = ["admin", "events"]
    guards = [require_admin_guard]

    @get("/")
    async def list_events(
        self,
        session: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        event_type: Optional[str] = Parameter(query="type", default=None),
    ) -> Page[EventResponse]:
        params = clamp_page(page, limit)
        rows, total = await fetch_page(session, event_query(status, event_type), params)
        return to_page(rows, params, total)

    @get("/{event_id:int}")
    async def get_event(self, event_id: int, session: AsyncSession) -> EventResponse:
        event = await get_or_404(session, Event, event_id, "Event")
        return EventResponse.model_validate(event)

    @post("/")
    async def create_event(self, request: Request, session: AsyncSession, storage: Storage) -> EventResponse:
        payload, upload = await read_payload(request)
        data = validate_payload(EventCreate, payload)

        event = Event(
            title=data.title.strip(),
            description=data.description,
            date=data.date,
            time=data.time,
            time_range=data.time_range,
            location=data.location,
            type=data.type,
            attendees=data.attendees,
            max_attendees=data.max_attendees,
            featured=bool(data.featured),
        )
        await apply_image(event, storage, IMAGE_FOLDER, upload=upload, image_url=data.image_url)

        session.add(event)
        await session.commit()
        await session.refresh(event)
        logger.info(f"Event created: {event.id} ({event.title})")
        return EventResponse.model_validate(event)

    @put("/{event_id:int}")
    async def update_event(
        self,
        event_id: int,
        request: Request,
        session: AsyncSession,
        storage: Storage,
    ) -> EventResponse:
        payload, upload = await read_payload(request)
        data = validate_payload(EventUpdate, payload)
        event = await get_or_404(session, Event, event_id, "Event")

        for name in EDITABLE_FIELDS:
            value = getattr(data, name)
            if value is not None:
                setattr(event, name, value)

        stale = await apply_image(
            event,
            storage,
            IMAGE_FOLDER,
            upload=upload,
            image_url=data.image_url,
            clear=bool(data.clear_image),
        )
        await session.commit()
        await session.refresh(event)
        if stale:
            await storage.delete(stale, IMAGE_FOLDER)
        logger.info(f"Event updated: {event_id}")
        return EventResponse.model_validate(event)

    @delete("/{event_id:int}", status_code=HTTP_200_OK)
    async def delete_event(self, event_id: int, session: AsyncSession, storage: Storage) -> MessageResponse:
        event = await get_or_404(session, Event, event_id, "Event")
        filename = event.image_filename
        await session.delete(event)
        await session.commit()
        if filename:
            await storage.delete(filename, IMAGE_FOLDER)
        logger.info(f"Event deleted: {event_id}")
        return MessageResponse(message="Event deleted")

"""Request parsing, image handling and persistence helpers shared by controllers."""

import logging
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from litestar import Request
from litestar.datastructures import UploadFile
from litestar.exceptions import HTTPException, NotFoundException, SerializationException, ValidationException
from litestar.status_codes import HTTP_409_CONFLICT
from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Base
from app.services import Storage
from app.utils.logging import debug_log, error_log
from app.utils.pagination import PageParams

logger = logging.getLogger("AISolutions.api")

ModelT = TypeVar("ModelT", bound=Base)

IMAGE_FIELD = "image"
FORM_MEDIA_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_payload(request: Request) -> Tuple[Dict[str, Any], Optional[UploadFile]]:
    """
    Read a JSON or form body into a plain dict plus the optional ``image`` upload.

    Empty form fields are treated as omitted. Repeated form fields become lists.
    """
    media_type, _ = request.content_type
    if media_type in FORM_MEDIA_TYPES:
        form = await request.form()
        payload: Dict[str, Any] = {}
        upload: Optional[UploadFile] = None
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == IMAGE_FIELD and value.filename:
                    upload = value
                continue
            if value == "":
                continue
            if key in payload:
                existing = payload[key]
                payload[key] = existing + [value] if isinstance(existing, list) else [existing, value]
            else:
                payload[key] = value
        debug_log("Form payload fields: %s (image: %s)", sorted(payload), bool(upload))
        return payload, upload

    body = await request.body()
    if not body.strip():
        return {}, None
    try:
        data = await request.json()
    except SerializationException:
        raise ValidationException(detail="Malformed JSON body")
    if not isinstance(data, dict):
        raise ValidationException(detail="Request body must be a JSON object")
    return data, None


async def get_or_404(session: AsyncSession, model: Type[ModelT], obj_id: int, label: str) -> ModelT:
    obj = await session.get(model, obj_id)
    if obj is None:
        raise NotFoundException(f"{label} not found")
    return obj


async def fetch_page(session: AsyncSession, stmt: Select, params: PageParams) -> Tuple[list, int]:
    """Run ``stmt`` for one page and count the full (unpaged) result."""
    total = (await session.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))).scalar() or 0
    rows = (await session.execute(stmt.limit(params.limit).offset(params.offset))).scalars().all()
    return list(rows), int(total)


async def commit_or_conflict(session: AsyncSession, conflict_message: str, context: Optional[dict] = None) -> None:
    """Commit, turning a unique-constraint violation into a 409."""
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        error_log("Integrity error on commit", exc=e, context=context)
        raise HTTPException(detail=conflict_message, status_code=HTTP_409_CONFLICT)


async def apply_image(
    target: Any,
    storage: Storage,
    folder: str,
    upload: Optional[UploadFile] = None,
    image_url: Optional[str] = None,
    clear: bool = False,
) -> Optional[str]:
    """
    Apply one of the image modes to ``target`` (an Article or Event).

    Precedence is upload, then URL, then clear; none of them keeps the current
    image. Returns the filename of a replaced local upload so the caller can
    remove it once the row is committed. A failed upload leaves the image as it was.
    """
    previous = target.image_filename

    if upload is not None:
        result = await storage.save(await upload.read(), upload.filename, upload.content_type, folder)
        if not result.ok:
            logger.warning(f"Image upload failed ({result.error}); keeping existing image")
            return None
        target.image_url = result.url
        target.image_filename = result.filename
    elif image_url:
        target.image_url = image_url
        target.image_filename = None
    elif clear:
        target.image_url = None
        target.image_filename = None
    else:
        return None

    return previous if previous and previous != target.image_filename else None

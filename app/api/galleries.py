"""Gallery image endpoints."""

import logging
from typing import Optional

from litestar import Controller, Request, delete, get, post
from litestar.exceptions import HTTPException, ValidationException
from litestar.status_codes import HTTP_200_OK, HTTP_502_BAD_GATEWAY
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.helpers import fetch_page, get_or_404, read_payload
from app.api.schemas import GalleryImageCreate, GalleryImageResponse, MessageResponse, validate_payload
from app.auth.guards import require_admin_guard
from app.models import GalleryImage
from app.services import Storage
from app.utils.pagination import Page, clamp_page

logger = logging.getLogger("AISolutions.galleries")

IMAGE_FOLDER = "gallery"


async def list_images(session: AsyncSession, page: Optional[int], limit: Optional[int]) -> Page[GalleryImageResponse]:
    params = clamp_page(page, limit, default_limit=50)
    stmt = select(GalleryImage).order_by(desc(GalleryImage.uploaded_at), desc(GalleryImage.id))
    rows, total = await fetch_page(session, stmt, params)
    return Page[GalleryImageResponse](
        items=[GalleryImageResponse.model_validate(r) for r in rows],
        page=params.page,
        limit=params.limit,
        total=total,
    )


class GalleriesController(Controller):
    path = "/galleries"
    tags = ["galleries"]

    @get("/")
    async def list_galleries(
        self,
        session: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[GalleryImageResponse]:
        return await list_images(session, page, limit)

    @get("/{image_id:int}")
    async def get_image(self, image_id: int, session: AsyncSession) -> GalleryImageResponse:
        image = await get_or_404(session, GalleryImage, image_id, "Image")
        return GalleryImageResponse.model_validate(image)


class AdminGalleriesController(Controller):
    path = "/admin/galleries"
    tags = ["admin", "galleries"]
    guards = [require_admin_guard]

    @get("/")
    async def list_galleries(
        self,
        session: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[GalleryImageResponse]:
        return await list_images(session, page, limit)

    @post("/")
    async def add_image(self, request: Request, session: AsyncSession, storage: Storage) -> GalleryImageResponse:
        """
        Add a gallery image.

        Multipart requests carry the file in ``image``; JSON requests give an
        existing ``url``. Since the image is the whole record, a failed upload
        is reported as 502 and nothing is stored. A stored file whose caption
        fails validation is removed again.
        """
        payload, upload = await read_payload(request)
        caption = payload.get("caption")

        if upload is not None:
            result = await storage.save(await upload.read(), upload.filename, upload.content_type, IMAGE_FOLDER)
            if not result.ok:
                raise HTTPException(detail=result.error, status_code=HTTP_502_BAD_GATEWAY)
            try:
                data = validate_payload(GalleryImageCreate, {"url": result.url, "caption": caption})
            except ValidationException:
                await storage.delete(result.filename, IMAGE_FOLDER)
                raise
            image = GalleryImage(filename=result.filename, url=data.url, caption=data.caption)
        else:
            data = validate_payload(GalleryImageCreate, payload)
            image = GalleryImage(url=data.url, caption=data.caption)

        session.add(image)
        await session.commit()
        await session.refresh(image)
        logger.info(f"Gallery image added: {image.id}")
        return GalleryImageResponse.model_validate(image)

    @delete("/{image_id:int}", status_code=HTTP_200_OK)
    async def delete_image(self, image_id: int, session: AsyncSession, storage: Storage) -> MessageResponse:
        image = await get_or_404(session, GalleryImage, image_id, "Image")
        filename = image.filename
        await session.delete(image)
        await session.commit()
        if filename:
            await storage.delete(filename, IMAGE_FOLDER)
        logger.info(f"Gallery image deleted: {image_id}")
        return MessageResponse(message="Image deleted")

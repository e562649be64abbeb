"""Article endpoints: public reading and admin CRUD."""

import logging
from typing import Optional

from litestar import Controller, Request, delete, get, post, put
from litestar.exceptions import HTTPException, NotFoundException
from litestar.status_codes import HTTP_200_OK
from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.helpers import apply_image, commit_or_conflict, fetch_page, get_or_404, read_payload
from app.api.schemas import ArticleCreate, ArticleResponse, ArticleUpdate, MessageResponse, validate_payload
from app.auth.guards import require_admin_guard
from app.models import Article
from app.models.base import utcnow
from app.services import Storage
from app.utils.pagination import Page, clamp_page
from app.utils.text import estimate_read_time, slugify

logger = logging.getLogger("AISolutions.articles")

IMAGE_FOLDER = "articles"
SLUG_CONFLICT = "Slug already exists"

# Fields copied verbatim from the payload when present
EDITABLE_FIELDS = (
    "title", "excerpt", "description", "content", "author",
    "category", "tags", "read_time", "featured", "published_at",
)


def article_query(category: Optional[str] = None, q: Optional[str] = None, featured: Optional[bool] = None):
    stmt = select(Article).order_by(
        desc(func.coalesce(Article.published_at, Article.created_at)),
        desc(Article.id),
    )
    if category:
        stmt = stmt.where(Article.category == category)
    if q:
        stmt = stmt.where(
            or_(
                Article.title.icontains(q, autoescape=True),
                Article.excerpt.icontains(q, autoescape=True),
                Article.content.icontains(q, autoescape=True),
            )
        )
    if featured is not None:
        stmt = stmt.where(Article.featured.is_(featured))
    return stmt


def is_published():
    return or_(Article.published_at.is_(None), Article.published_at <= utcnow())


def to_page(rows, params, total) -> Page[ArticleResponse]:
    return Page[ArticleResponse](
        items=[ArticleResponse.model_validate(r) for r in rows],
        page=params.page,
        limit=params.limit,
        total=total,
    )


async def commit_or_discard(
    session: AsyncSession,
    storage: Storage,
    uploaded: Optional[str],
    context: dict,
) -> None:
    """Commit the article; a slug conflict also removes the file uploaded for it."""
    try:
        await commit_or_conflict(session, SLUG_CONFLICT, context)
    except HTTPException:
        if uploaded:
            await storage.delete(uploaded, IMAGE_FOLDER)
        raise


class ArticlesController(Controller):
    """Published articles for the public site."""

    path = "/articles"
    tags = ["articles"]

    @get("/")
    async def list_articles(
        self,
        session: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        q: Optional[str] = None,
        featured: Optional[bool] = None,
    ) -> Page[ArticleResponse]:
        """Newest first. Articles scheduled for the future stay hidden."""
        params = clamp_page(page, limit, default_limit=10)
        stmt = article_query(category, q, featured).where(is_published())
        rows, total = await fetch_page(session, stmt, params)
        return to_page(rows, params, total)

    async def _read_by_slug(self, slug: str, session: AsyncSession) -> ArticleResponse:
        """Scheduled articles are not readable before their publish time."""
        visible = (Article.slug == slug, is_published())
        result = await session.execute(
            update(Article)
            .where(*visible)
            .values(views=Article.views + 1)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            raise NotFoundException("Article not found")
        await session.commit()
        article = (await session.execute(select(Article).where(*visible))).scalar_one()
        return ArticleResponse.model_validate(article)

    @get("/{slug:str}")
    async def get_article(self, slug: str, session: AsyncSession) -> ArticleResponse:
        return await self._read_by_slug(slug, session)

    @get("/slug/{slug:str}")
    async def get_article_by_slug(self, slug: str, session: AsyncSession) -> ArticleResponse:
        return await self._read_by_slug(slug, session)


class AdminArticlesController(Controller):
    """Article management. Accepts JSON or multipart with an ``image`` file."""

    path = "/admin/articles"
    tags = ["admin", "articles"]
    guards = [require_admin_guard]

    @get("/")
    async def list_articles(
        self,
        session: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        q: Optional[str] = None,
    ) -> Page[ArticleResponse]:
        params = clamp_page(page, limit)
        rows, total = await fetch_page(session, article_query(category, q), params)
        return to_page(rows, params, total)

    @get("/{article_id:int}")
    async def get_article(self, article_id: int, session: AsyncSession) -> ArticleResponse:
        article = await get_or_404(session, Article, article_id, "Article")
        return ArticleResponse.model_validate(article)

    @post("/")
    async def create_article(self, request: Request, session: AsyncSession, storage: Storage) -> ArticleResponse:
        payload, upload = await read_payload(request)
        data = validate_payload(ArticleCreate, payload)

        slug = slugify(data.slug or data.title)
        if not slug:
            slug = f"article-{int(utcnow().timestamp())}"

        article = Article(
            title=data.title.strip(),
            slug=slug,
            excerpt=data.excerpt,
            description=data.description,
            content=data.content,
            author=data.author,
            category=data.category,
            tags=data.tags or [],
            read_time=data.read_time or estimate_read_time(data.content, data.description),
            featured=bool(data.featured),
            published_at=data.published_at or utcnow(),
        )
        await apply_image(article, storage, IMAGE_FOLDER, upload=upload, image_url=data.image_url)

        session.add(article)
        await commit_or_discard(session, storage, article.image_filename, {"slug": slug})
        await session.refresh(article)
        logger.info(f"Article created: {article.id} ({article.slug})")
        return ArticleResponse.model_validate(article)

    @put("/{article_id:int}")
    async def update_article(
        self,
        article_id: int,
        request: Request,
        session: AsyncSession,
        storage: Storage,
    ) -> ArticleResponse:
        """Omitted fields keep their value. The slug only changes when one is sent."""
        payload, upload = await read_payload(request)
        data = validate_payload(ArticleUpdate, payload)
        article = await get_or_404(session, Article, article_id, "Article")

        for name in EDITABLE_FIELDS:
            value = getattr(data, name)
            if value is not None:
                setattr(article, name, value)
        if data.slug:
            article.slug = slugify(data.slug) or article.slug

        previous = article.image_filename
        stale = await apply_image(
            article,
            storage,
            IMAGE_FOLDER,
            upload=upload,
            image_url=data.image_url,
            clear=bool(data.clear_image),
        )
        uploaded = article.image_filename if article.image_filename != previous else None
        await commit_or_discard(session, storage, uploaded, {"article_id": article_id})
        await session.refresh(article)
        if stale:
            await storage.delete(stale, IMAGE_FOLDER)
        logger.info(f"Article updated: {article_id}")
        return ArticleResponse.model_validate(article)

    @delete("/{article_id:int}", status_code=HTTP_200_OK)
    async def delete_article(self, article_id: int, session: AsyncSession, storage: Storage) -> MessageResponse:
        article = await get_or_404(session, Article, article_id, "Article")
        filename = article.image_filename
        await session.delete(article)
        await session.commit()
        if filename:
            await storage.delete(filename, IMAGE_FOLDER)
        logger.info(f"Article deleted: {article_id}")
        return MessageResponse(message="Article deleted")

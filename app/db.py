"""Database engine construction, connectivity check and idempotent bootstrap."""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from sqlalchemy import Column, func, inspect, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from app.auth.security import hash_password
from app.config import Settings
from app.models import Admin, Article, Base, Event, GalleryImage
from app.models.base import utcnow

logger = logging.getLogger("AISolutions.db")

TABLES = [
    "admins",
    "articles",
    "events",
    "feedback",
    "customer_inquiries",
    "gallery_images",
]

# Columns the first production schema stored under another name:
# (table, column, legacy column). The new column is added and backfilled
# from the legacy one, which is kept but no longer required.
LEGACY_COLUMNS = [
    ("events", "date", "event_date"),
    ("feedback", "submitted_at", "created_at"),
    ("gallery_images", "url", "image_url"),
    ("gallery_images", "uploaded_at", "created_at"),
]

# How a legacy value is converted per dialect; plain copy otherwise
LEGACY_CASTS = {
    ("events", "date"): {"postgresql": "CAST({legacy} AS DATE)", "sqlite": "date({legacy})"},
}


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build the pooled engine. Pool sizing only applies to Postgres."""
    kwargs: Dict = {"echo": False}
    if settings.is_postgres:
        connect_args: Dict = {"timeout": settings.db_connect_timeout}
        if settings.db_ssl_mode and settings.db_ssl_mode != "disable":
            connect_args["ssl"] = settings.db_ssl_mode
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_timeout=settings.db_connect_timeout,
            pool_recycle=settings.db_idle_timeout * 10,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
    return create_async_engine(settings.database_url, **kwargs)


async def check_database_connection(engine: AsyncEngine) -> None:
    """Fail fast at startup when the database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connection OK")


async def table_counts(conn: AsyncConnection, tables: Sequence[str] = TABLES) -> Dict[str, Optional[int]]:
    """Row count per table; None marks a table that does not exist."""
    existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
    counts: Dict[str, Optional[int]] = {}
    for table in tables:
        if table not in existing:
            counts[table] = None
            continue
        # table names come from the fixed list above
        result = await conn.execute(text(f"SELECT COUNT(*) FROM {table}"))
        counts[table] = int(result.scalar() or 0)
    return counts


def _insert_for(conn: AsyncConnection):
    return postgresql.insert if conn.dialect.name == "postgresql" else sqlite.insert


async def seed_admin(conn: AsyncConnection, email: str, password: str) -> None:
    """Upsert the single admin identity; re-running only refreshes the hash."""
    insert = _insert_for(conn)
    stmt = insert(Admin).values(
        email=email.strip().lower(),
        password_hash=hash_password(password),
        otp_attempts=0,
        created_at=utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["email"],
        set_={"password_hash": stmt.excluded.password_hash},
    )
    await conn.execute(stmt)


def _columns_by_table(sync_conn) -> Dict[str, Dict[str, dict]]:
    inspector = inspect(sync_conn)
    return {
        table: {c["name"]: c for c in inspector.get_columns(table)}
        for table in inspector.get_table_names()
    }


def column_ddl(column: Column, dialect: Dialect) -> str:
    """
    Column definition for ``ALTER TABLE ... ADD COLUMN``.

    NOT NULL is only emitted together with a server default so rows that
    already exist stay valid. SQLite refuses non-constant defaults here, so
    those are left off and the column stays nullable.
    """
    ddl = f"{dialect.identifier_preparer.format_column(column)} {column.type.compile(dialect=dialect)}"
    default = column.server_default
    if default is None or (dialect.name == "sqlite" and not isinstance(default.arg, str)):
        return ddl
    compiler = dialect.ddl_compiler(dialect, None)
    ddl += f" DEFAULT {compiler.get_column_default_string(column)}"
    if not column.nullable:
        ddl += " NOT NULL"
    return ddl


async def reconcile_columns(conn: AsyncConnection) -> None:
    """
    Bring tables created by earlier releases up to the current models.

    ``create_all`` never alters an existing table. Renamed columns are added
    and backfilled from their legacy counterpart first; every other model
    column that is still missing is then added with its server default.
    """
    existing = await conn.run_sync(_columns_by_table)
    dialect = conn.dialect
    quote = dialect.identifier_preparer.quote

    for table_name, column_name, legacy_name in LEGACY_COLUMNS:
        columns = existing.get(table_name, {})
        if legacy_name not in columns:
            continue
        table_sql, column_sql, legacy_sql = quote(table_name), quote(column_name), quote(legacy_name)
        if column_name not in columns:
            column = Base.metadata.tables[table_name].c[column_name]
            await conn.execute(text(
                f"ALTER TABLE {table_sql} ADD COLUMN {column_sql} {column.type.compile(dialect=dialect)}"
            ))
            expression = LEGACY_CASTS.get((table_name, column_name), {}).get(dialect.name, "{legacy}")
            result = await conn.execute(text(
                f"UPDATE {table_sql} SET {column_sql} = {expression.format(legacy=legacy_sql)}"
            ))
            columns[column_name] = {"name": column_name, "nullable": True}
            logger.info(f"Backfilled {table_name}.{column_name} from {legacy_name} ({result.rowcount} rows)")
        # new rows no longer write the legacy column; SQLite cannot relax it in place
        if dialect.name == "postgresql" and not columns[legacy_name]["nullable"]:
            await conn.execute(text(f"ALTER TABLE {table_sql} ALTER COLUMN {legacy_sql} DROP NOT NULL"))
            columns[legacy_name]["nullable"] = True

    for table in Base.metadata.sorted_tables:
        columns = existing.get(table.name)
        if columns is None:
            continue
        for column in table.columns:
            if column.name in columns:
                continue
            await conn.execute(text(
                f"ALTER TABLE {dialect.identifier_preparer.format_table(table)} "
                f"ADD COLUMN {column_ddl(column, dialect)}"
            ))
            columns[column.name] = {"name": column.name, "nullable": column.nullable}
            logger.info(f"Added column {table.name}.{column.name}")


async def migrate_legacy_feedback(conn: AsyncConnection) -> None:
    """Copy the old ``verified`` boolean into the ``status`` enum."""
    columns = await conn.run_sync(
        lambda sync_conn: [c["name"] for c in inspect(sync_conn).get_columns("feedback")]
    )
    if "verified" not in columns:
        return
    result = await conn.execute(
        text("UPDATE feedback SET status = 'approved' WHERE verified = TRUE AND status = 'pending'")
    )
    logger.info(f"Migrated {result.rowcount} verified feedback rows to status=approved")


async def bootstrap_database(engine: AsyncEngine, admin_email: str, admin_password: str) -> None:
    """
    Create the schema and seed the admin in a single transaction.

    Safe to run any number of times: tables are created only if missing,
    missing columns are added only once and the admin seed is an upsert.
    Any failure rolls the whole transaction back and re-raises.
    """
    logger.info("Bootstrapping database schema")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await reconcile_columns(conn)
            await migrate_legacy_feedback(conn)
            await seed_admin(conn, admin_email, admin_password)
    except Exception:
        logger.exception("Database bootstrap failed, rolled back")
        raise
    logger.info(f"Database bootstrap complete (admin: {admin_email})")


DEMO_ARTICLES: List[Dict] = [
    {
        "title": "The Future of AI in Healthcare: Revolutionizing Patient Care",
        "slug": "future-of-ai-in-healthcare",
        "content": "Explore how AI is transforming healthcare delivery.",
        "author": "Dr. Sarah Chen",
        "category": "Healthcare AI",
    },
    {
        "title": "Machine Learning in Financial Services: Detecting Fraud in Real-Time",
        "slug": "machine-learning-financial-services",
        "content": "How ML helps financial institutions detect fraud in real time.",
        "author": "Michael Rodriguez",
        "category": "FinTech",
    },
]

DEMO_EVENTS: List[Dict] = [
    {
        "title": "AI Revolution Summit",
        "description": "Explore the future of AI.",
        "location": "San Francisco Convention Center",
        "type": "conference",
        "days_ahead": 14,
    },
    {
        "title": "Machine Learning Workshop",
        "description": "Hands-on advanced ML.",
        "location": "AI-Solutions Training Center",
        "type": "workshop",
        "days_ahead": 30,
    },
]

DEMO_IMAGES = [
    ("https://picsum.photos/seed/ais1/800/500", "Ribbon cutting"),
    ("https://picsum.photos/seed/ais2/800/500", "Keynote"),
    ("https://picsum.photos/seed/ais3/800/500", "Audience"),
]


async def seed_demo_content(engine: AsyncEngine) -> None:
    """Idempotent sample content for a fresh install."""
    async with engine.begin() as conn:
        insert = _insert_for(conn)
        now = utcnow()
        for article in DEMO_ARTICLES:
            stmt = insert(Article).values(
                **article,
                featured=True,
                views=0,
                published_at=now,
                created_at=now,
                updated_at=now,
            ).on_conflict_do_nothing(index_elements=["slug"])
            await conn.execute(stmt)

        existing_events = (await conn.execute(select(func.count(Event.id)))).scalar() or 0
        if not existing_events:
            for event in DEMO_EVENTS:
                values = dict(event)
                days_ahead = values.pop("days_ahead")
                await conn.execute(
                    insert(Event).values(
                        **values,
                        date=date.today() + timedelta(days=days_ahead),
                        featured=False,
                        created_at=now,
                        updated_at=now,
                    )
                )

        existing_images = (await conn.execute(select(func.count(GalleryImage.id)))).scalar() or 0
        if not existing_images:
            for url, caption in DEMO_IMAGES:
                await conn.execute(insert(GalleryImage).values(url=url, caption=caption, uploaded_at=now))
    logger.info("Demo content seeded")

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import uvicorn
from litestar import Litestar, Request, get
from litestar.config.cors import CORSConfig
from litestar.contrib.pydantic import PydanticPlugin
from litestar.datastructures import State
from litestar.di import Provide
from litestar.exceptions import HTTPException
from litestar.plugins.sqlalchemy import SQLAlchemyAsyncConfig, SQLAlchemyInitPlugin
from litestar.response import Response
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR

from app.config import Settings, split_origin_patterns
from app.db import bootstrap_database, check_database_connection, create_engine_from_settings
from app.models import Base
from app.routes import build_routes
from app.services import Mailer, Storage
from app.utils.logging import log_request_error

logger = logging.getLogger("AISolutions")


# --- Exception handlers
def handle_http_exception(request: Request, exc: HTTPException) -> Response:
    """Every expected failure leaves as ``{"error": ...}``."""
    content: Dict[str, Any] = {"error": exc.detail}
    if exc.extra:
        content["details"] = exc.extra
    if exc.status_code >= 500:
        log_request_error(request, exc, message=f"Request failed: {exc.detail}")
    return Response(content=content, status_code=exc.status_code, headers=exc.headers)


def log_exceptions(request: Request, exc: Exception) -> Response:
    log_request_error(request, exc)
    return Response(
        content={"error": "Internal Server Error"},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
    )


@get("/", include_in_schema=False)
async def index() -> Dict[str, str]:
    return {"name": "AI-Solutions API", "status": "running", "docs": "/schema"}


def create_app(
    settings: Optional[Settings] = None,
    mailer: Optional[Mailer] = None,
    storage: Optional[Storage] = None,
) -> Litestar:
    """
    Build the application.

    The engine, mailer and storage are constructed here once and handed to
    handlers through dependency injection; tests pass their own.
    """
    settings = settings or Settings.from_env()
    mailer = mailer or Mailer(settings)
    storage = storage or Storage(settings)
    engine = create_engine_from_settings(settings)
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)

    # --- SQLAlchemy config
    db_config = SQLAlchemyAsyncConfig(
        engine_instance=engine,
        session_dependency_key="session",
        metadata=Base.metadata,
        create_all=False,
    )

    exact_origins, origin_regex = split_origin_patterns(settings.cors_origins)
    cors_config = CORSConfig(
        allow_origins=exact_origins,
        allow_origin_regex=origin_regex,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        allow_credentials=True,
    )

    async def on_startup() -> None:
        logger.info(f"Starting app in {'DEBUG' if settings.debug else 'PRODUCTION'} mode")
        if settings.jwt_secret == "change-me":
            logger.warning("JWT_SECRET is not set; using the insecure default")
        await check_database_connection(engine)
        if settings.auto_migrate:
            await bootstrap_database(engine, settings.admin_email, settings.admin_password)

    async def on_shutdown() -> None:
        await engine.dispose()
        logger.info("Database pool closed")

    def provide_settings() -> Settings:
        return settings

    def provide_mailer() -> Mailer:
        return mailer

    def provide_storage() -> Storage:
        return storage

    return Litestar(
        route_handlers=[index, *build_routes(settings)],
        debug=settings.debug,
        plugins=[SQLAlchemyInitPlugin(db_config), PydanticPlugin(prefer_alias=True)],
        cors_config=cors_config,
        dependencies={
            "settings": Provide(provide_settings, use_cache=True, sync_to_thread=False),
            "mailer": Provide(provide_mailer, use_cache=True, sync_to_thread=False),
            "storage": Provide(provide_storage, use_cache=True, sync_to_thread=False),
        },
        state=State({"settings": settings}),
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        request_max_body_size=settings.max_body_size,
        exception_handlers={
            HTTPException: handle_http_exception,
            Exception: log_exceptions,
        },
    )


_settings = Settings.from_env()

logging.basicConfig(
    level=logging.DEBUG if _settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = create_app(_settings)


def run(settings: Optional[Settings] = None) -> None:
    """Serve the module-level app with uvicorn on HOST:PORT."""
    settings = settings or _settings
    logger.info(f"Listening on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="debug" if settings.debug else "info")


if __name__ == "__main__":
    run()

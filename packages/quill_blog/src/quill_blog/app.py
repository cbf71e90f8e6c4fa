"""
Application factory of the post administration API.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from quill_core import QuillSettings
from quill_core.logging import setup_logging
from quill_db import close_db, create_all, init_db
from quill_rest import QuillApp

from .config import blog_settings
from .resources import post_resource


def create_app(settings: QuillSettings | None = None) -> QuillApp:
    """
    Build the application. The database is opened by the lifespan handler,
    so tests driving the app without a lifespan must call ``init_db``.

    Example:
        >>> app = create_app(BlogSettings(DATABASE_URL="sqlite+aiosqlite:///:memory:"))
    """
    settings = settings or blog_settings

    @asynccontextmanager
    async def lifespan(_app: QuillApp) -> AsyncIterator[None]:
        setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
        init_db(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
        await create_all()
        yield
        await close_db()

    app = QuillApp(
        settings=settings,
        description="Administration of blog posts and their categories",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.get("/", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.add_resource(post_resource, tags=["posts"])
    return app

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from quill_core import QuillSettings
from quill_db import db as db_module
from quill_db.models import Model
from quill_rest import (
    FilterMode,
    PaginationPolicy,
    Projection,
    QuillApp,
    ResourceDescriptor,
    SearchFilter,
)

from .models import Book

DATABASE_URL = "sqlite+aiosqlite:///:memory:"  # in-memory DB for tests


@pytest_asyncio.fixture(scope="function")
async def init_test_db():
    """Initialize the test database before each test."""
    db_module.init_db(DATABASE_URL, echo=False)

    async with db_module.get_engine().begin() as conn:
        await conn.run_sync(Model.metadata.create_all)

    yield

    await db_module.close_db()


@pytest_asyncio.fixture()
async def db_session(init_test_db):  # noqa: ARG001
    """Provide a database session for tests."""
    async for session in db_module.get_db():
        yield session


@pytest.fixture
def author_projection() -> Projection:
    return Projection(
        collection_read=("id", "name"),
        item_read=("id", "name"),
        write=("name",),
    )


@pytest.fixture
def book_projection(author_projection: Projection) -> Projection:
    return Projection(
        collection_read=("id", "title", "available"),
        item_read=("id", "title", "summary", "pages", "created_at", "author"),
        write=("title", "summary", "pages", "author"),
        nested={"author": author_projection},
        constraints={
            "write": {"pages": {"ge": 1}},
            "create": {"title": {"min_length": 3}},
        },
    )


@pytest.fixture
def book_resource(book_projection: Projection) -> ResourceDescriptor[Book]:
    return ResourceDescriptor(
        Book,
        path="/books",
        projection=book_projection,
        search=SearchFilter(
            {
                "id": FilterMode.EXACT,
                "title": FilterMode.PARTIAL,
                "available": FilterMode.EXACT,
            }
        ),
        pagination=PaginationPolicy(items_per_page=3, maximum_items_per_page=5),
    )


@pytest.fixture
def app(book_resource: ResourceDescriptor[Book]) -> QuillApp:
    app = QuillApp(settings=QuillSettings(APP_TITLE="Test API"))
    app.add_resource(book_resource)
    return app


@pytest_asyncio.fixture()
async def client(
    app: QuillApp,
    init_test_db,  # noqa: ARG001
) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

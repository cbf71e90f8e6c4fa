from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from quill_blog import BlogSettings, Category, Post, create_app
from quill_db import db as db_module
from quill_db.models import Model
from quill_rest import QuillApp
from sqlalchemy.ext.asyncio import AsyncSession

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
def app() -> QuillApp:
    # Driven without lifespan: the database comes from init_test_db
    return create_app(BlogSettings(DATABASE_URL=DATABASE_URL))


@pytest_asyncio.fixture()
async def client(
    app: QuillApp,
    init_test_db,  # noqa: ARG001
) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture()
async def category(db_session: AsyncSession) -> Category:
    return await Category.objects.create(db_session, name="News")


@pytest_asyncio.fixture()
async def posts_by_status(db_session: AsyncSession) -> dict[str, list[Post]]:
    """Two online posts, one offline post and three posts never published."""
    created: dict[str, list[Post]] = {"online": [], "offline": [], "unset": []}
    for status, online, count in (
        ("online", True, 2),
        ("offline", False, 1),
        ("unset", None, 3),
    ):
        for i in range(count):
            post = await Post.objects.create(
                db_session, title=f"{status} post {i}", online=online
            )
            created[status].append(post)
    return created

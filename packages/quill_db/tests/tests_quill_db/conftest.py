import pytest_asyncio
from quill_db import db as db_module
from quill_db.models import Model

DATABASE_URL = "sqlite+aiosqlite:///:memory:"  # in-memory DB for tests


@pytest_asyncio.fixture(scope="function")
async def init_test_db():
    """Initialize the test database before each test."""
    db_module.init_db(DATABASE_URL, echo=False)

    async_engine = db_module.get_engine()
    async with async_engine.begin() as conn:
        await conn.run_sync(Model.metadata.create_all)

    yield

    await db_module.close_db()


@pytest_asyncio.fixture()
async def db_session(init_test_db):  # noqa: ARG001
    """Provide a database session for tests."""
    async for session in db_module.get_db():
        yield session

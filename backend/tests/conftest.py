import os

# Must be set before config/models are imported by any test module.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("RESEND_API_KEY", "")
os.environ.setdefault("RESEND_DOMAIN", "")

from contextlib import asynccontextmanager  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from models import Base  # noqa: E402


@pytest.fixture
def fleet_db(tmp_path):
    """Async context manager yielding a session factory on a fresh SQLite file.

    Opened inside the test's own event loop (``asyncio.run``).
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'fleet.db'}"

    @asynccontextmanager
    async def _open():
        engine = create_async_engine(url)

        @event.listens_for(engine.sync_engine, "connect")
        def _foreign_keys_on(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        try:
            yield async_sessionmaker(engine, expire_on_commit=False)
        finally:
            await engine.dispose()

    return _open

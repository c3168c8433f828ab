"""Shared test fixtures: a throwaway SQLite database and per-test sessions."""

import pytest

from ida.models import BlobStorageLocation
from ida.store import Database


def blob(name, container="raw"):
    """Build a BlobStorageLocation in a fixed test storage account."""
    return BlobStorageLocation(
        storage_account="idastorage",
        blob_container=container,
        blob_name=name,
    )


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'ida.db'}"


@pytest.fixture
async def database(database_url):
    db = Database(database_url)
    await db.init_db()
    yield db
    await db.close()


@pytest.fixture
async def session(database):
    async with database.session() as session:
        yield session

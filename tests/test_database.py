"""Tests for database configuration."""

import pytest

from sqlalchemy import inspect, text

from nichescout.database import Database, get_database_url


@pytest.fixture
def test_db_path(tmp_path):
    """Use temporary database for tests."""
    return tmp_path / "nested" / "test.db"


def test_database_url_creates_directory(test_db_path):
    """Test the URL points at the given file and its directory exists."""
    assert get_database_url(str(test_db_path)) == f"sqlite+aiosqlite:///{test_db_path}"
    assert test_db_path.parent.is_dir()


@pytest.mark.parametrize("db_path", [None, ""])
def test_database_path_is_required(db_path, monkeypatch, tmp_path):
    """Test there is no fallback to the environment."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "env.db"))

    with pytest.raises(ValueError, match="Database path is required"):
        get_database_url(db_path)


@pytest.mark.asyncio
async def test_init_creates_tables(test_db_path):
    """Test that init creates the searches and results tables."""
    db = Database.from_path(str(test_db_path))
    await db.init()

    async with db.engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    assert test_db_path.exists()
    assert {"searches", "results"} <= set(tables)
    await db.dispose()


@pytest.mark.asyncio
async def test_session_works(test_db_path):
    """Test that session returns a working session."""
    db = Database.from_path(str(test_db_path))
    await db.init()

    async with db.session() as session:
        result = await session.execute(text("SELECT 1"))
        assert result.scalar() == 1
    await db.dispose()


@pytest.mark.asyncio
async def test_sessions_share_one_factory(db):
    """Test sessions come from the factory built with the database."""
    factory = db.sessionmaker

    async with db.session() as first:
        pass
    async with db.session() as second:
        pass

    assert db.sessionmaker is factory
    assert first is not second
    assert first.bind is db.engine
    assert second.bind is db.engine


@pytest.mark.asyncio
async def test_session_rolls_back_on_error(db):
    """Test a failing block leaves nothing behind."""
    with pytest.raises(RuntimeError):
        async with db.session() as session:
            await session.execute(
                text("INSERT INTO searches (uid, keyword, meta) VALUES ('u', 'mug', '{}')")
            )
            raise RuntimeError("boom")

    async with db.session() as session:
        result = await session.execute(text("SELECT COUNT(*) FROM searches"))
        assert result.scalar() == 0

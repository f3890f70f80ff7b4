"""
Unit tests for database connection management
"""
import pytest
from unittest.mock import Mock, patch, AsyncMock
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import DatabaseManager, get_db


def mock_engine():
    """Engine double whose begin() works as an async context manager"""
    connection = AsyncMock()
    begin_context = AsyncMock()
    begin_context.__aenter__.return_value = connection
    begin_context.__aexit__.return_value = None

    engine = Mock()
    engine.begin.return_value = begin_context
    engine.dispose = AsyncMock()
    return engine


def mock_session_maker_returning(mock_session):
    mock_session_context = AsyncMock()
    mock_session_context.__aenter__.return_value = mock_session
    mock_session_context.__aexit__.return_value = None

    mock_session_maker_instance = Mock()
    mock_session_maker_instance.return_value = mock_session_context
    return mock_session_maker_instance


@pytest.fixture
def db_manager():
    """Create a fresh database manager instance for testing"""
    return DatabaseManager(database_url="sqlite+aiosqlite:///unused.db")


@pytest.mark.asyncio
async def test_database_initialization(db_manager):
    """Test database manager initialization"""
    with patch('app.database.create_async_engine') as mock_create_engine, \
         patch('app.database.async_sessionmaker') as mock_session_maker:

        engine = mock_engine()
        mock_create_engine.return_value = engine
        mock_session_maker.return_value = Mock()

        await db_manager.initialize()

        assert db_manager._initialized is True
        assert db_manager.engine is engine
        assert db_manager.async_session_maker is not None
        engine.begin.return_value.__aenter__.return_value.run_sync.assert_awaited_once()

        # Test that initialization is idempotent
        await db_manager.initialize()
        mock_create_engine.assert_called_once()


@pytest.mark.asyncio
async def test_database_initialization_failure(db_manager):
    with patch('app.database.create_async_engine', side_effect=RuntimeError("bad url")):
        with pytest.raises(RuntimeError):
            await db_manager.initialize()

    assert db_manager._initialized is False


@pytest.mark.asyncio
async def test_database_close(db_manager):
    """Test closing database connections"""
    with patch('app.database.create_async_engine') as mock_create_engine, \
         patch('app.database.async_sessionmaker'):
        engine = mock_engine()
        mock_create_engine.return_value = engine

        await db_manager.initialize()
        await db_manager.close()

        assert db_manager._initialized is False
        engine.dispose.assert_called_once()


@pytest.mark.asyncio
async def test_get_session(db_manager):
    """Test getting a database session"""
    with patch('app.database.create_async_engine', return_value=mock_engine()), \
         patch('app.database.async_sessionmaker') as mock_session_maker:

        mock_session = AsyncMock(spec=AsyncSession)
        mock_session_maker.return_value = mock_session_maker_returning(mock_session)

        async with db_manager.get_session() as session:
            assert session == mock_session

        mock_session.commit.assert_called_once()
        mock_session.close.assert_called_once()


@pytest.mark.asyncio
async def test_get_session_rollback_on_error(db_manager):
    """Test that session rolls back on error"""
    with patch('app.database.create_async_engine', return_value=mock_engine()), \
         patch('app.database.async_sessionmaker') as mock_session_maker:

        mock_session = AsyncMock(spec=AsyncSession)
        mock_session_maker.return_value = mock_session_maker_returning(mock_session)

        with pytest.raises(ValueError):
            async with db_manager.get_session():
                raise ValueError("Test error")

        mock_session.rollback.assert_called_once()
        mock_session.commit.assert_not_called()
        mock_session.close.assert_called_once()


@pytest.mark.asyncio
async def test_health_check_failure(db_manager):
    """Test failed health check"""
    with patch.object(db_manager, 'get_session') as mock_get_session:
        mock_get_session.side_effect = Exception("Database connection failed")

        result = await db_manager.health_check()
        assert result is False


@pytest.mark.asyncio
async def test_sqlite_file_database(tmp_path):
    """Initialize a real file database, check it and close it"""
    manager = DatabaseManager(database_url=f"sqlite+aiosqlite:///{tmp_path / 'ideas.db'}")

    await manager.initialize()
    try:
        assert await manager.health_check() is True
    finally:
        await manager.close()

    assert (tmp_path / "ideas.db").exists()


@pytest.mark.asyncio
async def test_get_db_dependency():
    """Test the get_db dependency function"""
    with patch('app.database.db_manager') as mock_db_manager:
        mock_session = AsyncMock()
        mock_context = AsyncMock()
        mock_context.__aenter__.return_value = mock_session
        mock_context.__aexit__.return_value = None

        mock_db_manager.get_session.return_value = mock_context

        async for session in get_db():
            assert session == mock_session

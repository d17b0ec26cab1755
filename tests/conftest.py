import pytest
import pytest_asyncio

from memory_graph.database.database import DatabaseManager
from memory_graph.database.repository import KnowledgeGraphManager


@pytest_asyncio.fixture
async def db_manager(tmp_path):
    """Creates a connected database manager on a fresh SQLite file."""
    manager = DatabaseManager(db_path=tmp_path / "graph.db")
    await manager.connect()
    await manager.init_schema()
    yield manager
    await manager.close()


@pytest.fixture
def graph_manager(db_manager):
    """Knowledge graph manager backed by the test database."""
    return KnowledgeGraphManager(db_manager)

"""Unit tests for DatabaseManager engine selection."""

import threading

from sqlalchemy import text
from sqlalchemy.pool import StaticPool

from errorlog_core.config import DatabaseConfig
from errorlog_core.db import DatabaseManager, init_db


class TestDatabaseManager:
    """Test engine and pool configuration."""

    def test_in_memory_sqlite_uses_static_pool(self):
        """Test every session shares the one in-memory database."""
        manager = DatabaseManager(DatabaseConfig(connection_string="sqlite://"))
        try:
            init_db(manager)
            assert isinstance(manager.engine.pool, StaticPool)

            seen = []

            def count_rows():
                with manager.get_session() as session:
                    seen.append(session.execute(text("SELECT COUNT(*) FROM errors")).scalar())

            thread = threading.Thread(target=count_rows)
            thread.start()
            thread.join()

            assert seen == [0]
        finally:
            manager.close()

    def test_file_sqlite_uses_regular_pool(self, tmp_path):
        """Test file databases are not pinned to a single connection."""
        manager = DatabaseManager(
            DatabaseConfig(connection_string=f"sqlite:///{tmp_path / 'errors.db'}")
        )
        try:
            assert not isinstance(manager.engine.pool, StaticPool)
            assert manager.engine.url.get_backend_name() == "sqlite"
        finally:
            manager.close()

    def test_sessions_do_not_expire_on_commit(self, db_manager):
        """Test objects stay readable after the session commits."""
        assert db_manager.session_factory.kw["expire_on_commit"] is False

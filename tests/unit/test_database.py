"""Unit tests for pool lifecycle, migrations and the health probe."""

from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from vidtube import database


class TestPoolLifecycle:
    async def test_get_pool_before_init(self, monkeypatch):
        monkeypatch.setattr(database, "_pool", None)

        with pytest.raises(RuntimeError):
            await database.get_pool()

    async def test_init_uses_configured_pool_sizes(self, monkeypatch):
        monkeypatch.setattr(database, "_pool", None)
        pool = AsyncMock()

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)) as create:
            assert await database.init_database() is pool
            assert await database.init_database() is pool

        create.assert_awaited_once()
        kwargs = create.call_args.kwargs
        assert kwargs["min_size"] == 2
        assert kwargs["max_size"] == 10

        await database.close_database()
        pool.close.assert_awaited_once()
        assert database._pool is None


class TestRunMigrations:
    async def test_applies_only_pending_files(self, mock_conn, tmp_path):
        (tmp_path / "001_initial.sql").write_text("CREATE TABLE a (id INT);")
        (tmp_path / "002_views.sql").write_text("CREATE TABLE b (id INT);")
        mock_conn.fetch.return_value = [{"name": "001_initial.sql"}]

        applied = await database.run_migrations(tmp_path)

        assert applied == ["002_views.sql"]
        assert mock_conn.transactions == 1
        statements = [c.args for c in mock_conn.execute.await_args_list]
        assert ("CREATE TABLE b (id INT);",) in statements
        assert ("CREATE TABLE a (id INT);",) not in statements
        assert statements[-1][1] == "002_views.sql"

    async def test_up_to_date_schema(self, mock_conn, tmp_path):
        (tmp_path / "001_initial.sql").write_text("SELECT 1;")
        mock_conn.fetch.return_value = [{"name": "001_initial.sql"}]

        assert await database.run_migrations(tmp_path) == []
        assert mock_conn.transactions == 0

    async def test_empty_directory_skips_database(self, mock_conn, tmp_path):
        assert await database.run_migrations(tmp_path) == []
        mock_conn.execute.assert_not_awaited()

    def test_bundled_schema_is_discovered(self):
        names = [p.name for p in sorted(database.MIGRATIONS_DIR.glob("*.sql"))]

        assert names[0] == "001_initial.sql"


class TestHealthCheck:
    async def test_healthy(self, mock_conn):
        mock_conn.fetchval.return_value = 1

        assert await database.health_check() is True

    async def test_driver_failure_is_unhealthy(self, mock_conn):
        mock_conn.fetchval.side_effect = asyncpg.InterfaceError("connection is closed")

        assert await database.health_check() is False

    async def test_uninitialized_pool_is_unhealthy(self):
        with patch("vidtube.database.get_pool", new=AsyncMock(side_effect=RuntimeError("no pool"))):
            assert await database.health_check() is False

"""Tests for database adapters, pool bounds and the adapter registry."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.pool import StaticPool

from dbmanager.core.adapters import (
    DatabaseType,
    MySQLAdapter,
    PoolConfig,
    PostgreSQLAdapter,
    SQLiteAdapter,
    adapter_registry,
    get_adapter,
)
from dbmanager.core.adapters.types import require_port
from dbmanager.core.errors import (
    BackendUnavailableError,
    ConfigError,
    DatabaseError,
    QueryError,
)


class TestDatabaseType:
    @pytest.mark.parametrize(
        ("client", "expected"),
        [
            ("sqlite3", DatabaseType.SQLITE),
            ("SQLITE", DatabaseType.SQLITE),
            ("pg", DatabaseType.POSTGRESQL),
            ("postgres", DatabaseType.POSTGRESQL),
            ("mysql", DatabaseType.MYSQL),
        ],
    )
    def test_from_client(self, client, expected):
        assert DatabaseType.from_client(client) is expected

    def test_unknown_client(self):
        with pytest.raises(ConfigError, match="Unknown database client"):
            DatabaseType.from_client("mongodb")


class TestPoolConfig:
    def test_sizes(self):
        pool = PoolConfig(min=0, max=7)
        assert pool.pool_size == 1
        assert pool.max_overflow == 6

    def test_min_equals_max(self):
        pool = PoolConfig(min=4, max=4)
        assert (pool.pool_size, pool.max_overflow) == (4, 0)

    @pytest.mark.parametrize(
        "pool",
        [
            PoolConfig(min=-1, max=5),
            PoolConfig(min=0, max=0),
            PoolConfig(min=6, max=5),
            PoolConfig(min=1, max=5, timeout=0),
        ],
    )
    def test_invalid(self, pool):
        with pytest.raises(ConfigError):
            pool.validate()


class TestRequirePort:
    @pytest.mark.parametrize(("params", "expected"), [({}, None), ({"port": 5433}, 5433), ({"port": "3307"}, 3307)])
    def test_valid(self, params, expected):
        assert require_port(params) == expected

    @pytest.mark.parametrize("port", ["abc", 0, 70000, True, 5432.5])
    def test_invalid(self, port):
        with pytest.raises(ConfigError):
            require_port({"port": port})


class TestSQLiteAdapter:
    def test_from_params_requires_filename(self):
        with pytest.raises(ConfigError, match="filename"):
            SQLiteAdapter.from_params({}, PoolConfig())

    def test_memory_uses_static_pool(self):
        adapter = SQLiteAdapter()
        assert adapter.is_memory
        assert adapter.engine_options()["poolclass"] is StaticPool
        assert adapter.config.pool.max == 1

    def test_file_uses_bounded_pool(self, tmp_path: Path):
        adapter = SQLiteAdapter(str(tmp_path / "a.db"), pool=PoolConfig(min=0, max=3))
        options = adapter.engine_options()
        assert options["pool_size"] == 1
        assert options["max_overflow"] == 2
        assert options["connect_args"]["check_same_thread"] is False

    def test_round_trip(self, tmp_path: Path):
        with SQLiteAdapter(str(tmp_path / "a.db")) as adapter:
            with adapter.transaction() as conn:
                conn.execute(text("CREATE TABLE t (v INTEGER)"))
                conn.execute(text("INSERT INTO t (v) VALUES (:v)"), {"v": 4})
            with adapter.connection() as conn:
                assert conn.execute(text("SELECT v FROM t")).scalar_one() == 4

    def test_transaction_rolls_back(self, tmp_path: Path):
        with SQLiteAdapter(str(tmp_path / "a.db")) as adapter:
            with adapter.transaction() as conn:
                conn.execute(text("CREATE TABLE t (v INTEGER)"))
            with pytest.raises(RuntimeError):
                with adapter.transaction() as conn:
                    conn.execute(text("INSERT INTO t (v) VALUES (1)"))
                    raise RuntimeError("abort")
            with adapter.connection() as conn:
                assert conn.execute(text("SELECT COUNT(*) FROM t")).scalar_one() == 0

    def test_ddl_is_transactional(self, tmp_path: Path):
        with SQLiteAdapter(str(tmp_path / "a.db")) as adapter:
            with pytest.raises(QueryError):
                with adapter.transaction() as conn:
                    conn.execute(text("CREATE TABLE t (v INTEGER)"))
                    conn.execute(text("CREATE TABLE t (v INTEGER)"))
            with adapter.connection() as conn:
                rows = conn.execute(text("SELECT name FROM sqlite_master WHERE name = 't'")).all()
            assert rows == []

    def test_statement_error_is_query_error(self, tmp_path: Path):
        with SQLiteAdapter(str(tmp_path / "a.db")) as adapter:
            with pytest.raises(QueryError) as exc_info:
                with adapter.connection() as conn:
                    conn.execute(text("SELECT * FROM missing"))
            assert isinstance(exc_info.value.cause, sa_exc.OperationalError)

    def test_pool_exhaustion_is_unavailable(self, tmp_path: Path):
        pool = PoolConfig(min=1, max=1, timeout=0.1)
        with SQLiteAdapter(str(tmp_path / "a.db"), pool=pool) as adapter:
            with adapter.connection():
                with pytest.raises(BackendUnavailableError) as exc_info:
                    with adapter.connection():
                        pass
            assert exc_info.value.retryable

    def test_memory_serializes_threads(self):
        with SQLiteAdapter() as adapter:
            with adapter.transaction() as conn:
                conn.execute(
                    text("CREATE TABLE t (id INTEGER PRIMARY KEY AUTOINCREMENT, v INTEGER)")
                )

            def insert_many(worker: int) -> None:
                for i in range(20):
                    with adapter.transaction() as conn:
                        conn.execute(text("INSERT INTO t (v) VALUES (:v)"), {"v": worker * 100 + i})

            with ThreadPoolExecutor(max_workers=8) as pool:
                list(pool.map(insert_many, range(8)))

            with adapter.connection() as conn:
                count, distinct = conn.execute(
                    text("SELECT COUNT(*), COUNT(DISTINCT id) FROM t")
                ).one()
            assert (count, distinct) == (160, 160)

    def test_memory_checkout_waits_for_pool_timeout(self):
        held = threading.Event()
        release = threading.Event()
        with SQLiteAdapter(pool=PoolConfig(min=1, max=1, timeout=0.1)) as adapter:

            def hold() -> None:
                with adapter.connection():
                    held.set()
                    release.wait(5)

            worker = threading.Thread(target=hold)
            worker.start()
            try:
                assert held.wait(5)
                with pytest.raises(BackendUnavailableError):
                    with adapter.connection():
                        pass
            finally:
                release.set()
                worker.join()
            with adapter.connection() as conn:
                assert conn.execute(text("SELECT 1")).scalar_one() == 1

    def test_unreachable_file_is_unavailable(self, tmp_path: Path):
        adapter = SQLiteAdapter(str(tmp_path / "missing" / "dir" / "a.db"))
        with pytest.raises(BackendUnavailableError):
            with adapter.connection():
                pass
        adapter.disconnect()


class TestServerAdapters:
    def test_pg_from_params(self):
        adapter = PostgreSQLAdapter.from_params(
            {"host": "db", "port": "5433", "user": "app", "password": "s3cret", "database": "main"},
            PoolConfig(min=0, max=7),
        )
        url = adapter.url
        assert url.drivername == "postgresql+psycopg2"
        assert (url.host, url.port, url.username, url.database) == ("db", 5433, "app", "main")
        assert "s3cret" not in repr(adapter)
        assert not adapter.is_connected

    def test_pg_default_port(self):
        adapter = PostgreSQLAdapter.from_params({"database": "main"}, PoolConfig())
        assert adapter.url.port == 5432
        assert adapter.url.host == "localhost"

    def test_pg_engine_options(self):
        adapter = PostgreSQLAdapter.from_params({"database": "main"}, PoolConfig(min=2, max=5))
        options = adapter.engine_options()
        assert options["pool_size"] == 2
        assert options["max_overflow"] == 3
        assert options["pool_pre_ping"] is True

    def test_mysql_charset_and_options(self):
        adapter = MySQLAdapter.from_params(
            {"database": "shop", "username": "u", "ssl_disabled": True}, PoolConfig()
        )
        assert adapter.url.port == 3306
        assert adapter.url.query["charset"] == "utf8mb4"
        assert adapter.url.query["ssl_disabled"] == "True"
        assert adapter.engine_options()["pool_recycle"] == 3600

    @pytest.mark.parametrize("params", [{}, {"database": ""}, {"database": "x", "port": "abc"}])
    def test_bad_params(self, params):
        with pytest.raises(ConfigError):
            PostgreSQLAdapter.from_params(params, PoolConfig())


class TestTranslateError:
    @pytest.fixture
    def adapter(self) -> SQLiteAdapter:
        return SQLiteAdapter()

    def test_statement_error(self, adapter):
        error = sa_exc.ProgrammingError("SELECT 1", {}, Exception("syntax"))
        assert isinstance(adapter.translate_error(error), QueryError)

    def test_invalidated_connection(self, adapter):
        error = sa_exc.OperationalError("SELECT 1", {}, Exception("gone"), connection_invalidated=True)
        assert isinstance(adapter.translate_error(error), BackendUnavailableError)

    def test_pool_timeout(self, adapter):
        assert isinstance(adapter.translate_error(sa_exc.TimeoutError()), BackendUnavailableError)

    def test_other(self, adapter):
        translated = adapter.translate_error(sa_exc.InvalidRequestError("bad"))
        assert type(translated) is DatabaseError


class TestAdapterRegistry:
    def test_defaults_registered(self):
        assert adapter_registry.list_adapters() == ["mysql", "postgresql", "sqlite"]

    def test_create_connects_engine(self, tmp_path: Path):
        adapter = get_adapter("sqlite3", {"filename": str(tmp_path / "a.db")})
        try:
            assert isinstance(adapter, SQLiteAdapter)
            assert adapter.is_connected
        finally:
            adapter.disconnect()

    def test_unknown_client(self):
        with pytest.raises(ConfigError):
            get_adapter("oracle", {})

    def test_params_must_be_mapping(self):
        with pytest.raises(ConfigError, match="mapping"):
            get_adapter("sqlite", ["a.db"])

    def test_pool_validated(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="exceeds"):
            get_adapter("sqlite", {"filename": str(tmp_path / "a.db")}, PoolConfig(min=5, max=2))

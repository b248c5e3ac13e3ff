"""Pytest configuration and fixtures."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional, Set

import pytest
from asyncpg.exceptions import (
    DeadlockDetectedError,
    InterfaceError,
    QueryCanceledError,
    UndefinedTableError,
    UniqueViolationError,
)

from link_registry.config import StoreConfig
from link_registry.lib.registry import Registry
from link_registry.lib.database.models import Direction
from link_registry.lib.common.logging_config import setup_logging


START_TIME = 1_700_000_000


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryStore:
    """Rows of the url table plus switches for injecting failures.

    Understands exactly the statements issued by Registry, enforces the
    primary key and the unique url constraint, and rolls back a
    transaction that exits with an exception.
    """

    def __init__(self):
        self.rows: Dict[str, dict] = {}
        self.unreachable = False
        self.missing_table = False
        self.fail_queries = False
        self.fail_inserts = False
        self.fail_scan = False
        self.fail_deletes: Set[str] = set()
        # ids removed by a concurrent writer right after a lookup reads them
        self.vanish_after_read: Set[str] = set()
        self.table_created = False
        self.connect_kwargs: Optional[dict] = None
        self.pool: Optional["InMemoryPool"] = None

    async def pool_factory(self, **kwargs) -> "InMemoryPool":
        self.connect_kwargs = kwargs
        if self.unreachable:
            raise OSError("Connect call failed ('127.0.0.1', 5432)")
        self.pool = InMemoryPool(self)
        return self.pool

    def add_row(self, id: str, url: str, created_at: int, expires_at: int) -> None:
        self.rows[id] = {
            "id": id,
            "original_url": url,
            "creation_time": created_at,
            "expiration_time": expires_at,
        }


class InMemoryTransaction:
    """Undoes the connection's own changes when the block raises."""

    def __init__(self, conn: "InMemoryConnection"):
        self.conn = conn

    async def __aenter__(self):
        self.conn.undo = []
        return self

    async def __aexit__(self, exc_type, exc, tb):
        undo, self.conn.undo = self.conn.undo, None
        if exc_type is not None:
            for action in reversed(undo):
                action()
        return False


class InMemoryCursor:
    def __init__(self, rows):
        self._rows = rows

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for row in self._rows:
            await asyncio.sleep(0)
            yield row


class InMemoryConnection:
    def __init__(self, store: InMemoryStore):
        self.store = store
        self.undo = None

    def transaction(self) -> InMemoryTransaction:
        return InMemoryTransaction(self)

    def _log_undo(self, action) -> None:
        if self.undo is not None:
            self.undo.append(action)

    async def fetchval(self, query, *args):
        await asyncio.sleep(0)
        if self.store.fail_queries:
            raise QueryCanceledError("canceling statement due to statement timeout")
        return 1

    async def prepare(self, query):
        await asyncio.sleep(0)
        if self.store.missing_table:
            raise UndefinedTableError('relation "url" does not exist')
        return query

    async def fetchrow(self, query, key):
        await asyncio.sleep(0)
        if self.store.fail_queries:
            raise QueryCanceledError("canceling statement due to statement timeout")
        if query == Registry.LOOKUP_SQL[Direction.ID_TO_URL]:
            row = self.store.rows.get(key)
            if row and key in self.store.vanish_after_read:
                del self.store.rows[key]
            return dict(row) if row else None
        if query == Registry.LOOKUP_SQL[Direction.URL_TO_ID]:
            for row in self.store.rows.values():
                if row["original_url"] == key:
                    return dict(row)
            return None
        raise AssertionError(f"Unexpected query: {query}")

    async def execute(self, query, *args):
        await asyncio.sleep(0)
        if query == Registry.CREATE_TABLE_SQL:
            self.store.table_created = True
            return "CREATE TABLE"
        if query == Registry.INSERT_SQL:
            return self._insert(*args)
        if query == Registry.DELETE_EXPIRED_SQL:
            return self._delete_expired(*args)
        raise AssertionError(f"Unexpected query: {query}")

    def cursor(self, query):
        if query != Registry.SCAN_SQL:
            raise AssertionError(f"Unexpected query: {query}")
        if self.store.fail_scan:
            raise QueryCanceledError("canceling statement due to user request")
        return InMemoryCursor([dict(row) for row in self.store.rows.values()])

    def _insert(self, id, url, created_at, expires_at):
        if self.store.fail_inserts:
            raise DeadlockDetectedError("deadlock detected")
        if id in self.store.rows:
            raise UniqueViolationError('duplicate key value violates unique constraint "url_pkey"')
        if any(row["original_url"] == url for row in self.store.rows.values()):
            raise UniqueViolationError(
                'duplicate key value violates unique constraint "url_original_url_key"'
            )
        self.store.add_row(id, url, created_at, expires_at)
        self._log_undo(lambda: self.store.rows.pop(id, None))
        return "INSERT 0 1"

    def _delete_expired(self, id, now):
        if id in self.store.fail_deletes:
            raise DeadlockDetectedError("deadlock detected")
        row = self.store.rows.get(id)
        if row is None or row["expiration_time"] > now:
            return "DELETE 0"
        del self.store.rows[id]
        self._log_undo(lambda: self.store.rows.setdefault(id, row))
        return "DELETE 1"


class InMemoryPool:
    def __init__(self, store: InMemoryStore):
        self.store = store
        self.closed = False

    @asynccontextmanager
    async def acquire(self):
        if self.closed:
            raise InterfaceError("pool is closed")
        await asyncio.sleep(0)
        yield InMemoryConnection(self.store)

    async def close(self):
        self.closed = True


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    """Clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def store():
    """Empty in-memory url table."""
    return InMemoryStore()


@pytest.fixture
def store_config():
    return StoreConfig(host="db.test", user="tester", password="secret", name="links_test")


@pytest.fixture
async def registry(store, store_config, clock, logger) -> AsyncGenerator[Registry, None]:
    """Create registry with a one day ttl."""
    registry = await Registry.create(
        1,
        store_config,
        clock=clock,
        logger=logger,
        pool_factory=store.pool_factory,
    )

    yield registry

    if not registry.closed:
        await registry.shutdown()

"""PostgreSQL-backed registry of id <-> url links with expiration."""

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple, Union

import asyncpg
from asyncpg.exceptions import InterfaceError, PostgresError, UniqueViolationError

from ..config import SECONDS_PER_DAY, StoreConfig
from .database.models import Direction, Entry
from .exceptions import (
    ConnectivityError,
    ConstraintViolationError,
    DecodeError,
    StoreError,
)
from .common.logging_config import get_logger
from .sweeper import ExpirySweeper


# Failures raised by asyncpg while talking to the store
STORE_ERRORS = (PostgresError, InterfaceError, OSError, asyncio.TimeoutError)


class Registry:
    """Single gateway for all reads and writes of the link mapping.

    Lookups never return expired data: an expired row observed by ``find``
    is deleted on the spot, and an ``ExpirySweeper`` purges the rest in the
    background. Both paths treat deleting an already deleted row as success.
    """

    CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS url (
        id VARCHAR(64) PRIMARY KEY,
        original_url TEXT NOT NULL UNIQUE,
        creation_time BIGINT NOT NULL,
        expiration_time BIGINT NOT NULL
    )
    """

    LOOKUP_SQL: Dict[Direction, str] = {
        Direction.ID_TO_URL: (
            "SELECT id, original_url, creation_time, expiration_time FROM url WHERE id = $1"
        ),
        Direction.URL_TO_ID: (
            "SELECT id, original_url, creation_time, expiration_time FROM url WHERE original_url = $1"
        ),
    }

    INSERT_SQL = (
        "INSERT INTO url (id, original_url, creation_time, expiration_time) "
        "VALUES ($1, $2, $3, $4)"
    )

    # Deletes only while still expired; a re-registered id is left alone.
    DELETE_EXPIRED_SQL = "DELETE FROM url WHERE id = $1 AND expiration_time <= $2"

    SCAN_SQL = "SELECT id, original_url, creation_time, expiration_time FROM url"

    def __init__(
        self,
        pool: asyncpg.Pool,
        ttl_seconds: int,
        sweep_interval_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ):
        """Wrap an already verified pool. Use ``Registry.create`` instead.

        Args:
            pool: Connection pool to the backing store
            ttl_seconds: Lifetime of every registered entry
            sweep_interval_seconds: Delay between expiry sweeps (defaults to ttl_seconds)
            clock: Source of the current Unix time
            logger: Optional logger instance
        """
        self.logger = logger or get_logger("registry")
        self.ttl_seconds = ttl_seconds
        self.clock = clock

        self._pool = pool
        self._closed = False
        self.sweeper = ExpirySweeper(
            self.sweep_expired,
            sweep_interval_seconds or ttl_seconds,
            logger=self.logger,
        )

    @classmethod
    async def create(
        cls,
        ttl_days: int,
        store_config: Optional[StoreConfig] = None,
        *,
        sweep_interval_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
        pool_factory: Callable = asyncpg.create_pool,
    ) -> "Registry":
        """Connect to the store, verify it and start the expiry sweeper.

        Args:
            ttl_days: Lifetime of registered entries in whole days
            store_config: Connection settings (loaded from the environment if omitted)
            sweep_interval_seconds: Delay between expiry sweeps (defaults to the ttl)
            clock: Source of the current Unix time
            logger: Optional logger instance
            pool_factory: Coroutine function creating the connection pool

        Returns:
            A running registry

        Raises:
            ValueError: If ttl_days is not a positive number of days
            ConnectivityError: If the store is unreachable or misconfigured
        """
        if ttl_days < 1:
            raise ValueError(f"Expiration must be at least one day, got {ttl_days}")

        logger = logger or get_logger("registry")
        config = store_config or StoreConfig()

        logger.info(
            f"Connecting to PostgreSQL at {config.host}:{config.port}/{config.name} "
            f"as {config.user}"
        )
        try:
            pool = await pool_factory(
                host=config.host,
                port=config.port,
                user=config.user,
                password=config.password,
                database=config.name,
                min_size=min(config.max_idle_connections, config.max_open_connections),
                max_size=config.max_open_connections,
                timeout=config.connect_timeout_seconds,
                max_inactive_connection_lifetime=config.max_inactive_connection_lifetime_seconds,
            )
        except STORE_ERRORS as e:
            raise ConnectivityError(f"Cannot connect to the store: {e}") from e

        registry = cls(
            pool,
            ttl_seconds=ttl_days * SECONDS_PER_DAY,
            sweep_interval_seconds=sweep_interval_seconds,
            clock=clock,
            logger=logger,
        )

        try:
            await registry._prepare(create_tables=config.create_tables)
        except STORE_ERRORS as e:
            await pool.close()
            raise ConnectivityError(f"Store verification failed: {e}") from e

        registry.sweeper.start()
        logger.info(f"Registry ready (ttl={registry.ttl_seconds}s)")
        return registry

    async def _prepare(self, create_tables: bool = False) -> None:
        """Ping the store and prepare the lookup statements."""
        async with self._pool.acquire() as conn:
            if create_tables:
                self.logger.info("Creating url table if not exists...")
                await conn.execute(self.CREATE_TABLE_SQL)

            await conn.fetchval("SELECT 1")

            # Prepared statements are cached per connection by asyncpg, so
            # later lookups with the same text reuse them.
            for direction, query in self.LOOKUP_SQL.items():
                await conn.prepare(query)
                self.logger.debug(f"Prepared {direction.value} statement")

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectivityError("Registry has been shut down")

    async def find(
        self,
        direction: Union[Direction, str],
        key: str,
    ) -> Tuple[str, str]:
        """Look up a live entry by id or by url.

        Args:
            direction: Direction.ID_TO_URL (key is an id) or
                Direction.URL_TO_ID (key is a url)
            key: The id or url to look up

        Returns:
            (id, url) of the live entry, or ("", "") if there is none.
            Expired entries are deleted and reported as absent.

        Raises:
            ValueError: If direction is not a known direction
            ConnectivityError: If the registry was shut down
            StoreError: If the lookup or the expired-entry delete fails
            DecodeError: If the matching row is malformed
        """
        direction = Direction(direction)
        self._ensure_open()

        try:
            async with self._pool.acquire() as conn:
                record = await conn.fetchrow(self.LOOKUP_SQL[direction], key)
        except STORE_ERRORS as e:
            raise StoreError(f"Lookup {direction.value} for {key!r} failed: {e}") from e

        if record is None:
            return "", ""

        entry = Entry.from_record(record)
        now = self.clock()
        if entry.is_expired(now):
            self.logger.info(f"Deleting expired entry {{{entry.id}: {entry.url}}}...")
            if await self._unregister(entry.id, now):
                self.logger.info(f"Expired entry {{{entry.id}: {entry.url}}} successfully deleted")
            else:
                self.logger.debug(f"Expired entry {entry.id!r} was already removed")
            return "", ""

        return entry.id, entry.url

    async def register(self, id: str, url: str) -> Entry:
        """Insert a new entry expiring ttl_seconds from now.

        No existence check is made here: callers look up both directions
        first, and the store's unique constraints settle any race.

        Args:
            id: Short identifier
            url: Original long URL

        Returns:
            The stored entry

        Raises:
            ConnectivityError: If the registry was shut down
            ConstraintViolationError: If the id or url is already stored
            StoreError: If the insert or commit fails
        """
        self._ensure_open()

        now = int(self.clock())
        entry = Entry(id=id, url=url, created_at=now, expires_at=now + self.ttl_seconds)

        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute(
                        self.INSERT_SQL,
                        entry.id,
                        entry.url,
                        entry.created_at,
                        entry.expires_at,
                    )
        except UniqueViolationError as e:
            self.logger.warning(f"Registration of {{{id}: {url}}} rejected: {e}")
            raise ConstraintViolationError(str(e)) from e
        except STORE_ERRORS as e:
            raise StoreError(f"Registering {{{id}: {url}}} failed: {e}") from e

        self.logger.info(f"Registered {{{entry.id}: {entry.url}}} until {entry.expires_at}")
        return entry

    async def _unregister(self, id: str, now: float) -> bool:
        """Delete an entry if it is still expired at ``now``.

        Returns:
            True if a row was removed, False if it was already gone
        """
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    status = await conn.execute(self.DELETE_EXPIRED_SQL, id, int(now))
        except STORE_ERRORS as e:
            raise StoreError(f"Deleting entry {id!r} failed: {e}") from e

        return _affected_rows(status) > 0

    async def _scan_expired(self, now: float) -> List[Entry]:
        expired = []
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    async for record in conn.cursor(self.SCAN_SQL):
                        try:
                            entry = Entry.from_record(record)
                        except DecodeError as e:
                            self.logger.error(f"Skipping undecodable row: {e}")
                            continue
                        if entry.is_expired(now):
                            expired.append(entry)
        except STORE_ERRORS as e:
            raise StoreError(f"Scanning for expired entries failed: {e}") from e
        return expired

    async def sweep_expired(self) -> int:
        """Run one full scan and delete every expired entry.

        Each entry is deleted in its own transaction; a failed delete is
        logged and the pass goes on with the rest.

        Returns:
            Number of entries removed by this pass

        Raises:
            ConnectivityError: If the registry was shut down
            StoreError: If the scan itself fails
        """
        self._ensure_open()

        now = self.clock()
        removed = 0
        for entry in await self._scan_expired(now):
            self.logger.info(f"Deleting expired entry {{{entry.id}: {entry.url}}}...")
            try:
                if await self._unregister(entry.id, now):
                    removed += 1
            except StoreError as e:
                self.logger.error(f"Error while running cleaner for expired entries: {e}")
        return removed

    async def health_check(self) -> bool:
        """Check if the store answers.

        Returns:
            True if healthy, False otherwise
        """
        if self._closed:
            return False
        try:
            async with self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except STORE_ERRORS as e:
            self.logger.error(f"Health check failed: {e}")
            return False

    @property
    def closed(self) -> bool:
        return self._closed

    async def shutdown(self) -> None:
        """Stop the sweeper and close the pool.

        Close errors are logged, not raised. Closing the pool also drops
        the prepared statements cached on its connections.
        """
        if self._closed:
            self.logger.warning("Registry already shut down")
            return

        self.logger.info("Shutting down DB pool...")
        self._closed = True

        await self.sweeper.stop()

        try:
            await self._pool.close()
        except STORE_ERRORS as e:
            self.logger.error(f"Shutting down DB pool failed: {e}")
            return

        self.logger.info("DB pool successfully shut down")


def _affected_rows(status: str) -> int:
    """Row count from a command status tag such as 'DELETE 1'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0

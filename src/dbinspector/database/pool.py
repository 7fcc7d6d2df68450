"""
Connection pool for dbinspector adapters.

One pool owns every live native session for a single DatabaseConfig. All
bookkeeping (available, borrowed, reserved slots, waiters) is mutated under
one ``asyncio.Condition``; two pools never share state.
"""

import asyncio
import itertools
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Deque, Dict, List, Optional

from ..config.models import DatabaseConfig, PoolConfig
from ..core.exceptions import (
    ConnectionError,
    ErrorCodes,
    InspectorException,
    PoolClosed,
    PoolExhausted,
)
from ..core.protocols import NativeConnector
from ..logging import get_logger, get_performance_logger
from .models import PoolMetrics

_connection_ids = itertools.count(1)


class PooledConnection:
    """A native session owned by a pool, with usage metadata."""

    def __init__(self, handle: Any) -> None:
        self.handle = handle
        self.connection_id = next(_connection_ids)
        self.created_at = time.monotonic()
        self.last_used = self.created_at
        self.use_count = 0
        self.is_suspect = False

    def mark_borrowed(self) -> None:
        self.last_used = time.monotonic()
        self.use_count += 1

    def mark_returned(self) -> None:
        self.last_used = time.monotonic()

    @property
    def age_seconds(self) -> float:
        return time.monotonic() - self.created_at

    @property
    def idle_seconds(self) -> float:
        return time.monotonic() - self.last_used

    def __repr__(self) -> str:
        return (
            f"PooledConnection(id={self.connection_id}, uses={self.use_count}, "
            f"suspect={self.is_suspect})"
        )


class ConnectionPool:
    """Bounded async pool of native sessions for one target.

    ``total`` counts only open connections; slots reserved for connections
    still being opened count against ``max_size`` but not against ``total``,
    so ``borrowed + available == total <= max_size`` holds at every await.

    Example:
        >>> pool = ConnectionPool(connector, config, config.pool_config(),
        ...                       validation_query="SELECT 1")
        >>> async with pool.connection() as pooled:
        ...     await connector.exec(pooled.handle, "SELECT 1", [])
        >>> await pool.drain()
    """

    def __init__(
        self,
        connector: NativeConnector,
        config: DatabaseConfig,
        pool_config: Optional[PoolConfig] = None,
        *,
        validation_query: str = "SELECT 1",
        validation_timeout: float = 5.0,
    ) -> None:
        self.connector = connector
        self.config = config
        self.pool_config = pool_config or config.pool_config()
        self.validation_query = validation_query
        self.validation_timeout = validation_timeout
        self.platform = config.platform

        self._available: Deque[PooledConnection] = deque()
        self._borrowed: Dict[int, PooledConnection] = {}
        self._reserved = 0
        self._pending = 0
        self._condition = asyncio.Condition()
        self._closing = False
        self._closed = False
        self._reaper_task: Optional[asyncio.Task] = None

        self._stats = {
            "total_created": 0,
            "total_closed": 0,
            "total_acquired": 0,
            "total_released": 0,
            "validation_failures": 0,
            "suspect_discarded": 0,
            "pool_exhausted_count": 0,
            "idle_reaped": 0,
            "max_wait_time": 0.0,
        }

        self.logger = get_logger(f"pool.{self.platform}")
        self.perf_logger = get_performance_logger(f"pool.{self.platform}")

    # Capacity bookkeeping, callers hold the condition lock.

    @property
    def total(self) -> int:
        return len(self._available) + len(self._borrowed)

    def _has_capacity(self) -> bool:
        return self.total + self._reserved < self.pool_config.max_size

    @property
    def is_closed(self) -> bool:
        return self._closing

    def start(self) -> None:
        """Start the idle reaper; idempotent."""
        if self._reaper_task is None and not self._closing:
            self._reaper_task = asyncio.create_task(self._reap_loop())

    async def acquire(self, timeout: Optional[float] = None) -> PooledConnection:
        """Borrow a validated connection.

        Raises:
            PoolExhausted: No connection became available within the timeout
            PoolClosed: The pool is draining or closed
            ConnectionError: A new connection could not be opened
        """
        loop = asyncio.get_running_loop()
        wait_limit = timeout if timeout is not None else self.pool_config.acquire_timeout
        started = loop.time()
        deadline = started + wait_limit

        while True:
            pooled = await self._checkout(deadline)
            if pooled is None:
                pooled = await self._open_reserved(borrow=True)
            elif self.pool_config.test_on_borrow and not await self._validate(pooled):
                self._stats["validation_failures"] += 1
                self.logger.debug(
                    "Connection failed validation, replacing",
                    connection_id=pooled.connection_id,
                )
                await self._discard(pooled)
                continue

            wait_time = loop.time() - started
            self._stats["max_wait_time"] = max(self._stats["max_wait_time"], wait_time)
            self._stats["total_acquired"] += 1
            pooled.mark_borrowed()
            self.logger.debug(
                "Connection acquired",
                connection_id=pooled.connection_id,
                wait_time_ms=wait_time * 1000,
                use_count=pooled.use_count,
            )
            return pooled

    async def _checkout(self, deadline: float) -> Optional[PooledConnection]:
        """Take an idle connection, or reserve a slot and return None."""
        loop = asyncio.get_running_loop()
        async with self._condition:
            while True:
                if self._closing:
                    raise PoolClosed(
                        "Connection pool is closed",
                        code=ErrorCodes.POOL_CLOSED,
                        context={"platform": self.platform},
                    )
                if self._available:
                    pooled = self._available.popleft()
                    self._borrowed[pooled.connection_id] = pooled
                    return pooled
                if self._has_capacity():
                    self._reserved += 1
                    return None

                remaining = deadline - loop.time()
                if remaining <= 0:
                    self._stats["pool_exhausted_count"] += 1
                    self.logger.warning(
                        "Connection pool exhausted",
                        borrowed=len(self._borrowed),
                        max_size=self.pool_config.max_size,
                        pending=self._pending,
                    )
                    raise PoolExhausted(
                        f"Connection pool exhausted after {self.pool_config.acquire_timeout}s timeout",
                        code=ErrorCodes.POOL_EXHAUSTED,
                        context={
                            "platform": self.platform,
                            "max_size": self.pool_config.max_size,
                            "borrowed": len(self._borrowed),
                        },
                    )

                self._pending += 1
                try:
                    await asyncio.wait_for(self._condition.wait(), timeout=remaining)
                except asyncio.TimeoutError:
                    continue
                finally:
                    self._pending -= 1

    async def _open_reserved(self, *, borrow: bool) -> PooledConnection:
        """Open a connection into a previously reserved slot."""
        started = time.perf_counter()
        try:
            handle = await self.connector.open(self.config)
        except asyncio.CancelledError:
            await self._release_reservation()
            raise
        except InspectorException:
            await self._release_reservation()
            raise
        except Exception as e:
            await self._release_reservation()
            self.logger.error("Failed to create connection", error=str(e))
            raise ConnectionError(
                f"Failed to create database connection: {e}",
                code=ErrorCodes.CONNECTION_REFUSED,
                context={
                    "platform": self.platform,
                    "host": self.config.host,
                    "database": self.config.database,
                },
                cause=e,
            ) from e

        pooled = PooledConnection(handle)
        async with self._condition:
            self._reserved -= 1
            closing = self._closing
            if not closing:
                if borrow:
                    self._borrowed[pooled.connection_id] = pooled
                else:
                    self._available.append(pooled)
                self._condition.notify()
            else:
                self._condition.notify_all()

        if closing:
            await self._close_handle(pooled)
            raise PoolClosed(
                "Connection pool closed while opening a connection",
                code=ErrorCodes.POOL_CLOSED,
                context={"platform": self.platform},
            )

        self._stats["total_created"] += 1
        self.perf_logger.record_timing("open_connection", time.perf_counter() - started)
        self.logger.debug(
            "New connection created",
            connection_id=pooled.connection_id,
            total_connections=self.total,
        )
        return pooled

    async def _release_reservation(self) -> None:
        async with self._condition:
            self._reserved -= 1
            self._condition.notify()

    async def _validate(self, pooled: PooledConnection) -> bool:
        try:
            await asyncio.wait_for(
                self.connector.exec(pooled.handle, self.validation_query, []),
                timeout=self.validation_timeout,
            )
            return True
        except Exception as e:
            self.logger.debug(
                "Validation query failed",
                connection_id=pooled.connection_id,
                error=str(e),
            )
            return False

    async def release(self, pooled: PooledConnection, *, discard: bool = False) -> None:
        """Return a borrowed connection.

        Suspect connections, and any connection released while the pool
        drains, are closed instead of reused. Releasing twice is a no-op.
        """
        if discard or pooled.is_suspect or self._closing:
            if pooled.is_suspect:
                self._stats["suspect_discarded"] += 1
            await self._discard(pooled)
            return

        async with self._condition:
            if self._borrowed.pop(pooled.connection_id, None) is None:
                return
            pooled.mark_returned()
            self._available.append(pooled)
            self._condition.notify()

        self._stats["total_released"] += 1
        self.logger.debug("Connection returned to pool", connection_id=pooled.connection_id)

    async def _discard(self, pooled: PooledConnection) -> None:
        async with self._condition:
            removed = self._borrowed.pop(pooled.connection_id, None) is not None
            if not removed and pooled in self._available:
                self._available.remove(pooled)
                removed = True
            self._condition.notify_all()
        if removed:
            self.logger.debug(
                "Connection discarded",
                connection_id=pooled.connection_id,
                suspect=pooled.is_suspect,
            )
            await self._close_handle(pooled)

    async def _close_handle(self, pooled: PooledConnection) -> None:
        try:
            await self.connector.close(pooled.handle)
        except Exception as e:
            self.logger.warning(
                "Error closing connection",
                connection_id=pooled.connection_id,
                error=str(e),
            )
        self._stats["total_closed"] += 1

    @asynccontextmanager
    async def connection(self, timeout: Optional[float] = None) -> AsyncIterator[PooledConnection]:
        """Borrow a connection for the duration of a block."""
        pooled = await self.acquire(timeout)
        try:
            yield pooled
        finally:
            await self.release(pooled)

    async def _reap_loop(self) -> None:
        while not self._closing:
            await asyncio.sleep(self.pool_config.reap_interval)
            try:
                await self.reap()
            except Exception as e:
                self.logger.error("Error in idle reaper", error=str(e))

    async def reap(self) -> Dict[str, int]:
        """Close connections idle past ``idle_timeout`` and top up to ``min_idle``."""
        async with self._condition:
            surplus = len(self._available) - self.pool_config.min_idle
            expired: List[PooledConnection] = []
            for pooled in sorted(self._available, key=lambda c: c.last_used):
                if len(expired) >= surplus:
                    break
                if pooled.idle_seconds > self.pool_config.idle_timeout:
                    expired.append(pooled)
            for pooled in expired:
                self._available.remove(pooled)

        for pooled in expired:
            self.logger.debug(
                "Closing idle connection",
                connection_id=pooled.connection_id,
                idle_seconds=pooled.idle_seconds,
            )
            await self._close_handle(pooled)
        self._stats["idle_reaped"] += len(expired)

        opened = 0
        while True:
            async with self._condition:
                if (
                    self._closing
                    or len(self._available) + self._reserved >= self.pool_config.min_idle
                    or not self._has_capacity()
                ):
                    break
                self._reserved += 1
            try:
                await self._open_reserved(borrow=False)
            except InspectorException as e:
                self.logger.warning("Failed to open idle connection", error=str(e))
                break
            opened += 1

        return {"closed": len(expired), "opened": opened}

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Stop handing out connections, wait for borrowers, then close everything."""
        if self._closed:
            return
        self._closing = True
        self.logger.info("Draining connection pool", borrowed=len(self._borrowed))

        if self._reaper_task is not None:
            self._reaper_task.cancel()
            try:
                await self._reaper_task
            except asyncio.CancelledError:
                pass
            self._reaper_task = None

        limit = timeout if timeout is not None else self.pool_config.shutdown_timeout
        async with self._condition:
            self._condition.notify_all()
            try:
                await asyncio.wait_for(
                    self._condition.wait_for(lambda: not self._borrowed and not self._reserved),
                    timeout=limit,
                )
            except asyncio.TimeoutError:
                self.logger.warning(
                    "Drain timed out with connections still borrowed",
                    borrowed=len(self._borrowed),
                    timeout=limit,
                )

        await self.clear()

    async def clear(self) -> None:
        """Close every connection, borrowed or not, and mark the pool closed."""
        self._closing = True
        async with self._condition:
            victims = list(self._available) + list(self._borrowed.values())
            self._available.clear()
            self._borrowed.clear()
            self._condition.notify_all()

        for pooled in victims:
            await self._close_handle(pooled)

        self._closed = True
        self.logger.info(
            "Connection pool closed",
            total_created=self._stats["total_created"],
            total_closed=self._stats["total_closed"],
        )

    def metrics(self) -> PoolMetrics:
        """Point-in-time snapshot; ``borrowed`` is derived from total and available."""
        return PoolMetrics(
            total=self.total,
            available=len(self._available),
            pending=self._pending,
            max_size=self.pool_config.max_size,
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.metrics().to_dict(),
            "reserved": self._reserved,
            "min_idle": self.pool_config.min_idle,
            "is_closed": self._closing,
            **self._stats,
        }

    def __repr__(self) -> str:
        return (
            f"ConnectionPool(platform={self.platform!r}, total={self.total}, "
            f"available={len(self._available)}, max_size={self.pool_config.max_size})"
        )

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Long-poll watch loop over a KV prefix.

KVWatcher turns repeated blocking queries into an async stream of
snapshots and errors:

    last_index = 0
    loop:
        snapshot = store.list(prefix, last_index)      # blocks until change/wait
        failure   -> yield error, back off, retry forever
        same index -> long-poll timed out, query again
        lower index -> store was reset, start over from 0
        new index -> (settle during quiescence) yield snapshot

Every await races the shutdown event, so setting it abandons an in-flight
query or backoff sleep and ends the stream without yielding anything else.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from uuid import uuid4

from omnibase_kvstructure.errors import (
    InfraConnectionError,
    ModelInfraErrorContext,
    RuntimeHostError,
)
from omnibase_kvstructure.models import ModelKVSnapshot, ModelWatchBackoffConfig
from omnibase_kvstructure.protocols import ProtocolKVStore
from omnibase_kvstructure.utils import (
    ShutdownRequested,
    sanitize_error_message,
    sleep_until_shutdown,
    until_shutdown,
)

logger = logging.getLogger(__name__)

WatchEvent = ModelKVSnapshot | RuntimeHostError


def _effective_index(snapshot: ModelKVSnapshot) -> int:
    # Consul documents index 0 as invalid; clamp it so the next query blocks.
    return max(snapshot.index, 1)


class KVWatcher:
    """Blocking-query watch loop for one prefix.

    The watcher owns ``last_index`` and the consecutive failure count; it
    is driven by a single consumer and is not safe to iterate twice
    concurrently.

    Example:
        >>> watcher = KVWatcher(store, "app/config/")
        >>> shutdown = asyncio.Event()
        >>> async for event in watcher.watch(shutdown):
        ...     if isinstance(event, RuntimeHostError):
        ...         log_failure(event)
        ...     else:
        ...         apply(event)
    """

    def __init__(
        self,
        store: ProtocolKVStore,
        prefix: str,
        backoff: ModelWatchBackoffConfig | None = None,
        quiescence_period_seconds: float = 0.0,
        quiescence_timeout_seconds: float = 5.0,
        wait_seconds: float | None = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            store: Store to query.
            prefix: Prefix to watch; not validated here.
            backoff: Delay policy after failed queries.
            quiescence_period_seconds: Quiet time required before a change is
                yielded; 0 yields every change immediately.
            quiescence_timeout_seconds: Cap on the delay quiescence may add.
            wait_seconds: Long-poll wait per query; None uses the store default.
        """
        self._store = store
        self._prefix = prefix
        self._backoff = backoff or ModelWatchBackoffConfig()
        self._quiescence_period = quiescence_period_seconds
        self._quiescence_timeout = quiescence_timeout_seconds
        self._wait_seconds = wait_seconds
        self._last_index = 0
        self._consecutive_failures = 0

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def last_index(self) -> int:
        """Change index of the last yielded snapshot; 0 before the first."""
        return self._last_index

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def _wrap_error(self, error: Exception) -> RuntimeHostError:
        if isinstance(error, RuntimeHostError):
            return error
        wrapped = InfraConnectionError(
            f"KV store query failed: {type(error).__name__}",
            context=ModelInfraErrorContext(
                transport_type=self._store.transport_type,
                operation="watch",
                target_name=self._store.store_name,
                correlation_id=uuid4(),
            ),
            key=self._prefix,
            index=self._last_index,
        )
        wrapped.__cause__ = error
        return wrapped

    async def watch(self, shutdown_event: asyncio.Event) -> AsyncIterator[WatchEvent]:
        """Yield a snapshot per detected change and an error per failed query.

        Args:
            shutdown_event: Ends the stream as soon as it is set.

        Yields:
            ModelKVSnapshot for each new change index, RuntimeHostError for
            each failed query. Never both for the same query.
        """
        logger.info(
            "Starting KV watch",
            extra={"prefix": self._prefix, "store": self._store.store_name},
        )
        try:
            while not shutdown_event.is_set():
                try:
                    snapshot = await until_shutdown(
                        self._store.list(
                            self._prefix, self._last_index, self._wait_seconds
                        ),
                        shutdown_event,
                    )
                except ShutdownRequested:
                    return
                except Exception as e:
                    error = self._wrap_error(e)
                    delay = self._backoff.delay_for(self._consecutive_failures)
                    self._consecutive_failures += 1
                    logger.warning(
                        "KV watch query failed, retrying in %.2fs",
                        delay,
                        extra={
                            "prefix": self._prefix,
                            "index": self._last_index,
                            "consecutive_failures": self._consecutive_failures,
                            "error": sanitize_error_message(error),
                        },
                    )
                    yield error
                    if await sleep_until_shutdown(delay, shutdown_event):
                        return
                    continue

                self._consecutive_failures = 0
                index = _effective_index(snapshot)

                if index == self._last_index:
                    continue

                if index < self._last_index:
                    logger.warning(
                        "KV change index went backwards, resetting watch",
                        extra={
                            "prefix": self._prefix,
                            "previous_index": self._last_index,
                            "index": index,
                        },
                    )
                    self._last_index = 0
                    continue

                if self._quiescence_period > 0:
                    try:
                        snapshot = await self._settle(snapshot, shutdown_event)
                    except ShutdownRequested:
                        return
                    index = _effective_index(snapshot)

                self._last_index = index
                logger.debug(
                    "KV change detected",
                    extra={
                        "prefix": self._prefix,
                        "index": index,
                        "entry_count": len(snapshot),
                    },
                )
                yield snapshot
        finally:
            logger.info(
                "KV watch stopped",
                extra={"prefix": self._prefix, "last_index": self._last_index},
            )

    async def _settle(
        self, snapshot: ModelKVSnapshot, shutdown_event: asyncio.Event
    ) -> ModelKVSnapshot:
        """Keep querying until the prefix stays quiet for a full period.

        Returns the latest snapshot once a query with the quiescence period
        as its wait comes back unchanged, or once the quiescence timeout
        elapses. A failed query ends settling early; the failure resurfaces
        on the next regular query.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._quiescence_timeout
        latest = snapshot

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.debug(
                    "Quiescence timeout reached",
                    extra={"prefix": self._prefix, "index": latest.index},
                )
                return latest

            latest_index = _effective_index(latest)
            try:
                candidate = await until_shutdown(
                    self._store.list(
                        self._prefix,
                        latest_index,
                        min(self._quiescence_period, remaining),
                    ),
                    shutdown_event,
                )
            except ShutdownRequested:
                raise
            except Exception as e:
                logger.warning(
                    "KV query failed during quiescence, delivering latest snapshot",
                    extra={
                        "prefix": self._prefix,
                        "index": latest_index,
                        "error": sanitize_error_message(e),
                    },
                )
                return latest

            if _effective_index(candidate) <= latest_index:
                return latest
            latest = candidate


__all__: list[str] = ["KVWatcher", "WatchEvent"]

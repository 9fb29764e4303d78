# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""StructureDecoder: watch a KV prefix and deliver decoded records.

The decoder glues a KVWatcher to a TreeDecoder and hands the results to the
consumer through asyncio queues:

    store.list --> KVWatcher --> snapshot --> TreeDecoder --> update_queue
                            \\-> error -----------(or decode error)--> error_queue

Exactly one of {decoded value, error} is delivered per detected change, in
change order. Every delivery is a blocking handoff raced against the shutdown
event, so a full queue applies backpressure to the watch loop and close()
never hangs on it.

Lifecycle:
    CREATED --start()--> RUNNING --close()--> STOPPED (terminal)

Example:
    >>> updates: asyncio.Queue[AppConfig] = asyncio.Queue(maxsize=1)
    >>> errors: asyncio.Queue[RuntimeHostError] = asyncio.Queue()
    >>> config = ModelStructureDecoderConfig(prefix="service/web/")
    >>> async with StructureDecoder(AppConfig, config, updates, errors):
    ...     current = await updates.get()
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from typing import Generic, TypeVar

from omnibase_kvstructure.decoding import TreeDecoder
from omnibase_kvstructure.enums import EnumDecoderState, EnumInfraTransportType
from omnibase_kvstructure.errors import (
    ModelInfraErrorContext,
    ProtocolConfigurationError,
    RuntimeHostError,
)
from omnibase_kvstructure.models import ModelStructureDecoderConfig
from omnibase_kvstructure.protocols import ProtocolKVStore
from omnibase_kvstructure.stores import ConsulKVStore
from omnibase_kvstructure.utils import (
    ShutdownRequested,
    sanitize_error_message,
    until_shutdown,
)
from omnibase_kvstructure.watch import KVWatcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Upper bound on how long close() waits for the worker to notice shutdown.
WORKER_STOP_TIMEOUT_SECONDS: float = 5.0


class StructureDecoder(Generic[T]):
    """Live-decoded view of one KV prefix.

    Attributes:
        state: Current EnumDecoderState
        last_index: Change index of the last delivered change (0 before any)

    Concurrency Safety:
        start() and close() are serialized by an asyncio.Lock. The change
        index and the store handle are owned by the worker task.
    """

    def __init__(
        self,
        target: type[T],
        config: ModelStructureDecoderConfig,
        update_queue: asyncio.Queue[T],
        error_queue: asyncio.Queue[RuntimeHostError] | None = None,
        store: ProtocolKVStore | None = None,
    ) -> None:
        """Hold configuration; no store calls happen until run().

        Args:
            target: Dataclass type or pydantic model class to decode into.
            config: Prefix, tag name, quiescence, backoff and Consul settings.
            update_queue: Receives one new ``target`` instance per change.
            error_queue: Receives store and decode errors; when None, errors
                are logged and dropped.
            store: Store to watch. When None, a ConsulKVStore is built from
                ``config.consul`` on first run and closed by close().
        """
        self._target = target
        self._config = config
        self._update_queue = update_queue
        self._error_queue = error_queue
        self._store = store
        self._owns_store = store is None
        self._decoder = TreeDecoder(tag_name=config.tag_name)
        self._watcher: KVWatcher | None = None

        self._state = EnumDecoderState.CREATED
        self._lock = asyncio.Lock()
        self._shutdown_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> EnumDecoderState:
        return self._state

    @property
    def last_index(self) -> int:
        return self._watcher.last_index if self._watcher is not None else 0

    @property
    def config(self) -> ModelStructureDecoderConfig:
        return self._config

    @property
    def target(self) -> type[T]:
        return self._target

    def _log_extra(self) -> dict[str, object]:
        return {
            "prefix": self._config.prefix,
            "target": self._target.__name__,
            "state": self._state.value,
        }

    async def start(self) -> None:
        """Spawn the background worker running run().

        Idempotency:
            Starting a running decoder logs a warning and does nothing.

        Raises:
            RuntimeHostError: If the decoder was already closed.
        """
        async with self._lock:
            if self._state is EnumDecoderState.RUNNING:
                logger.warning(
                    "StructureDecoder already running, ignoring start()",
                    extra=self._log_extra(),
                )
                return
            if self._state is EnumDecoderState.STOPPED:
                raise RuntimeHostError(
                    "StructureDecoder is closed and cannot be restarted",
                    context=ModelInfraErrorContext(
                        transport_type=EnumInfraTransportType.RUNTIME,
                        operation="start",
                        target_name=self._config.prefix,
                    ),
                )

            self._state = EnumDecoderState.RUNNING
            self._task = asyncio.create_task(
                self.run(), name=f"structure_decoder:{self._config.prefix}"
            )

        logger.info("StructureDecoder started", extra=self._log_extra())

    def _configuration_error(self) -> ProtocolConfigurationError | None:
        ctx = ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.RUNTIME,
            operation="run",
            target_name=self._target.__name__,
        )
        if not self._config.prefix:
            return ProtocolConfigurationError(
                "StructureDecoder requires a non-empty prefix", context=ctx
            )
        try:
            self._decoder.fields(self._target)
        except ProtocolConfigurationError as e:
            return e
        return None

    def _ensure_store(self) -> ProtocolKVStore:
        if self._store is None:
            self._store = ConsulKVStore(self._config.consul)
        return self._store

    async def run(self) -> None:
        """Watch the prefix and deliver until shutdown.

        A configuration problem (empty prefix, undecodable target type) is
        delivered once as a ProtocolConfigurationError and ends the run
        without contacting the store.
        """
        config_error = self._configuration_error()
        if config_error is not None:
            logger.error(
                "StructureDecoder configuration invalid, not watching",
                extra={**self._log_extra(), "error": config_error.message},
            )
            await self._deliver_error(config_error)
            return

        watcher = KVWatcher(
            self._ensure_store(),
            self._config.prefix,
            backoff=self._config.backoff,
            quiescence_period_seconds=self._config.quiescence_period_seconds,
            quiescence_timeout_seconds=self._config.quiescence_timeout_seconds,
        )
        self._watcher = watcher

        try:
            async with aclosing(watcher.watch(self._shutdown_event)) as events:
                async for event in events:
                    if isinstance(event, RuntimeHostError):
                        delivered = await self._deliver_error(event)
                    else:
                        try:
                            value = self._decoder.decode(event, self._target)
                        except RuntimeHostError as e:
                            delivered = await self._deliver_error(e)
                        else:
                            delivered = await self._deliver(self._update_queue, value)
                            if delivered:
                                logger.debug(
                                    "Delivered decoded snapshot",
                                    extra={**self._log_extra(), "index": event.index},
                                )
                    if not delivered:
                        break
        except asyncio.CancelledError:
            logger.info("StructureDecoder worker cancelled", extra=self._log_extra())
            raise
        except Exception:
            logger.exception("StructureDecoder worker failed", extra=self._log_extra())
            raise

    async def _deliver(self, queue: asyncio.Queue, item: object) -> bool:
        """Hand ``item`` to ``queue``. Returns False if shutdown won."""
        if self._shutdown_event.is_set():
            return False
        if not queue.full():
            queue.put_nowait(item)
            return True
        try:
            await until_shutdown(queue.put(item), self._shutdown_event)
        except ShutdownRequested:
            return False
        return True

    async def _deliver_error(self, error: RuntimeHostError) -> bool:
        if self._error_queue is None:
            logger.warning(
                "Dropping error, no error queue configured",
                extra={
                    **self._log_extra(),
                    "error": sanitize_error_message(error),
                    "error_type": type(error).__name__,
                    "correlation_id": str(error.correlation_id)
                    if error.correlation_id
                    else None,
                },
            )
            return not self._shutdown_event.is_set()
        return await self._deliver(self._error_queue, error)

    async def close(self) -> None:
        """Stop the worker and release the store the decoder created.

        After close() returns nothing more is put on either queue. An
        injected store is left open for its owner.

        Idempotency:
            Calling close() more than once is a no-op.
        """
        async with self._lock:
            if self._state is EnumDecoderState.STOPPED:
                logger.debug(
                    "StructureDecoder already stopped, ignoring close()",
                    extra=self._log_extra(),
                )
                return
            self._state = EnumDecoderState.STOPPED

        self._shutdown_event.set()

        task = self._task
        self._task = None
        if task is not None:
            try:
                await asyncio.wait_for(task, timeout=WORKER_STOP_TIMEOUT_SECONDS)
            except TimeoutError:
                logger.warning(
                    "StructureDecoder worker did not stop within timeout, cancelled",
                    extra=self._log_extra(),
                )
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            except Exception as e:
                logger.warning(
                    "StructureDecoder worker ended with an error",
                    extra={**self._log_extra(), "error": sanitize_error_message(e)},
                )

        if self._owns_store and self._store is not None:
            await self._store.close()
            self._store = None

        logger.info(
            "StructureDecoder stopped",
            extra={**self._log_extra(), "last_index": self.last_index},
        )

    async def __aenter__(self) -> StructureDecoder[T]:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__: list[str] = ["StructureDecoder", "WORKER_STOP_TIMEOUT_SECONDS"]

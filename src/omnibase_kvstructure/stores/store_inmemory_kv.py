# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""In-process KV store with Consul-style blocking query semantics.

Useful for local development and for exercising StructureDecoder without a
Consul agent. Index semantics follow Consul:

- every write or delete bumps a global change index (starting at 1)
- a prefix's index is the highest modify/delete index under it, or the
  global index when the prefix has never held a key
- ``list(prefix, 0)`` returns immediately; ``list(prefix, n)`` blocks until
  the prefix index moves past ``n`` or the wait elapses
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from omnibase_kvstructure.enums import EnumInfraTransportType
from omnibase_kvstructure.errors import ModelInfraErrorContext, RuntimeHostError
from omnibase_kvstructure.models import ModelKVEntry, ModelKVSnapshot

logger = logging.getLogger(__name__)


class InMemoryKVStore:
    """ProtocolKVStore implementation holding data in a dict.

    Concurrency Safety:
        Coroutine-safe via a single asyncio.Condition; not thread-safe.

    Failure Injection:
        ``fail_next(error)`` queues exceptions raised by upcoming ``list``
        calls, in order, before any data is read.
    """

    def __init__(
        self,
        data: Mapping[str, str | bytes] | None = None,
        default_wait_seconds: float = 5.0,
        name: str = "memory",
    ) -> None:
        self._values: dict[str, bytes] = {}
        self._modify_index: dict[str, int] = {}
        self._tombstones: dict[str, int] = {}
        self._index = 1
        self._default_wait = default_wait_seconds
        self._name = name
        self._condition = asyncio.Condition()
        self._pending_failures: list[Exception] = []
        self._closed = False
        self.list_calls = 0

        for key, value in (data or {}).items():
            self._write(key, value)

    @property
    def store_name(self) -> str:
        return self._name

    @property
    def transport_type(self) -> EnumInfraTransportType:
        return EnumInfraTransportType.MEMORY

    @property
    def index(self) -> int:
        """Return the global change index."""
        return self._index

    def _write(self, key: str, value: str | bytes) -> None:
        self._index += 1
        self._values[key] = value.encode("utf-8") if isinstance(value, str) else value
        self._modify_index[key] = self._index
        self._tombstones.pop(key, None)

    def _prefix_index(self, prefix: str) -> int:
        indexes = [i for k, i in self._modify_index.items() if k.startswith(prefix)]
        indexes.extend(i for k, i in self._tombstones.items() if k.startswith(prefix))
        return max(indexes) if indexes else self._index

    def _snapshot(self, prefix: str) -> ModelKVSnapshot:
        entries = tuple(
            ModelKVEntry(
                key=key,
                value=None if key.endswith("/") and not value else value,
                is_dir=key.endswith("/") and not value,
            )
            for key, value in self._values.items()
            if key.startswith(prefix)
        )
        return ModelKVSnapshot(
            prefix=prefix, index=self._prefix_index(prefix), entries=entries
        )

    async def put(self, key: str, value: str | bytes) -> int:
        """Write ``key`` and wake blocked queries. Returns the new index."""
        async with self._condition:
            self._write(key, value)
            self._condition.notify_all()
            return self._index

    async def put_many(self, data: Mapping[str, str | bytes]) -> int:
        """Write several keys under one wake-up. Each write bumps the index."""
        async with self._condition:
            for key, value in data.items():
                self._write(key, value)
            self._condition.notify_all()
            return self._index

    async def delete(self, key: str) -> bool:
        """Delete ``key``. Returns False if it did not exist."""
        async with self._condition:
            if key not in self._values:
                return False
            self._index += 1
            del self._values[key]
            del self._modify_index[key]
            self._tombstones[key] = self._index
            self._condition.notify_all()
            return True

    def fail_next(self, error: Exception) -> None:
        """Queue ``error`` to be raised by the next ``list`` call."""
        self._pending_failures.append(error)

    async def list(
        self,
        prefix: str,
        after_index: int,
        wait_seconds: float | None = None,
    ) -> ModelKVSnapshot:
        self.list_calls += 1
        if self._closed:
            raise RuntimeHostError(
                "InMemoryKVStore is closed",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.MEMORY,
                    operation="kv_list",
                    target_name=self._name,
                ),
            )
        if self._pending_failures:
            raise self._pending_failures.pop(0)

        wait = wait_seconds if wait_seconds is not None else self._default_wait
        async with self._condition:
            if after_index > 0 and self._prefix_index(prefix) <= after_index:
                try:
                    await asyncio.wait_for(
                        self._condition.wait_for(
                            lambda: self._closed
                            or self._prefix_index(prefix) > after_index
                        ),
                        timeout=wait,
                    )
                except TimeoutError:
                    pass
            return self._snapshot(prefix)

    async def close(self) -> None:
        async with self._condition:
            self._closed = True
            self._condition.notify_all()


__all__: list[str] = ["InMemoryKVStore"]

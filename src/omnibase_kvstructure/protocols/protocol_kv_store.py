# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol definition for watchable key/value stores.

Architecture Context:
    - KVWatcher drives the long-poll loop and owns the change index
    - ProtocolKVStore defines the blocking listing contract
    - Concrete implementations (Consul, in-memory) talk to the backend

Blocking Semantics:
    ``list(prefix, after_index)`` returns as soon as the subtree's change
    index moves past ``after_index``, or once ``wait_seconds`` elapses with no
    change, in which case the returned index equals ``after_index``.
    ``after_index=0`` returns immediately with the current state.

Cancellation:
    Callers abandon an in-flight ``list`` by cancelling the awaiting task.
    Implementations must tolerate cancellation at the await point and must
    not deliver results afterwards.

Example Usage:
    ```python
    store = ConsulKVStore(ModelConsulStoreConfig(host="consul.local"))
    snapshot = await store.list("app/config/", after_index=0)
    snapshot = await store.list("app/config/", after_index=snapshot.index)
    await store.close()
    ```

Error Handling:
    All methods raise RuntimeHostError subclasses on failure:
    - InfraConsulError / InfraConnectionError: store unreachable
    - InfraTimeoutError: transport timeout
    - InfraAuthenticationError: ACL token rejected
    - InfraUnavailableError: circuit breaker open
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from omnibase_kvstructure.enums import EnumInfraTransportType
    from omnibase_kvstructure.models import ModelKVSnapshot

__all__ = [
    "ProtocolKVStore",
]


@runtime_checkable
class ProtocolKVStore(Protocol):
    """Blocking-query listing protocol consumed by KVWatcher."""

    @property
    def store_name(self) -> str:
        """Return a short name for logging and error context."""
        ...

    @property
    def transport_type(self) -> EnumInfraTransportType:
        """Return the transport tag used when wrapping foreign errors."""
        ...

    async def list(
        self,
        prefix: str,
        after_index: int,
        wait_seconds: float | None = None,
    ) -> ModelKVSnapshot:
        """List every entry under ``prefix`` once it changes past ``after_index``.

        Args:
            prefix: Key prefix to list. May be empty (lists the whole store).
            after_index: Last change index the caller has seen; 0 for none.
            wait_seconds: Long-poll wait; None uses the store's default.

        Returns:
            Snapshot of the subtree with the store's current change index.

        Raises:
            RuntimeHostError: On any store communication failure.
        """
        ...

    async def close(self) -> None:
        """Release client resources. Idempotent."""
        ...

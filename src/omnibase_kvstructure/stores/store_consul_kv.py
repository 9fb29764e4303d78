# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Consul KV store adapter using the python-consul client.

Issues recursive blocking queries (``?index=N&wait=...&recurse``) against the
Consul HTTP API and converts the results into ModelKVSnapshot instances.

Security Features:
    - SecretStr protection for the ACL token
    - Error messages name the exception type, never the token or full URL

Thread Pool Management:
    python-consul is synchronous, so every blocking query runs in a bounded
    ThreadPoolExecutor owned by the store. Cancelling the awaiting task
    abandons the query; the worker thread is released when Consul answers,
    at the latest once the query's ``wait`` elapses.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from uuid import UUID, uuid4

import consul

from omnibase_kvstructure.enums import EnumInfraTransportType
from omnibase_kvstructure.errors import (
    InfraAuthenticationError,
    InfraConsulError,
    InfraTimeoutError,
    ModelInfraErrorContext,
    RuntimeHostError,
)
from omnibase_kvstructure.mixins import MixinAsyncCircuitBreaker
from omnibase_kvstructure.models import (
    ModelConsulStoreConfig,
    ModelKVEntry,
    ModelKVSnapshot,
)

logger = logging.getLogger(__name__)

OPERATION_KV_LIST: str = "kv_list"


def format_wait(wait_seconds: float) -> str:
    """Render a wait duration the way Consul's ``wait`` parameter expects."""
    return f"{max(1, round(wait_seconds * 1000))}ms"


class ConsulKVStore(MixinAsyncCircuitBreaker):
    """ProtocolKVStore implementation backed by a Consul agent.

    Circuit Breaker Pattern:
        After ``circuit_breaker_failure_threshold`` consecutive failures the
        store raises InfraUnavailableError without contacting Consul until
        ``circuit_breaker_reset_timeout_seconds`` elapses. The watch loop
        keeps applying its own backoff on top.

    Error Classification:
        - consul.ACLPermissionDenied -> InfraAuthenticationError
        - consul.Timeout, TimeoutError -> InfraTimeoutError
        - other consul.ConsulException -> InfraConsulError
        - anything else (e.g. requests connection errors) -> InfraConsulError
    """

    def __init__(
        self,
        config: ModelConsulStoreConfig | None = None,
        client: consul.Consul | None = None,
    ) -> None:
        """Create the store.

        Args:
            config: Connection settings; defaults to a local agent.
            client: Pre-built python-consul client, mostly for tests.
        """
        self._config = config or ModelConsulStoreConfig()
        self._client: consul.Consul | None = client or self._setup_consul_client(
            self._config
        )
        self._executor: ThreadPoolExecutor | None = ThreadPoolExecutor(
            max_workers=self._config.max_concurrent_operations,
            thread_name_prefix="kvstructure_consul_",
        )
        self._circuit_breaker_initialized: bool = False
        if self._config.circuit_breaker_enabled:
            self._init_circuit_breaker(
                threshold=self._config.circuit_breaker_failure_threshold,
                reset_timeout=self._config.circuit_breaker_reset_timeout_seconds,
                service_name=self._config.target_name,
                transport_type=EnumInfraTransportType.CONSUL,
            )
            self._circuit_breaker_initialized = True

    @property
    def store_name(self) -> str:
        return self._config.target_name

    @property
    def transport_type(self) -> EnumInfraTransportType:
        return EnumInfraTransportType.CONSUL

    @property
    def config(self) -> ModelConsulStoreConfig:
        return self._config

    @staticmethod
    def _setup_consul_client(config: ModelConsulStoreConfig) -> consul.Consul:
        token_value: str | None = None
        if config.token is not None:
            token_value = config.token.get_secret_value()

        return consul.Consul(
            host=config.host,
            port=config.port,
            scheme=config.scheme,
            token=token_value,
            dc=config.datacenter,
        )

    def _error_context(
        self, operation: str, correlation_id: UUID
    ) -> ModelInfraErrorContext:
        return ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.CONSUL,
            operation=operation,
            target_name=self.store_name,
            correlation_id=correlation_id,
        )

    def _translate_error(
        self,
        error: Exception,
        prefix: str,
        after_index: int,
        correlation_id: UUID,
    ) -> RuntimeHostError:
        ctx = self._error_context(OPERATION_KV_LIST, correlation_id)

        if isinstance(error, consul.ACLPermissionDenied):
            return InfraAuthenticationError(
                "Consul ACL permission denied - check token permissions",
                context=ctx,
                consul_key=prefix,
            )
        if isinstance(error, (consul.Timeout, TimeoutError)):
            return InfraTimeoutError(
                f"Consul timeout: {type(error).__name__}",
                context=ctx,
                consul_key=prefix,
                index=after_index,
            )
        if isinstance(error, consul.ConsulException):
            return InfraConsulError(
                f"Consul error: {type(error).__name__}",
                context=ctx,
                consul_key=prefix,
                index=after_index,
            )
        return InfraConsulError(
            f"Unexpected error during Consul blocking query: {type(error).__name__}",
            context=ctx,
            consul_key=prefix,
            index=after_index,
        )

    async def list(
        self,
        prefix: str,
        after_index: int,
        wait_seconds: float | None = None,
    ) -> ModelKVSnapshot:
        """Run one recursive blocking query.

        Args:
            prefix: Key prefix to list.
            after_index: Last seen change index; 0 makes the query non-blocking.
            wait_seconds: Long-poll wait; defaults to ``config.wait_seconds``.

        Returns:
            Snapshot with Consul's ``X-Consul-Index`` as its index.

        Raises:
            RuntimeHostError: If the store is closed.
            InfraUnavailableError: If the circuit breaker is open.
            InfraAuthenticationError: If the ACL token is rejected.
            InfraTimeoutError: On transport timeouts.
            InfraConsulError: On any other failure.
        """
        correlation_id = uuid4()
        client = self._client
        executor = self._executor
        if client is None or executor is None:
            raise RuntimeHostError(
                "ConsulKVStore is closed",
                context=self._error_context(OPERATION_KV_LIST, correlation_id),
            )

        if self._circuit_breaker_initialized:
            async with self._circuit_breaker_lock:
                await self._check_circuit_breaker(OPERATION_KV_LIST, correlation_id)

        wait = format_wait(
            wait_seconds if wait_seconds is not None else self._config.wait_seconds
        )
        consistency = (
            self._config.consistency
            if self._config.consistency != "default"
            else None
        )

        def list_func() -> tuple[object, object]:
            return client.kv.get(
                prefix,
                index=after_index or None,
                recurse=True,
                wait=wait,
                consistency=consistency,
            )

        loop = asyncio.get_running_loop()
        try:
            raw_index, data = await loop.run_in_executor(executor, list_func)
        except Exception as e:
            if self._circuit_breaker_initialized:
                async with self._circuit_breaker_lock:
                    await self._record_circuit_failure(
                        OPERATION_KV_LIST, correlation_id
                    )
            raise self._translate_error(e, prefix, after_index, correlation_id) from e

        if self._circuit_breaker_initialized:
            async with self._circuit_breaker_lock:
                await self._reset_circuit_breaker()

        items = data if isinstance(data, list) else []
        entries = tuple(
            ModelKVEntry.from_consul(item) for item in items if isinstance(item, dict)
        )
        index = int(raw_index) if raw_index is not None else 0

        logger.debug(
            "Consul blocking query returned",
            extra={
                "prefix": prefix,
                "after_index": after_index,
                "index": index,
                "entry_count": len(entries),
                "correlation_id": str(correlation_id),
            },
        )
        return ModelKVSnapshot(prefix=prefix, index=index, entries=entries)

    async def close(self) -> None:
        """Shut the thread pool down without waiting for in-flight queries."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

        # python-consul clients have no close method, just drop the reference
        self._client = None

        if self._circuit_breaker_initialized:
            async with self._circuit_breaker_lock:
                await self._reset_circuit_breaker()

        logger.info(
            "ConsulKVStore closed",
            extra={"store": self.store_name},
        )


__all__: list[str] = ["ConsulKVStore", "format_wait"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Coroutine-safe async circuit breaker mixin for KV store clients.

Circuit Breaker States:
    - CLOSED: Normal operation, blocking queries allowed
    - OPEN: Circuit tripped, queries fail fast with InfraUnavailableError
    - HALF_OPEN: Reset timeout elapsed, the next query probes the store

State Transitions:
    CLOSED -> OPEN: failure count >= threshold
    OPEN -> HALF_OPEN: reset timeout elapsed (observed on the next check)
    HALF_OPEN -> CLOSED: probe succeeded
    HALF_OPEN -> OPEN: probe failed

Usage:
    ```python
    class ConsulKVStore(MixinAsyncCircuitBreaker):
        def __init__(self, config):
            self._init_circuit_breaker(
                threshold=config.circuit_breaker_failure_threshold,
                reset_timeout=config.circuit_breaker_reset_timeout_seconds,
                service_name=config.target_name,
                transport_type=EnumInfraTransportType.CONSUL,
            )

        async def list(self, prefix, after_index, wait_seconds=None):
            async with self._circuit_breaker_lock:
                await self._check_circuit_breaker("kv_list")
            try:
                result = await self._blocking_query(prefix, after_index)
            except Exception:
                async with self._circuit_breaker_lock:
                    await self._record_circuit_failure("kv_list")
                raise
            async with self._circuit_breaker_lock:
                await self._reset_circuit_breaker()
            return result
    ```

Concurrency Safety:
    All circuit breaker methods require the caller to hold
    ``_circuit_breaker_lock``. asyncio.Lock is coroutine-safe, not
    thread-safe; the synchronous Consul client runs in worker threads but
    circuit state is only touched from the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from uuid import UUID, uuid4

from omnibase_kvstructure.enums import EnumInfraTransportType
from omnibase_kvstructure.errors import InfraUnavailableError, ModelInfraErrorContext

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker state machine."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class MixinAsyncCircuitBreaker:
    """Async circuit breaker for store clients.

    State Variables:
        _circuit_breaker_failures: Consecutive failure counter
        _circuit_breaker_open: True while the circuit is OPEN
        _circuit_breaker_half_open: True between the reset timeout and the probe
        _circuit_breaker_open_until: time.time() after which a probe is allowed
        _circuit_breaker_lock: asyncio.Lock guarding the fields above
    """

    def _init_circuit_breaker(
        self,
        threshold: int = 5,
        reset_timeout: float = 60.0,
        service_name: str = "unknown",
        transport_type: EnumInfraTransportType = EnumInfraTransportType.CONSUL,
    ) -> None:
        """Initialize circuit breaker state and configuration.

        Args:
            threshold: Consecutive failures before opening the circuit
            reset_timeout: Seconds the circuit stays open before a probe
            service_name: Service identifier for error context (``consul.dc1``)
            transport_type: Transport type for error context

        Raises:
            ValueError: If threshold < 1 or reset_timeout < 0
        """
        if threshold < 1:
            raise ValueError(f"Circuit breaker threshold must be >= 1, got {threshold}")
        if reset_timeout < 0:
            raise ValueError(
                f"Circuit breaker reset_timeout must be >= 0, got {reset_timeout}"
            )

        self._circuit_breaker_failures = 0
        self._circuit_breaker_open = False
        self._circuit_breaker_half_open = False
        self._circuit_breaker_open_until: float = 0.0

        self.circuit_breaker_threshold = threshold
        self.circuit_breaker_reset_timeout = reset_timeout
        self.service_name = service_name
        self.transport_type = transport_type

        self._circuit_breaker_lock = asyncio.Lock()

        logger.debug(
            "Circuit breaker initialized for %s",
            service_name,
            extra={
                "threshold": threshold,
                "reset_timeout": reset_timeout,
                "transport_type": transport_type.value,
            },
        )

    @property
    def circuit_state(self) -> CircuitState:
        """Return the current state without transitioning it."""
        if self._circuit_breaker_open:
            return CircuitState.OPEN
        if self._circuit_breaker_half_open:
            return CircuitState.HALF_OPEN
        return CircuitState.CLOSED

    async def _check_circuit_breaker(
        self, operation: str, correlation_id: UUID | None = None
    ) -> None:
        """Raise InfraUnavailableError if the circuit is open.

        REQUIRES: self._circuit_breaker_lock must be held by caller.

        Moves OPEN -> HALF_OPEN once the reset timeout has elapsed.

        Raises:
            InfraUnavailableError: Circuit open, with ``circuit_state`` and
                ``retry_after_seconds`` in the error context.
        """
        if not self._circuit_breaker_open:
            return

        current_time = time.time()
        if current_time >= self._circuit_breaker_open_until:
            self._circuit_breaker_open = False
            self._circuit_breaker_half_open = True
            self._circuit_breaker_failures = 0
            logger.info(
                "Circuit breaker transitioning to half-open for %s",
                self.service_name,
                extra={"service": self.service_name, "operation": operation},
            )
            return

        retry_after = int(self._circuit_breaker_open_until - current_time)
        context = ModelInfraErrorContext(
            transport_type=self.transport_type,
            operation=operation,
            target_name=self.service_name,
            correlation_id=correlation_id or uuid4(),
        )
        raise InfraUnavailableError(
            f"Circuit breaker is open - {self.service_name} temporarily unavailable",
            context=context,
            circuit_state=CircuitState.OPEN.value,
            retry_after_seconds=retry_after,
        )

    async def _record_circuit_failure(
        self, operation: str, correlation_id: UUID | None = None
    ) -> None:
        """Count a failure and open the circuit at the threshold.

        REQUIRES: self._circuit_breaker_lock must be held by caller.

        A failed half-open probe reopens the circuit immediately.
        """
        self._circuit_breaker_failures += 1

        if (
            self._circuit_breaker_half_open
            or self._circuit_breaker_failures >= self.circuit_breaker_threshold
        ):
            self._circuit_breaker_open = True
            self._circuit_breaker_half_open = False
            self._circuit_breaker_open_until = (
                time.time() + self.circuit_breaker_reset_timeout
            )
            logger.warning(
                "Circuit breaker opened for %s after %d failures",
                self.service_name,
                self._circuit_breaker_failures,
                extra={
                    "service": self.service_name,
                    "operation": operation,
                    "failure_count": self._circuit_breaker_failures,
                    "threshold": self.circuit_breaker_threshold,
                    "reset_timeout": self.circuit_breaker_reset_timeout,
                    "correlation_id": str(correlation_id) if correlation_id else None,
                },
            )

    async def _reset_circuit_breaker(self) -> None:
        """Close the circuit after a successful call.

        REQUIRES: self._circuit_breaker_lock must be held by caller.
        """
        if (
            self._circuit_breaker_open
            or self._circuit_breaker_half_open
            or self._circuit_breaker_failures > 0
        ):
            logger.info(
                "Circuit breaker reset from %s to closed for %s",
                self.circuit_state.value,
                self.service_name,
                extra={
                    "service": self.service_name,
                    "previous_failures": self._circuit_breaker_failures,
                },
            )

        self._circuit_breaker_open = False
        self._circuit_breaker_half_open = False
        self._circuit_breaker_failures = 0
        self._circuit_breaker_open_until = 0.0


__all__ = ["CircuitState", "MixinAsyncCircuitBreaker"]

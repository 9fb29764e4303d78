# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""kvstructure mixins.

Reusable coroutine-safe building blocks for store clients.
"""

from omnibase_kvstructure.mixins.mixin_async_circuit_breaker import (
    CircuitState,
    MixinAsyncCircuitBreaker,
)

__all__: list[str] = [
    "CircuitState",
    "MixinAsyncCircuitBreaker",
]

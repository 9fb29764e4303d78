# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""kvstructure Errors Module.

Exports:
    ModelInfraErrorContext: Configuration model for bundled error context
    RuntimeHostError: Base error class
    ProtocolConfigurationError: Invalid prefix or configuration (fatal to a decoder)
    InfraConnectionError: Store transport errors
    InfraConsulError: Consul blocking query errors
    InfraTimeoutError: Store call timeouts
    InfraAuthenticationError: ACL token rejected
    InfraUnavailableError: Circuit breaker open
    StructuralDecodeError: Store data does not fit the destination record

Error Sanitization Guidelines:
    NEVER include ACL tokens or full connection URLs with credentials in
    error messages or context. Prefixes, keys, change indices, host names
    and ports are safe.
"""

from omnibase_kvstructure.errors.error_consul import InfraConsulError
from omnibase_kvstructure.errors.error_structural_decode import (
    StructuralDecodeError,
)
from omnibase_kvstructure.errors.infra_errors import (
    InfraAuthenticationError,
    InfraConnectionError,
    InfraTimeoutError,
    InfraUnavailableError,
    ProtocolConfigurationError,
    RuntimeHostError,
)
from omnibase_kvstructure.errors.model_infra_error_context import (
    ModelInfraErrorContext,
)

__all__: list[str] = [
    "ModelInfraErrorContext",
    "RuntimeHostError",
    "ProtocolConfigurationError",
    "InfraConnectionError",
    "InfraConsulError",
    "InfraTimeoutError",
    "InfraAuthenticationError",
    "InfraUnavailableError",
    "StructuralDecodeError",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure-Specific Error Classes.

Error Hierarchy:
    RuntimeHostError (base error, carries error_code/correlation_id/context)
    ├── ProtocolConfigurationError
    ├── InfraConnectionError
    │   └── InfraConsulError (error_consul.py)
    ├── InfraTimeoutError
    ├── InfraAuthenticationError
    ├── InfraUnavailableError
    └── StructuralDecodeError (error_structural_decode.py)

All errors:
    - Use EnumCoreErrorCode for error classification
    - Support proper error chaining with `raise ... from e`
    - Accept ModelInfraErrorContext for bundled context parameters
    - Accept arbitrary keyword extras, stored in ``context``
"""

from typing import Optional
from uuid import UUID

from omnibase_kvstructure.enums import EnumCoreErrorCode
from omnibase_kvstructure.errors.model_infra_error_context import (
    ModelInfraErrorContext,
)


class RuntimeHostError(Exception):
    """Base error class for kvstructure infrastructure errors.

    Structured Fields:
        error_code: EnumCoreErrorCode classification
        correlation_id: Correlation ID taken from the context model
        context: Flat dict of transport_type/operation/target_name plus extras

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.RUNTIME,
        ...     operation="decode",
        ...     target_name="app/config/",
        ... )
        >>> raise RuntimeHostError("Operation failed", context=context, index=42)
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[EnumCoreErrorCode] = None,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        """Initialize RuntimeHostError with structured fields.

        Args:
            message: Human-readable error message
            error_code: Error code (defaults to OPERATION_FAILED)
            context: Bundled infrastructure context (transport_type, operation, etc.)
            **extra_context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or EnumCoreErrorCode.OPERATION_FAILED

        structured_context: dict[str, object] = dict(extra_context)
        correlation_id: Optional[UUID] = None
        if context is not None:
            if context.transport_type is not None:
                structured_context["transport_type"] = context.transport_type
            if context.operation is not None:
                structured_context["operation"] = context.operation
            if context.target_name is not None:
                structured_context["target_name"] = context.target_name
            correlation_id = context.correlation_id

        self.correlation_id = correlation_id
        self.context = structured_context

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, "
            f"error_code={self.error_code.value!r})"
        )


class ProtocolConfigurationError(RuntimeHostError):
    """Raised when decoder or store configuration is invalid.

    Used for an empty watch prefix, invalid raw configuration mappings,
    and unusable destination types.

    Example:
        >>> raise ProtocolConfigurationError(
        ...     "Watch prefix must not be empty",
        ...     context=ModelInfraErrorContext(operation="start"),
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumCoreErrorCode.INVALID_CONFIGURATION,
            context=context,
            **extra_context,
        )


class InfraConnectionError(RuntimeHostError):
    """Raised when the KV store cannot be reached or answers with an error.

    Example:
        >>> raise InfraConnectionError(
        ...     "Failed to reach Consul agent",
        ...     context=context,
        ...     host="consul.example.com",
        ...     port=8500,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumCoreErrorCode.CONNECTION_ERROR,
            context=context,
            **extra_context,
        )


class InfraTimeoutError(RuntimeHostError):
    """Raised when a store call exceeds its deadline.

    A long-poll that returns after its ``wait`` elapses is NOT a timeout;
    this error covers transport-level timeouts only.
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumCoreErrorCode.TIMEOUT_ERROR,
            context=context,
            **extra_context,
        )


class InfraAuthenticationError(RuntimeHostError):
    """Raised when the store rejects the ACL token.

    The token value is never included in the message or context.
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumCoreErrorCode.AUTHENTICATION_ERROR,
            context=context,
            **extra_context,
        )


class InfraUnavailableError(RuntimeHostError):
    """Raised when the store is short-circuited by an open circuit breaker.

    Example:
        >>> raise InfraUnavailableError(
        ...     "Circuit breaker is open - consul.dc1 temporarily unavailable",
        ...     context=context,
        ...     circuit_state="open",
        ...     retry_after_seconds=12,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumCoreErrorCode.SERVICE_UNAVAILABLE,
            context=context,
            **extra_context,
        )


__all__ = [
    "RuntimeHostError",
    "ProtocolConfigurationError",
    "InfraConnectionError",
    "InfraTimeoutError",
    "InfraAuthenticationError",
    "InfraUnavailableError",
]

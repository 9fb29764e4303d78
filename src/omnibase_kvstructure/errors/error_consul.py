# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Consul-Specific Infrastructure Error Class."""

from omnibase_kvstructure.errors.infra_errors import InfraConnectionError
from omnibase_kvstructure.errors.model_infra_error_context import (
    ModelInfraErrorContext,
)


class InfraConsulError(InfraConnectionError):
    """Error communicating with Consul during a blocking KV query.

    The context should use ``transport_type=EnumInfraTransportType.CONSUL``.

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.CONSUL,
        ...     operation="kv_list",
        ...     target_name="consul.dc1",
        ... )
        >>> raise InfraConsulError(
        ...     "Consul blocking query failed",
        ...     context=context,
        ...     consul_key="app/config/",
        ...     index=1042,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: ModelInfraErrorContext | None = None,
        consul_key: str | None = None,
        **extra_context: object,
    ) -> None:
        """Initialize InfraConsulError with Consul-specific context.

        Args:
            message: Human-readable error message
            context: Bundled infrastructure context (should use CONSUL transport_type)
            consul_key: Optional key or prefix the query targeted
            **extra_context: Additional context information (e.g., index, host)
        """
        if consul_key is not None:
            extra_context["consul_key"] = consul_key

        super().__init__(
            message=message,
            context=context,
            **extra_context,
        )


__all__: list[str] = [
    "InfraConsulError",
]

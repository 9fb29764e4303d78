# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Error Context Configuration Model.

Bundles the structured fields every kvstructure error carries so error
constructors keep a short parameter list.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from omnibase_kvstructure.enums import EnumInfraTransportType


class ModelInfraErrorContext(BaseModel):
    """Structured context for infrastructure errors.

    Attributes:
        transport_type: Layer that produced the error (CONSUL, MEMORY, RUNTIME)
        operation: Operation being performed (kv_list, decode, start, ...)
        target_name: Target resource name (store name, watched prefix)
        correlation_id: Correlation ID of the watch cycle that failed

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.CONSUL,
        ...     operation="kv_list",
        ...     target_name="consul.dc1",
        ... )
        >>> raise InfraConsulError("Blocking query failed", context=context)
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    transport_type: Optional[EnumInfraTransportType] = Field(
        default=None,
        description="Layer that produced the error",
    )
    operation: Optional[str] = Field(
        default=None,
        description="Operation being performed",
    )
    target_name: Optional[str] = Field(
        default=None,
        description="Target resource or prefix name",
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Correlation ID of the failing watch cycle",
    )


__all__ = ["ModelInfraErrorContext"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error code enumeration shared by all kvstructure errors."""

from enum import Enum


class EnumCoreErrorCode(str, Enum):
    """Classification codes carried by every ``RuntimeHostError``.

    Attributes:
        OPERATION_FAILED: Generic failure with no more specific code
        INVALID_CONFIGURATION: Configuration rejected before any store call
        CONNECTION_ERROR: Store unreachable or returned a transport error
        TIMEOUT_ERROR: Store call exceeded its deadline
        AUTHENTICATION_ERROR: ACL token rejected by the store
        SERVICE_UNAVAILABLE: Circuit breaker open, calls are short-circuited
        STRUCTURAL_MISMATCH: Store data does not fit the destination record
    """

    OPERATION_FAILED = "operation_failed"
    INVALID_CONFIGURATION = "invalid_configuration"
    CONNECTION_ERROR = "connection_error"
    TIMEOUT_ERROR = "timeout_error"
    AUTHENTICATION_ERROR = "authentication_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    STRUCTURAL_MISMATCH = "structural_mismatch"


__all__ = ["EnumCoreErrorCode"]

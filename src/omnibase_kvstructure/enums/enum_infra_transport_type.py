# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Transport Type Enumeration.

Identifies which layer produced an error, used in error context and
structured log fields.
"""

from enum import Enum


class EnumInfraTransportType(str, Enum):
    """Transport types used by kvstructure components.

    Attributes:
        CONSUL: Consul KV blocking queries
        MEMORY: In-process key/value store
        RUNTIME: Decoder pipeline internals (validation, decoding)
    """

    CONSUL = "consul"
    MEMORY = "memory"
    RUNTIME = "runtime"


__all__ = ["EnumInfraTransportType"]

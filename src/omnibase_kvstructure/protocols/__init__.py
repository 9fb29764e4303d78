# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""kvstructure protocol definitions."""

from omnibase_kvstructure.protocols.protocol_kv_store import ProtocolKVStore

__all__: list[str] = ["ProtocolKVStore"]

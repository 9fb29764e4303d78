# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""KV store implementations of ProtocolKVStore."""

from omnibase_kvstructure.stores.store_consul_kv import ConsulKVStore
from omnibase_kvstructure.stores.store_inmemory_kv import InMemoryKVStore

__all__: list[str] = ["ConsulKVStore", "InMemoryKVStore"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""ONEX KV Structure - live-decoded configuration records from Consul KV.

Watches a Consul KV prefix with blocking queries and decodes the subtree
into dataclasses or pydantic models whenever it changes.

Key Components:
    - StructureDecoder: Watch-decode-deliver pipeline with queue handoff
    - KVWatcher: Long-poll loop with change index tracking and backoff
    - TreeDecoder: Flat ``/``-delimited keys onto nested record types
    - ConsulKVStore / InMemoryKVStore: ProtocolKVStore implementations
"""

from omnibase_kvstructure.decoding import TreeDecoder, describe_fields
from omnibase_kvstructure.enums import EnumDecoderState
from omnibase_kvstructure.errors import (
    InfraConsulError,
    ProtocolConfigurationError,
    RuntimeHostError,
    StructuralDecodeError,
)
from omnibase_kvstructure.models import (
    ModelConsulStoreConfig,
    ModelKVEntry,
    ModelKVSnapshot,
    ModelStructureDecoderConfig,
    ModelWatchBackoffConfig,
)
from omnibase_kvstructure.protocols import ProtocolKVStore
from omnibase_kvstructure.runtime import StructureDecoder
from omnibase_kvstructure.stores import ConsulKVStore, InMemoryKVStore
from omnibase_kvstructure.watch import KVWatcher

__all__: list[str] = [
    "ConsulKVStore",
    "EnumDecoderState",
    "InMemoryKVStore",
    "InfraConsulError",
    "KVWatcher",
    "ModelConsulStoreConfig",
    "ModelKVEntry",
    "ModelKVSnapshot",
    "ModelStructureDecoderConfig",
    "ModelWatchBackoffConfig",
    "ProtocolConfigurationError",
    "ProtocolKVStore",
    "RuntimeHostError",
    "StructuralDecodeError",
    "StructureDecoder",
    "TreeDecoder",
    "describe_fields",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""kvstructure data and configuration models."""

from omnibase_kvstructure.models.model_consul_store_config import (
    ModelConsulStoreConfig,
)
from omnibase_kvstructure.models.model_kv_entry import ModelKVEntry
from omnibase_kvstructure.models.model_kv_snapshot import ModelKVSnapshot
from omnibase_kvstructure.models.model_structure_decoder_config import (
    DEFAULT_TAG_NAME,
    ModelStructureDecoderConfig,
)
from omnibase_kvstructure.models.model_watch_backoff_config import (
    ModelWatchBackoffConfig,
)

__all__: list[str] = [
    "DEFAULT_TAG_NAME",
    "ModelConsulStoreConfig",
    "ModelKVEntry",
    "ModelKVSnapshot",
    "ModelStructureDecoderConfig",
    "ModelWatchBackoffConfig",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""StructureDecoder pipeline."""

from omnibase_kvstructure.runtime.structure_decoder import (
    WORKER_STOP_TIMEOUT_SECONDS,
    StructureDecoder,
)

__all__: list[str] = ["StructureDecoder", "WORKER_STOP_TIMEOUT_SECONDS"]

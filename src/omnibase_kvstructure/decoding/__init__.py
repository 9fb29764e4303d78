# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Reflective decoding of KV snapshots into record types."""

from omnibase_kvstructure.decoding.field_descriptor import (
    FieldDescriptor,
    describe_fields,
    is_record_type,
)
from omnibase_kvstructure.decoding.scalar_parsers import parse_bool, parse_scalar
from omnibase_kvstructure.decoding.tree_decoder import RelativeKeyMap, TreeDecoder

__all__: list[str] = [
    "FieldDescriptor",
    "RelativeKeyMap",
    "TreeDecoder",
    "describe_fields",
    "is_record_type",
    "parse_bool",
    "parse_scalar",
]

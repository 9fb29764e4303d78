# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Field kinds understood by the tree decoder."""

from enum import Enum


class EnumFieldKind(str, Enum):
    """How a destination field is populated from the KV tree.

    Attributes:
        STRING: UTF-8 text, passed through
        INTEGER: Base-10 integer text
        FLOAT: Decimal or exponent float text
        BOOLEAN: 1/t/true or 0/f/false in the usual casings
        BYTES: Raw value, no decoding
        RECORD: Nested dataclass or pydantic model, decoded from a sub-path
        UNSUPPORTED: Anything else; decoding reports a structural error
    """

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    BYTES = "bytes"
    RECORD = "record"
    UNSUPPORTED = "unsupported"

    @property
    def is_scalar(self) -> bool:
        """Return True for kinds parsed from a single leaf value."""
        return self not in (EnumFieldKind.RECORD, EnumFieldKind.UNSUPPORTED)


__all__ = ["EnumFieldKind"]

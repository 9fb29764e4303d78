# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Text parsing for scalar field kinds.

Values are weakly typed: an empty value decodes to the zero value of
numeric and boolean kinds instead of failing.
"""

from __future__ import annotations

from omnibase_kvstructure.enums import EnumFieldKind

TRUE_LITERALS: frozenset[str] = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_LITERALS: frozenset[str] = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(text: str) -> bool:
    if text in TRUE_LITERALS:
        return True
    if text in FALSE_LITERALS:
        return False
    raise ValueError(f"invalid boolean literal {text!r}")


def parse_scalar(kind: EnumFieldKind, raw: bytes) -> object:
    """Parse ``raw`` as ``kind``.

    Raises:
        ValueError: If the value cannot be parsed (UnicodeDecodeError included).
    """
    if not kind.is_scalar:
        raise ValueError(f"{kind.value} is not a scalar kind")
    if kind is EnumFieldKind.BYTES:
        return raw

    text = raw.decode("utf-8")
    if kind is EnumFieldKind.STRING:
        return text

    if text == "":
        if kind is EnumFieldKind.INTEGER:
            return 0
        if kind is EnumFieldKind.FLOAT:
            return 0.0
        if kind is EnumFieldKind.BOOLEAN:
            return False

    if kind is EnumFieldKind.INTEGER:
        return int(text, 10)
    if kind is EnumFieldKind.FLOAT:
        return float(text)
    return parse_bool(text)


__all__: list[str] = [
    "FALSE_LITERALS",
    "TRUE_LITERALS",
    "parse_bool",
    "parse_scalar",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Structural decode error raised when KV data does not fit a record type."""

from omnibase_kvstructure.enums import EnumCoreErrorCode
from omnibase_kvstructure.errors.infra_errors import RuntimeHostError
from omnibase_kvstructure.errors.model_infra_error_context import (
    ModelInfraErrorContext,
)

# Raw values are echoed back to help diagnose bad data, but only a prefix.
MAX_RAW_VALUE_LENGTH: int = 64


def _preview(raw_value: bytes) -> str:
    text = raw_value.decode("utf-8", errors="replace")
    if len(text) > MAX_RAW_VALUE_LENGTH:
        return text[:MAX_RAW_VALUE_LENGTH] + "..."
    return text


class StructuralDecodeError(RuntimeHostError):
    """Destination record and store data disagree.

    Raised for unparsable scalar values and unsupported field kinds. Never
    fatal to a running decoder: the next detected change is decoded afresh.

    Attributes:
        field_path: Dotted attribute path of the failing field (``child.data``)
        key: Relative store key the field resolved to, if any
        raw_value: Truncated text of the offending value, if any

    Example:
        >>> raise StructuralDecodeError(
        ...     "cannot parse 'abc' as integer",
        ...     field_path="port",
        ...     key="port",
        ...     raw_value=b"abc",
        ... )
    """

    def __init__(
        self,
        message: str,
        field_path: str,
        key: str | None = None,
        raw_value: bytes | None = None,
        context: ModelInfraErrorContext | None = None,
        **extra_context: object,
    ) -> None:
        self.field_path = field_path
        self.key = key
        self.raw_value = _preview(raw_value) if raw_value is not None else None

        extra_context["field_path"] = field_path
        if key is not None:
            extra_context["key"] = key
        if self.raw_value is not None:
            extra_context["raw_value"] = self.raw_value
            message = f"{message} (raw value {self.raw_value!r})"

        super().__init__(
            message=message,
            error_code=EnumCoreErrorCode.STRUCTURAL_MISMATCH,
            context=context,
            **extra_context,
        )


__all__: list[str] = [
    "MAX_RAW_VALUE_LENGTH",
    "StructuralDecodeError",
]

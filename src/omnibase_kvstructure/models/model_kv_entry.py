# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Single key/value entry returned by a KV store listing."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelKVEntry(BaseModel):
    """One leaf or directory marker under a watched prefix.

    Attributes:
        key: Full hierarchical key path (``app/config/db/port``)
        value: Raw value; None for directory markers and empty keys
        is_dir: True for directory markers (keys ending in ``/``)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(description="Full hierarchical key path")
    value: bytes | None = Field(
        default=None,
        description="Raw value, only meaningful for leaves",
    )
    is_dir: bool = Field(
        default=False,
        description="True for directory markers",
    )

    @classmethod
    def from_consul(cls, item: dict[str, object]) -> ModelKVEntry:
        """Build an entry from one python-consul ``kv.get(recurse=True)`` item."""
        key = item.get("Key")
        if not isinstance(key, str):
            key = ""
        value = item.get("Value")
        if isinstance(value, str):
            value = value.encode("utf-8")
        elif not isinstance(value, bytes):
            value = None
        return cls(key=key, value=value, is_dir=key.endswith("/") and value is None)


__all__: list[str] = ["ModelKVEntry"]

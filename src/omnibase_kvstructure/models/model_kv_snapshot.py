# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Point-in-time listing of a watched prefix."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from omnibase_kvstructure.models.model_kv_entry import ModelKVEntry


class ModelKVSnapshot(BaseModel):
    """Entries under ``prefix`` as of change index ``index``.

    Snapshots are immutable; the tree decoder reads them without side
    effects, so one snapshot can be decoded into several record types.

    Attributes:
        prefix: Watched prefix the listing was issued for
        index: Store change index the entries were read at
        entries: Entries ordered lexicographically by key
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    prefix: str = Field(description="Watched prefix")
    index: int = Field(ge=0, description="Store change index")
    entries: tuple[ModelKVEntry, ...] = Field(
        default=(),
        description="Entries ordered by key",
    )

    @field_validator("entries")
    @classmethod
    def _sort_entries(
        cls, entries: tuple[ModelKVEntry, ...]
    ) -> tuple[ModelKVEntry, ...]:
        return tuple(sorted(entries, key=lambda entry: entry.key))

    def get(self, key: str) -> bytes | None:
        """Return the raw value stored at the full ``key``, if any."""
        for entry in self.entries:
            if entry.key == key and not entry.is_dir:
                return entry.value
        return None

    def __len__(self) -> int:
        return len(self.entries)


__all__: list[str] = ["ModelKVSnapshot"]

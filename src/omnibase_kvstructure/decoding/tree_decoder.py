# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Decode a flat KV snapshot into a nested record instance.

Algorithm:
    1. Reject an empty prefix (ProtocolConfigurationError).
    2. Strip the prefix and one leading ``/`` from every leaf key, giving a
       relative-key map; directory markers are skipped.
    3. Walk the destination fields depth-first:
       - scalar: parse the relative-key match (exact first, then ignoring
         case for untagged fields), else keep the default
       - nested record: recurse into ``parent/key``; no keys under that path
         keeps the default (or zero record)
       - unsupported kind: StructuralDecodeError
    4. Construct a fresh instance; the first error wins.

The snapshot is only read, so the same snapshot can be decoded into several
record types.
"""

from __future__ import annotations

import logging
from typing import TypeVar

from pydantic import ValidationError

from omnibase_kvstructure.decoding.field_descriptor import (
    FieldDescriptor,
    describe_fields,
)
from omnibase_kvstructure.decoding.scalar_parsers import parse_scalar
from omnibase_kvstructure.enums import EnumFieldKind, EnumInfraTransportType
from omnibase_kvstructure.errors import (
    ModelInfraErrorContext,
    ProtocolConfigurationError,
    StructuralDecodeError,
)
from omnibase_kvstructure.models import DEFAULT_TAG_NAME, ModelKVSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_SEPARATOR: str = "/"

# Nesting depth beyond which a record type is treated as self-referential.
MAX_RECORD_DEPTH: int = 32


class RelativeKeyMap:
    """Leaf values keyed by path relative to the snapshot prefix.

    Besides exact lookups the map can resolve a child segment ignoring case,
    so an untagged field ``Addr`` finds the key ``addr``. When several keys
    fold to the same segment the lexicographically smallest one is used.
    """

    def __init__(self, snapshot: ModelKVSnapshot) -> None:
        self._values: dict[str, bytes] = {}
        self._subtrees: set[str] = set()
        # (parent path, casefolded segment) -> actual segment
        self._folded: dict[tuple[str, str], str] = {}

        prefix = snapshot.prefix
        for entry in sorted(snapshot.entries, key=lambda e: e.key):
            if entry.is_dir or not entry.key.startswith(prefix):
                continue
            relative = entry.key[len(prefix) :]
            if relative.startswith(KEY_SEPARATOR):
                relative = relative[len(KEY_SEPARATOR) :]
            if not relative:
                continue
            self._values[relative] = entry.value if entry.value is not None else b""

            parts = relative.split(KEY_SEPARATOR)
            for depth in range(len(parts)):
                parent = KEY_SEPARATOR.join(parts[:depth])
                segment = parts[depth]
                self._folded.setdefault((parent, segment.casefold()), segment)
                if depth:
                    self._subtrees.add(parent)

    def get(self, key: str) -> bytes | None:
        return self._values.get(key)

    def has_subtree(self, key: str) -> bool:
        return key in self._subtrees

    def resolve(self, parent: str, segment: str, exact: bool = False) -> str:
        """Return the relative path for ``segment`` under ``parent``.

        An exact match (leaf or subtree) always wins. Unless ``exact`` is set
        a segment differing only in case is used next; otherwise the exact
        path is returned even though nothing is stored there.
        """
        key = _join(parent, segment, KEY_SEPARATOR)
        if exact or key in self._values or key in self._subtrees:
            return key
        actual = self._folded.get((parent, segment.casefold()))
        if actual is None:
            return key
        return _join(parent, actual, KEY_SEPARATOR)

    def __len__(self) -> int:
        return len(self._values)


def _join(parent: str, segment: str, separator: str) -> str:
    return f"{parent}{separator}{segment}" if parent else segment


class TreeDecoder:
    """Populate dataclasses / pydantic models from ModelKVSnapshot.

    Example:
        >>> @dataclass
        ... class ChildConfig:
        ...     Data: str = ""
        >>> @dataclass
        ... class Config:
        ...     Addr: str = ""
        ...     Child: ChildConfig = field(default_factory=ChildConfig)
        >>> snapshot = ModelKVSnapshot(
        ...     prefix="test/",
        ...     index=7,
        ...     entries=(
        ...         ModelKVEntry(key="test/addr", value=b"foo"),
        ...         ModelKVEntry(key="test/child/data", value=b"bar"),
        ...     ),
        ... )
        >>> TreeDecoder().decode(snapshot, Config)
        Config(Addr='foo', Child=ChildConfig(Data='bar'))
    """

    def __init__(self, tag_name: str = DEFAULT_TAG_NAME) -> None:
        self._tag_name = tag_name

    @property
    def tag_name(self) -> str:
        return self._tag_name

    def fields(self, target: type) -> tuple[FieldDescriptor, ...]:
        """Return the field descriptors used to decode ``target``."""
        return describe_fields(target, self._tag_name)

    def decode(self, snapshot: ModelKVSnapshot, target: type[T]) -> T:
        """Build a new ``target`` instance from ``snapshot``.

        Args:
            snapshot: Listing of the watched prefix.
            target: Dataclass type or pydantic model class.

        Returns:
            Freshly constructed instance; never shared with other calls.

        Raises:
            ProtocolConfigurationError: Empty prefix or non-record target.
            StructuralDecodeError: Unparsable value, unsupported field kind,
                or record construction rejected the decoded values.
        """
        if not snapshot.prefix:
            raise ProtocolConfigurationError(
                "Cannot decode with an empty prefix",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.RUNTIME,
                    operation="decode",
                ),
            )

        values = RelativeKeyMap(snapshot)
        result = self._decode_record(target, values, key_path="", attr_path="", depth=0)
        logger.debug(
            "Decoded snapshot into %s",
            target.__name__,
            extra={
                "prefix": snapshot.prefix,
                "index": snapshot.index,
                "key_count": len(values),
            },
        )
        return result  # type: ignore[return-value]

    def _decode_record(
        self,
        record_type: type,
        values: RelativeKeyMap | None,
        key_path: str,
        attr_path: str,
        depth: int,
    ) -> object:
        if depth > MAX_RECORD_DEPTH:
            raise StructuralDecodeError(
                f"record nesting deeper than {MAX_RECORD_DEPTH} levels "
                f"at '{attr_path}'; is {record_type.__name__} self-referential?",
                field_path=attr_path,
            )

        kwargs: dict[str, object] = {}
        for descriptor in describe_fields(record_type, self._tag_name):
            key = (
                values.resolve(key_path, descriptor.key, exact=descriptor.tagged)
                if values is not None
                else _join(key_path, descriptor.key, KEY_SEPARATOR)
            )
            field_path = _join(attr_path, descriptor.name, ".")

            if descriptor.kind is EnumFieldKind.UNSUPPORTED:
                raise StructuralDecodeError(
                    f"field '{field_path}' has unsupported type "
                    f"{descriptor.type_name}",
                    field_path=field_path,
                    key=key,
                )

            if descriptor.kind is EnumFieldKind.RECORD:
                if values is not None and values.has_subtree(key):
                    kwargs[descriptor.name] = self._decode_record(
                        descriptor.annotation,  # type: ignore[arg-type]
                        values,
                        key,
                        field_path,
                        depth + 1,
                    )
                elif not descriptor.has_default:
                    kwargs[descriptor.name] = (
                        None
                        if descriptor.optional
                        else self._decode_record(
                            descriptor.annotation,  # type: ignore[arg-type]
                            None,
                            key,
                            field_path,
                            depth + 1,
                        )
                    )
                continue

            raw = values.get(key) if values is not None else None
            if raw is not None:
                kwargs[descriptor.name] = self._parse(descriptor, raw, field_path, key)
            elif not descriptor.has_default:
                kwargs[descriptor.name] = descriptor.zero_value()

        return self._construct(record_type, kwargs, attr_path)

    @staticmethod
    def _parse(
        descriptor: FieldDescriptor, raw: bytes, field_path: str, key: str
    ) -> object:
        try:
            return parse_scalar(descriptor.kind, raw)
        except ValueError as e:
            raise StructuralDecodeError(
                f"cannot parse value of field '{field_path}' as "
                f"{descriptor.kind.value}",
                field_path=field_path,
                key=key,
                raw_value=raw,
            ) from e

    @staticmethod
    def _construct(
        record_type: type, kwargs: dict[str, object], attr_path: str
    ) -> object:
        try:
            return record_type(**kwargs)
        except ValidationError as e:
            failing = [
                ".".join(str(part) for part in err.get("loc", ()))
                for err in e.errors()
            ]
            raise StructuralDecodeError(
                f"{record_type.__name__} rejected decoded values for fields: "
                f"{failing}",
                field_path=attr_path or record_type.__name__,
            ) from e
        except (TypeError, ValueError) as e:
            raise StructuralDecodeError(
                f"cannot construct {record_type.__name__}: {type(e).__name__}",
                field_path=attr_path or record_type.__name__,
            ) from e


__all__: list[str] = [
    "KEY_SEPARATOR",
    "RelativeKeyMap",
    "TreeDecoder",
]

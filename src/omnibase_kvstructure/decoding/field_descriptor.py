# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Reflection over destination record types.

``describe_fields(target, tag_name)`` turns a dataclass or pydantic model
into an ordered tuple of FieldDescriptor, so TreeDecoder never branches on
the record flavour.

Key Resolution:
    1. Per-field tag under ``tag_name``:
       - dataclasses: ``field(metadata={"consul": "other"})``
       - pydantic: ``Field(json_schema_extra={"consul": "other"})``
       Only the part before the first comma is used (``"other,omitempty"``).
       The tag ``"-"`` excludes the field from decoding.
    2. Otherwise the declared attribute name. An exact match wins; failing
       that, a key segment equal to the name ignoring case is used (so
       ``Addr`` reads ``addr``). Tag overrides always match exactly.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Union, get_args, get_origin

from pydantic import BaseModel
from pydantic_core import PydanticUndefined

from omnibase_kvstructure.enums import EnumFieldKind, EnumInfraTransportType
from omnibase_kvstructure.errors import (
    ModelInfraErrorContext,
    ProtocolConfigurationError,
)

SKIP_TAG: str = "-"

_SCALAR_KINDS: dict[type, EnumFieldKind] = {
    str: EnumFieldKind.STRING,
    int: EnumFieldKind.INTEGER,
    float: EnumFieldKind.FLOAT,
    bool: EnumFieldKind.BOOLEAN,
    bytes: EnumFieldKind.BYTES,
}

# Fallback for string annotations that get_type_hints cannot resolve, e.g.
# dataclasses declared inside a function under postponed evaluation.
_BUILTIN_NAMES: dict[str, type] = {tp.__name__: tp for tp in _SCALAR_KINDS}

_ZERO_VALUES: dict[EnumFieldKind, object] = {
    EnumFieldKind.STRING: "",
    EnumFieldKind.INTEGER: 0,
    EnumFieldKind.FLOAT: 0.0,
    EnumFieldKind.BOOLEAN: False,
    EnumFieldKind.BYTES: b"",
}


@dataclass(frozen=True)
class FieldDescriptor:
    """How one destination field maps onto the KV tree.

    Attributes:
        name: Attribute name on the record
        key: Key segment relative to the parent path
        kind: Field kind driving parsing or recursion
        annotation: Resolved type with Optional unwrapped
        optional: True when the declared type admits None
        has_default: True when the record supplies its own default
        tagged: True when the key comes from a tag override
    """

    name: str
    key: str
    kind: EnumFieldKind
    annotation: object
    optional: bool = False
    has_default: bool = False
    tagged: bool = False

    @property
    def type_name(self) -> str:
        return getattr(self.annotation, "__name__", repr(self.annotation))

    def zero_value(self) -> object:
        """Zero value for scalar kinds; None for optional fields."""
        if self.optional:
            return None
        return _ZERO_VALUES.get(self.kind)


def is_record_type(tp: object) -> bool:
    """Return True for dataclass types and pydantic model classes."""
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def _unwrap_optional(tp: object) -> tuple[object, bool]:
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0], True
    return tp, False


def _classify(tp: object) -> EnumFieldKind:
    if isinstance(tp, type):
        kind = _SCALAR_KINDS.get(tp)
        if kind is not None:
            return kind
        if is_record_type(tp):
            return EnumFieldKind.RECORD
    return EnumFieldKind.UNSUPPORTED


def _resolve_key(name: str, tag: object) -> str | None:
    if not isinstance(tag, str) or not tag:
        return name
    segment = tag.split(",", 1)[0].strip()
    if segment == SKIP_TAG:
        return None
    return segment or name


def _build(
    name: str,
    annotation: object,
    tag: object,
    has_default: bool,
) -> FieldDescriptor | None:
    key = _resolve_key(name, tag)
    if key is None:
        return None
    if isinstance(annotation, str):
        annotation = _BUILTIN_NAMES.get(annotation, annotation)
    inner, optional = _unwrap_optional(annotation)
    return FieldDescriptor(
        name=name,
        key=key,
        kind=_classify(inner),
        annotation=inner,
        optional=optional,
        has_default=has_default,
        tagged=isinstance(tag, str) and bool(tag.split(",", 1)[0].strip()),
    )


def _dataclass_fields(
    target: type, tag_name: str
) -> tuple[FieldDescriptor, ...]:
    try:
        hints = typing.get_type_hints(target)
    except (NameError, TypeError):
        hints = {}

    descriptors: list[FieldDescriptor] = []
    for f in dataclasses.fields(target):
        if not f.init:
            continue
        has_default = (
            f.default is not dataclasses.MISSING
            or f.default_factory is not dataclasses.MISSING
        )
        descriptor = _build(
            f.name,
            hints.get(f.name, f.type),
            f.metadata.get(tag_name),
            has_default,
        )
        if descriptor is not None:
            descriptors.append(descriptor)
    return tuple(descriptors)


def _pydantic_fields(
    target: type[BaseModel], tag_name: str
) -> tuple[FieldDescriptor, ...]:
    descriptors: list[FieldDescriptor] = []
    for name, info in target.model_fields.items():
        extra = info.json_schema_extra
        tag = extra.get(tag_name) if isinstance(extra, dict) else None
        has_default = (
            info.default is not PydanticUndefined or info.default_factory is not None
        )
        descriptor = _build(name, info.annotation, tag, has_default)
        if descriptor is not None:
            descriptors.append(descriptor)
    return tuple(descriptors)


@lru_cache(maxsize=256)
def describe_fields(target: type, tag_name: str) -> tuple[FieldDescriptor, ...]:
    """Return the decodable fields of ``target`` in declaration order.

    Args:
        target: Dataclass type or pydantic model class.
        tag_name: Metadata key holding per-field key overrides.

    Returns:
        Field descriptors; fields tagged ``"-"`` and dataclass fields with
        ``init=False`` are left out.

    Raises:
        ProtocolConfigurationError: If ``target`` is not a record type.
    """
    if not is_record_type(target):
        raise ProtocolConfigurationError(
            f"Decode target must be a dataclass or pydantic model, got {target!r}",
            context=ModelInfraErrorContext(
                transport_type=EnumInfraTransportType.RUNTIME,
                operation="describe_fields",
            ),
        )
    if issubclass(target, BaseModel):
        return _pydantic_fields(target, tag_name)
    return _dataclass_fields(target, tag_name)


__all__: list[str] = [
    "SKIP_TAG",
    "FieldDescriptor",
    "describe_fields",
    "is_record_type",
]

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Dataclass field discovery for struct-like argument types.

A dataclass field may carry serialization hints in ``field(metadata=...)``:

* ``"json"``: the key used on the wire, ``"-"`` drops the field.
* ``"metadata"``: ``"name"`` or ``"name,optional"``, the property name used in
  schemas. It wins over ``"json"`` there.
* ``"embed": True``: the field's own dataclass members are flattened into the
  enclosing struct instead of nesting under the field name.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, FrozenSet, List, Mapping, Optional, Tuple

from .types import optional_inner, resolve_hints
from .utils.exceptions import TypeValidationError

SKIP_TAG = "-"
OPTIONAL_FLAG = "optional"


@dataclass(frozen=True)
class StructField:
    """
    One serializable member of a (possibly flattened) dataclass.
    """

    name: str
    path: Tuple[str, ...]
    annotation: Any
    json_name: Optional[str]
    schema_name: Optional[str]
    optional: bool = False
    private: bool = False
    tagged: bool = False


def struct_type_of(tp: Any) -> Optional[type]:
    """
    The dataclass behind ``tp`` or ``Optional[tp]``.
    """
    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return tp
    inner = optional_inner(tp)
    if isinstance(inner, type) and dataclasses.is_dataclass(inner):
        return inner
    return None


def schema_key(cls: type) -> str:
    """
    Component table key, qualified by module so equal class names never clash.
    """
    return "{0}.{1}".format(cls.__module__, cls.__qualname__)


def _split_tag(tag: str) -> Tuple[str, List[str]]:
    parts = tag.split(",")
    return parts[0].strip(), [part.strip() for part in parts[1:]]


def describe_field(field: dataclasses.Field, annotation: Any) -> StructField:
    meta: Mapping[str, Any] = field.metadata or {}
    json_tag = meta.get("json")
    metadata_tag = meta.get("metadata")
    private = field.name.startswith("_")

    json_name: Optional[str] = field.name
    if json_tag is not None:
        tag_name, _ = _split_tag(str(json_tag))
        json_name = None if tag_name == SKIP_TAG else (tag_name or field.name)

    optional = False
    if metadata_tag is not None:
        tag_name, flags = _split_tag(str(metadata_tag))
        optional = OPTIONAL_FLAG in flags
        schema_name: Optional[str] = None if tag_name == SKIP_TAG else (tag_name or json_name or field.name)
    else:
        schema_name = json_name

    return StructField(
        name=field.name,
        path=(field.name,),
        annotation=annotation,
        json_name=json_name,
        schema_name=schema_name,
        optional=optional,
        private=private,
        tagged=json_tag is not None or metadata_tag is not None,
    )


def flatten_fields(cls: type, _seen: FrozenSet[type] = frozenset()) -> List[StructField]:
    """
    Fields of ``cls`` with embedded dataclasses merged into the parent set.

    A field declared directly on ``cls`` shadows an embedded field that uses
    the same wire name.
    """
    if cls in _seen:
        raise TypeValidationError("Struct {0} embeds itself".format(cls.__name__))
    hints = resolve_hints(cls)
    collected: List[Tuple[bool, StructField]] = []

    for field in dataclasses.fields(cls):
        annotation = hints.get(field.name, field.type)
        if (field.metadata or {}).get("embed"):
            inner = struct_type_of(annotation)
            if inner is None:
                raise TypeValidationError(
                    "Embedded field {0} of {1} must be a dataclass".format(field.name, cls.__name__)
                )
            for child in flatten_fields(inner, _seen | {cls}):
                collected.append((True, dataclasses.replace(child, path=(field.name,) + child.path)))
            continue
        collected.append((False, describe_field(field, annotation)))

    own_keys = {item.json_name or item.name for embedded, item in collected if not embedded}
    return [
        item
        for embedded, item in collected
        if not embedded or (item.json_name or item.name) not in own_keys
    ]

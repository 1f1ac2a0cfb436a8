#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Typed JSON codec.

``from_json_value`` turns the output of ``json.loads`` into an instance of an
annotated type (dataclasses, fixed arrays, lists, dicts, timestamps and
basic kinds). ``to_json_value`` goes the other way, producing plain
JSON-compatible Python values.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import base64
import binascii
import dataclasses
import json
import math
import typing
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from ..structs import describe_field, struct_type_of
from ..types import (
    BASIC_TYPES,
    BasicKind,
    IntegerType,
    array_parts,
    basic_kind_of,
    format_rfc3339_nano,
    is_bytes_type,
    is_time_type,
    map_parts,
    optional_inner,
    parse_rfc3339,
    resolve_hints,
    round_float32,
    slice_element,
)
from ..utils.text import type_name

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def zero_value(tp: Any) -> Any:
    """
    The value a field of type ``tp`` takes when the wire omits it.
    """
    kind = basic_kind_of(tp)
    if kind is not None:
        return BASIC_TYPES[kind].zero
    if is_time_type(tp):
        return ZERO_TIME
    if is_bytes_type(tp):
        return b""
    elements = array_parts(tp)
    if elements is not None:
        return tuple(zero_value(element) for element in elements)
    if optional_inner(tp) is not None:
        return None
    struct = struct_type_of(tp)
    if struct is not None:
        return _zero_struct(struct)
    return None


def _zero_struct(cls: type) -> Any:
    hints = resolve_hints(cls)
    kwargs: Dict[str, Any] = {}
    for field in dataclasses.fields(cls):
        if not field.init or _has_default(field):
            continue
        kwargs[field.name] = zero_value(hints.get(field.name, field.type))
    return cls(**kwargs)


def _has_default(field: dataclasses.Field) -> bool:
    return field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING


def _decode_basic(raw: Any, kind: BasicKind) -> Any:
    if kind is BasicKind.ANY:
        return raw
    if kind is BasicKind.BOOL:
        if isinstance(raw, bool):
            return raw
        raise TypeError("expected boolean")
    if kind is BasicKind.STR:
        if isinstance(raw, str):
            return raw
        raise TypeError("expected string")

    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise TypeError("expected number")
    basic = BASIC_TYPES[kind]
    if isinstance(basic, IntegerType):
        if not isinstance(raw, int):
            raise TypeError("expected integer")
        if raw < basic.minimum or raw > basic.maximum:
            raise ValueError("{0} overflows {1}".format(raw, kind.value))
        return raw
    if kind is BasicKind.FLOAT32:
        return round_float32(float(raw))
    return float(raw)


def from_json_value(raw: Any, tp: Any) -> Any:
    """
    Build a value of type ``tp`` from decoded JSON.

    Raises ``TypeError`` or ``ValueError`` when ``raw`` does not fit.
    """
    kind = basic_kind_of(tp)
    if kind is not None:
        return _decode_basic(raw, kind)

    if is_time_type(tp):
        if not isinstance(raw, str):
            raise TypeError("expected timestamp string")
        return parse_rfc3339(raw)

    if is_bytes_type(tp):
        if raw is None:
            return b""
        if not isinstance(raw, str):
            raise TypeError("expected base64 string")
        try:
            return base64.b64decode(raw, validate=True)
        except binascii.Error as exc:
            raise ValueError(str(exc)) from exc

    elements = array_parts(tp)
    if elements is not None:
        if raw is None:
            return zero_value(tp)
        if not isinstance(raw, list):
            raise TypeError("expected array")
        decoded = [from_json_value(item, element) for item, element in zip(raw, elements)]
        decoded.extend(zero_value(element) for element in elements[len(decoded):])
        return tuple(decoded)

    element = slice_element(tp)
    if element is not None:
        if raw is None:
            return None
        if not isinstance(raw, list):
            raise TypeError("expected array")
        items = [from_json_value(item, element) for item in raw]
        return tuple(items) if _is_tuple_slice(tp) else items

    parts = map_parts(tp)
    if parts is not None:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise TypeError("expected object")
        return {key: from_json_value(value, parts[1]) for key, value in raw.items()}

    struct = struct_type_of(tp)
    if struct is not None:
        if raw is None:
            return None if struct is not tp else _zero_struct(struct)
        return _decode_struct(raw, struct)

    raise TypeError("unsupported type {0}".format(type_name(tp)))


def _is_tuple_slice(tp: Any) -> bool:
    return typing.get_origin(tp) is tuple


def _decode_struct(raw: Any, cls: type) -> Any:
    if not isinstance(raw, dict):
        raise TypeError("expected object for {0}".format(cls.__name__))
    folded = {key.lower(): key for key in raw}
    hints = resolve_hints(cls)
    kwargs: Dict[str, Any] = {}

    for field in dataclasses.fields(cls):
        if not field.init:
            continue
        annotation = hints.get(field.name, field.type)
        if (field.metadata or {}).get("embed"):
            kwargs[field.name] = _decode_struct(raw, struct_type_of(annotation))
            continue

        info = describe_field(field, annotation)
        key = None
        if not info.private and info.json_name is not None:
            key = info.json_name if info.json_name in raw else folded.get(info.json_name.lower())
        if key is not None:
            kwargs[field.name] = from_json_value(raw[key], annotation)
        elif not _has_default(field):
            kwargs[field.name] = zero_value(annotation)
    return cls(**kwargs)


def to_json_value(value: Any) -> Any:
    """
    Plain JSON-compatible form of a typed value.
    """
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError("unsupported value: {0}".format(value))
        return value
    if isinstance(value, datetime):
        return format_rfc3339_nano(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _encode_struct(value)
    if isinstance(value, Mapping):
        return {str(key): to_json_value(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_value(item) for item in value]
    raise TypeError("Object of type {0} is not JSON serializable".format(type(value).__name__))


def _encode_struct(obj: Any) -> Dict[str, Any]:
    own: Dict[str, Any] = {}
    embedded = []
    for field in dataclasses.fields(obj):
        if (field.metadata or {}).get("embed"):
            embedded.append(getattr(obj, field.name))
            continue
        info = describe_field(field, field.type)
        if info.private or info.json_name is None:
            continue
        own[info.json_name] = to_json_value(getattr(obj, field.name))

    if not embedded:
        return own
    merged: Dict[str, Any] = {}
    for inner in embedded:
        if inner is None:
            continue
        for key, item in _encode_struct(inner).items():
            if key not in own:
                merged.setdefault(key, item)
    merged.update(own)
    return merged


def dumps(value: Any) -> str:
    """
    Compact JSON text for a typed value.
    """
    return json.dumps(to_json_value(value), separators=(",", ":"), ensure_ascii=False)

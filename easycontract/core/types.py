#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Basic type registry and annotation classification.

Contracts describe their parameters with ordinary Python annotations. The
fixed-width numeric kinds that JSON schema can describe but Python's ``int``
and ``float`` cannot are exposed as ``typing.NewType`` markers (``Int8``,
``Uint64``, ``Float32``...). Each basic kind knows how to convert a wire
string into a value and which schema fragment describes it.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import math
import re
import struct
import typing
from datetime import datetime, timedelta, timezone
from enum import Enum
from types import UnionType
from typing import Any, Dict, List, NewType, Optional, Tuple

from .utils.exceptions import ConversionError
from .utils.text import slice_as_comma_sentence

Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Uint = NewType("Uint", int)
Uint8 = NewType("Uint8", int)
Uint16 = NewType("Uint16", int)
Uint32 = NewType("Uint32", int)
Uint64 = NewType("Uint64", int)
Float32 = NewType("Float32", float)
Float64 = NewType("Float64", float)

MAX_UINT64 = 2 ** 64 - 1
_FLOAT32_FORMAT = "<f"
_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
_INF_LITERALS = frozenset({"inf", "infinity"})
_RFC3339_PATTERN = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(?:([Zz])|([+-])(\d{2}):(\d{2}))"
)


class BasicKind(str, Enum):
    """
    The closed set of primitive kinds.
    """

    BOOL = "bool"
    STR = "str"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    ANY = "any"


def _convert_error(value: str, kind: BasicKind) -> ConversionError:
    return ConversionError("cannot convert passed value {0} to {1}".format(value, kind.value))


class BasicType:
    """
    Converter and schema source for one primitive kind.
    """

    kind: BasicKind
    zero: Any = None

    def convert(self, value: str) -> Any:
        raise NotImplementedError

    def get_schema(self) -> Dict[str, Any]:
        raise NotImplementedError


class BoolType(BasicType):
    kind = BasicKind.BOOL
    zero = False

    def convert(self, value: str) -> bool:
        if value == "":
            return False
        if value == "true":
            return True
        if value == "false":
            return False
        raise _convert_error(value, self.kind)

    def get_schema(self) -> Dict[str, Any]:
        return {"type": "boolean"}


class StringType(BasicType):
    kind = BasicKind.STR
    zero = ""

    def convert(self, value: str) -> str:
        return value

    def get_schema(self) -> Dict[str, Any]:
        return {"type": "string"}


class AnyType(BasicType):
    """
    The open type. Values arrive untouched as their wire string.
    """

    kind = BasicKind.ANY
    zero = None

    def convert(self, value: str) -> Any:
        return value

    def get_schema(self) -> Dict[str, Any]:
        return {}


class IntegerType(BasicType):
    """
    Base-10 integer parser bounded to an exact bit width.
    """

    zero = 0

    def __init__(self, kind: BasicKind, minimum: int, maximum: int, schema: Dict[str, Any]) -> None:
        self.kind = kind
        self.minimum = minimum
        self.maximum = maximum
        self._schema = schema

    def convert(self, value: str) -> int:
        if value == "":
            return 0
        if not _INTEGER_PATTERN.fullmatch(value):
            raise _convert_error(value, self.kind)
        parsed = int(value, 10)
        if parsed < self.minimum or parsed > self.maximum:
            raise _convert_error(value, self.kind)
        return parsed

    def get_schema(self) -> Dict[str, Any]:
        return dict(self._schema)


class FloatType(BasicType):
    """
    Float parser honouring the kind's precision.
    """

    zero = 0.0

    def __init__(self, kind: BasicKind, single_precision: bool, schema: Dict[str, Any]) -> None:
        self.kind = kind
        self.single_precision = single_precision
        self._schema = schema

    def convert(self, value: str) -> float:
        if value == "":
            return 0.0
        if value != value.strip() or "_" in value:
            raise _convert_error(value, self.kind)
        try:
            parsed = float(value)
        except ValueError as exc:
            raise ConversionError(
                "cannot convert passed value {0} to {1}".format(value, self.kind.value), cause=exc
            ) from exc

        explicit_inf = value.lstrip("+-").lower() in _INF_LITERALS
        if math.isinf(parsed) and not explicit_inf:
            raise _convert_error(value, self.kind)
        if self.single_precision:
            try:
                return round_float32(parsed)
            except OverflowError as exc:
                raise ConversionError(
                    "cannot convert passed value {0} to {1}".format(value, self.kind.value), cause=exc
                ) from exc
        return parsed

    def get_schema(self) -> Dict[str, Any]:
        return dict(self._schema)


def _signed(kind: BasicKind, bits: int, schema: Dict[str, Any]) -> IntegerType:
    return IntegerType(kind, -(2 ** (bits - 1)), 2 ** (bits - 1) - 1, schema)


def _unsigned(kind: BasicKind, bits: int, schema: Dict[str, Any]) -> IntegerType:
    return IntegerType(kind, 0, 2 ** bits - 1, schema)


_UINT64_SCHEMA = {
    "type": "number",
    "format": "double",
    "multipleOf": 1,
    "minimum": 0,
    "maximum": MAX_UINT64,
}

BASIC_TYPES: Dict[BasicKind, BasicType] = {
    BasicKind.BOOL: BoolType(),
    BasicKind.STR: StringType(),
    BasicKind.ANY: AnyType(),
    BasicKind.INT: _signed(BasicKind.INT, 64, {"type": "integer", "format": "int64"}),
    BasicKind.INT8: _signed(
        BasicKind.INT8, 8, {"type": "integer", "format": "int8", "minimum": -128, "maximum": 127}
    ),
    BasicKind.INT16: _signed(
        BasicKind.INT16, 16, {"type": "integer", "format": "int16", "minimum": -32768, "maximum": 32767}
    ),
    BasicKind.INT32: _signed(
        BasicKind.INT32,
        32,
        {"type": "integer", "format": "int32", "minimum": -2147483648, "maximum": 2147483647},
    ),
    BasicKind.INT64: _signed(BasicKind.INT64, 64, {"type": "integer", "format": "int64"}),
    BasicKind.UINT: _unsigned(BasicKind.UINT, 64, _UINT64_SCHEMA),
    BasicKind.UINT8: _unsigned(
        BasicKind.UINT8, 8, {"type": "integer", "format": "int32", "minimum": 0, "maximum": 255}
    ),
    BasicKind.UINT16: _unsigned(
        BasicKind.UINT16, 16, {"type": "integer", "format": "int32", "minimum": 0, "maximum": 65535}
    ),
    BasicKind.UINT32: _unsigned(
        BasicKind.UINT32, 32, {"type": "integer", "format": "int64", "minimum": 0, "maximum": 4294967295}
    ),
    BasicKind.UINT64: _unsigned(BasicKind.UINT64, 64, _UINT64_SCHEMA),
    BasicKind.FLOAT32: FloatType(BasicKind.FLOAT32, True, {"type": "number", "format": "float"}),
    BasicKind.FLOAT64: FloatType(BasicKind.FLOAT64, False, {"type": "number", "format": "double"}),
}

_ANNOTATION_KINDS: Dict[Any, BasicKind] = {
    bool: BasicKind.BOOL,
    str: BasicKind.STR,
    int: BasicKind.INT,
    Int8: BasicKind.INT8,
    Int16: BasicKind.INT16,
    Int32: BasicKind.INT32,
    Int64: BasicKind.INT64,
    Uint: BasicKind.UINT,
    Uint8: BasicKind.UINT8,
    Uint16: BasicKind.UINT16,
    Uint32: BasicKind.UINT32,
    Uint64: BasicKind.UINT64,
    Float32: BasicKind.FLOAT32,
    Float64: BasicKind.FLOAT64,
    float: BasicKind.FLOAT64,
    Any: BasicKind.ANY,
    object: BasicKind.ANY,
}


def list_basic_types() -> str:
    """
    Sorted kind names as a readable sentence.
    """
    return slice_as_comma_sentence(sorted(kind.value for kind in BasicKind))


def basic_kind_of(tp: Any) -> Optional[BasicKind]:
    try:
        return _ANNOTATION_KINDS.get(tp)
    except TypeError:
        return None


def basic_type_of(tp: Any) -> Optional[BasicType]:
    kind = basic_kind_of(tp)
    if kind is None:
        return None
    return BASIC_TYPES[kind]


def is_any_type(tp: Any) -> bool:
    return basic_kind_of(tp) is BasicKind.ANY


def is_time_type(tp: Any) -> bool:
    return tp is datetime


def is_bytes_type(tp: Any) -> bool:
    return tp is bytes


def is_error_type(tp: Any) -> bool:
    """
    ``Exception`` is the error-like marker, bare or optional.
    """
    if tp is Exception:
        return True
    inner = optional_inner(tp)
    return inner is Exception


def is_union(tp: Any) -> bool:
    origin = typing.get_origin(tp)
    if origin is typing.Union:
        return True
    return origin is UnionType


def optional_inner(tp: Any) -> Optional[Any]:
    """
    ``X`` for ``Optional[X]``; ``None`` for anything else.
    """
    if not is_union(tp):
        return None
    members = [arg for arg in typing.get_args(tp) if arg is not type(None)]
    if len(members) != 1 or len(typing.get_args(tp)) != 2:
        return None
    return members[0]


def array_parts(tp: Any) -> Optional[Tuple[Any, ...]]:
    """
    Element annotations of a fixed-length ``Tuple[...]`` array.
    """
    if typing.get_origin(tp) is not tuple:
        return None
    args = typing.get_args(tp)
    if args == ((),):
        return ()
    if len(args) == 2 and args[1] is Ellipsis:
        return None
    return tuple(args)


def slice_element(tp: Any) -> Optional[Any]:
    """
    Element annotation of ``List[X]`` or ``Tuple[X, ...]``.
    """
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)
    if origin is list and len(args) == 1:
        return args[0]
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return args[0]
    return None


def map_parts(tp: Any) -> Optional[Tuple[Any, Any]]:
    if typing.get_origin(tp) is dict:
        args = typing.get_args(tp)
        if len(args) == 2:
            return args[0], args[1]
    return None


def is_protocol(tp: Any) -> bool:
    return isinstance(tp, type) and bool(getattr(tp, "_is_protocol", False))


def round_float32(value: float) -> float:
    """
    Round to the nearest single precision float; overflow raises.
    """
    return struct.unpack(_FLOAT32_FORMAT, struct.pack(_FLOAT32_FORMAT, value))[0]


def format_float32(value: float) -> str:
    """
    Shortest text that reads back to the same single precision value.
    """
    if math.isnan(value) or math.isinf(value):
        return repr(value)
    for precision in range(1, 10):
        text = "{0:.{1}g}".format(value, precision)
        if round_float32(float(text)) == value:
            return text
    return repr(value)


def parse_rfc3339(value: str) -> datetime:
    match = _RFC3339_PATTERN.fullmatch(value)
    if match is None:
        raise ValueError("{0} is not an RFC3339 timestamp".format(value))
    year, month, day, hour, minute, second, fraction, zulu, sign, off_hours, off_minutes = match.groups()
    if zulu:
        tz = timezone.utc
    else:
        offset = timedelta(hours=int(off_hours), minutes=int(off_minutes))
        tz = timezone(-offset if sign == "-" else offset)
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), microsecond, tzinfo=tz
    )


def format_rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    offset = value.utcoffset() or timedelta(0)
    text = "{0:04d}-{1:02d}-{2:02d}T{3:02d}:{4:02d}:{5:02d}".format(
        value.year, value.month, value.day, value.hour, value.minute, value.second
    )
    if not offset:
        return text + "Z"
    total_minutes = int(offset.total_seconds()) // 60
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return "{0}{1}{2:02d}:{3:02d}".format(text, sign, hours, minutes)


def format_rfc3339_nano(value: datetime) -> str:
    """
    RFC 3339 text keeping sub-second precision, used for timestamps nested in JSON.

    Trailing zeros of the fraction are trimmed and a whole second has none.
    """
    text = format_rfc3339(value)
    if not value.microsecond:
        return text
    fraction = ".{0:06d}".format(value.microsecond).rstrip("0")
    return text[:19] + fraction + text[19:]


def resolve_hints(obj: Any) -> Dict[str, Any]:
    """
    Evaluated annotations of a callable or class, ``{}`` when unavailable.
    """
    target = getattr(obj, "__func__", obj)
    try:
        return typing.get_type_hints(target)
    except (NameError, TypeError):
        return dict(getattr(target, "__annotations__", {}) or {})


__all__: List[str] = [
    "BASIC_TYPES",
    "BasicKind",
    "BasicType",
    "Float32",
    "Float64",
    "Int16",
    "Int32",
    "Int64",
    "Int8",
    "MAX_UINT64",
    "Uint",
    "Uint16",
    "Uint32",
    "Uint64",
    "Uint8",
    "list_basic_types",
]

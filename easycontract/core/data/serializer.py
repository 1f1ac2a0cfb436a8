#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Transaction serializers: wire strings to typed arguments and back.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from ..structs import struct_type_of
from ..types import (
    BasicKind,
    array_parts,
    basic_kind_of,
    basic_type_of,
    format_float32,
    format_rfc3339,
    is_any_type,
    is_bytes_type,
    is_time_type,
    map_parts,
    parse_rfc3339,
    slice_element,
)
from ..utils.exceptions import ConversionError, ExceptionTranslator, SchemaValidationError
from ..utils.text import type_name, validate_errors_to_string
from .codec import dumps, from_json_value, to_json_value

if TYPE_CHECKING:  # pragma: no cover
    from ...metadata.models import ComponentMetadata, ParameterMetadata, ReturnMetadata

RETURN_PROPERTY = "return"


@runtime_checkable
class TransactionSerializer(Protocol):
    """Protocol for converting transaction arguments and results"""

    def from_string(
        self,
        param: str,
        field_type: Any,
        param_metadata: Optional["ParameterMetadata"],
        components: Optional["ComponentMetadata"],
    ) -> Any:
        """Convert a wire argument into a value of ``field_type``"""
        ...

    def to_string(
        self,
        result: Any,
        result_type: Any,
        return_metadata: Optional["ReturnMetadata"],
        components: Optional["ComponentMetadata"],
    ) -> str:
        """Convert a transaction result into its wire string"""
        ...


def is_marshalling_type(tp: Any) -> bool:
    """
    Types whose values travel as JSON text.
    """
    return (
        array_parts(tp) is not None
        or slice_element(tp) is not None
        or map_parts(tp) is not None
        or struct_type_of(tp) is not None
    )


def _is_marshalling_value(value: Any) -> bool:
    if isinstance(value, (dict, list, tuple, set, frozenset)):
        return True
    return struct_type_of(type(value)) is not None


def convert_arg(field_type: Any, param: str) -> Any:
    """
    Turn one wire string into a value of ``field_type``.
    """
    basic = basic_type_of(field_type)
    if basic is not None:
        try:
            return basic.convert(param)
        except ConversionError as exc:
            raise ExceptionTranslator.as_conversion_error(exc) from exc

    if is_time_type(field_type):
        try:
            return parse_rfc3339(param)
        except ValueError as exc:
            raise ConversionError(
                "Conversion error. cannot convert passed value {0} to datetime".format(param), cause=exc
            ) from exc

    if is_bytes_type(field_type):
        return param.encode("utf-8")

    try:
        return from_json_value(json.loads(param), field_type)
    except (ValueError, TypeError) as exc:
        raise ConversionError(
            "Conversion error. Value {0} was not passed in expected format {1}".format(
                param, type_name(field_type)
            ),
            cause=exc,
        ) from exc


def validate_against_schema(
    prop_name: str, field_type: Any, string_value: str, value: Any, compiled_schema: Any
) -> None:
    """
    Validate ``{prop_name: value}`` against a compiled schema.

    Timestamps and bytes are checked in their wire form and structs as the
    raw JSON object, so that missing required properties are still visible.
    """
    if is_time_type(field_type) or is_bytes_type(field_type):
        to_validate = string_value
    elif struct_type_of(field_type) is not None:
        to_validate = json.loads(string_value)
    else:
        try:
            to_validate = to_json_value(value)
        except (TypeError, ValueError) as exc:
            raise ConversionError(
                "Conversion error. Value {0} cannot be represented as JSON for {1}. {2}".format(
                    string_value, type_name(field_type), exc
                ),
                cause=exc,
            ) from exc

    errors = sorted(
        compiled_schema.iter_errors({prop_name: to_validate}),
        key=lambda error: str(list(error.absolute_path)),
    )
    if errors:
        raise SchemaValidationError("Value did not match schema:\n{0}".format(validate_errors_to_string(errors)))


def format_scalar(value: Any, field_type: Any = None) -> str:
    """
    Wire text for a non-JSON value.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if basic_kind_of(field_type) is BasicKind.FLOAT32:
            return format_float32(value)
        if value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        return format_rfc3339(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


class JSONSerializer:
    """
    Default serializer: basic kinds as plain text, compound values as JSON.
    """

    def from_string(
        self,
        param: str,
        field_type: Any,
        param_metadata: Optional["ParameterMetadata"] = None,
        components: Optional["ComponentMetadata"] = None,
    ) -> Any:
        converted = convert_arg(field_type, param)
        if param_metadata is not None and param_metadata.compiled_schema is not None:
            validate_against_schema(param_metadata.name, field_type, param, converted, param_metadata.compiled_schema)
        return converted

    def to_string(
        self,
        result: Any,
        result_type: Any,
        return_metadata: Optional["ReturnMetadata"] = None,
        components: Optional["ComponentMetadata"] = None,
    ) -> str:
        if result_type is None or result is None:
            return ""

        try:
            if is_time_type(result_type):
                text = format_rfc3339(result)
            elif is_marshalling_type(result_type) or (is_any_type(result_type) and _is_marshalling_value(result)):
                text = dumps(result)
            else:
                text = format_scalar(result, result_type)
        except (TypeError, ValueError, AttributeError) as exc:
            raise ConversionError(
                "Cannot serialize value of type {0}. {1}".format(type(result).__name__, exc), cause=exc
            ) from exc

        if return_metadata is not None and return_metadata.compiled_schema is not None:
            validate_against_schema(RETURN_PROPERTY, result_type, text, result, return_metadata.compiled_schema)
        return text


__all__ = [
    "JSONSerializer",
    "TransactionSerializer",
    "convert_arg",
    "validate_against_schema",
]

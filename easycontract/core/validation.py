#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Type validity rules for transaction parameters, returns and struct fields.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import inspect
import typing
from functools import lru_cache
from typing import Any, Iterable, List, Optional, Sequence

from .structs import flatten_fields, struct_type_of
from .types import (
    array_parts,
    basic_kind_of,
    is_bytes_type,
    is_error_type,
    is_protocol,
    is_time_type,
    list_basic_types,
    map_parts,
    resolve_hints,
    slice_element,
)
from .utils.exceptions import InterfaceMismatchError, TypeValidationError
from .utils.text import type_name

_PROTOCOL_ROOTS = (object, typing.Protocol, typing.Generic)


def basic_type_error(tp: Any, allow_error: bool) -> TypeValidationError:
    allowed = list_basic_types()
    if allow_error:
        allowed = "error, " + allowed
    return TypeValidationError(
        "Type {0} is not valid. Expected a struct or one of the basic types {1} "
        "or an array/slice of these".format(type_name(tp), allowed)
    )


def _is_additional(tp: Any, additional_types: Sequence[Any]) -> bool:
    for candidate in additional_types:
        if candidate is tp:
            return True
        try:
            if candidate == tp:
                return True
        except TypeError:
            continue
    return False


def type_is_valid(tp: Any, additional_types: Iterable[Any] = (), allow_error: bool = False) -> None:
    """
    Raise ``TypeValidationError`` unless ``tp`` can cross the wire.

    ``additional_types`` are accepted as-is. Struct checks extend it with the
    struct being walked so that self-referencing dataclasses terminate.
    """
    _check(tp, list(additional_types), allow_error)


def _check(tp: Any, additional_types: List[Any], allow_error: bool) -> None:
    if basic_kind_of(tp) is not None or is_time_type(tp) or is_bytes_type(tp):
        return
    if allow_error and is_error_type(tp):
        return
    if _is_additional(tp, additional_types):
        return

    elements = array_parts(tp)
    if elements is not None:
        if not elements:
            raise TypeValidationError("Arrays must have length greater than 0")
        if any(element != elements[0] for element in elements[1:]):
            raise basic_type_error(tp, allow_error)
        _check(elements[0], additional_types, False)
        return

    element = slice_element(tp)
    if element is not None:
        _check(element, additional_types, False)
        return

    parts = map_parts(tp)
    if parts is not None:
        key_type, value_type = parts
        if key_type is not str:
            raise TypeValidationError("Map key type {0} is not valid. Expected str".format(type_name(key_type)))
        _check(value_type, additional_types, False)
        return

    struct = struct_type_of(tp)
    if struct is not None:
        _check_struct(struct, additional_types)
        return

    raise basic_type_error(tp, allow_error)


def _check_struct(struct: type, additional_types: List[Any]) -> None:
    if _is_additional(struct, additional_types):
        return
    extended = additional_types + [struct]
    for field in flatten_fields(struct):
        if field.private:
            if field.tagged:
                raise TypeValidationError(
                    "Field {0} of {1} is private and cannot carry a serialization name".format(
                        field.name, struct.__name__
                    )
                )
            continue
        if field.json_name is None and field.schema_name is None:
            continue
        _check(field.annotation, extended, False)


def _protocol_members(interface: type) -> List[str]:
    names = set()
    for base in interface.__mro__:
        if base in _PROTOCOL_ROOTS or not getattr(base, "_is_protocol", False):
            continue
        for name, value in vars(base).items():
            if name.startswith("_"):
                continue
            if callable(value) or isinstance(value, (staticmethod, classmethod)):
                names.add(name)
    return sorted(names)


def _parameter_types(function: Any) -> List[Any]:
    hints = resolve_hints(function)
    parameters = list(inspect.signature(function).parameters.values())
    if parameters and parameters[0].name in ("self", "cls"):
        parameters = parameters[1:]
    return [hints.get(parameter.name, Any) for parameter in parameters]


def _return_types(function: Any) -> List[Any]:
    hints = resolve_hints(function)
    if "return" not in hints:
        return []
    returned = hints["return"]
    if returned is None or returned is type(None):
        return []
    if typing.get_origin(returned) is tuple:
        args = typing.get_args(returned)
        if not (len(args) == 2 and args[1] is Ellipsis):
            return list(args)
    return [returned]


def _compare(kind: str, method: str, expected: List[Any], got: List[Any]) -> Optional[str]:
    if len(expected) != len(got):
        return "{0} mismatch in method {1}. Expected {2}, got {3}".format(kind, method, len(expected), len(got))
    label = "parameter" if kind == "Parameter" else "return"
    for index, (want, have) in enumerate(zip(expected, got)):
        if want != have:
            return "{0} mismatch in method {1} at {2} {3}. Expected {4}, got {5}".format(
                kind, method, label, index, type_name(want), type_name(have)
            )
    return None


@lru_cache(maxsize=None)
def _interface_mismatch(candidate: type, interface: type) -> Optional[str]:
    if not is_protocol(interface):
        return "Type passed for interface is not an interface"

    for name in _protocol_members(interface):
        implementation = getattr(candidate, name, None)
        if implementation is None or not callable(implementation):
            return "Missing function {0}".format(name)
        declared = getattr(interface, name)

        mismatch = _compare("Parameter", name, _parameter_types(declared), _parameter_types(implementation))
        if mismatch is None:
            mismatch = _compare("Return", name, _return_types(declared), _return_types(implementation))
        if mismatch is not None:
            return mismatch
    return None


def type_matches_interface(candidate: type, interface: Any) -> None:
    """
    Raise ``InterfaceMismatchError`` unless ``candidate`` satisfies the
    Protocol ``interface`` method by method.
    """
    try:
        mismatch = _interface_mismatch(candidate, interface)
    except TypeError:
        mismatch = _interface_mismatch.__wrapped__(candidate, interface)
    if mismatch is not None:
        raise InterfaceMismatchError(mismatch)

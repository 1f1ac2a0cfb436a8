#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Text helpers shared by validation, schema and dispatch code.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from typing import Any, Iterable, Sequence


def slice_as_comma_sentence(items: Sequence[str]) -> str:
    """
    Join ``["a", "b", "c"]`` as ``"a, b and c"``.
    """
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    return "{0} and {1}".format(", ".join(items[:-1]), items[-1])


def type_name(tp: Any) -> str:
    """
    Human readable name of a type annotation.
    """
    if tp is None or tp is type(None):
        return "None"
    if isinstance(tp, type):
        return tp.__name__
    supertype = getattr(tp, "__supertype__", None)
    if supertype is not None:
        return getattr(tp, "__name__", repr(tp))
    return repr(tp).replace("typing.", "")


def validate_errors_to_string(errors: Iterable[Any]) -> str:
    """
    Number jsonschema validation errors one per line.
    """
    lines = []
    for index, error in enumerate(errors, start=1):
        path = ".".join(str(part) for part in error.absolute_path) or "(root)"
        lines.append("{0}. {1}: {2}".format(index, path, error.message))
    return "\n".join(lines)


def upper_first(value: str) -> str:
    if not value:
        return value
    return value[0].upper() + value[1:]

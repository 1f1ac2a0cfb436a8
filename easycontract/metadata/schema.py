#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
JSON schema generation for annotated types.

Dataclasses are registered once in the shared component table and referred
to by ``$ref``. A component slot is reserved before its fields are walked so
that self-referencing dataclasses terminate; if a field fails, the slot is
removed again.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from typing import Any, Dict

from ..core.structs import flatten_fields, schema_key, struct_type_of
from ..core.types import (
    array_parts,
    basic_type_of,
    is_bytes_type,
    is_time_type,
    map_parts,
    slice_element,
)
from ..core.utils.exceptions import SchemaError, TypeValidationError
from ..core.utils.text import type_name
from .models import COMPONENT_REF_PREFIX, ComponentMetadata, ObjectMetadata


def get_schema(field_type: Any, components: ComponentMetadata, nested: bool = False) -> Dict[str, Any]:
    """
    Schema for ``field_type``; dataclasses land in ``components``.

    ``nested`` is set while describing a component's own fields, where
    references are relative to the component table.
    """
    basic = basic_type_of(field_type)
    if basic is not None:
        return basic.get_schema()
    if is_time_type(field_type):
        return {"type": "string", "format": "date-time"}
    if is_bytes_type(field_type):
        return {"type": "string", "format": "byte"}

    elements = array_parts(field_type)
    if elements is not None:
        if not elements:
            raise SchemaError("Arrays must have length greater than 0")
        return {"type": "array", "items": get_schema(elements[0], components, nested)}

    element = slice_element(field_type)
    if element is not None:
        return {"type": "array", "items": get_schema(element, components, nested)}

    parts = map_parts(field_type)
    if parts is not None:
        return {"type": "object", "additionalProperties": get_schema(parts[1], components, nested)}

    struct = struct_type_of(field_type)
    if struct is not None:
        key = add_component_if_not_exists(struct, components)
        if nested:
            return {"$ref": key}
        return {"$ref": COMPONENT_REF_PREFIX + key}

    raise SchemaError("{0} was not a valid type".format(type_name(field_type)))


def add_component_if_not_exists(struct: type, components: ComponentMetadata) -> str:
    key = schema_key(struct)
    if key in components.schemas:
        return key

    components.schemas[key] = ObjectMetadata(id=key)
    try:
        built = _build_object(struct, key, components)
    except SchemaError:
        del components.schemas[key]
        raise
    components.schemas[key] = built
    return key


def _build_object(struct: type, key: str, components: ComponentMetadata) -> ObjectMetadata:
    built = ObjectMetadata(id=key)
    try:
        fields = flatten_fields(struct)
    except TypeValidationError as exc:
        raise SchemaError(str(exc), cause=exc) from exc

    for field in fields:
        if field.private:
            if field.tagged:
                raise SchemaError(
                    "Field {0} of {1} is private and cannot carry a serialization name".format(
                        field.name, struct.__name__
                    )
                )
            continue
        if field.schema_name is None:
            continue
        built.properties[field.schema_name] = get_schema(field.annotation, components, nested=True)
        if not field.optional:
            built.required.append(field.schema_name)
    return built

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Contract chaincode metadata document.

The document describes every contract, its transactions and the shared
component schemas. It is reflected from the registered contracts, optionally
seeded from a metadata file, and compiled into ``jsonschema`` validators that
the serializer uses to check arguments and results.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import copy
import json
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Mapping, Optional, Set

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError as JSONSchemaError
from referencing import Registry
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT7

from ..core.utils.exceptions import MetadataError, SchemaError
from ..core.utils.text import validate_errors_to_string

COMPONENT_REF_PREFIX = "#/components/schemas/"
SCHEMA_RESOURCE = "schema.json"


def _omit_empty(values: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value not in ("", None)}


@dataclass
class ContactMetadata:
    name: str = ""
    url: str = ""
    email: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return _omit_empty({"name": self.name, "url": self.url, "email": self.email})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContactMetadata":
        return cls(name=data.get("name", ""), url=data.get("url", ""), email=data.get("email", ""))


@dataclass
class LicenseMetadata:
    name: str = ""
    url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return _omit_empty({"name": self.name, "url": self.url})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LicenseMetadata":
        return cls(name=data.get("name", ""), url=data.get("url", ""))


@dataclass
class InfoMetadata:
    """
    Descriptive information for a chaincode or a single contract.
    """

    title: str = ""
    version: str = ""
    description: str = ""
    contact: Optional[ContactMetadata] = None
    license: Optional[LicenseMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        data = _omit_empty({"description": self.description, "title": self.title})
        if self.contact is not None:
            data["contact"] = self.contact.to_dict()
        if self.license is not None:
            data["license"] = self.license.to_dict()
        if self.version:
            data["version"] = self.version
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InfoMetadata":
        contact = data.get("contact")
        license_data = data.get("license")
        return cls(
            title=data.get("title", ""),
            version=data.get("version", ""),
            description=data.get("description", ""),
            contact=ContactMetadata.from_dict(contact) if contact is not None else None,
            license=LicenseMetadata.from_dict(license_data) if license_data is not None else None,
        )


@dataclass
class ParameterMetadata:
    """
    A transaction parameter: its name, schema and compiled validator.
    """

    name: str
    schema: Optional[Dict[str, Any]] = None
    description: str = ""
    compiled_schema: Any = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        data = _omit_empty({"description": self.description})
        data["name"] = self.name
        data["schema"] = copy.deepcopy(self.schema)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParameterMetadata":
        return cls(name=data.get("name", ""), schema=data.get("schema"), description=data.get("description", ""))


@dataclass
class ReturnMetadata:
    schema: Optional[Dict[str, Any]] = None
    compiled_schema: Any = field(default=None, repr=False, compare=False)


@dataclass
class TransactionMetadata:
    """
    One transaction of a contract. ``returns`` is flattened to a schema on
    the wire.
    """

    name: str
    parameters: List[ParameterMetadata] = field(default_factory=list)
    returns: ReturnMetadata = field(default_factory=ReturnMetadata)
    tag: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.parameters:
            data["parameters"] = [parameter.to_dict() for parameter in self.parameters]
        if self.returns.schema is not None:
            data["returns"] = copy.deepcopy(self.returns.schema)
        if self.tag:
            data["tag"] = list(self.tag)
        data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TransactionMetadata":
        return cls(
            name=data.get("name", ""),
            parameters=[ParameterMetadata.from_dict(item) for item in data.get("parameters") or []],
            returns=ReturnMetadata(schema=data.get("returns")),
            tag=list(data.get("tag") or []),
        )


@dataclass
class ContractMetadata:
    name: str
    info: Optional[InfoMetadata] = None
    transactions: List[TransactionMetadata] = field(default_factory=list)
    default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.info is not None:
            data["info"] = self.info.to_dict()
        data["name"] = self.name
        data["transactions"] = [transaction.to_dict() for transaction in self.transactions]
        data["default"] = self.default
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContractMetadata":
        info = data.get("info")
        return cls(
            name=data.get("name", ""),
            info=InfoMetadata.from_dict(info) if info is not None else None,
            transactions=[TransactionMetadata.from_dict(item) for item in data.get("transactions") or []],
            default=bool(data.get("default", False)),
        )

    def get_transaction(self, name: str) -> Optional[TransactionMetadata]:
        for transaction in self.transactions:
            if transaction.name == name:
                return transaction
        return None


@dataclass
class ObjectMetadata:
    """
    Component schema describing one dataclass.
    """

    id: str
    properties: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    additional_properties: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"$id": self.id, "properties": copy.deepcopy(self.properties)}
        if self.required:
            data["required"] = list(self.required)
        data["additionalProperties"] = self.additional_properties
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ObjectMetadata":
        return cls(
            id=data.get("$id", ""),
            properties=dict(data.get("properties") or {}),
            required=list(data.get("required") or []),
            additional_properties=bool(data.get("additionalProperties", False)),
        )


@dataclass
class ComponentMetadata:
    schemas: Dict[str, ObjectMetadata] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.schemas

    def to_dict(self) -> Dict[str, Any]:
        if not self.schemas:
            return {}
        return {"schemas": {key: value.to_dict() for key, value in self.schemas.items()}}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ComponentMetadata":
        schemas = (data or {}).get("schemas") or {}
        return cls(schemas={key: ObjectMetadata.from_dict(value) for key, value in schemas.items()})


def _component_registry(components: Dict[str, Any]) -> Registry:
    schemas = components.get("schemas", {})
    return Registry().with_resources(
        (key, DRAFT7.create_resource(value)) for key, value in schemas.items()
    )


def _resolve_references(node: Any, resolver: Any, seen: Set[int]) -> None:
    if isinstance(node, dict):
        reference = node.get("$ref")
        if isinstance(reference, str):
            resolved = resolver.lookup(reference)
            if id(resolved.contents) not in seen:
                seen.add(id(resolved.contents))
                _resolve_references(resolved.contents, resolved.resolver, seen)
        for key, value in node.items():
            if key != "$ref":
                _resolve_references(value, resolver, seen)
    elif isinstance(node, list):
        for item in node:
            _resolve_references(item, resolver, seen)


def compile_schema(prop_name: str, schema: Optional[Dict[str, Any]], components: Dict[str, Any]) -> Draft7Validator:
    """
    Build a validator for ``{prop_name: value}`` documents.

    Every ``$ref`` reachable from ``schema`` is resolved up front so that a
    dangling reference fails here rather than on first use.
    """
    combined = {
        "components": components,
        "properties": {prop_name: schema if schema is not None else {}},
    }
    try:
        Draft7Validator.check_schema(combined)
    except JSONSchemaError as exc:
        raise SchemaError(exc.message, cause=exc) from exc

    registry = _component_registry(components)
    resolver = registry.resolver_with_root(DRAFT7.create_resource(combined))
    try:
        _resolve_references(combined["properties"], resolver, set())
    except Unresolvable as exc:
        raise SchemaError("Unresolvable reference: {0}".format(exc), cause=exc) from exc

    return Draft7Validator(combined, registry=registry, format_checker=Draft7Validator.FORMAT_CHECKER)


@dataclass
class ContractChaincodeMetadata:
    """
    Whole-chaincode metadata document.
    """

    info: Optional[InfoMetadata] = None
    contracts: Dict[str, ContractMetadata] = field(default_factory=dict)
    components: ComponentMetadata = field(default_factory=ComponentMetadata)

    def append(self, source: "ContractChaincodeMetadata") -> None:
        """
        Fill only the sections this document leaves empty.
        """
        if self.info is None:
            self.info = source.info
        if not self.contracts:
            self.contracts = dict(source.contracts)
        if self.components.is_empty():
            self.components = source.components

    def compile_schemas(self) -> None:
        """
        Attach compiled validators to every parameter and return schema.
        """
        components = self.components.to_dict()
        for contract_name, contract in self.contracts.items():
            for transaction in contract.transactions:
                for parameter in transaction.parameters:
                    try:
                        parameter.compiled_schema = compile_schema(parameter.name, parameter.schema, components)
                    except SchemaError as exc:
                        raise MetadataError(
                            "Error compiling schema for {0} [{1}]. {2} schema invalid. {3}".format(
                                contract_name, transaction.name, parameter.name, exc
                            ),
                            cause=exc,
                        ) from exc

                if transaction.returns.schema is not None:
                    try:
                        transaction.returns.compiled_schema = compile_schema(
                            "return", transaction.returns.schema, components
                        )
                    except SchemaError as exc:
                        raise MetadataError(
                            "Error compiling schema for {0} [{1}]. Return schema invalid. {2}".format(
                                contract_name, transaction.name, exc
                            ),
                            cause=exc,
                        ) from exc

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.info is not None:
            data["info"] = self.info.to_dict()
        data["contracts"] = {name: contract.to_dict() for name, contract in self.contracts.items()}
        data["components"] = self.components.to_dict()
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContractChaincodeMetadata":
        info = data.get("info")
        contracts = data.get("contracts") or {}
        return cls(
            info=InfoMetadata.from_dict(info) if info is not None else None,
            contracts={name: ContractMetadata.from_dict(value) for name, value in contracts.items()},
            components=ComponentMetadata.from_dict(data.get("components")),
        )


@lru_cache(maxsize=1)
def get_json_schema() -> Dict[str, Any]:
    """
    The JSON schema every metadata document must satisfy.
    """
    text = resources.files(__package__).joinpath(SCHEMA_RESOURCE).read_text(encoding="utf-8")
    return json.loads(text)


def validate_against_schema(metadata: ContractChaincodeMetadata) -> None:
    validator = Draft7Validator(get_json_schema())
    errors = sorted(
        validator.iter_errors(metadata.to_dict()),
        key=lambda error: str(list(error.absolute_path)),
    )
    if errors:
        raise MetadataError(
            "Cannot use metadata. Metadata did not match schema:\n{0}".format(validate_errors_to_string(errors))
        )

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tests for JSON value codec and the default transaction serializer.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from easycontract.core.data import JSONSerializer, TransactionSerializer, dumps, from_json_value, zero_value
from easycontract.core.data.codec import ZERO_TIME
from easycontract.core.types import Float32, Uint8
from easycontract.core.utils.exceptions import ConversionError, SchemaValidationError
from easycontract.metadata.models import ComponentMetadata, ParameterMetadata, ReturnMetadata, compile_schema
from easycontract.metadata.schema import get_schema


@dataclass
class Asset:
    id: str
    value: int
    owner: str = field(default="", metadata={"json": "holder", "metadata": "holder,optional"})


@dataclass
class Event:
    name: str
    at: datetime = field(default_factory=lambda: ZERO_TIME)


@dataclass
class Audit:
    by: str = ""


@dataclass
class AuditedAsset:
    asset: Asset = field(metadata={"embed": True})
    audit: Audit = field(default_factory=Audit)


def _compiled(name: str, field_type: Any) -> Tuple[Any, ComponentMetadata]:
    components = ComponentMetadata()
    schema = get_schema(field_type, components)
    return compile_schema(name, schema, components.to_dict()), components


def test_json_serializer_satisfies_protocol():
    assert isinstance(JSONSerializer(), TransactionSerializer)


def test_zero_values_follow_declared_types():
    assert zero_value(int) == 0
    assert zero_value(str) == ""
    assert zero_value(Tuple[int, int]) == (0, 0)
    assert zero_value(List[int]) is None
    assert zero_value(Optional[Asset]) is None
    assert zero_value(datetime) == ZERO_TIME
    assert zero_value(Asset) == Asset(id="", value=0)


def test_struct_decoding_is_case_insensitive_and_fills_missing_fields():
    decoded = from_json_value({"ID": "a1", "Holder": "bob"}, Asset)

    assert decoded == Asset(id="a1", value=0, owner="bob")


def test_fixed_arrays_are_truncated_or_padded():
    assert from_json_value([1, 2, 3], Tuple[int, int]) == (1, 2)
    assert from_json_value([1], Tuple[int, int]) == (1, 0)


def test_embedded_structs_decode_from_and_encode_to_one_object():
    raw = {"id": "a1", "value": 3, "holder": "al", "audit": {"by": "eve"}}

    decoded = from_json_value(raw, AuditedAsset)

    assert decoded.asset == Asset(id="a1", value=3, owner="al")
    assert decoded.audit == Audit(by="eve")
    assert json.loads(dumps(decoded)) == {
        "id": "a1",
        "value": 3,
        "holder": "al",
        "audit": {"by": "eve"},
    }


def test_from_string_converts_basic_and_compound_values():
    serializer = JSONSerializer()

    assert serializer.from_string("42", int) == 42
    assert serializer.from_string("true", bool) is True
    assert serializer.from_string('{"a": 1}', Dict[str, int]) == {"a": 1}
    assert serializer.from_string("[1,2]", List[Uint8]) == [1, 2]
    assert serializer.from_string("raw", bytes) == b"raw"
    assert serializer.from_string("2024-01-02T03:04:05Z", datetime) == datetime(
        2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc
    )


def test_from_string_conversion_errors():
    serializer = JSONSerializer()

    with pytest.raises(ConversionError, match="Conversion error. cannot convert passed value abc to int"):
        serializer.from_string("abc", int)
    with pytest.raises(ConversionError, match="Conversion error. cannot convert passed value nope to datetime"):
        serializer.from_string("nope", datetime)
    with pytest.raises(ConversionError, match="Conversion error. Value \\[1 was not passed in expected format"):
        serializer.from_string("[1", List[int])
    with pytest.raises(ConversionError, match="Conversion error. Value \\[256\\] was not passed in expected format"):
        serializer.from_string("[256]", List[Uint8])


def test_from_string_validates_against_compiled_schema():
    serializer = JSONSerializer()
    compiled, components = _compiled("asset", Asset)
    metadata = ParameterMetadata(name="asset", compiled_schema=compiled)

    value = serializer.from_string('{"id": "a1", "value": 5}', Asset, metadata, components)
    assert value.value == 5

    with pytest.raises(SchemaValidationError) as excinfo:
        serializer.from_string('{"id": "a1"}', Asset, metadata, components)
    message = str(excinfo.value)
    assert message.startswith("Value did not match schema:\n1. asset: ")
    assert "'value' is a required property" in message


def test_from_string_reports_every_schema_violation():
    serializer = JSONSerializer()
    compiled, components = _compiled("asset", Asset)
    metadata = ParameterMetadata(name="asset", compiled_schema=compiled)

    with pytest.raises(SchemaValidationError) as excinfo:
        serializer.from_string('{"value": 1, "extra": true}', Asset, metadata, components)

    message = str(excinfo.value)
    assert "1. asset: " in message
    assert "2. asset: " in message


def test_to_string_formats_results():
    serializer = JSONSerializer()
    when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    assert serializer.to_string(True, bool) == "true"
    assert serializer.to_string(12, int) == "12"
    assert serializer.to_string(1.5, float) == "1.5"
    assert serializer.to_string(3.0, float) == "3"
    assert serializer.to_string(0.1, Float32) == "0.1"
    assert serializer.to_string("text", str) == "text"
    assert serializer.to_string(when, datetime) == "2024-01-02T03:04:05Z"
    assert serializer.to_string(None, Optional[Asset]) == ""
    assert serializer.to_string(None, List[int]) == ""
    assert serializer.to_string([1, 2], List[int]) == "[1,2]"
    assert serializer.to_string({"b": 1, "a": 2}, Any) == '{"a":2,"b":1}'
    assert serializer.to_string(Asset(id="x", value=1), Asset) == '{"id":"x","value":1,"holder":""}'


def test_to_string_validates_return_schema():
    serializer = JSONSerializer()
    compiled, components = _compiled("return", Uint8)
    metadata = ReturnMetadata(compiled_schema=compiled)

    assert serializer.to_string(7, Uint8, metadata, components) == "7"
    with pytest.raises(SchemaValidationError, match="1. return: 300 is greater than the maximum of 255"):
        serializer.to_string(300, Uint8, metadata, components)


def test_to_string_rejects_unencodable_values():
    with pytest.raises(ConversionError, match="Cannot serialize value of type list"):
        JSONSerializer().to_string([float("nan")], List[float])


def test_nested_timestamps_keep_sub_second_precision():
    serializer = JSONSerializer()
    event = Event(name="e", at=datetime(2024, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc))

    assert serializer.to_string(event, Event) == '{"name":"e","at":"2024-01-02T03:04:05.123456Z"}'
    assert serializer.to_string([event.at.replace(microsecond=500000)], List[datetime]) == '["2024-01-02T03:04:05.5Z"]'
    assert serializer.to_string(event.at, datetime) == "2024-01-02T03:04:05Z"


@pytest.mark.parametrize(
    "value, value_type",
    [
        (Event(name="e", at=datetime(2024, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc)), Event),
        (Asset(id="a1", value=-3, owner="ann"), Asset),
        ((7, 8), Tuple[int, int]),
        (
            (
                Event(name="a", at=datetime(2023, 5, 6, 7, 8, 9, 10, tzinfo=timezone(timedelta(hours=2)))),
                Event(name="b"),
            ),
            Tuple[Event, Event],
        ),
        ([Event(name="x", at=datetime(2020, 2, 29, 23, 59, 59, 999999, tzinfo=timezone.utc))], List[Event]),
        ({"one": [1, 2], "two": []}, Dict[str, List[int]]),
        ({"k": Event(name="m", at=datetime(2021, 1, 1, 0, 0, 0, 250000, tzinfo=timezone.utc))}, Dict[str, Event]),
        (AuditedAsset(asset=Asset(id="z", value=1, owner="o"), audit=Audit(by="q")), AuditedAsset),
    ],
)
def test_compound_values_survive_to_string_and_back(value, value_type):
    serializer = JSONSerializer()

    assert serializer.from_string(serializer.to_string(value, value_type), value_type) == value

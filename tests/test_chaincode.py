#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tests for contract registration, dispatch and the system contract.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import json
from dataclasses import dataclass
from typing import Any

import pytest

from easycontract.chaincode import DEFAULT_INIT_MESSAGE, ERROR, OK, ContractChaincode
from easycontract.config import ChaincodeConfig
from easycontract.context import TransactionContext
from easycontract.contract import CONTRACT_API_NAMES, SYSTEM_CONTRACT_NAME, Contract, transaction
from easycontract.core.data import JSONSerializer, dumps, from_json_value
from easycontract.core.functions import CallType
from easycontract.core.handlers import UNDEFINED
from easycontract.core.utils.exceptions import RegistrationError
from easycontract.core.utils.text import slice_as_comma_sentence
from easycontract.metadata import InfoMetadata
from easycontract.metadata.io import MetadataFileReader


@dataclass
class Asset:
    id: str
    value: int


class AssetContract(Contract):
    def create_asset(self, ctx: TransactionContext, asset: Asset) -> None:
        ctx.get_stub().put_state(asset.id, dumps(asset).encode("utf-8"))

    def read_asset(self, ctx: TransactionContext, asset_id: str) -> Asset:
        data = ctx.get_stub().get_state(asset_id)
        if data is None:
            raise ValueError("Asset {0} does not exist".format(asset_id))
        return from_json_value(json.loads(data), Asset)

    def add(self, a: int, b: int) -> int:
        return a + b

    @transaction(name="Greet", evaluate=True)
    def greet(self, name: str) -> str:
        return "Hello, " + name

    def fail(self) -> str:
        raise RuntimeError("went wrong")

    def helper(self) -> str:
        return "not a transaction"

    def get_ignored_functions(self):
        return ["helper"]

    def get_evaluate_transactions(self):
        return ["read_asset"]


class OtherContract(Contract):
    def __init__(self):
        super().__init__(name="other", info=InfoMetadata(title="Other things", version="2.0.0"))

    def ping(self) -> str:
        return "pong"


class EmptyContract(Contract):
    pass


class PrivateOnlyContract(Contract):
    def _hidden(self) -> str:
        return "hidden"


class RecordingContext(TransactionContext):
    instances = []

    def __init__(self):
        super().__init__()
        RecordingContext.instances.append(self)


class WhoAmIContract(Contract):
    def __init__(self):
        super().__init__(transaction_context_handler=RecordingContext)

    def who(self, ctx: RecordingContext) -> str:
        return ctx.get_client_identity().get_id()


class FixedIdentity:
    def get_id(self) -> str:
        return "x509::alice"

    def get_msp_id(self) -> str:
        return "Org1MSP"


@pytest.fixture
def chaincode(missing_metadata_reader):
    return ContractChaincode(AssetContract(), OtherContract(), metadata_reader=missing_metadata_reader)


def test_registration_uses_class_name_and_custom_names(chaincode):
    contracts = chaincode.contracts

    assert set(contracts) == {"AssetContract", "other", SYSTEM_CONTRACT_NAME}
    assert chaincode.default_contract == "AssetContract"
    assert contracts["AssetContract"].info.title == "AssetContract"
    assert contracts["AssetContract"].info.version == "latest"
    assert contracts["other"].info.title == "Other things"


def test_registration_applies_ignored_private_and_evaluate_rules(chaincode):
    functions = chaincode.contracts["AssetContract"].functions

    assert set(functions) == {"create_asset", "read_asset", "add", "Greet", "fail"}
    assert functions["read_asset"].call_type is CallType.EVALUATE
    assert functions["Greet"].call_type is CallType.EVALUATE
    assert functions["add"].call_type is CallType.SUBMIT


def test_duplicate_contract_names_are_rejected(missing_metadata_reader):
    with pytest.raises(RegistrationError, match="multiple contracts being merged into chaincode with name other"):
        ContractChaincode(OtherContract(), OtherContract(), metadata_reader=missing_metadata_reader)


def test_contracts_without_public_methods_are_rejected(missing_metadata_reader):
    ignored = slice_as_comma_sentence(sorted(CONTRACT_API_NAMES))

    with pytest.raises(RegistrationError) as excinfo:
        ContractChaincode(EmptyContract(), metadata_reader=missing_metadata_reader)
    assert str(excinfo.value) == (
        "contracts are required to have at least 1 (non-ignored) public method. "
        "Contract EmptyContract has none. Method names that have been ignored: {0}".format(ignored)
    )

    with pytest.raises(RegistrationError, match="Contract PrivateOnlyContract has none"):
        ContractChaincode(PrivateOnlyContract(), metadata_reader=missing_metadata_reader)


def test_invalid_hooks_are_wrapped_with_their_kind(missing_metadata_reader):
    def before(ctx: TransactionContext, extra: str) -> None:
        return None

    def after(ctx: TransactionContext, value: str) -> None:
        return None

    contract = OtherContract()
    contract.before_transaction = before
    with pytest.raises(RegistrationError, match="^error creating Before: Before transactions may not take any params other than the transaction context$"):
        ContractChaincode(contract, metadata_reader=missing_metadata_reader)

    contract = OtherContract()
    contract.after_transaction = after
    with pytest.raises(RegistrationError, match="^error creating After: after transaction must take type any"):
        ContractChaincode(contract, metadata_reader=missing_metadata_reader)


def test_invoke_converts_arguments_and_returns_payload(chaincode, make_stub):
    response = chaincode.invoke(make_stub("add", "2", "40"))

    assert response.status == OK
    assert response.payload == b"42"
    assert response.ok


def test_invoke_routes_by_contract_prefix_and_upper_cases_first_letter(chaincode, make_stub):
    assert chaincode.invoke(make_stub("other:ping")).payload == b"pong"
    assert chaincode.invoke(make_stub("AssetContract:greet", "Bob")).payload == b"Hello, Bob"
    assert chaincode.invoke(make_stub("a:b:ping")).message == "Contract not found with name a:b"


def test_invoke_round_trips_structs_through_the_stub(chaincode, make_stub):
    stub = make_stub("create_asset", '{"id": "a1", "value": 3}')
    assert chaincode.invoke(stub).status == OK

    stub.function, stub.params = "read_asset", ["a1"]
    response = chaincode.invoke(stub)

    assert json.loads(response.payload) == {"id": "a1", "value": 3}


def test_invoke_error_responses(chaincode, make_stub):
    cases = [
        (make_stub("missing:add"), "Contract not found with name missing"),
        (make_stub("other:"), "Blank function name passed"),
        (make_stub("nothing"), "Function nothing not found in contract AssetContract"),
        (make_stub("helper"), "Function helper not found in contract AssetContract"),
        (make_stub("add", "1"), "Incorrect number of params. Expected 2, received 1"),
        (make_stub("add", "x", "1"), "Error managing parameter param0. Conversion error. cannot convert passed value x to int"),
        (make_stub("fail"), "went wrong"),
        (make_stub("read_asset", "zz"), "Asset zz does not exist"),
    ]

    for stub, message in cases:
        response = chaincode.invoke(stub)
        assert response.status == ERROR
        assert response.message == message
        assert response.payload == b""


def test_invoke_validates_struct_arguments_against_metadata(chaincode, make_stub):
    response = chaincode.invoke(make_stub("create_asset", '{"id": "a1"}'))

    assert response.status == ERROR
    assert response.message == (
        "Error managing parameter param0. Value did not match schema:\n"
        "1. param0: 'value' is a required property"
    )


def test_init_with_blank_function_uses_default_initiator(chaincode, make_stub):
    assert chaincode.init(make_stub("")).payload == DEFAULT_INIT_MESSAGE.encode("utf-8")
    assert chaincode.init(make_stub("add", "1", "1")).payload == b"2"


def test_hooks_run_in_order_and_short_circuit(missing_metadata_reader, make_stub):
    events = []

    def before(ctx: TransactionContext) -> None:
        events.append("before")

    def after(ctx: TransactionContext, value: Any) -> None:
        events.append(("after", value))

    def unknown(ctx: TransactionContext) -> str:
        events.append("unknown")
        return "handled"

    contract = OtherContract()
    contract.before_transaction = before
    contract.after_transaction = after
    contract.unknown_transaction = unknown
    chaincode = ContractChaincode(contract, metadata_reader=missing_metadata_reader)

    assert chaincode.invoke(make_stub("ping")).payload == b"pong"
    assert chaincode.invoke(make_stub("whatever")).payload == b"handled"
    assert events == ["before", ("after", "pong"), "before", "unknown", ("after", "handled")]


def test_after_hook_receives_undefined_without_result(missing_metadata_reader, make_stub):
    received = []

    class QuietContract(Contract):
        def noop(self) -> None:
            return None

    def after(value: Any) -> None:
        received.append(value)

    chaincode = ContractChaincode(QuietContract(after_transaction=after), metadata_reader=missing_metadata_reader)

    assert chaincode.invoke(make_stub("noop")).status == OK
    assert received == [UNDEFINED]


def test_failing_before_hook_stops_the_transaction(missing_metadata_reader, make_stub):
    calls = []

    def before() -> None:
        raise PermissionError("not allowed")

    class GuardedContract(Contract):
        def act(self) -> None:
            calls.append("act")

    chaincode = ContractChaincode(GuardedContract(before_transaction=before), metadata_reader=missing_metadata_reader)
    response = chaincode.invoke(make_stub("act"))

    assert response.message == "not allowed"
    assert calls == []


def test_custom_context_gets_stub_and_client_identity(missing_metadata_reader, make_stub):
    chaincode = ContractChaincode(
        WhoAmIContract(),
        metadata_reader=missing_metadata_reader,
        client_identity_factory=lambda stub: FixedIdentity(),
    )
    stub = make_stub("who")

    response = chaincode.invoke(stub)

    assert response.payload == b"x509::alice"
    assert RecordingContext.instances[-1].get_stub() is stub


def test_system_contract_serves_reflected_metadata(chaincode, make_stub):
    response = chaincode.invoke(make_stub(SYSTEM_CONTRACT_NAME + ":GetMetadata"))
    document = json.loads(response.payload)

    assert document["info"] == {"title": "undefined", "version": "latest"}
    assert list(document["contracts"]) == sorted(["AssetContract", "other", SYSTEM_CONTRACT_NAME])
    asset_contract = document["contracts"]["AssetContract"]
    assert asset_contract["default"] is True
    assert document["contracts"]["other"]["default"] is False
    assert document["contracts"][SYSTEM_CONTRACT_NAME]["default"] is False
    assert [item["name"] for item in asset_contract["transactions"]] == sorted(
        ["create_asset", "read_asset", "add", "Greet", "fail"]
    )
    add = next(item for item in asset_contract["transactions"] if item["name"] == "add")
    assert add["tag"] == ["submit", "SUBMIT"]
    assert [parameter["name"] for parameter in add["parameters"]] == ["param0", "param1"]
    assert add["returns"] == {"type": "integer", "format": "int64"}
    assert any(key.endswith(".Asset") for key in document["components"]["schemas"])


def test_metadata_is_built_once(chaincode):
    assert chaincode.metadata is chaincode.metadata


def test_contracts_cannot_be_added_after_metadata_is_built(chaincode):
    chaincode.metadata
    with pytest.raises(RegistrationError, match="cannot be added after the chaincode metadata has been built"):
        chaincode.add_contract(EmptyContract())


def test_configured_default_contract(missing_metadata_reader, make_stub):
    config = ChaincodeConfig(default_contract="other")
    chaincode = ContractChaincode(AssetContract(), OtherContract(), config=config, metadata_reader=missing_metadata_reader)

    assert chaincode.invoke(make_stub("ping")).payload == b"pong"

    with pytest.raises(RegistrationError, match="Default contract org.hyperledger.fabric is not a registered contract"):
        ContractChaincode(
            OtherContract(),
            config=ChaincodeConfig(default_contract=SYSTEM_CONTRACT_NAME),
            metadata_reader=missing_metadata_reader,
        )


def test_transaction_serializer_can_be_replaced(chaincode, make_stub):
    class ShoutingSerializer(JSONSerializer):
        def to_string(self, result, result_type, return_metadata=None, components=None):
            return super().to_string(result, result_type, return_metadata, components).upper()

    chaincode.transaction_serializer = ShoutingSerializer()

    assert chaincode.invoke(make_stub("Greet", "bob")).payload == b"HELLO, BOB"


def test_metadata_file_overrides_reflected_contracts(make_stub):
    class FileSystemWithMetadata:
        document = {
            "contracts": {
                "AssetContract": {
                    "name": "AssetContract",
                    "transactions": [
                        {
                            "name": "add",
                            "parameters": [
                                {"name": "a", "schema": {"type": "integer"}},
                                {"name": "b", "schema": {"type": "integer", "maximum": 10}},
                            ],
                            "returns": {"type": "integer"},
                        }
                    ],
                }
            }
        }

        def getcwd(self) -> str:
            return "/chaincode"

        def read_file(self, path: str) -> bytes:
            return json.dumps(self.document).encode("utf-8")

    reader = MetadataFileReader(file_system=FileSystemWithMetadata())
    chaincode = ContractChaincode(AssetContract(), metadata_reader=reader)

    assert chaincode.invoke(make_stub("add", "2", "8")).payload == b"10"
    response = chaincode.invoke(make_stub("add", "2", "40"))
    assert response.message == (
        "Error managing parameter b. Value did not match schema:\n1. b: 40 is greater than the maximum of 10"
    )
    assert chaincode.metadata.info.title == "undefined"
    assert list(chaincode.metadata.contracts) == ["AssetContract"]


def test_context_handler_must_accept_a_stub(missing_metadata_reader):
    class NoStubContext:
        pass

    contract = OtherContract()
    contract.transaction_context_handler = NoStubContext

    with pytest.raises(
        RegistrationError,
        match="Transaction context handler NoStubContext for contract other must implement set_stub",
    ):
        ContractChaincode(contract, metadata_reader=missing_metadata_reader)


def test_failing_after_hook_replaces_successful_result(missing_metadata_reader, make_stub):
    def after(ctx: TransactionContext, value: Any) -> None:
        raise RuntimeError("after failed")

    contract = OtherContract()
    contract.after_transaction = after
    chaincode = ContractChaincode(contract, metadata_reader=missing_metadata_reader)

    response = chaincode.invoke(make_stub("ping"))

    assert response.status == ERROR
    assert response.message == "after failed"
    assert response.payload == b""


def test_non_finite_float_arguments_fail_as_conversion_errors(missing_metadata_reader, make_stub):
    class ScaleContract(Contract):
        def scale(self, x: float) -> float:
            return x * 2

    chaincode = ContractChaincode(ScaleContract(), metadata_reader=missing_metadata_reader)

    for literal in ("inf", "-Inf", "nan"):
        response = chaincode.invoke(make_stub("scale", literal))
        assert response.status == ERROR
        assert response.message.startswith(
            "Error managing parameter param0. Conversion error. Value {0} cannot be represented as JSON for float.".format(
                literal
            )
        )

    assert chaincode.invoke(make_stub("scale", "1.5")).payload == b"3"

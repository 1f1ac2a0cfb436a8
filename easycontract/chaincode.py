#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Contract chaincode: registry and invocation dispatcher.

``ContractChaincode`` collects one or more ``Contract`` instances, parses
their public methods into transaction functions and routes each incoming
request to the right one. A request names its target as
``"<contract>:<function>"``; without a contract prefix the default contract
is used. Every call runs in the same order:

    before hook -> function (or unknown hook) -> after hook

and the first failure short-circuits into an error response. All
registration errors are raised from the constructor, while request errors
are returned as responses.

Usage:
    >>> chaincode = ContractChaincode(AssetContract(), config=ChaincodeConfig.from_env())
    >>> response = chaincode.invoke(stub)
    >>> response.status
    200

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import inspect
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import ChaincodeConfig
from .context import ChaincodeStub, ClientIdentity, SettableTransactionContext
from .contract import CONTRACT_API_NAMES, SYSTEM_CONTRACT_NAME, Contract, SystemContract, get_transaction_definition
from .core.data.serializer import JSONSerializer, TransactionSerializer
from .core.functions import CallType, ContractFunction
from .core.handlers import UNDEFINED, TransactionHandler, TransactionHandlerType
from .core.utils.exceptions import (
    BlankFunctionNameError,
    ContractError,
    ContractNotFoundError,
    ExceptionTranslator,
    FunctionNotFoundError,
    MetadataFileNotFoundError,
    RegistrationError,
)
from .core.utils.logger import ModernLogger
from .core.utils.text import slice_as_comma_sentence, upper_first
from .metadata.io import MetadataFileReader
from .metadata.models import (
    ContractChaincodeMetadata,
    ContractMetadata,
    InfoMetadata,
    validate_against_schema,
)

OK = 200
ERROR = 500

DEFAULT_INIT_MESSAGE = "Default initiator successful."
DEFAULT_VERSION = "latest"
UNDEFINED_TITLE = "undefined"


@dataclass(frozen=True)
class Response:
    """
    Outcome of a single invocation as handed back to the ledger runtime.
    """

    status: int
    payload: bytes = b""
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status < 400


def success_response(payload: bytes = b"") -> Response:
    return Response(status=OK, payload=payload)


def error_response(message: str) -> Response:
    return Response(status=ERROR, message=message)


@dataclass(frozen=True)
class ContractRegistration:
    """
    Everything the dispatcher knows about one registered contract.
    """

    name: str
    info: InfoMetadata
    context_type: type
    functions: Dict[str, ContractFunction] = field(default_factory=dict)
    before: Optional[TransactionHandler] = None
    after: Optional[TransactionHandler] = None
    unknown: Optional[TransactionHandler] = None


class ContractChaincode(ModernLogger):
    """
    Chaincode built from a set of contracts.

    Metadata is built on first use: the optional metadata file is read, the
    reflected metadata fills whatever it leaves empty, and the result is
    compiled and validated once.
    """

    def __init__(
        self,
        *contracts: Contract,
        config: Optional[ChaincodeConfig] = None,
        metadata_reader: Optional[MetadataFileReader] = None,
        client_identity_factory: Optional[Callable[[ChaincodeStub], ClientIdentity]] = None,
        info: Optional[InfoMetadata] = None,
    ) -> None:
        self.config = config or ChaincodeConfig()
        ModernLogger.__init__(self, name="easycontract.chaincode", level=self.config.log_level)

        self.chaincode_info = info
        self.transaction_serializer: TransactionSerializer = JSONSerializer()
        self.default_contract = ""

        self._contracts: Dict[str, ContractRegistration] = {}
        self._metadata_reader = metadata_reader or MetadataFileReader(config=self.config)
        self._client_identity_factory = client_identity_factory
        self._metadata: Optional[ContractChaincodeMetadata] = None
        self._metadata_lock = threading.Lock()

        for contract in contracts:
            self.add_contract(contract)

        self._system_contract = SystemContract()
        self._add_contract(self._system_contract)

        if self.config.default_contract:
            self._use_default_contract(self.config.default_contract)

    @property
    def contracts(self) -> Dict[str, ContractRegistration]:
        return dict(self._contracts)

    def _use_default_contract(self, name: str) -> None:
        if name == SYSTEM_CONTRACT_NAME or name not in self._contracts:
            raise RegistrationError("Default contract {0} is not a registered contract".format(name))
        self.default_contract = name

    # Registration

    def add_contract(self, contract: Contract) -> ContractRegistration:
        """
        Register ``contract``. The first contract added becomes the default.
        """
        registration = self._add_contract(contract)
        if not self.default_contract:
            self.default_contract = registration.name
        return registration

    def _add_contract(self, contract: Contract) -> ContractRegistration:
        if not isinstance(contract, Contract):
            raise RegistrationError(
                "Cannot add {0} as a contract. Contracts must subclass Contract".format(type(contract).__name__)
            )
        if self._metadata is not None:
            raise RegistrationError("Contracts cannot be added after the chaincode metadata has been built")

        name = contract.get_name() or type(contract).__name__
        if name in self._contracts:
            raise RegistrationError("multiple contracts being merged into chaincode with name {0}".format(name))

        context_type = contract.get_transaction_context_handler()
        if not isinstance(context_type, type):
            context_type = type(context_type)
        if not issubclass(context_type, SettableTransactionContext):
            raise RegistrationError(
                "Transaction context handler {0} for contract {1} must implement set_stub".format(
                    context_type.__name__, name
                )
            )

        source_info = contract.get_info() or InfoMetadata()
        info = replace(
            source_info,
            title=source_info.title or name,
            version=source_info.version or DEFAULT_VERSION,
        )

        functions = self._discover_functions(contract, name, context_type)
        registration = ContractRegistration(
            name=name,
            info=info,
            context_type=context_type,
            functions=functions,
            before=self._make_hook(contract.get_before_transaction(), context_type, TransactionHandlerType.BEFORE),
            after=self._make_hook(contract.get_after_transaction(), context_type, TransactionHandlerType.AFTER),
            unknown=self._make_hook(contract.get_unknown_transaction(), context_type, TransactionHandlerType.UNKNOWN),
        )
        self._contracts[name] = registration
        self.info("Registered contract %s with %d transaction(s)", name, len(functions))
        return registration

    def _discover_functions(self, contract: Contract, name: str, context_type: type) -> Dict[str, ContractFunction]:
        ignored = sorted(CONTRACT_API_NAMES) + list(contract.get_ignored_functions())
        evaluate = set(contract.get_evaluate_transactions())

        functions: Dict[str, ContractFunction] = {}
        for attr_name, member in inspect.getmembers(type(contract), predicate=inspect.isroutine):
            if attr_name.startswith("_") or attr_name in ignored:
                continue
            definition = get_transaction_definition(member)
            exposed = definition.name if definition is not None and definition.name else attr_name
            if exposed in functions:
                raise RegistrationError(
                    "Contract {0} exposes more than one transaction named {1}".format(name, exposed)
                )

            is_evaluate = (definition is not None and definition.evaluate) or attr_name in evaluate or exposed in evaluate
            call_type = CallType.EVALUATE if is_evaluate else CallType.SUBMIT
            functions[exposed] = ContractFunction.from_callable(getattr(contract, attr_name), call_type, context_type)

        if not functions:
            raise RegistrationError(
                "contracts are required to have at least 1 (non-ignored) public method. "
                "Contract {0} has none. Method names that have been ignored: {1}".format(
                    name, slice_as_comma_sentence(ignored)
                )
            )
        return functions

    @staticmethod
    def _make_hook(
        fn: Optional[Callable[..., Any]], context_type: type, handles_type: TransactionHandlerType
    ) -> Optional[TransactionHandler]:
        if fn is None:
            return None
        try:
            return TransactionHandler.from_hook(fn, context_type, handles_type)
        except ContractError as exc:
            raise ExceptionTranslator.as_registration_error(exc, "error creating {0}".format(handles_type)) from exc

    # Metadata

    @property
    def metadata(self) -> ContractChaincodeMetadata:
        if self._metadata is None:
            with self._metadata_lock:
                if self._metadata is None:
                    self._metadata = self._build_metadata()
        return self._metadata

    def _build_metadata(self) -> ContractChaincodeMetadata:
        try:
            built = self._metadata_reader.read()
        except MetadataFileNotFoundError:
            self.debug("No metadata file found, using reflected metadata only")
            built = ContractChaincodeMetadata()

        built.append(self.reflect_metadata())
        built.compile_schemas()
        validate_against_schema(built)
        self._system_contract._set_metadata(built.to_json())
        self.debug("Chaincode metadata built for %d contract(s)", len(built.contracts))
        return built

    def reflect_metadata(self) -> ContractChaincodeMetadata:
        """
        Metadata derived from the registered contracts alone.
        """
        reflected = ContractChaincodeMetadata()
        source_info = self.chaincode_info or InfoMetadata()
        reflected.info = replace(
            source_info,
            title=source_info.title or UNDEFINED_TITLE,
            version=source_info.version or DEFAULT_VERSION,
        )

        for name in sorted(self._contracts):
            registration = self._contracts[name]
            contract_metadata = ContractMetadata(
                name=name,
                info=replace(registration.info),
                default=name == self.default_contract,
            )
            for function_name in sorted(registration.functions):
                contract_metadata.transactions.append(
                    registration.functions[function_name].reflect_metadata(function_name, reflected.components)
                )
            reflected.contracts[name] = contract_metadata
        return reflected

    # Dispatch

    def resolve(self, raw: str) -> Tuple[str, str]:
        """
        Split ``"<contract>:<function>"`` on its last separator.
        """
        contract_name, separator, function_name = raw.rpartition(":")
        if not separator:
            return self.default_contract, raw
        return contract_name, function_name

    def init(self, stub: ChaincodeStub) -> Response:
        raw, _ = stub.get_function_and_parameters()
        if raw == "":
            return success_response(DEFAULT_INIT_MESSAGE.encode("utf-8"))
        return self.invoke(stub)

    def invoke(self, stub: ChaincodeStub) -> Response:
        raw, params = stub.get_function_and_parameters()
        self.debug("Invoking %s with %d argument(s)", raw, len(params))
        try:
            payload = self._dispatch(stub, raw, list(params))
        except Exception as exc:
            message = ExceptionTranslator.as_response_message(exc)
            self.warning("Transaction %s failed: %s", raw, message)
            return error_response(message)
        return success_response(payload.encode("utf-8"))

    def _lookup(self, registration: ContractRegistration, function_name: str) -> Tuple[str, Optional[ContractFunction]]:
        if function_name in registration.functions:
            return function_name, registration.functions[function_name]
        upper = upper_first(function_name)
        return upper, registration.functions.get(upper)

    def _new_context(self, registration: ContractRegistration, stub: ChaincodeStub) -> Any:
        ctx = registration.context_type()
        ctx.set_stub(stub)
        setter = getattr(ctx, "set_client_identity", None)
        if self._client_identity_factory is not None and callable(setter):
            setter(self._client_identity_factory(stub))
        return ctx

    def _dispatch(self, stub: ChaincodeStub, raw: str, params: List[str]) -> str:
        contract_name, function_name = self.resolve(raw)
        registration = self._contracts.get(contract_name)
        if registration is None:
            raise ContractNotFoundError("Contract not found with name {0}".format(contract_name))
        if function_name == "":
            raise BlankFunctionNameError("Blank function name passed")

        metadata = self.metadata
        serializer = self.transaction_serializer
        ctx = self._new_context(registration, stub)

        if registration.before is not None:
            registration.before.call_hook(ctx, None, serializer)

        exposed, function = self._lookup(registration, function_name)
        if function is not None:
            contract_metadata = metadata.contracts.get(contract_name)
            transaction_metadata = contract_metadata.get_transaction(exposed) if contract_metadata else None
            payload, value = function.call(ctx, transaction_metadata, metadata.components, serializer, *params)
        elif registration.unknown is not None:
            payload, value = registration.unknown.call_hook(ctx, None, serializer)
        else:
            raise FunctionNotFoundError(
                "Function {0} not found in contract {1}".format(function_name, contract_name)
            )

        if registration.after is not None:
            registration.after.call_hook(ctx, UNDEFINED if value is None else value, serializer)
        return payload


__all__ = [
    "ContractChaincode",
    "ContractRegistration",
    "DEFAULT_INIT_MESSAGE",
    "ERROR",
    "OK",
    "Response",
]

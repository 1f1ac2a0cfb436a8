#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Transaction function parsing and invocation.

A ``ContractFunction`` is built once per exposed method when a contract is
registered. Parsing inspects the signature and the evaluated annotations:

* the transaction context may only appear as the first parameter, and is
  recognised either by identity with the contract's context class or by being
  a ``Protocol`` that class satisfies;
* every other parameter must be a type that can cross the wire;
* a top-level ``Tuple[...]`` return declares two return values at most, the
  second of which must be ``Exception``.

At call time the wire strings are converted through the chaincode's
serializer, the callable runs, and its result is turned back into text.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import inspect
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..metadata.models import ComponentMetadata, ParameterMetadata, ReturnMetadata, TransactionMetadata
from ..metadata.schema import get_schema
from .types import is_error_type, is_protocol, resolve_hints
from .utils.exceptions import (
    ArgumentError,
    ContractError,
    InterfaceMismatchError,
    RegistrationError,
    TransactionResponseError,
    TypeValidationError,
)
from .utils.text import type_name
from .validation import type_is_valid, type_matches_interface

_INVALID_PARAMETER_KINDS = (
    inspect.Parameter.VAR_POSITIONAL,
    inspect.Parameter.VAR_KEYWORD,
    inspect.Parameter.KEYWORD_ONLY,
)


class CallType(str, Enum):
    """How a transaction is meant to be sent."""

    SUBMIT = "submit"
    EVALUATE = "evaluate"


@dataclass(frozen=True)
class ParameterShape:
    context: Optional[Any] = None
    fields: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class ReturnShape:
    success: Optional[Any] = None
    returns_error: bool = False


def _function_name(fn: Any) -> str:
    return getattr(fn, "__name__", None) or type(fn).__name__


def _is_context_parameter(annotation: Any, context_type: Any, name: str) -> bool:
    if annotation is context_type:
        return True
    if not is_protocol(annotation):
        return False
    try:
        type_matches_interface(context_type, annotation)
    except InterfaceMismatchError as exc:
        raise RegistrationError(
            "{0} contains invalid transaction context interface type. "
            "Set transaction context for contract does not meet interface used in method. {1}".format(name, exc),
            cause=exc,
        ) from exc
    return True


def parse_parameters(fn: Callable[..., Any], context_type: Any, name: str) -> ParameterShape:
    hints = resolve_hints(fn)
    context = None
    fields: List[Any] = []

    for index, parameter in enumerate(inspect.signature(fn).parameters.values()):
        if parameter.kind in _INVALID_PARAMETER_KINDS:
            raise RegistrationError(
                "{0} contains invalid parameter type. Parameter {1} must be positional".format(name, parameter.name)
            )
        annotation = hints.get(parameter.name, Any)

        try:
            type_is_valid(annotation, [context_type])
            type_error = None
        except TypeValidationError as exc:
            type_error = exc

        if type_error is not None:
            if index != 0 or not _is_context_parameter(annotation, context_type, name):
                raise RegistrationError(
                    "{0} contains invalid parameter type. {1}".format(name, type_error), cause=type_error
                )
            context = context_type
            continue

        if annotation is context_type:
            if index != 0:
                raise RegistrationError(
                    "Functions requiring the TransactionContext must require it as the first parameter. "
                    "{0} takes it in as parameter {1}".format(name, index)
                )
            context = context_type
            continue

        fields.append(annotation)

    return ParameterShape(context=context, fields=tuple(fields))


def _declared_returns(fn: Callable[..., Any]) -> List[Any]:
    hints = resolve_hints(fn)
    if "return" not in hints:
        return [Any]
    returned = hints["return"]
    if returned is None or returned is type(None):
        return []
    if typing.get_origin(returned) is tuple:
        args = typing.get_args(returned)
        if args == ((),):
            return []
        if not (len(args) == 2 and args[1] is Ellipsis):
            return list(args)
    return [returned]


def parse_returns(fn: Callable[..., Any], name: str) -> ReturnShape:
    declared = _declared_returns(fn)

    if len(declared) > 2:
        raise RegistrationError(
            "Functions may only return a maximum of two values. {0} returns {1}".format(name, len(declared))
        )

    if len(declared) == 2:
        first, second = declared
        try:
            type_is_valid(first)
        except TypeValidationError as exc:
            raise RegistrationError(
                "{0} contains invalid first return type. {1}".format(name, exc), cause=exc
            ) from exc
        if not is_error_type(second):
            raise RegistrationError(
                "{0} contains invalid second return type. Type {1} is not valid. Expected Exception".format(
                    name, type_name(second)
                )
            )
        return ReturnShape(success=first, returns_error=True)

    if len(declared) == 1:
        single = declared[0]
        try:
            type_is_valid(single, allow_error=True)
        except TypeValidationError as exc:
            raise RegistrationError(
                "{0} contains invalid single return type. {1}".format(name, exc), cause=exc
            ) from exc
        if is_error_type(single):
            return ReturnShape(returns_error=True)
        return ReturnShape(success=single)

    return ReturnShape()


def parse_method(fn: Callable[..., Any], context_type: Any) -> Tuple[ParameterShape, ReturnShape]:
    """
    Parse the parameter and return shape of ``fn``.

    Raises ``RegistrationError`` describing the first offending parameter or
    return annotation.
    """
    name = _function_name(fn)
    return parse_parameters(fn, context_type, name), parse_returns(fn, name)


class ContractFunction:
    """
    A parsed transaction function ready to be invoked with wire arguments.
    """

    def __init__(
        self,
        function: Callable[..., Any],
        call_type: CallType,
        params: ParameterShape,
        returns: ReturnShape,
    ) -> None:
        self.function = function
        self.call_type = call_type
        self.params = params
        self.returns = returns

    @classmethod
    def from_callable(cls, fn: Any, call_type: CallType, context_type: Any) -> "ContractFunction":
        if not callable(fn) or isinstance(fn, type):
            raise RegistrationError(
                "Cannot create new contract function from {0}. Can only use callables".format(type(fn).__name__)
            )
        params, returns = parse_method(fn, context_type)
        return cls(fn, call_type, params, returns)

    def format_args(
        self,
        ctx: Any,
        supplementary: Optional[Sequence[ParameterMetadata]],
        components: Optional[ComponentMetadata],
        params: Sequence[str],
        serializer: Any,
    ) -> List[Any]:
        expected = len(self.params.fields)
        if supplementary is not None and len(supplementary) != expected:
            raise ArgumentError(
                "Incorrect number of params in supplementary metadata. Expected {0}, received {1}".format(
                    expected, len(supplementary)
                )
            )
        if len(params) != expected:
            raise ArgumentError("Incorrect number of params. Expected {0}, received {1}".format(expected, len(params)))

        values: List[Any] = []
        if self.params.context is not None:
            values.append(ctx)

        for index, field_type in enumerate(self.params.fields):
            metadata = supplementary[index] if supplementary is not None else None
            try:
                values.append(serializer.from_string(params[index], field_type, metadata, components))
            except ContractError as exc:
                label = " " + metadata.name if metadata is not None else ""
                raise ArgumentError("Error managing parameter{0}. {1}".format(label, exc), cause=exc) from exc
        return values

    def handle_response(
        self,
        response: Any,
        return_metadata: Optional[ReturnMetadata],
        components: Optional[ComponentMetadata],
        serializer: Any,
    ) -> Tuple[str, Any]:
        """
        Split ``response`` by the declared return shape.

        A returned exception is raised. Otherwise the success value comes back
        alongside its wire text.
        """
        success_type = self.returns.success
        error = None
        value = None

        if success_type is not None and self.returns.returns_error:
            if not isinstance(response, tuple) or len(response) != 2:
                raise TransactionResponseError("response does not match expected return for given function")
            value, error = response
        elif success_type is not None:
            value = response
        elif self.returns.returns_error:
            error = response
        elif response is not None:
            raise TransactionResponseError("response does not match expected return for given function")

        if error is not None:
            if not isinstance(error, BaseException):
                raise TransactionResponseError("response does not match expected return for given function")
            raise error

        text = ""
        if success_type is not None and serializer is not None:
            try:
                text = serializer.to_string(value, success_type, return_metadata, components)
            except ContractError as exc:
                raise TransactionResponseError("Error handling success response. {0}".format(exc), cause=exc) from exc
        return text, value

    def call(
        self,
        ctx: Any,
        transaction_metadata: Optional[TransactionMetadata],
        components: Optional[ComponentMetadata],
        serializer: Any,
        *params: str,
    ) -> Tuple[str, Any]:
        supplementary = None
        return_metadata = None
        if transaction_metadata is not None:
            supplementary = transaction_metadata.parameters
            return_metadata = transaction_metadata.returns

        values = self.format_args(ctx, supplementary, components, params, serializer)
        response = self.function(*values)
        return self.handle_response(response, return_metadata, components, serializer)

    def reflect_metadata(self, name: str, components: ComponentMetadata) -> TransactionMetadata:
        transaction = TransactionMetadata(
            name=name,
            tag=[self.call_type.value, self.call_type.value.upper()],
        )
        for index, field_type in enumerate(self.params.fields):
            transaction.parameters.append(
                ParameterMetadata(name="param{0}".format(index), schema=get_schema(field_type, components))
            )
        if self.returns.success is not None:
            transaction.returns = ReturnMetadata(schema=get_schema(self.returns.success, components))
        return transaction


__all__ = [
    "CallType",
    "ContractFunction",
    "ParameterShape",
    "ReturnShape",
    "parse_method",
]

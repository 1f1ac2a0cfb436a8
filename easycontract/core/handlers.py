#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Before, after and unknown transaction hooks.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from enum import Enum
from typing import Any, List, Tuple

from .functions import CallType, ContractFunction, ParameterShape, ReturnShape
from .types import is_any_type
from .utils.exceptions import RegistrationError


class TransactionHandlerType(Enum):
    BEFORE = "Before"
    UNKNOWN = "Unknown"
    AFTER = "After"

    def __str__(self) -> str:
        return self.value


class _Undefined:
    """Marker handed to after hooks when the transaction produced no value."""

    _instance = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "undefined"


UNDEFINED = _Undefined()


class TransactionHandler(ContractFunction):
    """
    A hook run around every transaction of a contract.
    """

    def __init__(
        self,
        function: Any,
        params: ParameterShape,
        returns: ReturnShape,
        handles_type: TransactionHandlerType,
    ) -> None:
        super().__init__(function, CallType.SUBMIT, params, returns)
        self.handles_type = handles_type

    @classmethod
    def from_hook(cls, fn: Any, context_type: Any, handles_type: TransactionHandlerType) -> "TransactionHandler":
        parsed = ContractFunction.from_callable(fn, CallType.SUBMIT, context_type)
        fields = parsed.params.fields

        if handles_type is not TransactionHandlerType.AFTER and fields:
            raise RegistrationError(
                "{0} transactions may not take any params other than the transaction context".format(handles_type)
            )
        if handles_type is TransactionHandlerType.AFTER:
            if len(fields) > 1:
                raise RegistrationError("after transactions must take at most one non-context param")
            if fields and not is_any_type(fields[0]):
                raise RegistrationError("after transaction must take type any as their only non-context param")

        return cls(parsed.function, parsed.params, parsed.returns, handles_type)

    def call_hook(self, ctx: Any, data: Any, serializer: Any) -> Tuple[str, Any]:
        """
        Run the hook. Only after hooks receive ``data``.
        """
        values: List[Any] = []
        if self.params.context is not None:
            values.append(ctx)
        if self.handles_type is TransactionHandlerType.AFTER and self.params.fields:
            values.append(data)

        response = self.function(*values)
        return self.handle_response(response, None, None, serializer)


__all__ = ["TransactionHandler", "TransactionHandlerType", "UNDEFINED"]

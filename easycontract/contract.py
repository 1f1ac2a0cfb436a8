#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Contract base class and the ``@transaction`` decorator.

Subclass ``Contract`` and define public methods; each becomes a transaction
once the contract is handed to ``ContractChaincode``::

    class AssetContract(Contract):
        def __init__(self):
            super().__init__(name="assets")

        def create(self, ctx: TransactionContext, key: str, value: int) -> None:
            ...

        @transaction(name="ReadAsset", evaluate=True)
        def read(self, ctx: TransactionContext, key: str) -> int:
            ...

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, List, Optional, Union

from .context import TransactionContext
from .metadata.models import InfoMetadata

_TRANSACTION_ATTR = "__easycontract_transaction__"

SYSTEM_CONTRACT_NAME = "org.hyperledger.fabric"


@dataclass(frozen=True)
class TransactionDefinition:
    """
    Per-method overrides declared with ``@transaction``.
    """

    name: Optional[str] = None
    evaluate: bool = False


def transaction(
    func: Optional[Callable[..., Any]] = None,
    *,
    name: Optional[str] = None,
    evaluate: bool = False,
) -> Union[Callable[[Callable[..., Any]], Callable[..., Any]], Callable[..., Any]]:
    """
    Mark a contract method with its exposed name and call type.

    Supports both ``@transaction`` and ``@transaction(...)``.
    """
    exposed = name.strip() if name is not None else None
    if exposed == "":
        raise ValueError("Transaction name cannot be empty")
    definition = TransactionDefinition(name=exposed, evaluate=evaluate)

    def decorator(target: Callable[..., Any]) -> Callable[..., Any]:
        setattr(target, _TRANSACTION_ATTR, definition)
        return target

    if func is not None and callable(func):
        return decorator(func)
    return decorator


def get_transaction_definition(member: Any) -> Optional[TransactionDefinition]:
    target = getattr(member, "__func__", member)
    definition = getattr(target, _TRANSACTION_ATTR, None)
    if isinstance(definition, TransactionDefinition):
        return definition
    return None


class Contract:
    """
    Base class for user contracts.

    Every constructor argument is optional. Hooks are plain callables that
    may take the transaction context as their first parameter.
    """

    def __init__(
        self,
        name: str = "",
        info: Optional[InfoMetadata] = None,
        transaction_context_handler: Optional[type] = None,
        before_transaction: Optional[Callable[..., Any]] = None,
        after_transaction: Optional[Callable[..., Any]] = None,
        unknown_transaction: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.name = name
        self.info = info if info is not None else InfoMetadata()
        self.transaction_context_handler = transaction_context_handler
        self.before_transaction = before_transaction
        self.after_transaction = after_transaction
        self.unknown_transaction = unknown_transaction

    def get_name(self) -> str:
        return self.name

    def get_info(self) -> InfoMetadata:
        return self.info

    def get_transaction_context_handler(self) -> type:
        if self.transaction_context_handler is None:
            return TransactionContext
        return self.transaction_context_handler

    def get_before_transaction(self) -> Optional[Callable[..., Any]]:
        return self.before_transaction

    def get_after_transaction(self) -> Optional[Callable[..., Any]]:
        return self.after_transaction

    def get_unknown_transaction(self) -> Optional[Callable[..., Any]]:
        return self.unknown_transaction

    def get_evaluate_transactions(self) -> List[str]:
        """Names of methods that only read the ledger."""
        return []

    def get_ignored_functions(self) -> List[str]:
        """Names of public methods that are not transactions."""
        return []


# Methods of the base class are never exposed as transactions.
CONTRACT_API_NAMES: FrozenSet[str] = frozenset(
    attr for attr, value in vars(Contract).items() if not attr.startswith("_") and callable(value)
)


class SystemContract(Contract):
    """
    Built-in contract serving the chaincode metadata document.
    """

    def __init__(self) -> None:
        super().__init__(name=SYSTEM_CONTRACT_NAME)
        self._metadata = ""

    def _set_metadata(self, metadata: str) -> None:
        self._metadata = metadata

    @transaction(name="GetMetadata", evaluate=True)
    def get_metadata(self) -> str:
        """JSON metadata for every contract in the chaincode."""
        return self._metadata


__all__ = [
    "CONTRACT_API_NAMES",
    "Contract",
    "SYSTEM_CONTRACT_NAME",
    "SystemContract",
    "TransactionDefinition",
    "get_transaction_definition",
    "transaction",
]

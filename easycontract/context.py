#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Per-call transaction context and the collaborators it carries.

The ledger runtime hands every invocation a stub. A fresh context is built
for each call, the stub (and optionally a client identity) is attached, and
the context is passed to any transaction function or hook that asks for it.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class ChaincodeStub(Protocol):
    """Ledger access for a single transaction"""

    def get_function_and_parameters(self) -> Tuple[str, List[str]]:
        ...

    def get_tx_id(self) -> str:
        ...

    def get_state(self, key: str) -> Optional[bytes]:
        ...

    def put_state(self, key: str, value: bytes) -> None:
        ...

    def del_state(self, key: str) -> None:
        ...

    def get_private_data(self, collection: str, key: str) -> Optional[bytes]:
        ...

    def put_private_data(self, collection: str, key: str, value: bytes) -> None:
        ...

    def del_private_data(self, collection: str, key: str) -> None:
        ...

    def get_creator(self) -> bytes:
        ...

    def get_transient(self) -> Dict[str, bytes]:
        ...


@runtime_checkable
class ClientIdentity(Protocol):
    """Identity of the client that submitted the transaction"""

    def get_id(self) -> str:
        ...

    def get_msp_id(self) -> str:
        ...


@runtime_checkable
class SettableTransactionContext(Protocol):
    """What the dispatcher requires of a context class"""

    def set_stub(self, stub: ChaincodeStub) -> None:
        ...


class TransactionContext:
    """
    Default context: holds the stub and client identity for one call.
    """

    def __init__(self) -> None:
        self._stub: Optional[ChaincodeStub] = None
        self._client_identity: Optional[ClientIdentity] = None

    def set_stub(self, stub: ChaincodeStub) -> None:
        self._stub = stub

    def get_stub(self) -> ChaincodeStub:
        return self._stub

    def set_client_identity(self, client_identity: ClientIdentity) -> None:
        self._client_identity = client_identity

    def get_client_identity(self) -> ClientIdentity:
        return self._client_identity


__all__ = [
    "ChaincodeStub",
    "ClientIdentity",
    "SettableTransactionContext",
    "TransactionContext",
]

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Collection-oriented view of the ledger for use inside transactions.

    collection = get_ledger(ctx).get_default_collection()
    collection.create_state("asset1", b"{}")

The world state collection maps onto the stub's plain state calls; any
other name is treated as a private data collection.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from dataclasses import dataclass
from typing import Any, Optional

from .core.utils.exceptions import LedgerError

WORLD_STATE = "worldstate"


@dataclass(frozen=True)
class State:
    key: str
    data: bytes

    def get_bytes(self) -> bytes:
        return self.data


class Collection:
    """
    Named set of states reached through the transaction's stub.
    """

    def __init__(self, name: str, ctx: Any) -> None:
        self.name = name
        self.ctx = ctx

    @property
    def is_world_state(self) -> bool:
        return self.name == WORLD_STATE

    def _stub(self) -> Any:
        return self.ctx.get_stub()

    def _read(self, key: str) -> Optional[bytes]:
        if self.is_world_state:
            return self._stub().get_state(key)
        return self._stub().get_private_data(self.name, key)

    def _write(self, key: str, data: bytes) -> None:
        if self.is_world_state:
            self._stub().put_state(key, data)
        else:
            self._stub().put_private_data(self.name, key, data)

    def _delete(self, key: str) -> None:
        if self.is_world_state:
            self._stub().del_state(key)
        else:
            self._stub().del_private_data(self.name, key)

    def _failure(self, action: str, key: str, detail: Any) -> LedgerError:
        cause = detail if isinstance(detail, BaseException) else None
        return LedgerError(
            "Failed to {0} state {1} in collection {2}. {3}".format(action, key, self.name, detail), cause=cause
        )

    def get_state(self, key: str) -> State:
        try:
            data = self._read(key)
        except Exception as exc:
            raise self._failure("get", key, exc) from exc
        if data is None:
            raise self._failure("get", key, "State does not exist for key")
        return State(key=key, data=bytes(data))

    def create_state(self, key: str, data: bytes) -> None:
        """
        Add a new state; fails if ``key`` already holds one.
        """
        try:
            existing = self._read(key)
        except Exception as exc:
            raise self._failure("create new", key, exc) from exc
        if existing is not None:
            raise self._failure("create new", key, "State already exists for key")
        try:
            self._write(key, data)
        except Exception as exc:
            raise self._failure("create new", key, exc) from exc

    def update_state(self, key: str, data: bytes) -> None:
        """
        Overwrite an existing state; fails if ``key`` holds none.
        """
        try:
            existing = self._read(key)
        except Exception as exc:
            raise self._failure("update", key, exc) from exc
        if existing is None:
            raise self._failure("update", key, "State does not exist for key")
        try:
            self._write(key, data)
        except Exception as exc:
            raise self._failure("update", key, exc) from exc

    def delete_state(self, key: str) -> None:
        try:
            self._delete(key)
        except Exception as exc:
            raise self._failure("delete", key, exc) from exc


class Ledger:
    def __init__(self, ctx: Any) -> None:
        self.ctx = ctx

    def get_collection(self, name: str) -> Collection:
        return Collection(name, self.ctx)

    def get_default_collection(self) -> Collection:
        return self.get_collection(WORLD_STATE)


def get_ledger(ctx: Any) -> Ledger:
    """Ledger bound to the stub of ``ctx``."""
    return Ledger(ctx)


__all__ = ["Collection", "Ledger", "State", "WORLD_STATE", "get_ledger"]

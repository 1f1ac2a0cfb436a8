#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Pytest bootstrap for local package imports and an in-memory stub.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class MockStub:
    """
    Dictionary-backed stand-in for the ledger runtime's stub.
    """

    def __init__(self, function: str = "", params: Optional[List[str]] = None, tx_id: str = "tx-1") -> None:
        self.function = function
        self.params = list(params or [])
        self.tx_id = tx_id
        self.state: Dict[str, bytes] = {}
        self.private: Dict[Tuple[str, str], bytes] = {}
        self.failure: Optional[Exception] = None

    def _check(self) -> None:
        if self.failure is not None:
            raise self.failure

    def get_function_and_parameters(self) -> Tuple[str, List[str]]:
        return self.function, list(self.params)

    def get_tx_id(self) -> str:
        return self.tx_id

    def get_state(self, key: str) -> Optional[bytes]:
        self._check()
        return self.state.get(key)

    def put_state(self, key: str, value: bytes) -> None:
        self._check()
        self.state[key] = value

    def del_state(self, key: str) -> None:
        self._check()
        self.state.pop(key, None)

    def get_private_data(self, collection: str, key: str) -> Optional[bytes]:
        self._check()
        return self.private.get((collection, key))

    def put_private_data(self, collection: str, key: str, value: bytes) -> None:
        self._check()
        self.private[(collection, key)] = value

    def del_private_data(self, collection: str, key: str) -> None:
        self._check()
        self.private.pop((collection, key), None)

    def get_creator(self) -> bytes:
        return b"creator"

    def get_transient(self) -> Dict[str, bytes]:
        return {}


class MissingFileSystem:
    """FileSystem with no metadata files at all."""

    def getcwd(self) -> str:
        return "/chaincode"

    def read_file(self, path: str) -> bytes:
        raise FileNotFoundError(path)


@pytest.fixture
def make_stub():
    def factory(function: str = "", *params: str) -> MockStub:
        return MockStub(function, list(params))

    return factory


@pytest.fixture
def missing_metadata_reader():
    from easycontract.metadata.io import MetadataFileReader

    return MetadataFileReader(file_system=MissingFileSystem())

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tests for the collection-oriented ledger facade.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import pytest

from easycontract.context import TransactionContext
from easycontract.core.utils.exceptions import LedgerError
from easycontract.ledger import WORLD_STATE, State, get_ledger


@pytest.fixture
def ctx(make_stub):
    context = TransactionContext()
    context.set_stub(make_stub("create"))
    return context


def test_default_collection_is_world_state(ctx):
    collection = get_ledger(ctx).get_default_collection()

    assert collection.name == WORLD_STATE
    collection.create_state("k1", b"v1")

    assert ctx.get_stub().state == {"k1": b"v1"}
    assert collection.get_state("k1") == State(key="k1", data=b"v1")


def test_create_update_and_delete_lifecycle(ctx):
    collection = get_ledger(ctx).get_default_collection()

    with pytest.raises(LedgerError, match="^Failed to update state k1 in collection worldstate. State does not exist for key$"):
        collection.update_state("k1", b"v2")

    collection.create_state("k1", b"v1")
    with pytest.raises(LedgerError, match="^Failed to create new state k1 in collection worldstate. State already exists for key$"):
        collection.create_state("k1", b"again")

    collection.update_state("k1", b"v2")
    assert collection.get_state("k1").get_bytes() == b"v2"

    collection.delete_state("k1")
    with pytest.raises(LedgerError, match="^Failed to get state k1 in collection worldstate. State does not exist for key$"):
        collection.get_state("k1")


def test_named_collections_use_private_data(ctx):
    collection = get_ledger(ctx).get_collection("secrets")

    collection.create_state("k1", b"hidden")

    assert ctx.get_stub().state == {}
    assert ctx.get_stub().private == {("secrets", "k1"): b"hidden"}
    collection.delete_state("k1")
    assert ctx.get_stub().private == {}


def test_stub_failures_are_wrapped(ctx):
    ctx.get_stub().failure = RuntimeError("peer unavailable")
    collection = get_ledger(ctx).get_default_collection()

    with pytest.raises(LedgerError, match="^Failed to create new state k1 in collection worldstate. peer unavailable$"):
        collection.create_state("k1", b"v1")
    with pytest.raises(LedgerError, match="^Failed to delete state k1 in collection worldstate. peer unavailable$"):
        collection.delete_state("k1")

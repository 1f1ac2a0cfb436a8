#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
easycontract public API with lazy imports.

Importing the package stays cheap; ``jsonschema`` and the dispatcher are
only loaded when the corresponding objects are requested.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from importlib import import_module
from typing import Any, Dict, Tuple

from ._version import __version__

__author__ = "Silan Hu"
__email__ = "silan.hu@u.nus.edu"

_EXPORT_MAP: Dict[str, Tuple[str, str]] = {
    "ContractChaincode": ("easycontract.chaincode", "ContractChaincode"),
    "Response": ("easycontract.chaincode", "Response"),
    "Contract": ("easycontract.contract", "Contract"),
    "transaction": ("easycontract.contract", "transaction"),
    "TransactionContext": ("easycontract.context", "TransactionContext"),
    "ChaincodeStub": ("easycontract.context", "ChaincodeStub"),
    "ClientIdentity": ("easycontract.context", "ClientIdentity"),
    "ChaincodeConfig": ("easycontract.config", "ChaincodeConfig"),
    "JSONSerializer": ("easycontract.core.data", "JSONSerializer"),
    "TransactionSerializer": ("easycontract.core.data", "TransactionSerializer"),
    "ContractError": ("easycontract.core.utils", "ContractError"),
    "InfoMetadata": ("easycontract.metadata", "InfoMetadata"),
    "ContractChaincodeMetadata": ("easycontract.metadata", "ContractChaincodeMetadata"),
    "get_ledger": ("easycontract.ledger", "get_ledger"),
    "UNDEFINED": ("easycontract.core.handlers", "UNDEFINED"),
}

__all__ = ["__version__", *sorted(_EXPORT_MAP.keys())]


def __getattr__(name: str) -> Any:
    """
    Resolve public API symbols lazily.
    """
    if name not in _EXPORT_MAP:
        raise AttributeError("module 'easycontract' has no attribute '{0}'".format(name))

    module_name, attr_name = _EXPORT_MAP[name]
    module = import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value

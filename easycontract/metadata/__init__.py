#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Chaincode metadata: document model, schema generation and file loading.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from .models import (
    ComponentMetadata,
    ContactMetadata,
    ContractChaincodeMetadata,
    ContractMetadata,
    InfoMetadata,
    LicenseMetadata,
    ObjectMetadata,
    ParameterMetadata,
    ReturnMetadata,
    TransactionMetadata,
    validate_against_schema,
)

__all__ = [
    "ComponentMetadata",
    "ContactMetadata",
    "ContractChaincodeMetadata",
    "ContractMetadata",
    "InfoMetadata",
    "LicenseMetadata",
    "ObjectMetadata",
    "ParameterMetadata",
    "ReturnMetadata",
    "TransactionMetadata",
    "validate_against_schema",
]

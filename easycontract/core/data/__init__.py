#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Wire conversion for transaction arguments and results.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from .codec import dumps, from_json_value, to_json_value, zero_value
from .serializer import JSONSerializer, TransactionSerializer

__all__ = [
    "JSONSerializer",
    "TransactionSerializer",
    "dumps",
    "from_json_value",
    "to_json_value",
    "zero_value",
]

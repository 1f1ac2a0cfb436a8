#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Utility exports for easycontract core.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from .logger import ModernLogger, get_logger
from .exceptions import *  # noqa: F401,F403
from .exceptions import ContractError, ExceptionTranslator

__all__ = [
    "ContractError",
    "ExceptionTranslator",
    "ModernLogger",
    "get_logger",
]

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
easycontract core: type vocabulary, validation and transaction functions.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

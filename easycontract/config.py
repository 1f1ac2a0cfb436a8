#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Runtime configuration for contract chaincode.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

METADATA_FOLDER = "META-INF"
METADATA_FOLDER_SECONDARY = "contract-metadata"
METADATA_FILE = "metadata.json"

ENV_LOG_LEVEL = "EASYCONTRACT_LOG_LEVEL"
ENV_DEFAULT_CONTRACT = "EASYCONTRACT_DEFAULT_CONTRACT"
ENV_METADATA_FOLDER = "EASYCONTRACT_METADATA_FOLDER"

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ChaincodeConfig:
    """
    Settings shared by the chaincode dispatcher and the metadata reader.
    """

    metadata_folder: str = METADATA_FOLDER
    metadata_folder_secondary: str = METADATA_FOLDER_SECONDARY
    metadata_file: str = METADATA_FILE
    log_level: str = "WARNING"
    default_contract: Optional[str] = None

    def __post_init__(self) -> None:
        level = self.log_level.strip().upper()
        if level not in _VALID_LOG_LEVELS:
            raise ValueError(
                "log_level must be one of {0}, got {1!r}".format(", ".join(_VALID_LOG_LEVELS), self.log_level)
            )
        object.__setattr__(self, "log_level", level)
        if not self.metadata_file.strip():
            raise ValueError("metadata_file cannot be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ChaincodeConfig":
        """
        Build a config, letting ``EASYCONTRACT_*`` variables override defaults.
        """
        env = os.environ if environ is None else environ
        config = cls()
        overrides = {}
        if env.get(ENV_LOG_LEVEL):
            overrides["log_level"] = env[ENV_LOG_LEVEL]
        if env.get(ENV_DEFAULT_CONTRACT):
            overrides["default_contract"] = env[ENV_DEFAULT_CONTRACT].strip()
        if env.get(ENV_METADATA_FOLDER):
            overrides["metadata_folder"] = env[ENV_METADATA_FOLDER].strip()
        if overrides:
            config = replace(config, **overrides)
        return config

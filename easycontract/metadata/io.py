#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Metadata file discovery.

The reader looks for ``META-INF/metadata.json`` under the working directory
and falls back to ``contract-metadata/metadata.json``. File access goes
through an injected ``FileSystem`` so tests can supply their own.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import json
import os
from typing import Optional, Protocol, runtime_checkable

from ..config import ChaincodeConfig
from ..core.utils.exceptions import MetadataError, MetadataFileNotFoundError
from ..core.utils.logger import ModernLogger
from .models import ContractChaincodeMetadata


@runtime_checkable
class FileSystem(Protocol):
    """Working-directory and file access used by the metadata reader"""

    def getcwd(self) -> str:
        ...

    def read_file(self, path: str) -> bytes:
        ...


class LocalFileSystem:
    """FileSystem backed by the process working directory."""

    def getcwd(self) -> str:
        return os.getcwd()

    def read_file(self, path: str) -> bytes:
        with open(path, "rb") as handle:
            return handle.read()


class MetadataFileReader(ModernLogger):
    """
    Load the optional metadata document shipped alongside a contract.
    """

    def __init__(
        self,
        file_system: Optional[FileSystem] = None,
        config: Optional[ChaincodeConfig] = None,
    ) -> None:
        self.config = config or ChaincodeConfig()
        ModernLogger.__init__(self, name="easycontract.metadata", level=self.config.log_level)
        self.file_system = file_system or LocalFileSystem()

    def candidate_paths(self, working_dir: str) -> list:
        return [
            os.path.join(working_dir, self.config.metadata_folder, self.config.metadata_file),
            os.path.join(working_dir, self.config.metadata_folder_secondary, self.config.metadata_file),
        ]

    def read(self) -> ContractChaincodeMetadata:
        """
        Read and parse the first metadata file found.

        Raises ``MetadataFileNotFoundError`` when no candidate exists and
        ``MetadataError`` for any other read or parse failure.
        """
        try:
            working_dir = self.file_system.getcwd()
        except OSError as exc:
            raise MetadataError(
                "Failed to read metadata from file. Could not find working directory. {0}".format(exc),
                cause=exc,
            ) from exc

        failures = []
        missing = 0
        payload = None
        for path in self.candidate_paths(working_dir):
            try:
                payload = self.file_system.read_file(path)
            except FileNotFoundError as exc:
                missing += 1
                failures.append(exc)
                continue
            except OSError as exc:
                failures.append(exc)
                continue
            self.debug("Loaded metadata file %s", path)
            break

        if payload is None:
            details = "\n".join(str(failure) for failure in failures)
            if missing == len(failures):
                raise MetadataFileNotFoundError("Failed to read metadata from file. Metadata file does not exist")
            raise MetadataError("Failed to read metadata from file. Could not read file. {0}".format(details))

        try:
            document = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as exc:
            raise MetadataError("Failed to read metadata from file. Invalid JSON. {0}".format(exc), cause=exc) from exc
        if not isinstance(document, dict):
            raise MetadataError("Failed to read metadata from file. Metadata must be a JSON object")

        try:
            return ContractChaincodeMetadata.from_dict(document)
        except (AttributeError, TypeError) as exc:
            raise MetadataError(
                "Failed to read metadata from file. Unexpected document shape. {0}".format(exc), cause=exc
            ) from exc

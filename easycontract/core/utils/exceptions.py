#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Exception hierarchy for easycontract.

Every error raised by the framework derives from ``ContractError``. The
string form of an error is exactly the message handed back to the caller in
an error response, so messages are kept free of decoration.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from typing import Optional


class ContractError(Exception):
    """
    Base class for all easycontract errors.
    """

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class TypeValidationError(ContractError):
    """
    A type annotation cannot be used as a parameter, return or field type.
    """


class InterfaceMismatchError(ContractError):
    """
    A class does not structurally satisfy a Protocol.
    """


class RegistrationError(ContractError):
    """
    A contract, transaction function or hook could not be registered.
    """


class ContractNotFoundError(ContractError):
    """
    No contract is registered under the requested name.
    """


class BlankFunctionNameError(ContractError):
    """
    The request resolved to an empty function name.
    """


class FunctionNotFoundError(ContractError):
    """
    The requested function does not exist and no unknown hook is set.
    """


class ConversionError(ContractError):
    """
    A wire string could not be converted into the target type.
    """


class SchemaValidationError(ContractError):
    """
    A converted value does not satisfy its compiled JSON schema.
    """


class SchemaError(ContractError):
    """
    A JSON schema could not be generated or compiled.
    """


class MetadataError(ContractError):
    """
    Metadata could not be read, compiled or validated.
    """


class MetadataFileNotFoundError(MetadataError):
    """
    Neither metadata file location holds a file.
    """


class ArgumentError(ContractError):
    """
    The wire arguments do not fit the transaction function.
    """


class TransactionResponseError(ContractError):
    """
    A transaction function produced a result that cannot be handled.
    """


class LedgerError(ContractError):
    """
    A ledger collection operation failed.
    """


class ExceptionTranslator:
    """
    Normalize arbitrary exceptions raised inside transaction code.
    """

    @staticmethod
    def as_response_message(exc: BaseException) -> str:
        """
        Message used for an error response built from ``exc``.
        """
        message = str(exc)
        if message:
            return message
        return type(exc).__name__

    @staticmethod
    def as_conversion_error(exc: BaseException, prefix: str = "Conversion error.") -> ConversionError:
        """
        Wrap a low-level conversion failure with the standard prefix.
        """
        if isinstance(exc, ConversionError) and str(exc).startswith(prefix):
            return exc
        return ConversionError("{0} {1}".format(prefix, exc), cause=exc)

    @staticmethod
    def as_registration_error(exc: BaseException, prefix: str) -> RegistrationError:
        """
        Wrap a validation failure raised while registering a contract.
        """
        return RegistrationError("{0}: {1}".format(prefix, exc), cause=exc)


__all__ = [
    "ArgumentError",
    "BlankFunctionNameError",
    "ContractError",
    "ContractNotFoundError",
    "ConversionError",
    "ExceptionTranslator",
    "FunctionNotFoundError",
    "InterfaceMismatchError",
    "LedgerError",
    "MetadataError",
    "MetadataFileNotFoundError",
    "RegistrationError",
    "SchemaError",
    "SchemaValidationError",
    "TransactionResponseError",
    "TypeValidationError",
]

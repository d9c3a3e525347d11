# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-02
# Description: ConnectorErrors
# -----------------------------------------------------------------------------
"""
Error taxonomy for the connector.

Every error raised by the compilation layer derives from ConnectorError so the
API layer can map them to client errors in one place. Native transport
failures are never wrapped in these classes; they propagate as raised by the SDK.
"""
from typing import Any, Optional


class ConnectorError(Exception):
    """Base class for all errors raised by the connector itself."""


# -----------------------------------------------------------------------------
# Schema
# -----------------------------------------------------------------------------
class SchemaError(ConnectorError):
    """Malformed or incomplete record definition."""


class MissingKeyError(SchemaError):
    def __init__(self, record_name: str):
        super().__init__(f"Record definition '{record_name}' declares no key property")
        self.record_name = record_name


class DuplicateKeyError(SchemaError):
    def __init__(self, record_name: str, key_names: list[str]):
        super().__init__(
            f"Record definition '{record_name}' declares multiple key properties {key_names}; "
            "multi-key support is disabled"
        )
        self.record_name = record_name
        self.key_names = key_names


class NoVectorError(SchemaError):
    def __init__(self, record_name: str):
        super().__init__(
            f"Record definition '{record_name}' declares no vector property but at least one is required"
        )
        self.record_name = record_name


# -----------------------------------------------------------------------------
# Index strategy
# -----------------------------------------------------------------------------
class IndexStrategyError(ConnectorError):
    """Index strategy incompatible with the schema or with itself."""


# -----------------------------------------------------------------------------
# Filters
# -----------------------------------------------------------------------------
class FilterError(ConnectorError):
    """Filter predicate cannot be compiled against the schema."""


class UnknownFieldError(FilterError):
    def __init__(self, field: str):
        super().__init__(f"Filter references unknown field '{field}'")
        self.field = field


class NotFilterableError(FilterError):
    def __init__(self, field: str, reason: str = "it is not declared filterable"):
        super().__init__(f"Field '{field}' cannot be used in a filter: {reason}")
        self.field = field


class TypeMismatchError(FilterError):
    def __init__(self, field: str, expected: str, value: Any):
        super().__init__(
            f"Filter value {value!r} ({type(value).__name__}) does not match "
            f"field '{field}' of type {expected}"
        )
        self.field = field
        self.expected = expected
        self.value = value


# -----------------------------------------------------------------------------
# Query compilation
# -----------------------------------------------------------------------------
class CompileError(ConnectorError):
    """A query construction invariant was violated."""


class DimensionMismatchError(CompileError):
    def __init__(self, property_name: str, expected: int, actual: int):
        super().__init__(
            f"Query vector has {actual} dimensions but vector property "
            f"'{property_name}' declares {expected}"
        )
        self.property_name = property_name
        self.expected = expected
        self.actual = actual


class QuantizationMismatchError(CompileError):
    def __init__(self, index_quantization: Optional[str], assumed_quantization: Optional[str]):
        super().__init__(
            f"Index declares quantization {index_quantization!r} but the query compiler "
            f"is configured for {assumed_quantization!r}"
        )
        self.index_quantization = index_quantization
        self.assumed_quantization = assumed_quantization


# -----------------------------------------------------------------------------
# Result decoding
# -----------------------------------------------------------------------------
class DecodeError(ConnectorError):
    """A native result row cannot be mapped back onto the schema."""


class MissingFieldError(DecodeError):
    def __init__(self, field: str, row_index: int):
        super().__init__(f"Result row {row_index} is missing required field '{field}'")
        self.field = field
        self.row_index = row_index


class InvalidScoreError(DecodeError):
    def __init__(self, value: Any, row_index: int):
        super().__init__(f"Result row {row_index} has invalid score {value!r}")
        self.value = value
        self.row_index = row_index


# -----------------------------------------------------------------------------
# Native (idempotent create)
# -----------------------------------------------------------------------------
class AlreadyExistsError(ConnectorError):
    """Raised by native clients when a collection or index already exists."""


def is_already_exists(exc: BaseException) -> bool:
    """
    True if a native failure means "already exists".
    SDK versions differ in exception classes, so the message is checked too.
    """
    if isinstance(exc, AlreadyExistsError):
        return True
    return "already exists" in str(exc).lower()


def is_not_found(exc: BaseException) -> bool:
    """True if a native drop/get failure means the target does not exist."""
    text = str(exc).lower()
    return any(marker in text for marker in ("not found", "does not exist", "not exist"))

"""Error types for metadata processing.

Fatal conditions are raised as MetadataProcessingError subclasses that carry
the error kind and the species/database involved. Internal lookups return a
LookupFailure instead of raising, and the public operations turn it into the
matching exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Categories of fatal processing errors."""

    CALLER_CONTRACT = "caller_contract"  # e.g. no handle passed to a builder
    MISSING_PREREQUISITE = "missing_prerequisite"  # companion db processed before its core db
    UNRESOLVED_REFERENCE = "unresolved_reference"  # compara references an unknown genome
    INVALID_METADATA = "invalid_metadata"  # meta table holds several values for a single-valued key


class MetadataProcessingError(Exception):
    """Base class for fatal processing errors.

    Attributes:
        kind: Error category
        species: Species involved, if any
        dbname: Database involved, if any
    """

    kind: ErrorKind = ErrorKind.CALLER_CONTRACT

    def __init__(self, message: str, species: str | None = None, dbname: str | None = None):
        super().__init__(message)
        self.species = species
        self.dbname = dbname


class UndefinedHandleError(MetadataProcessingError):
    kind = ErrorKind.CALLER_CONTRACT

    def __init__(self, kind_name: str | None = None):
        message = "DBA not defined for processing"
        if kind_name:
            message = f"{message} ({kind_name})"
        super().__init__(message)


class InvalidMetadataError(MetadataProcessingError):
    kind = ErrorKind.INVALID_METADATA


class MissingPrimaryRecordError(MetadataProcessingError):
    """A companion database was processed before its core database."""

    kind = ErrorKind.MISSING_PREREQUISITE


class UnresolvedGenomeError(MetadataProcessingError):
    kind = ErrorKind.UNRESOLVED_REFERENCE


class ComparaProcessingError(MetadataProcessingError):
    """Processing of a whole compara database was abandoned."""

    kind = ErrorKind.UNRESOLVED_REFERENCE


@dataclass
class LookupFailure:
    """Result of a genome lookup that found nothing.

    Attributes:
        query: What was looked up
        error_code: Machine-readable reason, e.g. NOT_FOUND
        error_message: Human-readable message
    """

    query: str
    error_code: str
    error_message: str

"""Metadata processing pipeline.

- classifier: partition handles by species and database kind
- builders: per-kind SpeciesRecord builders
- compara: comparative analysis resolution
- processor: MetadataProcessor, the pipeline driver
- errors: error taxonomy
"""

from genome_metadata.processing.builders import BUILDERS, RecordBuilder, get_dbsize, merge_read_alignments
from genome_metadata.processing.classifier import ClassifiedDatabases, DatabaseKind, classify_databases
from genome_metadata.processing.compara import (
    COMPARA_METHODS,
    ComparaResolver,
    compara_division,
    select_persisted_genome,
)
from genome_metadata.processing.errors import (
    ComparaProcessingError,
    ErrorKind,
    InvalidMetadataError,
    MetadataProcessingError,
    MissingPrimaryRecordError,
    UndefinedHandleError,
    UnresolvedGenomeError,
)
from genome_metadata.processing.processor import MetadataProcessor

__all__ = [
    "BUILDERS",
    "COMPARA_METHODS",
    "ClassifiedDatabases",
    "ComparaProcessingError",
    "ComparaResolver",
    "DatabaseKind",
    "ErrorKind",
    "InvalidMetadataError",
    "MetadataProcessingError",
    "MetadataProcessor",
    "MissingPrimaryRecordError",
    "RecordBuilder",
    "UndefinedHandleError",
    "UnresolvedGenomeError",
    "classify_databases",
    "compara_division",
    "get_dbsize",
    "merge_read_alignments",
    "select_persisted_genome",
]

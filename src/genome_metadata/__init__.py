"""Genome metadata aggregation.

Builds one consistent metadata record per species from its core and
companion databases and layers comparative analysis metadata on top.
"""

from genome_metadata.processing.processor import MetadataProcessor
from genome_metadata.records.models import ComparativeAnalysisRecord, SpeciesRecord

__all__ = [
    "ComparativeAnalysisRecord",
    "MetadataProcessor",
    "SpeciesRecord",
]

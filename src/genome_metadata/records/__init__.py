"""Genome metadata records.

- models: SpeciesRecord, ComparativeAnalysisRecord and supporting types
- registry: GenomeRegistry, the per-run species record map
"""

from genome_metadata.records.models import (
    DEFAULT_DIVISION,
    AssemblyInfo,
    ComparativeAnalysisRecord,
    DataRelease,
    OrganismInfo,
    SpeciesRecord,
    derive_genebuild,
)
from genome_metadata.records.registry import GenomeRegistry

__all__ = [
    "DEFAULT_DIVISION",
    "AssemblyInfo",
    "ComparativeAnalysisRecord",
    "DataRelease",
    "GenomeRegistry",
    "OrganismInfo",
    "SpeciesRecord",
    "derive_genebuild",
]

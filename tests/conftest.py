"""Pytest configuration for genome-metadata tests.

Shared fixtures built on the in-memory fakes in fakes.py.
"""

import pytest
from fakes import FakeAnalyzer

from genome_metadata.records.registry import GenomeRegistry


@pytest.fixture
def registry() -> GenomeRegistry:
    """Empty per-run registry."""
    return GenomeRegistry()


@pytest.fixture
def analyzer() -> FakeAnalyzer:
    """Analyzer with core and otherfeatures summaries and two read alignment sources."""
    return FakeAnalyzer(
        annotations={"nProteinCoding": 20000, "nGO": 15000},
        alignments={
            "homo_sapiens_core_110_38": {"dna_align": {"est_1": 5}},
            "homo_sapiens_otherfeatures_110_38": {"protein_align": {"uniprot": 3}},
        },
        features={
            "homo_sapiens_core_110_38": {"gene": 10, "repeat": 3},
            "homo_sapiens_otherfeatures_110_38": {"gene": 99, "est": 7},
        },
        tracks={"ENA": [{"id": "SRR1"}, {"id": "SRR1"}, {"id": "SRR2"}]},
        variation={"variations": 1000000, "structural_variations": 250},
    )

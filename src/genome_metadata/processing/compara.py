"""Comparative analysis resolution.

Turns the method/species-set pairings of a compara database into
ComparativeAnalysisRecords linked both ways to the SpeciesRecords they
compare. Genomes missing from the current run are looked up in the metadata
store, falling back to the baseline release when the current release is an
auxiliary one. Processing of a compara database is all-or-nothing.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from genome_metadata.processing.errors import ComparaProcessingError, LookupFailure, UnresolvedGenomeError
from genome_metadata.records.models import (
    BACTERIA,
    FUNGI,
    METAZOA,
    PAN,
    PLANTS,
    PROTISTS,
    VERTEBRATES,
    ComparativeAnalysisRecord,
    SpeciesRecord,
)

if TYPE_CHECKING:
    from genome_metadata.dbs.handle import ComparaHandle, ComparisonEntry
    from genome_metadata.records.registry import GenomeRegistry
    from genome_metadata.store.genome_store import GenomeStore

logger = logging.getLogger(__name__)

COMPARA_METHODS = (
    "PROTEIN_TREES",
    "BLASTZ_NET",
    "LASTZ_NET",
    "TRANSLATED_BLAT",
    "TRANSLATED_BLAT_NET",
    "SYNTENY",
    "FAMILY",
)

DIVISION_NAMES = {
    "bacteria": BACTERIA,
    "plants": PLANTS,
    "protists": PROTISTS,
    "fungi": FUNGI,
    "metazoa": METAZOA,
    "pan_homology": PAN,
}

# Species present in both the vertebrate and a non-vertebrate division
SHARED_DIVISION_SPECIES = frozenset(
    {
        "caenorhabditis_elegans",
        "drosophila_melanogaster",
        "saccharomyces_cerevisiae",
    }
)

# Divisions whose compara databases use the non-vertebrate copy of shared species
NON_VERTEBRATE_PREFERRED_DIVISIONS = frozenset({PAN, PLANTS})

COMPARA_NAME_PATTERN = re.compile(r"ensembl_compara_([a-z_]+)_[0-9]+_[0-9]+")
NUMERIC_COMPARA_PATTERN = re.compile(r"ensembl_compara_[0-9]+")


def compara_division(dbname: str) -> str:
    """Derive the division of a compara database from its name.

    Examples:
        >>> compara_division("ensembl_compara_plants_40_93")
        'EnsemblPlants'
        >>> compara_division("ensembl_compara_99")
        'EnsemblVertebrates'
    """
    division = COMPARA_NAME_PATTERN.sub(r"\1", dbname)
    division = DIVISION_NAMES.get(division, division)
    if NUMERIC_COMPARA_PATTERN.search(division):
        division = VERTEBRATES
    return division


def select_persisted_genome(candidates: Iterable[SpeciesRecord], division: str) -> SpeciesRecord | None:
    """Choose among stored genomes sharing a name.

    Shared species take the non-vertebrate copy for pan and plants compara,
    otherwise the copy from the compara's own division. Any other species
    accepts every candidate. The last accepted candidate wins, so the
    outcome follows the store's ordering rather than a ranking.

    Args:
        candidates: Stored genomes with the same name
        division: Division of the compara database

    Returns:
        Selected genome, or None
    """
    selected = None
    for genome in candidates:
        if genome.name in SHARED_DIVISION_SPECIES:
            if division in NON_VERTEBRATE_PREFERRED_DIVISIONS:
                if genome.division != VERTEBRATES:
                    selected = genome
            elif genome.division == division:
                selected = genome
        else:
            selected = genome
    return selected


def select_baseline_genome(candidates: Iterable[SpeciesRecord]) -> SpeciesRecord | None:
    """Last vertebrate candidate from a baseline release lookup."""
    selected = None
    for genome in candidates:
        if genome.division == VERTEBRATES:
            selected = genome
    return selected


def group_by_species_set(entries: Iterable[ComparisonEntry]) -> dict[int, list[ComparisonEntry]]:
    """Group comparison entries by species set identifier, keeping input order."""
    groups: dict[int, list[ComparisonEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.species_set_id, []).append(entry)
    return groups


def species_set_name(entries: list[ComparisonEntry]) -> str | None:
    """First species set name tag in the group, else the first entry name."""
    for entry in entries:
        if entry.species_set_name:
            return entry.species_set_name
    for entry in entries:
        if entry.name:
            return entry.name
    return None


def participants(entries: list[ComparisonEntry]) -> list[str]:
    """Union of genome names across the group, first occurrence order."""
    names: dict[str, None] = {}
    for entry in entries:
        for name in entry.genome_names:
            names.setdefault(name, None)
    return list(names)


@dataclass
class _PendingAnalysis:
    record: ComparativeAnalysisRecord
    genomes: list[SpeciesRecord] = field(default_factory=list)


class ComparaResolver:
    """Builds ComparativeAnalysisRecords for compara databases.

    Attributes:
        store: Metadata store used for genomes not in the current run
        methods: Comparison methods to process
    """

    def __init__(
        self,
        store: GenomeStore | None = None,
        methods: Iterable[str] = COMPARA_METHODS,
        log: logging.Logger | None = None,
    ):
        self.store = store
        self.methods = tuple(methods)
        self.log = log or logger

    def process(self, compara: ComparaHandle, registry: GenomeRegistry) -> list[ComparativeAnalysisRecord]:
        """Resolve every analysis in a compara database.

        Args:
            compara: Compara database handle
            registry: Species records of the current run; genomes resolved
                from the store are added once the whole database has resolved

        Returns:
            One record per (method, species set)

        Raises:
            ComparaProcessingError: If any referenced genome cannot be resolved;
                no genome is linked to any analysis of this database and the
                registry is left unchanged in that case
        """
        dbname = compara.dbname
        self.log.info(f"Processing compara database {dbname}")
        division = compara_division(dbname)
        pending: list[_PendingAnalysis] = []
        resolved: dict[str, SpeciesRecord] = {}
        try:
            for method in self.methods:
                self.log.info(f"Processing method type {method} from compara database {dbname}")
                groups = group_by_species_set(compara.fetch_comparisons(method))
                for entries in groups.values():
                    set_name = species_set_name(entries)
                    self.log.info(
                        f"Processing species set {set_name} for method {method} from compara database {dbname}"
                    )
                    analysis = _PendingAnalysis(
                        ComparativeAnalysisRecord(dbname=dbname, division=division, method=method, set_name=set_name)
                    )
                    for name in participants(entries):
                        self.log.info(
                            f"Processing species {name} from species set {set_name} "
                            f"for method {method} from compara database {dbname}"
                        )
                        analysis.genomes.append(self.resolve_genome(name, division, registry, resolved))
                    pending.append(analysis)
        except UnresolvedGenomeError as e:
            raise ComparaProcessingError(
                f"Could not process compara {dbname}: {e}", species=e.species, dbname=dbname
            ) from e

        for genome in resolved.values():
            registry.add(genome)
        records = []
        for analysis in pending:
            for genome in analysis.genomes:
                analysis.record.add_genome(genome)
                genome.add_compara(analysis.record)
            records.append(analysis.record)
        self.log.info(f"Completed processing compara database {dbname}")
        return records

    def resolve_genome(
        self,
        name: str,
        division: str,
        registry: GenomeRegistry,
        resolved: dict[str, SpeciesRecord] | None = None,
    ) -> SpeciesRecord:
        """Find the SpeciesRecord for a compara participant.

        The registry is only read. Genomes found in the store are cached in
        resolved, so one stored genome is fetched once per compara database.

        Raises:
            UnresolvedGenomeError: If neither the run, the store nor the
                baseline release knows the genome
        """
        if resolved is None:
            resolved = {}
        result = self._lookup(name, division, registry, resolved)
        if isinstance(result, LookupFailure):
            raise UnresolvedGenomeError(result.error_message, species=name)
        return result

    def _lookup(
        self, name: str, division: str, registry: GenomeRegistry, resolved: dict[str, SpeciesRecord]
    ) -> SpeciesRecord | LookupFailure:
        genome = registry.get(name) or resolved.get(name)
        if genome is not None:
            return genome
        if self.store is None:
            return LookupFailure(
                query=name, error_code="NOT_FOUND", error_message=f"Could not find genome info for {name}"
            )

        self.log.debug(f"Checking the metadata store for {name}")
        genome = select_persisted_genome(self.store.fetch_by_name(name), division)
        if genome is None:
            genome = self._lookup_baseline_release(name)
        if genome is None:
            return LookupFailure(
                query=name, error_code="NOT_FOUND", error_message=f"Could not find genome info for {name}"
            )
        self.log.debug(f"Found {name} ({genome.division}) in the metadata store")
        resolved[name] = genome
        return genome

    def _lookup_baseline_release(self, name: str) -> SpeciesRecord | None:
        """Look for a vertebrate genome in the baseline release of an auxiliary release."""
        assert self.store is not None
        current = self.store.data_release
        if current is None or not current.is_auxiliary:
            return None
        baseline = self.store.fetch_release_by_ensembl_version(current.ensembl_version)
        if baseline is None:
            self.log.warning(f"No baseline release found for ensembl version {current.ensembl_version}")
            return None
        self.store.data_release = baseline
        try:
            return select_baseline_genome(self.store.fetch_by_name(name))
        finally:
            self.store.data_release = current

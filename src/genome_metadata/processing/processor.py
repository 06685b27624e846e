"""Metadata processing pipeline.

Classifies database handles, builds one SpeciesRecord per species from its
core database, extends it from companion databases, then resolves the
comparative analyses of every compara database.

Example:
    >>> processor = MetadataProcessor(contigs=True, store=GenomeStore())
    >>> genomes = processor.process_metadata(handles)
    >>> processor.comparas[0].method
    'PROTEIN_TREES'
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from genome_metadata.processing.builders import BUILDERS, RecordBuilder
from genome_metadata.processing.classifier import DatabaseKind, classify_databases
from genome_metadata.processing.compara import ComparaResolver
from genome_metadata.processing.errors import MetadataProcessingError
from genome_metadata.records.registry import GenomeRegistry

if TYPE_CHECKING:
    from genome_metadata.analysis.analyzer import AnnotationAnalyzer
    from genome_metadata.dbs.handle import ComparaHandle, DatabaseHandle
    from genome_metadata.records.models import ComparativeAnalysisRecord, SpeciesRecord
    from genome_metadata.store.genome_store import GenomeStore

logger = logging.getLogger(__name__)


class MetadataProcessor:
    """Pipeline driver producing SpeciesRecords from database handles.

    Attributes:
        contigs: Retrieve sequence inventories from core databases
        annotation_analyzer: Optional annotation analysis collaborator
        store: Optional metadata store for genomes outside the current run
        variation: Process variation databases
        compara: Process compara databases
        force_update: Overwrite stored genomes when results are persisted
        registry: Species records of the current run
        comparas: Comparative analyses built so far
    """

    def __init__(
        self,
        contigs: bool = False,
        annotation_analyzer: AnnotationAnalyzer | None = None,
        store: GenomeStore | None = None,
        variation: bool = True,
        compara: bool = True,
        force_update: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.contigs = contigs
        self.annotation_analyzer = annotation_analyzer
        self.store = store
        self.variation = variation
        self.compara = compara
        self.force_update = force_update
        self.logger = logger or logging.getLogger(__name__)
        self.registry = GenomeRegistry()
        self.comparas: list[ComparativeAnalysisRecord] = []
        self._builders: dict[DatabaseKind, RecordBuilder] = {
            kind: builder_cls(
                annotation_analyzer=annotation_analyzer,
                store=store,
                contigs=contigs,
                log=self.logger,
            )
            for kind, builder_cls in BUILDERS.items()
        }
        self._resolver = ComparaResolver(store=store, log=self.logger)

    def process_metadata(self, handles: Iterable[DatabaseHandle]) -> list[SpeciesRecord]:
        """Process a collection of database handles.

        Args:
            handles: Core, companion and compara database handles in any order

        Returns:
            Every SpeciesRecord of the run, including genomes pulled from the
            store while resolving compara databases
        """
        classified = classify_databases(handles)
        total = len(classified.by_species)

        for n, (species, dbs) in enumerate(classified.by_species.items(), start=1):
            self.logger.info(f"Processing {species} ({n}/{total})")
            remaining = dict(dbs)
            core = remaining.pop(DatabaseKind.CORE, None)
            if core is not None:
                self.process_core(core)
            for kind in DatabaseKind:
                if kind not in remaining:
                    continue
                if kind is DatabaseKind.VARIATION and not self.variation:
                    self.logger.info(f"Skipping variation database {remaining[kind].dbname}")
                    continue
                self.process_database(kind, remaining[kind])

        if self.compara:
            for compara in classified.comparas:
                self.process_compara(compara)

        return self.registry.records()

    def process_database(self, kind: DatabaseKind, handle: DatabaseHandle | None) -> SpeciesRecord:
        """Dispatch a handle to the builder for its kind."""
        return self._builders[kind].build(handle, self.registry)

    def process_core(self, handle: DatabaseHandle | None) -> SpeciesRecord:
        return self.process_database(DatabaseKind.CORE, handle)

    def process_otherfeatures(self, handle: DatabaseHandle | None) -> SpeciesRecord:
        return self.process_database(DatabaseKind.OTHERFEATURES, handle)

    def process_rnaseq(self, handle: DatabaseHandle | None) -> SpeciesRecord:
        return self.process_database(DatabaseKind.RNASEQ, handle)

    def process_cdna(self, handle: DatabaseHandle | None) -> SpeciesRecord:
        return self.process_database(DatabaseKind.CDNA, handle)

    def process_variation(self, handle: DatabaseHandle | None) -> SpeciesRecord:
        return self.process_database(DatabaseKind.VARIATION, handle)

    def process_funcgen(self, handle: DatabaseHandle | None) -> SpeciesRecord:
        return self.process_database(DatabaseKind.FUNCGEN, handle)

    def process_compara(
        self, compara: ComparaHandle, genomes: GenomeRegistry | None = None
    ) -> list[ComparativeAnalysisRecord]:
        """Resolve the comparative analyses of one compara database.

        Args:
            compara: Compara database handle
            genomes: Registry to resolve against; defaults to this run's registry

        Returns:
            Records built for this database
        """
        registry = genomes if genomes is not None else self.registry
        records = self._resolver.process(compara, registry)
        self.comparas.extend(records)
        return records

    def persist(self) -> int:
        """Write the run's genomes and comparative analyses to the store.

        Returns:
            Number of genomes written in full

        Raises:
            MetadataProcessingError: If no store is configured
        """
        if self.store is None:
            raise MetadataProcessingError("No metadata store configured for persisting results")
        written = self.store.store_genomes(self.registry.records(), force_update=self.force_update)
        self.store.store_comparas(self.comparas)
        return written

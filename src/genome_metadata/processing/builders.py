"""Per-kind species record builders.

The core database builder creates a SpeciesRecord; every other kind of
database locates the existing record for its species and division and
extends it. Builders are chosen through the BUILDERS table, keyed by
DatabaseKind.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from genome_metadata.processing.classifier import DatabaseKind
from genome_metadata.processing.errors import LookupFailure, MissingPrimaryRecordError, UndefinedHandleError
from genome_metadata.records.models import (
    DEFAULT_DIVISION,
    AssemblyInfo,
    OrganismInfo,
    SpeciesRecord,
    derive_genebuild,
)

if TYPE_CHECKING:
    from genome_metadata.analysis.analyzer import AnnotationAnalyzer
    from genome_metadata.dbs.handle import DatabaseHandle
    from genome_metadata.records.registry import GenomeRegistry
    from genome_metadata.store.genome_store import GenomeStore

logger = logging.getLogger(__name__)

DBSIZE_SQL = "select sum(data_length + index_length) from information_schema.tables where table_schema = :dbname"

ASSEMBLY_LEVEL_SQL = "select name from coord_system where species_id = :species_id order by `rank` asc"

# Default-version sequences with their INSDC synonym, if any
SEQ_SYNONYMS_SQL = """
select distinct s.name, ss.synonym
from coord_system c
join seq_region s on (s.coord_system_id = c.coord_system_id)
left join seq_region_synonym ss on (
    ss.seq_region_id = s.seq_region_id
    and ss.external_db_id in (select external_db_id from external_db where db_name = 'INSDC'))
where c.species_id = :species_id and c.attrib like '%default_version%'
"""

# Default-version sequences whose name is itself an ENA accession
ENA_SEQS_SQL = """
select s.name
from coord_system c
join seq_region s on (s.coord_system_id = c.coord_system_id)
join seq_region_attrib sa on (sa.seq_region_id = s.seq_region_id)
where sa.value = 'ENA' and c.species_id = :species_id and c.attrib like '%default_version%'
"""

TOPLEVEL_BASE_COUNT_SQL = """
select sum(s.length)
from seq_region s
join coord_system c on (c.coord_system_id = s.coord_system_id)
join seq_region_attrib sa on (sa.seq_region_id = s.seq_region_id)
join attrib_type a on (a.attrib_type_id = sa.attrib_type_id)
where a.code = 'toplevel' and c.species_id = :species_id
"""

PUBLICATIONS_SQL = """
select distinct x.dbprimary_acc
from xref x
join external_db e on (e.external_db_id = x.external_db_id)
join seq_region_attrib sa on (x.xref_id = sa.value)
join attrib_type a on (a.attrib_type_id = sa.attrib_type_id)
join seq_region s on (s.seq_region_id = sa.seq_region_id)
join coord_system c on (c.coord_system_id = s.coord_system_id)
where c.species_id = :species_id and a.code = 'xref_id' and e.db_name in ('PUBMED')
"""

ALIASES_SQL = "select distinct meta_value from meta where species_id = :species_id and meta_key = 'species.alias'"


def get_dbsize(handle: DatabaseHandle) -> int | None:
    """Data plus index length of every table in the handle's schema."""
    size = handle.execute_single_result(DBSIZE_SQL, {"dbname": handle.dbname})
    return int(size) if size is not None else None


def recorded_division(handle: DatabaseHandle) -> str | None:
    """Alphabetically last species.division of the database, or None.

    Sorting is a coarse way of choosing between several recorded divisions,
    not a priority order.
    """
    divisions = sorted(handle.meta.list_value_by_key("species.division"))
    return divisions[-1] if divisions else None


def get_division(handle: DatabaseHandle) -> str:
    return recorded_division(handle) or DEFAULT_DIVISION


def merge_read_alignments(
    alignments: dict[str, dict[str, Any]], tracks: dict[str, list[dict[str, Any]]]
) -> dict[str, dict[str, Any]]:
    """Fold read alignment tracks into an alignment summary.

    Tracks are counted per identifier under their source rather than stored.

    Args:
        alignments: Alignment summary keyed by source
        tracks: Read alignment tracks keyed by source; each has an "id"

    Returns:
        New summary; the inputs are not modified
    """
    merged = {source: dict(entries) for source, entries in alignments.items()}
    for source, source_tracks in tracks.items():
        counts = merged.setdefault(source, {})
        for track in source_tracks:
            counts[track["id"]] = counts.get(track["id"], 0) + 1
    return merged


def _first(values: list[Any]) -> Any:
    return values[0] if values else None


class RecordBuilder(ABC):
    """Creates or extends the SpeciesRecord for one database.

    Attributes:
        annotation_analyzer: Optional analysis collaborator
        store: Optional persisted genome store
        contigs: Retrieve the sequence inventory (core databases only)
    """

    kind: DatabaseKind

    def __init__(
        self,
        annotation_analyzer: AnnotationAnalyzer | None = None,
        store: GenomeStore | None = None,
        contigs: bool = False,
        log: logging.Logger | None = None,
    ):
        self.annotation_analyzer = annotation_analyzer
        self.store = store
        self.contigs = contigs
        self.log = log or logger

    @abstractmethod
    def build(self, handle: DatabaseHandle | None, registry: GenomeRegistry) -> SpeciesRecord:
        """Build or extend the record for handle's species."""

    def _check_handle(self, handle: DatabaseHandle | None) -> DatabaseHandle:
        if handle is None:
            raise UndefinedHandleError(self.kind.value)
        return handle

    def _lookup_existing(self, handle: DatabaseHandle, registry: GenomeRegistry) -> SpeciesRecord | LookupFailure:
        """Find the record created for this species by its core database.

        The registry is searched first, then the store. When the database
        records no division of its own, any division is accepted.
        """
        species = handle.species or ""
        division = recorded_division(handle)
        record = registry.get(species, division)
        if record is not None:
            return record

        if self.store is not None:
            self.log.debug(f"Looking up {species} in the metadata store")
            for genome in self.store.fetch_by_name(species):
                if division is None or genome.division == division:
                    record = genome
            if record is not None:
                registry.add(record)
                return record

        return LookupFailure(
            query=f"{species}:{division or 'any division'}",
            error_code="NOT_FOUND",
            error_message=f"No {division or ''} genome record for {species}; was its core database processed?",
        )

    def _existing_record(self, handle: DatabaseHandle, registry: GenomeRegistry) -> SpeciesRecord:
        result = self._lookup_existing(handle, registry)
        if isinstance(result, LookupFailure):
            raise MissingPrimaryRecordError(
                f"Cannot process {self.kind.value} database {handle.dbname}: {result.error_message}",
                species=handle.species,
                dbname=handle.dbname,
            )
        return result


class CoreBuilder(RecordBuilder):
    """Creates the SpeciesRecord from a core database."""

    kind = DatabaseKind.CORE

    def build(self, handle: DatabaseHandle | None, registry: GenomeRegistry) -> SpeciesRecord:
        handle = self._check_handle(handle)
        species_id = handle.species_id
        params = {"species_id": species_id}
        meta = handle.meta

        taxonomy_id = meta.get_taxonomy_id()
        species_taxonomy_id = _first(meta.list_value_by_key("species.species_taxonomy_id"))
        organism = OrganismInfo(
            name=handle.species or "",
            display_name=meta.get_display_name(),
            scientific_name=meta.single_value_by_key("species.scientific_name"),
            url_name=meta.single_value_by_key("species.url"),
            strain=meta.single_value_by_key("species.strain"),
            serotype=meta.single_value_by_key("species.serotype"),
            taxonomy_id=taxonomy_id,
            species_taxonomy_id=int(species_taxonomy_id) if species_taxonomy_id else taxonomy_id,
        )
        assembly = AssemblyInfo(
            accession=_first(meta.list_value_by_key("assembly.accession")),
            name=meta.single_value_by_key("assembly.name"),
            default=meta.single_value_by_key("assembly.default"),
            ucsc_alias=_first(meta.list_value_by_key("assembly.ucsc_alias")),
            level=_first(handle.execute_simple(ASSEMBLY_LEVEL_SQL, params)),
        )
        genebuild = derive_genebuild(
            _first(meta.list_value_by_key("genebuild.version")),
            _first(meta.list_value_by_key("genebuild.start_date")),
            _first(meta.list_value_by_key("genebuild.last_geneset_update")),
        )

        record = SpeciesRecord(
            name=handle.species or "",
            species_id=species_id,
            division=get_division(handle),
            dbname=handle.dbname,
            organism=organism,
            assembly=assembly,
            data_release=self.store.data_release if self.store is not None else None,
            genebuild=genebuild,
        )

        if self.contigs:
            record.assembly.sequences = self.fetch_sequences(handle)

        base_count = _first(handle.execute_simple(TOPLEVEL_BASE_COUNT_SQL, params))
        record.assembly.base_count = int(base_count) if base_count is not None else None
        record.organism.publications = [str(p) for p in handle.execute_simple(PUBLICATIONS_SQL, params)]
        record.organism.aliases = [str(a) for a in handle.execute_simple(ALIASES_SQL, params)]

        if self.annotation_analyzer is not None:
            self.log.info(f"Processing {record.name} core annotation")
            record.annotations = self.annotation_analyzer.analyze_annotation(handle)
            alignments = self.annotation_analyzer.analyze_alignments(handle)
            record.features = self.annotation_analyzer.analyze_features(handle)

            self.log.info(f"Processing {record.name} read alignments")
            tracks = self.annotation_analyzer.analyze_tracks(record.name, record.division)
            record.other_alignments = merge_read_alignments(alignments, tracks)
            record.db_size = get_dbsize(handle)

        registry.add(record)
        return record

    def fetch_sequences(self, handle: DatabaseHandle) -> list[dict[str, str]]:
        """Sequence inventory as name/accession pairs.

        Default-version sequences are paired with their INSDC synonym; sequences
        flagged as ENA-resident are their own accession. Keyed by name, so a
        sequence found by both queries appears once.
        """
        params = {"species_id": handle.species_id}
        seqs: dict[str, Any] = {}

        def add_synonym(row: Any) -> None:
            name, acc = row
            seqs[name] = acc

        def add_ena(row: Any) -> None:
            (acc,) = row
            seqs[acc] = acc

        handle.execute_no_return(SEQ_SYNONYMS_SQL, params, callback=add_synonym)
        handle.execute_no_return(ENA_SEQS_SQL, params, callback=add_ena)
        return [{"name": name, "acc": acc} for name, acc in seqs.items()]


class CoreLikeBuilder(RecordBuilder):
    """Extends a record from an otherfeatures, rnaseq or cdna database."""

    def build(self, handle: DatabaseHandle | None, registry: GenomeRegistry) -> SpeciesRecord:
        handle = self._check_handle(handle)
        record = self._existing_record(handle, registry)
        self.log.info(f"Processing {handle.species} {self.kind.value} annotation")

        if self.annotation_analyzer is not None:
            new_features = self.annotation_analyzer.analyze_features(handle)
            record.features = {**new_features, **record.features}
            alignments = self.annotation_analyzer.analyze_alignments(handle)
            tracks = self.annotation_analyzer.analyze_tracks(record.name, record.division)
            record.other_alignments = merge_read_alignments(alignments, tracks)

        record.add_database(handle.dbname)
        record.db_size = get_dbsize(handle)
        return record


class OtherFeaturesBuilder(CoreLikeBuilder):
    kind = DatabaseKind.OTHERFEATURES


class RnaseqBuilder(CoreLikeBuilder):
    kind = DatabaseKind.RNASEQ


class CdnaBuilder(CoreLikeBuilder):
    kind = DatabaseKind.CDNA


class VariationBuilder(RecordBuilder):
    """Attaches the variation summary of a variation database."""

    kind = DatabaseKind.VARIATION

    def build(self, handle: DatabaseHandle | None, registry: GenomeRegistry) -> SpeciesRecord:
        handle = self._check_handle(handle)
        record = self._existing_record(handle, registry)
        self.log.info(f"Processing {handle.species} variation annotation")
        if self.annotation_analyzer is not None:
            record.variations = self.annotation_analyzer.analyze_variation(handle)
        record.add_database(handle.dbname)
        record.db_size = get_dbsize(handle)
        return record


class FuncgenBuilder(RecordBuilder):
    # regulation databases contribute no feature payload
    kind = DatabaseKind.FUNCGEN

    def build(self, handle: DatabaseHandle | None, registry: GenomeRegistry) -> SpeciesRecord:
        handle = self._check_handle(handle)
        record = self._existing_record(handle, registry)
        self.log.info(f"Processing {handle.species} regulation annotation")
        record.add_database(handle.dbname)
        record.db_size = get_dbsize(handle)
        return record


BUILDERS: dict[DatabaseKind, type[RecordBuilder]] = {
    DatabaseKind.CORE: CoreBuilder,
    DatabaseKind.OTHERFEATURES: OtherFeaturesBuilder,
    DatabaseKind.RNASEQ: RnaseqBuilder,
    DatabaseKind.CDNA: CdnaBuilder,
    DatabaseKind.VARIATION: VariationBuilder,
    DatabaseKind.FUNCGEN: FuncgenBuilder,
}

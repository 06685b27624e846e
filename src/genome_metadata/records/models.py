"""Domain models for genome metadata.

This module defines the records produced by the metadata processing pipeline:
one SpeciesRecord per species and division, and ComparativeAnalysisRecords
linking groups of species that were compared by one method.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Division tags
VERTEBRATES = "EnsemblVertebrates"
PLANTS = "EnsemblPlants"
PAN = "EnsemblPan"
BACTERIA = "EnsemblBacteria"
PROTISTS = "EnsemblProtists"
FUNGI = "EnsemblFungi"
METAZOA = "EnsemblMetazoa"

DEFAULT_DIVISION = VERTEBRATES


def derive_genebuild(version: str | None, start_date: str | None, last_update: str | None) -> str | None:
    """Build the genome-build label.

    An explicit version always wins. Otherwise the start date is used,
    suffixed with the last geneset update when there is one.

    Args:
        version: genebuild.version meta value
        start_date: genebuild.start_date meta value
        last_update: genebuild.last_geneset_update meta value

    Returns:
        Label such as "2020-01/2021-06", or None if nothing is recorded
    """
    if version is not None:
        return version
    if start_date is None:
        return None
    if last_update is not None:
        return f"{start_date}/{last_update}"
    return start_date


@dataclass
class DataRelease:
    """A versioned snapshot of the metadata warehouse.

    Attributes:
        ensembl_version: Baseline release number
        ensembl_genomes_version: Auxiliary release number, None for baseline releases
        release_date: Release date as recorded in the store
        is_current: True for the release currently being built
    """

    ensembl_version: int
    ensembl_genomes_version: int | None = None
    release_date: str | None = None
    is_current: bool = False

    @property
    def is_auxiliary(self) -> bool:
        """True when this release is layered on top of a baseline release."""
        return self.ensembl_genomes_version is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "ensembl_version": self.ensembl_version,
            "ensembl_genomes_version": self.ensembl_genomes_version,
            "release_date": self.release_date,
            "is_current": self.is_current,
        }

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> DataRelease:
        return cls(
            ensembl_version=doc["ensembl_version"],
            ensembl_genomes_version=doc.get("ensembl_genomes_version"),
            release_date=doc.get("release_date"),
            is_current=bool(doc.get("is_current", False)),
        )


@dataclass
class OrganismInfo:
    """Organism-level attributes of a genome."""

    name: str
    display_name: str | None = None
    scientific_name: str | None = None
    url_name: str | None = None
    strain: str | None = None
    serotype: str | None = None
    taxonomy_id: int | None = None
    species_taxonomy_id: int | None = None
    publications: list[str] = field(default_factory=list)
    aliases: list[str] = field(default_factory=list)


@dataclass
class AssemblyInfo:
    """Assembly-level attributes of a genome.

    Attributes:
        accession: INSDC assembly accession (GCA_*)
        name: Assembly name
        default: Default assembly name
        ucsc_alias: UCSC alias for the assembly
        level: Name of the highest-ranked coordinate system
        base_count: Total length of top-level sequences
        sequences: Sequence inventory as {"name": ..., "acc": ...} pairs
    """

    accession: str | None = None
    name: str | None = None
    default: str | None = None
    ucsc_alias: str | None = None
    level: str | None = None
    base_count: int | None = None
    sequences: list[dict[str, str]] = field(default_factory=list)


@dataclass(eq=False)
class SpeciesRecord:
    """Unified metadata record for one species in one division.

    Created once per run by the core database builder and only extended
    afterwards by companion databases and comparative analyses.
    """

    name: str
    species_id: int
    division: str
    dbname: str
    organism: OrganismInfo
    assembly: AssemblyInfo = field(default_factory=AssemblyInfo)
    data_release: DataRelease | None = None
    genebuild: str | None = None
    annotations: dict[str, Any] = field(default_factory=dict)
    features: dict[str, Any] = field(default_factory=dict)
    other_alignments: dict[str, Any] = field(default_factory=dict)
    variations: dict[str, Any] = field(default_factory=dict)
    db_size: int | None = None
    databases: list[str] = field(default_factory=list)
    compara: list[ComparativeAnalysisRecord] = field(default_factory=list)
    # references to analyses recorded by earlier runs, as loaded from the store
    stored_compara: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.dbname not in self.databases:
            self.databases.insert(0, self.dbname)

    def add_database(self, dbname: str) -> None:
        """Register a contributing database (ignored if already present)."""
        if dbname not in self.databases:
            self.databases.append(dbname)

    def add_compara(self, compara: ComparativeAnalysisRecord) -> None:
        self.compara.append(compara)

    def compara_references(self) -> list[dict[str, Any]]:
        """Stored analysis references followed by this run's, each listed once."""
        refs: list[dict[str, Any]] = []
        for ref in [*self.stored_compara, *(c.reference() for c in self.compara)]:
            if ref not in refs:
                refs.append(ref)
        return refs

    def to_dict(self) -> dict[str, Any]:
        """Convert to a document for the metadata store.

        Comparative analyses are referenced by (dbname, method, set_name)
        rather than embedded, as they in turn reference genomes.
        """
        return {
            "name": self.name,
            "species_id": self.species_id,
            "division": self.division,
            "dbname": self.dbname,
            "data_release": self.data_release.to_dict() if self.data_release else None,
            "genebuild": self.genebuild,
            "organism": {
                "name": self.organism.name,
                "display_name": self.organism.display_name,
                "scientific_name": self.organism.scientific_name,
                "url_name": self.organism.url_name,
                "strain": self.organism.strain,
                "serotype": self.organism.serotype,
                "taxonomy_id": self.organism.taxonomy_id,
                "species_taxonomy_id": self.organism.species_taxonomy_id,
                "publications": list(self.organism.publications),
                "aliases": list(self.organism.aliases),
            },
            "assembly": {
                "accession": self.assembly.accession,
                "name": self.assembly.name,
                "default": self.assembly.default,
                "ucsc_alias": self.assembly.ucsc_alias,
                "level": self.assembly.level,
                "base_count": self.assembly.base_count,
                "sequences": [dict(s) for s in self.assembly.sequences],
            },
            "annotations": self.annotations,
            "features": self.features,
            "other_alignments": self.other_alignments,
            "variations": self.variations,
            "db_size": self.db_size,
            "databases": list(self.databases),
            "compara": self.compara_references(),
        }

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> SpeciesRecord:
        """Rebuild a record from a stored document.

        Stored comparative analysis references are kept as plain references
        in stored_compara; the compara list starts empty.
        """
        organism_doc = doc.get("organism") or {}
        assembly_doc = doc.get("assembly") or {}
        release_doc = doc.get("data_release")
        return cls(
            name=doc["name"],
            species_id=doc.get("species_id", 1),
            division=doc["division"],
            dbname=doc["dbname"],
            organism=OrganismInfo(
                name=organism_doc.get("name", doc["name"]),
                display_name=organism_doc.get("display_name"),
                scientific_name=organism_doc.get("scientific_name"),
                url_name=organism_doc.get("url_name"),
                strain=organism_doc.get("strain"),
                serotype=organism_doc.get("serotype"),
                taxonomy_id=organism_doc.get("taxonomy_id"),
                species_taxonomy_id=organism_doc.get("species_taxonomy_id"),
                publications=list(organism_doc.get("publications") or []),
                aliases=list(organism_doc.get("aliases") or []),
            ),
            assembly=AssemblyInfo(
                accession=assembly_doc.get("accession"),
                name=assembly_doc.get("name"),
                default=assembly_doc.get("default"),
                ucsc_alias=assembly_doc.get("ucsc_alias"),
                level=assembly_doc.get("level"),
                base_count=assembly_doc.get("base_count"),
                sequences=[dict(s) for s in assembly_doc.get("sequences") or []],
            ),
            data_release=DataRelease.from_dict(release_doc) if release_doc else None,
            genebuild=doc.get("genebuild"),
            annotations=dict(doc.get("annotations") or {}),
            features=dict(doc.get("features") or {}),
            other_alignments=dict(doc.get("other_alignments") or {}),
            variations=dict(doc.get("variations") or {}),
            db_size=doc.get("db_size"),
            databases=list(doc.get("databases") or []),
            stored_compara=[
                {"dbname": ref.get("dbname"), "method": ref.get("method"), "set_name": ref.get("set_name")}
                for ref in doc.get("compara") or []
            ],
        )


@dataclass(eq=False)
class ComparativeAnalysisRecord:
    """One comparative analysis run over a fixed set of species.

    Attributes:
        dbname: Name of the compara database the analysis came from
        division: Division of the compara database
        method: Comparison method (e.g. PROTEIN_TREES, LASTZ_NET)
        set_name: Human-readable species set name
        genomes: Participating species records, each present once
    """

    dbname: str
    division: str
    method: str
    set_name: str | None = None
    genomes: list[SpeciesRecord] = field(default_factory=list)

    def add_genome(self, genome: SpeciesRecord) -> None:
        if not any(g is genome for g in self.genomes):
            self.genomes.append(genome)

    def reference(self) -> dict[str, Any]:
        return {"dbname": self.dbname, "method": self.method, "set_name": self.set_name}

    def to_dict(self) -> dict[str, Any]:
        """Convert to a document for the metadata store."""
        return {
            **self.reference(),
            "division": self.division,
            "genomes": [{"name": g.name, "division": g.division} for g in self.genomes],
        }

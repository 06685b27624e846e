"""Tests for comparative analysis resolution."""

import pytest
from fakes import FakeComparaHandle, FakeStore, make_genome

from genome_metadata.dbs.handle import ComparisonEntry
from genome_metadata.processing.compara import (
    ComparaResolver,
    compara_division,
    participants,
    select_persisted_genome,
    species_set_name,
)
from genome_metadata.processing.errors import ComparaProcessingError, ErrorKind
from genome_metadata.records.models import FUNGI, METAZOA, PAN, PLANTS, VERTEBRATES, DataRelease
from genome_metadata.records.registry import GenomeRegistry


def entry(mlss_id: int, species_set_id: int, genomes: list[str], name: str | None = None, tag: str | None = None):
    return ComparisonEntry(
        mlss_id=mlss_id,
        name=name,
        species_set_id=species_set_id,
        species_set_name=tag,
        genome_names=genomes,
    )


class TestComparaDivision:
    """Tests for compara_division()."""

    @pytest.mark.parametrize(
        ("dbname", "expected"),
        [
            ("ensembl_compara_plants_40_93", PLANTS),
            ("ensembl_compara_fungi_57_110", FUNGI),
            ("ensembl_compara_metazoa_57_110", METAZOA),
            ("ensembl_compara_pan_homology_57_110", PAN),
            ("ensembl_compara_99", VERTEBRATES),
            ("ensembl_compara_110", VERTEBRATES),
        ],
    )
    def test_division_from_name(self, dbname: str, expected: str) -> None:
        """Division short names and bare numeric names are mapped."""
        assert compara_division(dbname) == expected


class TestGroupHelpers:
    """Tests for species set naming and participants."""

    def test_tag_name_preferred(self) -> None:
        """The species set tag is used before the entry name."""
        entries = [entry(1, 10, [], name="LASTZ_NET hsap-mmus"), entry(2, 10, [], tag="mammals")]
        assert species_set_name(entries) == "mammals"

    def test_entry_name_fallback(self) -> None:
        """Without a tag the first entry name is used."""
        entries = [entry(1, 10, [], name="first"), entry(2, 10, [], name="second")]
        assert species_set_name(entries) == "first"

    def test_participants_union(self) -> None:
        """Genome names are unioned in first occurrence order."""
        entries = [entry(1, 10, ["homo_sapiens", "mus_musculus"]), entry(2, 10, ["mus_musculus", "danio_rerio"])]
        assert participants(entries) == ["homo_sapiens", "mus_musculus", "danio_rerio"]


class TestSelectPersistedGenome:
    """Tests for select_persisted_genome()."""

    def test_shared_species_in_plants_compara(self) -> None:
        """Plants compara takes the non-vertebrate copy of a shared species."""
        fungi = make_genome("saccharomyces_cerevisiae", division=FUNGI)
        vert = make_genome("saccharomyces_cerevisiae", division=VERTEBRATES)

        assert select_persisted_genome([fungi, vert], PLANTS) is fungi

    def test_shared_species_in_own_division(self) -> None:
        """Other compara divisions take the copy from their own division."""
        fungi = make_genome("saccharomyces_cerevisiae", division=FUNGI)
        vert = make_genome("saccharomyces_cerevisiae", division=VERTEBRATES)

        assert select_persisted_genome([fungi, vert], VERTEBRATES) is vert
        assert select_persisted_genome([vert, fungi], FUNGI) is fungi

    def test_shared_species_no_match(self) -> None:
        """A shared species with no acceptable copy is not selected."""
        vert = make_genome("drosophila_melanogaster", division=VERTEBRATES)
        assert select_persisted_genome([vert], METAZOA) is None

    def test_other_species_last_wins(self) -> None:
        """For other species the last candidate is chosen."""
        first = make_genome("homo_sapiens")
        last = make_genome("homo_sapiens")
        assert select_persisted_genome([first, last], PLANTS) is last

    def test_no_candidates(self) -> None:
        assert select_persisted_genome([], VERTEBRATES) is None


class TestComparaResolver:
    """Tests for ComparaResolver.process()."""

    def test_one_record_per_species_set(self, registry: GenomeRegistry) -> None:
        """Entries sharing a species set become one analysis."""
        for name in ("homo_sapiens", "mus_musculus", "danio_rerio"):
            registry.add(make_genome(name))
        compara = FakeComparaHandle(
            "ensembl_compara_110",
            {
                "LASTZ_NET": [
                    entry(1, 10, ["homo_sapiens", "mus_musculus"], name="H.sap-M.mus lastz"),
                    entry(2, 10, ["homo_sapiens", "mus_musculus"], tag="H.sap-M.mus"),
                    entry(3, 11, ["homo_sapiens", "danio_rerio"], name="H.sap-D.rer lastz"),
                ]
            },
        )

        records = ComparaResolver().process(compara, registry)

        assert [(r.method, r.set_name) for r in records] == [
            ("LASTZ_NET", "H.sap-M.mus"),
            ("LASTZ_NET", "H.sap-D.rer lastz"),
        ]
        assert all(r.division == VERTEBRATES for r in records)
        assert all(r.dbname == "ensembl_compara_110" for r in records)
        assert [g.name for g in records[0].genomes] == ["homo_sapiens", "mus_musculus"]

    def test_links_both_ways(self, registry: GenomeRegistry) -> None:
        """Every analysis lists its genomes and every genome lists its analyses."""
        human = make_genome("homo_sapiens")
        mouse = make_genome("mus_musculus")
        registry.add(human)
        registry.add(mouse)
        compara = FakeComparaHandle(
            "ensembl_compara_110",
            {
                "PROTEIN_TREES": [entry(1, 5, ["homo_sapiens", "mus_musculus"], tag="default")],
                "SYNTENY": [entry(2, 6, ["homo_sapiens", "mus_musculus"], tag="hsap-mmus")],
            },
        )

        trees, synteny = ComparaResolver().process(compara, registry)

        assert trees.genomes == [human, mouse]
        assert synteny.genomes == [human, mouse]
        assert human.compara == [trees, synteny]
        assert mouse.compara == [trees, synteny]

    def test_methods_processed_in_order(self, registry: GenomeRegistry) -> None:
        """Methods are processed in the configured order, not the database order."""
        registry.add(make_genome("homo_sapiens"))
        compara = FakeComparaHandle(
            "ensembl_compara_110",
            {
                "FAMILY": [entry(1, 1, ["homo_sapiens"], tag="f")],
                "PROTEIN_TREES": [entry(2, 1, ["homo_sapiens"], tag="p")],
            },
        )

        records = ComparaResolver().process(compara, registry)

        assert [r.method for r in records] == ["PROTEIN_TREES", "FAMILY"]

    def test_unresolved_genome_leaves_no_links(self, registry: GenomeRegistry) -> None:
        """An unknown participant abandons the whole compara database."""
        human = make_genome("homo_sapiens")
        registry.add(human)
        compara = FakeComparaHandle(
            "ensembl_compara_110",
            {
                "PROTEIN_TREES": [entry(1, 5, ["homo_sapiens"], tag="ok")],
                "LASTZ_NET": [entry(2, 6, ["homo_sapiens", "pan_troglodytes"], tag="broken")],
            },
        )

        with pytest.raises(ComparaProcessingError, match="Could not process compara ensembl_compara_110") as exc_info:
            ComparaResolver().process(compara, registry)

        assert exc_info.value.kind is ErrorKind.UNRESOLVED_REFERENCE
        assert exc_info.value.species == "pan_troglodytes"
        assert exc_info.value.dbname == "ensembl_compara_110"
        assert human.compara == []

    def test_resolves_from_store(self, registry: GenomeRegistry) -> None:
        """Genomes outside the run are fetched from the store and cached."""
        stored = make_genome("mus_musculus")
        store = FakeStore(genomes=[stored])
        compara = FakeComparaHandle("ensembl_compara_110", {"LASTZ_NET": [entry(1, 1, ["mus_musculus"], tag="m")]})

        (record,) = ComparaResolver(store=store).process(compara, registry)  # type: ignore[arg-type]

        assert record.genomes == [stored]
        assert registry.get("mus_musculus") is stored
        assert stored.compara == [record]

    def test_stored_genome_shared_across_analyses(self, registry: GenomeRegistry) -> None:
        """A stored genome referenced by several analyses is one record in all of them."""
        store = FakeStore(genomes=[make_genome("mus_musculus")])
        registry.add(make_genome("homo_sapiens"))
        compara = FakeComparaHandle(
            "ensembl_compara_110",
            {
                "LASTZ_NET": [entry(1, 1, ["homo_sapiens", "mus_musculus"], tag="a")],
                "SYNTENY": [entry(2, 2, ["mus_musculus"], tag="b")],
            },
        )

        lastz, synteny = ComparaResolver(store=store).process(compara, registry)  # type: ignore[arg-type]

        mouse = registry.get("mus_musculus")
        assert lastz.genomes[1] is mouse
        assert synteny.genomes == [mouse]
        assert mouse is not None and mouse.compara == [lastz, synteny]

    def test_failed_database_leaves_registry_unchanged(self, registry: GenomeRegistry) -> None:
        """Genomes found in the store are not registered when the database fails."""
        store = FakeStore(genomes=[make_genome("mus_musculus")])
        compara = FakeComparaHandle(
            "ensembl_compara_110",
            {"LASTZ_NET": [entry(1, 1, ["mus_musculus", "pan_troglodytes"], tag="broken")]},
        )

        with pytest.raises(ComparaProcessingError):
            ComparaResolver(store=store).process(compara, registry)  # type: ignore[arg-type]

        assert "mus_musculus" not in registry
        assert len(registry) == 0

    def test_shared_species_from_store_uses_policy(self, registry: GenomeRegistry) -> None:
        """A pan compara picks the non-vertebrate copy of a shared species."""
        vert = make_genome("caenorhabditis_elegans", division=VERTEBRATES)
        metazoa = make_genome("caenorhabditis_elegans", division=METAZOA)
        store = FakeStore(genomes=[metazoa, vert])
        compara = FakeComparaHandle(
            "ensembl_compara_pan_homology_57_110",
            {"PROTEIN_TREES": [entry(1, 1, ["caenorhabditis_elegans"], tag="pan")]},
        )

        (record,) = ComparaResolver(store=store).process(compara, registry)  # type: ignore[arg-type]

        assert record.division == PAN
        assert record.genomes == [metazoa]

    def test_baseline_release_fallback(self, registry: GenomeRegistry) -> None:
        """Auxiliary releases fall back to the baseline release for vertebrates."""
        current = DataRelease(ensembl_version=110, ensembl_genomes_version=57, is_current=True)
        baseline = DataRelease(ensembl_version=110)
        human = make_genome("homo_sapiens", data_release=baseline)
        store = FakeStore(genomes=[human], releases=[baseline], data_release=current)
        compara = FakeComparaHandle(
            "ensembl_compara_pan_homology_57_110",
            {"PROTEIN_TREES": [entry(1, 1, ["homo_sapiens"], tag="pan")]},
        )

        (record,) = ComparaResolver(store=store).process(compara, registry)  # type: ignore[arg-type]

        assert record.genomes == [human]
        assert store.data_release is current
        assert store.release_history == [baseline, current]

    def test_baseline_release_missing_restores_context(self, registry: GenomeRegistry) -> None:
        """Without a baseline release the lookup fails and the context is untouched."""
        current = DataRelease(ensembl_version=110, ensembl_genomes_version=57, is_current=True)
        store = FakeStore(data_release=current)
        compara = FakeComparaHandle(
            "ensembl_compara_plants_57_110",
            {"PROTEIN_TREES": [entry(1, 1, ["homo_sapiens"], tag="plants")]},
        )

        with pytest.raises(ComparaProcessingError):
            ComparaResolver(store=store).process(compara, registry)  # type: ignore[arg-type]

        assert store.data_release is current

    def test_no_baseline_fallback_for_baseline_release(self, registry: GenomeRegistry) -> None:
        """A baseline release context does not trigger another lookup."""
        current = DataRelease(ensembl_version=110, is_current=True)
        store = FakeStore(releases=[current], data_release=current)
        compara = FakeComparaHandle("ensembl_compara_110", {"LASTZ_NET": [entry(1, 1, ["homo_sapiens"], tag="x")]})

        with pytest.raises(ComparaProcessingError):
            ComparaResolver(store=store).process(compara, registry)  # type: ignore[arg-type]

        assert store.release_history == []

    def test_empty_compara(self, registry: GenomeRegistry) -> None:
        """A compara database with no analyses yields nothing."""
        assert ComparaResolver().process(FakeComparaHandle("ensembl_compara_110"), registry) == []

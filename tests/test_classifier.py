"""Tests for database classification."""

from fakes import FakeComparaHandle, FakeHandle

from genome_metadata.processing.classifier import DatabaseKind, classify_databases


class TestDatabaseKind:
    """Tests for DatabaseKind.from_dbname()."""

    def test_core(self) -> None:
        """Core database names map to CORE."""
        assert DatabaseKind.from_dbname("homo_sapiens_core_110_38") is DatabaseKind.CORE

    def test_companion_kinds(self) -> None:
        """Each companion tag maps to its kind."""
        assert DatabaseKind.from_dbname("homo_sapiens_otherfeatures_110_38") is DatabaseKind.OTHERFEATURES
        assert DatabaseKind.from_dbname("homo_sapiens_rnaseq_110_38") is DatabaseKind.RNASEQ
        assert DatabaseKind.from_dbname("homo_sapiens_cdna_110_38") is DatabaseKind.CDNA
        assert DatabaseKind.from_dbname("homo_sapiens_variation_110_38") is DatabaseKind.VARIATION
        assert DatabaseKind.from_dbname("homo_sapiens_funcgen_110_38") is DatabaseKind.FUNCGEN

    def test_first_match_wins(self) -> None:
        """A name containing several tags takes the earliest kind in matching order."""
        assert DatabaseKind.from_dbname("core_cdna_test") is DatabaseKind.CORE

    def test_unknown(self) -> None:
        """Names without a kind tag return None."""
        assert DatabaseKind.from_dbname("ensembl_compara_110") is None


class TestClassifyDatabases:
    """Tests for classify_databases()."""

    def test_groups_by_species_and_kind(self) -> None:
        """Handles are filed under species then kind."""
        core = FakeHandle("homo_sapiens_core_110_38", species="homo_sapiens")
        variation = FakeHandle("homo_sapiens_variation_110_38", species="homo_sapiens")
        mouse = FakeHandle("mus_musculus_core_110_39", species="mus_musculus")

        result = classify_databases([variation, mouse, core])

        assert result.by_species == {
            "homo_sapiens": {DatabaseKind.VARIATION: variation, DatabaseKind.CORE: core},
            "mus_musculus": {DatabaseKind.CORE: mouse},
        }
        assert result.comparas == []

    def test_collects_compara(self) -> None:
        """Compara databases are collected separately, in order."""
        first = FakeComparaHandle("ensembl_compara_110")
        second = FakeComparaHandle("ensembl_compara_plants_57_110")

        result = classify_databases([first, second])

        assert result.comparas == [first, second]
        assert result.by_species == {}

    def test_excludes_ancestral(self) -> None:
        """Ancestral databases are ignored even if they look like core databases."""
        ancestral = FakeHandle("ensembl_ancestral_core_110", species="ancestral_sequences")

        result = classify_databases([ancestral])

        assert result.by_species == {}
        assert result.comparas == []

    def test_last_duplicate_wins(self) -> None:
        """A second handle of the same species and kind replaces the first."""
        old = FakeHandle("homo_sapiens_core_109_38", species="homo_sapiens")
        new = FakeHandle("homo_sapiens_core_110_38", species="homo_sapiens")

        result = classify_databases([old, new])

        assert result.by_species["homo_sapiens"][DatabaseKind.CORE] is new

    def test_skips_unrecognised(self) -> None:
        """Unrecognised databases are dropped without error."""
        result = classify_databases([FakeHandle("ensembl_ontology_110"), FakeHandle("ncbi_taxonomy_110")])

        assert result.by_species == {}
        assert result.comparas == []

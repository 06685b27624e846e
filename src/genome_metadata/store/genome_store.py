"""Genome metadata store backed by MongoDB.

Holds SpeciesRecords and ComparativeAnalysisRecords from previous and current
runs, scoped by data release. The metadata processor uses it to find genomes
that were not part of the current run (e.g. when a compara database refers to
a species processed in an earlier release) and to persist its results.

Example:
    >>> store = GenomeStore()
    >>> store.data_release = store.fetch_release_by_ensembl_version(110)
    >>> [g.division for g in store.fetch_by_name("homo_sapiens")]
    ['EnsemblVertebrates']
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pymongo import MongoClient

from genome_metadata.records.models import DataRelease, SpeciesRecord

if TYPE_CHECKING:
    from pymongo.collection import Collection
    from pymongo.database import Database

    from genome_metadata.records.models import ComparativeAnalysisRecord

logger = logging.getLogger(__name__)

# Default MongoDB connection settings
DEFAULT_MONGODB_URI = "mongodb://localhost:27017"
DEFAULT_DATABASE_NAME = "genome_metadata"

GENOMES_COLLECTION = "genomes"
RELEASES_COLLECTION = "data_releases"
COMPARA_COLLECTION = "compara_analyses"


def release_filter(release: DataRelease | None) -> dict[str, Any]:
    """MongoDB filter restricting genome documents to one data release."""
    if release is None:
        return {}
    return {
        "data_release.ensembl_version": release.ensembl_version,
        "data_release.ensembl_genomes_version": release.ensembl_genomes_version,
    }


class GenomeStore:
    """Persisted genome metadata, looked up by species name within a data release.

    The data release context defaults to the release flagged ``is_current`` in
    the store and can be switched by assigning to ``data_release``.
    """

    def __init__(
        self,
        mongodb_uri: str = DEFAULT_MONGODB_URI,
        database_name: str = DEFAULT_DATABASE_NAME,
        data_release: DataRelease | None = None,
    ):
        """Initialize the store.

        Args:
            mongodb_uri: MongoDB connection URI
            database_name: Name of the metadata database
            data_release: Initial release context; loaded from the store when None
        """
        self.mongodb_uri = mongodb_uri
        self.database_name = database_name
        self._data_release = data_release
        self._client: MongoClient[dict[str, Any]] | None = None
        self._db: Database[dict[str, Any]] | None = None

    def _get_db(self) -> Database[dict[str, Any]]:
        """Get or create MongoDB database connection."""
        if self._db is None:
            self._client = MongoClient(self.mongodb_uri)
            self._db = self._client[self.database_name]
        return self._db

    def _get_genomes_collection(self) -> Collection[dict[str, Any]]:
        return self._get_db()[GENOMES_COLLECTION]

    def _get_releases_collection(self) -> Collection[dict[str, Any]]:
        return self._get_db()[RELEASES_COLLECTION]

    def _get_compara_collection(self) -> Collection[dict[str, Any]]:
        return self._get_db()[COMPARA_COLLECTION]

    def close(self) -> None:
        """Close the MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None

    # =========================================================================
    # Data release context
    # =========================================================================

    @property
    def data_release(self) -> DataRelease | None:
        if self._data_release is None:
            doc = self._get_releases_collection().find_one({"is_current": True})
            if doc:
                self._data_release = DataRelease.from_dict(doc)
        return self._data_release

    @data_release.setter
    def data_release(self, release: DataRelease | None) -> None:
        self._data_release = release

    def fetch_release_by_ensembl_version(self, ensembl_version: int) -> DataRelease | None:
        """Find the baseline release (no auxiliary version) for an ensembl version."""
        doc = self._get_releases_collection().find_one(
            {"ensembl_version": ensembl_version, "ensembl_genomes_version": None}
        )
        return DataRelease.from_dict(doc) if doc else None

    # =========================================================================
    # Genome lookups
    # =========================================================================

    def fetch_by_name(self, name: str) -> list[SpeciesRecord]:
        """Fetch every stored genome with this name in the current release context.

        Args:
            name: Species production name

        Returns:
            Matching records, one per division, in storage order
        """
        query = {"name": name, **release_filter(self.data_release)}
        records = [SpeciesRecord.from_dict(doc) for doc in self._get_genomes_collection().find(query)]
        logger.debug(f"Found {len(records)} stored genome(s) named {name}")
        return records

    # =========================================================================
    # Persistence
    # =========================================================================

    def store_genomes(self, records: list[SpeciesRecord], force_update: bool = False) -> int:
        """Write genome records, keyed by (name, division, release).

        Records already stored are left as they are unless force_update is
        set, except that their comparative analysis references are extended.

        Args:
            records: Records to write
            force_update: Overwrite records that are already stored

        Returns:
            Number of records written in full
        """
        collection = self._get_genomes_collection()
        written = 0
        for record in records:
            key = {"name": record.name, "division": record.division, **release_filter(record.data_release)}
            if not force_update and collection.find_one(key) is not None:
                refs = record.compara_references()
                if refs:
                    collection.update_one(key, {"$addToSet": {"compara": {"$each": refs}}})
                    logger.info(f"Linked {record.name} ({record.division}) to {len(refs)} comparative analyses")
                else:
                    logger.info(f"Skipping {record.name} ({record.division}): already stored")
                continue
            collection.replace_one(key, record.to_dict(), upsert=True)
            written += 1
        logger.info(f"Stored {written} of {len(records)} genome records")
        return written

    def store_comparas(self, records: list[ComparativeAnalysisRecord]) -> int:
        """Write comparative analysis records, keyed by (dbname, method, set_name)."""
        collection = self._get_compara_collection()
        for record in records:
            collection.replace_one(record.reference(), record.to_dict(), upsert=True)
        logger.info(f"Stored {len(records)} comparative analysis records")
        return len(records)

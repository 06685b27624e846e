"""Persisted genome metadata store.

Provides MongoDB-backed lookup of previously processed genomes by name and
data release, and persistence of processing results.
"""

from genome_metadata.store.genome_store import (
    DEFAULT_DATABASE_NAME,
    DEFAULT_MONGODB_URI,
    GenomeStore,
    release_filter,
)

__all__ = [
    "DEFAULT_DATABASE_NAME",
    "DEFAULT_MONGODB_URI",
    "GenomeStore",
    "release_filter",
]

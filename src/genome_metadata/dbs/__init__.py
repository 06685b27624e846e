"""Relational database access for genome metadata processing."""

from genome_metadata.dbs.discovery import discover_handles, species_from_dbname
from genome_metadata.dbs.handle import ComparaHandle, ComparisonEntry, DatabaseHandle, MetaContainer

__all__ = [
    "ComparaHandle",
    "ComparisonEntry",
    "DatabaseHandle",
    "MetaContainer",
    "discover_handles",
    "species_from_dbname",
]

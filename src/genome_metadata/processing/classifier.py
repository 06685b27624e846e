"""Partition database handles by species and database kind.

This is a best-effort partition driven by database names: handles that match
no known kind are skipped, never reported as errors.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from genome_metadata.dbs.handle import DatabaseHandle

logger = logging.getLogger(__name__)

ANCESTRAL_MARKER = "ancestral"
COMPARA_MARKER = "_compara_"


class DatabaseKind(str, Enum):
    """Kinds of per-species database, in matching order."""

    CORE = "core"  # primary database, creates the species record
    OTHERFEATURES = "otherfeatures"  # alternate gene sets
    RNASEQ = "rnaseq"
    CDNA = "cdna"
    VARIATION = "variation"
    FUNCGEN = "funcgen"  # regulation

    @classmethod
    def from_dbname(cls, dbname: str) -> DatabaseKind | None:
        """Return the first kind whose tag occurs in the database name."""
        for kind in cls:
            if kind.value in dbname:
                return kind
        return None


@dataclass
class ClassifiedDatabases:
    """Result of classifying a collection of handles.

    Attributes:
        by_species: species -> kind -> handle
        comparas: compara database handles, in input order
    """

    by_species: dict[str, dict[DatabaseKind, DatabaseHandle]] = field(default_factory=dict)
    comparas: list[DatabaseHandle] = field(default_factory=list)


def classify_databases(handles: Iterable[DatabaseHandle]) -> ClassifiedDatabases:
    """Group handles by species and kind, and collect compara databases.

    Ancestral databases are excluded. When two handles share species and kind
    the later one replaces the earlier.

    Args:
        handles: Database handles in any order

    Returns:
        ClassifiedDatabases
    """
    classified = ClassifiedDatabases()
    for handle in handles:
        dbname = handle.dbname
        if ANCESTRAL_MARKER in dbname:
            continue
        kind = DatabaseKind.from_dbname(dbname)
        if kind is not None and handle.species is not None:
            species_dbs = classified.by_species.setdefault(handle.species, {})
            if kind in species_dbs:
                logger.debug(f"Replacing {kind.value} database {species_dbs[kind].dbname} with {dbname}")
            species_dbs[kind] = handle
        elif COMPARA_MARKER in dbname:
            classified.comparas.append(handle)
        else:
            logger.debug(f"Skipping unrecognised database {dbname}")
    return classified

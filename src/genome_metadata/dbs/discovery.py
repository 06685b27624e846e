"""Build database handles from database names on a server.

Core-like databases may hold several species (collection databases), so one
handle is created per species.production_name found in their meta table.
Variation and funcgen databases take the species from the database name.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable

from sqlalchemy.engine import Engine

from genome_metadata.dbs.handle import ComparaHandle, DatabaseHandle

logger = logging.getLogger(__name__)

CORE_LIKE_PATTERN = re.compile(r"_(core|otherfeatures|rnaseq|cdna)_")
SPECIES_FROM_NAME_PATTERN = re.compile(r"^(?P<species>[a-z0-9_]+?)_(?:variation|funcgen)_\d+")
COMPARA_MARKER = "_compara_"

PRODUCTION_NAMES_SQL = (
    "select species_id, meta_value from meta where meta_key = 'species.production_name' order by species_id"
)


def species_from_dbname(dbname: str) -> str | None:
    """Extract the species prefix from e.g. 'homo_sapiens_variation_110_38'."""
    match = SPECIES_FROM_NAME_PATTERN.match(dbname)
    return match.group("species") if match else None


def discover_handles(engine_factory: Callable[[str], Engine], dbnames: Iterable[str]) -> list[DatabaseHandle]:
    """Create handles for the named databases.

    Args:
        engine_factory: Returns an engine connected to the named database
        dbnames: Database (schema) names to inspect

    Returns:
        Handles for every species found; unrecognised names are skipped
    """
    handles: list[DatabaseHandle] = []
    for dbname in dbnames:
        engine = engine_factory(dbname)
        if COMPARA_MARKER in dbname:
            handles.append(ComparaHandle(engine, dbname))
        elif CORE_LIKE_PATTERN.search(dbname):
            probe = DatabaseHandle(engine, dbname)
            species_rows: list[tuple[int, str]] = []
            probe.execute_no_return(PRODUCTION_NAMES_SQL, callback=lambda row: species_rows.append((row[0], row[1])))
            if not species_rows:
                logger.warning(f"No species.production_name found in {dbname}, skipping")
            for species_id, species in species_rows:
                handles.append(DatabaseHandle(engine, dbname, species=species, species_id=species_id))
        else:
            species = species_from_dbname(dbname)
            if species is None:
                logger.warning(f"Could not determine species for {dbname}, skipping")
                continue
            handles.append(DatabaseHandle(engine, dbname, species=species))
    logger.info(f"Discovered {len(handles)} database handles")
    return handles

"""Database handles for core-like and compara databases.

A handle couples a SQLAlchemy engine with the identity of the species it
describes. All statements are run through ``sqlalchemy.text`` with bound
parameters; nothing is string-interpolated into SQL.

Example:
    >>> engine = create_engine("mysql+pymysql://ensro@localhost:3306/homo_sapiens_core_110_38")
    >>> dba = DatabaseHandle(engine, "homo_sapiens_core_110_38", species="homo_sapiens")
    >>> dba.meta.single_value_by_key("species.scientific_name")
    'Homo sapiens'
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Engine

from genome_metadata.processing.errors import InvalidMetadataError

logger = logging.getLogger(__name__)

META_VALUES_SQL = "select meta_value from meta where meta_key = :meta_key and species_id = :species_id order by meta_id"


class DatabaseHandle:
    """Query access to one species in one relational database.

    Attributes:
        engine: SQLAlchemy engine connected to the database
        dbname: Schema name of the database
        species: Species production name, None for multi-species databases
        species_id: Numeric species id within the database (1 for single-species dbs)
    """

    def __init__(self, engine: Engine, dbname: str, species: str | None = None, species_id: int = 1):
        self.engine = engine
        self.dbname = dbname
        self.species = species
        self.species_id = species_id
        self._meta: MetaContainer | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(dbname='{self.dbname}', species='{self.species}')>"

    def execute_single_result(self, sql: str, params: dict[str, Any] | None = None) -> Any:
        """Run a query and return the first column of the first row (or None)."""
        with self.engine.connect() as conn:
            return conn.execute(text(sql), params or {}).scalar()

    def execute_simple(self, sql: str, params: dict[str, Any] | None = None) -> list[Any]:
        """Run a query and return the first column of every row."""
        with self.engine.connect() as conn:
            return list(conn.execute(text(sql), params or {}).scalars())

    def execute_no_return(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        callback: Callable[[Sequence[Any]], None] | None = None,
    ) -> None:
        """Run a query, passing each row to callback."""
        with self.engine.connect() as conn:
            for row in conn.execute(text(sql), params or {}):
                if callback is not None:
                    callback(tuple(row))

    @property
    def meta(self) -> MetaContainer:
        if self._meta is None:
            self._meta = MetaContainer(self)
        return self._meta


class MetaContainer:
    """Key/value lookups against the meta table of a core-like database."""

    def __init__(self, handle: DatabaseHandle):
        self.handle = handle

    def list_value_by_key(self, key: str) -> list[str]:
        return [
            str(v)
            for v in self.handle.execute_simple(
                META_VALUES_SQL, {"meta_key": key, "species_id": self.handle.species_id}
            )
        ]

    def single_value_by_key(self, key: str) -> str | None:
        """Return the value for key, or None if it is not set.

        Raises:
            InvalidMetadataError: If the key holds more than one value
        """
        values = self.list_value_by_key(key)
        if len(values) > 1:
            raise InvalidMetadataError(
                f"Found {len(values)} values for meta key '{key}' in {self.handle.dbname}",
                species=self.handle.species,
                dbname=self.handle.dbname,
            )
        return values[0] if values else None

    def get_display_name(self) -> str | None:
        return self.single_value_by_key("species.display_name")

    def get_taxonomy_id(self) -> int | None:
        value = self.single_value_by_key("species.taxonomy_id")
        return int(value) if value is not None else None


COMPARISONS_SQL = """
select mlss.method_link_species_set_id, mlss.name, mlss.species_set_id, sst.value
from method_link_species_set mlss
join method_link ml on (ml.method_link_id = mlss.method_link_id)
left join species_set_tag sst on (sst.species_set_id = mlss.species_set_id and sst.tag = 'name')
where ml.type = :method
order by mlss.method_link_species_set_id
"""

SPECIES_SET_GENOMES_SQL = """
select gdb.name
from species_set ss
join genome_db gdb on (gdb.genome_db_id = ss.genome_db_id)
where ss.species_set_id = :species_set_id
order by gdb.genome_db_id
"""


@dataclass
class ComparisonEntry:
    """A method/species-set pairing stored in a compara database.

    Attributes:
        mlss_id: method_link_species_set identifier
        name: Name of the method_link_species_set
        species_set_id: Identifier of the species set compared
        species_set_name: The species set's "name" tag, if any
        genome_names: Production names of the genomes in the species set
    """

    mlss_id: int
    name: str | None
    species_set_id: int
    species_set_name: str | None = None
    genome_names: list[str] = field(default_factory=list)


class ComparaHandle(DatabaseHandle):
    """Handle on a compara database spanning many species."""

    def fetch_comparisons(self, method: str) -> list[ComparisonEntry]:
        """Fetch every method_link_species_set of the given method type."""
        entries: list[ComparisonEntry] = []

        def collect(row: Sequence[Any]) -> None:
            mlss_id, name, species_set_id, ss_name = row
            entries.append(
                ComparisonEntry(mlss_id=mlss_id, name=name, species_set_id=species_set_id, species_set_name=ss_name)
            )

        self.execute_no_return(COMPARISONS_SQL, {"method": method}, callback=collect)

        genomes_by_set: dict[int, list[str]] = {}
        for entry in entries:
            if entry.species_set_id not in genomes_by_set:
                genomes_by_set[entry.species_set_id] = self.execute_simple(
                    SPECIES_SET_GENOMES_SQL, {"species_set_id": entry.species_set_id}
                )
            entry.genome_names = list(genomes_by_set[entry.species_set_id])
        return entries

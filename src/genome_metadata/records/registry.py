"""Per-run registry of species records.

The registry is the single map from species name to SpeciesRecord that is
threaded through the core builders, the companion builders and the compara
resolver. Entries are replaced or extended in place, never duplicated.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from genome_metadata.records.models import SpeciesRecord

logger = logging.getLogger(__name__)


class GenomeRegistry:
    """Mutable species-name -> SpeciesRecord map owned by one pipeline run."""

    def __init__(self, records: dict[str, SpeciesRecord] | None = None):
        self._records: dict[str, SpeciesRecord] = dict(records or {})

    def get(self, name: str, division: str | None = None) -> SpeciesRecord | None:
        """Look up a record by species name.

        Args:
            name: Species production name
            division: If given, only return the record when its division matches

        Returns:
            The record, or None
        """
        record = self._records.get(name)
        if record is None:
            return None
        if division is not None and record.division != division:
            return None
        return record

    def add(self, record: SpeciesRecord) -> None:
        if record.name in self._records and self._records[record.name] is not record:
            logger.debug(f"Replacing registry entry for {record.name}")
        self._records[record.name] = record

    def records(self) -> list[SpeciesRecord]:
        return list(self._records.values())

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

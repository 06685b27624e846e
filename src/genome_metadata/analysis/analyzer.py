"""Interface of the annotation analysis collaborator.

The analyzer inspects a single database and summarises its content. The
metadata processor only merges and cross-references what it returns.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from genome_metadata.dbs.handle import DatabaseHandle


class AnnotationAnalyzer(Protocol):
    """Summarises the annotation held in a core-like or variation database."""

    def analyze_annotation(self, handle: DatabaseHandle) -> dict[str, Any]:
        """Annotation summary (e.g. counts of genes with GO terms)."""
        ...

    def analyze_alignments(self, handle: DatabaseHandle) -> dict[str, dict[str, Any]]:
        """Alignment summary keyed by source."""
        ...

    def analyze_features(self, handle: DatabaseHandle) -> dict[str, Any]:
        """Feature summary keyed by feature type and logic name."""
        ...

    def analyze_tracks(self, name: str, division: str) -> dict[str, list[dict[str, Any]]]:
        """Read alignment tracks keyed by source; each track carries an "id"."""
        ...

    def analyze_variation(self, handle: DatabaseHandle) -> dict[str, Any]:
        """Variation summary for a variation database."""
        ...

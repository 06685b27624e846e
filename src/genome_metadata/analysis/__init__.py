"""Annotation analysis collaborator interface."""

from genome_metadata.analysis.analyzer import AnnotationAnalyzer

__all__ = ["AnnotationAnalyzer"]

# kg_chapters/nlp/__init__.py

"""
Concept extraction: candidate discovery, scoring, mention tracking,
relationship inference and hierarchy/sequence building.
"""

from .concept_extraction import ConceptExtractor, ExtractionMode, extract_concept_graph, get_concept_extractor

__all__ = ["ConceptExtractor", "ExtractionMode", "extract_concept_graph", "get_concept_extractor"]

"""Extraction package exports."""

from patternie.extraction.builder import build_extraction, valid_match
from patternie.extraction.distributions import PatternDistributions
from patternie.extraction.models import DetailedExtraction, ExtractedTriple, RankedExtraction
from patternie.extraction.pattern import DependencyPattern, EdgeMatcher, Match, NodeMatcher
from patternie.extraction.pattern_extractor import (
    GeneralExtractor,
    LdaExtractor,
    PatternExtractor,
    SpecificExtractor,
    TemplateExtractor,
    load_extractors,
    parse_extractor,
)

__all__ = [
    "DependencyPattern",
    "DetailedExtraction",
    "EdgeMatcher",
    "ExtractedTriple",
    "GeneralExtractor",
    "LdaExtractor",
    "Match",
    "NodeMatcher",
    "PatternDistributions",
    "PatternExtractor",
    "RankedExtraction",
    "SpecificExtractor",
    "TemplateExtractor",
    "build_extraction",
    "load_extractors",
    "parse_extractor",
    "valid_match",
]

"""Pipeline package exports."""

from patternie.pipeline.extraction_pipeline import PatternExtractionPipeline
from patternie.pipeline.sentence_runner import (
    SentenceRecord,
    SentenceResult,
    SentenceRunner,
    iter_sentence_records,
    parse_sentence_record,
)

__all__ = [
    "PatternExtractionPipeline",
    "SentenceRecord",
    "SentenceResult",
    "SentenceRunner",
    "iter_sentence_records",
    "parse_sentence_record",
]

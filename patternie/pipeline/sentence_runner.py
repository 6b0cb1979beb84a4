"""Sentence record loop.

Each record is one line: an optional raw-text column, a TAB, then the serialized
dependency graph. Malformed records are logged and skipped; the loop never aborts
a batch because of one bad line.
"""

from __future__ import annotations

from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Deque, Iterable, Iterator, List, Optional

from loguru import logger

from patternie.extraction.models import RankedExtraction
from patternie.graph.dependency_graph import DependencyGraph
from patternie.pipeline.extraction_pipeline import PatternExtractionPipeline
from patternie.utils.config import RunnerConfig

Postprocess = Callable[[List[RankedExtraction]], List[RankedExtraction]]


@dataclass(frozen=True)
class SentenceRecord:
    """A deserialized sentence record."""

    text: str
    graph: DependencyGraph
    serialized: str


@dataclass(frozen=True)
class SentenceResult:
    """Ranked extractions for one sentence record."""

    record: SentenceRecord
    extractions: List[RankedExtraction] = field(default_factory=list)


def parse_sentence_record(line: str) -> SentenceRecord:
    """Parse ``[text<TAB>]graph``.

    Raises:
        ValueError: If the line has more than two columns or the graph is malformed
    """
    parts = line.rstrip("\r\n").split("\t")
    if len(parts) > 2:
        raise ValueError(f"each line in sentence file must have no more than two columns: {line!r}")

    serialized = parts[-1]
    graph = DependencyGraph.deserialize(serialized)
    text = parts[0] if len(parts) > 1 else graph.text
    return SentenceRecord(text=text, graph=graph, serialized=serialized)


def iter_sentence_records(lines: Iterable[str]) -> Iterator[SentenceRecord]:
    """Yield parsed records, logging and skipping the ones that fail to parse."""
    for line_number, line in enumerate(lines, 1):
        if not line.strip():
            continue
        try:
            yield parse_sentence_record(line)
        except ValueError as exc:
            logger.error(f"could not deserialize graph on line {line_number}: {exc}")


def format_extraction_line(result: RankedExtraction, record: SentenceRecord) -> str:
    """Tab separated output row: confidence, extraction, pattern, text, graph."""
    extraction = result.extraction
    return "\t".join(
        (
            f"{result.confidence:1.6f}",
            str(extraction),
            extraction.pattern,
            record.text,
            record.serialized,
        )
    )


class SentenceRunner:
    """Run an extraction pipeline over a stream of sentence records."""

    def __init__(
        self,
        pipeline: PatternExtractionPipeline,
        config: Optional[RunnerConfig] = None,
        *,
        postprocess: Optional[Postprocess] = None,
    ) -> None:
        self.pipeline = pipeline
        self.config = config or RunnerConfig()
        self.postprocess = postprocess

    def process(self, record: SentenceRecord) -> SentenceResult:
        logger.debug(f"text: {record.text}")
        logger.debug(f"graph: {record.serialized}")

        extractions = self.pipeline.extract(record.graph)
        if self.postprocess is not None:
            extractions = self.postprocess(extractions)
        return SentenceResult(record=record, extractions=extractions)

    def run(self, lines: Iterable[str]) -> Iterator[SentenceResult]:
        """Process records in input order, concurrently when ``max_workers`` > 1.

        At most ``2 * max_workers`` records are in flight at once.
        """
        records = iter_sentence_records(lines)
        workers = self.config.max_workers
        if workers == 1:
            for record in records:
                yield self.process(record)
            return

        pending: Deque[Future[SentenceResult]] = deque()
        with ThreadPoolExecutor(max_workers=workers) as executor:
            for record in records:
                pending.append(executor.submit(self.process, record))
                if len(pending) >= 2 * workers:
                    yield pending.popleft().result()
            while pending:
                yield pending.popleft().result()

    def run_file(self, path: str | Path) -> Iterator[SentenceResult]:
        logger.info(f"performing extractions on {path}")
        with open(path, encoding="utf-8") as f:
            yield from self.run(f)

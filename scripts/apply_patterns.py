#!/usr/bin/env python3
"""Apply dependency patterns to a file of sentences.

Each input line holds an optional raw-text column and a serialized dependency
graph, separated by a TAB. With --parse, input lines are raw sentences instead and
are parsed with spaCy first.

Usage:
    python scripts/apply_patterns.py general sentences.txt --patterns patterns.tsv
    python scripts/apply_patterns.py lda sentences.txt --lda data/distributions --threshold 0.2
    python scripts/apply_patterns.py template sentences.txt -p templates.tsv --json -o out.jsonl
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterator, List, TextIO

import yaml
from loguru import logger

# Add the project root to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from patternie.extraction.distributions import PatternDistributions  # noqa: E402
from patternie.extraction.pattern_extractor import load_extractors  # noqa: E402
from patternie.pipeline.extraction_pipeline import PatternExtractionPipeline  # noqa: E402
from patternie.pipeline.sentence_runner import (  # noqa: E402
    SentenceResult,
    SentenceRunner,
    format_extraction_line,
)
from patternie.utils.config import (  # noqa: E402
    Config,
    ExtractorConfig,
    PatternSourceConfig,
    RunnerConfig,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract (arg1; rel; arg2) triples from dependency-parsed sentences",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("type", choices=["general", "specific", "lda", "template"], help="Type of extractor")
    parser.add_argument("sentences", type=Path, help="Sentence file")
    parser.add_argument("--config", "-c", type=Path, default=None, help="Path to configuration file")
    parser.add_argument("--patterns", "-p", type=Path, default=None, help="Pattern file")
    parser.add_argument("--lda", type=Path, default=None, help="Distributions directory")
    parser.add_argument("--threshold", "-t", type=float, default=None, help="Confidence threshold")
    parser.add_argument("--output", "-o", type=Path, default=None, help="Output file (otherwise stdout)")
    parser.add_argument("--duplicates", "-d", action="store_true", help="Keep duplicate extractions")
    parser.add_argument("--no-expand", action="store_true", help="Do not expand arguments and relations")
    parser.add_argument("--collapse-vb", action="store_true", help="Collapse 'VB.*' to 'VB' in the graph")
    parser.add_argument(
        "--all", "-a", action="store_true", help="Don't restrict arguments to nouns, adjectives or pronouns"
    )
    parser.add_argument("--workers", type=int, default=None, help="Sentences processed concurrently")
    parser.add_argument("--parse", action="store_true", help="Input lines are raw text; parse them with spaCy")
    parser.add_argument("--json", action="store_true", help="Write one JSON object per extraction")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    return parser


def resolve_config(args: argparse.Namespace) -> Config:
    """Load the YAML configuration (if any) and apply command line overrides."""
    config = Config.from_yaml(args.config) if args.config else Config()

    extractor_updates = {}
    if args.threshold is not None:
        extractor_updates["confidence_threshold"] = args.threshold
    if args.duplicates:
        extractor_updates["keep_duplicates"] = True
    if args.no_expand:
        extractor_updates["expand_extraction"] = False
    if args.collapse_vb:
        extractor_updates["simplify_vb_postags"] = True
    if args.all:
        extractor_updates["restrict_arguments"] = False

    pattern_updates = {"extractor_type": args.type}
    if args.patterns is not None:
        pattern_updates["pattern_file"] = args.patterns
    if args.lda is not None:
        pattern_updates["distributions_dir"] = args.lda

    runner_updates = {"verbose": args.verbose or config.runner.verbose}
    if args.workers is not None:
        runner_updates["max_workers"] = args.workers

    # model_copy skips validation; rebuild each section through model_validate
    config = config.model_copy(
        update={
            "extractor": ExtractorConfig.model_validate({**config.extractor.model_dump(), **extractor_updates}),
            "patterns": PatternSourceConfig.model_validate({**config.patterns.model_dump(), **pattern_updates}),
            "runner": RunnerConfig.model_validate({**config.runner.model_dump(), **runner_updates}),
        }
    )
    config.validate_config()
    return config


def configure_logging(config: Config, verbose: bool) -> None:
    log_level = "DEBUG" if verbose else config.logging.level
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=log_level,
    )
    if config.logging.file:
        log_file = Path(config.logging.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, rotation=config.logging.rotation, retention=config.logging.retention, level="DEBUG")


def raw_text_records(path: Path, config: Config) -> Iterator[str]:
    """Parse raw sentences with spaCy and re-emit them as sentence records."""
    from patternie.graph.spacy_adapter import SpacyGraphParser

    parser = SpacyGraphParser(config.spacy)
    with open(path, encoding="utf-8") as f:
        for line in f:
            text = line.strip()
            if not text:
                continue
            for graph in parser.parse(text):
                yield f"{graph.text}\t{graph.serialize()}"


def write_result(result: SentenceResult, writer: TextIO, *, as_json: bool, verbose: bool) -> None:
    if verbose:
        writer.write(f"text: {result.record.text}\n")
        writer.write(f"deps: {result.record.serialized}\n")

    for ranked in result.extractions:
        if as_json:
            writer.write(ranked.to_triple().model_dump_json() + "\n")
        elif verbose:
            writer.write(
                f"extraction: {ranked.confidence:1.6f} {ranked.extraction} "
                f"with ({ranked.extraction.pattern})\n"
            )
        else:
            writer.write(format_extraction_line(ranked, result.record) + "\n")

    if verbose:
        writer.write("\n")


def main(argv: List[str] | None = None) -> int:
    """Main CLI function."""
    args = build_parser().parse_args(argv)

    try:
        config = resolve_config(args)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 1

    configure_logging(config, config.runner.verbose)
    logger.info(f"args: {' '.join(argv if argv is not None else sys.argv[1:])}")

    try:
        distributions = None
        if config.patterns.distributions_dir is not None:
            logger.info("loading distributions")
            distributions = PatternDistributions.from_directory(config.patterns.distributions_dir)

        extractors = load_extractors(
            config.patterns.extractor_type,
            distributions=distributions,
            pattern_file=config.patterns.pattern_file,
        )
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        logger.error(f"Could not load extractors: {exc}")
        return 1

    pipeline = PatternExtractionPipeline(extractors, config.extractor)
    runner = SentenceRunner(pipeline, config.runner)

    if args.parse:
        results = runner.run(raw_text_records(args.sentences, config))
    else:
        results = runner.run_file(args.sentences)

    writer = open(args.output, "w", encoding="utf-8") if args.output else sys.stdout
    try:
        for result in results:
            write_result(result, writer, as_json=args.json, verbose=config.runner.verbose)
    finally:
        if writer is not sys.stdout:
            writer.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Pattern/relation co-occurrence distributions used to score extractors."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

DISTRIBUTIONS_FILENAME = "distributions.yaml"


class PatternDistributions(BaseModel):
    """Encoded patterns and relations with their co-occurrence counts.

    ``counts[pattern_code][relation_code]`` is the number of times the relation was
    seen extracted by the pattern.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    patterns: Dict[int, str]
    relations: Dict[int, str] = Field(default_factory=dict)
    counts: Dict[int, Dict[int, int]] = Field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PatternDistributions":
        path = Path(path)
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Distributions root must be a mapping/dict: {path}")
        distributions = cls(**data)
        logger.info(
            f"Loaded distributions with {len(distributions.patterns)} patterns "
            f"and {len(distributions.relations)} relations",
            path=str(path),
        )
        return distributions

    @classmethod
    def from_directory(cls, directory: str | Path) -> "PatternDistributions":
        return cls.from_yaml(Path(directory) / DISTRIBUTIONS_FILENAME)

    @property
    def pattern_codes(self) -> List[int]:
        """Pattern codes, most frequent first."""
        return sorted(self.patterns, key=lambda code: (-self.pattern_count(code), code))

    def pattern_decoding(self, code: int) -> str:
        return self.patterns[code]

    def relation_decoding(self, code: int) -> str:
        return self.relations[code]

    def relation_encoding(self, relation: str) -> Optional[int]:
        for code, text in self.relations.items():
            if text == relation:
                return code
        return None

    def relations_for_pattern(self, pattern_code: int) -> List[int]:
        """Relation codes seen with a pattern, most frequent first."""
        seen = self.counts.get(pattern_code, {})
        return sorted((code for code, count in seen.items() if count > 0), key=lambda code: (-seen[code], code))

    def pattern_count(self, pattern_code: int) -> int:
        return sum(self.counts.get(pattern_code, {}).values())

    def relation_count(self, relation_code: int) -> int:
        return sum(seen.get(relation_code, 0) for seen in self.counts.values())

    def pattern_confidence(self, pattern_code: int) -> float:
        """Pattern frequency relative to the most frequent pattern."""
        highest = max((self.pattern_count(code) for code in self.patterns), default=0)
        if highest == 0:
            return 0.0
        return self.pattern_count(pattern_code) / highest

    def relation_given_pattern(self, pattern_code: int, relation_code: int) -> float:
        total = self.pattern_count(pattern_code)
        if total == 0:
            return 0.0
        return self.counts.get(pattern_code, {}).get(relation_code, 0) / total

    def pattern_given_relation(self, pattern_code: int, relation_code: int) -> float:
        total = self.relation_count(relation_code)
        if total == 0:
            return 0.0
        return self.counts.get(pattern_code, {}).get(relation_code, 0) / total

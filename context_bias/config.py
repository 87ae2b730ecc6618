"""Configuration for context biasing.

The defaults follow the values commonly used for hotword biasing on
streaming ASR decoders:
- At most 5000 phrases per graph
- At most 100 codepoints per phrase
- A flat bonus of 3.0 per matched token
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict
import json


@dataclass(frozen=True)
class ContextConfig:
    """Immutable parameters of a context graph.

    Attributes:
        max_contexts: Maximum number of phrases compiled into one graph
        max_context_length: Maximum phrase length in codepoints
        context_score: Bonus credited to the first token of a phrase
        incremental_context_score: Extra bonus added per token position
    """

    max_contexts: int = 5000
    max_context_length: int = 100
    context_score: float = 3.0
    incremental_context_score: float = 0.0

    def __post_init__(self):
        if self.max_contexts < 0:
            raise ValueError(f"max_contexts must be >= 0, got {self.max_contexts}")
        if self.max_context_length < 0:
            raise ValueError(
                f"max_context_length must be >= 0, got {self.max_context_length}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ContextConfig":
        """Create a config from a plain dictionary.

        Unknown keys are rejected so that typos in config files surface early.
        """
        unknown = set(d) - set(ContextConfig.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown context config keys: {sorted(unknown)}")
        return ContextConfig(**d)

    @staticmethod
    def from_json(path: str) -> "ContextConfig":
        with open(path, 'r', encoding='utf-8') as f:
            return ContextConfig.from_dict(json.load(f))

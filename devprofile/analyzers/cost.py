"""Token and credit estimation without calling the model."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Mapping, Optional, Sequence, Union

from .models import GitStatistics

BASE_TOKENS = 2000
TOKENS_PER_COMMIT = 10
MAX_COMMIT_TOKENS = 2000
TOKENS_PER_CONFIG_FILE = 300
CHARS_PER_TOKEN = 4
MAX_README_TOKENS = 1000
TOKENS_PER_FILE = 5
MAX_FILE_TOKENS = 500
OUTPUT_TOKENS = 2000
TOKENS_PER_CREDIT = 1000

# (minimum commits exclusive, scale), checked in order
SCALE_THRESHOLDS = (
    (500, "enterprise"),
    (150, "large"),
    (50, "medium"),
    (10, "small"),
)

Number = Union[int, float]


def _number(value: float) -> Number:
    """Collapse integral floats to int so they render without a trailing .0."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def classify_scale(total_commits: int) -> str:
    """Display-only project scale bucketed by commit count."""
    for threshold, scale in SCALE_THRESHOLDS:
        if total_commits > threshold:
            return scale
    return "micro"


@dataclass(frozen=True)
class TokenEstimate:
    estimated_input_tokens: Number
    estimated_output_tokens: int
    estimated_total_tokens: Number
    estimated_credits: int
    project_scale: str

    @property
    def message(self) -> str:
        return format_estimate_message(
            self.estimated_credits, self.estimated_total_tokens, self.project_scale
        )

    def to_dict(self) -> dict:
        return asdict(self)


def format_estimate_message(credits: int, total_tokens: Number, scale: str) -> str:
    return (
        f"Repository analysis will use approximately {credits} credits "
        f"(~{total_tokens} tokens). Project scale: {scale}."
    )


def estimate_tokens(
    stats: GitStatistics,
    config_files: Optional[Mapping[str, str]] = None,
    readme: Optional[str] = None,
    file_structure: Optional[Sequence[str]] = None,
) -> TokenEstimate:
    """Weighted token estimate for an analysis of the collected data."""
    commit_tokens = min(stats.total_commits * TOKENS_PER_COMMIT, MAX_COMMIT_TOKENS)
    config_tokens = len(config_files or {}) * TOKENS_PER_CONFIG_FILE
    readme_tokens = min(len(readme) / CHARS_PER_TOKEN, MAX_README_TOKENS) if readme else 0
    file_tokens = min(len(file_structure or []) * TOKENS_PER_FILE, MAX_FILE_TOKENS)

    input_tokens = _number(
        BASE_TOKENS + commit_tokens + config_tokens + readme_tokens + file_tokens
    )
    total_tokens = _number(input_tokens + OUTPUT_TOKENS)

    return TokenEstimate(
        estimated_input_tokens=input_tokens,
        estimated_output_tokens=OUTPUT_TOKENS,
        estimated_total_tokens=total_tokens,
        estimated_credits=math.ceil(total_tokens / TOKENS_PER_CREDIT),
        project_scale=classify_scale(stats.total_commits),
    )

"""Data models for repository statistics."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class CommitRecord:
    """A single commit authored by the analyzed user."""
    sha: str
    author_date: str  # ISO-8601 as returned by the API
    message: str = ""

    @property
    def timestamp(self) -> datetime:
        return parse_timestamp(self.author_date)


@dataclass(frozen=True)
class GitStatistics:
    """Aggregated git statistics for one user in one repository.

    Line and file counts are heuristic estimates derived from the commit
    count (see devprofile.analyzers.statistics), not measured diffs.
    """
    total_commits: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    lines_changed: int = 0
    files_changed: int = 0
    first_commit_date: Optional[str] = None
    last_commit_date: Optional[str] = None
    project_duration_days: int = 0
    languages: dict[str, int] = field(default_factory=dict)  # language -> bytes
    contributors: Optional[int] = None

    lines_are_estimated = True

    def to_dict(self) -> dict:
        return asdict(self)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)

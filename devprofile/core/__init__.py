"""Service layer for devprofile.

All services return typed dataclasses. Services never import from
devprofile.ui, devprofile.cli, or typer. The CLI handles presentation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

ANALYSIS_STATUSES = ("pending", "processing", "completed", "failed")


@dataclass
class RepositoryStatus:
    """Analysis status of one repository in the local store."""

    repository: str
    status: str = "pending"
    error_message: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class AnalysisRecord:
    """One stored analysis, as persisted by the analysis store."""

    id: str
    repository: str  # owner/repo
    project_scale: str
    total_commits: int
    lines_added: int
    lines_deleted: int
    files_changed: int
    project_duration_days: int
    first_commit_date: Optional[str]
    last_commit_date: Optional[str]
    analysis_data: dict[str, Any]
    tokens_used: Optional[int]
    status: str
    created_at: str
    provider: str = ""
    model: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AnalysisResult:
    """Outcome of a completed analysis run."""

    record: AnalysisRecord
    elapsed_ms: int
    saved: bool = True

    @property
    def achievements_count(self) -> int:
        return len(self.record.analysis_data.get("key_achievements", []))

    @property
    def resume_points_count(self) -> int:
        return len(self.record.analysis_data.get("resume_points", []))

    def to_dict(self) -> dict:
        return {
            "analysis_id": self.record.id,
            "repository": self.record.repository,
            "project_scale": self.record.project_scale,
            "total_commits": self.record.total_commits,
            "achievements_count": self.achievements_count,
            "resume_points_count": self.resume_points_count,
            "tokens_used": self.record.tokens_used,
            "elapsed_ms": self.elapsed_ms,
            "saved": self.saved,
            "analysis": self.record.analysis_data,
            "metadata": {
                "provider": {"provider": self.record.provider, "model": self.record.model},
                "timestamp": self.record.created_at,
            },
        }


@dataclass
class CostEstimate:
    """Token/credit estimate plus the repository facts it was based on."""

    repository: str
    repo_name: str
    estimated_input_tokens: float
    estimated_output_tokens: int
    estimated_total_tokens: float
    estimated_credits: int
    project_scale: str
    total_commits: int
    project_duration_days: int
    config_files: list[str] = field(default_factory=list)
    has_readme: bool = False
    file_count: int = 0
    languages: list[str] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

"""Schema for the model's repository analysis output.

Validation is strict: every field must already have its declared type
(no string-to-number or number-to-string coercion). The single exception
is ``hr_summary.reliability_score``, which is normalized from free text
to High / Medium / Low. Unknown keys are dropped. An optional field is
either omitted or has its declared type; an explicit null is a violation.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

ReliabilityScore = Literal["High", "Medium", "Low"]

_HIGH_MARKERS = ("high", "excellent", "very")
_LOW_MARKERS = ("low", "poor", "limited")


def normalize_reliability(value: str) -> ReliabilityScore:
    """Map free-text reliability to High / Medium / Low by keyword."""
    lower = value.lower()
    if any(marker in lower for marker in _HIGH_MARKERS):
        return "High"
    if any(marker in lower for marker in _LOW_MARKERS):
        return "Low"
    return "Medium"


class _StrictModel(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _reject_null(cls, value: object) -> object:
        # Only runs for keys present in the input; omitted fields keep their default
        if value is None:
            raise ValueError("null is not allowed, omit the field instead")
        return value


class Achievement(_StrictModel):
    title: str
    description: str
    category: str
    metrics: Optional[str] = None


class TechnicalHighlights(_StrictModel):
    frameworks: List[str]
    libraries: List[str]
    patterns: List[str]
    tools: Optional[List[str]] = None


class CodeQuality(_StrictModel):
    organization: str
    patterns_used: List[str]
    testing: Optional[str] = None
    type_safety: Optional[str] = None


class TeamContext(_StrictModel):
    is_solo: bool
    team_size: int
    user_role: str
    contribution_summary: str


class GitInsights(_StrictModel):
    commit_frequency: str
    development_style: str
    collaboration_indicators: Optional[str] = None
    team_context: Optional[TeamContext] = None


class HRSummary(_StrictModel):
    """Summary written for non-technical recruiters."""

    professional_summary: str
    soft_skills: List[str]
    business_impact: str
    work_style: str
    growth_indicators: List[str]
    reliability_score: ReliabilityScore

    @field_validator("reliability_score", mode="before")
    @classmethod
    def _normalize_reliability(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_reliability(value)
        return value


class ArchitectureDecision(_StrictModel):
    decision: str
    reasoning: str


class TechSummary(_StrictModel):
    """Summary written for technical reviewers."""

    architecture_overview: str
    architecture_decisions: List[ArchitectureDecision]
    code_quality_assessment: str
    best_practices: List[str]
    security_considerations: Optional[List[str]] = None
    scalability_notes: Optional[str] = None
    tech_debt_observations: Optional[str] = None
    review_readiness: str


class ProjectAnalysisData(_StrictModel):
    """Validated analysis of one user's work in one repository."""

    document_name: str
    project_scale: str  # micro|small|medium|large|enterprise expected, not enforced
    project_overview: str
    key_achievements: List[Achievement]
    technical_highlights: TechnicalHighlights
    code_quality: Optional[CodeQuality] = None
    resume_points: List[str]
    notable_patterns: Optional[List[str]] = None
    git_insights: GitInsights
    interview_topics: Optional[List[str]] = None
    hr_summary: Optional[HRSummary] = None
    tech_summary: Optional[TechSummary] = None
    actual_tokens: Optional[int] = None

    def to_dict(self) -> dict:
        """Plain dict with absent optional sections omitted."""
        return self.model_dump(exclude_none=True)

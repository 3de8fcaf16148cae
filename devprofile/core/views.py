"""Audience-specific views of a stored analysis.

``hr`` keeps what a recruiter reads (HR summary, team context, business
facing achievements), ``tech`` keeps what a reviewer reads (tech summary,
code quality, stack, engineering achievements), ``full`` keeps both.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

from devprofile.core import AnalysisRecord

ACHIEVEMENT_CATEGORIES = (
    "business_impact",
    "feature",
    "performance",
    "architecture",
    "integration",
    "quality",
)

VIEW_CATEGORIES = {
    "full": ACHIEVEMENT_CATEGORIES,
    "hr": ("business_impact", "feature", "integration"),
    "tech": ("architecture", "performance", "quality", "feature"),
}

ANALYSIS_VIEWS = tuple(VIEW_CATEGORIES)


def group_achievements(
    achievements: Iterable[dict], categories: Iterable[str] = ACHIEVEMENT_CATEGORIES
) -> dict[str, list[dict]]:
    """Bucket achievements by category; a missing category counts as ``feature``.

    Achievements outside ``categories`` are dropped.
    """
    grouped: dict[str, list[dict]] = {category: [] for category in categories}
    for achievement in achievements:
        category = achievement.get("category") or "feature"
        if category in grouped:
            grouped[category].append(achievement)
    return grouped


def _team_context(data: dict) -> Optional[dict]:
    return (data.get("git_insights") or {}).get("team_context")


def _tech_view(data: dict) -> dict[str, list[str]]:
    highlights = data.get("technical_highlights") or {}
    tech = data.get("tech_summary") or {}
    return {
        "frameworks": highlights.get("frameworks") or [],
        "libraries": highlights.get("libraries") or [],
        "patterns": highlights.get("patterns") or [],
        "tools": highlights.get("tools") or [],
        "best_practices": tech.get("best_practices") or [],
        "interview_topics": data.get("interview_topics") or [],
    }


def build_analysis_view(record: AnalysisRecord, view: str = "full") -> dict[str, Any]:
    """Project a stored analysis onto the ``hr``, ``tech`` or ``full`` view.

    Raises:
        ValueError: If ``view`` is not one of ANALYSIS_VIEWS.
    """
    if view not in VIEW_CATEGORIES:
        raise ValueError(
            f"Unknown view '{view}'. Expected one of: {', '.join(ANALYSIS_VIEWS)}"
        )

    data = record.analysis_data
    result: dict[str, Any] = {
        "view": view,
        "analysis_id": record.id,
        "repository": record.repository,
        "document_name": data.get("document_name", record.repository),
        "project_scale": record.project_scale,
        "stats": {
            "total_commits": record.total_commits,
            "lines_changed": record.lines_added + record.lines_deleted,
            "files_changed": record.files_changed,
            "project_duration_days": record.project_duration_days,
        },
        "team_context": _team_context(data),
        "achievements": group_achievements(
            data.get("key_achievements", []), VIEW_CATEGORIES[view]
        ),
    }

    if view in ("hr", "full"):
        result["hr_view"] = data.get("hr_summary")
    if view in ("tech", "full"):
        result["tech_view"] = _tech_view(data)
        result["tech_summary"] = data.get("tech_summary")
        result["code_quality"] = data.get("code_quality")
    if view == "full":
        result["project_overview"] = data.get("project_overview", "")
        result["git_insights"] = data.get("git_insights")
        result["resume_points"] = data.get("resume_points", [])
        result["notable_patterns"] = data.get("notable_patterns", [])
        result["metadata"] = {
            "provider": record.provider,
            "model": record.model,
            "tokens_used": record.tokens_used,
            "created_at": record.created_at,
        }
    return result

"""Repository statistics, prompt context, output validation and cost estimation."""
from .context import build_analysis_context
from .cost import TokenEstimate, classify_scale, estimate_tokens
from .models import CommitRecord, GitStatistics
from .schema import ProjectAnalysisData
from .statistics import build_git_statistics
from .validator import parse_analysis_response

__all__ = [
    "CommitRecord",
    "GitStatistics",
    "ProjectAnalysisData",
    "TokenEstimate",
    "build_analysis_context",
    "build_git_statistics",
    "classify_scale",
    "estimate_tokens",
    "parse_analysis_response",
]

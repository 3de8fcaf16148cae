"""Statistics aggregation for a user's commits in a repository.

The GitHub API does not expose per-author line totals without one request
per commit, so line and file counts are estimated from the commit count:

    estimated_lines_changed = commits * 50
    lines_added             = round(0.6 * estimated_lines_changed)
    lines_deleted           = round(0.4 * estimated_lines_changed)
    files_changed           = round(commits * 3)

These constants are user-visible; changing them changes every estimate.
"""
from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from .models import CommitRecord, GitStatistics, parse_timestamp

logger = logging.getLogger(__name__)

AVG_LINES_PER_COMMIT = 50
ADDED_RATIO = 0.6
DELETED_RATIO = 0.4
FILES_PER_COMMIT = 3

SECONDS_PER_DAY = 60 * 60 * 24


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (matches the published numbers)."""
    return math.floor(value + 0.5)


def sort_commits(commits: Iterable[CommitRecord]) -> list[CommitRecord]:
    """Sort ascending by author date; ties keep fetch order."""
    return sorted(commits, key=lambda c: c.timestamp)


def project_duration_days(first: Optional[str], last: Optional[str]) -> int:
    """Whole days between first and last commit, rounded up; 0 if either is absent."""
    if not first or not last:
        return 0
    delta = parse_timestamp(last) - parse_timestamp(first)
    return max(0, math.ceil(delta.total_seconds() / SECONDS_PER_DAY))


def estimate_line_counts(total_commits: int) -> dict[str, int]:
    """Heuristic line/file counts for a commit count."""
    estimated = total_commits * AVG_LINES_PER_COMMIT
    return {
        "lines_added": round_half_up(estimated * ADDED_RATIO),
        "lines_deleted": round_half_up(estimated * DELETED_RATIO),
        "lines_changed": estimated,
        "files_changed": round_half_up(total_commits * FILES_PER_COMMIT),
    }


def build_git_statistics(
    commits: Iterable[CommitRecord],
    languages: Optional[dict[str, int]] = None,
    contributors: Optional[int] = None,
) -> GitStatistics:
    """Aggregate fetched commits and repository signals into GitStatistics."""
    ordered = sort_commits(commits)
    first = ordered[0].author_date if ordered else None
    last = ordered[-1].author_date if ordered else None

    stats = GitStatistics(
        total_commits=len(ordered),
        first_commit_date=first,
        last_commit_date=last,
        project_duration_days=project_duration_days(first, last),
        languages=dict(languages or {}),
        contributors=contributors,
        **estimate_line_counts(len(ordered)),
    )

    logger.info(
        "Git stats calculated: %d commits over %d days, languages: %s",
        stats.total_commits,
        stats.project_duration_days,
        ", ".join(list(stats.languages)[:5]) or "none",
    )
    return stats

"""Analysis context rendering.

Turns collected repository data into the single markdown document sent to
the model as the user prompt. Pure and deterministic: identical inputs
always render byte-identical output, and empty sections are omitted.
"""
from __future__ import annotations

from typing import Mapping, Optional, Sequence

from .models import GitStatistics
from .statistics import round_half_up

MAX_LANGUAGES = 10
MAX_CONFIG_CHARS = 1500
MAX_README_CHARS = 3000
MAX_LISTED_FILES = 50
TRUNCATION_MARKER = "[... truncated ...]"


def truncate(text: str, limit: int, separator: str = "\n") -> str:
    """Cut ``text`` to ``limit`` characters and append the truncation marker."""
    if len(text) <= limit:
        return text
    return text[:limit] + separator + TRUNCATION_MARKER


def _stats_section(stats: GitStatistics) -> list[str]:
    lines = [
        "## Git Statistics",
        f"- Total Commits: {stats.total_commits}",
        f"- Lines Added: {stats.lines_added}",
        f"- Lines Deleted: {stats.lines_deleted}",
        f"- Files Changed: {stats.files_changed}",
        f"- Project Duration: {stats.project_duration_days} days",
    ]
    if stats.first_commit_date:
        lines.append(f"- First Commit: {stats.first_commit_date}")
    if stats.last_commit_date:
        lines.append(f"- Last Commit: {stats.last_commit_date}")
    if stats.contributors:
        lines.append(f"- Contributors: {stats.contributors}")
    return lines


def _languages_section(languages: Mapping[str, int]) -> list[str]:
    top = sorted(languages.items(), key=lambda item: -item[1])[:MAX_LANGUAGES]
    lines = ["", "## Languages"]
    for lang, size in top:
        lines.append(f"- {lang}: {round_half_up(size / 1024)}KB")
    return lines


def _config_section(config_files: Mapping[str, str]) -> list[str]:
    lines = ["", "## Config Files"]
    for filename, content in config_files.items():
        lines.extend([
            "",
            f"### {filename}",
            "```",
            truncate(content, MAX_CONFIG_CHARS),
            "```",
        ])
    return lines


def _readme_section(readme: str) -> list[str]:
    return [
        "",
        "## README.md",
        "```markdown",
        truncate(readme, MAX_README_CHARS, separator="\n\n"),
        "```",
    ]


def _file_structure_section(paths: Sequence[str]) -> list[str]:
    lines = ["", "## File Structure (sample)"]
    lines.extend(f"- {path}" for path in paths[:MAX_LISTED_FILES])
    if len(paths) > MAX_LISTED_FILES:
        lines.append(f"- ... and {len(paths) - MAX_LISTED_FILES} more files")
    return lines


def build_analysis_context(
    repo_name: str,
    stats: GitStatistics,
    config_files: Optional[Mapping[str, str]] = None,
    readme: Optional[str] = None,
    file_structure: Optional[Sequence[str]] = None,
) -> str:
    """Render the analysis context document.

    Section order: header, git statistics, top languages by bytes, config
    files (each cut at 1500 chars), README (cut at 3000 chars), then the
    first 50 file paths with a count of the rest.
    """
    lines = [f"## Repository: {repo_name}", ""]
    lines.extend(_stats_section(stats))

    if stats.languages:
        lines.extend(_languages_section(stats.languages))
    if config_files:
        lines.extend(_config_section(config_files))
    if readme:
        lines.extend(_readme_section(readme))
    if file_structure:
        lines.extend(_file_structure_section(file_structure))

    return "\n".join(lines) + "\n"

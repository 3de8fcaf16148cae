"""Repository data collection from the GitHub API.

Collects everything the analysis needs about one user's work in one
repository: metadata, language bytes, the user's commits, contributor
count, README, known manifest/config files and a filtered file tree.

Metadata and languages are required; their failure raises HostingAPIError.
Everything else degrades to a default (1 contributor, no README, missing
config files, empty tree) and is logged instead of raised. Nothing is
cached; every call hits the API.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional

import httpx

from devprofile.analyzers.models import CommitRecord, GitStatistics
from devprofile.analyzers.statistics import build_git_statistics
from devprofile.core.config_service import GitHubSettings
from devprofile.errors import HostingAPIError

from .client import GitHubClient
from .reference import RepositoryReference, require_repository_reference

logger = logging.getLogger("devprofile.github")

COMMITS_PER_PAGE = 100
MAX_COMMIT_PAGES = 10  # hard cap of 1000 commits
EMPTY_REPOSITORY_STATUS = 409

# Manifest and config files looked up at the repository root
CONFIG_FILES = (
    "package.json",
    "composer.json",
    "requirements.txt",
    "Pipfile",
    "pyproject.toml",
    "Cargo.toml",
    "go.mod",
    "pom.xml",
    "build.gradle",
    "Gemfile",
    "Makefile",
    "Dockerfile",
    ".env.example",
)

# File extensions listed in the file structure sample
SOURCE_EXTENSIONS = (
    # JavaScript/TypeScript
    ".ts", ".tsx", ".js", ".jsx", ".vue", ".svelte",
    # Python
    ".py",
    # Go
    ".go",
    # Rust
    ".rs",
    # Java/Kotlin
    ".java", ".kt", ".kts",
    # PHP
    ".php",
    # C#/.NET
    ".cs", ".cshtml", ".razor",
    # Ruby
    ".rb", ".erb",
    # Swift/Objective-C
    ".swift", ".m", ".h",
    # C/C++
    ".c", ".cpp", ".cc", ".hpp",
    # Dart/Flutter
    ".dart",
    # Elixir/Erlang
    ".ex", ".exs", ".erl",
    # Config
    ".json", ".yaml", ".yml", ".toml", ".xml",
    # Docs
    ".md", ".mdx",
)

# Dependency and build output directories, matched on whole path segments
EXCLUDED_DIRS = (
    "node_modules", "vendor", ".git", "dist", "build",
    "__pycache__", ".venv", "venv", "env",
    "target", "bin/Debug", "bin/Release", "obj",
    ".next", ".nuxt", ".output",
)

_LAST_PAGE_RE = re.compile(r'page=(\d+)>; rel="last"')


@dataclass
class RepositoryData:
    """Everything collected about a repository for one analysis request."""
    reference: RepositoryReference
    git_stats: GitStatistics
    config_files: dict[str, str] = field(default_factory=dict)
    readme: Optional[str] = None
    file_structure: list[str] = field(default_factory=list)

    @property
    def repo_name(self) -> str:
        return self.reference.repo


async def _gather_all(*aws: Awaitable) -> list:
    """Run awaitables concurrently; after all finish, re-raise the first failure."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


# ── Required resources ─────────────────────────────────────────────

async def fetch_repo_metadata(client: GitHubClient, ref: RepositoryReference) -> dict:
    """Fetch repository metadata; raises HostingAPIError on failure."""
    return await client.get_json(ref.api_path)


async def fetch_repo_languages(
    client: GitHubClient, ref: RepositoryReference
) -> dict[str, int]:
    """Fetch the language -> bytes mapping; raises HostingAPIError on failure."""
    return await client.get_json(f"{ref.api_path}/languages")


# ── Commits ────────────────────────────────────────────────────────

def _commit_from_item(item: dict) -> Optional[CommitRecord]:
    commit = item.get("commit") or {}
    author = commit.get("author") or {}
    date = author.get("date")
    if not date:
        return None
    return CommitRecord(
        sha=item.get("sha", ""),
        author_date=date,
        message=commit.get("message", ""),
    )


async def fetch_user_commits(
    client: GitHubClient, ref: RepositoryReference, username: str
) -> list[CommitRecord]:
    """Fetch commits authored by ``username``, in fetch order.

    Pages are requested one after another and stop at the page cap, on a
    short or empty page, on 409 (empty repository), or on any other error.
    A failed page ends pagination without raising; earlier pages are kept.
    """
    commits: list[CommitRecord] = []
    for page in range(1, MAX_COMMIT_PAGES + 1):
        response = await client.get(
            f"{ref.api_path}/commits",
            params={"author": username, "per_page": COMMITS_PER_PAGE, "page": page},
        )
        if not response.is_success:
            if response.status_code != EMPTY_REPOSITORY_STATUS:
                logger.warning(
                    "Failed to fetch commits page %d for %s: HTTP %d",
                    page, ref, response.status_code,
                )
            break

        items = response.json()
        if not items:
            break
        for item in items:
            record = _commit_from_item(item)
            if record is None:
                logger.debug("Skipping commit without author date: %s", item.get("sha"))
                continue
            commits.append(record)

        if len(items) < COMMITS_PER_PAGE:
            break

    return commits


# ── Degradable resources ───────────────────────────────────────────

async def fetch_contributors_count(client: GitHubClient, ref: RepositoryReference) -> int:
    """Count contributors from the ``Link`` header's last page; 1 on failure."""
    try:
        response = await client.get(
            f"{ref.api_path}/contributors",
            params={"per_page": 1, "anon": "true"},
        )
    except HostingAPIError as e:
        logger.warning("Contributor count unavailable for %s: %s", ref, e)
        return 1

    if not response.is_success:
        logger.debug("Contributor count for %s: HTTP %d", ref, response.status_code)
        return 1

    match = _LAST_PAGE_RE.search(response.headers.get("Link", ""))
    if match:
        return int(match.group(1))

    try:
        return len(response.json())
    except ValueError:
        return 1


async def fetch_readme(client: GitHubClient, ref: RepositoryReference) -> Optional[str]:
    """Fetch the README as raw text; None when absent or unreachable."""
    try:
        response = await client.get(f"{ref.api_path}/readme", raw=True)
    except HostingAPIError as e:
        logger.warning("README unavailable for %s: %s", ref, e)
        return None
    if not response.is_success:
        logger.debug("No README for %s: HTTP %d", ref, response.status_code)
        return None
    return response.text


async def _fetch_config_file(
    client: GitHubClient, ref: RepositoryReference, filename: str
) -> Optional[str]:
    try:
        response = await client.get(f"{ref.api_path}/contents/{filename}", raw=True)
    except HostingAPIError as e:
        logger.debug("Config file %s unavailable: %s", filename, e)
        return None
    return response.text if response.is_success else None


async def fetch_config_files(
    client: GitHubClient, ref: RepositoryReference
) -> dict[str, str]:
    """Fetch every known config file concurrently; missing files are left out."""
    contents = await asyncio.gather(
        *(_fetch_config_file(client, ref, name) for name in CONFIG_FILES)
    )
    return {
        name: content
        for name, content in zip(CONFIG_FILES, contents)
        if content is not None
    }


def is_excluded_path(path: str) -> bool:
    """True if any excluded directory appears as whole segments of ``path``."""
    padded = f"/{path}"
    return any(f"/{directory}/" in padded for directory in EXCLUDED_DIRS)


def filter_file_paths(tree: list[dict[str, Any]]) -> list[str]:
    """Keep blob paths with a source/doc extension outside excluded directories."""
    return [
        item["path"]
        for item in tree
        if item.get("type") == "blob"
        and item.get("path", "").endswith(SOURCE_EXTENSIONS)
        and not is_excluded_path(item["path"])
    ]


async def fetch_file_tree(
    client: GitHubClient,
    ref: RepositoryReference,
    metadata: Optional[Awaitable[dict]] = None,
) -> list[str]:
    """Fetch the recursive tree of the default branch, filtered; [] on failure."""
    try:
        repo = await (metadata if metadata is not None else fetch_repo_metadata(client, ref))
        branch = repo.get("default_branch") or "main"
        response = await client.get(
            f"{ref.api_path}/git/trees/{branch}", params={"recursive": 1}
        )
    except HostingAPIError as e:
        logger.warning("File tree unavailable for %s: %s", ref, e)
        return []

    if not response.is_success:
        logger.debug("File tree for %s: HTTP %d", ref, response.status_code)
        return []
    return filter_file_paths(response.json().get("tree") or [])


# ── Aggregation ────────────────────────────────────────────────────

async def calculate_git_stats(
    client: GitHubClient,
    ref: RepositoryReference,
    username: str,
    metadata: Optional[Awaitable[dict]] = None,
) -> GitStatistics:
    """Fetch metadata, languages, commits and contributors concurrently and aggregate."""
    logger.info("Calculating git stats for %s by %s", ref, username)
    _, languages, commits, contributors = await _gather_all(
        metadata if metadata is not None else fetch_repo_metadata(client, ref),
        fetch_repo_languages(client, ref),
        fetch_user_commits(client, ref, username),
        fetch_contributors_count(client, ref),
    )
    return build_git_statistics(commits, languages=languages, contributors=contributors)


async def collect_repository_data(
    repo_url: str,
    username: str,
    settings: Optional[GitHubSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RepositoryData:
    """Collect all repository signals needed for analysis or estimation.

    Raises:
        InvalidReferenceError: If ``repo_url`` is not a GitHub URL or owner/repo.
        HostingAPIError: If metadata or languages cannot be fetched.
    """
    ref = require_repository_reference(repo_url)
    logger.info("Fetching repository data: %s", ref)

    async with GitHubClient(settings, transport=transport) as client:
        # Shared so the tree lookup reuses the same metadata response
        metadata = asyncio.ensure_future(fetch_repo_metadata(client, ref))
        try:
            stats, config_files, readme, file_structure = await _gather_all(
                calculate_git_stats(client, ref, username, metadata=metadata),
                fetch_config_files(client, ref),
                fetch_readme(client, ref),
                fetch_file_tree(client, ref, metadata=metadata),
            )
        finally:
            if not metadata.done():
                metadata.cancel()

    return RepositoryData(
        reference=ref,
        git_stats=stats,
        config_files=config_files,
        readme=readme,
        file_structure=file_structure,
    )

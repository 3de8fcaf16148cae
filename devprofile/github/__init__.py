"""GitHub repository data collection."""
from .client import GitHubClient
from .collector import RepositoryData, collect_repository_data
from .reference import (
    RepositoryReference,
    parse_repository_reference,
    require_repository_reference,
)

__all__ = [
    "GitHubClient",
    "RepositoryData",
    "RepositoryReference",
    "collect_repository_data",
    "parse_repository_reference",
    "require_repository_reference",
]

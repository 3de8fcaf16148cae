"""Parsing of GitHub repository URLs and owner/repo shorthands."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from devprofile.errors import InvalidReferenceError

# Tried in order; first match wins
_PATTERNS = (
    re.compile(r"github\.com/([^/]+)/([^/]+?)(?:\.git)?(?:/|$)"),
    re.compile(r"^([^/]+)/([^/]+)$"),
)


@dataclass(frozen=True)
class RepositoryReference:
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def api_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return self.full_name


def parse_repository_reference(value: str) -> Optional[RepositoryReference]:
    """Parse a GitHub URL or ``owner/repo`` string; None if nothing matches."""
    for pattern in _PATTERNS:
        match = pattern.search(value)
        if match and match.group(1) and match.group(2):
            repo = re.sub(r"\.git$", "", match.group(2))
            if repo:
                return RepositoryReference(owner=match.group(1), repo=repo)
    return None


def require_repository_reference(value: str) -> RepositoryReference:
    """Like parse_repository_reference, but raise InvalidReferenceError on failure."""
    ref = parse_repository_reference(value)
    if ref is None:
        raise InvalidReferenceError(value)
    return ref

"""Local YAML-backed store for repository status and analyses.

Layout under the data directory::

    repositories/<owner>/<repo>/repository.yaml      status, error, updated_at
    repositories/<owner>/<repo>/analysis-<id>.yaml   one AnalysisRecord each

Re-analysis deletes the old analysis files before the new one is written;
records are never merged.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

import yaml

from devprofile.core import ANALYSIS_STATUSES, AnalysisRecord, RepositoryStatus
from devprofile.errors import StoreError
from devprofile.github.reference import RepositoryReference

logger = logging.getLogger("devprofile.core.store")

SCHEMA_VERSION = 1
STATUS_FILE = "repository.yaml"
ANALYSIS_GLOB = "analysis-*.yaml"

_RECORD_FIELDS = {f.name for f in fields(AnalysisRecord)}


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalysisStore(Protocol):
    """Capabilities the analysis pipeline needs from a data store."""

    def set_status(
        self, ref: RepositoryReference, status: str, error_message: Optional[str] = None
    ) -> None: ...
    def get_status(self, ref: RepositoryReference) -> RepositoryStatus: ...
    def delete_analyses(self, ref: RepositoryReference) -> int: ...
    def insert_analysis(self, record: AnalysisRecord) -> None: ...
    def latest_analysis(self, ref: RepositoryReference) -> Optional[AnalysisRecord]: ...


def _write_yaml_atomic(data: dict, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", dir=dest.parent, delete=False, suffix=".tmp") as tf:
        yaml.safe_dump(data, tf, default_flow_style=False, sort_keys=False, allow_unicode=True)
        temp_name = tf.name

    try:
        os.replace(temp_name, dest)
    except Exception:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise


def _read_yaml(path: Path) -> dict:
    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise StoreError(f"Cannot read {path}: {e}", context={"path": str(path)}) from e


class FileAnalysisStore:
    """AnalysisStore implementation writing YAML files under ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def repository_dir(self, ref: RepositoryReference) -> Path:
        return self.root / "repositories" / ref.owner / ref.repo

    # ── Status ──

    def set_status(
        self, ref: RepositoryReference, status: str, error_message: Optional[str] = None
    ) -> None:
        if status not in ANALYSIS_STATUSES:
            raise ValueError(
                f"Unknown status '{status}'. Expected one of: {', '.join(ANALYSIS_STATUSES)}"
            )
        state = {
            "schema_version": SCHEMA_VERSION,
            "repository": ref.full_name,
            "status": status,
            "error_message": error_message,
            "updated_at": utc_now(),
        }
        _write_yaml_atomic(state, self.repository_dir(ref) / STATUS_FILE)
        logger.debug("Status of %s set to %s", ref, status)

    def get_status(self, ref: RepositoryReference) -> RepositoryStatus:
        path = self.repository_dir(ref) / STATUS_FILE
        if not path.is_file():
            return RepositoryStatus(repository=ref.full_name)
        d = _read_yaml(path)
        return RepositoryStatus(
            repository=d.get("repository", ref.full_name),
            status=d.get("status", "pending"),
            error_message=d.get("error_message"),
            updated_at=d.get("updated_at"),
        )

    # ── Analyses ──

    def delete_analyses(self, ref: RepositoryReference) -> int:
        """Remove every stored analysis for ``ref``; returns how many were removed."""
        repo_dir = self.repository_dir(ref)
        if not repo_dir.is_dir():
            return 0
        removed = 0
        for path in repo_dir.glob(ANALYSIS_GLOB):
            path.unlink()
            removed += 1
        if removed:
            logger.info("Deleted %d previous analyses for %s", removed, ref)
        return removed

    def insert_analysis(self, record: AnalysisRecord) -> None:
        owner, _, repo = record.repository.partition("/")
        if not owner or not repo:
            raise StoreError(
                f"Invalid repository name on analysis record: {record.repository!r}",
                context={"analysis_id": record.id},
            )
        ref = RepositoryReference(owner=owner, repo=repo)
        state = {"schema_version": SCHEMA_VERSION, **record.to_dict()}
        _write_yaml_atomic(state, self.repository_dir(ref) / f"analysis-{record.id}.yaml")
        logger.info("Saved analysis %s for %s", record.id, record.repository)

    def list_analyses(self, ref: RepositoryReference) -> list[AnalysisRecord]:
        """All stored analyses for ``ref``, oldest first."""
        repo_dir = self.repository_dir(ref)
        if not repo_dir.is_dir():
            return []
        records = []
        for path in sorted(repo_dir.glob(ANALYSIS_GLOB)):
            d = _read_yaml(path)
            try:
                records.append(AnalysisRecord(**{k: v for k, v in d.items() if k in _RECORD_FIELDS}))
            except TypeError as e:
                raise StoreError(
                    f"Corrupt analysis file {path}: {e}", context={"path": str(path)}
                ) from e
        records.sort(key=lambda r: r.created_at)
        return records

    def latest_analysis(self, ref: RepositoryReference) -> Optional[AnalysisRecord]:
        records = self.list_analyses(ref)
        return records[-1] if records else None

"""Tests for the YAML-backed analysis store."""
import pytest
import yaml

from devprofile.core import AnalysisRecord
from devprofile.core.store import FileAnalysisStore
from devprofile.errors import StoreError
from devprofile.github.reference import RepositoryReference

REF = RepositoryReference(owner="octocat", repo="demo")


def _record(record_id="a1", created_at="2024-02-01T00:00:00+00:00", repository="octocat/demo"):
    return AnalysisRecord(
        id=record_id,
        repository=repository,
        project_scale="small",
        total_commits=20,
        lines_added=600,
        lines_deleted=400,
        files_changed=60,
        project_duration_days=30,
        first_commit_date="2024-01-01T10:00:00Z",
        last_commit_date="2024-01-31T10:00:00Z",
        analysis_data={"document_name": "Demo", "resume_points": ["Built it"]},
        tokens_used=1234,
        status="completed",
        created_at=created_at,
        provider="openai",
        model="gpt-4o",
    )


@pytest.fixture
def store(tmp_path):
    return FileAnalysisStore(tmp_path / "store")


class TestStatus:
    def test_default_is_pending(self, store):
        state = store.get_status(REF)
        assert state.repository == "octocat/demo"
        assert state.status == "pending"
        assert state.error_message is None

    def test_round_trip(self, store):
        store.set_status(REF, "failed", error_message="Repository not found")
        state = store.get_status(REF)
        assert state.status == "failed"
        assert state.error_message == "Repository not found"
        assert state.updated_at

    def test_status_overwritten(self, store):
        store.set_status(REF, "failed", error_message="boom")
        store.set_status(REF, "completed")
        state = store.get_status(REF)
        assert state.status == "completed"
        assert state.error_message is None

    def test_unknown_status(self, store):
        with pytest.raises(ValueError, match="Unknown status 'done'"):
            store.set_status(REF, "done")

    def test_no_temp_files_left(self, store):
        store.set_status(REF, "processing")
        files = [p.name for p in store.repository_dir(REF).iterdir()]
        assert files == ["repository.yaml"]

    def test_corrupt_status_file(self, store):
        path = store.repository_dir(REF) / "repository.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("status: [unclosed")
        with pytest.raises(StoreError, match="Cannot read"):
            store.get_status(REF)


class TestAnalyses:
    def test_insert_and_latest(self, store):
        store.insert_analysis(_record())
        latest = store.latest_analysis(REF)
        assert latest == _record()

    def test_latest_none(self, store):
        assert store.latest_analysis(REF) is None
        assert store.list_analyses(REF) == []

    def test_latest_by_created_at(self, store):
        store.insert_analysis(_record("zzz", created_at="2024-01-01T00:00:00+00:00"))
        store.insert_analysis(_record("aaa", created_at="2024-03-01T00:00:00+00:00"))
        assert [r.id for r in store.list_analyses(REF)] == ["zzz", "aaa"]
        assert store.latest_analysis(REF).id == "aaa"

    def test_delete_analyses(self, store):
        store.set_status(REF, "completed")
        store.insert_analysis(_record("one"))
        store.insert_analysis(_record("two"))
        assert store.delete_analyses(REF) == 2
        assert store.list_analyses(REF) == []
        assert store.get_status(REF).status == "completed"
        assert store.delete_analyses(REF) == 0

    def test_file_carries_schema_version(self, store):
        store.insert_analysis(_record())
        data = yaml.safe_load((store.repository_dir(REF) / "analysis-a1.yaml").read_text())
        assert data["schema_version"] == 1
        assert data["analysis_data"]["resume_points"] == ["Built it"]

    def test_repositories_isolated(self, store):
        store.insert_analysis(_record(repository="someone/else"))
        assert store.latest_analysis(REF) is None
        assert store.latest_analysis(RepositoryReference("someone", "else")).id == "a1"

    def test_invalid_repository_name(self, store):
        with pytest.raises(StoreError, match="Invalid repository name"):
            store.insert_analysis(_record(repository="no-slash"))

    def test_corrupt_analysis_file(self, store):
        repo_dir = store.repository_dir(REF)
        repo_dir.mkdir(parents=True)
        (repo_dir / "analysis-bad.yaml").write_text("id: bad\n")
        with pytest.raises(StoreError, match="Corrupt analysis file"):
            store.list_analyses(REF)

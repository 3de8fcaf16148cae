"""Shared fixtures for devprofile tests."""
import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from devprofile.analyzers.models import GitStatistics

ISOLATED_ENV_VARS = (
    "AI_PROVIDER",
    "DEVPROFILE_PROVIDER",
    "DEVPROFILE_HOME",
    "DEVPROFILE_DEBUG",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GITHUB_TOKEN",
    "GITHUB_API_URL",
)


@pytest.fixture(autouse=True)
def devprofile_home(tmp_path, monkeypatch):
    """Point HOME, the working directory and DEVPROFILE_HOME at temp dirs.

    Tests never see real config files, stored keys, the OS keyring or
    previously saved analyses.
    """
    for name in ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    home = tmp_path / "home"
    home.mkdir()
    workdir = tmp_path / "work"
    workdir.mkdir()
    data_dir = tmp_path / "devprofile-data"

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("DEVPROFILE_HOME", str(data_dir))

    import devprofile.core.secrets as secrets
    monkeypatch.setattr(secrets, "_store_keyring", lambda provider, key: False)
    monkeypatch.setattr(secrets, "_get_keyring", lambda provider: None)
    monkeypatch.setattr(secrets, "_remove_keyring", lambda provider: False)

    from devprofile.core.config_service import reset_config_service
    reset_config_service()
    yield data_dir
    reset_config_service()


@pytest.fixture
def sample_stats():
    """Statistics for 20 commits over 30 days in a TypeScript project."""
    return GitStatistics(
        total_commits=20,
        lines_added=600,
        lines_deleted=400,
        lines_changed=1000,
        files_changed=60,
        first_commit_date="2024-01-01T10:00:00Z",
        last_commit_date="2024-01-31T10:00:00Z",
        project_duration_days=30,
        languages={"TypeScript": 204800, "Vue": 51200, "CSS": 2048},
        contributors=2,
    )


@pytest.fixture
def analysis_payload():
    """A complete, schema-conformant analysis as the model would return it."""
    return {
        "document_name": "Factory ERP",
        "project_scale": "small",
        "project_overview": "Factory management system tracking production stages.",
        "key_achievements": [
            {
                "title": "6-Stage Production Tracking",
                "description": "Tracks each stage with materials and workers.",
                "category": "feature",
                "metrics": "6 stages",
            },
            {
                "title": "Payroll Module",
                "description": "Computes piece-rate wages per worker.",
                "category": "business_impact",
            },
        ],
        "technical_highlights": {
            "frameworks": ["Nuxt 3 - server routes"],
            "libraries": ["Pinia - state"],
            "patterns": ["Composables - reuse"],
            "tools": ["Vite"],
        },
        "code_quality": {
            "organization": "Feature folders",
            "patterns_used": ["Composition API"],
            "testing": "None found",
        },
        "resume_points": [
            "Developed a factory ERP tracking 6 production stages by building workflow modules",
        ],
        "notable_patterns": ["Typed API layer"],
        "git_insights": {
            "commit_frequency": "Several commits per week",
            "development_style": "Incremental",
            "team_context": {
                "is_solo": False,
                "team_size": 2,
                "user_role": "Lead",
                "contribution_summary": "Most of the backend",
            },
        },
        "interview_topics": ["State management"],
        "hr_summary": {
            "professional_summary": "Builds business software end to end.",
            "soft_skills": ["Ownership - led the backend"],
            "business_impact": "Digitized production tracking",
            "work_style": "Steady",
            "growth_indicators": ["Adopted TypeScript"],
            "reliability_score": "Very reliable",
        },
        "tech_summary": {
            "architecture_overview": "Nuxt full-stack app",
            "architecture_decisions": [
                {"decision": "Server routes", "reasoning": "Single deployment"},
            ],
            "code_quality_assessment": "Consistent",
            "best_practices": ["Typed models"],
            "review_readiness": "Ready",
        },
    }


@pytest.fixture
def analysis_json(analysis_payload):
    return json.dumps(analysis_payload)


@pytest.fixture
def mock_provider(analysis_json):
    """Create a mock AI provider returning a valid analysis."""
    provider = MagicMock()
    provider.name = "mock"
    provider.model = "mock-model-1"
    provider.supports_cancellation = False
    provider.generate = AsyncMock(return_value=analysis_json)
    return provider

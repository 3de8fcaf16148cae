"""Tests for the provider-agnostic analysis engine."""
import asyncio
import logging

import pytest

from devprofile.analyzers.context import build_analysis_context
from devprofile.analyzers.validator import parse_analysis_response
from devprofile.cancellation import CancellationToken
from devprofile.core.config_service import AIConfig, ProviderSettings
from devprofile.engine import (
    ANALYZING,
    AnalysisEngine,
    ProgressUpdate,
    create_analysis_engine,
    estimate_text_tokens,
)
from devprofile.errors import (
    CancelledError,
    ConfigurationError,
    MalformedOutputError,
    ProviderQuotaError,
    SchemaViolationError,
    UnsupportedProviderError,
)
from devprofile.prompts import SYSTEM_PROMPT


def _config(provider="openai", api_key="sk-test", model="gpt-4o"):
    return AIConfig(
        provider=provider,
        settings={provider: ProviderSettings(api_key=api_key, model=model)},
    )


@pytest.fixture
def engine(mock_provider):
    return create_analysis_engine(_config(), provider_factory=lambda name, settings: mock_provider)


class TestInit:
    def test_missing_key_and_model(self):
        engine = AnalysisEngine(_config(api_key="", model=""))
        with pytest.raises(ConfigurationError) as exc_info:
            engine.init()
        assert exc_info.value.missing_keys == ["OPENAI_API_KEY", "OPENAI_MODEL"]
        assert "OPENAI_API_KEY" in str(exc_info.value)
        assert not engine.initialized

    def test_missing_model_only(self):
        with pytest.raises(ConfigurationError) as exc_info:
            AnalysisEngine(_config(provider="anthropic", model="")).init()
        assert exc_info.value.missing_keys == ["ANTHROPIC_MODEL"]

    def test_unsupported_provider(self):
        with pytest.raises(UnsupportedProviderError, match="Unsupported AI provider: mistral"):
            AnalysisEngine(AIConfig(provider="mistral")).init()

    def test_alias_resolved_before_factory(self, mock_provider):
        calls = []

        def factory(name, settings):
            calls.append((name, settings))
            return mock_provider

        config = AIConfig(
            provider="claude",
            settings={"anthropic": ProviderSettings(api_key="sk-ant", model="claude-x")},
        )
        engine = create_analysis_engine(config, provider_factory=factory)
        assert calls == [("anthropic", ProviderSettings(api_key="sk-ant", model="claude-x"))]
        assert engine.get_provider_info() == {"provider": "anthropic", "model": "claude-x"}

    def test_builds_real_provider(self):
        engine = create_analysis_engine(_config(provider="gemini", model="gemini-2.0-flash"))
        assert engine.initialized
        assert engine._provider.name == "gemini"


class TestAnalyzeRepository:
    @pytest.mark.asyncio
    async def test_not_initialized(self, sample_stats):
        with pytest.raises(ConfigurationError, match="not initialized"):
            await AnalysisEngine(_config()).analyze_repository("demo", sample_stats)

    @pytest.mark.asyncio
    async def test_success(self, engine, mock_provider, sample_stats, analysis_json):
        config_files = {"package.json": '{"name": "demo"}'}
        result = await engine.analyze_repository(
            "demo", sample_stats, config_files, "# Demo", ["src/app.ts"]
        )

        assert result.document_name == "Factory ERP"
        assert result.hr_summary.reliability_score == "High"

        system, user, options = mock_provider.generate.call_args.args
        context = build_analysis_context(
            "demo", sample_stats, config_files, "# Demo", ["src/app.ts"]
        )
        assert system == SYSTEM_PROMPT
        assert user == context
        assert options.temperature == 0.3
        assert options.max_tokens == 4000

        output = parse_analysis_response(analysis_json).model_dump_json(exclude_none=True)
        assert result.actual_tokens == estimate_text_tokens(context) + estimate_text_tokens(output)

    @pytest.mark.asyncio
    async def test_usage_metrics(self, engine, sample_stats):
        assert engine.get_usage_metrics() == {
            "total_tokens_used": 0,
            "total_calls": 0,
            "total_errors": 0,
            "last_call_tokens": 0,
        }
        first = await engine.analyze_repository("demo", sample_stats)
        second = await engine.analyze_repository("demo", sample_stats)

        metrics = engine.get_usage_metrics()
        assert metrics["total_calls"] == 2
        assert metrics["total_tokens_used"] == first.actual_tokens + second.actual_tokens
        assert metrics["last_call_tokens"] == second.actual_tokens
        assert metrics["total_errors"] == 0

    @pytest.mark.asyncio
    async def test_concurrent_calls_counted(self, engine, sample_stats):
        results = await asyncio.gather(
            *(engine.analyze_repository("demo", sample_stats) for _ in range(5))
        )
        metrics = engine.get_usage_metrics()
        assert metrics["total_calls"] == 5
        assert metrics["total_tokens_used"] == sum(r.actual_tokens for r in results)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply,expected", [
        ("this is not json", MalformedOutputError),
        ('{"document_name": "only this"}', SchemaViolationError),
    ])
    async def test_bad_reply_counts_error(self, engine, mock_provider, sample_stats, reply, expected):
        mock_provider.generate.return_value = reply
        with pytest.raises(expected):
            await engine.analyze_repository("demo", sample_stats)
        metrics = engine.get_usage_metrics()
        assert metrics["total_errors"] == 1
        assert metrics["total_calls"] == 0

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, engine, mock_provider, sample_stats):
        error = ProviderQuotaError("quota", provider="mock", model="mock-model-1")
        mock_provider.generate.side_effect = error
        with pytest.raises(ProviderQuotaError) as exc_info:
            await engine.analyze_repository("demo", sample_stats)
        assert exc_info.value is error
        assert engine.get_usage_metrics()["total_errors"] == 1

    @pytest.mark.asyncio
    async def test_cancelled_before_dispatch(self, engine, mock_provider, sample_stats):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(CancelledError):
            await engine.analyze_repository("demo", sample_stats, cancellation=token)
        mock_provider.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_token_passed_to_provider(self, engine, mock_provider, sample_stats):
        token = CancellationToken()
        await engine.analyze_repository("demo", sample_stats, cancellation=token)
        options = mock_provider.generate.call_args.args[2]
        assert options.cancellation is token

    @pytest.mark.asyncio
    async def test_non_cancellable_provider_logged(self, engine, sample_stats, caplog):
        caplog.set_level(logging.INFO, logger="devprofile.engine")
        await engine.analyze_repository("demo", sample_stats, cancellation=CancellationToken())
        assert "Provider mock cannot interrupt an in-flight request" in caplog.text

    @pytest.mark.asyncio
    async def test_cancellable_provider_not_logged(self, engine, mock_provider, sample_stats, caplog):
        mock_provider.supports_cancellation = True
        caplog.set_level(logging.INFO, logger="devprofile.engine")
        await engine.analyze_repository("demo", sample_stats, cancellation=CancellationToken())
        assert "cannot interrupt" not in caplog.text

    @pytest.mark.asyncio
    async def test_no_token_not_logged(self, engine, sample_stats, caplog):
        caplog.set_level(logging.INFO, logger="devprofile.engine")
        await engine.analyze_repository("demo", sample_stats)
        assert "cannot interrupt" not in caplog.text


class TestProgress:
    @pytest.mark.asyncio
    async def test_sync_callback(self, engine, sample_stats):
        updates = []
        await engine.analyze_repository("demo", sample_stats, on_progress=updates.append)
        assert updates == [ANALYZING]
        assert updates[0] == ProgressUpdate("analyzing", 30, "Analyzing repository structure...")

    @pytest.mark.asyncio
    async def test_async_callback_not_awaited(self, engine, sample_stats):
        started = asyncio.Event()
        release = asyncio.Event()

        async def on_progress(update):
            started.set()
            await release.wait()

        result = await engine.analyze_repository("demo", sample_stats, on_progress=on_progress)
        assert result.document_name == "Factory ERP"
        assert not release.is_set()

        await asyncio.wait_for(started.wait(), timeout=1)
        release.set()
        await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_failing_callback_ignored(self, engine, sample_stats):
        def on_progress(update):
            raise RuntimeError("display closed")

        result = await engine.analyze_repository("demo", sample_stats, on_progress=on_progress)
        assert result.project_scale == "small"
        assert engine.get_usage_metrics()["total_errors"] == 0


def test_estimate_text_tokens():
    assert estimate_text_tokens("") == 0
    assert estimate_text_tokens("abcd") == 1
    assert estimate_text_tokens("abcde") == 2

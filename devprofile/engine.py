"""Provider-agnostic analysis engine.

Turns collected repository data into a validated ProjectAnalysisData:
build the context, call the configured model once, validate the reply and
attach a token estimate. Nothing is retried; failures propagate with their
cause and count towards the error metric.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
import threading
import time
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from devprofile.analyzers.context import build_analysis_context
from devprofile.analyzers.models import GitStatistics
from devprofile.analyzers.schema import ProjectAnalysisData
from devprofile.analyzers.validator import parse_analysis_response
from devprofile.cancellation import CancellationToken
from devprofile.config import key_env_var
from devprofile.core.config_service import AIConfig, ProviderSettings
from devprofile.errors import ConfigurationError
from devprofile.prompts import SYSTEM_PROMPT
from devprofile.providers import AIProvider, GenerateOptions, create_provider, resolve_provider_name

logger = logging.getLogger("devprofile.engine")

CHARS_PER_TOKEN = 4


@dataclass(frozen=True)
class ProgressUpdate:
    stage: str
    percentage: int
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


ANALYZING = ProgressUpdate("analyzing", 30, "Analyzing repository structure...")

ProgressCallback = Callable[[ProgressUpdate], Union[None, Awaitable[None]]]
ProviderFactory = Callable[[str, ProviderSettings], AIProvider]


@dataclass
class UsageMetrics:
    """Process-lifetime usage counters. Not persisted."""
    total_tokens_used: int = 0
    total_calls: int = 0
    total_errors: int = 0
    last_call_tokens: int = 0


def estimate_text_tokens(text: str) -> int:
    """Rough token count: four characters per token, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class AnalysisEngine:
    """Runs repository analyses against one configured AI provider.

    Configuration is fixed at ``init()``; the provider client is reused for
    every later call. Usage counters may be updated from concurrent calls.
    """

    def __init__(self, config: AIConfig, provider_factory: Optional[ProviderFactory] = None):
        self.config = config
        self._provider_factory = provider_factory or create_provider
        self._provider: Optional[AIProvider] = None
        self._provider_name = ""
        self._model = ""
        self._usage = UsageMetrics()
        self._usage_lock = threading.Lock()
        self._background: set[asyncio.Future] = set()

    @property
    def initialized(self) -> bool:
        return self._provider is not None

    def init(self) -> AnalysisEngine:
        """Validate configuration and build the provider client.

        Raises:
            UnsupportedProviderError: If the provider name is not registered.
            ConfigurationError: Listing every missing key for the provider.
        """
        name = resolve_provider_name(self.config.provider)
        settings = self.config.settings_for(name)

        missing = []
        if not settings.api_key:
            missing.append(key_env_var(name))
        if not settings.model:
            missing.append(f"{name.upper()}_MODEL")
        if missing:
            raise ConfigurationError.for_missing(name, missing)

        self._provider = self._provider_factory(name, settings)
        self._provider_name = name
        self._model = settings.model
        logger.info("AI service initialized: %s (%s)", name, settings.model)
        return self

    async def analyze_repository(
        self,
        repo_name: str,
        git_stats: GitStatistics,
        config_files: Optional[Mapping[str, str]] = None,
        readme: Optional[str] = None,
        file_structure: Optional[Sequence[str]] = None,
        *,
        on_progress: Optional[ProgressCallback] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> ProjectAnalysisData:
        """Analyze one user's contribution to a repository.

        Raises:
            ConfigurationError: If called before ``init()``.
            CancelledError: If ``cancellation`` fires before or, for providers
                that support it, during the model call.
            ProviderError: If the provider call fails.
            MalformedOutputError: If the reply is not JSON.
            SchemaViolationError: If the reply does not match the schema.
        """
        if self._provider is None:
            raise ConfigurationError("Analysis engine is not initialized; call init() first")

        logger.info("Starting repository analysis: %s", repo_name)
        start = time.monotonic()

        try:
            context = build_analysis_context(
                repo_name, git_stats, config_files, readme, file_structure
            )
            self._notify(on_progress, ANALYZING)

            if cancellation is not None:
                cancellation.raise_if_cancelled()
                if not getattr(self._provider, "supports_cancellation", False):
                    logger.info(
                        "Provider %s cannot interrupt an in-flight request; "
                        "cancellation takes effect before dispatch only",
                        self._provider.name,
                    )

            raw = await self._provider.generate(
                SYSTEM_PROMPT, context, GenerateOptions(cancellation=cancellation)
            )
            analysis = parse_analysis_response(raw)

            output_json = analysis.model_dump_json(exclude_none=True)
            tokens = estimate_text_tokens(context) + estimate_text_tokens(output_json)
            analysis = analysis.model_copy(update={"actual_tokens": tokens})
        except Exception as e:
            with self._usage_lock:
                self._usage.total_errors += 1
            logger.error("Repository analysis failed for %s: %s", repo_name, e)
            raise

        elapsed_ms = int((time.monotonic() - start) * 1000)
        self._track_usage(tokens, elapsed_ms)
        logger.info("Repository analysis completed: %s", repo_name)
        return analysis

    def _notify(self, callback: Optional[ProgressCallback], update: ProgressUpdate) -> None:
        """Fire the progress callback without waiting on it."""
        if callback is None:
            return
        try:
            result = callback(update)
        except Exception as e:
            logger.warning("Progress callback failed: %s", e)
            return
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            self._background.add(future)
            future.add_done_callback(self._finish_background)

    def _finish_background(self, future: asyncio.Future) -> None:
        self._background.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.warning("Progress callback failed: %s", future.exception())

    def _track_usage(self, tokens: int, elapsed_ms: int) -> None:
        with self._usage_lock:
            self._usage.total_tokens_used += tokens
            self._usage.total_calls += 1
            self._usage.last_call_tokens = tokens
            total = self._usage.total_tokens_used
        logger.info("Usage: %d tokens, %dms, total: %d", tokens, elapsed_ms, total)

    def get_usage_metrics(self) -> dict[str, int]:
        """Snapshot of the usage counters."""
        with self._usage_lock:
            return asdict(self._usage)

    def get_provider_info(self) -> dict[str, Any]:
        return {"provider": self._provider_name, "model": self._model}


def create_analysis_engine(
    config: AIConfig, provider_factory: Optional[ProviderFactory] = None
) -> AnalysisEngine:
    """Build and initialize an AnalysisEngine in one step."""
    return AnalysisEngine(config, provider_factory=provider_factory).init()

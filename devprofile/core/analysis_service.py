"""Analysis pipeline orchestration.

Collect repository data, run the analysis engine and persist the result:

    processing -> collect -> analyze -> delete old analyses -> insert -> completed

Any failure marks the repository ``failed`` with the error message stored
verbatim and is re-raised unchanged. Nothing partial is written.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional

import httpx

from devprofile.analyzers.cost import estimate_tokens
from devprofile.cancellation import CancellationToken
from devprofile.core import AnalysisRecord, AnalysisResult, CostEstimate
from devprofile.core.config_service import ConfigService, get_config_service
from devprofile.core.store import AnalysisStore, FileAnalysisStore, utc_now
from devprofile.engine import AnalysisEngine, ProgressCallback
from devprofile.github.collector import RepositoryData, collect_repository_data
from devprofile.github.reference import require_repository_reference

logger = logging.getLogger("devprofile.core.analysis")

MAX_ESTIMATE_LANGUAGES = 5

EngineFactory = Callable[[], AnalysisEngine]


class AnalysisService:
    """Runs analyses and estimates and keeps the store up to date.

    The engine is created lazily, so estimates work without any AI key.
    """

    def __init__(
        self,
        config: Optional[ConfigService] = None,
        store: Optional[AnalysisStore] = None,
        engine_factory: Optional[EngineFactory] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_config_service()
        self.store = store or FileAnalysisStore(self.config.get_data_dir())
        self._engine_factory = engine_factory or self._default_engine
        self._transport = transport
        self._engine: Optional[AnalysisEngine] = None

    def _default_engine(self) -> AnalysisEngine:
        return AnalysisEngine(self.config.get_ai_config()).init()

    @property
    def engine(self) -> AnalysisEngine:
        if self._engine is None:
            self._engine = self._engine_factory()
        return self._engine

    async def collect(
        self, repo_url: str, username: str, token: Optional[str] = None
    ) -> RepositoryData:
        return await collect_repository_data(
            repo_url,
            username,
            settings=self.config.get_github_settings(token),
            transport=self._transport,
        )

    async def run_analysis(
        self,
        repo_url: str,
        username: str,
        token: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancellation: Optional[CancellationToken] = None,
        save: bool = True,
    ) -> AnalysisResult:
        """Analyze ``username``'s work in ``repo_url`` and store the result.

        Raises:
            InvalidReferenceError: Before anything is written, for a bad URL.
            DevProfileError: Any pipeline failure, after marking the repo failed.
        """
        ref = require_repository_reference(repo_url)
        start = time.monotonic()

        if save:
            self.store.set_status(ref, "processing")

        try:
            logger.info("Fetching GitHub data for %s", ref)
            data = await self.collect(repo_url, username, token)

            logger.info("Running AI analysis for %s", ref)
            engine = self.engine
            analysis = await engine.analyze_repository(
                data.repo_name,
                data.git_stats,
                data.config_files,
                data.readme,
                data.file_structure,
                on_progress=on_progress,
                cancellation=cancellation,
            )

            stats = data.git_stats
            provider = engine.get_provider_info()
            record = AnalysisRecord(
                id=uuid.uuid4().hex,
                repository=ref.full_name,
                project_scale=analysis.project_scale,
                total_commits=stats.total_commits,
                lines_added=stats.lines_added,
                lines_deleted=stats.lines_deleted,
                files_changed=stats.files_changed,
                project_duration_days=stats.project_duration_days,
                first_commit_date=stats.first_commit_date,
                last_commit_date=stats.last_commit_date,
                analysis_data=analysis.to_dict(),
                tokens_used=analysis.actual_tokens,
                status="completed",
                created_at=utc_now(),
                provider=provider["provider"],
                model=provider["model"],
            )

            if save:
                self.store.delete_analyses(ref)
                self.store.insert_analysis(record)
                self.store.set_status(ref, "completed")
        except BaseException as e:
            # KeyboardInterrupt and asyncio.CancelledError also end the run
            if save:
                self.store.set_status(ref, "failed", error_message=str(e) or type(e).__name__)
            logger.error("Analysis of %s failed: %s", ref, e)
            raise

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("Analysis of %s completed in %dms", ref, elapsed_ms)
        return AnalysisResult(record=record, elapsed_ms=elapsed_ms, saved=save)

    async def estimate(
        self, repo_url: str, username: str, token: Optional[str] = None
    ) -> CostEstimate:
        """Estimate tokens and credits for analyzing a repository. No model call."""
        ref = require_repository_reference(repo_url)
        logger.info("Estimating analysis cost for %s", ref)
        data = await self.collect(repo_url, username, token)
        estimate = estimate_tokens(
            data.git_stats, data.config_files, data.readme, data.file_structure
        )
        return CostEstimate(
            repository=ref.full_name,
            repo_name=data.repo_name,
            estimated_input_tokens=estimate.estimated_input_tokens,
            estimated_output_tokens=estimate.estimated_output_tokens,
            estimated_total_tokens=estimate.estimated_total_tokens,
            estimated_credits=estimate.estimated_credits,
            project_scale=estimate.project_scale,
            total_commits=data.git_stats.total_commits,
            project_duration_days=data.git_stats.project_duration_days,
            config_files=list(data.config_files),
            has_readme=bool(data.readme),
            file_count=len(data.file_structure),
            languages=list(data.git_stats.languages)[:MAX_ESTIMATE_LANGUAGES],
            message=estimate.message,
        )

    def latest(self, repo_url: str) -> Optional[AnalysisRecord]:
        """Most recent stored analysis for a repository, or None."""
        return self.store.latest_analysis(require_repository_reference(repo_url))

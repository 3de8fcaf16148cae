"""Custom exception hierarchy for devprofile.

All devprofile-specific exceptions derive from DevProfileError. Each
exception carries an optional ``context`` dict with structured metadata
(repository, HTTP status, provider name, etc.) that the CLI error
handler can render.

Exception hierarchy::

    DevProfileError
    ├── InvalidReferenceError
    ├── HostingAPIError
    ├── ConfigurationError
    │   └── UnsupportedProviderError
    ├── CancelledError
    ├── ProviderError
    │   ├── ProviderAuthError
    │   ├── ProviderQuotaError
    │   ├── ProviderModelError
    │   └── ProviderUnavailableError
    ├── AnalysisOutputError
    │   ├── MalformedOutputError
    │   └── SchemaViolationError
    └── StoreError
"""
from __future__ import annotations

from typing import Optional


class DevProfileError(Exception):
    """Base class for all devprofile exceptions.

    Args:
        message: Human-readable error description.
        context: Optional dict of structured metadata.
    """

    exit_code: int = 1

    def __init__(self, message: str, context: Optional[dict] = None):
        self.context = context or {}
        super().__init__(message)


# ── Repository Access ──────────────────────────────────────────────

class InvalidReferenceError(DevProfileError):
    """Raised when a repository URL or owner/repo shorthand cannot be parsed."""

    def __init__(self, reference: str):
        super().__init__(
            "Invalid GitHub repository URL",
            context={"reference": reference},
        )


HOSTING_STATUS_MESSAGES = {
    404: "Repository not found",
    403: "API rate limit exceeded or access denied",
}


class HostingAPIError(DevProfileError):
    """Raised when the GitHub API returns a failure for a required resource."""

    def __init__(
        self,
        status_code: int,
        endpoint: str = "",
        message: Optional[str] = None,
    ):
        self.status_code = status_code
        if message is None:
            message = HOSTING_STATUS_MESSAGES.get(
                status_code, f"GitHub API error: {status_code}"
            )
        super().__init__(
            message,
            context={"endpoint": endpoint, "status": status_code},
        )


# ── Configuration ──────────────────────────────────────────────────

class ConfigurationError(DevProfileError):
    """Raised when provider configuration is incomplete."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        context: Optional[dict] = None,
    ):
        self.missing_keys = list(missing_keys or [])
        ctx = {"missing": ", ".join(self.missing_keys)} if self.missing_keys else {}
        if context:
            ctx.update(context)
        super().__init__(message, context=ctx)

    @classmethod
    def for_missing(cls, provider: str, missing_keys: list[str]) -> ConfigurationError:
        return cls(
            f"AI Configuration Error: provider '{provider}' is missing "
            f"{', '.join(missing_keys)}",
            missing_keys=missing_keys,
            context={"provider": provider},
        )


class UnsupportedProviderError(ConfigurationError):
    """Raised when the configured provider name is not registered."""

    def __init__(self, provider: str, available: Optional[list[str]] = None):
        available_str = f". Available: {', '.join(available)}" if available else ""
        super().__init__(
            f"Unsupported AI provider: {provider}{available_str}",
            context={"provider": provider},
        )


# ── Cancellation ───────────────────────────────────────────────────

class CancelledError(DevProfileError):
    """Raised when an analysis is cancelled before or during the model call."""

    exit_code = 130

    def __init__(self, message: str = "Analysis cancelled by user"):
        super().__init__(message)


# ── Provider Errors ────────────────────────────────────────────────

class ProviderError(DevProfileError):
    """Base class for AI provider errors."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        model: str = "",
        context: Optional[dict] = None,
    ):
        ctx = {"provider": provider, "model": model}
        if context:
            ctx.update(context)
        super().__init__(message, context=ctx)


class ProviderAuthError(ProviderError):
    """Raised when API key is missing or invalid."""
    pass


class ProviderQuotaError(ProviderError):
    """Raised when provider quota/rate limit is exceeded."""
    pass


class ProviderModelError(ProviderError):
    """Raised when the requested model is not found."""
    pass


class ProviderUnavailableError(ProviderError):
    """Raised when the provider cannot be reached."""
    pass


# ── Model Output Errors ────────────────────────────────────────────

class AnalysisOutputError(DevProfileError):
    """Base class for model output that cannot be accepted."""
    pass


class MalformedOutputError(AnalysisOutputError):
    """Raised when model output is not parseable as JSON."""

    def __init__(self, preview: str = ""):
        super().__init__(
            "Invalid JSON response from AI",
            context={"preview": preview},
        )


class SchemaViolationError(AnalysisOutputError):
    """Raised when parsed model output does not match the analysis schema.

    The message lists every violation, not just the first one found.
    """

    def __init__(self, violations: list[str]):
        self.violations = list(violations)
        super().__init__(
            f"Schema validation failed: {', '.join(self.violations)}",
            context={"violations": len(self.violations)},
        )


# ── Storage ────────────────────────────────────────────────────────

class StoreError(DevProfileError):
    """Raised when a stored analysis record cannot be read or written."""
    pass

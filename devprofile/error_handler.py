"""Unified CLI error handler for devprofile commands."""

from __future__ import annotations

import functools
import logging
import os
import traceback

import typer
from rich.markup import escape

from devprofile.errors import (
    AnalysisOutputError,
    CancelledError,
    ConfigurationError,
    DevProfileError,
    HostingAPIError,
    InvalidReferenceError,
    ProviderAuthError,
    ProviderQuotaError,
    ProviderUnavailableError,
    UnsupportedProviderError,
)
from devprofile.ui import console

logger = logging.getLogger("devprofile.error_handler")


def _debug_mode() -> bool:
    """Check if debug output is enabled via DEVPROFILE_DEBUG env var."""
    return os.environ.get("DEVPROFILE_DEBUG", "").lower() in ("1", "true", "yes")


def _hint_for(e: DevProfileError) -> str:
    if isinstance(e, InvalidReferenceError):
        return "Use a URL like https://github.com/owner/repo or the owner/repo shorthand."
    if isinstance(e, HostingAPIError):
        if e.status_code == 403:
            return "Set GITHUB_TOKEN or run 'devprofile config set-key github <token>'."
        if e.status_code == 404:
            return "Check the repository name. Private repositories need a token (--token)."
        return ""
    if isinstance(e, UnsupportedProviderError):
        return "Run 'devprofile providers' to see available providers."
    if isinstance(e, ConfigurationError):
        return "Run 'devprofile config set-key <provider> <key>' to store your API key."
    if isinstance(e, ProviderAuthError):
        return "Run 'devprofile config set-key <provider> <key>' to store your API key."
    if isinstance(e, ProviderQuotaError):
        return "Wait and retry, or switch providers with --provider."
    if isinstance(e, ProviderUnavailableError):
        return "Check your network connection and provider status."
    if isinstance(e, AnalysisOutputError):
        return "The model reply was rejected. Re-run the analysis or try another model."
    return ""


def _render_error(e: DevProfileError) -> None:
    """Render a DevProfileError with Rich formatting and context."""
    if isinstance(e, CancelledError):
        console.print(f"\n[yellow]{escape(str(e))}[/yellow]")
        return

    console.print(f"\n[bold red]Error:[/bold red] {escape(str(e))}")

    # Context details (only in debug mode)
    if e.context and _debug_mode():
        context_parts = [
            f"  [dim]{key}:[/dim] {escape(str(value))}" for key, value in e.context.items() if value
        ]
        if context_parts:
            console.print("[dim]Context:[/dim]")
            for part in context_parts:
                console.print(part)

    hint = _hint_for(e)
    if hint:
        console.print(f"[dim]{hint}[/dim]")


def handle_errors(func):
    """Decorator that catches DevProfileError and renders formatted CLI output.

    Usage::

        @app.command()
        @handle_errors
        def my_command(...):
            ...  # no try/except needed
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DevProfileError as e:
            _render_error(e)
            if _debug_mode():
                console.print(f"\n[dim]{escape(traceback.format_exc())}[/dim]")
            raise typer.Exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n[dim]Interrupted.[/dim]")
            raise typer.Exit(130)
        except (typer.Exit, typer.Abort, SystemExit):
            raise
        except Exception as e:
            console.print(f"\n[bold red]Unexpected error:[/bold red] {escape(str(e))}")
            if _debug_mode():
                console.print(f"\n[dim]{escape(traceback.format_exc())}[/dim]")
            else:
                console.print("[dim]Set DEVPROFILE_DEBUG=1 for full traceback.[/dim]")
            raise typer.Exit(1)

    return wrapper

#!/usr/bin/env python3
"""
devprofile: analyze a developer's contribution to a GitHub repository
with an AI model and turn it into achievements, resume points and
interview topics.
"""
from __future__ import annotations

import asyncio
import logging
import os
import signal
from typing import Optional

import typer
from rich.markup import escape

from devprofile import __version__
from devprofile.cancellation import CancellationToken
from devprofile.commands import config_cmd
from devprofile.core.analysis_service import AnalysisService
from devprofile.error_handler import handle_errors
from devprofile.ui import (
    console,
    is_json,
    print_json_output,
    render_analysis,
    render_estimate,
    render_providers,
    set_json_mode,
    success_panel,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

app = typer.Typer(
    name="devprofile",
    help="AI analysis of your contributions to GitHub repositories.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(config_cmd.app, name="config", help="Manage configuration", rich_help_panel="Setup")


def _version_callback(value: bool):
    if value:
        console.print(f"devprofile {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    provider: Optional[str] = typer.Option(
        None, "--provider", "-P",
        help="AI provider to use (openai, anthropic, gemini). Overrides AI_PROVIDER.",
    ),
    model: Optional[str] = typer.Option(
        None, "--model", "-m",
        help="AI model to use. Overrides OPENAI_MODEL / ANTHROPIC_MODEL / GEMINI_MODEL.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show version and exit.",
    ),
):
    """AI analysis of your contributions to GitHub repositories."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    from devprofile.core.config_service import get_config_service, reset_config_service
    from devprofile.errors import UnsupportedProviderError
    from devprofile.providers import resolve_provider_name

    if not provider and not model:
        return

    # Flags become env vars so every later config lookup sees them
    try:
        provider_name = resolve_provider_name(provider or get_config_service().get_provider_name())
    except UnsupportedProviderError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if provider:
        os.environ["DEVPROFILE_PROVIDER"] = provider_name
    if model:
        os.environ[f"{provider_name.upper()}_MODEL"] = model
    reset_config_service()


async def _run_with_interrupt(coro_factory, token: CancellationToken):
    """Run a coroutine; the first Ctrl-C cancels ``token``, the second interrupts."""
    loop = asyncio.get_running_loop()

    def _on_sigint():
        token.cancel()
        loop.remove_signal_handler(signal.SIGINT)
        console.print("\n[yellow]Cancelling... press Ctrl-C again to abort.[/yellow]")

    try:
        loop.add_signal_handler(signal.SIGINT, _on_sigint)
        installed = True
    except (NotImplementedError, RuntimeError, ValueError):
        installed = False

    try:
        return await coro_factory()
    finally:
        if installed and not token.cancelled:
            loop.remove_signal_handler(signal.SIGINT)


@app.command(rich_help_panel="Analysis")
@handle_errors
def analyze(
    repo: str = typer.Argument(..., help="Repository URL or owner/repo"),
    user: str = typer.Option(..., "--user", "-u", help="GitHub username whose commits are analyzed"),
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token (defaults to GITHUB_TOKEN)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    no_save: bool = typer.Option(False, "--no-save", help="Do not store the analysis locally"),
):
    """[bold cyan]Analyze[/bold cyan] a user's contribution to a repository with AI."""
    set_json_mode(json_output)
    service = AnalysisService()
    cancellation = CancellationToken()

    if is_json():
        result = asyncio.run(_run_with_interrupt(
            lambda: service.run_analysis(
                repo, user, token=token, cancellation=cancellation, save=not no_save,
            ),
            cancellation,
        ))
        print_json_output(result.to_dict())
        return

    with console.status("[bold cyan]Fetching repository data...[/bold cyan]") as status:
        def on_progress(update):
            status.update(f"[bold cyan]{update.message}[/bold cyan]")

        result = asyncio.run(_run_with_interrupt(
            lambda: service.run_analysis(
                repo, user, token=token, on_progress=on_progress,
                cancellation=cancellation, save=not no_save,
            ),
            cancellation,
        ))

    render_analysis(result.record)
    saved = "saved" if result.saved else "not saved"
    success_panel(
        "Analysis complete",
        f"{result.achievements_count} achievements, {result.resume_points_count} resume points "
        f"in {result.elapsed_ms / 1000:.1f}s ({saved})",
    )


@app.command(rich_help_panel="Analysis")
@handle_errors
def estimate(
    repo: str = typer.Argument(..., help="Repository URL or owner/repo"),
    user: str = typer.Option(..., "--user", "-u", help="GitHub username whose commits are analyzed"),
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token (defaults to GITHUB_TOKEN)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """[bold]Estimate[/bold] tokens and credits for an analysis (no AI call)."""
    set_json_mode(json_output)
    service = AnalysisService()

    if is_json():
        result = asyncio.run(service.estimate(repo, user, token=token))
    else:
        with console.status("[bold cyan]Fetching repository data...[/bold cyan]"):
            result = asyncio.run(service.estimate(repo, user, token=token))
    render_estimate(result)


@app.command(rich_help_panel="Analysis")
@handle_errors
def show(
    repo: str = typer.Argument(..., help="Repository URL or owner/repo"),
    view: str = typer.Option(
        "full", "--view", help="Audience view: hr, tech or full",
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """[bold]Show[/bold] the latest stored analysis for a repository."""
    from devprofile.core.views import ANALYSIS_VIEWS
    from devprofile.github.reference import require_repository_reference

    set_json_mode(json_output)
    view = view.lower()
    if view not in ANALYSIS_VIEWS:
        console.print(f"[red]Unknown view '{escape(view)}'. Expected one of: {', '.join(ANALYSIS_VIEWS)}[/red]")
        raise typer.Exit(2)
    service = AnalysisService()
    record = service.latest(repo)

    if record is None:
        state = service.store.get_status(require_repository_reference(repo))
        if is_json():
            print_json_output({"repository": state.repository, "status": state.status,
                               "error_message": state.error_message, "analysis": None})
        else:
            console.print(f"[yellow]No analysis stored for {state.repository}.[/yellow]")
            if state.status == "failed" and state.error_message:
                console.print(f"[dim]Last run failed: {escape(state.error_message)}[/dim]")
        raise typer.Exit(1)

    render_analysis(record, view)


@app.command(rich_help_panel="Setup")
@handle_errors
def providers(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List AI providers with their model and API key status."""
    from devprofile.core.config_service import get_config_service
    from devprofile.core.secrets import list_stored_providers
    from devprofile.providers import ALIASES, get_provider_names

    set_json_mode(json_output)
    svc = get_config_service()
    active = svc.get_provider_name()
    active = ALIASES.get(active, active)
    key_status = list_stored_providers()

    rows = [
        {
            "name": name,
            "model": svc.get_provider_model(name),
            "key": key_status.get(name, "unknown"),
            "active": name == active,
        }
        for name in get_provider_names()
    ]
    render_providers(rows)


if __name__ == "__main__":
    app()

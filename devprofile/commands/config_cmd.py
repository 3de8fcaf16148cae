"""CLI commands for configuration management."""
from __future__ import annotations

import typer

from devprofile.error_handler import handle_errors
from devprofile.ui import console

app = typer.Typer(
    name="config",
    help="Manage devprofile configuration.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _parse_value(value: str) -> object:
    """Convert CLI strings to booleans or integers where they look like one."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        return value


@app.command()
@handle_errors
def show():
    """Display the resolved configuration (all layers merged)."""
    from rich.panel import Panel
    from rich.table import Table

    from devprofile.core.config_service import AI_PROVIDERS, get_config_service
    from devprofile.core.secrets import list_stored_providers

    svc = get_config_service()
    info = svc.show()

    sources = info["sources"]
    console.print(Panel(
        f"Global:  {sources['global_config'] or '[dim]not found[/dim]'}\n"
        f"Project: {sources['project_config'] or '[dim]not found[/dim]'}",
        title="Config Sources",
        border_style="cyan",
    ))

    resolved = info["resolved"]

    providers = resolved.get("providers", {})
    table = Table(title="Providers", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("default", str(providers.get("default", "")))
    for name in AI_PROVIDERS:
        prov = providers.get(name, {})
        if isinstance(prov, dict):
            for key, val in prov.items():
                table.add_row(f"{name}.{key}", str(val) if val else "[dim]not set[/dim]")
    console.print(table)

    for section in ("github", "storage"):
        values = resolved.get(section, {})
        if values:
            section_table = Table(title=section.capitalize(), show_header=True)
            section_table.add_column("Setting", style="cyan")
            section_table.add_column("Value")
            for key, val in values.items():
                section_table.add_row(key, str(val) if val else "[dim]not set[/dim]")
            console.print(section_table)

    key_status = list_stored_providers()
    keys_table = Table(title="API Keys", show_header=True)
    keys_table.add_column("Provider", style="cyan")
    keys_table.add_column("Status")
    for provider, status in key_status.items():
        style = "green" if status in ("env", "keyring", "file") else "dim"
        keys_table.add_row(provider, f"[{style}]{status}[/{style}]")
    console.print(keys_table)


@app.command("set")
@handle_errors
def set_value(
    key: str = typer.Argument(..., help="Config key in dotted notation (e.g. providers.default)"),
    value: str = typer.Argument(..., help="Value to set"),
):
    """Set a global configuration value."""
    from devprofile.core.config_service import get_config_service

    parsed_value = _parse_value(value)
    get_config_service().set_global(key, parsed_value)
    console.print(f"[green]Set[/green] {key} = {parsed_value}")


@app.command("set-key")
@handle_errors
def set_key(
    provider: str = typer.Argument(..., help="openai, anthropic, gemini or github"),
    api_key: str = typer.Argument(..., help="API key or token to store"),
):
    """Store an API key (or GitHub token) securely."""
    from devprofile.core.secrets import store_key

    try:
        location = store_key(provider, api_key)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)
    console.print(f"[green]Stored key for {provider}[/green] [dim]({location})[/dim]")


@app.command("remove-key")
@handle_errors
def remove_key(
    provider: str = typer.Argument(..., help="openai, anthropic, gemini or github"),
):
    """Remove a stored API key."""
    from devprofile.core.secrets import remove_key as _remove_key

    try:
        removed = _remove_key(provider)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)
    if removed:
        console.print(f"[green]Removed key for {provider}[/green]")
    else:
        console.print(f"[yellow]No stored key found for {provider}[/yellow]")


@app.command()
@handle_errors
def init():
    """Create a .devprofile.toml project config in the current directory."""
    from devprofile.core.config_service import get_config_service

    try:
        path = get_config_service().init_project_config()
    except FileExistsError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]Created project config:[/green] {path}")


@app.command()
@handle_errors
def path():
    """Show all configuration file locations."""
    from rich.table import Table

    from devprofile.core.config_service import get_config_service

    paths = get_config_service().config_paths()

    table = Table(title="Config Paths", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Location")
    for name, location in paths.items():
        table.add_row(name, location)
    console.print(table)

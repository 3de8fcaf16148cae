"""Shared UI theme, console, and display helpers for devprofile."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from devprofile.core import AnalysisRecord, CostEstimate
from devprofile.core.views import build_analysis_view

# ── Output Mode State ──
_json_mode: bool = False


def set_json_mode(enabled: bool = True) -> None:
    """Enable or disable JSON output mode."""
    global _json_mode
    _json_mode = enabled


def is_json() -> bool:
    """Check if JSON output mode is active."""
    return _json_mode


def print_json_output(data: Any) -> None:
    """Print data as formatted JSON to stdout."""
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


# ── Theme ──
DEVPROFILE_THEME = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "yellow",
    "error": "bold red",
    "brand": "bold cyan",
    "muted": "dim",
})

console = Console(theme=DEVPROFILE_THEME)

ESTIMATED_LABEL = "(estimated)"


def success_panel(title: str, content=None):
    """Display a success panel."""
    if _json_mode:
        return
    console.print(Panel(
        content or "",
        title=f"[bold green]{title}[/bold green]",
        border_style="green",
    ))


def section_divider(text: str = ""):
    """Print a subtle section divider."""
    if _json_mode:
        return
    if text:
        console.print(f"\n[dim]── {text} ──[/dim]")
    else:
        console.print()


def _bullets(items: Optional[list], limit: Optional[int] = None) -> str:
    """Bulleted lines with model text escaped so brackets print literally."""
    items = list(items or [])
    shown = items[:limit] if limit else items
    lines = [f"  [cyan]•[/cyan] {escape(str(item))}" for item in shown]
    if limit and len(items) > limit:
        lines.append(f"  [dim]... and {len(items) - limit} more[/dim]")
    return "\n".join(lines)


def render_estimate(estimate: CostEstimate) -> None:
    """Display a cost estimate."""
    if _json_mode:
        print_json_output(estimate.to_dict())
        return

    table = Table(title=f"Estimate: {estimate.repository}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Project scale", estimate.project_scale)
    table.add_row("Commits", str(estimate.total_commits))
    table.add_row("Duration", f"{estimate.project_duration_days} days")
    table.add_row("Languages", ", ".join(estimate.languages) or "[dim]none[/dim]")
    table.add_row("Config files", ", ".join(estimate.config_files) or "[dim]none[/dim]")
    table.add_row("README", "yes" if estimate.has_readme else "no")
    table.add_row("Source files", str(estimate.file_count))
    table.add_row("Input tokens", str(estimate.estimated_input_tokens))
    table.add_row("Output tokens", str(estimate.estimated_output_tokens))
    table.add_row("Total tokens", str(estimate.estimated_total_tokens))
    table.add_row("Credits", f"[bold]{estimate.estimated_credits}[/bold]")
    console.print(table)
    console.print(f"\n{estimate.message}")


def render_statistics(record: AnalysisRecord) -> None:
    table = Table(title="Git Statistics", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Commits", str(record.total_commits))
    table.add_row("Lines added", f"{record.lines_added:,} [dim]{ESTIMATED_LABEL}[/dim]")
    table.add_row("Lines deleted", f"{record.lines_deleted:,} [dim]{ESTIMATED_LABEL}[/dim]")
    table.add_row("Files changed", f"{record.files_changed:,} [dim]{ESTIMATED_LABEL}[/dim]")
    table.add_row("Duration", f"{record.project_duration_days} days")
    if record.first_commit_date:
        table.add_row("First commit", record.first_commit_date)
    if record.last_commit_date:
        table.add_row("Last commit", record.last_commit_date)
    console.print(table)


def _render_achievements(grouped: dict[str, list[dict]]) -> None:
    if not any(grouped.values()):
        return
    section_divider("Key Achievements")
    for category, items in grouped.items():
        for item in items:
            console.print(
                f"  [bold]{escape(item.get('title', ''))}[/bold] "
                f"[dim]({escape(category)})[/dim]"
            )
            console.print(f"    {escape(item.get('description', ''))}")
            if item.get("metrics"):
                console.print(f"    [cyan]Metrics:[/cyan] {escape(item['metrics'])}")


def _render_team_context(team: Optional[dict]) -> None:
    if not team:
        return
    section_divider("Team Context")
    mode = "solo" if team.get("is_solo") else f"team of {team.get('team_size', '?')}"
    console.print(f"  [cyan]Role:[/cyan] {escape(str(team.get('user_role', '')))} ({mode})")
    console.print(f"  {escape(str(team.get('contribution_summary', '')))}")


def _render_hr(hr: Optional[dict]) -> None:
    if not hr:
        return
    section_divider("HR Summary")
    console.print(f"  {escape(hr.get('professional_summary', ''))}")
    console.print(f"  [cyan]Business impact:[/cyan] {escape(hr.get('business_impact', ''))}")
    console.print(f"  [cyan]Work style:[/cyan] {escape(hr.get('work_style', ''))}")
    console.print(f"  [cyan]Reliability:[/cyan] {escape(hr.get('reliability_score', ''))}")
    if hr.get("soft_skills"):
        console.print("  [cyan]Soft skills:[/cyan]")
        console.print(_bullets(hr["soft_skills"]))
    if hr.get("growth_indicators"):
        console.print("  [cyan]Growth:[/cyan]")
        console.print(_bullets(hr["growth_indicators"]))


def _render_tech(view: dict) -> None:
    stack = view["tech_view"]
    combined = stack["frameworks"] + stack["libraries"] + stack["tools"]
    if combined:
        section_divider("Tech Stack")
        console.print(_bullets(combined, limit=12))
    if stack["patterns"]:
        section_divider("Patterns")
        console.print(_bullets(stack["patterns"]))

    quality = view.get("code_quality")
    if quality:
        section_divider("Code Quality")
        console.print(f"  [cyan]Organization:[/cyan] {escape(quality.get('organization', ''))}")
        for key in ("testing", "type_safety"):
            if quality.get(key):
                label = key.replace("_", " ").capitalize()
                console.print(f"  [cyan]{label}:[/cyan] {escape(quality[key])}")
        console.print(_bullets(quality.get("patterns_used")))

    tech = view.get("tech_summary")
    if tech:
        section_divider("Tech Summary")
        console.print(f"  {escape(tech.get('architecture_overview', ''))}")
        for decision in tech.get("architecture_decisions", []):
            console.print(
                f"  [cyan]•[/cyan] [bold]{escape(decision['decision'])}[/bold]: "
                f"{escape(decision['reasoning'])}"
            )
        console.print(f"  [cyan]Assessment:[/cyan] {escape(tech.get('code_quality_assessment', ''))}")
        if tech.get("best_practices"):
            console.print("  [cyan]Best practices:[/cyan]")
            console.print(_bullets(tech["best_practices"]))
        if tech.get("security_considerations"):
            console.print("  [cyan]Security:[/cyan]")
            console.print(_bullets(tech["security_considerations"]))
        for key in ("scalability_notes", "tech_debt_observations"):
            if tech.get(key):
                label = key.replace("_", " ").capitalize()
                console.print(f"  [cyan]{label}:[/cyan] {escape(tech[key])}")
        console.print(f"  [cyan]Review readiness:[/cyan] {escape(tech.get('review_readiness', ''))}")

    if stack["interview_topics"]:
        section_divider("Interview Topics")
        console.print(_bullets(stack["interview_topics"]))


def render_analysis(record: AnalysisRecord, view: str = "full") -> None:
    """Display a stored or freshly produced analysis as the hr, tech or full view.

    Every string that came from the model is escaped before printing.
    """
    selected = build_analysis_view(record, view)
    if _json_mode:
        print_json_output(selected)
        return

    data = record.analysis_data
    console.print(Panel(
        escape(data.get("project_overview", "")),
        title=f"[bold cyan]{escape(selected['document_name'])}[/bold cyan]",
        subtitle=f"scale: {escape(record.project_scale)}  view: {view}",
        border_style="cyan",
    ))
    render_statistics(record)

    if view == "full":
        insights = data.get("git_insights") or {}
        if insights:
            section_divider("Git Insights")
            console.print(f"  [cyan]Commit frequency:[/cyan] {escape(insights.get('commit_frequency', ''))}")
            console.print(f"  [cyan]Development style:[/cyan] {escape(insights.get('development_style', ''))}")
            if insights.get("collaboration_indicators"):
                console.print(f"  [cyan]Collaboration:[/cyan] {escape(insights['collaboration_indicators'])}")

    _render_achievements(selected["achievements"])
    _render_team_context(selected["team_context"])

    if view == "full" and data.get("resume_points"):
        section_divider("Resume Points")
        console.print(_bullets(data["resume_points"]))

    if "hr_view" in selected:
        _render_hr(selected["hr_view"])
    if "tech_view" in selected:
        _render_tech(selected)

    if view == "full" and data.get("notable_patterns"):
        section_divider("Notable Patterns")
        console.print(_bullets(data["notable_patterns"]))

    footer = f"tokens: {record.tokens_used}" if record.tokens_used is not None else ""
    if record.provider:
        footer += f"  provider: {escape(record.provider)} ({escape(record.model)})"
    console.print(f"\n[dim]{footer.strip()}  created: {record.created_at}[/dim]")


def render_providers(rows: list[dict]) -> None:
    """Display registered providers with model and key status."""
    if _json_mode:
        print_json_output(rows)
        return

    table = Table(title="AI Providers", show_header=True)
    table.add_column("Provider", style="cyan")
    table.add_column("Model")
    table.add_column("API Key")
    table.add_column("Active")
    for row in rows:
        key_style = "dim" if row["key"] == "not set" else "green"
        table.add_row(
            row["name"],
            row["model"] or "[dim]not set[/dim]",
            f"[{key_style}]{row['key']}[/{key_style}]",
            "[green]✔[/green]" if row["active"] else "",
        )
    console.print(table)

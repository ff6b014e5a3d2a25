"""assurance - inspect framework catalogs and risk registers from the shell.

A thin front end over the domain model: it loads YAML, asks the model for
projections and prints them.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..core.config import get_effective_config, review_horizon_days, default_review_period
from ..models.values import Impact, Likelihood

console = Console()

SEVERITY_COLORS = {
    "Critical": "red",
    "High": "dark_orange",
    "Medium": "yellow",
    "Low": "green",
}


def _configure_logging(verbose: bool) -> None:
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def _as_of(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _badge(score) -> str:
    if score is None:
        return "-"
    color = SEVERITY_COLORS.get(score.severity.value, "white")
    return f"[{color}]{score.value} {score.severity.value}[/{color}]"


def _wants_json(config: dict) -> bool:
    return config.get("output", {}).get("format") == "json"


def _fail(ctx: click.Context, message: str) -> None:
    console.print(f"  [red]ERROR[/red] {message}")
    ctx.exit(1)


@click.group()
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".",
              help="Directory holding .assurance/config.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, project: str, verbose: bool) -> None:
    """Compliance and risk register tooling."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = get_effective_config(Path(project))


@cli.command()
@click.argument("impact", type=click.Choice([i.value for i in Impact]))
@click.argument("likelihood", type=click.Choice([l.value for l in Likelihood]))
def score(impact: str, likelihood: str) -> None:
    """Score an impact/likelihood pair on the 5x5 matrix.

    Example: assurance score moderate possible
    """
    from ..core.scoring import risk_score

    result = risk_score(impact, likelihood)
    console.print(f"  Score: {_badge(result)}")


@cli.command()
@click.argument("register_file", type=click.Path(dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Emit projections as JSON")
@click.option("--as-of", type=click.DateTime(formats=["%Y-%m-%d"]), help="Evaluate reviews at this date")
@click.option("--horizon-days", type=int, help="Upcoming-review window (default from config)")
@click.pass_context
def register(
    ctx: click.Context,
    register_file: str,
    as_json: bool,
    as_of: Optional[datetime],
    horizon_days: Optional[int],
) -> None:
    """Show a YAML risk register with scores and review flags."""
    from ..compliance.loader import load_risk_register
    from ..core.projections import project_risk

    config = ctx.obj["config"]
    horizon = horizon_days if horizon_days is not None else review_horizon_days(config)
    now = _as_of(as_of)

    loaded = load_risk_register(Path(register_file), default_review_period(config))
    if loaded.is_failure:
        _fail(ctx, loaded.error.message)
        return

    projections = [project_risk(r, now, horizon) for r in loaded.value]

    if as_json or _wants_json(config):
        click.echo(json.dumps([p.model_dump(mode="json") for p in projections], indent=2))
        return

    table = Table(title=f"Risk register ({len(projections)} risks)")
    table.add_column("Risk")
    table.add_column("Status")
    table.add_column("Inherent")
    table.add_column("Residual")
    table.add_column("Reduction", justify="right")
    table.add_column("Next review")
    table.add_column("Flags")

    for p in projections:
        flags = []
        if p.review_due:
            flags.append("[red]DUE[/red]")
        elif p.review_upcoming:
            flags.append("[yellow]UPCOMING[/yellow]")
        if any(t.overdue for t in p.treatments):
            flags.append("[red]OVERDUE TREATMENT[/red]")
        table.add_row(
            p.name,
            p.status,
            _badge(p.inherent_score),
            _badge(p.residual_score),
            f"{p.risk_reduction_percentage}%" if p.risk_reduction_percentage is not None else "-",
            p.next_review_date.strftime("%Y-%m-%d") if p.next_review_date else "-",
            " ".join(flags),
        )

    console.print(table)
    due = sum(1 for p in projections if p.review_due)
    if due:
        console.print(f"  [red]{due} review(s) due[/red]")


@cli.command()
@click.argument("register_file", type=click.Path(dir_okay=False))
@click.option("--residual", is_flag=True, help="Plot residual instead of inherent pairs")
@click.pass_context
def heatmap(ctx: click.Context, register_file: str, residual: bool) -> None:
    """Count risks per impact/likelihood cell."""
    from ..compliance.loader import load_risk_register
    from ..core.scoring import heatmap as build_heatmap, score as cell_score, severity

    loaded = load_risk_register(Path(register_file), default_review_period(ctx.obj["config"]))
    if loaded.is_failure:
        _fail(ctx, loaded.error.message)
        return

    if residual:
        pairs = [(r.residual_impact, r.residual_likelihood) for r in loaded.value if r.residual_impact]
    else:
        pairs = [(r.inherent_impact, r.inherent_likelihood) for r in loaded.value]
    counts = build_heatmap(pairs)

    table = Table(title="Residual risk" if residual else "Inherent risk")
    table.add_column("Likelihood / Impact")
    for impact in Impact:
        table.add_column(impact.label, justify="center")
    for likelihood in reversed(list(Likelihood)):
        cells = []
        for impact in Impact:
            color = SEVERITY_COLORS[severity(cell_score(impact, likelihood)).value]
            count = counts[(impact, likelihood)]
            cells.append(f"[{color}]{count or '.'}[/{color}]")
        table.add_row(likelihood.label, *cells)
    console.print(table)


@cli.command()
@click.argument("catalog_file", type=click.Path(dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Emit coverage as JSON")
@click.pass_context
def coverage(ctx: click.Context, catalog_file: str, as_json: bool) -> None:
    """Show how far a framework catalog's controls are implemented."""
    from ..compliance.loader import load_framework_catalog
    from ..compliance.mapping import get_framework_coverage

    loaded = load_framework_catalog(Path(catalog_file))
    if loaded.is_failure:
        _fail(ctx, loaded.error.message)
        return

    framework, controls = loaded.value
    result = get_framework_coverage(framework, controls)

    if as_json or _wants_json(ctx.obj["config"]):
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    console.print()
    console.print(f"  [bold cyan]{framework.name}[/bold cyan] {framework.version}")
    console.print(
        f"  Implemented: [white]{result.implemented_controls}/{result.total_controls}[/white] "
        f"({result.implementation_rate}%)"
    )

    table = Table()
    table.add_column("Category")
    table.add_column("Total", justify="right")
    table.add_column("Implemented", justify="right")
    table.add_column("Partial", justify="right")
    table.add_column("Gaps", justify="right")
    table.add_column("Rate", justify="right")
    for cat in result.by_category.values():
        table.add_row(cat.name, str(cat.total), str(cat.implemented), str(cat.partial),
                      str(cat.gaps), f"{cat.coverage}%")
    console.print(table)

    if result.gaps:
        console.print("  [yellow]Not implemented:[/yellow]")
        for gap in result.gaps:
            console.print(f"    {gap.code}  {gap.title}")


@cli.command()
@click.argument("catalog_dir", required=False, type=click.Path(file_okay=False))
@click.pass_context
def catalogs(ctx: click.Context, catalog_dir: Optional[str]) -> None:
    """List framework catalogs in a directory (default from config)."""
    from ..compliance.loader import get_available_catalogs

    config = ctx.obj["config"]
    directory = Path(catalog_dir) if catalog_dir else (
        Path(config.get("_project_path", ".")) / config["catalogs"]["directory"]
    )
    found = get_available_catalogs(directory)
    if not found:
        console.print(f"  [dim]No catalogs found in {directory}[/dim]")
        return
    for entry in found:
        console.print(f"  {entry['id']}: {entry['name']} {entry['version']}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

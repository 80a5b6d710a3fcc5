"""Typer CLI application for SiteGenie.

Provides commands for niche analysis, domain ideas, niche performance
reports, niche comparisons and database setup.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from sitegenie.app import SiteGenie
from sitegenie.config import Settings
from sitegenie.modules.domains import DomainPreferences, generate_domain_options, score_domain
from sitegenie.modules.reporting import (
    PerformanceFilters,
    export_niche_data_to_csv,
    render_niche_performance_table,
)

console = Console()
app = typer.Typer(
    name="sitegenie",
    help="SiteGenie -- niche research, domain ideas and niche performance reports.",
    add_completion=False,
    no_args_is_help=True,
)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context."""
    return asyncio.run(coro)


def _load_app(config: str, seed: Optional[int] = None) -> SiteGenie:
    settings = Settings.load(config_path=config)
    if seed is not None:
        settings.analysis.random_seed = seed
    genie = SiteGenie(settings)
    genie.initialize()
    return genie


def _score_cell(value: float, good_below: Optional[float] = None) -> str:
    """Colour a score green/yellow/red.  ``good_below`` flips the scale."""
    if good_below is not None:
        colour = "green" if value < good_below else "yellow" if value < good_below * 2 else "red"
    else:
        colour = "green" if value >= 7 else "yellow" if value >= 4 else "red"
    return f"[{colour}]{value}[/{colour}]"


# ------------------------------------------------------------------
# analyze
# ------------------------------------------------------------------
@app.command()
def analyze(
    keywords: list[str] = typer.Argument(..., help="Seed keywords (e.g. hydroponics)."),
    limit: int = typer.Option(5, "--limit", "-l", help="Maximum recommendations."),
    industry: Optional[str] = typer.Option(None, "--industry", "-i", help="Preferred industry."),
    include_keyword_data: bool = typer.Option(
        False, "--include-keyword-data", help="Show the fetched keyword metrics."
    ),
    save: bool = typer.Option(False, "--save", help="Persist recommendations to the database."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible mock data."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON response."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Analyse seed keywords and recommend niches."""
    _setup_logging(verbose)
    genie = _load_app(config, seed)
    request = {
        "keywords": keywords,
        "limit": limit,
        "preferences": {"industry": industry},
        "include_keyword_data": include_keyword_data,
        "save_results": save,
    }
    try:
        if as_json:
            result = _run_async(genie.analyze(request))
        else:
            console.print(Panel(f"[bold cyan]Niche Analysis: {', '.join(keywords)}[/bold cyan]"))
            with Progress(
                SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console,
            ) as progress:
                progress.add_task(description="Scoring candidate niches...", total=None)
                result = _run_async(genie.analyze(request))
    finally:
        genie.close()

    if as_json:
        typer.echo(json.dumps(result, indent=2))
        if not result["success"]:
            raise typer.Exit(code=1)
        return

    if not result["success"]:
        console.print(f"[red]✘[/red] {result['error']}")
        raise typer.Exit(code=1)

    table = Table(title="Niche Recommendations", show_header=True, header_style="bold magenta")
    table.add_column("Niche", style="cyan", min_width=20)
    table.add_column("Searches", justify="right")
    table.add_column("Competition", justify="right")
    table.add_column("Monetization", justify="right")
    table.add_column("Trending", justify="right")
    table.add_column("CPC ($)", justify="right")
    for niche in result["niche_recommendations"]:
        table.add_row(
            niche["niche_name"],
            f"{niche['monthly_search_volume']:,}",
            _score_cell(niche["competition_score"], good_below=30),
            _score_cell(niche["monetization_potential"]),
            _score_cell(niche["trending_score"]),
            f"{niche['estimated_cpc']:.2f}",
        )
    console.print(table)

    if include_keyword_data:
        kw_table = Table(title="Keyword Data", show_header=True, header_style="bold magenta")
        for column in ("Keyword", "Searches", "CPC ($)", "Competition"):
            kw_table.add_column(column)
        for kw in result.get("keyword_data", []):
            kw_table.add_row(
                kw["keyword"], str(kw["search_volume"]), f"{kw['cpc']:.2f}", f"{kw['competition']:.2f}",
            )
        console.print(kw_table)

    if save:
        if result["persisted"]:
            console.print("[green]✔[/green] Recommendations saved.")
        else:
            console.print(f"[yellow]⚠[/yellow] Not saved: {result.get('persistence_error')}")
    console.print(f"[green]✔[/green] {len(result['niche_recommendations'])} viable niches found.")


# ------------------------------------------------------------------
# domains
# ------------------------------------------------------------------
@app.command()
def domains(
    keywords: list[str] = typer.Argument(..., help="Niche name first, then related keywords."),
    tld: Optional[list[str]] = typer.Option(None, "--tld", "-t", help="Preferred TLD (repeatable)."),
    hyphens: bool = typer.Option(False, "--hyphens", help="Include hyphenated combinations."),
    short: bool = typer.Option(False, "--short", help="Only labels of 15 characters or less."),
    numbers: bool = typer.Option(False, "--numbers", help="Include numbered combinations."),
    check: bool = typer.Option(False, "--check", help="Check availability with Namecheap."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Generate and score domain names for a niche."""
    _setup_logging(verbose)
    prefs = DomainPreferences.from_dict({
        "preferred_tlds": tld or None,
        "use_hyphens": hyphens,
        "short_domains": short,
        "include_numbers": numbers,
    })
    options = generate_domain_options(keywords, prefs)
    if not options:
        console.print("[red]✘[/red] No usable keywords for domain generation.")
        raise typer.Exit(code=1)

    if check:
        genie = _load_app(config)
        try:
            registry = genie.build_domain_registry()
            candidates = _run_async(registry.rank_available_domains(options))
        except RuntimeError as exc:
            console.print(f"[red]✘[/red] {exc}")
            raise typer.Exit(code=1)
        finally:
            genie.close()
        rows = [(c.domain, c.score) for c in candidates]
        title = "Available Domains"
    else:
        rows = sorted(((d, score_domain(d)) for d in options), key=lambda r: r[1], reverse=True)
        title = "Domain Ideas"

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Domain", style="cyan", min_width=25)
    table.add_column("Score", justify="right")
    for domain, score in rows:
        table.add_row(domain, _score_cell(round(score, 2)))
    console.print(table)


# ------------------------------------------------------------------
# performance
# ------------------------------------------------------------------
@app.command()
def performance(
    industry: Optional[str] = typer.Option(None, "--industry", "-i", help="Industry substring."),
    investment_level: Optional[str] = typer.Option(
        None, "--investment-level", help="low, medium or high."
    ),
    min_volume: int = typer.Option(0, "--min-volume", help="Minimum monthly searches."),
    max_competition: float = typer.Option(100, "--max-competition", help="Maximum competition (0-100)."),
    sort_by: str = typer.Option("monetization_potential", "--sort-by", help="Sort column."),
    order: str = typer.Option("DESC", "--order", help="ASC or DESC."),
    limit: int = typer.Option(50, "--limit", "-l", help="Page size."),
    offset: int = typer.Option(0, "--offset", help="Rows to skip."),
    fmt: str = typer.Option("table", "--format", "-f", help="Output format: table, html, csv."),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file path."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Report on stored niches."""
    _setup_logging(verbose)
    filters = PerformanceFilters(
        industry=industry,
        investment_level=investment_level,
        min_search_volume=min_volume,
        max_competition=max_competition,
        sort_by=sort_by,
        sort_order=order,
        limit=limit,
        offset=offset,
    )
    genie = _load_app(config)
    try:
        result = genie.performance(filters)
    finally:
        genie.close()

    if not result["success"]:
        console.print(f"[red]✘[/red] {result['error']}")
        raise typer.Exit(code=1)

    if fmt in ("html", "csv"):
        if fmt == "html":
            rendered = render_niche_performance_table(
                result["data"], include_related_keywords=True, pagination=result["pagination"],
            )
        else:
            rendered = export_niche_data_to_csv(result["data"])
        if output:
            Path(output).parent.mkdir(parents=True, exist_ok=True)
            Path(output).write_text(rendered, encoding="utf-8")
            console.print("Report saved to: [bold]" + output + "[/bold]")
        else:
            typer.echo(rendered)
        return

    pagination = result["pagination"]
    table = Table(
        title=f"Niche Performance (page {pagination['page']} of {pagination['total_pages']})",
        show_header=True,
        header_style="bold magenta",
    )
    for column in ("Niche", "Searches", "Competition", "Monetization", "Trending", "Score", "Sites"):
        table.add_column(column)
    for row in result["data"]:
        table.add_row(
            row["name"],
            f"{row['monthly_search_volume']:,}",
            _score_cell(row["competition_score"], good_below=30),
            _score_cell(row["monetization_potential"]),
            _score_cell(row["trending_score"]),
            _score_cell(row["recommendation_score"]),
            str(row["site_count"]),
        )
    console.print(table)
    console.print(f"{pagination['total']} niches match.")


# ------------------------------------------------------------------
# report
# ------------------------------------------------------------------
@app.command()
def report(
    industry: Optional[str] = typer.Option(None, "--industry", "-i", help="Industry substring."),
    investment_level: Optional[str] = typer.Option(
        None, "--investment-level", help="low, medium or high."
    ),
    min_volume: int = typer.Option(0, "--min-volume", help="Minimum monthly searches."),
    max_competition: float = typer.Option(100, "--max-competition", help="Maximum competition (0-100)."),
    limit: int = typer.Option(1000, "--limit", "-l", help="Maximum niches in the report."),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", "-d", help="Report directory (defaults to app.reports_dir)."
    ),
    filename: Optional[str] = typer.Option(
        None, "--filename", help="File name (defaults to niche-performance-DATE.csv)."
    ),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Write the niche performance CSV report to a file."""
    _setup_logging(verbose)
    filters = PerformanceFilters(
        industry=industry,
        investment_level=investment_level,
        min_search_volume=min_volume,
        max_competition=max_competition,
        limit=limit,
    )
    genie = _load_app(config)
    try:
        result = genie.report(filters, output_dir=output_dir, filename=filename)
    finally:
        genie.close()

    if not result["success"]:
        console.print(f"[red]✘[/red] {result['error']}")
        raise typer.Exit(code=1)
    console.print(
        f"[green]✔[/green] {result['record_count']} niches written to: "
        f"[bold]{result['report_path']}[/bold]"
    )


# ------------------------------------------------------------------
# compare
# ------------------------------------------------------------------
@app.command()
def compare(
    niche1_id: int = typer.Argument(..., help="ID of the first niche."),
    niche2_id: int = typer.Argument(..., help="ID of the second niche."),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", "-d", help="Report directory (defaults to app.reports_dir)."
    ),
    filename: Optional[str] = typer.Option(
        None, "--filename", help="File name (defaults to niche-comparison-DATE.csv)."
    ),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Write a side-by-side CSV comparison of two stored niches."""
    _setup_logging(verbose)
    genie = _load_app(config)
    try:
        result = genie.compare(niche1_id, niche2_id, output_dir=output_dir, filename=filename)
    finally:
        genie.close()

    if not result["success"]:
        console.print(f"[red]✘[/red] {result['error']}")
        raise typer.Exit(code=1)
    console.print(
        f"[green]✔[/green] {result['niche1']['name']} vs {result['niche2']['name']} "
        f"written to: [bold]{result['report_path']}[/bold]"
    )


# ------------------------------------------------------------------
# init-db
# ------------------------------------------------------------------
@app.command("init-db")
def init_db(
    reset: bool = typer.Option(False, "--reset", help="Drop and recreate every table."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Create the database tables."""
    _setup_logging(verbose)
    genie = _load_app(config)
    try:
        if reset:
            genie.store.reset_schema()
    finally:
        genie.close()
    console.print("[green]✔[/green] Database tables created.")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

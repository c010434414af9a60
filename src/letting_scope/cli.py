"""CLI for the LettingScope rent valuator."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv
from typing import Any, Optional

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import (
    get_coefficient_table,
    get_dataset_settings,
    get_delusion_params,
    get_tenancy_settings,
    load_config,
)
from .connectors import DatasetConnector, FileDatasetConnector, HttpDatasetConnector
from .errors import InvalidInputRange, UnknownCategoryKey
from .models import CalibrationOutcome, CoefficientTable, DelusionParameters, PropertyQuery
from .valuation import (
    ValuationEngine,
    affordability as calc_affordability,
    asking_price,
    calc_delusion,
    calibrate as run_calibration,
    council_tax,
    disposable_income,
    energy_bill,
    pro_rata_rent,
    rent_increase as calc_rent_increase,
)

app = typer.Typer(
    name="letting-scope",
    help="Edinburgh rent valuator - fair rent, asking price and tenancy calculators",
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(config_path: Optional[Path]) -> dict[str, Any]:
    """Load the given config, or the default one if it exists."""
    if config_path:
        return load_config(config_path)
    try:
        return load_config()
    except FileNotFoundError:
        return {}


def _connector(
    cfg: dict[str, Any],
    url: Optional[str],
    file: Optional[Path],
) -> Optional[DatasetConnector]:
    """Pick a dataset source: explicit options first, then config."""
    ds = get_dataset_settings(cfg)
    if file:
        return FileDatasetConnector(file)
    if url:
        return HttpDatasetConnector(url, timeout_seconds=ds["timeout_seconds"])
    if ds["path"]:
        return FileDatasetConnector(ds["path"])
    if ds["url"]:
        return HttpDatasetConnector(ds["url"], timeout_seconds=ds["timeout_seconds"])
    return None


def _calibrate(connector: DatasetConnector, table: CoefficientTable) -> CalibrationOutcome:
    """Fetch the dataset and calibrate, keeping *table* on any failure."""
    result = connector.fetch()
    for e in result.errors:
        console.print(f"[yellow]Warning: {e}[/yellow]")
    console.print(f"[dim]Fetched {len(result.records)} records from {result.source}[/dim]")
    return run_calibration(result.records, fallback=table)


def _display_calibration(outcome: CalibrationOutcome) -> None:
    if not outcome.calibrated:
        console.print(
            f"[yellow]Calibration skipped ({outcome.reason}). "
            f"Keeping base rate £{outcome.base_rate:.2f}/m².[/yellow]"
        )
        return
    d = outcome.details
    table = Table(title="Base Rate Calibration")
    table.add_column("Statistic", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Records", str(d["record_count"]))
    table.add_row("Valid rates", str(d["valid_count"]))
    table.add_row("Q1 (£/m²)", f"{d['q1']:.2f}")
    table.add_row("Q3 (£/m²)", f"{d['q3']:.2f}")
    table.add_row("Bounds", f"{d['lower_bound']:.2f} .. {d['upper_bound']:.2f}")
    table.add_row("Outliers removed", str(d["outliers_removed"]))
    table.add_row("Base rate (£/m²)", f"[bold]{outcome.base_rate:.3f}[/bold]")
    console.print(table)


@app.command()
def calibrate(
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Dataset URL (JSON array of lettings)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Dataset JSON file"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    as_json: bool = typer.Option(False, "--json", help="Print the outcome as JSON"),
) -> None:
    """Derive the base rate (£/m²) from a dataset of agreed rents."""
    cfg = _load(config_path)
    connector = _connector(cfg, url, file)
    if connector is None:
        console.print("[red]No dataset configured. Pass --url or --file, or set dataset in config.yaml.[/red]")
        raise typer.Exit(1)
    outcome = _calibrate(connector, get_coefficient_table(cfg))
    if as_json:
        console.print_json(json.dumps(outcome.to_dict()))
        return
    _display_calibration(outcome)


@app.command()
def value(
    area: float = typer.Option(60, "--area", "-a", help="Floor area in m²"),
    beds: int = typer.Option(2, "--beds", "-b", help="Bedrooms"),
    location: str = typer.Option("Leith", "--location", "-l", help="Area name (see 'locations')"),
    condition: str = typer.Option("Average", "--condition", help="Poor, Below-Avg, Average, Above-Avg, High"),
    epc: str = typer.Option("C", "--epc", help="EPC rating A-G"),
    broadband: float = typer.Option(80, "--broadband", help="Broadband speed in Mbps"),
    additive: float = typer.Option(0.0, "--additive", help="Extra proportional adjustment, e.g. 0.05"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Calibrate from this dataset URL first"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Calibrate from this dataset file first"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    as_json: bool = typer.Option(False, "--json", help="Print the valuation as JSON"),
) -> None:
    """Fair rent and likely asking price for a property."""
    cfg = _load(config_path)
    engine = ValuationEngine(config=cfg)
    if url or file:
        outcome = _calibrate(_connector(cfg, url, file), engine.table)
        if outcome.calibrated:
            engine.replace_table(outcome.table)
        else:
            console.print(f"[yellow]Using default base rate: {outcome.reason}[/yellow]")

    query = PropertyQuery(
        area=area,
        beds=beds,
        location=location,
        condition=condition,
        epc=epc,
        broadband=broadband,
        additive=additive,
    )
    try:
        result = engine.valuate(query)
    except UnknownCategoryKey as e:
        console.print(f"[red]{e}[/red]")
        choices = ", ".join(engine.table.choices(e.kind)[:12])
        console.print(f"[dim]Valid {e.kind} values include: {choices}[/dim]")
        raise typer.Exit(1)
    except InvalidInputRange as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        return

    table = Table(title=f"{location} - {area:g} m², {beds} bed")
    table.add_column("", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Base rate", f"£{result.base_rate:.2f}/m²")
    table.add_row("Total adjustment", f"{result.total_adjustment:+.1%}")
    table.add_row("Area scale", f"{result.area_scale_factor:.3f}")
    table.add_row("Fair rent", f"[bold green]£{result.fair_rent:,}[/bold green] pcm")
    table.add_row("Delusion factor", result.delusion_label)
    table.add_row("Likely asking", f"[bold yellow]£{result.asking_price:,}[/bold yellow] pcm")
    console.print(table)


@app.command()
def locations(
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Only show this group"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """List selectable locations and their adjustments, by group."""
    coeff = get_coefficient_table(_load(config_path))
    groups = coeff.location_groups
    if group:
        if group not in groups:
            console.print(f"[red]Unknown group: {group}[/red]")
            console.print(f"[dim]Groups: {', '.join(groups)}[/dim]")
            raise typer.Exit(1)
        groups = {group: groups[group]}

    table = Table(title="Locations")
    table.add_column("Group", style="dim")
    table.add_column("Location", style="cyan")
    table.add_column("Adjustment", justify="right")
    for name, members in groups.items():
        for loc in members:
            adj = coeff.location[loc]
            table.add_row(name, loc, f"{adj:+.0%}")
    console.print(table)


@app.command()
def delusion(
    anchoring: Optional[float] = typer.Option(None, "--anchoring", help="Anchoring to high list prices"),
    btr: Optional[float] = typer.Option(None, "--btr", help="Build-to-rent premium"),
    cap: Optional[float] = typer.Option(None, "--cap", help="Investment / capitalisation pressure"),
    demand: Optional[float] = typer.Option(None, "--demand", help="General demand pressure"),
    agent: Optional[float] = typer.Option(None, "--agent", help="Agent mark-up"),
    scarcity: Optional[float] = typer.Option(None, "--scarcity", help="Lack of available stock"),
    fair_rent: Optional[int] = typer.Option(None, "--fair-rent", help="Also show asking price for this fair rent"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Market delusion multiplier between fair rent and asking price."""
    defaults = get_delusion_params(_load(config_path))
    params = DelusionParameters(
        anchoring=defaults.anchoring if anchoring is None else anchoring,
        btr=defaults.btr if btr is None else btr,
        cap=defaults.cap if cap is None else cap,
        demand=defaults.demand if demand is None else demand,
        agent=defaults.agent if agent is None else agent,
        scarcity=defaults.scarcity if scarcity is None else scarcity,
    )
    multiplier, label = calc_delusion(params)
    console.print(f"Multiplier: [bold]{multiplier:.2f}[/bold] ({label})")
    if fair_rent is not None:
        console.print(f"Likely asking: £{asking_price(fair_rent, multiplier):,} pcm")


@app.command("pro-rata")
def pro_rata(
    monthly_rent: float = typer.Argument(..., help="Monthly rent in £"),
    start: datetime = typer.Argument(..., formats=["%Y-%m-%d"], help="First day (YYYY-MM-DD)"),
    end: datetime = typer.Argument(..., formats=["%Y-%m-%d"], help="Last day (YYYY-MM-DD)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Rent due for a part-month occupancy."""
    settings = get_tenancy_settings(_load(config_path))
    try:
        r = pro_rata_rent(monthly_rent, start.date(), end.date(), settings["days_per_month"])
    except InvalidInputRange as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"Rent due: [bold]£{r.total_due:,.2f}[/bold] ({r.days} days at £{r.daily_rent:.2f}/day)")


@app.command("rent-increase")
def rent_increase(
    current_rent: float = typer.Argument(..., help="Current monthly rent in £"),
    open_market_rent: float = typer.Argument(..., help="Open-market monthly rent in £"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Permitted rent increase given the open-market rent."""
    settings = get_tenancy_settings(_load(config_path))
    try:
        r = calc_rent_increase(
            current_rent,
            open_market_rent,
            floor_percent=settings["increase_floor_percent"],
            cap_percent=settings["increase_cap_percent"],
        )
    except InvalidInputRange as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"Market difference: {r.market_difference_percent:.2f}%")
    if not r.allowed:
        console.print(f"[yellow]No increase allowed (<= {settings['increase_floor_percent']:g}%).[/yellow]")
        return
    if r.capped:
        console.print(f"[dim]Difference capped at {settings['increase_cap_percent']:g}%.[/dim]")
    console.print(f"New rent (rounded down): [bold]£{r.new_rent:,.2f}[/bold]")
    console.print(f"Increase: £{r.increase_amount:,.2f}")


@app.command()
def affordability(
    monthly_rent: float = typer.Argument(..., help="Monthly rent in £"),
    annual_income: float = typer.Argument(..., help="Gross annual income in £"),
    essential_percent: float = typer.Option(20.0, "--essential", help="Essential household spend, % of net"),
    credit_monthly: Optional[float] = typer.Option(None, "--credit", help="Monthly credit commitments in £"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Income checks for a rent, plus estimated disposable income."""
    settings = get_tenancy_settings(_load(config_path))
    credit = settings["average_credit_monthly"] if credit_monthly is None else credit_monthly
    try:
        a = calc_affordability(
            monthly_rent,
            annual_income,
            tenant_multiple=settings["tenant_income_multiple"],
            guarantor_multiple=settings["guarantor_income_multiple"],
        )
        d = disposable_income(annual_income, essential_percent, credit)
    except InvalidInputRange as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Affordability")
    table.add_column("", style="cyan")
    table.add_column("£", justify="right")
    table.add_row("Tenant income required", f"{a.tenant_income_required:,.0f}")
    table.add_row("Guarantor income required", f"{a.guarantor_income_required:,.0f}")
    table.add_row("Max affordable rent", f"{a.max_affordable_rent:,.2f}")
    table.add_row("Net income", f"{d.net_income:,.0f}")
    table.add_row("Essential spend", f"{d.essential_expenditure:,.0f}")
    table.add_row("Credit commitments", f"{d.credit_commitments:,.0f}")
    table.add_row("Disposable income", f"{d.disposable_income:,.0f}")
    console.print(table)
    if a.affordable:
        console.print("[green]AFFORDABLE for this rent.[/green]")
    else:
        console.print("[red]UNAFFORDABLE for this rent.[/red]")


@app.command()
def bills(
    household: str = typer.Option("2-3", "--household", help="Household size: 1-2, 2-3 or 4-5"),
    epc: Optional[str] = typer.Option(None, "--epc", help="EPC letter to scale energy use (A-G)"),
    band: Optional[str] = typer.Option(None, "--council-band", "-b", help="Council tax band (A-H) to add"),
    council_only: bool = typer.Option(False, "--council-only", help="Show council tax for --council-band only"),
) -> None:
    """Estimated energy bills and Edinburgh council tax."""
    try:
        if council_only:
            ct = council_tax(band or "D")
            console.print(f"Band {ct.band} annual: [bold]£{ct.annual:,.2f}[/bold]")
            console.print(f"Monthly (approx): £{ct.monthly:,.2f}")
            console.print("[dim](Water & sewerage included)[/dim]")
            return
        e = energy_bill(household, epc, band)
    except UnknownCategoryKey as err:
        console.print(f"[red]{err}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Bills ({e.household_size} people)")
    table.add_column("", style="cyan")
    table.add_column("Monthly £", justify="right")
    table.add_column("Annual £", justify="right")
    table.add_row("Energy", f"{e.monthly:,.2f}", f"{e.annual:,.2f}")
    if e.council_tax is not None:
        table.add_row(f"Council tax (band {e.council_tax.band})", f"{e.council_tax.monthly:,.2f}", f"{e.council_tax.annual:,.2f}")
        table.add_row("Combined", f"{e.combined_monthly:,.2f}", f"{e.combined_annual:,.2f}")
    console.print(table)
    if e.epc_multiplier != 1.0:
        console.print(f"[dim]EPC multiplier {e.epc_multiplier:g}x applied.[/dim]")
    console.print("[dim]These are estimates only. Actual figures may vary.[/dim]")


if __name__ == "__main__":
    app()

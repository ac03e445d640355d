import argparse
import json
import logging
import os
import sys
import time
from datetime import datetime

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from errors import CacheCorrupted
from location import LOCATION_CACHE
from manager import Manager, WidgetConfig, load_config
from schemas import RefreshStatus, Trend

console = Console()

TREND_ARROWS = {
    Trend.INCREASING: "[red]↑[/red]",
    Trend.DECREASING: "[green]↓[/green]",
    Trend.EQUAL: "=",
    Trend.UNDEFINED: "-",
}


def print_pass(msg):
    console.print(f"[green][PASS] {msg}[/green]")

def print_fail(msg):
    console.print(f"[red][FAIL] {msg}[/red]")

def print_info(msg):
    console.print(f"[cyan][INFO] {msg}[/cyan]")


def check_config(config_path="widget_config.json"):
    print_info(f"Checking configuration file: {config_path}")
    if not os.path.exists(config_path):
        print_info("Config file not found, using defaults + environment.")
    try:
        config = load_config(config_path)
    except json.JSONDecodeError as e:
        print_fail(f"Invalid JSON: {str(e)}")
        return None
    except TypeError as e:
        print_fail(f"Bad config value: {str(e)}")
        return None

    if not config.covid_api_key:
        print_fail("No COVID Act Now API key (set covid_api_key or COVID_API_KEY).")
    else:
        print_pass("API key present.")
    fips = str(config.default_fips or "")
    if fips and not (len(fips) == 5 and fips.isdigit()):
        print_fail(f"default_fips should be a 5-digit county code, got {config.default_fips!r}")
    print_pass(f"Cache directory: {config.cache_dir}")
    return config


def is_fresh(name, age, config: WidgetConfig) -> bool:
    # same boundaries the resolver and pipeline apply
    if name == LOCATION_CACHE:
        return age < config.location_ttl_sec
    return age <= config.data_max_age_sec


def check_cache(config: WidgetConfig, mgr: Manager):
    print_info("Inspecting cache entries...")
    names = mgr.cache.entries()
    if not names:
        print_info("Cache is empty.")
        return

    table = Table(title="Cache", box=box.SIMPLE_HEAD, expand=True)
    table.add_column("Entry")
    table.add_column("Updated")
    table.add_column("Age", justify="right")
    table.add_column("Status", justify="center")

    now = time.time()
    for name in names:
        try:
            data = mgr.cache.read(name) or {}
        except CacheCorrupted as e:
            table.add_row(name, "-", "-", f"[red]{e}[/red]")
            continue
        updated_at = data.get("updatedAt")
        if not isinstance(updated_at, (int, float)):
            table.add_row(name, "-", "-", "[red]no updatedAt[/red]")
            continue
        age = now - updated_at / 1000.0
        status = "[green]fresh[/green]" if is_fresh(name, age, config) else "[yellow]stale[/yellow]"
        table.add_row(
            name,
            datetime.fromtimestamp(updated_at / 1000.0).strftime("%Y-%m-%d %H:%M:%S"),
            f"{int(age // 60)} min",
            status,
        )
    console.print(table)


def run_refresh(mgr: Manager, fips=None):
    console.rule("[bold]Refresh[/bold]")
    with console.status("Fetching county data..."):
        outcome = mgr.refresh(fips)

    if outcome.status != RefreshStatus.OK:
        print_fail(f"{outcome.status.value}: {outcome.message}")
        return False

    data = outcome.bundle
    level = data.overall_risk
    level_text = f"{level.label} ({level.description})" if level else f"unclassified ({data.overall_risk_ordinal!r})"
    source = "cache" if data.from_cache else "live"
    console.print(Panel(
        f"[bold]{data.county}, {data.state}[/bold] ({data.fips})\n"
        f"Risk: {level_text}\n"
        f"Updated {data.last_updated_date} | source: {source}\n{data.url}",
        expand=False,
    ))

    table = Table(title="Metrics", box=box.SIMPLE_HEAD, expand=True)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_column("Trend", justify="center")
    table.add_column("Risk")
    for metric in data.metrics.values():
        table.add_row(
            metric.label,
            metric.formatted(),
            TREND_ARROWS[metric.trend],
            metric.risk_level.label if metric.risk_level is not None else "-",
        )
    console.print(table)
    print_pass("Refresh completed.")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check widget config, cache and upstream connectivity.")
    parser.add_argument("--config", default="widget_config.json")
    parser.add_argument("--fips", help="5-digit county FIPS override")
    parser.add_argument("--offline", action="store_true", help="Skip the live refresh")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    config = check_config(args.config)
    if config is None:
        return 1
    mgr = Manager(config)
    check_cache(config, mgr)
    if args.offline:
        return 0
    return 0 if run_refresh(mgr, args.fips) else 1


if __name__ == "__main__":
    sys.exit(main())

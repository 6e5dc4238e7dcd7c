"""
CLI commands for market relations

Usage:
    correlation-engine relations detect <markets.json> [--min-shared N]
"""

import click
from rich.console import Console
from rich.table import Table
from rich import box

from correlation_engine import CorrelationEngine
from cli.utils import load_json_file

console = Console()


@click.group()
def relations():
    """Commands for market relation discovery"""
    pass


@relations.command('detect')
@click.argument('markets_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--min-shared', type=int, default=None,
              help='Minimum shared keywords for a relation (default from settings)')
@click.pass_context
def detect_relations(ctx, markets_file, min_shared):
    """Propose keyword overlap relations for a list of markets"""
    markets = load_json_file(markets_file, list, 'markets')
    markets = [market for market in markets if isinstance(market, dict)]

    engine = CorrelationEngine(ctx.obj['SETTINGS'])
    try:
        detected = engine.auto_detect_relations(markets, min_shared)
    except ValueError as e:
        raise click.ClickException(str(e))

    if not detected:
        console.print(f"[yellow]No keyword relations found among {len(markets)} market(s)[/yellow]")
        return

    table = Table(title="Detected Market Relations", box=box.ROUNDED)
    table.add_column("Market A", style="cyan")
    table.add_column("Market B", style="cyan")
    table.add_column("Strength", justify="right")
    table.add_column("Category", style="magenta")
    table.add_column("Shared Keywords", no_wrap=False)

    for relation in sorted(detected, key=lambda r: r.strength, reverse=True):
        table.add_row(
            relation.market_id_a,
            relation.market_id_b,
            f"{relation.strength:.2f}",
            relation.category or "-",
            ", ".join(relation.shared_keywords or [])
        )

    console.print(table)
    console.print(f"\n[dim]Detected {len(detected)} relation(s) among {len(markets)} market(s)[/dim]")

"""
CLI command for offline correlation analysis

Usage:
    correlation-engine analyze <trades.json> [--relations FILE] [--bypass-cooldown]
                                             [--as-of MS] [--window-ms MS] [--reasons]

The trades file maps market id -> list of trade objects. The relations file
holds a list of relation objects (market_id_a, market_id_b, relation_type,
strength, ...). When relations are given only related pairs are analyzed.
"""

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from correlation_engine import CorrelationEngine
from detection.utils import TradeNormalizer
from cli.utils import load_json_file, format_severity

console = Console()


def _latest_trade_timestamp(trades_by_market):
    latest = None
    for market_id, trades in trades_by_market.items():
        for trade in TradeNormalizer.normalize_trades(trades, default_market_id=market_id):
            if latest is None or trade.timestamp > latest:
                latest = trade.timestamp
    return latest


@click.command('analyze')
@click.argument('trades_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--relations', 'relations_file', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with market relations to load first')
@click.option('--bypass-cooldown', is_flag=True, help='Record findings even inside the alert cooldown')
@click.option('--as-of', type=int, default=None,
              help='Reference time in epoch ms (default: latest trade in the file)')
@click.option('--window-ms', type=int, default=None, help='Override the analysis window (ms)')
@click.option('--reasons', is_flag=True, help='Print flag reasons for each correlation')
@click.pass_context
def analyze(ctx, trades_file, relations_file, bypass_cooldown, as_of, window_ms, reasons):
    """Analyze every market pair of a trade batch for cross-market correlation"""
    trades_by_market = load_json_file(trades_file, dict, 'trades')
    relation_specs = load_json_file(relations_file, list, 'relations') if relations_file else []

    reference_time = as_of if as_of is not None else _latest_trade_timestamp(trades_by_market)
    if reference_time is None:
        console.print("[yellow]No valid trades found in the trades file[/yellow]")
        return

    engine = CorrelationEngine(ctx.obj['SETTINGS'], clock=lambda: reference_time)

    for spec in relation_specs:
        if not isinstance(spec, dict):
            raise click.ClickException(f"Relation entries must be objects, got {type(spec).__name__}")
        try:
            engine.add_relation(spec)
        except ValueError as e:
            raise click.ClickException(f"Invalid relation {spec}: {e}")

    options = {'bypass_cooldown': bypass_cooldown}
    if window_ms is not None:
        options['time_window_ms'] = window_ms

    batch = engine.analyze_multiple_pairs(trades_by_market, **options)

    if not batch.correlations:
        console.print(
            f"[green]✅ No correlations found across {batch.total_pairs_analyzed} market pair(s)[/green]"
        )
        return

    # Create rich table
    table = Table(title="Cross-Market Correlations", box=box.ROUNDED)
    table.add_column("Market A", style="cyan")
    table.add_column("Market B", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Severity", justify="center")
    table.add_column("Score", justify="right")
    table.add_column("Wallets", justify="right")
    table.add_column("Pairs", justify="right")
    table.add_column("Volume", justify="right", style="green")

    for correlation in sorted(batch.correlations, key=lambda c: c.correlation_score, reverse=True):
        table.add_row(
            correlation.market_id_a,
            correlation.market_id_b,
            str(correlation.correlation_type),
            format_severity(correlation.severity),
            f"{correlation.correlation_score:.1f}",
            str(correlation.wallet_count),
            str(correlation.trade_pair_count),
            f"${correlation.total_volume:,.0f}"
        )

    console.print(table)

    if reasons:
        for correlation in batch.correlations:
            console.print(Panel(
                "\n".join(f"• {reason}" for reason in correlation.flag_reasons),
                title=f"{correlation.market_id_a} <-> {correlation.market_id_b}",
                border_style="red" if str(correlation.severity) in ('HIGH', 'CRITICAL') else "yellow"
            ))

    console.print(
        f"\n[dim]Analyzed {batch.total_pairs_analyzed} market pair(s), "
        f"found {batch.total_correlations_found} correlation(s) in {batch.processing_time_ms:.1f}ms[/dim]"
    )

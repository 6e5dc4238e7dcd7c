"""
Main CLI entry point for the Cross-Market Correlation Engine

Usage:
    correlation-engine analyze trades.json                 # Analyze a trade batch
    correlation-engine relations detect markets.json       # Propose keyword relations
    correlation-engine config show                         # Show effective settings
"""

import click
import logging
from dotenv import load_dotenv

# Import command groups
from cli.commands.analyze_commands import analyze
from cli.commands.relation_commands import relations
from cli.commands.config_commands import config
from config.settings import Settings, load_config


@click.group()
@click.option('--config', 'config_path', default=None, help='Path to JSON configuration file')
@click.option('--verbose', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """
    Cross-Market Correlation Engine - CLI for offline correlation analysis

    Detect wallets trading related prediction markets in a coordinated way.
    """
    # Load environment variables from .env file
    load_dotenv()

    # Setup logging
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        raw_config = load_config(config_path) if config_path else {}
        settings = Settings(raw_config)
    except (RuntimeError, ValueError) as e:
        raise click.ClickException(str(e))

    if verbose:
        settings.log_settings()

    # Store settings in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj['CONFIG_PATH'] = config_path
    ctx.obj['SETTINGS'] = settings


# Register command groups
cli.add_command(analyze)
cli.add_command(relations)
cli.add_command(config)


if __name__ == '__main__':
    cli()

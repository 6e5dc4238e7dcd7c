"""
CLI commands for configuration

Usage:
    correlation-engine config show
"""

import click
from rich.console import Console
from rich.table import Table
from rich import box

console = Console()


@click.group()
def config():
    """Commands for inspecting configuration"""
    pass


@config.command('show')
@click.pass_context
def show_config(ctx):
    """Show effective settings (config file + environment overrides)"""
    settings = ctx.obj['SETTINGS']
    summary = settings.get_config_summary()

    source = ctx.obj.get('CONFIG_PATH') or 'defaults'
    table = Table(title=f"Correlation Engine Settings ({source})", box=box.ROUNDED)
    table.add_column("Section", style="cyan")
    table.add_column("Setting")
    table.add_column("Value", justify="right", style="green")

    for section, values in summary.items():
        for key, value in values.items():
            if isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    table.add_row(section, f"{key}.{sub_key}", str(sub_value))
            else:
                table.add_row(section, key, str(value))

    console.print(table)

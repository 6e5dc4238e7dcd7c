"""
Shared helpers for CLI commands
"""

import json
from pathlib import Path

import click

SEVERITY_STYLES = {
    'CRITICAL': '[red bold]🔴 CRITICAL[/red bold]',
    'HIGH': '[red]🟠 HIGH[/red]',
    'MEDIUM': '[yellow]🟡 MEDIUM[/yellow]',
    'LOW': '[green]🟢 LOW[/green]'
}


def load_json_file(path: str, expected_type: type, description: str):
    """Read a JSON file and check its top-level type; errors become ClickException"""
    file_path = Path(path)
    try:
        with open(file_path) as f:
            data = json.load(f)
    except OSError as e:
        raise click.ClickException(f"Cannot read {description} file {path}: {e}")
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {description} file {path}: {e}")

    if not isinstance(data, expected_type):
        raise click.ClickException(
            f"{description.capitalize()} file must contain a JSON {expected_type.__name__}, "
            f"got {type(data).__name__}"
        )
    return data


def format_severity(severity) -> str:
    return SEVERITY_STYLES.get(str(severity), str(severity))

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
import yaml

from dlt_tasks.core.errors import ConfigurationError, TaskExecutionError
from dlt_tasks.core.logger import setup_logger
from dlt_tasks.core.render import create_environment
from dlt_tasks.tools import get_executor, get_previewer

logger = setup_logger(__name__, include_location=True)

cli_app = typer.Typer(help="Run dlt tasks outside of a workflow.")


def _parse_vars(pairs: Optional[List[str]]) -> Dict[str, str]:
    values = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise typer.BadParameter(f"Expected KEY=VALUE, got: {pair}", param_hint="--var")
        key, value = pair.split("=", 1)
        values[key.strip()] = value
    return values


def load_task_file(path: Path) -> Tuple[str, Dict[str, Any]]:
    """Read a YAML task definition; returns (task kind, task config)."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read task file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Task file {path} must contain a mapping")
    kind = data.pop("tool", None) or data.pop("type", None)
    if not kind:
        raise ConfigurationError(f"Task file {path} must set 'tool' (dlt_cli or dlt_run)")
    return kind, data


def run_task_file(task_file: Path, context: Dict[str, Any]) -> Dict[str, Any]:
    """
    Run the task defined in ``task_file``.

    Raises TaskExecutionError when the task reports an error status.
    """
    kind, task_config = load_task_file(task_file)
    result = get_executor(kind)(task_config, context, create_environment())
    if result.get("status") != "success":
        raise TaskExecutionError(result.get("error", "Task failed"), result)
    return result


@cli_app.command("run")
def run_task(
    task_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML task definition"),
    var: Optional[List[str]] = typer.Option(None, "--var", "-v", help="Template variable KEY=VALUE, repeatable"),
):
    """Run a task and print its result as JSON."""
    variables = _parse_vars(var)
    context = {"inputs": variables, **variables}
    try:
        result = run_task_file(task_file, context)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2)
    except TaskExecutionError as e:
        logger.error(f"Task {task_file} failed: {e}")
        typer.echo(json.dumps(e.result, indent=2, default=str))
        raise typer.Exit(code=1)

    typer.echo(json.dumps(result, indent=2, default=str))


@cli_app.command("preview")
def preview_task(
    task_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML task definition"),
    var: Optional[List[str]] = typer.Option(None, "--var", "-v", help="Template variable KEY=VALUE, repeatable"),
):
    """Print the commands a task would run, one per line."""
    variables = _parse_vars(var)
    context = {"inputs": variables, **variables}
    try:
        kind, task_config = load_task_file(task_file)
        commands = get_previewer(kind)(task_config, context, create_environment())
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2)
    for command in commands:
        typer.echo(command)


def main() -> None:
    cli_app(prog_name="dlt-tasks")


if __name__ == "__main__":
    sys.exit(main())

"""
dlt task implementations:

- dlt_cli: dlt CLI commands
- dlt_run: Python script, file or module using dlt
"""

from typing import Callable

from dlt_tasks.core.errors import ConfigurationError
from dlt_tasks.tools import dlt_cli, dlt_run

from dlt_tasks.tools.dlt_cli import execute_dlt_cli_task, execute_dlt_cli_task_async, preview_dlt_cli_commands
from dlt_tasks.tools.dlt_run import execute_dlt_run_task, execute_dlt_run_task_async, preview_dlt_run_commands

# Tool registry for dynamic lookup
REGISTRY = {
    "dlt_cli": dlt_cli,
    "dlt_run": dlt_run,
}

_EXECUTORS = {
    "dlt_cli": (execute_dlt_cli_task, execute_dlt_cli_task_async, preview_dlt_cli_commands),
    "dlt_run": (execute_dlt_run_task, execute_dlt_run_task_async, preview_dlt_run_commands),
}


def _lookup(kind: str):
    normalized = (kind or "").strip().lower()
    if normalized not in _EXECUTORS:
        raise ConfigurationError(
            f"Unknown task kind '{kind}'. Expected one of: {', '.join(sorted(_EXECUTORS))}"
        )
    return _EXECUTORS[normalized]


def get_executor(kind: str) -> Callable:
    """Synchronous executor for a task kind."""
    return _lookup(kind)[0]


def get_async_executor(kind: str) -> Callable:
    return _lookup(kind)[1]


def get_previewer(kind: str) -> Callable:
    return _lookup(kind)[2]


__all__ = [
    "dlt_cli",
    "dlt_run",
    "execute_dlt_cli_task",
    "execute_dlt_cli_task_async",
    "execute_dlt_run_task",
    "execute_dlt_run_task_async",
    "get_executor",
    "get_async_executor",
    "get_previewer",
    "REGISTRY",
]

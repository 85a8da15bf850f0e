"""
dlt CLI tool: runs dlt commands in non-interactive mode.
"""

from dlt_tasks.tools.dlt_cli.commands import rewrite_command, rewrite_commands
from dlt_tasks.tools.dlt_cli.executor import (
    execute_dlt_cli_task,
    execute_dlt_cli_task_async,
    preview_dlt_cli_commands,
)

__all__ = [
    'execute_dlt_cli_task',
    'execute_dlt_cli_task_async',
    'preview_dlt_cli_commands',
    'rewrite_command',
    'rewrite_commands',
]

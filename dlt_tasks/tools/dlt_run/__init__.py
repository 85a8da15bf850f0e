"""
dlt run tool: runs a Python script, file or module that uses dlt.
"""

from dlt_tasks.tools.dlt_run.executor import (
    execute_dlt_run_task,
    execute_dlt_run_task_async,
    preview_dlt_run_commands,
)
from dlt_tasks.tools.dlt_run.models import FilePath, InlineScript, ModuleName, RunSpec
from dlt_tasks.tools.dlt_run.resolver import resolve_run_commands

__all__ = [
    'execute_dlt_run_task',
    'execute_dlt_run_task_async',
    'preview_dlt_run_commands',
    'resolve_run_commands',
    'RunSpec',
    'InlineScript',
    'FilePath',
    'ModuleName',
]

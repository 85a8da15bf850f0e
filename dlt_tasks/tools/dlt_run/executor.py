"""
dlt_run task executor: run Python code that uses the dlt library.

Example task:

    - name: load_zendesk
      tool: dlt_run
      installExtras: [zendesk, duckdb]
      script: |
        import dlt
        ...
"""

import asyncio
import uuid
from typing import Any, Callable, Dict, List, Optional

from jinja2 import Environment

from dlt_tasks.core.config import get_settings
from dlt_tasks.core.errors import ConfigurationError
from dlt_tasks.core.logger import setup_logger
from dlt_tasks.tools.base import load_task_config, run_commands_task
from dlt_tasks.tools.dlt_run.models import DltRunTaskConfig, InlineScript, RunSpec
from dlt_tasks.tools.dlt_run.resolver import resolve_run_commands

logger = setup_logger(__name__, include_location=True)

TASK_KIND = "dlt_run"


def _stage_inline_script(spec: RunSpec, input_files: Dict[str, str]) -> Dict[str, str]:
    """Input files with the inline script added under its staged path."""
    staged = dict(input_files)
    if isinstance(spec.mode, InlineScript):
        if spec.mode.path in staged:
            raise ConfigurationError(f"Input file '{spec.mode.path}' collides with the inline script")
        staged[spec.mode.path] = spec.mode.text
    return staged


def _commands_for(spec: RunSpec) -> List[str]:
    settings = get_settings()
    return resolve_run_commands(spec, pip=settings.pip_command, python=settings.python_command)


async def execute_dlt_run_task_async(
    task_config: Dict[str, Any],
    context: Dict[str, Any],
    jinja_env: Optional[Environment] = None,
    task_with: Optional[Dict[str, Any]] = None,
    log_event_callback: Optional[Callable] = None,
    runner: Any = None,
) -> Dict[str, Any]:
    """
    Execute a dlt_run task.

    Exactly one of ``script``, ``file`` or ``module`` must be configured;
    ``installExtras`` and ``installPackages`` are installed before the run.

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    task_id = str(uuid.uuid4())
    config = load_task_config(DltRunTaskConfig, task_config, task_with, context, jinja_env)
    spec = config.run_spec()

    commands = _commands_for(spec)
    input_files = _stage_inline_script(spec, config.input_files)
    logger.info(
        f"DLT_RUN: {config.display_name(TASK_KIND)} mode={spec.mode.kind} "
        f"extras={spec.extras} packages={spec.packages}"
    )

    return await run_commands_task(
        TASK_KIND,
        task_id,
        config,
        commands,
        input_files,
        context,
        log_event_callback=log_event_callback,
        runner=runner,
    )


def execute_dlt_run_task(
    task_config: Dict[str, Any],
    context: Dict[str, Any],
    jinja_env: Optional[Environment] = None,
    task_with: Optional[Dict[str, Any]] = None,
    log_event_callback: Optional[Callable] = None,
    runner: Any = None,
) -> Dict[str, Any]:
    """Synchronous entry point."""
    return asyncio.run(
        execute_dlt_run_task_async(
            task_config, context, jinja_env, task_with, log_event_callback, runner
        )
    )


def preview_dlt_run_commands(
    task_config: Dict[str, Any],
    context: Optional[Dict[str, Any]] = None,
    jinja_env: Optional[Environment] = None,
) -> List[str]:
    """Commands a dlt_run task would run, without running them."""
    config = load_task_config(DltRunTaskConfig, task_config, None, context or {}, jinja_env)
    return _commands_for(config.run_spec())

"""
dlt_cli task executor: run dlt CLI commands.

Example task:

    - name: init
      tool: dlt_cli
      commands:
        - dlt init rest_api duckdb
      outputFiles:
        - "*.py"
"""

import asyncio
import uuid
from typing import Any, Callable, Dict, Optional

from jinja2 import Environment

from dlt_tasks.core.logger import setup_logger
from dlt_tasks.tools.base import load_task_config, run_commands_task
from dlt_tasks.tools.dlt_cli.commands import rewrite_commands
from dlt_tasks.tools.dlt_cli.models import DltCliTaskConfig

logger = setup_logger(__name__, include_location=True)

TASK_KIND = "dlt_cli"


async def execute_dlt_cli_task_async(
    task_config: Dict[str, Any],
    context: Dict[str, Any],
    jinja_env: Optional[Environment] = None,
    task_with: Optional[Dict[str, Any]] = None,
    log_event_callback: Optional[Callable] = None,
    runner: Any = None,
) -> Dict[str, Any]:
    """
    Execute a dlt_cli task.

    Args:
        task_config: Task configuration (``commands`` plus generic exec options)
        context: Execution context used to render templates
        jinja_env: Jinja2 environment for templating
        task_with: Parameters merged over task_config
        log_event_callback: Optional callback for task events
        runner: Task runner instance or name; configuration decides when None

    Returns:
        Dict with ``id``, ``status`` and ``data`` (the run output)

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    task_id = str(uuid.uuid4())
    config = load_task_config(DltCliTaskConfig, task_config, task_with, context, jinja_env)

    commands = rewrite_commands(config.commands)
    logger.info(f"DLT_CLI: {config.display_name(TASK_KIND)} prepared {len(commands)} command(s)")
    logger.debug(f"DLT_CLI: commands={commands}")

    return await run_commands_task(
        TASK_KIND,
        task_id,
        config,
        commands,
        config.input_files,
        context,
        log_event_callback=log_event_callback,
        runner=runner,
    )


def execute_dlt_cli_task(
    task_config: Dict[str, Any],
    context: Dict[str, Any],
    jinja_env: Optional[Environment] = None,
    task_with: Optional[Dict[str, Any]] = None,
    log_event_callback: Optional[Callable] = None,
    runner: Any = None,
) -> Dict[str, Any]:
    """Synchronous entry point."""
    return asyncio.run(
        execute_dlt_cli_task_async(
            task_config, context, jinja_env, task_with, log_event_callback, runner
        )
    )


def preview_dlt_cli_commands(
    task_config: Dict[str, Any],
    context: Optional[Dict[str, Any]] = None,
    jinja_env: Optional[Environment] = None,
) -> list:
    """Commands a dlt_cli task would run, without running them."""
    config = load_task_config(DltCliTaskConfig, task_config, None, context or {}, jinja_env)
    return rewrite_commands(config.commands)

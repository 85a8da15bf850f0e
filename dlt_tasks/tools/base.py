"""
Options and execution steps shared by the dlt task kinds.

Both tasks accept the generic exec-task options (before-commands, input and
output files, interpreter, target OS, env, container settings) and hand
their command list to a CommandsWrapper.
"""

import datetime
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from jinja2 import Environment
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dlt_tasks.core.config import get_settings
from dlt_tasks.core.errors import ConfigurationError, classify_exception, classify_exit_code
from dlt_tasks.core.logger import LoggingContext, setup_logger
from dlt_tasks.core.render import render_template
from dlt_tasks.runner import CommandsWrapper, DockerOptions, TargetOS
from dlt_tasks.runner.workdir import check_output_pattern

logger = setup_logger(__name__, include_location=True)

DEFAULT_IMAGE = "ghcr.io/kestra-io/dlt"

ConfigT = TypeVar("ConfigT", bound="ExecTaskConfig")


def _as_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


class ExecTaskConfig(BaseModel):
    """Generic exec-task options, accepted in camelCase or snake_case."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None

    before_commands: List[str] = Field(default_factory=list, alias="beforeCommands")
    before_commands_with_options: bool = Field(default=True, alias="beforeCommandsWithOptions")
    input_files: Dict[str, str] = Field(default_factory=dict, alias="inputFiles")
    output_files: List[str] = Field(default_factory=list, alias="outputFiles")
    interpreter: Optional[List[str]] = None
    target_os: TargetOS = Field(default=TargetOS.AUTO, alias="targetOS")
    env: Dict[str, str] = Field(default_factory=dict)

    container_image: Optional[str] = Field(default=None, alias="containerImage")
    docker: DockerOptions = Field(default_factory=DockerOptions)
    task_runner: Optional[str] = Field(default=None, alias="taskRunner")
    timeout: Optional[float] = Field(default=None, gt=0, description="Seconds before the run is killed")

    @field_validator('before_commands', 'output_files', mode='before')
    @classmethod
    def coerce_list(cls, v):
        return _as_list(v)

    @field_validator('output_files')
    @classmethod
    def confine_output_files(cls, v):
        return [check_output_pattern(pattern) for pattern in v]

    @field_validator('interpreter', mode='before')
    @classmethod
    def coerce_interpreter(cls, v):
        if v is None or v == []:
            return None
        return _as_list(v)

    @field_validator('target_os', mode='before')
    @classmethod
    def uppercase_target_os(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator('env', mode='before')
    @classmethod
    def stringify_env(cls, v):
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(k): "" if val is None else str(val) for k, val in v.items()}
        return v

    @field_validator('task_runner', mode='before')
    @classmethod
    def normalize_task_runner(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    def display_name(self, fallback: str) -> str:
        return self.id or self.name or fallback

    def docker_options(self) -> DockerOptions:
        image = self.container_image or get_settings().default_image or DEFAULT_IMAGE
        return self.docker.with_defaults(image)


def load_task_config(
    model: Type[ConfigT],
    task_config: Dict[str, Any],
    task_with: Optional[Dict[str, Any]],
    context: Dict[str, Any],
    jinja_env: Optional[Environment],
) -> ConfigT:
    """
    Merge ``task_with`` over ``task_config``, render templates and validate.

    Raises ConfigurationError for anything the model rejects.
    """
    raw = dict(task_config or {})
    if task_with:
        raw.update(task_with)
    rendered = render_template(jinja_env, raw, context or {})
    try:
        config = model.model_validate(rendered)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {model.__name__}: {e}") from e
    if config.model_extra:
        logger.warning(f"Ignoring unknown task options: {sorted(config.model_extra)}")
    return config


async def run_commands_task(
    kind: str,
    task_id: str,
    config: ExecTaskConfig,
    commands: List[str],
    input_files: Dict[str, str],
    context: Dict[str, Any],
    log_event_callback: Optional[Callable] = None,
    runner: Any = None,
) -> Dict[str, Any]:
    """
    Run ``commands`` with the task's generic options and shape the result.

    Returns ``{'id', 'status', 'data'}`` plus ``error``/``error_info`` when
    the commands fail. Exit code 0 is success.
    """
    task_name = config.display_name(kind)
    start_time = datetime.datetime.now()
    meta = {"command_count": len(commands), "input_files": sorted(input_files)}

    wrapper = (
        CommandsWrapper()
        .with_interpreter(config.interpreter)
        .with_before_commands(config.before_commands)
        .with_before_commands_with_options(config.before_commands_with_options)
        .with_commands(commands)
        .with_target_os(config.target_os)
        .with_env(config.env)
        .with_input_files(input_files)
        .with_output_files(config.output_files)
        .with_docker_options(config.docker_options())
        .with_task_runner(runner if runner is not None else config.task_runner)
        .with_timeout(config.timeout)
    )

    with LoggingContext(logger, task_id=task_id, task_kind=kind):
        event_id = None
        if log_event_callback:
            event_id = log_event_callback(
                'task_start', task_id, task_name, kind,
                'in_progress', 0, context, None,
                meta, None
            )

        try:
            output = await wrapper.run()
        except ConfigurationError:
            raise
        except Exception as e:
            logger.exception(f"{kind.upper()}: {task_name} could not run - {e}")
            duration = (datetime.datetime.now() - start_time).total_seconds()
            error_info = classify_exception(e, kind)
            if log_event_callback:
                log_event_callback(
                    'task_error', task_id, task_name, kind,
                    'error', duration, context, None,
                    {"error": str(e), **meta}, event_id
                )
            return {
                'id': task_id,
                'status': 'error',
                'error': str(e),
                'error_info': error_info.to_dict(),
                'data': {'commands': commands},
            }

        duration = (datetime.datetime.now() - start_time).total_seconds()
        data = {**output.model_dump(), 'commands': commands}

        if output.succeeded:
            logger.success(f"{kind.upper()}: {task_name} completed in {duration:.2f}s")
            if log_event_callback:
                log_event_callback(
                    'task_complete', task_id, task_name, kind,
                    'success', duration, context, data,
                    meta, event_id
                )
            return {
                'id': task_id,
                'status': 'success',
                'data': data,
            }

        error_info = classify_exit_code(output.exit_code, kind, timed_out=output.timed_out)
        logger.error(f"{kind.upper()}: {task_name} failed - {error_info.message}")
        if log_event_callback:
            log_event_callback(
                'task_error', task_id, task_name, kind,
                'error', duration, context, data,
                {"error": error_info.message, **meta}, event_id
            )
        return {
            'id': task_id,
            'status': 'error',
            'error': error_info.message,
            'error_info': error_info.to_dict(),
            'data': data,
        }

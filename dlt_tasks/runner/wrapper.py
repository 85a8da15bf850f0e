"""
CommandsWrapper: the configuration of one command-list run.

Tasks build a wrapper with the ``with_*`` methods (each returns a copy) and
call ``run()``, which stages files in a fresh working directory, executes the
commands through the selected task runner and collects output files.
"""

import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from dlt_tasks.core.config import get_settings
from dlt_tasks.core.errors import ConfigurationError
from dlt_tasks.core.logger import setup_logger
from dlt_tasks.runner.docker import DockerTaskRunner
from dlt_tasks.runner.models import DockerOptions, ScriptOutput, TargetOS
from dlt_tasks.runner.process import ProcessTaskRunner
from dlt_tasks.runner.script import DEFAULT_INTERPRETER, build_script
from dlt_tasks.runner.workdir import WorkingDirectory

logger = setup_logger(__name__, include_location=True)

TaskRunner = Union[ProcessTaskRunner, DockerTaskRunner]


def get_task_runner(name: str) -> TaskRunner:
    settings = get_settings()
    if name == "process":
        return ProcessTaskRunner()
    if name == "docker":
        return DockerTaskRunner(base_url=settings.docker_host)
    raise ConfigurationError(f"Unknown task runner '{name}'. Expected 'process' or 'docker'")


class CommandsWrapper(BaseModel):

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    commands: List[str] = Field(default_factory=list)
    before_commands: List[str] = Field(default_factory=list)
    before_commands_with_options: bool = True
    interpreter: List[str] = Field(default_factory=lambda: list(DEFAULT_INTERPRETER))
    target_os: Optional[TargetOS] = None
    env: Dict[str, str] = Field(default_factory=dict)
    input_files: Dict[str, str] = Field(default_factory=dict)
    output_files: List[str] = Field(default_factory=list)
    docker: Optional[DockerOptions] = None
    task_runner: Any = None
    timeout: Optional[float] = None
    line_callback: Optional[Callable[[str, bool], None]] = None

    def with_commands(self, commands: List[str]) -> "CommandsWrapper":
        return self.model_copy(update={"commands": list(commands)})

    def with_before_commands(self, before_commands: Optional[List[str]]) -> "CommandsWrapper":
        return self.model_copy(update={"before_commands": list(before_commands or [])})

    def with_before_commands_with_options(self, enabled: bool) -> "CommandsWrapper":
        return self.model_copy(update={"before_commands_with_options": enabled})

    def with_interpreter(self, interpreter: Optional[List[str]]) -> "CommandsWrapper":
        return self.model_copy(update={"interpreter": list(interpreter or DEFAULT_INTERPRETER)})

    def with_target_os(self, target_os: Optional[TargetOS]) -> "CommandsWrapper":
        return self.model_copy(update={"target_os": target_os})

    def with_env(self, env: Optional[Dict[str, str]]) -> "CommandsWrapper":
        return self.model_copy(update={"env": {str(k): str(v) for k, v in (env or {}).items()}})

    def with_input_files(self, input_files: Optional[Dict[str, str]]) -> "CommandsWrapper":
        return self.model_copy(update={"input_files": dict(input_files or {})})

    def with_output_files(self, output_files: Optional[List[str]]) -> "CommandsWrapper":
        return self.model_copy(update={"output_files": list(output_files or [])})

    def with_docker_options(self, docker: Optional[DockerOptions]) -> "CommandsWrapper":
        return self.model_copy(update={"docker": docker})

    def with_task_runner(self, task_runner: Any) -> "CommandsWrapper":
        return self.model_copy(update={"task_runner": task_runner})

    def with_timeout(self, timeout: Optional[float]) -> "CommandsWrapper":
        return self.model_copy(update={"timeout": timeout})

    def with_line_callback(self, callback: Optional[Callable[[str, bool], None]]) -> "CommandsWrapper":
        return self.model_copy(update={"line_callback": callback})

    def resolved_task_runner(self) -> TaskRunner:
        runner = self.task_runner
        if runner is None:
            runner = get_settings().task_runner
        if isinstance(runner, str):
            runner = get_task_runner(runner)
        return runner

    def script(self) -> str:
        return build_script(
            self.before_commands,
            self.commands,
            target_os=self.target_os,
            with_options=self.before_commands_with_options,
        )

    async def run(self) -> ScriptOutput:
        if not self.commands:
            raise ConfigurationError("No commands to run")

        settings = get_settings()
        runner = self.resolved_task_runner()
        script = self.script()
        timeout = self.timeout if self.timeout is not None else settings.default_timeout

        with WorkingDirectory(root=settings.working_dir_root, keep=settings.keep_working_dir) as workdir:
            workdir.write_input_files(self.input_files)
            logger.info(
                f"Running {len(self.commands)} command(s) with {getattr(runner, 'name', type(runner).__name__)} runner"
            )
            output = await runner.run(
                self.interpreter,
                script,
                workdir,
                env=self.env,
                docker=self.docker,
                timeout=timeout,
                line_callback=self.line_callback,
            )
            if self.output_files:
                destination = Path(tempfile.mkdtemp(prefix="dlt_tasks_outputs_", dir=settings.working_dir_root))
                collected = workdir.collect_output_files(self.output_files, destination=destination)
                output = output.model_copy(update={"output_files": collected})
        return output

"""
Commands engine: runs an ordered list of shell commands in a working
directory, locally or inside a container.
"""

from dlt_tasks.runner.docker import DockerTaskRunner
from dlt_tasks.runner.models import DockerOptions, ScriptOutput, TargetOS
from dlt_tasks.runner.process import ProcessTaskRunner
from dlt_tasks.runner.script import DEFAULT_INTERPRETER, build_script
from dlt_tasks.runner.workdir import WorkingDirectory
from dlt_tasks.runner.wrapper import CommandsWrapper, get_task_runner

__all__ = [
    "CommandsWrapper",
    "DockerOptions",
    "DockerTaskRunner",
    "ProcessTaskRunner",
    "ScriptOutput",
    "TargetOS",
    "WorkingDirectory",
    "DEFAULT_INTERPRETER",
    "build_script",
    "get_task_runner",
]

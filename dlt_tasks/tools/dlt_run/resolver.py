"""
Command list for a dlt_run task: installs first, then one Python invocation.
"""

import shlex
from typing import List

from dlt_tasks.tools.dlt_run.models import FilePath, InlineScript, ModuleName, RunSpec

PIP_INSTALL_ARGS = "install --no-cache-dir"


def _shell_word(value: str) -> str:
    # requests stays requests; pandas>=2 becomes 'pandas>=2'
    return shlex.quote(value)


def install_commands(spec: RunSpec, pip: str = "pip") -> List[str]:
    commands = []
    if spec.extras:
        commands.append(f'{pip} {PIP_INSTALL_ARGS} "dlt[{",".join(spec.extras)}]"')
    if spec.packages:
        commands.append(f"{pip} {PIP_INSTALL_ARGS} {' '.join(_shell_word(p) for p in spec.packages)}")
    return commands


def run_command(spec: RunSpec, python: str = "python") -> str:
    mode = spec.mode
    if isinstance(mode, InlineScript):
        return f"{python} {mode.path}"
    if isinstance(mode, FilePath):
        return f"{python} {mode.path}"
    if isinstance(mode, ModuleName):
        return f"{python} -m {mode.name}"
    raise TypeError(f"Unsupported run mode: {type(mode).__name__}")


def resolve_run_commands(spec: RunSpec, pip: str = "pip", python: str = "python") -> List[str]:
    """
    Extras install, packages install (each only when requested), then the
    run command.

    >>> resolve_run_commands(RunSpec.from_options(module="pkg.mod"))
    ['python -m pkg.mod']
    """
    return [*install_commands(spec, pip=pip), run_command(spec, python=python)]

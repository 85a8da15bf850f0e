"""
Local process task runner.

Runs the interpreter with the assembled script inside the working
directory, logging every output line as it arrives.
"""

import asyncio
import os
import signal
from typing import Callable, Dict, List, Optional

from dlt_tasks.core.logger import setup_logger
from dlt_tasks.runner.models import DockerOptions, ScriptOutput
from dlt_tasks.runner.script import OutputCollector
from dlt_tasks.runner.workdir import WorkingDirectory

logger = setup_logger(__name__, include_location=True)

_POSIX = os.name == "posix"


def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill the process and, on POSIX, every child of its session."""
    try:
        if _POSIX:
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        pass


class ProcessTaskRunner:
    """Run commands as a child process of the current interpreter's host."""

    name = "process"

    def build_env(self, env: Dict[str, str], workdir: WorkingDirectory) -> Dict[str, str]:
        merged = dict(os.environ)
        merged.update(env or {})
        merged["WORKING_DIR"] = str(workdir.path)
        return merged

    async def run(
        self,
        interpreter: List[str],
        script: str,
        workdir: WorkingDirectory,
        env: Optional[Dict[str, str]] = None,
        docker: Optional[DockerOptions] = None,
        timeout: Optional[float] = None,
        line_callback: Optional[Callable[[str, bool], None]] = None,
    ) -> ScriptOutput:
        """
        Execute and wait for the process. ``docker`` is ignored.

        ``line_callback(line, is_stderr)`` receives every output line.
        Raises FileNotFoundError when the interpreter is missing.
        """
        argv = [*interpreter, script]
        logger.debug(f"PROCESS RUNNER: starting {argv[0]} in {workdir.path}")

        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(workdir.path),
            env=self.build_env(env or {}, workdir),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=_POSIX,
        )
        collector = OutputCollector(logger, line_callback)

        async def _consume(stream: asyncio.StreamReader, is_stderr: bool) -> None:
            while True:
                raw = await stream.readline()
                if not raw:
                    break
                collector.feed(raw.decode("utf-8", errors="replace").rstrip("\r\n"), is_stderr)

        async def _wait() -> int:
            await asyncio.gather(
                _consume(process.stdout, False),
                _consume(process.stderr, True),
            )
            return await process.wait()

        timed_out = False
        try:
            exit_code = await asyncio.wait_for(_wait(), timeout=timeout)
        except asyncio.TimeoutError:
            timed_out = True
            logger.error(f"PROCESS RUNNER: timed out after {timeout}s, killing process")
            _kill(process)
            exit_code = await process.wait()

        logger.debug(
            f"PROCESS RUNNER: exit_code={exit_code} "
            f"stdout_lines={collector.stdout_lines} stderr_lines={collector.stderr_lines}"
        )
        return collector.result(exit_code, self.name, timed_out=timed_out)

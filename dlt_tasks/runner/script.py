"""
Turning a command list into the single script handed to the interpreter,
and collecting what that script prints.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from dlt_tasks.core.logger import setup_logger
from dlt_tasks.runner.models import ScriptOutput, TargetOS

logger = setup_logger(__name__, include_location=True)

DEFAULT_INTERPRETER = ["/bin/sh", "-c"]

# ::{"outputs": {"rows": 3}}::
_OUTPUTS_LINE = re.compile(r'^::(\{.*\})::$')


def build_script(
    before_commands: Optional[Sequence[str]],
    commands: Sequence[str],
    target_os: Optional[TargetOS] = None,
    with_options: bool = True,
) -> str:
    """
    Join before-commands and commands into one script, in that order.

    With options on a POSIX target the script starts with ``set -e`` so the
    first failing command stops the run.
    """
    lines: List[str] = [*(before_commands or []), *commands]
    if target_os == TargetOS.WINDOWS:
        return "\r\n".join(lines)
    if with_options:
        lines.insert(0, "set -e")
    return "\n".join(lines)


def parse_outputs_line(line: str) -> Optional[Dict[str, Any]]:
    """
    Values a script emits on stdout as ``::{"outputs": {...}}::``.

    Returns None for ordinary log lines or malformed payloads.
    """
    match = _OUTPUTS_LINE.match(line.strip())
    if not match:
        return None
    try:
        payload = json.loads(match.group(1))
    except json.JSONDecodeError:
        logger.warning(f"Ignoring malformed outputs line: {line[:200]}")
        return None
    outputs = payload.get("outputs") if isinstance(payload, dict) else None
    return outputs if isinstance(outputs, dict) else None


class OutputCollector:
    """
    Sink for the output lines of one run.

    Counts stdout and stderr lines, merges ``::{"outputs": ...}::`` values,
    logs every line (stdout at INFO, stderr at WARNING) and forwards it to
    the optional ``line_callback(line, is_stderr)``. Each stream must be fed
    from a single thread.
    """

    def __init__(self, log: logging.Logger, line_callback: Optional[Callable[[str, bool], None]] = None):
        self.log = log
        self.line_callback = line_callback
        self.stdout_lines = 0
        self.stderr_lines = 0
        self.vars: Dict[str, Any] = {}

    def feed(self, line: str, is_stderr: bool) -> None:
        if is_stderr:
            self.stderr_lines += 1
            self.log.warning(line)
        else:
            self.stdout_lines += 1
            parsed = parse_outputs_line(line)
            if parsed is not None:
                self.vars.update(parsed)
            self.log.info(line)
        if self.line_callback:
            self.line_callback(line, is_stderr)

    def feed_chunks(self, chunks: Iterable[bytes], is_stderr: bool) -> None:
        """Split a byte stream of arbitrary chunks into lines and feed them."""
        pending = b""
        for chunk in chunks:
            pending += chunk
            *lines, pending = pending.split(b"\n")
            for raw in lines:
                self.feed(raw.decode("utf-8", errors="replace").rstrip("\r"), is_stderr)
        if pending:
            self.feed(pending.decode("utf-8", errors="replace").rstrip("\r"), is_stderr)

    def result(self, exit_code: int, task_runner: str, timed_out: bool = False) -> ScriptOutput:
        return ScriptOutput(
            exit_code=exit_code,
            stdout_line_count=self.stdout_lines,
            stderr_line_count=self.stderr_lines,
            vars=self.vars,
            task_runner=task_runner,
            timed_out=timed_out,
        )

import os
from pathlib import Path
from typing import Dict, List, Optional

import pytest

import dlt_tasks.core.config as core_config
from dlt_tasks.runner import ScriptOutput


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for key in list(os.environ):
        if key.startswith("DLT_TASKS_"):
            monkeypatch.delenv(key, raising=False)
    core_config._settings = None
    yield
    core_config._settings = None


class RecordingRunner:
    """Task runner double: records what it was asked to run."""

    name = "recording"

    def __init__(self, exit_code: int = 0, timed_out: bool = False, raises: Optional[Exception] = None):
        self.exit_code = exit_code
        self.timed_out = timed_out
        self.raises = raises
        self.calls: List[Dict] = []

    async def run(self, interpreter, script, workdir, env=None, docker=None, timeout=None, line_callback=None):
        files = {
            p.relative_to(workdir.path).as_posix(): p.read_text()
            for p in Path(workdir.path).rglob("*")
            if p.is_file()
        }
        self.calls.append({
            "interpreter": interpreter,
            "script": script,
            "env": env,
            "docker": docker,
            "timeout": timeout,
            "files": files,
        })
        if self.raises is not None:
            raise self.raises
        return ScriptOutput(exit_code=self.exit_code, task_runner=self.name, timed_out=self.timed_out)


@pytest.fixture
def recording_runner():
    return RecordingRunner()


@pytest.fixture
def make_runner():
    return RecordingRunner

import re

import pytest
from jinja2 import Environment

from dlt_tasks.core.errors import ConfigurationError
from dlt_tasks.tools.dlt_run import execute_dlt_run_task, preview_dlt_run_commands

SCRIPT = """import dlt

@dlt.resource
def sample_data():
    return [{"id": 1, "name": "Kestra"}, {"id": 2, "name": "DLT"}]

pipeline = dlt.pipeline(pipeline_name="test", destination="duckdb", dataset_name="test_data")
info = pipeline.run([sample_data()])
print("dlt is amazing!")"""


def test_inline_script_is_staged_and_run(recording_runner):
    out = execute_dlt_run_task({"script": SCRIPT}, {}, Environment(), runner=recording_runner)

    assert out["status"] == "success"
    [command] = out["data"]["commands"]
    match = re.fullmatch(r"python (dlt_script_[0-9a-f]+\.py)", command)
    assert match
    assert recording_runner.calls[0]["files"] == {match.group(1): SCRIPT}


def test_inline_script_is_rendered(recording_runner):
    cfg = {"script": 'print("{{ inputs.greeting }}")'}

    out = execute_dlt_run_task(cfg, {"inputs": {"greeting": "hello"}}, Environment(), runner=recording_runner)

    path = out["data"]["commands"][0].split(" ", 1)[1]
    assert recording_runner.calls[0]["files"][path] == 'print("hello")'


def test_install_then_file(recording_runner):
    cfg = {
        "file": "pipeline.py",
        "installExtras": ["duckdb", "bigquery"],
        "installPackages": ["requests"],
        "inputFiles": {"pipeline.py": "print('loaded')"},
    }

    out = execute_dlt_run_task(cfg, {}, Environment(), runner=recording_runner)

    assert out["data"]["commands"] == [
        'pip install --no-cache-dir "dlt[duckdb,bigquery]"',
        "pip install --no-cache-dir requests",
        "python pipeline.py",
    ]
    assert recording_runner.calls[0]["files"] == {"pipeline.py": "print('loaded')"}


def test_module_with_packages(recording_runner):
    cfg = {"module": "my_pipeline_module", "installPackages": ["requests", "pandas"]}

    out = execute_dlt_run_task(cfg, {}, Environment(), runner=recording_runner)

    assert out["data"]["commands"] == [
        "pip install --no-cache-dir requests pandas",
        "python -m my_pipeline_module",
    ]
    assert recording_runner.calls[0]["script"].endswith("python -m my_pipeline_module")


def test_snake_case_options_are_accepted(recording_runner):
    out = execute_dlt_run_task({"module": "m", "install_extras": ["duckdb"]}, {}, Environment(),
                               runner=recording_runner)

    assert out["data"]["commands"][0] == 'pip install --no-cache-dir "dlt[duckdb]"'


def test_configured_executables(monkeypatch, recording_runner):
    monkeypatch.setenv("DLT_TASKS_PIP", "uv pip")
    monkeypatch.setenv("DLT_TASKS_PYTHON", "python3")

    out = execute_dlt_run_task({"module": "m", "installPackages": ["requests"]}, {}, Environment(),
                               runner=recording_runner)

    assert out["data"]["commands"] == ["uv pip install --no-cache-dir requests", "python3 -m m"]


def test_missing_run_mode_fails_before_running(recording_runner):
    with pytest.raises(ConfigurationError, match="One of 'script', 'file', or 'module' must be provided"):
        execute_dlt_run_task({"installExtras": ["duckdb"]}, {}, Environment(), runner=recording_runner)
    assert recording_runner.calls == []


def test_two_run_modes_fail(recording_runner):
    with pytest.raises(ConfigurationError):
        execute_dlt_run_task({"script": "print(1)", "file": "run.py"}, {}, Environment(), runner=recording_runner)
    assert recording_runner.calls == []


def test_failure_exit_code_is_reported(make_runner):
    runner = make_runner(exit_code=1)

    out = execute_dlt_run_task({"file": "run.py"}, {}, Environment(), runner=runner)

    assert out["status"] == "error"
    assert out["error_info"]["code"] == "EXIT_1"
    assert out["error_info"]["source"] == "dlt_run"


def test_preview():
    assert preview_dlt_run_commands({"module": "pkg.mod", "installExtras": "duckdb"}) == [
        'pip install --no-cache-dir "dlt[duckdb]"',
        "python -m pkg.mod",
    ]

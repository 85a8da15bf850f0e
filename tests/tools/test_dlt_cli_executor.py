import pytest
from jinja2 import Environment

from dlt_tasks.core.errors import ConfigurationError
from dlt_tasks.runner import DockerOptions
from dlt_tasks.tools.dlt_cli import execute_dlt_cli_task, preview_dlt_cli_commands
from dlt_tasks.tools.dlt_cli.commands import REQUIREMENTS_GUARD


def _events():
    evts = []
    def log_event(*args, **kwargs):
        evts.append((args, kwargs))
        return f"evt-{len(evts)}"
    return evts, log_event


def test_commands_are_rewritten_before_running(recording_runner):
    cfg = {
        "id": "init",
        "commands": ["dlt init rest_api duckdb", "echo 'DLT project initialized successfully!'"],
    }

    out = execute_dlt_cli_task(cfg, {}, Environment(), runner=recording_runner)

    assert out["status"] == "success"
    assert out["data"]["commands"] == [
        "dlt --non-interactive init rest_api duckdb",
        REQUIREMENTS_GUARD,
        "echo 'DLT project initialized successfully!'",
    ]
    call = recording_runner.calls[0]
    assert call["script"] == "\n".join(["set -e", *out["data"]["commands"]])
    assert call["interpreter"] == ["/bin/sh", "-c"]


def test_before_commands_run_first(recording_runner):
    cfg = {
        "beforeCommands": ["pip install dlt[duckdb]>=1.16.0"],
        "commands": ["python rest_api.py"],
    }

    execute_dlt_cli_task(cfg, {}, Environment(), runner=recording_runner)

    assert recording_runner.calls[0]["script"] == "set -e\npip install dlt[duckdb]>=1.16.0\npython rest_api.py"


def test_before_commands_without_options(recording_runner):
    cfg = {
        "commands": ["dlt pipeline x trace"],
        "beforeCommands": ["false"],
        "beforeCommandsWithOptions": False,
    }

    execute_dlt_cli_task(cfg, {}, Environment(), runner=recording_runner)

    assert recording_runner.calls[0]["script"] == "false\ndlt --non-interactive pipeline x trace"


def test_default_container_image_and_entry_point(recording_runner):
    execute_dlt_cli_task({"commands": ["dlt --version"]}, {}, Environment(), runner=recording_runner)

    docker = recording_runner.calls[0]["docker"]
    assert docker == DockerOptions(image="ghcr.io/kestra-io/dlt", entry_point=[""])


def test_container_image_option_and_explicit_docker_image(recording_runner, make_runner):
    execute_dlt_cli_task(
        {"commands": ["dlt --version"], "containerImage": "python:3.12-slim"},
        {}, Environment(), runner=recording_runner,
    )
    assert recording_runner.calls[0]["docker"].image == "python:3.12-slim"

    other = make_runner()
    execute_dlt_cli_task(
        {
            "commands": ["dlt --version"],
            "containerImage": "python:3.12-slim",
            "docker": {"image": "custom/dlt:1", "entryPoint": ["/bin/bash"]},
        },
        {}, Environment(), runner=other,
    )
    assert other.calls[0]["docker"].image == "custom/dlt:1"
    assert other.calls[0]["docker"].entry_point == ["/bin/bash"]


def test_templates_are_rendered_from_context(recording_runner):
    cfg = {
        "commands": ["dlt pipeline {{ inputs.pipeline_name }} trace"],
        "env": {"DATASET": "{{ inputs.dataset_name }}"},
        "outputFiles": "{{ inputs.pipeline_name }}.duckdb",
    }
    ctx = {"inputs": {"pipeline_name": "rest_api_pokemon", "dataset_name": "pokemon"}}

    out = execute_dlt_cli_task(cfg, ctx, Environment(), runner=recording_runner)

    assert out["data"]["commands"] == ["dlt --non-interactive pipeline rest_api_pokemon trace"]
    assert recording_runner.calls[0]["env"] == {"DATASET": "pokemon"}


def test_input_files_are_staged(recording_runner):
    cfg = {
        "commands": ["python pipeline.py"],
        "inputFiles": {"pipeline.py": "print('I love dlt!')"},
    }

    execute_dlt_cli_task(cfg, {}, Environment(), runner=recording_runner)

    assert recording_runner.calls[0]["files"] == {"pipeline.py": "print('I love dlt!')"}


def test_non_zero_exit_is_an_error_result(make_runner):
    runner = make_runner(exit_code=2)
    evts, log_event = _events()

    out = execute_dlt_cli_task({"commands": ["dlt pipeline nope info"]}, {}, Environment(),
                               log_event_callback=log_event, runner=runner)

    assert out["status"] == "error"
    assert "exit code 2" in out["error"]
    assert out["error_info"]["kind"] == "exit_code"
    assert out["error_info"]["retryable"] is False
    assert out["data"]["exit_code"] == 2
    assert [e[0][0] for e in evts] == ["task_start", "task_error"]


def test_timeout_is_retryable(make_runner):
    runner = make_runner(exit_code=-9, timed_out=True)

    out = execute_dlt_cli_task({"commands": ["sleep 100"], "timeout": 1}, {}, Environment(), runner=runner)

    assert out["status"] == "error"
    assert out["error_info"]["kind"] == "timeout"
    assert out["error_info"]["retryable"] is True
    assert runner.calls[0]["timeout"] == 1


def test_runner_start_failure_is_an_error_result(make_runner):
    runner = make_runner(raises=FileNotFoundError("docker"))

    out = execute_dlt_cli_task({"commands": ["dlt --version"]}, {}, Environment(), runner=runner)

    assert out["status"] == "error"
    assert out["error_info"]["kind"] == "runtime"
    assert out["error_info"]["exception_type"] == "FileNotFoundError"


def test_success_events(recording_runner):
    evts, log_event = _events()

    out = execute_dlt_cli_task({"id": "v", "commands": ["dlt --version"]}, {"execution_id": "e1"},
                               Environment(), log_event_callback=log_event, runner=recording_runner)

    assert [e[0][0] for e in evts] == ["task_start", "task_complete"]
    start, complete = evts[0][0], evts[1][0]
    assert start[1] == out["id"]
    assert start[2] == "v"
    assert start[3] == "dlt_cli"
    assert complete[-1] == "evt-1"


def test_task_with_overrides_config(recording_runner):
    out = execute_dlt_cli_task({"commands": ["dlt --version"]}, {}, Environment(),
                               task_with={"commands": ["dlt pipeline p info"]}, runner=recording_runner)

    assert out["data"]["commands"] == ["dlt --non-interactive pipeline p info"]


@pytest.mark.parametrize("cfg", [
    {},
    {"commands": []},
    {"commands": ["   "]},
    {"commands": ["dlt --version"], "targetOS": "PLAN9"},
    {"commands": ["echo hi > out.txt"], "outputFiles": ["../*"]},
    {"commands": ["dlt --version"], "outputFiles": "/tmp/*.log"},
])
def test_invalid_configuration_raises(cfg, recording_runner):
    with pytest.raises(ConfigurationError):
        execute_dlt_cli_task(cfg, {}, Environment(), runner=recording_runner)
    assert recording_runner.calls == []


def test_preview_does_not_run_anything():
    assert preview_dlt_cli_commands({"commands": ["dlt init chess duckdb"]}) == [
        "dlt --non-interactive init chess duckdb",
        REQUIREMENTS_GUARD,
    ]

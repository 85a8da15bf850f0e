import os

import pytest
from pydantic import ValidationError

import dlt_tasks.core.config as core_config
from dlt_tasks.core.config import Settings, get_settings


def test_defaults():
    settings = get_settings()

    assert settings.default_image == "ghcr.io/kestra-io/dlt"
    assert settings.task_runner == "process"
    assert settings.pip_command == "pip"
    assert settings.python_command == "python"
    assert settings.default_timeout is None
    assert settings.keep_working_dir is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DLT_TASKS_TASK_RUNNER", " Docker ")
    monkeypatch.setenv("DLT_TASKS_TIMEOUT", "90")
    monkeypatch.setenv("DLT_TASKS_KEEP_WORKDIR", "true")
    monkeypatch.setenv("DLT_TASKS_WORKDIR_ROOT", "")

    settings = get_settings(reload=True)

    assert settings.task_runner == "docker"
    assert settings.default_timeout == 90
    assert settings.keep_working_dir is True
    assert settings.working_dir_root is None


def test_settings_are_cached():
    assert get_settings() is get_settings()


@pytest.mark.parametrize("env", [
    {"DLT_TASKS_TASK_RUNNER": "kubernetes"},
    {"DLT_TASKS_TIMEOUT": "0"},
])
def test_invalid_values(env):
    with pytest.raises(ValidationError):
        Settings(**env)


def test_env_file_does_not_override_existing(monkeypatch, tmp_path):
    env_file = tmp_path / "dlt.env"
    env_file.write_text(
        "# local settings\n"
        "export DLT_TASKS_PIP='uv pip'\n"
        "DLT_TASKS_PYTHON=\"python3\"\n"
        "not a pair\n"
    )
    monkeypatch.setenv("DLT_TASKS_ENV_FILE", str(env_file))
    monkeypatch.setenv("DLT_TASKS_PYTHON", "python3.12")
    monkeypatch.delenv("DLT_TASKS_PIP", raising=False)
    monkeypatch.setattr(core_config, "_ENV_LOADED", False)

    settings = get_settings(reload=True)
    os.environ.pop("DLT_TASKS_PIP", None)

    assert settings.pip_command == "uv pip"
    assert settings.python_command == "python3.12"

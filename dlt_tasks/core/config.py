import os
import sys
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


_ENV_LOADED = False

def _load_env_file(path: str, allow_override: bool = False) -> None:
    """
    Minimal .env loader: loads KEY=VALUE pairs into os.environ.
    - Ignores empty lines and lines starting with '#'
    - Supports values wrapped in single or double quotes
    - By default, does not override existing environment variables
    """
    try:
        if not path or not os.path.exists(path):
            return
        with open(path, "r", encoding="utf-8") as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[len("export "):].strip()
                if "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()
                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]
                if allow_override or key not in os.environ:
                    os.environ[key] = value
    except FileNotFoundError:
        pass
    except PermissionError as e:
        print(f"FATAL: Permission denied reading environment file {path}: {e}", file=sys.stderr)
        raise


def load_env_if_present(force_reload: bool = False) -> None:
    """
    Load environment variables from .env files in order of precedence:
    1. .env.local (highest priority, not committed)
    2. .env.{ENVIRONMENT} (environment-specific)
    3. .env.common (common variables)
    4. .env (default)
    DLT_TASKS_ENV_FILE replaces the whole list with a single file.
    """
    global _ENV_LOADED
    if _ENV_LOADED and not force_reload:
        return

    custom = os.environ.get("DLT_TASKS_ENV_FILE")
    if custom:
        _load_env_file(custom, allow_override=False)
    else:
        env_files = ['.env.local', '.env.common', '.env']
        environment = os.environ.get('ENVIRONMENT', '').strip()
        if environment:
            env_files.insert(1, f'.env.{environment}')

        for env_file in env_files:
            _load_env_file(env_file, allow_override=False)

    _ENV_LOADED = True


class Settings(BaseModel):
    """
    dlt-tasks settings from environment variables.
    """
    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    app_name: str = "dlt-tasks"

    # Image used by the docker runner when a task sets none
    default_image: str = Field(default="ghcr.io/kestra-io/dlt", alias="DLT_TASKS_DEFAULT_IMAGE")
    task_runner: str = Field(default="process", alias="DLT_TASKS_TASK_RUNNER")  # "process" | "docker"

    pip_command: str = Field(default="pip", alias="DLT_TASKS_PIP")
    python_command: str = Field(default="python", alias="DLT_TASKS_PYTHON")
    # Docker daemon URL; DOCKER_HOST and friends are used when unset
    docker_host: Optional[str] = Field(default=None, alias="DLT_TASKS_DOCKER_HOST")

    working_dir_root: Optional[str] = Field(default=None, alias="DLT_TASKS_WORKDIR_ROOT")
    keep_working_dir: bool = Field(default=False, alias="DLT_TASKS_KEEP_WORKDIR")
    default_timeout: Optional[float] = Field(default=None, alias="DLT_TASKS_TIMEOUT")

    log_json: bool = Field(default=False, alias="DLT_TASKS_LOG_JSON")

    @field_validator('task_runner', mode='before')
    def validate_task_runner(cls, v):
        value = str(v).strip().lower()
        if value not in ("process", "docker"):
            raise ValueError(f"DLT_TASKS_TASK_RUNNER must be 'process' or 'docker', got: {v}")
        return value

    @field_validator('working_dir_root', 'docker_host', 'default_timeout', mode='before')
    def empty_as_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('default_timeout')
    def validate_timeout(cls, v):
        if v is not None and v <= 0:
            raise ValueError("DLT_TASKS_TIMEOUT must be a positive number of seconds")
        return v

    @classmethod
    def from_environ(cls) -> "Settings":
        aliases = {field.alias for field in cls.model_fields.values() if field.alias}
        return cls(**{key: value for key, value in os.environ.items() if key in aliases})


_settings: Optional[Settings] = None


def get_settings(reload: bool = False) -> Settings:
    """
    Return the process-wide Settings, building them on first use.
    """
    global _settings
    if _settings is None or reload:
        load_env_if_present(force_reload=reload)
        _settings = Settings.from_environ()
    return _settings

"""
Pydantic models shared by the commands engine.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class TargetOS(str, Enum):
    LINUX = "LINUX"
    WINDOWS = "WINDOWS"
    AUTO = "AUTO"


class DockerOptions(BaseModel):
    """
    Container settings for the docker task runner.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    image: Optional[str] = Field(default=None, description="Container image; task default when unset")
    entry_point: Optional[List[str]] = Field(default=None, alias="entryPoint")
    pull_policy: Optional[str] = Field(
        default=None,
        alias="pullPolicy",
        description="Image pull policy: always, missing (default) or never"
    )
    user: Optional[str] = None
    network_mode: Optional[str] = Field(default=None, alias="networkMode")
    volumes: List[str] = Field(default_factory=list, description="host:container[:mode] bind mounts")
    extra_options: Dict[str, Any] = Field(
        default_factory=dict,
        alias="extraOptions",
        description="Extra keyword arguments for containers.create, e.g. mem_limit"
    )

    @field_validator('pull_policy')
    @classmethod
    def validate_pull_policy(cls, v):
        if v is not None and v.lower() not in ("always", "missing", "never"):
            raise ValueError(f"pullPolicy must be one of always, missing, never; got: {v}")
        return v.lower() if v else v

    def with_defaults(self, image: Optional[str]) -> "DockerOptions":
        """Fill the image when missing and reset the entry point so commands run as given."""
        update = {}
        if self.image is None:
            update["image"] = image
        if not self.entry_point:
            update["entry_point"] = [""]
        return self.model_copy(update=update)


class ScriptOutput(BaseModel):
    """Result of running a command list."""

    exit_code: int
    stdout_line_count: int = 0
    stderr_line_count: int = 0
    vars: Dict[str, object] = Field(default_factory=dict)
    output_files: Dict[str, str] = Field(default_factory=dict)
    task_runner: str = "process"
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

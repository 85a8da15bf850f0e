"""
Pydantic models for dlt_run task configuration.

The run mode is a tagged union: an inline script, a file or a module.
Exactly one is present in a RunSpec.
"""

import uuid
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from dlt_tasks.core.errors import ConfigurationError
from dlt_tasks.tools.base import ExecTaskConfig


def _script_file_name() -> str:
    return f"dlt_script_{uuid.uuid4().hex}.py"


class InlineScript(BaseModel):
    kind: Literal["script"] = "script"
    text: str
    path: str = Field(
        default_factory=_script_file_name,
        description="Working-directory-relative file the script is staged to"
    )


class FilePath(BaseModel):
    kind: Literal["file"] = "file"
    path: str


class ModuleName(BaseModel):
    kind: Literal["module"] = "module"
    name: str


RunMode = Annotated[Union[InlineScript, FilePath, ModuleName], Field(discriminator="kind")]


def _clean_list(values: Optional[List[str]]) -> List[str]:
    return [v.strip() for v in (values or []) if v and v.strip()]


class RunSpec(BaseModel):
    mode: RunMode
    extras: List[str] = Field(default_factory=list, description="dlt extras, installed as dlt[a,b]")
    packages: List[str] = Field(default_factory=list, description="Additional pip packages")

    @field_validator('extras', 'packages', mode='before')
    @classmethod
    def drop_blank(cls, v):
        return _clean_list(v)

    @classmethod
    def from_options(
        cls,
        script: Optional[str] = None,
        file: Optional[str] = None,
        module: Optional[str] = None,
        extras: Optional[List[str]] = None,
        packages: Optional[List[str]] = None,
    ) -> "RunSpec":
        """
        Build a RunSpec from the three optional run-mode options.

        Raises ConfigurationError unless exactly one of script, file or
        module is set.
        """
        given = [
            name for name, value in (("script", script), ("file", file), ("module", module))
            if value is not None
        ]
        if not given:
            raise ConfigurationError("One of 'script', 'file', or 'module' must be provided.")
        if len(given) > 1:
            raise ConfigurationError(
                f"Only one of 'script', 'file', or 'module' may be provided, got: {', '.join(given)}"
            )

        if script is not None:
            mode = InlineScript(text=script)
        elif file is not None:
            if not file.strip():
                raise ConfigurationError("'file' must not be empty")
            mode = FilePath(path=file.strip())
        else:
            if not module.strip():
                raise ConfigurationError("'module' must not be empty")
            mode = ModuleName(name=module.strip())
        return cls(mode=mode, extras=extras, packages=packages)


class DltRunTaskConfig(ExecTaskConfig):
    """
    Python code using the dlt library, given inline, as a file or as a module.
    """

    script: Optional[str] = Field(default=None, description="Inline Python script")
    file: Optional[str] = Field(default=None, description="Python file relative to the working directory")
    module: Optional[str] = Field(default=None, description="Python module to run with -m")
    install_extras: List[str] = Field(
        default_factory=list,
        alias="installExtras",
        description="dlt extras to install (duckdb, bigquery, postgres, ...)"
    )
    install_packages: List[str] = Field(
        default_factory=list,
        alias="installPackages",
        description="Additional pip packages to install"
    )

    @field_validator('install_extras', 'install_packages', mode='before')
    @classmethod
    def coerce_install_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    def run_spec(self) -> RunSpec:
        return RunSpec.from_options(
            script=self.script,
            file=self.file,
            module=self.module,
            extras=self.install_extras,
            packages=self.install_packages,
        )

"""
Pydantic model for dlt_cli task configuration.
"""

from typing import List
from pydantic import Field, field_validator

from dlt_tasks.tools.base import ExecTaskConfig


class DltCliTaskConfig(ExecTaskConfig):
    """
    dlt CLI commands to run, e.g. ``dlt init``, ``dlt pipeline``, ``dlt deploy``.
    """

    commands: List[str] = Field(..., description="Commands to run, in order")

    @field_validator('commands', mode='before')
    @classmethod
    def coerce_commands(cls, v):
        if isinstance(v, str):
            return [v]
        return v

    @field_validator('commands')
    @classmethod
    def validate_commands(cls, v):
        if not v or not any(c.strip() for c in v):
            raise ValueError("commands must contain at least one command")
        return v

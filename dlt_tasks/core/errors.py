"""
Error types and classification for dlt tasks.

Configuration problems raise ``ConfigurationError`` before anything runs.
Failures reported by the commands engine are returned in the task result
as an ``ErrorInfo`` so callers can route on ``kind`` / ``retryable``
without matching on message text.
"""

from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ConfigurationError(ValueError):
    """Raised when a task configuration is invalid."""


class TaskExecutionError(RuntimeError):
    """Raised when a task execution reports an error status."""

    def __init__(self, message: str, result: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.result = result or {}


class TaskRunnerError(RuntimeError):
    """Raised when a task runner cannot start or supervise a run."""


class ErrorKind(str, Enum):
    """Error categories for engine failures."""

    EXIT_CODE = "exit_code"         # Commands finished with a non-zero exit code
    TIMEOUT = "timeout"             # Run exceeded its timeout and was killed
    RUNTIME = "runtime"             # Engine could not start the process
    UNKNOWN = "unknown"


class ErrorInfo(BaseModel):
    """
    Standardized error object attached to error results.
    """

    kind: ErrorKind = Field(
        default=ErrorKind.UNKNOWN,
        description="Error category"
    )
    retryable: bool = Field(
        default=False,
        description="Whether this error is worth retrying"
    )
    code: str = Field(
        default="UNKNOWN",
        description="Error code (EXIT_1, TIMEOUT, ...)"
    )
    message: str = Field(
        default="Unknown error",
        description="Human-readable error message"
    )
    source: str = Field(
        default="unknown",
        description="Task kind that produced this error"
    )
    exit_code: Optional[int] = Field(
        None, description="Process exit code, when the process ran"
    )
    exception_type: Optional[str] = Field(
        None, description="Python exception class name"
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for result payloads, dropping unset optional fields."""
        d = {
            "kind": self.kind.value,
            "retryable": self.retryable,
            "code": self.code,
            "message": self.message,
            "source": self.source,
        }
        if self.exit_code is not None:
            d["exit_code"] = self.exit_code
        if self.exception_type is not None:
            d["exception_type"] = self.exception_type
        return d


def classify_exit_code(exit_code: int, source: str, timed_out: bool = False) -> ErrorInfo:
    """Classify a finished (or killed) run into ErrorInfo."""
    if timed_out:
        return ErrorInfo(
            kind=ErrorKind.TIMEOUT,
            retryable=True,
            code="TIMEOUT",
            message="Command execution timed out",
            source=source,
            exit_code=exit_code,
        )
    return ErrorInfo(
        kind=ErrorKind.EXIT_CODE,
        retryable=False,
        code=f"EXIT_{exit_code}",
        message=f"Command failed with exit code {exit_code}",
        source=source,
        exit_code=exit_code,
    )


def classify_exception(error: Exception, source: str) -> ErrorInfo:
    """Classify an exception raised while starting or supervising a run."""
    if isinstance(error, (FileNotFoundError, PermissionError, TaskRunnerError)):
        kind = ErrorKind.RUNTIME
        code = "RUNTIME_START"
    else:
        kind = ErrorKind.UNKNOWN
        code = "UNKNOWN"
    return ErrorInfo(
        kind=kind,
        retryable=False,
        code=code,
        message=str(error),
        source=source,
        exception_type=type(error).__name__,
    )

"""
Temporary working directory for one task run.

Holds the staged input files, the scripts written by the tasks and the
files the commands produce.
"""

import shutil
import tempfile
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Dict, Iterable, Optional

from dlt_tasks.core.errors import ConfigurationError
from dlt_tasks.core.logger import setup_logger

logger = setup_logger(__name__, include_location=True)


def check_output_pattern(pattern: str) -> str:
    """Reject glob patterns that point outside the working directory."""
    if PurePosixPath(pattern).is_absolute() or PureWindowsPath(pattern).is_absolute():
        raise ConfigurationError(f"Output file pattern '{pattern}' must be relative to the working directory")
    if ".." in PurePosixPath(pattern.replace("\\", "/")).parts:
        raise ConfigurationError(f"Output file pattern '{pattern}' escapes the working directory")
    return pattern


class WorkingDirectory:

    def __init__(self, root: Optional[str] = None, keep: bool = False):
        self.path = Path(tempfile.mkdtemp(prefix="dlt_tasks_", dir=root)).resolve()
        self.keep = keep
        logger.debug(f"Created working directory {self.path}")

    def __enter__(self) -> "WorkingDirectory":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def resolve(self, relative: str) -> Path:
        """Absolute path of ``relative`` inside the working directory."""
        target = (self.path / relative).resolve()
        if target != self.path and self.path not in target.parents:
            raise ConfigurationError(f"Path '{relative}' escapes the working directory")
        return target

    def write_input_files(self, files: Dict[str, str]) -> None:
        for name, content in (files or {}).items():
            target = self.resolve(name)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content if content is not None else "", encoding="utf-8")
            logger.debug(f"Staged input file {name} ({len(content or '')} chars)")

    def collect_output_files(self, patterns: Iterable[str], destination: Optional[Path] = None) -> Dict[str, str]:
        """
        Match glob patterns against the working directory.

        Returns a mapping of working-directory-relative names to absolute
        paths. With ``destination`` the matches are copied there first so
        they outlive the working directory. Patterns matching nothing are
        logged and skipped, as are matches resolving outside the working
        directory (through symlinks).
        """
        collected: Dict[str, str] = {}
        for pattern in patterns or []:
            check_output_pattern(pattern)
            matches = [p for p in sorted(self.path.glob(pattern)) if p.is_file()]
            if not matches:
                logger.warning(f"Output file pattern '{pattern}' matched no file")
            for match in matches:
                if self.path not in match.resolve().parents:
                    logger.warning(f"Skipping output file {match}: it resolves outside the working directory")
                    continue
                name = match.relative_to(self.path).as_posix()
                if destination is not None:
                    copied = Path(destination) / name
                    copied.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(match, copied)
                    match = copied
                collected[name] = str(match)
        return collected

    def cleanup(self) -> None:
        if self.keep:
            logger.info(f"Keeping working directory {self.path}")
            return
        shutil.rmtree(self.path, ignore_errors=True)

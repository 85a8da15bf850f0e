"""dlt-tasks command line."""

from dlt_tasks.cli.ctl import cli_app, main

__all__ = ["cli_app", "main"]

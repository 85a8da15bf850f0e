"""
dlt-tasks: workflow tasks for running dlt (data load tool).

- dlt_cli: run dlt CLI commands, forced into non-interactive mode
- dlt_run: run an inline script, a file or a module that uses the dlt library
"""

__version__ = "0.1.0"

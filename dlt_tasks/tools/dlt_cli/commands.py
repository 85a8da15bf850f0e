"""
Rewriting of user-supplied dlt CLI commands.

Commands run without a terminal, so every ``dlt`` invocation is forced into
non-interactive mode, and ``dlt init`` is followed by an install of the
``requirements.txt`` it scaffolds.
"""

from typing import Iterable, List

NON_INTERACTIVE_FLAG = "--non-interactive"
REQUIREMENTS_GUARD = "if [ -f requirements.txt ]; then pip install -r requirements.txt; fi"


def rewrite_command(command: str) -> List[str]:
    """
    Rewrite one command; returns the command followed by any guard it needs.

    >>> rewrite_command("dlt init chess duckdb")
    ['dlt --non-interactive init chess duckdb', 'if [ -f requirements.txt ]; then pip install -r requirements.txt; fi']
    """
    command = command.strip()

    if command.startswith("dlt ") and NON_INTERACTIVE_FLAG not in command:
        command = f"dlt {NON_INTERACTIVE_FLAG}{command[len('dlt'):]}"

    out = [command]
    if command.split()[:3] == ["dlt", NON_INTERACTIVE_FLAG, "init"]:
        out.append(REQUIREMENTS_GUARD)
    return out


def rewrite_commands(commands: Iterable[str]) -> List[str]:
    """Apply rewrite_command to every command, keeping order."""
    return [rewritten for command in commands for rewritten in rewrite_command(command)]

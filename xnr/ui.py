"""Central UI handler for xnr.

Single source of truth for Rich console styling. Import this instead of
instantiating Console() in every command file.

Usage:
    from xnr.ui import console, print_error, print_success

    print_success("Built .jbuild/index.mjs")
    print_error("Bad import target: could not resolve './missing'")
"""

import sys

from rich.console import Console
from rich.theme import Theme

XNR_THEME = Theme({
    "info": "bold cyan",
    "warning": "bold yellow",
    "error": "bold red",
    "success": "bold green",
    "path": "bold cyan",
    "dim": "dim white",
})

# Messages go to stderr so stdout stays free for the built program's output
console = Console(
    theme=XNR_THEME,
    stderr=True,
    force_terminal=sys.stderr.isatty(),
)


def print_error(msg: str) -> None:
    """Print an error message in red."""
    console.print(f"[error]ERROR:[/error] {msg}", highlight=False)


def print_success(msg: str) -> None:
    """Print a success message in green."""
    console.print(f"[success]OK:[/success] {msg}", highlight=False)

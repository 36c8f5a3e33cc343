"""Build an entry file into a transient directory and run it with node."""

import sys

import click

from xnr.orchestrator import run as run_tree
from xnr.utils.error_handler import handle_exceptions


@click.command(
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("entry", type=click.Path(exists=True, dir_okay=False))
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--out",
    "-o",
    "output_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Transient output directory (default: .jrun, or paths.run_dir in .xnr.json)",
)
@handle_exceptions
def run(entry: str, args: tuple[str, ...], output_dir: str | None):
    """Build ENTRY, run it with node and remove the build afterwards.

    Arguments after ENTRY are passed to the program unchanged. The exit code
    is the program's exit code.

    \b
    Examples:
      xnr run script.ts
      xnr run --out /tmp/x server.tsx --port 8080
    """
    sys.exit(run_tree(entry, list(args), output_dir))

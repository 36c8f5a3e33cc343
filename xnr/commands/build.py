"""Build an entry file into a directory of node-friendly files."""

import sys

import click

from xnr.orchestrator import build as build_tree
from xnr.ui import print_error, print_success
from xnr.utils.error_handler import handle_exceptions
from xnr.utils.exit_codes import ExitCodes


@click.command()
@click.argument("entry", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--out",
    "-o",
    "output_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Output directory (default: .jbuild, or paths.build_dir in .xnr.json)",
)
@handle_exceptions
def build(entry: str, output_dir: str | None):
    """Convert ENTRY and everything it imports into runnable .mjs/.cjs files.

    The output directory is cleared first. The path of the emitted entry is
    printed on stdout.

    \b
    Examples:
      xnr build src/index.ts
      xnr build src/cli.tsx --out dist
    """
    emitted = build_tree(entry, output_dir)
    if emitted is None:
        print_error(f"Nothing was emitted for {entry}")
        sys.exit(ExitCodes.BUILD_FAILED)

    print_success(f"Built {emitted}")
    click.echo(str(emitted))

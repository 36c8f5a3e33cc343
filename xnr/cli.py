"""xnr CLI - main entry point and command registration."""

import click

from xnr import __version__
from xnr.commands import build, run


@click.group()
@click.version_option(version=__version__, prog_name="xnr")
@click.help_option("-h", "--help")
def cli():
    """xnr - run or build JavaScript, TypeScript and JSX files with node, no setup.

    \b
    COMMANDS:
      build   Convert an entry file and its dependencies into .mjs/.cjs files
      run     Build into a transient directory and run the result with node

    \b
    ENVIRONMENT:
      XNR_LOG_LEVEL   DEBUG, INFO, WARNING (default) or ERROR
      XNR_LOG_JSON    1 for NDJSON logs on stderr
      XNR_LOG_FILE    Also append NDJSON logs to this file
    """


cli.add_command(build)
cli.add_command(run)


def main():
    """Main entry point for console script."""
    cli()


if __name__ == "__main__":
    main()

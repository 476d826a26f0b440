"""testsets CLI entry point."""

import logging

import click

from testsets.config import SuiteConfig


@click.group()
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase log output (-v for info, -vv for debug).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: int):
    """Select regression tests with test-set expressions."""
    try:
        config = SuiteConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    if verbose >= 2:
        level = "DEBUG"
    elif verbose == 1:
        level = "INFO"
    else:
        level = config.log_level
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ctx.obj = config


# Register subcommands
from testsets.cli.functions_cmd import functions  # noqa: E402
from testsets.cli.list_cmd import list_cmd  # noqa: E402

cli.add_command(functions)
cli.add_command(list_cmd)

"""List command: print the tests a filter selects."""

import json
from pathlib import Path

import click

from testsets.cli.diagnostics import render_error
from testsets.config import SuiteConfig
from testsets.core.types import TestKind, TestUniverse
from testsets.expressions.errors import ParseError, TestSetError
from testsets.suite.filter import MissingTestsError, TestFilter
from testsets.suite.loader import ManifestError, load_manifest

# Longest id column before the kind column stops being aligned
MAX_PADDING = 50

KIND_COLOURS = {
    TestKind.PERSISTENT: "green",
    TestKind.EPHEMERAL: "yellow",
    TestKind.COMPILE_ONLY: "yellow",
}


@click.command("list")
@click.option(
    "-e",
    "--expression",
    default=None,
    metavar="EXPR",
    help="Test-set expression selecting the tests [default: all()].",
)
@click.option(
    "--skip/--no-skip",
    default=None,
    help="Remove skipped tests, same as wrapping EXPR in '(EXPR) ~ skip()' [default: skip].",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON to stdout.")
@click.option(
    "--manifest",
    "manifest_path",
    default=None,
    type=click.Path(path_type=Path),
    help="Suite manifest to read tests from [default: tests.yaml].",
)
@click.argument("tests", nargs=-1)
@click.pass_obj
def list_cmd(
    config: SuiteConfig | None,
    expression: str | None,
    skip: bool | None,
    as_json: bool,
    manifest_path: Path | None,
    tests: tuple[str, ...],
):
    """List the tests selected by EXPR, or exactly the TESTS given.

    Explicit TESTS conflict with --expression and imply --no-skip.
    """
    if config is None:
        config = SuiteConfig.from_env()

    if tests and expression is not None:
        raise click.UsageError("TESTS cannot be combined with --expression")

    try:
        universe = load_manifest(manifest_path or config.manifest_path)
    except ManifestError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if not universe:
        click.echo(click.style("Suite is empty", fg="yellow"), err=True)

    source = expression if expression is not None else config.expression
    try:
        if tests:
            test_filter = TestFilter.explicit(tests)
        else:
            test_filter = TestFilter.from_expression(
                source, skip=config.skip if skip is None else skip
            )
        selected = test_filter.apply(universe, max_workers=config.workers)
    except MissingTestsError as e:
        for test_id in e.missing:
            click.echo(click.style(f"Test {test_id} not found", fg="red"), err=True)
        raise SystemExit(1)
    except TestSetError as e:
        _report(source, e, as_json)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(_to_json(universe, selected), indent=2, default=str))
        return

    if not selected:
        click.echo(click.style("Test set matched no tests", fg="yellow"), err=True)
        return

    pad = min(max(len(test_id) for test_id in selected), MAX_PADDING)
    for test_id in selected:
        kind = universe.get(test_id).kind
        click.echo(f"{test_id:<{pad}} " + click.style(kind.value, fg=KIND_COLOURS[kind], bold=True))


def _report(source: str, error: TestSetError, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps({"error": error.to_dict()}), err=True)
        return

    heading = "Couldn't parse test set" if isinstance(error, ParseError) else "Couldn't evaluate test set"
    click.echo(click.style(f"{heading}:", fg="red", bold=True), err=True)
    click.echo(render_error(source, error), err=True)


def _to_json(universe: TestUniverse, selected) -> list[dict]:
    entries = []
    for test_id in selected:
        meta = universe.get(test_id)
        entries.append(
            {
                "id": test_id,
                "kind": meta.kind.value,
                "skip": meta.skip,
                "attributes": dict(meta.attributes),
            }
        )
    return entries

"""Functions command: document the named sets and functions available."""

import json

import click

from testsets.expressions.builtins import get_default_registry


@click.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON to stdout.")
def functions(as_json: bool):
    """List the named sets and functions usable in expressions."""
    registry = get_default_registry()

    if as_json:
        click.echo(json.dumps(registry.export_documentation(), indent=2))
        return

    for func_def in registry.list_all():
        params = ", ".join(
            f"{p.name}: {p.kind.value}{'...' if p.variadic else ''}" for p in func_def.parameters
        )
        signature = f"{func_def.name}({params})"
        click.echo(f"{click.style(signature, bold=True)}  {func_def.description}")

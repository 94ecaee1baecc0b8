"""Command-line utilities for API test documents.

Tests are read from JSON (or YAML) documents. The commands validate a
test, export its scenarios, compile it into a JMeter test plan, and
print the JSON Schema of test documents.
"""

from pathlib import Path
from typing import TYPE_CHECKING

from click import ClickException, argument, echo, group, option, pass_context
from click import Path as PathParam

from apiplan.core import DocumentParser
from apiplan.errors import PlanCompileError, PlanError
from apiplan.jsonschema import SchemaGenerator
from apiplan.messages import get_catalog
from apiplan.settings import CompilerSettings

if TYPE_CHECKING:
    from click import Context

    from apiplan.schema import ApiTest

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)

OutputFilepath = PathParam(
    dir_okay=False,
    writable=True,
    path_type=Path,
)


def _load(path: Path) -> 'ApiTest':
    """Load a test document, reporting document errors to the user."""
    try:
        return DocumentParser().load(path)
    except PlanError as error:
        raise ClickException(str(error)) from error


@group(help='Command-line utilities for API test documents.')
@pass_context
def cli(ctx: 'Context') -> None:
    """Root CLI group, resolving the compiler settings."""
    ctx.obj = CompilerSettings()


@cli.command(
    name='validate',
    help='Validate a test document and print the first problem found.',
)
@argument('document', type=InputFilepath)
@pass_context
def validate(ctx: 'Context', document: Path) -> None:
    """Validate a test.

    Args:
        ctx: Click context holding the compiler settings.
        document: Path of the test document.
    """
    test = _load(document)
    result = test.is_valid()
    if result:
        echo('OK')
        return

    message = get_catalog(ctx.obj.locale).lookup(result.info or '')
    if result.path:
        location = '.'.join(str(item) for item in result.path)
        message = f'{location}: {message}'

    echo(message, err=True)
    ctx.exit(1)


@cli.command(
    name='export',
    help='Print the scenarios of a test as a transport JSON document.',
)
@argument('document', type=InputFilepath)
def export(document: Path) -> None:
    """Export the scenarios of a test."""
    echo(_load(document).export())


@cli.command(
    name='compile',
    help='Compile a test document into a JMeter test plan.',
)
@option(
    '-o', '--output',
    type=OutputFilepath,
    help='Output path of the test plan, standard output by default.',
)
@option(
    '-e', '--environments',
    type=InputFilepath,
    help='Environments file, a list of environments or a mapping by identifier.',
)
@argument('document', type=InputFilepath)
@pass_context
def compile_(ctx: 'Context', document: Path, output: Path | None,
             environments: Path | None) -> None:
    """Compile a test into a JMeter test plan.

    Args:
        ctx: Click context holding the compiler settings.
        document: Path of the test document.
        output: Optional output path.
        environments: Optional environments file.
    """
    test = _load(document)

    try:
        known = DocumentParser().load_environments(environments) if environments else None
        if (compiled := test.to_jmx(environments=known, settings=ctx.obj)) is None:
            raise PlanCompileError('Test without identifier or name can not be compiled')
    except PlanError as error:
        raise ClickException(str(error)) from error

    if output is None:
        echo(compiled.xml)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(compiled.xml, encoding='utf-8')
    echo(f'{compiled.name} written to {output.as_posix()}')


@cli.command(
    name='schema',
    help='Print the JSON Schema of test documents to standard output.',
)
def print_schema() -> None:
    """Generate and print the JSON Schema."""
    echo(SchemaGenerator.make_schema())


if __name__ == '__main__':
    cli()

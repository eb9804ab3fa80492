"""Command-line interface for gql-netgraph."""

import logging
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path

import click
from graphql import GraphQLError

from .core.config import CodegenConfig, load_config
from .core.console import ROOT_LOGGER_NAME
from .core.documents import normalize_operations_doc
from .core.errors import NetGraphError
from .core.generator import CodeGenerator, HandlerOptions
from .core.lockfile import DEFAULT_LOCKFILE_NAME, create_lockfile, write_lockfile
from .core.operation_graph import OperationGraphBuilder
from .core.schema import load_schema

ARCHIVE_SUFFIXES = (".zip", ".tar.gz", ".tgz")


def extract_archive(archive_path: Path) -> str:
    """Extract archive to temp directory. Returns path to extracted content."""
    temp_dir = tempfile.mkdtemp()
    if archive_path.suffix == ".zip":
        with zipfile.ZipFile(archive_path, "r") as zip_ref:
            zip_ref.extractall(temp_dir)
    elif archive_path.name.endswith((".tar.gz", ".tgz")):
        with tarfile.open(archive_path, "r:gz") as tar_ref:
            tar_ref.extractall(temp_dir, filter="data")
    else:
        shutil.rmtree(temp_dir)
        raise ValueError(f"Unsupported archive format: {archive_path.suffix}")
    return temp_dir


class EchoHandler(logging.Handler):
    """Logging handler writing through click.echo to stderr."""

    def emit(self, record: logging.LogRecord):
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool):
    """Send package diagnostics to stderr until the current command closes."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    previous_level = logger.level
    handler = EchoHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    def restore():
        logger.removeHandler(handler)
        logger.setLevel(previous_level)

    click.get_current_context().call_on_close(restore)


def read_schema(schema: str, verbose: bool):
    """Load a schema from a file, directory or archive."""
    schema_path = Path(schema).resolve()
    temp_dir = None
    try:
        actual_schema_path = schema_path
        if schema_path.is_file() and schema_path.name.lower().endswith(ARCHIVE_SUFFIXES):
            click.echo(f"Extracting archive {schema_path.name}...", err=True)
            temp_dir = extract_archive(schema_path)
            actual_schema_path = Path(temp_dir)
            if verbose:
                click.echo(f"  Extracted to: {temp_dir}", err=True)
        return load_schema(str(actual_schema_path))
    finally:
        if temp_dir:
            shutil.rmtree(temp_dir)


def read_config(config: str | None, framework: str | None = None, schema_id: str | None = None) -> CodegenConfig:
    codegen_config = load_config(config)
    updates = {}
    if framework:
        updates["framework"] = framework
    if schema_id:
        updates["schema_id"] = schema_id
    if updates:
        codegen_config = codegen_config.model_copy(update=updates)
    return codegen_config


schema_option = click.option(
    "--schema",
    "-s",
    required=True,
    type=click.Path(exists=True),
    help="Path to GraphQL schema (SDL file, directory, introspection JSON or archive).",
)
operations_option = click.option(
    "--operations",
    "-o",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the GraphQL operations document.",
)
config_option = click.option(
    "--config",
    "-c",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a JSON codegen config.",
)
verbose_option = click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)


@click.group()
@click.version_option()
def main():
    """Netlify Graph style library generator.

    Generate a JavaScript runtime, TypeScript declarations and handler
    snippets from a GraphQL schema and an operations document.
    """
    pass


@main.command()
@schema_option
@operations_option
@config_option
@click.option(
    "--output",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Root directory the configured file paths are resolved against.",
)
@click.option("--schema-id", default=None, help="Schema id baked into the runtime and lockfile.")
@verbose_option
def generate(schema: str, operations: str, config: str | None, output: str, schema_id: str | None, verbose: bool):
    """Generate the runtime library and its type declarations.

    Examples:

        gql-netgraph generate -s ./schema.graphql -o ./operations.graphql

        gql-netgraph generate -s ./schema -o ./ops.graphql -c netlifyGraph.json --output ./site
    """
    configure_logging(verbose)
    try:
        codegen_config = read_config(config, schema_id=schema_id)
        gql_schema = read_schema(schema, verbose)
        operations_doc = Path(operations).read_text(encoding="utf-8")

        click.echo("Generating library...")
        generator = CodeGenerator(gql_schema, codegen_config)
        library = generator.generate_functions_source(operations_doc)

        if verbose:
            click.echo(f"  Functions: {len(library.functions)}")
            click.echo(f"  Fragments: {len(library.fragments)}")

        written = generator.write(library.files, output)
        lockfile_path = Path(output) / DEFAULT_LOCKFILE_NAME
        write_lockfile(lockfile_path, create_lockfile(codegen_config.schema_id, operations_doc))
    except (NetGraphError, GraphQLError, OSError) as e:
        raise click.ClickException(str(e)) from e

    for path in written:
        click.echo(f"  Wrote {path}")
    click.echo(f"Done! Lockfile written to {lockfile_path}")


@main.command()
@schema_option
@operations_option
@config_option
@click.option("--operation-id", required=True, help="Id of the @netlify annotated operation.")
@click.option(
    "--framework",
    type=click.Choice(["custom", "Next.js", "Remix"]),
    default=None,
    help="Override the framework from the config.",
)
@click.option("--post", is_flag=True, help="Read variables from a POST body instead of the query string.")
@click.option("--client-auth", is_flag=True, help="Forward the user's auth headers in client helpers.")
@click.option(
    "--output",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory to write the handler to (prints to stdout when omitted).",
)
@verbose_option
def handler(
    schema: str,
    operations: str,
    config: str | None,
    operation_id: str,
    framework: str | None,
    post: bool,
    client_auth: bool,
    output: str | None,
    verbose: bool,
):
    """Generate a handler snippet for one operation.

    Examples:

        gql-netgraph handler -s ./schema.graphql -o ./ops.graphql --operation-id 1234

        gql-netgraph handler -s ./schema.graphql -o ./ops.graphql --operation-id 1234 --framework Next.js --post
    """
    configure_logging(verbose)
    try:
        codegen_config = read_config(config, framework=framework)
        gql_schema = read_schema(schema, verbose)
        operations_doc = Path(operations).read_text(encoding="utf-8")

        generator = CodeGenerator(gql_schema, codegen_config)
        result = generator.generate_handler(
            operations_doc,
            operation_id,
            HandlerOptions(post_http_method=post, use_client_auth=client_auth),
        )
    except (NetGraphError, GraphQLError, OSError) as e:
        raise click.ClickException(str(e)) from e

    for exported in result.files:
        if output is None:
            click.echo(exported.content)
            continue
        relative = exported.path or result.suggested_filename
        target = Path(output) / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(exported.content, encoding="utf-8")
        click.echo(f"Wrote {target}")


@main.command()
@operations_option
@verbose_option
def order(operations: str, verbose: bool):
    """Print definitions in dependency order.

    Fragments are listed before the definitions that spread them.
    """
    configure_logging(verbose)
    operations_doc = Path(operations).read_text(encoding="utf-8")
    result = OperationGraphBuilder().build(operations_doc)

    for op in result.operation_data_list:
        line = f"{op.type} {op.display_name}"
        if verbose and op.fragment_dependencies:
            deps = ", ".join(f.name.value for f in op.fragment_dependencies)
            line += f" <- {deps}"
        click.echo(line)


@main.command()
@operations_option
@click.option("--write", is_flag=True, help="Rewrite the operations file in place.")
def normalize(operations: str, write: bool):
    """Print the operations document in canonical form."""
    operations_path = Path(operations)
    try:
        normalized = normalize_operations_doc(operations_path.read_text(encoding="utf-8"))
    except GraphQLError as e:
        raise click.ClickException(str(e)) from e

    if write:
        operations_path.write_text(normalized, encoding="utf-8")
        click.echo(f"Normalized {operations_path}")
    else:
        click.echo(normalized, nl=False)


if __name__ == "__main__":
    main()

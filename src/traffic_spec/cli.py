"""CLI entry point for traffic-spec."""

import asyncio
from contextlib import contextmanager
from pathlib import Path

import click

from traffic_spec.errors import TrafficSpecError
from traffic_spec.generator.merge import merge_specs
from traffic_spec.generator.reconcile import SpecReconciler, strip_meta
from traffic_spec.generator.spec import SpecBuilder, export_examples, method_list, path_list
from traffic_spec.generator.validator import check_curation
from traffic_spec.parser.config import load_config
from traffic_spec.parser.documents import load_json_document, write_document, write_lines
from traffic_spec.parser.har import parse_captures

EXAMPLES_FILE = "examples.json"
PATH_LIST_FILE = "path-list.txt"
METHOD_LIST_FILE = "method-list.txt"
# Written next to the spec by gen-spec.
COMPANION_FILES = {EXAMPLES_FILE, f"{EXAMPLES_FILE}.yaml", PATH_LIST_FILE, METHOD_LIST_FILE}


@contextmanager
def _halt_on_error():
    """Report pipeline errors and exit non-zero without writing output."""
    try:
        yield
    except TrafficSpecError as e:
        raise click.ClickException(str(e)) from e


def _echo_written(paths: list[Path]) -> None:
    for path in paths:
        click.echo(f"  Created {path}")


@click.group()
def main():
    """traffic-spec — build OpenAPI specs with examples from recorded HTTP traffic."""
    pass


@main.command()
@click.argument("captures", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file path for the spec JSON.")
@click.option("--config", "config_path", required=True, envvar="TRAFFIC_SPEC_CONFIG", type=click.Path(exists=True, path_type=Path), help="Path/tag/replace configuration (YAML or JSON).")
@click.option("--base-path", default=None, envvar="TRAFFIC_SPEC_BASE_PATH", help="Override the configured API base path filter.")
def gen_spec(captures: tuple[Path, ...], output: Path, config_path: Path, base_path: str | None):
    """Synthesize a spec and a curation file from HAR captures."""
    if output.name in COMPANION_FILES:
        raise click.ClickException(f"{output.name} is reserved for gen-spec companion files, choose another output name")

    with _halt_on_error():
        config = load_config(config_path, api_base_path=base_path)

        click.echo(f"Parsing {len(captures)} capture file(s)...")
        transactions = parse_captures(list(captures))
        click.echo(f"Network requests found in capture file(s): {len(transactions)}")

        builder = SpecBuilder(config)
        builder.ingest(transactions)
        spec = builder.build()

    out_dir = output.parent
    written = write_document(spec, output)
    written += write_document(export_examples(spec), out_dir / EXAMPLES_FILE)
    written.append(write_lines(path_list(spec), out_dir / PATH_LIST_FILE))
    written.append(write_lines(method_list(spec), out_dir / METHOD_LIST_FILE))
    _echo_written(written)

    if builder.skipped_bodies:
        click.echo(f"Skipped {builder.skipped_bodies} unparseable bodies.")
    click.echo(f"Paths created: {len(builder.paths)}")
    click.echo(f"Operations created: {builder.operation_count}")


@main.command()
@click.argument("examples_path", type=click.Path(exists=True, path_type=Path))
@click.option("--prior", "prior_path", required=True, type=click.Path(exists=True, path_type=Path), help="Spec previously written by gen-spec.")
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file path for the final spec JSON.")
def gen_schema(examples_path: Path, prior_path: Path, output: Path):
    """Rebuild schemas and published examples from a curated example file."""
    with _halt_on_error():
        curated = load_json_document(examples_path)
        prior = load_json_document(prior_path)

        errors = check_curation(curated)
        if errors:
            for message in errors.values():
                click.echo(f"  {message}", err=True)
            raise click.ClickException(
                f"{len(errors)} example sets need curation - edit {examples_path} again"
            )

        spec = asyncio.run(SpecReconciler().reconcile(prior, curated))

    _echo_written(write_document(strip_meta(spec), output))


@main.command()
@click.argument("master_path", type=click.Path(exists=True, path_type=Path))
@click.argument("to_merge_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file path for the merged spec JSON.")
def merge(master_path: Path, to_merge_path: Path, output: Path):
    """Copy paths and methods missing from MASTER over from TO_MERGE."""
    with _halt_on_error():
        master = load_json_document(master_path)
        to_merge = load_json_document(to_merge_path)

    _echo_written(write_document(merge_specs(master, to_merge), output))

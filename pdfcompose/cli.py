"""
Command-line interface for pdfcompose.
"""

import json
import logging
import os
import sys

import click
from rich.console import Console
from rich.table import Table

from pdfcompose import __version__
from pdfcompose.config import ComposeConfig
from pdfcompose.exceptions import PdfComposeError, PdfExportError
from pdfcompose.loader import get_document_info, load_document, read_source_file
from pdfcompose.session import ComposerSession
from pdfcompose.utils import get_logger

console = Console()


def _parse_order(order_text):
    """Parse a 1-based comma separated page order into 0-based indexes."""
    try:
        return [int(token.strip()) - 1 for token in order_text.split(",") if token.strip()]
    except ValueError as exc:
        raise click.BadParameter(f"Invalid page order: '{order_text}'. Expected e.g. '2,3,1'.") from exc


def _parse_passwords(values):
    passwords = {}
    for value in values:
        name, sep, password = value.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"Invalid password option: '{value}'. Expected NAME=PASSWORD.")
        passwords[name] = password
    return passwords


def _load_annotations(path):
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, list):
        raise click.BadParameter("Annotations file must contain a JSON list.")
    return data


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose):
    """
    pdfcompose - merge, reorder and annotate PDF documents.
    """
    get_logger("pdfcompose").setLevel(logging.DEBUG if verbose else logging.WARNING)


@cli.command(name="info")
@click.argument("input_pdfs", nargs=-1, required=True, type=click.Path(exists=True))
def show_info(input_pdfs):
    """
    Display page count, size and encryption status of PDF files.

    Example:

        pdfcompose info a.pdf b.pdf
    """
    table = Table(title="PDF Information")
    table.add_column("File", style="cyan")
    table.add_column("Pages", style="green", justify="right")
    table.add_column("Size (bytes)", justify="right")
    table.add_column("Encrypted")
    table.add_column("First page (pt)")

    exit_code = 0
    for path in input_pdfs:
        try:
            source = read_source_file(path)
            info = get_document_info(load_document(source.data, name=source.name))
        except PdfComposeError as e:
            console.print(f"[bold red]✗ {os.path.basename(path)}:[/bold red] {e}")
            exit_code = 1
            continue
        first = info.page_sizes[0] if info.page_sizes else None
        table.add_row(
            info.name,
            str(info.page_count),
            str(info.file_size),
            "yes" if info.is_encrypted else "no",
            f"{first[0]:.0f} x {first[1]:.0f}" if first else "-",
        )

    console.print(table)
    sys.exit(exit_code)


@cli.command(name="compose")
@click.argument("input_pdfs", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--output", "-o", required=True, type=click.Path(), help="Output PDF path")
@click.option("--order", default=None, help="1-based page order of the merged document, e.g. '2,3,1'")
@click.option(
    "--annotations", "-a", "annotations_path",
    default=None,
    type=click.Path(exists=True),
    help="JSON file with a list of annotation objects",
)
@click.option("--password", "passwords", multiple=True, help="Credential for an input as NAME=PASSWORD")
@click.option("--font-family", default=None, help="Annotation font family (Helvetica, Times, Courier)")
@click.option("--title", default=None, help="Title stored in the output metadata")
@click.option("--author", default=None, help="Author stored in the output metadata")
@click.option("--bookmarks/--no-bookmarks", default=None, help="Add one outline entry per input")
def compose(input_pdfs, output, order, annotations_path, passwords, font_family, title, author, bookmarks):
    """
    Merge INPUT_PDFS, optionally reorder pages and stamp annotations.

    Examples:

        pdfcompose compose a.pdf b.pdf -o out.pdf

        pdfcompose compose a.pdf b.pdf -o out.pdf --order 3,1,2 -a notes.json
    """
    config = ComposeConfig.from_env().with_updates(font_family=font_family, add_bookmarks=bookmarks)
    session = ComposerSession(config)

    try:
        report = session.add_files(input_pdfs, passwords=_parse_passwords(passwords))
        for failure in report.failures:
            hint = " (use --password NAME=PASSWORD)" if failure.needs_password else ""
            console.print(f"[bold red]✗ {failure.name}:[/bold red] {failure.message}{hint}")
        if report.failures:
            sys.exit(1)

        if order:
            session.set_page_order(_parse_order(order))

        if annotations_path:
            for record in _load_annotations(annotations_path):
                session.commit_annotation(record)

        result = session.export(
            filename=os.path.basename(output),
            document_info={"title": title, "author": author},
        )
    except PdfExportError as e:
        console.print(f"[bold red]✗ Export failed during {e.stage}:[/bold red] {e.reason}")
        sys.exit(1)
    except (PdfComposeError, ValueError) as e:
        console.print(f"[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)

    destination = result.write(output)
    console.print(
        f"[bold green]✓ Wrote {result.page_count} page(s) to {destination}[/bold green]"
    )
    for skipped in result.skipped_annotations:
        console.print(f"[yellow]! Skipped annotation {skipped.id}:[/yellow] {skipped.reason}")


if __name__ == "__main__":  # pragma: no cover
    cli()

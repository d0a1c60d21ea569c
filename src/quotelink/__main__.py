"""CLI entry point for quotelink."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from quotelink import __version__
from quotelink.alignment import AlignmentIndex
from quotelink.config import ConfigError, Settings
from quotelink.highlight import assign_color_indices
from quotelink.matching.display import render_quote
from quotelink.matching.matcher import QuoteMatcher
from quotelink.notes import load_notes_tsv, notes_in_range
from quotelink.reference import (
    QuoteScope,
    ReferenceParseError,
    normalize_book_code,
    parse_note_reference,
)
from quotelink.tokens.loader import TokenLoadError, load_document

console = Console()
err_console = Console(stderr=True)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_or_exit(path: str, resource_id: str = ""):
    try:
        return load_document(Path(path), resource_id=resource_id)
    except TokenLoadError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Settings YAML (defaults to $QUOTELINK_CONFIG)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool):
    """quotelink - resolve note quotes to scripture tokens."""
    try:
        settings = (
            Settings.from_yaml(Path(config_path)) if config_path else Settings.load()
        )
    except ConfigError as e:
        console.print(f"[red]Config error: {e}[/red]")
        sys.exit(2)

    _setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


@cli.command()
@click.argument("scripture", type=click.Path(exists=True, dir_okay=False))
@click.argument("reference")
@click.argument("quote")
@click.option("--occurrence", "-n", default=1, type=int, help="Which repetition to select")
@click.option("--book", "-b", default=None, help="Book code (defaults to the document's)")
@click.option(
    "--strip-diacritics/--keep-diacritics",
    default=None,
    help="Override the configured diacritic handling",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_obj
def match(
    settings: Settings,
    scripture: str,
    reference: str,
    quote: str,
    occurrence: int,
    book: str | None,
    strip_diacritics: bool | None,
    as_json: bool,
):
    """Resolve QUOTE inside REFERENCE of a tokenized scripture file.

    Example: quotelink match ugnt-3jn.json 1:12 "ἡμεῖς & μαρτυροῦμεν"
    """
    document = _load_or_exit(scripture)

    try:
        scope = parse_note_reference(reference, book or document.book)
    except ReferenceParseError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    policy = settings.normalization
    if strip_diacritics is not None:
        policy = replace(policy, strip_diacritics=strip_diacritics)
    matcher = QuoteMatcher(
        policy=policy,
        delimiter=settings.segment_delimiter,
        min_quote_length=settings.min_quote_length,
    )
    result = matcher.resolve(scope, quote, occurrence, document)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        sys.exit(0 if result.success else 1)

    if not result.success:
        console.print(f"[red]No match:[/red] {result.error}")
        sys.exit(1)

    table = Table(title=f"{scope} (occurrence {occurrence})")
    table.add_column("#", style="dim")
    table.add_column("Segment", style="cyan")
    table.add_column("Verse")
    table.add_column("Span")
    table.add_column("Token IDs", style="green")
    for index, segment in enumerate(result.matches, start=1):
        table.add_row(
            str(index),
            segment.text,
            segment.verse_ref,
            f"{segment.start_token_index}-{segment.end_token_index}",
            ", ".join(str(i) for i in segment.token_ids),
        )
    console.print(table)
    console.print(
        Panel(
            render_quote(result.total_tokens, document.tokens_in(scope), settings.ellipsis),
            title="Quote",
        )
    )


@cli.command()
@click.argument("scripture", type=click.Path(exists=True, dir_okay=False))
@click.argument("notes_tsv", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--target",
    "-t",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Aligned target-language scripture JSON",
)
@click.option("--reference", "-r", default=None, help="Only notes overlapping C:V[-V]")
@click.option("--book", "-b", default=None, help="Book code (defaults to the document's)")
@click.pass_obj
def notes(
    settings: Settings,
    scripture: str,
    notes_tsv: str,
    target: str | None,
    reference: str | None,
    book: str | None,
):
    """Match every note in NOTES_TSV against SCRIPTURE."""
    original = _load_or_exit(scripture)
    target_doc = _load_or_exit(target) if target else None
    alignment = AlignmentIndex([original] + ([target_doc] if target_doc else []))

    try:
        book_code = normalize_book_code(book or original.book)
        visible: QuoteScope | None = (
            parse_note_reference(reference, book_code) if reference else None
        )
    except ReferenceParseError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    filtered = notes_in_range(load_notes_tsv(Path(notes_tsv)), book_code, visible)
    colors = assign_color_indices(
        [n.key for n in filtered],
        [n.is_colorable for n in filtered],
        settings.palette_size,
    )
    matcher = QuoteMatcher.from_settings(settings)

    table = Table(title=f"Notes for {book_code}" + (f" {reference}" if reference else ""))
    table.add_column("ID", style="cyan")
    table.add_column("Ref")
    table.add_column("Quote")
    table.add_column("Status")
    table.add_column("Token IDs", style="dim")
    table.add_column("Color")
    if target_doc:
        table.add_column("Target quote", style="green")

    failures = 0
    for note in filtered:
        if not note.has_quote:
            status, ids, target_quote = "[dim]no quote[/dim]", "", ""
        else:
            result = matcher.resolve_note(note, book_code, original)
            if result.success:
                status = "[green]matched[/green]"
                ids = ", ".join(str(i) for i in result.token_ids)
                target_quote = ""
                if target_doc:
                    scope = note.scope(book_code)
                    target_quote = render_quote(
                        alignment.target_tokens_for(result.token_ids, target_doc),
                        target_doc.tokens_in(scope),
                        settings.ellipsis,
                    )
            else:
                failures += 1
                status, ids, target_quote = f"[red]{result.error}[/red]", "", ""

        color = colors.get(note.key)
        row = [
            note.key,
            note.reference,
            note.quote,
            status,
            ids,
            "" if color is None else str(color),
        ]
        if target_doc:
            row.append(target_quote)
        table.add_row(*row)

    console.print(table)
    if failures:
        console.print(f"[yellow]{failures} note(s) could not be matched[/yellow]")


@cli.command()
@click.argument("scripture", type=click.Path(exists=True, dir_okay=False))
@click.argument("token_ids", nargs=-1, type=int, required=True)
@click.pass_obj
def render(settings: Settings, scripture: str, token_ids: tuple[int, ...]):
    """Print the display text for a set of token ids."""
    document = _load_or_exit(scripture)
    selected = []
    for token_id in token_ids:
        token = document.token_by_id(token_id)
        if token is None:
            console.print(f"[red]Error: unknown token id {token_id}[/red]")
            sys.exit(1)
        selected.append(token)
    click.echo(render_quote(selected, document.all_tokens(), settings.ellipsis))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()

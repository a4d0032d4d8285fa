"""CLI entrypoint for weave."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from weave import __version__
from weave.codec import encode
from weave.config import load_config
from weave.errors import ConfigError, WeaveError
from weave.note import Note
from weave.store import NoteStore

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _setup_logging(verbose: bool) -> None:
    logger = logging.getLogger("weave")
    logger.setLevel(logging.DEBUG if verbose else logging.ERROR)
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


@contextmanager
def _reported() -> Iterator[None]:
    try:
        yield
    except WeaveError as exc:
        raise click.ClickException(str(exc)) from exc


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _edit_body(text: str, editor: str) -> str | None:
    edited = click.edit(text, editor=editor or None, extension=".md")
    if edited is None:
        return None
    return edited.rstrip("\n")


def _fmt_ts(ts: datetime | None) -> str:
    return ts.strftime("%Y-%m-%d %H:%M") if ts else ""


@click.group()
@click.version_option(__version__, prog_name="weave")
@click.option(
    "--vault",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to notes vault (defaults to $WEAVE_VAULT, then ./notes)",
)
@click.option("--editor", default=None, help="Editor command (defaults to $WEAVE_EDITOR, then $EDITOR)")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, editor: str | None, verbose: bool) -> None:
    """weave - plain-text notes with YAML frontmatter."""
    _setup_logging(verbose)
    try:
        config = load_config(vault, editor)
    except ConfigError as exc:
        raise click.BadParameter(str(exc), param_hint="--vault") from exc

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["store"] = NoteStore(config.vault_dir)


@cli.command()
@click.argument("title")
@click.option("--body", "-b", default="", help="Note body text")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--link", "-l", "links", multiple=True, help="Declared reference to another note id (repeatable)")
@click.option("--edit", "use_editor", is_flag=True, help="Write the body in the editor")
@click.pass_obj
def new(obj: dict, title: str, body: str, tags: tuple[str, ...], links: tuple[str, ...], use_editor: bool) -> None:
    """Create a note and print its id."""
    if use_editor:
        edited = _edit_body(body, obj["config"].editor)
        if edited is not None:
            body = edited

    note = Note(title=title, body=body, tags=list(tags), links=list(links))
    with _reported():
        note_id = obj["store"].create(note, _now())
    click.echo(note_id)


@cli.command()
@click.argument("note_id")
@click.option("--raw", is_flag=True, help="Print the note as stored on disk")
@click.pass_obj
def show(obj: dict, note_id: str, raw: bool) -> None:
    """Print a note."""
    with _reported():
        note = obj["store"].read(note_id)

    if raw:
        click.echo(encode(note).decode("utf-8"), nl=False)
        return

    click.echo(note.title)
    click.echo(f"id:       {note.id}")
    if note.tags:
        click.echo(f"tags:     {', '.join(note.tags)}")
    click.echo(f"created:  {_fmt_ts(note.created)}")
    click.echo(f"modified: {_fmt_ts(note.modified)}")
    if note.links:
        click.echo(f"links:    {', '.join(note.links)}")
    if note.body:
        click.echo()
        click.echo(note.body)


@cli.command()
@click.argument("note_id")
@click.option("--title", default=None, help="New title (the id does not change)")
@click.option("--body", "-b", default=None, help="New body text")
@click.option("--tag", "-t", "tags", multiple=True, help="Replace tags (repeatable)")
@click.option("--link", "-l", "links", multiple=True, help="Replace declared links (repeatable)")
@click.pass_obj
def edit(
    obj: dict,
    note_id: str,
    title: str | None,
    body: str | None,
    tags: tuple[str, ...],
    links: tuple[str, ...],
) -> None:
    """Update a note; opens the editor on the body when no options are given."""
    store: NoteStore = obj["store"]
    with _reported():
        original = store.read(note_id)

    note = replace(original)
    if title is None and body is None and not tags and not links:
        edited = _edit_body(note.body, obj["config"].editor)
        if edited is not None:
            note.body = edited
    else:
        if title is not None:
            note.title = title
        if body is not None:
            note.body = body
        if tags:
            note.tags = list(tags)
        if links:
            note.links = list(links)

    if note == original:
        click.echo("No changes.")
        return

    with _reported():
        store.update(note_id, note, _now())
    click.echo(f"Updated {note_id}")


@cli.command()
@click.argument("note_id")
@click.pass_obj
def rm(obj: dict, note_id: str) -> None:
    """Delete a note."""
    with _reported():
        obj["store"].delete(note_id)
    click.echo(f"Deleted {note_id}")


@cli.command(name="ls")
@click.option("--tag", default=None, help="Only notes with this tag")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def ls(ctx: click.Context, tag: str | None, output_json: bool) -> None:
    """List notes, most recently modified first."""
    notes, errors = ctx.obj["store"].list_notes()
    if tag:
        notes = [n for n in notes if tag in n.tags]
    notes.sort(key=lambda n: n.modified or _EPOCH, reverse=True)

    if output_json:
        click.echo(json.dumps([n.to_dict() for n in notes], indent=2))
    else:
        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", no_wrap=True)
        table.add_column("Title")
        table.add_column("Tags")
        table.add_column("Modified", no_wrap=True)
        for note in notes:
            table.add_row(
                Text(note.id),
                Text(note.title),
                Text(", ".join(note.tags)),
                _fmt_ts(note.modified),
            )
        Console().print(table)

    if errors:
        err = Console(stderr=True, highlight=False)
        for failure in errors:
            err.print(Text(f"warning: {failure.path}: {failure.error}", style="yellow"), soft_wrap=True)
        ctx.exit(1)


@cli.command()
@click.argument("note_id")
@click.pass_obj
def links(obj: dict, note_id: str) -> None:
    """List the [[...]] references written in a note's body."""
    with _reported():
        note = obj["store"].read(note_id)

    found = note.inline_links()
    if not found:
        click.echo("No links.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Type")
    table.add_column("Target", no_wrap=True)
    table.add_column("Label")
    for link in found:
        table.add_row(Text(link.type), Text(link.id), Text(link.label))
    Console().print(table)


def main() -> None:
    cli(prog_name="weave")


if __name__ == "__main__":
    main()

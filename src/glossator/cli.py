"""Command-line utilities for Glossator.

``glossator-render`` renders a document body with a user's stored
annotations, for checking how notes re-anchor against a new version.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    import argparse

    from glossator.anchoring.injector import RenderResult
    from glossator.anchoring.rendered_view import TocEntry

console = Console()


def _build_render_parser() -> argparse.ArgumentParser:
    """Build argparse parser for glossator-render."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="glossator-render",
        description="Render a document body with a user's annotations.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Read the Markdown body from FILE")
    source.add_argument(
        "--fetch",
        metavar="DOCUMENT_ID",
        help="Fetch the body from the document provider",
    )
    parser.add_argument(
        "--document-id",
        default=None,
        help="Document id the annotations are stored under (default: file stem)",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Publication date for --fetch (YYYY-MM-DD, default: today)",
    )
    parser.add_argument(
        "--vigenza",
        type=date.fromisoformat,
        default=None,
        help="Validity date for --fetch (YYYY-MM-DD)",
    )
    parser.add_argument("--user", required=True, help="Annotation owner")
    parser.add_argument(
        "--toc", action="store_true", help="Print the table of contents too"
    )
    return parser


def _print_stale(result: RenderResult, con: Console) -> None:
    if not result.stale:
        return
    table = Table(title="Stale annotations")
    table.add_column("Annotation", style="yellow")
    for annotation_id in result.stale:
        table.add_row(annotation_id)
    con.print(table)


def _print_toc(entries: list[TocEntry], con: Console) -> None:
    if not entries:
        con.print("[dim]No headings.[/]")
        return
    table = Table(title="Contents")
    table.add_column("Heading")
    table.add_column("Anchor", style="cyan")
    for entry in entries:
        indent = "  " * (entry.level - 1)
        table.add_row(f"{indent}{entry.text}", entry.anchor_id or "-")
    con.print(table)


async def _load_body(
    args: argparse.Namespace, con: Console
) -> tuple[str, str] | None:
    """Return ``(document_id, body)`` or None after printing an error."""
    from glossator.documents.provider import (
        DocumentFetchError,
        DocumentProviderClient,
    )

    if args.file is not None:
        try:
            body = args.file.read_text(encoding="utf-8")
        except OSError as exc:
            con.print(f"[red]Error:[/] cannot read {args.file}: {exc}")
            return None
        return args.document_id or args.file.stem, body

    as_of = args.date or date.today()
    async with DocumentProviderClient() as client:
        try:
            document = await client.fetch(args.fetch, as_of, args.vigenza)
        except DocumentFetchError as exc:
            con.print(f"[red]Error:[/] {exc}")
            return None
    if document.title:
        con.print(f"[bold]{escape(document.title)}[/]")
    return args.document_id or document.document_id, document.body


async def _cmd_render(
    args: argparse.Namespace, *, con: Console | None = None
) -> int:
    """Render a body with the user's annotations.  Returns an exit code."""
    from sqlalchemy.exc import SQLAlchemyError

    from glossator.anchoring.injector import render_annotated_body
    from glossator.anchoring.rendered_view import RenderedView
    from glossator.db.annotations import AnnotationStoreError, list_annotations
    from glossator.db.engine import close_db, init_db

    con = con or console
    loaded = await _load_body(args, con)
    if loaded is None:
        return 1
    document_id, body = loaded

    try:
        await init_db()
        annotations = await list_annotations(args.user, document_id)
    except (AnnotationStoreError, SQLAlchemyError) as exc:
        con.print(f"[red]Error:[/] {escape(str(exc))}")
        return 1
    finally:
        await close_db()

    result = render_annotated_body(body, annotations)
    con.print(
        Panel(
            Text(result.body),
            title=f"{document_id}: {len(result.placed)} placed",
            border_style="green" if not result.stale else "yellow",
        )
    )
    _print_stale(result, con)
    if args.toc:
        _print_toc(RenderedView.from_body(result.body).table_of_contents(), con)
    return 0


def render(argv: list[str] | None = None) -> None:
    """Render a document with a user's annotations.

    Usage:
        glossator-render --file body.md --user alice [--document-id ID] [--toc]
        glossator-render --fetch ID --date 1947-12-27 --user alice
    """
    from glossator import _setup_logging
    from glossator.config import get_settings

    parser = _build_render_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    _setup_logging(get_settings().app.log_dir)
    sys.exit(asyncio.run(_cmd_render(args)))

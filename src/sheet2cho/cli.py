import logging
import re
import sys
from dataclasses import replace
from pathlib import Path

import click

from .chordpro import extract_chord_names, parse_cho, transpose_cho
from .exceptions import NetworkError, Sheet2ChoError, UnsupportedSiteError
from .models import ChordedRow, DirectiveRow, DisplayRow, SectionRow, TextRow, VerseGapRow
from .registry import get_adapter

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _slugify(text: str) -> str:
    """Convert a string to a lowercase hyphenated slug suitable for filenames."""
    text = text.lower()
    text = re.sub(r"[^\w\s-]", "", text)   # drop punctuation, keep Cyrillic letters
    text = re.sub(r"[\s_]+", "-", text)     # spaces/underscores → hyphens
    text = re.sub(r"-{2,}", "-", text)      # collapse multiple hyphens
    return text.strip("-")


def _default_filename(artist: str, title: str) -> str:
    slug = "-".join(part for part in (_slugify(artist), _slugify(title)) if part)
    return f"{slug or 'song'}.cho"


def _render_row(row: DisplayRow) -> list[str]:
    """Monospace lines for one display row (chords above lyrics)."""
    if isinstance(row, SectionRow):
        return [f"[{row.name}]"]
    if isinstance(row, DirectiveRow):
        return [f"{row.key}: {row.value}" if row.value else row.key]
    if isinstance(row, VerseGapRow):
        return [""] * row.size
    if isinstance(row, TextRow):
        return [row.value]
    if isinstance(row, ChordedRow):
        return [row.chords, row.lyrics] if row.lyrics else [row.chords]
    return []


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output to stderr.")
def main(verbose: bool) -> None:
    """Convert chord sheets (chord rows over lyrics) to inline-chord .cho files.

    \b
    Supported sources:
      - amdm.ru
      - pesnipodgitaru.ru (also saved pages, see --label)
      - local text / HTML files, or - for stdin
    """
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )


@main.command()
@click.argument("source")
@click.option("--label", default=None, metavar="LABEL",
              help="Site a saved page came from, e.g. pesnipodgitaru.")
@click.option("-o", "--output", "output_path", default=None, metavar="PATH",
              help="Output file path (default: <artist>-<title>.cho)")
@click.option("--stdout", is_flag=True, default=False,
              help="Print to stdout instead of writing a file.")
@click.option("--shift", type=int, default=0, show_default=True,
              help="Transpose chords by this many semitones (negative = down).")
@click.option("--preserve-chord-rows", is_flag=True, default=False,
              help="Keep chord rows on their own line instead of inlining them.")
def convert(source: str, label: str | None, output_path: str | None, stdout: bool,
            shift: int, preserve_chord_rows: bool) -> None:
    """Convert SOURCE (URL, file path or -) to a .cho file."""
    # --- Resolve adapter ---
    try:
        adapter = get_adapter(source, label)
    except UnsupportedSiteError as exc:
        click.echo(f"Error: {exc}", err=True)
        click.echo("Supported sites: amdm.ru, pesnipodgitaru.ru", err=True)
        sys.exit(1)

    options = None
    if preserve_chord_rows:
        options = replace(adapter.options(source), preserve_chord_rows=True)

    # --- Fetch + convert ---
    try:
        song = adapter.scrape(source, options)
    except NetworkError as exc:
        msg = f"Error: Could not fetch {exc.url}"
        if exc.status_code:
            msg += f" (HTTP {exc.status_code})"
        click.echo(msg, err=True)
        sys.exit(1)
    except Sheet2ChoError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    cho_text = transpose_cho(song.cho, shift) + "\n"

    # --- Output ---
    if stdout:
        click.echo(cho_text, nl=False)
        return

    dest = Path(output_path) if output_path else Path(_default_filename(song.artist, song.title))
    dest.write_text(cho_text, encoding="utf-8")
    click.echo(f"Written to {dest}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--hide-instrumentals", is_flag=True, default=False,
              help="Skip intros, solos and tab blocks.")
@click.option("--chords", "show_chords", is_flag=True, default=False,
              help="List the chords used after the song.")
def view(file: Path, hide_instrumentals: bool, show_chords: bool) -> None:
    """Print a .cho FILE with chords above the lyrics."""
    try:
        text = file.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        click.echo(f"Error: {file} is not UTF-8 text", err=True)
        sys.exit(1)

    for row in parse_cho(text):
        if hide_instrumentals and getattr(row, "instrumental", False):
            continue
        for line in _render_row(row):
            click.echo(line)

    if show_chords:
        names = extract_chord_names(text)
        click.echo("")
        click.echo(f"Chords: {' '.join(names) if names else '-'}")


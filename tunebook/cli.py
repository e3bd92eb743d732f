"""tunebook CLI entry point."""

import re
import sys
from pathlib import Path

import click

from tunebook import __version__
from tunebook.abc_cleaner import clean_and_complete
from tunebook.bar_extractor import DEFAULT_PREVIEW_BARS, extract_preview
from tunebook.logger_config import configure_logging
from tunebook.pitch_model import canonical_key_name, key_signature_offsets, parse_key_name
from tunebook.session_client import SessionAPIError, SessionClient
from tunebook.transposer import TranspositionError, transpose_or_raise

MAX_TRANSPOSE_STEPS = 24


def _read_abc(source: str) -> str:
    """Read ABC from a file path, or from stdin when ``source`` is '-'."""
    with click.open_file(source, "r", encoding="utf-8") as fh:
        return fh.read()


def _write_output(content: str, output: str | None) -> None:
    """Write to ``output`` if given, otherwise echo to stdout."""
    if output is None:
        click.echo(content)
        return
    try:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(content if content.endswith("\n") else content + "\n")
    except OSError as exc:
        click.echo(f"  ERROR: Could not write file — {exc}", err=True)
        sys.exit(1)
    click.echo(f"Wrote '{output}'.", err=True)


def _title_to_filename(title: str, suffix: str = ".abc") -> str:
    """Convert a tune title to a safe filename with ``suffix``."""
    sanitized = re.sub(r"[^\w\s-]", "", title)
    sanitized = re.sub(r"\s+", "_", sanitized.strip())
    return f"{sanitized or 'tune'}{suffix}"


output_option = click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination file. Defaults to stdout.",
)

session_url_option = click.option(
    "--base-url",
    envvar="TUNEBOOK_SESSION_URL",
    default=SessionClient.BASE_URL,
    show_default=True,
    help="The Session API root (env: TUNEBOOK_SESSION_URL).",
)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="tunebook")
@click.option("--verbose", "-v", is_flag=True, help="Log debug details to stderr.")
def main(verbose: bool) -> None:
    """tunebook — clean, preview, transpose and import ABC tunes."""
    configure_logging(verbose)


# ── ABC text subcommands ───────────────────────────────────────────────────────

@main.command()
@click.argument("source", default="-")
@click.option("--title", default=None, metavar="TEXT", help="Title for a synthesised T: header.")
@click.option("--key", default=None, metavar="KEY", help="Key for a synthesised K: header.")
@click.option("--meter", default=None, metavar="M", help="Meter for a synthesised M: header.")
@output_option
def clean(
    source: str, title: str | None, key: str | None, meter: str | None, output: str | None
) -> None:
    """
    Complete a headerless ABC fragment and normalise its line breaks.

    SOURCE is an ABC file, or '-' for stdin.

    \b
    Examples:
      tunebook clean fragment.abc --title "The Kesh" --key Gmajor --meter 6/8
      echo "GAB AGE|!GAB AGE|" | tunebook clean - --key G
    """
    _write_output(clean_and_complete(_read_abc(source), title, key, meter), output)


@main.command()
@click.argument("source", default="-")
@click.option(
    "--bars",
    "-n",
    type=click.IntRange(min=1),
    default=DEFAULT_PREVIEW_BARS,
    show_default=True,
    help="Number of bars to keep (a leading pickup counts as one).",
)
@output_option
def preview(source: str, bars: int, output: str | None) -> None:
    """
    Print the headers and the first few bars of a tune.

    SOURCE is an ABC file, or '-' for stdin.
    """
    _write_output(extract_preview(_read_abc(source), bars), output)


@main.command()
@click.argument("source", default="-")
@click.option(
    "--steps",
    "-s",
    type=click.IntRange(-MAX_TRANSPOSE_STEPS, MAX_TRANSPOSE_STEPS),
    required=True,
    help="Semitones to shift (negative = down).",
)
@click.option("--to", "target_key", required=True, metavar="KEY", help="Key written to K:.")
@output_option
def transpose(source: str, steps: int, target_key: str, output: str | None) -> None:
    """
    Transpose a tune and rewrite its K: header.

    SOURCE is an ABC file, or '-' for stdin. On failure nothing is written
    and the command exits with status 1.

    \b
    Examples:
      tunebook transpose kesh.abc --steps 2 --to A
      tunebook transpose reel.abc -s -2 --to C -o reel_in_c.abc
    """
    try:
        transposed = transpose_or_raise(_read_abc(source), steps, target_key)
    except TranspositionError as exc:
        click.echo(f"  ERROR: Transposition failed, notation unchanged — {exc}", err=True)
        sys.exit(1)
    _write_output(transposed, output)


@main.command()
@click.argument("name")
def key(name: str) -> None:
    """
    Show how a key name is understood and which letters it alters.

    \b
    Examples:
      tunebook key Dmixolydian
      tunebook key "A Min"
    """
    parsed = parse_key_name(name)
    if parsed is None:
        click.echo(f"'{name}' is not a recognised key; notes will be read as in C major.")
        return

    offsets = key_signature_offsets(name)
    accidentals = " ".join(
        f"{letter}{'#' if delta > 0 else 'b'}" for letter, delta in offsets.items()
    )
    click.echo(f"{canonical_key_name(name)}  (K:{parsed.code})")
    click.echo(f"  Signature : {accidentals or 'no sharps or flats'}")


# ── The Session subcommands ────────────────────────────────────────────────────

@main.command()
@click.argument("query")
@session_url_option
def search(query: str, base_url: str) -> None:
    """Search The Session for tunes by name."""
    try:
        with SessionClient(base_url=base_url) as client:
            tunes = client.search_tunes(query)
    except SessionAPIError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)

    if not tunes:
        click.echo("No tunes found.")
        return
    for tune in tunes:
        click.echo(f"  #{tune.id:<6} {tune.name}  ({tune.type})")


@main.command(name="import")
@click.argument("tune_id", type=int)
@click.option(
    "--setting",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Which of the tune's settings to import.",
)
@click.option("--with-sets", is_flag=True, help="Also list sets that include the tune.")
@click.option("--save", is_flag=True, help="Write to <title>.abc instead of stdout.")
@output_option
@session_url_option
def import_tune(
    tune_id: int,
    setting: int,
    with_sets: bool,
    save: bool,
    output: str | None,
    base_url: str,
) -> None:
    """
    Import a tune from The Session as complete ABC.

    TUNE_ID is the number in the tune's thesession.org URL.
    """
    try:
        with SessionClient(base_url=base_url) as client:
            tune = client.import_tune(tune_id, setting_index=setting - 1)
            sets = client.tune_sets(tune_id) if with_sets else []
    except SessionAPIError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)

    click.echo(f"  Title  : {tune.title}", err=True)
    click.echo(f"  Type   : {tune.tune_type or '?'}", err=True)
    click.echo(f"  Key    : {tune.key_name or tune.key or '?'}", err=True)
    click.echo(f"  Meter  : {tune.meter or '?'}", err=True)
    for session_set in sets:
        click.echo(f"  In set : {session_set.name}", err=True)
    click.echo(err=True)

    if save and output is None:
        output = _title_to_filename(tune.title)
    _write_output(tune.abc, output)


@main.command(name="random-set")
@click.option("--size", type=click.IntRange(1, 10), default=3, show_default=True)
@session_url_option
def random_set(size: int, base_url: str) -> None:
    """Build a random set from The Session's popular tunes and print its ABC."""
    try:
        with SessionClient(base_url=base_url) as client:
            tunes = client.random_set(size)
    except SessionAPIError as exc:
        click.echo(f"  ERROR: Could not build a set — {exc}", err=True)
        sys.exit(1)

    click.echo("\n\n".join(tune.abc for tune in tunes))


# ── Rendering subcommands ──────────────────────────────────────────────────────

@main.command()
@click.argument("abc_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option("--output", "-o", default=None, metavar="PATH", help="Destination file path.")
@click.option("--title", default=None, metavar="TEXT", help="Heading. Defaults to the T: header.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["html", "md-abcjs"], case_sensitive=False),
    default="html",
    show_default=True,
    help="Self-contained HTML (verovio) or Markdown with an abcjs script.",
)
@click.option("--steps", type=click.IntRange(-MAX_TRANSPOSE_STEPS, MAX_TRANSPOSE_STEPS), default=0)
@click.option("--to", "target_key", default=None, metavar="KEY", help="Target key when transposing.")
@click.option("--bars", type=click.IntRange(min=1), default=None, help="Render only a preview.")
def render(
    abc_file: str,
    output: str | None,
    title: str | None,
    output_format: str,
    steps: int,
    target_key: str | None,
    bars: int | None,
) -> None:
    """
    Render an ABC file as sheet music (HTML or Markdown).

    \b
    Examples:
      tunebook render kesh.abc
      tunebook render kesh.abc --steps 2 --to A -o kesh_in_a.html
      tunebook render kesh.abc --format md-abcjs --bars 4
    """
    from tunebook.tune_exporter import TuneExporter

    normalized_format = output_format.lower()
    default_suffix = ".html" if normalized_format == "html" else ".md"
    resolved_output = output if output is not None else str(Path(abc_file).with_suffix(default_suffix))

    click.echo(f"tunebook v{__version__}")
    click.echo(f"  ABC    : {abc_file}")
    click.echo(f"  Format : {normalized_format}")
    click.echo(f"  Output : {resolved_output}")

    exporter = TuneExporter(title=title or "", output_format=normalized_format)
    try:
        exporter.export(abc_file, resolved_output, steps, target_key, bars)
    except TranspositionError as exc:
        click.echo(f"  ERROR: Transposition failed — {exc}", err=True)
        sys.exit(1)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file — {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not render score — {exc}", err=True)
        sys.exit(1)

    click.echo(f"Done!  Open '{resolved_output}'.")


@main.command()
@click.argument("abc_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option("--output", "-o", default=None, metavar="PATH", help="Destination MIDI file.")
@click.option("--tempo", type=click.IntRange(20, 300), default=None, help="Override the Q: tempo (BPM).")
@click.option("--steps", type=click.IntRange(-MAX_TRANSPOSE_STEPS, MAX_TRANSPOSE_STEPS), default=0)
@click.option("--to", "target_key", default=None, metavar="KEY", help="Target key when transposing.")
def midi(
    abc_file: str, output: str | None, tempo: int | None, steps: int, target_key: str | None
) -> None:
    """Write a practice MIDI file for an ABC tune (music21)."""
    from tunebook.midi_exporter import MidiExporter

    resolved_output = output if output is not None else str(Path(abc_file).with_suffix(".mid"))
    abc_text = _read_abc(abc_file)

    if steps:
        if not target_key:
            click.echo("  ERROR: --to is required with --steps.", err=True)
            sys.exit(1)
        try:
            abc_text = transpose_or_raise(abc_text, steps, target_key)
        except TranspositionError as exc:
            click.echo(f"  ERROR: Transposition failed — {exc}", err=True)
            sys.exit(1)

    try:
        MidiExporter(tempo=tempo).export(abc_text, resolved_output)
    except (OSError, ValueError) as exc:
        click.echo(f"  ERROR: Could not write MIDI file — {exc}", err=True)
        sys.exit(1)

    click.echo(f"Done!  Open '{resolved_output}' in any MIDI player.")

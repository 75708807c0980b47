"""Command-line interface for Virtuoso.

Provides commands for:
- convert: Re-perform a recording on another instrument (WAV + MIDI)
- extract: Extract notes from a recording to MIDI
- render: Render an existing MIDI file on an instrument
- demo: Write (and optionally convert) the built-in test phrase
- info: Show audio file information
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .core import DEFAULT_OUTPUT_SR, NoteEvent

app = typer.Typer(
    name="virtuoso",
    help="Turn a monophonic recording into sax, violin or piano",
    rich_markup_mode="markdown",
)
console = Console()

SENSITIVITY_PRESETS = {
    "low": {"rms_gate": 0.04, "silence_threshold": 0.02},
    "medium": {"rms_gate": 0.02, "silence_threshold": 0.01},
    "high": {"rms_gate": 0.01, "silence_threshold": 0.005},
}


def _setup_logging(verbose: bool) -> None:
    """Route library logging through rich when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _extraction_config(sensitivity: str):
    from .transcription import ExtractionConfig

    key = sensitivity.lower()
    if key not in SENSITIVITY_PRESETS:
        console.print(f"[yellow]Unknown sensitivity '{sensitivity}', using 'medium'[/yellow]")
        key = "medium"
    return ExtractionConfig(**SENSITIVITY_PRESETS[key])


def _check_input(input_file: Path) -> None:
    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)


@app.command()
def convert(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, MP3, ...)"),
    instrument: str = typer.Option(
        "sax", "-i", "--instrument", help="Target instrument: sax/violin/piano"
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "-o", "--output-dir", help="Directory for the WAV and MIDI files"
    ),
    sample_rate: int = typer.Option(
        DEFAULT_OUTPUT_SR, "--sr", help="Output sample rate (Hz)"
    ),
    seed: int = typer.Option(0, "--seed", help="Seed for reverb and noise generation"),
    trim: bool = typer.Option(
        True, "--trim/--no-trim", help="Trim leading/trailing silence before analysis"
    ),
    sensitivity: str = typer.Option(
        "medium", "--sensitivity", "-s", help="Note detection sensitivity: low/medium/high"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
):
    """Re-perform a recording on another instrument.

    **Examples:**

        virtuoso convert solo.wav -i violin

        virtuoso convert solo.mp3 -i piano -o renders/
    """
    from .pipeline import ConversionPipeline

    _setup_logging(verbose)
    _check_input(input_file)

    output_dir = output_dir or input_file.parent
    try:
        pipeline = ConversionPipeline(
            instrument=instrument,
            output_sr=sample_rate,
            seed=seed,
            trim_silence=trim,
            extraction=_extraction_config(sensitivity),
        )
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
            disable=json_output,
        ) as progress:
            progress.add_task(f"Converting to {instrument}...", total=None)
            result = pipeline.run_file(str(input_file))
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    output_dir.mkdir(parents=True, exist_ok=True)
    wav_path = output_dir / f"{input_file.stem}_{result.instrument}.wav"
    wav_path.write_bytes(result.wav_bytes)

    midi_path = None
    if result.midi_bytes is not None:
        midi_path = output_dir / f"{input_file.stem}.mid"
        midi_path.write_bytes(result.midi_bytes)

    if json_output:
        summary = result.summary()
        summary["input"] = str(input_file)
        summary["wav"] = str(wav_path)
        summary["midi"] = str(midi_path) if midi_path else None
        console.print_json(data=summary)
        return

    console.print(f"  Detected {len(result.notes)} notes")
    if midi_path is None:
        console.print("[yellow]No pitched content detected; MIDI file not written[/yellow]")
    else:
        console.print(f"[blue]MIDI:[/blue] {midi_path}")
    console.print(f"[blue]Audio:[/blue] {wav_path}")
    if verbose and result.notes:
        _show_notes_table(result.notes)
    console.print("[green]Conversion complete![/green]")


@app.command()
def extract(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output MIDI file path"
    ),
    trim: bool = typer.Option(True, "--trim/--no-trim", help="Trim silence first"),
    sensitivity: str = typer.Option(
        "medium", "--sensitivity", "-s", help="Note detection sensitivity: low/medium/high"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Extract the melody of a recording to a MIDI file."""
    from .input import AudioLoader
    from .output import MidiEncoder
    from .transcription import MonophonicTranscriber

    _setup_logging(verbose)
    _check_input(input_file)

    if output is None:
        output = input_file.with_suffix(".mid")

    try:
        loader = AudioLoader()
        audio = loader.load(str(input_file))
        if trim:
            audio = loader.trim_silence(audio)
        console.print(f"[blue]Extracting notes:[/blue] {input_file}")
        notes = MonophonicTranscriber(_extraction_config(sensitivity)).transcribe(audio)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"  Detected {len(notes)} notes")
    if MidiEncoder().write(notes, str(output), track_label=input_file.stem) is None:
        console.print("[yellow]No pitched content detected; nothing to export[/yellow]")
        return

    _show_notes_table(notes)
    console.print(f"[green]Wrote {output}[/green]")


@app.command()
def render(
    notes_file: Path = typer.Argument(..., help="Input MIDI file"),
    instrument: str = typer.Option(
        "sax", "-i", "--instrument", help="Instrument: sax/violin/piano"
    ),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Output WAV path"),
    sample_rate: int = typer.Option(DEFAULT_OUTPUT_SR, "--sr", help="Output sample rate (Hz)"),
    seed: int = typer.Option(0, "--seed", help="Seed for reverb and noise generation"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Render a stored MIDI note file on an instrument."""
    from .input import load_note_events
    from .output import WavEncoder
    from .synthesis import get_synthesizer

    _setup_logging(verbose)
    _check_input(notes_file)

    try:
        synth = get_synthesizer(instrument)
        notes = load_note_events(str(notes_file))
    except (ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not notes:
        console.print("[yellow]MIDI file contains no notes[/yellow]")
        raise typer.Exit(1)

    try:
        buffer = synth.render(notes, sample_rate, max(n.end_time for n in notes), seed=seed)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if output is None:
        output = notes_file.with_name(f"{notes_file.stem}_{synth.name}.wav")
    WavEncoder().write(buffer, str(output))
    console.print(f"[green]Rendered {len(notes)} notes to {output}[/green]")


@app.command()
def demo(
    output: Path = typer.Option(
        Path("virtuoso_demo.wav"), "-o", "--output", help="Where to write the test phrase"
    ),
    sample_rate: int = typer.Option(DEFAULT_OUTPUT_SR, "--sr", help="Sample rate (Hz)"),
    instrument: Optional[str] = typer.Option(
        None, "-i", "--instrument", help="Also convert the phrase: sax/violin/piano"
    ),
    seed: int = typer.Option(0, "--seed", help="Seed for reverb and noise generation"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Write the built-in test phrase, optionally converting it.

    **Examples:**

        virtuoso demo

        virtuoso demo -i violin -o renders/demo.wav
    """
    from .demo import generate_demo_phrase
    from .output import WavEncoder
    from .pipeline import ConversionPipeline

    _setup_logging(verbose)

    try:
        phrase = generate_demo_phrase(sample_rate)
        pipeline = (
            ConversionPipeline(instrument=instrument, output_sr=sample_rate, seed=seed)
            if instrument
            else None
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    WavEncoder().write(phrase, str(output))
    console.print(f"[blue]Test phrase:[/blue] {output}")

    if pipeline is None:
        return

    result = pipeline.run(phrase)
    wav_path = output.with_name(f"{output.stem}_{result.instrument}.wav")
    wav_path.write_bytes(result.wav_bytes)
    console.print(f"  Detected {len(result.notes)} notes")
    console.print(f"[blue]Audio:[/blue] {wav_path}")
    if result.midi_bytes is not None:
        midi_path = output.with_suffix(".mid")
        midi_path.write_bytes(result.midi_bytes)
        console.print(f"[blue]MIDI:[/blue] {midi_path}")
    if verbose and result.notes:
        _show_notes_table(result.notes)


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    from .input import AudioLoader
    from .transcription import MonophonicTranscriber

    _check_input(input_file)

    try:
        loader = AudioLoader(mono=False)
        audio = loader.load(str(input_file))
        notes = MonophonicTranscriber().transcribe(audio.to_mono())
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {audio.duration:.2f} seconds")
    console.print(f"  Sample rate: {audio.sample_rate} Hz")
    console.print(f"  Channels: {audio.channels}")
    console.print(f"  Samples: {audio.n_frames:,}")
    console.print(f"  Peak: {audio.peak():.3f}")
    console.print(f"  Notes detected: {len(notes)}")


def _show_notes_table(notes: List[NoteEvent]):
    """Display notes in a table."""
    table = Table(title="Detected Notes")
    table.add_column("Pitch", style="cyan")
    table.add_column("Start (s)", style="green")
    table.add_column("Duration (s)", style="yellow")
    table.add_column("Velocity", style="magenta")

    for note in notes:
        table.add_row(
            note.pitch_name,
            f"{note.start_time:.3f}",
            f"{note.duration:.3f}",
            f"{note.velocity:.2f}",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()

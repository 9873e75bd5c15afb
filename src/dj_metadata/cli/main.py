#!/usr/bin/env python3
"""
DJ Metadata Toolkit - Command Line Interface

Inspects tags, Serato markers, VirtualDJ samples and fingerprints. This is
the only layer that touches the filesystem: files are read here and handed
to the codecs as bytes.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich import box

from .. import __version__
from ..audio.fingerprint_matcher import FingerprintMatcher
from ..audio.fingerprinting import Fingerprint
from ..core.config_manager import DJMetadataConfig, get_config_manager
from ..core.exceptions import DJMetadataError
from ..metadata.models import (
    BinaryContent,
    LyricsContent,
    LyricsImagesContent,
    LyricsIndicators,
    LyricsInfoContent,
    PictureContent,
    TagFormat,
    TextContent,
    UrlContent,
    UserDefinedContent,
)
from ..metadata.serato_markers import (
    SeratoAutoTags,
    SeratoBeatGrid,
    SeratoDecoder,
    SeratoLegacyMarkers,
    SeratoMarkers2,
    SeratoPlayCount,
    SeratoVersion,
    SeratoWaveform,
    UnknownMarkerEntry,
)
from ..metadata.tag_decoder import TagDecoder
from ..samples.vdj_sample import decode_sample, encode_sample
from ..utils.error_handler import handle_user_error


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper())

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Setup console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    # Setup root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Setup file handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="dj-metadata",
        description="Inspect DJ metadata: ID3/LYRICS3 tags, Serato markers, VirtualDJ samples, fingerprints"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"DJ Metadata Toolkit v{__version__}"
    )

    parser.add_argument(
        "files",
        nargs="+",
        help="Input file(s); fpmatch takes two fpcalc output files"
    )

    # Operation modes
    parser.add_argument(
        "--mode",
        choices=["tags", "serato", "sample", "fpmatch"],
        default="tags",
        help="Operation mode (default: tags)"
    )

    # Configuration
    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Project config file name inside config/ (JSON format)"
    )

    # Sample options
    parser.add_argument(
        "--extract-media",
        type=str,
        help="Write the embedded media of a sample to this path"
    )

    parser.add_argument(
        "--rewrite",
        type=str,
        help="Re-encode the sample to this path"
    )

    parser.add_argument(
        "--drop-path",
        action="store_true",
        help="Omit the embedded source path when rewriting a sample"
    )

    # Fingerprint options
    parser.add_argument(
        "--algorithm",
        choices=["offset", "simple"],
        help="Fingerprint comparison (default from config: offset)"
    )

    parser.add_argument(
        "--max-offset",
        type=int,
        help="Maximum alignment offset in fingerprint positions, 0 = unbounded"
    )

    parser.add_argument(
        "--no-sort-cues",
        action="store_true",
        help="Keep Serato cue markers in stored order"
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="Log file path"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show technical details on errors"
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output"
    )

    return parser


def validate_arguments(args: argparse.Namespace) -> bool:
    """Validate command line arguments."""
    if args.mode == "fpmatch" and len(args.files) != 2:
        context = {"user_input": True, "option": "--mode fpmatch (genau zwei Dateien)",
                   "value": f"{len(args.files)} Datei(en)"}
        print(handle_user_error(ValueError("fpmatch needs two files"), context, args.verbose), file=sys.stderr)
        return False

    if args.mode != "sample" and (args.extract_media or args.rewrite):
        context = {"user_input": True, "option": "--mode bei --extract-media/--rewrite", "value": args.mode}
        print(handle_user_error(ValueError("sample mode only"), context, args.verbose), file=sys.stderr)
        return False

    for file in args.files:
        path = Path(file)
        if not path.exists():
            print(f"Error: Input file does not exist: {file}", file=sys.stderr)
            return False
        if not path.is_file():
            print(f"Error: Input path is not a file: {file}", file=sys.stderr)
            return False

    return True


def _load_config(args: argparse.Namespace) -> Optional[DJMetadataConfig]:
    """Load and validate configuration from CLI arguments."""
    config_manager = get_config_manager()

    cli_overrides = {'ui': {'log_level': args.log_level, 'verbose_errors': args.verbose}}
    fingerprint = {}
    if args.algorithm:
        fingerprint['algorithm'] = args.algorithm
    if args.max_offset is not None:
        fingerprint['max_offset'] = args.max_offset
    if fingerprint:
        cli_overrides['fingerprint'] = fingerprint
    if args.no_sort_cues:
        cli_overrides['serato'] = {'sort_cues': False}
    if args.drop_path:
        cli_overrides['sample'] = {'drop_path': True}

    config = config_manager.load_config(project_config=args.config, cli_overrides=cli_overrides)

    config_issues = config_manager.validate_config(config)
    if config_issues:
        issues = "; ".join(config_issues)
        context = {"config_validation": True, "issues": issues}
        print(handle_user_error(ValueError(issues), context, args.verbose), file=sys.stderr)
        return None
    return config


def _describe_content(content) -> str:
    """One-line rendering of a frame's decoded content"""
    if isinstance(content, TextContent):
        return " / ".join(content.values) if len(content.values) > 1 else content.text
    if isinstance(content, UrlContent):
        return content.url
    if isinstance(content, UserDefinedContent):
        return f"{content.key} = {content.value}"
    if isinstance(content, PictureContent):
        return f"{content.mime}, {content.picture_type_name}, {len(content.data):,} bytes"
    if isinstance(content, LyricsIndicators):
        return (f"lyrics={content.has_lyrics} timestamps={content.has_timestamps} "
                f"inhibit random={content.inhibits_random}")
    if isinstance(content, LyricsContent):
        return f"{len(content.entries)} lyric entries"
    if isinstance(content, LyricsInfoContent):
        return " / ".join(content.lines)
    if isinstance(content, LyricsImagesContent):
        return ", ".join(image.filename for image in content.images)
    if isinstance(content, BinaryContent):
        return f"<{len(content.data):,} bytes>"
    return ""


def _describe_entry(entry) -> str:
    """One-line rendering of a Serato entry"""
    if isinstance(entry, SeratoVersion):
        return f"version {entry.version}"
    if isinstance(entry, SeratoAutoTags):
        return f"bpm {entry.bpm:.2f}, auto gain {entry.auto_gain:.3f}, {entry.db:.3f} dB"
    if isinstance(entry, SeratoMarkers2):
        color = entry.color.hex() if entry.color else "-"
        return f"{len(entry.cues)} cue(s), {len(entry.loops)} loop(s), color {color}"
    if isinstance(entry, SeratoBeatGrid):
        return f"{len(entry.beats)} beat marker(s), bpm {entry.bpm:.2f}"
    if isinstance(entry, SeratoWaveform):
        return f"{len(entry.samples)} samples"
    if isinstance(entry, SeratoLegacyMarkers):
        return f"{entry.count} legacy record(s)"
    if isinstance(entry, SeratoPlayCount):
        return f"played {entry.count} time(s)"
    if isinstance(entry, UnknownMarkerEntry):
        return f"unknown: {entry.description or '<unsupported encoding>'}"
    return ""


def run_tags_mode(args: argparse.Namespace, config: DJMetadataConfig, console: Console) -> int:
    """Run tags mode - list every tag container and its frames."""
    logger = logging.getLogger(__name__)
    decoder = TagDecoder.from_config(config.tags)
    exit_code = 0

    for file in args.files:
        data = Path(file).read_bytes()
        result = decoder.scan(data)
        logger.info(f"{file}: {len(result.containers)} tag container(s)")

        if not result.containers:
            console.print(f"⚠️  No tags found in {file}")

        for container in result.containers:
            table = Table(title=f"{Path(file).name} - {container.label} @ {container.file_offset}",
                          box=box.ROUNDED)
            table.add_column("Frame", style="cyan")
            table.add_column("Name")
            table.add_column("Size", justify="right")
            table.add_column("Content")
            for frame in container.frames:
                table.add_row(frame.frame_id, frame.name, f"{frame.size:,}",
                              escape(_describe_content(frame.content)))
            console.print(table)
            if container.padding:
                console.print(f"   Padding: {container.padding:,} bytes")

        for issue in result.issues:
            console.print(f"⚠️  {escape(str(issue))}")
        for error in result.errors:
            print(handle_user_error(error, {"file_path": file}, args.verbose), file=sys.stderr)
            if not result.containers:
                exit_code = 1

    return exit_code


def run_serato_mode(args: argparse.Namespace, config: DJMetadataConfig, console: Console) -> int:
    """Run serato mode - decode Serato entries of every ID3v2 container."""
    tag_decoder = TagDecoder.from_config(config.tags)
    serato_decoder = SeratoDecoder.from_config(config.serato)

    for file in args.files:
        result = tag_decoder.scan(Path(file).read_bytes())
        containers = result.by_format(TagFormat.ID3V2)
        if not containers:
            console.print(f"⚠️  No ID3v2 tag in {file}")
            continue

        for container in containers:
            serato = serato_decoder.scan(container)
            table = Table(title=f"{Path(file).name} - Serato", box=box.ROUNDED)
            table.add_column("Entry", style="cyan")
            table.add_column("Details")
            for entry in serato.entries:
                table.add_row(type(entry).__name__, _describe_entry(entry))
            console.print(table)

            for entry in serato.entries:
                if isinstance(entry, SeratoMarkers2):
                    _print_markers(entry, console)
            for issue in serato.issues:
                console.print(f"⚠️  {escape(str(issue))}")

    return 0


def _print_markers(entry: SeratoMarkers2, console: Console) -> None:
    table = Table(title="Cues and loops", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("Position")
    table.add_column("Color")
    table.add_column("Label")
    for cue in entry.cues:
        table.add_row(str(cue.index), "cue", f"{cue.position:.3f}s", cue.color.hex(), escape(cue.label))
    for loop in entry.loops:
        position = f"{loop.start:.3f}s - {loop.end:.3f}s"
        kind = "loop (locked)" if loop.locked else "loop"
        table.add_row(str(loop.index), kind, position, loop.color.hex(), escape(loop.label))
    console.print(table)


def run_sample_mode(args: argparse.Namespace, config: DJMetadataConfig, console: Console) -> int:
    """Run sample mode - show a VirtualDJ sample, optionally extract or rewrite it."""
    logger = logging.getLogger(__name__)
    file = args.files[0]
    sample = decode_sample(Path(file).read_bytes())

    table = Table(title=Path(file).name, show_header=False, box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Version", f"{sample.version:.2f}")
    table.add_row("Path", escape(sample.path) or "-")
    table.add_row("Media", f"{sample.media_type_name} ({sample.media_size:,} bytes)")
    table.add_row("Tracks", str(sample.tracks_name))
    table.add_row("Mode", f"{sample.mode_name} / {sample.loop_mode_name}")
    table.add_row("BPM", f"{sample.bpm:.2f}")
    table.add_row("Times", f"{sample.start_time:.3f}s - {sample.end_time:.3f}s "
                           f"of {sample.total_duration:.3f}s")
    table.add_row("Gain", f"{sample.gain:.4f} ({sample.gain_db:+.2f} dB)")
    table.add_row("Color", sample.transparency_color.hex())
    table.add_row("Key", f"{sample.key_name(config.sample.key_table) or '-'} ({sample.key_match_name})")
    table.add_row("Thumbnail", f"{sample.thumbnail_size:,} bytes" if sample.thumbnail else "-")
    console.print(table)

    for issue in sample.issues:
        console.print(f"⚠️  {escape(str(issue))}")

    if args.extract_media:
        Path(args.extract_media).write_bytes(sample.media)
        console.print(f"✅ Media written to {args.extract_media}")
        logger.info(f"Extracted {sample.media_size} bytes of media to {args.extract_media}")

    if args.rewrite:
        Path(args.rewrite).write_bytes(encode_sample(sample, drop_path=config.sample.drop_path))
        console.print(f"✅ Sample written to {args.rewrite}")

    return 0


def run_fpmatch_mode(args: argparse.Namespace, config: DJMetadataConfig, console: Console) -> int:
    """Run fpmatch mode - score two fingerprints."""
    fingerprints = [
        Fingerprint.from_text(Path(file).read_text(encoding="utf-8"), source=file)
        for file in args.files
    ]
    matcher = FingerprintMatcher.from_config(config.fingerprint)
    score = matcher.score(*fingerprints)

    console.print(f"Score ({matcher.algorithm}): {score:.4f}")
    if score >= matcher.match_threshold:
        console.print("✅ Fingerprints match")
    else:
        console.print("❌ Fingerprints do not match")
    return 0


MODES = {
    "tags": run_tags_mode,
    "serato": run_serato_mode,
    "sample": run_sample_mode,
    "fpmatch": run_fpmatch_mode,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    # Create and parse arguments
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level, args.log_file)
    logger = logging.getLogger(__name__)

    # Validate arguments
    if not validate_arguments(args):
        return 1

    logger.info(f"DJ Metadata Toolkit v{__version__} starting...")
    logger.info(f"Mode: {args.mode}")

    try:
        config = _load_config(args)
        if config is None:
            return 1

        console = Console(no_color=args.no_color or not config.ui.color_output)
        return MODES[args.mode](args, config, console)

    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user", file=sys.stderr)
        return 130
    except (DJMetadataError, OSError) as e:
        logger.debug("Operation failed", exc_info=True)
        print(handle_user_error(e, {"file_path": args.files[0]}, args.verbose), file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Unexpected error occurred")
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

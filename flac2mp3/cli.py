"""Command line parsing for the conversion hook."""

from __future__ import annotations

import argparse
import re
import shlex
import sys
from dataclasses import dataclass
from enum import Enum

from . import __version__
from .errors import MissingFileArgumentError, UnknownOptionError, UsageError

PROG = "flac2mp3"
DEFAULT_BITRATE = "320k"
DEFAULT_EXTENSION = ".mp3"
DEFAULT_REGEX = r"\.flac$"

EXAMPLES = f"""\
Examples:
  {PROG} -b 320k           # Output 320 kbit/s MP3 (non-VBR; same as default behavior)
  {PROG} -v 0              # Output variable bitrate MP3, VBR 220-260 kbit/s
  {PROG} -d -b 160k        # Enable debugging level 1 and output a 160 kbit/s MP3
  {PROG} -a "-vn -c:a libopus -b:a 192K" -e .opus
                           # Convert to Opus format, VBR 192 kbit/s, no cover art
  {PROG} -a "-vn -c:a libopus -b:a 192K" -e .opus -r '\\.mp3$'
                           # Convert .mp3 files to Opus format
  {PROG} -f "/path/to/audio/a-ha/Hunting High and Low/01 Take on Me.flac"
                           # Batch mode, output 320 kbit/s MP3
  {PROG} -o "/path/to/audio" -k
                           # Place converted files in the given directory and
                             keep the original audio files
"""


class RateMode(Enum):
    BITRATE = "bitrate"
    QUALITY = "quality"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class RunConfig:
    """Validated command line options for one hook run."""

    debug: int = 0
    rate_mode: RateMode = RateMode.BITRATE
    bitrate: str | None = DEFAULT_BITRATE
    quality: int | None = None
    advanced: str | None = None
    extension: str = DEFAULT_EXTENSION
    output_dir: str | None = None
    regex: str = DEFAULT_REGEX
    keep: bool = False
    batch_file: str | None = None

    @property
    def is_batch(self) -> bool:
        return self.batch_file is not None

    @property
    def advanced_args(self) -> list[str]:
        """Return the advanced encoder options split into discrete tokens."""
        return shlex.split(self.advanced) if self.advanced else []

    @property
    def rate_description(self) -> str:
        if self.rate_mode is RateMode.QUALITY:
            return str(self.quality)
        return self.bitrate or ""


class HookArgumentParser(argparse.ArgumentParser):
    """Parser raising :class:`UsageError` instead of exiting."""

    def error(self, message):  # noqa: D401
        raise UsageError(message)


def build_parser() -> HookArgumentParser:
    parser = HookArgumentParser(
        prog=PROG,
        description="Audio conversion script designed for use with Lidarr",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
        exit_on_error=False,
    )
    parser.add_argument(
        "-d", "--debug", nargs="?", const="1", default=None, metavar="LEVEL",
        help="enable debug logging; level is optional, default of 1 (low)",
    )
    parser.add_argument(
        "-b", "--bitrate",
        help=f"set output quality in constant bits per second [default: {DEFAULT_BITRATE}]",
    )
    parser.add_argument(
        "-v", "--quality",
        help="set variable bitrate; quality between 0-9, 0 is highest quality",
    )
    parser.add_argument(
        "-a", "--advanced", metavar='"OPTIONS"',
        help="advanced ffmpeg options enclosed in quotes; replaces all defaults "
        "and requires -e",
    )
    parser.add_argument(
        "-e", "--extension",
        help="file extension for output file, with or without dot; required with -a",
    )
    parser.add_argument(
        "-f", "--file", dest="batch_file", metavar="AUDIO_FILE",
        help="batch mode, using the specified audio file as input",
    )
    parser.add_argument(
        "-o", "--output", metavar="DIRECTORY",
        help="directory for the converted audio file(s); created if missing",
    )
    parser.add_argument(
        "-k", "--keep-file", dest="keep", action="store_true",
        help="do not delete or recycle the source file; also disables the Lidarr rescan",
    )
    parser.add_argument(
        "-r", "--regex", help=f"regex to match input files to convert [default: {DEFAULT_REGEX}]"
    )
    parser.add_argument("--help", action="store_true", help="display this help and exit")
    parser.add_argument("--version", action="store_true", help="display version and exit")
    return parser


def _join_advanced(argv: list[str]) -> list[str]:
    """Bind the value following ``-a`` to it even when it starts with a dash."""
    result: list[str] = []
    args = iter(argv)
    for arg in args:
        if arg in ("-a", "--advanced"):
            value = next(args, None)
            if not value:
                raise UsageError(f"Invalid option: {arg} requires an argument.")
            result.append(f"--advanced={value}")
        else:
            result.append(arg)
    return result


def parse_args(argv: list[str] | None = None) -> RunConfig:
    """Parse *argv* into a :class:`RunConfig`.

    ``--help`` and ``--version`` print to standard error and standard output
    respectively and raise :class:`SystemExit` with status 0.
    """
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    try:
        args, extras = parser.parse_known_args(_join_advanced(list(argv)))
    except argparse.ArgumentError as exc:
        if exc.argument_name == "-f/--file":
            raise MissingFileArgumentError(
                f"Invalid option: {exc.argument_name} requires an argument."
            ) from exc
        raise UsageError(str(exc)) from exc

    if args.help:
        parser.print_help(sys.stderr)
        parser.exit(0)
    if args.version:
        print(f"{PROG} {__version__}")
        parser.exit(0)

    # bare positional tokens are ignored
    unknown = [arg for arg in extras if arg.startswith("-")]
    if unknown:
        raise UnknownOptionError(f"Unknown option: {unknown[0]}")

    return _validate(args)


def _validate(args: argparse.Namespace) -> RunConfig:
    if args.batch_file == "":
        raise MissingFileArgumentError("Invalid option: -f/--file requires an argument.")
    for flag, value in (("-b", args.bitrate), ("-v", args.quality), ("-e", args.extension),
                        ("-o", args.output), ("-r", args.regex)):
        if value == "":
            raise UsageError(f"Invalid option: {flag} requires an argument.")

    if args.bitrate is not None and args.quality is not None:
        raise UsageError("Both -b and -v options cannot be set at the same time.")
    if (args.advanced or args.extension) and (args.bitrate or args.quality):
        raise UsageError(
            "The -a and -e options cannot be set at the same time as either -v or -b options."
        )
    if bool(args.advanced) != bool(args.extension):
        raise UsageError("The -a and -e options must be specified together.")

    debug = 0
    if args.debug is not None:
        debug = int(args.debug) if args.debug.isdigit() else 1

    quality = None
    if args.quality is not None:
        if not re.fullmatch(r"[0-9]", args.quality):
            raise UsageError(f"Invalid quality '{args.quality}': must be between 0 and 9.")
        quality = int(args.quality)

    extension = DEFAULT_EXTENSION
    if args.extension:
        extension = args.extension if args.extension.startswith(".") else f".{args.extension}"
        if extension == "." or "/" in extension:
            raise UsageError(f"Invalid file extension '{args.extension}'.")

    if args.advanced:
        try:
            shlex.split(args.advanced)
        except ValueError as exc:
            raise UsageError(f"Unable to parse advanced options '{args.advanced}': {exc}") from exc
        rate_mode = RateMode.ADVANCED
        bitrate = None
    elif quality is not None:
        rate_mode = RateMode.QUALITY
        bitrate = None
    else:
        rate_mode = RateMode.BITRATE
        bitrate = args.bitrate or DEFAULT_BITRATE

    output_dir = args.output
    if output_dir and not output_dir.endswith("/"):
        output_dir += "/"

    return RunConfig(
        debug=debug,
        rate_mode=rate_mode,
        bitrate=bitrate,
        quality=quality,
        advanced=args.advanced,
        extension=extension,
        output_dir=output_dir,
        regex=args.regex or DEFAULT_REGEX,
        keep=args.keep,
        batch_file=args.batch_file,
    )


def usage() -> str:
    return build_parser().format_help()

"""Exceptions raised by the conversion hook.

Every fatal condition maps to a distinct process exit code which
:func:`flac2mp3.run.main` returns to the caller.
"""

from __future__ import annotations


class Flac2Mp3Error(Exception):
    """Base class for fatal errors."""

    exit_code = 20

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class UsageError(Flac2Mp3Error):
    """Invalid command line value or conflicting flags."""

    exit_code = 3


class MissingFileArgumentError(UsageError):
    exit_code = 1


class UnknownOptionError(UsageError):
    exit_code = 20


class EncoderNotFoundError(Flac2Mp3Error):
    exit_code = 2


class InputFileNotFoundError(Flac2Mp3Error):
    exit_code = 5


class OutputDirectoryError(Flac2Mp3Error):
    exit_code = 6


class UnknownTriggerError(Flac2Mp3Error):
    exit_code = 7


class ConversionError(Flac2Mp3Error):
    """The conversion loop itself failed, as opposed to a single track."""

    exit_code = 10

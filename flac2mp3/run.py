"""Entry point wiring the conversion hook together.

The hook runs once per Lidarr import event (or once per file in batch mode):
it converts the imported tracks, removes or recycles the originals and asks
Lidarr to rescan the artist so the new files are picked up.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path
from typing import Mapping

from .api import ApiError, JobStatus, LidarrClient
from .cli import RateMode, RunConfig, parse_args, usage
from .config import ConfigManager, ConfigurationError, Settings
from .converter import convert_tracks
from .errors import (
    ConversionError,
    EncoderNotFoundError,
    Flac2Mp3Error,
    InputFileNotFoundError,
    OutputDirectoryError,
    UnknownTriggerError,
    UsageError,
)
from .host_config import HostConnection, load_host_connection
from .logging_setup import setup_logging
from .trigger import BatchTrigger, HostTrigger, Trigger, UnknownTrigger, detect_trigger

logger = logging.getLogger(__name__)

CONSOLE = {"console": True}


def _connect(
    connection: HostConnection, run_config: RunConfig, settings: Settings
) -> tuple[LidarrClient, str]:
    """Create an API client and return it with the Lidarr recycle bin."""
    client = LidarrClient(connection, timeout=settings.api_timeout, debug=run_config.debug)

    try:
        version = client.get_version()
        logger.debug("Detected Lidarr version %s", version)
    except ApiError as exc:
        logger.error("Unable to get Lidarr version: %s", exc)

    try:
        recycle_bin = client.get_recycle_bin()
        logger.debug("Detected Lidarr RecycleBin '%s'", recycle_bin)
    except ApiError as exc:
        logger.error("Unable to get Lidarr RecycleBin: %s", exc)
        recycle_bin = ""

    return client, recycle_bin


def _banner(trigger: Trigger, run_config: RunConfig) -> str:
    message = f"Lidarr event: {trigger.event_type}"
    if isinstance(trigger, HostTrigger):
        message += (
            f", Artist: {trigger.artist_name} ({trigger.artist_id}),"
            f" Album: {trigger.album_title} ({trigger.album_id})"
        )
    if run_config.rate_mode is RateMode.ADVANCED:
        message += f", Advanced options: '{run_config.advanced}', File extension: {run_config.extension}"
    else:
        message += f", Export bitrate: {run_config.rate_description}"
    if run_config.output_dir:
        message += f", Output: {run_config.output_dir}"
    if run_config.keep:
        message += ", Keep source"
    message += f", Matching regex: '{run_config.regex}'"
    message += f", Track(s): {'|'.join(trigger.tracks)}"
    return message


def _rescan(trigger: Trigger, run_config: RunConfig, settings: Settings, client: LidarrClient | None) -> None:
    """Ask Lidarr to rescan the artist and wait for the job to finish."""
    if isinstance(trigger, BatchTrigger):
        logger.debug("Cannot use API in batch mode.")
        return
    if run_config.keep:
        logger.info("Original audio file(s) kept, no rescan performed.")
        return
    if client is None:
        logger.warning("Unable to determine Lidarr API URL.")
        return
    if not trigger.artist_id:
        logger.warning("Missing environment variable %s_artist_id", trigger.source)
        return

    logger.info("Calling Lidarr API to rescan artist")
    try:
        job_id = client.trigger_rescan(trigger.artist_id)
    except ApiError as exc:
        logger.error("The 'RefreshArtist' API with artist %s failed: %s", trigger.artist_id, exc)
        return

    status = client.wait_for_command(job_id, retries=settings.rescan_retries, delay=settings.rescan_delay)
    if status is not JobStatus.COMPLETED:
        logger.warning("Lidarr job ID %s timed out or failed (%s).", job_id, status.value)


def run(run_config: RunConfig, settings: Settings, environ: Mapping[str, str] | None = None) -> int:
    """Execute one hook run and return the process exit code.

    Fatal conditions raise :class:`~flac2mp3.errors.Flac2Mp3Error`.
    """
    started = time.monotonic()
    environ = os.environ if environ is None else environ

    if not Path(settings.ffmpeg_path).is_file():
        raise EncoderNotFoundError(f"{settings.ffmpeg_path} is required by this script")

    trigger = detect_trigger(run_config, environ)
    if isinstance(trigger, UnknownTrigger):
        raise UnknownTriggerError(
            f"Unknown or missing 'lidarr_eventtype' environment variable: {trigger.source or ''}. "
            "Not called within Lidarr? Try using Batch Mode option: -f <file>"
        )

    if run_config.debug >= 1:
        logger.debug(
            "Enabling debug logging level %d. Starting %s run.",
            run_config.debug, trigger.event_type[:1].upper() + trigger.event_type[1:], extra=CONSOLE,
        )
    if run_config.debug >= 2:
        for name in sorted(environ):
            logger.debug("%s=%s", name, environ[name])

    client = None
    recycle_bin = ""
    if isinstance(trigger, BatchTrigger):
        logger.debug("Switching to batch mode. Input filename: %s", run_config.batch_file)
        logger.debug("Not using config file in batch mode.")
    else:
        connection = load_host_connection(settings.host_config_file)
        if connection is not None:
            client, recycle_bin = _connect(connection, run_config, settings)

    if isinstance(trigger, HostTrigger) and trigger.is_test:
        logger.info("Lidarr event: %s", trigger.event_type)
        logger.info("Script was test executed successfully.", extra=CONSOLE)
        return 0

    if isinstance(trigger, BatchTrigger) and not Path(run_config.batch_file).is_file():
        raise InputFileNotFoundError(f"Input file not found: \"{run_config.batch_file}\"")

    if run_config.output_dir and not Path(run_config.output_dir).is_dir():
        logger.debug("Destination directory does not exist. Creating: %s", run_config.output_dir)
        try:
            Path(run_config.output_dir).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputDirectoryError(f"Unable to create output directory: {exc}") from exc

    logger.info(_banner(trigger, run_config))

    try:
        convert_tracks(trigger.tracks, run_config, settings, recycle_bin)
    except OSError as exc:
        raise ConversionError(f"Script exited abnormally. File permissions issue? {exc}") from exc

    _rescan(trigger, run_config, settings, client)

    elapsed = int(time.monotonic() - started)
    logger.info("Completed in %dm %ds", elapsed // 60, elapsed % 60)
    return 0


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    environ = os.environ if environ is None else environ
    try:
        run_config = parse_args(argv)
    except UsageError as exc:
        print(f"Error|{exc}", file=sys.stderr)
        print(usage(), file=sys.stderr)
        return exc.exit_code

    try:
        manager = ConfigManager(environ)
        settings = manager.settings
        setup_logging(settings, run_config.debug)
    except ConfigurationError as exc:
        print(f"Error|{exc}", file=sys.stderr)
        return exc.exit_code
    except OSError as exc:
        print(f"Error|Unable to open log file: {exc}", file=sys.stderr)
        return Flac2Mp3Error.exit_code

    for message in manager.warnings:
        logger.warning(message)
    if run_config.debug >= 2:
        logger.debug("Settings: %s", manager.to_dict())

    try:
        return run(run_config, settings, environ)
    except Flac2Mp3Error as exc:
        logger.error("%s", exc)
        return exc.exit_code


if __name__ == "__main__":
    sys.exit(main())

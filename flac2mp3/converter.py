"""Audio conversion helpers."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .cli import RateMode, RunConfig
from .config import Settings
from .errors import ConversionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackJob:
    """A source track paired with the path it is converted to."""

    source: Path
    output: Path


@dataclass
class ConversionSummary:
    converted: int = 0
    failed: int = 0
    skipped: int = 0


def ffmpeg_loglevel(debug: int) -> str:
    """Return the ``ffmpeg -loglevel`` value for a debug level."""
    if debug <= 0:
        return "error"
    if debug == 1:
        return "warning"
    return "info"


def output_path_for(track: str | Path, extension: str, output_dir: str | None = None) -> Path:
    """Return the converted file path for *track*.

    The last extension of the file name is replaced with *extension*. With
    *output_dir* the directory part is replaced and the file name kept.
    """
    path = Path(track)
    new_name = path.with_suffix(extension).name
    if output_dir:
        return Path(output_dir) / new_name
    return path.with_name(new_name)


def encoder_options(run_config: RunConfig) -> list[str]:
    """Return the encoder options placed between the input and output paths."""
    if run_config.rate_mode is RateMode.ADVANCED:
        return run_config.advanced_args
    if run_config.rate_mode is RateMode.QUALITY:
        rate = ["-q:a", str(run_config.quality)]
    else:
        rate = ["-b:a", run_config.bitrate]
    return [
        "-c:v", "copy",
        "-map", "0",
        "-y",
        "-acodec", "libmp3lame",
        *rate,
        "-write_id3v1", "1",
        "-id3v2_version", "3",
    ]


def build_command(job: TrackJob, run_config: RunConfig, settings: Settings) -> list[str]:
    """Return the full argument vector converting *job*."""
    return [
        settings.nice_path,
        str(settings.ffmpeg_path),
        "-loglevel", ffmpeg_loglevel(run_config.debug),
        "-nostdin",
        "-i", str(job.source),
        *encoder_options(run_config),
        str(job.output),
    ]


def convert_audio(job: TrackJob, run_config: RunConfig, settings: Settings) -> bool:
    """Run the encoder for *job* and return ``True`` on a zero exit code."""
    cmd = build_command(job, run_config, settings)
    logger.debug("Executing: %s", subprocess.list2cmdline(cmd))
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        logger.error("Unable to run encoder converting \"%s\": %s", job.source, exc)
        return False
    for line in (result.stdout or "").splitlines():
        if line.strip():
            logger.info("ffmpeg: %s", line)
    if run_config.debug >= 2:
        logger.debug("ffmpeg exited")
    if result.returncode != 0:
        logger.error("Exit code %d converting \"%s\"", result.returncode, job.source)
        return False
    return True


def copy_ownership(src: Path, dest: Path) -> None:
    """Give *dest* the owner, group and permission bits of *src*."""
    st = src.stat()
    try:
        os.chown(dest, st.st_uid, st.st_gid)
    except PermissionError as exc:
        logger.warning("Unable to set ownership on \"%s\": %s", dest, exc)
    shutil.copymode(src, dest)


def recycle_path_for(track: Path, recycle_bin: str) -> Path:
    """Return the recycle bin directory mirroring *track* below its top-level directory.

    ``/music/Artist/Album/01.flac`` with a recycle bin of ``/recycle`` gives
    ``/recycle/Artist/Album``.
    """
    parts = track.parent.parts
    if track.is_absolute():
        parts = parts[1:]
    relative = parts[1:]
    return Path(recycle_bin).joinpath(*relative)


def _output_ready(job: TrackJob) -> bool:
    """Only touch the source when the output is non-empty and the source still exists."""
    if not job.output.is_file() or job.output.stat().st_size == 0:
        logger.warning("Converted file \"%s\" is missing or empty; leaving source untouched", job.output)
        return False
    if not job.source.is_file():
        logger.warning("Source file \"%s\" no longer exists", job.source)
        return False
    return True


def apply_post_action(job: TrackJob, keep: bool, recycle_bin: str = "") -> bool:
    """Copy ownership to the output and keep, delete or recycle the source.

    Returns ``True`` if the action completed.
    """
    if keep:
        logger.debug("Keeping original: \"%s\" and setting permissions on \"%s\"", job.source, job.output)
        if not _output_ready(job):
            return False
        copy_ownership(job.source, job.output)
        return True

    if not recycle_bin:
        logger.debug("Deleting: \"%s\" and setting permissions on \"%s\"", job.source, job.output)
        if not _output_ready(job):
            return False
        copy_ownership(job.source, job.output)
        job.source.unlink()
        return True

    recycle_dir = recycle_path_for(job.source, recycle_bin)
    logger.debug(
        "Recycling: \"%s\" to \"%s\" and setting permissions on \"%s\"",
        job.source, recycle_dir, job.output,
    )
    recycle_dir.mkdir(parents=True, exist_ok=True)
    if not _output_ready(job):
        return False
    copy_ownership(job.source, job.output)
    shutil.move(str(job.source), str(recycle_dir / job.source.name))
    return True


def log_rate_mode(run_config: RunConfig) -> None:
    if run_config.rate_mode is RateMode.BITRATE:
        logger.debug("Using constant bitrate of %s", run_config.bitrate)
    elif run_config.rate_mode is RateMode.QUALITY:
        logger.debug("Using variable quality of %s", run_config.quality)
    else:
        logger.debug("Using advanced ffmpeg options: \"%s\"", run_config.advanced)
        logger.debug("Exporting with file extension %s", run_config.extension)


def convert_tracks(
    tracks: list[str],
    run_config: RunConfig,
    settings: Settings,
    recycle_bin: str = "",
) -> ConversionSummary:
    """Convert every track in *tracks* matching the configured pattern.

    Failures of individual tracks are logged and counted; only a failure of
    the loop itself (such as an invalid pattern) raises
    :class:`~flac2mp3.errors.ConversionError`.
    """
    try:
        pattern = re.compile(run_config.regex, re.IGNORECASE)
    except re.error as exc:
        raise ConversionError(f"Invalid regex '{run_config.regex}': {exc}") from exc

    log_rate_mode(run_config)
    summary = ConversionSummary()
    for track in tracks:
        if not pattern.search(track):
            summary.skipped += 1
            continue

        job = TrackJob(Path(track), output_path_for(track, run_config.extension, run_config.output_dir))
        logger.info("Writing: %s", job.output)
        if not convert_audio(job, run_config, settings):
            summary.failed += 1
            continue

        try:
            done = apply_post_action(job, run_config.keep, recycle_bin)
        except OSError as exc:
            logger.error("Post-conversion step failed for \"%s\": %s", job.source, exc)
            done = False
        if done:
            summary.converted += 1
        else:
            summary.failed += 1

    logger.info(
        "Conversion finished: %d converted, %d failed, %d skipped",
        summary.converted, summary.failed, summary.skipped,
    )
    return summary

"""Determine how the hook was invoked.

Lidarr passes event details through environment variables prefixed with the
source name, e.g. ``lidarr_eventtype`` and ``lidarr_addedtrackpaths``.  When
``-f`` is given on the command line the environment is ignored and the hook
runs in batch mode on that single file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Union

from .cli import RunConfig

SUPPORTED_SOURCES = {"lidarr"}
TRACK_SEPARATOR = "|"


@dataclass(frozen=True)
class BatchTrigger:
    """Explicit invocation on a file given with ``-f``."""

    tracks: list[str]
    event_type: str = "Convert"


@dataclass(frozen=True)
class HostTrigger:
    """Invocation by the host application after an import event."""

    source: str
    event_type: str
    tracks: list[str] = field(default_factory=list)
    artist_id: str | None = None
    artist_name: str | None = None
    album_id: str | None = None
    album_title: str | None = None

    @property
    def is_test(self) -> bool:
        return self.event_type == "Test"


@dataclass(frozen=True)
class UnknownTrigger:
    """Neither batch mode nor a recognised host event."""

    source: str | None


Trigger = Union[BatchTrigger, HostTrigger, UnknownTrigger]


def find_event_source(environ: Mapping[str, str]) -> str | None:
    """Return the prefix of the first ``*_eventtype`` variable in *environ*."""
    for name in sorted(environ):
        if name.lower().endswith("_eventtype"):
            return name[: -len("_eventtype")]
    return None


def split_tracks(value: str | None) -> list[str]:
    """Split a ``|`` separated track list, dropping empty entries."""
    if not value:
        return []
    return [track for track in value.split(TRACK_SEPARATOR) if track]


def detect_trigger(run_config: RunConfig, environ: Mapping[str, str]) -> Trigger:
    """Return the trigger context for this run."""
    if run_config.is_batch:
        return BatchTrigger(tracks=[run_config.batch_file])

    source = find_event_source(environ)
    if source is None or source.lower() not in SUPPORTED_SOURCES:
        return UnknownTrigger(source)

    def env(suffix: str) -> str | None:
        return environ.get(f"{source}_{suffix}") or None

    tracks = split_tracks(env("addedtrackpaths")) or split_tracks(env("trackfile_path"))
    return HostTrigger(
        source=source,
        event_type=environ.get(f"{source}_eventtype", ""),
        tracks=tracks,
        artist_id=env("artist_id"),
        artist_name=env("artist_name"),
        album_id=env("album_id"),
        album_title=env("album_title"),
    )

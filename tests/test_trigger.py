from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from flac2mp3.cli import parse_args
from flac2mp3 import trigger


def test_batch_overrides_environment():
    env = {"lidarr_eventtype": "AlbumDownload", "lidarr_addedtrackpaths": "/m/a.flac"}
    result = trigger.detect_trigger(parse_args(["-f", "/m/b.flac"]), env)
    assert isinstance(result, trigger.BatchTrigger)
    assert result.tracks == ["/m/b.flac"]
    assert result.event_type == "Convert"


def test_host_trigger_reads_environment():
    env = {
        "lidarr_eventtype": "AlbumDownload",
        "lidarr_addedtrackpaths": "/m/a.flac|/m/b.flac",
        "lidarr_artist_id": "12",
        "lidarr_artist_name": "a-ha",
        "lidarr_album_id": "34",
        "lidarr_album_title": "Hunting High and Low",
        "PATH": "/usr/bin",
    }
    result = trigger.detect_trigger(parse_args([]), env)
    assert isinstance(result, trigger.HostTrigger)
    assert result.source == "lidarr"
    assert result.tracks == ["/m/a.flac", "/m/b.flac"]
    assert result.artist_id == "12"
    assert result.album_title == "Hunting High and Low"
    assert not result.is_test


def test_host_trigger_falls_back_to_trackfile_path():
    env = {"lidarr_eventtype": "TrackRetag", "lidarr_trackfile_path": "/m/c.flac"}
    result = trigger.detect_trigger(parse_args([]), env)
    assert result.tracks == ["/m/c.flac"]


def test_test_event():
    result = trigger.detect_trigger(parse_args([]), {"lidarr_eventtype": "Test"})
    assert result.is_test
    assert result.tracks == []


def test_unknown_source():
    result = trigger.detect_trigger(parse_args([]), {"sonarr_eventtype": "Download"})
    assert isinstance(result, trigger.UnknownTrigger)
    assert result.source == "sonarr"


def test_missing_event_type():
    result = trigger.detect_trigger(parse_args([]), {"HOME": "/root"})
    assert isinstance(result, trigger.UnknownTrigger)
    assert result.source is None


def test_split_tracks():
    assert trigger.split_tracks("a|b||c") == ["a", "b", "c"]
    assert trigger.split_tracks("") == []
    assert trigger.split_tracks(None) == []

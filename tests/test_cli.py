import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from flac2mp3 import __version__
from flac2mp3.cli import RateMode, parse_args
from flac2mp3.errors import MissingFileArgumentError, UnknownOptionError, UsageError


def test_defaults_to_constant_bitrate():
    config = parse_args([])
    assert config.rate_mode is RateMode.BITRATE
    assert config.bitrate == "320k"
    assert config.quality is None
    assert config.advanced is None
    assert config.extension == ".mp3"
    assert config.regex == r"\.flac$"
    assert config.debug == 0
    assert not config.keep
    assert not config.is_batch


def test_bitrate_and_quality():
    assert parse_args(["-b", "160k"]).bitrate == "160k"
    config = parse_args(["--quality", "0"])
    assert config.rate_mode is RateMode.QUALITY
    assert config.quality == 0
    assert config.bitrate is None


@pytest.mark.parametrize(
    "argv",
    [
        ["-b", "320k", "-v", "2"],
        ["-v", "2", "-b", "320k"],
        ["-b", "320k", "-a", "-c:a libopus", "-e", ".opus"],
        ["-a", "-c:a libopus", "-e", ".opus", "-v", "3"],
        ["-e", ".opus", "-b", "128k"],
    ],
)
def test_rate_modes_are_exclusive(argv):
    with pytest.raises(UsageError) as exc:
        parse_args(argv)
    assert exc.value.exit_code == 3


def test_advanced_requires_extension():
    with pytest.raises(UsageError, match="together"):
        parse_args(["-a", "-c:a libopus"])
    with pytest.raises(UsageError, match="together"):
        parse_args(["-e", "opus"])


def test_advanced_value_may_start_with_dash():
    config = parse_args(["-a", "-vn -c:a libopus -b:a 192K", "-e", "opus"])
    assert config.rate_mode is RateMode.ADVANCED
    assert config.advanced == "-vn -c:a libopus -b:a 192K"
    assert config.advanced_args == ["-vn", "-c:a", "libopus", "-b:a", "192K"]
    assert config.bitrate is None


def test_advanced_with_unbalanced_quotes_is_rejected():
    with pytest.raises(UsageError):
        parse_args(["-a", '-metadata "title=x', "-e", ".mp3"])


@pytest.mark.parametrize("ext", ["opus", ".opus"])
def test_extension_gets_leading_dot(ext):
    assert parse_args(["-a", "-c:a libopus", "-e", ext]).extension == ".opus"


@pytest.mark.parametrize("quality", ["10", "-1", "x"])
def test_quality_range(quality):
    with pytest.raises(UsageError):
        parse_args(["-v", quality])


def test_debug_level():
    assert parse_args(["-d"]).debug == 1
    assert parse_args(["--debug", "3"]).debug == 3
    config = parse_args(["-d", "-b", "160k"])
    assert config.debug == 1
    assert config.bitrate == "160k"


def test_debug_ignores_non_numeric_token():
    assert parse_args(["-d", "stray"]).debug == 1


def test_output_dir_gets_trailing_slash():
    assert parse_args(["-o", "/out"]).output_dir == "/out/"
    assert parse_args(["-o", "/out/"]).output_dir == "/out/"


def test_batch_file_and_keep():
    config = parse_args(["-f", "/music/a.flac", "-k", "-r", r"\.mp3$"])
    assert config.is_batch
    assert config.batch_file == "/music/a.flac"
    assert config.keep
    assert config.regex == r"\.mp3$"


def test_file_without_value():
    with pytest.raises(MissingFileArgumentError) as exc:
        parse_args(["-f"])
    assert exc.value.exit_code == 1


def test_missing_value():
    with pytest.raises(UsageError) as exc:
        parse_args(["-b"])
    assert exc.value.exit_code == 3


def test_unknown_option():
    with pytest.raises(UnknownOptionError) as exc:
        parse_args(["--bogus"])
    assert exc.value.exit_code == 20


def test_positional_tokens_ignored():
    assert parse_args(["stray", "-b", "256k", "other"]).bitrate == "256k"


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        parse_args(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_help(capsys):
    with pytest.raises(SystemExit) as exc:
        parse_args(["--help"])
    assert exc.value.code == 0
    assert "--keep-file" in capsys.readouterr().err

"""Lidarr post-processing hook converting lossless audio to a lossy format."""

__version__ = "2.0.0"

__all__ = [
    "api",
    "cli",
    "config",
    "converter",
    "errors",
    "host_config",
    "logging_setup",
    "run",
    "trigger",
]

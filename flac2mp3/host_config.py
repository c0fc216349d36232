"""Read the Lidarr ``config.xml`` for the API connection details."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

FIELDS = ("Port", "UrlBase", "BindAddress", "ApiKey")


@dataclass(frozen=True)
class HostConnection:
    """Connection details for the Lidarr API."""

    url: str
    api_key: str
    recycle_bin: str = ""


def read_host_values(path: Path | str) -> dict[str, str]:
    """Return the scalar ``Port``, ``UrlBase``, ``BindAddress`` and ``ApiKey`` values.

    The document is streamed; the first occurrence of each element wins and
    parsing stops once all four have been seen.
    """
    values: dict[str, str] = {}
    for _event, elem in ET.iterparse(str(path), events=("end",)):
        if elem.tag in FIELDS and elem.tag not in values:
            values[elem.tag] = (elem.text or "").strip()
            if len(values) == len(FIELDS):
                break
    return values


def build_api_url(values: dict[str, str]) -> str:
    bind_address = values.get("BindAddress", "")
    if bind_address in ("*", ""):
        bind_address = "localhost"
    return f"http://{bind_address}:{values.get('Port', '')}{values.get('UrlBase', '')}/api/v1"


def load_host_connection(path: Path | str) -> HostConnection | None:
    """Return a :class:`HostConnection` built from *path*.

    A missing or unreadable file is logged as a warning and ``None`` returned,
    in which case the run continues without API integration.
    """
    path = Path(path)
    if not path.is_file():
        logger.warning("Unable to locate Lidarr config file: '%s'", path)
        return None

    logger.debug("Reading from Lidarr config file '%s'", path)
    try:
        values = read_host_values(path)
    except (ET.ParseError, OSError) as exc:
        logger.warning("Unable to parse Lidarr config file '%s': %s", path, exc)
        return None

    if "ApiKey" not in values or "Port" not in values:
        logger.warning("Lidarr config file '%s' is missing Port or ApiKey", path)
    return HostConnection(url=build_api_url(values), api_key=values.get("ApiKey", ""))

"""Client for the parts of the Lidarr HTTP API used by the hook."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any

import requests

from .host_config import HostConnection

logger = logging.getLogger(__name__)

RESCAN_COMMAND = "RefreshArtist"


class ApiError(Exception):
    """A Lidarr API call failed or returned an unusable response."""


class JobStatus(Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"


class LidarrClient:
    """Thin wrapper around :class:`requests.Session` carrying the API key."""

    def __init__(
        self,
        connection: HostConnection,
        *,
        timeout: float | None = 30.0,
        debug: int = 0,
        session: requests.Session | None = None,
    ) -> None:
        self.connection = connection
        self.timeout = timeout
        self.debug = debug
        self.session = session or requests.Session()
        self.session.headers.update(
            {"X-Api-Key": connection.api_key, "Content-Type": "application/json"}
        )

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        url = f"{self.connection.url}{endpoint}"
        logger.debug("Calling Lidarr API using %s and URL '%s'", method, url)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            if self.debug >= 2:
                logger.debug("API returned: %s", resp.text)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            raise ApiError(f"{method} {url} failed: {exc}") from exc
        except ValueError as exc:
            raise ApiError(f"{method} {url} returned invalid JSON: {exc}") from exc

    def get_version(self) -> str | None:
        """Return the Lidarr version reported by ``/system/status``."""
        data = self._request("GET", "/system/status")
        return data.get("version") if isinstance(data, dict) else None

    def get_recycle_bin(self) -> str:
        """Return the configured recycle bin, or ``""`` when none is set."""
        data = self._request("GET", "/config/mediamanagement")
        value = data.get("recycleBin") if isinstance(data, dict) else None
        return value or ""

    def trigger_rescan(self, artist_id: int | str) -> int:
        """Start a ``RefreshArtist`` command and return its job id."""
        logger.debug("Forcing rescan of artist '%s'", artist_id)
        try:
            artist = int(artist_id)
        except (TypeError, ValueError) as exc:
            raise ApiError(f"Invalid artist id '{artist_id}'") from exc
        data = self._request("POST", "/command", json={"name": RESCAN_COMMAND, "artistId": artist})
        job_id = data.get("id") if isinstance(data, dict) else None
        if job_id is None:
            raise ApiError(f"The '{RESCAN_COMMAND}' API with artist {artist_id} returned no job id")
        return job_id

    def wait_for_command(self, job_id: int, retries: int = 15, delay: float = 1.0) -> JobStatus:
        """Poll ``/command/{job_id}`` until it completes, fails or *retries* run out.

        Transport errors during polling count as a non-terminal attempt.
        """
        for attempt in range(1, retries + 1):
            logger.debug("Checking job %s completion, try #%d", job_id, attempt)
            try:
                data = self._request("GET", f"/command/{job_id}")
            except ApiError as exc:
                logger.debug("Job status check failed: %s", exc)
                data = None
            status = data.get("status") if isinstance(data, dict) else None
            if status == JobStatus.COMPLETED.value:
                return JobStatus.COMPLETED
            if status == JobStatus.FAILED.value:
                return JobStatus.FAILED
            if attempt < retries:
                logger.debug("Job not done. Waiting %s second(s).", delay)
                time.sleep(delay)
        return JobStatus.TIMEOUT

"""PVGIS API client – fetch hourly PV production for one reference year.

Uses the EU PVGIS REST API v5.2, ``seriescalc`` endpoint, to download the
hourly AC output of a crystalline-silicon, free-standing PV system for the
single reference year :data:`~pv_ev_model.config.defaults.PVGIS_REFERENCE_YEAR`.

Key behaviour
-------------
- Caches the raw JSON response on disk (``~/.pv_ev_cache/``) keyed by a
  SHA-256 hash of the query parameters, so repeated runs with the same inputs
  never hit the network.
- Retries up to :data:`~pv_ev_model.config.defaults.PVGIS_RETRY_MAX` times
  with exponential backoff on HTTP 429 (rate limit), 5xx, timeouts and
  connection errors.
- :func:`production_with_fallback` swaps in the clear-sky curve from
  :mod:`pv_ev_model.pv.synthetic` whenever PVGIS cannot deliver.

Typical usage::

    from pv_ev_model.pv.pvgis_client import PVGISClient
    client = PVGISClient()
    hourly = client.fetch_hourly_production(
        latitude=41.90, longitude=12.50, peak_power_kwp=100,
        tilt_deg=30, orientation_deg=180,
    )
    # hourly: np.ndarray(8760,) in kW
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any

import numpy as np
import requests

from pv_ev_model.config.defaults import (
    DEFAULT_SYSTEM_LOSS_PCT,
    HOURS_PER_YEAR,
    PVGIS_API_BASE_URL,
    PVGIS_AZIMUTH_OFFSET_DEG,
    PVGIS_CACHE_DIR,
    PVGIS_MOUNTING_PLACE,
    PVGIS_OUTPUT_FORMAT,
    PVGIS_PV_TECHNOLOGY,
    PVGIS_REFERENCE_YEAR,
    PVGIS_REQUEST_TIMEOUT_S,
    PVGIS_RETRY_BACKOFF_FACTOR,
    PVGIS_RETRY_MAX,
    PVGIS_SERIESCALC_ENDPOINT,
    W_TO_KW,
)
from pv_ev_model.config.loader import PvConfig
from pv_ev_model.pv.synthetic import generate_clear_sky_production

logger = logging.getLogger(__name__)

# HTTP status codes that warrant a retry (rate-limit and server errors)
_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


class PVGISError(RuntimeError):
    """Raised when the PVGIS API returns an error that cannot be retried."""


class PVGISClient:
    """Thin client for the PVGIS ``seriescalc`` endpoint.

    Parameters
    ----------
    cache_dir:
        Directory for persistent JSON response cache.  Defaults to
        ``~/.pv_ev_cache``.  Pass ``None`` to disable caching entirely
        (useful in tests).
    base_url:
        PVGIS API base URL.  Override for testing or alternative deployments.
    timeout:
        HTTP request timeout in seconds.
    max_retries:
        Maximum number of attempts on transient errors.
    backoff_factor:
        Initial wait time (seconds) for exponential backoff.
        Actual wait on attempt *k* = ``backoff_factor × 2^(k-1)``.
    """

    def __init__(
        self,
        cache_dir: str | Path | None = PVGIS_CACHE_DIR,
        base_url: str = PVGIS_API_BASE_URL,
        timeout: int = PVGIS_REQUEST_TIMEOUT_S,
        max_retries: int = PVGIS_RETRY_MAX,
        backoff_factor: float = PVGIS_RETRY_BACKOFF_FACTOR,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_factor = backoff_factor

        if cache_dir is None:
            self._cache_dir: Path | None = None
        else:
            self._cache_dir = Path(cache_dir).expanduser()
            self._cache_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch_hourly_production(
        self,
        latitude: float,
        longitude: float,
        peak_power_kwp: float,
        tilt_deg: float,
        orientation_deg: float,
        system_loss_pct: float = DEFAULT_SYSTEM_LOSS_PCT,
    ) -> np.ndarray:
        """Fetch hourly PV production for the reference year.

        Parameters
        ----------
        latitude:
            Site latitude in decimal degrees (−90 … +90).
        longitude:
            Site longitude in decimal degrees (−180 … +180).
        peak_power_kwp:
            PV system peak power in kWp.
        tilt_deg:
            Panel tilt angle from horizontal in degrees.
        orientation_deg:
            Compass azimuth (0 = north, 180 = south).  Converted to the PVGIS
            ``aspect`` convention (0 = south) by subtracting 180.
        system_loss_pct:
            Total system loss in percent.

        Returns
        -------
        numpy.ndarray
            Exactly 8 760 values in **kW** (leap-day hours stripped).

        Raises
        ------
        PVGISError
            When the API returns a non-retryable error, all retries are
            exhausted or the response is malformed.
        """
        params = self._build_params(
            latitude=latitude,
            longitude=longitude,
            peak_power_kwp=peak_power_kwp,
            tilt_deg=tilt_deg,
            orientation_deg=orientation_deg,
            system_loss_pct=system_loss_pct,
        )
        raw = self._get_with_cache(params)
        return self._parse_response(raw)

    # ------------------------------------------------------------------
    # Parameter construction
    # ------------------------------------------------------------------

    @staticmethod
    def _build_params(
        latitude: float,
        longitude: float,
        peak_power_kwp: float,
        tilt_deg: float,
        orientation_deg: float,
        system_loss_pct: float,
    ) -> dict[str, Any]:
        """Return the query-parameter dict for the seriescalc endpoint."""
        return {
            "lat": latitude,
            "lon": longitude,
            "peakpower": peak_power_kwp,
            "loss": system_loss_pct,
            "angle": tilt_deg,
            "aspect": orientation_deg - PVGIS_AZIMUTH_OFFSET_DEG,
            "outputformat": PVGIS_OUTPUT_FORMAT,
            "pvtechchoice": PVGIS_PV_TECHNOLOGY,
            "mountingplace": PVGIS_MOUNTING_PLACE,
            "startyear": PVGIS_REFERENCE_YEAR,
            "endyear": PVGIS_REFERENCE_YEAR,
            "pvcalculation": 1,
        }

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _cache_key(params: dict[str, Any]) -> str:
        """Return a 32-char SHA-256 hex digest for *params*."""
        canonical = json.dumps(params, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()[:32]

    def _cache_path(self, params: dict[str, Any]) -> Path | None:
        if self._cache_dir is None:
            return None
        return self._cache_dir / f"pvgis_{self._cache_key(params)}.json"

    def _get_with_cache(self, params: dict[str, Any]) -> dict:
        """Return parsed JSON, served from disk cache when available."""
        cache_file = self._cache_path(params)

        if cache_file is not None and cache_file.exists():
            logger.info("PVGIS cache hit: %s", cache_file)
            with cache_file.open("r", encoding="utf-8") as fh:
                return json.load(fh)

        logger.info("PVGIS cache miss – fetching from API")
        raw = self._fetch(params)

        if cache_file is not None:
            logger.debug("Writing PVGIS cache: %s", cache_file)
            with cache_file.open("w", encoding="utf-8") as fh:
                json.dump(raw, fh)

        return raw

    # ------------------------------------------------------------------
    # HTTP with retry/backoff
    # ------------------------------------------------------------------

    def _wait(self, attempt: int) -> float:
        wait = self._backoff_factor * (2 ** (attempt - 1))
        time.sleep(wait)
        return wait

    def _fetch(self, params: dict[str, Any]) -> dict:
        """Execute the HTTP GET with exponential backoff retry."""
        url = self._base_url + PVGIS_SERIESCALC_ENDPOINT
        last_exc: Exception | None = None

        for attempt in range(1, self._max_retries + 1):
            try:
                logger.debug(
                    "PVGIS request attempt %d/%d: %s", attempt, self._max_retries, url
                )
                resp = requests.get(
                    url,
                    params=params,
                    timeout=self._timeout,
                    headers={"Accept": "application/json"},
                )

                if resp.status_code == 200:
                    return resp.json()

                if resp.status_code in _RETRYABLE_STATUS_CODES:
                    logger.warning(
                        "PVGIS HTTP %d on attempt %d/%d",
                        resp.status_code,
                        attempt,
                        self._max_retries,
                    )
                    last_exc = PVGISError(
                        f"HTTP {resp.status_code} from PVGIS after {attempt} attempt(s)"
                    )
                    if attempt < self._max_retries:
                        self._wait(attempt)
                    continue

                # Non-retryable client error (4xx except 429)
                try:
                    err_body = resp.json()
                    detail = (
                        err_body.get("message") or err_body.get("description") or str(err_body)
                    )
                except ValueError:
                    detail = resp.text[:300]
                raise PVGISError(f"PVGIS API error (HTTP {resp.status_code}): {detail}")

            except (requests.Timeout, requests.ConnectionError) as exc:
                logger.warning(
                    "PVGIS %s on attempt %d/%d: %s",
                    type(exc).__name__,
                    attempt,
                    self._max_retries,
                    exc,
                )
                last_exc = exc
                if attempt < self._max_retries:
                    self._wait(attempt)

        raise PVGISError(
            f"PVGIS request failed after {self._max_retries} attempt(s)."
        ) from last_exc

    # ------------------------------------------------------------------
    # Response parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_response(raw: dict) -> np.ndarray:
        """Parse the PVGIS JSON response into an hourly kW array.

        ``outputs.hourly`` holds records like
        ``{"time": "20200101:0010", "P": 0.0, ...}`` where ``P`` is the AC
        power in W.

        Raises
        ------
        PVGISError
            When the response is missing expected keys or has no records.
        """
        try:
            hourly_records: list[dict] = raw["outputs"]["hourly"]
        except (KeyError, TypeError) as exc:
            raise PVGISError(
                "Unexpected PVGIS response structure: missing 'outputs.hourly' key."
            ) from exc

        if not hourly_records:
            raise PVGISError("PVGIS response contained no hourly records.")

        values = np.array(
            [float(record.get("P", 0.0)) * W_TO_KW for record in hourly_records],
            dtype=float,
        )
        return _fit_to_year(values)


# ---------------------------------------------------------------------------
# Module-level utilities
# ---------------------------------------------------------------------------


def _fit_to_year(arr: np.ndarray) -> np.ndarray:
    """Truncate or zero-pad *arr* to exactly :data:`HOURS_PER_YEAR` elements.

    The reference year 2020 is a leap year; PVGIS returns 8 784 hours and the
    trailing 24 are discarded.
    """
    if len(arr) > HOURS_PER_YEAR:
        logger.debug("Stripping %d extra hours (leap year)", len(arr) - HOURS_PER_YEAR)
        return arr[:HOURS_PER_YEAR]
    if len(arr) < HOURS_PER_YEAR:
        logger.warning(
            "PVGIS returned only %d values (expected %d) – zero-padding",
            len(arr),
            HOURS_PER_YEAR,
        )
        padded = np.zeros(HOURS_PER_YEAR, dtype=float)
        padded[: len(arr)] = arr
        return padded
    return arr


def production_with_fallback(
    pv: PvConfig,
    client: PVGISClient | None = None,
) -> np.ndarray:
    """Return the hourly PV production for *pv*, never raising on fetch errors.

    Parameters
    ----------
    pv:
        PV plant configuration (coordinates, orientation, tilt, power).
    client:
        PVGIS client to use.  ``None`` skips the network and returns the
        clear-sky curve directly.

    Returns
    -------
    numpy.ndarray
        8 760 hourly values in kW.
    """
    if client is None:
        return generate_clear_sky_production(pv.power_kwp, pv.latitude)

    try:
        return client.fetch_hourly_production(
            latitude=pv.latitude,
            longitude=pv.longitude,
            peak_power_kwp=pv.power_kwp,
            tilt_deg=pv.tilt_deg,
            orientation_deg=pv.orientation_deg,
            system_loss_pct=pv.system_loss_pct,
        )
    except (PVGISError, requests.RequestException) as exc:
        logger.warning("PVGIS unavailable (%s) – using clear-sky fallback", exc)
        return generate_clear_sky_production(pv.power_kwp, pv.latitude)

"""
hyperevm_vrf.drand.client
=========================

HTTP client for the drand v2 API, restricted to what fulfillment needs:

- GET {base}/beacons/{beacon}/info           → BeaconInfo (genesis, period)
- GET {base}/beacons/{beacon}/rounds/{round} → round number + BN254 signature

The info endpoint is also used to check the service identifies as the
expected beacon (a BN254 scheme on the EVM network). Nothing is cached: each
call hits the network so a changed beacon is never silently mis-targeted.

Example:
    from hyperevm_vrf.drand import DrandClient
    with DrandClient("https://api.drand.sh/v2") as drand:
        info = drand.get_info()
        sig = drand.get_round_signature(1234)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import httpx

from ..errors import (HttpError, JsonDecodeError, NetworkError,
                      RoundMismatchError, WrongBeaconError)
from ..version import __version__ as SDK_VERSION
from .signature import SignaturePair, decode_signature

log = logging.getLogger(__name__)

DEFAULT_DRAND_BASE_URL = "https://api.drand.sh/v2"
DEFAULT_BEACON = "evmnet"
DEFAULT_FETCH_TIMEOUT_MS = 8_000

__all__ = [
    "DEFAULT_DRAND_BASE_URL",
    "DEFAULT_BEACON",
    "DEFAULT_FETCH_TIMEOUT_MS",
    "BeaconInfo",
    "BeaconRound",
    "DrandClient",
]


@dataclass(frozen=True)
class BeaconInfo:
    genesis_time: int
    period: int


@dataclass(frozen=True)
class BeaconRound:
    round: int
    signature: str


def _as_int(data: Mapping[str, Any], key: str, url: str) -> int:
    val = data.get(key)
    if isinstance(val, bool) or not isinstance(val, (int, str)):
        raise JsonDecodeError(
            message=f"Missing or invalid {key!r} in response from {url}",
            url=url,
            response_data=str(dict(data)),
            parse_error=f"field {key}",
        )
    try:
        return int(val)
    except ValueError as e:
        raise JsonDecodeError(
            message=f"Invalid {key!r} in response from {url}",
            url=url,
            response_data=str(dict(data)),
            parse_error=str(e),
        ) from e


@dataclass
class DrandClient:
    """Synchronous drand v2 client over httpx."""

    base_url: str = DEFAULT_DRAND_BASE_URL
    beacon: str = DEFAULT_BEACON
    timeout_ms: int = DEFAULT_FETCH_TIMEOUT_MS
    info_attempts: int = 2
    expected_scheme: str = "bn254"
    expected_network: str = "evm"
    headers: Optional[Mapping[str, str]] = None
    http: Optional[httpx.Client] = None
    _client: httpx.Client = field(init=False, repr=False)
    _owns_client: bool = field(init=False, default=False, repr=False)

    def __post_init__(self) -> None:
        merged: Dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": f"hyperevm-vrf-python/{SDK_VERSION}",
        }
        if self.headers:
            merged.update(dict(self.headers))
        if self.http is not None:
            self._client = self.http
        else:
            self._client = httpx.Client(timeout=self.timeout_ms / 1000.0, headers=merged)
            self._owns_client = True
        self.base_url = self.base_url.rstrip("/")

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "DrandClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # --- public API ------------------------------------------------------

    def info_url(self) -> str:
        return f"{self.base_url}/beacons/{self.beacon}/info"

    def round_url(self, round_number: int) -> str:
        return f"{self.base_url}/beacons/{self.beacon}/rounds/{int(round_number)}"

    def get_info(self) -> BeaconInfo:
        """
        Fetch genesis time and period, checking the beacon identity.

        Transport/HTTP/JSON failures are retried (`info_attempts` total); an
        identity mismatch is not.
        """
        url = self.info_url()
        last: Optional[NetworkError] = None
        for attempt in range(1, max(1, self.info_attempts) + 1):
            try:
                data = self._get_json(url)
                break
            except NetworkError as e:
                last = e
                log.debug("drand info attempt %d/%d failed: %s", attempt, self.info_attempts, e)
        else:
            assert last is not None
            raise last

        self._check_identity(data)
        period = _as_int(data, "period", url)
        if period <= 0:
            raise JsonDecodeError(
                message=f"Invalid 'period' {period} in response from {url}",
                url=url,
                response_data=str(dict(data)),
                parse_error="field period",
            )
        return BeaconInfo(genesis_time=_as_int(data, "genesis_time", url), period=period)

    def get_round(self, round_number: int) -> BeaconRound:
        """Fetch the raw round record (round number + hex signature)."""
        url = self.round_url(round_number)
        data = self._get_json(url)
        sig = data.get("signature")
        if not isinstance(sig, str):
            raise JsonDecodeError(
                message=f"Missing 'signature' in response from {url}",
                url=url,
                response_data=str(data),
                parse_error="field signature",
            )
        return BeaconRound(round=data.get("round"), signature=sig)  # type: ignore[arg-type]

    def get_round_signature(self, round_number: int) -> SignaturePair:
        """
        Fetch and decode the signature for `round_number`.

        Raises RoundMismatchError if the beacon reports a different round.
        """
        rec = self.get_round(round_number)
        try:
            received = int(rec.round)
        except (TypeError, ValueError):
            received = None
        if received != int(round_number):
            raise RoundMismatchError(expected_round=int(round_number), received_round=rec.round)
        return decode_signature(rec.signature)

    # --- internals -------------------------------------------------------

    def _check_identity(self, data: Mapping[str, Any]) -> None:
        scheme = data.get("scheme") or data.get("scheme_id") or data.get("schemeID")
        network = data.get("network") or data.get("beacon_id") or data.get("beaconID")
        scheme_ok = isinstance(scheme, str) and self.expected_scheme in scheme.lower()
        network_ok = isinstance(network, str) and self.expected_network in network.lower()
        if not (scheme_ok and network_ok):
            raise WrongBeaconError(
                scheme=scheme if isinstance(scheme, str) else None,
                network=network if isinstance(network, str) else None,
                expected_scheme=self.expected_scheme,
                expected_network=self.expected_network,
            )

    def _get_json(self, url: str) -> Dict[str, Any]:
        try:
            r = self._client.get(url)
        except httpx.HTTPError as e:
            raise NetworkError(message=f"GET {url} failed: {e}", url=url) from e
        if r.status_code != 200:
            raise HttpError(
                message=f"HTTP {r.status_code} from {url}",
                url=url,
                status_code=r.status_code,
                response_data=r.text,
            )
        try:
            data = r.json()
        except ValueError as e:
            raise JsonDecodeError(
                message=f"Invalid JSON from {url}: {e}",
                url=url,
                status_code=r.status_code,
                response_data=r.text,
                parse_error=str(e),
            ) from e
        if not isinstance(data, dict):
            raise JsonDecodeError(
                message=f"Expected a JSON object from {url}",
                url=url,
                status_code=r.status_code,
                response_data=r.text,
                parse_error=type(data).__name__,
            )
        return data

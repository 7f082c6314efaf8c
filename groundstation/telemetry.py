"""Device telemetry: the PWI3 status client and host temperature collaborators.

The wait instruction needs two temperatures: the primary mirror (always
from the PWI3 status report) and ambient, from one of four sources:

  - ``DELTA_T``: the DeltaT heater controller's ambient sensor (PWI3)
  - ``EFA``: the EFA focuser/fan controller's ambient sensor (PWI3)
  - ``FOCUSER``: the host's focuser driver
  - ``WEATHER_SOURCE``: the host's weather station driver

Focuser and weather readings are owned by the host; this module only defines
the interface it must satisfy.

PWI3 answers ``GET /status?clientId=<id>`` with one ``key=value`` pair per
line.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import httpx

from groundstation.cancellation import run_cancellable
from groundstation.exceptions import TransportConnectionError, TransportError
from groundstation.logging import get_logger

log = get_logger(__name__)

STATUS_PATH = "/status"
MIRROR_TEMPERATURE_KEY = "temperature.primary"
DELTA_T_AMBIENT_KEY = "temperature.ambient"
EFA_AMBIENT_KEY = "efa.temperature.ambient"

# Reported by focusers that have no temperature probe attached.
FOCUSER_NO_SENSOR_TEMPERATURE = -127.0


class AmbientTempSource(str, Enum):
    DELTA_T = "delta_t"
    EFA = "efa"
    FOCUSER = "focuser"
    WEATHER_SOURCE = "weather_source"

    @property
    def label(self) -> str:
        return {
            AmbientTempSource.DELTA_T: "Delta T",
            AmbientTempSource.EFA: "EFA",
            AmbientTempSource.FOCUSER: "Focuser",
            AmbientTempSource.WEATHER_SOURCE: "Weather Source",
        }[self]


# ---------------------------------------------------------------------------
# Host collaborators
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeviceInfo:
    connected: bool = False
    temperature: float = math.nan


class FocuserMediator(Protocol):
    def get_info(self) -> DeviceInfo: ...


class WeatherDataMediator(Protocol):
    def get_info(self) -> DeviceInfo: ...


def focuser_temperature_usable(info: DeviceInfo) -> bool:
    return not math.isnan(info.temperature) and info.temperature > FOCUSER_NO_SENSOR_TEMPERATURE


# ---------------------------------------------------------------------------
# PWI3
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Pwi3Settings:
    ip_address: str = ""
    port: int = 8220
    client_id: str = ""


def parse_status(body: str) -> dict[str, str]:
    """Parse a PWI3 ``key=value`` status body.  Malformed lines are skipped."""
    status: dict[str, str] = {}
    for line in body.splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip():
            status[key.strip()] = value.strip()
    return status


def status_temperature(status: dict[str, str], key: str) -> float:
    """Return the temperature stored under *key*, or NaN when absent/invalid."""
    raw = status.get(key)
    if raw is None:
        return math.nan
    try:
        return float(raw)
    except ValueError:
        return math.nan


class Pwi3Client:
    """Minimal async client for the PWI3 HTTP status endpoint."""

    CHANNEL_ID = "pwi3"

    def __init__(
        self,
        settings: Pwi3Settings,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return f"http://{self._settings.ip_address}:{self._settings.port}"

    async def get_status(self, cancel: asyncio.Event | None = None) -> dict[str, str]:
        """Issue one status request and return the parsed report."""
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            response = await run_cancellable(
                self._request(client), cancel, f"{self.CHANNEL_ID}.status"
            )
        return parse_status(response.text)

    async def _request(self, client: httpx.AsyncClient) -> httpx.Response:
        host, port = self._settings.ip_address, self._settings.port
        try:
            response = await client.get(STATUS_PATH, params={"clientId": self._settings.client_id})
            response.raise_for_status()
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            log.error("pwi3_request_failed", host=host, port=port, error=str(exc))
            raise TransportConnectionError(self.CHANNEL_ID, host, port, reason=str(exc)) from exc
        except httpx.HTTPStatusError as exc:
            log.error("pwi3_bad_status", host=host, port=port, status=exc.response.status_code)
            raise TransportError(
                f"PWI3 returned HTTP {exc.response.status_code}",
                channel=self.CHANNEL_ID,
                host=host,
                port=port,
                context={"status_code": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            log.error("pwi3_request_failed", host=host, port=port, error=str(exc))
            raise TransportError(
                f"PWI3 request failed: {exc}", channel=self.CHANNEL_ID, host=host, port=port
            ) from exc
        return response

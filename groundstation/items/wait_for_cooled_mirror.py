"""Wait for Cooled Mirror — blocks the sequence until the primary mirror has
cooled to within ``max_ambient_delta_t`` degrees of ambient.

Every iteration issues one PWI3 status request, samples the mirror and the
selected ambient source, and either finishes or sleeps ``POLL_INTERVAL``
seconds.  A missing sample (NaN) never satisfies the condition.
"""

from __future__ import annotations

import asyncio
import math
from enum import Enum
from typing import Any

import httpx

from groundstation.cancellation import cancellable_sleep, raise_if_cancelled
from groundstation.logging import bind_item_context, clear_item_context, get_logger
from groundstation.sequencer.base import SequenceItem
from groundstation.sequencer.models import ItemMetadata
from groundstation.settings_store import ConfigurationStore
from groundstation.telemetry import (
    DELTA_T_AMBIENT_KEY,
    EFA_AMBIENT_KEY,
    MIRROR_TEMPERATURE_KEY,
    AmbientTempSource,
    FocuserMediator,
    Pwi3Client,
    Pwi3Settings,
    WeatherDataMediator,
    focuser_temperature_usable,
    status_temperature,
)

log = get_logger(__name__)


class PollPhase(str, Enum):
    POLLING = "polling"
    SATISFIED = "satisfied"


class WaitForCooledMirror(SequenceItem):
    KIND = "wait_for_cooled_mirror"
    METADATA = ItemMetadata(
        name="Wait for Cooled Mirror",
        description="Waits until the primary mirror is within a set delta of the ambient temperature",
        icon="Thermometer_SVG",
    )
    POLL_INTERVAL = 5.0
    DEFAULT_MAX_AMBIENT_DELTA_T = 3.0

    def __init__(
        self,
        store: ConfigurationStore,
        focuser: FocuserMediator | None = None,
        weather: WeatherDataMediator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **client_options: Any,
    ) -> None:
        super().__init__(store)
        self._pwi3 = self._watch("pwi3", Pwi3Settings)
        self._focuser = focuser
        self._weather = weather
        self._transport = transport
        self._client_options = client_options
        self.max_ambient_delta_t: float = self.DEFAULT_MAX_AMBIENT_DELTA_T
        self.ambient_temp_source: AmbientTempSource = AmbientTempSource.DELTA_T
        self.poll_interval: float = self.POLL_INTERVAL
        self.phase = PollPhase.POLLING
        self.mirror_temperature: float = math.nan
        self.ambient_temperature: float = math.nan

    @property
    def settings(self) -> Pwi3Settings:
        return self._pwi3.current

    @property
    def current_delta(self) -> float:
        return self.mirror_temperature - self.ambient_temperature

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, cancel: asyncio.Event | None = None) -> None:
        operation = f"{self.KIND}.poll"
        client = Pwi3Client(self._pwi3.current, transport=self._transport, **self._client_options)
        self.phase = PollPhase.POLLING
        bind_item_context(item_name=self.name, item_kind=self.KIND)
        try:
            while True:
                raise_if_cancelled(cancel, operation)
                status = await client.get_status(cancel)
                self._sample(status)

                if self._satisfied():
                    self.phase = PollPhase.SATISFIED
                    log.info(
                        "mirror_cooled",
                        mirror=self.mirror_temperature,
                        ambient=self.ambient_temperature,
                        threshold=self.max_ambient_delta_t,
                    )
                    return

                log.debug(
                    "mirror_still_warm",
                    mirror=self.mirror_temperature,
                    ambient=self.ambient_temperature,
                    source=self.ambient_temp_source.value,
                    threshold=self.max_ambient_delta_t,
                )
                await cancellable_sleep(self.poll_interval, cancel, operation)
        finally:
            clear_item_context()

    def _sample(self, status: dict[str, str]) -> None:
        self.mirror_temperature = status_temperature(status, MIRROR_TEMPERATURE_KEY)
        source = self.ambient_temp_source
        if source is AmbientTempSource.DELTA_T:
            self.ambient_temperature = status_temperature(status, DELTA_T_AMBIENT_KEY)
        elif source is AmbientTempSource.EFA:
            self.ambient_temperature = status_temperature(status, EFA_AMBIENT_KEY)
        elif source is AmbientTempSource.FOCUSER:
            info = self._focuser.get_info() if self._focuser is not None else None
            if info is not None and info.connected and focuser_temperature_usable(info):
                self.ambient_temperature = info.temperature
            else:
                self.ambient_temperature = math.nan
        else:
            info = self._weather.get_info() if self._weather is not None else None
            if info is not None and info.connected:
                self.ambient_temperature = info.temperature
            else:
                self.ambient_temperature = math.nan

    def _satisfied(self) -> bool:
        delta = self.current_delta
        if math.isnan(delta):
            return False
        return delta <= self.max_ambient_delta_t

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _collect_issues(self) -> list[str]:
        issues: list[str] = []
        if not self._pwi3.current.ip_address.strip():
            issues.append("PWI3 host is not configured")

        source = self.ambient_temp_source
        if source is AmbientTempSource.FOCUSER:
            info = self._focuser.get_info() if self._focuser is not None else None
            if info is None or not info.connected:
                issues.append("Focuser is not connected")
            elif not focuser_temperature_usable(info):
                issues.append("Temperature is not available")
        elif source is AmbientTempSource.WEATHER_SOURCE:
            info = self._weather.get_info() if self._weather is not None else None
            if info is None or not info.connected:
                issues.append("Weather source is not connected")
            elif math.isnan(info.temperature):
                issues.append("Temperature is not available")
        return issues

    def clone(self) -> "WaitForCooledMirror":
        copy = WaitForCooledMirror(
            self._store,
            focuser=self._focuser,
            weather=self._weather,
            transport=self._transport,
            **self._client_options,
        )
        self._copy_metadata(copy)
        copy.max_ambient_delta_t = self.max_ambient_delta_t
        copy.ambient_temp_source = self.ambient_temp_source
        copy.poll_interval = self.poll_interval
        return copy

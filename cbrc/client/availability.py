"""
Caller side of the time slot relay.

AvailabilityClient asks the relay for slots and, on any failure, substitutes the
fallback generator's output flagged as degraded. TimeSlotPicker tracks the query
key the way the booking widget does: only the most recently issued (date, duration)
may update what is shown.
"""
import enum
import logging
from dataclasses import dataclass, field

import httpx

from cbrc.core.config import BusinessHours, settings
from cbrc.models.time_slot import TimeSlot
from cbrc.services.fallback_slots import generate_fallback_slots

logger = logging.getLogger(__name__)

DEGRADED_NOTICE = "Live availability could not be loaded; showing basic times"


@dataclass
class SlotResult:
    time_slots: list[TimeSlot]
    date: str
    duration: int
    degraded: bool = False
    message: str | None = None
    error: str | None = None


class PickerState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FALLBACK_LOADED = "fallback_loaded"


@dataclass
class AvailabilityClient:
    relay_url: str
    hours: BusinessHours = field(default_factory=lambda: settings.business_hours)
    timeout: float = field(default_factory=lambda: settings.relay_timeout_seconds)
    transport: httpx.AsyncBaseTransport | None = None

    async def fetch(self, date: str, duration: int) -> SlotResult:
        """Never raises for transport or upstream failures; those yield a degraded result."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.relay_url, json={"date": date, "duration": duration})
        except httpx.TimeoutException:
            return self._fallback(date, duration, "Request timed out")
        except httpx.HTTPError as e:
            return self._fallback(date, duration, f"Could not reach availability service: {e}")

        try:
            data = resp.json()
        except ValueError:
            data = None
        if resp.status_code != 200 or not isinstance(data, dict):
            error = data.get("error") if isinstance(data, dict) else None
            return self._fallback(date, duration, error or f"HTTP error: {resp.status_code}")
        try:
            slots = [TimeSlot.model_validate(s) for s in data.get("timeSlots") or []]
        except ValueError:
            return self._fallback(date, duration, "Malformed availability response")
        return SlotResult(
            time_slots=slots,
            date=data.get("date") or date,
            duration=data.get("duration") or duration,
        )

    def _fallback(self, date: str, duration: int, error: str) -> SlotResult:
        logger.warning("Slot fetch for %s (%s min) failed, using fallback: %s", date, duration, error)
        return SlotResult(
            time_slots=generate_fallback_slots(duration, self.hours),
            date=date,
            duration=duration,
            degraded=True,
            message=DEGRADED_NOTICE,
            error=error,
        )


class TimeSlotPicker:
    def __init__(self, client: AvailabilityClient) -> None:
        self.client = client
        self.state = PickerState.IDLE
        self.result: SlotResult | None = None
        self.query_key: tuple[str, int] | None = None
        self._generation = 0

    @property
    def degraded(self) -> bool:
        return self.state == PickerState.FALLBACK_LOADED

    async def select(self, date: str, duration: int) -> SlotResult | None:
        """Load slots for a new key. Returns None if a newer select() superseded this one."""
        key = (date, duration)
        if key == self.query_key and self.state in (PickerState.LOADED, PickerState.FALLBACK_LOADED):
            return self.result
        return await self._load(key)

    async def refresh(self) -> SlotResult | None:
        if self.query_key is None:
            return None
        return await self._load(self.query_key)

    async def _load(self, key: tuple[str, int]) -> SlotResult | None:
        self._generation += 1
        generation = self._generation
        self.query_key = key
        self.state = PickerState.LOADING
        result = await self.client.fetch(*key)
        if generation != self._generation:
            logger.debug("Discarding stale slot result for %s", key)
            return None
        self.result = result
        self.state = PickerState.FALLBACK_LOADED if result.degraded else PickerState.LOADED
        return result

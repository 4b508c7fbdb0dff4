# medscan/services/reminders.py
"""
Daily reminder triggers.

Time rule: today at HH:MM:00.000; if that is not strictly after now, the same
time tomorrow (one day, never more). The collaborator receives a relative
offset in whole seconds.
"""
import logging
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Callable, Iterable, List, Optional, Tuple

from medscan.core.errors import NotificationError
from medscan.schemas.models import (
    MedicineRecord,
    NotificationPayload,
    ReminderResult,
    ScheduledTrigger,
    ToneProfile,
)
from medscan.services.notifications import Notifier

logger = logging.getLogger(__name__)

REMINDER_TITLE = "💊 Medicine Reminder"


class ToneRegistry:
    """Immutable, ordered tone catalog; unknown ids resolve to the fallback tone."""

    def __init__(self, tones: Iterable[ToneProfile], fallback_id: str = "standard"):
        self._tones = MappingProxyType({t.tone_id: t for t in tones})
        if fallback_id not in self._tones:
            raise ValueError(f"Fallback tone {fallback_id!r} is not in the registry")
        self.fallback_id = fallback_id

    def get(self, tone_id: Optional[str]) -> ToneProfile:
        return self._tones.get(tone_id or "", self._tones[self.fallback_id])

    def ids(self) -> Tuple[str, ...]:
        return tuple(self._tones)


DEFAULT_TONES = ToneRegistry([
    ToneProfile(tone_id="gentle", label="Gentle", vibration_pattern=(0, 200, 400, 200), priority="default"),
    ToneProfile(tone_id="standard", label="Standard", vibration_pattern=(0, 250, 250, 250), priority="high"),
    ToneProfile(tone_id="urgent", label="Urgent", vibration_pattern=(0, 500, 200, 500, 200, 500), priority="max"),
    ToneProfile(tone_id="alarm", label="Alarm", vibration_pattern=(0, 1000, 500, 1000, 500, 1000), priority="max"),
    ToneProfile(tone_id="silent", label="Silent", vibration_pattern=(0, 250), priority="min", sound=False),
])


def parse_recommended_time(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """'08:00' / '08:00 AM' -> (8, 0). Anything else -> None."""
    if not value:
        return None
    head = value.strip().split(" ")[0]
    parts = head.split(":")
    if len(parts) < 2:
        return None
    try:
        h, m = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= h <= 23 and 0 <= m <= 59):
        return None
    return h, m


class ReminderScheduler:
    def __init__(self, tones: ToneRegistry = DEFAULT_TONES, clock: Callable[[], datetime] = datetime.now):
        self.tones = tones
        self._clock = clock

    def next_fire_time(self, hour: int, minute: int, now: Optional[datetime] = None) -> datetime:
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError(f"Invalid reminder time {hour}:{minute}")
        now = now or self._clock()
        fire_at = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if fire_at <= now:
            fire_at += timedelta(days=1)
        return fire_at

    def schedule(
        self,
        medicine_name: str,
        hour: int,
        minute: int,
        tone_id: Optional[str] = None,
        is_auto: bool = False,
        now: Optional[datetime] = None,
    ) -> ScheduledTrigger:
        now = now or self._clock()
        fire_at = self.next_fire_time(hour, minute, now)
        seconds_until = (fire_at - now) // timedelta(seconds=1)
        tone = self.tones.get(tone_id)

        payload = NotificationPayload(
            title=REMINDER_TITLE,
            body=f"It's time to take your {medicine_name}",
            data={"medicine": medicine_name, "auto": is_auto},
            tone_id=tone.tone_id,
            vibration_pattern=list(tone.vibration_pattern),
            priority=tone.priority,
            sound=tone.sound,
        )
        return ScheduledTrigger(
            medicine_name=medicine_name,
            fire_at=fire_at,
            seconds_until=seconds_until,
            is_auto=is_auto,
            payload=payload,
        )

    def auto_trigger(
        self,
        records: List[MedicineRecord],
        tone_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[ScheduledTrigger]:
        # multi-medicine scans go through the explicit per-record action
        if len(records) != 1:
            return None
        record = records[0]
        parsed = parse_recommended_time(record.recommended_time)
        if parsed is None:
            return None
        hour, minute = parsed
        return self.schedule(record.medicine_name, hour, minute, tone_id, is_auto=True, now=now)


async def deliver_trigger(notifier: Notifier, trigger: ScheduledTrigger) -> ReminderResult:
    surface = not trigger.is_auto

    if not await notifier.has_permission():
        if not await notifier.request_permission():
            return ReminderResult(status="PERMISSION_REQUIRED", trigger=trigger, surface_error=surface)

    try:
        notification_id = await notifier.schedule(trigger)
    except NotificationError as e:
        logger.warning(f"Reminder for {trigger.medicine_name} failed: {e}")
        return ReminderResult(status="FAILED", trigger=trigger, error=str(e), surface_error=surface)

    return ReminderResult(status="SCHEDULED", trigger=trigger, notification_id=notification_id)


async def request_reminder(
    scheduler: ReminderScheduler,
    notifier: Notifier,
    medicine_name: str,
    hour: int,
    minute: int,
    tone_id: Optional[str] = None,
) -> ReminderResult:
    """Explicit, user-initiated reminder."""
    trigger = scheduler.schedule(medicine_name, hour, minute, tone_id, is_auto=False)
    return await deliver_trigger(notifier, trigger)


async def auto_reminder(
    scheduler: ReminderScheduler,
    notifier: Notifier,
    records: List[MedicineRecord],
    tone_id: Optional[str] = None,
) -> Optional[ReminderResult]:
    """None when the scan does not qualify (policy or unparsable time)."""
    trigger = scheduler.auto_trigger(records, tone_id)
    if trigger is None:
        return None
    return await deliver_trigger(notifier, trigger)

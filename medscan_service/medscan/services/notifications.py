# medscan/services/notifications.py
import logging
import uuid
from typing import List, Protocol

from medscan.core.errors import NotificationError
from medscan.schemas.models import ScheduledTrigger

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Local notification collaborator. Delivery and permission UX are its job."""

    async def has_permission(self) -> bool: ...

    async def request_permission(self) -> bool: ...

    async def schedule(self, trigger: ScheduledTrigger) -> str: ...


class MockNotifier:
    """
    In-process stand-in for the device scheduler.
    Keeps what it was asked to schedule so callers (and the API) can inspect it.
    """

    def __init__(self, granted: bool = True, grant_on_request: bool = True, fail: bool = False):
        self.granted = granted
        self.grant_on_request = grant_on_request
        self.fail = fail
        self.scheduled: List[ScheduledTrigger] = []
        self.permission_requests = 0

    async def has_permission(self) -> bool:
        return self.granted

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        if self.grant_on_request:
            self.granted = True
        return self.granted

    async def schedule(self, trigger: ScheduledTrigger) -> str:
        if self.fail:
            raise NotificationError("Notification scheduler unavailable")
        self.scheduled.append(trigger)
        notification_id = "ntf_" + uuid.uuid4().hex[:10]
        logger.info(
            f"Scheduled {notification_id} for {trigger.medicine_name} "
            f"in {trigger.seconds_until}s (tone={trigger.payload.tone_id})"
        )
        return notification_id

# medscan/agent/nodes.py
import base64
import binascii
import logging
from typing import Any, Dict

from medscan.core.app_config import USE_AUTO_REMINDERS
from medscan.core.errors import InferenceError
from medscan.agent.state import ScanState
from medscan.schemas.models import MedicineRecord
from medscan.services.inference import InferenceService
from medscan.services.interactions import InteractionAnalyzer
from medscan.services.llm.prompts import SCAN_PROMPT
from medscan.services.normalizer import normalize
from medscan.services.notifications import Notifier
from medscan.services.reminders import ReminderScheduler, auto_reminder

logger = logging.getLogger(__name__)


def _audit(state: ScanState, event: str, extra: Dict[str, Any] | None = None) -> Dict[str, Any]:
    audit = list(state.get("audit") or [])
    audit.append({"event": event, **(extra or {})})
    return {"audit": audit}


def _records(state: ScanState):
    return [MedicineRecord.model_validate(r) for r in (state.get("records") or [])]


class ScanNodes:
    def __init__(
        self,
        inference: InferenceService,
        analyzer: InteractionAnalyzer,
        scheduler: ReminderScheduler,
        notifier: Notifier,
        auto_reminders: bool = USE_AUTO_REMINDERS,
    ):
        self.inference = inference
        self.analyzer = analyzer
        self.scheduler = scheduler
        self.notifier = notifier
        self.auto_reminders = auto_reminders

    async def infer(self, state: ScanState) -> Dict[str, Any]:
        if state.get("raw_text"):
            return _audit(state, "infer.skip", {"reason": "raw_text provided"})

        try:
            image_bytes = base64.b64decode(state.get("image_b64") or "", validate=True)
        except (binascii.Error, ValueError) as e:
            return {"error": f"Invalid image data: {e}", **_audit(state, "infer.bad_image")}
        if not image_bytes:
            return {"error": "No image or raw text supplied.", **_audit(state, "infer.no_input")}

        try:
            text = await self.inference.infer(SCAN_PROMPT, image_bytes)
        except InferenceError as e:
            logger.error(f"Vision inference failed for {state.get('scan_id')}: {e}")
            return {"error": f"Failed to analyze: {e}", **_audit(state, "infer.failed", {"error": str(e)})}

        return {"raw_text": text, **_audit(state, "infer.done", {"chars": len(text)})}

    def normalize(self, state: ScanState) -> Dict[str, Any]:
        records = normalize(state.get("raw_text") or "")
        parse_error = any(r.parse_error for r in records)
        scored = sum(1 for r in records if r.fraud_detection is not None)
        return {
            "records": [r.model_dump(mode="json", by_alias=True) for r in records],
            **_audit(state, "normalize.done", {"count": len(records), "parse_error": parse_error, "scored": scored}),
        }

    async def interactions(self, state: ScanState) -> Dict[str, Any]:
        records = [r for r in _records(state) if not r.parse_error]
        report = await self.analyzer.analyze(records)
        return {
            "interactions": report.model_dump(mode="json", by_alias=True),
            **_audit(state, "interactions.done", {"severity": report.severity, "checked": report.checked}),
        }

    async def reminder(self, state: ScanState) -> Dict[str, Any]:
        if not self.auto_reminders:
            return {"auto_reminder": None, **_audit(state, "reminder.skip", {"reason": "disabled"})}

        records = [r for r in _records(state) if not r.parse_error]
        result = await auto_reminder(self.scheduler, self.notifier, records, state.get("tone_id"))
        if result is None:
            return {"auto_reminder": None, **_audit(state, "reminder.skip", {"reason": "not eligible"})}
        return {
            "auto_reminder": result.model_dump(mode="json"),
            **_audit(state, "reminder.done", {"status": result.status}),
        }


def route_after_infer(state: ScanState) -> str:
    return "failed" if state.get("error") else "normalize"

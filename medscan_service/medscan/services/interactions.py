# medscan/services/interactions.py
import logging
from typing import List, Sequence

from medscan.core.errors import InferenceError
from medscan.schemas.models import InteractionReport, MedicineRecord
from medscan.services.inference import InferenceService
from medscan.services.llm.prompts import INTERACTION_PROMPT
from medscan.services.llm.sanitize import parse_json_object

logger = logging.getLogger(__name__)

_SEVERITIES = {"high", "medium", "low", "none"}

SINGLE_MEDICINE_DESCRIPTION = "No interactions checked (single medicine)."
UNCHECKED_DESCRIPTION = "Could not check interactions."


def single_medicine_report() -> InteractionReport:
    return InteractionReport(has_conflict=False, severity="none", description=SINGLE_MEDICINE_DESCRIPTION)


def unchecked_report() -> InteractionReport:
    return InteractionReport(has_conflict=False, severity="none", description=UNCHECKED_DESCRIPTION, checked=False)


def medicines_summary(records: Sequence[MedicineRecord]) -> str:
    return ", ".join(f"{r.medicine_name} ({r.active_ingredients})" for r in records)


def report_from_answer(answer: dict) -> InteractionReport | None:
    """Map the model's JSON answer; None when it is malformed."""
    severity = str(answer.get("severity") or "none").strip().lower()
    if severity not in _SEVERITIES:
        return None

    has_conflict = answer.get("hasConflict", False)
    if not isinstance(has_conflict, bool):
        return None
    if not has_conflict:
        severity = "none"

    description = str(answer.get("description") or "").strip() or "Analysis complete."
    return InteractionReport(has_conflict=has_conflict, severity=severity, description=description)


class InteractionAnalyzer:
    def __init__(self, inference: InferenceService):
        self._inference = inference

    async def analyze(self, records: List[MedicineRecord]) -> InteractionReport:
        if len(records) < 2:
            return single_medicine_report()

        prompt = INTERACTION_PROMPT.format(medicines=medicines_summary(records))
        try:
            text = await self._inference.infer(prompt)
        except InferenceError as e:
            logger.warning(f"Interaction check failed: {e}")
            return unchecked_report()

        answer = parse_json_object(text)
        report = report_from_answer(answer) if answer is not None else None
        if report is None:
            logger.warning(f"Interaction answer malformed: {(text or '')[:200]!r}")
            return unchecked_report()
        return report

# medscan/services/normalizer.py
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from medscan.schemas.models import Affordability, MedicineRecord
from medscan.services.authenticity import score
from medscan.services.llm.record_schema import (
    AFFORDABILITY_FIELDS,
    PRESCRIPTION_KEYS,
    RECORD_FIELDS,
    coerce_fields,
)
from medscan.services.llm.sanitize import parse_json_payload

logger = logging.getLogger(__name__)

ERROR_EXCERPT_CHARS = 100


def parse_error_record(raw_text: str) -> MedicineRecord:
    return MedicineRecord(
        medicine_name="Error parsing results",
        active_ingredients="Could not structure the data",
        common_uses="Please try again",
        dosage="Not visible",
        warnings=(raw_text or "")[:ERROR_EXCERPT_CHARS],
        parse_error=True,
    )


def has_prescription_context(fields: Dict[str, Any]) -> bool:
    # a missing signature (false) alone is not evidence of a prescription
    if fields.get("signatureVerified") is True:
        return True
    return any(fields.get(k) is not None for k in PRESCRIPTION_KEYS if k != "signatureVerified")


def coerce_record(item: Dict[str, Any]) -> MedicineRecord:
    fields = coerce_fields(item, RECORD_FIELDS)

    raw_aff = item.get("affordability")
    aff = coerce_fields(raw_aff if isinstance(raw_aff, dict) else {}, AFFORDABILITY_FIELDS)
    fields["affordability"] = Affordability.model_validate(aff)

    record = MedicineRecord.model_validate(fields)
    if has_prescription_context(fields):
        record.fraud_detection = score(record)
    return record


def normalize(raw_text: str) -> List[MedicineRecord]:
    """
    Inference text -> validated records. Never raises.
    - bare object        -> one-element list
    - []                 -> [] (not a failure)
    - unparsable text    -> [parse_error_record(raw_text)]
    """
    outcome = parse_json_payload(raw_text)
    if not outcome.ok or not isinstance(outcome.value, (list, dict)):
        logger.warning(f"Could not parse inference output: {(raw_text or '')[:200]!r}")
        return [parse_error_record(raw_text)]

    items = outcome.value if isinstance(outcome.value, list) else [outcome.value]

    records: List[MedicineRecord] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(f"Dropping non-object element #{i} from inference output")
            continue
        try:
            records.append(coerce_record(item))
        except ValidationError as e:
            logger.warning(f"Dropping element #{i}: {e}")

    if items and not records:
        return [parse_error_record(raw_text)]
    return records

# medscan/services/authenticity.py
"""
Prescription authenticity checklist.

Pure and deterministic: the same record always yields the same assessment.
Points are awarded per criterion; a criterion either passes (passed_checks)
or flags (red_flags), never both.
"""
import re
from typing import List

from medscan.schemas.models import FraudAssessment, MedicineRecord, RiskLevel

_NON_DIGIT_RE = re.compile(r"\D")

SIGNATURE_POINTS = 25
LICENSE_POINTS = 20
FACILITY_POINTS = 15
PATIENT_POINTS = 15
PRESCRIBER_POINTS = 10
DOSAGE_POINTS = 10
PROFESSIONAL_FORMAT_POINTS = 5

DOSAGE_NOT_VISIBLE = "Not visible"

RECOMMENDATIONS = {
    "high-risk": [
        "DO NOT USE - Verify with healthcare provider immediately",
        "Contact the hospital listed to confirm prescription",
        "Report to PRC if suspected fraud",
    ],
    "suspicious": [
        "Verify prescription with your pharmacist",
        "Contact prescribing doctor to confirm",
        "Check PRC license at: prc.gov.ph",
    ],
    "caution": [
        "Ask your pharmacist to verify",
        "Ensure prescription details are complete",
    ],
    "safe": [],
}


def validate_license(license_number: str | None) -> bool:
    """PRC numbers are 6-7 digits once prefixes like 'PRC No.' are stripped."""
    if not license_number:
        return False
    digits = _NON_DIGIT_RE.sub("", license_number)
    return 6 <= len(digits) <= 7


def tier_for_score(score: int) -> RiskLevel:
    if score >= 90:
        return "safe"
    if score >= 70:
        return "caution"
    if score >= 40:
        return "suspicious"
    return "high-risk"


def score(record: MedicineRecord) -> FraudAssessment:
    total = 0
    passed: List[str] = []
    flags: List[str] = []

    if record.signature_verified is True:
        total += SIGNATURE_POINTS
        passed.append("Doctor signature verified")
    else:
        flags.append("No visible doctor signature")

    if validate_license(record.license_number):
        total += LICENSE_POINTS
        passed.append("Valid PRC license format")
    elif record.license_number:
        flags.append("Invalid PRC license number format")
    else:
        flags.append("Missing PRC license number")

    if record.hospital:
        total += FACILITY_POINTS
        passed.append("Hospital/clinic documented")
    else:
        flags.append("No hospital or clinic name")

    # all-or-nothing credit, but each missing part is flagged on its own
    if record.patient_name and record.patient_age and record.patient_sex:
        total += PATIENT_POINTS
        passed.append("Complete patient information")
    else:
        if not record.patient_name:
            flags.append("Missing patient name")
        if not record.patient_age:
            flags.append("Missing patient age")
        if not record.patient_sex:
            flags.append("Missing patient sex")

    if record.prescribed_by:
        total += PRESCRIBER_POINTS
        passed.append("Prescribing doctor identified")
    else:
        flags.append("No prescribing doctor name")

    if record.dosage and record.dosage != DOSAGE_NOT_VISIBLE:
        total += DOSAGE_POINTS
        passed.append("Dosage information present")

    if record.prescribed_by and record.hospital and record.license_number:
        total += PROFESSIONAL_FORMAT_POINTS
        passed.append("Professional prescription format")

    tier = tier_for_score(total)
    return FraudAssessment(
        authenticity_score=total,
        risk_level=tier,
        red_flags=flags,
        passed_checks=passed,
        recommendations=list(RECOMMENDATIONS[tier]),
    )

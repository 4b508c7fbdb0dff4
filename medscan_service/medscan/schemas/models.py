from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["safe", "caution", "suspicious", "high-risk"]
Severity = Literal["high", "medium", "low", "none"]
Priority = Literal["min", "low", "default", "high", "max"]
ReminderStatus = Literal["SCHEDULED", "PERMISSION_REQUIRED", "FAILED"]
MedicationStatus = Literal["active", "discontinued", "completed"]
TranslatableField = Literal["name", "purpose", "warnings"]
SpeechSource = Literal["batch", "adhoc", "original"]

SAFETY_NOTE = (
    "Not medical advice. Authenticity scores are a checklist estimate, not a legal determination. "
    "Always confirm instructions with a doctor/pharmacist."
)


class CamelModel(BaseModel):
    """Wire models speak the camelCase keys the inference prompt asks for."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FraudAssessment(CamelModel):
    authenticity_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    red_flags: List[str] = Field(default_factory=list)
    passed_checks: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class Affordability(CamelModel):
    generic_alternative: Optional[str] = None
    estimated_savings: Optional[str] = None
    senior_discount_eligible: bool = True
    phil_health_coverage: Optional[str] = None
    government_programs: List[str] = Field(default_factory=list)


class MedicineRecord(CamelModel):
    medicine_name: str = "Unknown Medicine"
    active_ingredients: str = "Not identified"
    common_uses: str = "Not available"
    dosage: str = "Not visible"
    warnings: Union[str, List[str]] = "Consult a doctor"
    recommended_time: Optional[str] = None  # "HH:MM"
    food_warnings: List[str] = Field(default_factory=list)

    # prescription context
    prescribed_by: Optional[str] = None
    hospital: Optional[str] = None
    signature_verified: Optional[bool] = None
    license_number: Optional[str] = None
    patient_name: Optional[str] = None
    patient_age: Optional[str] = None
    patient_sex: Optional[str] = None

    affordability: Affordability = Field(default_factory=Affordability)
    fraud_detection: Optional[FraudAssessment] = None

    parse_error: bool = False

    def warnings_text(self) -> str:
        if isinstance(self.warnings, list):
            return "\n".join(self.warnings)
        return self.warnings


class InteractionReport(CamelModel):
    has_conflict: bool = False
    severity: Severity = "none"
    description: str
    # False when the check itself could not run ("unknown", not "safe")
    checked: bool = True


class ToneProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    tone_id: str
    label: str
    vibration_pattern: tuple[int, ...]  # ms on/off
    priority: Priority
    sound: bool = True


class NotificationPayload(BaseModel):
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)
    tone_id: str
    vibration_pattern: List[int] = Field(default_factory=list)
    priority: Priority
    sound: bool = True


class ScheduledTrigger(BaseModel):
    medicine_name: str
    fire_at: datetime
    seconds_until: int
    is_auto: bool = False
    payload: NotificationPayload


class ReminderResult(BaseModel):
    status: ReminderStatus
    trigger: Optional[ScheduledTrigger] = None
    notification_id: Optional[str] = None
    error: Optional[str] = None
    # auto reminders never interrupt the user with a failure
    surface_error: bool = False


class TranslatedFields(BaseModel):
    name: str
    purpose: str
    warnings: str


class SpokenText(BaseModel):
    text: str
    language: str
    speech_tag: str
    source: SpeechSource
    translated: bool


# ---------------------------
# Persistence
# ---------------------------
class SavedScan(BaseModel):
    id: str
    timestamp: float
    image_ref: str = ""
    analysis: List[MedicineRecord] = Field(default_factory=list)


class MedicationEntry(BaseModel):
    id: str
    scan_date: datetime
    image_ref: str = ""
    analysis: MedicineRecord
    status: MedicationStatus = "active"
    start_date: datetime
    end_date: Optional[datetime] = None
    refill_date: Optional[datetime] = None
    notes: Optional[str] = None
    last_taken: Optional[datetime] = None


class DailyScheduleItem(BaseModel):
    time: str
    medication_id: str
    medication_name: str
    dosage: str
    taken: bool
    taken_at: Optional[datetime] = None


class DuplicateGroup(BaseModel):
    ingredient: str
    medications: List[MedicationEntry]


# ---------------------------
# HTTP surface
# ---------------------------
class ScanRequest(BaseModel):
    image_base64: Optional[str] = None
    raw_text: Optional[str] = None  # pre-computed inference output (tests, retries)
    image_ref: str = ""
    tone_id: Optional[str] = None
    save: bool = True


class ScanResponse(BaseModel):
    scan_id: str
    records: List[MedicineRecord]
    interactions: InteractionReport
    auto_reminder: Optional[ReminderResult] = None
    safety_note: str = SAFETY_NOTE


class LanguageRequest(BaseModel):
    language: str


class LanguageResponse(BaseModel):
    language: str
    translated: bool
    # a newer language request is still in flight
    translating: bool = False
    translations: Dict[int, TranslatedFields] = Field(default_factory=dict)


class SpeakRequest(BaseModel):
    text: str
    record_index: Optional[int] = None
    field: Optional[TranslatableField] = None


class ReminderRequest(BaseModel):
    record_index: int = 0
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(0, ge=0, le=59)
    tone_id: Optional[str] = None


class SaveMedicationRequest(BaseModel):
    scan_id: str
    record_index: int = 0
    image_ref: str = ""


class MedicationStatusRequest(BaseModel):
    status: MedicationStatus

# medscan/services/llm/record_schema.py
"""
Declarative shape of one medicine record as the vision model returns it.

Each entry maps the wire key to (kind, fallback). Kinds:
  text          non-empty string, else the fallback phrase
  text_or_list  string or list of strings (warnings), else the fallback phrase
  list          list of strings; a lone scalar is wrapped, missing -> []
  optional      non-empty string or None
  tristate      True / False / None
  default_true  True unless explicitly false
"""
from typing import Any, Dict, List, NamedTuple


class FieldRule(NamedTuple):
    kind: str
    fallback: Any = None


RECORD_FIELDS: Dict[str, FieldRule] = {
    "medicineName": FieldRule("text", "Unknown Medicine"),
    "activeIngredients": FieldRule("text", "Not identified"),
    "commonUses": FieldRule("text", "Not available"),
    "dosage": FieldRule("text", "Not visible"),
    "warnings": FieldRule("text_or_list", "Consult a doctor"),
    "recommendedTime": FieldRule("optional"),
    "foodWarnings": FieldRule("list"),
    "prescribedBy": FieldRule("optional"),
    "hospital": FieldRule("optional"),
    "signatureVerified": FieldRule("tristate"),
    "licenseNumber": FieldRule("optional"),
    "patientName": FieldRule("optional"),
    "patientAge": FieldRule("optional"),
    "patientSex": FieldRule("optional"),
}

AFFORDABILITY_FIELDS: Dict[str, FieldRule] = {
    "genericAlternative": FieldRule("optional"),
    "estimatedSavings": FieldRule("optional"),
    "seniorDiscountEligible": FieldRule("default_true", True),
    "philHealthCoverage": FieldRule("optional"),
    "governmentPrograms": FieldRule("list"),
}

# any of these present => the record is a prescription and gets scored
PRESCRIPTION_KEYS = ("prescribedBy", "hospital", "licenseNumber", "signatureVerified")

_TRUE_WORDS = {"true", "yes", "y", "1"}
_FALSE_WORDS = {"false", "no", "n", "0"}


def _as_text(v: Any) -> str:
    if v is None or isinstance(v, bool):
        return ""
    if isinstance(v, (int, float)):
        return str(v)
    if isinstance(v, str):
        return v.strip()
    if isinstance(v, list):
        return ", ".join(t for t in (_as_text(x) for x in v) if t)
    return ""


def _as_list(v: Any) -> List[str]:
    if v is None:
        return []
    items = v if isinstance(v, list) else [v]
    return [t for t in (_as_text(x) for x in items) if t]


def coerce_value(rule: FieldRule, v: Any) -> Any:
    if rule.kind == "text":
        return _as_text(v) or rule.fallback
    if rule.kind == "text_or_list":
        if isinstance(v, list):
            return _as_list(v) or rule.fallback
        return _as_text(v) or rule.fallback
    if rule.kind == "list":
        return _as_list(v)
    if rule.kind == "optional":
        return _as_text(v) or None
    if rule.kind == "tristate":
        if isinstance(v, bool):
            return v
        word = _as_text(v).lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        return None
    if rule.kind == "default_true":
        if v is False or _as_text(v).lower() in _FALSE_WORDS:
            return False
        return True
    raise ValueError(f"Unknown field kind: {rule.kind}")


def coerce_fields(item: Dict[str, Any], rules: Dict[str, FieldRule]) -> Dict[str, Any]:
    return {key: coerce_value(rule, item.get(key)) for key, rule in rules.items()}

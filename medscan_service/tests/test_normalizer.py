"""
Record normalization tests

- fence/prose tolerant parsing
- defaulting from the declarative schema
- sentinel record on parse failure, [] for an intentional empty array
- prescription context triggers scoring
"""
import json

import pytest

from medscan.services.llm.record_schema import RECORD_FIELDS, FieldRule, coerce_value
from medscan.services.llm.sanitize import parse_json_payload, strip_code_fences
from medscan.services.normalizer import normalize

DISPLAY_FIELDS = ("medicine_name", "active_ingredients", "common_uses", "dosage", "warnings")
LIST_FIELDS = ("food_warnings",)


class TestParsePipeline:
    def test_strips_json_fence(self):
        assert strip_code_fences('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'

    def test_strips_bare_fence(self):
        assert strip_code_fences("```\n{}\n```") == "{}"

    def test_prose_around_array(self):
        out = parse_json_payload('Here you go:\n[{"medicineName": "X"}]\nHope this helps!')
        assert out.ok and out.value == [{"medicineName": "X"}]

    def test_prose_around_object(self):
        out = parse_json_payload('Sure. {"medicineName": "X"} Done.')
        assert out.ok and out.value == {"medicineName": "X"}

    def test_garbage_is_tagged_failure(self):
        out = parse_json_payload("I could not read the label, sorry.")
        assert not out.ok
        assert out.raw == "I could not read the label, sorry."


class TestNormalizeShapes:
    def test_array_of_objects_keeps_length(self):
        raw = json.dumps([{"medicineName": "A"}, {"medicineName": "B"}, {}])
        records = normalize(raw)
        assert [r.medicine_name for r in records] == ["A", "B", "Unknown Medicine"]

    def test_single_object_becomes_one_record(self):
        records = normalize('{"medicineName": "Losartan"}')
        assert len(records) == 1
        assert records[0].medicine_name == "Losartan"

    def test_fenced_array(self):
        records = normalize('```json\n[{"medicineName": "Metformin"}]\n```')
        assert records[0].medicine_name == "Metformin"
        assert not records[0].parse_error

    def test_empty_array_is_not_a_failure(self):
        assert normalize("[]") == []

    def test_unparsable_gives_sentinel(self):
        raw = "The image is too blurry to identify any medicine. " * 5
        records = normalize(raw)
        assert len(records) == 1
        rec = records[0]
        assert rec.parse_error
        assert "Error" in rec.medicine_name
        assert len(rec.warnings) <= 100
        assert raw.startswith(rec.warnings)

    def test_scalar_json_is_a_failure(self):
        records = normalize("42")
        assert len(records) == 1 and records[0].parse_error

    def test_pathological_nesting_gives_sentinel(self):
        records = normalize("[" * 100000)
        assert len(records) == 1 and records[0].parse_error

    def test_non_object_elements_dropped(self):
        records = normalize('[{"medicineName": "A"}, "noise", 3]')
        assert [r.medicine_name for r in records] == ["A"]


class TestDefaulting:
    def test_no_nulls_in_display_fields(self):
        raw = json.dumps([{"medicineName": None, "dosage": "", "warnings": None, "foodWarnings": None}])
        rec = normalize(raw)[0]
        for name in DISPLAY_FIELDS:
            assert getattr(rec, name), name
        for name in LIST_FIELDS:
            assert getattr(rec, name) == []
        assert rec.affordability.government_programs == []

    def test_documented_fallbacks(self):
        rec = normalize("[{}]")[0]
        assert rec.medicine_name == "Unknown Medicine"
        assert rec.active_ingredients == "Not identified"
        assert rec.common_uses == "Not available"
        assert rec.dosage == "Not visible"
        assert rec.warnings == "Consult a doctor"
        assert rec.recommended_time is None

    def test_scalar_food_warning_wrapped(self):
        rec = normalize('{"foodWarnings": "Grapefruit"}')[0]
        assert rec.food_warnings == ["Grapefruit"]

    def test_warnings_list_kept_in_order(self):
        rec = normalize('{"warnings": ["May cause dizziness", "Avoid alcohol"]}')[0]
        assert rec.warnings == ["May cause dizziness", "Avoid alcohol"]

    def test_numeric_age_becomes_text(self):
        rec = normalize('{"patientAge": 72}')[0]
        assert rec.patient_age == "72"

    @pytest.mark.parametrize("value,expected", [(None, True), (True, True), (False, False), ("false", False)])
    def test_senior_discount_defaults_true(self, value, expected):
        raw = json.dumps({"affordability": {"seniorDiscountEligible": value}})
        assert normalize(raw)[0].affordability.senior_discount_eligible is expected

    def test_missing_affordability_block(self):
        aff = normalize("{}")[0].affordability
        assert aff.senior_discount_eligible is True
        assert aff.generic_alternative is None

    def test_schema_rules_in_isolation(self):
        assert coerce_value(RECORD_FIELDS["dosage"], "  ") == "Not visible"
        assert coerce_value(FieldRule("list"), ["a", "", None, "b"]) == ["a", "b"]
        assert coerce_value(FieldRule("tristate"), "maybe") is None
        assert coerce_value(FieldRule("tristate"), "yes") is True


class TestPrescriptionContext:
    def test_otc_product_not_scored(self):
        rec = normalize('{"medicineName": "Biogesic", "dosage": "500mg"}')[0]
        assert rec.fraud_detection is None

    def test_prescriber_triggers_scoring(self):
        rec = normalize('{"medicineName": "Norvasc", "prescribedBy": "Dr. Cruz"}')[0]
        assert rec.fraud_detection is not None
        assert "Prescribing doctor identified" in rec.fraud_detection.passed_checks

    def test_signature_false_alone_is_not_context(self):
        rec = normalize('{"medicineName": "Biogesic", "signatureVerified": false}')[0]
        assert rec.fraud_detection is None

    def test_signature_true_triggers_scoring(self):
        rec = normalize('{"signatureVerified": true}')[0]
        assert rec.fraud_detection is not None

    def test_signature_false_with_prescriber_is_flagged(self):
        rec = normalize('{"prescribedBy": "Dr. Cruz", "signatureVerified": false}')[0]
        assert "No visible doctor signature" in rec.fraud_detection.red_flags

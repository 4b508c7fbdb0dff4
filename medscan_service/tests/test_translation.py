"""
Translation coordinator tests

- one batch call per language switch, keyed by position
- stale batches are discarded via the sequence token
- speak() three-tier fallback
"""
import asyncio
import json

import pytest

from medscan.core.errors import InferenceError
from medscan.schemas.models import MedicineRecord
from medscan.services.languages import find_language, speech_language_tag
from medscan.services.translation import TranslationCoordinator, parse_batch

from conftest import FakeInference


@pytest.fixture
def records():
    return [
        MedicineRecord(medicine_name="Aspirin", common_uses="Pain relief", warnings="Take with food"),
        MedicineRecord(medicine_name="Losartan", common_uses="Blood pressure", warnings=["Dizziness", "Avoid potassium"]),
    ]


def _batch(*names):
    return json.dumps([{"name": n, "purpose": f"{n} purpose", "warnings": f"{n} warnings"} for n in names])


async def _until(cond, rounds: int = 50):
    for _ in range(rounds):
        if cond():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


class TestBatch:
    def test_source_language_makes_no_call(self, records):
        async def scenario():
            fake = FakeInference()
            coord = TranslationCoordinator(records, fake, source_language="English")
            assert coord.set_language("English") is None
            return fake, coord

        fake, coord = asyncio.run(scenario())
        assert fake.calls == []
        assert coord.translations == {}

    def test_batch_populates_by_position(self, records):
        async def scenario():
            fake = FakeInference(_batch("Aspirina", "Losartán"))
            coord = TranslationCoordinator(records, fake, source_language="English")
            applied = await coord.set_language("Spanish")
            return fake, coord, applied

        fake, coord, applied = asyncio.run(scenario())
        assert applied is True
        assert len(fake.calls) == 1
        assert coord.translations[0].name == "Aspirina"
        assert coord.translations[1].name == "Losartán"
        # list warnings were flattened for the prompt
        assert "Dizziness\\nAvoid potassium" in fake.calls[0]["prompt"]

    def test_every_switch_bumps_token(self, records):
        async def scenario():
            coord = TranslationCoordinator(records, FakeInference(default="[]"), source_language="English")
            start = coord.sequence
            coord.set_language("French")
            coord.set_language("English")
            coord.set_language("English")
            return coord.sequence - start

        assert asyncio.run(scenario()) == 3

    def test_back_to_source_discards_late_batch(self, records):
        async def scenario():
            fake = FakeInference(_batch("Aspirine", "Losartan"))
            fake.hold_next()
            coord = TranslationCoordinator(records, fake, source_language="English")
            french = coord.set_language("French")
            await _until(lambda: fake.calls)
            assert coord.set_language("English") is None
            fake.release(0)
            applied = await french
            return coord, applied

        coord, applied = asyncio.run(scenario())
        assert applied is False
        assert coord.translations == {}
        assert coord.target_language == "English"

    def test_in_flight_flag(self, records):
        async def scenario():
            fake = FakeInference(_batch("Aspirine", "Losartan"))
            fake.hold_next()
            coord = TranslationCoordinator(records, fake, source_language="English")
            french = coord.set_language("French")
            await _until(lambda: fake.calls)
            during = coord.is_translating
            fake.release(0)
            await french
            return during, coord.is_translating

        assert asyncio.run(scenario()) == (True, False)

    def test_out_of_order_responses(self, records):
        async def scenario():
            # German answers first, the held French answer arrives last
            fake = FakeInference(_batch("Aspirin DE", "Losartan DE"), _batch("Aspirine", "Losartan FR"))
            fake.hold_next()
            coord = TranslationCoordinator(records, fake, source_language="English")
            french = coord.set_language("French")
            await _until(lambda: fake.calls)
            german = coord.set_language("German")
            assert await german is True
            fake.release(0)
            assert await french is False
            return coord

        coord = asyncio.run(scenario())
        assert coord.target_language == "German"
        assert coord.translations[0].name == "Aspirin DE"

    def test_failed_batch_leaves_map_empty(self, records):
        async def scenario():
            coord = TranslationCoordinator(records, FakeInference(InferenceError("down")), source_language="English")
            applied = await coord.set_language("Korean")
            return coord, applied

        coord, applied = asyncio.run(scenario())
        assert applied is False
        assert coord.translations == {}

    def test_parse_batch_tolerates_short_answer(self):
        out = parse_batch('```json\n[{"name": "A", "purpose": "p", "warnings": ["w1", "w2"]}]\n```', 2)
        assert list(out) == [0]
        assert out[0].warnings == "w1\nw2"

    def test_parse_batch_rejects_object(self):
        with pytest.raises(ValueError):
            parse_batch('{"name": "A"}', 1)


class TestSpeak:
    def test_uses_batch_entry(self, records):
        async def scenario():
            fake = FakeInference(_batch("Aspirina", "Losartán"))
            coord = TranslationCoordinator(records, fake, source_language="English")
            await coord.set_language("Spanish")
            return await coord.speak("Pain relief", 0, "purpose"), fake

        spoken, fake = asyncio.run(scenario())
        assert spoken.text == "Aspirina purpose"
        assert spoken.source == "batch"
        assert spoken.speech_tag == "es-ES"
        assert len(fake.calls) == 1

    def test_field_inferred_from_text(self, records):
        async def scenario():
            fake = FakeInference(_batch("Aspirina", "Losartán"))
            coord = TranslationCoordinator(records, fake, source_language="English")
            await coord.set_language("Spanish")
            by_warning = await coord.speak("Dizziness\nAvoid potassium", 1)
            return by_warning, fake

        spoken, fake = asyncio.run(scenario())
        assert spoken.source == "batch"
        assert spoken.text == "Losartán warnings"
        assert len(fake.calls) == 1

    def test_unmatched_text_goes_adhoc(self, records):
        async def scenario():
            fake = FakeInference(_batch("Aspirina", "Losartán"), "Tome con agua")
            coord = TranslationCoordinator(records, fake, source_language="English")
            await coord.set_language("Spanish")
            return await coord.speak("Take with water", 0)

        spoken = asyncio.run(scenario())
        assert spoken.source == "adhoc"
        assert spoken.text == "Tome con agua"

    def test_adhoc_when_no_batch_entry(self, records):
        async def scenario():
            fake = FakeInference(InferenceError("batch down"), "Alivio del dolor")
            coord = TranslationCoordinator(records, fake, source_language="English")
            await coord.set_language("Spanish")
            return await coord.speak("Pain relief", 0, "purpose"), fake

        spoken, fake = asyncio.run(scenario())
        assert spoken.text == "Alivio del dolor"
        assert spoken.source == "adhoc"
        assert spoken.translated is True
        prompt = fake.calls[-1]["prompt"]
        assert "Pain relief" in prompt
        assert "Losartan" not in prompt

    def test_adhoc_while_batch_in_flight(self, records):
        async def scenario():
            fake = FakeInference("Soulagement", default=_batch("A", "B"))
            fake.hold_next()
            coord = TranslationCoordinator(records, fake, source_language="English")
            pending = coord.set_language("French")
            await _until(lambda: fake.calls)
            spoken = await coord.speak("Pain relief", 0, "purpose")
            fake.release(0)
            await pending
            return spoken

        spoken = asyncio.run(scenario())
        assert spoken.source == "adhoc"
        assert spoken.text == "Soulagement"

    def test_source_language_speaks_verbatim(self, records):
        async def scenario():
            fake = FakeInference()
            coord = TranslationCoordinator(records, fake, source_language="English")
            return await coord.speak("Take with food", 0, "warnings"), fake

        spoken, fake = asyncio.run(scenario())
        assert spoken.text == "Take with food"
        assert spoken.source == "original"
        assert fake.calls == []

    def test_adhoc_failure_is_reported_untranslated(self, records):
        async def scenario():
            fake = FakeInference(InferenceError("batch down"), InferenceError("adhoc down"))
            coord = TranslationCoordinator(records, fake, source_language="English")
            await coord.set_language("Japanese")
            return await coord.speak("Pain relief", 0, "purpose")

        spoken = asyncio.run(scenario())
        assert spoken.translated is False
        assert spoken.language == "English"
        assert spoken.text == "Pain relief"


class TestLanguages:
    def test_find_by_prompt_name_or_code(self):
        assert find_language("french").code == "fr-FR"
        assert find_language("ja-JP").prompt_name == "Japanese"
        assert find_language("Klingon") is None

    def test_dialects_speak_with_base_voice(self):
        assert speech_language_tag("Ilocano dialect") == "en-US"
        assert speech_language_tag("German") == "de-DE"

# medscan/services/translation.py
"""
Per-session translation of displayed records.

State lives in three attributes: the target language, the translation map
(record index -> TranslatedFields) and a sequence token. Every language
change bumps the token and swaps in a fresh map; a batch result is applied
only if its token is still current. Out-of-order responses are expected.
"""
import asyncio
import json
import logging
from typing import Dict, List, Optional

from medscan.core.app_config import SOURCE_LANGUAGE
from medscan.core.errors import InferenceError
from medscan.schemas.models import MedicineRecord, SpokenText, TranslatedFields
from medscan.services.inference import InferenceService
from medscan.services.languages import speech_language_tag
from medscan.services.llm.prompts import BATCH_TRANSLATE_PROMPT, TRANSLATE_TEXT_PROMPT
from medscan.services.llm.sanitize import parse_json_payload, strip_code_fences

logger = logging.getLogger(__name__)


def _source_fields(record: MedicineRecord) -> Dict[str, str]:
    return {
        "name": record.medicine_name,
        "purpose": record.common_uses,
        "warnings": record.warnings_text(),
    }


def parse_batch(text: str, count: int) -> Dict[int, TranslatedFields]:
    """Position-keyed map from the model's JSON array; unusable entries are left out."""
    outcome = parse_json_payload(text)
    if not outcome.ok or not isinstance(outcome.value, list):
        raise ValueError("Batch translation was not a JSON array")

    items = outcome.value
    if len(items) != count:
        logger.warning(f"Batch translation returned {len(items)} entries for {count} records")

    out: Dict[int, TranslatedFields] = {}
    for i, item in enumerate(items[:count]):
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or "").strip()
        purpose = str(item.get("purpose") or "").strip()
        warnings = item.get("warnings")
        if isinstance(warnings, list):
            warnings = "\n".join(str(w) for w in warnings)
        warnings = str(warnings or "").strip()
        if name or purpose or warnings:
            out[i] = TranslatedFields(name=name, purpose=purpose, warnings=warnings)
    return out


class TranslationCoordinator:
    def __init__(
        self,
        records: List[MedicineRecord],
        inference: InferenceService,
        source_language: str = SOURCE_LANGUAGE,
    ):
        # positions are the keys; the record list is fixed for the session
        self._records = tuple(records)
        self._inference = inference
        self.source_language = source_language
        self.target_language = source_language
        self._translations: Dict[int, TranslatedFields] = {}
        self._sequence = 0
        self._pending: Optional[asyncio.Task] = None

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def translations(self) -> Dict[int, TranslatedFields]:
        return dict(self._translations)

    @property
    def is_translating(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def is_source(self, language: str) -> bool:
        return language.strip().lower() == self.source_language.strip().lower()

    def translation_for(self, index: Optional[int]) -> Optional[TranslatedFields]:
        if index is None:
            return None
        return self._translations.get(index)

    def set_language(self, target: str) -> Optional[asyncio.Task]:
        """
        Switch the target language. Synchronous part: bump the token, drop the
        current map. Returns the in-flight batch task, or None when no request
        is needed (source language or nothing to translate).
        Must be called from a running event loop.
        """
        self._sequence += 1
        token = self._sequence
        self.target_language = target
        self._translations = {}

        if self.is_source(target) or not self._records:
            self._pending = None
            return None

        self._pending = asyncio.ensure_future(self._run_batch(token, target))
        return self._pending

    async def _run_batch(self, token: int, target: str) -> bool:
        payload = json.dumps([_source_fields(r) for r in self._records], ensure_ascii=False)
        prompt = BATCH_TRANSLATE_PROMPT.format(language=target, payload=payload, count=len(self._records))
        try:
            text = await self._inference.infer(prompt)
            batch = parse_batch(text, len(self._records))
        except (InferenceError, ValueError) as e:
            if token == self._sequence:
                logger.warning(f"Batch translation to {target} failed: {e}")
            return False

        if token != self._sequence:
            logger.debug(f"Discarding stale {target} batch (token {token}, current {self._sequence})")
            return False

        self._translations = batch
        return True

    async def translate_text(self, text: str, target: str) -> str:
        prompt = TRANSLATE_TEXT_PROMPT.format(language=target, text=text)
        out = strip_code_fences(await self._inference.infer(prompt))
        return out.strip().strip('"').strip()

    def _field_for_text(self, index: int, text: str) -> Optional[str]:
        """Which displayed field of record `index` holds `text`, if any."""
        if not 0 <= index < len(self._records):
            return None
        wanted = text.strip()
        for name, value in _source_fields(self._records[index]).items():
            if value.strip() == wanted:
                return name
        return None

    async def speak(
        self,
        field_text: str,
        record_index: Optional[int] = None,
        field: Optional[str] = None,
    ) -> SpokenText:
        """
        Best text for speech synthesis:
          1) the batch translation for this record (current target)
          2) an ad-hoc translation of exactly field_text when a foreign target is active
          3) field_text as-is
        """
        target = self.target_language
        tag = speech_language_tag(target)

        entry = self.translation_for(record_index)
        if entry is not None and field is None:
            field = self._field_for_text(record_index, field_text)
        if entry is not None and field in ("name", "purpose", "warnings"):
            text = getattr(entry, field)
            if text:
                return SpokenText(text=text, language=target, speech_tag=tag, source="batch", translated=True)

        if not self.is_source(target):
            try:
                text = await self.translate_text(field_text, target)
            except InferenceError as e:
                logger.warning(f"Ad-hoc translation to {target} failed: {e}")
                text = ""
            if text:
                return SpokenText(text=text, language=target, speech_tag=tag, source="adhoc", translated=True)
            # foreign language is selected but nothing was translated: say so
            return SpokenText(
                text=field_text,
                language=self.source_language,
                speech_tag=speech_language_tag(self.source_language),
                source="original",
                translated=False,
            )

        return SpokenText(text=field_text, language=target, speech_tag=tag, source="original", translated=False)

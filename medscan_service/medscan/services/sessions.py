# medscan/services/sessions.py
import logging
from typing import Dict, List, Optional

from medscan.core.app_config import SOURCE_LANGUAGE
from medscan.schemas.models import InteractionReport, MedicineRecord
from medscan.services.inference import InferenceService
from medscan.services.translation import TranslationCoordinator

logger = logging.getLogger(__name__)


class ScanSession:
    """Records of one scan plus the translation state shown alongside them."""

    def __init__(
        self,
        scan_id: str,
        records: List[MedicineRecord],
        inference: InferenceService,
        interactions: Optional[InteractionReport] = None,
        source_language: str = SOURCE_LANGUAGE,
    ):
        self.scan_id = scan_id
        self.records = tuple(records)
        self.interactions = interactions
        self.translation = TranslationCoordinator(list(records), inference, source_language)

    def record(self, index: int) -> Optional[MedicineRecord]:
        if 0 <= index < len(self.records):
            return self.records[index]
        return None


class SessionRegistry:
    def __init__(self):
        self._sessions: Dict[str, ScanSession] = {}

    def open(self, session: ScanSession) -> ScanSession:
        self._sessions[session.scan_id] = session
        return session

    def get(self, scan_id: str) -> Optional[ScanSession]:
        return self._sessions.get(scan_id)

    def close(self, scan_id: str) -> bool:
        # in-flight batches may still resolve; their results land on an unreachable coordinator
        closed = self._sessions.pop(scan_id, None) is not None
        if closed:
            logger.debug(f"Closed scan session {scan_id}")
        return closed

    def __len__(self) -> int:
        return len(self._sessions)

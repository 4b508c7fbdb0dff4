# medscan/services/storage.py
"""
Key-value persistence for scan history and the user's medication list.

Two JSON documents live in the kv table:
  recent_scans        newest-first list, capped at RECENT_SCANS_LIMIT
  clarify_medications list of MedicationEntry
"""
import json
import logging
import sqlite3
import threading
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from medscan.core.app_config import RECENT_SCANS_LIMIT
from medscan.core.errors import StorageError
from medscan.schemas.models import (
    DailyScheduleItem,
    DuplicateGroup,
    MedicationEntry,
    MedicationStatus,
    MedicineRecord,
    SavedScan,
)

logger = logging.getLogger(__name__)

SCANS_KEY = "recent_scans"
MEDICATIONS_KEY = "clarify_medications"


def _new_id() -> str:
    return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class ScanStore:
    def __init__(self, conn: sqlite3.Connection, recent_limit: int = RECENT_SCANS_LIMIT):
        self._conn = conn
        # reentrant: held across each read-modify-write
        self._lock = threading.RLock()
        self.recent_limit = recent_limit

    # ---------------------------
    # raw kv
    # ---------------------------
    def _get(self, key: str) -> Any:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if not row:
            return None
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning(f"Corrupt value under {key!r}, treating as empty")
            return None

    def _set(self, key: str, value: Any) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT INTO kv (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, json.dumps(value)),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {key!r}: {e}") from e

    def _delete(self, key: str) -> None:
        try:
            with self._lock:
                self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete {key!r}: {e}") from e

    # ---------------------------
    # recent scans
    # ---------------------------
    def save_scan(self, records: List[MedicineRecord], image_ref: str = "") -> SavedScan:
        scan = SavedScan(id=_new_id(), timestamp=time.time(), image_ref=image_ref, analysis=records)
        with self._lock:
            existing = self.get_recent_scans()
            updated = [scan, *existing][: self.recent_limit]
            self._set(SCANS_KEY, [s.model_dump(mode="json", by_alias=True) for s in updated])
        return scan

    def get_recent_scans(self) -> List[SavedScan]:
        data = self._get(SCANS_KEY) or []
        scans: List[SavedScan] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            analysis = item.get("analysis")
            # older entries stored one record instead of a list
            if analysis is not None and not isinstance(analysis, list):
                item = {**item, "analysis": [analysis]}
            try:
                scans.append(SavedScan.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable scan {item.get('id')}: {e}")
        return scans

    def clear_scans(self) -> None:
        self._delete(SCANS_KEY)

    # ---------------------------
    # medications
    # ---------------------------
    def _save_medications(self, meds: List[MedicationEntry]) -> None:
        self._set(MEDICATIONS_KEY, [m.model_dump(mode="json", by_alias=True) for m in meds])

    def list_medications(self, active_only: bool = False) -> List[MedicationEntry]:
        data = self._get(MEDICATIONS_KEY) or []
        meds: List[MedicationEntry] = []
        for item in data:
            try:
                meds.append(MedicationEntry.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable medication: {e}")
        if active_only:
            return [m for m in meds if m.status == "active"]
        return meds

    def save_medication(self, record: MedicineRecord, image_ref: str = "") -> MedicationEntry:
        now = datetime.now()
        entry = MedicationEntry(id=_new_id(), scan_date=now, image_ref=image_ref, analysis=record, start_date=now)
        with self._lock:
            meds = self.list_medications()
            meds.append(entry)
            self._save_medications(meds)
        return entry

    def _update(self, med_id: str, **changes: Any) -> Optional[MedicationEntry]:
        with self._lock:
            meds = self.list_medications()
            for i, m in enumerate(meds):
                if m.id == med_id:
                    meds[i] = m.model_copy(update=changes)
                    self._save_medications(meds)
                    return meds[i]
        return None

    def update_medication_status(self, med_id: str, status: MedicationStatus) -> Optional[MedicationEntry]:
        changes: Dict[str, Any] = {"status": status}
        if status != "active":
            changes["end_date"] = datetime.now()
        return self._update(med_id, **changes)

    def mark_medication_taken(self, med_id: str, when: Optional[datetime] = None) -> Optional[MedicationEntry]:
        return self._update(med_id, last_taken=when or datetime.now())

    def delete_medication(self, med_id: str) -> bool:
        with self._lock:
            meds = self.list_medications()
            kept = [m for m in meds if m.id != med_id]
            if len(kept) == len(meds):
                return False
            self._save_medications(kept)
        return True

    def today_schedule(self, now: Optional[datetime] = None) -> List[DailyScheduleItem]:
        now = now or datetime.now()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

        items: List[DailyScheduleItem] = []
        for med in self.list_medications(active_only=True):
            if not med.analysis.recommended_time:
                continue
            taken = med.last_taken is not None and med.last_taken >= midnight
            items.append(DailyScheduleItem(
                time=med.analysis.recommended_time,
                medication_id=med.id,
                medication_name=med.analysis.medicine_name,
                dosage=med.analysis.dosage,
                taken=taken,
                taken_at=med.last_taken if taken else None,
            ))

        items.sort(key=lambda x: x.time)
        return items

    def find_duplicate_medications(self) -> List[DuplicateGroup]:
        by_ingredient: Dict[str, List[MedicationEntry]] = {}
        for med in self.list_medications(active_only=True):
            key = med.analysis.active_ingredients.strip().lower()
            if not key or key == "not identified":
                continue
            by_ingredient.setdefault(key, []).append(med)

        return [
            DuplicateGroup(ingredient=ingredient, medications=meds)
            for ingredient, meds in by_ingredient.items()
            if len(meds) > 1
        ]

# medscan/api/routes_history.py
import asyncio
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from medscan.api.deps import Engine, get_engine
from medscan.core.errors import StorageError
from medscan.schemas.models import (
    DailyScheduleItem,
    DuplicateGroup,
    MedicationEntry,
    MedicationStatusRequest,
    SavedScan,
    SaveMedicationRequest,
)
from medscan.services.security import verify_internal_service

router = APIRouter(prefix="/history", tags=["history"])


async def _store_call(fn, *args):
    try:
        return await asyncio.to_thread(fn, *args)
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/scans", response_model=List[SavedScan])
async def recent_scans(engine: Engine = Depends(get_engine)):
    return await _store_call(engine.store.get_recent_scans)


@router.delete("/scans")
async def clear_scans(engine: Engine = Depends(get_engine), _=Depends(verify_internal_service)):
    await _store_call(engine.store.clear_scans)
    return {"ok": True}


@router.get("/medications", response_model=List[MedicationEntry])
async def medications(active_only: bool = False, engine: Engine = Depends(get_engine)):
    return await _store_call(engine.store.list_medications, active_only)


@router.post("/medications", response_model=MedicationEntry)
async def save_medication(req: SaveMedicationRequest, engine: Engine = Depends(get_engine)):
    session = engine.sessions.get(req.scan_id)
    if session is None:
        raise HTTPException(status_code=404, detail="scan session not found")
    record = session.record(req.record_index)
    if record is None or record.parse_error:
        raise HTTPException(status_code=400, detail="No medicine at that index to save.")
    return await _store_call(engine.store.save_medication, record, req.image_ref)


@router.patch("/medications/{med_id}", response_model=MedicationEntry)
async def update_status(med_id: str, req: MedicationStatusRequest, engine: Engine = Depends(get_engine)):
    entry = await _store_call(engine.store.update_medication_status, med_id, req.status)
    if entry is None:
        raise HTTPException(status_code=404, detail="medication not found")
    return entry


@router.post("/medications/{med_id}/taken", response_model=MedicationEntry)
async def mark_taken(med_id: str, engine: Engine = Depends(get_engine)):
    entry = await _store_call(engine.store.mark_medication_taken, med_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="medication not found")
    return entry


@router.delete("/medications/{med_id}")
async def delete_medication(med_id: str, engine: Engine = Depends(get_engine)):
    if not await _store_call(engine.store.delete_medication, med_id):
        raise HTTPException(status_code=404, detail="medication not found")
    return {"ok": True}


@router.get("/today", response_model=List[DailyScheduleItem])
async def today(engine: Engine = Depends(get_engine)):
    return await _store_call(engine.store.today_schedule, datetime.now())


@router.get("/duplicates", response_model=List[DuplicateGroup])
async def duplicates(engine: Engine = Depends(get_engine)):
    return await _store_call(engine.store.find_duplicate_medications)

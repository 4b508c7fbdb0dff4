# medscan/api/routes_scan.py
import asyncio
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException

from medscan.agent.graph import scan_config
from medscan.api.deps import Engine, get_engine
from medscan.schemas.models import (
    InteractionReport,
    LanguageRequest,
    LanguageResponse,
    MedicineRecord,
    ReminderRequest,
    ReminderResult,
    ScanRequest,
    ScanResponse,
    SpeakRequest,
    SpokenText,
)
from medscan.services.languages import find_language
from medscan.services.reminders import request_reminder
from medscan.services.sessions import ScanSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scan", tags=["scan"])


def _session_or_404(engine: Engine, scan_id: str) -> ScanSession:
    session = engine.sessions.get(scan_id)
    if session is None:
        raise HTTPException(status_code=404, detail="scan session not found (closed or expired)")
    return session


def _language_name(language: str) -> str:
    lang = find_language(language)
    if lang is None:
        raise HTTPException(status_code=400, detail=f"Unsupported language: {language}")
    return lang.prompt_name


@router.post("/analyze", response_model=ScanResponse)
async def analyze_scan(req: ScanRequest, engine: Engine = Depends(get_engine)):
    if not req.image_base64 and not req.raw_text:
        raise HTTPException(status_code=400, detail="Provide image_base64 or raw_text.")

    scan_id = "scan_" + uuid.uuid4().hex
    initial_state = {
        "scan_id": scan_id,
        "tone_id": req.tone_id or engine.default_tone,
        "image_b64": req.image_base64 or "",
        "raw_text": req.raw_text or "",
        "audit": [],
    }

    result = await engine.graph.ainvoke(initial_state, config=scan_config(scan_id))

    if result.get("error"):
        raise HTTPException(status_code=502, detail=result["error"])

    records = [MedicineRecord.model_validate(r) for r in result.get("records", [])]
    interactions = InteractionReport.model_validate(result["interactions"])
    auto = result.get("auto_reminder")

    engine.sessions.open(ScanSession(scan_id, records, engine.inference, interactions))

    # a parse failure is still shown, but never saved as history
    if req.save and records and not any(r.parse_error for r in records):
        await asyncio.to_thread(engine.store.save_scan, records, req.image_ref)

    return ScanResponse(
        scan_id=scan_id,
        records=records,
        interactions=interactions,
        auto_reminder=ReminderResult.model_validate(auto) if auto else None,
    )


@router.get("/{scan_id}", response_model=ScanResponse)
def get_scan(scan_id: str, engine: Engine = Depends(get_engine)):
    session = _session_or_404(engine, scan_id)
    return ScanResponse(
        scan_id=scan_id,
        records=list(session.records),
        interactions=session.interactions,
    )


@router.post("/{scan_id}/interactions", response_model=InteractionReport)
async def retry_interactions(scan_id: str, engine: Engine = Depends(get_engine)):
    session = _session_or_404(engine, scan_id)
    records = [r for r in session.records if not r.parse_error]
    session.interactions = await engine.analyzer.analyze(records)
    return session.interactions


@router.post("/{scan_id}/language", response_model=LanguageResponse)
async def set_language(scan_id: str, req: LanguageRequest, engine: Engine = Depends(get_engine)):
    session = _session_or_404(engine, scan_id)
    target = _language_name(req.language)

    coordinator = session.translation
    pending = coordinator.set_language(target)
    translated = True
    if pending is not None:
        translated = await pending

    # a newer request may have superseded this one while we waited
    return LanguageResponse(
        language=coordinator.target_language,
        translated=translated and coordinator.target_language == target,
        translations=coordinator.translations,
        translating=coordinator.is_translating,
    )


@router.post("/{scan_id}/speak", response_model=SpokenText)
async def speak(scan_id: str, req: SpeakRequest, engine: Engine = Depends(get_engine)):
    session = _session_or_404(engine, scan_id)
    return await session.translation.speak(req.text, req.record_index, req.field)


@router.post("/{scan_id}/reminders", response_model=ReminderResult)
async def create_reminder(scan_id: str, req: ReminderRequest, engine: Engine = Depends(get_engine)):
    session = _session_or_404(engine, scan_id)
    record = session.record(req.record_index)
    if record is None:
        raise HTTPException(status_code=404, detail="record_index out of range")

    result = await request_reminder(
        engine.scheduler,
        engine.notifier,
        record.medicine_name,
        req.hour,
        req.minute,
        req.tone_id or engine.default_tone,
    )
    if result.status == "PERMISSION_REQUIRED":
        raise HTTPException(status_code=428, detail="Please enable notifications to set reminders.")
    if result.status == "FAILED":
        raise HTTPException(status_code=502, detail=f"Failed to set reminder: {result.error}")
    return result


@router.delete("/{scan_id}")
def close_scan(scan_id: str, engine: Engine = Depends(get_engine)):
    if not engine.sessions.close(scan_id):
        raise HTTPException(status_code=404, detail="scan session not found")
    return {"ok": True, "scan_id": scan_id}


@router.get("/{scan_id}/audit")
async def scan_audit(scan_id: str, engine: Engine = Depends(get_engine)):
    snap = await engine.graph.aget_state(scan_config(scan_id))
    return {"scan_id": scan_id, "audit": (snap.values or {}).get("audit", [])}

from typing import Any, Dict, List, Optional, TypedDict

class ScanState(TypedDict, total=False):
    # identity (scan_id doubles as LangGraph thread_id)
    scan_id: str
    tone_id: Optional[str]

    # inputs
    image_b64: str
    raw_text: str               # inference output; pre-filled to skip the vision call

    # outputs
    records: List[Dict[str, Any]]        # MedicineRecord dumps
    interactions: Dict[str, Any]         # InteractionReport dump
    auto_reminder: Optional[Dict[str, Any]]  # ReminderResult dump, None if not attempted
    error: str                           # inference failure (scan could not run)
    audit: List[Dict[str, Any]]

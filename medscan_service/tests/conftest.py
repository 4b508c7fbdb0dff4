"""
Shared fakes for the engine's external collaborators.
"""
import asyncio
from typing import List, Optional

import pytest

from medscan.core.errors import InferenceError
from medscan.schemas.models import MedicineRecord


class FakeInference:
    """
    Returns queued replies in order; an Exception in the queue is raised.
    `gate` (asyncio.Event) holds calls until set, to simulate slow responses.
    """

    def __init__(self, *replies, default: Optional[str] = None):
        self.replies = list(replies)
        self.default = default
        self.calls: List[dict] = []
        self.gates: List[Optional[asyncio.Event]] = []

    def hold_next(self) -> None:
        """The next call blocks until release() is called for it."""
        self.gates.append(None)

    async def infer(self, prompt: str, image_bytes: Optional[bytes] = None) -> str:
        self.calls.append({"prompt": prompt, "image_bytes": image_bytes})
        call_no = len(self.calls) - 1
        if call_no < len(self.gates):
            gate = asyncio.Event()
            self.gates[call_no] = gate
            await gate.wait()

        reply = self.replies.pop(0) if self.replies else self.default
        if reply is None:
            raise InferenceError("no reply queued")
        if isinstance(reply, Exception):
            raise reply
        return reply

    def release(self, call_no: int) -> None:
        self.gates[call_no].set()


@pytest.fixture
def complete_prescription() -> MedicineRecord:
    return MedicineRecord(
        medicine_name="Norvasc 5mg",
        active_ingredients="Amlodipine",
        common_uses="High blood pressure",
        dosage="1 tablet once daily",
        prescribed_by="Dr. Maria Santos",
        hospital="St. Luke's Medical Center",
        signature_verified=True,
        license_number="PRC No. 0123456",
        patient_name="Juan Dela Cruz",
        patient_age="72",
        patient_sex="M",
    )


@pytest.fixture
def bare_record() -> MedicineRecord:
    return MedicineRecord(medicine_name="Biogesic", active_ingredients="Paracetamol", common_uses="Fever")

from fastapi import FastAPI
from medscan.core.logging_config import setup_logging
from medscan.api.routes_scan import router as scan_router
from medscan.api.routes_history import router as history_router

setup_logging()

app = FastAPI(title="MedScan Trust & Scheduling Engine", version="1.0")

app.include_router(scan_router)
app.include_router(history_router)

@app.get("/health")
def health():
    return {"ok": True}
@app.get("/")
def root():
    return {"ok": True, "service": "MedScan Trust & Scheduling Engine"}

import os
from fastapi import Header, HTTPException
from medscan.core.env import load_env
load_env()


def verify_internal_service(x_internal_key: str = Header(...)):
    # read at call time so rotating the secret needs no restart
    secret = os.getenv("INTERNAL_SERVICE_SECRET")

    if not secret:
        raise HTTPException(
            status_code=500,
            detail="Internal service secret not configured."
        )

    if x_internal_key != secret:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized service call."
        )

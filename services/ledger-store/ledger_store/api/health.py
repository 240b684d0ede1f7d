"""
Ledger Store — Health endpoint
"""
import asyncio

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ledger_store.api.deps import get_ledger
from ledger_store.core.config import get_settings
from ledger_store.db.ledger_store import LedgerStore

settings = get_settings()
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(ledger: LedgerStore = Depends(get_ledger)):
    deps: dict[str, str] = {}
    healthy = True

    storage = ledger.storage
    try:
        ok = await asyncio.wait_for(storage.ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps[f"snapshot:{storage.name}"] = "ok" if ok else "error: not writable"
        healthy = bool(ok)
    except Exception as e:
        deps[f"snapshot:{storage.name}"] = f"error: {str(e)[:100]}"
        healthy = False

    return JSONResponse(
        content={
            "status": "healthy" if healthy else "degraded",
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "dependencies": deps,
        },
        status_code=200 if healthy else 503,
    )

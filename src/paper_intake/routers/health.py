from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from paper_intake.config import config
from paper_intake.errors import StorageUnavailable
from paper_intake.routers.dependencies import get_store
from paper_intake.services.registration_store import RegistrationStore

health = APIRouter(tags=["Health"])


@health.get("/health")
async def health_check(store: RegistrationStore = Depends(get_store)):
    """Check that the service is up and the database answers a trivial query"""
    try:
        response_time = await store.ping()
    except StorageUnavailable as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "error",
                "database": {"status": "disconnected", "error": str(e)},
            },
        )

    return {
        "status": "ok",
        "service": "paper-intake",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config["environment"],
        "database": {"status": "connected", "responseTime": response_time},
    }

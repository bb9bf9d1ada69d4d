"""System health and monitoring endpoints"""
from fastapi import APIRouter, Depends
from typing import Dict
import platform
import sys
from datetime import datetime, timezone

from api.dependencies import get_repository, verify_scheduler_secret

router = APIRouter(prefix="/api/v1/system", tags=["system"])


@router.get("/health")
async def health_check() -> Dict:
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": "1.0.0"
    }


@router.get("/stats", dependencies=[Depends(verify_scheduler_secret)])
async def system_stats() -> Dict:
    """Post counts per status"""
    repository = get_repository()
    counts = await repository.count_by_status()

    return {
        "system": {
            "python_version": sys.version,
            "platform": platform.platform()
        },
        "posts": counts
    }

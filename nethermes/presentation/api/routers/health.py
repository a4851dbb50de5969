"""
Health check API endpoints.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ....core.services.coordinator import TransferCoordinator
from ....core.services.reaper import Reaper
from ....infrastructure.config.models import ApplicationConfig
from ..dependencies import get_config, get_coordinator, get_reaper

router = APIRouter()


@router.get("")
async def health_check(
    config: ApplicationConfig = Depends(get_config),
    coordinator: TransferCoordinator = Depends(get_coordinator),
    reaper: Reaper = Depends(get_reaper)
) -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns application info, session counts and the reaper state.
    """
    coordinator_health = await coordinator.check_health()
    reaper_health = await reaper.check_health()

    return {
        "status": "healthy" if reaper_health["healthy"] else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "application": {
            "name": config.name,
            "version": config.version
        },
        "sessions": coordinator_health["details"]["sessions"],
        "reaper": reaper_health
    }

"""System health endpoint."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.resources import get_manager
from resources import ResourceManager

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=["System"])

@router.get("/health")
async def health(manager: ResourceManager = Depends(get_manager)):
    """Report service status and whether the store answers."""
    connected = await manager.store.ping()
    if not connected:
        logger.warning("Health check: store unreachable")

    return {
        "status": "OK" if connected else "DEGRADED",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "Connected" if connected else "Disconnected"
    }

"""Space endpoints."""
from fastapi import Depends

from api.models import SpacePayload
from api.resources import build_router, get_manager, to_http_error
from resources import ResourceManager

router = build_router('spaces', SpacePayload, "Spaces")

@router.get("/{spaceId}/shops")
async def get_space_shops(
    spaceId: str,
    manager: ResourceManager = Depends(get_manager)
):
    """Get the shops of one space, newest first."""
    try:
        shops = await manager.list_space_shops(spaceId)
        return {
            "shops": shops,
            "count": len(shops),
            "space_id": spaceId
        }
    except Exception as e:
        raise to_http_error(e)

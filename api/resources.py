"""Router factory for the resource endpoints.

Every resource exposes the same five operations under its own prefix:

    POST   /api/<kind>          create, or overwrite the provided fields
    GET    /api/<kind>/{key}    single lookup
    GET    /api/<kind>          listing, newest first (rooms accept ?spaceId=)
    PATCH  /api/<kind>/{key}    partial update of an existing row
    DELETE /api/<kind>/{key}    hard delete

Responses use the envelope names recorded on each kind, e.g.
`{"message": ..., "shop": {...}}` or `{"shops": [...], "count": 1}`.
"""
import logging
from typing import Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Query, status

from resources import (
    ForeignKeyError, NotFoundError, ResourceError, ResourceManager,
    ValidationError, get_kind, get_store
)
from .models import ResourcePayload

logger = logging.getLogger(__name__)

async def get_manager() -> ResourceManager:
    """Dependency providing a manager bound to the configured store."""
    return ResourceManager(await get_store())

def to_http_error(e: Exception) -> HTTPException:
    """Map a resource error onto an HTTP error.

    Anything that is not a resource error is logged and reported as a
    generic server error; details never reach the client.
    """
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (ValidationError, ForeignKeyError, ResourceError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.exception(f"Unhandled error: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )

def build_router(
    kind_name: str,
    payload_model: Type[ResourcePayload],
    tag: str,
    allow_delete: bool = True
) -> APIRouter:
    """Build the router for one resource kind.

    Args:
        kind_name: Resource kind, also the URL segment
        payload_model: Request model for POST and PATCH bodies
        tag: OpenAPI tag
        allow_delete: Whether to expose DELETE

    Returns:
        Router mounted at /api/<kind_name>
    """
    kind = get_kind(kind_name)
    router = APIRouter(prefix=f"/api/{kind_name}", tags=[tag])

    @router.post("")
    async def upsert_resource(
        payload: payload_model,
        manager: ResourceManager = Depends(get_manager)
    ):
        try:
            row, created = await manager.upsert(kind_name, payload.model_dump(exclude_unset=True))
            action = 'created' if created else 'updated'
            return {
                "message": f"{kind.label} {action} successfully",
                kind.envelope: row
            }
        except Exception as e:
            raise to_http_error(e)

    @router.get("/{key}")
    async def get_resource(
        key: str,
        manager: ResourceManager = Depends(get_manager)
    ):
        try:
            return {kind.envelope: await manager.get(kind_name, key)}
        except Exception as e:
            raise to_http_error(e)

    @router.get("")
    async def list_resources(
        spaceId: Optional[str] = Query(None),
        manager: ResourceManager = Depends(get_manager)
    ):
        try:
            space_id = spaceId if kind.has_parent else None
            rows = await manager.list(kind_name, space_id)
            result = {kind.collection: rows, "count": len(rows)}
            if space_id is not None:
                result["space_id"] = space_id
            return result
        except Exception as e:
            raise to_http_error(e)

    @router.patch("/{key}")
    async def patch_resource(
        key: str,
        payload: payload_model,
        manager: ResourceManager = Depends(get_manager)
    ):
        try:
            row = await manager.patch(kind_name, key, payload.model_dump(exclude_unset=True))
            return {
                "message": f"{kind.label} updated successfully",
                kind.envelope: row
            }
        except Exception as e:
            raise to_http_error(e)

    if allow_delete:
        @router.delete("/{key}")
        async def delete_resource(
            key: str,
            manager: ResourceManager = Depends(get_manager)
        ):
            try:
                row = await manager.delete(kind_name, key)
                return {
                    "message": f"{kind.label} deleted successfully",
                    kind.deleted_envelope: row
                }
            except Exception as e:
                raise to_http_error(e)

    return router

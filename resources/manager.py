"""Resource manager.

Implements create-or-update, partial update, lookup, listing and delete once
for every kind. The manager validates payloads, translates field names and
guards the space reference; the store does the persistence.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import ForeignKeyError, NotFoundError, ValidationError
from .kinds import SPACES, ResourceKind, get_kind, present_row
from .store import ResourceStore, get_store

logger = logging.getLogger(__name__)

def _blank(value: Any) -> bool:
    return value is None or value == ''

class ResourceManager:
    """Manages resource rows through a store."""

    def __init__(self, store: Optional[ResourceStore] = None):
        """Initialize resource manager.

        Args:
            store: Optional store. If not provided, the configured store is used.
        """
        self.store = store

    async def ensure_store(self) -> ResourceStore:
        """Ensure we have a store."""
        if not self.store:
            self.store = await get_store()
        return self.store

    async def _check_space(self, kind: ResourceKind, values: Dict[str, Any]) -> None:
        """Validate the space a payload points at.

        Raises:
            ValidationError: If a shop's space is being cleared
            ForeignKeyError: If the named space does not exist
        """
        if not kind.has_parent or 'space_id' not in values:
            return

        space_id = values['space_id']
        if _blank(space_id):
            if kind.parent_required:
                raise ValidationError("spaceId is required")
            values['space_id'] = None
            return

        if not await self.store.space_exists(space_id):
            raise ForeignKeyError(space_id)

    async def upsert(self, kind_name: str, payload: Mapping[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """Create a row, or overwrite the provided fields of an existing one.

        Args:
            kind_name: Resource kind
            payload: Request body keyed by payload field names

        Returns:
            Tuple of (row, created)

        Raises:
            ValidationError: If the key or a required field is missing
            ForeignKeyError: If the payload names a space that does not exist
        """
        await self.ensure_store()
        kind = get_kind(kind_name)

        if not isinstance(payload, Mapping):
            raise ValidationError("Request body must be an object")

        key = payload.get(kind.key_field)
        if _blank(key):
            raise ValidationError(f"{kind.key_field} is required")
        key = str(key)

        values = kind.translate(payload)
        await self._check_space(kind, values)

        existing = await self.store.fetch(kind, key)

        if existing is None:
            values[kind.key_column] = key
            missing = [name for name, column in kind.required if _blank(values.get(column))]
            if missing:
                raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

            row = await self.store.insert(kind, {**kind.create_defaults(), **values})
            logger.info(f"{kind.label} {key} created")
            return present_row(kind, row), True

        row = await self.store.update(kind, key, values)
        if row is None:
            raise NotFoundError(f"{kind.label} not found")

        logger.info(f"{kind.label} {key} updated")
        return present_row(kind, row), False

    async def patch(self, kind_name: str, key: str, body: Mapping[str, Any]) -> Dict[str, Any]:
        """Overwrite the provided fields of an existing row.

        Raises:
            ValidationError: If the body is empty or carries an unknown field
            NotFoundError: If no row has this key
            ForeignKeyError: If a room is moved to a space that does not exist
        """
        await self.ensure_store()
        kind = get_kind(kind_name)

        if not isinstance(body, Mapping):
            raise ValidationError("Request body must be an object")
        if not body:
            raise ValidationError("No update data provided")

        if await self.store.fetch(kind, key) is None:
            raise NotFoundError(f"{kind.label} not found")

        values = kind.translate(body)
        await self._check_space(kind, values)

        row = await self.store.update(kind, key, values)
        if row is None:
            raise NotFoundError(f"{kind.label} not found")

        logger.info(f"{kind.label} {key} patched ({', '.join(values) or 'timestamp only'})")
        return present_row(kind, row)

    async def get(self, kind_name: str, key: str) -> Dict[str, Any]:
        """Fetch one row.

        Raises:
            NotFoundError: If no row has this key
        """
        await self.ensure_store()
        kind = get_kind(kind_name)

        row = await self.store.fetch(kind, key)
        if row is None:
            raise NotFoundError(f"{kind.label} not found")
        return present_row(kind, row)

    async def list(self, kind_name: str, space_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """List rows newest first, optionally only those under one space."""
        await self.ensure_store()
        kind = get_kind(kind_name)

        rows = await self.store.fetch_all(kind, space_id if kind.has_parent else None)
        return [present_row(kind, row) for row in rows]

    async def list_space_shops(self, space_id: str) -> List[Dict[str, Any]]:
        """List the shops of an existing space.

        Raises:
            NotFoundError: If the space does not exist
        """
        await self.ensure_store()

        if not await self.store.space_exists(space_id):
            raise NotFoundError(f"{SPACES.label} not found")
        return await self.list('shops', space_id)

    async def delete(self, kind_name: str, key: str) -> Dict[str, Any]:
        """Delete a row and return it.

        Deleting a space deletes its shops and detaches its other rooms.

        Raises:
            NotFoundError: If no row has this key
        """
        await self.ensure_store()
        kind = get_kind(kind_name)

        row = await self.store.delete(kind, key)
        if row is None:
            raise NotFoundError(f"{kind.label} not found")

        logger.info(f"{kind.label} {key} deleted")
        return present_row(kind, row)

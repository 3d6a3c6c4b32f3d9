"""In-memory store.

Used for development without a database server and by the test suite. Rows
live in per-table dicts keyed by natural key; values are coerced exactly as
the PostgreSQL store coerces them, so both backends return the same shapes.
"""
import logging
from datetime import datetime
from itertools import count
from typing import Any, Dict, List, Optional

from .errors import ValidationError
from .kinds import KINDS, ROOM_KINDS, SPACES, ResourceKind, coerce_value
from .store import ResourceStore, Row

logger = logging.getLogger(__name__)

class MemoryStore(ResourceStore):
    """Dict-backed store with the same join, order and cascade rules as PostgreSQL."""

    def __init__(self):
        self._tables: Dict[str, Dict[str, Row]] = {kind.table: {} for kind in KINDS.values()}
        self._serials = {kind.table: count(1) for kind in KINDS.values()}

    async def ping(self) -> bool:
        return True

    async def space_exists(self, space_id: str) -> bool:
        return space_id in self._tables[SPACES.table]

    def _coerce(self, kind: ResourceKind, values: Dict[str, Any]) -> Dict[str, Any]:
        return {
            column: coerce_value(kind.column_types.get(column, 'text'), value)
            for column, value in values.items()
        }

    def _joined(self, kind: ResourceKind, row: Row, with_description: bool) -> Row:
        result = dict(row)
        if kind.has_parent:
            space = self._tables[SPACES.table].get(row.get('space_id'))
            result['space_title'] = space['title'] if space else None
            if with_description:
                result['space_description'] = space['description'] if space else None
        return result

    async def fetch(self, kind: ResourceKind, key: str) -> Optional[Row]:
        row = self._tables[kind.table].get(key)
        if row is None:
            return None
        return self._joined(kind, row, with_description=True)

    async def fetch_all(self, kind: ResourceKind, space_id: Optional[str] = None) -> List[Row]:
        rows = self._tables[kind.table].values()
        if space_id is not None:
            rows = [row for row in rows if row.get('space_id') == space_id]
        ordered = sorted(rows, key=lambda row: (row['created_at'], row['id']), reverse=True)
        return [self._joined(kind, row, with_description=False) for row in ordered]

    async def insert(self, kind: ResourceKind, values: Dict[str, Any]) -> Row:
        table = self._tables[kind.table]
        coerced = self._coerce(kind, values)
        key = coerced[kind.key_column]

        if key in table:
            raise ValidationError(f"{kind.label} {key} already exists")

        now = datetime.now()
        row = {'id': next(self._serials[kind.table])}
        row.update({column: None for column in kind.column_types})
        row.update(coerced)
        row['created_at'] = now
        row['updated_at'] = now

        table[key] = row
        logger.debug(f"Inserted {kind.table} row {key}")
        return dict(row)

    async def update(self, kind: ResourceKind, key: str, values: Dict[str, Any]) -> Optional[Row]:
        row = self._tables[kind.table].get(key)
        if row is None:
            return None

        row.update(self._coerce(kind, values))
        row['updated_at'] = datetime.now()
        return dict(row)

    async def delete(self, kind: ResourceKind, key: str) -> Optional[Row]:
        row = self._tables[kind.table].pop(key, None)
        if row is None:
            return None

        if kind is SPACES:
            self._release_rooms(key)

        return row

    def _release_rooms(self, space_id: str) -> None:
        """Delete a removed space's shops and detach its other rooms."""
        for room in ROOM_KINDS:
            table = self._tables[room.table]
            for room_key, row in list(table.items()):
                if row.get('space_id') != space_id:
                    continue
                if room.parent_required:
                    del table[room_key]
                else:
                    row['space_id'] = None

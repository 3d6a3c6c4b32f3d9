"""PostgreSQL store backed by the shared asyncpg pool."""
import logging
from typing import Any, Dict, List, Optional

import asyncpg
import backoff

from database import close as close_db, get_pool, init_db
from .errors import ForeignKeyError, ValidationError
from .kinds import SPACES, ResourceKind, coerce_value
from .store import ResourceStore, Row

logger = logging.getLogger(__name__)

CONNECTION_ERRORS = (
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.InterfaceError,
    OSError,
)

# Reads are safe to repeat after a dropped connection
retry_read = backoff.on_exception(backoff.expo, CONNECTION_ERRORS, max_tries=3)

class PostgresStore(ResourceStore):
    """Store that issues parameterised SQL against the resource tables."""

    def __init__(self, pool=None, db_url: Optional[str] = None):
        self.pool = pool
        self.db_url = db_url

    async def ensure_pool(self):
        """Ensure we have a database pool."""
        if not self.pool:
            self.pool = await get_pool()
        return self.pool

    async def open(self) -> None:
        if not self.pool:
            await init_db(self.db_url)
            self.pool = await get_pool()

    async def close(self) -> None:
        await close_db()
        self.pool = None

    async def ping(self) -> bool:
        try:
            await self.ensure_pool()
            async with self.pool.acquire() as conn:
                await conn.fetchval('SELECT 1')
            return True
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    @retry_read
    async def space_exists(self, space_id: str) -> bool:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            return await conn.fetchval(
                'SELECT EXISTS(SELECT 1 FROM spaces WHERE space_id = $1)',
                space_id
            )

    def _select(self, kind: ResourceKind, with_description: bool) -> str:
        if not kind.has_parent:
            return f'SELECT t.* FROM {kind.table} t'

        joined = 's.title AS space_title'
        if with_description:
            joined += ', s.description AS space_description'
        return f'''
            SELECT t.*, {joined}
            FROM {kind.table} t
            LEFT JOIN spaces s ON t.space_id = s.space_id
        '''

    def _params(self, kind: ResourceKind, values: Dict[str, Any], start: int = 1):
        """Render placeholders and coerced arguments for a set of columns."""
        placeholders = []
        args = []
        for i, (column, value) in enumerate(values.items(), start):
            column_type = kind.column_types.get(column, 'text')
            cast = '::jsonb' if column_type == 'json' else ''
            placeholders.append((column, f'${i}{cast}'))
            args.append(coerce_value(column_type, value))
        return placeholders, args

    @retry_read
    async def fetch(self, kind: ResourceKind, key: str) -> Optional[Row]:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f'{self._select(kind, with_description=True)} WHERE t.{kind.key_column} = $1',
                key
            )
            return dict(row) if row else None

    @retry_read
    async def fetch_all(self, kind: ResourceKind, space_id: Optional[str] = None) -> List[Row]:
        await self.ensure_pool()
        query = self._select(kind, with_description=False)
        args = []

        if space_id is not None:
            query += ' WHERE t.space_id = $1'
            args.append(space_id)

        query += ' ORDER BY t.created_at DESC, t.id DESC'

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]

    async def insert(self, kind: ResourceKind, values: Dict[str, Any]) -> Row:
        await self.ensure_pool()
        placeholders, args = self._params(kind, values)
        columns = ', '.join(column for column, _ in placeholders)
        params = ', '.join(placeholder for _, placeholder in placeholders)

        async with self.pool.acquire() as conn:
            try:
                row = await conn.fetchrow(
                    f'INSERT INTO {kind.table} ({columns}) VALUES ({params}) RETURNING *',
                    *args
                )
            except asyncpg.exceptions.UniqueViolationError:
                raise ValidationError(f"{kind.label} {values.get(kind.key_column)} already exists")
            except asyncpg.exceptions.IntegrityConstraintViolationError as e:
                raise self._constraint_error(kind, values, e)
            except asyncpg.exceptions.DataError as e:
                raise ValidationError(f"Invalid value for {kind.label.lower()}: {e}")

        logger.debug(f"Inserted {kind.table} row {values.get(kind.key_column)}")
        return dict(row)

    async def update(self, kind: ResourceKind, key: str, values: Dict[str, Any]) -> Optional[Row]:
        await self.ensure_pool()
        placeholders, args = self._params(kind, values, start=2)
        assignments = [f'{column} = {placeholder}' for column, placeholder in placeholders]
        assignments.append('updated_at = now()')

        async with self.pool.acquire() as conn:
            try:
                row = await conn.fetchrow(f'''
                    UPDATE {kind.table}
                    SET {', '.join(assignments)}
                    WHERE {kind.key_column} = $1
                    RETURNING *
                ''', key, *args)
            except asyncpg.exceptions.IntegrityConstraintViolationError as e:
                raise self._constraint_error(kind, values, e)
            except asyncpg.exceptions.DataError as e:
                raise ValidationError(f"Invalid value for {kind.label.lower()}: {e}")

        return dict(row) if row else None

    async def delete(self, kind: ResourceKind, key: str) -> Optional[Row]:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            # Shops go with their space, other rooms are detached by the foreign keys
            row = await conn.fetchrow(
                f'DELETE FROM {kind.table} WHERE {kind.key_column} = $1 RETURNING *',
                key
            )

        if row and kind is SPACES:
            logger.info(f"Deleted space {key} and released its rooms")
        return dict(row) if row else None

    @staticmethod
    def _constraint_error(kind: ResourceKind, values: Dict[str, Any], error: Exception) -> Exception:
        if isinstance(error, asyncpg.exceptions.ForeignKeyViolationError):
            return ForeignKeyError(values.get('space_id'))
        if isinstance(error, asyncpg.exceptions.NotNullViolationError):
            return ValidationError(f"Missing required field: {error.column_name}")
        return ValidationError(f"Invalid {kind.label.lower()}: {error}")

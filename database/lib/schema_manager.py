"""Database schema management module.

This module creates the tables declared in database.schema and keeps existing
tables in step with them. Migration is additive only: missing tables are
created, missing columns are backfilled, foreign keys and indexes are added.
Nothing is ever dropped and no version number is tracked.
"""
import logging
from typing import Dict, Any

from ..exceptions import DatabaseSchemaError

logger = logging.getLogger(__name__)

class SchemaManager:
    """Applies a schema definition to the database."""

    def __init__(self, pool, schema: Dict[str, Any]) -> None:
        """Initialize schema manager.

        Args:
            pool: Database connection pool
            schema: Schema definition (see database.schema.tables)
        """
        self.pool = pool
        self.schema = schema

    async def initialize(self) -> None:
        """Create missing tables and backfill missing columns.

        Raises:
            DatabaseSchemaError: If the schema cannot be applied
        """
        tables = self.schema.get('tables', [])
        if not tables:
            raise DatabaseSchemaError("Schema definition contains no tables")

        try:
            async with self.pool.acquire() as conn:
                # Tables first, so foreign keys always find their target
                for table in tables:
                    await self._create_table(conn, table)
                    await self._backfill_columns(conn, table)

                for table in tables:
                    await self._add_constraints(conn, table)

            logger.info(f"Schema ready ({len(tables)} tables)")

        except DatabaseSchemaError:
            raise
        except Exception as e:
            logger.error(f"Schema initialization failed: {e}")
            raise DatabaseSchemaError(f"Failed to initialize schema: {e}")

    @staticmethod
    def column_definition(col: Dict[str, Any], backfill: bool = False) -> str:
        """Render a column definition.

        Backfilled columns skip NOT NULL, since existing rows have no value for them.
        """
        col_def = f"{col['name']} {col['type']}"

        if 'default' in col:
            col_def += f" DEFAULT {col['default']}"

        if col.get('nullable') is False and not backfill:
            col_def += " NOT NULL"

        return col_def

    async def _create_table(self, conn, table: Dict[str, Any]) -> None:
        """Create a single table without foreign keys.

        Args:
            conn: Database connection
            table: Table definition dictionary
        """
        columns = []
        constraints = []

        for col in table['columns']:
            if col.get('primary_key'):
                constraints.append(f"PRIMARY KEY ({col['name']})")
            elif col.get('unique'):
                constraints.append(f"UNIQUE ({col['name']})")

            columns.append(self.column_definition(col))

        table_def = ', '.join(columns + constraints)

        await conn.execute(f'''
            CREATE TABLE IF NOT EXISTS {table['name']} (
                {table_def}
            )
        ''')
        logger.debug(f"Ensured table {table['name']}")

    async def _backfill_columns(self, conn, table: Dict[str, Any]) -> None:
        """Add any declared column that an older table is missing.

        Args:
            conn: Database connection
            table: Table definition dictionary
        """
        for col in table['columns']:
            if col.get('primary_key'):
                continue
            await conn.execute(f'''
                ALTER TABLE {table['name']}
                ADD COLUMN IF NOT EXISTS {self.column_definition(col, backfill=True)}
            ''')

    async def _add_constraints(self, conn, table: Dict[str, Any]) -> None:
        """Add foreign keys and indexes to a table.

        Args:
            conn: Database connection
            table: Table definition dictionary
        """
        for fk in table.get('foreign_keys', []):
            on_delete = f" ON DELETE {fk['on_delete']}" if 'on_delete' in fk else ''
            try:
                await conn.execute(f'''
                    ALTER TABLE {table['name']}
                    ADD CONSTRAINT fk_{table['name']}_{fk['columns'][0]}
                    FOREIGN KEY ({', '.join(fk['columns'])})
                    REFERENCES {fk['references']}{on_delete}
                ''')
                logger.info(
                    f"Added foreign key constraint to {table['name']} "
                    f"referencing {fk['references']}"
                )
            except Exception as e:
                if 'already exists' not in str(e):
                    raise
                logger.debug(f"Constraint already exists: {str(e)}")

        for idx in table.get('indexes', []):
            unique = 'UNIQUE ' if idx.get('unique') else ''
            await conn.execute(f'''
                CREATE {unique}INDEX IF NOT EXISTS {idx['name']}
                ON {table['name']}({', '.join(idx['columns'])})
            ''')

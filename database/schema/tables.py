"""Table definitions for the Space store.

Six tables: SNS users, spaces and the four room kinds that hang off a space.
Each row carries an application-chosen natural key (unique) next to the serial
primary key. Room tables reference spaces(space_id); shops are removed with
their space, the other rooms are detached (space_id set to NULL).

The schema manager creates every table if absent and backfills any declared
column missing from an existing table, so adding a column here is the whole
migration.
"""
from typing import Dict, Any

def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"

def _timestamps():
    return [
        {'name': 'created_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'},
        {'name': 'updated_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
    ]

def _space_fk(on_delete: str) -> Dict[str, Any]:
    return {'columns': ['space_id'], 'references': 'spaces(space_id)', 'on_delete': on_delete}

def build_schema(default_stake_address: str) -> Dict[str, Any]:
    """Build the schema definition.

    Args:
        default_stake_address: Column default for spaces.stake_address

    Returns:
        Schema dict understood by SchemaManager
    """
    return {
        'tables': [
            {
                'name': 'sns_users',
                'columns': [
                    {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                    {'name': 'email', 'type': 'VARCHAR(255)', 'nullable': False, 'unique': True},
                    {'name': 'sns_id', 'type': 'VARCHAR(255)', 'nullable': False},
                    {'name': 'stake', 'type': 'DECIMAL(20,8)', 'default': '0'},
                    *_timestamps()
                ]
            },
            {
                'name': 'spaces',
                'columns': [
                    {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                    {'name': 'space_id', 'type': 'VARCHAR(255)', 'nullable': False, 'unique': True},
                    {'name': 'space_contract_id', 'type': 'VARCHAR(255)'},
                    {'name': 'title', 'type': 'VARCHAR(500)'},
                    {'name': 'description', 'type': 'TEXT'},
                    {'name': 'date', 'type': 'DATE'},
                    {'name': 'location', 'type': 'VARCHAR(500)'},
                    {'name': 'location_link', 'type': 'TEXT'},
                    {'name': 'features_enabled', 'type': 'JSONB', 'default': "'[]'"},
                    {'name': 'admins', 'type': 'JSONB', 'default': "'[]'"},
                    {'name': 'artwork', 'type': 'TEXT'},
                    {'name': 'background', 'type': 'TEXT'},
                    {'name': 'tags', 'type': 'JSONB', 'default': "'[]'"},
                    {'name': 'upvotes', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'downvotes', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'stake_address', 'type': 'VARCHAR(255)', 'default': _quote(default_stake_address)},
                    *_timestamps()
                ]
            },
            {
                'name': 'shops',
                'columns': [
                    {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                    {'name': 'shop_id', 'type': 'VARCHAR(255)', 'nullable': False, 'unique': True},
                    {'name': 'name', 'type': 'VARCHAR(500)', 'nullable': False},
                    {'name': 'description', 'type': 'TEXT'},
                    {'name': 'space_id', 'type': 'VARCHAR(255)', 'nullable': False},
                    {'name': 'up', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'down', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'tags', 'type': 'JSONB', 'default': "'[]'"},
                    {'name': 'location', 'type': 'VARCHAR(500)'},
                    {'name': 'location_link', 'type': 'TEXT'},
                    *_timestamps()
                ],
                'foreign_keys': [_space_fk('CASCADE')],
                'indexes': [
                    {'name': 'idx_shops_space', 'columns': ['space_id']}
                ]
            },
            {
                'name': 'lend_items',
                'columns': [
                    {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                    {'name': 'item_id', 'type': 'VARCHAR(255)', 'nullable': False, 'unique': True},
                    {'name': 'name', 'type': 'VARCHAR(500)', 'nullable': False},
                    {'name': 'description', 'type': 'TEXT'},
                    {'name': 'owner', 'type': 'VARCHAR(255)', 'nullable': False},
                    {'name': 'available', 'type': 'BOOLEAN', 'default': 'TRUE'},
                    {'name': 'up', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'down', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'tags', 'type': 'JSONB', 'default': "'[]'"},
                    {'name': 'image', 'type': 'TEXT'},
                    {'name': 'space_id', 'type': 'VARCHAR(255)'},
                    *_timestamps()
                ],
                'foreign_keys': [_space_fk('SET NULL')],
                'indexes': [
                    {'name': 'idx_lend_items_space', 'columns': ['space_id']}
                ]
            },
            {
                'name': 'requests',
                'columns': [
                    {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                    {'name': 'request_id', 'type': 'VARCHAR(255)', 'nullable': False, 'unique': True},
                    {'name': 'title', 'type': 'VARCHAR(500)', 'nullable': False},
                    {'name': 'description', 'type': 'TEXT'},
                    {'name': 'requester', 'type': 'VARCHAR(255)', 'nullable': False},
                    {'name': 'up', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'down', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'tags', 'type': 'JSONB', 'default': "'[]'"},
                    {'name': 'space_id', 'type': 'VARCHAR(255)'},
                    *_timestamps()
                ],
                'foreign_keys': [_space_fk('SET NULL')],
                'indexes': [
                    {'name': 'idx_requests_space', 'columns': ['space_id']}
                ]
            },
            {
                'name': 'hangouts',
                'columns': [
                    {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                    {'name': 'hang_id', 'type': 'VARCHAR(255)', 'nullable': False, 'unique': True},
                    {'name': 'title', 'type': 'VARCHAR(500)', 'nullable': False},
                    {'name': 'description', 'type': 'TEXT'},
                    {'name': 'date', 'type': 'DATE'},
                    {'name': 'location', 'type': 'VARCHAR(500)'},
                    {'name': 'host', 'type': 'VARCHAR(255)', 'nullable': False},
                    {'name': 'up', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'down', 'type': 'INTEGER', 'default': '0'},
                    {'name': 'tags', 'type': 'JSONB', 'default': "'[]'"},
                    {'name': 'space_id', 'type': 'VARCHAR(255)'},
                    *_timestamps()
                ],
                'foreign_keys': [_space_fk('SET NULL')],
                'indexes': [
                    {'name': 'idx_hangouts_space', 'columns': ['space_id']}
                ]
            }
        ]
    }

"""Resource kind definitions.

Every resource the API serves is described here once: its table, natural key,
the fields required to create it, create-time defaults, column types and the
translation from payload field names to stored column names. The manager and
both stores consult these tables instead of carrying per-resource conditionals.

Every stored column name is accepted as a field name as well as its payload
alias, so `spaceId` and `space_id` both land in `space_id`. Field names that
map to nothing are rejected rather than dropped.
"""
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from .errors import ValidationError

# Read-only columns produced by the store or by the parent join
READ_ONLY_COLUMNS = frozenset({'id', 'created_at', 'updated_at', 'space_title', 'space_description'})

@dataclass(frozen=True)
class ResourceKind:
    """Static description of one resource kind."""
    name: str
    label: str
    table: str
    key_column: str
    key_field: str
    # (payload field, column) pairs that must be present on create
    required: Tuple[Tuple[str, str], ...]
    column_types: Mapping[str, str]
    defaults: Mapping[str, Any] = field(default_factory=dict)
    aliases: Mapping[str, str] = field(default_factory=dict)
    has_parent: bool = False
    parent_required: bool = False
    envelope: str = ''
    collection: str = ''
    deleted_envelope: str = ''

    @property
    def json_columns(self) -> FrozenSet[str]:
        return frozenset(c for c, t in self.column_types.items() if t == 'json')

    @property
    def immutable(self) -> FrozenSet[str]:
        """Field names silently ignored when writing an existing row."""
        return READ_ONLY_COLUMNS | {self.key_field, self.key_column}

    def column_for(self, name: str) -> Optional[str]:
        """Translate a payload field name to its column, or None if unknown."""
        if name in self.aliases:
            return self.aliases[name]
        if name in self.column_types:
            return name
        return None

    def translate(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Map payload fields onto columns.

        Fields landing in an immutable column are dropped, whichever alias
        names them. Collection values are serialized whole.

        Raises:
            ValidationError: If a field does not belong to this kind
        """
        values: Dict[str, Any] = {}
        unknown = []

        for name, value in payload.items():
            if name in self.immutable:
                continue
            column = self.column_for(name)
            if column is None:
                unknown.append(name)
                continue
            if column in self.immutable:
                continue
            values[column] = value

        if unknown:
            raise ValidationError(
                f"Unknown field(s) for {self.label.lower()}: {', '.join(sorted(unknown))}"
            )

        return serialize_collections(self, values)

    def create_defaults(self) -> Dict[str, Any]:
        """Defaults for columns omitted from a create payload."""
        values = {}
        for column, default in self.defaults.items():
            values[column] = default() if callable(default) else default
        return serialize_collections(self, values)

def serialize_collections(kind: ResourceKind, values: Dict[str, Any]) -> Dict[str, Any]:
    """Serialize collection columns (tags, admins, features) as JSON text."""
    for column in kind.json_columns & values.keys():
        if values[column] is not None and not isinstance(values[column], str):
            values[column] = json.dumps(values[column])
    return values

def coerce_value(column_type: str, value: Any) -> Any:
    """Coerce a JSON value into the Python type a column stores.

    Raises:
        ValidationError: If the value cannot be stored in the column
    """
    if value is None:
        return None

    try:
        if column_type == 'int':
            if isinstance(value, bool):
                return int(value)
            if isinstance(value, float) and not value.is_integer():
                raise ValueError("not a whole number")
            return int(value)
        if column_type == 'decimal':
            if isinstance(value, bool):
                raise ValueError("not a number")
            return Decimal(str(value))
        if column_type == 'bool':
            if isinstance(value, str):
                lowered = value.lower()
                if lowered in ('true', '1', 'yes', 'on'):
                    return True
                if lowered in ('false', '0', 'no', 'off'):
                    return False
                raise ValueError("not a boolean")
            return bool(value)
        if column_type == 'date':
            if value == '':
                return None
            if isinstance(value, datetime):
                return value.date()
            if isinstance(value, date):
                return value
            return date.fromisoformat(str(value)[:10])
        if column_type == 'json':
            return value if isinstance(value, str) else json.dumps(value)
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value if isinstance(value, str) else str(value)

    except (ValueError, TypeError, InvalidOperation) as e:
        raise ValidationError(f"Invalid {column_type} value {value!r}: {e}")

def present_row(kind: ResourceKind, row: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert a stored row into its JSON-ready response shape."""
    if row is None:
        return None

    result = {}
    for column, value in dict(row).items():
        if column in kind.json_columns:
            if isinstance(value, str):
                value = json.loads(value)
            value = value if value is not None else []
        elif isinstance(value, Decimal):
            value = float(value)
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        result[column] = value
    return result

def _default_stake_address() -> str:
    from config import settings_conf
    return settings_conf['default_stake_address']

_ROOM_ALIASES = {
    'spaceId': 'space_id',
    'locationLink': 'location_link',
}

SNS_USERS = ResourceKind(
    name='sns',
    label='SNS user',
    table='sns_users',
    key_column='email',
    key_field='email',
    required=(('email', 'email'), ('sns_id', 'sns_id')),
    column_types={
        'email': 'text',
        'sns_id': 'text',
        'stake': 'decimal',
    },
    defaults={'stake': 0},
    aliases={'snsId': 'sns_id'},
    envelope='user',
    collection='users',
    deleted_envelope='deletedUser',
)

SPACES = ResourceKind(
    name='spaces',
    label='Space',
    table='spaces',
    key_column='space_id',
    key_field='spaceId',
    required=(('spaceId', 'space_id'),),
    column_types={
        'space_id': 'text',
        'space_contract_id': 'text',
        'title': 'text',
        'description': 'text',
        'date': 'date',
        'location': 'text',
        'location_link': 'text',
        'features_enabled': 'json',
        'admins': 'json',
        'artwork': 'text',
        'background': 'text',
        'tags': 'json',
        'upvotes': 'int',
        'downvotes': 'int',
        'stake_address': 'text',
    },
    defaults={
        'features_enabled': [],
        'admins': [],
        'tags': [],
        'upvotes': 0,
        'downvotes': 0,
        'stake_address': _default_stake_address,
    },
    aliases={
        'spacecontractid': 'space_contract_id',
        'spaceContractId': 'space_contract_id',
        'featuresEnabled': 'features_enabled',
        'stakeAddress': 'stake_address',
        'locationLink': 'location_link',
    },
    envelope='space',
    collection='spaces',
    deleted_envelope='deletedSpace',
)

SHOPS = ResourceKind(
    name='shops',
    label='Shop',
    table='shops',
    key_column='shop_id',
    key_field='shopId',
    required=(('shopId', 'shop_id'), ('name', 'name'), ('spaceId', 'space_id')),
    column_types={
        'shop_id': 'text',
        'name': 'text',
        'description': 'text',
        'space_id': 'text',
        'up': 'int',
        'down': 'int',
        'tags': 'json',
        'location': 'text',
        'location_link': 'text',
    },
    defaults={'up': 0, 'down': 0, 'tags': []},
    aliases=dict(_ROOM_ALIASES),
    has_parent=True,
    parent_required=True,
    envelope='shop',
    collection='shops',
    deleted_envelope='deletedShop',
)

LEND_ITEMS = ResourceKind(
    name='lend-items',
    label='Lend item',
    table='lend_items',
    key_column='item_id',
    key_field='id',
    required=(('id', 'item_id'), ('name', 'name'), ('owner', 'owner')),
    column_types={
        'item_id': 'text',
        'name': 'text',
        'description': 'text',
        'owner': 'text',
        'available': 'bool',
        'up': 'int',
        'down': 'int',
        'tags': 'json',
        'image': 'text',
        'space_id': 'text',
    },
    defaults={'available': True, 'up': 0, 'down': 0, 'tags': []},
    aliases=dict(_ROOM_ALIASES, itemId='item_id'),
    has_parent=True,
    envelope='item',
    collection='items',
    deleted_envelope='deletedItem',
)

REQUESTS = ResourceKind(
    name='requests',
    label='Request',
    table='requests',
    key_column='request_id',
    key_field='id',
    required=(('id', 'request_id'), ('title', 'title'), ('requester', 'requester')),
    column_types={
        'request_id': 'text',
        'title': 'text',
        'description': 'text',
        'requester': 'text',
        'up': 'int',
        'down': 'int',
        'tags': 'json',
        'space_id': 'text',
    },
    defaults={'up': 0, 'down': 0, 'tags': []},
    aliases=dict(_ROOM_ALIASES, requestId='request_id'),
    has_parent=True,
    envelope='request',
    collection='requests',
    deleted_envelope='deletedRequest',
)

HANGOUTS = ResourceKind(
    name='hangouts',
    label='Hangout',
    table='hangouts',
    key_column='hang_id',
    key_field='id',
    required=(('id', 'hang_id'), ('title', 'title'), ('host', 'host')),
    column_types={
        'hang_id': 'text',
        'title': 'text',
        'description': 'text',
        'date': 'date',
        'location': 'text',
        'host': 'text',
        'up': 'int',
        'down': 'int',
        'tags': 'json',
        'space_id': 'text',
    },
    defaults={'up': 0, 'down': 0, 'tags': []},
    aliases=dict(_ROOM_ALIASES, hangId='hang_id'),
    has_parent=True,
    envelope='hangout',
    collection='hangouts',
    deleted_envelope='deletedHangout',
)

KINDS: Dict[str, ResourceKind] = {
    kind.name: kind
    for kind in (SNS_USERS, SPACES, SHOPS, LEND_ITEMS, REQUESTS, HANGOUTS)
}

ROOM_KINDS = (SHOPS, LEND_ITEMS, REQUESTS, HANGOUTS)

def get_kind(name: str) -> ResourceKind:
    """Look up a kind by name.

    Raises:
        KeyError: If the kind is unknown
    """
    return KINDS[name]


"""Resource persistence: SNS users, spaces and the rooms inside them.

Example usage:
    from resources import ResourceManager

    manager = ResourceManager()
    shop, created = await manager.upsert('shops', {
        'shopId': 's1',
        'name': 'Cafe',
        'spaceId': 'demo'
    })
"""
from .errors import ForeignKeyError, NotFoundError, ResourceError, ValidationError
from .kinds import KINDS, ROOM_KINDS, ResourceKind, get_kind
from .manager import ResourceManager
from .store import ResourceStore, close_store, create_store, get_store

__all__ = [
    'ResourceManager',
    'ResourceStore',
    'ResourceKind',
    'KINDS',
    'ROOM_KINDS',
    'get_kind',
    'get_store',
    'create_store',
    'close_store',
    'ResourceError',
    'ValidationError',
    'NotFoundError',
    'ForeignKeyError',
]

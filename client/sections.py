"""Section state for the space page.

Each section holds one collection. Whenever it is mounted, its space changes
or its refresh key is bumped, it issues a single listing request, maps the
server rows to display views and replaces the collection wholesale. A failed
request clears the collection and sets a generic error; retrying or creating
an item just bumps the refresh key and fetches everything again.

Creating an item runs the section's entitlement guard (SNS profile and
minimum stake), upserts the row into the section's space and then refetches.
Shops first reserve their id on chain; the other rooms get a timestamped id.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from chain import ShopIdGenerator
from .api import NetworkError, SpaceAPIClient
from .guard import EntitlementGuard

logger = logging.getLogger(__name__)

def _count(value) -> int:
    return int(value or 0)

@dataclass
class ShopView:
    id: str
    name: str
    desc: str = ''
    space_id: Optional[str] = None
    up: int = 0
    down: int = 0
    tags: List[str] = field(default_factory=list)
    location: Optional[str] = None
    location_link: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ShopView':
        return cls(
            id=row['shop_id'],
            name=row['name'],
            desc=row.get('description') or '',
            space_id=row.get('space_id'),
            up=_count(row.get('up')),
            down=_count(row.get('down')),
            tags=row.get('tags') or [],
            location=row.get('location') or None,
            location_link=row.get('location_link') or None,
        )

@dataclass
class LendItemView:
    id: str
    name: str
    desc: str = ''
    owner: str = ''
    available: bool = True
    up: int = 0
    down: int = 0
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'LendItemView':
        return cls(
            id=row['item_id'],
            name=row['name'],
            desc=row.get('description') or '',
            owner=row.get('owner') or '',
            available=bool(row.get('available')),
            up=_count(row.get('up')),
            down=_count(row.get('down')),
            tags=row.get('tags') or [],
        )

@dataclass
class RequestView:
    id: str
    title: str
    desc: str = ''
    requester: str = ''
    up: int = 0
    down: int = 0
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'RequestView':
        return cls(
            id=row['request_id'],
            title=row['title'],
            desc=row.get('description') or '',
            requester=row.get('requester') or '',
            up=_count(row.get('up')),
            down=_count(row.get('down')),
            tags=row.get('tags') or [],
        )

@dataclass
class HangoutView:
    id: str
    title: str
    desc: str = ''
    date: Optional[str] = None
    location: str = ''
    host: str = ''
    up: int = 0
    down: int = 0
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'HangoutView':
        return cls(
            id=row['hang_id'],
            title=row['title'],
            desc=row.get('description') or '',
            date=row.get('date'),
            location=row.get('location') or '',
            host=row.get('host') or '',
            up=_count(row.get('up')),
            down=_count(row.get('down')),
            tags=row.get('tags') or [],
        )

@dataclass
class SpaceView:
    id: str
    title: str = ''
    desc: str = ''
    date: Optional[str] = None
    location: str = ''
    location_link: Optional[str] = None
    features: List[str] = field(default_factory=list)
    admins: List[str] = field(default_factory=list)
    artwork: Optional[str] = None
    background: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    upvotes: int = 0
    downvotes: int = 0
    stake_address: Optional[str] = None
    contract_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'SpaceView':
        return cls(
            id=row['space_id'],
            title=row.get('title') or '',
            desc=row.get('description') or '',
            date=row.get('date'),
            location=row.get('location') or '',
            location_link=row.get('location_link') or None,
            features=row.get('features_enabled') or [],
            admins=row.get('admins') or [],
            artwork=row.get('artwork'),
            background=row.get('background'),
            tags=row.get('tags') or [],
            upvotes=_count(row.get('upvotes')),
            downvotes=_count(row.get('downvotes')),
            stake_address=row.get('stake_address'),
            contract_id=row.get('space_contract_id'),
        )

class Section:
    """Fetch/reconcile state for one collection."""
    kind = ''
    collection = ''
    view = None
    error_message = "Failed to load items"
    # Guarded action named in the notification, and the id prefix for new rows
    create_action = ''
    create_error_message = "Failed to create item"
    id_prefix = ''
    # Sections inside a space wait for a space id before fetching
    needs_space = True

    def __init__(
        self,
        api: SpaceAPIClient,
        space_id: Optional[str] = None,
        guard: Optional[EntitlementGuard] = None
    ):
        self.api = api
        self.space_id = space_id
        self.guard = guard
        self.refresh_key = 0
        self.is_loading = False
        self.error: Optional[str] = None
        self.items: List[Any] = []
        self.mounted = False
        self.is_creating = False
        self.create_error: Optional[str] = None

    def fetch_rows(self) -> List[Dict[str, Any]]:
        body = self.api.list_resources(self.kind, self.space_id)
        return body.get(self.collection) or []

    def load(self) -> None:
        """Fetch the collection and replace what is held."""
        if not self.mounted or (self.needs_space and not self.space_id):
            return

        self.is_loading = True
        self.error = None

        try:
            rows = self.fetch_rows()
            items = [self.view.from_row(row) for row in rows]
        except (NetworkError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Loading {self.collection} for {self.space_id} failed: {e}")
            if not self.mounted:
                return
            self.error = self.error_message
            self.items = []
            self.is_loading = False
            return

        if not self.mounted:
            return
        self.items = items
        self.is_loading = False

    def mount(self) -> None:
        self.mounted = True
        self.load()

    def unmount(self) -> None:
        self.mounted = False

    def set_space_id(self, space_id: Optional[str]) -> None:
        if space_id == self.space_id:
            return
        self.space_id = space_id
        self.load()

    def retry(self) -> None:
        self.refresh_key += 1
        self.load()

    def on_create_success(self) -> None:
        self.retry()

    def new_key(self) -> Optional[str]:
        """Natural key for a new row, or None if one could not be made."""
        return f"{self.id_prefix}-{int(time.time() * 1000)}"

    def build_payload(self, key: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {**fields, 'id': key, 'spaceId': self.space_id, 'up': 0, 'down': 0}

    def create(self, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Create an item in this section's space and refetch the collection.

        Args:
            fields: Payload fields for the new row, without its key or space

        Returns:
            The created row, or None if the guard blocked it or it failed
        """
        if self.guard is not None and not self.guard.require_auth(self.create_action):
            return None

        self.is_creating = True
        self.create_error = None

        try:
            key = self.new_key()
            if key is None:
                return None

            row = self.api.upsert_resource(self.kind, self.build_payload(key, fields))
        except NetworkError as e:
            logger.warning(f"Creating {self.kind} in {self.space_id} failed: {e}")
            self.create_error = str(e) if e.status else self.create_error_message
            return None
        finally:
            self.is_creating = False

        logger.info(f"Created {self.kind} {key} in {self.space_id}")
        self.on_create_success()
        return row

class ShopSection(Section):
    """Shops of a space, as shown on its explore tab."""
    kind = 'shops'
    collection = 'shops'
    view = ShopView
    error_message = "Failed to load shops"
    create_action = "add a shop"
    create_error_message = "Failed to create shop"

    def __init__(
        self,
        api: SpaceAPIClient,
        space_id: Optional[str] = None,
        guard: Optional[EntitlementGuard] = None,
        shop_ids: Optional[ShopIdGenerator] = None
    ):
        super().__init__(api, space_id, guard)
        self.shop_ids = shop_ids

    def fetch_rows(self) -> List[Dict[str, Any]]:
        return self.api.list_space_shops(self.space_id).get(self.collection) or []

    def new_key(self) -> Optional[str]:
        """Reserve an item account on chain and use its id."""
        if self.shop_ids is None:
            raise RuntimeError("No wallet connected to generate a shop ID")

        result = self.shop_ids.generate()
        if not result.success or not result.shop_id:
            self.create_error = result.message or "Failed to generate shop ID"
            return None
        return result.shop_id

    def build_payload(self, key: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'tags': [],
            'location': '',
            'location_link': '',
            **fields,
            'shopId': key,
            'spaceId': self.space_id,
            'up': 0,
            'down': 0,
        }

class LendSection(Section):
    kind = 'lend-items'
    collection = 'items'
    view = LendItemView
    error_message = "Failed to load items"
    create_action = "list a new item"
    id_prefix = 'lend'

class RequestSection(Section):
    kind = 'requests'
    collection = 'requests'
    view = RequestView
    error_message = "Failed to load requests"
    create_action = "create a request"
    create_error_message = "Failed to create request"
    id_prefix = 'request'

class HangoutSection(Section):
    kind = 'hangouts'
    collection = 'hangouts'
    view = HangoutView
    error_message = "Failed to load hangouts"
    create_action = "plan a hangout"
    create_error_message = "Failed to create hangout"
    id_prefix = 'hangout'

class SpaceDirectory(Section):
    """Every space, for the explore page."""
    kind = 'spaces'
    collection = 'spaces'
    view = SpaceView
    error_message = "Failed to load spaces"
    needs_space = False

    def fetch_rows(self) -> List[Dict[str, Any]]:
        return self.api.list_resources(self.kind).get(self.collection) or []

SECTIONS = {
    'explore': ShopSection,
    'lend': LendSection,
    'request': RequestSection,
    'hangout': HangoutSection,
}

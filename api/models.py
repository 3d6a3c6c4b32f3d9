"""Request models for the resource endpoints.

Every field is optional: POST and PATCH share a model, and the manager decides
which fields are required. Extra fields are kept so that column names
(`space_id`, `features_enabled`, ...) pass through alongside the documented
camelCase names; the manager rejects names that match nothing.
"""
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict

class ResourcePayload(BaseModel):
    """Base payload model that keeps undeclared fields."""
    model_config = ConfigDict(extra='allow')

class SnsUserPayload(ResourcePayload):
    """Payload for SNS user endpoints."""
    email: Optional[str] = None
    sns_id: Optional[str] = None
    stake: Optional[Decimal] = None

class SpacePayload(ResourcePayload):
    """Payload for space endpoints."""
    spaceId: Optional[str] = None
    spacecontractid: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None
    locationLink: Optional[str] = None
    featuresEnabled: Optional[List[str]] = None
    admins: Optional[List[str]] = None
    artwork: Optional[str] = None
    background: Optional[str] = None
    tags: Optional[List[str]] = None
    upvotes: Optional[int] = None
    downvotes: Optional[int] = None
    stakeAddress: Optional[str] = None

class RoomPayload(ResourcePayload):
    """Fields shared by everything that lives in a space."""
    spaceId: Optional[str] = None
    description: Optional[str] = None
    up: Optional[int] = None
    down: Optional[int] = None
    tags: Optional[List[str]] = None

class ShopPayload(RoomPayload):
    """Payload for shop endpoints."""
    shopId: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None
    locationLink: Optional[str] = None

class LendItemPayload(RoomPayload):
    """Payload for lend item endpoints."""
    id: Optional[Union[str, int]] = None
    name: Optional[str] = None
    owner: Optional[str] = None
    available: Optional[bool] = None
    image: Optional[str] = None

class RequestPayload(RoomPayload):
    """Payload for request endpoints."""
    id: Optional[Union[str, int]] = None
    title: Optional[str] = None
    requester: Optional[str] = None

class HangoutPayload(RoomPayload):
    """Payload for hangout endpoints."""
    id: Optional[Union[str, int]] = None
    title: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None
    host: Optional[str] = None

"""Tests for section state, the profile loader and the HTTP client."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from chain import ChainResult
from client import ProfileLoader, SpaceAPIClient
from client.api import NetworkError
from client.guard import EntitlementGuard, Notification, UserSession
from client.sections import (
    HangoutSection, LendSection, RequestSection, ShopSection, SpaceDirectory
)

class FakeAPI:
    """Records listing calls and serves canned envelopes."""

    def __init__(self, bodies=None, error=None, upsert_error=None):
        self.bodies = bodies or {}
        self.error = error
        self.upsert_error = upsert_error
        self.calls = []
        self.upserts = []

    def list_resources(self, kind, space_id=None):
        self.calls.append((kind, space_id))
        if self.error:
            raise self.error
        return self.bodies.get(kind, {})

    def list_space_shops(self, space_id):
        self.calls.append(('space-shops', space_id))
        if self.error:
            raise self.error
        return self.bodies.get('space-shops', {})

    def upsert_resource(self, kind, payload):
        self.upserts.append((kind, payload))
        if self.upsert_error:
            raise self.upsert_error
        return dict(payload)

SHOP_ROW = {
    "shop_id": "s1",
    "name": "Cafe",
    "description": None,
    "space_id": "demo",
    "up": 2,
    "down": None,
    "tags": None,
    "location_link": "",
}

def test_shop_section_maps_rows():
    """Test shop rows are mapped with defaults for missing values."""
    api = FakeAPI({'space-shops': {'shops': [SHOP_ROW], 'count': 1, 'space_id': 'demo'}})
    section = ShopSection(api, 'demo')

    section.mount()

    assert api.calls == [('space-shops', 'demo')]
    assert section.error is None
    assert section.is_loading is False
    shop = section.items[0]
    assert shop.id == "s1"
    assert shop.desc == ""
    assert shop.up == 2
    assert shop.down == 0
    assert shop.tags == []
    assert shop.location_link is None

def test_lend_section_maps_availability():
    """Test lend items carry their owner and availability."""
    rows = [{"item_id": "i1", "name": "Drill", "owner": "alice", "available": False}]
    api = FakeAPI({'lend-items': {'items': rows, 'count': 1}})
    section = LendSection(api, 'demo')

    section.mount()

    assert api.calls == [('lend-items', 'demo')]
    assert section.items[0].owner == "alice"
    assert section.items[0].available is False

def test_request_and_hangout_sections():
    """Test requests and hangouts map their own keys."""
    api = FakeAPI({
        'requests': {'requests': [{"request_id": "r1", "title": "Help", "requester": "bob"}]},
        'hangouts': {'hangouts': [{"hang_id": "h1", "title": "Picnic", "date": "2024-06-01"}]},
    })

    requests_section = RequestSection(api, 'demo')
    requests_section.mount()
    hangouts_section = HangoutSection(api, 'demo')
    hangouts_section.mount()

    assert requests_section.items[0].requester == "bob"
    assert hangouts_section.items[0].date == "2024-06-01"
    assert hangouts_section.items[0].host == ""

def test_failure_clears_items():
    """Test a failed load drops stale items and sets the section's error."""
    api = FakeAPI({'hangouts': {'hangouts': [{"hang_id": "h1", "title": "Picnic"}]}})
    section = HangoutSection(api, 'demo')
    section.mount()
    assert len(section.items) == 1

    api.error = NetworkError("boom", 500)
    section.retry()

    assert section.items == []
    assert section.error == "Failed to load hangouts"
    assert section.is_loading is False

def test_malformed_row_is_a_failure():
    """Test a row missing its key counts as a failed load."""
    api = FakeAPI({'requests': {'requests': [{"title": "No id"}]}})
    section = RequestSection(api, 'demo')

    section.mount()

    assert section.items == []
    assert section.error == "Failed to load requests"

def test_retry_refetches():
    """Test retry and create success bump the refresh key and fetch again."""
    api = FakeAPI({'lend-items': {'items': []}})
    section = LendSection(api, 'demo')
    section.mount()

    section.retry()
    section.on_create_success()

    assert section.refresh_key == 2
    assert len(api.calls) == 3

def test_waits_for_space_id():
    """Test a section inside a space does not fetch without one."""
    api = FakeAPI({'requests': {'requests': []}})
    section = RequestSection(api)
    section.mount()
    assert api.calls == []

    section.set_space_id('demo')
    assert api.calls == [('requests', 'demo')]

    section.set_space_id('demo')
    assert len(api.calls) == 1

def test_unmounted_section_keeps_state():
    """Test an unmounted section neither fetches nor updates."""
    api = FakeAPI({'lend-items': {'items': []}})
    section = LendSection(api, 'demo')
    section.mount()
    section.unmount()

    section.retry()

    assert len(api.calls) == 1

def test_space_directory():
    """Test the directory lists every space without a space id."""
    rows = [{"space_id": "demo", "features_enabled": ["lend"], "space_contract_id": "123", "upvotes": 4}]
    api = FakeAPI({'spaces': {'spaces': rows, 'count': 1}})
    directory = SpaceDirectory(api)

    directory.mount()

    assert api.calls == [('spaces', None)]
    space = directory.items[0]
    assert space.features == ["lend"]
    assert space.contract_id == "123"
    assert space.upvotes == 4
    assert space.downvotes == 0

ENTITLED = dict(connected=True, email="a@b.com", has_profile=True, stake=Decimal("1"))

@pytest.fixture
def notification():
    """Create a notification with a long timeout."""
    note = Notification(timeout=60)
    yield note
    note.close()

def make_guard(notification, **session):
    return EntitlementGuard(
        UserSession(**session),
        require_profile=True,
        require_stake=True,
        min_stake_amount="0.001",
        notification=notification
    )

def shop_id_result(shop_id="prog:7"):
    return ChainResult(success=True, message=f"Successfully generated shop ID: {shop_id}", shop_id=shop_id)

@pytest.mark.parametrize("session, message", [
    ({}, "You need to be logged in to add a shop"),
    (dict(connected=True, email="a@b.com", stake=Decimal("1")),
     "You need to create your SNS profile before you can add a shop"),
    (dict(connected=True, email="a@b.com", has_profile=True, stake=Decimal("0.0005")),
     "You need to stake at least 0.001 SOL to add a shop"),
])
def test_shop_create_gates(notification, session, message):
    """Test every unmet requirement blocks a new shop before the chain."""
    api = FakeAPI({'space-shops': {'shops': []}})
    shop_ids = MagicMock()
    section = ShopSection(api, 'demo', make_guard(notification, **session), shop_ids)
    section.mount()

    assert section.create({'name': 'Cafe'}) is None

    shop_ids.generate.assert_not_called()
    assert api.upserts == []
    assert section.refresh_key == 0
    assert notification.message == message

@pytest.mark.parametrize("section_class, action", [
    (LendSection, "list a new item"),
    (RequestSection, "create a request"),
    (HangoutSection, "plan a hangout"),
])
def test_room_create_gate_names_action(notification, section_class, action):
    """Test each room names its own action when blocked."""
    api = FakeAPI()
    section = section_class(api, 'demo', make_guard(notification))

    assert section.create({'title': 'Anything'}) is None
    assert api.upserts == []
    assert notification.message == f"You need to be logged in to {action}"

def test_shop_create_generates_id_and_refetches(notification):
    """Test a new shop takes its id from the chain, then the list reloads."""
    api = FakeAPI({'space-shops': {'shops': [SHOP_ROW]}})
    shop_ids = MagicMock()
    shop_ids.generate.return_value = shop_id_result()
    section = ShopSection(api, 'demo', make_guard(notification, **ENTITLED), shop_ids)
    section.mount()

    row = section.create({'name': 'Cafe', 'description': 'Coffee'})

    assert row['shopId'] == "prog:7"
    assert api.upserts == [('shops', {
        'tags': [],
        'location': '',
        'location_link': '',
        'name': 'Cafe',
        'description': 'Coffee',
        'shopId': 'prog:7',
        'spaceId': 'demo',
        'up': 0,
        'down': 0,
    })]
    assert section.refresh_key == 1
    assert api.calls == [('space-shops', 'demo'), ('space-shops', 'demo')]
    assert section.create_error is None
    assert section.is_creating is False
    assert not notification.is_visible

def test_shop_create_chain_failure(notification):
    """Test a failed shop id reservation stops before the upsert."""
    api = FakeAPI()
    shop_ids = MagicMock()
    shop_ids.generate.return_value = ChainResult(
        success=False, message="Please connect your wallet to generate shop ID"
    )
    section = ShopSection(api, 'demo', make_guard(notification, **ENTITLED), shop_ids)

    assert section.create({'name': 'Cafe'}) is None

    assert api.upserts == []
    assert section.refresh_key == 0
    assert section.create_error == "Please connect your wallet to generate shop ID"
    assert section.is_creating is False

def test_shop_create_without_wallet(notification):
    """Test creating a shop with no id generator is a programming error."""
    section = ShopSection(FakeAPI(), 'demo', make_guard(notification, **ENTITLED))

    with pytest.raises(RuntimeError):
        section.create({'name': 'Cafe'})

def test_lend_create_uses_timestamped_id(notification, monkeypatch):
    """Test a new lend item is keyed by the creation time."""
    monkeypatch.setattr('client.sections.time.time', lambda: 1700000000.5)
    api = FakeAPI({'lend-items': {'items': []}})
    section = LendSection(api, 'demo', make_guard(notification, **ENTITLED))
    section.mount()

    section.create({'name': 'Drill', 'owner': 'alice'})

    assert api.upserts == [('lend-items', {
        'name': 'Drill',
        'owner': 'alice',
        'id': 'lend-1700000000500',
        'spaceId': 'demo',
        'up': 0,
        'down': 0,
    })]
    assert section.refresh_key == 1
    assert len(api.calls) == 2

def test_create_without_guard():
    """Test a section without a guard creates directly."""
    api = FakeAPI()
    section = HangoutSection(api, 'demo')

    row = section.create({'title': 'Picnic', 'host': 'carol'})

    assert row['id'].startswith('hangout-')
    assert row['spaceId'] == 'demo'

@pytest.mark.parametrize("error, message", [
    (NetworkError("Space not found", 404), "Space not found"),
    (NetworkError("connection refused"), "Failed to create request"),
])
def test_create_server_error(notification, error, message):
    """Test a failed upsert sets the create error and skips the refetch."""
    api = FakeAPI({'requests': {'requests': []}}, upsert_error=error)
    section = RequestSection(api, 'demo', make_guard(notification, **ENTITLED))
    section.mount()

    assert section.create({'title': 'Help', 'requester': 'bob'}) is None

    assert section.create_error == message
    assert section.refresh_key == 0
    assert len(api.calls) == 1
    assert section.is_creating is False

def test_profile_loader_found():
    """Test an existing user is loaded as a profile."""
    api = MagicMock()
    api.get_user.return_value = {"email": "a@b.com", "sns_id": "a.sol"}
    loader = ProfileLoader(api)

    profile = loader.check_existing("a@b.com")

    assert profile["sns_id"] == "a.sol"
    assert loader.error is None
    assert ProfileLoader.has_sns_profile(profile)

def test_profile_loader_not_found_is_not_an_error():
    """Test a 404 just means the user has no profile."""
    api = MagicMock()
    api.get_user.side_effect = NetworkError("SNS user not found", 404)
    loader = ProfileLoader(api)

    assert loader.check_existing("a@b.com") is None
    assert loader.error is None
    assert not ProfileLoader.has_sns_profile(None)

def test_profile_loader_failures():
    """Test lookup and save failures set their messages."""
    api = MagicMock()
    api.get_user.side_effect = NetworkError("HTTP 500", 500)
    loader = ProfileLoader(api)

    assert loader.check_existing("a@b.com") is None
    assert loader.error == "Failed to check existing SNS ID"

    api.upsert_user.side_effect = NetworkError("HTTP 500", 500)
    assert loader.save_sns_id("a@b.com", "a.sol") is None
    assert loader.error == "Failed to save SNS ID"
    assert loader.is_loading is False

def test_profile_loader_save_reloads():
    """Test saving an SNS id reloads the profile."""
    api = MagicMock()
    api.get_user.return_value = {"email": "a@b.com", "sns_id": "a.sol"}
    loader = ProfileLoader(api)

    profile = loader.save_sns_id("a@b.com", "a.sol")

    api.upsert_user.assert_called_once_with("a@b.com", "a.sol")
    assert profile["sns_id"] == "a.sol"

def test_profile_apply_to_session():
    """Test a loaded user row fills the session's profile and stake."""
    api = MagicMock()
    api.get_user.return_value = {"email": "a@b.com", "sns_id": "a.sol", "stake": 1.5}
    loader = ProfileLoader(api)
    session = UserSession(connected=True, email="a@b.com")

    loader.check_existing("a@b.com")
    loader.apply_to(session)

    assert session.has_profile is True
    assert session.stake == Decimal("1.5")

def test_profile_apply_to_without_row():
    """Test a missing user means no profile and nothing staked."""
    api = MagicMock()
    api.get_user.side_effect = NetworkError("SNS user not found", 404)
    loader = ProfileLoader(api)
    session = UserSession(**ENTITLED)

    loader.check_existing("a@b.com")
    loader.apply_to(session)

    assert session.has_profile is False
    assert session.stake == Decimal("0")

def _response(status, body):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.json.return_value = body
    return response

def test_client_request_paths():
    """Test the client builds quoted paths and unwraps envelopes."""
    session = MagicMock()
    session.request.return_value = _response(200, {"user": {"email": "a@b.com"}})
    api = SpaceAPIClient("http://localhost:3000/", session=session)

    user = api.patch_user("a@b.com", stake="5")

    assert user == {"email": "a@b.com"}
    session.request.assert_called_once_with(
        'PATCH', "http://localhost:3000/api/sns/a%40b.com", timeout=10, json={"stake": "5"}
    )

def test_client_listing_filter():
    """Test listings pass the space filter as a query parameter."""
    session = MagicMock()
    session.request.return_value = _response(200, {"items": [], "count": 0})
    api = SpaceAPIClient("http://localhost:3000", session=session)

    api.list_resources('lend-items', 'demo')

    session.request.assert_called_once_with(
        'GET', "http://localhost:3000/api/lend-items", timeout=10, params={'spaceId': 'demo'}
    )

def test_client_error_status():
    """Test error statuses raise with the server's message."""
    session = MagicMock()
    session.request.return_value = _response(404, {"error": "Space not found"})
    api = SpaceAPIClient("http://localhost:3000", session=session)

    with pytest.raises(NetworkError) as exc:
        api.get_space("nowhere")

    assert str(exc.value) == "Space not found"
    assert exc.value.not_found

def test_client_connection_error():
    """Test transport failures raise without a status."""
    session = MagicMock()
    session.request.side_effect = requests.exceptions.ConnectionError("refused")
    api = SpaceAPIClient("http://localhost:3000", session=session)

    with pytest.raises(NetworkError) as exc:
        api.health()

    assert exc.value.status is None
    assert not exc.value.not_found

def test_client_rejects_unknown_kind():
    """Test unknown kinds are rejected before any request."""
    api = SpaceAPIClient("http://localhost:3000", session=MagicMock())

    with pytest.raises(ValueError):
        api.get_resource('listings', 'x')

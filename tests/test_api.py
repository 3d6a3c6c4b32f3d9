"""Tests for the HTTP endpoints."""

def create_space(client, space_id="demo", **fields):
    response = client.post("/api/spaces", json={"spaceId": space_id, **fields})
    assert response.status_code == 200
    return response.json()["space"]

def test_root(client):
    """Test the banner endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert "/api/spaces" in response.json()["endpoints"]

def test_health(client):
    """Test the health endpoint reports the store."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "OK"
    assert data["database"] == "Connected"
    assert "timestamp" in data

def test_space_and_shop_lifecycle(client):
    """Test creating a space and a shop, then deleting the space."""
    response = client.post("/api/spaces", json={"spaceId": "demo", "featuresEnabled": ["shops"]})
    assert response.status_code == 200
    assert response.json()["message"] == "Space created successfully"
    assert response.json()["space"]["features_enabled"] == ["shops"]

    response = client.post("/api/shops", json={"shopId": "s1", "name": "Cafe", "spaceId": "demo"})
    assert response.status_code == 200
    assert response.json()["message"] == "Shop created successfully"

    response = client.get("/api/spaces/demo/shops")
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["space_id"] == "demo"
    shop = data["shops"][0]
    assert shop["name"] == "Cafe"
    assert shop["up"] == 0
    assert shop["down"] == 0

    response = client.delete("/api/spaces/demo")
    assert response.status_code == 200
    assert response.json()["message"] == "Space deleted successfully"
    assert response.json()["deletedSpace"]["space_id"] == "demo"

    response = client.get("/api/shops/s1")
    assert response.status_code == 404
    assert response.json() == {"error": "Shop not found"}

def test_sns_patch_scenario(client):
    """Test patching a user's stake before and after the user exists."""
    response = client.patch("/api/sns/a@b.com", json={"stake": 5})
    assert response.status_code == 404
    assert response.json() == {"error": "SNS user not found"}

    response = client.post("/api/sns", json={"email": "a@b.com", "sns_id": "a.sol"})
    assert response.status_code == 200
    assert response.json()["message"] == "SNS user created successfully"

    response = client.patch("/api/sns/a@b.com", json={"stake": 5})
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["stake"] == 5
    assert user["sns_id"] == "a.sol"

def test_sns_lookup_and_listing(client):
    """Test user lookup, listing and repeated POST."""
    client.post("/api/sns", json={"email": "a@b.com", "sns_id": "a.sol"})

    response = client.post("/api/sns", json={"email": "a@b.com", "sns_id": "b.sol"})
    assert response.json()["message"] == "SNS user updated successfully"

    response = client.get("/api/sns/a@b.com")
    assert response.status_code == 200
    assert response.json()["user"]["sns_id"] == "b.sol"

    response = client.get("/api/sns")
    assert response.json()["count"] == 1
    assert response.json()["users"][0]["email"] == "a@b.com"

def test_sns_has_no_delete(client):
    """Test users cannot be deleted."""
    client.post("/api/sns", json={"email": "a@b.com", "sns_id": "a.sol"})

    response = client.delete("/api/sns/a@b.com")
    assert response.status_code == 405

def test_post_missing_required_fields(client):
    """Test a create without required fields is a 400."""
    response = client.post("/api/sns", json={"email": "a@b.com"})
    assert response.status_code == 400
    assert "sns_id" in response.json()["error"]

def test_post_room_for_missing_space(client):
    """Test a room pointing at a missing space is a 400."""
    response = client.post("/api/shops", json={"shopId": "s1", "name": "Cafe", "spaceId": "nowhere"})
    assert response.status_code == 400
    assert response.json()["error"] == "Space not found: nowhere. Create the space first."

def test_patch_empty_body(client):
    """Test an empty patch body is a 400."""
    create_space(client)

    response = client.patch("/api/spaces/demo", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "No update data provided"}

def test_patch_ignores_id(client):
    """Test the id key of a patch is ignored."""
    create_space(client)
    client.post("/api/requests", json={"id": "r1", "title": "Help", "requester": "bob", "spaceId": "demo"})

    response = client.patch("/api/requests/r1", json={"id": "x", "title": "More help"})
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Request updated successfully"
    assert data["request"]["request_id"] == "r1"
    assert data["request"]["title"] == "More help"

def test_patch_unknown_field(client):
    """Test a patch naming an unknown field is a 400."""
    create_space(client)

    response = client.patch("/api/spaces/demo", json={"foo": "bar"})
    assert response.status_code == 400
    assert "foo" in response.json()["error"]

def test_invalid_body_type(client):
    """Test request validation errors are reported as 400."""
    response = client.post("/api/spaces", json={"spaceId": "demo", "tags": "not-a-list"})
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request")

def test_space_shops_for_missing_space(client):
    """Test listing shops of a missing space is a 404."""
    response = client.get("/api/spaces/nowhere/shops")
    assert response.status_code == 404
    assert response.json() == {"error": "Space not found"}

def test_room_listing_filter(client):
    """Test listing rooms filtered by space."""
    create_space(client, "demo", title="Demo")
    create_space(client, "other")
    client.post("/api/lend-items", json={"id": "i1", "name": "Drill", "owner": "alice", "spaceId": "demo"})
    client.post("/api/lend-items", json={"id": "i2", "name": "Saw", "owner": "alice", "spaceId": "other"})

    response = client.get("/api/lend-items", params={"spaceId": "demo"})
    data = response.json()
    assert data["count"] == 1
    assert data["space_id"] == "demo"
    assert data["items"][0]["item_id"] == "i1"
    assert data["items"][0]["space_title"] == "Demo"

    response = client.get("/api/lend-items")
    data = response.json()
    assert data["count"] == 2
    assert "space_id" not in data

def test_room_crud(client):
    """Test the lookup, patch and delete envelopes of a room."""
    create_space(client, "demo", title="Demo", description="Demo space")
    response = client.post("/api/hangouts", json={
        "id": "h1",
        "title": "Picnic",
        "host": "carol",
        "date": "2024-06-01",
        "spaceId": "demo"
    })
    assert response.json()["hangout"]["date"] == "2024-06-01"

    response = client.get("/api/hangouts/h1")
    hangout = response.json()["hangout"]
    assert hangout["space_title"] == "Demo"
    assert hangout["space_description"] == "Demo space"

    response = client.patch("/api/hangouts/h1", json={"up": 2})
    assert response.json()["hangout"]["up"] == 2

    response = client.delete("/api/hangouts/h1")
    assert response.json()["message"] == "Hangout deleted successfully"
    assert response.json()["deletedHangout"]["hang_id"] == "h1"

    response = client.get("/api/hangouts/h1")
    assert response.status_code == 404

def test_delete_space_detaches_lend_items(client):
    """Test lend items survive their space's deletion."""
    create_space(client)
    client.post("/api/lend-items", json={"id": "i1", "name": "Drill", "owner": "alice", "spaceId": "demo"})

    client.delete("/api/spaces/demo")

    response = client.get("/api/lend-items/i1")
    assert response.status_code == 200
    assert response.json()["item"]["space_id"] is None

def test_patch_key_alias_keeps_key(client):
    """Test a key alias in a patch body cannot rename the row."""
    client.post("/api/lend-items", json={"id": "i1", "name": "Drill", "owner": "alice"})

    response = client.patch("/api/lend-items/i1", json={"itemId": "i2"})
    assert response.status_code == 200
    assert response.json()["item"]["item_id"] == "i1"

    assert client.get("/api/lend-items/i1").json()["item"]["item_id"] == "i1"
    assert client.get("/api/lend-items/i2").status_code == 404

def test_hangout_with_empty_date(client):
    """Test an empty date is accepted and stored as null."""
    response = client.post("/api/hangouts", json={"id": "h1", "title": "Picnic", "host": "carol", "date": ""})

    assert response.status_code == 200
    assert response.json()["hangout"]["date"] is None

def test_delete_space_detaches_requests(client):
    """Test requests survive their space's deletion."""
    create_space(client)
    client.post("/api/requests", json={"id": "r1", "title": "Help", "requester": "bob", "spaceId": "demo"})

    client.delete("/api/spaces/demo")

    response = client.get("/api/requests/r1")
    assert response.status_code == 200
    assert response.json()["request"]["space_id"] is None
    assert client.get("/api/requests", params={"spaceId": "demo"}).json()["count"] == 0

# tests/test_api_deals.py
import uuid

DEAL = {
    "address": "55 Oak Ave",
    "city": "Dallas",
    "state": "TX",
    "zipCode": "75201",
    "purchasePrice": 180000,
    "monthlyRent": 1850,
    "propertyTax": 2800,
    "insurance": 1100,
}


def test_register_login_and_me(client):
    name = f"user_{uuid.uuid4().hex[:10]}"
    r = client.post(
        "/api/auth/register",
        json={"username": name, "email": f"{name.upper()}@Example.com", "password": "hunter22"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["user"]["email"] == f"{name}@example.com"

    by_email = client.post("/api/auth/login", json={"email": f"{name}@example.com", "password": "hunter22"})
    by_name = client.post("/api/auth/login", json={"username": name, "password": "hunter22"})
    assert by_email.status_code == 200
    assert by_name.status_code == 200

    token = by_name.json()["token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["username"] == name


def test_duplicate_registration_is_rejected(client, register_user):
    user, _ = register_user()
    r = client.post(
        "/api/auth/register",
        json={"username": user["username"], "email": "someone-else@example.com", "password": "hunter22"},
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_bad_credentials(client, register_user):
    user, _ = register_user()
    r = client.post("/api/auth/login", json={"username": user["username"], "password": "wrong-pass"})
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Invalid credentials"}


def test_register_validation_errors_are_400(client):
    r = client.post("/api/auth/register", json={"username": "ab", "email": "nope", "password": "123"})
    assert r.status_code == 400
    fields = r.json()["fields"]
    assert {"username", "email", "password"} <= set(fields)


def test_protected_routes_need_a_token(client):
    assert client.post("/api/properties/save", json=DEAL).status_code == 401
    assert client.get("/api/properties/my-deals").status_code == 401

    r = client.get("/api/properties/my-deals", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid token"


def test_save_list_delete(client, register_user):
    _, headers = register_user()

    saved = client.post("/api/properties/save", json=DEAL, headers=headers)
    assert saved.status_code == 200, saved.text
    body = saved.json()
    assert body["success"] is True
    assert body["message"] == "Property saved successfully"
    deal_id = body["propertyId"]

    deals = client.get("/api/properties/my-deals", headers=headers).json()["properties"]
    assert [d["id"] for d in deals] == [deal_id]
    assert deals[0]["address"] == "55 Oak Ave"
    assert deals[0]["purchase_price"] == 180000
    assert deals[0]["cash_flow"] is not None

    r = client.delete(f"/api/properties/{deal_id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Property deleted successfully"
    assert client.get("/api/properties/my-deals", headers=headers).json()["properties"] == []


def test_newest_deal_first(client, register_user):
    _, headers = register_user()
    first = client.post("/api/properties/save", json=DEAL, headers=headers).json()["propertyId"]
    second = client.post("/api/properties/save", json={**DEAL, "address": "56 Oak Ave"}, headers=headers).json()[
        "propertyId"
    ]

    deals = client.get("/api/properties/my-deals", headers=headers).json()["properties"]
    assert [d["id"] for d in deals] == [second, first]


def test_cannot_delete_someone_elses_deal(client, register_user):
    _, owner = register_user()
    _, other = register_user()

    deal_id = client.post("/api/properties/save", json=DEAL, headers=owner).json()["propertyId"]

    r = client.delete(f"/api/properties/{deal_id}", headers=other)
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Property not found"}

    deals = client.get("/api/properties/my-deals", headers=owner).json()["properties"]
    assert [d["id"] for d in deals] == [deal_id]


def test_save_requires_address(client, register_user):
    _, headers = register_user()
    r = client.post("/api/properties/save", json={**DEAL, "address": ""}, headers=headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required field: address"


def test_save_rejects_invalid_parameters(client, register_user):
    _, headers = register_user()
    r = client.post("/api/properties/save", json={**DEAL, "purchasePrice": 0}, headers=headers)
    assert r.status_code == 400
    assert "purchasePrice" in r.json()["fields"]


def test_numeric_zip_code_is_saved_as_text(client, register_user):
    _, headers = register_user()
    r = client.post("/api/properties/save", json={**DEAL, "zipCode": 75201}, headers=headers)
    assert r.status_code == 200, r.text

    deals = client.get("/api/properties/my-deals", headers=headers).json()["properties"]
    assert deals[0]["zip_code"] == "75201"

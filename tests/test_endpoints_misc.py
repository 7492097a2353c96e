from tests.factories import create_user, in_session, run, set_today_limit


def seed_user(**kwargs):
    return run(in_session(create_user, **kwargs))


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_public_packages_are_seeded_on_startup(client):
    response = client.get("/packages")

    assert response.status_code == 200
    packages = response.json()
    assert [p["slots"] for p in packages] == [1, 3, 5]
    assert packages[1]["offer"] == "POPULAR"
    assert packages[2]["unavailable"] is True


def test_daily_limit_public_and_admin_update(client, login_as):
    run(in_session(set_today_limit, max_uploads=4, current_uploads=3))
    login_as(seed_user(email="admin@example.com", is_admin=True))

    before = client.get("/daily-limit").json()
    assert before["remaining"] == 1

    response = client.put("/admin/daily-limit", json={"remaining": 10})
    assert response.status_code == 200
    assert response.json()["max_uploads"] == 13
    assert response.json()["remaining"] == 10

    bad = client.put("/admin/daily-limit", json={"max_uploads": 1, "remaining": 1})
    assert bad.status_code == 422

    negative = client.put("/admin/daily-limit", json={"max_uploads": -1})
    assert negative.status_code == 422


def test_user_credits(client, login_as):
    login_as(seed_user(slots=4))

    response = client.get("/user/credits")

    assert response.status_code == 200
    assert response.json() == {"slots_remaining": 4, "total_purchased": 4}


def test_admin_package_crud(client, login_as):
    login_as(seed_user(email="admin@example.com", is_admin=True))

    created = client.post(
        "/admin/packages",
        json={"name": "10 Slots", "price": 900, "slots": 10, "features": ["Bulk"], "available_slots": 5},
    )
    assert created.status_code == 201
    package_id = created.json()["id"]
    assert created.json()["currency"] == "KSH"

    updated = client.put(f"/admin/packages/{package_id}", json={"unavailable": True})
    assert updated.status_code == 200
    assert updated.json()["unavailable"] is True
    assert updated.json()["name"] == "10 Slots"

    deleted = client.delete(f"/admin/packages/{package_id}")
    assert deleted.status_code == 200
    assert client.put(f"/admin/packages/{package_id}", json={"price": 1}).status_code == 404


def test_payment_initiate_requires_target(client, login_as):
    login_as(seed_user())

    response = client.post("/payment/initiate", json={"phone_number": "254712345678"})

    assert response.status_code == 422


def test_payment_initiate_rejects_phone_format(client, login_as):
    login_as(seed_user())

    response = client.post("/payment/initiate", json={"slots": 1, "phone_number": "0712345678"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid phone number. Format: 254XXXXXXXXX"


def test_admin_users_include_balances(client, login_as):
    seed_user(email="buyer@example.com", slots=2)
    login_as(seed_user(email="admin@example.com", is_admin=True))

    response = client.get("/admin/users")

    assert response.status_code == 200
    buyer = next(u for u in response.json() if u["email"] == "buyer@example.com")
    assert buyer["credits"]["slots_remaining"] == 2

import os

from app.models.order_model import OrderStatus
from tests.factories import create_order, create_user, in_session, run, set_today_limit


def seed_user(**kwargs):
    return run(in_session(create_user, **kwargs))


def test_upload_endpoint_returns_order_and_counters(client, login_as, upload_dir, queued_notifications):
    user = login_as(seed_user(slots=2))
    run(in_session(set_today_limit, max_uploads=3))

    response = client.post(
        "/upload",
        files={"file": ("essay.docx", b"An essay", "application/octet-stream")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "File uploaded successfully"
    assert body["order"]["status"] == "Pending"
    assert body["order"]["user_id"] == user.id
    assert body["daily_remaining"] == 2
    assert body["slots_remaining"] == 1
    queued_notifications.assert_called_once_with("New Order", "Test User uploaded essay.docx", "/admin")


def test_upload_endpoint_quota_exhausted(client, login_as):
    login_as(seed_user(slots=2))

    response = client.post("/upload", files={"file": ("essay.docx", b"An essay")})

    assert response.status_code == 403
    assert response.json()["details"] == {"error": "QuotaExceededError"}


def test_upload_endpoint_without_slots(client, login_as):
    login_as(seed_user(slots=0))
    run(in_session(set_today_limit, max_uploads=3))

    response = client.post("/upload", files={"file": ("essay.docx", b"An essay")})

    assert response.status_code == 403
    assert response.json()["message"] == "You have 0 upload slots. Please purchase slots to continue."


def test_upload_requires_token(client):
    response = client.post("/upload", files={"file": ("essay.docx", b"An essay")})

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_list_own_orders_newest_first(client, login_as):
    user = login_as(seed_user())
    other = seed_user(email="other@example.com")
    run(in_session(create_order, user.id, original_filename="first.docx"))
    run(in_session(create_order, user.id, original_filename="second.docx"))
    run(in_session(create_order, other.id, original_filename="not-mine.docx"))

    response = client.get("/user/orders")

    assert response.status_code == 200
    names = [order["original_filename"] for order in response.json()]
    assert names == ["second.docx", "first.docx"]


def test_delete_someone_elses_order_is_forbidden(client, login_as):
    owner = seed_user(email="owner@example.com")
    login_as(seed_user(email="intruder@example.com"))
    order = run(in_session(create_order, owner.id))

    response = client.delete(f"/user/orders/{order.id}")

    assert response.status_code == 403
    assert response.json()["message"] == "You can only delete your own orders"


def test_download_uses_original_filename(client, login_as, upload_dir):
    user = login_as(seed_user())
    stored = f"{user.id}_1765899518_essay.docx"
    path = os.path.join(upload_dir, stored)
    with open(path, "wb") as f:
        f.write(b"essay body")
    run(in_session(create_order, user.id, local_file_path=path))

    response = client.get(f"/download/{stored}")

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="essay.docx"'
    assert response.content == b"essay body"


def test_download_of_unowned_file_is_denied(client, login_as, upload_dir):
    owner = seed_user(email="owner@example.com")
    login_as(seed_user(email="stranger@example.com"))
    stored = f"{owner.id}_1765899518_essay.docx"
    path = os.path.join(upload_dir, stored)
    with open(path, "wb") as f:
        f.write(b"essay body")
    run(in_session(create_order, owner.id, local_file_path=path))

    response = client.get(f"/download/{stored}")

    assert response.status_code == 403


def test_admin_routes_reject_regular_users(client, login_as):
    login_as(seed_user())

    assert client.get("/admin/orders").status_code == 403
    assert client.put("/admin/daily-limit", json={"max_uploads": 5}).status_code == 403


def test_admin_start_and_complete_flow(client, login_as, upload_dir):
    owner = seed_user(email="owner@example.com")
    login_as(seed_user(email="admin@example.com", is_admin=True))
    order = run(in_session(create_order, owner.id))

    started = client.post(f"/admin/orders/{order.id}/start")
    assert started.status_code == 200
    assert started.json()["order"]["status"] == "Processing"

    again = client.post(f"/admin/orders/{order.id}/start")
    assert again.status_code == 409

    completed = client.post(
        f"/admin/complete/{order.id}",
        data={"ai_score": "88", "sim_score": "12"},
        files={
            "report1": ("similarity.pdf", b"%PDF-1", "application/pdf"),
            "report2": ("ai.pdf", b"%PDF-2", "application/pdf"),
        },
    )
    assert completed.status_code == 200
    body = completed.json()["order"]
    assert body["status"] == OrderStatus.COMPLETED.value
    assert body["ai_score"] == 88
    assert body["user"]["email"] == "owner@example.com"

    listed = client.get("/admin/orders")
    assert listed.status_code == 200
    assert listed.json()[0]["local_file_path"] == order.local_file_path


def test_admin_complete_missing_score(client, login_as):
    owner = seed_user(email="owner@example.com")
    login_as(seed_user(email="admin@example.com", is_admin=True))
    order = run(in_session(create_order, owner.id, status=OrderStatus.PROCESSING, report2_path="report1_1_ai.pdf"))

    response = client.post(
        f"/admin/complete/{order.id}",
        data={"ai_score": "88", "sim_score": ""},
        files={"report1": ("similarity.pdf", b"%PDF-1", "application/pdf")},
    )

    assert response.status_code == 400
    assert "sim_score" in response.json()["message"]

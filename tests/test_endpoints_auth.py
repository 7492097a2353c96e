from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

from jose import jwt
from sqlalchemy.future import select

from app.core.config import settings
from app.models.verification_model import PasswordResetToken, VerificationCode
from tests.factories import in_session, run


async def _latest(db, model, email):
    result = await db.execute(select(model).filter(model.email == email).order_by(model.id.desc()))
    return result.scalars().first()


def signup(client, email="student@example.com", password="secret123", **extra):
    payload = {"first_name": "Amina", "last_name": "Otieno", "email": email, "password": password, **extra}
    return client.post("/auth/signup", json=payload)


def test_signup_login_and_me(client):
    assert signup(client).status_code == 201

    response = client.post("/auth/login", json={"email": "Student@Example.com", "password": "secret123"})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "student@example.com"
    assert body["user"]["is_admin"] is False

    claims = jwt.decode(body["token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert claims["email"] == "student@example.com"
    assert claims["admin"] is False

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["first_name"] == "Amina"


def test_signup_duplicate_email(client):
    signup(client)

    response = signup(client)

    assert response.status_code == 400
    assert response.json()["message"] == "Email is already registered"


def test_login_wrong_password(client):
    signup(client)

    response = client.post("/auth/login", json={"email": "student@example.com", "password": "nope"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email or password"


def test_admin_email_is_promoted(client):
    signup(client, email=settings.ADMIN_EMAIL)

    response = client.post("/auth/login", json={"email": settings.ADMIN_EMAIL, "password": "secret123"})

    assert response.json()["user"]["is_admin"] is True
    token = response.json()["token"]
    assert client.get("/admin/orders", headers={"Authorization": f"Bearer {token}"}).status_code == 200


def test_invalid_token_is_rejected(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_otp_required_signup(client, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_EMAIL_OTP", True)
    with patch("app.modules.auth.service.send_brevo_email", new_callable=AsyncMock) as mock_send:
        assert client.post("/auth/otp", json={"email": "new@example.com"}).status_code == 200
        mock_send.assert_awaited_once()

    code = run(in_session(_latest, VerificationCode, "new@example.com")).code

    wrong = "111111" if code == "000000" else "000000"
    assert signup(client, email="new@example.com", otp=wrong).status_code == 400
    assert signup(client, email="new@example.com", otp=code).status_code == 201


def test_forgot_and_reset_password(client):
    signup(client)
    with patch("app.modules.auth.service.send_brevo_email", new_callable=AsyncMock) as mock_send:
        response = client.post("/auth/forgot-password", json={"email": "student@example.com"})
        assert response.status_code == 200
        mock_send.assert_awaited_once()

        unknown = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
        assert unknown.json()["message"] == response.json()["message"]
        assert mock_send.await_count == 1

    token = run(in_session(_latest, PasswordResetToken, "student@example.com")).token

    reset = client.post("/auth/reset-password", json={"token": token, "new_password": "newsecret"})
    assert reset.status_code == 200

    reused = client.post("/auth/reset-password", json={"token": token, "new_password": "another"})
    assert reused.status_code == 400

    login = client.post("/auth/login", json={"email": "student@example.com", "password": "newsecret"})
    assert login.status_code == 200


def test_expired_reset_token(client):
    signup(client)

    async def add_expired(db):
        db.add(PasswordResetToken(
            email="student@example.com", token="expired-token", expires_at=datetime.utcnow() - timedelta(minutes=1)
        ))
        await db.commit()

    run(in_session(add_expired))

    response = client.post("/auth/reset-password", json={"token": "expired-token", "new_password": "newsecret"})
    assert response.status_code == 400


def test_google_login_creates_passwordless_account(client):
    claims = {"email": "gmail.user@gmail.com", "email_verified": "true", "aud": "test-client-id", "given_name": "Gee"}
    with patch("app.modules.auth.service.verify_google_credential", new=AsyncMock(return_value=claims)):
        first = client.post("/auth/google", json={"credential": "id-token"})
        second = client.post("/auth/google", json={"credential": "id-token"})

    assert first.status_code == 200
    assert first.json()["user"]["first_name"] == "Gee"
    assert second.json()["user"]["id"] == first.json()["user"]["id"]

    # No password was ever set
    login = client.post("/auth/login", json={"email": "gmail.user@gmail.com", "password": "anything"})
    assert login.status_code == 400

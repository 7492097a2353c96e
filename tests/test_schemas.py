from datetime import datetime

import pytest
from pydantic import ValidationError

from app.models.order_model import OrderStatus
from app.schemas.daily_limit_schema import DailyLimitUpdate
from app.schemas.notification_schema import SubscribeRequest
from app.schemas.order_schema import AdminOrder, Order
from app.schemas.package_schema import PackageCreate, PackageUpdate
from app.schemas.transaction_schema import PaymentInitiateRequest, PaymentStatusResponse
from app.schemas.user_schema import UserSignup


def test_daily_limit_update_takes_exactly_one_value():
    assert DailyLimitUpdate(max_uploads=20).remaining is None
    assert DailyLimitUpdate(remaining=0).remaining == 0

    with pytest.raises(ValidationError):
        DailyLimitUpdate()
    with pytest.raises(ValidationError):
        DailyLimitUpdate(max_uploads=20, remaining=5)
    with pytest.raises(ValidationError):
        DailyLimitUpdate(remaining=-1)


def test_payment_initiate_needs_slots_or_package():
    by_slots = PaymentInitiateRequest(slots=3, phone_number="254712345678")
    assert by_slots.package_id is None

    by_package = PaymentInitiateRequest(package_id=2, phone_number="254712345678")
    assert by_package.slots is None

    with pytest.raises(ValidationError):
        PaymentInitiateRequest(phone_number="254712345678")
    with pytest.raises(ValidationError):
        PaymentInitiateRequest(slots=0, phone_number="254712345678")


def test_payment_status_is_restricted():
    assert PaymentStatusResponse(status="completed", slots_added=3).slots_added == 3
    with pytest.raises(ValidationError):
        PaymentStatusResponse(status="cancelled")


def test_package_bounds():
    package = PackageCreate(name="10 Slots", price=900, slots=10)
    assert package.currency == "KSH"
    assert package.available_slots is None

    with pytest.raises(ValidationError):
        PackageCreate(name="Free", price=-1, slots=1)
    with pytest.raises(ValidationError):
        PackageUpdate(slots=0)

    assert PackageUpdate(unavailable=True).model_dump(exclude_unset=True) == {"unavailable": True}


def test_signup_schema():
    signup = UserSignup(email="student@example.com", password="secret123")
    assert signup.otp is None

    with pytest.raises(ValidationError):
        UserSignup(email="not-an-email", password="secret123")
    with pytest.raises(ValidationError):
        UserSignup(email="student@example.com", password="123")


def test_subscribe_request_accepts_both_shapes():
    assert isinstance(SubscribeRequest(subscription='{"endpoint": "x"}').subscription, str)
    assert SubscribeRequest(subscription={"endpoint": "x"}).subscription == {"endpoint": "x"}


def test_order_schemas_hide_stored_path_from_users():
    data = {
        "id": 1,
        "user_id": 2,
        "status": OrderStatus.PROCESSING,
        "original_filename": "essay.docx",
        "local_file_path": "uploads/2_1765899518_essay.docx",
        "created_at": datetime(2026, 3, 1),
    }

    assert "local_file_path" not in Order(**data).model_dump()
    admin_view = AdminOrder(**data)
    assert admin_view.local_file_path == "uploads/2_1765899518_essay.docx"
    assert admin_view.model_dump(mode="json")["status"] == "Processing"

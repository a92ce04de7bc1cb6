# backend/tests/conftest.py
"""
Pytest configuration for the booking backend.

Tests run against an in-memory SQLite database that is created and dropped
around every test. Stripe and the email provider are replaced with mocks so
no test can reach a real external service.
"""

import os

# CRITICAL: configure the environment BEFORE any app imports
TEST_JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["AUTH_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["STRIPE_SECRET_KEY"] = "sk_test_placeholder"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_placeholder"
os.environ["STRIPE_PRICE_MONTHLY_MEMBERSHIP"] = "price_monthly_test"
os.environ["STRIPE_PRICE_ANNUAL_MEMBERSHIP"] = "price_annual_test"
os.environ["STRIPE_PRICE_LIFETIME_MEMBERSHIP"] = "price_lifetime_test"
os.environ["ADMIN_EMAIL"] = "owner@pnwsauna.com"

# CRITICAL: Mock Resend API globally to prevent real emails in ANY test
import unittest.mock

global_resend_mock = unittest.mock.patch("resend.Emails.send")
mocked_send = global_resend_mock.start()
mocked_send.return_value = {"id": "test-email-id"}

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, Generator, Optional
from unittest.mock import Mock

from fastapi.testclient import TestClient
import jwt
import pytest
from sqlalchemy.orm import Session

from app.api.dependencies.database import get_db
from app.api.dependencies.services import get_email_service, get_stripe_service
from app.core.timezone_utils import get_business_today
from app.database import Base, SessionLocal, engine
from app.main import app
from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.models.liability_waiver import LiabilityWaiver
from app.models.membership import Membership, MembershipKind, MembershipStatus
from app.models.time_slot import SessionKind, TimeSlot
from app.models.user import User
from app.services.booking_service import BookingService
from app.services.email import EmailService
from app.services.stripe_service import HostedCheckout, StripeService

# Far enough ahead that slot dates are never in the past
SLOT_DATE = get_business_today() + timedelta(days=7)


# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


# ============================================================================
# EXTERNAL SERVICE MOCKS
# ============================================================================


def _hosted_checkout(booking: Booking, slot: TimeSlot) -> HostedCheckout:
    return HostedCheckout(
        session_id=f"cs_test_{booking.id}",
        url=f"https://checkout.stripe.test/pay/{booking.id}",
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=30),
    )


@pytest.fixture
def stripe_service() -> Mock:
    service = Mock(spec=StripeService)
    service.create_booking_checkout.side_effect = _hosted_checkout
    service.refund_payment.return_value = "re_test_123"
    service.verify_webhook_signature.return_value = True
    service.create_customer.return_value = "cus_test_123"
    service.create_membership_checkout.return_value = HostedCheckout(
        session_id="cs_test_membership",
        url="https://checkout.stripe.test/membership",
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=30),
    )
    return service


@pytest.fixture
def email_service() -> Mock:
    service = Mock(spec=EmailService)
    service.send_booking_confirmation.return_value = True
    return service


@pytest.fixture
def booking_service(db: Session, stripe_service: Mock, email_service: Mock) -> BookingService:
    return BookingService(db, stripe_service=stripe_service, email_service=email_service)


# ============================================================================
# BUILDERS
# ============================================================================


@pytest.fixture
def make_slot(db: Session) -> Callable[..., TimeSlot]:
    def _make_slot(
        slot_date: date = SLOT_DATE,
        start: time = time(19, 0),
        end: Optional[time] = None,
        kind: SessionKind = SessionKind.COMMUNITY,
        max_capacity: int = 8,
        current_bookings: int = 0,
        is_available: bool = True,
    ) -> TimeSlot:
        slot = TimeSlot(
            slot_date=slot_date,
            start_time=start,
            end_time=end or time(start.hour + 1, 0),
            slot_kind=kind,
            max_capacity=max_capacity,
            current_bookings=current_bookings,
            is_available=is_available,
        )
        db.add(slot)
        db.commit()
        return slot

    return _make_slot


@pytest.fixture
def waiver(db: Session) -> LiabilityWaiver:
    signed = LiabilityWaiver(
        signer_name="Astrid Lind",
        signer_email="astrid@example.com",
        emergency_contact_name="Nils Lind",
        emergency_contact_phone="208-555-0100",
        waiver_version="1.0",
        waiver_text="I accept the risks of sauna and cold plunge use.",
    )
    db.add(signed)
    db.commit()
    return signed


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    def _make_user(
        user_id: str = "user-1",
        email: str = "guest@example.com",
        full_name: str = "Guest Bather",
        is_admin: bool = False,
    ) -> User:
        user = User(id=user_id, email=email, full_name=full_name, is_admin=is_admin)
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_member(db: Session, make_user: Callable[..., User]) -> Callable[..., User]:
    """User with a membership whose window covers today unless told otherwise."""

    def _make_member(
        user_id: str = "member-1",
        email: str = "member@example.com",
        kind: MembershipKind = MembershipKind.MONTHLY,
        status: MembershipStatus = MembershipStatus.ACTIVE,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        subscription_id: Optional[str] = "sub_test_123",
    ) -> User:
        user = make_user(user_id=user_id, email=email, full_name="Member Bather")
        today = get_business_today()
        db.add(
            Membership(
                user_id=user.id,
                membership_kind=kind,
                status=status,
                start_date=start_date or today - timedelta(days=3),
                end_date=end_date if end_date is not None else today + timedelta(days=27),
                stripe_customer_id="cus_test_member",
                stripe_subscription_id=subscription_id,
            )
        )
        db.commit()
        return user

    return _make_member


@pytest.fixture
def make_booking(db: Session) -> Callable[..., Booking]:
    """Insert a booking row directly, bypassing the ledger."""

    def _make_booking(
        slot: TimeSlot,
        party_size: int = 2,
        status: BookingStatus = BookingStatus.PENDING,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        amount_cents: Optional[int] = None,
        **overrides: Any,
    ) -> Booking:
        values: Dict[str, Any] = {
            "time_slot_id": slot.id,
            "customer_name": "Guest Bather",
            "customer_email": "guest@example.com",
            "session_kind": SessionKind(slot.slot_kind),
            "party_size": party_size,
            "total_amount_cents": amount_cents if amount_cents is not None else 2500 * party_size,
            "status": status,
            "payment_status": payment_status,
        }
        values.update(overrides)
        booking = Booking(**values)
        db.add(booking)
        db.commit()
        return booking

    return _make_booking


# ============================================================================
# HTTP CLIENT AND AUTH
# ============================================================================


@pytest.fixture
def client(db: Session, stripe_service: Mock, email_service: Mock) -> Generator[TestClient, None, None]:
    """Test client wired to the per-test database and mocked providers."""

    def override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stripe_service] = lambda: stripe_service
    app.dependency_overrides[get_email_service] = lambda: email_service
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def _encode_token(
    subject: str,
    email: str,
    name: Optional[str] = None,
    role: Optional[str] = None,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    payload: Dict[str, Any] = {
        "sub": subject,
        "email": email,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    if name:
        payload["name"] = name
    if role:
        payload["app_metadata"] = {"role": role}
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    token = _encode_token("user-1", "guest@example.com", name="Guest Bather")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def member_headers(make_member: Callable[..., User]) -> Dict[str, str]:
    member = make_member()
    token = _encode_token(member.id, member.email, name=member.full_name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    token = _encode_token("admin-1", "staff@pnwsauna.com", name="Sauna Staff", role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token_factory() -> Callable[..., str]:
    return _encode_token


@pytest.fixture
def slot_date() -> date:
    return SLOT_DATE

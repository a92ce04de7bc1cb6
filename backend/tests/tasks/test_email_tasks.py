from unittest.mock import patch

import pytest

from app.models.booking import BookingStatus, PaymentStatus
from app.tasks.email import ConfirmationNotSent, send_booking_confirmation
from app.tasks.enqueue import enqueue_task


@pytest.fixture
def confirmed(make_slot, make_booking):
    return make_booking(make_slot(), status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID)


def test_sends_confirmation(db, confirmed):
    with patch("app.tasks.email.SessionLocal", return_value=db), patch("app.tasks.email.EmailService") as service:
        service.return_value.send_booking_confirmation.return_value = True
        result = send_booking_confirmation(confirmed.id)

    assert result == {"status": "success", "booking_id": confirmed.id}


def test_skips_cancelled_booking(db, make_slot, make_booking):
    booking = make_booking(make_slot(), status=BookingStatus.CANCELLED, payment_status=PaymentStatus.FAILED)

    with patch("app.tasks.email.SessionLocal", return_value=db), patch("app.tasks.email.EmailService") as service:
        result = send_booking_confirmation(booking.id)

    assert result["status"] == "skipped"
    service.return_value.send_booking_confirmation.assert_not_called()


def test_unknown_booking(db):
    with patch("app.tasks.email.SessionLocal", return_value=db):
        result = send_booking_confirmation("01UNKNOWNBOOKING0000000000")

    assert result["status"] == "error"


def test_provider_failure_is_retried(db, confirmed):
    with patch("app.tasks.email.SessionLocal", return_value=db), patch("app.tasks.email.EmailService") as service:
        service.return_value.send_booking_confirmation.return_value = False
        with pytest.raises(ConfirmationNotSent):
            send_booking_confirmation(confirmed.id)


def test_enqueue_by_name():
    with patch("app.tasks.celery_app.celery_app.send_task") as send_task:
        enqueue_task("app.tasks.email.send_booking_confirmation", args=("b-1",), countdown=60)

    send_task.assert_called_once_with(
        "app.tasks.email.send_booking_confirmation",
        args=("b-1",),
        kwargs={},
        headers={},
        countdown=60,
    )

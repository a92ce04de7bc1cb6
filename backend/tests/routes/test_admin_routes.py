from datetime import timedelta

from app.models.booking import BookingStatus, PaymentStatus
from app.models.membership import MembershipStatus


class TestAdminAccess:
    def test_requires_token(self, client):
        assert client.get("/api/admin/bookings").status_code == 401

    def test_rejects_regular_users(self, client, auth_headers):
        response = client.get("/api/admin/bookings", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["title"] == "Forbidden"

    def test_rejects_expired_token(self, client, token_factory):
        token = token_factory("admin-1", "staff@pnwsauna.com", role="admin", expires_in=timedelta(minutes=-5))

        response = client.get("/api/admin/bookings", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


class TestAdminBookings:
    def test_lists_newest_first_with_total(self, client, admin_headers, make_slot, make_booking):
        slot = make_slot()
        make_booking(slot, customer_name="First")
        make_booking(slot, customer_name="Second", status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID)

        response = client.get("/api/admin/bookings", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert len(data["bookings"]) == 2

    def test_filters_by_status(self, client, admin_headers, make_slot, make_booking):
        slot = make_slot()
        make_booking(slot)
        confirmed = make_booking(slot, status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID)

        response = client.get("/api/admin/bookings", params={"status": "confirmed"}, headers=admin_headers)

        assert [b["id"] for b in response.json()["bookings"]] == [confirmed.id]
        assert response.json()["total"] == 1

    def test_cancel_with_refund(self, client, admin_headers, stripe_service, make_slot, make_booking):
        slot = make_slot(current_bookings=2)
        booking = make_booking(
            slot, status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID, payment_intent_id="pi_admin"
        )

        response = client.post(
            f"/api/admin/bookings/{booking.id}/cancel",
            json={"reason": "Storm closure", "refund": True},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "cancelled"
        assert data["payment_status"] == "refunded"
        assert data["cancellation_reason"] == "Storm closure"
        stripe_service.refund_payment.assert_called_once_with("pi_admin")

    def test_cancel_twice_is_unprocessable(self, client, admin_headers, make_slot, make_booking):
        booking = make_booking(make_slot(), status=BookingStatus.CANCELLED, payment_status=PaymentStatus.FAILED)

        response = client.post(
            f"/api/admin/bookings/{booking.id}/cancel", json={"reason": "again"}, headers=admin_headers
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_BOOKING_TRANSITION"

    def test_cancel_unknown_booking(self, client, admin_headers):
        response = client.post(
            "/api/admin/bookings/01UNKNOWN/cancel", json={"reason": "typo"}, headers=admin_headers
        )

        assert response.status_code == 404

    def test_cancel_requires_reason(self, client, admin_headers, make_slot, make_booking):
        booking = make_booking(make_slot())

        response = client.post(f"/api/admin/bookings/{booking.id}/cancel", json={}, headers=admin_headers)

        assert response.status_code == 422


class TestAdminCatalog:
    def test_time_slots_in_range(self, client, admin_headers, make_slot, slot_date):
        make_slot()
        make_slot(slot_date=slot_date + timedelta(days=10))

        response = client.get(
            "/api/admin/time-slots",
            params={"start_date": slot_date.isoformat(), "end_date": (slot_date + timedelta(days=1)).isoformat()},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert len(response.json()) == 1
        assert response.json()[0]["current_bookings"] == 0

    def test_inverted_range(self, client, admin_headers, slot_date):
        response = client.get(
            "/api/admin/time-slots",
            params={"start_date": slot_date.isoformat(), "end_date": (slot_date - timedelta(days=1)).isoformat()},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_RANGE"

    def test_memberships(self, client, admin_headers, make_member):
        make_member()
        make_member(user_id="member-2", email="late@example.com", status=MembershipStatus.PAST_DUE)

        response = client.get("/api/admin/memberships", params={"status": "past_due"}, headers=admin_headers)

        assert response.status_code == 200
        assert [m["user_id"] for m in response.json()["memberships"]] == ["member-2"]

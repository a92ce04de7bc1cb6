from app.core.exceptions import ServiceException


def test_me_without_membership(client, auth_headers):
    response = client.get("/api/memberships/me", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"is_active": False, "membership": None}


def test_me_as_member(client, member_headers):
    response = client.get("/api/memberships/me", headers=member_headers)

    data = response.json()
    assert data["is_active"] is True
    assert data["membership"]["membership_kind"] == "monthly"
    assert data["membership"]["status"] == "active"


def test_me_requires_login(client):
    assert client.get("/api/memberships/me").status_code == 401


def test_start_checkout(client, auth_headers, stripe_service):
    response = client.post(
        "/api/memberships/checkout", json={"membership_kind": "lifetime"}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["session_id"] == "cs_test_membership"
    assert stripe_service.create_membership_checkout.call_args.kwargs["price_id"] == "price_lifetime_test"


def test_checkout_rejects_existing_member(client, member_headers):
    response = client.post(
        "/api/memberships/checkout", json={"membership_kind": "annual"}, headers=member_headers
    )

    assert response.status_code == 422
    assert response.json()["code"] == "MEMBERSHIP_EXISTS"


def test_checkout_rejects_unknown_kind(client, auth_headers):
    response = client.post(
        "/api/memberships/checkout", json={"membership_kind": "weekly"}, headers=auth_headers
    )

    assert response.status_code == 422


def test_cancel(client, member_headers, stripe_service):
    response = client.post("/api/memberships/cancel", headers=member_headers)

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["access_ends_on"] is not None
    stripe_service.cancel_subscription_at_period_end.assert_called_once_with("sub_test_123")


def test_cancel_without_membership(client, auth_headers):
    response = client.post("/api/memberships/cancel", headers=auth_headers)

    assert response.status_code == 404


def test_cancel_when_stripe_fails(client, member_headers, stripe_service):
    stripe_service.cancel_subscription_at_period_end.side_effect = ServiceException("Stripe down")

    response = client.post("/api/memberships/cancel", headers=member_headers)

    assert response.status_code == 500

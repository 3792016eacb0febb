"""Integration tests for API endpoints."""

from uuid import uuid4

import pytest

from safari_api.models import UserRole

FIRST_DAY = "2031-07-01"

PARK_DATA = {
    "name": "Tarangire National Park",
    "description": "Baobabs and elephant herds",
    "location": "Tanzania",
    "latitude": -3.83,
    "longitude": 36.0,
    "area_km2": 2850,
    "established_year": 1970,
    "entry_fee_usd": 5000,
}


def tour_data(park_id, max_participants=4):
    return {
        "park_id": park_id,
        "title": "Tarangire Elephant Trail",
        "description": "Two days among the baobabs",
        "duration_days": 2,
        "price": {"amount": 90000},
        "max_participants": max_participants,
        "start_dates": [{"start_date": FIRST_DAY}],
    }


def booking_data(tour_id, adults=1):
    return {
        "tour_id": tour_id,
        "participants": {"adults": adults},
        "start_date": f"{FIRST_DAY}T06:30:00Z",
        "emergency_contact": {"name": "Neema Lema", "phone": "+255733333333", "relationship": "Partner"},
    }


@pytest.fixture
def api_tour(test_client, auth_headers, park, agency_user):
    """Create a tour over HTTP and return its JSON."""

    async def _api_tour(max_participants=4):
        response = await test_client.post(
            "/v1/tour/create",
            json=tour_data(str(park.id), max_participants),
            headers=auth_headers(agency_user.id, UserRole.TRAVEL_AGENCY.value),
        )
        assert response.status_code == 200
        return response.json()

    return _api_tour


@pytest.mark.asyncio
async def test_health_ping(test_client):
    response = await test_client.post("/v1/health/ping")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert data["checks"] == {"database": "ok"}
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_request_id_is_echoed(test_client):
    response = await test_client.post("/v1/health/ping", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["traceparent"].startswith("00-")


@pytest.mark.asyncio
async def test_register_user_anonymously(test_client):
    """Test anonymous registration of a tourist account."""
    response = await test_client.post(
        "/v1/user/create",
        json={"email": "Zawadi@Example.com", "name": "Zawadi", "phone": "+255744444444"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "zawadi@example.com"
    assert data["role"] == "Tourist"
    assert data["is_active"] is True


@pytest.mark.asyncio
async def test_register_admin_anonymously_forbidden(test_client):
    response = await test_client.post(
        "/v1/user/create",
        json={"email": "root@example.com", "name": "Root", "phone": "+255744444444", "role": "Admin"},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_park_requires_admin(test_client, auth_headers, tourist_user):
    """Test park creation is reserved for administrators."""
    response = await test_client.post(
        "/v1/park/create", json=PARK_DATA, headers=auth_headers(tourist_user.id, UserRole.TOURIST.value)
    )
    assert response.status_code == 403
    assert response.json()["required_permissions"] == ["Admin"]

    response = await test_client.post(
        "/v1/park/create", json=PARK_DATA, headers=auth_headers(uuid4(), UserRole.ADMIN.value)
    )
    assert response.status_code == 200
    park_id = response.json()["id"]

    response = await test_client.post("/v1/park/get", json={"park_id": park_id})
    assert response.status_code == 200
    assert response.json()["name"] == "Tarangire National Park"


@pytest.mark.asyncio
async def test_create_tour_endpoint(api_tour, test_client):
    """Test the tour creation endpoint."""
    tour = await api_tour(max_participants=4)

    assert tour["max_participants"] == 4
    assert tour["current_participants"] == 0
    assert tour["spots_remaining"] == 4
    assert tour["price"] == {"amount": 90000, "currency": "USD"}
    assert tour["start_dates"] == [{"start_date": FIRST_DAY, "available_spots": 4}]

    response = await test_client.post("/v1/tour/get", json={"tour_id": tour["id"]})
    assert response.status_code == 200
    assert response.json()["title"] == "Tarangire Elephant Trail"


@pytest.mark.asyncio
async def test_create_tour_missing_auth(test_client, park):
    """Test tour creation without authentication."""
    response = await test_client.post("/v1/tour/create", json=tour_data(str(park.id)))

    assert response.status_code == 401
    data = response.json()
    assert data["status"] == 401
    assert "authorization" in data["title"].lower()
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_expired_token_rejected(test_client, auth_headers, park, agency_user):
    response = await test_client.post(
        "/v1/tour/create",
        json=tour_data(str(park.id)),
        headers=auth_headers(agency_user.id, UserRole.TRAVEL_AGENCY.value, expires_in=-60),
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_tour_invalid_data(test_client, auth_headers, agency_user):
    """Test tour creation with invalid data."""
    invalid_data = {
        "park_id": "not-a-uuid",
        "title": "",
        "description": "Test description",
        "duration_days": 0,
        "price": {"amount": 100},
        "max_participants": 4,
    }

    response = await test_client.post(
        "/v1/tour/create",
        json=invalid_data,
        headers=auth_headers(agency_user.id, UserRole.TRAVEL_AGENCY.value),
    )

    assert response.status_code == 422
    data = response.json()
    assert data["status"] == 422
    paths = {violation["path"] for violation in data["violations"]}
    assert {"park_id", "title", "duration_days"} <= paths


@pytest.mark.asyncio
async def test_booking_flow(api_tour, test_client, auth_headers, tourist_user):
    """Test booking, reading, listing and cancelling over HTTP."""
    tour = await api_tour(max_participants=4)
    headers = auth_headers(tourist_user.id, UserRole.TOURIST.value)

    response = await test_client.post("/v1/booking/create", json=booking_data(tour["id"], adults=3), headers=headers)
    assert response.status_code == 200
    booking = response.json()
    assert booking["status"] == "pending"
    assert booking["total_participants"] == 3
    assert booking["start_date"] == FIRST_DAY
    assert booking["end_date"] == "2031-07-03"
    assert booking["total_price"] == {"amount": 270000, "currency": "USD"}
    assert booking["booking_reference"].startswith("NAP")

    response = await test_client.post("/v1/booking/get", json={"booking_id": booking["id"]}, headers=headers)
    assert response.status_code == 200

    response = await test_client.post("/v1/booking/list", json={}, headers=headers)
    assert [b["id"] for b in response.json()["bookings"]] == [booking["id"]]

    response = await test_client.post(
        "/v1/booking/cancel", json={"booking_id": booking["id"], "reason": "Flight changed"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["cancellation_reason"] == "Flight changed"

    response = await test_client.post("/v1/tour/get", json={"tour_id": tour["id"]})
    assert response.json()["current_participants"] == 0
    assert response.json()["start_dates"][0]["available_spots"] == 4


@pytest.mark.asyncio
async def test_booking_capacity_conflict(api_tour, test_client, auth_headers, tourist_user):
    """Test overbooking returns a 409 with a stable code."""
    tour = await api_tour(max_participants=2)
    headers = auth_headers(tourist_user.id, UserRole.TOURIST.value)

    response = await test_client.post("/v1/booking/create", json=booking_data(tour["id"], adults=2), headers=headers)
    assert response.status_code == 200

    response = await test_client.post("/v1/booking/create", json=booking_data(tour["id"]), headers=headers)
    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "CAPACITY_EXCEEDED"
    assert data["retryable"] is False


@pytest.mark.asyncio
async def test_closed_tour_booking_conflict(api_tour, test_client, auth_headers, tourist_user, agency_user):
    """Test an agency closing its tour makes bookings fail with a stable code."""
    tour = await api_tour()
    agency_headers = auth_headers(agency_user.id, UserRole.TRAVEL_AGENCY.value)
    tourist_headers = auth_headers(tourist_user.id, UserRole.TOURIST.value)

    response = await test_client.post(
        "/v1/tour/update", json={"tour_id": tour["id"], "is_available": False}, headers=agency_headers
    )
    assert response.status_code == 200
    assert response.json()["is_available"] is False
    assert response.json()["title"] == "Tarangire Elephant Trail"

    response = await test_client.post("/v1/booking/create", json=booking_data(tour["id"]), headers=tourist_headers)
    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "TOUR_UNAVAILABLE"
    assert data["conflicting_resource"]["is_available"] is False


@pytest.mark.asyncio
async def test_update_tour_endpoint_rules(api_tour, test_client, auth_headers, tourist_user, agency_user, make_user):
    """Test tour updates are limited to the owner and cannot strand booked participants."""
    tour = await api_tour(max_participants=4)
    other_agency = await make_user(UserRole.TRAVEL_AGENCY)
    agency_headers = auth_headers(agency_user.id, UserRole.TRAVEL_AGENCY.value)
    other_headers = auth_headers(other_agency.id, UserRole.TRAVEL_AGENCY.value)
    tourist_headers = auth_headers(tourist_user.id, UserRole.TOURIST.value)

    response = await test_client.post(
        "/v1/tour/update", json={"tour_id": tour["id"], "title": "Hijacked"}, headers=other_headers
    )
    assert response.status_code == 403

    response = await test_client.post(
        "/v1/tour/update", json={"tour_id": tour["id"], "title": "Hijacked"}, headers=tourist_headers
    )
    assert response.status_code == 403

    response = await test_client.post(
        "/v1/booking/create", json=booking_data(tour["id"], adults=3), headers=tourist_headers
    )
    assert response.status_code == 200

    response = await test_client.post(
        "/v1/tour/update", json={"tour_id": tour["id"], "max_participants": 2}, headers=agency_headers
    )
    assert response.status_code == 400
    assert response.json()["errors"] == {"max_participants": 2, "current_participants": 3}

    response = await test_client.post(
        "/v1/tour/update", json={"tour_id": tour["id"], "max_participants": 0}, headers=agency_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_park_update_and_deactivate(test_client, auth_headers, tourist_user):
    """Test admins update and delist parks."""
    admin_headers = auth_headers(uuid4(), UserRole.ADMIN.value)
    tourist_headers = auth_headers(tourist_user.id, UserRole.TOURIST.value)
    park_id = (await test_client.post("/v1/park/create", json=PARK_DATA, headers=admin_headers)).json()["id"]

    response = await test_client.post(
        "/v1/park/update", json={"park_id": park_id, "entry_fee_usd": 6000}, headers=tourist_headers
    )
    assert response.status_code == 403

    response = await test_client.post(
        "/v1/park/update", json={"park_id": park_id, "entry_fee_usd": 6000}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["entry_fee_usd"] == 6000
    assert response.json()["name"] == "Tarangire National Park"

    response = await test_client.post("/v1/park/deactivate", json={"park_id": park_id}, headers=tourist_headers)
    assert response.status_code == 403

    response = await test_client.post("/v1/park/deactivate", json={"park_id": park_id}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await test_client.post("/v1/park/deactivate", json={"park_id": str(uuid4())}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_booking_unscheduled_date_conflict(api_tour, test_client, auth_headers, tourist_user):
    tour = await api_tour()
    body = {**booking_data(tour["id"]), "start_date": "2031-08-01"}

    response = await test_client.post(
        "/v1/booking/create", json=body, headers=auth_headers(tourist_user.id, UserRole.TOURIST.value)
    )

    assert response.status_code == 409
    assert response.json()["code"] == "DATE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_cancel_twice_conflict(api_tour, test_client, auth_headers, tourist_user):
    tour = await api_tour()
    headers = auth_headers(tourist_user.id, UserRole.TOURIST.value)
    booking = (await test_client.post("/v1/booking/create", json=booking_data(tour["id"]), headers=headers)).json()

    await test_client.post("/v1/booking/cancel", json={"booking_id": booking["id"]}, headers=headers)
    response = await test_client.post("/v1/booking/cancel", json={"booking_id": booking["id"]}, headers=headers)

    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATE"


@pytest.mark.asyncio
async def test_booking_idempotent_replay(api_tour, test_client, auth_headers, tourist_user):
    """Test a retried create with the same key returns the original booking."""
    tour = await api_tour(max_participants=4)
    headers = {**auth_headers(tourist_user.id, UserRole.TOURIST.value), "Idempotency-Key": "booking-abc"}

    first = await test_client.post("/v1/booking/create", json=booking_data(tour["id"]), headers=headers)
    second = await test_client.post("/v1/booking/create", json=booking_data(tour["id"]), headers=headers)

    assert first.status_code == second.status_code == 200
    assert first.json()["id"] == second.json()["id"]

    response = await test_client.post("/v1/tour/get", json={"tour_id": tour["id"]})
    assert response.json()["current_participants"] == 1

    mismatch = await test_client.post(
        "/v1/booking/create", json=booking_data(tour["id"], adults=2), headers=headers
    )
    assert mismatch.status_code == 422
    assert mismatch.json()["code"] == "IDEMPOTENCY_KEY_MISMATCH"


@pytest.mark.asyncio
async def test_booking_of_other_user_forbidden(api_tour, test_client, auth_headers, tourist_user, make_user):
    tour = await api_tour()
    booking = (await test_client.post(
        "/v1/booking/create",
        json=booking_data(tour["id"]),
        headers=auth_headers(tourist_user.id, UserRole.TOURIST.value),
    )).json()
    stranger = await make_user(UserRole.TOURIST)

    response = await test_client.post(
        "/v1/booking/get",
        json={"booking_id": booking["id"]},
        headers=auth_headers(stranger.id, UserRole.TOURIST.value),
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_transition_requires_admin(api_tour, test_client, auth_headers, tourist_user):
    tour = await api_tour()
    headers = auth_headers(tourist_user.id, UserRole.TOURIST.value)
    booking = (await test_client.post("/v1/booking/create", json=booking_data(tour["id"]), headers=headers)).json()
    body = {"booking_id": booking["id"], "target_status": "confirmed"}

    response = await test_client.post("/v1/booking/transition", json=body, headers=headers)
    assert response.status_code == 403

    response = await test_client.post(
        "/v1/booking/transition", json=body, headers=auth_headers(uuid4(), UserRole.ADMIN.value)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"


@pytest.mark.asyncio
async def test_review_flow(api_tour, test_client, auth_headers, tourist_user, agency_user):
    """Test reviewing a booked tour and the agency response."""
    tour = await api_tour()
    headers = auth_headers(tourist_user.id, UserRole.TOURIST.value)
    booking = (await test_client.post("/v1/booking/create", json=booking_data(tour["id"]), headers=headers)).json()

    response = await test_client.post(
        "/v1/review/create",
        json={
            "tour_id": tour["id"],
            "booking_id": booking["id"],
            "rating": {"overall": 4, "guide": 5},
            "title": "Elephants everywhere",
            "comment": "Great guide and a lovely camp",
            "pros": ["Elephant herds", " Quiet camp "],
            "cons": ["Tsetse flies"],
        },
        headers=headers,
    )
    assert response.status_code == 200
    review = response.json()
    assert review["average_rating"] == 4.5
    assert review["pros"] == ["Elephant herds", "Quiet camp"]
    assert review["cons"] == ["Tsetse flies"]

    response = await test_client.post("/v1/review/mine", headers=headers)
    assert response.status_code == 200
    assert [r["id"] for r in response.json()["reviews"]] == [review["id"]]

    response = await test_client.post("/v1/review/mine")
    assert response.status_code == 401

    response = await test_client.post("/v1/review/list", json={"tour_id": tour["id"]})
    assert [r["id"] for r in response.json()["reviews"]] == [review["id"]]

    response = await test_client.post("/v1/review/helpful", json={"review_id": review["id"]}, headers=headers)
    assert response.json()["helpful_count"] == 1

    response = await test_client.post(
        "/v1/review/respond",
        json={"review_id": review["id"], "text": "Asante sana!"},
        headers=auth_headers(agency_user.id, UserRole.TRAVEL_AGENCY.value),
    )
    assert response.status_code == 200
    assert response.json()["response_text"] == "Asante sana!"

    response = await test_client.post("/v1/tour/get", json={"tour_id": tour["id"]})
    assert response.json()["rating_average"] == 4.0
    assert response.json()["rating_count"] == 1


@pytest.mark.asyncio
async def test_metrics_endpoint(test_client):
    """Test the Prometheus metrics endpoint."""
    response = await test_client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "# HELP" in response.text

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status
from sqlalchemy import text

from roombooking.models.booking import BookingStatus

# pylint: disable=unused-import
from tests.conf_tests import (
    at,
    auth_headers,
    client,
    dispatcher,
    headers_for,
    make_booking,
    other_user,
    session_factory,
    test_room,
    test_user,
)


def parse(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def booking_payload(room, start, end, **extra):
    return {"room_id": room.id, "start_time": start.isoformat(), "end_time": end.isoformat(), **extra}


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_success(client, auth_headers, test_room, test_user):
    response = await client.post(
        "/bookings/", json=booking_payload(test_room, at(9), at(10), notes="Team meeting"), headers=auth_headers
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["room_id"] == test_room.id
    assert data["user_id"] == test_user.id
    assert data["status"] == "pending"
    assert data["admin_notes"] == ""
    assert data["notes"] == "Team meeting"
    assert data["room_name"] == test_room.name
    assert data["duration_minutes"] == 60
    assert parse(data["start_time"]) == at(9)
    assert parse(data["end_time"]) == at(10)


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_from_duration(client, auth_headers, test_room):
    payload = {"room_id": test_room.id, "start_time": at(9, 15).isoformat(), "duration_minutes": 95}
    response = await client.post("/bookings/", json=payload, headers=auth_headers)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert parse(data["end_time"]) == at(10, 50)
    assert data["duration_minutes"] == 95


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_duration_disagrees_with_end(client, auth_headers, test_room):
    payload = booking_payload(test_room, at(9), at(10), duration_minutes=30)
    response = await client.post("/bookings/", json=payload, headers=auth_headers)
    assert response.status_code == 422


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_unauthorized(client, test_room):
    response = await client.post("/bookings/", json=booking_payload(test_room, at(9), at(10)))
    assert response.status_code in [
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    ]


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_invalid_token(client, test_room):
    response = await client.post(
        "/bookings/", json=booking_payload(test_room, at(9), at(10)), headers={"Authorization": "Bearer nope"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_in_the_past(client, auth_headers, test_room):
    yesterday = datetime.now(timezone.utc) - timedelta(days=1)
    response = await client.post(
        "/bookings/", json=booking_payload(test_room, yesterday, yesterday + timedelta(hours=1)), headers=auth_headers
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "start_in_past"


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_missing_fields(client, auth_headers, test_room):
    response = await client.post(
        "/bookings/", json={"room_id": test_room.id, "start_time": at(9).isoformat()}, headers=auth_headers
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "missing_fields"
    assert "end_time" in response.json()["detail"]


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_inverted_interval(client, auth_headers, test_room):
    response = await client.post("/bookings/", json=booking_payload(test_room, at(11), at(10)), headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "invalid_interval"


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_room_not_found(client, auth_headers):
    response = await client.post(
        "/bookings/",
        json={"room_id": "nowhere", "start_time": at(9).isoformat(), "end_time": at(10).isoformat()},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["code"] == "room_not_found"


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_overlapping(client, auth_headers, test_room, other_user, make_booking):
    await make_booking(test_room, other_user, at(9), at(10, 30))
    response = await client.post("/bookings/", json=booking_payload(test_room, at(10), at(11)), headers=auth_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "slot_unavailable"


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_back_to_back(client, auth_headers, test_room, other_user, make_booking):
    await make_booking(test_room, other_user, at(9), at(10), status=BookingStatus.APPROVED.value)
    response = await client.post("/bookings/", json=booking_payload(test_room, at(10), at(11)), headers=auth_headers)
    assert response.status_code == status.HTTP_201_CREATED


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_over_rejected(client, auth_headers, test_room, other_user, make_booking):
    await make_booking(test_room, other_user, at(9), at(10), status=BookingStatus.REJECTED.value)
    response = await client.post(
        "/bookings/", json=booking_payload(test_room, at(9, 30), at(10)), headers=auth_headers
    )
    assert response.status_code == status.HTTP_201_CREATED


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_get_my_bookings(client, auth_headers, test_room, test_user, other_user, make_booking):
    early = await make_booking(test_room, test_user, at(9), at(10))
    late = await make_booking(test_room, test_user, at(14), at(15))
    await make_booking(test_room, other_user, at(11), at(12))

    response = await client.get("/bookings/mine", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert [b["id"] for b in response.json()] == [late.id, early.id]


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_get_booking(client, auth_headers, test_room, test_user, other_user, make_booking):
    booking = await make_booking(test_room, test_user, at(9), at(10))

    response = await client.get(f"/bookings/{booking.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == booking.id
    assert response.json()["requester_name"] == test_user.full_name

    response = await client.get(f"/bookings/{booking.id}", headers=headers_for(other_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["code"] == "not_owner"


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_get_booking_not_found(client, auth_headers):
    response = await client.get("/bookings/999", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_cancel_booking_twice(client, auth_headers, test_room, test_user, make_booking):
    booking = await make_booking(test_room, test_user, at(9), at(10))

    response = await client.delete(f"/bookings/{booking.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    response = await client.delete(f"/bookings/{booking.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["code"] == "booking_not_found"


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_cancel_booking_not_owner(client, test_room, test_user, other_user, make_booking):
    booking = await make_booking(test_room, test_user, at(9), at(10))
    response = await client.delete(f"/bookings/{booking.id}", headers=headers_for(other_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_cancel_approved_booking(client, auth_headers, test_room, test_user, make_booking):
    booking = await make_booking(test_room, test_user, at(9), at(10), status=BookingStatus.APPROVED.value)
    response = await client.delete(f"/bookings/{booking.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "not_pending"

    response = await client.get(f"/bookings/{booking.id}", headers=auth_headers)
    assert response.json()["status"] == "approved"


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_cancel_started_booking(client, auth_headers, test_room, test_user, make_booking):
    started = datetime.now(timezone.utc) - timedelta(minutes=10)
    booking = await make_booking(test_room, test_user, started, started + timedelta(hours=1))
    response = await client.delete(f"/bookings/{booking.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "already_started"


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_huge_duration(client, auth_headers, test_room):
    payload = {"room_id": test_room.id, "start_time": at(9).isoformat(), "duration_minutes": 10**10}
    response = await client.post("/bookings/", json=payload, headers=auth_headers)
    assert response.status_code == 422


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_duration_past_calendar_limit(client, auth_headers, test_room):
    payload = {"room_id": test_room.id, "start_time": "9999-12-31T22:00:00+00:00", "duration_minutes": 180}
    response = await client.post("/bookings/", json=payload, headers=auth_headers)
    assert response.status_code == 422


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_create_booking_on_last_calendar_day(client, auth_headers, test_room):
    payload = {
        "room_id": test_room.id,
        "start_time": "9999-12-31T22:00:00+00:00",
        "end_time": "9999-12-31T23:00:00+00:00",
    }
    response = await client.post("/bookings/", json=payload, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "invalid_interval"


# pylint: disable-next=redefined-outer-name
@pytest.mark.asyncio
async def test_store_failure_answers_service_unavailable(client, session_factory, auth_headers):
    async with session_factory() as db:
        await db.execute(text("DROP TABLE bookings"))
        await db.commit()

    response = await client.get("/bookings/mine", headers=auth_headers)
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["code"] == "store_failure"

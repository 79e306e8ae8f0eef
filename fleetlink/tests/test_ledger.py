"""
Booking ledger tests.

Covers creation, conflicts, reads, listing and the cancellation rules.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select, func

from fleetlink.app.domain.errors import (
    AlreadyTerminalError,
    ConflictError,
    InvalidIdError,
    InvalidTimeWindowError,
    NotFoundError,
    TooLateToCancelError,
    VehicleInactiveError,
)
from fleetlink.app.domain.fleet.registry import VehicleRegistry
from fleetlink.app.models.audit_log import AuditLog
from fleetlink.app.models.booking import Booking
from fleetlink.app.models.booking_enums import BookingStatus
from fleetlink.app.services.audit import AuditAction, get_audit_trail

MISSING_ID = "0b6f3a4e-2d4c-4b8e-a9a1-5c7d2e1f0a99"


async def count_bookings(db):
    result = await db.execute(select(func.count(Booking.id)))
    return result.scalar()


@pytest.mark.asyncio
async def test_create_booking(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle(name="V1", capacity_kg=1000, tyres=4)
    start = clock.now + timedelta(hours=1)

    booking = await ledger.create(db_session, vehicle.id, "  cust-42 ", "110001", "110005", start)

    assert booking.status == BookingStatus.BOOKED
    assert booking.customer_id == "cust-42"
    assert booking.start_time == start
    assert booking.end_time == start + timedelta(hours=4)
    assert booking.estimated_ride_duration_hours == 4
    assert booking.created_at == clock.now
    assert booking.vehicle.name == "V1"

    trail = await get_audit_trail(db_session, entity_id=booking.id)
    assert [entry.action for entry in trail] == [AuditAction.BOOKING_CREATED]
    assert trail[0].actor == "cust-42"


@pytest.mark.asyncio
async def test_overlapping_booking_is_conflict(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    start = clock.now + timedelta(hours=2)
    await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", start)

    with pytest.raises(ConflictError):
        await ledger.create(db_session, vehicle.id, "c2", "110001", "110002", start + timedelta(hours=3))

    assert await count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_back_to_back_bookings_are_allowed(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    start = clock.now + timedelta(hours=2)
    first = await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", start)
    second = await ledger.create(db_session, vehicle.id, "c2", "110001", "110005", first.end_time)

    assert second.start_time == first.end_time
    assert await count_bookings(db_session) == 2


@pytest.mark.asyncio
async def test_same_window_on_other_vehicle_is_allowed(db_session, make_vehicle, ledger, clock):
    one = await make_vehicle()
    two = await make_vehicle()
    start = clock.now + timedelta(hours=2)

    await ledger.create(db_session, one.id, "c1", "110001", "110005", start)
    booking = await ledger.create(db_session, two.id, "c2", "110001", "110005", start)

    assert booking.vehicle_id == two.id


@pytest.mark.asyncio
async def test_cancelled_window_can_be_rebooked(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    start = clock.now + timedelta(hours=5)
    first = await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", start)
    await ledger.cancel(db_session, first.id)

    again = await ledger.create(db_session, vehicle.id, "c2", "110001", "110005", start)
    assert again.status == BookingStatus.BOOKED


@pytest.mark.asyncio
@pytest.mark.parametrize("offset", [timedelta(0), timedelta(hours=-1)])
async def test_start_time_must_be_future(db_session, make_vehicle, ledger, clock, offset):
    vehicle = await make_vehicle()
    with pytest.raises(InvalidTimeWindowError):
        await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", clock.now + offset)
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("vehicle_id", [MISSING_ID, "not-a-vehicle"])
async def test_unknown_vehicle_is_not_found(db_session, ledger, clock, vehicle_id):
    with pytest.raises(NotFoundError):
        await ledger.create(db_session, vehicle_id, "c1", "110001", "110005", clock.now + timedelta(hours=2))


@pytest.mark.asyncio
async def test_inactive_vehicle_cannot_be_booked(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    await VehicleRegistry.set_active(db_session, vehicle.id, False)

    with pytest.raises(VehicleInactiveError):
        await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", clock.now + timedelta(hours=2))
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_deactivation_keeps_existing_bookings(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    booking = await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", clock.now + timedelta(hours=2))
    await VehicleRegistry.set_active(db_session, vehicle.id, False)

    kept = await ledger.get(db_session, booking.id)
    assert kept.status == BookingStatus.BOOKED


@pytest.mark.asyncio
async def test_failed_create_writes_no_audit_row(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    start = clock.now + timedelta(hours=2)
    await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", start)

    with pytest.raises(ConflictError):
        await ledger.create(db_session, vehicle.id, "c2", "110001", "110005", start)

    result = await db_session.execute(
        select(func.count(AuditLog.id)).where(AuditLog.action == AuditAction.BOOKING_CREATED)
    )
    assert result.scalar() == 1


@pytest.mark.asyncio
async def test_get_booking(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    booking = await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", clock.now + timedelta(hours=2))

    found = await ledger.get(db_session, booking.id.upper())
    assert found.id == booking.id


@pytest.mark.asyncio
async def test_get_booking_errors(db_session, ledger):
    with pytest.raises(InvalidIdError):
        await ledger.get(db_session, "123")
    with pytest.raises(NotFoundError):
        await ledger.get(db_session, MISSING_ID)


@pytest.mark.asyncio
async def test_list_bookings_filters_and_order(db_session, make_vehicle, ledger, clock):
    van = await make_vehicle(name="Van")
    truck = await make_vehicle(name="Truck")

    created = []
    for i in range(4):
        clock.advance(minutes=1)
        vehicle = van if i % 2 == 0 else truck
        customer = "alice" if i < 2 else "bob"
        created.append(await ledger.create(
            db_session, vehicle.id, customer, "110001", "110003",
            clock.now + timedelta(days=i + 1)
        ))
    await ledger.cancel(db_session, created[0].id)

    everything, total = await ledger.list(db_session)
    assert total == 4
    assert [b.id for b in everything] == [b.id for b in reversed(created)]

    alice, alice_total = await ledger.list(db_session, customer_id="alice")
    assert alice_total == 2
    assert {b.customer_id for b in alice} == {"alice"}

    on_van, _ = await ledger.list(db_session, vehicle_id=van.id)
    assert {b.id for b in on_van} == {created[0].id, created[2].id}

    cancelled, cancelled_total = await ledger.list(db_session, status=BookingStatus.CANCELLED)
    assert cancelled_total == 1
    assert cancelled[0].id == created[0].id

    window, window_total = await ledger.list(
        db_session,
        start_date=created[1].start_time,
        end_date=created[2].start_time
    )
    assert window_total == 2
    assert {b.id for b in window} == {created[1].id, created[2].id}

    paged, paged_total = await ledger.list(db_session, page=2, page_size=3)
    assert paged_total == 4
    assert [b.id for b in paged] == [created[0].id]


@pytest.mark.asyncio
async def test_cancel_booking(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    booking = await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", clock.now + timedelta(hours=3))
    clock.advance(minutes=10)

    cancelled = await ledger.cancel(db_session, booking.id)

    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.updated_at == clock.now
    assert cancelled.created_at < cancelled.updated_at

    trail = await get_audit_trail(db_session, entity_id=booking.id, action=AuditAction.BOOKING_CANCELLED)
    assert len(trail) == 1


@pytest.mark.asyncio
async def test_cancel_twice_is_already_terminal(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    booking = await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", clock.now + timedelta(hours=3))
    await ledger.cancel(db_session, booking.id)

    with pytest.raises(AlreadyTerminalError, match="already cancelled"):
        await ledger.cancel(db_session, booking.id)


@pytest.mark.asyncio
async def test_cancel_completed_is_already_terminal(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    booking = await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", clock.now + timedelta(hours=3))
    booking_id = booking.id
    completed = await ledger.complete(db_session, booking_id)
    assert completed.status == BookingStatus.COMPLETED

    with pytest.raises(AlreadyTerminalError, match="already completed"):
        await ledger.cancel(db_session, booking_id)

    with pytest.raises(AlreadyTerminalError):
        await ledger.complete(db_session, booking_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("minutes_before_start,allowed", [(59, False), (61, True)])
async def test_cancellation_boundary(db_session, make_vehicle, ledger, clock, minutes_before_start, allowed):
    vehicle = await make_vehicle()
    booking = await ledger.create(
        db_session, vehicle.id, "c1", "110001", "110005",
        clock.now + timedelta(minutes=minutes_before_start)
    )

    booking_id = booking.id

    if allowed:
        cancelled = await ledger.cancel(db_session, booking_id)
        assert cancelled.status == BookingStatus.CANCELLED
    else:
        with pytest.raises(TooLateToCancelError):
            await ledger.cancel(db_session, booking_id)
        refreshed = await ledger.get(db_session, booking_id)
        assert refreshed.status == BookingStatus.BOOKED


@pytest.mark.asyncio
async def test_cancel_becomes_too_late_as_time_passes(db_session, make_vehicle, ledger, clock):
    vehicle = await make_vehicle()
    booking = await ledger.create(db_session, vehicle.id, "c1", "110001", "110005", clock.now + timedelta(hours=2))
    clock.advance(minutes=61)

    with pytest.raises(TooLateToCancelError):
        await ledger.cancel(db_session, booking.id)


@pytest.mark.asyncio
async def test_cancel_unknown_booking(db_session, ledger):
    with pytest.raises(InvalidIdError):
        await ledger.cancel(db_session, "bogus")
    with pytest.raises(NotFoundError):
        await ledger.cancel(db_session, MISSING_ID)

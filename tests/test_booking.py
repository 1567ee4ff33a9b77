import asyncio
from datetime import date, timedelta

import pytest

from careslot.core.errors import ExpiredHoldError, NotAvailableError, ValidationError
from careslot.modules.appointments.models import CONFIRMED, PENDING_PAYMENT
from careslot.modules.appointments.repository import AppointmentRepository
from careslot.modules.booking.repository import BookingRepository
from careslot.modules.booking.service import BookingLedger
from careslot.modules.exceptions.service import ExceptionService
from careslot.modules.slots.service import SlotService
from conftest import FREE_DOCTOR, PAID_DOCTOR

MONDAY = date(2026, 3, 2)
PATIENT = 101
OTHER_PATIENT = 202


def make_ledger(s, clock, payments, notifier) -> BookingLedger:
    return BookingLedger(s, clock=clock, payments=payments, notifier=notifier)


async def free_starts(factory, clock, doctor_id: int = FREE_DOCTOR) -> list[int]:
    async with factory() as s:
        return [slot.start_minute for slot in await SlotService(s, clock=clock).generate_slots(doctor_id, MONDAY)]


def test_monday_scenario(seeded, clock, payments, notifier) -> None:
    async def scenario():
        before = await free_starts(seeded, clock)
        async with seeded() as s:
            appt = await make_ledger(s, clock, payments, notifier).book(FREE_DOCTOR, MONDAY, 570, PATIENT, 'free')
        after_booking = await free_starts(seeded, clock)
        async with seeded() as s:
            await ExceptionService(s).set_exception(FREE_DOCTOR, MONDAY, is_available=False)
        after_day_off = await free_starts(seeded, clock)
        async with seeded() as s:
            kept = await AppointmentRepository(s).get(appt.id)
        return before, appt, after_booking, after_day_off, kept

    before, appt, after_booking, after_day_off, kept = asyncio.run(scenario())

    assert before == [540, 570, 600, 630]
    assert appt.status == CONFIRMED
    assert after_booking == [540, 600, 630]
    assert after_day_off == []
    assert kept.status == CONFIRMED
    assert (kept.date, kept.start_minute) == (MONDAY, 570)
    assert notifier.confirmed == [appt.id]


def test_hold_blocks_the_slot_until_it_lapses(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            hold = await make_ledger(s, clock, payments, notifier).hold(FREE_DOCTOR, MONDAY, 600, PATIENT)
        while_held = await free_starts(seeded, clock)
        clock.advance(seconds=601)
        after_lapse = await free_starts(seeded, clock)
        async with seeded() as s:
            row = await BookingRepository(s).get_claim(hold.id)
        return hold, while_held, after_lapse, row

    hold, while_held, after_lapse, row = asyncio.run(scenario())

    assert hold.expires_at == clock.now - timedelta(seconds=1)
    assert 600 not in while_held
    assert 600 in after_lapse
    # lapsed holds are ignored on read, not deleted
    assert row is not None


def test_second_hold_on_same_slot_loses_until_the_first_lapses(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            await make_ledger(s, clock, payments, notifier).hold(FREE_DOCTOR, MONDAY, 600, PATIENT)
        async with seeded() as s:
            with pytest.raises(NotAvailableError):
                await make_ledger(s, clock, payments, notifier).hold(FREE_DOCTOR, MONDAY, 600, OTHER_PATIENT)
        clock.advance(minutes=11)
        async with seeded() as s:
            return await make_ledger(s, clock, payments, notifier).hold(FREE_DOCTOR, MONDAY, 600, OTHER_PATIENT)

    hold = asyncio.run(scenario())

    assert hold.holder_id == OTHER_PATIENT


def test_booked_slot_cannot_be_held(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            await make_ledger(s, clock, payments, notifier).book(FREE_DOCTOR, MONDAY, 570, PATIENT, 'free')
        async with seeded() as s:
            await make_ledger(s, clock, payments, notifier).hold(FREE_DOCTOR, MONDAY, 570, OTHER_PATIENT)

    with pytest.raises(NotAvailableError):
        asyncio.run(scenario())


def test_held_slot_cannot_be_booked_by_someone_else(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            await make_ledger(s, clock, payments, notifier).hold(FREE_DOCTOR, MONDAY, 570, PATIENT)
        async with seeded() as s:
            await make_ledger(s, clock, payments, notifier).book(FREE_DOCTOR, MONDAY, 570, OTHER_PATIENT, 'free')

    with pytest.raises(NotAvailableError):
        asyncio.run(scenario())


def test_concurrent_bookings_have_exactly_one_winner(seeded, clock, payments, notifier) -> None:
    async def attempt(user_id: int):
        async with seeded() as s:
            return await make_ledger(s, clock, payments, notifier).book(FREE_DOCTOR, MONDAY, 630, user_id, 'free')

    async def scenario():
        return await asyncio.gather(attempt(PATIENT), attempt(OTHER_PATIENT), return_exceptions=True)

    results = asyncio.run(scenario())

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], NotAvailableError)
    assert 630 not in asyncio.run(free_starts(seeded, clock))


def test_paid_booking_from_hold_awaits_payment(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            ledger = make_ledger(s, clock, payments, notifier)
            hold = await ledger.hold(PAID_DOCTOR, MONDAY, 540, PATIENT)
            appt = await ledger.book(PAID_DOCTOR, MONDAY, 540, PATIENT, 'clinic', hold_id=hold.id)
        async with seeded() as s:
            claim = await BookingRepository(s).claim_for_appointment(appt.id)
            held = await BookingRepository(s).get_claim(hold.id)
        return hold, appt, claim, held, await free_starts(seeded, clock, PAID_DOCTOR)

    hold, appt, claim, held, starts = asyncio.run(scenario())

    assert appt.status == PENDING_PAYMENT
    assert appt.payment_ref.startswith('order_')
    assert appt.payment_due_at == hold.expires_at
    assert claim.expires_at == hold.expires_at
    assert held is None
    assert 540 not in starts
    assert notifier.confirmed == []


def test_free_consultation_with_paid_doctor_books_directly(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            return await make_ledger(s, clock, payments, notifier).book(PAID_DOCTOR, MONDAY, 600, PATIENT, 'free')

    appt = asyncio.run(scenario())

    assert appt.status == CONFIRMED
    assert appt.payment_ref is None


def test_paid_consultation_without_hold_is_rejected(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            await make_ledger(s, clock, payments, notifier).book(PAID_DOCTOR, MONDAY, 600, PATIENT, 'video')

    with pytest.raises(ValidationError) as exception_info:
        asyncio.run(scenario())

    assert exception_info.value.field == 'holdId'


def test_hold_must_belong_to_the_booking_user_and_slot(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            ledger = make_ledger(s, clock, payments, notifier)
            hold = await ledger.hold(FREE_DOCTOR, MONDAY, 540, PATIENT)
            with pytest.raises(ValidationError):
                await ledger.book(FREE_DOCTOR, MONDAY, 540, OTHER_PATIENT, 'free', hold_id=hold.id)
            with pytest.raises(ValidationError):
                await ledger.book(FREE_DOCTOR, MONDAY, 570, PATIENT, 'free', hold_id=hold.id)
            return await ledger.book(FREE_DOCTOR, MONDAY, 540, PATIENT, 'free', hold_id=hold.id)

    appt = asyncio.run(scenario())

    assert appt.status == CONFIRMED


def test_expired_hold_cannot_be_booked(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            ledger = make_ledger(s, clock, payments, notifier)
            hold = await ledger.hold(PAID_DOCTOR, MONDAY, 540, PATIENT, ttl_seconds=60)
            clock.advance(seconds=60)
            await ledger.book(PAID_DOCTOR, MONDAY, 540, PATIENT, 'clinic', hold_id=hold.id)

    with pytest.raises(ExpiredHoldError):
        asyncio.run(scenario())


@pytest.mark.parametrize('start', [555, 660, 720])
def test_only_offered_slots_can_be_claimed(seeded, clock, payments, notifier, start: int) -> None:
    async def scenario():
        async with seeded() as s:
            await make_ledger(s, clock, payments, notifier).hold(FREE_DOCTOR, MONDAY, start, PATIENT)

    with pytest.raises(NotAvailableError):
        asyncio.run(scenario())


def test_started_slot_cannot_be_claimed(seeded, clock, payments, notifier) -> None:
    clock.now = clock.now.replace(year=2026, month=3, day=2, hour=9, minute=45)

    async def scenario():
        async with seeded() as s:
            await make_ledger(s, clock, payments, notifier).book(FREE_DOCTOR, MONDAY, 570, PATIENT, 'free')

    with pytest.raises(NotAvailableError):
        asyncio.run(scenario())


def test_unknown_consultation_type(seeded, clock, payments, notifier) -> None:
    async def scenario():
        async with seeded() as s:
            await make_ledger(s, clock, payments, notifier).book(FREE_DOCTOR, MONDAY, 570, PATIENT, 'house-call')

    with pytest.raises(ValidationError) as exception_info:
        asyncio.run(scenario())

    assert exception_info.value.field == 'consultationType'

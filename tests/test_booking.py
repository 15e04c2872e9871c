import re
from datetime import datetime

import pytest

from booking import BookingService, generate_code
from conftest import MONDAY_10, TZ
from errors import ConflictError, ExpiredError, InternalError, NotFoundError, ValidationError
from models import STATUS_CANCELLED, Reservation


@pytest.fixture
def service(db, settings):
    return BookingService(db, settings, MONDAY_10)


def later(db, settings, day: int, hour: int, minute: int = 0) -> BookingService:
    return BookingService(db, settings, datetime(2026, 10, day, hour, minute, tzinfo=TZ))


# ------------------ create ------------------
def test_create_sets_end_time_and_code(service):
    r = service.create("  Arben Hoxha ", "2026-10-20", "09:00")

    assert r.full_name == "Arben Hoxha"
    assert r.end_time == "09:25"
    assert re.fullmatch(r"[A-Z0-9]{6}", r.reservation_code)
    assert r.status == "active"


def test_create_rejects_slot_past_closing(service):
    with pytest.raises(ValidationError):
        service.create("Arben", "2026-10-20", "19:40")


@pytest.mark.parametrize("name,day,start", [
    ("", "2026-10-20", "09:00"),
    ("A", "2026-10-20", "09:00"),
    ("Arben", "2026-10-27", "09:00"),      # next week
    ("Arben", "2026-10-18", "09:00"),      # yesterday
    ("Arben", "2026-10-20", "08:35"),      # before opening
    ("Arben", "2026-10-20", "20:00"),      # closing time
    ("Arben", "2026-10-20", "09:10"),      # not on the slot grid
    ("Arben", "2026-10-19", "09:00"),      # already over today
    ("Arben", "20-10-2026", "09:00"),
    ("Arben", "2026-10-20", "nine"),
])
def test_create_validation(service, name, day, start):
    with pytest.raises(ValidationError):
        service.create(name, day, start)


def test_create_rejects_sunday_inside_range(db, settings):
    # Saturday: the window runs Sat..Fri, so Sunday sits inside the range
    service = later(db, settings, 24, 10)

    with pytest.raises(ValidationError):
        service.create("Arben", "2026-10-25", "10:00")


def test_running_slot_today_can_be_booked(service):
    r = service.create("Arben", "2026-10-19", "09:50")

    assert r.end_time == "10:15"


def test_same_slot_twice_conflicts(service):
    service.create("Arben", "2026-10-20", "10:15")

    with pytest.raises(ConflictError):
        service.create("Besa", "2026-10-20", "10:15")


def test_cancelled_slot_can_be_booked_again(service):
    r = service.create("Arben", "2026-10-20", "10:15")
    service.cancel(r.reservation_code)

    again = service.create("Besa", "2026-10-20", "10:15")
    assert again.reservation_code != r.reservation_code


def test_codes_are_unique(service):
    codes = {
        service.create("Klient", "2026-10-21", start).reservation_code
        for start in ("09:00", "09:25", "09:50", "10:15", "10:40")
    }
    assert len(codes) == 5


def test_code_generation_gives_up(service, monkeypatch):
    existing = service.create("Arben", "2026-10-20", "09:00").reservation_code
    monkeypatch.setattr("booking.generate_code", lambda length=6: existing)

    with pytest.raises(InternalError):
        service.create("Besa", "2026-10-20", "09:25")


def test_generate_code_alphabet():
    for _ in range(50):
        assert re.fullmatch(r"[A-Z0-9]{6}", generate_code())


# ------------------ find / cancel ------------------
def test_find_is_case_insensitive(service):
    r = service.create("Arben", "2026-10-20", "09:00")

    found = service.find(f"  {r.reservation_code.lower()} ")
    assert found.id == r.id


def test_find_unknown_code(service):
    with pytest.raises(NotFoundError):
        service.find("ZZZZZZ")


def test_find_requires_code(service):
    with pytest.raises(ValidationError):
        service.find("   ")


def test_find_outside_window_is_expired(db, settings, service):
    r = Reservation(
        full_name="Old", date="2026-10-10", start_time="09:00",
        end_time="09:25", reservation_code="OLD123", status="active",
    )
    db.add(r)
    db.commit()

    with pytest.raises(ExpiredError):
        service.find("old123")


def test_cancel_then_find_not_found(service):
    r = service.create("Arben", "2026-10-20", "09:00")

    cancelled = service.cancel(r.reservation_code)
    assert cancelled.status == STATUS_CANCELLED

    with pytest.raises(NotFoundError):
        service.find(r.reservation_code)
    with pytest.raises(NotFoundError):
        service.cancel(r.reservation_code)


# ------------------ change ------------------
def test_change_moves_reservation(service):
    r = service.create("Arben", "2026-10-20", "09:00")

    old, moved = service.change(r.reservation_code, "2026-10-22", "11:05")
    assert old["date"] == "2026-10-20"
    assert old["start_time"] == "09:00"
    assert moved.id == r.id
    assert moved.reservation_code == r.reservation_code
    assert (moved.date, moved.start_time, moved.end_time) == ("2026-10-22", "11:05", "11:30")


def test_change_onto_own_slot(service):
    r = service.create("Arben", "2026-10-20", "09:00")

    _, moved = service.change(r.reservation_code, "2026-10-20", "09:00")
    assert moved.start_time == "09:00"


def test_change_onto_taken_slot_conflicts(service):
    a = service.create("Arben", "2026-10-20", "09:00")
    service.create("Besa", "2026-10-20", "09:25")

    with pytest.raises(ConflictError):
        service.change(a.reservation_code, "2026-10-20", "09:25")


def test_change_revalidates(service):
    r = service.create("Arben", "2026-10-20", "09:00")

    with pytest.raises(ValidationError):
        service.change(r.reservation_code, "2026-10-20", "19:40")
    with pytest.raises(ValidationError):
        service.change(r.reservation_code, "2026-11-02", "09:00")
    with pytest.raises(ValidationError):
        service.change(r.reservation_code, None, "09:00")


def test_change_unknown_code(service):
    with pytest.raises(NotFoundError):
        service.change("NOPE00", "2026-10-20", "09:00")


# ------------------ rest days ------------------
def test_rest_day_blocks_and_clears_bookings(service):
    service.create("Arben", "2026-10-21", "09:00")
    service.create("Besa", "2026-10-21", "09:25")

    day, deleted = service.mark_rest_day("2026-10-21")
    assert (day, deleted) == ("2026-10-21", 2)

    with pytest.raises(ValidationError):
        service.create("Dritan", "2026-10-21", "10:15")

    service.unmark_rest_day("2026-10-21")
    assert service.create("Dritan", "2026-10-21", "10:15").date == "2026-10-21"


def test_mark_rest_day_twice(service):
    service.mark_rest_day("2026-10-21")

    _, deleted = service.mark_rest_day("2026-10-21")
    assert deleted == 0


def test_unmark_unknown_rest_day(service):
    with pytest.raises(NotFoundError):
        service.unmark_rest_day("2026-10-21")


def test_rest_day_requires_valid_date(service):
    with pytest.raises(ValidationError):
        service.mark_rest_day("")
    with pytest.raises(ValidationError):
        service.mark_rest_day("tomorrow")


# ------------------ views ------------------
def test_week_view_marks_reserved_slot(service):
    r = service.create("Arben", "2026-10-20", "10:15")

    view = service.week_view()
    tuesday = next(d for d in view["week"]["days"] if d["date"] == "2026-10-20")
    slot = next(s for s in tuesday["slots"] if s["startTime"] == "10:15")

    assert slot["isAvailable"] is False
    assert slot["reserved"] == {"id": r.id, "name": "Arben", "code": r.reservation_code}
    assert view["meta"]["totalSlots"] == 24 + 5 * 26
    assert view["meta"]["reservedSlots"] == 1
    assert view["meta"]["availableSlots"] == 24 + 5 * 26 - 1


def test_week_view_rest_day_has_no_slots(service):
    service.mark_rest_day("2026-10-22")

    view = service.week_view()
    thursday = next(d for d in view["week"]["days"] if d["date"] == "2026-10-22")

    assert thursday["isRestDay"] is True
    assert thursday["slots"] == []
    assert view["meta"]["totalSlots"] == 24 + 4 * 26


def test_week_view_ignores_cancelled(service):
    r = service.create("Arben", "2026-10-20", "10:15")
    service.cancel(r.reservation_code)

    assert service.week_view()["meta"]["reservedSlots"] == 0


def test_admin_overview_statistics(service):
    a = service.create("Arben", "2026-10-20", "10:15")
    service.create("Besa", "2026-10-20", "09:00")
    service.create("Dritan", "2026-10-23", "11:55")
    service.cancel(a.reservation_code)
    service.mark_rest_day("2026-10-24")

    overview = service.admin_overview()
    stats = overview["statistics"]

    assert overview["restDays"] == ["2026-10-24"]
    assert overview["reservationsByDay"]["2026-10-24"]["isRestDay"] is True
    tuesday = overview["reservationsByDay"]["2026-10-20"]["reservations"]
    assert [x["startTime"] for x in tuesday] == ["09:00", "10:15"]
    assert stats["totalReservations"] == 3
    assert stats["activeReservations"] == 2
    assert stats["cancelledReservations"] == 1
    assert stats["totalSlots"] == 24 + 4 * 26
    assert stats["occupancyRate"] == 2

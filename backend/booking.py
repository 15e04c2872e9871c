"""
Booking rules: what may be booked, changed or cancelled, and the
availability views built from the slot grid and the stored reservations.

All checks run before anything is written. The partial unique index on
(date, start_time) has the last word on double bookings; an IntegrityError
from it is reported as ConflictError.
"""
import logging
import secrets
import string
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import Settings
from errors import ConflictError, ExpiredError, InternalError, NotFoundError, ValidationError
from models import STATUS_ACTIVE, STATUS_CANCELLED, Reservation
from repository import ReservationRepository, RestDayRepository
from schedule import (
    DAY_NAMES,
    MONTH_NAMES,
    BusinessHours,
    Week,
    current_week,
    generate_day_slots,
    minutes_to_str,
    parse_date,
    parse_time,
    slot_grid,
    to_minutes,
)

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits

MSG_FIELDS_REQUIRED = "Të gjitha fushat janë të detyrueshme."
MSG_CHANGE_FIELDS_REQUIRED = "Kodi, data dhe ora e re janë të detyrueshme."
MSG_CODE_REQUIRED = "Kodi i rezervimit është i detyruar."
MSG_DATE_REQUIRED = "Data është e detyrueshme."
MSG_NAME_TOO_SHORT = "Emri dhe mbiemri duhet të ketë së paku {n} karaktere."
MSG_BAD_DATE = "Data nuk është e vlefshme."
MSG_BAD_TIME = "Ora nuk është e vlefshme."
MSG_OUTSIDE_WEEK = "Rezervimi mund të bëhet vetëm për javën aktuale."
MSG_CHANGE_OUTSIDE_WEEK = "Rezervimi mund të ndryshohet vetëm brenda javës aktuale."
MSG_CLOSED_DAY = "E Diela është pushim. Ju lutem zgjidhni një ditë tjetër."
MSG_REST_DAY = "Kjo ditë është ditë pushimi. Ju lutem zgjidhni një ditë tjetër."
MSG_OUTSIDE_HOURS = "Orari i punës është nga {open} deri në {close}."
MSG_PAST_CLOSING = "Slot-i i zgjedhur kalon orarin e punës."
MSG_OFF_GRID = "Ora e zgjedhur nuk përputhet me asnjë slot."
MSG_SLOT_ENDED = "Ky slot ka përfunduar tashmë."
MSG_SLOT_TAKEN = "Ky slot është tashmë i rezervuar. Ju lutem zgjidhni një slot tjetër."
MSG_NEW_SLOT_TAKEN = "Slot-i i ri është tashmë i zënë. Ju lutem zgjidhni një slot tjetër."
MSG_CODE_EXHAUSTED = "Nuk mund të gjenerojmë kod rezervimi. Ju lutem provoni përsëri."
MSG_NOT_FOUND = "Nuk u gjet asnjë rezervim me këtë kod."
MSG_EXPIRED = "Ky rezervim i përket një jave të kaluar dhe nuk është më i vlefshëm."
MSG_NOT_REST_DAY = "Kjo ditë nuk është e shënuar si ditë pushimi."


def generate_code(length: int = 6) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def full_date(value: str) -> str:
    d = date.fromisoformat(value)
    return f"{DAY_NAMES[d.weekday()]}, {d.day} {MONTH_NAMES[d.month - 1]} {d.year}"


def reservation_to_dict(r: Reservation) -> dict:
    return {
        "id": r.id,
        "code": r.reservation_code,
        "name": r.full_name,
        "date": r.date,
        "startTime": r.start_time,
        "endTime": r.end_time,
        "display": r.display,
        "status": r.status,
        "createdAt": r.created_at.isoformat() if r.created_at else None,
    }


class BookingService:
    def __init__(self, db: Session, settings: Settings, now: datetime):
        self.db = db
        self.settings = settings
        self.hours = BusinessHours.from_settings(settings)
        self.now = now
        self.reservations = ReservationRepository(db)
        self.rest_days = RestDayRepository(db)

    @property
    def today(self) -> str:
        return self.now.date().isoformat()

    @property
    def now_time(self) -> str:
        return self.now.strftime("%H:%M")

    def week(self) -> Week:
        return current_week(self.now, self.hours)

    # ================== VALIDATION ==================

    def validate_slot(self, date_value: str, start_value: str, outside_week_msg: str) -> tuple[str, str, str]:
        """Check a requested slot; returns normalized (date, start, end)."""
        try:
            day = parse_date(date_value)
        except ValueError:
            raise ValidationError(MSG_BAD_DATE)

        if not self.week().contains(day):
            raise ValidationError(outside_week_msg)
        if day.weekday() == self.hours.closed_weekday:
            raise ValidationError(MSG_CLOSED_DAY)
        if self.rest_days.is_rest_day(day.isoformat()):
            raise ValidationError(MSG_REST_DAY)

        try:
            start = to_minutes(parse_time(start_value))
        except ValueError:
            raise ValidationError(MSG_BAD_TIME)

        if start < self.hours.open_minutes or start >= self.hours.close_minutes:
            raise ValidationError(MSG_OUTSIDE_HOURS.format(
                open=minutes_to_str(self.hours.open_minutes),
                close=minutes_to_str(self.hours.close_minutes),
            ))
        end = start + self.hours.slot_minutes
        if end > self.hours.close_minutes:
            raise ValidationError(MSG_PAST_CLOSING)
        if (start, end) not in slot_grid(self.hours):
            raise ValidationError(MSG_OFF_GRID)
        if day == self.now.date() and end <= self.now.hour * 60 + self.now.minute:
            raise ValidationError(MSG_SLOT_ENDED)

        return day.isoformat(), minutes_to_str(start), minutes_to_str(end)

    def _new_code(self) -> str:
        for _ in range(self.settings.CODE_ATTEMPTS):
            code = generate_code(self.settings.CODE_LENGTH)
            if not self.reservations.code_exists(code):
                return code
        logger.error("No free reservation code after %d attempts", self.settings.CODE_ATTEMPTS)
        raise InternalError(MSG_CODE_EXHAUSTED)

    # ================== CUSTOMER OPERATIONS ==================

    def create(self, full_name: str | None, date_value: str | None, start_value: str | None) -> Reservation:
        if not full_name or not date_value or not start_value:
            raise ValidationError(MSG_FIELDS_REQUIRED)
        name = full_name.strip()
        if len(name) < self.settings.MIN_NAME_LENGTH:
            raise ValidationError(MSG_NAME_TOO_SHORT.format(n=self.settings.MIN_NAME_LENGTH))

        day, start, end = self.validate_slot(date_value, start_value, MSG_OUTSIDE_WEEK)
        code = self._new_code()
        try:
            r = self.reservations.create(name, day, start, end, code)
        except IntegrityError:
            logger.info("Slot %s %s already taken", day, start)
            raise ConflictError(MSG_SLOT_TAKEN)
        logger.info("Reservation %s created for %s %s", r.reservation_code, r.date, r.start_time)
        return r

    def find(self, code: str | None) -> Reservation:
        code = normalize_code(code)
        if not code:
            raise ValidationError(MSG_CODE_REQUIRED)
        r = self.reservations.get_active_by_code(code)
        if r is None:
            raise NotFoundError(MSG_NOT_FOUND)
        if not self.week().contains(date.fromisoformat(r.date)):
            raise ExpiredError(MSG_EXPIRED)
        return r

    def cancel(self, code: str | None) -> Reservation:
        code = normalize_code(code)
        if not code:
            raise ValidationError(MSG_CODE_REQUIRED)
        r = self.reservations.cancel(code)
        if r is None:
            raise NotFoundError(MSG_NOT_FOUND)
        logger.info("Reservation %s cancelled", r.reservation_code)
        return r

    def change(self, code: str | None, new_date: str | None, new_start: str | None) -> tuple[dict, Reservation]:
        """Move a reservation to another slot; returns (old values, updated reservation)."""
        code = normalize_code(code)
        if not code or not new_date or not new_start:
            raise ValidationError(MSG_CHANGE_FIELDS_REQUIRED)

        r = self.reservations.get_active_by_code(code)
        if r is None:
            raise NotFoundError(MSG_NOT_FOUND)

        day, start, end = self.validate_slot(new_date, new_start, MSG_CHANGE_OUTSIDE_WEEK)
        holder = self.reservations.get_active_at(day, start)
        if holder is not None and holder.id != r.id:
            raise ConflictError(MSG_NEW_SLOT_TAKEN)

        old = {
            "full_name": r.full_name,
            "date": r.date,
            "start_time": r.start_time,
            "end_time": r.end_time,
            "code": r.reservation_code,
        }
        try:
            r = self.reservations.move(r, day, start, end)
        except IntegrityError:
            raise ConflictError(MSG_NEW_SLOT_TAKEN)
        logger.info("Reservation %s moved from %s %s to %s %s", code, old["date"], old["start_time"], day, start)
        return old, r

    # ================== VIEWS ==================

    def week_view(self) -> dict:
        week = self.week()
        start, end = week.start_date.isoformat(), week.end_date.isoformat()
        rest = set(self.rest_days.list_between(start, end))
        booked = {
            (r.date, r.start_time): r
            for r in self.reservations.list_upcoming(start, end, self.today, self.now_time)
        }

        days = []
        for day in week.days:
            is_rest = day["date"] in rest
            slots = [] if is_rest else generate_day_slots(date.fromisoformat(day["date"]), self.now, self.hours)
            for slot in slots:
                r = booked.get((slot["date"], slot["startTime"]))
                if r is not None:
                    slot["isAvailable"] = False
                    slot["reserved"] = {"id": r.id, "name": r.full_name, "code": r.reservation_code}
            days.append({**day, "isRestDay": is_rest, "slots": slots})

        total = sum(len(d["slots"]) for d in days)
        available = sum(1 for d in days for s in d["slots"] if s["isAvailable"])
        payload = week.to_dict()
        payload["days"] = days
        return {
            "week": payload,
            "meta": {
                "totalSlots": total,
                "availableSlots": available,
                "reservedSlots": total - available,
                "generatedAt": self.now.isoformat(),
            },
        }

    def admin_overview(self) -> dict:
        week = self.week()
        start, end = week.start_date.isoformat(), week.end_date.isoformat()
        rest = self.rest_days.list_between(start, end)
        reservations = self.reservations.list_between(start, end, active_only=False)

        by_day = {
            day["date"]: {"dayInfo": day, "reservations": [], "isRestDay": day["date"] in rest}
            for day in week.days
        }
        for r in reservations:
            if r.date in by_day:
                by_day[r.date]["reservations"].append(reservation_to_dict(r))
        for entry in by_day.values():
            entry["reservations"].sort(key=lambda x: x["startTime"])

        total_slots = sum(
            len(generate_day_slots(date.fromisoformat(day["date"]), self.now, self.hours))
            for day in week.days
            if day["date"] not in rest
        )
        active = sum(1 for r in reservations if r.status == STATUS_ACTIVE)
        cancelled = sum(1 for r in reservations if r.status == STATUS_CANCELLED)
        return {
            "week": week.to_dict(),
            "reservationsByDay": by_day,
            "restDays": rest,
            "statistics": {
                "totalReservations": len(reservations),
                "activeReservations": active,
                "cancelledReservations": cancelled,
                "totalSlots": total_slots,
                # half-up, 0.5% counts as 1%
                "occupancyRate": int(active * 100 / total_slots + 0.5) if total_slots > 0 else 0,
            },
        }

    # ================== REST DAYS ==================

    def _rest_date(self, value: str | None) -> str:
        if not value:
            raise ValidationError(MSG_DATE_REQUIRED)
        try:
            return parse_date(value).isoformat()
        except ValueError:
            raise ValidationError(MSG_BAD_DATE)

    def mark_rest_day(self, value: str | None) -> tuple[str, int]:
        day = self._rest_date(value)
        deleted = self.rest_days.mark(day)
        logger.info("Rest day %s marked, %d reservations removed", day, deleted)
        return day, deleted

    def unmark_rest_day(self, value: str | None) -> str:
        day = self._rest_date(value)
        if not self.rest_days.unmark(day):
            raise NotFoundError(MSG_NOT_REST_DAY)
        logger.info("Rest day %s removed", day)
        return day

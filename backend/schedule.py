"""
Calendar arithmetic for the booking window.

Contains:
- generate_day_slots(): fixed-length slots of one day
- current_week(): the rolling window of bookable days

Everything here is a pure function of (date, now, BusinessHours); nothing
touches the database.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from config import Settings

DAY_NAMES = ["E Hënë", "E Martë", "E Mërkurë", "E Enjte", "E Premte", "E Shtunë", "E Diel"]
DAY_SHORT = ["Hën", "Mar", "Mër", "Enj", "Pre", "Sht", "Die"]
MONTH_NAMES = [
    "Janar", "Shkurt", "Mars", "Prill", "Maj", "Qershor",
    "Korrik", "Gusht", "Shtator", "Tetor", "Nëntor", "Dhjetor",
]


@dataclass(frozen=True)
class BusinessHours:
    open_time: time = time(9, 0)
    close_time: time = time(20, 0)
    slot_minutes: int = 25
    window_days: int = 6
    closed_weekday: int = 6

    @classmethod
    def from_settings(cls, settings: Settings) -> "BusinessHours":
        return cls(
            open_time=settings.OPEN_TIME,
            close_time=settings.CLOSE_TIME,
            slot_minutes=settings.SLOT_MINUTES,
            window_days=settings.WINDOW_DAYS,
            closed_weekday=settings.CLOSED_WEEKDAY,
        )

    @property
    def open_minutes(self) -> int:
        return to_minutes(self.open_time)

    @property
    def close_minutes(self) -> int:
        return to_minutes(self.close_time)


# ================== TIME HELPERS ==================


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def minutes_to_str(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time(value: str) -> time:
    """Parse "HH:MM"; raises ValueError on anything else."""
    return datetime.strptime(value.strip(), "%H:%M").time()


def parse_date(value: str) -> date:
    """Parse an ISO "YYYY-MM-DD" date; raises ValueError on anything else."""
    return date.fromisoformat(value.strip())


# ================== SLOTS ==================


def slot_grid(hours: BusinessHours) -> list[tuple[int, int]]:
    """(start, end) minute pairs of a full day, none ending after closing."""
    grid = []
    t = hours.open_minutes
    while t + hours.slot_minutes <= hours.close_minutes:
        grid.append((t, t + hours.slot_minutes))
        t += hours.slot_minutes
    return grid


def last_slot_start(hours: BusinessHours) -> int | None:
    grid = slot_grid(hours)
    if not grid:
        return None
    return grid[-1][0]


def generate_day_slots(day: date, now: datetime, hours: BusinessHours) -> list[dict]:
    """
    Slots of `day` in start order.

    On today's date a slot is dropped once its end is at or before `now`;
    a slot that has started but not ended is still offered.
    """
    is_today = day == now.date()
    now_minutes = now.hour * 60 + now.minute
    date_str = day.isoformat()

    slots = []
    for start, end in slot_grid(hours):
        if is_today and end <= now_minutes:
            continue
        start_str = minutes_to_str(start)
        end_str = minutes_to_str(end)
        slots.append({
            "date": date_str,
            "startTime": start_str,
            "endTime": end_str,
            "display": f"{start_str} - {end_str}",
            "isAvailable": True,
            "reserved": None,
        })
    return slots


# ================== WINDOW ==================


@dataclass
class Week:
    start_date: date
    end_date: date
    days: list[dict] = field(default_factory=list)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def dates(self) -> list[str]:
        return [d["date"] for d in self.days]

    def to_dict(self) -> dict:
        iso = self.start_date.isocalendar()
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "weekNumber": iso[1],
            "year": self.start_date.year,
            "days": [dict(d) for d in self.days],
        }


def describe_day(day: date, today: date) -> dict:
    return {
        "date": day.isoformat(),
        "dayName": DAY_NAMES[day.weekday()],
        "dayShort": DAY_SHORT[day.weekday()],
        "dayNumber": f"{day.day:02d}",
        "month": MONTH_NAMES[day.month - 1],
        "isToday": day == today,
    }


def is_today_closed(now: datetime, hours: BusinessHours) -> bool:
    """True once the last slot of the day has started."""
    last = last_slot_start(hours)
    if last is None:
        return True
    return now.hour * 60 + now.minute >= last


def current_week(now: datetime, hours: BusinessHours) -> Week:
    """
    The next `window_days` bookable dates starting today.

    The weekly closed day is skipped, and so is today once its last slot
    has started. Rest days stay in the window; callers flag them.
    """
    today = now.date()
    current = today
    days = []
    while len(days) < hours.window_days:
        if current.weekday() != hours.closed_weekday:
            if not (current == today and is_today_closed(now, hours)):
                days.append(describe_day(current, today))
        current += timedelta(days=1)

    return Week(
        start_date=date.fromisoformat(days[0]["date"]),
        end_date=date.fromisoformat(days[-1]["date"]),
        days=days,
    )

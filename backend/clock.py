from datetime import datetime
from zoneinfo import ZoneInfo


class Clock:
    """Current wall-clock time of the shop, in its own timezone."""

    def __init__(self, timezone: str = "Europe/Tirane"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

"""Local calendar helpers."""

from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Europe/Ljubljana"


@dataclass
class LocalClock:
    """Current time in UTC and the matching local date key."""

    timezone_name: str = DEFAULT_TIMEZONE

    def now_utc(self) -> datetime:
        return datetime.now(tz=UTC)

    def date_key(self, moment: datetime | None = None) -> str:
        """Return the YYYY-MM-DD key of a moment in the configured zone."""
        current = moment or self.now_utc()
        return current.astimezone(ZoneInfo(self.timezone_name)).strftime("%Y-%m-%d")

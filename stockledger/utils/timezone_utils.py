from __future__ import annotations

from datetime import datetime, timezone as dt_timezone


class TimezoneUtils:
    """UTC helpers shared by the models and the ledger services."""

    @staticmethod
    def utc_now() -> datetime:
        """Return the current UTC timestamp (timezone aware)."""
        return datetime.now(dt_timezone.utc)

    @staticmethod
    def ensure_timezone_aware(dt: datetime | None) -> datetime | None:
        """Guarantee that a datetime carries timezone information."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=dt_timezone.utc)
        return dt

    @staticmethod
    def parse_datetime(value) -> datetime | None:
        """Parse an ISO-8601 string (or pass through a datetime); None when unparseable."""
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return TimezoneUtils.ensure_timezone_aware(value)
        if not isinstance(value, str):
            return None
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        return TimezoneUtils.ensure_timezone_aware(parsed)

    @staticmethod
    def format_datetime_for_api(dt: datetime | None) -> str | None:
        aware = TimezoneUtils.ensure_timezone_aware(dt)
        return aware.isoformat() if aware else None

from datetime import UTC, datetime


class Now:
    @staticmethod
    def as_datetime() -> datetime:
        """Return the current UTC time as a datetime object."""

        return datetime.now(UTC)

    @staticmethod
    def as_seconds() -> float:
        """Return the current UTC time as a float timestamp in seconds."""

        return datetime.now(UTC).timestamp()

    @staticmethod
    def as_milliseconds() -> int:
        """Return the current UTC time as an integer timestamp in milliseconds."""

        return int(datetime.now(UTC).timestamp() * 1000)

    @staticmethod
    def from_milliseconds(value: int) -> datetime:
        """Convert epoch milliseconds to an aware UTC datetime."""

        return datetime.fromtimestamp(value / 1000, tz=UTC)

    @staticmethod
    def to_utc(dt: datetime | None) -> datetime | None:
        """Convert a datetime object to UTC timezone."""

        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)

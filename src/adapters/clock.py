from datetime import UTC, datetime, timedelta


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Deterministic clock; ``advance`` moves it forward."""

    def __init__(self, now: datetime):
        self._now = now if now.tzinfo else now.replace(tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> datetime:
        self._now = self._now + timedelta(seconds=seconds)
        return self._now

"""Wall-clock sources used by the scheduling services."""

from datetime import datetime, timedelta


class SystemClock:
    """Clinic-local wall clock."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock pinned to a given moment, moved only by `advance`."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current

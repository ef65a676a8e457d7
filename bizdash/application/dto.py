"""Application-level DTOs for the analytics requests."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta


@dataclass(slots=True, frozen=True)
class ReportingWindow:
    """Inclusive ``[start, end]`` range over which time-bound KPIs are computed."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"window end {self.end} precedes start {self.start}")

    @classmethod
    def from_dates(cls, start: date, end: date) -> "ReportingWindow":
        """Build a window from calendar dates, extending the end to 23:59:59."""
        return cls(
            start=datetime.combine(start, time.min),
            end=datetime.combine(end, time(23, 59, 59)),
        )

    @classmethod
    def default(cls, days: int, today: date | None = None) -> "ReportingWindow":
        end = today or date.today()
        return cls.from_dates(end - timedelta(days=days), end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def previous(self) -> "ReportingWindow":
        """The window of equal length that ends one second before this one starts."""
        previous_end = self.start - timedelta(seconds=1)
        return ReportingWindow(start=previous_end - self.duration, end=previous_end)


@dataclass(slots=True, frozen=True)
class SourceSelection:
    """Which data to analyse: one source by id, or all configured sources."""

    source_id: int | None = None
    user_id: int | None = None

    @property
    def consolidated(self) -> bool:
        return self.source_id is None

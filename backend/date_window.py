"""
Launch window resolution for externally published launches

SpaceX publishes upcoming launches with a variable date precision: a launch
reported with ``quarter`` precision may happen any time in the three months
following the reported day. A launch window is the interval during which the
launch site must be considered reserved.
"""
import calendar
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from backend.errors import UnknownPrecision, UpstreamError

ONE_SECOND = timedelta(seconds=1)


class Precision(enum.Enum):
    """Date precision label reported by the launch manifest"""
    HOUR = "hour"
    DAY = "day"
    MONTH = "month"
    QUARTER = "quarter"
    HALF = "half"
    YEAR = "year"

    @classmethod
    def parse(cls, label: str) -> "Precision":
        try:
            return cls(label)
        except ValueError:
            raise UnknownPrecision(f"invalid date precision: {label!r}") from None


# months covered by each calendar-based precision
_MONTH_SPANS = {
    Precision.MONTH: 1,
    Precision.QUARTER: 3,
    Precision.HALF: 6,
    Precision.YEAR: 12,
}


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: datetime) -> datetime:
    """Midnight UTC of the day ``value`` falls on"""
    return to_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class LaunchWindow:
    """Inclusive interval during which a launch site is reserved

    ``launch_day`` is the midnight-normalized day of the reported launch.
    It equals ``start`` for every precision except ``hour``, where the
    window starts at the reported instant.
    """
    launch_day: datetime
    start: datetime
    end: datetime

    def is_available(self, candidate: datetime) -> bool:
        """True when a launch on ``candidate`` does not collide with this window"""
        day = start_of_day(candidate)
        if day == self.launch_day:
            return False
        return not (self.start <= day <= self.end)


def resolve_window(epoch_seconds: int, precision) -> LaunchWindow:
    """
    Compute the reservation window of an external launch

    Args:
        epoch_seconds: Reported launch time as a Unix timestamp
        precision: ``Precision`` member or its string label

    Returns:
        LaunchWindow for the launch

    Raises:
        UnknownPrecision: If the label is not a known precision
        UpstreamError: If the window does not fit the supported date range
    """
    if not isinstance(precision, Precision):
        precision = Precision.parse(precision)

    try:
        return _window(epoch_seconds, precision)
    except (ValueError, OverflowError, OSError) as e:
        raise UpstreamError(f"launch date out of range: {epoch_seconds}") from e


def _window(epoch_seconds: int, precision: Precision) -> LaunchWindow:
    reported = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    launch_day = start_of_day(reported)

    if precision is Precision.HOUR:
        return LaunchWindow(launch_day=launch_day, start=reported,
                            end=reported + timedelta(hours=1))
    if precision is Precision.DAY:
        return LaunchWindow(launch_day=launch_day, start=launch_day,
                            end=launch_day + timedelta(days=1) - ONE_SECOND)

    months = _MONTH_SPANS[precision]
    return LaunchWindow(launch_day=launch_day, start=launch_day,
                        end=add_months(launch_day, months) - ONE_SECOND)


def is_date_available(epoch_seconds: int, precision, candidate: datetime) -> bool:
    """Shortcut for ``resolve_window(...).is_available(candidate)``"""
    return resolve_window(epoch_seconds, precision).is_available(candidate)

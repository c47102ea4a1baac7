"""
Date range value object used by every report query.

A Period is an inclusive ``start_date``..``end_date`` range. Named
constructors are computed from ``current_date()`` so they can be patched in
tests.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Union

from dateutil.relativedelta import relativedelta

from .exceptions import InvalidRangeError

# Earliest date the Reporting API accepts in a date range
EARLIEST_DATE = date(2005, 1, 1)

DateLike = Union[date, datetime, str]


def current_date() -> date:
    return date.today()


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise InvalidRangeError(f"Invalid date `{value}`. Dates must be in yyyy-mm-dd format.")


@dataclass(frozen=True)
class Period:
    start_date: date
    end_date: date

    def __post_init__(self):
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, 'start_date', _to_date(self.start_date))
        object.__setattr__(self, 'end_date', _to_date(self.end_date))
        if self.start_date > self.end_date:
            raise InvalidRangeError.start_after_end(self.start_date, self.end_date)

    @classmethod
    def create(cls, start_date: DateLike, end_date: DateLike) -> "Period":
        return cls(start_date, end_date)

    @classmethod
    def custom(cls, start_date: DateLike, end_date: DateLike) -> "Period":
        return cls.create(start_date, end_date)

    @classmethod
    def today(cls) -> "Period":
        today = current_date()
        return cls(today, today)

    @classmethod
    def yesterday(cls) -> "Period":
        yesterday = current_date() - timedelta(days=1)
        return cls(yesterday, yesterday)

    @classmethod
    def this_week(cls) -> "Period":
        """Monday of the current week up to today"""
        today = current_date()
        return cls(today - timedelta(days=today.weekday()), today)

    @classmethod
    def this_month(cls) -> "Period":
        today = current_date()
        return cls(today.replace(day=1), today)

    @classmethod
    def this_year(cls) -> "Period":
        """The whole calendar year, including days still to come"""
        today = current_date()
        return cls(date(today.year, 1, 1), date(today.year, 12, 31))

    @classmethod
    def year_to_date(cls) -> "Period":
        today = current_date()
        return cls(date(today.year, 1, 1), today)

    @classmethod
    def last_days(cls, number_of_days: int) -> "Period":
        _check_count(number_of_days, 'days')
        today = current_date()
        return cls(today - timedelta(days=number_of_days), today)

    @classmethod
    def last_months(cls, number_of_months: int) -> "Period":
        _check_count(number_of_months, 'months')
        today = current_date()
        return cls(today - relativedelta(months=number_of_months), today)

    @classmethod
    def last_years(cls, number_of_years: int) -> "Period":
        _check_count(number_of_years, 'years')
        today = current_date()
        return cls(today - relativedelta(years=number_of_years), today)

    @classmethod
    def until_today(cls) -> "Period":
        return cls(EARLIEST_DATE, current_date())

    @classmethod
    def until_yesterday(cls) -> "Period":
        return cls(EARLIEST_DATE, current_date() - timedelta(days=1))

    @property
    def days(self) -> int:
        """Number of days covered, both ends included"""
        return (self.end_date - self.start_date).days + 1

    def __str__(self):
        return f"{self.start_date.isoformat()}..{self.end_date.isoformat()}"


def _check_count(count: int, unit: str) -> None:
    if count < 0:
        raise InvalidRangeError(f"Number of {unit} must not be negative, got {count}.")

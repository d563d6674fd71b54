"""Holiday calendar used to flag sample dates that fall on public holidays."""

import calendar
from datetime import date, timedelta
from functools import lru_cache
from typing import Callable, Iterable

import config

HolidayRule = Callable[[int], date]


def fixed(month: int, day: int) -> HolidayRule:
    return lambda year: date(year, month, day)


def nth_weekday(month: int, weekday: int, n: int) -> HolidayRule:
    """n-th occurrence (1-based) of weekday (Mon=0) in month; n=-1 means last."""

    def rule(year: int) -> date:
        if n > 0:
            first = date(year, month, 1)
            offset = (weekday - first.weekday()) % 7
            return first + timedelta(days=offset + 7 * (n - 1))
        last = date(year, month, calendar.monthrange(year, month)[1])
        offset = (last.weekday() - weekday) % 7
        return last - timedelta(days=offset)

    return rule


US_FEDERAL_RULES: tuple[HolidayRule, ...] = (
    fixed(1, 1),                            # New Year's Day
    nth_weekday(1, calendar.MONDAY, 3),     # Martin Luther King Jr. Day
    nth_weekday(2, calendar.MONDAY, 3),     # Presidents' Day
    nth_weekday(5, calendar.MONDAY, -1),    # Memorial Day
    fixed(6, 19),                           # Juneteenth
    fixed(7, 4),                            # Independence Day
    nth_weekday(9, calendar.MONDAY, 1),     # Labor Day
    nth_weekday(10, calendar.MONDAY, 2),    # Columbus Day
    fixed(11, 11),                          # Veterans Day
    nth_weekday(11, calendar.THURSDAY, 4),  # Thanksgiving
    fixed(12, 25),                          # Christmas Day
)


class HolidayCalendar:
    """Set of holiday dates per year: rule-based dates plus explicit extras."""

    def __init__(
        self,
        rules: Iterable[HolidayRule] = (),
        extra_dates: Iterable[date] = (),
    ):
        self.rules = tuple(rules)
        self.extra_dates = frozenset(extra_dates)
        self._cache: dict[int, frozenset[date]] = {}

    def dates_for(self, year: int) -> frozenset[date]:
        if year not in self._cache:
            days = {rule(year) for rule in self.rules}
            days.update(d for d in self.extra_dates if d.year == year)
            self._cache[year] = frozenset(days)
        return self._cache[year]

    def is_holiday(self, day: date) -> bool:
        return day in self.dates_for(day.year)


@lru_cache
def default_calendar() -> HolidayCalendar:
    """Calendar built from settings (HOLIDAY_CALENDAR, EXTRA_HOLIDAYS)."""
    name = config.settings.HOLIDAY_CALENDAR.upper()
    if name == "US":
        rules = US_FEDERAL_RULES
    elif name == "NONE":
        rules = ()
    else:
        raise ValueError(f"Unsupported HOLIDAY_CALENDAR: {config.settings.HOLIDAY_CALENDAR}")
    return HolidayCalendar(rules, config.settings.EXTRA_HOLIDAYS)

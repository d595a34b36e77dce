"""Dates and flags.

DATES:
Ledger dates use a four digit year which may carry a sign, so years before
the common era are representable. datetime.date stops at year 1, therefore
dates are kept as a plain (year, month, day) value validated against the
proleptic Gregorian calendar. Use Date.from_date()/Date.to_date() to move
between the two.

FLAGS:
A flag is any single non-whitespace character. The well-known flags are the
ones beancount itself defines in beancount.core.flags.
"""

__copyright__ = "Copyright (C) 2026 slimslickner"
__license__ = "GNU GPLv2"

import calendar
import datetime
from dataclasses import dataclass

from beancount.core import flags

MIN_YEAR = -9999
MAX_YEAR = 9999

_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def is_valid_date(year: int, month: int, day: int) -> bool:
    """Check that the triple names a real calendar day."""
    if not MIN_YEAR <= year <= MAX_YEAR:
        return False
    if not 1 <= month <= 12:
        return False
    days = _DAYS_IN_MONTH[month - 1]
    if month == 2 and calendar.isleap(year):
        days = 29
    return 1 <= day <= days


@dataclass(frozen=True, order=True)
class Date:
    year: int
    month: int
    day: int

    def __post_init__(self):
        if not is_valid_date(self.year, self.month, self.day):
            raise ValueError(f"{self.year}-{self.month}-{self.day} is not a valid date")

    @classmethod
    def from_date(cls, date: datetime.date) -> "Date":
        return cls(date.year, date.month, date.day)

    def to_date(self) -> datetime.date:
        """Convert to datetime.date.

        Raises:
            ValueError: If the year is outside datetime's supported range
        """
        return datetime.date(self.year, self.month, self.day)

    def __str__(self) -> str:
        sign = "-" if self.year < 0 else ""
        return f"{sign}{abs(self.year):04d}-{self.month:02d}-{self.day:02d}"


@dataclass(frozen=True, order=True)
class Flag:
    """A transaction or posting flag such as ``*`` or ``!``."""

    char: str

    def __post_init__(self):
        if len(self.char) != 1 or self.char.isspace():
            raise ValueError(f"Flag must be a single non-whitespace character: {self.char!r}")

    def __str__(self) -> str:
        return self.char


Flag.OKAY = Flag(flags.FLAG_OKAY)
Flag.WARNING = Flag(flags.FLAG_WARNING)
Flag.PADDING = Flag(flags.FLAG_PADDING)
Flag.AMPERSAND = Flag("&")
Flag.HASH = Flag("#")
Flag.QUESTION = Flag("?")
Flag.PERCENT = Flag("%")

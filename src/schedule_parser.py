"""
Schedule report line parsing.

The league publishes its schedule as a column aligned text report:

                          SECOND FALL CUP 2018
    SUN NOV 18   7:50 PM  REAL PORTLAND vs HYVENTUS
    SUN JAN  6  10:00 AM  HYVENTUS vs GREEN MACHINE FC

The year only appears once, in the "... CUP <year>" title line. Game lines
carry month and day, so the year has to be tracked while reading and bumped
when the months wrap around (a fall season ending in January).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from zoneinfo import ZoneInfo

TZ_NAME = "America/Los_Angeles"
TZ = ZoneInfo(TZ_NAME)

# Joined with the year before parsing, e.g. "NOV 18   7:50 PM 2018"
DATETIME_FORMAT = "%b %d %I:%M %p %Y"

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

YEAR_LINE_RE = re.compile(r"\bCUP\s+(?P<year>[0-9]{4})\s*$")

# Every run of spaces inside the date/time columns may be one or more wide:
# the report pads day and hour to two columns.
GAME_LINE_RE = re.compile(
    r"""
    ^[A-Za-z]{3}[ ]+                    # day: SUN
    (?P<when>
        (?P<month>[A-Za-z]{3})[ ]+      # month: NOV
        [0-9]{1,2}[ ]+                  # day of month: 18 or " 6"
        [0-9]{1,2}:[0-9]{2}[ ]+         # time: 7:50 or 10:00
        [AaPp][Mm]                      # AM / PM
    )
    [ ]{2,}
    (?P<home>.+)[ ]+vs[ ]+(?P<away>.+?)   # last " vs " splits
    \s*$
    """,
    re.VERBOSE,
)

FC_RE = re.compile(r"\b\w*fc\b", re.IGNORECASE)
WORD_RE = re.compile(r"\S+")


class DateTimeParseError(ValueError):
    """A line looked like a game but its date/time could not be parsed."""

    def __init__(self, text: str, cause: Optional[Exception] = None):
        self.text = text
        self.cause = cause
        msg = f"Error parsing datetime string: {text!r}"
        if cause is not None:
            msg = f"{msg}: {cause}"
        super().__init__(msg)


@dataclass(frozen=True)
class Game:
    home: str
    away: str
    start: datetime  # aware, America/Los_Angeles


# -------------------------
# Line classification
# -------------------------

def parse_year_line(line: str) -> Optional[int]:
    m = YEAR_LINE_RE.search(line)
    if not m:
        return None
    # four digits always convert; a failure here means the pattern is wrong
    return int(m.group("year"))


def match_game_line(line: str) -> Optional[re.Match]:
    return GAME_LINE_RE.match(line)


def month_of(m: re.Match) -> int:
    abbr = m.group("month")
    month = MONTHS.get(abbr.lower())
    if month is None:
        raise DateTimeParseError(m.group("when"), KeyError(f"unknown month {abbr!r}"))
    return month


# -------------------------
# Year resolution
# -------------------------

def resolve_year(month: int, year: int, last_month: Optional[int]) -> Tuple[int, int]:
    """
    Returns (year to use for this game, new last_month).

    A month smaller than the previous game's means the season crossed
    New Year. The year moves by one no matter how many months were skipped.
    """
    if last_month is not None and month < last_month:
        year += 1
    return year, month


# -------------------------
# Game parsing
# -------------------------

def parse_when(when: str, year: int) -> datetime:
    text = f"{when.strip()} {year}"
    try:
        naive = datetime.strptime(text, DATETIME_FORMAT)
    except ValueError as e:
        raise DateTimeParseError(text, e) from e
    return naive.replace(tzinfo=TZ)


def game_from_match(m: re.Match, year: int) -> Game:
    return Game(
        home=m.group("home").strip(),
        away=m.group("away").strip(),
        start=parse_when(m.group("when"), year),
    )


def parse_game_line(line: str, year: int) -> Optional[Game]:
    m = match_game_line(line)
    if not m:
        return None
    return game_from_match(m, year)


# -------------------------
# Team names
# -------------------------

def teams_match(candidate: str, team_name: str) -> bool:
    return candidate.casefold() == team_name.casefold()


def title_case(name: str) -> str:
    return WORD_RE.sub(lambda m: m.group(0).capitalize(), name)


def fc_to_uppercase(name: str) -> str:
    """Forces the first word ending in "fc" to uppercase ("Nrfc" -> "NRFC")."""
    return FC_RE.sub(lambda m: m.group(0).upper(), name, count=1)


def display_name(name: str) -> str:
    return fc_to_uppercase(title_case(name))

"""
Single pass over a schedule report: year tracking, team filter, events.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Optional

from ics_writer import CalendarEvent, game_to_event
from schedule_parser import (
    Game,
    display_name,
    game_from_match,
    match_game_line,
    month_of,
    parse_year_line,
    resolve_year,
    teams_match,
)

logger = logging.getLogger(__name__)


class ScheduleConverter:
    """
    Owns the per-run state: the season year (0 until the "... CUP <year>"
    line is seen) and the month of the last game, used to detect the
    season running into the next calendar year.
    """

    def __init__(self, team_name: str):
        self.team_name = team_name
        self.year = 0
        self.last_month: Optional[int] = None

    @property
    def awaiting_year(self) -> bool:
        return self.year == 0

    def feed(self, line: str) -> Optional[Game]:
        """Returns the team's game on this line, names display-fixed, or None."""
        line = line.rstrip("\r\n")

        if self.awaiting_year:
            year = parse_year_line(line)
            if year is not None:
                logger.info("Season year %d", year)
                self.year = year
            return None

        m = match_game_line(line)
        if not m:
            return None

        # The month is read off the raw text so a rollover applies to the
        # game that causes it.
        year, self.last_month = resolve_year(month_of(m), self.year, self.last_month)
        if year != self.year:
            logger.info("Schedule crosses into %d", year)
            self.year = year

        game = game_from_match(m, self.year)
        if not (teams_match(game.home, self.team_name) or teams_match(game.away, self.team_name)):
            return None

        logger.debug("Game %s: %s vs %s", game.start.isoformat(), game.home, game.away)
        return replace(game, home=display_name(game.home), away=display_name(game.away))

    def convert(self, lines: Iterable[str]) -> List[CalendarEvent]:
        events: List[CalendarEvent] = []
        for line in lines:
            game = self.feed(line)
            if game is not None:
                events.append(game_to_event(game))
        if self.awaiting_year:
            logger.warning("No season year line found; no games were read")
        return events


def schedule_to_events(lines: Iterable[str], team_name: str) -> List[CalendarEvent]:
    return ScheduleConverter(team_name).convert(lines)

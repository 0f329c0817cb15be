"""
Tests for event building and .ics text output.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from ics_writer import (
    DESCRIPTION,
    LOCATION,
    CalendarEvent,
    fold_ics_line,
    game_to_event,
    ics_escape,
    ics_event,
    render_calendar,
    write_ics,
)
from schedule_parser import Game

PACIFIC = ZoneInfo("America/Los_Angeles")


def make_event() -> CalendarEvent:
    game = Game(
        home="Real Portland",
        away="Hyventus",
        start=datetime(2018, 11, 18, 19, 50, tzinfo=PACIFIC),
    )
    return game_to_event(game)


class TestGameToEvent:
    def test_fields(self):
        ev = make_event()
        assert ev.summary == "Real Portland (home) vs. Hyventus"
        assert ev.description == "Home team brings ball & all colors"
        assert ev.location == "Portland Indoor Soccer\n418 SE Main St.\nPortland, OR 97214"
        assert ev.start == datetime(2018, 11, 18, 19, 50, tzinfo=PACIFIC)

    def test_fixed_duration(self):
        ev = make_event()
        assert ev.end - ev.start == timedelta(minutes=46)


class TestIcsHelpers:
    def test_escape(self):
        assert ics_escape("a,b;c\\d\ne") == "a\\,b\\;c\\\\d\\ne"

    def test_short_line_not_folded(self):
        assert fold_ics_line("SUMMARY:short") == ["SUMMARY:short"]

    def test_long_line_folded(self):
        line = "DESCRIPTION:" + "x" * 200
        folded = fold_ics_line(line)
        assert len(folded) > 1
        assert all(len(part.encode("utf-8")) <= 75 for part in folded)
        assert all(part.startswith(" ") for part in folded[1:])
        assert folded[0] + "".join(part[1:] for part in folded[1:]) == line

    def test_fold_counts_octets(self):
        line = "SUMMARY:" + "é" * 60
        folded = fold_ics_line(line)
        assert len(folded) == 2
        assert all(len(part.encode("utf-8")) <= 75 for part in folded)


class TestIcsEvent:
    def test_event_lines(self):
        stamp = datetime(2018, 11, 1, 12, 0, tzinfo=timezone.utc)
        lines = ics_event(make_event(), uid="game-1", dtstamp=stamp)
        assert lines == [
            "BEGIN:VEVENT",
            "UID:game-1",
            "DTSTAMP:20181101T120000Z",
            "SUMMARY:Real Portland (home) vs. Hyventus",
            f"DESCRIPTION:{DESCRIPTION}",
            "LOCATION:Portland Indoor Soccer\\n418 SE Main St.\\nPortland\\, OR 97214",
            "DTSTART:20181119T035000Z",
            "DTEND:20181119T043600Z",
            "END:VEVENT",
        ]

    def test_fresh_uid_per_event(self):
        ev = make_event()
        uids = {ln for ln in ics_event(ev) + ics_event(ev) if ln.startswith("UID:")}
        assert len(uids) == 2


class TestRenderCalendar:
    def test_crlf_and_wrapping(self):
        content = render_calendar([make_event()], "Hyventus")
        assert content.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0\r\n")
        assert content.endswith("END:VEVENT\r\nEND:VCALENDAR\r\n")
        assert "X-WR-CALNAME:Hyventus\r\n" in content
        assert "\n" not in content.replace("\r\n", "")
        assert LOCATION not in content  # escaped

    def test_empty_calendar(self):
        content = render_calendar([])
        assert "BEGIN:VEVENT" not in content
        assert content.endswith("END:VCALENDAR\r\n")

    def test_write_ics_keeps_crlf(self, tmp_path):
        path = tmp_path / "out" / "team.ics"
        content = render_calendar([make_event()])
        write_ics(str(path), content)
        assert path.read_bytes() == content.encode("utf-8")

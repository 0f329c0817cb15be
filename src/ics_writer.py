"""
iCalendar output.

Events are built from parsed games and written as plain RFC5545 text.
DTSTART/DTEND are emitted in UTC so no VTIMEZONE block is needed.
"""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from schedule_parser import Game

PRODID = "-//pdxindoorsoccer-ics//EN"
CALNAME_DEFAULT = "Portland Indoor Soccer"

DESCRIPTION = "Home team brings ball & all colors"
LOCATION = "Portland Indoor Soccer\n418 SE Main St.\nPortland, OR 97214"

# 44 minute game + 2 minutes between games
GAME_DURATION = timedelta(minutes=44 + 2)


@dataclass(frozen=True)
class CalendarEvent:
    summary: str
    description: str
    location: str
    start: datetime
    end: datetime


def game_to_event(game: Game) -> CalendarEvent:
    return CalendarEvent(
        summary=f"{game.home} (home) vs. {game.away}",
        description=DESCRIPTION,
        location=LOCATION,
        start=game.start,
        end=game.start + GAME_DURATION,
    )


# -------------------------
# ICS helpers
# -------------------------

def fold_ics_line(line: str) -> List[str]:
    """
    RFC5545 line folding: lines longer than 75 octets should be folded.
    Split on characters, keeping each chunk within 75 octets of UTF-8.
    """
    if len(line.encode("utf-8")) <= 75:
        return [line]
    out: List[str] = []
    cur = ""
    for ch in line:
        if len((cur + ch).encode("utf-8")) > 75:
            out.append(cur)
            cur = " "
        cur += ch
    out.append(cur)
    return out


# backslash first so the escapes added after it stay single
TEXT_ESCAPES = (("\\", "\\\\"), (";", "\\;"), (",", "\\,"), ("\n", "\\n"))


def ics_escape(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    for raw, escaped in TEXT_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def dt_utc_ics(dt: datetime) -> str:
    # DTSTART:YYYYMMDDTHHMMSSZ
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def ics_event(
    event: CalendarEvent,
    uid: Optional[str] = None,
    dtstamp: Optional[datetime] = None,
) -> List[str]:
    uid = uid or f"{uuid.uuid4()}"
    dtstamp = dtstamp or datetime.now(timezone.utc)

    lines: List[str] = ["BEGIN:VEVENT"]
    lines.append(f"UID:{uid}")
    lines.append(f"DTSTAMP:{dt_utc_ics(dtstamp)}")
    lines.append(f"SUMMARY:{ics_escape(event.summary)}")
    lines.append(f"DESCRIPTION:{ics_escape(event.description)}")
    lines.append(f"LOCATION:{ics_escape(event.location)}")
    lines.append(f"DTSTART:{dt_utc_ics(event.start)}")
    lines.append(f"DTEND:{dt_utc_ics(event.end)}")
    lines.append("END:VEVENT")

    folded: List[str] = []
    for ln in lines:
        folded.extend(fold_ics_line(ln))
    return folded


def render_calendar(events: Iterable[CalendarEvent], calname: str = CALNAME_DEFAULT) -> str:
    """Whole VCALENDAR document, CRLF line endings including the last line."""
    lines: List[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    lines.extend(fold_ics_line(f"X-WR-CALNAME:{ics_escape(calname)}"))
    for ev in events:
        lines.extend(ics_event(ev))
    lines.append("END:VCALENDAR")
    return "".join(f"{ln}\r\n" for ln in lines)


def ensure_dir(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)


def write_ics(path: str, content: str) -> None:
    ensure_dir(os.path.dirname(path))
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)

#!/usr/bin/env python3
"""
Portland Indoor Soccer ICS Generator

Flow:
- Read config.yml (team_name, url/input, output, ...); flags override it
- Schedule report text <- local file, URL or stdin
- One pass over the lines -> events for the configured team
- Write a single .ics (or print it to stdout)

Notes:
- The published reports are Windows-1252 text, not UTF-8.
- Game times are US Pacific; the .ics carries them in UTC.
- Nothing is written unless the whole report converts.
"""

from __future__ import annotations

import argparse
import codecs
import logging
import os
import sys
from typing import Any, Dict, Iterator, List, Optional, Tuple

import requests
import yaml

from ics_writer import CALNAME_DEFAULT, CalendarEvent, render_calendar, write_ics
from schedule_converter import schedule_to_events
from schedule_parser import DateTimeParseError

CONFIG_PATH_DEFAULT = "config.yml"
ENCODING_DEFAULT = "cp1252"
TIMEOUT_DEFAULT = 30
STDOUT_PATH = "-"

logger = logging.getLogger(__name__)


class ScheduleInputError(RuntimeError):
    """The schedule report could not be read."""

    def __init__(self, msg: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            msg = f"{msg} (line {line_number})"
        super().__init__(msg)


class ConfigError(ValueError):
    pass


# -------------------------
# Config
# -------------------------

def load_config(path: str = CONFIG_PATH_DEFAULT, required: bool = False) -> Dict[str, Any]:
    if not os.path.exists(path):
        if required:
            raise ScheduleInputError(f"Config file not found: {path}")
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read config {path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config {path} must be a mapping, got {type(cfg).__name__}")
    return cfg


def parse_timeout(value: Any) -> int:
    if value is None:
        return TIMEOUT_DEFAULT
    try:
        timeout = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"timeout must be a number of seconds, got {value!r}") from e
    if isinstance(value, bool) or timeout <= 0:
        raise ConfigError(f"timeout must be a positive number of seconds, got {value!r}")
    return timeout


def merge_settings(cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    # flags win over config values
    output = args.output or cfg.get("output")
    settings = {
        "team_name": args.team_name or cfg.get("team_name"),
        "input": args.input,
        "url": args.url,
        # "-" is stdout, also when the config names a file
        "output": None if output == STDOUT_PATH else output,
        "encoding": str(cfg.get("encoding") or ENCODING_DEFAULT),
        "calendar_name": str(cfg.get("calendar_name") or CALNAME_DEFAULT),
        "timeout": parse_timeout(cfg.get("timeout")),
    }
    # the config's source only applies when no source was given on the command line
    if not (args.input or args.url):
        settings["input"] = cfg.get("input")
        settings["url"] = cfg.get("url")
    if settings["input"] and settings["url"]:
        raise ConfigError("Only one of input and url may be set")
    if not settings["team_name"]:
        raise ConfigError("A team name is required (--team-name or team_name in config)")
    settings["team_name"] = str(settings["team_name"])
    return settings


# -------------------------
# Input
# -------------------------

def _c1_controls(err: UnicodeDecodeError) -> Tuple[str, int]:
    # cp1252 leaves 0x81, 0x8D, 0x8F, 0x90 and 0x9D unassigned; read them
    # as the C1 control characters of the same value, as web browsers do.
    return "".join(chr(b) for b in err.object[err.start:err.end]), err.end


codecs.register_error("c1controls", _c1_controls)


def decode_report(data: bytes, encoding: str = ENCODING_DEFAULT) -> str:
    try:
        codec = codecs.lookup(encoding).name
    except LookupError as e:
        raise ScheduleInputError(f"Unknown encoding: {encoding}") from e
    errors = "c1controls" if codec == "cp1252" else "strict"
    return data.decode(encoding, errors)


def iter_file_lines(path: str, encoding: str = ENCODING_DEFAULT) -> Iterator[str]:
    try:
        with open(path, "rb") as f:
            for n, raw in enumerate(f, start=1):
                try:
                    yield decode_report(raw, encoding)
                except UnicodeDecodeError as e:
                    raise ScheduleInputError(f"Could not decode {path} as {encoding}: {e}", line_number=n) from e
    except OSError as e:
        raise ScheduleInputError(f"Could not read {path}: {e}") from e


def fetch_schedule_lines(url: str, encoding: str = ENCODING_DEFAULT, timeout: int = TIMEOUT_DEFAULT) -> List[str]:
    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise ScheduleInputError(f"Could not fetch {url}: {e}") from e
    try:
        text = decode_report(r.content, encoding)
    except UnicodeDecodeError as e:
        raise ScheduleInputError(f"Could not decode {url} as {encoding}: {e}") from e
    return text.splitlines()


def iter_stdin_lines() -> Iterator[str]:
    try:
        for line in sys.stdin:
            yield line
    except (OSError, UnicodeDecodeError) as e:
        raise ScheduleInputError(f"Could not read standard input: {e}") from e


def schedule_lines(settings: Dict[str, Any]) -> Iterator[str]:
    if settings["input"]:
        logger.info("Reading schedule from %s", settings["input"])
        return iter_file_lines(settings["input"], settings["encoding"])
    if settings["url"]:
        logger.info("Fetching schedule from %s", settings["url"])
        return iter(fetch_schedule_lines(settings["url"], settings["encoding"], settings["timeout"]))
    logger.info("Reading schedule from standard input")
    return iter_stdin_lines()


# -------------------------
# Main generation
# -------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pdxindoorsoccer-ics",
        description="Portland Indoor Soccer schedule report -> iCalendar for one team",
    )
    p.add_argument("-c", "--config", help=f"Configuration file (default: {CONFIG_PATH_DEFAULT} if present)")
    p.add_argument("-t", "--team-name", help="Team name to filter to")
    src = p.add_mutually_exclusive_group()
    src.add_argument("-i", "--input", help="Input text file. If not specified, stdin is used.")
    src.add_argument("-u", "--url", help="URL of the schedule report")
    p.add_argument("-o", "--output", help="Output ical file. If not specified or -, stdout is used.")
    p.add_argument("-n", "--dry-run", action="store_true", help="Convert but write nothing")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    p.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    return p


def log_level(verbose: int, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def generate(settings: Dict[str, Any], dry_run: bool = False) -> List[CalendarEvent]:
    events = schedule_to_events(schedule_lines(settings), settings["team_name"])
    logger.info("%d games for %s", len(events), settings["team_name"])

    if dry_run:
        logger.info("Dry run, not writing calendar")
        return events

    content = render_calendar(events, settings["calendar_name"])
    if settings["output"]:
        write_ics(settings["output"], content)
        logger.info("Wrote %s", settings["output"])
    else:
        sys.stdout.write(content)
        sys.stdout.flush()
    return events


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=log_level(args.verbose, args.quiet),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        cfg = load_config(args.config or CONFIG_PATH_DEFAULT, required=bool(args.config))
        settings = merge_settings(cfg, args)
    except (ConfigError, ScheduleInputError) as e:
        logger.error("%s", e)
        return 2

    try:
        generate(settings, dry_run=args.dry_run)
    except ScheduleInputError as e:
        logger.error("Input error: %s", e)
        return 1
    except DateTimeParseError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("Calendar could not be written: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

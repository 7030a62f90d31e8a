"""HTML rendering for the home page."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from counter.store import VisitorRecord

TEMPLATES = Path(__file__).parent / "templates"

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_visit_time(dt: datetime) -> str:
    """Human-readable timestamp, e.g. 'Jan 2, 2006 at 3:04 PM'."""
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{MONTHS[dt.month - 1]} {dt.day}, {dt.year} at {hour}:{dt:%M} {meridiem}"


def make_environment() -> Environment:
    env = Environment(loader=FileSystemLoader(str(TEMPLATES)), autoescape=True)
    env.filters["visit_time"] = format_visit_time
    return env


def render_home(env: Environment, record: VisitorRecord) -> str:
    template = env.get_template("index.html")
    return template.render(
        count=record.count,
        last_visit=record.last_visit,
        refresh_ms=30_000,
    )

"""Download formats for a built profile: iCalendar and CSV checklist."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional
from uuid import uuid4

from btbb.models.catalog import Question
from btbb.models.profile import CalendarEvent

ICS_PRODID = "-//BTBB//Tax Planning//EN"
CHECKLIST_HEADER = ["module", "priority_weight", "question", "why_it_matters", "help"]


def escape_ics_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace(",", "\\,")
        .replace(";", "\\;")
    )


def build_ics(
    events: Iterable[CalendarEvent],
    description: str = "",
    now: Optional[datetime] = None,
) -> str:
    """One all-day VEVENT per calendar event, CRLF line endings."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y%m%dT%H%M%SZ")
    uid_base = uuid4().hex[:12]

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICS_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    for idx, event in enumerate(events):
        start = date.fromisoformat(event.date)
        end = start + timedelta(days=1)   # DTEND is exclusive for all-day events
        body = "\n".join(x for x in (event.note or "", description) if x)
        lines.extend([
            "BEGIN:VEVENT",
            f"UID:btbb-{uid_base}-{idx}@btbb",
            f"DTSTAMP:{stamp}",
            f"DTSTART;VALUE=DATE:{start.strftime('%Y%m%d')}",
            f"DTEND;VALUE=DATE:{end.strftime('%Y%m%d')}",
            f"SUMMARY:{escape_ics_text(event.title)}",
        ])
        if body:
            lines.append(f"DESCRIPTION:{escape_ics_text(body)}")
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


def build_checklist_csv(questions: Iterable[Question]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CHECKLIST_HEADER)
    for q in questions:
        weight = q.priority_weight
        writer.writerow([
            q.module,
            int(weight) if float(weight).is_integer() else weight,
            q.question_text,
            q.why_it_matters,
            q.plain_language_help,
        ])
    return buf.getvalue()

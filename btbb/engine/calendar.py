"""Calendar synthesis: fixed planning anchors plus recurring actions.

These are placeholder planning dates, not authoritative filing deadlines.
Real deadlines vary by jurisdiction and entity type, and no business-day
shifting is computed; the estimated-tax events only carry a note about it.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from btbb.models.catalog import CalendarAction
from btbb.models.profile import CalendarEvent

QUARTER_LABELS = ("Q1", "Q2", "Q3", "Q4")

# (month, day) anchors
CHECK_IN_DATES = ((1, 10), (4, 10), (7, 10), (10, 10))
EST_TAX_DATES = ((4, 15), (6, 15), (9, 15), (1, 15))   # Q4 falls in the next year
MONTHLY_ACTION_DATE = (1, 25)
ANNUAL_ACTION_DATE = (12, 1)
QUARTERLY_ACTION_DATES = ((1, 12), (4, 12), (7, 12), (10, 12))

CHECK_IN_NOTE = "Review profit, set-aside, filings, and records."
EST_TAX_NOTE = "If this lands on a weekend or holiday, use the next business day."


def quarter_check_ins(year: int) -> list[CalendarEvent]:
    return [
        CalendarEvent(
            title=f"Tax check-in ({label})",
            date=date(year, month, day).isoformat(),
            note=CHECK_IN_NOTE,
        )
        for label, (month, day) in zip(QUARTER_LABELS, CHECK_IN_DATES)
    ]


def estimated_tax_dates(year: int) -> list[CalendarEvent]:
    events = []
    for i, (label, (month, day)) in enumerate(zip(QUARTER_LABELS, EST_TAX_DATES)):
        event_year = year + 1 if i == 3 else year
        events.append(CalendarEvent(
            title=f"Estimated tax due ({label})",
            date=date(event_year, month, day).isoformat(),
            note=EST_TAX_NOTE,
        ))
    return events


def action_to_events(action: CalendarAction, year: int) -> list[CalendarEvent]:
    """Expand one recurring action. Unknown frequencies yield nothing."""
    freq = (action.frequency or "").strip().lower()

    if freq == "monthly":
        month, day = MONTHLY_ACTION_DATE
        return [CalendarEvent(action.action_text, date(year, month, day).isoformat(), "Monthly habit")]

    if freq == "annual":
        month, day = ANNUAL_ACTION_DATE
        return [CalendarEvent(action.action_text, date(year, month, day).isoformat(), "Annual review")]

    if freq == "quarterly":
        return [
            CalendarEvent(f"{action.action_text} ({label})", date(year, month, day).isoformat())
            for label, (month, day) in zip(QUARTER_LABELS, QUARTERLY_ACTION_DATES)
        ]

    return []


def dedupe_events(events: Iterable[CalendarEvent]) -> list[CalendarEvent]:
    """Drop repeated (date, title) pairs; the first occurrence wins."""
    seen: set[tuple[str, str]] = set()
    unique = []
    for event in events:
        key = (event.date, event.title)
        if key in seen:
            continue
        seen.add(key)
        unique.append(event)
    return unique


def synthesize(year: int, actions: Iterable[CalendarAction]) -> list[CalendarEvent]:
    events = quarter_check_ins(year) + estimated_tax_dates(year)
    for action in actions:
        events.extend(action_to_events(action, year))

    unique = dedupe_events(events)
    # sorted() is stable, so ties keep insertion order
    return sorted(unique, key=lambda e: e.date)

"""Composed output of the profile engine.

A Profile is built once per request and never updated in place; persisting
it stores the whole snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from btbb.models.catalog import Priority, Question
from btbb.models.intake import Intake


@dataclass(frozen=True)
class CalendarEvent:
    title: str
    date: str                   # YYYY-MM-DD
    note: Optional[str] = None

    def to_dict(self) -> dict:
        d = {"title": self.title, "date": self.date}
        if self.note is not None:
            d["note"] = self.note
        return d

    @classmethod
    def from_dict(cls, data: dict) -> CalendarEvent:
        return cls(title=str(data["title"]), date=str(data["date"]), note=data.get("note"))


@dataclass(frozen=True)
class Profile:
    profile_version: str
    created_at: str             # ISO 8601 UTC
    snapshot: Intake
    tags: tuple = ()
    modules: tuple = ()
    priorities: tuple = ()      # Priority, at most MAX_PRIORITIES
    questions: tuple = ()       # Question, at most MAX_QUESTIONS
    calendar: tuple = ()        # CalendarEvent, unique on (date, title)

    def to_dict(self) -> dict:
        return {
            "profile_version": self.profile_version,
            "created_at": self.created_at,
            "snapshot": self.snapshot.to_dict(),
            "tags": list(self.tags),
            "modules": list(self.modules),
            "priorities": [p.to_dict() for p in self.priorities],
            "questions": [q.to_dict() for q in self.questions],
            "calendar": [e.to_dict() for e in self.calendar],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Profile:
        return cls(
            profile_version=str(data["profile_version"]),
            created_at=str(data["created_at"]),
            snapshot=Intake.from_dict(data.get("snapshot")),
            tags=tuple(data.get("tags", [])),
            modules=tuple(data.get("modules", [])),
            priorities=tuple(Priority.from_dict(p) for p in data.get("priorities", [])),
            questions=tuple(Question.from_dict(q) for q in data.get("questions", [])),
            calendar=tuple(CalendarEvent.from_dict(e) for e in data.get("calendar", [])),
        )

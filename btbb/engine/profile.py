"""Profile composer: tags → modules → priorities → questions → calendar.

Pure orchestration over the other engine modules. Callers fetch the intake
and catalog rows first, build here, then persist the snapshot.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from btbb.config.settings import MAX_QUESTIONS, PROFILE_VERSION
from btbb.engine.calendar import synthesize
from btbb.engine.priorities import build_priorities
from btbb.engine.tags import build_modules, derive_tags
from btbb.models.catalog import CalendarAction, Priority, Question
from btbb.models.intake import Intake
from btbb.models.profile import Profile

logger = logging.getLogger(__name__)


def _matches_tags(entry_tags: Sequence[str], tags: set[str]) -> bool:
    # Untagged content applies to every profile
    return not entry_tags or any(t in tags for t in entry_tags)


def select_questions(
    questions: Iterable[Question],
    tags: Sequence[str],
    limit: int = MAX_QUESTIONS,
) -> list[Question]:
    """Tag-matching questions, unique by id, heaviest priority_weight first."""
    present = set(tags)
    seen: set[str] = set()
    picked = []
    for q in questions:
        if q.id in seen or not _matches_tags(q.tags, present):
            continue
        seen.add(q.id)
        picked.append(q)
    picked.sort(key=lambda q: q.priority_weight or 0, reverse=True)
    return picked[:limit]


def select_actions(actions: Iterable[CalendarAction], tags: Sequence[str]) -> list[CalendarAction]:
    present = set(tags)
    return [a for a in actions if _matches_tags(a.tags, present)]


def build_profile(
    intake: Intake,
    questions: Iterable[Question],
    actions: Iterable[CalendarAction],
    profile_version: Optional[str] = None,
    now: Optional[datetime] = None,
    priority_catalog: Optional[Sequence[Priority]] = None,
    year: Optional[int] = None,
) -> Profile:
    """Compose a profile; the calendar covers ``year`` (default: now's year)."""
    now = now or datetime.now(timezone.utc)

    tags = derive_tags(intake)
    modules = build_modules(tags)
    priorities = build_priorities(tags, priority_catalog)
    picked_questions = select_questions(questions, tags)
    calendar = synthesize(year or now.year, select_actions(actions, tags))

    logger.info(
        f"Profile: {len(tags)} tags, {len(priorities)} priorities, "
        f"{len(picked_questions)} questions, {len(calendar)} calendar events"
    )

    return Profile(
        profile_version=profile_version or PROFILE_VERSION,
        created_at=now.isoformat(),
        snapshot=Intake.from_dict(intake.to_dict()),
        tags=tuple(tags),
        modules=tuple(modules),
        priorities=tuple(priorities),
        questions=tuple(picked_questions),
        calendar=tuple(calendar),
    )

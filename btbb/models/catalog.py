"""Read-only catalog entries: advisory content the engine selects from.

Rows arrive as plain dicts (YAML file or Redis JSON). ``from_dict`` raises
``KeyError``/``TypeError``/``ValueError`` on a row that is missing required
keys; the catalog loader decides what to do with those.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Optional

from btbb.models.rules import RuleGroup


def _str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"expected a list, got {type(value).__name__}")
    return [str(x) for x in value]


@dataclass(frozen=True)
class Priority:
    title: str
    reason: str
    tags: tuple = ()
    requires: tuple = ()   # empty = always included

    @classmethod
    def from_dict(cls, data: dict) -> Priority:
        return cls(
            title=str(data["title"]),
            reason=str(data.get("reason", "")),
            tags=tuple(_str_list(data.get("tags"))),
            requires=tuple(_str_list(data.get("requires"))),
        )

    def to_dict(self) -> dict:
        return {"title": self.title, "reason": self.reason, "tags": list(self.tags)}


@dataclass(frozen=True)
class Question:
    id: str
    question_key: str
    question_text: str
    module: str = "core"
    difficulty: str = ""
    priority_weight: float = 0
    tags: tuple = ()
    plain_language_help: str = ""
    why_it_matters: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        return cls(
            id=str(data["id"]),
            question_key=str(data.get("question_key") or data["id"]),
            question_text=str(data["question_text"]),
            module=str(data.get("module") or "core"),
            difficulty=str(data.get("difficulty") or ""),
            priority_weight=float(data.get("priority_weight") or 0),
            tags=tuple(_str_list(data.get("tags"))),
            plain_language_help=str(data.get("plain_language_help") or ""),
            why_it_matters=str(data.get("why_it_matters") or ""),
        )

    def to_dict(self) -> dict:
        d = asdict(self)
        d["tags"] = list(self.tags)
        return d


@dataclass(frozen=True)
class CalendarAction:
    id: str
    action_key: str
    action_text: str
    frequency: str   # monthly | quarterly | annual | anything else → no events
    tags: tuple = ()
    timing: Optional[dict] = None

    @classmethod
    def from_dict(cls, data: dict) -> CalendarAction:
        timing = data.get("timing")
        return cls(
            id=str(data["id"]),
            action_key=str(data.get("action_key") or data["id"]),
            action_text=str(data["action_text"]),
            frequency=str(data.get("frequency") or ""),
            tags=tuple(_str_list(data.get("tags"))),
            timing=dict(timing) if isinstance(timing, dict) else None,
        )

    def to_dict(self) -> dict:
        d = asdict(self)
        d["tags"] = list(self.tags)
        return d


@dataclass(frozen=True)
class WatchlistItem:
    key: str
    title: str
    when: Optional[RuleGroup]
    trigger: str = ""
    readiness: tuple = ()
    consequence: str = ""
    decision_prompt: str = ""
    tags: tuple = ()

    @classmethod
    def from_dict(cls, data: dict) -> WatchlistItem:
        return cls(
            key=str(data["key"]),
            title=str(data["title"]),
            when=RuleGroup.from_dict(data.get("when")),
            trigger=str(data.get("trigger") or ""),
            readiness=tuple(_str_list(data.get("readiness"))),
            consequence=str(data.get("consequence") or ""),
            decision_prompt=str(data.get("decision_prompt") or ""),
            tags=tuple(_str_list(data.get("tags"))),
        )

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "trigger": self.trigger,
            "readiness": list(self.readiness),
            "consequence": self.consequence,
            "decision_prompt": self.decision_prompt,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class Suggestion:
    value: str
    when: Optional[RuleGroup]

    @classmethod
    def from_dict(cls, data: dict) -> Suggestion:
        return cls(value=str(data["value"]), when=RuleGroup.from_dict(data.get("when")))


@dataclass(frozen=True)
class DecisionOption:
    value: str
    label: str
    help: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> DecisionOption:
        return cls(value=str(data["value"]), label=str(data["label"]), help=str(data.get("help") or ""))


class EvidenceStatus:
    MISSING = "missing"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"

    ALL = (MISSING, IN_PROGRESS, COMPLETE)


@dataclass(frozen=True)
class EvidenceItem:
    evidence_key: str
    title: str
    required: bool = True
    done_definition: str = ""
    review_cadence: str = ""
    status: str = EvidenceStatus.MISSING

    @classmethod
    def from_dict(cls, data: dict) -> EvidenceItem:
        status = str(data.get("status") or EvidenceStatus.MISSING)
        if status not in EvidenceStatus.ALL:
            raise ValueError(f"unknown evidence status {status!r}")
        return cls(
            evidence_key=str(data["evidence_key"]),
            title=str(data["title"]),
            required=bool(data.get("required", True)),
            done_definition=str(data.get("done_definition") or ""),
            review_cadence=str(data.get("review_cadence") or ""),
            status=status,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DecisionTopic:
    key: str
    title: str
    decision_question: str = ""
    options: tuple = ()        # DecisionOption
    suggestions: tuple = ()    # Suggestion, first match wins
    evidence: tuple = ()       # EvidenceItem templates
    rationale: str = ""
    tradeoffs: tuple = ()
    audit_narrative: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> DecisionTopic:
        return cls(
            key=str(data["key"]),
            title=str(data["title"]),
            decision_question=str(data.get("decision_question") or ""),
            options=tuple(DecisionOption.from_dict(o) for o in data.get("options") or []),
            suggestions=tuple(Suggestion.from_dict(s) for s in data.get("suggestions") or []),
            evidence=tuple(EvidenceItem.from_dict(e) for e in data.get("evidence") or []),
            rationale=str(data.get("rationale") or ""),
            tradeoffs=tuple(_str_list(data.get("tradeoffs"))),
            audit_narrative=str(data.get("audit_narrative") or ""),
        )

    def option_label(self, value: str) -> str:
        for option in self.options:
            if option.value == value:
                return option.label
        return "Not selected"


@dataclass
class Catalog:
    """All advisory content, grouped by kind."""

    priorities: list = field(default_factory=list)
    questions: list = field(default_factory=list)
    actions: list = field(default_factory=list)
    watchlist: list = field(default_factory=list)
    topics: dict = field(default_factory=dict)   # key → DecisionTopic

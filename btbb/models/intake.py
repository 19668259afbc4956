"""Intake model for the tax planning engine.

Flat questionnaire answers describing a user's business. Every field has an
empty default so the engine never sees a missing value.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from typing import Any, Optional

import redis

INTAKE_PREFIX = "intake:"


class FieldKind:
    STRING = "string"
    SEQUENCE = "sequence"
    BOOLEAN = "boolean"


# Field name → kind. Rules resolve their evaluation branch from this map.
INTAKE_FIELD_KINDS: dict[str, str] = {
    "entity_legal_form": FieldKind.STRING,
    "entity_tax_classification": FieldKind.STRING,
    "state_codes": FieldKind.SEQUENCE,
    "industry": FieldKind.STRING,
    "revenue_range": FieldKind.STRING,
    "payroll_w2_bracket": FieldKind.STRING,
    "inventory": FieldKind.BOOLEAN,
    "multi_state": FieldKind.BOOLEAN,
    "international": FieldKind.BOOLEAN,
}


def presence_flag(value: Any) -> bool:
    """Interpret a yes/no answer. Booleans pass through; text counts as
    present when non-empty and not starting with "no"."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in ("false", "0"):
        return False
    return bool(text) and not text.startswith("no")


@dataclass
class Intake:
    entity_legal_form: str = ""
    entity_tax_classification: str = ""
    state_codes: list = field(default_factory=list)
    industry: str = ""
    revenue_range: str = ""
    payroll_w2_bracket: str = ""   # "0" | "1" | "2-3" | "4-5" | ...
    inventory: bool = False
    multi_state: bool = False
    international: bool = False

    def to_dict(self) -> dict:
        d = asdict(self)
        d["state_codes"] = list(self.state_codes)
        return d

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Intake:
        data = dict(data or {})
        values: dict[str, Any] = {}
        for name, kind in INTAKE_FIELD_KINDS.items():
            raw = data.get(name)
            if kind == FieldKind.BOOLEAN:
                values[name] = presence_flag(raw)
            elif kind == FieldKind.SEQUENCE:
                if isinstance(raw, str):
                    # Redis hashes hold lists JSON-encoded
                    try:
                        raw = json.loads(raw) if raw else []
                    except ValueError:
                        raw = [raw]
                values[name] = [str(x) for x in raw] if isinstance(raw, (list, tuple)) else []
            else:
                values[name] = "" if raw is None else str(raw)
        return cls(**values)

    def to_redis(self, r: redis.Redis, user_id: str) -> None:
        """Upsert the intake hash for a user (last write wins)."""
        d = self.to_dict()
        d["state_codes"] = json.dumps(d["state_codes"])
        for name in ("inventory", "multi_state", "international"):
            d[name] = "yes" if d[name] else "no"
        r.hset(f"{INTAKE_PREFIX}{user_id}", mapping=d)

    @classmethod
    def from_redis(cls, r: redis.Redis, user_id: str) -> Optional[Intake]:
        data = r.hgetall(f"{INTAKE_PREFIX}{user_id}")
        if not data:
            return None
        decoded = {k.decode() if isinstance(k, bytes) else k:
                   v.decode() if isinstance(v, bytes) else v
                   for k, v in data.items()}
        return cls.from_dict(decoded)


def is_filled(intake: Intake, name: str) -> bool:
    """Whether an intake field counts toward completeness. Flags always do."""
    kind = INTAKE_FIELD_KINDS[name]
    value = getattr(intake, name)
    if kind == FieldKind.BOOLEAN:
        return True
    if kind == FieldKind.SEQUENCE:
        return len(value) > 0
    return len(str(value or "").strip()) > 0


_REQUIRED_MESSAGES = [
    ("entity_legal_form", "Pick an entity type to continue."),
    ("state_codes", "Add at least one state to continue."),
    ("industry", "Pick an industry to continue."),
    ("revenue_range", "Pick a revenue range to continue."),
    ("payroll_w2_bracket", "Pick your W-2 headcount to continue."),
]


def validate_intake(intake: Intake) -> Optional[str]:
    """Return the first message for a missing required answer, or None."""
    for name, message in _REQUIRED_MESSAGES:
        if not is_filled(intake, name):
            return message
    return None

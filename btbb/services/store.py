"""Redis-backed keyed upsert store.

Every row is scoped to an opaque user id (plus a secondary key where the
table needs one). Writes are last-write-wins. Redis failures come back as
``StoreResult(ok=False, error=...)``; nothing here raises them to callers.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import redis

from btbb.config.settings import REDIS_URL, MAX_MEMO_VERSIONS
from btbb.models.catalog import EvidenceStatus
from btbb.models.intake import Intake
from btbb.models.profile import Profile

logger = logging.getLogger(__name__)

PROFILE_PREFIX = "profile:"
EVIDENCE_PREFIX = "evidence:"
DECISION_PREFIX = "decision:"
MEMO_PREFIX = "memo:"
CATALOG_PREFIX = "catalog:"


@dataclass
class StoreResult:
    ok: bool
    data: Any = None
    error: str = ""


def _get_redis() -> redis.Redis:
    return redis.Redis.from_url(REDIS_URL, decode_responses=True)


def _run(op: str, fn: Callable[[], Any]) -> StoreResult:
    try:
        return StoreResult(ok=True, data=fn())
    except (redis.RedisError, ValueError, KeyError) as e:
        logger.error(f"Store: {op} failed: {e}")
        return StoreResult(ok=False, error=f"{op} failed: {e}")


# ── Intake ───────────────────────────────────────────────────────────────

def save_intake(user_id: str, intake: Intake, r: redis.Redis | None = None) -> StoreResult:
    r = r or _get_redis()

    def _save():
        intake.to_redis(r, user_id)
        return intake

    return _run("save_intake", _save)


def load_intake(user_id: str, r: redis.Redis | None = None) -> StoreResult:
    """Stored intake, or a defaulted one when the user has never saved."""
    r = r or _get_redis()
    return _run("load_intake", lambda: Intake.from_redis(r, user_id) or Intake())


# ── Profile snapshots ────────────────────────────────────────────────────

def save_profile(user_id: str, profile: Profile, r: redis.Redis | None = None) -> StoreResult:
    """Store the whole profile as one JSON blob plus a few indexed scalars."""
    r = r or _get_redis()

    def _save():
        r.hset(f"{PROFILE_PREFIX}{user_id}", mapping={
            "profile_version": profile.profile_version,
            "created_at": profile.created_at,
            "tag_count": len(profile.tags),
            "snapshot": json.dumps(profile.to_dict()),
        })
        return profile

    return _run("save_profile", _save)


def load_profile(user_id: str, r: redis.Redis | None = None) -> StoreResult:
    """Latest profile snapshot; ``data`` is None when none was built yet."""
    r = r or _get_redis()

    def _load():
        raw = r.hget(f"{PROFILE_PREFIX}{user_id}", "snapshot")
        return Profile.from_dict(json.loads(raw)) if raw else None

    return _run("load_profile", _load)


# ── Evidence (proof pack) ────────────────────────────────────────────────

def set_evidence_status(
    user_id: str,
    topic_key: str,
    evidence_key: str,
    status: str,
    r: redis.Redis | None = None,
) -> StoreResult:
    r = r or _get_redis()

    def _save():
        if status not in EvidenceStatus.ALL:
            raise ValueError(f"unknown evidence status {status!r}")
        r.hset(f"{EVIDENCE_PREFIX}{user_id}:{topic_key}", evidence_key, status)
        return status

    return _run("set_evidence_status", _save)


def get_evidence_statuses(user_id: str, topic_key: str, r: redis.Redis | None = None) -> StoreResult:
    """evidence_key → status for one topic."""
    r = r or _get_redis()
    return _run("get_evidence_statuses", lambda: dict(r.hgetall(f"{EVIDENCE_PREFIX}{user_id}:{topic_key}")))


# ── Decisions ────────────────────────────────────────────────────────────

def save_decision(user_id: str, topic_key: str, value: str, r: redis.Redis | None = None) -> StoreResult:
    r = r or _get_redis()

    def _save():
        r.hset(f"{DECISION_PREFIX}{user_id}", topic_key, value)
        return value

    return _run("save_decision", _save)


def get_decision(user_id: str, topic_key: str, r: redis.Redis | None = None) -> StoreResult:
    r = r or _get_redis()
    return _run("get_decision", lambda: r.hget(f"{DECISION_PREFIX}{user_id}", topic_key) or "")


# ── Memo versions ────────────────────────────────────────────────────────

def reserve_memo_version(user_id: str, topic_key: str, r: redis.Redis | None = None) -> StoreResult:
    """Allocate the next memo version number (atomic INCR)."""
    r = r or _get_redis()
    return _run("reserve_memo_version", lambda: int(r.incr(f"{MEMO_PREFIX}{user_id}:{topic_key}:seq")))


def save_memo_version(
    user_id: str,
    topic_key: str,
    version: int,
    decision: str,
    decision_label: str,
    confidence: int,
    text: str,
    r: redis.Redis | None = None,
) -> StoreResult:
    """Append a memo under a version from ``reserve_memo_version`` (newest
    first), keeping MAX_MEMO_VERSIONS."""
    r = r or _get_redis()
    key = f"{MEMO_PREFIX}{user_id}:{topic_key}"

    def _save():
        entry = {
            "version": version,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "topic": topic_key,
            "decision": decision,
            "decision_label": decision_label,
            "confidence": confidence,
            "text": text,
        }
        pipe = r.pipeline()
        pipe.lpush(key, json.dumps(entry))
        pipe.ltrim(key, 0, MAX_MEMO_VERSIONS - 1)
        pipe.execute()
        return entry

    return _run("save_memo_version", _save)


def next_memo_version(user_id: str, topic_key: str, r: redis.Redis | None = None) -> StoreResult:
    """Version the next reserved memo would get; read-only, for previews."""
    r = r or _get_redis()
    return _run(
        "next_memo_version",
        lambda: int(r.get(f"{MEMO_PREFIX}{user_id}:{topic_key}:seq") or 0) + 1,
    )


def list_memo_versions(user_id: str, topic_key: str, r: redis.Redis | None = None) -> StoreResult:
    r = r or _get_redis()
    return _run(
        "list_memo_versions",
        lambda: [json.loads(x) for x in r.lrange(f"{MEMO_PREFIX}{user_id}:{topic_key}", 0, -1)],
    )


# ── Catalog rows ─────────────────────────────────────────────────────────

def save_catalog_rows(kind: str, rows: list[dict], r: redis.Redis | None = None) -> StoreResult:
    r = r or _get_redis()

    def _save():
        r.set(f"{CATALOG_PREFIX}{kind}", json.dumps(rows))
        return len(rows)

    return _run("save_catalog_rows", _save)


def load_catalog_rows(kind: str, r: redis.Redis | None = None) -> StoreResult:
    """Stored rows for one catalog kind; ``data`` is None when unset."""
    r = r or _get_redis()

    def _load() -> Optional[list]:
        raw = r.get(f"{CATALOG_PREFIX}{kind}")
        return json.loads(raw) if raw else None

    return _run("load_catalog_rows", _load)

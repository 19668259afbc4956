"""FastAPI server exposing the tax planning engine.

REST endpoints scoped by the opaque ``X-User-Id`` header supplied by the
identity provider in front of this service. The engine itself is pure; this
layer loads intake and catalog rows, calls it, and persists the results.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import redis
from fastapi import FastAPI, Header, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from btbb.config.settings import REDIS_URL, PROFILE_VERSION
from btbb.engine.profile import build_profile
from btbb.engine.rules import filter_watchlist
from btbb.engine.workspace import build_workspace, merge_evidence
from btbb.engine.confidence import calc_confidence, evidence_complete_pct
from btbb.models.catalog import Catalog, DecisionTopic, EvidenceStatus
from btbb.models.intake import Intake, validate_intake
from btbb.services import store
from btbb.services.catalog import load_catalog
from btbb.services.exports import build_checklist_csv, build_ics
from btbb.services.memo import build_tax_position_memo

logger = logging.getLogger(__name__)

app = FastAPI(title="BTBB Tax Planning", description="Rule-driven tax planning profiles")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_redis() -> redis.Redis:
    return redis.Redis.from_url(REDIS_URL, decode_responses=True)


def _require_user(user_id: Optional[str]) -> str:
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id.strip()


def _unwrap(result: store.StoreResult) -> Any:
    """Return the result data or turn a store failure into a 503."""
    if not result.ok:
        raise HTTPException(status_code=503, detail=result.error)
    return result.data


def _get_topic(catalog: Catalog, topic_key: str) -> DecisionTopic:
    topic = catalog.topics.get(topic_key)
    if topic is None:
        raise HTTPException(status_code=404, detail=f"Unknown topic: {topic_key}")
    return topic


def _load_profile_or_404(user_id: str, r: redis.Redis):
    profile = _unwrap(store.load_profile(user_id, r))
    if profile is None:
        raise HTTPException(status_code=404, detail="No profile built yet")
    return profile


# ── Health ───────────────────────────────────────────────────────────────

@app.get("/api/health")
async def health():
    r = _get_redis()
    try:
        r.ping()
        redis_ok = True
    except redis.RedisError:
        redis_ok = False
    return {"status": "ok", "redis": redis_ok, "profile_version": PROFILE_VERSION}


# ── Intake ───────────────────────────────────────────────────────────────

class IntakeRequest(BaseModel):
    entity_legal_form: str = ""
    entity_tax_classification: str = ""
    state_codes: list[str] = Field(default_factory=list)
    industry: str = ""
    revenue_range: str = ""
    payroll_w2_bracket: str = ""
    inventory: bool = False
    multi_state: bool = False
    international: bool = False


@app.get("/api/intake")
async def get_intake(x_user_id: Optional[str] = Header(default=None)):
    user_id = _require_user(x_user_id)
    intake = _unwrap(store.load_intake(user_id, _get_redis()))
    return {"intake": intake.to_dict(), "missing": validate_intake(intake)}


@app.put("/api/intake")
async def put_intake(req: IntakeRequest, x_user_id: Optional[str] = Header(default=None)):
    user_id = _require_user(x_user_id)
    intake = Intake.from_dict(req.model_dump())
    _unwrap(store.save_intake(user_id, intake, _get_redis()))
    logger.info(f"Intake saved for {user_id}")
    return {"intake": intake.to_dict(), "missing": validate_intake(intake)}


# ── Profile ──────────────────────────────────────────────────────────────

class BuildProfileRequest(BaseModel):
    profile_version: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=9998)


@app.post("/api/profile/build")
async def post_build_profile(
    req: Optional[BuildProfileRequest] = None,
    x_user_id: Optional[str] = Header(default=None),
):
    user_id = _require_user(x_user_id)
    r = _get_redis()
    intake = _unwrap(store.load_intake(user_id, r))
    missing = validate_intake(intake)
    if missing:
        raise HTTPException(status_code=400, detail=missing)

    catalog = load_catalog(r)
    profile = build_profile(
        intake,
        catalog.questions,
        catalog.actions,
        profile_version=req.profile_version if req else None,
        priority_catalog=catalog.priorities or None,
        year=req.year if req else None,
    )
    _unwrap(store.save_profile(user_id, profile, r))
    logger.info(f"Profile built for {user_id}: {list(profile.modules)}")

    watchlist = filter_watchlist(intake, catalog.watchlist)
    return {
        "profile": profile.to_dict(),
        "watchlist": [w.to_dict() for w in watchlist],
    }


@app.get("/api/profile")
async def get_profile(x_user_id: Optional[str] = Header(default=None)):
    user_id = _require_user(x_user_id)
    profile = _load_profile_or_404(user_id, _get_redis())
    return {"profile": profile.to_dict()}


@app.get("/api/profile/calendar.ics")
async def get_profile_calendar(x_user_id: Optional[str] = Header(default=None)):
    user_id = _require_user(x_user_id)
    profile = _load_profile_or_404(user_id, _get_redis())
    snap = profile.snapshot
    summary = (
        f"Profile: {snap.entity_legal_form} | {', '.join(snap.state_codes)} | "
        f"{snap.industry} | Revenue: {snap.revenue_range}"
    )
    return Response(
        content=build_ics(profile.calendar, summary),
        media_type="text/calendar",
        headers={"Content-Disposition": 'attachment; filename="tax-calendar.ics"'},
    )


@app.get("/api/profile/checklist.csv")
async def get_profile_checklist(x_user_id: Optional[str] = Header(default=None)):
    user_id = _require_user(x_user_id)
    profile = _load_profile_or_404(user_id, _get_redis())
    return Response(
        content=build_checklist_csv(profile.questions),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="tax-checklist.csv"'},
    )


@app.get("/api/watchlist")
async def get_watchlist(x_user_id: Optional[str] = Header(default=None)):
    user_id = _require_user(x_user_id)
    r = _get_redis()
    intake = _unwrap(store.load_intake(user_id, r))
    items = filter_watchlist(intake, load_catalog(r).watchlist)
    return {"watchlist": [w.to_dict() for w in items]}


# ── Decision topics ──────────────────────────────────────────────────────

@app.get("/api/topics/{topic_key}")
async def get_topic_workspace(topic_key: str, x_user_id: Optional[str] = Header(default=None)):
    user_id = _require_user(x_user_id)
    r = _get_redis()
    topic = _get_topic(load_catalog(r), topic_key)
    intake = _unwrap(store.load_intake(user_id, r))
    decision = _unwrap(store.get_decision(user_id, topic_key, r))
    statuses = _unwrap(store.get_evidence_statuses(user_id, topic_key, r))
    return build_workspace(topic, intake, decision, statuses)


class DecisionRequest(BaseModel):
    value: str


@app.put("/api/topics/{topic_key}/decision")
async def put_decision(
    topic_key: str,
    req: DecisionRequest,
    x_user_id: Optional[str] = Header(default=None),
):
    user_id = _require_user(x_user_id)
    r = _get_redis()
    topic = _get_topic(load_catalog(r), topic_key)
    if req.value and req.value not in {o.value for o in topic.options}:
        raise HTTPException(status_code=400, detail=f"Unknown option: {req.value}")
    _unwrap(store.save_decision(user_id, topic_key, req.value, r))
    return {"topic": topic_key, "decision": req.value, "decision_label": topic.option_label(req.value)}


class EvidenceRequest(BaseModel):
    status: str


@app.put("/api/topics/{topic_key}/evidence/{evidence_key}")
async def put_evidence(
    topic_key: str,
    evidence_key: str,
    req: EvidenceRequest,
    x_user_id: Optional[str] = Header(default=None),
):
    user_id = _require_user(x_user_id)
    r = _get_redis()
    topic = _get_topic(load_catalog(r), topic_key)
    if evidence_key not in {e.evidence_key for e in topic.evidence}:
        raise HTTPException(status_code=404, detail=f"Unknown evidence item: {evidence_key}")
    if req.status not in EvidenceStatus.ALL:
        raise HTTPException(status_code=400, detail=f"Unknown status: {req.status}")
    _unwrap(store.set_evidence_status(user_id, topic_key, evidence_key, req.status, r))
    return {"topic": topic_key, "evidence_key": evidence_key, "status": req.status}


class MemoRequest(BaseModel):
    assumptions: list[str] = Field(default_factory=list)
    cpa_questions: list[str] = Field(default_factory=list)
    save: bool = True


@app.post("/api/topics/{topic_key}/memo")
async def post_memo(
    topic_key: str,
    req: Optional[MemoRequest] = None,
    x_user_id: Optional[str] = Header(default=None),
):
    user_id = _require_user(x_user_id)
    req = req or MemoRequest()
    r = _get_redis()
    topic = _get_topic(load_catalog(r), topic_key)
    intake = _unwrap(store.load_intake(user_id, r))
    decision = _unwrap(store.get_decision(user_id, topic_key, r))
    statuses = _unwrap(store.get_evidence_statuses(user_id, topic_key, r))

    evidence = merge_evidence(topic, statuses)
    confidence = calc_confidence(intake, bool(decision), evidence_complete_pct(evidence))
    if req.save:
        version = _unwrap(store.reserve_memo_version(user_id, topic_key, r))
    else:
        version = _unwrap(store.next_memo_version(user_id, topic_key, r))
    label = topic.option_label(decision)

    text = build_tax_position_memo(
        topic=topic,
        version=version,
        decision_value=decision,
        decision_label=label,
        confidence=confidence,
        intake=intake,
        evidence=evidence,
        assumptions=req.assumptions or None,
        cpa_questions=req.cpa_questions or None,
    )

    if req.save:
        _unwrap(store.save_memo_version(user_id, topic_key, version, decision, label, confidence, text, r))
    return {"version": version, "confidence": confidence, "text": text, "saved": req.save}


@app.get("/api/topics/{topic_key}/memos")
async def get_memos(topic_key: str, x_user_id: Optional[str] = Header(default=None)):
    user_id = _require_user(x_user_id)
    versions = _unwrap(store.list_memo_versions(user_id, topic_key, _get_redis()))
    return {"memos": versions}


if __name__ == "__main__":
    import uvicorn
    from btbb.config.settings import SERVER_HOST, SERVER_PORT, LOG_LEVEL
    logging.basicConfig(level=LOG_LEVEL)
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)

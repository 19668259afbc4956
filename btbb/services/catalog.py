"""Catalog loading: YAML defaults overlaid with rows stored in Redis.

A malformed row is skipped with a warning so one bad content edit never
breaks profile generation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import redis
import yaml

from btbb.config.settings import CATALOG_PATH
from btbb.models.catalog import (
    CalendarAction,
    Catalog,
    DecisionTopic,
    Priority,
    Question,
    WatchlistItem,
)
from btbb.services.store import load_catalog_rows

logger = logging.getLogger(__name__)

CATALOG_KINDS: dict[str, Callable[[dict], Any]] = {
    "priorities": Priority.from_dict,
    "questions": Question.from_dict,
    "actions": CalendarAction.from_dict,
    "watchlist": WatchlistItem.from_dict,
    "topics": DecisionTopic.from_dict,
}


def parse_rows(kind: str, rows: Any) -> list:
    parser = CATALOG_KINDS[kind]
    if not isinstance(rows, list):
        if rows is not None:
            logger.warning(f"Catalog: '{kind}' is not a list, ignoring")
        return []
    parsed = []
    for i, row in enumerate(rows):
        try:
            parsed.append(parser(row))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Catalog: skipping malformed {kind} row #{i}: {e!r}")
    return parsed


def load_yaml_rows(path: Path = CATALOG_PATH) -> dict[str, list]:
    """Raw rows per kind from the YAML file; empty when the file is missing."""
    if not path.exists():
        logger.warning(f"Catalog: {path} not found")
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        logger.warning(f"Catalog: {path} does not hold a mapping")
        return {}
    return {kind: data.get(kind) or [] for kind in CATALOG_KINDS}


def load_catalog(
    r: Optional[redis.Redis] = None,
    path: Path = CATALOG_PATH,
) -> Catalog:
    """Build the catalog. Stored rows replace the YAML rows kind by kind."""
    rows = load_yaml_rows(path)

    if r is not None:
        for kind in CATALOG_KINDS:
            result = load_catalog_rows(kind, r)
            if result.ok and result.data:
                rows[kind] = result.data

    topics = parse_rows("topics", rows.get("topics"))
    catalog = Catalog(
        priorities=parse_rows("priorities", rows.get("priorities")),
        questions=parse_rows("questions", rows.get("questions")),
        actions=parse_rows("actions", rows.get("actions")),
        watchlist=parse_rows("watchlist", rows.get("watchlist")),
        topics={t.key: t for t in topics},
    )
    logger.info(
        f"Catalog: {len(catalog.questions)} questions, {len(catalog.actions)} actions, "
        f"{len(catalog.watchlist)} watchlist items, {len(catalog.topics)} topics"
    )
    return catalog

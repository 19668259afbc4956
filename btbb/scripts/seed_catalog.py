#!/usr/bin/env python3
"""
Seed Redis with the advisory catalog.

    yaml  ->  validate  ->  store

Usage:
    python -m btbb.scripts.seed_catalog [path/to/catalog.yaml]
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from btbb.config.settings import CATALOG_PATH
from btbb.services.catalog import CATALOG_KINDS, load_yaml_rows, parse_rows
from btbb.services.store import save_catalog_rows

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
log = logging.getLogger("seed_catalog")


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    path = Path(argv[0]) if argv else CATALOG_PATH

    log.info("Loading catalog from %s ...", path)
    rows = load_yaml_rows(path)
    if not rows:
        log.error("Nothing to seed")
        return 1

    failed = 0
    for kind in CATALOG_KINDS:
        kind_rows = rows.get(kind) or []
        valid = parse_rows(kind, kind_rows)
        if len(valid) != len(kind_rows):
            log.warning("  %s: %d of %d rows are malformed", kind, len(kind_rows) - len(valid), len(kind_rows))
        if not kind_rows:
            continue
        result = save_catalog_rows(kind, kind_rows)
        if not result.ok:
            log.error("  %s: %s", kind, result.error)
            failed += 1
            continue
        log.info("  -> Stored %d %s rows", result.data, kind)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())

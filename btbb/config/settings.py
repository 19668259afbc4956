"""Application-wide configuration loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Redis
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")

# ── Profile Engine ───────────────────────────────────────────────────────

PROFILE_VERSION: str = os.getenv("PROFILE_VERSION", "btbb_tax_v0")
MAX_PRIORITIES: int = int(os.getenv("MAX_PRIORITIES", "6"))
MAX_QUESTIONS: int = int(os.getenv("MAX_QUESTIONS", "25"))

# Catalog content (priorities, questions, actions, watchlist, topics)
CATALOG_PATH: Path = Path(
    os.getenv("CATALOG_PATH", str(Path(__file__).resolve().parent / "catalog.yaml"))
)

# ── Memo Versions ────────────────────────────────────────────────────────

MAX_MEMO_VERSIONS: int = int(os.getenv("MAX_MEMO_VERSIONS", "25"))

# ── Server Configuration ─────────────────────────────────────────────────

SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

"""Priority ranking over derived tags.

Output follows catalog declaration order (not a relevance score) and is
truncated to MAX_PRIORITIES.
"""

from __future__ import annotations

from typing import Optional, Sequence

from btbb.config.settings import MAX_PRIORITIES
from btbb.models.catalog import Priority

# Fixed catalog. An entry is included when any of its ``requires`` tags is
# present; an empty ``requires`` means always.
DEFAULT_PRIORITIES: tuple[Priority, ...] = (
    Priority(
        title="Clean books",
        reason="Monthly reconciles plus clear categories keeps tax time calm.",
        tags=("core.books",),
    ),
    Priority(
        title="Tax set-aside",
        reason="A steady set-aside blocks surprise bills.",
        tags=("core.cash",),
    ),
    Priority(
        title="Owner pay plan",
        reason="S-corp owners often need wages plus distributions that match the facts.",
        tags=("entity.s_corp", "owner-pay"),
        requires=("entity.s_corp",),
    ),
    Priority(
        title="Payroll filings",
        reason="Pay dates drive deposits plus quarterly forms.",
        tags=("payroll.yes",),
        requires=("payroll.yes",),
    ),
    Priority(
        title="COGS tracking",
        reason="Inventory ties straight to profit and taxes.",
        tags=("inventory.yes",),
        requires=("inventory.yes",),
    ),
    Priority(
        title="Multi-state watch",
        reason="States can create filing and sales tax duties.",
        tags=("multistate.yes", "states.multi"),
        requires=("multistate.yes", "states.multi"),
    ),
    Priority(
        title="Cross-border vendors",
        reason="Foreign payees and payments can trigger extra forms.",
        tags=("international.yes",),
        requires=("international.yes",),
    ),
)


def build_priorities(
    tags: Sequence[str],
    catalog: Optional[Sequence[Priority]] = None,
    limit: int = MAX_PRIORITIES,
) -> list[Priority]:
    present = set(tags)
    entries = DEFAULT_PRIORITIES if catalog is None else catalog
    selected = [
        p for p in entries
        if not p.requires or any(t in present for t in p.requires)
    ]
    return selected[:limit]

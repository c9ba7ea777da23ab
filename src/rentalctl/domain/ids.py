"""ID patterns, validation, and generation.

Every aggregate id is a type prefix followed by 12 random hex chars,
e.g. ``rnt_3f9a0c1b2d4e``.  Cross-aggregate references are always ids.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import uuid

TYPE_PREFIXES: dict[str, str] = {
    "equipment": "eqp_",
    "member": "mbr_",
    "rental": "rnt_",
    "reservation": "rsv_",
    "assessment": "dmg_",
}

ID_PATTERNS: dict[str, re.Pattern[str]] = {
    kind: re.compile(rf"^{prefix}[0-9a-f]{{12}}$") for kind, prefix in TYPE_PREFIXES.items()
}


def generate_id(kind: str) -> str:
    """Return a fresh id for aggregate *kind* (``"rental"``, ``"member"``, ...)."""
    prefix = TYPE_PREFIXES[kind]
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def validate_id(entity_id: str, kind: str) -> bool:
    """Check whether *entity_id* matches the expected pattern for *kind*."""
    pattern = ID_PATTERNS.get(kind)
    if pattern is None:
        return False
    return pattern.match(entity_id) is not None

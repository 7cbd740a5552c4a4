from __future__ import annotations

from datetime import datetime, timezone


def utc_timestamp_precise() -> str:
    # Audit records written within the same second must not collide.
    return datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%f")


def utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

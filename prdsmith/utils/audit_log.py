from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from prdsmith.utils.io import write_json
from prdsmith.utils.time import utc_iso, utc_timestamp_precise


def to_jsonable(payload: Any) -> Any:
    """SDK response objects are pydantic models; everything else passes through."""
    dump = getattr(payload, "model_dump", None)
    if callable(dump):
        return dump(mode="json")
    return payload


@dataclass
class AuditLog:
    """Writes one JSON file per API request/response when logging is enabled."""

    log_dir: Optional[Path] = None
    enabled: bool = False

    def record(
        self,
        purpose: str,
        direction: str,
        provider: str,
        model: str,
        payload: Any,
    ) -> Optional[Path]:
        if not self.enabled or self.log_dir is None:
            return None
        stamp = utc_timestamp_precise()
        path = self.log_dir / f"{stamp}_{purpose}_{direction}_{provider}.json"
        record = {
            "timestamp": utc_iso(),
            "purpose": purpose,
            "direction": direction,
            "provider": provider,
            "model": model,
            "payload": payload,
        }
        try:
            record["payload"] = to_jsonable(payload)
            write_json(path, record)
        except (OSError, TypeError, ValueError) as exc:
            print(f"[audit] could not write {path.name}: {exc}")
            return None
        return path

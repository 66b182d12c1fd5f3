from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any

from .catalog import defect_description


class AuditLog:
    def __init__(self) -> None:
        self._entries: list[dict[str, Any]] = []
        self._next_id = 1

    def record(self, *, user: str, role: str, action: str) -> dict[str, Any]:
        entry = {
            "id": self._next_id,
            "timestamp": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
            "user": user,
            "role": role,
            "action": action,
        }
        self._next_id += 1
        self._entries.append(entry)
        return entry

    def entries(self) -> list[dict[str, Any]]:
        return list(self._entries)


class KpiTracker:
    """Shift counters for the manager view. Counting only, no SPC."""

    def __init__(self) -> None:
        self.lots_released = 0
        self.lots_rejected = 0
        self.defect_counts: Counter[str] = Counter()

    def record_release(self) -> None:
        self.lots_released += 1

    def record_reject(self) -> None:
        self.lots_rejected += 1

    def record_defect(self, code: str | None, count: int = 1) -> None:
        if code and count > 0:
            self.defect_counts[code] += count

    def first_pass_yield(self) -> float | None:
        dispositioned = self.lots_released + self.lots_rejected
        if dispositioned == 0:
            return None
        return self.lots_released / dispositioned * 100

    def summary(self, *, top_n: int = 6) -> dict[str, Any]:
        fpy = self.first_pass_yield()
        return {
            "lots_released": self.lots_released,
            "lots_rejected": self.lots_rejected,
            "first_pass_yield": f"{fpy:.1f}%" if fpy is not None else None,
            "top_defects": [
                {"code": code, "count": count, "description": defect_description(code) or ""}
                for code, count in self.defect_counts.most_common(top_n)
            ],
        }

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Iterable, Literal

from .lot_disposition import LotDisposition, ReleaseGate

logger = logging.getLogger(__name__)

InspectionStatus = Literal["pending", "pass", "fail"]

STATUS_PENDING: InspectionStatus = "pending"
STATUS_PASS: InspectionStatus = "pass"
STATUS_FAIL: InspectionStatus = "fail"


@dataclass(frozen=True)
class CharacteristicSpec:
    id: int
    characteristic: str
    tool: str
    min: float
    max: float
    actual: float | None = None
    status: InspectionStatus = STATUS_PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "characteristic": self.characteristic,
            "tool": self.tool,
            "min": self.min,
            "max": self.max,
            "actual": self.actual,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "CharacteristicSpec":
        return cls(
            id=int(payload["id"]),
            characteristic=str(payload.get("characteristic", "")),
            tool=str(payload.get("tool", "")),
            min=float(payload["min"]),
            max=float(payload["max"]),
        )


def calculate_status(actual: float | None, min_value: float, max_value: float) -> InspectionStatus:
    """Status of a reading against an inclusive [min, max] tolerance."""
    if actual is None:
        return STATUS_PENDING
    return STATUS_PASS if min_value <= actual <= max_value else STATUS_FAIL


def normalize_reading(actual: float | None) -> float | None:
    # NaN/inf come from blank or garbled numeric input and count as a clear.
    if actual is None:
        return None
    value = float(actual)
    if not math.isfinite(value):
        return None
    return value


class StaticSpecInspection:
    """
    Fixed characteristic list for first piece inspection.

    The template passed at construction is the source of truth for resets; the
    working list is rebuilt from it rather than from the mutated entries.
    """

    def __init__(
        self,
        template: Iterable[CharacteristicSpec | dict[str, Any]],
        *,
        disposition: LotDisposition | None = None,
    ) -> None:
        self._template = tuple(
            entry if isinstance(entry, CharacteristicSpec) else CharacteristicSpec.from_dict(entry)
            for entry in template
        )
        self.disposition = disposition or LotDisposition()
        self._specs = self._fresh_specs()

    @property
    def specs(self) -> list[CharacteristicSpec]:
        return list(self._specs)

    def get_spec(self, spec_id: int) -> CharacteristicSpec | None:
        for spec in self._specs:
            if spec.id == spec_id:
                return spec
        return None

    def update_spec(self, spec_id: int, actual: float | None) -> CharacteristicSpec | None:
        reading = normalize_reading(actual)
        updated: CharacteristicSpec | None = None
        next_specs = []
        for spec in self._specs:
            if spec.id != spec_id:
                next_specs.append(spec)
                continue
            updated = replace(
                spec,
                actual=reading,
                status=calculate_status(reading, spec.min, spec.max),
            )
            next_specs.append(updated)

        if updated is None:
            logger.debug("Ignoring reading for unknown spec id %s", spec_id)
            return None
        self._specs = next_specs
        return updated

    def reset_specs(self) -> None:
        self._specs = self._fresh_specs()
        self.disposition.reset()

    @property
    def pass_count(self) -> int:
        return sum(1 for spec in self._specs if spec.status == STATUS_PASS)

    @property
    def fail_count(self) -> int:
        return sum(1 for spec in self._specs if spec.status == STATUS_FAIL)

    @property
    def pending_count(self) -> int:
        return sum(1 for spec in self._specs if spec.status == STATUS_PENDING)

    @property
    def all_passed(self) -> bool:
        total = len(self._specs)
        return self.pass_count == total and total > 0

    @property
    def has_failed(self) -> bool:
        return self.fail_count > 0

    def release_gate(self) -> ReleaseGate:
        return ReleaseGate(
            has_failures=self.has_failed,
            complete=self.pending_count == 0 and len(self._specs) > 0,
        )

    def summary(self) -> dict[str, Any]:
        return {
            "total": len(self._specs),
            "pass_count": self.pass_count,
            "fail_count": self.fail_count,
            "pending_count": self.pending_count,
            "all_passed": self.all_passed,
            "has_failed": self.has_failed,
        }

    def _fresh_specs(self) -> list[CharacteristicSpec]:
        return [replace(spec, actual=None, status=STATUS_PENDING) for spec in self._template]

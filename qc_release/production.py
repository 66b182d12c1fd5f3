from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .catalog import defect_description


class ProductionOutputError(ValueError):
    pass


@dataclass(frozen=True)
class ProductionOutput:
    finish_qty: int
    scrap_qty: int = 0
    defect_code: str | None = None

    @property
    def scrap_rate(self) -> float:
        produced = self.finish_qty + self.scrap_qty
        if produced <= 0:
            return 0.0
        return self.scrap_qty / produced

    def to_dict(self) -> dict[str, Any]:
        return {
            "finish_qty": self.finish_qty,
            "scrap_qty": self.scrap_qty,
            "defect_code": self.defect_code,
            "defect_description": defect_description(self.defect_code) if self.defect_code else None,
            "scrap_rate": round(self.scrap_rate, 4),
        }


def build_production_output(finish_qty: int, scrap_qty: int = 0, defect_code: str | None = None) -> ProductionOutput:
    if finish_qty <= 0:
        raise ProductionOutputError("Finish Qty must be greater than 0")
    if scrap_qty < 0:
        raise ProductionOutputError("Scrap Qty cannot be negative")
    code = (defect_code or "").strip().upper() or None
    if code is not None and defect_description(code) is None:
        raise ProductionOutputError(f"Unknown defect code '{code}'")
    return ProductionOutput(finish_qty=finish_qty, scrap_qty=scrap_qty, defect_code=code)

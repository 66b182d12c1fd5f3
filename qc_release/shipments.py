from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4


class ShipmentError(ValueError):
    pass


class PartialShipmentTracker:
    """Partial shipments recorded against one order's required quantity."""

    def __init__(self, *, order_id: str, lot_number: str, total_qty: int) -> None:
        self.order_id = order_id
        self.lot_number = lot_number
        self.total_qty = total_qty
        self.shipments: list[dict[str, Any]] = []

    @property
    def shipped_qty(self) -> int:
        return sum(int(shipment["quantity"]) for shipment in self.shipments)

    @property
    def remaining_qty(self) -> int:
        return self.total_qty - self.shipped_qty

    @property
    def progress_percent(self) -> float:
        if self.total_qty <= 0:
            return 0.0
        return self.shipped_qty / self.total_qty * 100

    @property
    def is_complete(self) -> bool:
        return self.remaining_qty <= 0

    def validate_quantity(self, raw_quantity: Any) -> int:
        if raw_quantity is None or (isinstance(raw_quantity, str) and not raw_quantity.strip()):
            raise ShipmentError("Quantity is required")
        if isinstance(raw_quantity, bool):
            raise ShipmentError("Invalid number")
        try:
            quantity = int(raw_quantity)
        except (TypeError, ValueError) as exc:
            raise ShipmentError("Invalid number") from exc
        if quantity <= 0:
            raise ShipmentError("Quantity must be greater than 0")
        if quantity > self.remaining_qty:
            raise ShipmentError(f"Cannot exceed remaining quantity ({self.remaining_qty})")
        return quantity

    def add_shipment(self, raw_quantity: Any, *, inspected_by: str = "Inspector") -> dict[str, Any]:
        quantity = self.validate_quantity(raw_quantity)
        shipment = {
            "id": f"ship-{uuid4().hex[:8]}",
            "order_id": self.order_id,
            "lot_number": self.lot_number,
            "quantity": quantity,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "inspected_by": inspected_by,
        }
        self.shipments.append(shipment)
        return shipment

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "lot_number": self.lot_number,
            "total_qty": self.total_qty,
            "shipped_qty": self.shipped_qty,
            "remaining_qty": self.remaining_qty,
            "progress_percent": round(self.progress_percent, 2),
            "is_complete": self.is_complete,
            "shipments": list(self.shipments),
        }

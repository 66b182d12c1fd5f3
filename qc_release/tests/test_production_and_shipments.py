from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from qc_release.production import ProductionOutputError, build_production_output  # noqa: E402
from qc_release.shipments import PartialShipmentTracker, ShipmentError  # noqa: E402


def test_production_output_scrap_rate_and_defect_lookup():
    output = build_production_output(3280, 20, "Z03")

    assert output.scrap_rate == pytest.approx(20 / 3300)
    assert output.to_dict()["defect_description"] == "DAÑADO (GOLPES/MARCAS)"


@pytest.mark.parametrize(
    ("finish", "scrap", "code", "message"),
    [
        (0, 0, None, "greater than 0"),
        (10, -1, None, "negative"),
        (10, 0, "Z77", "Unknown defect code"),
    ],
)
def test_production_output_validation(finish, scrap, code, message):
    with pytest.raises(ProductionOutputError, match=message):
        build_production_output(finish, scrap, code)


def test_shipments_track_remaining_quantity():
    tracker = PartialShipmentTracker(order_id="EAC260201", lot_number="296039", total_qty=3300)

    tracker.add_shipment(1000, inspected_by="Maria S.")
    tracker.add_shipment("300")

    assert tracker.shipped_qty == 1300
    assert tracker.remaining_qty == 2000
    assert tracker.progress_percent == pytest.approx(1300 / 3300 * 100)
    assert tracker.is_complete is False

    tracker.add_shipment(2000)
    assert tracker.is_complete is True
    assert tracker.to_dict()["remaining_qty"] == 0


@pytest.mark.parametrize(
    ("quantity", "message"),
    [
        ("", "required"),
        ("abc", "Invalid number"),
        (0, "greater than 0"),
        (101, "Cannot exceed remaining quantity \\(100\\)"),
    ],
)
def test_shipment_quantity_validation(quantity, message):
    tracker = PartialShipmentTracker(order_id="O1", lot_number="L1", total_qty=100)
    with pytest.raises(ShipmentError, match=message):
        tracker.add_shipment(quantity)
    assert tracker.shipments == []

from __future__ import annotations

import math
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from qc_release.catalog import INITIAL_SPECS  # noqa: E402
from qc_release.inspection_specs import StaticSpecInspection, calculate_status  # noqa: E402
from qc_release.lot_disposition import LotDisposition, ReleaseGate  # noqa: E402


def _single_spec_inspection() -> StaticSpecInspection:
    return StaticSpecInspection(
        [{"id": 1, "characteristic": "Distancia", "tool": "Vernier", "min": 0.47, "max": 0.53}]
    )


@pytest.mark.parametrize(
    ("actual", "expected"),
    [
        (0.47, "pass"),
        (0.53, "pass"),
        (0.50, "pass"),
        (0.469, "fail"),
        (0.531, "fail"),
        (None, "pending"),
    ],
)
def test_calculate_status_uses_inclusive_bounds(actual, expected):
    assert calculate_status(actual, 0.47, 0.53) == expected


def test_absent_reading_is_pending_even_with_inverted_bounds():
    assert calculate_status(None, 5.0, 1.0) == "pending"


def test_update_spec_recomputes_only_matching_entry():
    inspection = StaticSpecInspection(INITIAL_SPECS)

    updated = inspection.update_spec(2, 0.30)

    assert updated is not None
    assert updated.status == "fail"
    assert updated.actual == 0.30
    statuses = {spec.id: spec.status for spec in inspection.specs}
    assert statuses == {1: "pending", 2: "fail", 3: "pending", 4: "pending"}


def test_update_spec_with_unknown_id_is_a_silent_noop():
    inspection = StaticSpecInspection(INITIAL_SPECS)
    before = inspection.specs

    assert inspection.update_spec(99, 1.0) is None
    assert inspection.specs == before


def test_clearing_a_reading_returns_to_pending():
    inspection = _single_spec_inspection()
    inspection.update_spec(1, 0.60)
    assert inspection.fail_count == 1

    inspection.update_spec(1, None)

    spec = inspection.get_spec(1)
    assert spec.actual is None
    assert spec.status == "pending"
    assert inspection.has_failed is False


def test_non_finite_reading_is_treated_as_clear():
    inspection = _single_spec_inspection()
    inspection.update_spec(1, math.nan)
    assert inspection.get_spec(1).status == "pending"


def test_counts_partition_the_list():
    inspection = StaticSpecInspection(INITIAL_SPECS)
    inspection.update_spec(1, 0.50)
    inspection.update_spec(2, 0.10)

    assert inspection.pass_count == 1
    assert inspection.fail_count == 1
    assert inspection.pending_count == 2
    assert inspection.pass_count + inspection.fail_count + inspection.pending_count == len(inspection.specs)
    assert inspection.all_passed is False
    assert inspection.has_failed is True


def test_all_passed_requires_every_spec_to_pass():
    inspection = StaticSpecInspection(INITIAL_SPECS)
    for spec_id, reading in ((1, 0.5), (2, 0.25), (3, 0.28), (4, 45.0)):
        inspection.update_spec(spec_id, reading)

    assert inspection.all_passed is True
    assert inspection.release_gate() == ReleaseGate(has_failures=False, complete=True)


def test_empty_spec_list_is_never_all_passed():
    inspection = StaticSpecInspection([])

    assert inspection.all_passed is False
    assert inspection.release_gate().releasable is False


def test_reset_restores_template_and_clears_disposition():
    disposition = LotDisposition()
    inspection = StaticSpecInspection(INITIAL_SPECS, disposition=disposition)
    pristine = inspection.specs
    inspection.update_spec(1, 0.60)
    disposition.reject()

    inspection.reset_specs()
    first = inspection.specs
    inspection.reset_specs()

    assert first == pristine
    assert inspection.specs == first
    assert disposition.released is False
    assert disposition.rejected is False
    assert all(spec.actual is None and spec.status == "pending" for spec in first)


def test_template_bounds_survive_reset():
    inspection = _single_spec_inspection()
    inspection.update_spec(1, 0.5)
    inspection.reset_specs()

    spec = inspection.get_spec(1)
    assert (spec.min, spec.max, spec.characteristic) == (0.47, 0.53, "Distancia")

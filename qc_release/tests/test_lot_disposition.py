from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from qc_release.lot_disposition import (  # noqa: E402
    REASON_HAS_FAILURES,
    REASON_INCOMPLETE,
    REASON_LOT_FINALIZED,
    LotDisposition,
    ReleaseGate,
)

READY = ReleaseGate(has_failures=False, complete=True)


def test_initial_state_is_open():
    disposition = LotDisposition()
    assert disposition.state == "open"
    assert disposition.finalized is False


def test_reject_is_unconditional_from_open():
    disposition = LotDisposition()

    result = disposition.reject()

    assert result.success is True
    assert disposition.state == "rejected"
    assert (disposition.released, disposition.rejected) == (False, True)


def test_release_reports_failures_and_incompleteness_separately():
    disposition = LotDisposition()

    failing = disposition.release(ReleaseGate(has_failures=True, complete=False))
    incomplete = disposition.release(ReleaseGate(has_failures=False, complete=False))

    assert failing.success is False
    assert failing.reason == REASON_HAS_FAILURES
    assert incomplete.success is False
    assert incomplete.reason == REASON_INCOMPLETE
    assert failing.message != incomplete.message
    assert disposition.state == "open"


def test_release_invokes_certificate_hook_exactly_once():
    disposition = LotDisposition()
    calls = []

    def hook():
        calls.append(1)
        return Path("cert.pdf")

    result = disposition.release(READY, on_release=hook)
    again = disposition.release(READY, on_release=hook)

    assert result.success is True
    assert result.certificate_path == Path("cert.pdf")
    assert again.success is False
    assert again.reason == REASON_LOT_FINALIZED
    assert calls == [1]


def test_certificate_failure_does_not_revert_release():
    disposition = LotDisposition()

    def broken_hook():
        raise RuntimeError("printer on fire")

    result = disposition.release(READY, on_release=broken_hook)

    assert result.success is True
    assert result.state == "released"
    assert "printer on fire" in result.certificate_error
    assert disposition.released is True


def test_terminal_states_are_mutually_exclusive():
    disposition = LotDisposition()
    disposition.release(READY)

    result = disposition.reject()

    assert result.success is False
    assert result.reason == REASON_LOT_FINALIZED
    assert (disposition.released, disposition.rejected) == (True, False)


def test_reset_reopens_the_lot():
    disposition = LotDisposition()
    disposition.reject()
    disposition.reset()

    assert disposition.state == "open"
    assert disposition.release(READY).success is True

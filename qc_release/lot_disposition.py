from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Literal, Optional

logger = logging.getLogger(__name__)

DispositionState = Literal["open", "released", "rejected"]

REASON_HAS_FAILURES = "has_failures"
REASON_INCOMPLETE = "incomplete"
REASON_LOT_FINALIZED = "lot_finalized"

REASON_MESSAGES = {
    REASON_HAS_FAILURES: "Cannot approve: there are out-of-tolerance readings.",
    REASON_INCOMPLETE: "Cannot approve: not all characteristics inspected.",
    REASON_LOT_FINALIZED: "Lot disposition is final for this session.",
}

CertificateHook = Callable[[], Optional[Path]]


@dataclass(frozen=True)
class ReleaseGate:
    """Aggregate verdict a validator hands to the disposition gate."""

    has_failures: bool
    complete: bool

    @property
    def releasable(self) -> bool:
        return self.complete and not self.has_failures


@dataclass(frozen=True)
class DispositionResult:
    success: bool
    state: DispositionState
    reason: str | None = None
    message: str = ""
    certificate_path: Path | None = None
    certificate_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "state": self.state,
            "reason": self.reason,
            "message": self.message,
            "certificate_path": str(self.certificate_path) if self.certificate_path else None,
            "certificate_error": self.certificate_error,
        }


class LotDisposition:
    """
    One-way release/reject decision for a lot.

    ``open`` moves to ``released`` or ``rejected`` exactly once; only
    :meth:`reset` (end of inspection cycle) returns it to ``open``. Guard
    failures are reported through :class:`DispositionResult`, never raised.
    """

    def __init__(self) -> None:
        self.released = False
        self.rejected = False

    @property
    def state(self) -> DispositionState:
        if self.released:
            return "released"
        if self.rejected:
            return "rejected"
        return "open"

    @property
    def finalized(self) -> bool:
        return self.released or self.rejected

    def release(self, gate: ReleaseGate, *, on_release: CertificateHook | None = None) -> DispositionResult:
        if self.finalized:
            return self._refused(REASON_LOT_FINALIZED)
        # Failures are reported ahead of incompleteness.
        if gate.has_failures:
            return self._refused(REASON_HAS_FAILURES)
        if not gate.complete:
            return self._refused(REASON_INCOMPLETE)

        self.released = True
        logger.info("Lot released")

        certificate_path: Path | None = None
        certificate_error: str | None = None
        if on_release is not None:
            try:
                certificate_path = on_release()
            except Exception as exc:
                certificate_error = f"Certificate generation failed: {exc}"
                logger.warning("Lot released but certificate generation failed: %s", exc)

        return DispositionResult(
            success=True,
            state=self.state,
            message="Lot approved for release.",
            certificate_path=certificate_path,
            certificate_error=certificate_error,
        )

    def reject(self) -> DispositionResult:
        if self.finalized:
            return self._refused(REASON_LOT_FINALIZED)
        self.rejected = True
        logger.info("Lot rejected")
        return DispositionResult(success=True, state=self.state, message="Lot rejected.")

    def reset(self) -> None:
        self.released = False
        self.rejected = False

    def to_dict(self) -> dict[str, Any]:
        return {"state": self.state, "released": self.released, "rejected": self.rejected}

    def _refused(self, reason: str) -> DispositionResult:
        logger.info("Disposition refused: %s", reason)
        return DispositionResult(
            success=False,
            state=self.state,
            reason=reason,
            message=REASON_MESSAGES[reason],
        )

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable

from .catalog import SCANNED_LOT, VALID_LOT_PREFIXES

logger = logging.getLogger(__name__)

MIN_LOT_LENGTH = 6
GENERIC_LOT_PATTERN = re.compile(r"^[A-Z0-9]{6,}$", re.IGNORECASE)

INVALID_FORMAT_ERROR = "Invalid lot format"
LOOKUP_BUSY_ERROR = "Lot lookup already in progress"
LOOKUP_CANCELLED_ERROR = "Lot lookup cancelled"


@dataclass(frozen=True)
class LotScanResult:
    success: bool
    lot: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "lot": self.lot, "error": self.error}


def normalize_lot_number(raw: str) -> str:
    return (raw or "").strip().upper()


def is_valid_lot_format(lot_number: str, prefixes: Iterable[str] = VALID_LOT_PREFIXES) -> bool:
    if len(lot_number) < MIN_LOT_LENGTH:
        return False
    prefix = lot_number[:3].upper()
    return prefix in set(prefixes) or bool(GENERIC_LOT_PATTERN.match(lot_number))


class LotLookupService:
    """
    Mock lot resolver behind the kiosk scan bar.

    Only one lookup may be in flight; a second submit while ``loading`` is
    refused instead of queued.
    """

    def __init__(
        self,
        *,
        delay_seconds: float = 0.8,
        lot_template: dict[str, Any] | None = None,
        prefixes: Iterable[str] = VALID_LOT_PREFIXES,
    ) -> None:
        self.delay_seconds = delay_seconds
        self.lot_template = dict(lot_template or SCANNED_LOT)
        self.prefixes = tuple(prefix.upper() for prefix in prefixes)
        self.loading = False

    async def lookup(self, raw_scan: str) -> LotScanResult:
        lot_number = normalize_lot_number(raw_scan)
        if not is_valid_lot_format(lot_number, self.prefixes):
            logger.info("Rejected lot scan with invalid format: %r", raw_scan)
            return LotScanResult(success=False, error=INVALID_FORMAT_ERROR)
        if self.loading:
            return LotScanResult(success=False, error=LOOKUP_BUSY_ERROR)

        self.loading = True
        try:
            if self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)
            lot = self._resolve(lot_number)
        except Exception as exc:
            logger.warning("Lot lookup failed for %s: %s", lot_number, exc)
            return LotScanResult(success=False, error=f"Lot lookup failed: {exc}")
        finally:
            self.loading = False

        logger.info("Resolved lot %s", lot_number)
        return LotScanResult(success=True, lot=lot)

    def _resolve(self, lot_number: str) -> dict[str, Any]:
        lot = dict(self.lot_template)
        lot["lot_number"] = lot_number
        return lot

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Literal

from .auth import CredentialAuthenticator, CurrentUser, has_permission
from .catalog import INITIAL_SPECS
from .certificate_pdf import CertificateData, CertificatePdfBuilder, certificate_number
from .field_validation import DynamicFieldInspection
from .inspection_specs import CharacteristicSpec, StaticSpecInspection
from .kpis import AuditLog, KpiTracker
from .lot_disposition import DispositionResult, LotDisposition, ReleaseGate
from .lot_lookup import LOOKUP_CANCELLED_ERROR, LotLookupService, LotScanResult
from .part_config_store import PartConfigStore
from .production import ProductionOutput, build_production_output
from .shipments import PartialShipmentTracker

logger = logging.getLogger(__name__)

InspectionMode = Literal["static", "dynamic"]

EDIT_READ_ONLY = "read_only"
EDIT_LOT_FINALIZED = "lot_finalized"
EDIT_NO_PART = "no_active_part"
NOT_AUTHORIZED = "not_authorized"

EDIT_MESSAGES = {
    EDIT_READ_ONLY: "Inspection values are read-only for the current role.",
    EDIT_LOT_FINALIZED: "Lot has been dispositioned; inspection is locked.",
    EDIT_NO_PART: "No part inspection is active.",
    NOT_AUTHORIZED: "Current role may not disposition lots.",
}


@dataclass(frozen=True)
class EditResult:
    accepted: bool
    reason: str | None = None
    entry: dict[str, Any] | None = None

    @property
    def message(self) -> str:
        return EDIT_MESSAGES.get(self.reason or "", "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "accepted": self.accepted,
            "reason": self.reason,
            "message": self.message,
            "entry": self.entry,
        }


class InspectionSession:
    """
    Everything one kiosk shift works on: the scanned lot, who is logged in,
    the active inspection and its disposition.

    Created at session start and passed to whoever needs it. ``end_shift``
    tears it back down to the initial state. Edit and disposition calls are
    gated here on role and on the lot not being finalized; the validators
    themselves accept edits unconditionally.
    """

    def __init__(
        self,
        *,
        part_store: PartConfigStore,
        lot_lookup: LotLookupService | None = None,
        authenticator: CredentialAuthenticator | None = None,
        certificate_builder: CertificatePdfBuilder | None = None,
        certificates_dir: Path | None = None,
        certificate_enabled: bool = True,
        customer_name: str = "",
        spec_template: Iterable[CharacteristicSpec | dict[str, Any]] = INITIAL_SPECS,
    ) -> None:
        self.part_store = part_store
        self.lot_lookup = lot_lookup or LotLookupService()
        self.authenticator = authenticator or CredentialAuthenticator()
        self.certificate_builder = certificate_builder or CertificatePdfBuilder()
        self.certificates_dir = certificates_dir
        self.certificate_enabled = certificate_enabled
        self.customer_name = customer_name

        self.audit_log = AuditLog()
        self.kpis = KpiTracker()
        self.disposition = LotDisposition()
        self.static_inspection = StaticSpecInspection(spec_template, disposition=self.disposition)

        self.scanned_lot: dict[str, Any] | None = None
        self.current_user: CurrentUser | None = None
        self.current_role = "operator"
        self.production: ProductionOutput | None = None
        self.dynamic_inspection: DynamicFieldInspection | None = None
        self.active_part_id: str | None = None
        self.mode: InspectionMode = "static"
        self.shipments: PartialShipmentTracker | None = None
        self.certificate_path: Path | None = None
        self._certificate_sequence = 0
        self._inspected_lot_number: str | None = None
        self._scan_generation = 0

    # -- session state -------------------------------------------------

    @property
    def is_kiosk_mode(self) -> bool:
        return self.scanned_lot is None

    @property
    def read_only(self) -> bool:
        return not has_permission(self.current_role, "edit_inspection_values")

    @property
    def lot_finalized(self) -> bool:
        return self.disposition.finalized

    @property
    def actor_name(self) -> str:
        return self.current_user.name if self.current_user else "Operator"

    async def scan_lot(self, raw_scan: str) -> LotScanResult:
        generation = self._scan_generation
        result = await self.lot_lookup.lookup(raw_scan)
        if not result.success or result.lot is None:
            return result
        if generation != self._scan_generation:
            # Lot was cleared while this lookup was in flight.
            logger.info("Discarding lot lookup result for %s after clear", result.lot.get("lot_number"))
            return LotScanResult(success=False, error=LOOKUP_CANCELLED_ERROR)

        lot_number = str(result.lot.get("lot_number", ""))
        self.scanned_lot = result.lot
        if lot_number != self._inspected_lot_number:
            if self._inspected_lot_number is not None:
                self.reset_inspection()
            self._inspected_lot_number = lot_number
            self.shipments = PartialShipmentTracker(
                order_id=str(result.lot.get("order_number", "")),
                lot_number=lot_number,
                total_qty=int(result.lot.get("qty_required", 0)),
            )
        self._audit(f"Scanned Lot #{lot_number}")
        return result

    def authenticate(self, pin: str, target_role: str) -> dict[str, Any]:
        if target_role == "operator":
            self.switch_to_operator()
            return {"success": True, "error": None}
        result = self.authenticator.authenticate(pin, target_role)
        if not result.success or result.user is None:
            logger.info("Authentication failed for role %s", target_role)
            return {"success": False, "error": result.error}
        self.current_user = result.user
        self.current_role = result.user.role
        self._audit(f"Logged in as {target_role}")
        return {"success": True, "error": None}

    def switch_to_operator(self) -> None:
        self.current_role = "operator"
        self.current_user = None

    def clear_lot(self) -> None:
        """
        Back to kiosk mode. The inspection, disposition and shipments of the
        cleared lot are kept until a different lot is scanned.
        """
        self.scanned_lot = None
        self._scan_generation += 1

    def end_shift(self) -> None:
        self.clear_lot()
        self.shipments = None
        self._inspected_lot_number = None
        self.current_user = None
        self.current_role = "operator"
        self.production = None
        self.use_static_inspection()
        self.reset_inspection()
        logger.info("Shift ended; session reset")

    # -- production ----------------------------------------------------

    def save_production(self, finish_qty: int, scrap_qty: int = 0, defect_code: str | None = None) -> EditResult:
        if not has_permission(self.current_role, "edit_production_output"):
            return EditResult(accepted=False, reason=EDIT_READ_ONLY)
        output = build_production_output(finish_qty, scrap_qty, defect_code)
        self.production = output
        self.kpis.record_defect(output.defect_code)
        self._audit(f"Entered Finish Qty: {output.finish_qty}, Scrap: {output.scrap_qty}")
        if output.defect_code:
            self._audit(f"Selected Defect: {output.defect_code}")
        return EditResult(accepted=True, entry=output.to_dict())

    # -- inspection ----------------------------------------------------

    def use_static_inspection(self) -> None:
        self.mode = "static"
        self.active_part_id = None
        self.dynamic_inspection = None

    def start_part_inspection(self, part_id: str) -> DynamicFieldInspection:
        definitions = self.part_store.field_definitions(part_id)
        self.dynamic_inspection = DynamicFieldInspection(fields=definitions)
        self.active_part_id = part_id
        self.mode = "dynamic"
        return self.dynamic_inspection

    def update_spec(self, spec_id: int, actual: float | None) -> EditResult:
        blocked = self._edit_block_reason()
        if blocked:
            return EditResult(accepted=False, reason=blocked)
        updated = self.static_inspection.update_spec(spec_id, actual)
        return EditResult(accepted=True, entry=updated.to_dict() if updated else None)

    def update_field_value(self, field_id: str, value: Any) -> EditResult:
        blocked = self._edit_block_reason()
        if blocked:
            return EditResult(accepted=False, reason=blocked)
        if self.dynamic_inspection is None:
            return EditResult(accepted=False, reason=EDIT_NO_PART)
        updated = self.dynamic_inspection.update_field(field_id, value)
        return EditResult(accepted=True, entry=updated.to_dict() if updated else None)

    def reset_inspection(self) -> None:
        self.static_inspection.reset_specs()
        if self.dynamic_inspection is not None:
            self.dynamic_inspection.reset()
        self.certificate_path = None

    def release_gate(self) -> ReleaseGate:
        if self.mode == "dynamic" and self.dynamic_inspection is not None:
            return self.dynamic_inspection.release_gate()
        return self.static_inspection.release_gate()

    # -- disposition ---------------------------------------------------

    def approve(self) -> DispositionResult:
        if not has_permission(self.current_role, "release_lot"):
            return self._not_authorized()
        result = self.disposition.release(self.release_gate(), on_release=self._certificate_hook())
        if result.success:
            self.certificate_path = result.certificate_path
            self.kpis.record_release()
            self._audit(f"APPROVED RELEASE - Lot #{self._lot_number()}")
        return result

    def reject(self) -> DispositionResult:
        if not has_permission(self.current_role, "reject_lot"):
            return self._not_authorized()
        result = self.disposition.reject()
        if result.success:
            self.kpis.record_reject()
            self._audit(f"REJECTED - Lot #{self._lot_number()}")
        return result

    def certificate_data(self) -> CertificateData:
        lot = self.scanned_lot or {}
        part = self._active_part()
        today = date.today()
        if self.mode == "dynamic" and self.dynamic_inspection is not None:
            characteristics = self.dynamic_inspection.rows()
        else:
            characteristics = [spec.to_dict() for spec in self.static_inspection.specs]
        quantity = self.production.finish_qty if self.production else int(lot.get("qty_required", 0))
        return CertificateData(
            cert_number=certificate_number("BO", today, self._certificate_sequence + 1),
            customer=(part or {}).get("customer") or self.customer_name,
            part_number=str(lot.get("part_number") or (part or {}).get("part_number", "")),
            revision=str((part or {}).get("current_revision", "")),
            lot_number=self._lot_number(),
            product_description=str((part or {}).get("name", "")),
            quantity=quantity,
            processing_date=today.isoformat(),
            specifications=str((part or {}).get("specification") or lot.get("standard", "")),
            quality_inspector=self.actor_name,
            signature_date=today.strftime("%d-%b-%y"),
            raw_material_heat_number=str(lot.get("lot_heat_number", "")),
            characteristics=characteristics,
        )

    def snapshot(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "scanned_lot": self.scanned_lot,
            "is_kiosk_mode": self.is_kiosk_mode,
            "loading": self.lot_lookup.loading,
            "current_user": self.current_user.to_dict() if self.current_user else None,
            "current_role": self.current_role,
            "read_only": self.read_only,
            "mode": self.mode,
            "active_part_id": self.active_part_id,
            "production": self.production.to_dict() if self.production else None,
            "disposition": self.disposition.to_dict(),
            "specs": [spec.to_dict() for spec in self.static_inspection.specs],
            "spec_summary": self.static_inspection.summary(),
            "certificate_available": self.certificate_path is not None,
        }
        if self.dynamic_inspection is not None:
            payload["fields"] = self.dynamic_inspection.rows()
            payload["field_stats"] = self.dynamic_inspection.stats().to_dict()
        return payload

    def _edit_block_reason(self) -> str | None:
        if self.read_only:
            return EDIT_READ_ONLY
        if self.lot_finalized:
            return EDIT_LOT_FINALIZED
        return None

    def _certificate_hook(self):
        if not self.certificate_enabled or self.certificates_dir is None:
            return None

        def generate() -> Path:
            data = self.certificate_data()
            output_path = self.certificates_dir / f"{data.cert_number}_{data.lot_number or 'lot'}.pdf"
            path = self.certificate_builder.build_pdf(data=data, output_path=output_path)
            self._certificate_sequence += 1
            return path

        return generate

    def _active_part(self) -> dict[str, Any] | None:
        if self.active_part_id:
            return self.part_store.get_part(self.active_part_id)
        part_number = (self.scanned_lot or {}).get("part_number")
        if part_number:
            return self.part_store.get_part_by_number(str(part_number))
        return None

    def _lot_number(self) -> str:
        lot = self.scanned_lot or {}
        return str(lot.get("lot_number") or lot.get("lot_heat_number") or "")

    def _not_authorized(self) -> DispositionResult:
        return DispositionResult(
            success=False,
            state=self.disposition.state,
            reason=NOT_AUTHORIZED,
            message=EDIT_MESSAGES[NOT_AUTHORIZED],
        )

    def _audit(self, action: str) -> None:
        self.audit_log.record(user=self.actor_name, role=self.current_role, action=action)

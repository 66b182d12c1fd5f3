from __future__ import annotations

import logging
from typing import Union

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from .catalog import DEFECT_CODES
from .config import QcSettings
from .field_validation import FieldValueError
from .lot_disposition import DispositionResult
from .lot_lookup import LotLookupService
from .part_config_store import PartConfigNotFoundError, PartConfigStore, PartConfigStoreError
from .production import ProductionOutputError
from .session import EDIT_READ_ONLY, NOT_AUTHORIZED, EditResult, InspectionSession
from .shipments import ShipmentError

logger = logging.getLogger(__name__)


class ScanBody(BaseModel):
    lot_number: str


class AuthBody(BaseModel):
    pin: str = ""
    role: str


class ProductionBody(BaseModel):
    finish_qty: int
    scrap_qty: int = 0
    defect_code: str | None = None


class SpecReadingBody(BaseModel):
    actual: float | None = None


class FieldValueBody(BaseModel):
    value: Union[bool, float, str, None] = None


class FieldBody(BaseModel):
    id: str
    name: str
    type: str
    required: bool = False
    min: float | None = None
    max: float | None = None
    options: list[str] = Field(default_factory=list)
    tool: str | None = None


class PartCreateBody(BaseModel):
    part_number: str
    name: str
    customer: str = ""
    specification: str = ""
    current_revision: str = "Rev A"
    fields: list[FieldBody] = Field(default_factory=list)


class PartUpdateBody(BaseModel):
    name: str | None = None
    customer: str | None = None
    specification: str | None = None


class FieldUpdateBody(BaseModel):
    name: str | None = None
    type: str | None = None
    required: bool | None = None
    min: float | None = None
    max: float | None = None
    options: list[str] | None = None
    tool: str | None = None


class FieldOrderBody(BaseModel):
    field_ids: list[str]


class RevisionBody(BaseModel):
    change_note: str
    created_by: str = ""


class ShipmentBody(BaseModel):
    quantity: int


def build_session(settings: QcSettings) -> InspectionSession:
    part_store = PartConfigStore(path=settings.parts_path)
    try:
        part_store.load()
    except PartConfigStoreError as exc:
        logger.error("Part configuration store unreadable, using demo data: %s", exc)
        part_store.load_demo()
    return InspectionSession(
        part_store=part_store,
        lot_lookup=LotLookupService(delay_seconds=settings.lot_lookup_delay_seconds),
        certificates_dir=settings.certificates_dir,
        certificate_enabled=settings.certificate_enabled,
        customer_name=settings.customer_name,
    )


def get_session(request: Request) -> InspectionSession:
    return request.app.state.session


def _edit_response(result: EditResult) -> dict:
    if not result.accepted:
        status_code = 403 if result.reason == EDIT_READ_ONLY else 409
        raise HTTPException(status_code=status_code, detail=result.message)
    return result.to_dict()


def _disposition_response(result: DispositionResult) -> dict:
    if not result.success:
        status_code = 403 if result.reason == NOT_AUTHORIZED else 409
        raise HTTPException(status_code=status_code, detail=result.to_dict())
    return result.to_dict()


def create_app(settings: QcSettings | None = None) -> FastAPI:
    settings = settings or QcSettings.from_env()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    app = FastAPI(title="Quality Release Service", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.session = build_session(settings)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/api/session")
    async def get_session_state(session: InspectionSession = Depends(get_session)):
        return session.snapshot()

    @app.post("/api/session/scan")
    async def scan_lot(body: ScanBody, session: InspectionSession = Depends(get_session)):
        result = await session.scan_lot(body.lot_number)
        if not result.success:
            raise HTTPException(status_code=400, detail=result.error)
        return result.to_dict()

    @app.post("/api/session/auth")
    async def authenticate(body: AuthBody, session: InspectionSession = Depends(get_session)):
        result = session.authenticate(body.pin, body.role)
        if not result["success"]:
            raise HTTPException(status_code=401, detail=result["error"])
        return session.snapshot()

    @app.post("/api/session/operator")
    async def switch_to_operator(session: InspectionSession = Depends(get_session)):
        session.switch_to_operator()
        return session.snapshot()

    @app.post("/api/session/clear-lot")
    async def clear_lot(session: InspectionSession = Depends(get_session)):
        session.clear_lot()
        return session.snapshot()

    @app.post("/api/session/end-shift")
    async def end_shift(session: InspectionSession = Depends(get_session)):
        session.end_shift()
        return session.snapshot()

    @app.get("/api/defect-codes")
    async def list_defect_codes():
        return DEFECT_CODES

    @app.put("/api/production")
    async def save_production(body: ProductionBody, session: InspectionSession = Depends(get_session)):
        try:
            result = session.save_production(body.finish_qty, body.scrap_qty, body.defect_code)
        except ProductionOutputError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return _edit_response(result)

    @app.get("/api/inspection/specs")
    async def list_specs(session: InspectionSession = Depends(get_session)):
        return {
            "specs": [spec.to_dict() for spec in session.static_inspection.specs],
            "summary": session.static_inspection.summary(),
        }

    @app.put("/api/inspection/specs/{spec_id}")
    async def update_spec(spec_id: int, body: SpecReadingBody, session: InspectionSession = Depends(get_session)):
        return _edit_response(session.update_spec(spec_id, body.actual))

    @app.post("/api/inspection/reset")
    async def reset_inspection(session: InspectionSession = Depends(get_session)):
        session.reset_inspection()
        return session.snapshot()

    @app.post("/api/inspection/parts/{part_id}/start")
    async def start_part_inspection(part_id: str, session: InspectionSession = Depends(get_session)):
        try:
            session.start_part_inspection(part_id)
        except PartConfigNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        return session.snapshot()

    @app.get("/api/inspection/fields")
    async def list_fields(session: InspectionSession = Depends(get_session)):
        if session.dynamic_inspection is None:
            raise HTTPException(status_code=404, detail="No part inspection is active")
        return {
            "fields": session.dynamic_inspection.rows(),
            "stats": session.dynamic_inspection.stats().to_dict(),
        }

    @app.put("/api/inspection/fields/{field_id}")
    async def update_field_value(field_id: str, body: FieldValueBody, session: InspectionSession = Depends(get_session)):
        try:
            result = session.update_field_value(field_id, body.value)
        except FieldValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return _edit_response(result)

    @app.post("/api/lot/release")
    async def release_lot(session: InspectionSession = Depends(get_session)):
        return _disposition_response(session.approve())

    @app.post("/api/lot/reject")
    async def reject_lot(session: InspectionSession = Depends(get_session)):
        return _disposition_response(session.reject())

    @app.get("/api/lot/certificate")
    async def download_certificate(session: InspectionSession = Depends(get_session)):
        path = session.certificate_path
        if path is None or not path.exists():
            raise HTTPException(status_code=404, detail="Certificate not found")
        return FileResponse(path, media_type="application/pdf", filename=path.name)

    @app.get("/api/parts")
    async def list_parts(session: InspectionSession = Depends(get_session)):
        return {"parts": session.part_store.list_parts()}

    @app.post("/api/parts")
    async def create_part(body: PartCreateBody, session: InspectionSession = Depends(get_session)):
        payload = body.dict()
        try:
            return session.part_store.create_part(payload)
        except PartConfigStoreError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    @app.get("/api/parts/{part_id}")
    async def get_part(part_id: str, session: InspectionSession = Depends(get_session)):
        try:
            return session.part_store.get_part(part_id)
        except PartConfigNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))

    @app.patch("/api/parts/{part_id}")
    async def update_part(part_id: str, body: PartUpdateBody, session: InspectionSession = Depends(get_session)):
        updates = body.dict(exclude_unset=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")
        try:
            return session.part_store.update_part(part_id, updates)
        except PartConfigNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))

    @app.delete("/api/parts/{part_id}")
    async def delete_part(part_id: str, session: InspectionSession = Depends(get_session)):
        try:
            session.part_store.delete_part(part_id)
        except PartConfigNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        return {"deleted": part_id}

    @app.get("/api/parts/{part_id}/revisions")
    async def list_revisions(part_id: str, session: InspectionSession = Depends(get_session)):
        return {"revisions": session.part_store.revisions_for_part(part_id)}

    @app.post("/api/parts/{part_id}/revisions")
    async def create_revision(part_id: str, body: RevisionBody, session: InspectionSession = Depends(get_session)):
        try:
            return session.part_store.create_revision(part_id, body.change_note, body.created_by or session.actor_name)
        except PartConfigNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except PartConfigStoreError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    @app.post("/api/parts/{part_id}/fields")
    async def add_field(part_id: str, body: FieldBody, session: InspectionSession = Depends(get_session)):
        try:
            return session.part_store.add_field(part_id, body.dict())
        except PartConfigNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except PartConfigStoreError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    @app.patch("/api/parts/{part_id}/fields/{field_id}")
    async def update_field(
        part_id: str,
        field_id: str,
        body: FieldUpdateBody,
        session: InspectionSession = Depends(get_session),
    ):
        updates = body.dict(exclude_unset=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")
        try:
            return session.part_store.update_field(part_id, field_id, updates)
        except PartConfigNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except PartConfigStoreError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    @app.delete("/api/parts/{part_id}/fields/{field_id}")
    async def remove_field(part_id: str, field_id: str, session: InspectionSession = Depends(get_session)):
        try:
            return session.part_store.remove_field(part_id, field_id)
        except PartConfigNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))

    @app.put("/api/parts/{part_id}/fields/order")
    async def reorder_fields(part_id: str, body: FieldOrderBody, session: InspectionSession = Depends(get_session)):
        try:
            return session.part_store.reorder_fields(part_id, body.field_ids)
        except PartConfigNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))

    @app.get("/api/shipments")
    async def get_shipments(session: InspectionSession = Depends(get_session)):
        if session.scanned_lot is None or session.shipments is None:
            raise HTTPException(status_code=404, detail="No lot scanned")
        return session.shipments.to_dict()

    @app.post("/api/shipments")
    async def add_shipment(body: ShipmentBody, session: InspectionSession = Depends(get_session)):
        if session.scanned_lot is None or session.shipments is None:
            raise HTTPException(status_code=404, detail="No lot scanned")
        try:
            session.shipments.add_shipment(body.quantity, inspected_by=session.actor_name)
        except ShipmentError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return session.shipments.to_dict()

    @app.get("/api/kpis")
    async def get_kpis(session: InspectionSession = Depends(get_session)):
        return session.kpis.summary()

    @app.get("/api/audit-log")
    async def get_audit_log(session: InspectionSession = Depends(get_session)):
        return {"entries": session.audit_log.entries()}

    return app


app = create_app()

from __future__ import annotations

from typing import Any

# Demo master data for a single kiosk line. The session and stores copy these
# records before mutating them.

ROLES = ("operator", "inspector", "manager", "admin_engineer")

VALID_LOT_PREFIXES = ("STD", "EAC", "RBC", "LOT")

SCANNED_LOT: dict[str, Any] = {
    "part_number": "320-52761",
    "order_number": "EAC260201",
    "lot_heat_number": "296039",
    "qty_required": 3300,
    "standard": "ASTM A 967-05",
}

DEFECT_CODES: list[dict[str, str]] = [
    {"code": "Z02", "description": "OXIDO EN SUPERFICIE"},
    {"code": "Z03", "description": "DAÑADO (GOLPES/MARCAS)"},
    {"code": "Z04", "description": "MAL PLATINADO"},
    {"code": "Z05", "description": "REBABA"},
    {"code": "Z06", "description": "POROSIDAD"},
    {"code": "Z07", "description": "GRIETA"},
    {"code": "Z08", "description": "ACABADO DEFICIENTE"},
    {"code": "Z09", "description": "CONTAMINACION"},
    {"code": "Z10", "description": "DIMENSION FUERA DE ESPEC"},
    {"code": "Z11", "description": "DIAMETRO EXTERIOR GRANDE"},
    {"code": "Z12", "description": "DIAMETRO EXTERIOR CHICO"},
    {"code": "Z13", "description": "DIAMETRO INTERIOR GRANDE"},
    {"code": "Z14", "description": "DIAMETRO INTERIOR CHICO"},
    {"code": "Z15", "description": "LONGITUD FUERA DE ESPEC"},
    {"code": "Z16", "description": "ESPESOR FUERA DE ESPEC"},
    {"code": "Z17", "description": "CONCENTRICIDAD FUERA"},
    {"code": "Z18", "description": "PLANICIDAD FUERA"},
    {"code": "Z19", "description": "PERPENDICULARIDAD FUERA"},
    {"code": "Z20", "description": "PARALELISMO FUERA"},
    {"code": "Z21", "description": "ANGULARIDAD FUERA"},
    {"code": "Z22", "description": "RUGOSIDAD FUERA DE ESPEC"},
    {"code": "Z23", "description": "DUREZA FUERA DE ESPEC"},
    {"code": "Z24", "description": "TRATAMIENTO TERMICO MAL"},
    {"code": "Z25", "description": "RECUBRIMIENTO DEFICIENTE"},
    {"code": "Z26", "description": "SOLDADURA DEFECTUOSA"},
    {"code": "Z27", "description": "MATERIAL INCORRECTO"},
    {"code": "Z28", "description": "IDENTIFICACION INCORRECTA"},
    {"code": "Z29", "description": "EMPAQUE INADECUADO"},
    {"code": "Z30", "description": "CERTIFICADO FALTANTE"},
    {"code": "Z31", "description": "CANTIDAD INCORRECTA"},
    {"code": "Z32", "description": "MEZCLA DE PARTES"},
    {"code": "Z42", "description": "ROSCAS FUERA DE ESPEC"},
    {"code": "Z99", "description": "OTRO DEFECTO"},
]

INITIAL_SPECS: list[dict[str, Any]] = [
    {"id": 1, "characteristic": "Distancia", "tool": "Vernier", "min": 0.47, "max": 0.53},
    {"id": 2, "characteristic": "Radio", "tool": "Vernier", "min": 0.22, "max": 0.28},
    {"id": 3, "characteristic": "Diametro Hole", "tool": "Pin Gauge", "min": 0.25, "max": 0.31},
    {"id": 4, "characteristic": "Angulo", "tool": "Protractor", "min": 44.5, "max": 45.5},
]

CREDENTIALS: list[dict[str, str]] = [
    {"pin": "1234", "role": "inspector", "name": "Maria S."},
    {"pin": "5678", "role": "manager", "name": "Jorge L."},
    {"pin": "9999", "role": "admin_engineer", "name": "Gael R."},
]

INITIAL_PART_CONFIGS: list[dict[str, Any]] = [
    {
        "id": "part-outer-ring",
        "part_number": "320-52761",
        "name": "OUTER RING",
        "customer": "RBC HARTSVILLE",
        "current_revision": "Rev A",
        "specification": "RBC PS-20 REV. NC (AMS-2485M and MIL-DTL-13924F)",
        "fields": [
            {"id": "f-distance", "name": "Distancia", "type": "numeric", "required": True, "min": 0.47, "max": 0.53, "tool": "Vernier"},
            {"id": "f-radius", "name": "Radio", "type": "numeric", "required": True, "min": 0.22, "max": 0.28, "tool": "Vernier"},
            {"id": "f-burr", "name": "Libre de rebaba", "type": "boolean", "required": True, "tool": "Visual"},
            {"id": "f-finish", "name": "Acabado", "type": "select", "required": True, "options": ["Black Oxide", "Passivated", "Raw"]},
        ],
    },
    {
        "id": "part-inner-ring",
        "part_number": "320-52762",
        "name": "INNER RING",
        "customer": "RBC HARTSVILLE",
        "current_revision": "Rev A",
        "specification": "ASTM A 967-05",
        "fields": [
            {"id": "f-bore", "name": "Diametro Hole", "type": "numeric", "required": True, "min": 0.25, "max": 0.31, "tool": "Pin Gauge"},
            {"id": "f-runout", "name": "Runout", "type": "numeric", "required": True, "max": 0.02, "tool": "Dial Indicator"},
            {"id": "f-marking", "name": "Marcado legible", "type": "boolean", "required": False, "tool": "Visual"},
        ],
    },
]


def defect_description(code: str) -> str | None:
    for entry in DEFECT_CODES:
        if entry["code"] == code:
            return entry["description"]
    return None

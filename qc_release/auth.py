from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from .catalog import CREDENTIALS, ROLES

ROLE_PERMISSIONS: dict[str, tuple[str, ...]] = {
    "operator": (
        "view_lot_context",
        "edit_production_output",
        "select_defect_code",
        "view_inspection_specs",
    ),
    "inspector": (
        "view_lot_context",
        "view_production_output",
        "view_defect_code",
        "view_inspection_specs",
        "edit_inspection_values",
        "release_lot",
        "reject_lot",
        "record_shipment",
    ),
    "manager": (
        "view_kpis",
        "view_audit_log",
        "view_defect_trends",
        "download_reports",
    ),
    "admin_engineer": (
        "manage_parts",
        "create_part",
        "edit_part",
        "delete_part",
        "manage_revisions",
        "create_revision",
        "view_revision_history",
        "configure_system",
        "view_all_audit",
        "view_lot_context",
        "view_inspection_specs",
        "view_kpis",
        "view_audit_log",
    ),
}

AUTH_FAILED_ERROR = "Incorrect PIN or insufficient permissions"


@dataclass(frozen=True)
class CurrentUser:
    name: str
    role: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "role": self.role}


@dataclass(frozen=True)
class AuthResult:
    success: bool
    user: CurrentUser | None = None
    error: str | None = None


def has_permission(role: str, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(role, ())


class CredentialAuthenticator:
    def __init__(self, credentials: Iterable[dict[str, str]] = CREDENTIALS) -> None:
        self._credentials = [dict(entry) for entry in credentials]

    def authenticate(self, pin: str, target_role: str) -> AuthResult:
        if target_role not in ROLES:
            return AuthResult(success=False, error=f"Unknown role '{target_role}'")
        for credential in self._credentials:
            if credential.get("pin") == pin and credential.get("role") == target_role:
                return AuthResult(
                    success=True,
                    user=CurrentUser(name=credential.get("name", ""), role=target_role),
                )
        return AuthResult(success=False, error=AUTH_FAILED_ERROR)

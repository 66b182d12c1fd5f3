from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class QcSettings:
    data_dir: Path
    certificate_enabled: bool
    lot_lookup_delay_seconds: float
    log_level: str
    customer_name: str

    @property
    def parts_path(self) -> Path:
        return self.data_dir / "part_configs.json"

    @property
    def certificates_dir(self) -> Path:
        return self.data_dir / "certificates"

    @classmethod
    def from_env(cls) -> "QcSettings":
        data_dir = os.getenv("QC_DATA_DIR", "").strip()
        delay = _parse_optional_float(os.getenv("QC_LOT_LOOKUP_DELAY_SECONDS"))
        return cls(
            data_dir=Path(data_dir) if data_dir else BASE_DIR / "data",
            certificate_enabled=_parse_bool_env(os.getenv("QC_CERTIFICATE_ENABLED"), default=True),
            lot_lookup_delay_seconds=max(0.0, delay) if delay is not None else 0.8,
            log_level=(os.getenv("QC_LOG_LEVEL") or "INFO").strip().upper(),
            customer_name=(os.getenv("QC_CUSTOMER_NAME") or "RBC HARTSVILLE").strip(),
        )


def _parse_bool_env(raw_value: str | None, *, default: bool) -> bool:
    if raw_value is None:
        return default
    value = raw_value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_float(raw_value: str | None) -> float | None:
    if raw_value is None:
        return None
    try:
        parsed = float(raw_value)
    except Exception:
        return None
    return parsed

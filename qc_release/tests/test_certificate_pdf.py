from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from qc_release.certificate_pdf import CertificateData, CertificatePdfBuilder, certificate_number  # noqa: E402


def _certificate() -> CertificateData:
    return CertificateData(
        cert_number="BO-060226-01",
        customer="RBC HARTSVILLE",
        part_number="320-52761",
        revision="F",
        lot_number="296039",
        product_description="OUTER RING",
        quantity=3300,
        processing_date="2026-02-06",
        specifications="RBC PS-20 REV. NC (AMS-2485M and MIL-DTL-13924F)",
        quality_inspector="Gael Ramirez",
        signature_date="06-Feb-26",
        raw_material_heat_number="R3699",
        method="Hot Alkaline-Oxidizing",
        characteristics=[
            {"id": 1, "characteristic": "Distancia", "tool": "Vernier", "min": 0.47, "max": 0.53, "actual": 0.5, "status": "pass"},
            {"fieldId": "f-burr", "name": "Libre de rebaba", "value": True, "status": "pass"},
        ],
    )


def test_certificate_pdf_renders_all_sections(tmp_path: Path):
    output_path = tmp_path / "nested" / "certificate.pdf"

    CertificatePdfBuilder().build_pdf(data=_certificate(), output_path=output_path)

    assert output_path.exists()
    assert output_path.stat().st_size > 0
    pdf_bytes = output_path.read_bytes()
    for section_title in CertificatePdfBuilder.SECTION_TITLES:
        assert section_title.encode("utf-8") in pdf_bytes
    assert b"296039" in pdf_bytes


def test_certificate_pdf_handles_missing_characteristics(tmp_path: Path):
    data = _certificate()
    data.characteristics = []

    path = CertificatePdfBuilder().build_pdf(data=data, output_path=tmp_path / "empty.pdf")

    assert b"No characteristics recorded" in path.read_bytes()


def test_certificate_number_format():
    assert certificate_number("BO", date(2026, 2, 6)) == "BO-060226-01"
    assert certificate_number("BO", date(2026, 2, 6), 12) == "BO-060226-12"

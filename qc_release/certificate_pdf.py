from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any


class CertificatePdfError(RuntimeError):
    pass


@dataclass
class CertificateData:
    cert_number: str
    customer: str
    part_number: str
    revision: str
    lot_number: str
    product_description: str
    quantity: int
    processing_date: str
    specifications: str
    quality_inspector: str
    signature_date: str
    drawing_number: str = ""
    raw_material_heat_number: str = ""
    method: str = ""
    characteristics: list[dict[str, Any]] = field(default_factory=list)


def certificate_number(prefix: str, on_date: date, sequence: int = 1) -> str:
    return f"{prefix}-{on_date.strftime('%d%m%y')}-{sequence:02d}"


class CertificatePdfBuilder:
    SECTION_TITLES = (
        "1. Product Identification",
        "2. Inspection Results",
        "3. Statement of Conformance",
    )

    def build_pdf(self, *, data: CertificateData, output_path: Path) -> Path:
        try:
            from reportlab.lib import colors
            from reportlab.lib.pagesizes import letter
            from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
            from reportlab.lib.units import mm
            from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
        except Exception as exc:  # pragma: no cover - environment dependent
            raise CertificatePdfError(
                "reportlab is required for certificate export. Install reportlab."
            ) from exc

        output_path.parent.mkdir(parents=True, exist_ok=True)

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "CertTitle",
            parent=styles["Heading1"],
            fontSize=16,
            leading=20,
            textColor=colors.HexColor("#003399"),
            spaceAfter=8,
        )
        section_style = ParagraphStyle(
            "CertSection",
            parent=styles["Heading2"],
            fontSize=12,
            leading=14,
            textColor=colors.HexColor("#003399"),
            spaceBefore=10,
            spaceAfter=6,
        )
        text_style = ParagraphStyle(
            "CertText",
            parent=styles["BodyText"],
            fontSize=9,
            leading=12,
            textColor=colors.black,
        )

        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=letter,
            leftMargin=22 * mm,
            rightMargin=22 * mm,
            topMargin=16 * mm,
            bottomMargin=14 * mm,
            pageCompression=0,
            title=f"Certificate of Conformance {data.cert_number}",
        )

        identification_rows = [
            ["Cert. No.", data.cert_number],
            ["Customer", data.customer],
            ["Part Number", data.part_number],
            ["Revision", data.revision or "-"],
            ["Drawing Number", data.drawing_number or data.part_number],
            ["Lot Number", data.lot_number],
            ["Product Description", data.product_description or "-"],
            ["Raw Material Heat No.", data.raw_material_heat_number or "-"],
            ["Quantity", str(int(data.quantity))],
            ["Processing Date", data.processing_date],
            ["Specifications", data.specifications or "-"],
            ["Method", data.method or "-"],
        ]
        identification_table = Table(identification_rows, colWidths=[48 * mm, 124 * mm], hAlign="LEFT")
        identification_table.setStyle(
            TableStyle(
                [
                    ("BOX", (0, 0), (-1, -1), 0.8, colors.HexColor("#003399")),
                    ("INNERGRID", (0, 0), (-1, -1), 0.4, colors.HexColor("#A6B7CF")),
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("FONTNAME", (1, 0), (1, -1), "Helvetica"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("LEFTPADDING", (0, 0), (-1, -1), 6),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 4),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )

        results_rows = [["#", "Characteristic", "Tool", "Min", "Max", "Actual", "Status"]]
        if data.characteristics:
            for index, row in enumerate(data.characteristics, start=1):
                if not isinstance(row, dict):
                    continue
                results_rows.append(
                    [
                        str(row.get("id", index)),
                        str(row.get("characteristic") or row.get("name") or "-"),
                        str(row.get("tool") or "-"),
                        _format_bound(row.get("min")),
                        _format_bound(row.get("max")),
                        _format_actual(row.get("actual", row.get("value"))),
                        str(row.get("status", "pending")).upper(),
                    ]
                )
        else:
            results_rows.append(["-", "No characteristics recorded", "-", "-", "-", "-", "-"])

        results_table = Table(
            results_rows,
            colWidths=[10 * mm, 46 * mm, 28 * mm, 20 * mm, 20 * mm, 24 * mm, 24 * mm],
            repeatRows=1,
            hAlign="LEFT",
        )
        results_table.setStyle(
            TableStyle(
                [
                    ("BOX", (0, 0), (-1, -1), 0.7, colors.HexColor("#A6B7CF")),
                    ("INNERGRID", (0, 0), (-1, -1), 0.35, colors.HexColor("#CBD7E7")),
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#EAF2FF")),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("LEFTPADDING", (0, 0), (-1, -1), 4),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )

        statement_lines = [
            (
                "We certify that the material listed above has been processed and inspected "
                "in accordance with the referenced specifications and conforms to all "
                "applicable requirements."
            ),
            f"Quality Inspector: {data.quality_inspector}",
            f"Date: {data.signature_date}",
        ]

        story = [
            Paragraph("Certificate of Conformance", title_style),
            Paragraph(self.SECTION_TITLES[0], section_style),
            identification_table,
            Spacer(1, 8),
            Paragraph(self.SECTION_TITLES[1], section_style),
            results_table,
            Spacer(1, 8),
            Paragraph(self.SECTION_TITLES[2], section_style),
        ]
        story.extend(Paragraph(line, text_style) for line in statement_lines)

        try:
            doc.build(story)
        except Exception as exc:
            raise CertificatePdfError(f"Failed to generate certificate PDF: {exc}") from exc
        return output_path


def _format_bound(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{float(value):.2f}"
    return "-"


def _format_actual(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "OK" if value else "NG"
    if isinstance(value, (int, float)):
        return f"{float(value):.3f}"
    return str(value)

"""
PDF audit report built with reportlab's platypus layout engine.

Sections:
    - Header with tool version and generation time
    - Summary with health rate and counts per status
    - Secrets inventory table
    - Risk assessment: every non-healthy credential, expired first, then
      critical, then warning, each with a recommendation
    - Expiration timeline ordered by expiry date
    - "Page N of M" footer on every page

Severity colouring and ordering come only from each record's status and days
until expiry.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from io import BytesIO
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from secrets_audit import __version__
from secrets_audit.engine.registry import summarize
from secrets_audit.engine.status import CRITICAL_EXPIRY_DAYS, WARNING_EXPIRY_DAYS
from secrets_audit.enums import Status
from secrets_audit.models.domain import ClassifiedCredential
from secrets_audit.utils.dates import parse_calendar_date

PRIMARY = colors.HexColor("#1a56db")
DARK = colors.HexColor("#1f2937")
GRAY = colors.HexColor("#6b7280")
LIGHT_GRAY = colors.HexColor("#e5e7eb")
SECTION_BG = colors.HexColor("#f3f4f6")

STATUS_COLORS = {
    Status.HEALTHY: colors.HexColor("#16a34a"),
    Status.WARNING: colors.HexColor("#ea580c"),
    Status.CRITICAL: colors.HexColor("#dc2626"),
    Status.EXPIRED: colors.HexColor("#991b1b"),
}

# Risk assessment order
RISK_ORDER = (Status.EXPIRED, Status.CRITICAL, Status.WARNING)


def health_rate(summary: dict[str, int]) -> int:
    """Percentage of healthy credentials, 100 for an empty registry."""
    if summary["total"] == 0:
        return 100
    return round(summary["healthy"] / summary["total"] * 100)


def recommendation(record: ClassifiedCredential) -> str:
    """Remediation advice for a credential based on its status."""
    credential = record.credential
    assessment = record.assessment
    expiry_days = assessment.days_until_expiry

    if assessment.status is Status.EXPIRED:
        return (
            f"Immediately rotate this {credential.kind or 'secret'} from "
            f"{credential.provider or 'the provider'}. Expired secrets pose an active security risk."
        )
    if assessment.status is Status.CRITICAL:
        if expiry_days is not None and expiry_days < CRITICAL_EXPIRY_DAYS:
            return "This secret expires very soon. Schedule rotation now to avoid service disruption."
        return (
            f"This secret has exceeded its {credential.rotation_policy_days}-day rotation policy. "
            "Rotate as soon as possible."
        )
    if assessment.status is Status.WARNING:
        if expiry_days is not None and expiry_days < WARNING_EXPIRY_DAYS:
            return (
                f"Plan rotation before expiry date ({credential.expires_at}). "
                "Consider setting up automated rotation."
            )
        remaining = (credential.rotation_policy_days or 0) - (assessment.age_days or 0)
        return f"Approaching rotation deadline. Schedule rotation within the next {max(1, remaining)} days."
    return "No action required."


def risk_assessment(records: Sequence[ClassifiedCredential]) -> list[ClassifiedCredential]:
    """Non-healthy credentials, most severe first, stable within a status."""
    return sorted(
        (r for r in records if r.status is not Status.HEALTHY),
        key=lambda r: RISK_ORDER.index(r.status),
    )


def expiration_timeline(records: Sequence[ClassifiedCredential]) -> list[ClassifiedCredential]:
    """Credentials with a readable expiry date, soonest first."""
    dated = [r for r in records if parse_calendar_date(r.credential.expires_at) is not None]
    return sorted(dated, key=lambda r: parse_calendar_date(r.credential.expires_at))


def _expiry_color(days: int | None) -> Any:
    if days is None:
        return DARK
    if days < 0:
        return STATUS_COLORS[Status.EXPIRED]
    if days < CRITICAL_EXPIRY_DAYS:
        return STATUS_COLORS[Status.CRITICAL]
    if days < WARNING_EXPIRY_DAYS:
        return STATUS_COLORS[Status.WARNING]
    return STATUS_COLORS[Status.HEALTHY]


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so each footer can show the page count."""

    footer_text = ""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict[str, Any]] = []

    def showPage(self) -> None:  # noqa: N802
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(page_count)
            super().showPage()
        super().save()

    def _draw_footer(self, page_count: int) -> None:
        width, _ = self._pagesize
        self.setFont("Helvetica", 7)
        self.setFillColor(GRAY)
        self.drawCentredString(width / 2, 0.55 * inch, self.footer_text)
        self.drawCentredString(width / 2, 0.4 * inch, f"Page {self.getPageNumber()} of {page_count}")


class PDFReportBuilder:
    """Assemble the platypus story for an audit report."""

    def __init__(self, generated_at: datetime | None = None) -> None:
        self.generated_at = generated_at or datetime.now(UTC)
        self.styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "AuditTitle",
            parent=self.styles["Heading1"],
            fontSize=22,
            textColor=DARK,
            spaceAfter=6,
        )
        self.heading_style = ParagraphStyle(
            "AuditHeading",
            parent=self.styles["Heading2"],
            fontSize=13,
            textColor=PRIMARY,
            spaceBefore=14,
            spaceAfter=8,
        )
        self.body_style = ParagraphStyle("AuditBody", parent=self.styles["Normal"], fontSize=9, textColor=DARK)
        self.advice_style = ParagraphStyle(
            "AuditAdvice",
            parent=self.body_style,
            fontName="Helvetica-Oblique",
            fontSize=8,
            textColor=PRIMARY,
            spaceAfter=10,
        )

    @property
    def timestamp(self) -> str:
        return self.generated_at.strftime("%Y-%m-%d %H:%M %Z").strip()

    def _header(self) -> list[Any]:
        return [
            Paragraph("Secrets Audit Report", self.title_style),
            Paragraph(f"secrets-audit v{__version__} • {escape(self.timestamp)}", self.body_style),
            Spacer(1, 0.25 * inch),
        ]

    def _summary(self, summary: dict[str, int]) -> list[Any]:
        rate = health_rate(summary)
        attention = summary["warning"] + summary["critical"] + summary["expired"]
        plural = "" if summary["total"] == 1 else "s"
        data = [
            ["Health rate", "Tracked", "Healthy", "Warning", "Critical", "Expired"],
            [
                f"{rate}%",
                str(summary["total"]),
                str(summary["healthy"]),
                str(summary["warning"]),
                str(summary["critical"]),
                str(summary["expired"]),
            ],
        ]
        if rate >= 80:
            rate_color = STATUS_COLORS[Status.HEALTHY]
        elif rate >= 50:
            rate_color = STATUS_COLORS[Status.WARNING]
        else:
            rate_color = STATUS_COLORS[Status.CRITICAL]

        table = Table(data, colWidths=[1.1 * inch] * 6)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, -1), SECTION_BG),
                    ("TEXTCOLOR", (0, 0), (-1, 0), GRAY),
                    ("FONTSIZE", (0, 0), (-1, 0), 7),
                    ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 1), (-1, 1), 16),
                    ("TEXTCOLOR", (0, 1), (0, 1), rate_color),
                    ("TEXTCOLOR", (2, 1), (2, 1), STATUS_COLORS[Status.HEALTHY]),
                    ("TEXTCOLOR", (3, 1), (3, 1), STATUS_COLORS[Status.WARNING]),
                    ("TEXTCOLOR", (4, 1), (4, 1), STATUS_COLORS[Status.CRITICAL]),
                    ("TEXTCOLOR", (5, 1), (5, 1), STATUS_COLORS[Status.EXPIRED]),
                    ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                    ("TOPPADDING", (0, 1), (-1, 1), 6),
                    ("BOTTOMPADDING", (0, 1), (-1, 1), 10),
                ]
            )
        )
        return [
            Paragraph("Summary", self.heading_style),
            table,
            Spacer(1, 0.1 * inch),
            Paragraph(
                f"{summary['total']} secret{plural} tracked • "
                f"{summary['healthy']} healthy • {attention} need attention",
                self.body_style,
            ),
        ]

    def _inventory(self, records: Sequence[ClassifiedCredential]) -> list[Any]:
        data: list[list[Any]] = [["Status", "Name", "Provider", "Age (days)", "Expires", "Rotation"]]
        style: list[tuple[Any, ...]] = [
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("TEXTCOLOR", (0, 0), (-1, 0), GRAY),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("LINEBELOW", (0, 0), (-1, 0), 0.5, LIGHT_GRAY),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
        for row, record in enumerate(records, start=1):
            assessment = record.assessment
            expiry = assessment.days_until_expiry
            policy = record.credential.rotation_policy_days
            data.append(
                [
                    assessment.status.value.upper(),
                    Paragraph(f"<b>{escape(record.name)}</b>", self.body_style),
                    Paragraph(escape(record.credential.provider or "N/A"), self.body_style),
                    "N/A" if assessment.age_days is None else str(assessment.age_days),
                    "N/A" if expiry is None else f"{expiry}d",
                    f"{policy}d" if policy and policy > 0 else "N/A",
                ]
            )
            style.append(("TEXTCOLOR", (0, row), (0, row), STATUS_COLORS[assessment.status]))
            if expiry is not None and expiry < WARNING_EXPIRY_DAYS:
                style.append(("TEXTCOLOR", (4, row), (4, row), _expiry_color(expiry)))

        table = Table(
            data,
            colWidths=[0.9 * inch, 1.9 * inch, 1.2 * inch, 0.8 * inch, 0.8 * inch, 0.8 * inch],
            repeatRows=1,
        )
        table.setStyle(TableStyle(style))
        return [Paragraph("Secrets Inventory", self.heading_style), table]

    def _risks(self, records: Sequence[ClassifiedCredential]) -> list[Any]:
        at_risk = risk_assessment(records)
        if not at_risk:
            return []

        story: list[Any] = [Paragraph("Risk Assessment &amp; Recommendations", self.heading_style)]
        for record in at_risk:
            color = STATUS_COLORS[record.status]
            bar = Table(
                [[f"{record.status.value.upper()}: {record.name}"]],
                colWidths=[6.4 * inch],
            )
            bar.setStyle(
                TableStyle(
                    [
                        ("BACKGROUND", (0, 0), (-1, -1), color),
                        ("TEXTCOLOR", (0, 0), (-1, -1), colors.white),
                        ("FONTNAME", (0, 0), (-1, -1), "Helvetica-Bold"),
                        ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ]
                )
            )
            story.extend(
                [
                    bar,
                    Spacer(1, 4),
                    Paragraph(f"Issue: {escape(record.assessment.message)}", self.body_style),
                    Paragraph(f"Recommendation: {escape(recommendation(record))}", self.advice_style),
                ]
            )
        return story

    def _timeline(self, records: Sequence[ClassifiedCredential]) -> list[Any]:
        dated = expiration_timeline(records)
        if not dated:
            return []

        data: list[list[Any]] = []
        style: list[tuple[Any, ...]] = [("FONTSIZE", (0, 0), (-1, -1), 9)]
        for row, record in enumerate(dated):
            days = record.assessment.days_until_expiry
            remaining = f"Expired {abs(days)}d ago" if days is not None and days < 0 else f"{days} days remaining"
            data.append(
                [
                    Paragraph(f"<b>{escape(record.name)}</b>", self.body_style),
                    record.credential.expires_at,
                    remaining,
                ]
            )
            style.append(("TEXTCOLOR", (2, row), (2, row), _expiry_color(days)))

        table = Table(data, colWidths=[2.6 * inch, 1.2 * inch, 2.0 * inch])
        table.setStyle(TableStyle(style))
        return [Paragraph("Expiration Timeline", self.heading_style), table]

    def build_story(self, records: Sequence[ClassifiedCredential]) -> list[Any]:
        """All flowables for the report, in page order."""
        story = self._header() + self._summary(summarize(records))
        if records:
            story += self._inventory(records)
        story += self._risks(records)
        story += self._timeline(records)
        return story

    def build(self, records: Sequence[ClassifiedCredential]) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=50,
            rightMargin=50,
            topMargin=50,
            bottomMargin=60,
            title="secrets-audit Report",
            author="secrets-audit",
            subject="Secrets Audit Report",
            creator=f"secrets-audit v{__version__}",
        )
        footer = f"Generated by secrets-audit v{__version__} on {self.timestamp}"
        numbered = type("_FooterCanvas", (_NumberedCanvas,), {"footer_text": footer})
        doc.build(self.build_story(records), canvasmaker=numbered)
        return buffer.getvalue()


def render_pdf(records: Sequence[ClassifiedCredential], generated_at: datetime | None = None) -> bytes:
    """Render records as a PDF document and return its bytes."""
    return PDFReportBuilder(generated_at).build(records)

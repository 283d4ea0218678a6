"""
Report renderers.

Each renderer turns a list of classified credentials into a report. They
read the status, age, expiry countdown and message already attached to each
record and never classify anything themselves, nor modify their input.

Text and Markdown go through Jinja2 templates shipped in the package; JSON is
built directly; PDF lives in ``secrets_audit.rendering.pdf``.
"""

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from secrets_audit.engine.registry import summarize
from secrets_audit.enums import ReportFormat, Status
from secrets_audit.exceptions import ValidationError
from secrets_audit.models.domain import ClassifiedCredential
from secrets_audit.rendering.engine import ReportTemplateEngine

TEXT_TEMPLATE = "reports/text.txt.j2"
MARKDOWN_TEMPLATE = "reports/markdown.md.j2"


@lru_cache(maxsize=1)
def _engine() -> ReportTemplateEngine:
    return ReportTemplateEngine()


def _timestamp(generated_at: datetime | None) -> datetime:
    return generated_at or datetime.now(UTC)


def report_row(record: ClassifiedCredential) -> dict[str, Any]:
    """Flatten a classified credential into the fields the templates use."""
    credential = record.credential
    assessment = record.assessment
    return {
        "emoji": assessment.emoji,
        "name": credential.name,
        "provider": credential.provider,
        "type": credential.kind,
        "status": assessment.status.value,
        "message": assessment.message,
        "age": assessment.age_days,
        "days_until_expiry": assessment.days_until_expiry,
        "rotation_policy": credential.rotation_policy_days,
        "notes": credential.notes,
    }


def render_text(records: Sequence[ClassifiedCredential]) -> str:
    """Plain-text listing, one block per credential, then summary counts."""
    context = {
        "records": [report_row(r) for r in records],
        "summary": summarize(records),
    }
    return _engine().render(TEXT_TEMPLATE, context).rstrip("\n")


def render_json(records: Sequence[ClassifiedCredential], generated_at: datetime | None = None) -> str:
    """JSON document with a timestamp, summary counts and enriched records."""
    payload = {
        "generatedAt": _timestamp(generated_at).isoformat(),
        "summary": summarize(records),
        "secrets": [r.to_dict() for r in records],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_markdown(records: Sequence[ClassifiedCredential], generated_at: datetime | None = None) -> str:
    """Markdown report with a summary, a table and an Action Required section.

    The Action Required section only appears when at least one credential is
    not healthy.
    """
    rows = [report_row(r) for r in records]
    context = {
        "records": rows,
        "summary": summarize(records),
        "generated_at": _timestamp(generated_at).strftime("%Y-%m-%d %H:%M:%S %Z").strip(),
        "action_required": [row for row in rows if row["status"] != Status.HEALTHY.value],
    }
    return _engine().render(MARKDOWN_TEMPLATE, context).rstrip("\n")


def render(
    records: Sequence[ClassifiedCredential],
    fmt: ReportFormat | str = ReportFormat.TEXT,
    generated_at: datetime | None = None,
) -> str | bytes:
    """Render records in the requested format.

    Args:
        records: Classified credentials, in display order
        fmt: One of text, json, markdown or pdf
        generated_at: Timestamp printed in the report; defaults to now (UTC)

    Returns:
        The report; bytes for PDF, str for everything else

    Raises:
        ValidationError: If the format is unknown
    """
    try:
        report_format = ReportFormat(fmt)
    except ValueError as e:
        raise ValidationError(f"Unknown report format: {fmt}", field="format") from e

    if report_format is ReportFormat.TEXT:
        return render_text(records)
    if report_format is ReportFormat.JSON:
        return render_json(records, generated_at)
    if report_format is ReportFormat.MARKDOWN:
        return render_markdown(records, generated_at)

    from secrets_audit.rendering.pdf import render_pdf

    return render_pdf(records, generated_at)

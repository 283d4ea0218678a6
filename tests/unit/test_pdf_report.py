"""Tests for secrets_audit.rendering.pdf."""

from datetime import UTC, date, datetime, timedelta

import pytest
from reportlab.platypus import Paragraph

from secrets_audit.engine.registry import CredentialRegistry
from secrets_audit.enums import Status
from secrets_audit.rendering.pdf import (
    PDFReportBuilder,
    expiration_timeline,
    health_rate,
    recommendation,
    render_pdf,
    risk_assessment,
)

TODAY = date(2024, 6, 1)
GENERATED_AT = datetime(2024, 6, 1, 9, 0, tzinfo=UTC)


def _day(offset: int) -> str:
    return (TODAY + timedelta(days=offset)).isoformat()


@pytest.fixture
def registry():
    return CredentialRegistry(tier="pro", clock=lambda: TODAY)


@pytest.fixture
def records(registry):
    registry.add({"name": "warn-expiry", "expiresAt": _day(25)})
    registry.add({"name": "healthy", "expiresAt": _day(200)})
    registry.add({"name": "expired", "provider": "stripe", "expiresAt": _day(-4)})
    registry.add({"name": "crit-rotation", "lastRotated": _day(-95), "rotationPolicy": 90})
    registry.add({"name": "crit-expiry", "expiresAt": _day(2)})
    registry.add({"name": "warn-rotation", "lastRotated": _day(-80), "rotationPolicy": 90})
    return registry.list()


class TestHealthRate:
    """Health rate percentage."""

    def test_empty_registry_is_fully_healthy(self):
        """Test that an empty registry reports 100%."""
        assert health_rate({"total": 0, "healthy": 0}) == 100

    def test_rounded_percentage(self):
        """Test that the rate is rounded to a whole percent."""
        assert health_rate({"total": 3, "healthy": 2}) == 67


class TestRiskAssessment:
    """Ordering and recommendations for at-risk credentials."""

    def test_order_expired_critical_warning(self, records):
        """Test that risks are sorted by severity, stable within a status."""
        names = [r.name for r in risk_assessment(records)]
        assert names == ["expired", "crit-rotation", "crit-expiry", "warn-expiry", "warn-rotation"]

    def test_healthy_excluded(self, records):
        """Test that healthy credentials are not risks."""
        assert all(r.status is not Status.HEALTHY for r in risk_assessment(records))

    def test_recommendations(self, records):
        """Test the recommendation chosen for each situation."""
        by_name = {r.name: r for r in records}

        assert recommendation(by_name["expired"]).startswith("Immediately rotate this api_key from stripe")
        assert "expires very soon" in recommendation(by_name["crit-expiry"])
        assert "exceeded its 90-day rotation policy" in recommendation(by_name["crit-rotation"])
        assert f"before expiry date ({_day(25)})" in recommendation(by_name["warn-expiry"])
        assert "within the next 10 days" in recommendation(by_name["warn-rotation"])
        assert recommendation(by_name["healthy"]) == "No action required."


class TestExpirationTimeline:
    """Expiry timeline."""

    def test_sorted_by_expiry(self, records):
        """Test that only dated credentials appear, soonest first."""
        names = [r.name for r in expiration_timeline(records)]
        assert names == ["expired", "crit-expiry", "warn-expiry", "healthy"]


class TestPDFReportBuilder:
    """Document assembly."""

    def test_story_sections(self, records):
        """Test that every section heading is in the story."""
        story = PDFReportBuilder(GENERATED_AT).build_story(records)
        texts = [f.getPlainText() for f in story if isinstance(f, Paragraph)]

        assert "Secrets Audit Report" in texts
        assert "Summary" in texts
        assert "Secrets Inventory" in texts
        assert "Risk Assessment & Recommendations" in texts
        assert "Expiration Timeline" in texts
        assert "Issue: Expired 4 days ago" in texts

    def test_empty_story_has_no_tables_of_records(self):
        """Test that an empty report only has the header and summary."""
        story = PDFReportBuilder(GENERATED_AT).build_story([])
        texts = [f.getPlainText() for f in story if isinstance(f, Paragraph)]

        assert "Secrets Inventory" not in texts
        assert "Expiration Timeline" not in texts
        assert "0 secrets tracked • 0 healthy • 0 need attention" in texts

    def test_timestamp(self):
        """Test the timestamp shown in the header and footer."""
        assert PDFReportBuilder(GENERATED_AT).timestamp == "2024-06-01 09:00 UTC"


class TestRenderPdf:
    """End-to-end PDF rendering."""

    def test_returns_pdf_bytes(self, records):
        """Test that the output is a PDF document."""
        output = render_pdf(records, GENERATED_AT)

        assert isinstance(output, bytes)
        assert output.startswith(b"%PDF")

    def test_empty_registry(self):
        """Test that an empty registry still renders."""
        assert render_pdf([], GENERATED_AT).startswith(b"%PDF")

    def test_multi_page_report(self, registry):
        """Test that long inventories paginate."""
        for i in range(80):
            registry.add({"name": f"key-{i:02d}", "expiresAt": _day(i - 10)})

        output = render_pdf(registry.list(), GENERATED_AT)

        assert output.count(b"/Type /Page") > 2

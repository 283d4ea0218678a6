"""Report rendering for classified credentials.

Key Exports:
    render: Render records as text, JSON, Markdown or PDF.
    ReportTemplateEngine: Sandboxed Jinja2 engine behind the text and
        Markdown reports.

Example:
    >>> from secrets_audit.rendering import render
    >>> print(render(registry.list(), "markdown"))
"""

from secrets_audit.rendering.engine import ReportTemplateEngine
from secrets_audit.rendering.reporters import render, render_json, render_markdown, render_text

__all__ = ["ReportTemplateEngine", "render", "render_json", "render_markdown", "render_text"]

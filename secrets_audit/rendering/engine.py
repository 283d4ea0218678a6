"""Sandboxed Jinja2 engine for the text and Markdown reports.

Credential names, providers and notes are free text typed by users, so
templates render in a ``SandboxedEnvironment`` with ``StrictUndefined``: a
missing context key fails loudly instead of producing a silently blank
report.

Example:
    >>> engine = ReportTemplateEngine()
    >>> engine.render("reports/markdown.md.j2", context)
"""

from pathlib import Path
from typing import Any, cast

from jinja2 import FileSystemLoader, StrictUndefined, TemplateNotFound
from jinja2.sandbox import SandboxedEnvironment


def plural_days(count: int) -> str:
    """``"1 day"`` or ``"N days"``."""
    return f"{count} day" if count == 1 else f"{count} days"


def markdown_cell(value: Any) -> str:
    """Make a value safe to place inside a Markdown table cell."""
    return str(value).replace("|", "\\|").replace("\n", " ")


class ReportTemplateEngine:
    """Jinja2 rendering environment for report templates.

    Configuration:
        - Autoescape disabled (plain text and Markdown output)
        - trim_blocks/lstrip_blocks so block tags leave no blank lines
        - keep_trailing_newline preserves the template's final newline

    Attributes:
        template_dir: Resolved path to the template directory.
        env: The SandboxedEnvironment instance.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        """Initialize the engine.

        Args:
            template_dir: Root directory for templates. Defaults to the
                package's built-in ``templates`` directory.

        Raises:
            ValueError: If template_dir doesn't exist or isn't a directory.
        """
        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates"

        self.template_dir = template_dir.resolve()

        if not self.template_dir.exists():
            raise ValueError(f"Template directory does not exist: {self.template_dir}")
        if not self.template_dir.is_dir():
            raise ValueError(f"Template path is not a directory: {self.template_dir}")

        self.env = SandboxedEnvironment(
            loader=FileSystemLoader(str(self.template_dir)),
            undefined=StrictUndefined,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters.update(
            {
                "plural_days": plural_days,
                "md_cell": markdown_cell,
            }
        )

    def validate_template_path(self, template_path: str) -> Path:
        """Resolve a template path, refusing anything outside template_dir.

        Raises:
            ValueError: If the path escapes the template directory.
            TemplateNotFound: If the template file doesn't exist.
        """
        requested_path = (self.template_dir / template_path).resolve()

        try:
            requested_path.relative_to(self.template_dir)
        except ValueError as e:
            raise ValueError(f"Template path escapes template directory: {template_path}") from e

        if not requested_path.exists():
            raise TemplateNotFound(template_path)

        return requested_path

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a template with the given context.

        Raises:
            TemplateNotFound: If template doesn't exist.
            jinja2.UndefinedError: If the template uses a key missing from
                the context.
        """
        self.validate_template_path(template_path)
        template = self.env.get_template(template_path)
        return cast(str, template.render(**context))

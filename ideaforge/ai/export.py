"""
IdeaForge
Document Export Service.

Exports PRD/BRD documents (HTML content) to downloadable Markdown or
standalone HTML. Markdown conversion is markdownify's, run over a
BeautifulSoup tree with script/style content removed first.
"""

import html
import logging
import re

from bs4 import BeautifulSoup
from markdownify import ATX, MarkdownConverter

logger = logging.getLogger(__name__)

EXPORT_FORMATS = {
    "markdown": ("md", "text/markdown"),
    "html": ("html", "text/html"),
}

# Tags whose text must never reach the export
_DROPPED_TAGS = ("script", "style")

_converter = MarkdownConverter(heading_style=ATX, bullets="-", escape_misc=False)

_HTML_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>{title}</title>
    <style>
        body {{ font-family: system-ui, -apple-system, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }}
        h1, h2, h3 {{ color: #1a1a1a; }}
        li {{ margin: 8px 0; }}
    </style>
</head>
<body>
    <h1>{title}</h1>
    {body}
</body>
</html>
"""


def safe_filename(title: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return re.sub(r"[^a-zA-Z0-9]", "_", title)


class DocumentExporter:
    """Exports document HTML to downloadable formats."""

    def export(self, title: str, content: str, fmt: str) -> dict:
        """
        Returns:
            dict: content, filename, mime_type

        Raises:
            ValueError: unsupported ``fmt``.
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")
        extension, mime_type = EXPORT_FORMATS[fmt]
        body = self.export_markdown(title, content) if fmt == "markdown" else self.export_html(title, content)
        return {
            "content": body,
            "filename": f"{safe_filename(title)}.{extension}",
            "mime_type": mime_type,
        }

    def export_markdown(self, title: str, content: str) -> str:
        soup = BeautifulSoup(content or "", "html.parser")
        for tag in soup.find_all(_DROPPED_TAGS):
            tag.decompose()
        markdown = _converter.convert_soup(soup)
        markdown = re.sub(r"(?m)^[ \t]+$", "", markdown)
        markdown = re.sub(r"\n{3,}", "\n\n", markdown).strip()
        return f"# {title}\n\n{markdown}\n"

    def export_html(self, title: str, content: str) -> str:
        return _HTML_PAGE.format(title=html.escape(title), body=content or "")


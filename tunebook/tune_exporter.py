"""TuneExporter: turns an ABC file into HTML or Markdown sheet music."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from tunebook.abc_lines import classify_lines, header_value
from tunebook.bar_extractor import extract_preview
from tunebook.sheet_renderers import AbcjsMarkdownRenderer, SheetRenderer, VerovioHtmlRenderer
from tunebook.transposer import transpose_or_raise

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS: Final[set[str]] = {"html", "md-abcjs"}


class TuneExporter:
    """
    Render an ABC tune through a pluggable renderer, optionally transposed
    or cut down to a preview first.

    Supported formats:
    - ``html``: ABC -> Verovio -> inline SVG in a self-contained HTML file.
    - ``md-abcjs``: markdown file with embedded abcjs JavaScript renderer.
    """

    def __init__(self, title: str = "", output_format: str = "html") -> None:
        self.title = title
        normalized = output_format.strip().lower()
        if normalized not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
        self.output_format = normalized
        self.renderer = self._build_renderer(normalized)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_renderer(self, output_format: str) -> SheetRenderer:
        if output_format == "html":
            return VerovioHtmlRenderer()
        return AbcjsMarkdownRenderer()

    def _resolve_title(self, abc_text: str) -> str:
        if self.title:
            return self.title
        return header_value(classify_lines(abc_text).headers, "T") or ""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def prepare(
        self,
        abc_text: str,
        transpose_steps: int = 0,
        target_key: str | None = None,
        preview_bars: int | None = None,
    ) -> str:
        """
        Apply the optional transposition and preview to ``abc_text``.

        Raises:
            ValueError: If a transposition is requested without a target key.
            TranspositionError: If the tune cannot be transposed.
        """
        prepared = abc_text
        if transpose_steps:
            if not target_key:
                raise ValueError("A target key is required to transpose.")
            prepared = transpose_or_raise(prepared, transpose_steps, target_key)
        if preview_bars is not None:
            prepared = extract_preview(prepared, preview_bars)
        return prepared

    def render(self, abc_text: str) -> str:
        """Render prepared ABC text with the configured renderer."""
        return self.renderer.render(title=self._resolve_title(abc_text), abc_text=abc_text)

    def export(
        self,
        abc_path: str,
        output_path: str,
        transpose_steps: int = 0,
        target_key: str | None = None,
        preview_bars: int | None = None,
    ) -> None:
        """
        Read an ABC file, prepare it, render it and write the result to disk.

        Raises:
            ValueError: If rendering fails or required data is missing.
            TranspositionError: If the requested transposition fails.
            OSError: If a file cannot be read or written.
        """
        abc_text = Path(abc_path).read_text(encoding="utf-8")
        prepared = self.prepare(abc_text, transpose_steps, target_key, preview_bars)
        content = self.render(prepared)
        logger.info("Writing %s output to %s", self.output_format, output_path)

        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(content)

"""Renderer implementations for sheet music output formats."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, cast


def _escape_html(text: str) -> str:
    """Escape the three characters that are unsafe in HTML text content."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class SheetRenderer(ABC):
    """Abstract sheet renderer: ABC text in, file content out."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, *, title: str, abc_text: str) -> str:
        """Render ABC text into a file content string."""


class VerovioHtmlRenderer(SheetRenderer):
    """Render ABC text into a self-contained HTML document with inline SVG."""

    # Verovio A4 layout constants (verovio abstract units; ~1 unit ≈ 0.1 mm)
    _PAGE_HEIGHT: int = 2970  # A4 portrait height
    _PAGE_WIDTH: int = 2100  # A4 portrait width
    _SCALE: int = 50  # single-staff tunes read well a little larger than piano scores
    _PAGE_MARGIN: int = 100  # uniform margin on all four sides

    @property
    def default_extension(self) -> str:
        return ".html"

    def render(self, *, title: str, abc_text: str) -> str:
        if not abc_text.strip():
            raise ValueError("abc_text is required for HTML rendering.")

        svgs = self.render_svgs(abc_text)
        return self.build_html(title, svgs)

    def render_svgs(self, abc_text: str) -> list[str]:
        """
        Render an ABC tune to a list of SVG strings via verovio.

        Raises:
            ValueError: If verovio cannot load the ABC data.
        """
        import verovio

        tk = verovio.toolkit()
        tk.setOptions(
            {
                "pageHeight": self._PAGE_HEIGHT,
                "pageWidth": self._PAGE_WIDTH,
                "scale": self._SCALE,
                "pageMarginTop": self._PAGE_MARGIN,
                "pageMarginBottom": self._PAGE_MARGIN,
                "pageMarginLeft": self._PAGE_MARGIN,
                "pageMarginRight": self._PAGE_MARGIN,
                "adjustPageHeight": True,
                "font": "Leipzig",
            }
        )
        tk.setInputFrom("abc")

        loaded: bool = tk.loadData(abc_text)
        if not loaded:
            raise ValueError("verovio could not load the ABC data.")

        page_count: int = tk.getPageCount()
        return [self._render_page_svg(tk, page_no) for page_no in range(1, page_count + 1)]

    def _render_page_svg(self, toolkit: Any, page_no: int) -> str:
        """
        Render one page to SVG with compatibility for multiple verovio bindings.

        Some versions accept keyword arguments, while others only accept
        positional arguments.
        """
        try:
            return cast(str, toolkit.renderToSVG(pageNo=page_no, xmlDeclaration=False))
        except TypeError:
            try:
                return cast(str, toolkit.renderToSVG(page_no, False))
            except TypeError:
                return cast(str, toolkit.renderToSVG(page_no))

    def build_html(self, title: str, svgs: list[str]) -> str:
        """
        Wrap a list of SVG strings in a self-contained HTML document.

        Each SVG is placed in its own ``.page`` div, with print styles that
        break the page after each one.
        """
        title_safe = _escape_html(title)
        heading = f"  <h1>{title_safe}</h1>\n" if title else ""
        pages = "\n".join(f'  <div class="page">{svg}</div>' for svg in svgs)

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title_safe}</title>
  <style>
    *, *::before, *::after {{ box-sizing: border-box; }}
    body {{
      font-family: Georgia, serif;
      background: #f6f3ec;
      margin: 0;
      padding: 2rem;
    }}
    h1 {{
      text-align: center;
      font-size: 1.6rem;
      margin-bottom: 2rem;
      color: #2d3a2e;
    }}
    .page {{
      background: #fff;
      box-shadow: 0 2px 8px rgba(0, 0, 0, 0.12);
      margin: 0 auto 3rem;
      max-width: 860px;
      padding: 1rem;
    }}
    .page svg {{
      display: block;
      width: 100%;
      height: auto;
    }}
    @media print {{
      body {{
        background: #fff;
        padding: 0;
      }}
      .page {{
        box-shadow: none;
        page-break-after: always;
        max-width: 100%;
        padding: 0;
        margin: 0;
      }}
      .page:last-child {{
        page-break-after: avoid;
      }}
    }}
  </style>
</head>
<body>
{heading}{pages}
</body>
</html>"""


class AbcjsMarkdownRenderer(SheetRenderer):
    """Render ABC text into Markdown with an embedded abcjs script."""

    ABCJS_URL = "https://cdn.jsdelivr.net/npm/abcjs@6.4.4/dist/abcjs-basic-min.js"

    @property
    def default_extension(self) -> str:
        return ".md"

    def render(self, *, title: str, abc_text: str) -> str:
        if not abc_text.strip():
            raise ValueError("abc_text is required for md-abcjs rendering.")

        title_safe = _escape_html(title)
        abc_json = json.dumps({"abc": abc_text}, separators=(",", ":"))
        abc_json = abc_json.replace("</", "<\\/")

        return f"""# {title_safe}

This Markdown uses embedded JavaScript + abcjs. Open it in a Markdown viewer that allows script execution.

<style>
  #tunebook-score {{
    border: 1px solid #d8d8d8;
    border-radius: 8px;
    background: #ffffff;
    padding: 0.5rem;
    overflow-x: auto;
  }}
</style>

<div id="tunebook-score"></div>
<script id="tunebook-score-data" type="application/json">{abc_json}</script>
<script src="{self.ABCJS_URL}"></script>
<script>
  (function () {{
    const host = document.getElementById("tunebook-score");
    const payloadNode = document.getElementById("tunebook-score-data");

    if (!host || !payloadNode || !window.ABCJS) {{
      throw new Error("Missing abcjs score container.");
    }}

    const payload = JSON.parse(payloadNode.textContent || "{{}}");
    window.ABCJS.renderAbc(host, payload.abc || "", {{
      responsive: "resize",
      add_classes: true,
    }});
  }})();
</script>
"""

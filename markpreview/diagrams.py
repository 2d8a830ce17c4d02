"""Server-side rendering of deferred diagram blocks.

The Markdown pass leaves diagram fences as escaped ``<pre><code class="language-mermaid">``
blocks. :class:`DiagramRenderer` swaps each one for an SVG container, using the
Mermaid CLI by default.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Sequence

from bs4 import BeautifulSoup

from .cache import ProcessedCache, content_hash
from .config import RenderConfig
from .errors import DiagramRendererError, DiagramRendererUnavailableError

logger = logging.getLogger(__name__)

DiagramRunner = Callable[[Sequence[str]], subprocess.CompletedProcess[str]]
SvgRenderer = Callable[[str, str], str]


class DiagramRenderer:
    """Replace diagram code blocks with rendered SVG, remembering finished diagrams.

    Rendered SVG is reused while the input HTML stays the same; any change to the HTML
    or to the theme forces a fresh render. A failed diagram keeps its code block and
    gains an error class.
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        *,
        render_svg: SvgRenderer | None = None,
        runner: DiagramRunner | None = None,
    ) -> None:
        cfg = config or RenderConfig()
        self._language = cfg.diagram_language
        self._command = list(cfg.diagrams.command)
        self._timeout = cfg.diagrams.timeout
        self._theme = cfg.diagrams.theme
        self._runner = runner or self._run_subprocess
        self._render_svg = render_svg or self._render_with_cli
        self._cache: ProcessedCache[str] = ProcessedCache()

    @property
    def theme(self) -> str:
        return self._theme

    @property
    def cache(self) -> ProcessedCache[str]:
        return self._cache

    def set_theme(self, theme: str) -> None:
        if theme == self._theme:
            return
        self._theme = theme
        self._cache.clear()

    def process(self, html: str) -> str:
        self._cache.sync(html)
        soup = BeautifulSoup(html, "html.parser")

        for code in soup.find_all("code", class_=f"language-{self._language}"):
            pre = code.parent
            if pre is None or pre.name != "pre":
                continue

            source = code.get_text()
            diagram_id = f"{self._language}-{content_hash(source)}"
            svg = self._cache.get(diagram_id)
            if svg is None:
                try:
                    svg = self._render_svg(diagram_id, source)
                except Exception as exc:  # noqa: BLE001 - a broken diagram must not break the preview
                    logger.warning("Diagram %s failed to render: %s", diagram_id, exc)
                    classes = list(pre.get("class") or [])
                    error_class = f"{self._language}-error"
                    if error_class not in classes:
                        pre["class"] = [*classes, error_class]
                    continue
                self._cache.mark(diagram_id, svg)

            container = soup.new_tag("div", attrs={"id": diagram_id, "class": f"{self._language}-container"})
            container.append(BeautifulSoup(svg, "html.parser"))
            pre.replace_with(container)

        return str(soup)

    def _render_with_cli(self, diagram_id: str, source: str) -> str:
        with tempfile.TemporaryDirectory(prefix="markpreview-") as workdir:
            input_path = Path(workdir) / "diagram.mmd"
            output_path = Path(workdir) / "diagram.svg"
            input_path.write_text(source, encoding="utf-8")

            command = [
                *self._command,
                "-i",
                str(input_path),
                "-o",
                str(output_path),
                "-t",
                self._theme,
                "-I",
                f"{diagram_id}-svg",
            ]
            try:
                result = self._runner(command)
            except FileNotFoundError as exc:
                raise DiagramRendererUnavailableError(
                    "Mermaid CLI (mmdc) is not installed or not available in PATH."
                ) from exc
            except subprocess.TimeoutExpired as exc:
                raise DiagramRendererError(f"Diagram rendering timed out after {exc.timeout}s") from exc

            if result.returncode != 0:
                raise DiagramRendererError(
                    f"Mermaid CLI failed with exit code {result.returncode}: {result.stderr.strip()}"
                )
            if not output_path.exists():
                raise DiagramRendererError("Mermaid CLI produced no SVG output.")
            return output_path.read_text(encoding="utf-8")

    def _run_subprocess(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            timeout=self._timeout,
        )

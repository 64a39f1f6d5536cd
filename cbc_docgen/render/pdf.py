"""HTML → PDF 렌더러 — Playwright (Chromium headless)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from ..config import PDF_TIMEOUT_MS
from ..errors import PdfRenderError
from .table_renderer import ColumnLayout

logger = logging.getLogger(__name__)


class PdfRenderer(ABC):
    @abstractmethod
    def render(self, html: str, output_path: Path, layout: ColumnLayout) -> Path:
        """완성된 HTML을 output_path에 PDF로 쓰고 경로를 반환한다."""


class PlaywrightPdfRenderer(PdfRenderer):
    def __init__(self, timeout_ms: int = PDF_TIMEOUT_MS):
        self._timeout_ms = timeout_ms

    def render(self, html, output_path, layout):
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import sync_playwright

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(headless=True)
                try:
                    page = browser.new_page()
                    page.set_content(html, wait_until="networkidle", timeout=self._timeout_ms)
                    page.pdf(
                        path=str(output_path),
                        format=layout.page_format,
                        landscape=layout.landscape,
                        print_background=True,
                        prefer_css_page_size=True,
                    )
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise PdfRenderError(f"PDF 렌더링 실패: {e}") from e

        logger.info(f"PDF 생성: {output_path} ({layout.page_format}, "
                    f"{'landscape' if layout.landscape else 'portrait'})")
        return output_path

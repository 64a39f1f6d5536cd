"""문서 → 인쇄용 HTML.

templates/print.html 의 {{PLACEHOLDER}} 를 채워 완성 HTML을 만든다.
표 문서(Breakdown / Schemes)는 TableRenderer가 복원한 표를 고정 열 너비로,
나머지는 마크다운 → HTML 변환 결과를 본문으로 쓴다.
"""

from __future__ import annotations

import base64
import logging
import re
from typing import Optional

import httpx

from .._resources import get_template_dir
from ..document.models import DocumentType, GeneratedDocument
from ..parsing.normalizer import is_separator_row
from .table_renderer import ColumnLayout, TableData, TableRenderer, layout_for, split_cells

logger = logging.getLogger(__name__)

_DIAGRAM_REF = re.compile(r"!\[([^\]]*)\]\((/api/diagrams/[^)\s]+)\)")
_DIAGRAM_PLACEHOLDER = re.compile(r"\[DIAGRAM:[^\]]*\]")
_IMAGE = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)\)")
_HEADING = re.compile(r"^(#{1,4})\s+(.*)$")
_ORDERED = re.compile(r"^\d+[.)]\s+(.*)$")
_UNORDERED = re.compile(r"^[-*•]\s+(.*)$")
_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)")


def _esc(text: str) -> str:
    """HTML 이스케이프."""
    return (
        text
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _inline(text: str) -> str:
    """굵게/기울임 + 이미지 (이스케이프 후 적용)."""
    images: list[str] = []

    def _stash(m: re.Match) -> str:
        images.append(f'<img src="{_esc(m.group(2))}" alt="{_esc(m.group(1))}">')
        return f"\x00{len(images) - 1}\x00"

    text = _esc(_IMAGE.sub(_stash, text))
    text = _BOLD.sub(r"<strong>\1</strong>", text)
    text = _ITALIC.sub(r"<em>\1</em>", text)
    return re.sub(r"\x00(\d+)\x00", lambda m: images[int(m.group(1))], text)


# ── 표 ────────────────────────────────────────────────────────────────

def table_to_html(table: TableData, layout: Optional[ColumnLayout] = None) -> str:
    colgroup = ""
    if layout is not None and len(layout.widths) == len(table.headers):
        cols = "".join(f'<col style="width:{w}%">' for w in layout.widths)
        colgroup = f"<colgroup>{cols}</colgroup>"
    head = "".join(f"<th>{_inline(h)}</th>" for h in table.headers)
    body = ""
    for row in table.rows:
        body += "<tr>" + "".join(f"<td>{_inline(c)}</td>" for c in row) + "</tr>\n"
    return (
        f'<table class="data-table">{colgroup}'
        f"<thead><tr>{head}</tr></thead>\n<tbody>\n{body}</tbody></table>"
    )


def _markdown_table(lines: list[str]) -> str:
    rows = [split_cells(l) for l in lines if not is_separator_row(l)]
    if not rows:
        return ""
    return table_to_html(TableData(headers=rows[0], rows=rows[1:]))


# ── 마크다운 ──────────────────────────────────────────────────────────

def markdown_to_html(markdown: str) -> str:
    """제목(h1~h4), 목록, 굵게/기울임, 표, 이미지 정도만 지원하는 변환기."""
    text = _DIAGRAM_PLACEHOLDER.sub("", markdown)
    out: list[str] = []
    paragraph: list[str] = []
    list_tag: Optional[str] = None
    table_lines: list[str] = []

    def close_paragraph():
        if paragraph:
            out.append(f"<p>{'<br>'.join(_inline(p) for p in paragraph)}</p>")
            paragraph.clear()

    def close_list():
        nonlocal list_tag
        if list_tag:
            out.append(f"</{list_tag}>")
            list_tag = None

    def close_table():
        if table_lines:
            out.append(_markdown_table(table_lines))
            table_lines.clear()

    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("|"):
            close_paragraph()
            close_list()
            table_lines.append(line)
            continue
        close_table()

        if not line:
            close_paragraph()
            close_list()
            continue

        heading = _HEADING.match(line)
        if heading:
            close_paragraph()
            close_list()
            level = len(heading.group(1))
            out.append(f"<h{level}>{_inline(heading.group(2))}</h{level}>")
            continue

        for tag, pattern in (("ol", _ORDERED), ("ul", _UNORDERED)):
            item = pattern.match(line)
            if item:
                close_paragraph()
                if list_tag != tag:
                    close_list()
                    out.append(f"<{tag}>")
                    list_tag = tag
                out.append(f"<li>{_inline(item.group(1))}</li>")
                break
        else:
            close_list()
            paragraph.append(line)

    close_table()
    close_paragraph()
    close_list()
    return "\n".join(out)


def embed_images(content: str, base_url: str, client: Optional[httpx.Client] = None) -> str:
    """/api/diagrams/... 이미지 참조를 base64 data URI로 바꾼다. 실패한 참조는 그대로 둔다."""
    refs = _DIAGRAM_REF.findall(content)
    if not refs or not base_url:
        return content

    own_client = client is None
    client = client or httpx.Client(timeout=30)
    try:
        for alt, path in refs:
            url = base_url.rstrip("/") + path
            try:
                resp = client.get(url)
                resp.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"다이어그램 임베드 실패, 원래 참조 유지: {url} ({e})")
                continue
            mime = resp.headers.get("content-type", "image/png").split(";")[0]
            data = base64.b64encode(resp.content).decode("ascii")
            content = content.replace(f"]({path})", f"](data:{mime};base64,{data})")
    finally:
        if own_client:
            client.close()
    return content


# ── 문서 전체 ─────────────────────────────────────────────────────────

def _metadata_html(document: GeneratedDocument) -> str:
    items = [
        ("Grade", document.grade),
        ("Learning Area", document.subject),
        ("Term", document.term),
        ("Strand", document.strand),
        ("Sub-strand", document.substrand),
        ("School", document.school),
        ("Teacher", document.teacher_name),
    ]
    return "".join(
        f'<div class="meta-item"><span class="meta-label">{label}:</span> {_esc(value)}</div>'
        for label, value in items if value
    )


def _prose_only(content: str) -> str:
    return "\n".join(l for l in content.splitlines() if not l.strip().startswith("|"))


class HtmlDocumentBuilder:
    """GeneratedDocument → (HTML 문자열, 레이아웃)."""

    def __init__(self, table_renderer: Optional[TableRenderer] = None,
                 template_name: str = "print.html"):
        self._tables = table_renderer or TableRenderer()
        self._template_name = template_name

    def _load_template(self) -> str:
        return (get_template_dir() / self._template_name).read_text(encoding="utf-8")

    def build(self, document: GeneratedDocument,
              table: Optional[TableData] = None) -> tuple[str, ColumnLayout]:
        """표 문서는 table(없으면 직접 파싱)을, 그 외는 마크다운 변환 결과를 본문으로."""
        doc_type = DocumentType.parse(document.type)
        layout = layout_for(doc_type)

        if doc_type.is_tabular:
            table = table or self._tables.parse(doc_type, document.content)
            table_layout = layout if len(layout.widths) == len(table.headers) else None
            body = markdown_to_html(_prose_only(document.content)) + "\n" + table_to_html(table, table_layout)
        else:
            body = markdown_to_html(document.content)

        page_size = f"{layout.page_format} {'landscape' if layout.landscape else 'portrait'}"
        title = f"{doc_type.value}: {document.substrand or document.subject}"
        html = self._load_template()
        html = html.replace("{{PAGE_SIZE}}", page_size)
        html = html.replace("{{FONT_SIZE}}", layout.font_size)
        html = html.replace("{{PADDING}}", layout.body_padding)
        html = html.replace("{{TITLE}}", _esc(title))
        html = html.replace("{{DOC_TYPE}}", _esc(doc_type.value))
        html = html.replace("{{METADATA}}", _metadata_html(document))
        html = html.replace("{{CONTENT}}", body)
        return html, layout

"""TableRenderer 파서 체인 / HTML 변환 테스트."""

import pytest

from cbc_docgen.document.models import DocumentType, GeneratedDocument
from cbc_docgen.errors import RenderParseExhausted
from cbc_docgen.render.html import HtmlDocumentBuilder, embed_images, markdown_to_html
from cbc_docgen.render.table_renderer import TableRenderer, generic_table, layout_for

from conftest import breakdown_table

SCHEMES_HEADER = (
    "| WEEK | LESSON | STRAND | SUB-STRAND | SPECIFIC LEARNING OUTCOMES (SLO) | LEARNING EXPERIENCES "
    "| KEY INQUIRY QUESTION (KIQ) | LEARNING RESOURCES | ASSESSMENT | REFLECTION |"
)
SCHEMES_ROW = (
    "| Week 1 | Lesson 1 | Living Things | Animals | (a) identify different groups of animals "
    "| Observe animals | How do animals grow? | Charts | Observation | Were learners able to identify? |"
)


class TestBreakdownParsing:
    def test_strict(self):
        table = TableRenderer().parse(DocumentType.LESSON_CONCEPT_BREAKDOWN, breakdown_table(6))
        assert table.stage == "strict"
        assert len(table) == 6
        assert table.headers == ["Term", "Week", "Strand", "Sub-strand", "Learning Concept"]

    def test_tolerant_carries_forward(self):
        content = (
            "| Term 1 | Week 1 | Living Things | Animals | Groups of animals around us |\n"
            "| | | | | Animals that live in water |\n"
            "| Term 1 | Week 2 | Living Things | Animals | Life cycle of a butterfly |"
        )
        table = TableRenderer().parse("Lesson Concept Breakdown", content)
        assert table.stage == "tolerant"
        assert len(table) == 3
        assert table.rows[1][:2] == ["Term 1", "Week 1"]

    def test_split_rows_are_merged_first(self):
        content = breakdown_table(3).replace("| Animals | Learning concept number 2", "| Animals |\nLearning concept number 2")
        table = TableRenderer().parse(DocumentType.LESSON_CONCEPT_BREAKDOWN, content)
        assert table.stage == "strict"
        assert len(table) == 3


class TestSchemesParsing:
    def test_strict(self):
        content = f"{SCHEMES_HEADER}\n|---|---|---|---|---|---|---|---|---|---|\n{SCHEMES_ROW}"
        table = TableRenderer().parse(DocumentType.SCHEMES_OF_WORK, content)
        assert table.stage == "strict"
        assert len(table.rows[0]) == 10

    def test_tolerant_carries_forward(self):
        content = (
            "| Week 1 | Lesson 1 | Living Things | Animals | Identify groups of animals "
            "| Observe | Why? | Charts | Oral | Noted |\n"
            "| | Lesson 2 | | | Describe the life cycle of a butterfly "
            "| Draw | How? | Pictures | Written | Noted |"
        )
        table = TableRenderer().parse(DocumentType.SCHEMES_OF_WORK, content)
        assert table.stage == "tolerant"
        assert len(table) == 2
        assert table.rows[1][0] == "Week 1"
        assert table.rows[1][2] == "Living Things"

    def test_tolerant_pads_short_row(self):
        content = "| Week 1 | Lesson 1 | Living Things | Animals | Identify groups of animals | Observe |"
        table = TableRenderer().parse(DocumentType.SCHEMES_OF_WORK, content)
        assert table.stage == "tolerant"
        assert table.rows[0][5] == "Observe"
        assert table.rows[0][6:] == ["", "", "", ""]


class TestGeneric:
    def test_generic_for_untyped_document(self):
        content = "| Name | Score | Grade |\n|---|---|---|\n| Amina | 80 | A |\n| Baraka | 65 | B |"
        table = TableRenderer().parse(DocumentType.EXERCISES, content)
        assert table.stage == "generic"
        assert table.headers == ["Name", "Score", "Grade"]
        assert len(table) == 2

    def test_generic_table_none_without_rows(self):
        assert generic_table("| a | b | c |") is None

    def test_exhausted(self):
        with pytest.raises(RenderParseExhausted):
            TableRenderer().parse(DocumentType.SCHEMES_OF_WORK, "No table here at all.")


class TestLayout:
    def test_wide_types(self):
        breakdown = layout_for(DocumentType.LESSON_CONCEPT_BREAKDOWN)
        assert (breakdown.page_format, breakdown.landscape) == ("A3", True)
        assert len(breakdown.widths) == 5
        assert len(layout_for(DocumentType.SCHEMES_OF_WORK).widths) == 10

    def test_portrait_types(self):
        layout = layout_for(DocumentType.LESSON_NOTES)
        assert (layout.page_format, layout.landscape) == ("A4", False)


class TestMarkdownToHtml:
    def test_headings_lists_emphasis(self):
        html = markdown_to_html("# Title\n\n## Part\n- **bold** item\n- *soft* item\n\n1. first\n2. second")
        assert "<h1>Title</h1>" in html
        assert "<h2>Part</h2>" in html
        assert "<ul>" in html and "<strong>bold</strong>" in html and "<em>soft</em>" in html
        assert "<ol>" in html and "<li>second</li>" in html

    def test_table_and_escape(self):
        html = markdown_to_html("| A | B | C |\n|---|---|---|\n| 1 < 2 | x | y |")
        assert 'class="data-table"' in html
        assert "<th>A</th>" in html
        assert "1 &lt; 2" in html

    def test_diagram_placeholder_removed(self):
        html = markdown_to_html("Text before [DIAGRAM: butterfly life cycle] after")
        assert "DIAGRAM" not in html
        assert "Text before" in html

    def test_images(self):
        html = markdown_to_html("![Life cycle](data:image/png;base64,AAAA)")
        assert '<img src="data:image/png;base64,AAAA" alt="Life cycle">' in html


class TestEmbedImages:
    def test_embeds_and_keeps_failures(self):
        import httpx

        def handler(request):
            if request.url.path.endswith("ok.png"):
                return httpx.Response(200, content=b"PNG", headers={"content-type": "image/png"})
            return httpx.Response(404)

        content = "![a](/api/diagrams/ok.png)\n![b](/api/diagrams/missing.png)"
        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            result = embed_images(content, "https://app.test", client)
        assert "![a](data:image/png;base64,UE5H)" in result
        assert "![b](/api/diagrams/missing.png)" in result

    def test_no_base_url_untouched(self):
        content = "![a](/api/diagrams/ok.png)"
        assert embed_images(content, "") == content


class TestHtmlDocumentBuilder:
    def test_breakdown_document(self):
        document = GeneratedDocument(
            type=DocumentType.LESSON_CONCEPT_BREAKDOWN,
            grade="Grade 4", subject="Science", term="Term 1",
            strand="Living Things", substrand="Animals",
            content="# Lesson Concept Breakdown\n\n" + breakdown_table(3),
        )
        html, layout = HtmlDocumentBuilder().build(document)
        assert layout.landscape
        assert "size: A3 landscape" in html
        assert "<colgroup>" in html
        assert "Grade 4" in html
        assert "{{" not in html

    def test_notes_document(self):
        document = GeneratedDocument(
            type=DocumentType.LESSON_NOTES, grade="Grade 4", subject="Science",
            substrand="Animals", content="## Week 1: Groups of animals\n- Mammals feed their young on milk",
        )
        html, layout = HtmlDocumentBuilder().build(document)
        assert not layout.landscape
        assert "size: A4 portrait" in html
        assert "<h2>Week 1: Groups of animals</h2>" in html

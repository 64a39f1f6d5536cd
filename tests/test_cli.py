"""CLI 인자 파싱 / 모델 호출 없는 서브커맨드 테스트."""

import pytest

from cbc_docgen.cli import build_parser, main
from cbc_docgen.document.models import DocumentMetadata, DocumentType, GeneratedDocument
from cbc_docgen.linking.store import JsonDocumentStore

from conftest import breakdown_table


class TestParser:
    @pytest.mark.parametrize("alias, doc_type", [
        ("breakdown", DocumentType.LESSON_CONCEPT_BREAKDOWN),
        ("schemes", DocumentType.SCHEMES_OF_WORK),
        ("lesson-notes", DocumentType.LESSON_NOTES),
        ("Lesson Plan", DocumentType.LESSON_PLAN),
    ])
    def test_type_aliases(self, alias, doc_type):
        args = build_parser().parse_args(["generate", "--type", alias, "--grade", "Grade 4"])
        assert args.type is doc_type
        assert args.grade == "Grade 4"

    def test_unknown_type_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["generate", "--type", "report-card"])

    def test_derive_lesson(self):
        args = build_parser().parse_args(["derive", "abc", "--type", "lesson-plan", "--lesson", "3"])
        assert (args.source_id, args.lesson) == ("abc", 3)


class TestVisualsCommand:
    def test_lists_selected_concepts(self, tmp_path, capsys):
        store = JsonDocumentStore(tmp_path)
        document = store.create(GeneratedDocument(
            type=DocumentType.LESSON_CONCEPT_BREAKDOWN, grade="Grade 4",
            subject="Science and Technology", term="Term 1",
            content=breakdown_table(6), metadata=DocumentMetadata(total_lessons=6),
        ))
        main(["--store-dir", str(tmp_path), "visuals", document.id, "-k", "2"])
        out = capsys.readouterr().out
        assert "개념 6개 중 2개 선택" in out

    def test_missing_document_exits(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--store-dir", str(tmp_path), "visuals", "nope"])
        assert exc.value.code == 1
        assert "ERROR" in capsys.readouterr().err

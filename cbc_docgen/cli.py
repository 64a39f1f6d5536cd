"""CBC 교육 문서 생성 CLI.

사용법:
  # 개념 분해표 생성 (참조 데이터: data/curriculum_sample.json)
  cbc-docgen generate --type breakdown --grade "Grade 4" \\
      --learning-area "Science and Technology" \\
      --strand "Living Things and Their Environment" --substrand "Animals"

  # 분해표에서 파생 문서 생성 + 연결
  cbc-docgen derive <breakdown_id> --type lesson-notes
  cbc-docgen derive <breakdown_id> --type lesson-plan --lesson 3

  # PDF 렌더링
  cbc-docgen render <document_id> --output out/breakdown.pdf

  # 다이어그램 후보 확인
  cbc-docgen visuals <breakdown_id> --prompts

  # PDF용 Chromium 설치
  cbc-docgen install-browsers
"""

import argparse
import logging
import sys
from pathlib import Path

from . import _post_install
from ._resources import set_data_dir, set_template_dir
from .config import (
    DOCUMENT_STORE_DIR,
    LLM_API_KEY,
    LLM_BASE_URL,
    LLM_MAX_TOKENS,
    LLM_MODEL,
    LLM_TEMPERATURE,
    MAX_DIAGRAMS,
)
from .curriculum.models import GenerationRequest
from .curriculum.repository import JsonCurriculumRepository
from .document.models import DocumentType
from .errors import DocgenError
from .generation.orchestrator import GenerationOrchestrator
from .linking.linker import DocumentLinker
from .linking.store import JsonDocumentStore
from .llm.client import OpenAICompatibleClient
from .parsing.extractor import ConceptExtractor, ExtractionContext
from .pipeline.pipeline import DefaultDocumentPipeline
from .visuals.scorer import ConceptSelector, build_diagram_prompt

_TYPE_ALIASES = {
    "breakdown": DocumentType.LESSON_CONCEPT_BREAKDOWN,
    "schemes": DocumentType.SCHEMES_OF_WORK,
    "lesson-plan": DocumentType.LESSON_PLAN,
    "lesson-notes": DocumentType.LESSON_NOTES,
    "exercises": DocumentType.EXERCISES,
}


def _doc_type(value: str) -> DocumentType:
    try:
        return _TYPE_ALIASES.get(value.lower()) or DocumentType.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _request_from_args(args) -> GenerationRequest:
    return GenerationRequest(
        school=args.school or "",
        teacher_name=args.teacher or "",
        grade=args.grade or "",
        learning_area=args.learning_area or "",
        strand=args.strand or "",
        substrand=args.substrand or "",
        term=args.term or "",
        weeks=args.weeks,
        lessons_per_week=args.lessons_per_week,
    )


def _add_request_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--grade", default=None, help='학년. 예: "Grade 4"')
    p.add_argument("--learning-area", default=None, help="교과")
    p.add_argument("--strand", default=None, help="영역")
    p.add_argument("--substrand", default=None, help="하위 영역")
    p.add_argument("--term", default=None, help='학기. 예: "Term 1"')
    p.add_argument("--weeks", type=int, default=None, help="주 수")
    p.add_argument("--lessons-per-week", type=int, default=None, help="주당 차시")
    p.add_argument("--school", default=None, help="학교명")
    p.add_argument("--teacher", default=None, help="교사명")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CBC 교육 문서 생성 CLI")
    parser.add_argument("--store-dir", default=DOCUMENT_STORE_DIR, help="문서 저장 디렉토리")
    parser.add_argument("--data-dir", default=None, help="참조 데이터 디렉토리")
    parser.add_argument("--template-dir", default=None, help="HTML 템플릿 디렉토리")
    parser.add_argument("-v", "--verbose", action="store_true", help="상세 로그")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="문서 생성")
    gen.add_argument("--type", type=_doc_type, required=True,
                     help="breakdown | schemes | lesson-plan | lesson-notes | exercises")
    _add_request_args(gen)

    der = sub.add_parser("derive", help="개념 분해표에서 파생 문서 생성")
    der.add_argument("source_id", help="개념 분해표 문서 ID")
    der.add_argument("--type", type=_doc_type, required=True)
    der.add_argument("--lesson", type=int, default=None, help="Lesson Plan 차시 번호 (1부터)")
    _add_request_args(der)

    ren = sub.add_parser("render", help="저장 문서를 PDF로 렌더링")
    ren.add_argument("document_id")
    ren.add_argument("--output", default=None, help="출력 PDF 경로")

    vis = sub.add_parser("visuals", help="개념 분해표의 다이어그램 후보 선택")
    vis.add_argument("source_id")
    vis.add_argument("-k", type=int, default=MAX_DIAGRAMS, help="선택 개수")
    vis.add_argument("--prompts", action="store_true", help="다이어그램 프롬프트 출력")

    sub.add_parser("install-browsers", help="PDF 렌더링용 Chromium 설치")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.command == "install-browsers":
        _post_install.main()
        return

    if args.data_dir:
        set_data_dir(args.data_dir)
    if args.template_dir:
        set_template_dir(args.template_dir)

    store = JsonDocumentStore(args.store_dir)

    try:
        if args.command == "visuals":
            _run_visuals(store, args)
            return

        client = OpenAICompatibleClient(
            api_key=LLM_API_KEY or "unused",
            base_url=LLM_BASE_URL,
            model=LLM_MODEL,
            temperature=LLM_TEMPERATURE,
            max_tokens=LLM_MAX_TOKENS,
        )
        with client:
            orchestrator = GenerationOrchestrator(client, JsonCurriculumRepository())
            pipeline = DefaultDocumentPipeline(orchestrator, store)

            if args.command == "generate":
                document = pipeline.generate(args.type, _request_from_args(args))
                print(f"생성 완료: {document.id}")
                print(f"타입: {document.type.value} / 상태: {document.status.value}")
                if document.is_degraded:
                    print(f"폴백 콘텐츠 사용: {document.metadata.failure_reason}")

            elif args.command == "derive":
                linker = DocumentLinker(store, pipeline)
                lesson_index = args.lesson - 1 if args.lesson else None
                result = linker.derive(
                    args.source_id, args.type, _request_from_args(args), lesson_index
                )
                print(f"파생 문서 생성: {result.document.id} ({result.document.type.value})")
                print(f"사용 개념 수: {result.concepts_used}")
                if not result.is_success:
                    print("연결 저장 실패:")
                    for e in result.errors:
                        print(f"  - {e}")
                    sys.exit(1)

            elif args.command == "render":
                output = Path(args.output) if args.output else Path("output") / f"{args.document_id}.pdf"
                result = pipeline.render(args.document_id, output)
                if result.is_success:
                    print(f"PDF 생성 완료: {result.output_path}")
                    print(f"{result.page_format} {'landscape' if result.landscape else 'portrait'}, "
                          f"{result.rows_rendered}행 ({result.parser_stage or 'markdown'})")
                else:
                    print("에러 발생:")
                    for e in result.errors:
                        print(f"  - {e}")
                    sys.exit(1)
    except DocgenError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


def _run_visuals(store: JsonDocumentStore, args) -> None:
    source = store.require(args.source_id)
    context = ExtractionContext(term=source.term, strand=source.strand, substrand=source.substrand)
    records = ConceptExtractor().extract(source.content, context)
    if not records:
        print("추출된 개념이 없습니다.", file=sys.stderr)
        sys.exit(1)

    selected = ConceptSelector(max_diagrams=args.k).select(records, source.subject, source.grade)
    print(f"개념 {len(records)}개 중 {len(selected)}개 선택:")
    for s in selected:
        print(f"  [{s.score:3d}] {s.caption}  ({s.spec.diagram_type}, {s.spec.source})")
        if args.prompts:
            print()
            print(build_diagram_prompt(s, source.grade, source.subject, source.strand, source.substrand))
            print()


if __name__ == "__main__":
    main()

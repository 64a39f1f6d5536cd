"""CBC 커리큘럼 문서 생성 파이프라인."""

__version__ = "0.1.0"

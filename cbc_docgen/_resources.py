"""리소스 경로 관리 — 템플릿/데이터 디렉토리의 단일 진입점.

우선순위:
  1. set_*() API로 명시 지정
  2. 환경변수 CBC_DOCGEN_TEMPLATE_DIR / CBC_DOCGEN_DATA_DIR
  3. importlib.resources (패키지 번들 리소스)
"""

from __future__ import annotations

import os
from importlib.resources import files
from pathlib import Path

_custom_template_dir: Path | None = None
_custom_data_dir: Path | None = None


def set_template_dir(path: Path | str | None) -> None:
    """커스텀 템플릿 디렉토리를 지정한다. None이면 기본값으로 되돌린다."""
    global _custom_template_dir
    _custom_template_dir = Path(path) if path is not None else None


def set_data_dir(path: Path | str | None) -> None:
    """커스텀 데이터 디렉토리를 지정한다. None이면 기본값으로 되돌린다."""
    global _custom_data_dir
    _custom_data_dir = Path(path) if path is not None else None


def get_template_dir() -> Path:
    """HTML 템플릿 디렉토리 경로를 반환한다."""
    if _custom_template_dir is not None:
        return _custom_template_dir
    env = os.getenv("CBC_DOCGEN_TEMPLATE_DIR")
    if env:
        return Path(env)
    return Path(str(files("cbc_docgen") / "templates"))


def get_data_dir() -> Path:
    """데이터 디렉토리 경로를 반환한다."""
    if _custom_data_dir is not None:
        return _custom_data_dir
    env = os.getenv("CBC_DOCGEN_DATA_DIR")
    if env:
        return Path(env)
    return Path(str(files("cbc_docgen") / "data"))

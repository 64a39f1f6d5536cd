"""문서 저장소 — ABC 인터페이스 + 메모리 / JSON 디렉토리 구현체."""

from __future__ import annotations

import logging
import re
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..document.models import DerivedReference, DocumentType, GeneratedDocument
from ..errors import DocumentNotFoundError

logger = logging.getLogger(__name__)

_DOC_ID = re.compile(r"[0-9a-f]{1,64}")


class DocumentStore(ABC):
    """생성 문서 영속화 추상 인터페이스.

    읽기-수정-저장 편의 메서드는 저장소 단위 락 안에서 실행된다.
    """

    def __init__(self):
        self._lock = threading.RLock()

    @abstractmethod
    def get(self, doc_id: str) -> Optional[GeneratedDocument]:
        """없으면 None."""

    @abstractmethod
    def save(self, document: GeneratedDocument) -> GeneratedDocument:
        """새 문서 저장 또는 같은 id 덮어쓰기."""

    @abstractmethod
    def list_all(self) -> list[GeneratedDocument]:
        """저장된 모든 문서."""

    # --- 편의 메서드 (구현체 공통) ---

    def require(self, doc_id: str) -> GeneratedDocument:
        document = self.get(doc_id)
        if document is None:
            raise DocumentNotFoundError(f"문서 없음: {doc_id}")
        return document

    def create(self, document: GeneratedDocument) -> GeneratedDocument:
        return self.save(document)

    def update_content(self, doc_id: str, content: str) -> GeneratedDocument:
        with self._lock:
            return self.save(self.require(doc_id).with_content(content))

    def add_child(self, parent_id: str, child_id: str, child_type: DocumentType) -> GeneratedDocument:
        with self._lock:
            parent = self.require(parent_id)
            if any(ref.id == child_id for ref in parent.child_documents):
                return parent
            children = [*parent.child_documents, DerivedReference(id=child_id, type=child_type)]
            return self.save(parent.with_updates(child_documents=children))

    def set_parent(self, child_id: str, parent: GeneratedDocument) -> GeneratedDocument:
        with self._lock:
            child = self.require(child_id)
            metadata = child.metadata.model_copy(update={
                "source_document": parent.id,
                "source_type": parent.type,
                "linked_at": datetime.now(timezone.utc),
            })
            return self.save(child.with_updates(parent_document=parent.id, metadata=metadata))

    def children(self, parent_id: str) -> list[GeneratedDocument]:
        parent = self.require(parent_id)
        found = []
        for ref in parent.child_documents:
            child = self.get(ref.id)
            if child is not None:
                found.append(child)
        return found


class InMemoryDocumentStore(DocumentStore):
    def __init__(self):
        super().__init__()
        self._docs: dict[str, GeneratedDocument] = {}

    def get(self, doc_id):
        return self._docs.get(doc_id)

    def save(self, document):
        with self._lock:
            self._docs[document.id] = document
        return document

    def list_all(self):
        return list(self._docs.values())


class JsonDocumentStore(DocumentStore):
    """문서 하나당 {id}.json 파일 하나."""

    def __init__(self, root: Path | str):
        super().__init__()
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, doc_id: str) -> Path:
        if not _DOC_ID.fullmatch(doc_id):
            raise ValueError(f"잘못된 문서 id: {doc_id!r}")
        return self._root / f"{doc_id}.json"

    def get(self, doc_id):
        if not _DOC_ID.fullmatch(doc_id):
            return None
        path = self._path(doc_id)
        if not path.exists():
            return None
        return GeneratedDocument.model_validate_json(path.read_text(encoding="utf-8"))

    def save(self, document):
        with self._lock:
            tmp = self._path(document.id).with_suffix(".json.tmp")
            tmp.write_text(document.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
            tmp.replace(self._path(document.id))
        logger.debug(f"문서 저장: {self._path(document.id)}")
        return document

    def list_all(self):
        docs = []
        for path in sorted(self._root.glob("*.json")):
            try:
                docs.append(GeneratedDocument.model_validate_json(path.read_text(encoding="utf-8")))
            except ValueError as e:
                logger.warning(f"문서 파일 읽기 실패, 건너뜀: {path} ({e})")
        return docs

from .pipeline import DocumentPipeline, DefaultDocumentPipeline
from .models import DerivationResult, RenderResult

__all__ = [
    "DocumentPipeline",
    "DefaultDocumentPipeline",
    "DerivationResult",
    "RenderResult",
]

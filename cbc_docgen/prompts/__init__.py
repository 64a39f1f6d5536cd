from .base import PromptBuilder, clean_curriculum_number, split_combined
from .builders import (
    BREAKDOWN_COLUMNS,
    SCHEMES_COLUMNS,
    ExercisesBuilder,
    LessonConceptBreakdownBuilder,
    LessonNotesBuilder,
    LessonPlanBuilder,
    SchemesOfWorkBuilder,
)
from .registry import PromptBuilderRegistry

__all__ = [
    "PromptBuilder",
    "PromptBuilderRegistry",
    "LessonConceptBreakdownBuilder",
    "SchemesOfWorkBuilder",
    "LessonPlanBuilder",
    "LessonNotesBuilder",
    "ExercisesBuilder",
    "BREAKDOWN_COLUMNS",
    "SCHEMES_COLUMNS",
    "clean_curriculum_number",
    "split_combined",
]

"""문서 타입별 프롬프트 빌더 5종."""

from __future__ import annotations

import math

from ..curriculum.models import CurriculumEntry, GenerationRequest, LessonSchedule
from ..document.models import DocumentType
from .base import (
    NOT_SPECIFIED,
    PromptBuilder,
    clean_curriculum_number,
    escape_for_prompt,
    joined,
    lettered,
    numbered,
    split_combined,
)

BREAKDOWN_COLUMNS = ("Term", "Week", "Strand", "Sub-strand", "Learning Concept")
SCHEMES_COLUMNS = (
    "WEEK",
    "LESSON",
    "STRAND",
    "SUB-STRAND",
    "SPECIFIC LEARNING OUTCOMES (SLO)",
    "LEARNING EXPERIENCES",
    "KEY INQUIRY QUESTION (KIQ)",
    "LEARNING RESOURCES",
    "ASSESSMENT",
    "REFLECTION",
)
MAX_NOTES_CONCEPTS = 20


def header_row(columns: tuple[str, ...]) -> str:
    return "| " + " | ".join(columns) + " |"


def separator_row(columns: tuple[str, ...]) -> str:
    return "|" + "|".join("-" * (len(c) + 2) for c in columns) + "|"


def _table_contract(columns: tuple[str, ...], total_rows: int) -> str:
    return (
        "## TABLE FORMAT CONTRACT\n\n"
        f"- Use EXACTLY these {len(columns)} columns in this order: {', '.join(columns)}\n"
        f"- Generate EXACTLY {total_rows} data rows (no more, no less)\n"
        "- Each row MUST be ONE physical line; never split a cell across lines\n"
        "- Separate every column with a pipe (|) and start and end each row with a pipe\n"
        "- Do not merge or skip columns; do not leave placeholder cells\n"
        "- Output ONLY the table, no text after it\n\n"
        f"{header_row(columns)}\n{separator_row(columns)}"
    )


# ── Lesson Concept Breakdown ──────────────────────────────────────────

class LessonConceptBreakdownBuilder(PromptBuilder):
    doc_type = DocumentType.LESSON_CONCEPT_BREAKDOWN

    def build(self, request, entry, schedule):
        strand = escape_for_prompt(request.strand)
        substrand = escape_for_prompt(request.substrand)
        term = escape_for_prompt(request.term)
        total = schedule.total_lessons
        slos = split_combined(entry.slo)

        example = "\n".join(
            f"| {term} | Week 1 | {strand} | {substrand} | [{label} learning concept from the SLOs above] |"
            for label in ("First", "Second", "Third")
        )

        return f"""Generate a Lesson Concept Breakdown table with EXACTLY {total} rows.

{self._document_information(request, schedule)}
LESSON DURATION: {entry.lesson_duration or NOT_SPECIFIED} minutes
AGE RANGE: {escape_for_prompt(entry.age_range) or NOT_SPECIFIED}

## CRITICAL REQUIREMENT: EXACT ROW COUNT

You MUST generate EXACTLY {total} rows:
- WEEKS = {schedule.weeks}
- LESSONS PER WEEK = {schedule.lessons_per_week}
- TOTAL ROWS = {total}

## CRITICAL REQUIREMENT: STRAND AND SUB-STRAND RESTRICTION

Every row MUST use EXACTLY "{strand}" in the Strand column and EXACTLY "{substrand}"
in the Sub-strand column. Do NOT use any other strand or sub-strand.

## CBC FRAMEWORK ALIGNMENT

{self._curriculum_data(entry)}

All {total} learning concepts MUST be derived from these {len(slos)} SLOs ONLY.

{_table_contract(BREAKDOWN_COLUMNS, total)}
{example}
...continue for EXACTLY {total} rows

Every row MUST use "{term}" in the Term column and the "Week X" format (Week 1, Week 2, ...)
in the Week column, with a unique learning concept.

## DISTRIBUTION STRATEGY

{self._distribution_strategy(len(slos), schedule, substrand)}

## VALIDATION CHECKLIST

- EXACTLY {total} rows
- Each week has EXACTLY {schedule.lessons_per_week} lessons
- All {schedule.weeks} weeks are covered
- Each row is on ONE line

Begin generating the {total}-row table now:"""

    @staticmethod
    def _distribution_strategy(slo_count: int, schedule: LessonSchedule, substrand: str) -> str:
        total = schedule.total_lessons
        if slo_count == 0:
            return f"Derive {total} progressive concepts about \"{substrand}\"."
        if total == slo_count:
            return f"Use each SLO about \"{substrand}\" exactly once (1 SLO per lesson)."
        if total > slo_count:
            factor = math.ceil(total / slo_count)
            return (
                f"EXPAND {slo_count} SLOs about \"{substrand}\" into {total} concepts.\n"
                f"Break each SLO into approximately {factor} smaller, sequential learning steps:\n"
                "introduction and basic concepts first, then skill development, application "
                "and practice, advanced understanding, and finally review and mastery.\n"
                f"All concepts must stay within \"{substrand}\"."
            )
        return (
            f"CONDENSE {slo_count} SLOs into {total} key concepts about \"{substrand}\".\n"
            "Select the most important, foundational outcomes."
        )


# ── Schemes of Work ───────────────────────────────────────────────────

class SchemesOfWorkBuilder(PromptBuilder):
    doc_type = DocumentType.SCHEMES_OF_WORK

    def build(self, request, entry, schedule):
        strand = escape_for_prompt(request.strand)
        substrand = escape_for_prompt(request.substrand)
        total = schedule.total_lessons
        slos = split_combined(entry.slo)

        return f"""CRITICAL: Generate a Schemes of Work table with EXACTLY 10 COLUMNS in this EXACT order:

{header_row(SCHEMES_COLUMNS)}

## DOCUMENT INFORMATION

{self._document_information(request, schedule)}
STRAND: {strand}
SUB-STRAND: {substrand}

## SLO DISTRIBUTION PLAN

{self._slo_plan(slos, total)}

## CBC CURRICULUM DATA

SPECIFIC LEARNING OUTCOMES (distribute as shown above):
{lettered(slos)}

LEARNING EXPERIENCES (rotate through these):
{numbered(split_combined(entry.learning_experiences))}

KEY INQUIRY QUESTIONS (rotate through these):
{numbered(split_combined(entry.key_inquiry_questions))}

LEARNING RESOURCES (use these):
{joined(entry.resources)}

ASSESSMENT SKILLS:
{numbered(a.skill for a in entry.assessment if a.skill)}

## COLUMN REQUIREMENTS

1. WEEK: "Week 1" ... "Week {schedule.weeks}" ({schedule.lessons_per_week} lessons per week)
2. LESSON: "Lesson 1" ... "Lesson {total}"
3. STRAND: same for all rows: {strand}
4. SUB-STRAND: same for all rows: {substrand}
5. SPECIFIC LEARNING OUTCOMES (SLO): reference SLOs as (a), (b), (c) following the plan
6. LEARNING EXPERIENCES: from the list above
7. KEY INQUIRY QUESTION (KIQ): from the list above, matched to the current SLO
8. LEARNING RESOURCES: 2-3 resources from the list above
9. ASSESSMENT: Observation, Oral questions, Practical task, Portfolio, Group discussion
10. REFLECTION: a teacher reflection question ("Were learners...", "Did learners...")

{_table_contract(SCHEMES_COLUMNS, total)}
[NOW GENERATE ALL {total} ROWS WITH PROPER SLO DISTRIBUTION]"""

    @staticmethod
    def _slo_plan(slos: list[str], total: int) -> str:
        if not slos:
            return f"No SLOs specified; derive {total} lessons from the sub-strand."
        per_slo = math.ceil(total / len(slos))
        lines = [f"You have {len(slos)} SLOs to distribute across {total} lessons "
                 f"(about {per_slo} lessons each)."]
        for idx, slo in enumerate(slos):
            start = idx * per_slo + 1
            if start > total:
                break
            end = min((idx + 1) * per_slo, total)
            letter = chr(97 + idx)
            lines.append(f"- SLO ({letter}) → Lessons {start}-{end}: write \"({letter}) {escape_for_prompt(slo)}\"")
        return "\n".join(lines)


# ── Lesson Plan ───────────────────────────────────────────────────────

class LessonPlanBuilder(PromptBuilder):
    doc_type = DocumentType.LESSON_PLAN

    def build(self, request, entry, schedule):
        strand = clean_curriculum_number(escape_for_prompt(request.strand))
        substrand = clean_curriculum_number(escape_for_prompt(request.substrand))
        concept = escape_for_prompt(request.specific_concept) or (
            escape_for_prompt(request.concepts[0].concept) if request.concepts
            else "General concept related to the sub-strand"
        )
        duration = entry.lesson_duration or 40

        return f"""Generate a comprehensive Lesson Plan for the Kenyan Competency Based Curriculum (CBC).

## DOCUMENT INFORMATION

{self._document_information(request)}
LESSON NUMBER: {request.lesson_number or 'X'} of {schedule.total_lessons} total lessons
WEEK: {request.week_number or 'X'}
DATE: {escape_for_prompt(request.date) or NOT_SPECIFIED}
TIME: {escape_for_prompt(request.time) or NOT_SPECIFIED}
STRAND: {strand}
SUB-STRAND: {substrand}

Use the strand and sub-strand WITHOUT curriculum numbers (no "1.0:", "1.1:").

## SPECIFIC LEARNING CONCEPT FOR THIS LESSON

{concept}

## CBC CURRICULUM DATA

{self._curriculum_data(entry)}

CORE COMPETENCIES:
{joined(entry.core_competencies)}

VALUES:
{joined(entry.values)}

## LESSON PLAN STRUCTURE

1. LESSON TITLE
2. LESSON DURATION: {duration} minutes, with a time allocation for each section
3. SPECIFIC LEARNING OUTCOMES for "{concept}"
4. KEY INQUIRY QUESTION
5. LEARNING RESOURCES
6. ORGANIZATION OF LEARNING
7. INTRODUCTION
8. LESSON DEVELOPMENT: STEP 1-3, each with Teacher Activity and Learner Activity
9. EXTENDED ACTIVITIES
10. CONCLUSION
11. ASSESSMENT
12. TEACHER'S REFLECTION

Use Kenyan context and examples, and focus ONLY on "{concept}"."""


# ── Lesson Notes ──────────────────────────────────────────────────────

class LessonNotesBuilder(PromptBuilder):
    doc_type = DocumentType.LESSON_NOTES

    def build(self, request, entry, schedule):
        substrand = escape_for_prompt(request.substrand)
        slos = split_combined(entry.slo)[:5]
        concepts = list(request.concepts)[:MAX_NOTES_CONCEPTS]

        if concepts:
            sections = "\n\n".join(
                f"### {escape_for_prompt(c.week)}: {escape_for_prompt(c.concept)}\n"
                "- What it is (3-4 points)\n"
                "- Why it matters for Kenyan learners\n"
                "- How it works (4-5 numbered steps)\n"
                "- Kenyan context and locally available materials\n"
                "- Key points to remember"
                for c in concepts
            )
        else:
            sections = "\n\n".join(
                f"### SLO ({chr(97 + i)}): {escape_for_prompt(slo)}\n"
                "- Explanation, Kenyan examples and key points"
                for i, slo in enumerate(slos)
            ) or f"### {substrand}\n- Explanation, Kenyan examples and key points"

        return f"""Generate comprehensive Lesson Notes in POINT FORM ONLY, fully aligned with the CBC framework.

FORMATTING REQUIREMENTS:
- All content in bullet points or numbered lists
- Maximum 25 words per point, no long paragraphs

## DOCUMENT INFORMATION

{self._document_information(request, schedule)}
STRAND: {escape_for_prompt(request.strand)}
SUB-STRAND: {substrand}
AGE RANGE: {escape_for_prompt(entry.age_range) or NOT_SPECIFIED}
LESSON DURATION: {entry.lesson_duration or NOT_SPECIFIED} minutes per lesson

# LESSON NOTES: {substrand}

## SPECIFIC LEARNING OUTCOMES
By the end of the sub-strand, the learner should be able to:
{lettered(slos)}

## CBC CURRICULUM DATA

{self._curriculum_data(entry)}

## KEY VOCABULARY
List 8-10 key terms with brief definitions.

## CONTENT BY LEARNING CONCEPT

{sections}

## ASSESSMENT AND REVIEW
Provide short review questions for each concept."""


# ── Exercises ─────────────────────────────────────────────────────────

class ExercisesBuilder(PromptBuilder):
    doc_type = DocumentType.EXERCISES

    def build(self, request, entry, schedule):
        strand = clean_curriculum_number(escape_for_prompt(request.strand))
        substrand = clean_curriculum_number(escape_for_prompt(request.substrand))
        skills = [a.skill for a in entry.assessment if a.skill]
        rubric = "\n".join(
            f"- {escape_for_prompt(a.skill)}: Exceeds: {a.exceeds or 'Advanced application'}; "
            f"Meets: {a.meets or 'Satisfactory understanding'}; "
            f"Approaches: {a.approaches or 'Basic comprehension'}; "
            f"Below: {a.below or 'Requires support'}"
            for a in entry.assessment if a.skill
        ) or NOT_SPECIFIED

        return f"""Generate comprehensive Exercises fully aligned with CBC framework data.

{self._document_information(request)}
STRAND: {strand}
SUB-STRAND: {substrand}
LESSONS COVERED: {schedule.total_lessons}

All questions must be ONLY about "{substrand}" within "{strand}".

# EXERCISES: {substrand}

## CBC FRAMEWORK ALIGNMENT

{self._curriculum_data(entry)}

## SECTION A: MULTIPLE-CHOICE QUESTIONS (20 marks)
Create 10 multiple-choice questions (2 marks each) testing each SLO, using Kenyan context.

## SECTION B: STRUCTURED QUESTIONS (30 marks)
Create 3 structured questions with multiple parts that test the skills: {joined(skills, '; ')}

## ASSESSMENT RUBRIC ALIGNMENT
{rubric}

## ANSWER KEY
Provide answers for Section A and marking points for Section B.

TOTAL MARKS: 50"""

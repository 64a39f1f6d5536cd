"""ConceptScorer / ConceptSelector / VisualLibrary 테스트."""

import pytest

from cbc_docgen.curriculum.models import ConceptRecord
from cbc_docgen.visuals.library import VisualLibrary, grade_level
from cbc_docgen.visuals.scorer import (
    ConceptScorer,
    ConceptSelector,
    build_diagram_prompt,
    format_caption,
    synthesize_spec,
)

BUTTERFLY = "Observe and describe the life cycle of a butterfly"
FARMING = "Discuss opinions about farming"


def _record(week: int, concept: str) -> ConceptRecord:
    return ConceptRecord("Term 1", f"Week {week}", "Living Things", "Animals", concept)


@pytest.fixture(scope="module")
def scorer():
    return ConceptScorer()


class TestConceptScorer:
    def test_visual_concept_scores_high(self, scorer):
        assert scorer.score(BUTTERFLY, "Science") > 80

    def test_discussion_concept_penalized(self, scorer):
        assert scorer.score(FARMING, "Science") == 50
        assert scorer.score(BUTTERFLY, "Science") > scorer.score(FARMING, "Science")

    def test_score_clamped(self, scorer):
        score = scorer.score("Parts of a plant: structure, growth and life cycle stages", "Science")
        assert score == 100
        assert scorer.score("Discuss and debate opinion, appreciate value", "Science") >= 0

    def test_library_template_bonus(self, scorer):
        assert scorer.score("Time", "Mathematics") == 80
        assert ConceptScorer(VisualLibrary([])).score("Time", "Mathematics") == 50

    def test_related_slo_bonus(self, scorer, sample_entry):
        concept = "Butterfly habitats around school"
        assert scorer.score(concept, "Science") == 50
        assert scorer.score(concept, "Science", sample_entry) == 60

    def test_subject_bonus(self, scorer):
        assert scorer.score("Reading a map", "Social Studies") == 90
        assert scorer.score("Reading a map", "English") == 70


class TestConceptSelector:
    RECORDS = [
        _record(1, "Life cycle of a butterfly"),
        _record(1, "Stages of growth in frogs"),
        _record(2, "Parts of an insect body"),
        _record(3, "Discuss the value of animals"),
    ]

    def test_prefers_unused_weeks(self, scorer):
        selected = ConceptSelector(scorer, max_diagrams=2).select(self.RECORDS, "Science")
        assert [s.record.week for s in selected] == ["Week 1", "Week 2"]
        assert selected[0].record.concept == "Life cycle of a butterfly"

    @pytest.mark.parametrize("k, expected", [(0, 0), (1, 1), (3, 3), (4, 4), (10, 4)])
    def test_cardinality(self, scorer, k, expected):
        selected = ConceptSelector(scorer).select(self.RECORDS, "Science", k=k)
        assert len(selected) == expected
        concepts = [s.record.concept for s in selected]
        assert len(set(concepts)) == len(concepts)

    def test_empty_input(self, scorer):
        assert ConceptSelector(scorer).select([], "Science") == []

    def test_captions_numbered(self, scorer):
        selected = ConceptSelector(scorer, max_diagrams=3).select(self.RECORDS, "Science")
        assert [s.caption.split(":")[0] for s in selected] == ["Figure 1", "Figure 2", "Figure 3"]

    def test_library_spec_adapted_to_grade(self, scorer):
        spec = ConceptSelector(scorer).visual_spec("Parts of a plant", "Science", "Grade 2")
        assert spec.source == "library"
        assert spec.detail_level == "basic"
        assert len(spec.key_elements) <= 5
        assert spec.concept_focus == "Parts of a plant"

    def test_generated_spec(self, scorer):
        spec = ConceptSelector(scorer).visual_spec("Climate regions of Kenya", "Social Studies", "Grade 8")
        assert spec.source == "generated"
        assert spec.diagram_type == "meteorological_diagram"
        assert spec.detail_level == "detailed"


class TestHelpers:
    def test_caption_strips_leading_verbs(self):
        caption = format_caption(_record(3, BUTTERFLY), 0)
        assert caption == "Figure 1: The life cycle of a butterfly (Week 3)"

    def test_caption_truncated(self):
        caption = format_caption(_record(1, "Parts " + "x" * 120), 1)
        text = caption[len("Figure 2: "):caption.rindex(" (Week 1)")]
        assert len(text) == 80
        assert text.endswith("...")

    def test_synthesize_fallback_type(self):
        spec = synthesize_spec("Reading aloud with expression", "English", "Grade 5")
        assert spec.diagram_type == "educational_diagram"
        assert spec.max_elements == 7

    @pytest.mark.parametrize("grade, level", [
        ("PP1", "pp1"), ("Grade 2", "lower_primary"), ("Grade 5", "upper_primary"),
        ("Grade 8", "junior_secondary"), ("", "general"),
    ])
    def test_grade_level(self, grade, level):
        assert grade_level(grade) == level

    def test_diagram_prompt_mentions_concept(self, scorer):
        selected = ConceptSelector(scorer, max_diagrams=1).select(self.records(), "Science", "Grade 4")
        prompt = build_diagram_prompt(selected[0], "Grade 4", "Science", "Living Things", "Animals")
        assert '"Life cycle of a butterfly"' in prompt
        assert "Week: Week 1" in prompt

    @staticmethod
    def records():
        return [_record(1, "Life cycle of a butterfly")]


class TestVisualLibrary:
    def test_loads_bundled_library(self):
        library = VisualLibrary.load()
        assert len(library) > 10
        assert library.has_template("Water cycle", "Science")

    def test_partial_match(self):
        library = VisualLibrary.load()
        assert library.has_template("The water cycle in Kenya", "Science and Technology")
        assert not library.has_template("Water cycle", "")
        assert "farm tools" in library.concepts_for_subject("Agriculture")

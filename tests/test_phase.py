"""
Unit tests for lesson phase detection and slide assignment.
"""
import pytest

from detectors.phase import (
    PhaseDetector,
    assign_phases_to_slides,
    compute_phase_distribution,
    detect_phases_in_text,
)
from models import ConfidenceLevel, LessonPhase, PhaseDetectionResult, Slide


FULL_LESSON = """Hook: What do you already know about fractions?
I Do: Watch me model 1/2 + 1/4.
We Do: Let's solve one together.
You Do: Complete the worksheet.
Plenary: What did we learn today?
"""


def _deck(count):
    return [Slide(title=f"Slide {i + 1}", content=(f"Point {i + 1}",)) for i in range(count)]


class TestPhaseDetection:
    """Test structural and content phase patterns."""

    def test_we_do_together_is_not_truncated_by_we_do(self):
        text = "We Do Together\nWe Do"
        result = detect_phases_in_text(text)

        assert [p.phase for p in result.phases] == [LessonPhase.WE_DO_TOGETHER, LessonPhase.WE_DO]
        together, we_do = result.phases
        assert text[together.start_position:together.end_position] == "We Do Together"
        assert together.matched_keyword == "We Do Together"
        assert we_do.start_position == text.index("\nWe Do") + 1
        assert result.has_explicit_phases is True

    def test_full_lesson_in_order(self):
        result = detect_phases_in_text(FULL_LESSON)

        assert [p.phase for p in result.phases] == [
            LessonPhase.HOOK,
            LessonPhase.I_DO,
            LessonPhase.WE_DO,
            LessonPhase.YOU_DO,
            LessonPhase.PLENARY,
        ]
        assert all(p.confidence == ConfidenceLevel.HIGH for p in result.phases)
        assert result.phases[0].matched_keyword == "Hook"

    @pytest.mark.parametrize("heading,expected", [
        ("Starter:", LessonPhase.HOOK),
        ("## Modelled Practice", LessonPhase.I_DO),
        ("- Partner Work -", LessonPhase.WE_DO_TOGETHER),
        ("Guided Practice", LessonPhase.WE_DO),
        ("**Independent Practice:**", LessonPhase.YOU_DO),
        ("Exit Ticket", LessonPhase.PLENARY),
    ])
    def test_structural_synonyms(self, heading, expected):
        result = detect_phases_in_text(heading)

        assert [p.phase for p in result.phases] == [expected]
        assert result.phases[0].confidence == ConfidenceLevel.HIGH

    def test_content_pattern_is_medium_and_not_explicit(self):
        result = detect_phases_in_text("Work with your partner to sort the cards.")

        assert [p.phase for p in result.phases] == [LessonPhase.WE_DO_TOGETHER]
        assert result.phases[0].confidence == ConfidenceLevel.MEDIUM
        assert result.has_explicit_phases is False

    def test_lowercase_i_do_in_prose_is_not_a_heading(self):
        result = detect_phases_in_text("I do not recommend skipping this step.")
        assert LessonPhase.I_DO not in [p.phase for p in result.phases]

    def test_detection_is_deterministic(self):
        assert detect_phases_in_text(FULL_LESSON) == detect_phases_in_text(FULL_LESSON)

    def test_empty_text(self):
        result = detect_phases_in_text("")
        assert result.phases == []
        assert result.has_explicit_phases is False


class TestPhaseAssignment:
    """Test the three assignment policies and their guarantees."""

    def test_explicit_phases_map_proportionally(self):
        slides = _deck(5)
        assigned = assign_phases_to_slides(slides, detect_phases_in_text(FULL_LESSON))

        assert assigned[0].lesson_phase == LessonPhase.HOOK
        assert assigned[-1].lesson_phase == LessonPhase.PLENARY
        assert all(slide.lesson_phase for slide in assigned)

    def test_six_slides_without_headings_use_heuristics(self):
        assigned = assign_phases_to_slides(_deck(6), PhaseDetectionResult())

        assert [s.lesson_phase for s in assigned] == [
            LessonPhase.HOOK,
            LessonPhase.I_DO,
            LessonPhase.WE_DO,
            LessonPhase.WE_DO_TOGETHER,
            LessonPhase.YOU_DO,
            LessonPhase.PLENARY,
        ]

    def test_three_slides_without_headings_stay_unassigned(self):
        assigned = assign_phases_to_slides(_deck(3))
        assert [s.lesson_phase for s in assigned] == [None, None, None]

    def test_existing_phase_is_never_overwritten(self):
        slides = _deck(6)
        slides[0] = slides[0].with_phase(LessonPhase.YOU_DO)

        assigned = assign_phases_to_slides(slides)
        assert assigned[0].lesson_phase == LessonPhase.YOU_DO
        assert assigned[-1].lesson_phase == LessonPhase.PLENARY

    def test_assignment_is_idempotent(self):
        detected = detect_phases_in_text(FULL_LESSON)
        once = assign_phases_to_slides(_deck(7), detected)
        twice = assign_phases_to_slides(once, detected)

        assert [s.lesson_phase for s in twice] == [s.lesson_phase for s in once]

    def test_input_slides_are_not_mutated(self):
        slides = _deck(6)
        snapshot = list(slides)

        assigned = assign_phases_to_slides(slides)
        assert slides == snapshot
        assert all(slide.lesson_phase is None for slide in slides)
        assert assigned is not slides

    def test_empty_deck(self):
        assert assign_phases_to_slides([]) == []

    def test_heuristic_threshold_is_configurable(self):
        detector = PhaseDetector({'phases': {'min_slides_for_heuristics': 3}})
        assigned = detector.assign_phases_to_slides(_deck(3))

        assert assigned[0].lesson_phase == LessonPhase.HOOK
        assert assigned[-1].lesson_phase == LessonPhase.PLENARY


class TestPhaseDistribution:
    """Test phase balance reporting."""

    def test_distribution_of_heuristic_deck(self):
        distribution = compute_phase_distribution(assign_phases_to_slides(_deck(6)))

        assert distribution.total == 6
        assert distribution.unassigned == 0
        assert distribution.missing_phases == []
        assert all(count == 1 for count in distribution.counts.values())
        assert all(pct == 17 for pct in distribution.percentages.values())

    def test_missing_and_unassigned(self):
        slides = [
            Slide(title="a", lesson_phase=LessonPhase.HOOK),
            Slide(title="b", lesson_phase=LessonPhase.HOOK),
            Slide(title="c", lesson_phase=LessonPhase.PLENARY),
            Slide(title="d"),
        ]
        distribution = compute_phase_distribution(slides)

        assert distribution.counts[LessonPhase.HOOK] == 2
        assert distribution.percentages[LessonPhase.HOOK] == 67
        assert distribution.percentages[LessonPhase.PLENARY] == 33
        assert distribution.unassigned == 1
        assert LessonPhase.I_DO in distribution.missing_phases
        assert LessonPhase.HOOK not in distribution.missing_phases

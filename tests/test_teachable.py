"""
Unit tests for teachable moment detection and the answer-leakage guard.
"""
import pytest

from detectors.teachable import (
    TeachableMomentDetector,
    classify_content_category,
    detect_teachable_moments,
    find_answer,
    find_answer_leaks,
    find_inline_answer,
    throttle_detections,
)
from models import (
    ConfidenceLevel,
    ContentCategory,
    ContentType,
    DetectedAnswer,
    DetectedContent,
    DetectionMethod,
    TeachableMoment,
)


def _moment(start, end, text="What is 2 + 2?", answer=None, confidence=ConfidenceLevel.HIGH, proximity=1):
    problem = DetectedContent(ContentType.QUESTION, text, ConfidenceLevel.MEDIUM,
                              DetectionMethod.PUNCTUATION, start, end)
    return TeachableMoment(problem, answer, ContentCategory.MATH, confidence, proximity)


class TestAnswerPairing:
    """Test pairing of questions with nearby answers."""

    def test_answer_on_same_line_after_question(self):
        text = "What is 423 + 424? Answer: 847"
        moments = detect_teachable_moments(text)

        assert len(moments) == 1
        moment = moments[0]
        assert moment.problem.text == "What is 423 + 424?"
        assert moment.answer.text == "847"
        assert text[moment.answer.start_index:moment.answer.end_index] == "847"
        assert moment.confidence == ConfidenceLevel.HIGH
        assert moment.content_category == ContentCategory.MATH
        assert moment.proximity_chars == 1

    def test_answer_on_following_line(self):
        text = "How many legs does a spider have?\nA: 8 legs"
        moments = detect_teachable_moments(text)

        assert len(moments) == 1
        assert moments[0].answer.text == "8 legs"

    def test_inline_answer_is_split_from_problem(self):
        """Test that an answer written inside the question line never stays in the problem."""
        text = "Ask: What is 6 x 7? A: 42"
        moments = detect_teachable_moments(text)

        assert len(moments) == 1
        moment = moments[0]
        assert moment.problem.text == "What is 6 x 7?"
        assert "42" not in moment.problem.text
        assert moment.answer.text == "42"
        assert moment.problem.end_index <= moment.answer.start_index

    def test_question_without_answer_is_medium(self):
        moments = detect_teachable_moments("Why do we need sleep?")

        assert len(moments) == 1
        assert moments[0].answer is None
        assert moments[0].confidence == ConfidenceLevel.MEDIUM

    def test_answer_beyond_proximity_threshold_is_ignored(self):
        detector = TeachableMomentDetector({'teachable_moments': {'proximity_threshold': 10}})
        text = "What is 10 + 5?" + " filler words here" * 3 + " Answer: 15"

        moments = detector.detect(text)
        assert len(moments) == 1
        assert moments[0].answer is None

    def test_given_equation_stays_in_problem(self):
        """Test that a value given inside the question is not mistaken for its answer."""
        text = "If 2x = 10, what is x?\nAnswer: 5"
        moments = detect_teachable_moments(text)

        assert len(moments) == 1
        moment = moments[0]
        assert moment.problem.text == "If 2x = 10, what is x?"
        assert moment.answer.text == "5"
        assert moment.confidence == ConfidenceLevel.HIGH

    def test_given_values_without_answer(self):
        moments = detect_teachable_moments("Ask: If a = 3 and b = 4, what is a + b?")

        assert len(moments) == 1
        assert moments[0].problem.text == "If a = 3 and b = 4, what is a + b?"
        assert moments[0].answer is None
        assert moments[0].confidence == ConfidenceLevel.MEDIUM

    def test_detection_is_deterministic(self):
        text = "What is 423 + 424? Answer: 847\nWhy do we need sleep?"
        assert detect_teachable_moments(text) == detect_teachable_moments(text)

    def test_rhetorical_questions_are_skipped(self):
        assert detect_teachable_moments("Isn't this exciting?") == []

    def test_empty_text(self):
        assert detect_teachable_moments("") == []


class TestAnswerLeakage:
    """Canary cases: no returned problem span may expose its answer."""

    @pytest.mark.parametrize("text", [
        "What is 423 + 424? Answer: 847",
        "Ask: What is 6 x 7? A: 42",
        "Q1: What is the capital of France? Ans: Paris",
        "What is 9 x 9?\nA1. 81",
        "Ask students: What does 12 + 8 equal? = 20",
    ])
    def test_problem_text_never_contains_answer(self, text):
        moments = detect_teachable_moments(text)

        assert moments
        for moment in moments:
            assert find_inline_answer(moment.problem.text) is None
            if moment.answer:
                assert moment.answer.text not in moment.problem.text
                assert moment.problem.end_index <= moment.answer.start_index
        assert find_answer_leaks(moments) == []

    def test_overlapping_answer_is_reported(self):
        leaky = _moment(0, 20, answer=DetectedAnswer("4", 15, 16))
        clean = _moment(30, 44, answer=DetectedAnswer("4", 50, 51))

        assert find_answer_leaks([leaky, clean]) == [leaky]

    def test_given_equation_is_not_a_leak(self):
        clean = _moment(0, 22, text="If 2x = 10, what is x?", answer=DetectedAnswer("5", 31, 32))
        assert find_answer_leaks([clean]) == []

    @pytest.mark.parametrize("text,expected", [
        ("If 2x = 10, what is x?", None),
        ("What is 6 x 7? A: 42", "42"),
        ("What does 12 + 8 equal? = 20", "20"),
        ("Name the largest planet. Answer: Jupiter", "Jupiter"),
    ])
    def test_find_inline_answer(self, text, expected):
        found = find_inline_answer(text)
        assert (found[1].text if found else None) == expected

    def test_answer_marker_inside_problem_is_reported(self):
        leaky = _moment(0, 24, text="What is 2 + 2? Answer: 4")
        assert find_answer_leaks([leaky]) == [leaky]


class TestClassificationAndThrottling:
    """Test content categories and the per-bullet cap."""

    @pytest.mark.parametrize("problem,expected", [
        ("What is 12 + 5?", ContentCategory.MATH),
        ("Calculate the perimeter of the field.", ContentCategory.MATH),
        ("What does 'arid' mean?", ContentCategory.VOCABULARY),
        ("Why did the experiment fail?", ContentCategory.SCIENCE),
        ("Why does the character leave home?", ContentCategory.COMPREHENSION),
        ("Who wrote the play?", ContentCategory.GENERAL),
    ])
    def test_classify_content_category(self, problem, expected):
        assert classify_content_category(problem) == expected

    def test_throttle_keeps_strongest_and_closest(self):
        moments = [
            _moment(0, 10, confidence=ConfidenceLevel.MEDIUM, proximity=200),
            _moment(20, 30, confidence=ConfidenceLevel.HIGH, proximity=5),
            _moment(40, 50, confidence=ConfidenceLevel.HIGH, proximity=1),
        ]

        kept = throttle_detections(moments, bullet_count=4, max_percent=0.5)
        assert [m.problem.start_index for m in kept] == [20, 40]

    def test_throttle_always_keeps_one(self):
        moments = [_moment(0, 10), _moment(20, 30, proximity=0)]

        kept = throttle_detections(moments, bullet_count=1, max_percent=0.3)
        assert [m.problem.start_index for m in kept] == [20]

    def test_throttle_under_cap_keeps_all(self):
        moments = [_moment(0, 10), _moment(20, 30)]
        assert throttle_detections(moments, bullet_count=10, max_percent=0.3) == moments

"""
Teachable moment detector: pairs questions with nearby answers so the answer
can be held back until the teacher chooses to reveal it.
"""

import logging
import math
import re
from typing import List, Dict, Any, Optional, Tuple

from config_loader import get_section
from models import (
    ConfidenceLevel,
    ContentCategory,
    DetectedAnswer,
    DetectedContent,
    TeachableMoment,
)
from .preservation import ContentPreservationDetector, trimmed_span


logger = logging.getLogger(__name__)


# Explicit answer labels
EXPLICIT_ANSWER_PATTERNS = (
    re.compile(r"\b(?:Answer|Ans|A)[ \t]*:[ \t]*(?P<answer>[^.!?\n]+[.!?]?)", re.IGNORECASE),
    re.compile(r"\bA\d+[ \t]*[:.][ \t]*(?P<answer>[^.!?\n]+[.!?]?)", re.IGNORECASE),
)

# Checked in order; the first pattern that matches inside the search window wins
ANSWER_PATTERNS = EXPLICIT_ANSWER_PATTERNS + (
    re.compile(r"=[ \t]*(?P<answer>-?\d+(?:\.\d+)?)"),
    re.compile(r"\bequals[ \t]+(?P<answer>-?\d+(?:\.\d+)?)", re.IGNORECASE),
)

CATEGORY_SIGNALS = (
    (ContentCategory.MATH, (
        re.compile(r"\d+\s*[+\-*/×÷]\s*\d+"),
        re.compile(r"=\s*\d+"),
        re.compile(r"\d+%"),
        re.compile(r"calculate|solve|how many", re.IGNORECASE),
        re.compile(r"fraction|percent|area|perimeter|\bsum\b|difference|square", re.IGNORECASE),
    )),
    (ContentCategory.VOCABULARY, (
        re.compile(r"\bmeans?\b", re.IGNORECASE),
        re.compile(r"\bis defined as\b", re.IGNORECASE),
        re.compile(r"\bdefinition\b", re.IGNORECASE),
        re.compile(r"\b(?:syn|ant)onyms?\b", re.IGNORECASE),
    )),
    (ContentCategory.SCIENCE, (
        re.compile(r"experiment|hypothesis|observed?|predict", re.IGNORECASE),
        re.compile(r"chemical|reaction", re.IGNORECASE),
        re.compile(r"photosynthesis|evaporation|condensation", re.IGNORECASE),
    )),
    (ContentCategory.COMPREHENSION, (
        re.compile(r"\bbecause\b|\btherefore\b", re.IGNORECASE),
        re.compile(r"\bwhy (?:does|did)\b", re.IGNORECASE),
        re.compile(r"cause\s*(?:and|&)?\s*effect", re.IGNORECASE),
    )),
)


def find_answer(text: str, offset: int = 0,
                patterns=ANSWER_PATTERNS) -> Optional[Tuple[int, DetectedAnswer]]:
    """
    Find the first answer marker in ``text``, trying ``patterns`` in order.

    Returns ``(marker_start, answer)`` with absolute offsets (``offset`` is added
    to every index) or None when nothing answer-like is present.
    """
    if not text:
        return None

    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        start, end = trimmed_span(text, match.start('answer'), match.end('answer'))
        if start < end:
            answer = DetectedAnswer(
                text=text[start:end],
                start_index=offset + start,
                end_index=offset + end,
            )
            return offset + match.start(), answer

    return None


def find_inline_answer(text: str, offset: int = 0) -> Optional[Tuple[int, DetectedAnswer]]:
    """
    Find an answer written inside a question span.

    Values given before the question mark ("If 2x = 10, what is x?") belong to
    the problem. An explicit label (``Answer:``, ``A:``, ``A1.``) counts once a
    question mark precedes it, or anywhere past the first character when the
    span has no question mark. Bare ``= 5`` / ``equals 5`` only count after the
    last question mark.
    """
    if not text:
        return None

    labelled = find_answer(text, offset, EXPLICIT_ANSWER_PATTERNS)
    if labelled:
        marker_start = labelled[0] - offset
        if '?' in text[:marker_start] or ('?' not in text and marker_start > 0):
            return labelled

    question_end = text.rfind('?') + 1
    if not question_end:
        return None
    return find_answer(text[question_end:], offset + question_end)


def classify_content_category(problem_text: str, answer_text: str = "") -> ContentCategory:
    """Classify a problem/answer pair, most specific category first."""
    combined = f"{problem_text} {answer_text}"
    for category, signals in CATEGORY_SIGNALS:
        if any(signal.search(combined) for signal in signals):
            return category
    return ContentCategory.GENERAL


def find_answer_leaks(moments: List[TeachableMoment]) -> List[TeachableMoment]:
    """
    Return the moments whose problem span would expose an answer.

    A moment leaks when its answer range overlaps the problem range, or when
    the problem text itself still carries an answer after its question.
    """
    leaks = []
    for moment in moments:
        problem = moment.problem
        answer = moment.answer
        overlaps = bool(answer) and (
            answer.start_index < problem.end_index and answer.end_index > problem.start_index
        )
        if overlaps or find_inline_answer(problem.text) is not None:
            leaks.append(moment)
    return leaks


def estimate_bullet_count(text: str) -> int:
    lines = [line for line in text.split('\n') if line.strip()]
    return max(1, len(lines))


def throttle_detections(moments: List[TeachableMoment], bullet_count: int,
                        max_percent: float) -> List[TeachableMoment]:
    """Keep at most ``max_percent`` of the bullets as moments, strongest and closest first."""
    if not moments:
        return []

    max_allowed = math.floor(max(1, bullet_count) * max_percent)
    if len(moments) <= max_allowed:
        return list(moments)

    ranked = sorted(moments, key=lambda m: (m.confidence.rank, m.proximity_chars, m.problem.start_index))
    selected = ranked[:max(1, max_allowed)]
    return sorted(selected, key=lambda m: m.problem.start_index)


class TeachableMomentDetector:
    """Detects question/answer pairs suitable for delayed answer reveal."""

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 question_detector: Optional[ContentPreservationDetector] = None):
        self.config = get_section(config, 'teachable_moments')
        self.proximity_threshold = int(self.config.get('proximity_threshold', 200))
        self.max_percent = float(self.config.get('max_percent', 0.3))
        self.question_detector = question_detector or ContentPreservationDetector(config)

    def detect(self, text: str) -> List[TeachableMoment]:
        if not text:
            return []

        questions = [q for q in self.question_detector.detect_questions(text)
                     if q.confidence != ConfidenceLevel.LOW]

        moments = []
        for question in questions:
            moment = self._pair(text, question)
            if moment:
                moments.append(moment)

        leaks = find_answer_leaks(moments)
        if leaks:
            logger.warning(f"Dropping {len(leaks)} teachable moment(s) whose problem text exposes the answer")
            moments = [m for m in moments if m not in leaks]

        throttled = throttle_detections(moments, estimate_bullet_count(text), self.max_percent)
        logger.debug(f"Teachable moments: {len(moments)} paired, {len(throttled)} kept after throttling")
        return throttled

    def _pair(self, text: str, question: DetectedContent) -> Optional[TeachableMoment]:
        problem = question
        inline = find_inline_answer(question.text, question.start_index)

        if inline:
            # Answer written inside the question line: the problem stops before the marker
            marker_start, answer = inline
            start, end = trimmed_span(text, question.start_index, marker_start)
            if end - start < self.question_detector.min_length:
                return None
            problem = DetectedContent(
                type=question.type,
                text=text[start:end],
                confidence=question.confidence,
                detection_method=question.detection_method,
                start_index=start,
                end_index=end,
            )
            proximity = marker_start - problem.end_index
        else:
            window_end = min(len(text), question.end_index + self.proximity_threshold)
            found = find_answer(text[question.end_index:window_end], question.end_index)
            if found:
                marker_start, answer = found
                proximity = marker_start - question.end_index
            else:
                answer = None
                proximity = self.proximity_threshold

        return TeachableMoment(
            problem=problem,
            answer=answer,
            content_category=classify_content_category(problem.text, answer.text if answer else ""),
            confidence=ConfidenceLevel.HIGH if answer else ConfidenceLevel.MEDIUM,
            proximity_chars=proximity,
        )


_default_detector = TeachableMomentDetector()


def detect_teachable_moments(text: str) -> List[TeachableMoment]:
    """Detect teachable moments with the default configuration."""
    return _default_detector.detect(text)

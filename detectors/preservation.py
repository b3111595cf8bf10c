"""
Content preservation detector: finds questions, activities and instructions
in lesson-plan text that must appear on slides word for word.
"""

import logging
import re
from typing import List, Dict, Any, Optional, Tuple

from config_loader import get_section
from models import (
    ConfidenceLevel,
    ContentType,
    DetectedContent,
    DetectionMethod,
    PreservableContent,
)


logger = logging.getLogger(__name__)


# Enthusiasm markers rather than questions students are expected to answer
RHETORICAL_PATTERNS = (
    re.compile(r"^Isn't\s", re.IGNORECASE),
    re.compile(r"^Don't\s+you\s+think", re.IGNORECASE),
    re.compile(r"^Doesn't\s", re.IGNORECASE),
    re.compile(r"^Wouldn't\s+(?:it\s+be|you)", re.IGNORECASE),
    re.compile(r"^Shouldn't\s", re.IGNORECASE),
    re.compile(r"^Can\s+you\s+believe", re.IGNORECASE),
    re.compile(r"^Have\s+you\s+ever\s+wondered", re.IGNORECASE),
)

# Bloom's taxonomy action verbs by cognitive level
BLOOM_ACTION_VERBS = {
    'remember': ('define', 'identify', 'describe', 'list', 'label', 'name', 'state', 'match', 'select', 'recall'),
    'understand': ('summarize', 'summarise', 'interpret', 'classify', 'compare', 'explain', 'discuss',
                   'distinguish', 'paraphrase', 'predict'),
    'apply': ('solve', 'complete', 'use', 'demonstrate', 'show', 'illustrate', 'apply', 'calculate',
              'work out', 'draw', 'write'),
    'analyze': ('analyze', 'analyse', 'contrast', 'differentiate', 'categorize', 'categorise', 'examine',
                'investigate', 'organize', 'organise', 'sort'),
    'evaluate': ('evaluate', 'judge', 'defend', 'critique', 'prioritize', 'prioritise', 'assess', 'justify'),
    'create': ('create', 'design', 'develop', 'formulate', 'construct', 'plan', 'compose', 'produce'),
}

# Longest first so multi-word verbs win over their first word
ALL_ACTION_VERBS = tuple(sorted(
    {verb for verbs in BLOOM_ACTION_VERBS.values() for verb in verbs},
    key=lambda verb: (-len(verb), verb),
))

DESCRIPTIVE_PATTERNS = (
    re.compile(r"\b(?:students|they|you|learners|pupils)\s+will\b", re.IGNORECASE),
)

INSTRUCTION_MARKERS = (
    'Key points', 'Key point', 'Instructions', 'Instruction', 'Important', 'Remember',
    'Warning', 'Note', 'Tip', 'Hint', 'Task',
)

_BULLET = r"[ \t]*(?:[-*•][ \t]*)?"


def _words(phrase: str) -> str:
    return r"[ \t]+".join(re.escape(word) for word in phrase.split())


_MARKER_ALTERNATION = "|".join(_words(marker) for marker in INSTRUCTION_MARKERS)
_VERB_ALTERNATION = "|".join(_words(verb) for verb in ALL_ACTION_VERBS)

QUESTION_MARK_PATTERN = re.compile(r"[^.!?\n]*\?")

CONTEXT_PATTERN = re.compile(
    r"^" + _BULLET +
    r"(?:Ask(?:[ \t]+(?:students|the[ \t]+class))?|Questions?|Q\d+)[ \t]*:[ \t]*(?P<body>[^\n]+)",
    re.IGNORECASE | re.MULTILINE,
)

NUMBERED_QUESTION_PATTERN = re.compile(
    r"^[ \t]*(?:\d+[.)]|\([a-z0-9]\)|[a-z]\))[ \t]*(?P<body>[^\n]*\?)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)

ACTIVITY_PATTERN = re.compile(
    r"(?:^" + _BULLET + r"|(?<=[.!?:])[ \t]+)"
    r"(?P<body>(?:" + _VERB_ALTERNATION + r")\b[ \t]+[^.!?\n]+[.!?]?)",
    re.IGNORECASE | re.MULTILINE,
)

INSTRUCTION_PATTERN = re.compile(
    r"^" + _BULLET + r"(?:" + _MARKER_ALTERNATION + r")[ \t]*:[ \t]*(?P<body>[^\n]+)",
    re.IGNORECASE | re.MULTILINE,
)

# An activity sentence preceded on its line by one of these is explicit teacher direction
ACTIVITY_PREFIX_PATTERN = re.compile(
    r"(?:" + _MARKER_ALTERNATION + r"|Activity|Challenge|Do[ \t]+now)[ \t]*:[ \t]*$",
    re.IGNORECASE,
)


def is_rhetorical(text: str) -> bool:
    trimmed = text.strip()
    return any(pattern.search(trimmed) for pattern in RHETORICAL_PATTERNS)


def is_descriptive(text: str) -> bool:
    """True for future-tense descriptions ("students will ...") rather than directions."""
    return any(pattern.search(text) for pattern in DESCRIPTIVE_PATTERNS)


def trimmed_span(text: str, start: int, end: int) -> Tuple[int, int]:
    """Shrink [start, end) so it neither begins nor ends with whitespace."""
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def resolve_overlaps(items: List[DetectedContent]) -> List[DetectedContent]:
    """
    Drop detections that overlap a stronger one.

    Strength is confidence first, then method specificity, then earlier start,
    then longer span. Survivors are returned sorted by position.
    """
    ranked = sorted(items, key=lambda item: (
        item.confidence.rank,
        item.detection_method.priority,
        item.start_index,
        -(item.end_index - item.start_index),
    ))

    kept: List[DetectedContent] = []
    for item in ranked:
        if not any(item.overlaps(other) for other in kept):
            kept.append(item)

    return sorted(kept, key=lambda item: (item.start_index, item.end_index))


class ContentPreservationDetector:
    """Detects content that an AI rewrite must not paraphrase."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = get_section(config, 'preservation')
        self.min_length = self.config.get('min_question_length', 3)

    def detect(self, text: str) -> PreservableContent:
        """Detect all preservable content. Pure and deterministic."""
        if not text:
            return PreservableContent()

        questions = self.detect_questions(text)
        activities = self.detect_activities(text)
        instructions = self.detect_instructions(text)

        all_items = resolve_overlaps(questions + activities + instructions)
        logger.debug(
            f"Preservation scan: {len(questions)} questions, {len(activities)} activities, "
            f"{len(instructions)} instructions, {len(all_items)} kept after overlap resolution"
        )

        return PreservableContent(
            questions=questions,
            activities=activities,
            instructions=instructions,
            all=all_items,
        )

    def detect_questions(self, text: str) -> List[DetectedContent]:
        if not text:
            return []

        results: List[DetectedContent] = []

        for match in QUESTION_MARK_PATTERN.finditer(text):
            item = self._build(text, match.start(), match.end(), ContentType.QUESTION,
                               None, DetectionMethod.PUNCTUATION)
            if item:
                confidence = ConfidenceLevel.LOW if is_rhetorical(item.text) else ConfidenceLevel.MEDIUM
                results.append(self._with_confidence(item, confidence))

        for match in CONTEXT_PATTERN.finditer(text):
            item = self._build(text, match.start('body'), match.end('body'), ContentType.QUESTION,
                               ConfidenceLevel.HIGH, DetectionMethod.CONTEXT)
            if item:
                results.append(item)

        for match in NUMBERED_QUESTION_PATTERN.finditer(text):
            item = self._build(text, match.start('body'), match.end('body'), ContentType.QUESTION,
                               ConfidenceLevel.MEDIUM, DetectionMethod.NUMBERED_LIST)
            if item:
                results.append(item)

        return resolve_overlaps(results)

    def detect_activities(self, text: str) -> List[DetectedContent]:
        if not text:
            return []

        results: List[DetectedContent] = []

        for match in ACTIVITY_PATTERN.finditer(text):
            start, end = match.start('body'), match.end('body')
            item = self._build(text, start, end, ContentType.ACTIVITY, None, DetectionMethod.ACTION_VERB)
            if not item:
                continue

            line_start = text.rfind('\n', 0, item.start_index) + 1
            preceding = text[line_start:item.start_index]

            if is_descriptive(item.text):
                confidence = ConfidenceLevel.LOW
            elif ACTIVITY_PREFIX_PATTERN.search(preceding):
                confidence = ConfidenceLevel.HIGH
            else:
                confidence = ConfidenceLevel.MEDIUM
            results.append(self._with_confidence(item, confidence))

        return resolve_overlaps(results)

    def detect_instructions(self, text: str) -> List[DetectedContent]:
        if not text:
            return []

        results = []
        for match in INSTRUCTION_PATTERN.finditer(text):
            item = self._build(text, match.start('body'), match.end('body'), ContentType.INSTRUCTION,
                               ConfidenceLevel.HIGH, DetectionMethod.INSTRUCTION_PREFIX)
            if item:
                results.append(item)

        return resolve_overlaps(results)

    def _build(self, text: str, start: int, end: int, content_type: ContentType,
               confidence: Optional[ConfidenceLevel], method: DetectionMethod) -> Optional[DetectedContent]:
        start, end = trimmed_span(text, start, end)
        if end - start < self.min_length:
            return None
        return DetectedContent(
            type=content_type,
            text=text[start:end],
            confidence=confidence or ConfidenceLevel.MEDIUM,
            detection_method=method,
            start_index=start,
            end_index=end,
        )

    @staticmethod
    def _with_confidence(item: DetectedContent, confidence: ConfidenceLevel) -> DetectedContent:
        if item.confidence == confidence:
            return item
        return DetectedContent(
            type=item.type,
            text=item.text,
            confidence=confidence,
            detection_method=item.detection_method,
            start_index=item.start_index,
            end_index=item.end_index,
        )


_default_detector = ContentPreservationDetector()


def detect_preservable_content(text: str) -> PreservableContent:
    """Detect preservable content with the default configuration."""
    return _default_detector.detect(text)

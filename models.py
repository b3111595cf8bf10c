"""
Data models for the lesson-text analysis pipeline.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Dict, Any, Optional, Tuple


SEGMENT_DELIMITER = "\U0001F449"  # Teleprompter splits speaker notes on this


class ContentType(str, Enum):
    QUESTION = "question"
    ACTIVITY = "activity"
    INSTRUCTION = "instruction"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key: lower is stronger."""
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {
    ConfidenceLevel.HIGH: 0,
    ConfidenceLevel.MEDIUM: 1,
    ConfidenceLevel.LOW: 2,
}


class DetectionMethod(str, Enum):
    PUNCTUATION = "punctuation"
    CONTEXT = "context"
    NUMBERED_LIST = "numbered-list"
    ACTION_VERB = "action-verb"
    INSTRUCTION_PREFIX = "instruction-prefix"

    @property
    def priority(self) -> int:
        """Specificity used to break confidence ties: lower wins."""
        return _METHOD_PRIORITY[self]


_METHOD_PRIORITY = {
    DetectionMethod.CONTEXT: 0,
    DetectionMethod.INSTRUCTION_PREFIX: 1,
    DetectionMethod.NUMBERED_LIST: 2,
    DetectionMethod.ACTION_VERB: 3,
    DetectionMethod.PUNCTUATION: 4,
}


@dataclass(frozen=True)
class DetectedContent:
    """A span of lesson text that must survive verbatim on generated slides."""
    type: ContentType
    text: str                        # Exact substring of the source
    confidence: ConfidenceLevel
    detection_method: DetectionMethod
    start_index: int                 # Half-open range into the source text
    end_index: int

    def overlaps(self, other: "DetectedContent") -> bool:
        return self.start_index < other.end_index and self.end_index > other.start_index

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "text": self.text,
            "confidence": self.confidence.value,
            "detectionMethod": self.detection_method.value,
            "startIndex": self.start_index,
            "endIndex": self.end_index,
        }


@dataclass
class PreservableContent:
    """Aggregated detections; ``all`` is position-sorted and overlap-free."""
    questions: List[DetectedContent] = field(default_factory=list)
    activities: List[DetectedContent] = field(default_factory=list)
    instructions: List[DetectedContent] = field(default_factory=list)
    all: List[DetectedContent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questions": [item.to_dict() for item in self.questions],
            "activities": [item.to_dict() for item in self.activities],
            "instructions": [item.to_dict() for item in self.instructions],
            "all": [item.to_dict() for item in self.all],
        }


class ContentCategory(str, Enum):
    MATH = "math"
    VOCABULARY = "vocabulary"
    SCIENCE = "science"
    COMPREHENSION = "comprehension"
    GENERAL = "general"


@dataclass(frozen=True)
class DetectedAnswer:
    """An answer found near a question. Never part of the question's own span."""
    text: str
    start_index: int
    end_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "startIndex": self.start_index, "endIndex": self.end_index}


@dataclass(frozen=True)
class TeachableMoment:
    """A question/answer pair whose answer is held back until the teacher reveals it."""
    problem: DetectedContent
    answer: Optional[DetectedAnswer]
    content_category: ContentCategory
    confidence: ConfidenceLevel
    proximity_chars: int             # Distance from problem end to answer start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "problem": self.problem.to_dict(),
            "answer": self.answer.to_dict() if self.answer else None,
            "contentCategory": self.content_category.value,
            "confidence": self.confidence.value,
            "proximityChars": self.proximity_chars,
        }


class LessonPhase(str, Enum):
    """Gradual Release of Responsibility phases, in detection order."""
    HOOK = "hook"
    I_DO = "i-do"
    WE_DO_TOGETHER = "we-do-together"
    WE_DO = "we-do"
    YOU_DO = "you-do"
    PLENARY = "plenary"


# Order in which the phases are taught, used for reporting and positional buckets
PEDAGOGICAL_ORDER: Tuple[LessonPhase, ...] = (
    LessonPhase.HOOK,
    LessonPhase.I_DO,
    LessonPhase.WE_DO,
    LessonPhase.WE_DO_TOGETHER,
    LessonPhase.YOU_DO,
    LessonPhase.PLENARY,
)


@dataclass(frozen=True)
class PhasePattern:
    """Rule set for one phase. Structural patterns are tried before content patterns."""
    phase: LessonPhase
    structural_patterns: Tuple[re.Pattern, ...]
    content_patterns: Tuple[re.Pattern, ...]


@dataclass(frozen=True)
class DetectedPhase:
    phase: LessonPhase
    start_position: int
    end_position: int
    matched_keyword: str
    confidence: ConfidenceLevel      # HIGH for structural, MEDIUM for content

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "startPosition": self.start_position,
            "endPosition": self.end_position,
            "matchedKeyword": self.matched_keyword,
            "confidence": self.confidence.value,
        }


@dataclass
class PhaseDetectionResult:
    phases: List[DetectedPhase] = field(default_factory=list)
    has_explicit_phases: bool = False  # True if any structural pattern matched


@dataclass
class PhaseDistribution:
    """Phase balance across a deck."""
    counts: Dict[LessonPhase, int]
    percentages: Dict[LessonPhase, int]  # Relative to assigned slides, rounded
    total: int
    missing_phases: List[LessonPhase]
    unassigned: int


class BlockKind(str, Enum):
    SAY = "say"
    ASK = "ask"
    WRITE_ON_BOARD = "write-on-board"
    ACTIVITY = "activity"
    SECTION_HEADING = "section-heading"
    IMPLICIT_SAY = "implicit-say"

    @property
    def is_narration(self) -> bool:
        return self in (BlockKind.SAY, BlockKind.IMPLICIT_SAY)


@dataclass(frozen=True)
class ScriptedBlock:
    """One unit parsed from marker-annotated lesson text."""
    kind: BlockKind
    text: str
    line_number: int                 # 1-indexed line of the marker or heading
    day: int
    section: Optional[str] = None    # Canonical section label active at parse time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "text": self.text,
            "lineNumber": self.line_number,
            "day": self.day,
            "section": self.section,
        }


@dataclass
class DaySection:
    day_number: int
    title: Optional[str] = None
    blocks: List[ScriptedBlock] = field(default_factory=list)

    @property
    def content_blocks(self) -> List[ScriptedBlock]:
        return [b for b in self.blocks if b.kind != BlockKind.SECTION_HEADING]


@dataclass
class ParseStats:
    counts: Dict[BlockKind, int] = field(default_factory=lambda: {kind: 0 for kind in BlockKind})
    skipped_lines: int = 0           # Short unmarked lines treated as noise
    total_lines: int = 0
    parsed_lines: int = 0            # Lines that contributed to blocks

    def to_dict(self) -> Dict[str, Any]:
        return {
            "counts": {kind.value: count for kind, count in self.counts.items()},
            "skippedLines": self.skipped_lines,
            "totalLines": self.total_lines,
            "parsedLines": self.parsed_lines,
        }


@dataclass
class ScriptedParseResult:
    days: List[DaySection] = field(default_factory=list)
    total_blocks: int = 0            # Content blocks only, headings excluded
    total_days: int = 0
    warnings: List[str] = field(default_factory=list)
    stats: ParseStats = field(default_factory=ParseStats)

    @property
    def blocks(self) -> List[ScriptedBlock]:
        return [block for day in self.days for block in day.blocks]


@dataclass(frozen=True)
class Slide:
    """A deck slide. Speaker notes hold ``len(content) + 1`` narration segments."""
    title: str
    content: Tuple[str, ...] = ()
    speaker_notes: str = ""
    lesson_phase: Optional[LessonPhase] = None
    id: str = ""
    layout: str = "split"
    slide_type: Optional[str] = None
    has_question_flag: bool = False

    @property
    def segments(self) -> List[str]:
        return self.speaker_notes.split(SEGMENT_DELIMITER)

    def with_phase(self, phase: Optional[LessonPhase]) -> "Slide":
        return replace(self, lesson_phase=phase)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "content": list(self.content),
            "speakerNotes": self.speaker_notes,
            "layout": self.layout,
        }
        if self.lesson_phase:
            data["lessonPhase"] = self.lesson_phase.value
        if self.slide_type:
            data["slideType"] = self.slide_type
        if self.has_question_flag:
            data["hasQuestionFlag"] = True
        return data

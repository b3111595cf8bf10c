"""
Phase detector: finds Gradual Release of Responsibility phase boundaries in
lesson text and assigns a lesson phase to each slide of a deck.
"""

import logging
import math
from typing import List, Dict, Any, Optional, Sequence

from config_loader import get_section
from models import (
    PEDAGOGICAL_ORDER,
    ConfidenceLevel,
    DetectedPhase,
    LessonPhase,
    PhaseDetectionResult,
    PhaseDistribution,
    Slide,
)
from .phase_patterns import PHASE_PATTERNS


logger = logging.getLogger(__name__)

_KEYWORD_STRIP = " \t\r\n*-#>•:–—"

# Middle of a deck without headings, in teaching order
_MIDDLE_PHASES = (LessonPhase.WE_DO, LessonPhase.WE_DO_TOGETHER, LessonPhase.YOU_DO)


def _overlaps(phase: DetectedPhase, start: int, end: int) -> bool:
    return start < phase.end_position and end > phase.start_position


class PhaseDetector:
    """Labels lesson text and slide decks with lesson phases."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, patterns=PHASE_PATTERNS):
        self.config = get_section(config, 'phases')
        self.min_slides_for_heuristics = int(self.config.get('min_slides_for_heuristics', 5))
        self.patterns = patterns

    def detect_phases_in_text(self, text: str) -> PhaseDetectionResult:
        """
        Scan text for phase boundaries.

        Patterns are tried in dictionary order, structural before content, and a
        structural match cannot claim text an earlier structural match already
        consumed. Content patterns only run for phases with no structural hit.
        Overlaps are then resolved with high confidence beating medium and
        earlier discovery beating later.
        """
        if not text or not text.strip():
            return PhaseDetectionResult()

        candidates: List[DetectedPhase] = []
        structural: List[DetectedPhase] = []

        for pattern_def in self.patterns:
            found_structural = False
            for regex in pattern_def.structural_patterns:
                for match in regex.finditer(text):
                    start, end = match.start(), match.end()
                    if any(_overlaps(kept, start, end) for kept in structural):
                        continue
                    detected = self._build(pattern_def.phase, match.group(0), start, end, ConfidenceLevel.HIGH)
                    structural.append(detected)
                    candidates.append(detected)
                    found_structural = True

            if found_structural:
                continue

            for regex in pattern_def.content_patterns:
                for match in regex.finditer(text):
                    candidates.append(self._build(
                        pattern_def.phase, match.group(0), match.start(), match.end(), ConfidenceLevel.MEDIUM
                    ))

        ranked = sorted(enumerate(candidates), key=lambda pair: (pair[1].confidence.rank, pair[0]))
        kept: List[DetectedPhase] = []
        for _, candidate in ranked:
            if not any(_overlaps(other, candidate.start_position, candidate.end_position) for other in kept):
                kept.append(candidate)
        kept.sort(key=lambda p: (p.start_position, p.end_position))

        has_explicit = any(p.confidence == ConfidenceLevel.HIGH for p in kept)
        logger.debug(f"Detected {len(kept)} phase markers (explicit headings: {has_explicit})")
        return PhaseDetectionResult(phases=kept, has_explicit_phases=has_explicit)

    def assign_phases_to_slides(self, slides: Sequence[Slide],
                                detected: Optional[PhaseDetectionResult] = None) -> List[Slide]:
        """
        Assign a lesson phase to every slide that does not already carry one.

        Returns new slide objects; the input sequence is left untouched.
        """
        if not slides:
            return []

        detected = detected or PhaseDetectionResult()

        if detected.has_explicit_phases and detected.phases:
            logger.debug("Assigning phases by proportional position of detected headings")
            return self._assign_from_explicit_phases(slides, detected.phases)

        if len(slides) >= self.min_slides_for_heuristics:
            logger.debug(f"No explicit phases; applying positional heuristics to {len(slides)} slides")
            return self._assign_from_positional_heuristics(slides)

        logger.debug(f"No explicit phases and only {len(slides)} slides; leaving phases unassigned")
        return [slide.with_phase(slide.lesson_phase) for slide in slides]

    def _assign_from_explicit_phases(self, slides: Sequence[Slide],
                                     phases: List[DetectedPhase]) -> List[Slide]:
        ordered = sorted(phases, key=lambda p: p.start_position)
        text_start = ordered[0].start_position
        text_range = max(1, ordered[-1].end_position - text_start)
        last_index = max(1, len(slides) - 1)

        assigned = []
        for index, slide in enumerate(slides):
            if slide.lesson_phase:
                assigned.append(slide.with_phase(slide.lesson_phase))
                continue

            position = text_start + (index / last_index) * text_range
            phase = ordered[0].phase
            for candidate in reversed(ordered):
                if candidate.start_position <= position:
                    phase = candidate.phase
                    break
            assigned.append(slide.with_phase(phase))

        return assigned

    def _assign_from_positional_heuristics(self, slides: Sequence[Slide]) -> List[Slide]:
        total = len(slides)
        middle_start = 2
        middle_count = max(1, total - 3)

        assigned = []
        for index, slide in enumerate(slides):
            if slide.lesson_phase:
                assigned.append(slide.with_phase(slide.lesson_phase))
                continue

            if index == 0:
                phase = LessonPhase.HOOK
            elif index == total - 1:
                phase = LessonPhase.PLENARY
            elif index == 1:
                phase = LessonPhase.I_DO
            else:
                bucket = math.floor((index - middle_start) / middle_count * len(_MIDDLE_PHASES))
                phase = _MIDDLE_PHASES[min(bucket, len(_MIDDLE_PHASES) - 1)]
            assigned.append(slide.with_phase(phase))

        return assigned

    @staticmethod
    def _build(phase: LessonPhase, matched: str, start: int, end: int,
               confidence: ConfidenceLevel) -> DetectedPhase:
        return DetectedPhase(
            phase=phase,
            start_position=start,
            end_position=end,
            matched_keyword=matched.strip(_KEYWORD_STRIP),
            confidence=confidence,
        )


def compute_phase_distribution(slides: Sequence[Slide]) -> PhaseDistribution:
    """Count slides per phase, with percentages relative to the assigned slides."""
    counts: Dict[LessonPhase, int] = {phase: 0 for phase in PEDAGOGICAL_ORDER}
    unassigned = 0

    for slide in slides:
        if slide.lesson_phase:
            counts[slide.lesson_phase] += 1
        else:
            unassigned += 1

    assigned = len(slides) - unassigned
    percentages = {
        phase: int(math.floor(count / assigned * 100 + 0.5)) if assigned else 0
        for phase, count in counts.items()
    }

    return PhaseDistribution(
        counts=counts,
        percentages=percentages,
        total=len(slides),
        missing_phases=[phase for phase in PEDAGOGICAL_ORDER if counts[phase] == 0],
        unassigned=unassigned,
    )


_default_detector = PhaseDetector()


def detect_phases_in_text(text: str) -> PhaseDetectionResult:
    return _default_detector.detect_phases_in_text(text)


def assign_phases_to_slides(slides: Sequence[Slide],
                            detected: Optional[PhaseDetectionResult] = None) -> List[Slide]:
    return _default_detector.assign_phases_to_slides(slides, detected)

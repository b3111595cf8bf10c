"""
Slide mapper for scripted lesson plans.

Walks one day's blocks, accumulating narration and bullets onto an open
slide and flushing it on section headings, questions and substantial
activities. Every emitted slide carries ``len(content) + 1`` narration
segments: one spoken before each bullet is revealed plus one trailing.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Sequence

from config_loader import get_section
from models import (
    SEGMENT_DELIMITER,
    BlockKind,
    LessonPhase,
    ScriptedBlock,
    ScriptedParseResult,
    Slide,
)


logger = logging.getLogger(__name__)


SECTION_TO_PHASE: Dict[str, LessonPhase] = {
    'Hook': LessonPhase.HOOK,
    'I Do': LessonPhase.I_DO,
    'We Do Together': LessonPhase.WE_DO_TOGETHER,
    'We Do': LessonPhase.WE_DO,
    'You Do': LessonPhase.YOU_DO,
    'Plenary': LessonPhase.PLENARY,
}

WORK_TOGETHER = 'work-together'


@dataclass
class _SlideDraft:
    title: str = ""
    bullets: List[str] = field(default_factory=list)
    # segment_groups[i] holds narration spoken before bullets[i]; the last group trails
    segment_groups: List[List[str]] = field(default_factory=lambda: [[]])
    has_question: bool = False
    lesson_phase: Optional[LessonPhase] = None
    work_together: bool = False

    def add_narration(self, text: str) -> None:
        position = len(self.bullets)
        while len(self.segment_groups) <= position:
            self.segment_groups.append([])
        self.segment_groups[position].append(text)

    def add_bullet(self, text: str) -> None:
        self.bullets.append(text)
        while len(self.segment_groups) <= len(self.bullets):
            self.segment_groups.append([])

    @property
    def is_empty(self) -> bool:
        has_narration = any(group for group in self.segment_groups)
        return not self.bullets and not has_narration and not self.work_together


def enforce_segment_count(speaker_notes: str, content_count: int) -> str:
    """
    Make ``speaker_notes`` hold exactly ``content_count + 1`` segments.

    Missing segments are padded with empty strings at the end. Surplus
    segments are folded into the trailing one; bullets are never dropped.
    """
    required = content_count + 1
    segments = speaker_notes.split(SEGMENT_DELIMITER)

    if len(segments) < required:
        segments.extend([""] * (required - len(segments)))
    elif len(segments) > required:
        tail = "\n\n".join(s for s in segments[required - 1:] if s)
        segments = segments[:required - 1] + [tail]

    return SEGMENT_DELIMITER.join(segments)


def build_speaker_notes(segment_groups: List[List[str]], content_count: int) -> str:
    slots = []
    for index in range(content_count + 1):
        group = segment_groups[index] if index < len(segment_groups) else []
        slots.append("\n\n".join(group))
    return enforce_segment_count(SEGMENT_DELIMITER.join(slots), content_count)


class SlideMapper:
    """Converts scripted blocks into presentation slides."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = get_section(config, 'scripted')
        self.activity_min_length = int(self.config.get('activity_min_length', 80))
        self.title_max_length = int(self.config.get('title_max_length', 60))

    def is_substantial_activity(self, text: str) -> bool:
        """Long or multi-line activities get a dedicated work-together slide."""
        return '\n' in text or len(text) > self.activity_min_length

    def map_blocks(self, blocks: Sequence[ScriptedBlock], day: Optional[int] = None) -> List[Slide]:
        """Map one day's blocks to slides. Input blocks are never modified."""
        if day is None:
            day = blocks[0].day if blocks else 1

        slides: List[Slide] = []
        draft = _SlideDraft()
        phase: Optional[LessonPhase] = None
        section: Optional[str] = None
        section_slide_count = 0

        def flush() -> None:
            nonlocal draft, section_slide_count
            slide = self._finish(draft, section, section_slide_count, day, len(slides))
            if slide:
                slides.append(slide)
                section_slide_count += 1
            draft = _SlideDraft(lesson_phase=phase)

        for block in blocks:
            text = block.text.replace(SEGMENT_DELIMITER, "").strip()

            if block.kind == BlockKind.SECTION_HEADING:
                flush()
                section = text
                phase = SECTION_TO_PHASE.get(text)
                section_slide_count = 0
                draft = _SlideDraft(lesson_phase=phase)

            elif block.kind.is_narration:
                draft.add_narration(text)

            elif block.kind == BlockKind.WRITE_ON_BOARD:
                draft.add_bullet(text)

            elif block.kind == BlockKind.ASK:
                # A question always closes its slide so it gets the screen to itself
                draft.add_bullet(text)
                draft.has_question = True
                flush()

            elif block.kind == BlockKind.ACTIVITY:
                if self.is_substantial_activity(text):
                    flush()
                    draft.bullets = [line.strip() for line in text.split('\n') if line.strip()]
                    draft.segment_groups = [[text]]
                    draft.work_together = True
                    if not section:
                        draft.title = self._truncate(draft.bullets[0]) if draft.bullets else 'Activity'
                    flush()
                else:
                    draft.add_bullet(text)

        flush()

        logger.debug(f"Mapped {len(blocks)} blocks for day {day} to {len(slides)} slides")
        return slides

    def map_result(self, result: ScriptedParseResult) -> List[List[Slide]]:
        """Map every parsed day; the outer list lines up with ``result.days``."""
        return [self.map_blocks(day.blocks, day.day_number) for day in result.days]

    def _finish(self, draft: _SlideDraft, section: Optional[str], section_slide_count: int,
                day: int, index: int) -> Optional[Slide]:
        if draft.is_empty:
            return None

        title = draft.title
        if not title and section:
            title = f"{section} (cont.)" if section_slide_count > 0 else section
        if not title and draft.bullets:
            title = self._truncate(draft.bullets[0])
        if not title:
            title = 'Untitled'

        return Slide(
            id=f"scripted-d{day}-{index + 1}",
            title=title,
            content=tuple(draft.bullets),
            speaker_notes=build_speaker_notes(draft.segment_groups, len(draft.bullets)),
            lesson_phase=draft.lesson_phase,
            layout=WORK_TOGETHER if draft.work_together else 'split',
            slide_type=WORK_TOGETHER if draft.work_together else None,
            has_question_flag=draft.has_question,
        )

    def _truncate(self, text: str) -> str:
        if len(text) <= self.title_max_length:
            return text
        return text[:self.title_max_length - 3].rstrip() + '...'


_default_mapper = SlideMapper()


def map_blocks_to_slides(blocks: Sequence[ScriptedBlock]) -> List[Slide]:
    return _default_mapper.map_blocks(blocks)

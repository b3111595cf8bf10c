"""
Scripted lesson plan parser.

Turns marker-annotated lesson text (``Say:``, ``Ask:``, ``Write on board:``,
``Activity:``) into typed blocks grouped by ``## Day N`` boundaries, with the
active ``##``/``###`` section heading recorded on each block. One forward pass
over the lines; never raises, always returns a structurally valid result.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple

from config_loader import get_section
from models import BlockKind, DaySection, ParseStats, ScriptedBlock, ScriptedParseResult


logger = logging.getLogger(__name__)


_MARKER_PREFIX = r"^[ \t]*(?:[-•][ \t]+)?\**[ \t]*"
_MARKER_SUFFIX = r"[ \t]*:\**[ \t]*(?P<text>.*)$"

# Longest marker first
MARKER_PATTERNS: Tuple[Tuple[BlockKind, "re.Pattern"], ...] = (
    (BlockKind.WRITE_ON_BOARD,
     re.compile(_MARKER_PREFIX + r"Write[ \t]+on[ \t]+(?:the[ \t]+)?board" + _MARKER_SUFFIX, re.IGNORECASE)),
    (BlockKind.ACTIVITY, re.compile(_MARKER_PREFIX + r"Activity" + _MARKER_SUFFIX, re.IGNORECASE)),
    (BlockKind.ASK,
     re.compile(_MARKER_PREFIX + r"Ask(?:[ \t]+(?:students|the[ \t]+class))?" + _MARKER_SUFFIX, re.IGNORECASE)),
    (BlockKind.SAY, re.compile(_MARKER_PREFIX + r"Say" + _MARKER_SUFFIX, re.IGNORECASE)),
)

DAY_BOUNDARY = re.compile(r"^[ \t]*##[ \t]*Day[ \t]+(?P<number>\d+)[ \t]*(?::[ \t]*(?P<title>.*?))?[ \t]*$",
                          re.IGNORECASE)

HEADING = re.compile(r"^[ \t]*(?P<hashes>#{1,6})(?:[ \t]+(?P<label>.*?))?[ \t]*$")

FORMATTING_LINE = re.compile(r"^[\s\-*=#_~]+$")

# Normalised heading text -> canonical section label
SECTION_LABELS: Dict[str, str] = {
    'hook': 'Hook',
    'starter': 'Hook',
    'warm up': 'Hook',
    'do now': 'Hook',
    'i do': 'I Do',
    'modelling': 'I Do',
    'modeling': 'I Do',
    'modelled practice': 'I Do',
    'direct instruction': 'I Do',
    'we do together': 'We Do Together',
    'partner work': 'We Do Together',
    'group work': 'We Do Together',
    'collaborative practice': 'We Do Together',
    'we do': 'We Do',
    'guided practice': 'We Do',
    'you do': 'You Do',
    'independent practice': 'You Do',
    'your turn': 'You Do',
    'plenary': 'Plenary',
    'review': 'Plenary',
    'recap': 'Plenary',
    'wrap up': 'Plenary',
    'exit ticket': 'Plenary',
}


def normalize_section_label(raw: str) -> Optional[str]:
    """Map heading text such as ``"We do -- together (10 mins):"`` to a canonical label."""
    label = re.sub(r"\s*\([^)]*\)", "", raw)
    label = re.sub(r"[\s\-–—:*]+", " ", label).strip().lower()
    return SECTION_LABELS.get(label)


def match_marker(line: str) -> Optional[Tuple[BlockKind, str]]:
    for kind, pattern in MARKER_PATTERNS:
        match = pattern.match(line)
        if match:
            return kind, match.group('text').strip()
    return None


def detect_scripted_markers(text: str) -> bool:
    """Cheap check for at least one explicit marker, without a full parse."""
    if not text:
        return False
    return any(match_marker(line) for line in text.split('\n'))


@dataclass
class _OpenBlock:
    kind: BlockKind
    lines: List[str]
    line_number: int
    section: Optional[str]


@dataclass
class _ParserState:
    """Cursor for the single forward scan."""
    day_number: int = 1
    day_title: Optional[str] = None
    day_explicit: bool = False
    section: Optional[str] = None
    day_blocks: List[ScriptedBlock] = field(default_factory=list)
    open_block: Optional[_OpenBlock] = None
    days: List[DaySection] = field(default_factory=list)
    seen_days: List[int] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    parsed_lines: int = 0
    skipped_lines: int = 0


class ScriptedParser:
    """Parses marker-annotated lesson plans into ``ScriptedBlock`` groups."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = get_section(config, 'scripted')
        self.implicit_say_min_length = int(self.config.get('implicit_say_min_length', 20))

    def parse(self, text: str) -> ScriptedParseResult:
        lines = text.split('\n') if text else []

        if not any(self._is_structural(line) for line in lines):
            result = ScriptedParseResult(stats=ParseStats(total_lines=len(lines)))
            if text and text.strip():
                result.warnings.append("No scripted markers, section headings or day boundaries found")
                result.stats.skipped_lines = sum(1 for line in lines if line.strip())
            return result

        state = _ParserState()

        for index, raw_line in enumerate(lines):
            line = raw_line.rstrip('\r')
            self._consume_line(state, line, index + 1)

        self._close_block(state)
        self._close_day(state)

        result = self._build_result(state, len(lines))
        logger.debug(
            f"Parsed {result.total_blocks} blocks across {result.total_days} day(s) "
            f"with {len(result.warnings)} warning(s)"
        )
        return result

    def _consume_line(self, state: _ParserState, line: str, line_number: int) -> None:
        day_match = DAY_BOUNDARY.match(line)
        if day_match:
            self._close_block(state)
            if state.day_blocks or state.day_explicit:
                self._close_day(state)
            number = int(day_match.group('number'))
            if number in state.seen_days:
                state.warnings.append(f"Line {line_number}: Day {number} appears more than once")
            state.seen_days.append(number)
            state.day_number = number
            state.day_title = (day_match.group('title') or '').strip() or None
            state.day_explicit = True
            state.section = None
            state.parsed_lines += 1
            return

        heading_match = HEADING.match(line)
        if heading_match and not FORMATTING_LINE.match(line):
            self._close_block(state)
            raw_label = heading_match.group('label') or ''
            label = normalize_section_label(raw_label)
            if label and len(heading_match.group('hashes')) in (2, 3):
                state.section = label
                state.day_blocks.append(ScriptedBlock(
                    kind=BlockKind.SECTION_HEADING,
                    text=label,
                    line_number=line_number,
                    day=state.day_number,
                    section=label,
                ))
                state.parsed_lines += 1
            else:
                state.warnings.append(
                    f"Line {line_number}: heading '{raw_label}' is not a recognised section"
                )
                state.skipped_lines += 1
            return

        marker = match_marker(line)
        if marker:
            self._close_block(state)
            kind, payload = marker
            state.open_block = _OpenBlock(
                kind=kind,
                lines=[payload] if payload else [],
                line_number=line_number,
                section=state.section,
            )
            state.parsed_lines += 1
            return

        if not line.strip():
            self._close_block(state)
            return

        if FORMATTING_LINE.match(line):
            self._close_block(state)
            state.skipped_lines += 1
            return

        if state.open_block:
            state.open_block.lines.append(line.strip())
            state.parsed_lines += 1
        elif len(line.strip()) >= self.implicit_say_min_length:
            state.open_block = _OpenBlock(
                kind=BlockKind.IMPLICIT_SAY,
                lines=[line.strip()],
                line_number=line_number,
                section=state.section,
            )
            state.parsed_lines += 1
        else:
            state.skipped_lines += 1

    def _close_block(self, state: _ParserState) -> None:
        block = state.open_block
        state.open_block = None
        if block is None:
            return

        text = "\n".join(block.lines).strip()
        if not text:
            state.warnings.append(f"Line {block.line_number}: {block.kind.value} marker has no text")
            return

        state.day_blocks.append(ScriptedBlock(
            kind=block.kind,
            text=text,
            line_number=block.line_number,
            day=state.day_number,
            section=block.section,
        ))

    def _close_day(self, state: _ParserState) -> None:
        if not state.day_blocks and not state.day_explicit:
            return

        if not any(b.kind != BlockKind.SECTION_HEADING for b in state.day_blocks):
            state.warnings.append(f"Day {state.day_number} has no content blocks")

        state.days.append(DaySection(
            day_number=state.day_number,
            title=state.day_title,
            blocks=list(state.day_blocks),
        ))
        state.day_blocks = []
        state.day_title = None
        state.day_explicit = False

    def _build_result(self, state: _ParserState, total_lines: int) -> ScriptedParseResult:
        stats = ParseStats(
            skipped_lines=state.skipped_lines,
            total_lines=total_lines,
            parsed_lines=state.parsed_lines,
        )
        for day in state.days:
            for block in day.blocks:
                stats.counts[block.kind] += 1

        total_blocks = sum(len(day.content_blocks) for day in state.days)

        return ScriptedParseResult(
            days=state.days,
            total_blocks=total_blocks,
            total_days=len(state.days),
            warnings=state.warnings,
            stats=stats,
        )

    @staticmethod
    def _is_structural(line: str) -> bool:
        line = line.rstrip('\r')
        if DAY_BOUNDARY.match(line) or match_marker(line):
            return True
        heading = HEADING.match(line)
        return (bool(heading) and len(heading.group('hashes')) in (2, 3)
                and normalize_section_label(heading.group('label') or '') is not None)


_default_parser = ScriptedParser()


def parse_scripted_lesson_plan(text: str) -> ScriptedParseResult:
    """Parse with the default configuration."""
    return _default_parser.parse(text)

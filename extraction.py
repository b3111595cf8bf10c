"""
Input loading for lesson text files and existing PowerPoint decks.
"""

import logging
import re
from pathlib import Path
from typing import List, Iterable

from pptx import Presentation
from pptx.enum.shapes import PP_PLACEHOLDER

from models import SEGMENT_DELIMITER, Slide


logger = logging.getLogger(__name__)

TEXT_SUFFIXES = ('.txt', '.md', '.markdown')
DECK_SUFFIXES = ('.pptx',)

_TITLE_PLACEHOLDERS = (PP_PLACEHOLDER.TITLE, PP_PLACEHOLDER.CENTER_TITLE)


def validate_inputs(path: str, suffixes: Iterable[str]) -> Path:
    """Check that ``path`` is an existing file with one of the allowed suffixes."""
    input_file = Path(path)
    if not input_file.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    if not input_file.is_file():
        raise ValueError(f"Input path must be a file: {path}")

    allowed = tuple(s.lower() for s in suffixes)
    if input_file.suffix.lower() not in allowed:
        raise ValueError(f"File must be one of {', '.join(allowed)}: {path}")

    logger.debug("Input validation passed")
    return input_file


def read_lesson_text(path: str) -> str:
    """Read a lesson plan as UTF-8, keeping line breaks (normalised to ``\\n``)."""
    input_file = validate_inputs(path, TEXT_SUFFIXES)
    text = input_file.read_text(encoding='utf-8')
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    logger.info(f"Read {len(text)} characters from {input_file.name}")
    return text


def load_slides_from_pptx(path: str) -> List[Slide]:
    """
    Load an existing deck as ``Slide`` objects so it can be phase-labelled.

    The title placeholder becomes the title, every other text frame paragraph
    becomes a bullet and tables contribute one bullet per non-empty row. The
    notes slide, when present, becomes the speaker notes.
    """
    input_file = validate_inputs(path, DECK_SUFFIXES)
    logger.info("Starting presentation content extraction")

    presentation = Presentation(str(input_file))
    slides = []

    for i, pptx_slide in enumerate(presentation.slides, 1):
        logger.debug(f"Processing slide {i}")
        slides.append(extract_slide(pptx_slide, i))

    logger.info(f"Extracted content from {len(slides)} slides")
    return slides


def extract_slide(pptx_slide, slide_num: int) -> Slide:
    """Convert a single python-pptx slide."""
    title = ""
    bullets: List[str] = []

    for shape in pptx_slide.shapes:
        if shape.has_text_frame and shape.text_frame.text.strip():
            if not title and _is_title_placeholder(shape):
                title = clean_text(shape.text_frame.text)
                continue
            for paragraph in shape.text_frame.paragraphs:
                line = clean_text(paragraph.text)
                if line:
                    bullets.append(line)

        elif getattr(shape, 'has_table', False) and shape.has_table:
            bullets.extend(extract_table_rows(shape.table))

    # If no title was identified, use first bullet as title
    if not title and bullets:
        title = bullets.pop(0)

    speaker_notes = ""
    if pptx_slide.has_notes_slide:
        notes_frame = pptx_slide.notes_slide.notes_text_frame
        if notes_frame is not None:
            speaker_notes = notes_frame.text.strip()

    return Slide(
        id=f"pptx-{slide_num}",
        title=title or f"Slide {slide_num}",
        content=tuple(bullets),
        speaker_notes=speaker_notes,
    )


def extract_table_rows(table) -> List[str]:
    """Format each non-empty table row as ``cell | cell``."""
    rows = []
    for row in table.rows:
        cells = [clean_text(cell.text) for cell in row.cells]
        if any(cells):
            rows.append(" | ".join(cells))
    return rows


def clean_text(text: str) -> str:
    """Clean and normalize extracted text."""
    if not text:
        return ""

    # Keep the teleprompter delimiter out of slide text
    text = text.replace(SEGMENT_DELIMITER, "")

    # Remove excessive whitespace
    text = re.sub(r'\s+', ' ', text)

    # Remove common artifacts
    text = re.sub(r'^\d+\s*$', '', text)  # Remove standalone numbers
    text = re.sub(r'^[^\w\s]*$', '', text)  # Remove lines with only punctuation

    # Strip leading bullet glyphs; the deck renders its own
    text = re.sub(r'^[•‣◦⁃∙\-\*]+\s*', '', text)

    return text.strip()


def _is_title_placeholder(shape) -> bool:
    if not shape.is_placeholder:
        return False
    return shape.placeholder_format.type in _TITLE_PLACEHOLDERS

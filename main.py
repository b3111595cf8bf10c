# main.py

"""
Lesson plan analyser.
Finds preservable questions and activities, pairs teachable moments, labels
slides with lesson phases and turns scripted plans into slides.
"""

import argparse
import logging
import sys
from typing import List, Optional

from extraction import read_lesson_text, load_slides_from_pptx
from detectors import (
    ContentPreservationDetector,
    TeachableMomentDetector,
    PhaseDetector,
    compute_phase_distribution,
)
from scripted import ScriptedParser, SlideMapper
from formatter import FormatterFactory
from config_loader import load_config

logger = logging.getLogger(__name__)


def resolve_log_level(level_name: str) -> int:
    return getattr(logging, str(level_name).upper(), logging.INFO)


def setup_logging(verbose: bool = False, level_name: str = "INFO"):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else resolve_log_level(level_name)
    # stderr keeps stdout clean for --format json
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lesson plan analyser")
    parser.add_argument('--format', choices=['rich', 'simple', 'json'], default='rich', help='Output format')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--config', default='config.yaml', help='Configuration file path')

    commands = parser.add_subparsers(dest='command', required=True)

    preserve = commands.add_parser('preserve', help='Detect questions, activities and instructions')
    preserve.add_argument('lesson_path', help='Path to lesson text (.txt or .md)')

    moments = commands.add_parser('moments', help='Pair questions with answers for delayed reveal')
    moments.add_argument('lesson_path', help='Path to lesson text (.txt or .md)')

    phases = commands.add_parser('phases', help='Assign lesson phases to the slides of a deck')
    phases.add_argument('deck_path', help='Path to PowerPoint (.pptx) file')
    phases.add_argument('--lesson', dest='lesson_path', help='Lesson text to detect phase headings from')

    script = commands.add_parser('script', help='Convert a scripted lesson plan into slides')
    script.add_argument('lesson_path', help='Path to scripted lesson plan (.txt or .md)')

    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """Main execution function. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    verbose = args.verbose or args.debug
    setup_logging(verbose=verbose)

    config = load_config(args.config)
    if not verbose:
        logging.getLogger().setLevel(resolve_log_level(config['logging'].get('level', 'INFO')))

    try:
        formatter = FormatterFactory.create(args.format)

        if args.command == 'preserve':
            text = read_lesson_text(args.lesson_path)
            result = ContentPreservationDetector(config).detect(text)
            logger.info(f"Found {len(result.all)} preservable items")
            output = formatter.format_preservation(result)

        elif args.command == 'moments':
            text = read_lesson_text(args.lesson_path)
            moments = TeachableMomentDetector(config).detect(text)
            logger.info(f"Found {len(moments)} teachable moments")
            output = formatter.format_moments(moments)

        elif args.command == 'phases':
            slides = load_slides_from_pptx(args.deck_path)
            if args.lesson_path:
                text = read_lesson_text(args.lesson_path)
            else:
                text = "\n".join("\n".join((slide.title,) + slide.content) for slide in slides)
            detector = PhaseDetector(config)
            detected = detector.detect_phases_in_text(text)
            labelled = detector.assign_phases_to_slides(slides, detected)
            distribution = compute_phase_distribution(labelled)
            logger.info(f"Labelled {distribution.total - distribution.unassigned} of {distribution.total} slides")
            output = formatter.format_phases(labelled, distribution)

        else:
            text = read_lesson_text(args.lesson_path)
            result = ScriptedParser(config).parse(text)
            slides_by_day = SlideMapper(config).map_result(result)
            logger.info(f"Mapped {result.total_blocks} blocks to {sum(len(s) for s in slides_by_day)} slides")
            output = formatter.format_script(result, slides_by_day)

        if output:
            print(output)
        return 0

    except Exception as e:
        logger.error(f"Analysis failed: {e}", exc_info=args.debug)
        return 1


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()

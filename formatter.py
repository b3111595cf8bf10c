"""
Output formatters for lesson analysis results.

Each formatter renders the four result shapes the CLI produces: preservable
content, teachable moments, phase assignments and scripted slides.
"""

import json
import logging
from typing import List, Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

from models import (
    ConfidenceLevel,
    PhaseDistribution,
    PreservableContent,
    ScriptedParseResult,
    Slide,
    TeachableMoment,
)
from detectors.phase_patterns import PHASE_DISPLAY_LABELS


logger = logging.getLogger(__name__)

_CONFIDENCE_STYLES = {
    ConfidenceLevel.HIGH: "bold green",
    ConfidenceLevel.MEDIUM: "yellow",
    ConfidenceLevel.LOW: "dim white",
}


def _clip(text: str, limit: int = 80) -> str:
    text = text.replace("\n", " ")
    return text[:limit] + "..." if len(text) > limit else text


class BaseFormatter:
    """Base formatter interface."""

    def format_preservation(self, result: PreservableContent) -> str:
        raise NotImplementedError

    def format_moments(self, moments: List[TeachableMoment]) -> str:
        raise NotImplementedError

    def format_phases(self, slides: List[Slide], distribution: PhaseDistribution) -> str:
        raise NotImplementedError

    def format_script(self, result: ScriptedParseResult, slides_by_day: List[List[Slide]]) -> str:
        raise NotImplementedError


class RichTableFormatter(BaseFormatter):
    """Rich table formatter for console output. Prints directly and returns an empty string."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def format_preservation(self, result: PreservableContent) -> str:
        if not result.all:
            self._display_empty("No questions, activities or instructions detected.")
            return ""

        table = Table(
            title="Preservable Content",
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
            title_style="bold magenta"
        )
        table.add_column("Type", style="yellow", no_wrap=True)
        table.add_column("Span", style="green", justify="center")
        table.add_column("Text", style="white")
        table.add_column("Method", style="dim white")
        table.add_column("Confidence", justify="center")

        for item in result.all:
            table.add_row(
                item.type.value.title(),
                f"{item.start_index}-{item.end_index}",
                _clip(item.text),
                item.detection_method.value,
                Text(item.confidence.value, style=_CONFIDENCE_STYLES[item.confidence])
            )

        self.console.print("\n")
        self.console.print(table)
        self.console.print(
            f"\n[bold green]{len(result.questions)} questions, {len(result.activities)} activities, "
            f"{len(result.instructions)} instructions[/bold green]"
        )
        return ""

    def format_moments(self, moments: List[TeachableMoment]) -> str:
        if not moments:
            self._display_empty("No teachable moments detected.")
            return ""

        table = Table(
            title="Teachable Moments",
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
            title_style="bold magenta"
        )
        table.add_column("Problem", style="white")
        table.add_column("Answer", style="green")
        table.add_column("Category", style="yellow", justify="center")
        table.add_column("Confidence", justify="center")

        for moment in moments:
            table.add_row(
                _clip(moment.problem.text),
                _clip(moment.answer.text, 40) if moment.answer else "-",
                moment.content_category.value,
                Text(moment.confidence.value, style=_CONFIDENCE_STYLES[moment.confidence])
            )

        self.console.print("\n")
        self.console.print(table)
        self.console.print(f"\n[bold green]Total Teachable Moments: {len(moments)}[/bold green]")
        return ""

    def format_phases(self, slides: List[Slide], distribution: PhaseDistribution) -> str:
        table = Table(
            title="Lesson Phases",
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
            title_style="bold magenta"
        )
        table.add_column("#", style="green", justify="right")
        table.add_column("Slide", style="white")
        table.add_column("Phase", style="yellow")

        for i, slide in enumerate(slides, 1):
            phase = PHASE_DISPLAY_LABELS[slide.lesson_phase] if slide.lesson_phase else "[dim]unassigned[/dim]"
            table.add_row(str(i), _clip(slide.title, 60), phase)

        self.console.print("\n")
        self.console.print(table)

        summary = ", ".join(
            f"{PHASE_DISPLAY_LABELS[phase]}: {distribution.percentages[phase]}%"
            for phase, count in distribution.counts.items() if count
        )
        self.console.print(f"\n[bold green]{summary or 'No phases assigned'}[/bold green]")
        if distribution.missing_phases and distribution.unassigned < distribution.total:
            missing = ", ".join(PHASE_DISPLAY_LABELS[p] for p in distribution.missing_phases)
            self.console.print(f"[yellow]Missing phases: {missing}[/yellow]")
        return ""

    def format_script(self, result: ScriptedParseResult, slides_by_day: List[List[Slide]]) -> str:
        if not result.days:
            self._display_empty("No scripted markers found in the lesson plan.")
            return ""

        for day, slides in zip(result.days, slides_by_day):
            title = f"Day {day.day_number}" + (f": {day.title}" if day.title else "")
            table = Table(
                title=title,
                show_header=True,
                header_style="bold cyan",
                border_style="bright_blue",
                title_style="bold magenta"
            )
            table.add_column("Slide", style="white")
            table.add_column("Bullets", style="green", justify="center")
            table.add_column("Phase", style="yellow")
            table.add_column("Layout", style="dim white")

            for slide in slides:
                label = slide.title + (" [bold red]?[/bold red]" if slide.has_question_flag else "")
                table.add_row(
                    label,
                    str(len(slide.content)),
                    slide.lesson_phase.value if slide.lesson_phase else "-",
                    slide.layout
                )

            self.console.print("\n")
            self.console.print(table)

        for warning in result.warnings:
            self.console.print(f"[yellow]Warning:[/yellow] {warning}")
        return ""

    def _display_empty(self, message: str) -> None:
        panel = Panel(
            f"[bold green]{message}[/bold green]",
            title="Analysis Complete",
            border_style="green",
            padding=(1, 2)
        )

        self.console.print("\n")
        self.console.print(panel)


class SimpleFormatter(BaseFormatter):
    """Simple text formatter for basic output."""

    def format_preservation(self, result: PreservableContent) -> str:
        if not result.all:
            return "No preservable content detected"

        output = ["\nPreservable Content", "=" * 60]
        for i, item in enumerate(result.all, 1):
            output.append(f"\n{i}. [{item.type.value}] {item.text}")
            output.append(f"   Span: {item.start_index}-{item.end_index}")
            output.append(f"   Method: {item.detection_method.value}, confidence: {item.confidence.value}")

        output.append(f"\nTotal Items: {len(result.all)}")
        return "\n".join(output)

    def format_moments(self, moments: List[TeachableMoment]) -> str:
        if not moments:
            return "No teachable moments detected"

        output = ["\nTeachable Moments", "=" * 60]
        for i, moment in enumerate(moments, 1):
            output.append(f"\n{i}. {moment.problem.text}")
            output.append(f"   Answer: {moment.answer.text if moment.answer else '(none found)'}")
            output.append(f"   Category: {moment.content_category.value}, confidence: {moment.confidence.value}")

        output.append(f"\nTotal Teachable Moments: {len(moments)}")
        return "\n".join(output)

    def format_phases(self, slides: List[Slide], distribution: PhaseDistribution) -> str:
        output = ["\nLesson Phases", "=" * 60]
        for i, slide in enumerate(slides, 1):
            phase = slide.lesson_phase.value if slide.lesson_phase else "unassigned"
            output.append(f"{i}. {slide.title} -> {phase}")

        output.append("")
        for phase, count in distribution.counts.items():
            output.append(f"{phase.value}: {count} ({distribution.percentages[phase]}%)")
        if distribution.unassigned:
            output.append(f"unassigned: {distribution.unassigned}")
        return "\n".join(output)

    def format_script(self, result: ScriptedParseResult, slides_by_day: List[List[Slide]]) -> str:
        if not result.days:
            return "No scripted markers found"

        output = []
        for day, slides in zip(result.days, slides_by_day):
            output.append(f"\nDay {day.day_number}" + (f": {day.title}" if day.title else ""))
            output.append("=" * 60)
            for slide in slides:
                output.append(f"- {slide.title}")
                for bullet in slide.content:
                    output.append(f"    * {bullet}")

        for warning in result.warnings:
            output.append(f"Warning: {warning}")
        return "\n".join(output)


class JSONFormatter(BaseFormatter):
    """JSON formatter for structured output."""

    def format_preservation(self, result: PreservableContent) -> str:
        return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    def format_moments(self, moments: List[TeachableMoment]) -> str:
        data = {
            "total_moments": len(moments),
            "moments": [moment.to_dict() for moment in moments]
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def format_phases(self, slides: List[Slide], distribution: PhaseDistribution) -> str:
        data = {
            "slides": [slide.to_dict() for slide in slides],
            "distribution": {
                "counts": {phase.value: count for phase, count in distribution.counts.items()},
                "percentages": {phase.value: pct for phase, pct in distribution.percentages.items()},
                "total": distribution.total,
                "missingPhases": [phase.value for phase in distribution.missing_phases],
                "unassigned": distribution.unassigned,
            }
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def format_script(self, result: ScriptedParseResult, slides_by_day: List[List[Slide]]) -> str:
        days: List[Dict[str, Any]] = []
        for day, slides in zip(result.days, slides_by_day):
            days.append({
                "dayNumber": day.day_number,
                "title": day.title,
                "blocks": [block.to_dict() for block in day.blocks],
                "slides": [slide.to_dict() for slide in slides],
            })

        data = {
            "totalDays": result.total_days,
            "totalBlocks": result.total_blocks,
            "days": days,
            "warnings": result.warnings,
            "stats": result.stats.to_dict(),
        }
        return json.dumps(data, indent=2, ensure_ascii=False)


class FormatterFactory:
    """Factory to create appropriate formatters."""

    @staticmethod
    def create(format_type: str) -> BaseFormatter:
        """Create formatter based on format type."""
        if format_type == "json":
            return JSONFormatter()
        elif format_type == "simple":
            return SimpleFormatter()
        else:  # default to rich
            return RichTableFormatter()

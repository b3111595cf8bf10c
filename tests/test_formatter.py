"""
Unit tests for output formatters.
"""
import json

from rich.console import Console

from detectors import assign_phases_to_slides, compute_phase_distribution, detect_preservable_content
from detectors.teachable import detect_teachable_moments
from formatter import FormatterFactory, JSONFormatter, RichTableFormatter, SimpleFormatter
from models import Slide
from scripted import SlideMapper, parse_scripted_lesson_plan


SCRIPT = "## Day 1: Fractions\nSay: Welcome.\nAsk: What is half of 10?\nWrite on board: 5"


class TestFormatterFactory:
    def test_create(self):
        assert isinstance(FormatterFactory.create("json"), JSONFormatter)
        assert isinstance(FormatterFactory.create("simple"), SimpleFormatter)
        assert isinstance(FormatterFactory.create("rich"), RichTableFormatter)


class TestJSONFormatter:
    """Test the structured output shape."""

    def test_preservation(self):
        data = json.loads(JSONFormatter().format_preservation(detect_preservable_content("Ask: Why is it dark?")))

        assert set(data) == {"questions", "activities", "instructions", "all"}
        assert data["all"][0] == {
            "type": "question",
            "text": "Why is it dark?",
            "confidence": "high",
            "detectionMethod": "context",
            "startIndex": 5,
            "endIndex": 20,
        }

    def test_moments(self):
        moments = detect_teachable_moments("What is 423 + 424? Answer: 847")
        data = json.loads(JSONFormatter().format_moments(moments))

        assert data["total_moments"] == 1
        assert data["moments"][0]["answer"]["text"] == "847"
        assert data["moments"][0]["contentCategory"] == "math"

    def test_phases(self):
        slides = assign_phases_to_slides([Slide(title=f"S{i}") for i in range(6)])
        data = json.loads(JSONFormatter().format_phases(slides, compute_phase_distribution(slides)))

        assert data["slides"][0]["lessonPhase"] == "hook"
        assert data["distribution"]["total"] == 6
        assert data["distribution"]["missingPhases"] == []

    def test_script(self):
        result = parse_scripted_lesson_plan(SCRIPT)
        data = json.loads(JSONFormatter().format_script(result, SlideMapper().map_result(result)))

        assert data["totalDays"] == 1
        day = data["days"][0]
        assert day["title"] == "Fractions"
        assert [b["kind"] for b in day["blocks"]] == ["say", "ask", "write-on-board"]
        assert len(day["slides"]) == 2
        assert day["slides"][0]["hasQuestionFlag"] is True


class TestTextFormatters:
    """Test human-readable output."""

    def test_simple_script(self):
        result = parse_scripted_lesson_plan(SCRIPT)
        output = SimpleFormatter().format_script(result, SlideMapper().map_result(result))

        assert "Day 1: Fractions" in output
        assert "What is half of 10?" in output

    def test_simple_empty_results(self):
        assert SimpleFormatter().format_moments([]) == "No teachable moments detected"

    def test_rich_prints_to_console(self):
        console = Console(record=True, width=120)
        formatter = RichTableFormatter(console=console)

        assert formatter.format_preservation(detect_preservable_content("Ask: Why is it dark?")) == ""
        assert "Why is it dark?" in console.export_text()

"""
Scripted lesson plan support: marker parsing and slide mapping.
"""

from .parser import ScriptedParser, detect_scripted_markers, parse_scripted_lesson_plan
from .mapper import SlideMapper, map_blocks_to_slides

__all__ = [
    'ScriptedParser',
    'SlideMapper',
    'detect_scripted_markers',
    'parse_scripted_lesson_plan',
    'map_blocks_to_slides',
]

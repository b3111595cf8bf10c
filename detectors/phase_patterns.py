"""
Phase synonym dictionary for UK/Australian lesson-plan terminology.

Structural patterns are anchored to the start of a line (after an optional
bullet or heading prefix) and must be followed by a delimiter: colon, dash,
en/em dash, or end of line. They give high confidence. Content patterns can
appear anywhere in body text and give medium confidence.

The tuple order is the matching order. ``we-do-together`` sits before
``we-do`` so the longer heading is tried, and consumes its text, first.
"""

import re
from typing import Dict

from models import LessonPhase, PhasePattern


_PREFIX = r"^[ \t*\-#>•]*"
_DELIMITER = r"[ \t]*(?:[:\-–—]|\r?$)"


def _structural(body: str, flags: int = re.IGNORECASE) -> "re.Pattern":
    return re.compile(_PREFIX + r"(?:" + body + r")" + _DELIMITER, flags | re.MULTILINE)


def _content(body: str) -> "re.Pattern":
    return re.compile(body, re.IGNORECASE)


PHASE_PATTERNS = (
    PhasePattern(
        phase=LessonPhase.HOOK,
        structural_patterns=(
            _structural(r"Hook|Starter|Warm[\s-]?Up|Do\s+Now|Engage|Opener|Activation|Tuning\s+In"),
        ),
        content_patterns=(
            _content(r"what do you already know"),
            _content(r"think[\s-]pair[\s-]share"),
        ),
    ),
    PhasePattern(
        phase=LessonPhase.I_DO,
        structural_patterns=(
            # Title case only, so "I do not recommend..." stays prose
            _structural(r"I\s+Do", flags=0),
            _structural(
                r"Modell?(?:ed|ing)(?:\s+Practice)?|Direct\s+Instruction|Teacher\s+(?:Model(?:ling)?|Demonstrat(?:es?|ion))"
                r"|Main\s+Teaching|Explicit\s+(?:Teaching|Instruction)|Input"
            ),
        ),
        content_patterns=(
            _content(r"watch (?:how|me|carefully)"),
            _content(r"let me show you"),
            _content(r"teacher (?:models?|explains?|demonstrates?)"),
        ),
    ),
    PhasePattern(
        phase=LessonPhase.WE_DO_TOGETHER,
        structural_patterns=(
            _structural(
                r"We\s+Do\s+Together|Collaborative\s+Practice|Partner\s+(?:Work|Practice|Activity)"
                r"|Peer\s+Practice|You\s+Do\s+Together|Group\s+(?:Work|Activity|Practice)"
            ),
        ),
        content_patterns=(
            _content(r"with (?:your|a) partner"),
            _content(r"in (?:your|small) groups?"),
            _content(r"discuss with (?:your|a) (?:partner|neighbour|neighbor)"),
        ),
    ),
    PhasePattern(
        phase=LessonPhase.WE_DO,
        structural_patterns=(
            _structural(
                r"We\s+Do|Guided\s+Practice|Shared\s+(?:Practice|Activity|Writing)"
                r"|Joint\s+(?:Activity|Construction)|Together\s+Time"
            ),
        ),
        content_patterns=(
            _content(r"(?:work|do this|try this|let's try) together"),
            _content(r"as a (?:class|group|whole class)"),
        ),
    ),
    PhasePattern(
        phase=LessonPhase.YOU_DO,
        structural_patterns=(
            _structural(
                r"You\s+Do|Independent\s+(?:Practice|Work|Activity|Task)|Your\s+Turn|Applying|Application"
                r"|Student\s+Activity|On\s+Your\s+Own"
            ),
        ),
        content_patterns=(
            _content(r"on your own"),
            _content(r"independently"),
            _content(r"complete the (?:task|activity|worksheet|exercise)"),
        ),
    ),
    PhasePattern(
        phase=LessonPhase.PLENARY,
        structural_patterns=(
            _structural(
                r"Plenary|Review|Recap|Reflect(?:ion)?|Summar(?:y|ise|ize)|Closing|Wrap[\s-]?Up"
                r"|Exit\s+Ticket|Self[\s-]?Assessment|Debrief|Consolidat(?:e|ion)"
            ),
        ),
        content_patterns=(
            _content(r"what (?:did we|have we|have you) learn"),
            _content(r"key takeaway"),
            _content(r"today we (?:learned|learnt|explored|discovered)"),
            _content(r"thumbs up"),
        ),
    ),
)


PHASE_DISPLAY_LABELS: Dict[LessonPhase, str] = {
    LessonPhase.HOOK: 'Hook / Starter',
    LessonPhase.I_DO: 'I Do (Modelling)',
    LessonPhase.WE_DO_TOGETHER: 'We Do Together',
    LessonPhase.WE_DO: 'We Do (Guided)',
    LessonPhase.YOU_DO: 'You Do (Independent)',
    LessonPhase.PLENARY: 'Plenary / Review',
}

"""
Detectors package for lesson-text analysis.
"""

from .preservation import ContentPreservationDetector, detect_preservable_content
from .teachable import TeachableMomentDetector, detect_teachable_moments, find_answer_leaks
from .phase import PhaseDetector, assign_phases_to_slides, compute_phase_distribution, detect_phases_in_text
from .phase_patterns import PHASE_PATTERNS, PHASE_DISPLAY_LABELS

__all__ = [
    'ContentPreservationDetector',
    'TeachableMomentDetector',
    'PhaseDetector',
    'PHASE_PATTERNS',
    'PHASE_DISPLAY_LABELS',
    'detect_preservable_content',
    'detect_teachable_moments',
    'find_answer_leaks',
    'detect_phases_in_text',
    'assign_phases_to_slides',
    'compute_phase_distribution',
]

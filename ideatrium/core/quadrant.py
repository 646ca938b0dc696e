"""
Eisenhower quadrant classification
Maps an (impact, effort) score pair onto one of the four matrix quadrants
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from ideatrium.core.errors import ValidationError

SCORE_MIN = 1
SCORE_MAX = 5
HIGH_SCORE_THRESHOLD = 3


class Quadrant(str, Enum):
    """Quadrant labels"""

    Q1 = "q1"  # Plan
    Q2 = "q2"  # Do First
    Q3 = "q3"  # Reconsider
    Q4 = "q4"  # Optional


@dataclass(frozen=True)
class QuadrantInfo:
    id: Quadrant
    title: str
    subtitle: str
    description: str


QUADRANT_INFO: Dict[Quadrant, QuadrantInfo] = {
    Quadrant.Q1: QuadrantInfo(
        Quadrant.Q1,
        "Plan",
        "High Impact, High Effort",
        "Important projects that need careful planning",
    ),
    Quadrant.Q2: QuadrantInfo(
        Quadrant.Q2,
        "Do First",
        "High Impact, Low Effort",
        "Quick wins that deliver maximum value",
    ),
    Quadrant.Q3: QuadrantInfo(
        Quadrant.Q3,
        "Reconsider",
        "Low Impact, High Effort",
        "Ideas that may not be worth the investment",
    ),
    Quadrant.Q4: QuadrantInfo(
        Quadrant.Q4,
        "Optional",
        "Low Impact, Low Effort",
        "Nice-to-have ideas for spare time",
    ),
}

# Representative (impact, effort) pair used when an idea is moved to a quadrant directly
QUADRANT_PRESETS: Dict[Quadrant, Tuple[int, int]] = {
    Quadrant.Q1: (4, 4),
    Quadrant.Q2: (4, 2),
    Quadrant.Q3: (2, 4),
    Quadrant.Q4: (2, 2),
}


def validate_score(value: object, field_name: str) -> int:
    """Reject anything that is not an integer in [1, 5]"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    if not SCORE_MIN <= value <= SCORE_MAX:
        raise ValidationError(
            f"{field_name} must be between {SCORE_MIN} and {SCORE_MAX}"
        )
    return value


def clamp_score(value: object, default: int = 3) -> int:
    """Coerce a stored score into [1, 5]; unreadable values become default"""
    try:
        score = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return max(SCORE_MIN, min(SCORE_MAX, score))


def classify(impact: int, effort: int) -> Quadrant:
    """Classify an idea by its impact and effort scores"""
    validate_score(impact, "impact")
    validate_score(effort, "effort")

    high_impact = impact >= HIGH_SCORE_THRESHOLD
    high_effort = effort >= HIGH_SCORE_THRESHOLD

    if high_impact and high_effort:
        return Quadrant.Q1
    if high_impact:
        return Quadrant.Q2
    if high_effort:
        return Quadrant.Q3
    return Quadrant.Q4


def quadrant_title(quadrant: Quadrant) -> str:
    return QUADRANT_INFO[Quadrant(quadrant)].title


def preset_scores(quadrant: Quadrant) -> Tuple[int, int]:
    """(impact, effort) pair that classifies into the given quadrant"""
    return QUADRANT_PRESETS[Quadrant(quadrant)]

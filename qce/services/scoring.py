"""
NBC 461 scoring.

Converts 1-5 rubric ratings into category averages, percentages and
weighted points. "No data" is always None; it is never folded into a zero.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from config import (
    DUAL_COMPONENT_MAX_POINTS,
    FIXED_DIVISOR,
    PERFORMANCE_BANDS,
    RATING_SCALE_MAX,
    STUDENT_WEIGHT,
    SUPERVISOR_ONLY_MAX_POINTS,
    SUPERVISOR_ONLY_TITLES,
    SUPERVISOR_WEIGHT,
)
from qce.services.rubric import Rubric, RatingKey

logger = logging.getLogger(__name__)


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


# ---------------------------------------------------------------------------
# Rubric averaging
# ---------------------------------------------------------------------------

@dataclass
class RubricAverages:
    indicators: Dict[RatingKey, Optional[float]] = field(default_factory=dict)
    categories: Dict[str, Optional[float]] = field(default_factory=dict)
    overall: Optional[float] = None

    @property
    def has_data(self) -> bool:
        return self.overall is not None


def indicator_average(values: Iterable[float]) -> Optional[float]:
    """Mean of the submitted (positive) ratings for one indicator."""
    submitted = [v for v in values if v is not None and v > 0]
    return _mean(submitted)


def average_ratings(ratings_by_indicator: Mapping[RatingKey, Sequence[float]],
                    rubric: Optional[Rubric] = None) -> RubricAverages:
    """Average ratings per indicator, per category and overall.

    Category averages are the mean of that category's indicator averages;
    the overall average weighs each category with data equally, no matter
    how many indicators it has. When a rubric is given, every rubric
    indicator is reported, rated or not.
    """
    if rubric is not None:
        keys = rubric.keys()
        extra = [k for k in ratings_by_indicator if k not in set(keys)]
        keys = keys + sorted(extra)
    else:
        keys = sorted(ratings_by_indicator)

    result = RubricAverages()
    per_category: Dict[str, List[float]] = {}
    category_order: List[str] = []

    for key in keys:
        avg = indicator_average(ratings_by_indicator.get(key, ()))
        result.indicators[key] = avg
        code = key[0]
        if code not in per_category:
            per_category[code] = []
            category_order.append(code)
        if avg is not None:
            per_category[code].append(avg)

    for code in category_order:
        result.categories[code] = _mean(per_category[code])

    result.overall = _mean([v for v in result.categories.values() if v is not None])
    return result


# ---------------------------------------------------------------------------
# NBC 461 point conversion
# ---------------------------------------------------------------------------

def to_percentage(average: Optional[float]) -> Optional[float]:
    if average is None:
        return None
    return average / RATING_SCALE_MAX * 100


def from_percentage(percentage: Optional[float]) -> Optional[float]:
    if percentage is None:
        return None
    return percentage / 100 * RATING_SCALE_MAX


def weighted_points(average: Optional[float], weight: float) -> Optional[float]:
    percentage = to_percentage(average)
    if percentage is None:
        return None
    return percentage * weight


class DivisorPolicy(Enum):
    FIXED = 'fixed'      # always 3 years x 2 semesters
    DYNAMIC = 'dynamic'  # number of semesters that have data


@dataclass
class ComponentScore:
    values: List[Optional[float]]
    weight: float
    divisor: int
    total: float
    average: Optional[float]
    percentage: Optional[float]
    points: Optional[float]

    @property
    def periods_with_data(self) -> int:
        return sum(1 for v in self.values if v is not None)


def compute_component(period_values: Sequence[Optional[float]], weight: float,
                      policy: DivisorPolicy = DivisorPolicy.FIXED) -> ComponentScore:
    """Combine per-semester 5-point averages into one weighted component."""
    values = list(period_values)
    present = [v for v in values if v is not None]
    total = sum(present)

    if policy is DivisorPolicy.FIXED:
        divisor = FIXED_DIVISOR
    else:
        divisor = len(present)

    if not present:
        average = None
    else:
        average = total / divisor

    return ComponentScore(
        values=values,
        weight=weight,
        divisor=divisor,
        total=total,
        average=average,
        percentage=to_percentage(average),
        points=weighted_points(average, weight),
    )


# ---------------------------------------------------------------------------
# Role policy
# ---------------------------------------------------------------------------

def is_supervisor_only(position: Optional[str]) -> bool:
    """Deans, chairs, the VPAA and the president get no student ratings."""
    if not position:
        return False
    title = position.lower()
    return any(role in title for role in SUPERVISOR_ONLY_TITLES)


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

@dataclass
class NBCScore:
    supervisor_only: bool
    student_average: Optional[float]
    supervisor_average: Optional[float]
    student_points: Optional[float]
    supervisor_points: Optional[float]
    total: Optional[float]
    maximum: int

    @property
    def percentage(self) -> Optional[float]:
        if self.total is None:
            return None
        return self.total / self.maximum * 100

    def to_dict(self) -> dict:
        return {
            'supervisor_only': self.supervisor_only,
            'student_average': self.student_average,
            'supervisor_average': self.supervisor_average,
            'student_percentage': to_percentage(self.student_average),
            'supervisor_percentage': to_percentage(self.supervisor_average),
            'student_points': self.student_points,
            'supervisor_points': self.supervisor_points,
            'total_points': self.total,
            'maximum_points': self.maximum,
        }


def nbc_total(student_average: Optional[float], supervisor_average: Optional[float],
              supervisor_only: bool) -> NBCScore:
    """Weighted NBC 461 total for one evaluatee.

    The total is only reported when every component that applies to the
    evaluatee has data.
    """
    supervisor_points = weighted_points(supervisor_average, SUPERVISOR_WEIGHT)

    if supervisor_only:
        return NBCScore(
            supervisor_only=True,
            student_average=None,
            supervisor_average=supervisor_average,
            student_points=None,
            supervisor_points=supervisor_points,
            total=supervisor_points,
            maximum=SUPERVISOR_ONLY_MAX_POINTS,
        )

    student_points = weighted_points(student_average, STUDENT_WEIGHT)
    if student_points is None or supervisor_points is None:
        total = None
    else:
        total = student_points + supervisor_points

    return NBCScore(
        supervisor_only=False,
        student_average=student_average,
        supervisor_average=supervisor_average,
        student_points=student_points,
        supervisor_points=supervisor_points,
        total=total,
        maximum=DUAL_COMPONENT_MAX_POINTS,
    )


def performance_category(percentage: Optional[float]) -> Optional[str]:
    if percentage is None:
        return None
    for minimum, label in PERFORMANCE_BANDS:
        if percentage >= minimum:
            return label
    return PERFORMANCE_BANDS[-1][1]


# ---------------------------------------------------------------------------
# Per-evaluation raw scores
# ---------------------------------------------------------------------------

def raw_category_scores(rubric: Rubric, ratings: Mapping[RatingKey, int]) -> Dict[str, int]:
    """Sum of the ratings in each rubric category."""
    scores = {code: 0 for code in rubric.codes}
    for (code, _index), value in ratings.items():
        if code in scores:
            scores[code] += value
    return scores


def raw_total_percentage(rubric: Rubric, ratings: Mapping[RatingKey, int]) -> float:
    """Sum of all ratings as a percentage of the form's maximum raw score."""
    maximum = RATING_SCALE_MAX * rubric.indicator_count
    return sum(ratings.values()) / maximum * 100


def format_score(value: Optional[float], places: int = 2) -> str:
    if value is None:
        return 'N/A'
    return f"{value:.{places}f}"

"""
Rubric definitions for the SET/SEF instruments.

Two versions coexist in stored data: the "old" four-category form and the
"new" three-category form. The version belongs to each evaluation record.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from config import CRITERIA_VERSIONS, RATING_SCALE_MAX, RATING_SCALE_MIN
from qce.errors import ValidationError

logger = logging.getLogger(__name__)

RatingKey = Tuple[str, int]


@dataclass(frozen=True)
class RubricCategory:
    code: str
    title: str
    description: str
    indicators: Tuple[str, ...]

    @property
    def label(self) -> str:
        return f"{self.code}. {self.title}"


@dataclass(frozen=True)
class Rubric:
    version: str
    categories: Tuple[RubricCategory, ...]

    @property
    def indicator_count(self) -> int:
        return sum(len(c.indicators) for c in self.categories)

    @property
    def codes(self) -> List[str]:
        return [c.code for c in self.categories]

    def category(self, code: str) -> RubricCategory:
        for cat in self.categories:
            if cat.code == code:
                return cat
        raise ValidationError(f"Unknown category '{code}' for {self.version} criteria")

    def keys(self) -> List[RatingKey]:
        """All (category, index) pairs in form order."""
        return [(c.code, i) for c in self.categories for i in range(len(c.indicators))]

    def offsets(self) -> Dict[str, int]:
        """Running item number at which each category starts (0-based)."""
        offsets = {}
        current = 0
        for cat in self.categories:
            offsets[cat.code] = current
            current += len(cat.indicators)
        return offsets

    def to_dict(self) -> dict:
        """Form layout sent to clients; rating keys are 'A-0' style."""
        return {
            'version': self.version,
            'indicator_count': self.indicator_count,
            'categories': [
                {
                    'code': c.code,
                    'title': c.title,
                    'label': c.label,
                    'description': c.description,
                    'indicators': [
                        {'key': f"{c.code}-{i}", 'text': text} for i, text in enumerate(c.indicators)
                    ],
                }
                for c in self.categories
            ],
        }


def _build(version):
    definition = CRITERIA_VERSIONS[version]
    categories = tuple(
        RubricCategory(code=code, title=title, description=description, indicators=tuple(items))
        for code, (title, description, items) in definition.items()
    )
    return Rubric(version=version, categories=categories)


_RUBRICS = {version: _build(version) for version in CRITERIA_VERSIONS}


def get_rubric(version: str) -> Rubric:
    version = (version or '').strip().lower()
    if version not in _RUBRICS:
        raise ValidationError(f"Unknown criteria type: {version or '(empty)'}")
    return _RUBRICS[version]


def infer_rubric_version(keys: Iterable[RatingKey]) -> str:
    """Guess the rubric version from stored rating keys.

    The new form is the only one with six indicators in category A; the old
    form is the only one with a fifth C indicator or any D indicator.
    """
    max_a = -1
    max_c = -1
    has_d = False
    for code, index in keys:
        if code == 'A':
            max_a = max(max_a, index)
        elif code == 'C':
            max_c = max(max_c, index)
        elif code == 'D':
            has_d = True
    if max_a >= 5:
        return 'new'
    if max_c >= 4 or has_d:
        return 'old'
    return 'new'


def parse_rating_key(key) -> RatingKey:
    """Parse "A-0" or "A. Commitment-0" into ("A", 0)."""
    if isinstance(key, tuple):
        code, index = key
        return str(code).strip().upper(), int(index)

    text = str(key).strip()
    dash = text.rfind('-')
    if dash <= 0:
        raise ValidationError(f"Invalid rating key: {key}")
    category, index = text[:dash].strip(), text[dash + 1:].strip()
    try:
        idx = int(index)
    except ValueError:
        raise ValidationError(f"Invalid rating key: {key}")
    code = category[0].upper()
    if not code.isalpha():
        raise ValidationError(f"Invalid rating key: {key}")
    return code, idx


def normalize_ratings(raw) -> Dict[RatingKey, int]:
    """Turn a submitted ratings mapping into {(code, index): int}."""
    if not isinstance(raw, dict) or not raw:
        raise ValidationError("Ratings are required")

    ratings = {}
    for key, value in raw.items():
        parsed = parse_rating_key(key)
        if isinstance(value, bool):
            raise ValidationError(f"Invalid rating value for {parsed[0]}-{parsed[1]}")
        try:
            rating = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid rating value for {parsed[0]}-{parsed[1]}")
        if rating != value and str(rating) != str(value).strip():
            raise ValidationError(f"Invalid rating value for {parsed[0]}-{parsed[1]}")
        ratings[parsed] = rating
    return ratings


def validate_ratings(rubric: Rubric, ratings: Dict[RatingKey, int]) -> None:
    """Every indicator must be rated exactly once with an integer 1..5."""
    expected = set(rubric.keys())
    unknown = sorted(set(ratings) - expected)
    if unknown:
        code, index = unknown[0]
        raise ValidationError(f"Unknown criterion {code}-{index} for {rubric.version} criteria")

    for code, index in rubric.keys():
        if (code, index) not in ratings:
            category = rubric.category(code)
            raise ValidationError(
                f"Please rate all criteria. Missing item {index + 1} of {category.label}."
            )
        value = ratings[(code, index)]
        if not RATING_SCALE_MIN <= value <= RATING_SCALE_MAX:
            raise ValidationError(
                f"Rating for {code}-{index} must be between {RATING_SCALE_MIN} and {RATING_SCALE_MAX}"
            )

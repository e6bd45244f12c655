"""
Aggregation behind the faculty results screens and the Annex A-D reports.

Every figure is derived from stored ratings on demand; nothing computed
here is written back. Missing data stays None all the way to the caller.
"""
import logging
from typing import Dict, List, Optional

from config import (
    CRITERIA_VERSIONS,
    DEFAULT_ACADEMIC_YEAR,
    DEFAULT_CRITERIA_TYPE,
    EVALUATOR_STUDENT,
    EVALUATOR_SUPERVISOR,
    SEMESTERS,
    STUDENT_WEIGHT,
    SUPERVISOR_WEIGHT,
)
from qce.errors import NotFoundError
from qce.models import AcademicYear, Evaluation, Faculty
from qce.services.rubric import Rubric, get_rubric, infer_rubric_version
from qce.services.scoring import (
    ComponentScore,
    DivisorPolicy,
    RubricAverages,
    average_ratings,
    compute_component,
    from_percentage,
    is_supervisor_only,
    nbc_total,
    performance_category,
    to_percentage,
    weighted_points,
)
from utils import normalize_semester, projected_years

logger = logging.getLogger(__name__)

SIGNATURE_FIELDS = ['Signature', 'Name', 'Date Signed']

ACKNOWLEDGEMENT = (
    "I have read and discussed with my supervisor the results of my Student Evaluation of "
    "Teachers (SET) and Supervisor's Evaluation of Faculty (SEF) for the rating period "
    "indicated above."
)


class VersionRatings:
    """Averaged ratings of the evaluations made on one rubric version."""

    def __init__(self, rubric: Rubric, averages: RubricAverages, evaluations: int):
        self.rubric = rubric
        self.averages = averages
        self.evaluations = evaluations

    @property
    def overall(self) -> Optional[float]:
        return self.averages.overall


class PopulationRatings:
    """Averaged ratings of one evaluator population for one evaluatee.

    Each rubric version is averaged on its own. The first version (the one
    with the most evaluations) drives the itemized breakdown; the overall
    average weighs every version's overall by its number of evaluations.
    """

    def __init__(self, versions: List[VersionRatings], evaluations: int):
        self.versions = versions
        self.evaluations = evaluations

    @property
    def primary(self) -> VersionRatings:
        return self.versions[0]

    @property
    def rubric(self) -> Rubric:
        return self.primary.rubric

    @property
    def averages(self) -> RubricAverages:
        return self.primary.averages

    @property
    def overall(self) -> Optional[float]:
        rated = [v for v in self.versions if v.overall is not None and v.evaluations]
        if not rated:
            return None
        total = sum(v.evaluations for v in rated)
        return sum(v.overall * v.evaluations for v in rated) / total


def _get_faculty(faculty_id):
    faculty = Faculty.get_by_id(faculty_id)
    if faculty is None:
        raise NotFoundError("Faculty member not found")
    return faculty


def _evaluation_version(criteria_type, keys):
    """The stored rubric version; inferred from the keys when missing or unknown."""
    version = (criteria_type or '').strip().lower()
    if version in CRITERIA_VERSIONS:
        return version
    return infer_rubric_version(keys)


def population_ratings(faculty_id, evaluator_role) -> PopulationRatings:
    by_evaluation: Dict[int, Dict[tuple, int]] = {}
    stored_versions: Dict[int, Optional[str]] = {}
    for evaluation_id, criteria_type, category, index, rating in \
            Evaluation.ratings_for_evaluatee(faculty_id, evaluator_role):
        by_evaluation.setdefault(evaluation_id, {})[(category, index)] = rating
        stored_versions[evaluation_id] = criteria_type

    grouped: Dict[str, Dict[tuple, List[int]]] = {}
    counts: Dict[str, int] = {}
    dropped = 0
    for evaluation_id, ratings in by_evaluation.items():
        version = _evaluation_version(stored_versions[evaluation_id], ratings)
        known = set(get_rubric(version).keys())
        bucket = grouped.setdefault(version, {})
        counts[version] = counts.get(version, 0) + 1
        for key, rating in ratings.items():
            if key in known:
                bucket.setdefault(key, []).append(rating)
            else:
                dropped += 1
    if dropped:
        logger.warning(f"Ignoring {dropped} rating(s) outside their evaluation's criteria "
                       f"for faculty {faculty_id}")

    versions = []
    for version, ratings in grouped.items():
        rubric = get_rubric(version)
        versions.append(VersionRatings(rubric, average_ratings(ratings, rubric), counts[version]))
    if not versions:
        rubric = get_rubric(DEFAULT_CRITERIA_TYPE)
        versions.append(VersionRatings(rubric, average_ratings({}, rubric), 0))
    versions.sort(key=lambda v: (-v.evaluations, v.rubric.version != DEFAULT_CRITERIA_TYPE))

    return PopulationRatings(
        versions=versions,
        evaluations=Evaluation.count_for_evaluatee(faculty_id, evaluator_role),
    )


def _breakdown(ratings):
    """Itemized categories for a VersionRatings (or a population's primary version)."""
    rubric = ratings.rubric
    offsets = rubric.offsets()
    categories = []
    for category in rubric.categories:
        indicators = []
        for index, text in enumerate(category.indicators):
            indicators.append({
                'number': offsets[category.code] + index + 1,
                'key': f"{category.code}-{index}",
                'text': text,
                'average': ratings.averages.indicators.get((category.code, index)),
            })
        categories.append({
            'code': category.code,
            'title': category.title,
            'label': category.label,
            'description': category.description,
            'average': ratings.averages.categories.get(category.code),
            'indicators': indicators,
        })
    return categories


def _version_breakdowns(population: PopulationRatings):
    return [{
        'criteria_type': version.rubric.version,
        'evaluations': version.evaluations,
        'overall_average': version.overall,
        'categories': _breakdown(version),
    } for version in population.versions]


def _scoring_card(average, weight, applicable=True):
    if not applicable:
        average = None
    return {
        'applicable': applicable,
        'average': average,
        'percentage': to_percentage(average),
        'weight': weight,
        'points': weighted_points(average, weight),
        'maximum_points': round(100 * weight, 2),
    }


def faculty_summary(faculty_id):
    """Counts, averages and the NBC 461 total for one faculty member."""
    faculty = _get_faculty(faculty_id)
    supervisor_only = is_supervisor_only(faculty['position'])

    students = population_ratings(faculty_id, EVALUATOR_STUDENT)
    supervisors = population_ratings(faculty_id, EVALUATOR_SUPERVISOR)
    score = nbc_total(students.overall, supervisors.overall, supervisor_only)

    return {
        'faculty': faculty,
        'supervisor_only': supervisor_only,
        'student_evaluations': students.evaluations,
        'supervisor_evaluations': supervisors.evaluations,
        'score': score.to_dict(),
        'percentage': score.percentage,
        'performance': performance_category(score.percentage),
    }


def college_results(college_id=None):
    """faculty_summary for every active faculty member of a college (all colleges if None)."""
    return [faculty_summary(member['id']) for member in Faculty.get_by_college(college_id)]


def annex_a(faculty_id):
    """Itemized student evaluation (SET) breakdown."""
    faculty = _get_faculty(faculty_id)
    supervisor_only = is_supervisor_only(faculty['position'])

    students = population_ratings(faculty_id, EVALUATOR_STUDENT)
    supervisors = population_ratings(faculty_id, EVALUATOR_SUPERVISOR)
    score = nbc_total(students.overall, supervisors.overall, supervisor_only)

    return {
        'annex': 'A',
        'faculty': faculty,
        'supervisor_only': supervisor_only,
        'criteria_type': students.rubric.version,
        'evaluations': students.evaluations,
        'categories': _breakdown(students),
        'versions': _version_breakdowns(students),
        'overall_average': students.overall,
        'student_card': _scoring_card(students.overall, STUDENT_WEIGHT, applicable=not supervisor_only),
        'supervisor_card': _scoring_card(supervisors.overall, SUPERVISOR_WEIGHT),
        'total_points': score.total,
        'maximum_points': score.maximum,
    }


def _active_period():
    active = AcademicYear.get_active()
    if active is None:
        return DEFAULT_ACADEMIC_YEAR, None
    return active['year_label'], active['semester']


def _period_values(faculty_id, evaluator_role, slots):
    """5-point average for each (year, semester) slot, None where no data."""
    sums = {}
    counts = {}
    for row in Evaluation.period_averages(faculty_id, evaluator_role):
        key = ((row['year_label'] or '').strip(), normalize_semester(row['semester']))
        sums[key] = sums.get(key, 0.0) + row['average'] * row['evaluations']
        counts[key] = counts.get(key, 0) + row['evaluations']

    values = []
    for slot in slots:
        if counts.get(slot):
            values.append(from_percentage(sums[slot] / counts[slot]))
        else:
            values.append(None)
    return values


def _component_dict(component: ComponentScore, applicable=True):
    return {
        'applicable': applicable,
        'values': component.values,
        'total': component.total,
        'divisor': component.divisor,
        'average': component.average,
        'percentage': component.percentage,
        'weight': component.weight,
        'points': component.points,
        'periods_with_data': component.periods_with_data,
    }


def annex_b(faculty_id):
    """Computation summary across three projected academic years."""
    faculty = _get_faculty(faculty_id)
    supervisor_only = is_supervisor_only(faculty['position'])

    year_label, _ = _active_period()
    years = projected_years(year_label)
    slots = [(year, semester) for year in years for semester in SEMESTERS]

    student_values = _period_values(faculty_id, EVALUATOR_STUDENT, slots)
    supervisor_values = _period_values(faculty_id, EVALUATOR_SUPERVISOR, slots)

    student = compute_component(student_values, STUDENT_WEIGHT, DivisorPolicy.FIXED)
    supervisor_policy = DivisorPolicy.DYNAMIC if supervisor_only else DivisorPolicy.FIXED
    supervisor = compute_component(supervisor_values, SUPERVISOR_WEIGHT, supervisor_policy)

    score = nbc_total(student.average, supervisor.average, supervisor_only)

    periods = []
    for (year, semester), student_value, supervisor_value in zip(slots, student_values, supervisor_values):
        periods.append({
            'year': year,
            'semester': semester,
            'student': None if supervisor_only else student_value,
            'supervisor': supervisor_value,
        })

    return {
        'annex': 'B',
        'faculty': faculty,
        'supervisor_only': supervisor_only,
        'academic_years': years,
        'periods': periods,
        'student': _component_dict(student, applicable=not supervisor_only),
        'supervisor': _component_dict(supervisor),
        'total_points': score.total,
        'maximum_points': score.maximum,
        'percentage': score.percentage,
        'performance': performance_category(score.percentage),
    }


def annex_c(faculty_id):
    """Individual performance report: supervisor breakdown and all comments."""
    faculty = _get_faculty(faculty_id)
    supervisors = population_ratings(faculty_id, EVALUATOR_SUPERVISOR)

    evaluators = []
    comments = []
    for evaluation in Evaluation.list_for_evaluatee(faculty_id):
        from_supervisor = evaluation['evaluator_role'] == EVALUATOR_SUPERVISOR
        if from_supervisor:
            evaluators.append({
                'name': evaluation['evaluator_name'],
                'position': evaluation['evaluator_position'],
                'date': evaluation['evaluation_date'],
                'total_score': evaluation['total_score'],
            })
        if evaluation['comments']:
            comments.append({
                'evaluator_role': evaluation['evaluator_role'],
                # student comments stay anonymous
                'evaluator': evaluation['evaluator_name'] if from_supervisor else None,
                'comment': evaluation['comments'],
                'date': evaluation['evaluation_date'],
            })

    return {
        'annex': 'C',
        'faculty': faculty,
        'supervisor_only': is_supervisor_only(faculty['position']),
        'criteria_type': supervisors.rubric.version,
        'evaluations': supervisors.evaluations,
        'categories': _breakdown(supervisors),
        'versions': _version_breakdowns(supervisors),
        'overall_average': supervisors.overall,
        'percentage': to_percentage(supervisors.overall),
        'points': weighted_points(supervisors.overall, SUPERVISOR_WEIGHT),
        'supervisors': evaluators,
        'comments': comments,
    }


def annex_d(faculty_id):
    """Acknowledgement form data."""
    faculty = _get_faculty(faculty_id)
    supervisor_only = is_supervisor_only(faculty['position'])
    year_label, semester = _active_period()

    students = population_ratings(faculty_id, EVALUATOR_STUDENT)
    supervisors = population_ratings(faculty_id, EVALUATOR_SUPERVISOR)

    return {
        'annex': 'D',
        'faculty': faculty,
        'faculty_name': faculty['full_name'],
        'college': faculty['college_name'],
        'rank': faculty['position'],
        'academic_year': year_label,
        'semester': semester,
        'supervisor_only': supervisor_only,
        'set_percentage': None if supervisor_only else to_percentage(students.overall),
        'sef_percentage': to_percentage(supervisors.overall),
        'acknowledgement': ACKNOWLEDGEMENT,
        'signatures': [
            {'role': 'SUPERVISOR', 'fields': list(SIGNATURE_FIELDS)},
            {'role': 'FACULTY', 'fields': list(SIGNATURE_FIELDS)},
        ],
    }


ANNEXES = {
    'a': annex_a,
    'b': annex_b,
    'c': annex_c,
    'd': annex_d,
}


def build_annex(letter, faculty_id):
    builder = ANNEXES.get((letter or '').lower())
    if builder is None:
        raise NotFoundError(f"Unknown annex: {letter}")
    return builder(faculty_id)

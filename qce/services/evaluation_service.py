import logging
import sqlite3
from datetime import date, datetime

from config import EVALUATOR_STUDENT, SCORE_COLUMNS
from qce.errors import AlreadyEvaluatedError, NotFoundError, ValidationError
from qce.models import Evaluation
from qce.services.code_service import redeem_code
from qce.services.rubric import get_rubric, normalize_ratings, validate_ratings
from qce.services.scoring import raw_category_scores, raw_total_percentage

logger = logging.getLogger(__name__)


def _parse_date(value):
    if isinstance(value, date):
        return value.isoformat()
    try:
        return datetime.strptime(str(value).strip(), '%Y-%m-%d').date().isoformat()
    except ValueError:
        raise ValidationError("Evaluation date must be in YYYY-MM-DD format")


def submit_evaluation(evaluator, code, ratings, comments=None, evaluator_name=None, evaluation_date=None):
    """Validate and store one evaluation.

    Students may omit the evaluator name and date (their account name and
    today's date are used); supervisors sign the form and must give both.
    Returns a dict with the new evaluation id and its scores.
    """
    entry = redeem_code(code, evaluator)
    is_student = entry['evaluator_role'] == EVALUATOR_STUDENT

    name = (evaluator_name or '').strip()
    if not name and is_student:
        name = evaluator.full_name or ''
    if not name:
        raise ValidationError("Evaluator name is required")

    if evaluation_date:
        evaluation_date = _parse_date(evaluation_date)
    elif is_student:
        evaluation_date = date.today().isoformat()
    else:
        raise ValidationError("Evaluation date is required")

    rubric = get_rubric(entry['criteria_type'])
    parsed = normalize_ratings(ratings)
    validate_ratings(rubric, parsed)

    scores = raw_category_scores(rubric, parsed)
    total_score = round(raw_total_percentage(rubric, parsed), 2)

    record = {
        'evaluator_id': evaluator.user_id,
        'evaluator_role': entry['evaluator_role'],
        'evaluatee_id': entry['evaluatee_id'],
        'code_id': entry['code_id'],
        'academic_year_id': entry['academic_year_id'],
        'criteria_type': rubric.version,
        'status': 'completed',
        'total_score': total_score,
        'comments': (comments or '').strip() or None,
        'evaluator_name': name,
        'evaluator_position': evaluator.role,
        'evaluation_date': evaluation_date,
    }
    for code_letter, column in SCORE_COLUMNS.items():
        record[column] = scores.get(code_letter, 0)

    try:
        evaluation_id = Evaluation.create(record, parsed, close_code=not is_student)
    except sqlite3.IntegrityError:
        raise AlreadyEvaluatedError("You have already evaluated this faculty member")

    logger.info(
        f"Evaluation {evaluation_id} submitted by user {evaluator.user_id} "
        f"for faculty {entry['evaluatee_id']} ({total_score:.2f}%)"
    )
    return {
        'evaluation_id': evaluation_id,
        'evaluatee_name': entry['evaluatee_name'],
        'criteria_type': rubric.version,
        'scores': scores,
        'total_score': total_score,
    }


def list_completed(evaluator_id, evaluator_role=None):
    return Evaluation.list_by_evaluator(evaluator_id, evaluator_role)


def get_evaluation(evaluation_id):
    evaluation = Evaluation.get_by_id(evaluation_id)
    if evaluation is None:
        raise NotFoundError("Evaluation not found")
    evaluation['ratings'] = Evaluation.get_ratings(evaluation_id)
    return evaluation

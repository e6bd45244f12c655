"""
Evaluation code issuing and redemption.

A code (format XXX-XXX) unlocks one pending evaluation for an
(evaluator role, evaluatee, subject, section) assignment. Uniqueness is
enforced by the database; a collision regenerates the code.
"""
import logging
import secrets
import sqlite3

from config import (
    CODE_ALPHABET,
    CODE_GROUP_LENGTH,
    CODE_MAX_ATTEMPTS,
    DEFAULT_CRITERIA_TYPE,
    EVALUATOR_STUDENT,
    EVALUATOR_SUPERVISOR,
    ROLE_DEAN,
    ROLE_DEPT_CHAIR,
    ROLE_STUDENT,
    SUPERVISOR_ROLES,
)
from qce.errors import (
    AlreadyEvaluatedError,
    DuplicateError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from qce.models import AcademicYear, Evaluation, EvaluationCode, Faculty
from qce.services.rubric import get_rubric

logger = logging.getLogger(__name__)

# Evaluator roles allowed to redeem each kind of code
ALLOWED_ROLES = {
    EVALUATOR_STUDENT: (ROLE_STUDENT,),
    EVALUATOR_SUPERVISOR: SUPERVISOR_ROLES,
}

# Supervisors scoped to a single college
COLLEGE_SCOPED_ROLES = (ROLE_DEAN, ROLE_DEPT_CHAIR)


def generate_code(rng=None):
    """Return a random code like 'K7Q-2ZB'."""
    choice = rng.choice if rng is not None else secrets.choice
    groups = [''.join(choice(CODE_ALPHABET) for _ in range(CODE_GROUP_LENGTH)) for _ in range(2)]
    return '-'.join(groups)


def normalize_code(code):
    return (code or '').strip().upper()


def issue_code(evaluator_role, evaluatee_id, subject_id=None, section=None, academic_year_id=None,
               created_by=None, criteria_type=DEFAULT_CRITERIA_TYPE, rng=None):
    """Issue a code for an assignment, reusing the active one if it exists.

    Returns the code record as a dict.
    """
    if evaluator_role not in ALLOWED_ROLES:
        raise ValidationError(f"Invalid evaluator role: {evaluator_role}")
    criteria_type = get_rubric(criteria_type).version

    if Faculty.get_by_id(evaluatee_id) is None:
        raise NotFoundError("Faculty member not found")

    if academic_year_id is None:
        active = AcademicYear.get_active()
        academic_year_id = active['id'] if active else None
    elif AcademicYear.get_by_id(academic_year_id) is None:
        raise NotFoundError("Academic year not found")

    section = section.strip() if section else None

    existing = EvaluationCode.find_active_for_assignment(
        evaluator_role, evaluatee_id, subject_id, section, academic_year_id
    )
    if existing:
        logger.info(f"Reusing active code {existing['code']} for faculty {evaluatee_id}")
        return existing

    for attempt in range(1, CODE_MAX_ATTEMPTS + 1):
        code = generate_code(rng)
        try:
            code_id = EvaluationCode.insert(code, evaluator_role, evaluatee_id, subject_id, section,
                                            academic_year_id, criteria_type, created_by)
        except sqlite3.IntegrityError:
            logger.warning(f"Code collision on attempt {attempt}: {code}")
            continue
        logger.info(f"Issued {evaluator_role} code {code} for faculty {evaluatee_id}")
        return EvaluationCode.get_by_id(code_id)

    logger.error(f"Could not generate a unique code after {CODE_MAX_ATTEMPTS} attempts")
    raise DuplicateError("Could not generate a unique evaluation code, please try again")


def redeem_code(code, evaluator):
    """Validate a code for the given evaluator and return the pending entry.

    evaluator is a SessionContext (or anything with user_id, role,
    college_id and faculty_id attributes).
    """
    code = normalize_code(code)
    if not code:
        raise ValidationError("Evaluation code is required")

    record = EvaluationCode.get_by_code(code)
    if record is None:
        raise NotFoundError("Invalid evaluation code")

    if evaluator.role not in ALLOWED_ROLES[record['evaluator_role']]:
        raise PermissionDenied(
            f"This code is for {record['evaluator_role'].lower()} evaluations only"
        )

    if evaluator.faculty_id is not None and evaluator.faculty_id == record['evaluatee_id']:
        raise PermissionDenied("You cannot evaluate yourself")

    if (evaluator.role in COLLEGE_SCOPED_ROLES and evaluator.college_id is not None
            and record['evaluatee_college_id'] != evaluator.college_id):
        raise PermissionDenied("You can only evaluate faculty from your own college")

    if Evaluation.exists_for(evaluator.user_id, record['id']):
        raise AlreadyEvaluatedError("You have already evaluated this faculty member")

    if record['status'] != 'active':
        raise ValidationError(f"This evaluation code is {record['status']}")

    logger.info(f"Code {code} redeemed by user {evaluator.user_id}")
    return {
        'code_id': record['id'],
        'code': record['code'],
        'evaluator_role': record['evaluator_role'],
        'evaluatee_id': record['evaluatee_id'],
        'evaluatee_name': record['evaluatee_name'],
        'evaluatee_position': record['evaluatee_position'],
        'subject_code': record['subject_code'],
        'subject_name': record['subject_name'],
        'section': record['section'],
        'academic_year_id': record['academic_year_id'],
        'criteria_type': record['criteria_type'],
    }


def _set_status(code_id, status):
    if not EvaluationCode.set_status(code_id, status):
        raise NotFoundError("Evaluation code not found")
    logger.info(f"Code {code_id} marked {status}")


def expire_code(code_id):
    _set_status(code_id, 'expired')


def mark_used(code_id):
    _set_status(code_id, 'used')


def list_active_codes(academic_year_id=None, evaluator_role=None, college_id=None, evaluatee_id=None):
    return EvaluationCode.list_active(academic_year_id=academic_year_id, evaluator_role=evaluator_role,
                                      college_id=college_id, evaluatee_id=evaluatee_id)

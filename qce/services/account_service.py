import logging

from werkzeug.security import check_password_hash, generate_password_hash

from config import ALL_ROLES, ROLE_STUDENT
from qce.errors import AuthenticationError, NotFoundError, ValidationError
from qce.models import College, Faculty, Student, User
from qce.session import SessionContext

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def require_fields(data, fields):
    """Return the stripped values of `fields`; the first blank one raises."""
    values = {}
    for field in fields:
        raw = data.get(field)
        value = raw.strip() if isinstance(raw, str) else raw
        if value in (None, ''):
            raise ValidationError(f"{field.replace('_', ' ').capitalize()} is required")
        # passwords are kept verbatim
        values[field] = raw if 'password' in field else value
    return values


def _check_password(password, confirm_password):
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def authenticate(email, password):
    """Check credentials and return the actor for a new session."""
    user = User.get_by_email(email)
    if user is None or not check_password_hash(user['password_hash'], password or ''):
        logger.warning(f"Failed login for {email}")
        raise AuthenticationError("Invalid email or password")
    if user['status'] != 'active':
        raise AuthenticationError("This account is inactive")
    logger.info(f"User {user['id']} logged in as {user['role']}")
    return SessionContext.from_user(user)


def register_student(data):
    """Student self-registration. Creates the student record when needed."""
    values = require_fields(data, ['email', 'password', 'confirm_password', 'full_name', 'student_number'])
    _check_password(values['password'], values['confirm_password'])

    student = Student.get_by_number(values['student_number'])
    if student is None:
        student_id = Student.add(
            values['student_number'],
            values['full_name'],
            program=data.get('program'),
            year_level=data.get('year_level'),
            section=data.get('section'),
        )
    else:
        student_id = student['id']

    user_id = User.create(
        values['email'],
        generate_password_hash(values['password']),
        values['full_name'],
        ROLE_STUDENT,
        student_id=student_id,
    )
    logger.info(f"Student account {user_id} registered")
    return user_id


def create_account(data):
    """Create a staff or evaluator account (zonal admin only)."""
    values = require_fields(data, ['email', 'password', 'full_name', 'role'])
    role = values['role']
    if role not in ALL_ROLES or role == ROLE_STUDENT:
        raise ValidationError(f"Invalid role: {role}")
    _check_password(values['password'], data.get('confirm_password', values['password']))

    college_id = data.get('college_id')
    if college_id is not None and College.get_by_id(college_id) is None:
        raise NotFoundError("College not found")
    faculty_id = data.get('faculty_id')
    if faculty_id is not None and Faculty.get_by_id(faculty_id) is None:
        raise NotFoundError("Faculty member not found")

    user_id = User.create(
        values['email'],
        generate_password_hash(values['password']),
        values['full_name'],
        role,
        college_id=college_id,
        department_id=data.get('department_id'),
        faculty_id=faculty_id,
    )
    logger.info(f"{role} account {user_id} created")
    return user_id

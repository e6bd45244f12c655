"""
Shared fixtures: every test gets its own SQLite file and upload folder.
No network calls.
"""
import os
import tempfile
from types import SimpleNamespace

import pytest

# Must be set before app.py is imported (it creates the upload folder)
os.environ.setdefault('QCE_UPLOAD_FOLDER', os.path.join(tempfile.gettempdir(), 'qce-test-uploads'))

import config
from werkzeug.security import generate_password_hash

PASSWORD = 'correct-horse-9'


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh, initialized database."""
    from qce.models import init_db

    monkeypatch.setattr(config, 'DATABASE_PATH', str(tmp_path / 'qce.db'))
    monkeypatch.setattr(config, 'UPLOAD_FOLDER', str(tmp_path / 'uploads'))
    init_db()
    return tmp_path / 'qce.db'


@pytest.fixture
def make_user(db):
    """Create an account and return its SessionContext."""
    from qce.models import User
    from qce.session import SessionContext

    counter = {'n': 0}

    def _make(role, full_name=None, college_id=None, faculty_id=None, student_id=None, email=None):
        counter['n'] += 1
        email = email or f"user{counter['n']}@example.edu"
        user_id = User.create(email, generate_password_hash(PASSWORD), full_name or f"User {counter['n']}",
                              role, college_id=college_id, faculty_id=faculty_id, student_id=student_id)
        return SessionContext.from_user(User.get_by_id(user_id))

    return _make


@pytest.fixture
def world(db, make_user):
    """Two colleges, a regular instructor, a dean, an active year and the evaluators."""
    from qce.models import AcademicYear, College, Faculty, Student, Subject

    college = College.add('College of Computing', 'CC')
    other_college = College.add('College of Education', 'CE')

    instructor = Faculty.add('Ana', 'Garcia', position='Assistant Professor', college_id=college)
    dean_faculty = Faculty.add('Liza', 'Mendoza', position='Dean', college_id=college)
    outsider = Faculty.add('Pedro', 'Cruz', position='Instructor I', college_id=other_college)

    year = AcademicYear.add('2025-2026', '1st')
    AcademicYear.activate(year)
    subject = Subject.add('IT101', 'Introduction to Computing')

    student_id = Student.add('2025-00001', 'Juan Dela Cruz', program='BSIT', section='A')
    student = make_user(config.ROLE_STUDENT, full_name='Juan Dela Cruz', student_id=student_id)
    second_student = make_user(config.ROLE_STUDENT, full_name='Maria Santos')
    dean = make_user(config.ROLE_DEAN, full_name='Liza Mendoza', college_id=college, faculty_id=dean_faculty)
    vpaa = make_user(config.ROLE_VPAA, full_name='Rosa Lim')
    manager = make_user(config.ROLE_QCE_MANAGER, full_name='QCE Office')
    zonal = make_user(config.ROLE_ZONAL_ADMIN, full_name='Zonal Admin')

    return SimpleNamespace(
        college=college,
        other_college=other_college,
        instructor=instructor,
        dean_faculty=dean_faculty,
        outsider=outsider,
        year=year,
        subject=subject,
        student=student,
        second_student=second_student,
        dean=dean,
        vpaa=vpaa,
        manager=manager,
        zonal=zonal,
    )


def full_ratings(version='new', value=5):
    """A complete ratings payload in 'A-0' form."""
    from qce.services.rubric import get_rubric

    rubric = get_rubric(version)
    if callable(value):
        return {f"{code}-{index}": value(code, index) for code, index in rubric.keys()}
    return {f"{code}-{index}": value for code, index in rubric.keys()}


@pytest.fixture
def ratings():
    return full_ratings


@pytest.fixture
def client(db):
    from app import app

    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def login(client):
    def _login(actor):
        response = client.post('/api/auth/login', json={'email': actor.email, 'password': PASSWORD})
        assert response.status_code == 200, response.get_json()
        return response

    return _login

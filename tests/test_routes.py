"""
Test: HTTP routes - sessions, role checks, the evaluation flow and reports.
"""
import io

import pytest

import config
from config import EVALUATOR_STUDENT, EVALUATOR_SUPERVISOR
from conftest import PASSWORD
from qce.models import AcademicYear, User
from qce.services.code_service import issue_code


class TestAuth:
    def test_login_verify_logout(self, world, client, login):
        response = login(world.student)
        assert response.get_json()['user']['role'] == 'Student'

        verify = client.get('/api/auth/verify')
        assert verify.status_code == 200
        assert verify.get_json()['user']['full_name'] == 'Juan Dela Cruz'

        assert client.post('/api/auth/logout').status_code == 200
        assert client.get('/api/auth/verify').status_code == 401

    def test_wrong_password(self, world, client):
        response = client.post('/api/auth/login', json={'email': world.student.email, 'password': 'nope'})
        assert response.status_code == 401
        assert response.get_json() == {'success': False, 'message': 'Invalid email or password'}

    def test_missing_field(self, client):
        response = client.post('/api/auth/login', json={'email': 'someone@example.edu'})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Password is required'

    def test_inactive_account(self, world, client):
        User.set_status(world.student.user_id, 'inactive')
        response = client.post('/api/auth/login', json={'email': world.student.email, 'password': PASSWORD})
        assert response.status_code == 401
        assert 'inactive' in response.get_json()['message']

    def test_idle_session_expires(self, world, client, login, monkeypatch):
        login(world.student)
        monkeypatch.setattr('qce.session.SESSION_TIMEOUT_MINUTES', -1)
        assert client.get('/api/auth/verify').status_code == 401

    def test_register(self, client):
        payload = {
            'email': 'New.Student@example.edu',
            'password': 'long-enough-1',
            'confirm_password': 'long-enough-1',
            'full_name': 'Nina Reyes',
            'student_number': '2025-00042',
        }
        response = client.post('/api/auth/register', json=payload)
        assert response.status_code == 201
        login = client.post('/api/auth/login', json={'email': 'new.student@example.edu',
                                                     'password': 'long-enough-1'})
        assert login.status_code == 200

        again = client.post('/api/auth/register', json=payload)
        assert again.status_code == 409

    def test_register_password_mismatch(self, client):
        response = client.post('/api/auth/register', json={
            'email': 'x@example.edu',
            'password': 'long-enough-1',
            'confirm_password': 'long-enough-2',
            'full_name': 'Nina Reyes',
            'student_number': '2025-00042',
        })
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Passwords do not match'


class TestAccess:
    def test_requires_login(self, client):
        response = client.get('/api/student/evaluations')
        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_wrong_role(self, world, client, login):
        login(world.student)
        assert client.get('/api/qce/results').status_code == 403
        assert client.get('/api/zonal/colleges').status_code == 403

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/nothing-here')
        assert response.status_code == 404
        assert response.get_json()['success'] is False

    def test_healthz(self, client):
        assert client.get('/api/healthz').get_json() == {'success': True, 'status': 'ok'}


class TestStudentFlow:
    def test_validate_submit_and_list(self, world, client, login, ratings):
        code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        login(world.student)

        validate = client.post('/api/student/validate-code', json={'code': code['code']})
        assert validate.status_code == 200
        body = validate.get_json()
        assert body['evaluation']['evaluatee_name'] == 'Ana Garcia'
        assert body['criteria']['indicator_count'] == 15

        submit = client.post('/api/student/submit', json={
            'code': code['code'],
            'ratings': ratings('new', 5),
            'comments': 'Great class',
        })
        assert submit.status_code == 201
        assert submit.get_json()['data']['total_score'] == 100.0

        again = client.post('/api/student/validate-code', json={'code': code['code']})
        assert again.status_code == 409

        listed = client.get('/api/student/evaluations').get_json()
        assert listed['count'] == 1

    def test_unknown_code(self, world, client, login):
        login(world.student)
        response = client.post('/api/student/validate-code', json={'code': 'QQQ-QQQ'})
        assert response.status_code == 404

    def test_incomplete_form(self, world, client, login, ratings):
        code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        login(world.student)
        payload = ratings('new', 3)
        payload.pop('A-0')
        response = client.post('/api/student/submit', json={'code': code['code'], 'ratings': payload})
        assert response.status_code == 400
        assert 'Please rate all criteria' in response.get_json()['message']


class TestSupervisorFlow:
    def test_dean_evaluates_own_college(self, world, client, login, ratings):
        code = issue_code(EVALUATOR_SUPERVISOR, world.instructor)
        login(world.dean)
        response = client.post('/api/supervisor/submit', json={
            'code': code['code'],
            'ratings': ratings('new', 4),
            'evaluator_name': 'Liza Mendoza',
            'evaluation_date': '2025-10-01',
        })
        assert response.status_code == 201

    def test_dean_other_college_refused(self, world, client, login):
        code = issue_code(EVALUATOR_SUPERVISOR, world.outsider)
        login(world.dean)
        response = client.post('/api/supervisor/validate-code', json={'code': code['code']})
        assert response.status_code == 403

    def test_student_cannot_use_supervisor_routes(self, world, client, login):
        login(world.student)
        assert client.post('/api/supervisor/validate-code', json={'code': 'AAA-AAA'}).status_code == 403


class TestQceOffice:
    def test_assignment_and_codes(self, world, client, login):
        login(world.manager)
        response = client.post('/api/qce/assignments', json={
            'evaluator_role': EVALUATOR_STUDENT,
            'faculty_id': world.instructor,
            'subject_id': world.subject,
            'section': 'A',
        })
        assert response.status_code == 201
        code = response.get_json()['data']

        codes = client.get(f'/api/qce/codes?faculty_id={world.instructor}').get_json()
        assert [c['code'] for c in codes['data']] == [code['code']]

        assert client.post(f"/api/qce/codes/{code['id']}/expire").status_code == 200
        assert client.get('/api/qce/codes').get_json()['count'] == 0

    def test_add_faculty(self, world, client, login):
        login(world.manager)
        payload = {'first_name': 'Rey', 'last_name': 'Tan', 'position': 'Instructor I',
                   'email': 'rey.tan@example.edu', 'college_id': world.college}
        response = client.post('/api/qce/faculty', json=payload)
        assert response.status_code == 201
        assert response.get_json()['data']['college_name'] == 'College of Computing'

        response = client.post('/api/qce/faculty', json=payload)
        assert response.status_code == 409
        assert 'already exists' in response.get_json()['message']

    def test_add_faculty_unknown_college(self, world, client, login):
        login(world.manager)
        response = client.post('/api/qce/faculty', json={
            'first_name': 'Rey', 'last_name': 'Tan', 'position': 'Instructor I',
            'email': 'rey.tan@example.edu', 'college_id': 999,
        })
        assert response.status_code == 404
        assert response.get_json() == {'success': False, 'message': 'College not found'}

    def test_bad_query_parameter(self, world, client, login):
        login(world.manager)
        response = client.get('/api/qce/codes?college_id=abc')
        assert response.status_code == 400

    def test_results_scoped_for_dean(self, world, client, login):
        login(world.dean)
        results = client.get(f'/api/qce/results?college_id={world.other_college}').get_json()
        names = {row['faculty']['full_name'] for row in results['data']}
        assert names == {'Ana Garcia', 'Liza Mendoza'}
        assert client.get(f'/api/qce/faculty/{world.outsider}/summary').status_code == 403

    def test_annex_json_and_pdf(self, world, client, login):
        login(world.manager)
        data = client.get(f'/api/qce/faculty/{world.instructor}/annex/b').get_json()['data']
        assert data['academic_years'][0] == '2025-2026'

        pdf = client.get(f'/api/qce/faculty/{world.instructor}/annex/a/pdf')
        assert pdf.status_code == 200
        assert pdf.mimetype == 'application/pdf'
        assert pdf.data.startswith(b'%PDF')

        assert client.get(f'/api/qce/faculty/{world.instructor}/annex/z').status_code == 404

    def test_pending_report(self, world, client, login):
        issue_code(EVALUATOR_STUDENT, world.instructor)
        login(world.manager)
        response = client.get('/api/qce/reports/pending')
        assert response.status_code == 200
        assert response.data.startswith(b'%PDF')

    def test_upload_rejects_non_excel(self, world, client, login):
        login(world.manager)
        response = client.post('/api/qce/upload/students', data={
            'file': (io.BytesIO(b'a,b'), 'roster.csv'),
        }, content_type='multipart/form-data')
        assert response.status_code == 400
        assert 'Invalid file type' in response.get_json()['message']

    def test_upload_roster(self, world, client, login, tmp_path):
        import pandas as pd

        path = tmp_path / 'students.xlsx'
        pd.DataFrame({'student_number': ['2025-00100'], 'full_name': ['Leo Tan']}).to_excel(path, index=False)
        login(world.manager)
        with open(path, 'rb') as handle:
            response = client.post('/api/qce/upload/students', data={'file': (handle, 'students.xlsx')},
                                   content_type='multipart/form-data')
        assert response.status_code == 200
        assert response.get_json()['stats']['added'] == 1

    def test_sample_download(self, world, client, login):
        login(world.manager)
        response = client.get('/api/qce/upload/faculty/sample')
        assert response.status_code == 200
        assert response.data[:2] == b'PK'


class TestZonalAdmin:
    def test_academic_year_lifecycle(self, world, client, login):
        login(world.zonal)
        response = client.post('/api/zonal/academic-years', json={
            'year_label': '2025 - 2026',
            'semester': 'Second Semester',
        })
        assert response.status_code == 201
        year = response.get_json()['data']
        assert year['year_label'] == '2025-2026'
        assert year['semester'] == '2nd'
        assert year['status'] == 'inactive'

        activate = client.post(f"/api/zonal/academic-years/{year['id']}/activate")
        assert activate.status_code == 200
        assert AcademicYear.get_active()['id'] == year['id']

        assert client.post('/api/zonal/academic-years/999/activate').status_code == 404

    @pytest.mark.parametrize('label,semester', [
        ('2025-2027', '1st'),
        ('25-26', '1st'),
        ('2026-2027', 'Summer'),
    ])
    def test_academic_year_validation(self, world, client, login, label, semester):
        login(world.zonal)
        response = client.post('/api/zonal/academic-years', json={'year_label': label, 'semester': semester})
        assert response.status_code == 400

    def test_create_dean_account(self, world, client, login):
        login(world.zonal)
        response = client.post('/api/zonal/accounts', json={
            'email': 'chair@example.edu',
            'password': 'long-enough-1',
            'full_name': 'Carlo Ramos',
            'role': config.ROLE_DEPT_CHAIR,
            'college_id': world.college,
        })
        assert response.status_code == 201

        bad = client.post('/api/zonal/accounts', json={
            'email': 'kid@example.edu',
            'password': 'long-enough-1',
            'full_name': 'Kid',
            'role': config.ROLE_STUDENT,
        })
        assert bad.status_code == 400

    def test_departments(self, world, client, login):
        login(world.zonal)
        created = client.post(f'/api/zonal/colleges/{world.college}/departments', json={'name': 'IT'})
        assert created.status_code == 201
        listed = client.get(f'/api/zonal/colleges/{world.college}/departments').get_json()
        assert listed['count'] == 1
        assert client.post('/api/zonal/colleges/999/departments', json={'name': 'X'}).status_code == 404

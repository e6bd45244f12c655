import logging

from .database import get_db

logger = logging.getLogger(__name__)

CODE_COLUMNS = '''
    ec.id, ec.code, ec.evaluator_role, ec.evaluatee_id, ec.subject_id, ec.section,
    ec.academic_year_id, ec.criteria_type, ec.status, ec.created_by, ec.created_at,
    f.first_name || ' ' || f.last_name AS evaluatee_name,
    f.position AS evaluatee_position, f.college_id AS evaluatee_college_id,
    s.subject_code, s.subject_name
'''

CODE_FROM = '''
    FROM evaluation_codes ec
    JOIN faculty f ON f.id = ec.evaluatee_id
    LEFT JOIN subjects s ON s.id = ec.subject_id
'''

CODE_SELECT = 'SELECT' + CODE_COLUMNS + CODE_FROM


class EvaluationCode:
    @staticmethod
    def insert(code, evaluator_role, evaluatee_id, subject_id, section, academic_year_id,
               criteria_type, created_by=None):
        """Insert a code row. A duplicate code raises sqlite3.IntegrityError."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO evaluation_codes (code, evaluator_role, evaluatee_id, subject_id, section,
                                              academic_year_id, criteria_type, created_by)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ''', (code, evaluator_role, evaluatee_id, subject_id, section, academic_year_id,
                  criteria_type, created_by))
            return cursor.lastrowid

    @staticmethod
    def find_active_for_assignment(evaluator_role, evaluatee_id, subject_id, section, academic_year_id):
        """Active code already issued for the same assignment, if any."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(CODE_SELECT + '''
                WHERE ec.status = 'active'
                  AND ec.evaluator_role = ?
                  AND ec.evaluatee_id = ?
                  AND ec.subject_id IS ?
                  AND ec.section IS ?
                  AND ec.academic_year_id IS ?
                ORDER BY ec.id
                LIMIT 1
            ''', (evaluator_role, evaluatee_id, subject_id, section, academic_year_id))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_by_code(code):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(CODE_SELECT + ' WHERE ec.code = ?', (code,))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_by_id(code_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(CODE_SELECT + ' WHERE ec.id = ?', (code_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def set_status(code_id, status):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('UPDATE evaluation_codes SET status = ? WHERE id = ?', (status, code_id))
            return cursor.rowcount > 0

    @staticmethod
    def list_active(academic_year_id=None, evaluator_role=None, college_id=None, evaluatee_id=None):
        """Active codes with the number of evaluations submitted against each."""
        clauses = ["ec.status = 'active'"]
        params = []
        if academic_year_id is not None:
            clauses.append('ec.academic_year_id = ?')
            params.append(academic_year_id)
        if evaluator_role:
            clauses.append('ec.evaluator_role = ?')
            params.append(evaluator_role)
        if college_id is not None:
            clauses.append('f.college_id = ?')
            params.append(college_id)
        if evaluatee_id is not None:
            clauses.append('ec.evaluatee_id = ?')
            params.append(evaluatee_id)

        query = ('SELECT' + CODE_COLUMNS
                 + ', (SELECT COUNT(*) FROM evaluations e WHERE e.code_id = ec.id) AS submissions'
                 + CODE_FROM)
        query += ' WHERE ' + ' AND '.join(clauses) + ' ORDER BY f.last_name, ec.evaluator_role, ec.section'

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

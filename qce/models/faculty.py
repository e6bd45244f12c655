import logging
import sqlite3

from .database import get_db
from qce.errors import DuplicateError, NotFoundError, ValidationError
from utils import full_name

logger = logging.getLogger(__name__)

FACULTY_SELECT = '''
    SELECT f.id, f.first_name, f.last_name, f.email, f.position, f.status,
           f.college_id, f.department_id,
           c.name AS college_name, d.name AS department_name
    FROM faculty f
    LEFT JOIN colleges c ON c.id = f.college_id
    LEFT JOIN departments d ON d.id = f.department_id
'''


def _row_to_dict(row):
    data = dict(row)
    data['full_name'] = full_name(data['first_name'], data['last_name'])
    return data


class Faculty:
    @staticmethod
    def add(first_name, last_name, position='Instructor', email=None, college_id=None, department_id=None):
        """Add a faculty member. Returns the new id.

        The college and department must exist, and the department must
        belong to the college when both are given.
        """
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                if college_id is not None:
                    cursor.execute('SELECT 1 FROM colleges WHERE id = ?', (college_id,))
                    if cursor.fetchone() is None:
                        raise NotFoundError("College not found")
                if department_id is not None:
                    cursor.execute('SELECT college_id FROM departments WHERE id = ?', (department_id,))
                    department = cursor.fetchone()
                    if department is None:
                        raise NotFoundError("Department not found")
                    if college_id is not None and department['college_id'] != college_id:
                        raise ValidationError("Department does not belong to the selected college")
                cursor.execute('''
                    INSERT INTO faculty (first_name, last_name, email, position, college_id, department_id)
                    VALUES (?, ?, ?, ?, ?, ?)
                ''', (first_name, last_name, email.strip().lower() if email else None,
                      position, college_id, department_id))
                return cursor.lastrowid
        except sqlite3.IntegrityError:
            raise DuplicateError(f"Faculty with email {email} already exists")

    @staticmethod
    def bulk_add(rows):
        """rows: list of (first_name, last_name, email, position).
        Returns: (added_count, duplicate_count, duplicates_list)
        """
        added = []
        duplicates = []
        with get_db() as conn:
            cursor = conn.cursor()
            for first_name, last_name, email, position in rows:
                email = email.strip().lower() if email else None
                if email:
                    cursor.execute('SELECT 1 FROM faculty WHERE email = ?', (email,))
                    if cursor.fetchone():
                        duplicates.append(email)
                        continue
                cursor.execute('''
                    INSERT INTO faculty (first_name, last_name, email, position)
                    VALUES (?, ?, ?, ?)
                ''', (first_name, last_name, email, position))
                added.append(email or f"{first_name} {last_name}")
        return len(added), len(duplicates), duplicates

    @staticmethod
    def get_by_id(faculty_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(FACULTY_SELECT + ' WHERE f.id = ?', (faculty_id,))
            row = cursor.fetchone()
            return _row_to_dict(row) if row else None

    @staticmethod
    def get_by_college(college_id, active_only=True):
        """Faculty of one college; all colleges when college_id is None."""
        clauses = []
        params = []
        if college_id is not None:
            clauses.append('f.college_id = ?')
            params.append(college_id)
        if active_only:
            clauses.append("f.status = 'active'")
        query = FACULTY_SELECT
        if clauses:
            query += ' WHERE ' + ' AND '.join(clauses)
        query += ' ORDER BY f.last_name, f.first_name'

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [_row_to_dict(row) for row in cursor.fetchall()]

    @staticmethod
    def set_status(faculty_id, status):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('UPDATE faculty SET status = ? WHERE id = ?', (status, faculty_id))
            return cursor.rowcount > 0

import logging
import sqlite3

from .database import get_db
from qce.errors import DuplicateError

logger = logging.getLogger(__name__)

USER_FIELDS = ('id, email, password_hash, full_name, role, college_id, department_id, '
               'faculty_id, student_id, status')


class User:
    @staticmethod
    def create(email, password_hash, full_name, role, college_id=None, department_id=None,
               faculty_id=None, student_id=None):
        """Create an account. Emails are stored lowercase."""
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('''
                    INSERT INTO users (email, password_hash, full_name, role, college_id,
                                       department_id, faculty_id, student_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ''', (email.strip().lower(), password_hash, full_name, role, college_id,
                      department_id, faculty_id, student_id))
                return cursor.lastrowid
        except sqlite3.IntegrityError:
            raise DuplicateError(f"An account with email {email} already exists")

    @staticmethod
    def get_by_email(email):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {USER_FIELDS} FROM users WHERE email = ?',
                           ((email or '').strip().lower(),))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_by_id(user_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {USER_FIELDS} FROM users WHERE id = ?', (user_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def list_by_role(role=None):
        """List accounts without password hashes, optionally for one role."""
        with get_db() as conn:
            cursor = conn.cursor()
            query = '''
                SELECT id, email, full_name, role, college_id, department_id, faculty_id, status
                FROM users
            '''
            params = ()
            if role:
                query += ' WHERE role = ?'
                params = (role,)
            cursor.execute(query + ' ORDER BY role, full_name', params)
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def set_status(user_id, status):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('UPDATE users SET status = ? WHERE id = ?', (status, user_id))
            return cursor.rowcount > 0

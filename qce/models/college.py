import logging
import sqlite3

from .database import get_db
from qce.errors import DuplicateError, NotFoundError

logger = logging.getLogger(__name__)


class College:
    @staticmethod
    def add(name, code=None):
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('INSERT INTO colleges (name, code) VALUES (?, ?)', (name, code))
                return cursor.lastrowid
        except sqlite3.IntegrityError:
            raise DuplicateError(f"College '{name}' already exists")

    @staticmethod
    def get_by_id(college_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT id, name, code, status FROM colleges WHERE id = ?', (college_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_all():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT id, name, code, status FROM colleges ORDER BY name')
            return [dict(row) for row in cursor.fetchall()]


class Department:
    @staticmethod
    def add(college_id, name):
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('SELECT 1 FROM colleges WHERE id = ?', (college_id,))
                if cursor.fetchone() is None:
                    raise NotFoundError("College not found")
                cursor.execute('INSERT INTO departments (college_id, name) VALUES (?, ?)',
                               (college_id, name))
                return cursor.lastrowid
        except sqlite3.IntegrityError:
            raise DuplicateError(f"Department '{name}' already exists in this college")

    @staticmethod
    def get_by_college(college_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT id, college_id, name FROM departments
                WHERE college_id = ?
                ORDER BY name
            ''', (college_id,))
            return [dict(row) for row in cursor.fetchall()]

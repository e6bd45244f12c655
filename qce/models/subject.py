import logging
import sqlite3

from .database import get_db
from qce.errors import DuplicateError

logger = logging.getLogger(__name__)


class Subject:
    @staticmethod
    def add(subject_code, subject_name, department_id=None):
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('''
                    INSERT INTO subjects (subject_code, subject_name, department_id)
                    VALUES (?, ?, ?)
                ''', (subject_code.strip().upper(), subject_name.strip(), department_id))
                return cursor.lastrowid
        except sqlite3.IntegrityError:
            raise DuplicateError(f"Subject {subject_code} already exists")

    @staticmethod
    def get_by_id(subject_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT id, subject_code, subject_name, department_id FROM subjects WHERE id = ?',
                           (subject_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_all():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT id, subject_code, subject_name, department_id FROM subjects ORDER BY subject_code')
            return [dict(row) for row in cursor.fetchall()]

import logging
import sqlite3

from .database import get_db
from qce.errors import DuplicateError

logger = logging.getLogger(__name__)

YEAR_FIELDS = 'id, year_label, semester, status'


class AcademicYear:
    @staticmethod
    def add(year_label, semester):
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('INSERT INTO academic_years (year_label, semester) VALUES (?, ?)',
                               (year_label, semester))
                return cursor.lastrowid
        except sqlite3.IntegrityError:
            raise DuplicateError(f"Academic year {year_label} {semester} already exists")

    @staticmethod
    def activate(year_id):
        """Make one period active; every other period becomes inactive."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT 1 FROM academic_years WHERE id = ?', (year_id,))
            if cursor.fetchone() is None:
                return False
            cursor.execute("UPDATE academic_years SET status = 'inactive' WHERE id != ?", (year_id,))
            cursor.execute("UPDATE academic_years SET status = 'active' WHERE id = ?", (year_id,))
            return True

    @staticmethod
    def get_active():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {YEAR_FIELDS} FROM academic_years WHERE status = 'active' LIMIT 1")
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_by_id(year_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {YEAR_FIELDS} FROM academic_years WHERE id = ?', (year_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_all():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {YEAR_FIELDS} FROM academic_years ORDER BY year_label DESC, semester')
            return [dict(row) for row in cursor.fetchall()]

import logging
from .database import get_db
from utils import normalize_student_number

logger = logging.getLogger(__name__)

STUDENT_FIELDS = 'id, student_number, full_name, program, year_level, section, department_id'


class Student:
    @staticmethod
    def add(student_number, full_name, program=None, year_level=None, section=None, department_id=None):
        """Add a new student to the database."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO students (student_number, full_name, program, year_level, section, department_id)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (normalize_student_number(student_number), full_name, program,
                  year_level, section, department_id))
            return cursor.lastrowid

    @staticmethod
    def bulk_add(students):
        """Add multiple students at once.
        students: list of tuples (student_number, full_name, program, year_level, section)
        Returns: (added_count, duplicate_count, duplicates_list)
        """
        added = []
        duplicates = []

        with get_db() as conn:
            cursor = conn.cursor()

            for student_number, full_name, program, year_level, section in students:
                number = normalize_student_number(student_number)
                cursor.execute('SELECT 1 FROM students WHERE student_number = ?', (number,))
                if cursor.fetchone():
                    duplicates.append(number)
                    continue
                cursor.execute('''
                    INSERT INTO students (student_number, full_name, program, year_level, section)
                    VALUES (?, ?, ?, ?, ?)
                ''', (number, full_name, program, year_level, section))
                added.append(number)

        return len(added), len(duplicates), duplicates

    @staticmethod
    def get_by_number(student_number):
        """Get student info by student number."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {STUDENT_FIELDS} FROM students WHERE student_number = ?',
                           (normalize_student_number(student_number),))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_by_id(student_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {STUDENT_FIELDS} FROM students WHERE id = ?', (student_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_all():
        """Get all students."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                SELECT {STUDENT_FIELDS} FROM students
                ORDER BY program, year_level, section, student_number
            ''')
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def count():
        """Get total number of students."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM students')
            return cursor.fetchone()[0]

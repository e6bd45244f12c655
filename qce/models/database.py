import sqlite3
import os
from contextlib import contextmanager
import logging

import config

logger = logging.getLogger(__name__)


def get_db_path():
    """Get the database path and ensure the directory exists."""
    db_path = config.DATABASE_PATH
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)
    return db_path


@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = None
    try:
        conn = sqlite3.connect(get_db_path())
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        yield conn
        conn.commit()
    except Exception as e:
        if conn:
            conn.rollback()
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn:
            conn.close()


def init_db():
    """Initialize the database with all required tables."""
    with get_db() as conn:
        cursor = conn.cursor()

        # Accounts for every role; faculty/student rows link back here
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                full_name TEXT NOT NULL,
                role TEXT NOT NULL,
                college_id INTEGER,
                department_id INTEGER,
                faculty_id INTEGER,
                student_id INTEGER,
                status TEXT NOT NULL DEFAULT 'active',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS colleges (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                code TEXT,
                status TEXT NOT NULL DEFAULT 'active',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS departments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                college_id INTEGER NOT NULL REFERENCES colleges(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(college_id, name)
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS faculty (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                first_name TEXT NOT NULL,
                last_name TEXT NOT NULL,
                email TEXT UNIQUE,
                position TEXT NOT NULL DEFAULT 'Instructor',
                college_id INTEGER REFERENCES colleges(id),
                department_id INTEGER REFERENCES departments(id),
                status TEXT NOT NULL DEFAULT 'active',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_faculty_college
            ON faculty(college_id)
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS students (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                student_number TEXT NOT NULL UNIQUE,
                full_name TEXT NOT NULL,
                program TEXT,
                year_level TEXT,
                section TEXT,
                department_id INTEGER REFERENCES departments(id),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS subjects (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                subject_code TEXT NOT NULL UNIQUE,
                subject_name TEXT NOT NULL,
                department_id INTEGER REFERENCES departments(id),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS academic_years (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                year_label TEXT NOT NULL,
                semester TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'inactive',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(year_label, semester)
            )
        ''')

        # One code per (evaluator role, evaluatee, subject, section) assignment
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS evaluation_codes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                code TEXT NOT NULL UNIQUE,
                evaluator_role TEXT NOT NULL,
                evaluatee_id INTEGER NOT NULL REFERENCES faculty(id) ON DELETE CASCADE,
                subject_id INTEGER REFERENCES subjects(id),
                section TEXT,
                academic_year_id INTEGER REFERENCES academic_years(id),
                criteria_type TEXT NOT NULL DEFAULT 'new',
                status TEXT NOT NULL DEFAULT 'active',
                created_by INTEGER,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_codes_evaluatee
            ON evaluation_codes(evaluatee_id, evaluator_role, status)
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS evaluations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                evaluator_id INTEGER NOT NULL,
                evaluator_role TEXT NOT NULL,
                evaluatee_id INTEGER NOT NULL REFERENCES faculty(id) ON DELETE CASCADE,
                code_id INTEGER REFERENCES evaluation_codes(id),
                academic_year_id INTEGER REFERENCES academic_years(id),
                criteria_type TEXT NOT NULL DEFAULT 'new',
                status TEXT NOT NULL DEFAULT 'completed',
                submitted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(evaluator_id, code_id)
            )
        ''')

        conn.commit()

    # Score columns and the ratings detail table come from the migration
    from .migrations import run_migrations
    run_migrations()
    logger.info("Database initialized successfully")

"""
Migration that brings an evaluations table up to the scored layout.

Adds the per-category score columns and evaluator details, creates the
per-criterion ratings table and its indexes. Safe to run repeatedly.
"""
import logging
import sqlite3

from .database import get_db

logger = logging.getLogger(__name__)

EVALUATION_COLUMNS = [
    ('score_commitment', 'INTEGER NOT NULL DEFAULT 0'),
    ('score_knowledge', 'INTEGER NOT NULL DEFAULT 0'),
    ('score_teaching', 'INTEGER NOT NULL DEFAULT 0'),
    ('score_management', 'INTEGER NOT NULL DEFAULT 0'),
    ('total_score', 'REAL NOT NULL DEFAULT 0'),
    ('comments', 'TEXT'),
    ('evaluator_name', 'TEXT'),
    ('evaluator_position', "TEXT DEFAULT 'Student'"),
    ('evaluation_date', 'DATE'),
]

INDEXES = [
    ('idx_evaluations_evaluatee', 'evaluations', 'evaluatee_id'),
    ('idx_evaluations_evaluator', 'evaluations', 'evaluator_id'),
    ('idx_evaluation_ratings_eval', 'evaluation_ratings_detail', 'evaluation_id'),
]


def existing_columns(cursor, table):
    cursor.execute(f'PRAGMA table_info({table})')
    return {row[1] for row in cursor.fetchall()}


def run_migrations():
    """Apply the evaluation score migration. Returns the list of steps applied."""
    applied = []
    with get_db() as conn:
        cursor = conn.cursor()

        columns = existing_columns(cursor, 'evaluations')
        if not columns:
            raise RuntimeError("evaluations table does not exist; run init_db() first")

        for name, definition in EVALUATION_COLUMNS:
            if name in columns:
                logger.debug(f"Column already exists: {name}")
                continue
            cursor.execute(f'ALTER TABLE evaluations ADD COLUMN {name} {definition}')
            applied.append(f'column:{name}')
            logger.info(f"Added column: {name}")

        cursor.execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name='evaluation_ratings_detail'"
        )
        if cursor.fetchone() is None:
            cursor.execute('''
                CREATE TABLE evaluation_ratings_detail (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    evaluation_id INTEGER NOT NULL REFERENCES evaluations(id) ON DELETE CASCADE,
                    category TEXT NOT NULL,
                    criterion_index INTEGER NOT NULL,
                    rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(evaluation_id, category, criterion_index)
                )
            ''')
            applied.append('table:evaluation_ratings_detail')
            logger.info("Created table: evaluation_ratings_detail")

        for index_name, table, column in INDEXES:
            try:
                cursor.execute(f'CREATE INDEX IF NOT EXISTS {index_name} ON {table}({column})')
            except sqlite3.OperationalError as e:
                logger.error(f"Error creating index {index_name}: {e}")
                raise

    if applied:
        logger.info(f"Migration applied {len(applied)} step(s)")
    return applied

import logging

from .database import get_db
from qce.errors import AlreadyEvaluatedError

logger = logging.getLogger(__name__)

EVALUATION_SELECT = '''
    SELECT e.id, e.evaluator_id, e.evaluator_role, e.evaluatee_id, e.code_id, e.academic_year_id,
           e.criteria_type, e.status, e.submitted_at,
           e.score_commitment, e.score_knowledge, e.score_teaching, e.score_management,
           e.total_score, e.comments, e.evaluator_name, e.evaluator_position, e.evaluation_date,
           f.first_name || ' ' || f.last_name AS evaluatee_name, f.position AS evaluatee_position,
           ay.year_label, ay.semester,
           s.subject_code, s.subject_name, ec.section
    FROM evaluations e
    JOIN faculty f ON f.id = e.evaluatee_id
    LEFT JOIN academic_years ay ON ay.id = e.academic_year_id
    LEFT JOIN evaluation_codes ec ON ec.id = e.code_id
    LEFT JOIN subjects s ON s.id = ec.subject_id
'''


class Evaluation:
    @staticmethod
    def create(record, ratings, close_code=False):
        """Insert an evaluation and its ratings in one transaction.

        record: dict of evaluations columns
        ratings: {(category, criterion_index): rating}
        close_code: mark the redeemed code as used in the same transaction
        """
        columns = list(record)
        placeholders = ', '.join('?' for _ in columns)

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO evaluations ({', '.join(columns)}) VALUES ({placeholders})",
                [record[c] for c in columns]
            )
            evaluation_id = cursor.lastrowid

            cursor.executemany('''
                INSERT INTO evaluation_ratings_detail (evaluation_id, category, criterion_index, rating)
                VALUES (?, ?, ?, ?)
            ''', [(evaluation_id, code, index, value)
                  for (code, index), value in sorted(ratings.items())])

            if close_code:
                cursor.execute("UPDATE evaluation_codes SET status = 'used' WHERE id = ? AND status = 'active'",
                               (record['code_id'],))
                if cursor.rowcount == 0:
                    # another submission closed the code first; roll back this one
                    raise AlreadyEvaluatedError("This evaluation code has already been used")

            return evaluation_id

    @staticmethod
    def exists_for(evaluator_id, code_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT 1 FROM evaluations WHERE evaluator_id = ? AND code_id = ?',
                           (evaluator_id, code_id))
            return cursor.fetchone() is not None

    @staticmethod
    def get_by_id(evaluation_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(EVALUATION_SELECT + ' WHERE e.id = ?', (evaluation_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_ratings(evaluation_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT category, criterion_index, rating
                FROM evaluation_ratings_detail
                WHERE evaluation_id = ?
                ORDER BY category, criterion_index
            ''', (evaluation_id,))
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def list_by_evaluator(evaluator_id, evaluator_role=None):
        query = EVALUATION_SELECT + ' WHERE e.evaluator_id = ?'
        params = [evaluator_id]
        if evaluator_role:
            query += ' AND e.evaluator_role = ?'
            params.append(evaluator_role)
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(query + ' ORDER BY e.submitted_at DESC, e.id DESC', params)
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def list_for_evaluatee(evaluatee_id, evaluator_role=None):
        query = EVALUATION_SELECT + " WHERE e.evaluatee_id = ? AND e.status = 'completed'"
        params = [evaluatee_id]
        if evaluator_role:
            query += ' AND e.evaluator_role = ?'
            params.append(evaluator_role)
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(query + ' ORDER BY e.submitted_at, e.id', params)
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def ratings_for_evaluatee(evaluatee_id, evaluator_role):
        """Every submitted rating for one evaluatee from one evaluator population.

        Returns (evaluation_id, criteria_type, category, criterion_index, rating) tuples.
        """
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT r.evaluation_id, e.criteria_type, r.category, r.criterion_index, r.rating
                FROM evaluation_ratings_detail r
                JOIN evaluations e ON e.id = r.evaluation_id
                WHERE e.evaluatee_id = ? AND e.evaluator_role = ? AND e.status = 'completed'
                ORDER BY r.evaluation_id, r.category, r.criterion_index
            ''', (evaluatee_id, evaluator_role))
            return [(row['evaluation_id'], row['criteria_type'], row['category'],
                     row['criterion_index'], row['rating']) for row in cursor.fetchall()]

    @staticmethod
    def count_for_evaluatee(evaluatee_id, evaluator_role):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT COUNT(*) FROM evaluations
                WHERE evaluatee_id = ? AND evaluator_role = ? AND status = 'completed'
            ''', (evaluatee_id, evaluator_role))
            return cursor.fetchone()[0]

    @staticmethod
    def period_averages(evaluatee_id, evaluator_role):
        """Mean total_score (percent) per academic period."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT ay.year_label, ay.semester, AVG(e.total_score) AS average, COUNT(*) AS evaluations
                FROM evaluations e
                JOIN academic_years ay ON ay.id = e.academic_year_id
                WHERE e.evaluatee_id = ? AND e.evaluator_role = ? AND e.status = 'completed'
                GROUP BY ay.year_label, ay.semester
            ''', (evaluatee_id, evaluator_role))
            return [dict(row) for row in cursor.fetchall()]

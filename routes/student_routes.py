from flask import Blueprint, request, jsonify
import logging

from config import EVALUATOR_STUDENT, ROLE_STUDENT
from qce.services.code_service import redeem_code
from qce.services.evaluation_service import list_completed, submit_evaluation
from qce.services.rubric import get_rubric
from qce.session import login_required

logger = logging.getLogger(__name__)

student_bp = Blueprint('student', __name__, url_prefix='/api/student')


@student_bp.route('/validate-code', methods=['POST'])
@login_required(ROLE_STUDENT)
def validate_code(actor):
    """Unlock the evaluation form for a code."""
    data = request.get_json(silent=True) or {}
    entry = redeem_code(data.get('code'), actor)
    return jsonify({
        'success': True,
        'message': f"Code accepted. You are evaluating {entry['evaluatee_name']}.",
        'evaluation': entry,
        'criteria': get_rubric(entry['criteria_type']).to_dict()
    })


@student_bp.route('/submit', methods=['POST'])
@login_required(ROLE_STUDENT)
def submit(actor):
    data = request.get_json(silent=True) or {}
    result = submit_evaluation(
        actor,
        data.get('code'),
        data.get('ratings'),
        comments=data.get('comments'),
        evaluator_name=data.get('evaluator_name'),
        evaluation_date=data.get('evaluation_date'),
    )
    return jsonify({
        'success': True,
        'message': 'Evaluation submitted successfully. Thank you!',
        'data': result
    }), 201


@student_bp.route('/evaluations', methods=['GET'])
@login_required(ROLE_STUDENT)
def completed(actor):
    evaluations = list_completed(actor.user_id, EVALUATOR_STUDENT)
    return jsonify({
        'success': True,
        'data': evaluations,
        'count': len(evaluations)
    })

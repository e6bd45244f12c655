from flask import Blueprint, request, jsonify
import logging

from config import EVALUATOR_SUPERVISOR, SUPERVISOR_ROLES
from qce.services.code_service import redeem_code
from qce.services.evaluation_service import list_completed, submit_evaluation
from qce.services.rubric import get_rubric
from qce.session import login_required

logger = logging.getLogger(__name__)

supervisor_bp = Blueprint('supervisor', __name__, url_prefix='/api/supervisor')


@supervisor_bp.route('/validate-code', methods=['POST'])
@login_required(*SUPERVISOR_ROLES)
def validate_code(actor):
    """Deans and chairs may only unlock codes for their own college."""
    data = request.get_json(silent=True) or {}
    entry = redeem_code(data.get('code'), actor)
    return jsonify({
        'success': True,
        'message': f"Code accepted. You are evaluating {entry['evaluatee_name']}.",
        'evaluation': entry,
        'criteria': get_rubric(entry['criteria_type']).to_dict()
    })


@supervisor_bp.route('/submit', methods=['POST'])
@login_required(*SUPERVISOR_ROLES)
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
        'message': 'Evaluation submitted successfully.',
        'data': result
    }), 201


@supervisor_bp.route('/evaluations', methods=['GET'])
@login_required(*SUPERVISOR_ROLES)
def completed(actor):
    evaluations = list_completed(actor.user_id, EVALUATOR_SUPERVISOR)
    return jsonify({
        'success': True,
        'data': evaluations,
        'count': len(evaluations)
    })

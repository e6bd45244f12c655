from flask import Blueprint, request, jsonify
import logging

from qce.services.account_service import authenticate, register_student, require_fields
from qce.session import current_actor, end_session, start_session

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    values = require_fields(data, ['email', 'password'])
    actor = authenticate(values['email'], values['password'])
    start_session(actor)
    return jsonify({
        'success': True,
        'message': 'Login successful',
        'user': actor.to_dict()
    })


@auth_bp.route('/logout', methods=['POST'])
def logout():
    end_session()
    return jsonify({
        'success': True,
        'message': 'Logged out'
    })


@auth_bp.route('/verify', methods=['GET'])
def verify():
    """Report the current session; an idle session has already been cleared."""
    actor = current_actor()
    if actor is None:
        return jsonify({
            'success': False,
            'message': 'Session expired or not logged in'
        }), 401
    return jsonify({
        'success': True,
        'user': actor.to_dict()
    })


@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    user_id = register_student(data)
    return jsonify({
        'success': True,
        'message': 'Registration successful. You can now log in.',
        'user_id': user_id
    }), 201

from flask import Blueprint, request, jsonify
import logging

from config import ROLE_ZONAL_ADMIN
from qce.errors import NotFoundError, ValidationError
from qce.models import AcademicYear, College, Department, User
from qce.services.account_service import create_account, require_fields
from qce.session import login_required
from utils import normalize_semester, parse_year_label

logger = logging.getLogger(__name__)

zonal_bp = Blueprint('zonal', __name__, url_prefix='/api/zonal')


@zonal_bp.route('/colleges', methods=['GET'])
@login_required(ROLE_ZONAL_ADMIN)
def list_colleges(actor):
    colleges = College.get_all()
    return jsonify({
        'success': True,
        'data': colleges,
        'count': len(colleges)
    })


@zonal_bp.route('/colleges', methods=['POST'])
@login_required(ROLE_ZONAL_ADMIN)
def add_college(actor):
    data = request.get_json(silent=True) or {}
    values = require_fields(data, ['name'])
    college_id = College.add(values['name'], (data.get('code') or '').strip() or None)
    logger.info(f"College {college_id} added by user {actor.user_id}")
    return jsonify({
        'success': True,
        'message': f"College {values['name']} added",
        'data': College.get_by_id(college_id)
    }), 201


@zonal_bp.route('/colleges/<int:college_id>/departments', methods=['GET'])
@login_required(ROLE_ZONAL_ADMIN)
def list_departments(actor, college_id):
    departments = Department.get_by_college(college_id)
    return jsonify({
        'success': True,
        'data': departments,
        'count': len(departments)
    })


@zonal_bp.route('/colleges/<int:college_id>/departments', methods=['POST'])
@login_required(ROLE_ZONAL_ADMIN)
def add_department(actor, college_id):
    if College.get_by_id(college_id) is None:
        raise NotFoundError("College not found")
    data = request.get_json(silent=True) or {}
    values = require_fields(data, ['name'])
    department_id = Department.add(college_id, values['name'])
    return jsonify({
        'success': True,
        'message': f"Department {values['name']} added",
        'data': {'id': department_id, 'college_id': college_id, 'name': values['name']}
    }), 201


@zonal_bp.route('/academic-years', methods=['GET'])
@login_required(ROLE_ZONAL_ADMIN)
def list_academic_years(actor):
    years = AcademicYear.get_all()
    return jsonify({
        'success': True,
        'data': years,
        'count': len(years)
    })


@zonal_bp.route('/academic-years', methods=['POST'])
@login_required(ROLE_ZONAL_ADMIN)
def add_academic_year(actor):
    """Labels must look like 2025-2026; the semester is stored as 1st or 2nd."""
    data = request.get_json(silent=True) or {}
    values = require_fields(data, ['year_label', 'semester'])

    parsed = parse_year_label(values['year_label'])
    if parsed is None or parsed[1] != parsed[0] + 1:
        raise ValidationError("Academic year must look like 2025-2026")
    semester = normalize_semester(values['semester'])
    if semester is None:
        raise ValidationError("Semester must be 1st or 2nd")

    year_label = f"{parsed[0]}-{parsed[1]}"
    year_id = AcademicYear.add(year_label, semester)
    if data.get('activate'):
        AcademicYear.activate(year_id)
    return jsonify({
        'success': True,
        'message': f"Academic year {year_label} {semester} semester added",
        'data': AcademicYear.get_by_id(year_id)
    }), 201


@zonal_bp.route('/academic-years/<int:year_id>/activate', methods=['POST'])
@login_required(ROLE_ZONAL_ADMIN)
def activate_academic_year(actor, year_id):
    if not AcademicYear.activate(year_id):
        raise NotFoundError("Academic year not found")
    year = AcademicYear.get_by_id(year_id)
    logger.info(f"Academic year {year['year_label']} {year['semester']} activated by user {actor.user_id}")
    return jsonify({
        'success': True,
        'message': f"{year['year_label']} {year['semester']} semester is now active",
        'data': year
    })


@zonal_bp.route('/accounts', methods=['GET'])
@login_required(ROLE_ZONAL_ADMIN)
def list_accounts(actor):
    accounts = User.list_by_role(request.args.get('role') or None)
    return jsonify({
        'success': True,
        'data': accounts,
        'count': len(accounts)
    })


@zonal_bp.route('/accounts', methods=['POST'])
@login_required(ROLE_ZONAL_ADMIN)
def add_account(actor):
    data = request.get_json(silent=True) or {}
    user_id = create_account(data)
    return jsonify({
        'success': True,
        'message': 'Account created',
        'data': {'id': user_id}
    }), 201


@zonal_bp.route('/accounts/<int:user_id>/status', methods=['POST'])
@login_required(ROLE_ZONAL_ADMIN)
def set_account_status(actor, user_id):
    data = request.get_json(silent=True) or {}
    status = data.get('status')
    if status not in ('active', 'inactive'):
        raise ValidationError("Status must be active or inactive")
    if not User.set_status(user_id, status):
        raise NotFoundError("Account not found")
    return jsonify({
        'success': True,
        'message': f"Account {status}"
    })

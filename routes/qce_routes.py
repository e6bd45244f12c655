from flask import Blueprint, request, jsonify, send_file
from werkzeug.utils import secure_filename
import io
import os
import logging

import config
from config import (
    DEFAULT_CRITERIA_TYPE,
    ROLE_DEAN,
    ROLE_DEPT_CHAIR,
    ROLE_PRESIDENT,
    ROLE_QCE_MANAGER,
    ROLE_VPAA,
    ROLE_ZONAL_ADMIN,
)
from qce.errors import NotFoundError, PermissionDenied, ValidationError
from qce.models import Faculty, Subject
from qce.services import annex_service
from qce.services.account_service import require_fields
from qce.services.code_service import expire_code, issue_code, list_active_codes
from qce.services.evaluation_service import get_evaluation
from qce.services.excel_service import create_sample_excel, process_faculty_excel, process_student_excel
from qce.session import login_required
from report_generator import generate_annex_pdf
from report_pending import generate_pending_report
from utils import allowed_file

logger = logging.getLogger(__name__)

qce_bp = Blueprint('qce', __name__, url_prefix='/api/qce')

MANAGERS = (ROLE_QCE_MANAGER,)
# Roles that may read results; deans and chairs see their own college only
VIEWERS = (ROLE_QCE_MANAGER, ROLE_ZONAL_ADMIN, ROLE_VPAA, ROLE_PRESIDENT, ROLE_DEAN, ROLE_DEPT_CHAIR)
COLLEGE_SCOPED = (ROLE_DEAN, ROLE_DEPT_CHAIR)

UPLOADERS = {
    'students': process_student_excel,
    'faculty': process_faculty_excel,
}


def _int_arg(name):
    value = request.args.get(name, '').strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def _scoped_college(actor, college_id):
    if actor.role in COLLEGE_SCOPED:
        return actor.college_id
    return college_id


def _check_faculty_scope(actor, faculty_id):
    faculty = Faculty.get_by_id(faculty_id)
    if faculty is None:
        raise NotFoundError("Faculty member not found")
    if actor.role in COLLEGE_SCOPED and faculty['college_id'] != actor.college_id:
        raise PermissionDenied("You can only view faculty from your own college")
    return faculty


# ---------------------------------------------------------------------------
# Faculty and subjects
# ---------------------------------------------------------------------------

@qce_bp.route('/faculty', methods=['GET'])
@login_required(*VIEWERS)
def list_faculty(actor):
    college_id = _scoped_college(actor, _int_arg('college_id'))
    faculty = Faculty.get_by_college(college_id, active_only=request.args.get('all') != '1')
    return jsonify({
        'success': True,
        'data': faculty,
        'count': len(faculty)
    })


@qce_bp.route('/faculty', methods=['POST'])
@login_required(*MANAGERS)
def add_faculty(actor):
    data = request.get_json(silent=True) or {}
    values = require_fields(data, ['first_name', 'last_name', 'position'])
    faculty_id = Faculty.add(
        values['first_name'],
        values['last_name'],
        position=values['position'],
        email=data.get('email'),
        college_id=data.get('college_id'),
        department_id=data.get('department_id'),
    )
    logger.info(f"Faculty {faculty_id} added by user {actor.user_id}")
    return jsonify({
        'success': True,
        'message': f"{values['first_name']} {values['last_name']} added",
        'data': Faculty.get_by_id(faculty_id)
    }), 201


@qce_bp.route('/subjects', methods=['GET'])
@login_required(*MANAGERS)
def list_subjects(actor):
    subjects = Subject.get_all()
    return jsonify({
        'success': True,
        'data': subjects,
        'count': len(subjects)
    })


@qce_bp.route('/subjects', methods=['POST'])
@login_required(*MANAGERS)
def add_subject(actor):
    data = request.get_json(silent=True) or {}
    values = require_fields(data, ['subject_code', 'subject_name'])
    subject_id = Subject.add(values['subject_code'], values['subject_name'], data.get('department_id'))
    return jsonify({
        'success': True,
        'message': f"Subject {values['subject_code']} added",
        'data': Subject.get_by_id(subject_id)
    }), 201


# ---------------------------------------------------------------------------
# Assignments and codes
# ---------------------------------------------------------------------------

@qce_bp.route('/assignments', methods=['POST'])
@login_required(*MANAGERS)
def create_assignment(actor):
    """Issue (or return the existing) code for an evaluator assignment."""
    data = request.get_json(silent=True) or {}
    values = require_fields(data, ['evaluator_role', 'faculty_id'])
    code = issue_code(
        values['evaluator_role'],
        values['faculty_id'],
        subject_id=data.get('subject_id'),
        section=data.get('section'),
        academic_year_id=data.get('academic_year_id'),
        created_by=actor.user_id,
        criteria_type=data.get('criteria_type') or DEFAULT_CRITERIA_TYPE,
    )
    return jsonify({
        'success': True,
        'message': f"Evaluation code {code['code']} is ready",
        'data': code
    }), 201


@qce_bp.route('/codes', methods=['GET'])
@login_required(*MANAGERS)
def active_codes(actor):
    codes = list_active_codes(
        academic_year_id=_int_arg('academic_year_id'),
        evaluator_role=request.args.get('evaluator_role') or None,
        college_id=_int_arg('college_id'),
        evaluatee_id=_int_arg('faculty_id'),
    )
    return jsonify({
        'success': True,
        'data': codes,
        'count': len(codes)
    })


@qce_bp.route('/codes/<int:code_id>/expire', methods=['POST'])
@login_required(*MANAGERS)
def expire(actor, code_id):
    expire_code(code_id)
    return jsonify({
        'success': True,
        'message': 'Code expired'
    })


# ---------------------------------------------------------------------------
# Results and reports
# ---------------------------------------------------------------------------

@qce_bp.route('/results', methods=['GET'])
@login_required(*VIEWERS)
def results(actor):
    college_id = _scoped_college(actor, _int_arg('college_id'))
    summaries = annex_service.college_results(college_id)
    return jsonify({
        'success': True,
        'data': summaries,
        'count': len(summaries)
    })


@qce_bp.route('/faculty/<int:faculty_id>/summary', methods=['GET'])
@login_required(*VIEWERS)
def faculty_detail(actor, faculty_id):
    _check_faculty_scope(actor, faculty_id)
    return jsonify({
        'success': True,
        'data': annex_service.faculty_summary(faculty_id)
    })


@qce_bp.route('/faculty/<int:faculty_id>/annex/<letter>', methods=['GET'])
@login_required(*VIEWERS)
def annex(actor, faculty_id, letter):
    _check_faculty_scope(actor, faculty_id)
    return jsonify({
        'success': True,
        'data': annex_service.build_annex(letter, faculty_id)
    })


@qce_bp.route('/faculty/<int:faculty_id>/annex/<letter>/pdf', methods=['GET'])
@login_required(*VIEWERS)
def annex_pdf(actor, faculty_id, letter):
    faculty = _check_faculty_scope(actor, faculty_id)
    data = annex_service.build_annex(letter, faculty_id)
    pdf = generate_annex_pdf(data)
    filename = f"annex_{letter.upper()}_{faculty['last_name']}_{faculty_id}.pdf"
    return send_file(io.BytesIO(pdf), mimetype='application/pdf', as_attachment=True,
                     download_name=secure_filename(filename))


@qce_bp.route('/reports/pending', methods=['GET'])
@login_required(*MANAGERS)
def pending_report(actor):
    pdf = generate_pending_report(_int_arg('academic_year_id'), _int_arg('college_id'))
    return send_file(io.BytesIO(pdf), mimetype='application/pdf', as_attachment=True,
                     download_name='pending_evaluations.pdf')


@qce_bp.route('/evaluations/<int:evaluation_id>', methods=['GET'])
@login_required(*MANAGERS)
def evaluation_detail(actor, evaluation_id):
    return jsonify({
        'success': True,
        'data': get_evaluation(evaluation_id)
    })


# ---------------------------------------------------------------------------
# Roster uploads
# ---------------------------------------------------------------------------

@qce_bp.route('/upload/<kind>', methods=['POST'])
@login_required(*MANAGERS)
def upload_roster(actor, kind):
    """Upload a student or faculty roster (.xlsx/.xls)."""
    processor = UPLOADERS.get(kind)
    if processor is None:
        raise NotFoundError(f"Unknown roster type: {kind}")

    if 'file' not in request.files:
        return jsonify({
            'success': False,
            'message': 'No file uploaded'
        }), 400

    file = request.files['file']
    if file.filename == '':
        return jsonify({
            'success': False,
            'message': 'No file selected'
        }), 400

    if not allowed_file(file.filename):
        return jsonify({
            'success': False,
            'message': 'Invalid file type. Please upload an Excel file (.xlsx or .xls)'
        }), 400

    os.makedirs(config.UPLOAD_FOLDER, exist_ok=True)
    filepath = os.path.join(config.UPLOAD_FOLDER, secure_filename(file.filename))
    file.save(filepath)

    try:
        success, message, stats = processor(filepath)
    finally:
        try:
            os.remove(filepath)
        except OSError as e:
            logger.warning(f"Could not remove upload {filepath}: {e}")

    return jsonify({
        'success': success,
        'message': message,
        'stats': stats
    }), 200 if success else 400


@qce_bp.route('/upload/<kind>/sample', methods=['GET'])
@login_required(*MANAGERS)
def download_sample(actor, kind):
    """Download a sample roster file."""
    if kind not in UPLOADERS:
        raise NotFoundError(f"Unknown roster type: {kind}")
    os.makedirs(config.UPLOAD_FOLDER, exist_ok=True)
    filename = f'sample_{kind}.xlsx'
    sample_path = os.path.abspath(os.path.join(config.UPLOAD_FOLDER, filename))
    create_sample_excel(sample_path, kind)
    return send_file(sample_path, as_attachment=True, download_name=filename)

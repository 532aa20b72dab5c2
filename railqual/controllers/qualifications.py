from flask import Blueprint, current_app, jsonify, request

from railqual import cache, limiter
from railqual.services.qualifications import QualificationService
from railqual.services.recalculation import RecalculationService
from railqual.services.stats import FleetStatsService
from railqual.utils.error_handler import ValidationError, error_handler
from railqual.utils.helpers import current_actor_id, pagination_args, parse_date

qualifications_bp = Blueprint('qualifications', __name__, url_prefix='/api/qualifications')


def _not_found():
    return jsonify({'success': False, 'error': 'Qualification not found'}), 404


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


@qualifications_bp.route('/types')
@cache.cached(key_prefix='qualification_types')
@error_handler
def list_types():
    types = QualificationService.list_qualification_types()
    return jsonify({'success': True, 'data': [t.to_dict() for t in types]})


@qualifications_bp.route('/stats')
@error_handler
def get_stats():
    stats = FleetStatsService.get_qualification_stats()
    return jsonify({'success': True, 'data': stats})


@qualifications_bp.route('/due-by-month')
@error_handler
def get_due_by_month():
    now = parse_date(request.args.get('now'), 'now')
    data = FleetStatsService.get_due_by_month(now)
    return jsonify({'success': True, 'data': data})


@qualifications_bp.route('/recalculate', methods=['POST'])
@error_handler
def recalculate():
    data = _json_body()
    now = parse_date(data.get('now') or request.args.get('now'), 'now')
    result = RecalculationService.recalculate_all_statuses(now)
    return jsonify({'success': True, 'data': result})


@qualifications_bp.route('', methods=['GET'])
@error_handler
def list_qualifications():
    filters = {
        'car_id': request.args.get('car_id'),
        'qualification_type_id': request.args.get('qualification_type_id', type=int),
        'type_code': request.args.get('type_code'),
        'status': request.args.get('status'),
    }
    limit, offset = pagination_args()
    result = QualificationService.list_qualifications(filters, limit=limit, offset=offset)
    return jsonify({
        'success': True,
        'data': [q.to_dict() for q in result['qualifications']],
        'total': result['total']
    })


@qualifications_bp.route('', methods=['POST'])
@error_handler
def create_qualification():
    qualification = QualificationService.create_qualification(_json_body(), current_actor_id())
    return jsonify({'success': True, 'data': qualification.to_dict()}), 201


@qualifications_bp.route('/bulk-update', methods=['POST'])
@limiter.limit(lambda: current_app.config['BULK_UPDATE_RATE_LIMIT'])
@error_handler
def bulk_update():
    data = _json_body()
    ids = data.get('ids')
    if not isinstance(ids, list) or not ids:
        return jsonify({'success': False, 'error': 'ids array is required'}), 400

    patch = {key: value for key, value in data.items() if key != 'ids'}
    result = QualificationService.bulk_update_qualifications(ids, patch, current_actor_id())
    return jsonify({'success': True, 'data': result})


@qualifications_bp.route('/<int:qualification_id>')
@error_handler
def get_qualification(qualification_id):
    qualification = QualificationService.get_qualification(qualification_id)
    if qualification is None:
        return _not_found()
    return jsonify({'success': True, 'data': qualification.to_dict()})


@qualifications_bp.route('/<int:qualification_id>/history')
@error_handler
def get_history(qualification_id):
    history = QualificationService.get_qualification_history(qualification_id)
    return jsonify({'success': True, 'data': [event.to_dict() for event in history]})


@qualifications_bp.route('/<int:qualification_id>', methods=['PUT'])
@error_handler
def update_qualification(qualification_id):
    qualification = QualificationService.update_qualification(
        qualification_id, _json_body(), current_actor_id()
    )
    if qualification is None:
        return _not_found()
    return jsonify({'success': True, 'data': qualification.to_dict()})


@qualifications_bp.route('/<int:qualification_id>/complete', methods=['POST'])
@error_handler
def complete_qualification(qualification_id):
    data = _json_body()
    if not data.get('completed_date'):
        return jsonify({'success': False, 'error': 'completed_date is required'}), 400

    qualification = QualificationService.complete_qualification(qualification_id, data, current_actor_id())
    if qualification is None:
        return _not_found()
    return jsonify({'success': True, 'data': qualification.to_dict()})

from flask import Blueprint, jsonify, request

from railqual.services.alerts import AlertService
from railqual.utils.error_handler import error_handler
from railqual.utils.helpers import current_actor_id, pagination_args, parse_bool

alerts_bp = Blueprint('alerts', __name__, url_prefix='/api/qualifications/alerts')


@alerts_bp.route('')
@error_handler
def get_alerts():
    filters = {
        'alert_type': request.args.get('alert_type'),
        'is_acknowledged': parse_bool(request.args.get('is_acknowledged')),
        'car_id': request.args.get('car_id'),
        'qualification_id': request.args.get('qualification_id', type=int),
    }
    limit, offset = pagination_args()
    result = AlertService.get_alerts(filters, limit=limit, offset=offset)
    return jsonify({
        'success': True,
        'data': [alert.to_dict() for alert in result['alerts']],
        'total': result['total']
    })


@alerts_bp.route('/<int:alert_id>/acknowledge', methods=['POST'])
@error_handler
def acknowledge_alert(alert_id):
    if not AlertService.acknowledge_alert(alert_id, current_actor_id()):
        return jsonify({'success': False, 'error': 'Alert not found or already acknowledged'}), 404
    return jsonify({'success': True})

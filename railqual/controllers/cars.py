from flask import Blueprint, jsonify, request

from railqual.services.qualifications import QualificationService
from railqual.utils.error_handler import error_handler
from railqual.utils.helpers import parse_date

cars_bp = Blueprint('cars', __name__, url_prefix='/api/cars')


@cars_bp.route('/<car_id>/qualifications')
@error_handler
def get_car_qualifications(car_id):
    qualifications = QualificationService.get_car_qualifications(car_id)
    return jsonify({'success': True, 'data': [q.to_dict() for q in qualifications]})


@cars_bp.route('/<car_id>/qualification-priority')
@error_handler
def get_qualification_priority(car_id):
    now = parse_date(request.args.get('now'), 'now')
    priority = QualificationService.get_qualification_priority(car_id, now)
    return jsonify({'success': True, 'data': priority})

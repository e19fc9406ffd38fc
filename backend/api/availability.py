import logging
from flask import Blueprint, jsonify, request
from flask_security import auth_required, roles_accepted

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import db
from backend.schemas.availability_schema import TimeSlotSchema
from backend.services.availability_service import AvailabilityService
from backend.services.errors import ServiceError

availability_bp = Blueprint('availability', __name__)
logger = logging.getLogger(__name__)

slot_schema = TimeSlotSchema(session=db.session)
slot_schema_many = TimeSlotSchema(many=True, session=db.session)


def _date_range():
    return {key: request.args[key] for key in ('start_date', 'end_date') if request.args.get(key)}


@availability_bp.route('/time-slots', methods=['GET'])
@auth_required()
@roles_accepted('contractor')
def list_time_slots():
    """The contractor's own calendar. Optional ?start_date=&end_date= (YYYY-MM-DD)."""
    try:
        slots = AvailabilityService.list_time_slots(current_actor(), _date_range())
        return jsonify(slot_schema_many.dump(slots)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list time slots', e)


@availability_bp.route('/time-slots', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def create_time_slot():
    """
    Add a time slot.
    Request body:
        - date (required, YYYY-MM-DD)
        - start_time, end_time (required, HH:MM)
        - status (optional: available, booked, unavailable)
        - note (optional)
    """
    try:
        slot = AvailabilityService.create_time_slot(current_actor(), json_body())
        return jsonify(slot_schema.dump(slot)), 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create the time slot', e)


@availability_bp.route('/time-slots/<int:slot_id>', methods=['PATCH', 'PUT'])
@auth_required()
@roles_accepted('contractor')
def update_time_slot(slot_id):
    try:
        slot = AvailabilityService.update_time_slot(current_actor(), slot_id, json_body())
        return jsonify(slot_schema.dump(slot)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update the time slot', e)


@availability_bp.route('/time-slots/<int:slot_id>', methods=['DELETE'])
@auth_required()
@roles_accepted('contractor')
def delete_time_slot(slot_id):
    try:
        AvailabilityService.delete_time_slot(current_actor(), slot_id)
        return jsonify({'message': 'Time slot deleted'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('delete the time slot', e)


@availability_bp.route('/contractors/<int:contractor_id>/availability', methods=['GET'])
@auth_required()
def contractor_availability(contractor_id):
    """Slots a contractor has marked available. Optional ?start_date=&end_date=."""
    try:
        slots = AvailabilityService.list_available_slots(contractor_id, _date_range())
        return jsonify(slot_schema_many.dump(slots)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('fetch contractor availability', e)

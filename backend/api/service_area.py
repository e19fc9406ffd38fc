import logging
from flask import Blueprint, jsonify
from flask_security import auth_required, roles_accepted

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import db
from backend.models.profile import ContractorProfile
from backend.schemas.profile_schema import ContractorProfileSchema, LandlordProfileSchema, ServiceAreaSchema
from backend.services.errors import ServiceError
from backend.services.service_area_service import ServiceAreaService

service_area_bp = Blueprint('service_area', __name__)
logger = logging.getLogger(__name__)

contractor_profile_schema = ContractorProfileSchema(session=db.session)
landlord_profile_schema = LandlordProfileSchema(session=db.session)
area_schema = ServiceAreaSchema(session=db.session)
area_schema_many = ServiceAreaSchema(many=True, session=db.session)


def _dump_profile(profile):
    if isinstance(profile, ContractorProfile):
        return contractor_profile_schema.dump(profile)
    return landlord_profile_schema.dump(profile)


@service_area_bp.route('/profile', methods=['GET'])
@auth_required()
def get_profile():
    try:
        return jsonify(_dump_profile(ServiceAreaService.get_profile(current_actor()))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('fetch the profile', e)


@service_area_bp.route('/profile', methods=['PATCH', 'PUT'])
@auth_required()
def update_profile():
    try:
        profile = ServiceAreaService.update_profile(current_actor(), json_body())
        return jsonify(_dump_profile(profile)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update the profile', e)


@service_area_bp.route('/service-areas', methods=['GET'])
@auth_required()
@roles_accepted('contractor')
def list_service_areas():
    try:
        return jsonify(area_schema_many.dump(ServiceAreaService.list_service_areas(current_actor()))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list service areas', e)


@service_area_bp.route('/service-areas', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def add_service_area():
    """
    Add a service area.
    Request body:
        - city (required), state (optional)
        - latitude, longitude (required, decimal degrees)
        - radius_km (required, 0 < radius <= 500)
    """
    try:
        area = ServiceAreaService.add_service_area(current_actor(), json_body())
        return jsonify(area_schema.dump(area)), 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('add the service area', e)


@service_area_bp.route('/service-areas/<int:area_id>', methods=['DELETE'])
@auth_required()
@roles_accepted('contractor')
def remove_service_area(area_id):
    try:
        ServiceAreaService.remove_service_area(current_actor(), area_id)
        return jsonify({'message': 'Service area removed'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('remove the service area', e)

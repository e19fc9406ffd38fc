import logging
from flask import Blueprint, jsonify
from flask_security import auth_required, roles_accepted

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import db
from backend.schemas.bid_schema import BidSchema
from backend.services.bid_service import BidService
from backend.services.errors import ServiceError

bid_bp = Blueprint('bid', __name__)
logger = logging.getLogger(__name__)

bid_schema = BidSchema(session=db.session)
bid_schema_many = BidSchema(many=True, session=db.session)


@bid_bp.route('/bids', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def create_bid():
    """
    Place a bid on an open job.
    Request body:
        - job_id (required)
        - amount (required, > 0)
        - proposal (required, at least 20 characters)
        - time_estimate, proposed_start_date (optional)
    """
    try:
        bid = BidService.create_bid(current_actor(), json_body())
        return jsonify(bid_schema.dump(bid)), 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('place the bid', e)


@bid_bp.route('/bids/contractor', methods=['GET'])
@auth_required()
@roles_accepted('contractor')
def my_bids():
    try:
        return jsonify(bid_schema_many.dump(BidService.list_bids_for_contractor(current_actor()))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list bids', e)


@bid_bp.route('/jobs/<int:job_id>/bids', methods=['GET'])
@auth_required()
@roles_accepted('landlord')
def bids_for_job(job_id):
    try:
        return jsonify(bid_schema_many.dump(BidService.list_bids_for_job(current_actor(), job_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list bids for the job', e)


@bid_bp.route('/bids/<int:bid_id>', methods=['PATCH', 'PUT'])
@auth_required()
@roles_accepted('contractor')
def update_bid(bid_id):
    try:
        bid = BidService.update_bid(current_actor(), bid_id, json_body())
        return jsonify(bid_schema.dump(bid)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update the bid', e)


@bid_bp.route('/bids/<int:bid_id>/withdraw', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def withdraw_bid(bid_id):
    try:
        bid = BidService.withdraw_bid(current_actor(), bid_id)
        return jsonify(bid_schema.dump(bid)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('withdraw the bid', e)


@bid_bp.route('/bids/<int:bid_id>/accept', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def accept_bid(bid_id):
    try:
        bid = BidService.accept_bid(current_actor(), bid_id)
        return jsonify({'bid': bid_schema.dump(bid), 'message': 'Bid accepted'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('accept the bid', e)


@bid_bp.route('/bids/<int:bid_id>/reject', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def reject_bid(bid_id):
    try:
        bid = BidService.reject_bid(current_actor(), bid_id)
        return jsonify(bid_schema.dump(bid)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('reject the bid', e)

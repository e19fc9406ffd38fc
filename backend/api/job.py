import logging
from flask import Blueprint, jsonify, request
from flask_security import auth_required, roles_accepted

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import db
from backend.schemas.bid_schema import BidSchema
from backend.schemas.job_schema import JobAssignSchema, JobAuditSchema, JobCancelSchema, JobSchema
from backend.services.common import load_payload
from backend.services.errors import ServiceError
from backend.services.job_service import JobService

job_bp = Blueprint('job', __name__)
logger = logging.getLogger(__name__)

job_schema = JobSchema(session=db.session)
job_schema_many = JobSchema(many=True, session=db.session)
audit_schema_many = JobAuditSchema(many=True, session=db.session)
bid_schema_many = BidSchema(many=True, session=db.session)


@job_bp.route('/jobs', methods=['GET'])
@auth_required()
@roles_accepted('landlord')
def list_jobs():
    """Jobs posted by the current landlord. Optional ?status= filter."""
    try:
        jobs = JobService.list_jobs_for_landlord(current_actor(), status=request.args.get('status'))
        return jsonify(job_schema_many.dump(jobs)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list jobs', e)


@job_bp.route('/jobs', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def create_job():
    try:
        job = JobService.create_job(current_actor(), json_body())
        return jsonify(job_schema.dump(job)), 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create a job', e)


@job_bp.route('/jobs/available', methods=['GET'])
@auth_required()
@roles_accepted('contractor')
def available_jobs():
    """Open jobs inside the contractor's service areas. Optional ?category=a,b filter."""
    try:
        categories = request.args.get('category')
        jobs = JobService.list_available_jobs(current_actor(), categories=categories.split(',') if categories else None)
        return jsonify(job_schema_many.dump(jobs)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list available jobs', e)


@job_bp.route('/contractor-jobs', methods=['GET'])
@auth_required()
@roles_accepted('contractor')
def contractor_jobs():
    try:
        dashboard = JobService.contractor_dashboard(current_actor())
        return jsonify({
            'available_jobs': job_schema_many.dump(dashboard['available_jobs']),
            'active_jobs': job_schema_many.dump(dashboard['active_jobs']),
            'my_bids': bid_schema_many.dump(dashboard['my_bids']),
        }), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('load the contractor dashboard', e)


@job_bp.route('/jobs/<int:job_id>', methods=['GET'])
@auth_required()
def get_job(job_id):
    try:
        job = JobService.get_job(current_actor(), job_id)
        return jsonify(job_schema.dump(job)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('fetch the job', e)


@job_bp.route('/jobs/<int:job_id>', methods=['PATCH', 'PUT'])
@auth_required()
@roles_accepted('landlord')
def update_job(job_id):
    try:
        job = JobService.update_job(current_actor(), job_id, json_body())
        return jsonify(job_schema.dump(job)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update the job', e)


@job_bp.route('/jobs/<int:job_id>/publish', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def publish_job(job_id):
    try:
        job = JobService.publish_job(current_actor(), job_id)
        return jsonify(job_schema.dump(job)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('publish the job', e)


@job_bp.route('/jobs/<int:job_id>/cancel', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def cancel_job(job_id):
    try:
        payload = load_payload(JobCancelSchema(), json_body())
        job = JobService.cancel_job(current_actor(), job_id, reason=payload.get('reason'))
        return jsonify(job_schema.dump(job)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('cancel the job', e)


@job_bp.route('/jobs/<int:job_id>/assign', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def assign_contractor(job_id):
    try:
        payload = load_payload(JobAssignSchema(), json_body())
        job = JobService.assign_contractor(current_actor(), job_id, payload['contractor_id'])
        return jsonify(job_schema.dump(job)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('assign the contractor', e)


@job_bp.route('/jobs/<int:job_id>/progress', methods=['PATCH'])
@auth_required()
@roles_accepted('contractor')
def update_progress(job_id):
    try:
        job = JobService.update_progress(current_actor(), job_id, json_body().get('progress'))
        return jsonify(job_schema.dump(job)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update job progress', e)


@job_bp.route('/jobs/<int:job_id>/completion-request', methods=['PATCH', 'POST'])
@auth_required()
@roles_accepted('contractor')
def request_completion(job_id):
    try:
        job = JobService.request_completion(current_actor(), job_id)
        return jsonify(job_schema.dump(job)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('request completion', e)


@job_bp.route('/jobs/<int:job_id>/complete', methods=['POST'])
@auth_required()
def confirm_completion(job_id):
    try:
        job = JobService.confirm_completion(current_actor(), job_id)
        return jsonify(job_schema.dump(job)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('complete the job', e)


@job_bp.route('/jobs/<int:job_id>/history', methods=['GET'])
@auth_required()
def job_history(job_id):
    try:
        history = JobService.job_history(current_actor(), job_id)
        return jsonify(audit_schema_many.dump(history)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('fetch the job history', e)

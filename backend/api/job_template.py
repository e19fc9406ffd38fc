import logging
from flask import Blueprint, jsonify
from flask_security import auth_required, roles_accepted

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import db
from backend.schemas.job_template_schema import JobTemplateSchema
from backend.services.errors import ServiceError
from backend.services.job_template_service import JobTemplateService

job_template_bp = Blueprint('job_template', __name__)
logger = logging.getLogger(__name__)

template_schema = JobTemplateSchema(session=db.session)
template_schema_many = JobTemplateSchema(many=True, session=db.session)


@job_template_bp.route('/job-templates', methods=['GET'])
@auth_required()
@roles_accepted('contractor')
def list_templates():
    try:
        return jsonify(template_schema_many.dump(JobTemplateService.list_templates(current_actor()))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list job templates', e)


@job_template_bp.route('/job-templates', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def create_template():
    """
    Create a job template.
    Request body:
        - title (required, 3+ chars), description (required, 10+ chars)
        - category_tags (required, at least one)
        - estimated_duration_days (optional, default 1), estimated_budget (optional)
        - tasks: [{description, estimated_hours}], materials: [{description, quantity, unit_price}]
    """
    try:
        template = JobTemplateService.create_template(current_actor(), json_body())
        return jsonify(template_schema.dump(template)), 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create the job template', e)


@job_template_bp.route('/job-templates/<int:template_id>', methods=['GET'])
@auth_required()
@roles_accepted('contractor')
def get_template(template_id):
    try:
        template = JobTemplateService.get_template(current_actor(), template_id)
        return jsonify(template_schema.dump(template)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('fetch the job template', e)


@job_template_bp.route('/job-templates/<int:template_id>', methods=['PATCH', 'PUT'])
@auth_required()
@roles_accepted('contractor')
def update_template(template_id):
    try:
        template = JobTemplateService.update_template(current_actor(), template_id, json_body())
        return jsonify(template_schema.dump(template)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update the job template', e)


@job_template_bp.route('/job-templates/<int:template_id>', methods=['DELETE'])
@auth_required()
@roles_accepted('contractor')
def delete_template(template_id):
    try:
        JobTemplateService.delete_template(current_actor(), template_id)
        return jsonify({'message': 'Job template deleted'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('delete the job template', e)

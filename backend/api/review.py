import logging
from flask import Blueprint, jsonify
from flask_security import auth_required

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import db
from backend.schemas.review_schema import ReviewSchema
from backend.services.errors import ServiceError
from backend.services.review_service import ReviewService

review_bp = Blueprint('review', __name__)
logger = logging.getLogger(__name__)

review_schema = ReviewSchema(session=db.session)
review_schema_many = ReviewSchema(many=True, session=db.session)


@review_bp.route('/reviews', methods=['POST'])
@auth_required()
def submit_review():
    try:
        review = ReviewService.submit_review(current_actor(), json_body())
        return jsonify(review_schema.dump(review)), 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('submit the review', e)


@review_bp.route('/users/<int:user_id>/reviews', methods=['GET'])
@auth_required()
def reviews_for_user(user_id):
    try:
        return jsonify(review_schema_many.dump(ReviewService.list_reviews_for_user(user_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list reviews', e)

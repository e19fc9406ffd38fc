import logging
from typing import Any, Dict, List

from sqlalchemy import func

from backend.extensions import db
from backend.models.job import Job, JobStatus
from backend.models.review import Review
from backend.models.user import User
from backend.schemas.review_schema import ReviewInputSchema
from backend.services.common import atomic, get_or_404, load_payload
from backend.services.errors import AuthorizationError, ConflictError

logger = logging.getLogger(__name__)


class ReviewService:

    @staticmethod
    def submit_review(actor, data: Dict[str, Any]) -> Review:
        """
        Review the other party of a completed job. The reviewee's average
        rating and review count are recomputed from their reviews in the same transaction.
        """
        payload = load_payload(ReviewInputSchema(), data)
        job = get_or_404(Job, payload['job_id'], 'Job')

        if actor.id not in (job.landlord_id, job.contractor_id):
            raise AuthorizationError("Only the job's landlord or assigned contractor can review it")
        if job.status != JobStatus.COMPLETED.value:
            raise ConflictError("Reviews can only be left once the job is completed")
        if Review.query.filter_by(job_id=job.id, reviewer_id=actor.id).first() is not None:
            raise ConflictError("You have already reviewed this job")

        reviewee_id = job.contractor_id if actor.id == job.landlord_id else job.landlord_id
        reviewee = get_or_404(User, reviewee_id, 'User')

        with atomic('submit the review'):
            review = Review(
                job_id=job.id,
                reviewer_id=actor.id,
                reviewee_id=reviewee.id,
                rating=payload['rating'],
                comment=payload.get('comment'),
            )
            db.session.add(review)
            db.session.flush()

            profile = reviewee.profile
            if profile is not None:
                count, average = db.session.query(func.count(Review.id), func.avg(Review.rating)).filter(
                    Review.reviewee_id == reviewee.id
                ).one()
                profile.total_reviews = count
                profile.average_rating = round(float(average or 0.0), 2)

        logger.info(f"Review {review.id} ({review.rating}/5) left by user {actor.id} for user {reviewee.id}")
        return review

    @staticmethod
    def list_reviews_for_user(user_id: int) -> List[Review]:
        get_or_404(User, user_id, 'User')
        return Review.query.filter_by(reviewee_id=user_id).order_by(Review.created_at.desc(), Review.id.desc()).all()

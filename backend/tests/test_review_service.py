"""
Tests for reviews and rating aggregates
"""
import pytest

from backend.extensions import db
from backend.services.errors import AuthorizationError, ConflictError, ValidationError
from backend.services.job_service import JobService
from backend.services.review_service import ReviewService
from backend.tests.factories import make_job, make_user


def completed_job(landlord, contractor):
    job = make_job(landlord)
    JobService.assign_contractor(landlord, job.id, contractor.id)
    JobService.request_completion(contractor, job.id)
    return JobService.confirm_completion(landlord, job.id)


class TestSubmitReview:

    def test_landlord_reviews_contractor(self, landlord, contractor):
        job = completed_job(landlord, contractor)
        review = ReviewService.submit_review(landlord, {'job_id': job.id, 'rating': 4, 'comment': 'Tidy work'})
        assert review.reviewee_id == contractor.id
        assert contractor.contractor_profile.average_rating == 4
        assert contractor.contractor_profile.total_reviews == 1

    def test_contractor_reviews_landlord(self, landlord, contractor):
        job = completed_job(landlord, contractor)
        review = ReviewService.submit_review(contractor, {'job_id': job.id, 'rating': 5})
        assert review.reviewee_id == landlord.id
        assert landlord.landlord_profile.total_reviews == 1

    def test_running_average(self, landlord, contractor):
        other_landlord = make_user('landlord')
        ReviewService.submit_review(landlord, {'job_id': completed_job(landlord, contractor).id, 'rating': 5})
        ReviewService.submit_review(other_landlord, {'job_id': completed_job(other_landlord, contractor).id, 'rating': 4})
        ReviewService.submit_review(landlord, {'job_id': completed_job(landlord, contractor).id, 'rating': 4})
        profile = contractor.contractor_profile
        assert profile.total_reviews == 3
        assert profile.average_rating == 4.33
        assert len(ReviewService.list_reviews_for_user(contractor.id)) == 3

    def test_aggregates_recomputed_from_reviews(self, landlord, contractor):
        profile = contractor.contractor_profile
        profile.average_rating = 1.0
        profile.total_reviews = 7
        db.session.commit()

        ReviewService.submit_review(landlord, {'job_id': completed_job(landlord, contractor).id, 'rating': 5})

        assert profile.total_reviews == 1
        assert profile.average_rating == 5.0

    def test_one_review_per_reviewer(self, landlord, contractor):
        job = completed_job(landlord, contractor)
        ReviewService.submit_review(landlord, {'job_id': job.id, 'rating': 4})
        with pytest.raises(ConflictError):
            ReviewService.submit_review(landlord, {'job_id': job.id, 'rating': 5})

    def test_job_must_be_completed(self, landlord, open_job):
        with pytest.raises(ConflictError):
            ReviewService.submit_review(landlord, {'job_id': open_job.id, 'rating': 3})

    def test_outsiders_cannot_review(self, landlord, contractor, other_contractor):
        job = completed_job(landlord, contractor)
        with pytest.raises(AuthorizationError):
            ReviewService.submit_review(other_contractor, {'job_id': job.id, 'rating': 1})

    @pytest.mark.parametrize('rating', [0, 6, '5'])
    def test_rating_range(self, landlord, contractor, rating):
        job = completed_job(landlord, contractor)
        with pytest.raises(ValidationError):
            ReviewService.submit_review(landlord, {'job_id': job.id, 'rating': rating})

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import update

from backend.extensions import db
from backend.models.bid import Bid, BidStatus
from backend.models.job import Job, JobStatus, PricingType, EDITABLE_STATUSES, CANCELLABLE_STATUSES
from backend.models.job_audit import JobAudit
from backend.models.user import User
from backend.schemas.job_schema import JobInputSchema, JobProgressSchema
from backend.services.chat_service import ChatService
from backend.services.common import (
    atomic, get_or_404, load_payload, record_job_audit, require_contractor, require_landlord
)
from backend.services.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from backend.utils.geo import is_job_in_service_areas
from backend.utils.timezone_utils import utc_now_naive
from backend.utils.validation import normalize_tags

logger = logging.getLogger(__name__)

COMPLETE = 100


class JobService:
    """
    Job lifecycle: draft -> open -> in_progress -> completed, with cancelled
    reachable from draft or open. Every transition writes a JobAudit row.
    """

    # ------------------------------------------------------------------
    # guards
    # ------------------------------------------------------------------
    @staticmethod
    def _get_owned_job(actor, job_id) -> Job:
        require_landlord(actor)
        job = get_or_404(Job, job_id, 'Job')
        if job.landlord_id != actor.id:
            raise AuthorizationError("You can only manage your own jobs")
        return job

    @staticmethod
    def _get_assigned_job(actor, job_id) -> Job:
        require_contractor(actor)
        job = get_or_404(Job, job_id, 'Job')
        if job.contractor_id != actor.id:
            raise AuthorizationError("Only the assigned contractor can update this job")
        return job

    @staticmethod
    def _require_status(job, *statuses):
        if job.status not in statuses:
            allowed = ', '.join(statuses)
            raise ConflictError(f"Job {job.id} is '{job.status}'; this action requires status {allowed}")

    @staticmethod
    def _check_publishable(job):
        missing = []
        if not job.title or not job.title.strip():
            missing.append('title')
        if not job.location.is_resolvable:
            missing.append('location (coordinates or city)')
        if job.pricing_type == PricingType.FIXED.value and not job.budget:
            missing.append('budget (required for fixed-price jobs)')
        if missing:
            raise ValidationError(f"Job cannot be published without: {', '.join(missing)}")

    # ------------------------------------------------------------------
    # landlord operations
    # ------------------------------------------------------------------
    @staticmethod
    def create_job(actor, data: Dict[str, Any]) -> Job:
        """
        Create a job owned by ``actor``. The job starts in draft; pass
        ``publish=True`` to open it immediately, which applies the publish checks.
        """
        require_landlord(actor)
        payload = load_payload(JobInputSchema(), data)
        publish = payload.pop('publish', False)
        payload['category_tags'] = normalize_tags(payload.get('category_tags'))

        job = Job(landlord_id=actor.id, status=JobStatus.DRAFT.value, **payload)
        if publish:
            JobService._check_publishable(job)

        with atomic('create the job'):
            db.session.add(job)
            db.session.flush()
            record_job_audit(job, actor, None, JobStatus.DRAFT.value, reason='created')
            if publish:
                job.status = JobStatus.OPEN.value
                record_job_audit(job, actor, JobStatus.DRAFT.value, JobStatus.OPEN.value, reason='published')

        logger.info(f"Job {job.id} created by landlord {actor.id} with status {job.status}")
        return job

    @staticmethod
    def update_job(actor, job_id: int, data: Dict[str, Any]) -> Job:
        job = JobService._get_owned_job(actor, job_id)
        JobService._require_status(job, *EDITABLE_STATUSES)

        payload = load_payload(JobInputSchema(), data, partial=True)
        payload.pop('publish', None)
        if 'category_tags' in payload:
            payload['category_tags'] = normalize_tags(payload['category_tags'])
        latitude = payload.get('latitude', job.latitude)
        longitude = payload.get('longitude', job.longitude)
        if (latitude is None) != (longitude is None):
            message = 'latitude and longitude must be provided together'
            raise ValidationError(message, errors={'latitude': [message]})

        with atomic('update the job'):
            for key, value in payload.items():
                setattr(job, key, value)
            if job.status == JobStatus.OPEN.value:
                # An open job must stay publishable
                JobService._check_publishable(job)

        logger.info(f"Job {job.id} updated by landlord {actor.id}: {sorted(payload)}")
        return job

    @staticmethod
    def publish_job(actor, job_id: int) -> Job:
        job = JobService._get_owned_job(actor, job_id)
        JobService._require_status(job, JobStatus.DRAFT.value)
        JobService._check_publishable(job)

        with atomic('publish the job'):
            job.status = JobStatus.OPEN.value
            record_job_audit(job, actor, JobStatus.DRAFT.value, JobStatus.OPEN.value, reason='published')

        logger.info(f"Job {job.id} published")
        return job

    @staticmethod
    def cancel_job(actor, job_id: int, reason: Optional[str] = None) -> Job:
        job = JobService._get_owned_job(actor, job_id)
        JobService._require_status(job, *CANCELLABLE_STATUSES)

        with atomic('cancel the job'):
            old_status = job.status
            job.status = JobStatus.CANCELLED.value
            job.cancelled_at = utc_now_naive()
            record_job_audit(job, actor, old_status, job.status, reason=reason or 'cancelled by landlord')

        logger.info(f"Job {job.id} cancelled by landlord {actor.id}")
        return job

    @staticmethod
    def assign_contractor(actor, job_id: int, contractor_id: int) -> Job:
        """
        Hire a contractor directly. Uses the same conditional update as bid
        acceptance so only one of the two can win for an open job.
        """
        job = JobService._get_owned_job(actor, job_id)
        JobService._require_status(job, JobStatus.OPEN.value)
        contractor = db.session.get(User, contractor_id)
        if contractor is None or not contractor.is_contractor or not contractor.active:
            raise NotFoundError(f"Contractor {contractor_id} not found")

        with atomic('assign the contractor'):
            result = db.session.execute(
                update(Job)
                .where(Job.id == job.id, Job.status == JobStatus.OPEN.value)
                .values(status=JobStatus.IN_PROGRESS.value, contractor_id=contractor.id, updated_at=utc_now_naive())
            )
            if result.rowcount != 1:
                raise ConflictError(f"Job {job.id} is no longer open")

            db.session.execute(
                update(Bid)
                .where(Bid.job_id == job.id, Bid.status == BidStatus.PENDING.value, Bid.contractor_id == contractor.id)
                .values(status=BidStatus.ACCEPTED.value, updated_at=utc_now_naive())
            )
            db.session.execute(
                update(Bid)
                .where(Bid.job_id == job.id, Bid.status == BidStatus.PENDING.value, Bid.contractor_id != contractor.id)
                .values(status=BidStatus.REJECTED.value, updated_at=utc_now_naive())
            )
            db.session.refresh(job)
            record_job_audit(
                job, actor, JobStatus.OPEN.value, JobStatus.IN_PROGRESS.value,
                reason='contractor assigned', contractor_id=contractor.id
            )
            ChatService.ensure_room(job)

        logger.info(f"Job {job.id} assigned to contractor {contractor.id}")
        return job

    # ------------------------------------------------------------------
    # progress and completion
    # ------------------------------------------------------------------
    @staticmethod
    def update_progress(actor, job_id: int, progress) -> Job:
        """
        Set progress (0-100) on an in-progress job. Reaching 100 records a
        completion request; dropping below 100 withdraws it. Setting the
        current value again changes nothing.
        """
        job = JobService._get_assigned_job(actor, job_id)
        JobService._require_status(job, JobStatus.IN_PROGRESS.value)
        value = load_payload(JobProgressSchema(), {'progress': progress})['progress']

        if job.progress == value:
            return job

        with atomic('update job progress'):
            previous = job.progress
            job.progress = value
            if value == COMPLETE and job.completion_requested_at is None:
                job.completion_requested_at = utc_now_naive()
                record_job_audit(
                    job, actor, job.status, job.status,
                    reason='completion requested', progress=value
                )
            elif value < COMPLETE and job.completion_requested_at is not None:
                job.completion_requested_at = None
                record_job_audit(
                    job, actor, job.status, job.status,
                    reason='completion request withdrawn', progress=value
                )

        logger.info(f"Job {job.id} progress {previous} -> {value}")
        return job

    @staticmethod
    def request_completion(actor, job_id: int) -> Job:
        return JobService.update_progress(actor, job_id, COMPLETE)

    @staticmethod
    def confirm_completion(actor, job_id: int) -> Job:
        """Second step of completion: either party confirms a job whose progress is 100."""
        job = get_or_404(Job, job_id, 'Job')
        if actor.id not in (job.landlord_id, job.contractor_id):
            raise AuthorizationError("Only the job's landlord or assigned contractor can complete it")
        JobService._require_status(job, JobStatus.IN_PROGRESS.value)
        if job.progress != COMPLETE or job.completion_requested_at is None:
            raise ConflictError("Job progress must reach 100% before it can be completed")

        with atomic('complete the job'):
            job.status = JobStatus.COMPLETED.value
            job.completed_at = utc_now_naive()
            record_job_audit(job, actor, JobStatus.IN_PROGRESS.value, JobStatus.COMPLETED.value, reason='completed')

        logger.info(f"Job {job.id} completed, confirmed by user {actor.id}")
        return job

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    @staticmethod
    def get_job(actor, job_id: int) -> Job:
        job = get_or_404(Job, job_id, 'Job')
        # Drafts are private to their owner
        if job.status == JobStatus.DRAFT.value and job.landlord_id != actor.id:
            raise NotFoundError(f"Job {job_id} not found")
        return job

    @staticmethod
    def list_jobs_for_landlord(actor, status: Optional[str] = None) -> List[Job]:
        require_landlord(actor)
        query = Job.query.filter_by(landlord_id=actor.id)
        if status:
            query = query.filter_by(status=status)
        return query.order_by(Job.created_at.desc(), Job.id.desc()).all()

    @staticmethod
    def list_available_jobs(actor, categories: Optional[List[str]] = None) -> List[Job]:
        """
        Open jobs the contractor has not bid on, inside their service areas
        and, when given, matching any of ``categories``.
        """
        require_contractor(actor)
        bid_job_ids = db.select(Bid.job_id).where(Bid.contractor_id == actor.id)
        jobs = (
            Job.query
            .filter(Job.status == JobStatus.OPEN.value, Job.id.notin_(bid_job_ids))
            .order_by(Job.is_urgent.desc(), Job.created_at.desc(), Job.id.desc())
            .all()
        )

        profile = actor.contractor_profile
        areas = profile.service_areas if profile is not None else []
        visible = [job for job in jobs if is_job_in_service_areas(areas, job.location)]

        wanted = set(normalize_tags(categories))
        if wanted:
            visible = [job for job in visible if wanted.intersection(job.category_tags or [])]
        return visible

    @staticmethod
    def contractor_dashboard(actor) -> Dict[str, List]:
        require_contractor(actor)
        active_jobs = (
            Job.query
            .filter(Job.contractor_id == actor.id, Job.status == JobStatus.IN_PROGRESS.value)
            .order_by(Job.updated_at.desc())
            .all()
        )
        my_bids = Bid.query.filter_by(contractor_id=actor.id).order_by(Bid.created_at.desc(), Bid.id.desc()).all()
        return {
            'available_jobs': JobService.list_available_jobs(actor),
            'active_jobs': active_jobs,
            'my_bids': my_bids,
        }

    @staticmethod
    def job_history(actor, job_id: int) -> List[JobAudit]:
        job = get_or_404(Job, job_id, 'Job')
        if actor.id not in (job.landlord_id, job.contractor_id):
            raise AuthorizationError("You do not have access to this job's history")
        return JobAudit.query.filter_by(job_id=job.id).order_by(JobAudit.id.asc()).all()

import logging
from typing import Any, Dict, List

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from backend.extensions import db
from backend.models.bid import Bid, BidStatus
from backend.models.job import Job, JobStatus
from backend.schemas.bid_schema import BidInputSchema
from backend.services.chat_service import ChatService
from backend.services.common import (
    atomic, get_or_404, load_payload, record_job_audit, require_contractor, require_landlord
)
from backend.services.errors import AuthorizationError, ConflictError
from backend.services.notification_service import NotificationService
from backend.utils.timezone_utils import utc_now_naive

logger = logging.getLogger(__name__)


class BidService:
    """
    Bids move pending -> accepted | rejected | withdrawn; all three are final.
    A job ends up with at most one accepted bid.
    """

    @staticmethod
    def _get_own_bid(actor, bid_id) -> Bid:
        require_contractor(actor)
        bid = get_or_404(Bid, bid_id, 'Bid')
        if bid.contractor_id != actor.id:
            raise AuthorizationError("You can only manage your own bids")
        return bid

    @staticmethod
    def _get_bid_for_landlord(actor, bid_id) -> Bid:
        require_landlord(actor)
        bid = get_or_404(Bid, bid_id, 'Bid')
        if bid.job.landlord_id != actor.id:
            raise AuthorizationError("You can only decide on bids for your own jobs")
        return bid

    @staticmethod
    def _require_pending(bid):
        if bid.status != BidStatus.PENDING.value:
            raise ConflictError(f"Bid {bid.id} is already {bid.status}")

    @staticmethod
    def create_bid(actor, data: Dict[str, Any]) -> Bid:
        require_contractor(actor)
        payload = load_payload(BidInputSchema(), data)
        job = get_or_404(Job, payload['job_id'], 'Job')

        if job.status != JobStatus.OPEN.value:
            raise ConflictError(f"Job {job.id} is not open for bidding")
        if Bid.query.filter_by(job_id=job.id, contractor_id=actor.id).first() is not None:
            raise ConflictError("You have already placed a bid on this job")

        bid = Bid(
            job_id=job.id,
            contractor_id=actor.id,
            amount=round(payload['amount'], 2),
            proposal=payload['proposal'].strip(),
            time_estimate=payload.get('time_estimate'),
            proposed_start_date=payload.get('proposed_start_date'),
            status=BidStatus.PENDING.value,
        )
        with atomic('place the bid'):
            db.session.add(bid)
            try:
                db.session.flush()
            except IntegrityError:
                # A concurrent duplicate slipped past the pre-check
                raise ConflictError("You have already placed a bid on this job")

        logger.info(f"Bid {bid.id} placed on job {job.id} by contractor {actor.id} for {bid.amount}")
        NotificationService.bid_placed(bid)
        return bid

    @staticmethod
    def update_bid(actor, bid_id: int, data: Dict[str, Any]) -> Bid:
        bid = BidService._get_own_bid(actor, bid_id)
        BidService._require_pending(bid)
        payload = load_payload(BidInputSchema(), data, partial=True)
        payload.pop('job_id', None)

        with atomic('update the bid'):
            if 'amount' in payload:
                bid.amount = round(payload['amount'], 2)
            if 'proposal' in payload:
                bid.proposal = payload['proposal'].strip()
            for key in ('time_estimate', 'proposed_start_date'):
                if key in payload:
                    setattr(bid, key, payload[key])

        logger.info(f"Bid {bid.id} updated by contractor {actor.id}")
        return bid

    @staticmethod
    def withdraw_bid(actor, bid_id: int) -> Bid:
        bid = BidService._get_own_bid(actor, bid_id)

        with atomic('withdraw the bid'):
            result = db.session.execute(
                update(Bid)
                .where(Bid.id == bid.id, Bid.status == BidStatus.PENDING.value)
                .values(status=BidStatus.WITHDRAWN.value, updated_at=utc_now_naive())
            )
            if result.rowcount != 1:
                raise ConflictError(f"Bid {bid.id} is no longer pending")
            db.session.refresh(bid)

        logger.info(f"Bid {bid.id} withdrawn by contractor {actor.id}")
        return bid

    @staticmethod
    def accept_bid(actor, bid_id: int) -> Bid:
        """
        Accept a bid in one transaction: the job moves open -> in_progress with
        the bidder assigned, the bid becomes accepted and every other pending
        bid on the job is rejected.

        Both the job and the bid are claimed with conditional updates, so of
        two concurrent acceptances exactly one succeeds and the other gets a
        ConflictError.
        """
        bid = BidService._get_bid_for_landlord(actor, bid_id)
        BidService._require_pending(bid)
        job = bid.job
        if job.status != JobStatus.OPEN.value:
            raise ConflictError(f"Job {job.id} is no longer open")

        now = utc_now_naive()
        with atomic('accept the bid'):
            claimed = db.session.execute(
                update(Job)
                .where(Job.id == job.id, Job.status == JobStatus.OPEN.value)
                .values(status=JobStatus.IN_PROGRESS.value, contractor_id=bid.contractor_id, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount != 1:
                raise ConflictError(f"Job {job.id} is no longer open")

            accepted = db.session.execute(
                update(Bid)
                .where(Bid.id == bid.id, Bid.status == BidStatus.PENDING.value)
                .values(status=BidStatus.ACCEPTED.value, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if accepted.rowcount != 1:
                raise ConflictError(f"Bid {bid.id} is no longer pending")

            losing_ids = [
                row.id for row in db.session.execute(
                    db.select(Bid.id).where(
                        Bid.job_id == job.id, Bid.id != bid.id, Bid.status == BidStatus.PENDING.value
                    )
                )
            ]
            if losing_ids:
                db.session.execute(
                    update(Bid)
                    .where(Bid.id.in_(losing_ids))
                    .values(status=BidStatus.REJECTED.value, updated_at=now)
                    .execution_options(synchronize_session=False)
                )

            db.session.refresh(job)
            db.session.refresh(bid)
            record_job_audit(
                job, actor, JobStatus.OPEN.value, JobStatus.IN_PROGRESS.value,
                reason='bid accepted', bid_id=bid.id, contractor_id=bid.contractor_id, amount=bid.amount
            )
            ChatService.ensure_room(job)

        logger.info(
            f"Bid {bid.id} accepted for job {job.id}; contractor {bid.contractor_id} assigned, "
            f"{len(losing_ids)} other bid(s) rejected"
        )

        NotificationService.bid_accepted(bid)
        if losing_ids:
            for losing_bid in Bid.query.filter(Bid.id.in_(losing_ids)).all():
                NotificationService.bid_rejected(losing_bid)
        return bid

    @staticmethod
    def reject_bid(actor, bid_id: int) -> Bid:
        bid = BidService._get_bid_for_landlord(actor, bid_id)

        with atomic('reject the bid'):
            result = db.session.execute(
                update(Bid)
                .where(Bid.id == bid.id, Bid.status == BidStatus.PENDING.value)
                .values(status=BidStatus.REJECTED.value, updated_at=utc_now_naive())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConflictError(f"Bid {bid.id} is no longer pending")
            db.session.refresh(bid)

        logger.info(f"Bid {bid.id} rejected by landlord {actor.id}")
        NotificationService.bid_rejected(bid)
        return bid

    @staticmethod
    def list_bids_for_job(actor, job_id: int) -> List[Bid]:
        require_landlord(actor)
        job = get_or_404(Job, job_id, 'Job')
        if job.landlord_id != actor.id:
            raise AuthorizationError("You can only view bids on your own jobs")
        return job.bids.order_by(Bid.amount.asc(), Bid.created_at.asc()).all()

    @staticmethod
    def list_bids_for_contractor(actor) -> List[Bid]:
        require_contractor(actor)
        return Bid.query.filter_by(contractor_id=actor.id).order_by(Bid.created_at.desc(), Bid.id.desc()).all()

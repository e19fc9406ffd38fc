"""
Tests for bidding and atomic bid acceptance
"""
import pytest
from sqlalchemy import text

from backend.extensions import db
from backend.models.bid import Bid, BidStatus
from backend.models.chat import ChatRoom
from backend.models.job import Job, JobStatus
from backend.models.job_audit import JobAudit
from backend.services.bid_service import BidService
from backend.services.errors import AuthorizationError, ConflictError, ValidationError
from backend.services.job_service import JobService
from backend.tests.factories import bid_payload, make_job, make_user


def status_of(bid_id):
    return db.session.get(Bid, bid_id).status


class TestCreateBid:

    def test_create_bid(self, contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 250))
        assert bid.status == BidStatus.PENDING.value
        assert bid.amount == 250
        assert bid.contractor_id == contractor.id
        assert open_job.bids.count() == 1

    def test_one_bid_per_contractor_per_job(self, contractor, open_job):
        BidService.create_bid(contractor, bid_payload(open_job, 250))
        with pytest.raises(ConflictError):
            BidService.create_bid(contractor, bid_payload(open_job, 200))

    def test_withdrawn_bid_still_blocks_rebidding(self, contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 250))
        BidService.withdraw_bid(contractor, bid.id)
        with pytest.raises(ConflictError):
            BidService.create_bid(contractor, bid_payload(open_job, 200))

    def test_job_must_be_open(self, landlord, contractor):
        draft = make_job(landlord, publish=False)
        with pytest.raises(ConflictError):
            BidService.create_bid(contractor, bid_payload(draft, 100))

    def test_landlord_cannot_bid(self, landlord, open_job):
        with pytest.raises(AuthorizationError):
            BidService.create_bid(landlord, bid_payload(open_job, 100))

    def test_amount_must_be_positive(self, contractor, open_job):
        with pytest.raises(ValidationError):
            BidService.create_bid(contractor, bid_payload(open_job, 0))

    def test_sub_cent_amount_is_rejected(self, contractor, open_job):
        """An amount that would round to zero is not a positive bid"""
        with pytest.raises(ValidationError) as exc:
            BidService.create_bid(contractor, bid_payload(open_job, 0.004))
        assert 'amount' in exc.value.errors
        assert open_job.bids.count() == 0

    def test_proposal_minimum_length(self, contractor, open_job):
        with pytest.raises(ValidationError) as exc:
            BidService.create_bid(contractor, bid_payload(open_job, 100, proposal='Can do it'))
        assert 'proposal' in exc.value.errors


class TestUpdateAndWithdraw:

    def test_update_pending_bid(self, contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 250))
        bid = BidService.update_bid(contractor, bid.id, {'amount': 225.5, 'time_estimate': '3 hours'})
        assert bid.amount == 225.5
        assert bid.time_estimate == '3 hours'
        assert bid.job_id == open_job.id

    def test_update_to_sub_cent_amount_is_rejected(self, contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 250))
        with pytest.raises(ValidationError):
            BidService.update_bid(contractor, bid.id, {'amount': 0.004})
        assert db.session.get(Bid, bid.id).amount == 250

    def test_cannot_update_someone_elses_bid(self, contractor, other_contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 250))
        with pytest.raises(AuthorizationError):
            BidService.update_bid(other_contractor, bid.id, {'amount': 10})

    def test_withdraw_is_final(self, contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 250))
        bid = BidService.withdraw_bid(contractor, bid.id)
        assert bid.status == BidStatus.WITHDRAWN.value
        with pytest.raises(ConflictError):
            BidService.withdraw_bid(contractor, bid.id)
        with pytest.raises(ConflictError):
            BidService.update_bid(contractor, bid.id, {'amount': 300})


class TestAcceptBid:

    def test_accept_assigns_job_and_rejects_others(self, landlord, contractor, other_contractor, open_job):
        winner = BidService.create_bid(contractor, bid_payload(open_job, 500))
        loser = BidService.create_bid(other_contractor, bid_payload(open_job, 600))

        accepted = BidService.accept_bid(landlord, winner.id)

        assert accepted.status == BidStatus.ACCEPTED.value
        job = db.session.get(Job, open_job.id)
        assert job.status == JobStatus.IN_PROGRESS.value
        assert job.contractor_id == contractor.id
        assert status_of(loser.id) == BidStatus.REJECTED.value

        audit = JobAudit.query.filter_by(job_id=job.id).order_by(JobAudit.id.desc()).first()
        assert audit.reason == 'bid accepted'
        assert audit.additional_data['bid_id'] == winner.id

        room = ChatRoom.query.filter_by(job_id=job.id).one()
        assert {p.user_id for p in room.participants} == {landlord.id, contractor.id}

    def test_accepting_higher_bid_rejects_lower(self, landlord, contractor, other_contractor, open_job):
        low = BidService.create_bid(contractor, bid_payload(open_job, 500))
        high = BidService.create_bid(other_contractor, bid_payload(open_job, 600))

        BidService.accept_bid(landlord, high.id)

        job = db.session.get(Job, open_job.id)
        assert job.status == JobStatus.IN_PROGRESS.value
        assert job.contractor_id == other_contractor.id
        assert status_of(low.id) == BidStatus.REJECTED.value

    def test_withdrawn_bids_are_not_rejected(self, landlord, contractor, other_contractor, open_job):
        winner = BidService.create_bid(contractor, bid_payload(open_job, 500))
        withdrawn = BidService.create_bid(other_contractor, bid_payload(open_job, 450))
        BidService.withdraw_bid(other_contractor, withdrawn.id)

        BidService.accept_bid(landlord, winner.id)
        assert status_of(withdrawn.id) == BidStatus.WITHDRAWN.value

    def test_only_one_bid_can_win(self, landlord, contractor, other_contractor, open_job):
        first = BidService.create_bid(contractor, bid_payload(open_job, 500))
        second = BidService.create_bid(other_contractor, bid_payload(open_job, 600))

        BidService.accept_bid(landlord, first.id)
        with pytest.raises(ConflictError):
            BidService.accept_bid(landlord, second.id)

        accepted = Bid.query.filter_by(job_id=open_job.id, status=BidStatus.ACCEPTED.value).all()
        assert [b.id for b in accepted] == [first.id]

    def test_lost_race_leaves_everything_untouched(self, landlord, contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 500))
        audits_before = JobAudit.query.filter_by(job_id=open_job.id).count()
        assert open_job.status == JobStatus.OPEN.value

        # Another request moves the job on behind the session's back, so the
        # in-memory job still reads as open and only the conditional update notices
        db.session.execute(
            text("UPDATE job SET status = 'in_progress' WHERE id = :id"), {'id': open_job.id}
        )
        with pytest.raises(ConflictError):
            BidService.accept_bid(landlord, bid.id)

        assert status_of(bid.id) == BidStatus.PENDING.value
        assert JobAudit.query.filter_by(job_id=open_job.id).count() == audits_before
        assert ChatRoom.query.filter_by(job_id=open_job.id).count() == 0

    def test_cannot_accept_after_direct_assignment(self, landlord, contractor, other_contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 500))
        JobService.assign_contractor(landlord, open_job.id, other_contractor.id)
        with pytest.raises(ConflictError):
            BidService.accept_bid(landlord, bid.id)

    def test_only_job_owner_can_accept(self, contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 500))
        stranger = make_user('landlord')
        with pytest.raises(AuthorizationError):
            BidService.accept_bid(stranger, bid.id)
        assert status_of(bid.id) == BidStatus.PENDING.value


class TestRejectAndList:

    def test_reject_bid(self, landlord, contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 500))
        bid = BidService.reject_bid(landlord, bid.id)
        assert bid.status == BidStatus.REJECTED.value
        assert db.session.get(Job, open_job.id).status == JobStatus.OPEN.value
        with pytest.raises(ConflictError):
            BidService.accept_bid(landlord, bid.id)

    def test_reject_twice_conflicts(self, landlord, contractor, open_job):
        bid = BidService.create_bid(contractor, bid_payload(open_job, 500))
        BidService.reject_bid(landlord, bid.id)
        with pytest.raises(ConflictError):
            BidService.reject_bid(landlord, bid.id)

    def test_list_bids_for_job_cheapest_first(self, landlord, contractor, other_contractor, open_job):
        BidService.create_bid(contractor, bid_payload(open_job, 600))
        BidService.create_bid(other_contractor, bid_payload(open_job, 500))
        amounts = [b.amount for b in BidService.list_bids_for_job(landlord, open_job.id)]
        assert amounts == [500, 600]

    def test_list_bids_for_contractor(self, landlord, contractor, open_job):
        second_job = make_job(landlord)
        BidService.create_bid(contractor, bid_payload(open_job, 600))
        BidService.create_bid(contractor, bid_payload(second_job, 300))
        assert len(BidService.list_bids_for_contractor(contractor)) == 2

from enum import Enum
from backend.extensions import db
from backend.utils.timezone_utils import utc_now_naive


class BidStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Bid(db.Model):
    __tablename__ = 'bid'
    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey('job.id', ondelete='CASCADE'), nullable=False, index=True)
    contractor_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    amount = db.Column(db.Float, nullable=False)
    proposal = db.Column(db.Text, nullable=False)
    time_estimate = db.Column(db.String(64), nullable=True)
    proposed_start_date = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=BidStatus.PENDING.value, index=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)

    job = db.relationship('Job', back_populates='bids')
    contractor = db.relationship('User', backref=db.backref('bids', lazy='dynamic'))

    __table_args__ = (
        db.UniqueConstraint('job_id', 'contractor_id', name='uq_bid_job_contractor'),
    )

    def __repr__(self):
        return f"<Bid id={self.id} job={self.job_id} status={self.status}>"

from enum import Enum
from backend.extensions import db
from backend.models.types import JSONVariant
from backend.utils.geo import Location
from backend.utils.timezone_utils import utc_now_naive


class JobStatus(Enum):
    DRAFT = "draft"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PricingType(Enum):
    FIXED = "fixed"
    OPEN_BID = "open_bid"


# Statuses in which the landlord may still edit the job's description
EDITABLE_STATUSES = (JobStatus.DRAFT.value, JobStatus.OPEN.value)
CANCELLABLE_STATUSES = (JobStatus.DRAFT.value, JobStatus.OPEN.value)


class Job(db.Model):
    __tablename__ = 'job'
    id = db.Column(db.Integer, primary_key=True)
    landlord_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    contractor_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(32), nullable=False, default=JobStatus.DRAFT.value, index=True)
    pricing_type = db.Column(db.String(16), nullable=False, default=PricingType.OPEN_BID.value)
    budget = db.Column(db.Float, nullable=True)

    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(128), nullable=True)
    state = db.Column(db.String(64), nullable=True)
    zip_code = db.Column(db.String(16), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    category_tags = db.Column(JSONVariant, default=list, nullable=False)
    images = db.Column(JSONVariant, default=list, nullable=False)
    is_urgent = db.Column(db.Boolean, default=False, nullable=False)
    start_date = db.Column(db.DateTime, nullable=True)

    progress = db.Column(db.Integer, default=0, nullable=False)
    completion_requested_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)

    landlord = db.relationship('User', foreign_keys=[landlord_id], backref=db.backref('posted_jobs', lazy='dynamic'))
    contractor = db.relationship('User', foreign_keys=[contractor_id], backref=db.backref('assigned_jobs', lazy='dynamic'))
    bids = db.relationship('Bid', back_populates='job', lazy='dynamic')

    @property
    def location(self) -> Location:
        return Location.from_parts(
            latitude=self.latitude,
            longitude=self.longitude,
            address=self.address,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
        )

    @property
    def is_completion_requested(self):
        return self.completion_requested_at is not None

    def __repr__(self):
        return f"<Job id={self.id} status={self.status}>"

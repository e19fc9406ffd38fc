from enum import Enum
from backend.extensions import db
from backend.models.types import JSONVariant
from backend.utils.timezone_utils import utc_now_naive


class QuoteStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    # Derived at read time, never stored
    EXPIRED = "expired"


# Stored statuses that expire once valid_until has passed
EXPIRABLE_STATUSES = (QuoteStatus.SENT.value, QuoteStatus.VIEWED.value)


class Quote(db.Model):
    __tablename__ = 'quote'
    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey('job.id', ondelete='SET NULL'), nullable=True, index=True)
    contractor_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    landlord_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    quote_number = db.Column(db.String(32), unique=True, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=QuoteStatus.DRAFT.value, index=True)

    subtotal = db.Column(db.Float, default=0.0, nullable=False)
    discount = db.Column(db.Float, default=0.0, nullable=False)
    tax_rate = db.Column(db.Float, default=0.0, nullable=False)
    tax_amount = db.Column(db.Float, default=0.0, nullable=False)
    total = db.Column(db.Float, default=0.0, nullable=False)

    notes = db.Column(db.Text, nullable=True)
    terms = db.Column(db.Text, nullable=True)
    preferred_start_date = db.Column(db.DateTime, nullable=True)
    estimated_duration_days = db.Column(db.Integer, nullable=True)
    valid_until = db.Column(db.DateTime, nullable=True)
    payment_methods = db.Column(JSONVariant, default=list, nullable=False)

    sent_at = db.Column(db.DateTime, nullable=True)
    viewed_at = db.Column(db.DateTime, nullable=True)
    accepted_at = db.Column(db.DateTime, nullable=True)
    rejected_at = db.Column(db.DateTime, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)

    job = db.relationship('Job', backref=db.backref('quotes', lazy='dynamic'))
    contractor = db.relationship('User', foreign_keys=[contractor_id])
    landlord = db.relationship('User', foreign_keys=[landlord_id])
    line_items = db.relationship(
        'QuoteLineItem', back_populates='quote', lazy=True,
        cascade='all, delete-orphan', order_by='QuoteLineItem.sort_order'
    )

    def effective_status(self, now=None):
        """Stored status with lazy expiry applied; nothing is written."""
        now = now or utc_now_naive()
        if self.status in EXPIRABLE_STATUSES and self.valid_until is not None and self.valid_until < now:
            return QuoteStatus.EXPIRED.value
        return self.status

    def __repr__(self):
        return f"<Quote {self.quote_number} status={self.status}>"


class QuoteLineItem(db.Model):
    __tablename__ = 'quote_line_item'
    id = db.Column(db.Integer, primary_key=True)
    quote_id = db.Column(db.Integer, db.ForeignKey('quote.id', ondelete='CASCADE'), nullable=False, index=True)
    description = db.Column(db.String(512), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=1)
    unit_price = db.Column(db.Float, nullable=False, default=0.0)
    total = db.Column(db.Float, nullable=False, default=0.0)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    quote = db.relationship('Quote', back_populates='line_items')

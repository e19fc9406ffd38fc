from backend.extensions import db
from backend.utils.timezone_utils import utc_now_naive


class Review(db.Model):
    __tablename__ = 'review'
    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey('job.id', ondelete='CASCADE'), nullable=False, index=True)
    reviewer_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    reviewee_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)

    job = db.relationship('Job', backref=db.backref('reviews', lazy=True))
    reviewer = db.relationship('User', foreign_keys=[reviewer_id])
    reviewee = db.relationship('User', foreign_keys=[reviewee_id])

    __table_args__ = (
        db.UniqueConstraint('job_id', 'reviewer_id', name='uq_review_job_reviewer'),
        db.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating_range'),
    )

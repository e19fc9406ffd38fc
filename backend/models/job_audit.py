from backend.extensions import db
from backend.models.types import JSONVariant
from backend.utils.timezone_utils import utc_now_naive


class JobAudit(db.Model):
    """One row per job status transition (and per completion request)."""
    __tablename__ = 'job_audit'

    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey('job.id', ondelete="CASCADE"), nullable=False, index=True)
    changed_at = db.Column(db.DateTime, nullable=False, default=utc_now_naive)
    changed_by = db.Column(db.Integer, db.ForeignKey('user.id', ondelete="SET NULL"), nullable=True)
    old_status = db.Column(db.String(50), nullable=True)
    new_status = db.Column(db.String(50), nullable=False)
    reason = db.Column(db.Text, nullable=True)
    additional_data = db.Column(JSONVariant, nullable=True)

    job = db.relationship('Job', backref=db.backref('audit_records', order_by='JobAudit.id', cascade='all, delete-orphan'))
    changed_by_user = db.relationship('User')

from backend.extensions import db
from backend.models.types import JSONVariant
from backend.utils.timezone_utils import utc_now_naive


class JobTemplate(db.Model):
    """A contractor's reusable description of a kind of job, with its usual tasks and materials."""
    __tablename__ = 'job_template'
    id = db.Column(db.Integer, primary_key=True)
    contractor_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category_tags = db.Column(JSONVariant, default=list, nullable=False)
    estimated_duration_days = db.Column(db.Integer, nullable=False, default=1)
    estimated_budget = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)

    contractor = db.relationship('User', backref=db.backref('job_templates', lazy='dynamic', cascade='all, delete-orphan'))
    tasks = db.relationship(
        'JobTemplateTask', back_populates='template', lazy=True,
        cascade='all, delete-orphan', order_by='JobTemplateTask.sort_order'
    )
    materials = db.relationship(
        'JobTemplateMaterial', back_populates='template', lazy=True,
        cascade='all, delete-orphan', order_by='JobTemplateMaterial.sort_order'
    )

    @property
    def estimated_hours(self):
        return round(sum(task.estimated_hours for task in self.tasks), 2)

    @property
    def materials_total(self):
        return round(sum(m.quantity * m.unit_price for m in self.materials), 2)

    def __repr__(self):
        return f"<JobTemplate {self.id} {self.title!r}>"


class JobTemplateTask(db.Model):
    __tablename__ = 'job_template_task'
    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.Integer, db.ForeignKey('job_template.id', ondelete='CASCADE'), nullable=False, index=True)
    description = db.Column(db.String(512), nullable=False)
    estimated_hours = db.Column(db.Float, nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    template = db.relationship('JobTemplate', back_populates='tasks')


class JobTemplateMaterial(db.Model):
    __tablename__ = 'job_template_material'
    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.Integer, db.ForeignKey('job_template.id', ondelete='CASCADE'), nullable=False, index=True)
    description = db.Column(db.String(512), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=1)
    unit_price = db.Column(db.Float, nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    template = db.relationship('JobTemplate', back_populates='materials')

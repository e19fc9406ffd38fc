from marshmallow import Schema, fields, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from backend.models.job_template import JobTemplate, JobTemplateMaterial, JobTemplateTask
from backend.schemas.common import LenientMeta


class JobTemplateTaskSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = JobTemplateTask
        load_instance = True

    id = auto_field(dump_only=True)
    description = auto_field()
    estimated_hours = auto_field()
    sort_order = auto_field(dump_only=True)


class JobTemplateMaterialSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = JobTemplateMaterial
        load_instance = True

    id = auto_field(dump_only=True)
    description = auto_field()
    quantity = auto_field()
    unit_price = auto_field()
    sort_order = auto_field(dump_only=True)


class JobTemplateSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = JobTemplate
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    contractor_id = auto_field(dump_only=True)
    title = auto_field()
    description = auto_field()
    category_tags = fields.List(fields.Str())
    estimated_duration_days = auto_field()
    estimated_budget = auto_field()
    estimated_hours = fields.Float(dump_only=True)
    materials_total = fields.Float(dump_only=True)
    tasks = fields.List(fields.Nested(JobTemplateTaskSchema), dump_only=True)
    materials = fields.List(fields.Nested(JobTemplateMaterialSchema), dump_only=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)


class TemplateTaskInputSchema(Schema):
    Meta = LenientMeta

    description = fields.Str(required=True, validate=validate.Length(min=3, max=512))
    estimated_hours = fields.Float(required=True, validate=validate.Range(min=0, min_inclusive=False))


class TemplateMaterialInputSchema(Schema):
    Meta = LenientMeta

    description = fields.Str(required=True, validate=validate.Length(min=1, max=512))
    quantity = fields.Float(load_default=1.0, validate=validate.Range(min=1))
    unit_price = fields.Float(required=True, validate=validate.Range(min=0))


class JobTemplateInputSchema(Schema):
    Meta = LenientMeta

    title = fields.Str(required=True, validate=validate.Length(min=3, max=255))
    description = fields.Str(required=True, validate=validate.Length(min=10))
    category_tags = fields.List(fields.Str(), required=True, validate=validate.Length(min=1))
    estimated_duration_days = fields.Int(load_default=1, validate=validate.Range(min=1))
    estimated_budget = fields.Float(allow_none=True, validate=validate.Range(min=0.01))
    tasks = fields.List(fields.Nested(TemplateTaskInputSchema), load_default=list)
    materials = fields.List(fields.Nested(TemplateMaterialInputSchema), load_default=list)

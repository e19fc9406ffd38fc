from marshmallow import Schema, fields, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from backend.models.review import Review
from backend.schemas.common import LenientMeta
from backend.schemas.user_schema import PublicUserSchema


class ReviewSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Review
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    job_id = auto_field(dump_only=True)
    reviewer_id = auto_field(dump_only=True)
    reviewee_id = auto_field(dump_only=True)
    rating = auto_field()
    comment = auto_field()
    created_at = auto_field(dump_only=True)
    reviewer = fields.Nested(PublicUserSchema, dump_only=True)


class ReviewInputSchema(Schema):
    Meta = LenientMeta

    job_id = fields.Int(required=True, validate=validate.Range(min=1))
    rating = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=5))
    comment = fields.Str(allow_none=True, validate=validate.Length(max=2000))

from marshmallow import Schema, fields, validate, validates, validates_schema, ValidationError

from backend.models.user import UserType
from backend.schemas.common import LenientMeta
from backend.utils.validation import validate_username


class RoleSchema(Schema):
    id = fields.Int(dump_only=True)
    name = fields.Str()


class UserSchema(Schema):
    id = fields.Int(dump_only=True)
    email = fields.Email(dump_only=True)
    username = fields.Str(dump_only=True)
    full_name = fields.Str(allow_none=True)
    phone = fields.Str(allow_none=True)
    user_type = fields.Str(dump_only=True)
    active = fields.Bool(dump_only=True)
    roles = fields.List(fields.Nested(RoleSchema), dump_only=True)
    created_at = fields.DateTime(dump_only=True)


class PublicUserSchema(Schema):
    """What other marketplace users may see about someone."""
    id = fields.Int(dump_only=True)
    username = fields.Str(dump_only=True)
    full_name = fields.Str(dump_only=True)
    user_type = fields.Str(dump_only=True)


class RegisterSchema(Schema):
    Meta = LenientMeta

    email = fields.Email(required=True)
    username = fields.Str(required=True)
    password = fields.Str(required=True, load_only=True)
    full_name = fields.Str(allow_none=True, validate=validate.Length(max=255))
    phone = fields.Str(allow_none=True, validate=validate.Length(max=32))
    user_type = fields.Str(required=True, validate=validate.OneOf(UserType.values()))

    @validates('username')
    def validate_username_format(self, value, **kwargs):
        ok, message = validate_username(value)
        if not ok:
            raise ValidationError(message)


class UserUpdateSchema(Schema):
    Meta = LenientMeta

    full_name = fields.Str(allow_none=True, validate=validate.Length(max=255))
    phone = fields.Str(allow_none=True, validate=validate.Length(max=32))


class ForgotPasswordSchema(Schema):
    Meta = LenientMeta

    email = fields.Email(required=True)


class ResetPasswordSchema(Schema):
    Meta = LenientMeta

    token = fields.Str(required=True, validate=validate.Length(min=1))
    password = fields.Str(required=True, load_only=True)
    confirm_password = fields.Str(load_only=True)

    @validates_schema
    def validate_confirmation(self, data, **kwargs):
        if 'confirm_password' in data and data['confirm_password'] != data.get('password'):
            raise ValidationError({'confirm_password': ['Passwords do not match']})

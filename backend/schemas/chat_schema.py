from marshmallow import Schema, fields, validate, validates, ValidationError
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from backend.models.chat import ChatRoom, Message, MessageType
from backend.schemas.common import LenientMeta
from backend.schemas.user_schema import PublicUserSchema


class MessageSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Message
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    chat_room_id = auto_field(dump_only=True)
    sender_id = auto_field(dump_only=True)
    content = auto_field()
    type = auto_field()
    created_at = auto_field(dump_only=True)


class ChatRoomSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = ChatRoom
        load_instance = True
        include_fk = True

    id = auto_field(dump_only=True)
    job_id = auto_field(dump_only=True)
    created_at = auto_field(dump_only=True)
    participants = fields.Method('get_participants', dump_only=True)

    def get_participants(self, obj):
        return PublicUserSchema(many=True).dump([p.user for p in obj.participants])


class MessageInputSchema(Schema):
    Meta = LenientMeta

    content = fields.Str(required=True, validate=validate.Length(max=5000))
    type = fields.Str(
        load_default=MessageType.TEXT.value,
        validate=validate.OneOf([t.value for t in MessageType])
    )

    @validates('content')
    def validate_not_blank(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("Message content cannot be empty")

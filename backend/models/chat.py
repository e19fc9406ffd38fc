from enum import Enum
from backend.extensions import db
from backend.utils.timezone_utils import utc_now_naive


class MessageType(Enum):
    TEXT = "text"
    IMAGE = "image"


class ChatRoom(db.Model):
    __tablename__ = 'chat_room'
    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey('job.id', ondelete='CASCADE'), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)

    job = db.relationship('Job', backref=db.backref('chat_room', uselist=False))
    participants = db.relationship('ChatParticipant', back_populates='room', lazy=True, cascade='all, delete-orphan')
    messages = db.relationship('Message', back_populates='room', lazy='dynamic', cascade='all, delete-orphan')

    def participant_for(self, user_id):
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant
        return None


class ChatParticipant(db.Model):
    __tablename__ = 'chat_participant'
    id = db.Column(db.Integer, primary_key=True)
    chat_room_id = db.Column(db.Integer, db.ForeignKey('chat_room.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    last_read_at = db.Column(db.DateTime, nullable=True)
    joined_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)

    room = db.relationship('ChatRoom', back_populates='participants')
    user = db.relationship('User')

    __table_args__ = (
        db.UniqueConstraint('chat_room_id', 'user_id', name='uq_chat_participant_room_user'),
    )


class Message(db.Model):
    __tablename__ = 'message'
    id = db.Column(db.Integer, primary_key=True)
    chat_room_id = db.Column(db.Integer, db.ForeignKey('chat_room.id', ondelete='CASCADE'), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(16), nullable=False, default=MessageType.TEXT.value)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False, index=True)

    room = db.relationship('ChatRoom', back_populates='messages')
    sender = db.relationship('User')

import logging
from typing import List, Optional

from backend.extensions import db
from backend.models.chat import ChatParticipant, ChatRoom, Message
from backend.models.job import Job
from backend.schemas.chat_schema import MessageInputSchema
from backend.services.common import atomic, get_or_404, load_payload
from backend.services.errors import AuthorizationError, ConflictError
from backend.utils.timezone_utils import utc_now_naive

logger = logging.getLogger(__name__)


class ChatService:
    """
    One room per job, shared by the job's landlord and its assigned contractor.
    Messages are returned in creation order; ``after_id`` lets clients poll.
    """

    @staticmethod
    def ensure_room(job: Job) -> ChatRoom:
        """
        Return the job's room, creating it in the current session if needed.
        The caller owns the transaction.
        """
        if job.contractor_id is None:
            raise ConflictError("Chat is only available once a contractor is assigned to the job")

        room = ChatRoom.query.filter_by(job_id=job.id).first()
        if room is None:
            room = ChatRoom(job_id=job.id)
            db.session.add(room)
            db.session.flush()
            logger.info(f"Created chat room {room.id} for job {job.id}")

        # Participants are exactly the landlord and the assigned contractor
        wanted = {job.landlord_id, job.contractor_id}
        for participant in list(room.participants):
            if participant.user_id not in wanted:
                room.participants.remove(participant)
        existing = {p.user_id for p in room.participants}
        for user_id in sorted(wanted - existing):
            room.participants.append(ChatParticipant(user_id=user_id))
        return room

    @staticmethod
    def _require_participant(actor, room: ChatRoom) -> ChatParticipant:
        participant = room.participant_for(actor.id)
        if participant is None:
            raise AuthorizationError("You are not a participant in this chat")
        return participant

    @staticmethod
    def get_or_create_room(actor, job_id: int) -> ChatRoom:
        job = get_or_404(Job, job_id, 'Job')
        if actor.id not in (job.landlord_id, job.contractor_id):
            raise AuthorizationError("Only the job's landlord and assigned contractor can open its chat")
        with atomic('open the chat room'):
            room = ChatService.ensure_room(job)
        return room

    @staticmethod
    def post_message(actor, room_id: int, data) -> Message:
        room = get_or_404(ChatRoom, room_id, 'Chat room')
        participant = ChatService._require_participant(actor, room)
        payload = load_payload(MessageInputSchema(), data)

        with atomic('send the message'):
            message = Message(
                chat_room_id=room.id,
                sender_id=actor.id,
                content=payload['content'].strip(),
                type=payload['type'],
            )
            db.session.add(message)
            db.session.flush()
            # The sender has obviously read everything up to their own message
            participant.last_read_at = message.created_at
        logger.info(f"Message {message.id} posted to room {room.id} by user {actor.id}")
        return message

    @staticmethod
    def list_messages(actor, room_id: int, after_id: Optional[int] = None, limit: int = 200) -> List[Message]:
        room = get_or_404(ChatRoom, room_id, 'Chat room')
        ChatService._require_participant(actor, room)

        query = Message.query.filter(Message.chat_room_id == room.id)
        if after_id is not None:
            query = query.filter(Message.id > after_id)
        return query.order_by(Message.created_at.asc(), Message.id.asc()).limit(limit).all()

    @staticmethod
    def mark_read(actor, room_id: int) -> ChatParticipant:
        room = get_or_404(ChatRoom, room_id, 'Chat room')
        participant = ChatService._require_participant(actor, room)
        with atomic('mark the chat as read'):
            participant.last_read_at = utc_now_naive()
        return participant

    @staticmethod
    def unread_count(actor) -> int:
        """Messages from others newer than the actor's last read mark, across all rooms."""
        total = 0
        participations = ChatParticipant.query.filter_by(user_id=actor.id).all()
        for participant in participations:
            query = Message.query.filter(
                Message.chat_room_id == participant.chat_room_id,
                Message.sender_id != actor.id,
            )
            if participant.last_read_at is not None:
                query = query.filter(Message.created_at > participant.last_read_at)
            total += query.count()
        return total

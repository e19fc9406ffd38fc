"""
Tests for job chat rooms and messages
"""
import pytest

from backend.services.chat_service import ChatService
from backend.services.errors import AuthorizationError, ConflictError, ValidationError
from backend.services.job_service import JobService


@pytest.fixture
def room(landlord, contractor, open_job):
    JobService.assign_contractor(landlord, open_job.id, contractor.id)
    return ChatService.get_or_create_room(landlord, open_job.id)


class TestRooms:

    def test_no_chat_before_assignment(self, landlord, open_job):
        with pytest.raises(ConflictError):
            ChatService.get_or_create_room(landlord, open_job.id)

    def test_room_is_shared_and_unique(self, landlord, contractor, room):
        again = ChatService.get_or_create_room(contractor, room.job_id)
        assert again.id == room.id
        assert {p.user_id for p in room.participants} == {landlord.id, contractor.id}

    def test_outsiders_cannot_open_room(self, other_contractor, room):
        with pytest.raises(AuthorizationError):
            ChatService.get_or_create_room(other_contractor, room.job_id)


class TestMessages:

    def test_post_and_list_in_order(self, landlord, contractor, room):
        first = ChatService.post_message(landlord, room.id, {'content': 'When can you come by?'})
        second = ChatService.post_message(contractor, room.id, {'content': 'Tomorrow at 9'})
        messages = ChatService.list_messages(landlord, room.id)
        assert [m.id for m in messages] == [first.id, second.id]
        assert messages[0].type == 'text'

    def test_poll_after_id(self, landlord, contractor, room):
        first = ChatService.post_message(landlord, room.id, {'content': 'Hello'})
        second = ChatService.post_message(contractor, room.id, {'content': 'Hi there'})
        assert [m.id for m in ChatService.list_messages(contractor, room.id, after_id=first.id)] == [second.id]

    def test_blank_message_rejected(self, landlord, room):
        with pytest.raises(ValidationError):
            ChatService.post_message(landlord, room.id, {'content': '   '})

    def test_unknown_message_type_rejected(self, landlord, room):
        with pytest.raises(ValidationError):
            ChatService.post_message(landlord, room.id, {'content': 'hi', 'type': 'video'})

    def test_outsiders_cannot_read_or_post(self, other_contractor, room):
        with pytest.raises(AuthorizationError):
            ChatService.list_messages(other_contractor, room.id)
        with pytest.raises(AuthorizationError):
            ChatService.post_message(other_contractor, room.id, {'content': 'Let me in'})

    def test_unread_count(self, landlord, contractor, room):
        ChatService.post_message(landlord, room.id, {'content': 'Door code is 1234'})
        ChatService.post_message(landlord, room.id, {'content': 'Parking is at the back'})
        assert ChatService.unread_count(contractor) == 2
        assert ChatService.unread_count(landlord) == 0

        ChatService.mark_read(contractor, room.id)
        assert ChatService.unread_count(contractor) == 0

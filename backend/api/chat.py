import logging
from flask import Blueprint, jsonify, request
from flask_security import auth_required

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import db
from backend.schemas.chat_schema import ChatRoomSchema, MessageSchema
from backend.services.chat_service import ChatService
from backend.services.errors import ServiceError

chat_bp = Blueprint('chat', __name__)
logger = logging.getLogger(__name__)

room_schema = ChatRoomSchema(session=db.session)
message_schema = MessageSchema(session=db.session)
message_schema_many = MessageSchema(many=True, session=db.session)


@chat_bp.route('/chat/job/<int:job_id>', methods=['GET'])
@auth_required()
def room_for_job(job_id):
    try:
        return jsonify(room_schema.dump(ChatService.get_or_create_room(current_actor(), job_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('open the chat room', e)


@chat_bp.route('/chat/room/<int:room_id>/messages', methods=['GET'])
@auth_required()
def list_messages(room_id):
    """Messages oldest first. Pass ?after_id= to poll for new messages only."""
    try:
        messages = ChatService.list_messages(
            current_actor(), room_id, after_id=request.args.get('after_id', type=int)
        )
        return jsonify(message_schema_many.dump(messages)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('load messages', e)


@chat_bp.route('/chat/room/<int:room_id>/messages', methods=['POST'])
@auth_required()
def post_message(room_id):
    try:
        message = ChatService.post_message(current_actor(), room_id, json_body())
        return jsonify(message_schema.dump(message)), 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('send the message', e)


@chat_bp.route('/chat/room/<int:room_id>/mark-read', methods=['POST'])
@auth_required()
def mark_read(room_id):
    try:
        ChatService.mark_read(current_actor(), room_id)
        return jsonify({'message': 'Marked as read'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('mark the chat as read', e)


@chat_bp.route('/chat/unread', methods=['GET'])
@auth_required()
def unread():
    try:
        return jsonify({'unread': ChatService.unread_count(current_actor())}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('count unread messages', e)

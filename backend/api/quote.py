import logging
from flask import Blueprint, jsonify, request
from flask_security import auth_required, roles_accepted

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import db
from backend.schemas.invoice_schema import InvoiceSchema
from backend.schemas.quote_schema import QuoteSchema
from backend.services.errors import ServiceError
from backend.services.invoice_service import InvoiceService
from backend.services.quote_service import QuoteService

quote_bp = Blueprint('quote', __name__)
logger = logging.getLogger(__name__)

quote_schema = QuoteSchema(session=db.session)
quote_schema_many = QuoteSchema(many=True, session=db.session)
invoice_schema = InvoiceSchema(session=db.session)


@quote_bp.route('/quotes', methods=['GET'])
@auth_required()
def list_quotes():
    """Quotes the user sent (contractor) or received (landlord). Optional ?status= uses effective status."""
    try:
        quotes = QuoteService.list_quotes(current_actor(), status=request.args.get('status'))
        return jsonify(quote_schema_many.dump(quotes)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list quotes', e)


@quote_bp.route('/quotes', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def create_quote():
    try:
        quote = QuoteService.create_quote(current_actor(), json_body())
        return jsonify(quote_schema.dump(quote)), 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create the quote', e)


@quote_bp.route('/quotes/<int:quote_id>', methods=['GET'])
@auth_required()
def get_quote(quote_id):
    try:
        return jsonify(quote_schema.dump(QuoteService.get_quote(current_actor(), quote_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('fetch the quote', e)


@quote_bp.route('/quotes/<int:quote_id>', methods=['PATCH', 'PUT'])
@auth_required()
@roles_accepted('contractor')
def update_quote(quote_id):
    try:
        quote = QuoteService.update_quote(current_actor(), quote_id, json_body())
        return jsonify(quote_schema.dump(quote)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update the quote', e)


@quote_bp.route('/quotes/<int:quote_id>/send', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def send_quote(quote_id):
    try:
        return jsonify(quote_schema.dump(QuoteService.send_quote(current_actor(), quote_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('send the quote', e)


@quote_bp.route('/quotes/<int:quote_id>/view', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def view_quote(quote_id):
    try:
        return jsonify(quote_schema.dump(QuoteService.view_quote(current_actor(), quote_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('open the quote', e)


@quote_bp.route('/quotes/<int:quote_id>/accept', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def accept_quote(quote_id):
    try:
        return jsonify(quote_schema.dump(QuoteService.accept_quote(current_actor(), quote_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('accept the quote', e)


@quote_bp.route('/quotes/<int:quote_id>/reject', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def reject_quote(quote_id):
    try:
        quote = QuoteService.reject_quote(current_actor(), quote_id, reason=json_body().get('reason'))
        return jsonify(quote_schema.dump(quote)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('reject the quote', e)


@quote_bp.route('/quotes/<int:quote_id>/convert-to-invoice', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def convert_to_invoice(quote_id):
    """Idempotent: converting an already-converted quote returns the existing invoice with 200."""
    try:
        actor = current_actor()
        already_converted = QuoteService.get_quote(actor, quote_id).invoice is not None
        invoice = InvoiceService.create_from_quote(actor, quote_id, due_date=json_body().get('due_date'))
        return jsonify(invoice_schema.dump(invoice)), 200 if already_converted else 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('convert the quote', e)

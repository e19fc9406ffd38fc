import logging
from flask import Blueprint, jsonify, request
from flask_security import auth_required, roles_accepted

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import db
from backend.schemas.invoice_schema import InvoiceSchema
from backend.services.errors import ServiceError
from backend.services.invoice_service import InvoiceService

invoice_bp = Blueprint('invoice', __name__)
logger = logging.getLogger(__name__)

invoice_schema = InvoiceSchema(session=db.session)
invoice_schema_many = InvoiceSchema(many=True, session=db.session)


@invoice_bp.route('/invoices', methods=['GET'])
@auth_required()
def list_invoices():
    try:
        invoices = InvoiceService.list_invoices(current_actor(), status=request.args.get('status'))
        return jsonify(invoice_schema_many.dump(invoices)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list invoices', e)


@invoice_bp.route('/invoices/<int:invoice_id>', methods=['GET'])
@auth_required()
def get_invoice(invoice_id):
    try:
        return jsonify(invoice_schema.dump(InvoiceService.get_invoice(current_actor(), invoice_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('fetch the invoice', e)


@invoice_bp.route('/invoices/<int:invoice_id>/send', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def send_invoice(invoice_id):
    try:
        return jsonify(invoice_schema.dump(InvoiceService.send_invoice(current_actor(), invoice_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('send the invoice', e)


@invoice_bp.route('/invoices/<int:invoice_id>/view', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def view_invoice(invoice_id):
    try:
        return jsonify(invoice_schema.dump(InvoiceService.view_invoice(current_actor(), invoice_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('open the invoice', e)


@invoice_bp.route('/invoices/<int:invoice_id>/pay', methods=['POST'])
@auth_required()
@roles_accepted('landlord')
def pay_invoice(invoice_id):
    """
    Record a payment.
    Request body:
        - amount (required, > 0, at most the balance due)
        - payment_method (required: cash, check, credit_card, bank_transfer, paypal, venmo, other)
    """
    try:
        data = json_body()
        invoice = InvoiceService.record_payment(
            current_actor(), invoice_id, data.get('amount'), data.get('payment_method')
        )
        return jsonify(invoice_schema.dump(invoice)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('record the payment', e)


@invoice_bp.route('/invoices/<int:invoice_id>/cancel', methods=['POST'])
@auth_required()
@roles_accepted('contractor')
def cancel_invoice(invoice_id):
    try:
        return jsonify(invoice_schema.dump(InvoiceService.cancel_invoice(current_actor(), invoice_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('cancel the invoice', e)

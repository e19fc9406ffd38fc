"""
Helpers shared by the marketplace services: loading rows, guarding actors,
validating payloads with marshmallow and recording job audit rows.
"""
import logging
import secrets
from contextlib import contextmanager
from marshmallow import ValidationError as SchemaValidationError

from backend.extensions import db
from backend.models.job_audit import JobAudit
from backend.services.errors import AuthorizationError, NotFoundError, ServiceError, ValidationError
from backend.utils.timezone_utils import utc_now_naive
from backend.utils.validation import flatten_schema_errors

logger = logging.getLogger(__name__)


def get_or_404(model, object_id, label=None):
    obj = db.session.get(model, object_id)
    if obj is None:
        raise NotFoundError(f"{label or model.__name__} {object_id} not found")
    return obj


def require_landlord(actor):
    if actor is None or not actor.is_landlord:
        raise AuthorizationError("Only landlords can perform this action")


def require_contractor(actor):
    if actor is None or not actor.is_contractor:
        raise AuthorizationError("Only contractors can perform this action")


def load_payload(schema, data, partial=False):
    """Validate ``data`` with a marshmallow schema, raising our ValidationError."""
    try:
        return schema.load(data or {}, partial=partial)
    except SchemaValidationError as err:
        raise ValidationError(f"Invalid input: {flatten_schema_errors(err.messages)}", errors=err.messages)


def record_job_audit(job, actor, old_status, new_status, reason=None, **additional_data):
    """Add an audit row to the current session; the caller commits."""
    audit = JobAudit(
        job_id=job.id,
        changed_by=actor.id if actor is not None else None,
        old_status=old_status,
        new_status=new_status,
        reason=reason,
        additional_data=additional_data or None,
    )
    db.session.add(audit)
    return audit


@contextmanager
def atomic(action):
    """
    Commit the session when the block succeeds. Service errors roll back and
    propagate unchanged; anything else is logged and surfaced as a ServiceError.
    """
    try:
        yield
        db.session.commit()
    except ServiceError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error while trying to {action}: {e}", exc_info=True)
        raise ServiceError(f"Could not {action}. Please try again later.", code=500)


def generate_document_number(prefix, model, column, attempts=10):
    """
    Build a number like ``QUO-2024-05-04821`` that is not yet used in ``column``.
    """
    now = utc_now_naive()
    for _ in range(attempts):
        candidate = f"{prefix}-{now:%Y}-{now:%m}-{secrets.randbelow(100000):05d}"
        if not db.session.query(model.id).filter(column == candidate).first():
            return candidate
    raise ServiceError(f"Could not allocate a unique {prefix} number. Please try again.", code=500)

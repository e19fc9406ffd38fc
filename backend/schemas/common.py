import re

from marshmallow import fields, EXCLUDE

# Auto schemas configure the mappers, so every model must be registered first
from backend.models import (  # noqa: F401
    role, user, profile, job, job_audit, bid, quote, invoice, chat, review,
    password_reset_token, availability, job_template,
)
from backend.utils.timezone_utils import format_datetime_for_display, parse_datetime_string, to_naive_utc

DATE_ONLY = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class UTCDateTime(fields.DateTime):
    """ISO-8601 datetime, normalised to naive UTC on load.

    A bare date such as ``2026-11-30`` means midnight in the display timezone.
    """

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str) and DATE_ONLY.match(value.strip()):
            try:
                return parse_datetime_string(value.strip())
            except ValueError as error:
                raise self.make_error('invalid', input=value, obj_type=self.OBJ_TYPE) from error
        return to_naive_utc(super()._deserialize(value, attr, data, **kwargs))


def display_time(attribute):
    """Dump-only field with a stored UTC timestamp rendered in the display timezone."""
    return fields.Function(
        lambda obj: format_datetime_for_display(getattr(obj, attribute)) or None, dump_only=True
    )


class LenientMeta:
    unknown = EXCLUDE

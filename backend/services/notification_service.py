import logging
from flask import current_app
from flask_mail import Message

from backend.extensions import mail

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Best-effort e-mail notifications. Callers invoke these after their
    transaction has committed; a delivery failure is logged and reported
    as False, never raised.
    """

    @staticmethod
    def _send(recipient, subject, body) -> bool:
        if not current_app.config.get('NOTIFICATIONS_ENABLED', True):
            logger.debug(f"Notifications disabled, skipping '{subject}' to {recipient}")
            return False
        if not recipient:
            return False
        try:
            msg = Message(subject=subject, recipients=[recipient], body=body)
            mail.send(msg)
            logger.info(f"Notification '{subject}' sent to {recipient}")
            return True
        except Exception as e:
            logger.error(f"Failed to send notification '{subject}' to {recipient}: {e}", exc_info=True)
            return False

    @staticmethod
    def bid_placed(bid) -> bool:
        job = bid.job
        return NotificationService._send(
            job.landlord.email,
            f"New bid on '{job.title}'",
            f"{bid.contractor.full_name or bid.contractor.username} bid ${bid.amount:,.2f} on your job '{job.title}'.\n\n"
            f"{bid.proposal}",
        )

    @staticmethod
    def bid_accepted(bid) -> bool:
        return NotificationService._send(
            bid.contractor.email,
            f"Your bid on '{bid.job.title}' was accepted",
            f"The landlord accepted your bid of ${bid.amount:,.2f}. You can now message them from the job chat.",
        )

    @staticmethod
    def bid_rejected(bid) -> bool:
        return NotificationService._send(
            bid.contractor.email,
            f"Update on your bid for '{bid.job.title}'",
            "The landlord has chosen another contractor for this job.",
        )

    @staticmethod
    def quote_sent(quote) -> bool:
        valid = f" It is valid until {quote.valid_until:%Y-%m-%d}." if quote.valid_until else ""
        return NotificationService._send(
            quote.landlord.email,
            f"Quote {quote.quote_number}: {quote.title}",
            f"You have received a quote for ${quote.total:,.2f}.{valid}",
        )

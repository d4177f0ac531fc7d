import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from mod_assign.models.message import Message

logger = logging.getLogger(__name__)


@dataclass
class OutgoingMessage:
    user_from_id: int
    user_to_id: int
    subject: str
    full_message: str
    full_message_html: str = ""
    small_message: str = ""
    context_url: str = ""
    context_url_name: str = ""


class Notifier:
    """Queues messages in the outbox table. Delivery belongs to the host."""

    def __init__(self, db: Session):
        self.db = db

    def send(self, message: OutgoingMessage, now: int) -> None:
        self.db.add(
            Message(
                user_from_id=message.user_from_id,
                user_to_id=message.user_to_id,
                subject=message.subject[:255],
                full_message=message.full_message,
                full_message_html=message.full_message_html,
                small_message=message.small_message[:255],
                context_url=message.context_url,
                context_url_name=message.context_url_name[:255],
                time_created=now,
            )
        )
        self.db.commit()
        logger.info("queued message %r for user %s", message.subject, message.user_to_id)

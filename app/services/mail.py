"""Outgoing mail interface. Delivery transport is pluggable; the default only logs."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    body: str
    sender: str


class Mailer:
    """Base mailer. Subclasses deliver the message."""

    def send(self, message: MailMessage) -> None:
        raise NotImplementedError


class LoggingMailer(Mailer):
    """Writes messages to the log instead of delivering them."""

    def send(self, message: MailMessage) -> None:
        logger.info(
            "Mail queued: to=%s subject=%r sender=%s",
            message.to,
            message.subject,
            message.sender,
        )
        logger.debug("Mail body: %s", message.body)

"""
Outbound mail utilities for Lambda handlers.

This module delivers validated contact messages, either through an SMTP
relay or through Amazon SES. Both senders expose the same method:

    sender.send(message, timeout=None)

which returns None on success and raises on any failure. One attempt per
call: no retries.
"""

import logging
import os
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

import boto3
from botocore.config import Config

from domain.models import OutboundMessage
from function_config import MailConfig, SES_TRANSPORT

logger = logging.getLogger(__name__)

ses_region = os.environ.get('AWS_REGION', os.environ.get('AWS_DEFAULT_REGION', 'us-east-1'))


def create_ses_client(connect_timeout: float, read_timeout: float):
    """
    Create an SES v2 client with explicit timeouts and no retries.

    Args:
        connect_timeout: Seconds to establish the connection
        read_timeout: Seconds to wait for the response

    Returns:
        boto3 sesv2 client
    """
    config = Config(
        retries={
            'max_attempts': 1,  # 1 attempt total (no retries)
            'mode': 'standard'
        },
        connect_timeout=connect_timeout,
        read_timeout=read_timeout
    )
    return boto3.client('sesv2', region_name=ses_region, config=config)


def build_mime_message(message: OutboundMessage) -> EmailMessage:
    """
    Build a plain text MIME message for an outbound contact email.

    Args:
        message: Validated outbound message

    Returns:
        EmailMessage: Message with From, To, Subject and a text/plain body
    """
    mime = EmailMessage()
    mime['From'] = formataddr((message.from_display_name, message.from_address))
    mime['To'] = formataddr((message.to_display_name, message.to_address))
    mime['Subject'] = message.subject
    mime['Message-ID'] = make_msgid()
    mime.set_content(message.body)
    return mime


class SmtpMailSender:
    """
    Sends messages through an SMTP relay.

    A new connection is opened for every message, so nothing is held
    open between invocations.
    """

    def __init__(self, config: MailConfig):
        self.config = config

    def send(self, message: OutboundMessage, timeout: Optional[float] = None) -> None:
        """
        Send a message through the configured relay.

        Args:
            message: Validated outbound message
            timeout: Seconds left for the SMTP session (capped at the
                     configured timeout)

        Raises:
            smtplib.SMTPException: If the relay rejects the message
            OSError: If the relay cannot be reached
        """
        if timeout is None or timeout > self.config.smtp_timeout:
            timeout = self.config.smtp_timeout

        mime = build_mime_message(message)

        logger.info(
            f"Sending email via SMTP: host={self.config.smtp_host}:{self.config.smtp_port}, "
            f"timeout={timeout:.1f}s"
        )

        context = ssl.create_default_context()
        if self.config.smtp_use_ssl:
            connection = smtplib.SMTP_SSL(
                self.config.smtp_host, self.config.smtp_port, timeout=timeout, context=context
            )
        else:
            connection = smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=timeout)

        with connection as smtp:
            if self.config.smtp_starttls and not self.config.smtp_use_ssl:
                smtp.starttls(context=context)
            if self.config.smtp_username:
                smtp.login(self.config.smtp_username, self.config.smtp_password)
            smtp.send_message(mime)

        logger.info("Email sent via SMTP")


class SesMailSender:
    """
    Sends messages through Amazon SES.

    SES only sends from verified identities, so the message goes out from
    the configured address with the submitter's display name, and the
    submitter's address is set as Reply-To.

    The client built with the configured timeouts is created once and
    reused. When less time is left than those timeouts allow, a one-off
    client is built with both connect and read timeouts capped at the time
    left.
    """

    def __init__(self, config: MailConfig, client=None):
        self.config = config
        self.client = client or create_ses_client(config.ses_connect_timeout, config.ses_timeout)

    def send(self, message: OutboundMessage, timeout: Optional[float] = None) -> None:
        """
        Send a message through SES.

        Args:
            message: Validated outbound message
            timeout: Seconds left for the SES call (caps the configured
                     connect and read timeouts)

        Raises:
            ClientError: If SES rejects the request
            BotoCoreError: If SES cannot be reached in time
        """
        request = {
            'FromEmailAddress': formataddr((message.from_display_name, self.config.ses_from_address)),
            'Destination': {
                'ToAddresses': [formataddr((message.to_display_name, message.to_address))]
            },
            'ReplyToAddresses': [message.from_address],
            'Content': {
                'Simple': {
                    'Subject': {'Data': message.subject, 'Charset': 'UTF-8'},
                    'Body': {
                        'Text': {'Data': message.body, 'Charset': 'UTF-8'}
                    }
                }
            }
        }
        if self.config.ses_configuration_set:
            request['ConfigurationSetName'] = self.config.ses_configuration_set

        client = self._client_for(timeout)

        response = client.send_email(**request)

        logger.info(f"Email sent via SES: message_id={response.get('MessageId', 'UNKNOWN')}")

    def _client_for(self, timeout: Optional[float]):
        connect_timeout = self.config.ses_connect_timeout
        read_timeout = self.config.ses_timeout

        if timeout is None or timeout >= max(connect_timeout, read_timeout):
            logger.info(
                f"Sending email via SES: region={ses_region}, "
                f"connect_timeout={connect_timeout:.1f}s, read_timeout={read_timeout:.1f}s"
            )
            return self.client

        connect_timeout = min(connect_timeout, timeout)
        read_timeout = min(read_timeout, timeout)
        logger.info(
            f"Sending email via SES: region={ses_region}, "
            f"connect_timeout={connect_timeout:.1f}s, read_timeout={read_timeout:.1f}s (deadline)"
        )
        return create_ses_client(connect_timeout, read_timeout)


def create_mail_sender(config: MailConfig):
    """
    Create the sender for the configured transport.

    Args:
        config: Mail transport configuration

    Returns:
        SmtpMailSender or SesMailSender
    """
    if config.transport == SES_TRANSPORT:
        return SesMailSender(config)
    return SmtpMailSender(config)

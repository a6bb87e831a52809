"""
Contact form validation.

Turns raw form fields into an OutboundMessage, or the first failed check.
Checks run in a fixed order so the same submission always gets the same
error message:
1. Required fields present
2. Required fields not blank
3. Sender email address well-formed (surrounding whitespace ignored)
4. Subject falls back to the configured default
"""

import logging
from typing import Optional

from email_validator import validate_email, EmailNotValidError

from .models import (
    FormFields,
    OutboundMessage,
    Settings,
    ValidationError,
    ValidationResult,
    NAME_FIELD,
    EMAIL_FIELD,
    SUBJECT_FIELD,
    MESSAGE_FIELD,
)

logger = logging.getLogger(__name__)


def validate(fields: FormFields, settings: Settings) -> ValidationResult:
    """
    Validate submitted form fields and build the outbound message.

    Args:
        fields: Form fields read from the request
        settings: Function settings

    Returns:
        ValidationResult with the message, or the first ValidationError
    """
    required = [NAME_FIELD, EMAIL_FIELD, MESSAGE_FIELD]
    if settings.subject_required:
        required.append(SUBJECT_FIELD)

    if any(field not in fields for field in required):
        return ValidationResult.failed(ValidationError.missing_details())

    if any(_is_blank(fields[field]) for field in required):
        return ValidationResult.failed(ValidationError.blank_details())

    email = fields[EMAIL_FIELD]
    if not is_valid_email(email.strip()):
        return ValidationResult.failed(ValidationError.invalid_email(email))

    subject = fields.get(SUBJECT_FIELD)
    if _is_blank(subject):
        subject = settings.fallback_subject

    return ValidationResult.ok(OutboundMessage(
        from_display_name=fields[NAME_FIELD],
        from_address=email.strip(),
        to_address=settings.recipient_address,
        subject=subject,
        body=fields[MESSAGE_FIELD],
        to_display_name=settings.recipient_name
    ))


def is_valid_email(value: str) -> bool:
    """
    Check an address is syntactically valid.

    Deliverability (DNS) and special-use domains (.local, .test, ...) are
    not checked; the domain must contain a dot.

    Args:
        value: Address with surrounding whitespace already removed

    Returns:
        bool: True if the address can be used as a sender
    """
    if not value:
        return False

    try:
        validated = validate_email(value, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError as e:
        logger.debug(f"Rejected email address: {e}")
        return False

    if '.' not in validated.ascii_domain:
        logger.debug("Rejected email address: domain has no dot")
        return False

    return True


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()

"""
reCAPTCHA verification gate.

Reduces the verifier's answer to a boolean. Every failure (no token,
HTTP error, empty or unparseable body, transport error) means "not
verified"; nothing here raises and nothing is retried.
"""

import json
import logging
from typing import Optional

from .models import (
    FormFields,
    Settings,
    VerificationRequestError,
    VERIFICATION_TOKEN_FIELD,
)

logger = logging.getLogger(__name__)


def verify_submission(
    fields: FormFields,
    settings: Settings,
    verifier,
    remote_ip: Optional[str] = None,
    timeout: Optional[float] = None
) -> bool:
    """
    Check the submission's reCAPTCHA token, if verification is enabled.

    Args:
        fields: Form fields read from the request
        settings: Function settings
        verifier: Object with verify(secret, token, remote_ip=, timeout=)
                  returning a VerificationResponse
        remote_ip: Caller's IP address, forwarded when known
        timeout: Seconds allowed for the verifier call

    Returns:
        bool: True if verification is disabled or the token was accepted
    """
    if not settings.verification_required:
        return True

    token = fields.get(VERIFICATION_TOKEN_FIELD)
    if token is None or not token.strip():
        logger.warning("No reCAPTCHA token provided")
        return False

    try:
        response = verifier.verify(
            settings.verification_secret,
            token,
            remote_ip=remote_ip,
            timeout=timeout
        )
    except VerificationRequestError as e:
        logger.error(f"reCAPTCHA verification request failed: {e}")
        return False

    if not 200 <= response.status_code < 300:
        logger.warning(f"reCAPTCHA verifier returned status {response.status_code}")
        return False

    if not response.body:
        logger.warning("reCAPTCHA verifier returned an empty response")
        return False

    try:
        result = json.loads(response.body)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse reCAPTCHA response: {e}")
        return False

    if not isinstance(result, dict) or result.get('success') is not True:
        error_codes = result.get('error-codes', []) if isinstance(result, dict) else []
        logger.warning(f"reCAPTCHA verification failed: {error_codes}")
        return False

    logger.info("reCAPTCHA token verified successfully")
    return True

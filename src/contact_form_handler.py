"""
AWS Lambda handler for contact form submissions from API Gateway.

Thin orchestration layer that delegates to ContactFormProcessor.
Policy: One send attempt per request (no retries). Errors logged to CloudWatch.
"""

import json
import logging
import os
import time
from typing import Dict, Any, Optional

import function_config
from domain.request_processor import ContactFormProcessor
from integrations.recaptcha import RecaptchaClient
from services import mail as mail_service

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

ENVIRONMENT = os.environ.get('ENVIRONMENT', 'dev')

# Stop starting outbound calls this long before Lambda times out
DEADLINE_MARGIN_MS = 500

# Load configuration and initialize processor once at module level (reused across invocations)
settings = function_config.load_settings()
mail_config = function_config.load_mail_config()

contact_form_processor = ContactFormProcessor(
    settings=settings,
    mail_sender=mail_service.create_mail_sender(mail_config),
    verifier=RecaptchaClient()
)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Process a contact form POST from API Gateway.

    Args:
        event: API Gateway proxy event with the form body
        context: Lambda context

    Returns:
        API Gateway proxy response (statusCode, headers, body)
    """
    logger.info(f"Environment: {ENVIRONMENT}")
    logger.info("Contact form submission received")

    outcome = contact_form_processor.process_request(event, deadline=_deadline(context))

    if outcome.success:
        logger.info(f"✓ Request complete: {outcome!r}")
    else:
        logger.warning(f"⚠ Request rejected: {outcome!r}")

    return outcome.response.to_lambda_response(_cors_headers())


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.
    """
    headers = _cors_headers()
    headers['Content-Type'] = 'application/json'

    return {
        'statusCode': 200,
        'headers': headers,
        'body': json.dumps({
            'status': 'healthy',
            'environment': ENVIRONMENT,
            'recipientConfigured': bool(settings.recipient_address),
            'verificationEnabled': settings.verification_required,
            'responseMode': settings.response_mode.value
        })
    }


def _deadline(context: Any) -> Optional[float]:
    """Monotonic deadline for outbound calls, from the invocation's remaining time."""
    get_remaining_time = getattr(context, 'get_remaining_time_in_millis', None)
    if get_remaining_time is None:
        return None

    remaining_ms = get_remaining_time() - DEADLINE_MARGIN_MS
    logger.info(f"Remaining invocation time: {remaining_ms}ms (after {DEADLINE_MARGIN_MS}ms margin)")
    return time.monotonic() + remaining_ms / 1000.0


def _cors_headers() -> Dict[str, str]:
    if settings.cors_allow_origin:
        return {'Access-Control-Allow-Origin': settings.cors_allow_origin}
    return {}

"""
Google reCAPTCHA v2 verification client.

This module posts user tokens to Google's siteverify endpoint and hands
back the raw answer. Interpreting the answer is left to the caller.

Usage:
    from integrations.recaptcha import RecaptchaClient

    client = RecaptchaClient()
    response = client.verify(secret, token, timeout=10)
    print(response.status_code, response.body)
"""

import logging
from typing import Optional

import requests

from domain.models import VerificationRequestError, VerificationResponse

logger = logging.getLogger(__name__)

VERIFY_URL = 'https://www.google.com/recaptcha/api/siteverify'
DEFAULT_TIMEOUT_SECONDS = 10.0


class RecaptchaClient:
    """
    Posts reCAPTCHA tokens to the siteverify endpoint.

    One attempt per call: no retries. The session is created once and
    reused across warm invocations.
    """

    def __init__(self, verify_url: str = VERIFY_URL, session: Optional[requests.Session] = None):
        self.verify_url = verify_url
        self.session = session or requests.Session()

    def verify(
        self,
        secret: str,
        token: str,
        remote_ip: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> VerificationResponse:
        """
        Send a token to the verification endpoint.

        Args:
            secret: reCAPTCHA secret key
            token: User's g-recaptcha-response value
            remote_ip: Optional user IP address
            timeout: Seconds allowed for the request (default 10)

        Returns:
            VerificationResponse: Status code and body as received

        Raises:
            VerificationRequestError: On timeouts and connection errors
        """
        payload = {
            'secret': secret,
            'response': token,
        }
        if remote_ip:
            payload['remoteip'] = remote_ip

        if timeout is None:
            timeout = DEFAULT_TIMEOUT_SECONDS

        logger.info(f"Verifying reCAPTCHA token: timeout={timeout:.1f}s")

        try:
            response = self.session.post(self.verify_url, data=payload, timeout=timeout)
        except requests.exceptions.Timeout as e:
            logger.error(f"reCAPTCHA verification timeout after {timeout:.1f}s")
            raise VerificationRequestError(f"reCAPTCHA verification timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"reCAPTCHA verification network error: {e}")
            raise VerificationRequestError(f"reCAPTCHA verification request failed: {e}") from e

        return VerificationResponse(status_code=response.status_code, body=response.text or '')

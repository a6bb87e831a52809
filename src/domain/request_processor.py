"""
Contact form request pipeline - core business logic.

This module handles the end-to-end processing of a contact form POST:
1. Read form fields from the request
2. Validate fields and build the outbound message
3. Verify the reCAPTCHA token (if enabled)
4. Send the message
5. Choose the success response (204, JSON redirect or 302)

Every outcome is returned as a RequestOutcome. Send failures are logged
and mapped to a 500; no exceptions propagate out of process_request.
"""

import logging
import time
from typing import Dict, Any, Optional

from .models import (
    ErrorKind,
    RequestOutcome,
    RequestState,
    ResponseDescriptor,
    ResponseMode,
    Settings,
    FORM_READ_ERROR_MESSAGE,
    MISSING_REDIRECT_URL_MESSAGE,
    VERIFICATION_FAILED_MESSAGE,
)
from .redirects import resolve_redirect_url
from .validation import validate
from .verification import verify_submission
from services import forms as form_service

logger = logging.getLogger(__name__)


class DeadlineExceeded(Exception):
    """Raised when no invocation time is left for an outbound call."""
    pass


class ContactFormProcessor:
    """
    Runs a contact form request through its states.

    READING_FORM -> VALIDATING -> VERIFYING -> SENDING -> RESOLVING_RESPONSE -> DONE,
    with ERRORED reachable from any of them. Collaborators are injected so
    they can be replaced in tests:

    - mail_sender: send(message, timeout=None), raises on failure
    - verifier: verify(secret, token, remote_ip=None, timeout=None)
    - form_reader: callable(event) -> fields, raises FormReadError
    """

    def __init__(self, settings: Settings, mail_sender, verifier, form_reader=None):
        self.settings = settings
        self.mail_sender = mail_sender
        self.verifier = verifier
        self.form_reader = form_reader or form_service.read_form

    def process_request(self, event: Dict[str, Any], deadline: Optional[float] = None) -> RequestOutcome:
        """
        Process a single contact form request.

        Args:
            event: API Gateway proxy event
            deadline: time.monotonic() value after which no outbound call
                      is started (None for no deadline)

        Returns:
            RequestOutcome in state DONE or ERRORED
        """
        state = RequestState.READING_FORM
        logger.info(f"State: {state.value}")

        try:
            fields = self.form_reader(event)
        except form_service.FormReadError as e:
            logger.warning(f"Invalid form data: {e}")
            return self._errored(ResponseDescriptor.bad_request(FORM_READ_ERROR_MESSAGE), ErrorKind.FORM_READ_ERROR)

        state = self._transition(state, RequestState.VALIDATING)
        result = validate(fields, self.settings)
        if not result.success:
            logger.warning(f"Validation failed: {result.error.kind.value}")
            return self._errored(ResponseDescriptor.bad_request(result.error.message), result.error.kind)

        state = self._transition(state, RequestState.VERIFYING)
        verify_timeout = None
        if self.settings.verification_required:
            try:
                verify_timeout = self._timeout(self.settings.verification_timeout, deadline)
            except DeadlineExceeded:
                logger.error("No time left to verify reCAPTCHA token")
                return self._errored(ResponseDescriptor.server_error(), ErrorKind.DEADLINE_EXCEEDED)

        verified = verify_submission(
            fields,
            self.settings,
            self.verifier,
            remote_ip=form_service.get_source_ip(event),
            timeout=verify_timeout
        )
        if not verified:
            return self._errored(ResponseDescriptor.bad_request(VERIFICATION_FAILED_MESSAGE), ErrorKind.VERIFICATION_FAILED)

        state = self._transition(state, RequestState.SENDING)
        try:
            timeout = self._timeout(None, deadline)
        except DeadlineExceeded:
            logger.error("No time left to send email")
            return self._errored(ResponseDescriptor.server_error(), ErrorKind.DEADLINE_EXCEEDED)

        send_start_time = time.time()
        try:
            self.mail_sender.send(result.message, timeout=timeout)
        except Exception as e:
            logger.error(f"Message not sent. An unspecified error occurred: {e}", exc_info=True)
            return self._errored(ResponseDescriptor.server_error(), ErrorKind.SEND_FAILURE)

        logger.info(f"Email sent: {time.time() - send_start_time:.3f}s")

        # Resolution happens after the send: a missing redirect still means the email went out
        state = self._transition(state, RequestState.RESOLVING_RESPONSE)
        redirect_url = resolve_redirect_url(fields, self.settings)

        if self.settings.response_mode == ResponseMode.OK:
            response = (
                ResponseDescriptor.json_redirect(redirect_url)
                if redirect_url
                else ResponseDescriptor.no_content()
            )
        elif redirect_url:
            response = ResponseDescriptor.http_redirect(redirect_url)
        else:
            logger.warning("Redirect response configured but no redirect URL available")
            return self._errored(
                ResponseDescriptor.bad_request(MISSING_REDIRECT_URL_MESSAGE),
                ErrorKind.MISSING_REDIRECT_URL,
                message_sent=True
            )

        self._transition(state, RequestState.DONE)
        return RequestOutcome(state=RequestState.DONE, response=response, message_sent=True)

    def _transition(self, current: RequestState, target: RequestState) -> RequestState:
        logger.info(f"State: {current.value} -> {target.value}")
        return target

    def _errored(
        self,
        response: ResponseDescriptor,
        error: ErrorKind,
        message_sent: bool = False
    ) -> RequestOutcome:
        logger.info(f"State: {RequestState.ERRORED.value} ({error.value})")
        return RequestOutcome(
            state=RequestState.ERRORED,
            response=response,
            message_sent=message_sent,
            error=error
        )

    def _timeout(self, configured: Optional[float], deadline: Optional[float]) -> Optional[float]:
        """
        Timeout for the next outbound call, clamped to the invocation deadline.

        Raises:
            DeadlineExceeded: If the deadline has already passed
        """
        if deadline is None:
            return configured

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise DeadlineExceeded(f"Deadline passed {-remaining:.3f}s ago")

        return remaining if configured is None else min(configured, remaining)

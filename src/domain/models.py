"""
Data models for the contact form domain.

These type-safe data structures define clear contracts between components.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Any

# Inbound form field names (case-sensitive)
NAME_FIELD = 'name'
EMAIL_FIELD = 'email'
SUBJECT_FIELD = 'subject'
MESSAGE_FIELD = 'message'
REDIRECT_URL_FIELD = 'redirectUrl'
VERIFICATION_TOKEN_FIELD = 'g-recaptcha-response'

# Form fields as read from the request: one string value per field name
FormFields = Dict[str, str]


class ResponseMode(Enum):
    """How a successful submission is answered."""
    OK = 'ok'
    REDIRECT = 'redirect'


class ErrorKind(Enum):
    """Every way a request can end without a success response."""
    FORM_READ_ERROR = 'form_read_error'
    MISSING_DETAILS = 'missing_details'
    BLANK_DETAILS = 'blank_details'
    INVALID_EMAIL = 'invalid_email'
    VERIFICATION_FAILED = 'verification_failed'
    MISSING_REDIRECT_URL = 'missing_redirect_url'
    SEND_FAILURE = 'send_failure'
    DEADLINE_EXCEEDED = 'deadline_exceeded'


class ResponseKind(Enum):
    BAD_REQUEST = 'bad_request'
    NO_CONTENT = 'no_content'
    JSON_REDIRECT = 'json_redirect'
    HTTP_REDIRECT = 'http_redirect'
    SERVER_ERROR = 'server_error'


class RequestState(Enum):
    """States of a single request as it moves through the processor."""
    READING_FORM = 'reading_form'
    VALIDATING = 'validating'
    VERIFYING = 'verifying'
    SENDING = 'sending'
    RESOLVING_RESPONSE = 'resolving_response'
    DONE = 'done'
    ERRORED = 'errored'


FORM_READ_ERROR_MESSAGE = "Invalid form data."
MISSING_DETAILS_MESSAGE = "Missing email details."
BLANK_DETAILS_MESSAGE = "Blank email details."
VERIFICATION_FAILED_MESSAGE = "ReCAPTCHA verification failed. Please try again."
MISSING_REDIRECT_URL_MESSAGE = "Missing redirect URL"


class VerificationRequestError(Exception):
    """Raised by a verifier when the verification request could not be completed."""
    pass


@dataclass(frozen=True)
class VerificationResponse:
    """
    Raw answer from the verification endpoint.

    Attributes:
        status_code: HTTP status code
        body: Response body text (may be empty)
    """
    status_code: int
    body: str


@dataclass(frozen=True)
class Settings:
    """
    Process-wide function settings, loaded once at cold start.

    Attributes:
        recipient_address: Address every contact email is delivered to
        subject_required: Whether the form must supply a subject
        fallback_subject: Subject used when none is supplied
        response_mode: OK (204/JSON redirect) or REDIRECT (302)
        allow_user_redirect_urls: Whether the redirectUrl field is honoured
        success_redirect_url: Configured redirect target (empty if none)
        verification_secret: reCAPTCHA secret key (empty disables verification)
        recipient_name: Display name for the recipient (may be empty)
        verification_timeout: Seconds allowed for the reCAPTCHA call
        cors_allow_origin: Access-Control-Allow-Origin value (empty for none)
    """
    recipient_address: str
    subject_required: bool = False
    fallback_subject: str = "Email received"
    response_mode: ResponseMode = ResponseMode.OK
    allow_user_redirect_urls: bool = False
    success_redirect_url: str = ""
    verification_secret: str = ""
    recipient_name: str = ""
    verification_timeout: float = 10.0
    cors_allow_origin: str = ""

    @property
    def verification_required(self) -> bool:
        """Verification is on exactly when a secret is configured."""
        return bool(self.verification_secret)


@dataclass(frozen=True)
class OutboundMessage:
    """
    A fully validated contact email, ready to hand to a mail sender.

    Attributes:
        from_display_name: Sender's name as submitted
        from_address: Sender's (validated) email address
        to_address: Configured recipient address
        subject: Submitted subject, or the fallback subject
        body: Plain text message body
        to_display_name: Recipient display name (may be empty)
    """
    from_display_name: str
    from_address: str
    to_address: str
    subject: str
    body: str
    to_display_name: str = ""


@dataclass(frozen=True)
class ValidationError:
    """A rejected submission: what went wrong and what to tell the user."""
    kind: ErrorKind
    message: str

    @classmethod
    def missing_details(cls) -> 'ValidationError':
        return cls(ErrorKind.MISSING_DETAILS, MISSING_DETAILS_MESSAGE)

    @classmethod
    def blank_details(cls) -> 'ValidationError':
        return cls(ErrorKind.BLANK_DETAILS, BLANK_DETAILS_MESSAGE)

    @classmethod
    def invalid_email(cls, value: str) -> 'ValidationError':
        return cls(ErrorKind.INVALID_EMAIL, f"Invalid from email address '{value}'.")


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validating a form submission.

    This explicit result type makes success/failure handling clear
    and prevents exceptions from being used for control flow.

    Attributes:
        success: Whether the submission passed every check
        message: The outbound message (only when success is True)
        error: The first failed check (only when success is False)
    """
    success: bool
    message: Optional[OutboundMessage] = None
    error: Optional[ValidationError] = None

    @classmethod
    def ok(cls, message: OutboundMessage) -> 'ValidationResult':
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, error: ValidationError) -> 'ValidationResult':
        return cls(success=False, error=error)


@dataclass(frozen=True)
class ResponseDescriptor:
    """
    The response a request ends with, independent of the HTTP runtime.

    Attributes:
        kind: Which response shape this is
        message: Error message for BAD_REQUEST responses
        url: Redirect target for JSON_REDIRECT and HTTP_REDIRECT responses
    """
    kind: ResponseKind
    message: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def bad_request(cls, message: str) -> 'ResponseDescriptor':
        return cls(ResponseKind.BAD_REQUEST, message=message)

    @classmethod
    def no_content(cls) -> 'ResponseDescriptor':
        return cls(ResponseKind.NO_CONTENT)

    @classmethod
    def json_redirect(cls, url: str) -> 'ResponseDescriptor':
        return cls(ResponseKind.JSON_REDIRECT, url=url)

    @classmethod
    def http_redirect(cls, url: str) -> 'ResponseDescriptor':
        return cls(ResponseKind.HTTP_REDIRECT, url=url)

    @classmethod
    def server_error(cls) -> 'ResponseDescriptor':
        return cls(ResponseKind.SERVER_ERROR)

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.kind]

    def to_lambda_response(self, extra_headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Render as an API Gateway proxy integration response.

        Args:
            extra_headers: Headers added to every response (e.g. CORS)

        Returns:
            Dict with statusCode, headers and body
        """
        headers = dict(extra_headers or {})
        body = ''

        if self.kind == ResponseKind.BAD_REQUEST:
            headers['Content-Type'] = 'text/plain; charset=utf-8'
            body = self.message or ''
        elif self.kind == ResponseKind.JSON_REDIRECT:
            headers['Content-Type'] = 'application/json'
            body = json.dumps({'redirect': self.url})
        elif self.kind == ResponseKind.HTTP_REDIRECT:
            headers['Location'] = self.url

        return {
            'statusCode': self.status_code,
            'headers': headers,
            'body': body
        }


_STATUS_CODES = {
    ResponseKind.BAD_REQUEST: 400,
    ResponseKind.NO_CONTENT: 204,
    ResponseKind.JSON_REDIRECT: 200,
    ResponseKind.HTTP_REDIRECT: 302,
    ResponseKind.SERVER_ERROR: 500,
}


@dataclass(frozen=True)
class RequestOutcome:
    """
    Result of processing one contact form request.

    Attributes:
        state: Terminal state reached (DONE or ERRORED)
        response: The response to return to the caller
        message_sent: Whether the mail sender accepted the message
        error: What went wrong (only when state is ERRORED)
    """
    state: RequestState
    response: ResponseDescriptor
    message_sent: bool = False
    error: Optional[ErrorKind] = None

    @property
    def success(self) -> bool:
        return self.state == RequestState.DONE

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return f"RequestOutcome(state=DONE, status={self.response.status_code})"
        else:
            return (
                f"RequestOutcome(state=ERRORED, status={self.response.status_code}, "
                f"error={self.error.value if self.error else None}, sent={self.message_sent})"
            )
